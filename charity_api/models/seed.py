"""Default content served before an operator has written anything."""

from charity_api.models.store import (
    DONATION_CASES,
    GALLERY_ITEMS,
    RECENT_UPDATES,
)

_SAMPLE_IMAGE = (
    "https://images.unsplash.com/photo-1488521787991-ed7bbaae773c"
    "?auto=format&fit=crop&w=1200&q=80"
)

DEFAULT_DONATION_CONTENT = {
    "introText": (
        "A description of the person in need is posted here with pictures or "
        "videos of the person or group of persons."
    ),
    "missionText": (
        "Save a life today by donating towards this mission, and surely you "
        "will be richly blessed."
    ),
    "paymentHeading": "Make Payment Here",
    "paymentDescription": (
        "Online payment platform and affiliated banks for direct deposits and "
        "bank transfer can be made here."
    ),
    "onlinePlatformLabel": "Donate Securely Online",
    "onlinePlatformUrl": "https://www.femifunmicharity.org",
    "bankTransferDetails": [
        "FEMIFUNMI CHARITY ORGANISATION - Zenith Bank - 1234567890",
        "FEMIFUNMI CHARITY ORGANISATION - GTBank - 0123456789",
    ],
}

SEED_RECORDS = {
    DONATION_CASES: [
        {
            "id": "case-1",
            "title": "Support children in orphanage homes",
            "beneficiary": "Orphanage Homes",
            "description": (
                "Provide food packages, school supplies, and medical support "
                "for children."
            ),
            "targetAmount": "$5,000",
            "mediaKind": "photo",
            "mediaUrl": _SAMPLE_IMAGE,
            "status": "open",
        }
    ],
    GALLERY_ITEMS: [
        {
            "id": "gallery-1",
            "kind": "photo",
            "title": "Community Outreach Program",
            "location": "Ikeja, Lagos",
            "address": "Lagos, Nigeria",
            "date": "January 2026",
            "coverUrl": _SAMPLE_IMAGE,
            "isPriority": False,
            "extraMedia": [],
        }
    ],
    RECENT_UPDATES: [
        {
            "id": "update-1",
            "title": "School Support Outreach in Ikeja",
            "description": (
                "Our outreach team visited community schools in Ikeja and "
                "delivered education kits to pupils in need."
            ),
            "date": "February 2026",
            "location": "Ikeja, Lagos",
            "mainMediaId": "update-1-media-1",
            "media": [
                {
                    "id": "update-1-media-1",
                    "kind": "photo",
                    "url": _SAMPLE_IMAGE,
                    "caption": "Children receiving school support packs.",
                }
            ],
        }
    ],
}
