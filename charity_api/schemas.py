"""
Request schemas.

Each model validates one incoming form or JSON body. Multipart forms arrive as
strings, so booleans and integers are coerced and blank optional fields are
treated as absent. `parse_body` turns pydantic errors into `ValidationFailed`
with per-field messages.
"""

from __future__ import annotations

import re
from typing import Annotated, Any, Dict, List, Literal, Optional, Type, TypeVar
from urllib.parse import urlparse

from pydantic import (
    AfterValidator,
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    model_validator,
)

from charity_api.errors import ValidationFailed
from charity_api.utils.dates import is_not_before_now, is_today_or_future

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

_TRUE = {"true", "1", "on", "yes"}


def _multipart_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUE
    return False


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _http_url(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("must be an http(s) URL")
    return value


def _email(value: str) -> str:
    if not EMAIL_RE.match(value):
        raise ValueError("invalid email format")
    return value


def _gallery_date(value: str) -> str:
    if not is_today_or_future(value):
        raise ValueError("date cannot be in the past")
    return value


def _event_datetime(value: str) -> str:
    if not is_not_before_now(value):
        raise ValueError(
            "must be an ISO datetime with offset and cannot be in the past"
        )
    return value


def _payment_method(value: Any) -> Any:
    # older clients name the card gateway after the provider
    if isinstance(value, str) and value.strip().lower() == "paystack":
        return "gateway"
    return value


MultipartBool = Annotated[bool, BeforeValidator(_multipart_bool)]
OptionalText = Annotated[Optional[str], BeforeValidator(_blank_to_none)]
ShortText = Annotated[
    Optional[Annotated[str, Field(min_length=2)]], BeforeValidator(_blank_to_none)
]
LongText = Annotated[
    Optional[Annotated[str, Field(min_length=10)]], BeforeValidator(_blank_to_none)
]
OptionalIndex = Annotated[
    Optional[Annotated[int, Field(ge=0)]], BeforeValidator(_blank_to_none)
]
OptionalAmount = Annotated[
    Optional[Annotated[int, Field(gt=0)]], BeforeValidator(_blank_to_none)
]
OptionalUrl = Annotated[
    Optional[str], BeforeValidator(_blank_to_none), AfterValidator(_http_url)
]
Email = Annotated[str, AfterValidator(_email)]
FutureDate = Annotated[str, Field(min_length=2), AfterValidator(_gallery_date)]
MediaKind = Literal["photo", "video"]


class _Form(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True, str_strip_whitespace=True, extra="ignore"
    )


class GalleryForm(_Form):
    kind: MediaKind = Field(validation_alias=AliasChoices("kind", "type"))
    donateeName: ShortText = None
    title: str = Field(min_length=2)
    description: LongText = None
    location: str = Field(min_length=2)
    address: str = Field(min_length=2)
    date: FutureDate
    coverUrl: OptionalUrl = Field(
        default=None, validation_alias=AliasChoices("coverUrl", "mediaUrl")
    )
    isPriority: MultipartBool = Field(
        default=False, validation_alias=AliasChoices("isPriority", "priorityplacement")
    )
    extraMediaJson: Optional[str] = None


class MediaDescriptor(_Form):
    source: Literal["file", "url"] = "url"
    kind: MediaKind = Field(validation_alias=AliasChoices("kind", "type"))
    id: OptionalText = None
    fileIndex: OptionalIndex = None
    fileKey: OptionalText = None
    url: OptionalUrl = Field(
        default=None, validation_alias=AliasChoices("url", "mediaUrl")
    )
    caption: ShortText = None

    @model_validator(mode="after")
    def _source_has_reference(self):
        if self.source == "url" and not self.url:
            raise ValueError("url is required for url-sourced media")
        if self.source == "file" and self.fileIndex is None and not self.fileKey:
            raise ValueError("fileIndex or fileKey is required for file-sourced media")
        return self


class RecentUpdateForm(_Form):
    title: str = Field(min_length=3)
    description: str = Field(min_length=10)
    date: FutureDate
    location: str = Field(min_length=2)
    mainMediaIndex: OptionalIndex = None
    mediaDescriptorsJson: str = Field(min_length=2)


class UpcomingEventForm(_Form):
    title: str = Field(min_length=3)
    description: str = Field(min_length=20)
    dateIso: Annotated[str, AfterValidator(_event_datetime)]
    location: str = Field(min_length=2)
    isPriority: MultipartBool = Field(
        default=False, validation_alias=AliasChoices("isPriority", "priorityplacement")
    )


class DonationForm(_Form):
    targetGalleryItemId: str = Field(
        min_length=2,
        validation_alias=AliasChoices("targetGalleryItemId", "donationGalleryItemId"),
    )
    donationTitle: str = Field(min_length=2)
    firstName: str = Field(min_length=2)
    lastName: str = Field(min_length=2)
    email: Email
    country: str = Field(min_length=2)
    phoneCountryCode: str = Field(min_length=1)
    mobile: str = Field(min_length=6)
    paymentMethod: Annotated[
        Literal["gateway", "direct-transfer"], BeforeValidator(_payment_method)
    ]
    gatewayReference: ShortText = Field(
        default=None,
        validation_alias=AliasChoices("gatewayReference", "paystackReference"),
    )
    amount: OptionalAmount = Field(
        default=None, validation_alias=AliasChoices("amount", "amountNaira")
    )


class DonationStatusUpdate(_Form):
    status: Literal["pending-review", "approved", "rejected"] = Field(
        validation_alias=AliasChoices("status", "transactionStatus")
    )


class NewsletterSubscribe(_Form):
    firstName: str = Field(min_length=2)
    email: Email
    consentGiven: Literal[True]
    source: ShortText = None


class NewsletterUnsubscribe(_Form):
    email: Email


class NewsletterSend(_Form):
    subject: str = Field(min_length=3)
    body: str = Field(min_length=10)


class ContactForm(_Form):
    fullName: str = Field(min_length=2)
    email: Email
    phoneNumber: str = Field(min_length=6)
    message: str = Field(min_length=10)


class DonationCaseForm(_Form):
    title: str = Field(min_length=3)
    beneficiary: str = Field(min_length=2)
    description: str = Field(min_length=10)
    targetAmount: OptionalText = None
    mediaKind: Optional[MediaKind] = Field(
        default=None, validation_alias=AliasChoices("mediaKind", "mediaType")
    )
    mediaUrl: OptionalUrl = None
    status: Literal["open", "closed"]


class DonationContentForm(_Form):
    introText: str = Field(min_length=10)
    missionText: str = Field(min_length=10)
    paymentHeading: str = Field(min_length=3)
    paymentDescription: str = Field(min_length=10)
    onlinePlatformLabel: str = Field(min_length=2)
    onlinePlatformUrl: Annotated[str, AfterValidator(_http_url)]
    bankTransferDetails: List[Annotated[str, Field(min_length=3)]] = Field(
        min_length=1
    )


class UploadForm(_Form):
    folder: OptionalText = None
    resourceKind: Literal["auto", "image", "video"] = Field(
        default="auto", validation_alias=AliasChoices("resourceKind", "resourceType")
    )


M = TypeVar("M", bound=BaseModel)


def _field_errors(err: ValidationError) -> Dict[str, List[str]]:
    fields: Dict[str, List[str]] = {}
    for item in err.errors():
        loc = item.get("loc") or ()
        name = ".".join(str(p) for p in loc) or "_body"
        message = item.get("msg", "invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        fields.setdefault(name, []).append(message)
    return fields


def parse_body(model: Type[M], data: Any, message: str = "validation failed") -> M:
    if not isinstance(data, dict):
        raise ValidationFailed(message, {"_body": ["expected an object"]})
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ValidationFailed(message, _field_errors(e))


def parse_list(model: Type[M], data: Any, field: str) -> List[M]:
    if not isinstance(data, list):
        raise ValidationFailed("validation failed", {field: ["expected a list"]})
    out: List[M] = []
    for index, item in enumerate(data):
        try:
            out.append(model.model_validate(item))
        except ValidationError as e:
            fields = {
                f"{field}.{index}.{name}": msgs
                for name, msgs in _field_errors(e).items()
            }
            raise ValidationFailed("validation failed", fields)
    return out
