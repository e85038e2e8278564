"""
MongoDB record store: one collection per entity kind.

Every write is a targeted single-document operation. The only multi-document
write is the priority flag maintenance, which runs under a lock keyed by the
collection name so that two writers cannot both leave a record flagged.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.errors import DuplicateKeyError

from charity_api.utils.cache import collection_lock

logger = logging.getLogger(__name__)

GALLERY_ITEMS = "galleryItems"
RECENT_UPDATES = "recentUpdates"
UPCOMING_EVENTS = "upcomingEvents"
DONATION_TRANSACTIONS = "donationTransactions"
DONATION_CASES = "donationCases"
DONATION_CONTENT = "donationContent"
CONTACT_MESSAGES = "contactMessages"
NEWSLETTER_SUBSCRIBERS = "newsletterSubscribers"
NEWSLETTER_CAMPAIGNS = "newsletterCampaigns"

ALL_COLLECTIONS = (
    GALLERY_ITEMS,
    RECENT_UPDATES,
    UPCOMING_EVENTS,
    DONATION_TRANSACTIONS,
    DONATION_CASES,
    DONATION_CONTENT,
    CONTACT_MESSAGES,
    NEWSLETTER_SUBSCRIBERS,
    NEWSLETTER_CAMPAIGNS,
)

PRIORITY_FIELD = "isPriority"
# documents written before the rename carry the flag under this name
LEGACY_PRIORITY_FIELD = "priorityplacement"

_NO_ID = {"_id": 0}


class Collection:
    """CRUD for one entity kind. Documents are plain dicts keyed by `id`."""

    def __init__(self, store: "RecordStore", name: str):
        self.store = store
        self.name = name

    def _col(self):
        return self.store.db()[self.name]

    def list(self, filter: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        cursor = self._col().find(filter or {}, _NO_ID).sort("_id", DESCENDING)
        return list(cursor)

    def get_by_id(self, record_id: str) -> Optional[Dict[str, Any]]:
        return self._col().find_one({"id": record_id}, _NO_ID)

    def find_one(self, filter: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self._col().find_one(filter, _NO_ID)

    def create(self, doc: Dict[str, Any]) -> None:
        # insert_one mutates its argument with an ObjectId; keep the caller's dict clean
        self._col().insert_one(dict(doc))

    def create_unless_duplicate(self, doc: Dict[str, Any]) -> bool:
        """Insert `doc`; False when a unique index already holds its key."""
        try:
            self.create(doc)
        except DuplicateKeyError:
            return False
        return True

    def replace(self, record_id: str, doc: Dict[str, Any]) -> bool:
        result = self._col().replace_one({"id": record_id}, dict(doc))
        return result.matched_count > 0

    def delete(self, record_id: str) -> bool:
        result = self._col().delete_one({"id": record_id})
        return result.deleted_count > 0

    def update_fields(
        self, record_id: str, fields: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        result = self._col().update_one({"id": record_id}, {"$set": fields})
        if result.matched_count == 0:
            return None
        return self.get_by_id(record_id)

    def put_singleton(self, doc: Dict[str, Any]) -> None:
        """For collections that hold exactly one document."""
        self._col().replace_one({}, dict(doc), upsert=True)

    def count(self, filter: Optional[Dict[str, Any]] = None) -> int:
        return self._col().count_documents(filter or {})

    # --- priority flag -------------------------------------------------

    def create_with_priority(self, doc: Dict[str, Any]) -> None:
        """Insert `doc`; when it is flagged, every sibling loses the flag first."""
        if not doc.get(PRIORITY_FIELD):
            self.create(doc)
            return
        with collection_lock(self.name, self.store.redis_url):
            cleared = self._clear_priority(exclude_id=None)
            self.create(doc)
        logger.info(
            "[store] %s: new priority record %s (cleared %d)",
            self.name,
            doc.get("id"),
            cleared,
        )

    def replace_with_priority(self, record_id: str, doc: Dict[str, Any]) -> bool:
        if not doc.get(PRIORITY_FIELD):
            return self.replace(record_id, doc)
        with collection_lock(self.name, self.store.redis_url):
            if self._col().find_one({"id": record_id}, {"_id": 1}) is None:
                return False
            cleared = self._clear_priority(exclude_id=record_id)
            replaced = self.replace(record_id, doc)
        logger.info(
            "[store] %s: priority moved to %s (cleared %d)", self.name, record_id, cleared
        )
        return replaced

    def _clear_priority(self, exclude_id: Optional[str]) -> int:
        query: Dict[str, Any] = {
            "$or": [{PRIORITY_FIELD: True}, {LEGACY_PRIORITY_FIELD: True}]
        }
        if exclude_id is not None:
            query["id"] = {"$ne": exclude_id}
        result = self._col().update_many(query, {"$set": {PRIORITY_FIELD: False}})
        return result.modified_count


class RecordStore:
    """
    Process-wide handle on the document database. The client is created on
    first use and kept until `close()`.
    """

    def __init__(
        self,
        uri: Optional[str] = None,
        db_name: str = "femifunmi_foundation",
        *,
        client: Optional[MongoClient] = None,
        redis_url: Optional[str] = None,
    ):
        self.uri = uri
        self.db_name = db_name
        self.redis_url = redis_url
        self._client = client
        self._db = None
        self._init_lock = threading.Lock()

    def db(self):
        if self._db is not None:
            return self._db
        with self._init_lock:
            if self._db is None:
                if self._client is None:
                    self._client = MongoClient(self.uri)
                    logger.info("[store] connected to database %r", self.db_name)
                db = self._client[self.db_name]
                _ensure_indexes(db)
                self._db = db
        return self._db

    def collection(self, name: str) -> Collection:
        return Collection(self, name)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
        self._client = None
        self._db = None


def _ensure_indexes(db) -> None:
    for name in ALL_COLLECTIONS:
        if name == DONATION_CONTENT:
            continue
        db[name].create_index([("id", ASCENDING)], unique=True)
    db[NEWSLETTER_SUBSCRIBERS].create_index([("email", ASCENDING)], unique=True)
