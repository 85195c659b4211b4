# profiles.py
# users/{uid} documents and the per-user waste history
import logging
from datetime import datetime, timezone

from pymongo import DESCENDING

from database import ACCOUNTS, USERS, WASTE_EVENTS
from errors import InvalidInput
from models import UserProfile, WasteEvent

logger = logging.getLogger(__name__)

USERS_TOPIC = "users"
EVENTS_TOPIC = "waste_events"


def _new_profile_fields(identity):
    return {
        "email": identity.email or "",
        "displayName": identity.display_name or "Anonymous",
        "photoURL": identity.photo_url,
        "createdAt": datetime.now(timezone.utc),
    }


class ProfileStore:
    def __init__(self, db, notifier=None):
        self.users = db[USERS]
        self.accounts = db[ACCOUNTS]
        self.events = db[WASTE_EVENTS]
        self.notifier = notifier

    def _notify(self, topic):
        if self.notifier is not None:
            self.notifier.changed(topic)

    def ensure_profile(self, identity):
        """Create users/{uid} on first sight. Never touches an existing profile."""
        fields = dict(_new_profile_fields(identity), points=0)
        res = self.users.update_one(
            {"_id": identity.uid}, {"$setOnInsert": fields}, upsert=True
        )
        if res.upserted_id is not None:
            logger.info("created profile for %s", identity.uid)
            self._notify(USERS_TOPIC)
            return True
        return False

    def get(self, uid):
        doc = self.users.find_one({"_id": uid})
        return UserProfile.from_document(doc) if doc else None

    def increment_points(self, identity, amount):
        # $inc only: concurrent scans from several sessions must not lose updates
        self.users.update_one(
            {"_id": identity.uid},
            {"$inc": {"points": amount}, "$setOnInsert": _new_profile_fields(identity)},
            upsert=True,
        )
        self._notify(USERS_TOPIC)

    def update_display_name(self, uid, display_name):
        name = (display_name or "").strip()
        if len(name) < 2:
            raise InvalidInput("Name must be at least 2 characters.")
        res = self.users.update_one({"_id": uid}, {"$set": {"displayName": name}})
        if res.matched_count == 0:
            raise InvalidInput("Profile not found.")
        self.accounts.update_one({"uid": uid}, {"$set": {"displayName": name}})
        self._notify(USERS_TOPIC)
        return self.get(uid)

    def append_event(self, event):
        res = self.events.insert_one(event.to_document())
        self._notify(EVENTS_TOPIC)
        return str(res.inserted_id)

    def recent_events(self, uid, limit=5):
        cursor = self.events.find({"userId": uid}).sort("timestamp", DESCENDING).limit(limit)
        return [WasteEvent.from_document(doc) for doc in cursor]

    def count_events(self, uid):
        return self.events.count_documents({"userId": uid})
