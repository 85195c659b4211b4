# models.py
# Domain types plus the MongoDB document layout (for documentation/reference)
from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from typing import Optional


class BinColor(str, Enum):
    RED = "Red"      # landfill / hazardous-reject
    BLUE = "Blue"    # recyclable
    GREEN = "Green"  # organic

    @classmethod
    def values(cls):
        return [c.value for c in cls]


@dataclass(frozen=True)
class ClassificationRequest:
    image_uri: str  # data:<mimetype>;base64,<data>

    @property
    def mime_type(self):
        return self.image_uri[len("data:"):].split(";", 1)[0]

    @property
    def data(self):
        return self.image_uri.split(",", 1)[1]


@dataclass(frozen=True)
class ClassificationResult:
    bin_color: BinColor
    eco_fact: str

    def to_dict(self):
        return {"binColor": self.bin_color.value, "ecoFact": self.eco_fact}


@dataclass(frozen=True)
class Identity:
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    is_anonymous: bool = False

    def to_dict(self):
        return asdict(self)


@dataclass
class UserProfile:
    id: str
    display_name: str
    points: int = 0
    email: str = ""
    photo_url: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc):
        return cls(
            id=doc["_id"],
            display_name=doc.get("displayName") or "Anonymous",
            points=doc.get("points", 0),
            email=doc.get("email", ""),
            photo_url=doc.get("photoURL"),
            created_at=doc.get("createdAt"),
        )

    def to_dict(self):
        return {
            "id": self.id,
            "displayName": self.display_name,
            "points": self.points,
            "email": self.email,
            "photoURL": self.photo_url,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class WasteEvent:
    user_id: str
    timestamp: datetime
    bin_color: BinColor
    eco_fact: str
    image_ref: Optional[str] = None

    def to_document(self):
        return {
            "userId": self.user_id,
            "timestamp": self.timestamp,
            "binColor": self.bin_color.value,
            "ecoFact": self.eco_fact,
            "imageRef": self.image_ref,
        }

    @classmethod
    def from_document(cls, doc):
        return cls(
            user_id=doc["userId"],
            timestamp=doc["timestamp"],
            bin_color=BinColor(doc["binColor"]),
            eco_fact=doc.get("ecoFact", ""),
            image_ref=doc.get("imageRef"),
        )

    def to_dict(self):
        return {
            "userId": self.user_id,
            "timestamp": self.timestamp.isoformat(),
            "binColor": self.bin_color.value,
            "ecoFact": self.eco_fact,
            "imageRef": self.image_ref,
        }


@dataclass(frozen=True)
class LeaderboardEntry:
    id: str
    display_name: str
    points: int
    avatar: Optional[str] = None

    def to_dict(self):
        return {
            "id": self.id,
            "displayName": self.display_name,
            "points": self.points,
            "avatar": self.avatar,
        }


# users collection (users/{uid})
user_schema = {
    '_id': 'str',  # uid from the identity provider (accounts collection or anonymous)
    'email': 'str',  # '' for anonymous users
    'displayName': 'str',  # 'Anonymous' until the user sets one
    'photoURL': 'str',  # optional avatar reference
    'points': 0,  # Integer >= 0, only ever changed with $inc
    'createdAt': 'datetime',  # set once, on first sign-in
}

# waste_identifications collection (users/{uid}/wasteIdentifications/{eventId})
waste_event_schema = {
    'userId': 'str',  # owner, foreign key to users._id
    'timestamp': 'datetime',  # UTC
    'binColor': 'str',  # Red | Blue | Green
    'ecoFact': 'str',
    'imageRef': 'str',  # GridFS id of the scanned image, or None
}

# accounts collection (email/password sign-in)
account_schema = {
    'email': 'str',  # unique
    'password': 'str',  # werkzeug password hash
    'uid': 'str',  # users._id
    'displayName': 'str',
    'created': 'datetime',
}

# Note: This is for reference only. MongoDB is schemaless by default.
