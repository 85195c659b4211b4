from datetime import datetime, timedelta

import pytest

from errors import InvalidInput
from live import ChangeNotifier
from models import Identity
from profiles import ProfileStore


@pytest.fixture
def profiles(db):
    return ProfileStore(db, ChangeNotifier())


def test_ensure_profile_creates_once(db, profiles):
    identity = Identity(uid="u1", email="jane@example.com", display_name="Jane")
    assert profiles.ensure_profile(identity) is True
    db.users.update_one({"_id": "u1"}, {"$inc": {"points": 30}})

    # second observation must not reset anything
    assert profiles.ensure_profile(identity) is False
    profile = profiles.get("u1")
    assert profile.points == 30
    assert profile.display_name == "Jane"
    assert profile.created_at is not None


def test_anonymous_profile_defaults(profiles):
    profiles.ensure_profile(Identity(uid="anon", is_anonymous=True))
    profile = profiles.get("anon")
    assert profile.display_name == "Anonymous"
    assert profile.email == ""
    assert profile.points == 0


def test_update_display_name(db, profiles):
    profiles.ensure_profile(Identity(uid="u1", display_name="Jane"))
    db.accounts.insert_one({"uid": "u1", "email": "jane@example.com", "displayName": "Jane"})

    profile = profiles.update_display_name("u1", "  Janet ")

    assert profile.display_name == "Janet"
    assert db.accounts.find_one({"uid": "u1"})["displayName"] == "Janet"


def test_update_display_name_too_short(profiles):
    profiles.ensure_profile(Identity(uid="u1", display_name="Jane"))
    with pytest.raises(InvalidInput, match="at least 2 characters"):
        profiles.update_display_name("u1", "J")


def test_recent_events_newest_first(db, profiles):
    base = datetime(2024, 1, 1)
    for i in range(7):
        db.waste_identifications.insert_one({
            "userId": "u1", "timestamp": base + timedelta(minutes=i),
            "binColor": "Green", "ecoFact": f"fact {i}", "imageRef": None,
        })
    events = profiles.recent_events("u1")
    assert len(events) == 5
    assert events[0].eco_fact == "fact 6"
    assert profiles.count_events("u1") == 7
