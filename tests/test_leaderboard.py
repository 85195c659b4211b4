"""
Tests for the top-10 leaderboard query and its live view.
"""

from auth import SessionContext
from leaderboard import LOADING, READY, UNAUTHENTICATED, LeaderboardView, leaderboard_query, top_entries
from live import ChangeNotifier
from models import Identity
from profiles import ProfileStore

SESSION = SessionContext(Identity(uid="viewer", display_name="Viewer"))


def seed(db, scores):
    for uid, points in scores.items():
        db.users.insert_one({"_id": uid, "displayName": uid.title(), "points": points})


def test_top_entries_sorted_and_limited(db):
    seed(db, {f"user{i:02d}": i * 5 for i in range(15)})
    entries = top_entries(db.users)

    assert len(entries) == 10
    points = [e.points for e in entries]
    assert points == sorted(points, reverse=True)
    assert entries[0].id == "user14"


def test_ties_broken_by_user_id(db):
    seed(db, {"carol": 20, "alice": 20, "bob": 20, "dave": 30})
    entries = top_entries(db.users)
    assert [e.id for e in entries] == ["dave", "alice", "bob", "carol"]


def test_entry_projection(db):
    db.users.insert_one({"_id": "u1", "points": 5, "email": "secret@example.com"})
    entry = top_entries(db.users)[0]
    assert entry.to_dict() == {"id": "u1", "displayName": "Anonymous", "points": 5,
                               "avatar": "avatar-1"}


def test_view_without_session_is_unauthenticated(db):
    view = LeaderboardView(leaderboard_query(db.users, ChangeNotifier()), None)
    view.open()
    assert view.state == UNAUTHENTICATED
    assert view.render()["message"] == "Please log in to see the leaderboard."
    assert view.subscription is None


def test_view_loading_then_ready(db):
    seed(db, {"alice": 10})
    view = LeaderboardView(leaderboard_query(db.users, ChangeNotifier()), SESSION)
    assert view.state == LOADING
    assert view.render()["message"] == "Loading leaderboard..."

    with view:
        rendered = view.render()
        assert view.state == READY
        assert rendered["entries"][0]["displayName"] == "Alice"
        assert rendered["entries"][0]["rank"] == 1


def test_view_rerenders_on_point_changes(db):
    notifier = ChangeNotifier()
    profiles = ProfileStore(db, notifier)
    seed(db, {"alice": 10, "bob": 20})
    renders = []
    view = LeaderboardView(leaderboard_query(db.users, notifier), SESSION, on_render=renders.append)

    with view:
        assert [e["id"] for e in renders[-1]["entries"]] == ["bob", "alice"]
        profiles.increment_points(Identity(uid="alice"), 15)
        assert [e["id"] for e in renders[-1]["entries"]] == ["alice", "bob"]
        assert renders[-1]["entries"][0]["points"] == 25
    count = len(renders)

    # released handle: no more renders
    profiles.increment_points(Identity(uid="bob"), 100)
    assert len(renders) == count
    assert notifier.listener_count("users") == 0
