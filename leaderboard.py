# leaderboard.py
# Top-N users by points, as a live query.
from pymongo import ASCENDING, DESCENDING

from live import LiveQuery
from models import LeaderboardEntry
from profiles import USERS_TOPIC

LEADERBOARD_SIZE = 10

# points desc, then user id so equal scores always come back in the same order
LEADERBOARD_SORT = [("points", DESCENDING), ("_id", ASCENDING)]
LEADERBOARD_PROJECTION = {"displayName": 1, "points": 1, "photoURL": 1}

LOADING = "loading"
READY = "ready"
UNAUTHENTICATED = "unauthenticated"


def top_entries(users, limit=LEADERBOARD_SIZE):
    cursor = users.find({}, LEADERBOARD_PROJECTION).sort(LEADERBOARD_SORT).limit(limit)
    entries = []
    for index, doc in enumerate(cursor):
        entries.append(LeaderboardEntry(
            id=doc["_id"],
            display_name=doc.get("displayName") or "Anonymous",
            points=doc.get("points", 0),
            avatar=doc.get("photoURL") or f"avatar-{(index % 10) + 1}",
        ))
    return entries


def leaderboard_query(users, notifier, limit=LEADERBOARD_SIZE):
    return LiveQuery(lambda: top_entries(users, limit), notifier, USERS_TOPIC)


class LeaderboardView:
    """Renders the leaderboard for one viewer.

    unauthenticated -> no session; loading -> waiting for the first snapshot;
    ready -> entries available, re-rendered on every pushed snapshot.
    """

    def __init__(self, query, session, on_render=None):
        self.query = query
        self.session = session
        self.on_render = on_render
        self.entries = None
        self.subscription = None

    @property
    def state(self):
        if self.session is None:
            return UNAUTHENTICATED
        if self.entries is None:
            return LOADING
        return READY

    def open(self):
        if self.session is not None and self.subscription is None:
            self.subscription = self.query.subscribe(self._on_snapshot)
        return self

    def close(self):
        if self.subscription is not None:
            self.subscription.close()
            self.subscription = None

    def __enter__(self):
        return self.open()

    def __exit__(self, *exc):
        self.close()

    def _on_snapshot(self, entries):
        self.entries = entries
        if self.on_render is not None:
            self.on_render(self.render())

    def render(self):
        state = self.state
        if state == UNAUTHENTICATED:
            return {"state": state, "message": "Please log in to see the leaderboard.", "entries": []}
        if state == LOADING:
            return {"state": state, "message": "Loading leaderboard...", "entries": []}
        return {
            "state": state,
            "entries": [dict(e.to_dict(), rank=i + 1) for i, e in enumerate(self.entries)],
        }
