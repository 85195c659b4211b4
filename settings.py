# settings.py
# Everything the app reads from the environment, in one place.
import os
import secrets
from dataclasses import dataclass, field

from dotenv import load_dotenv

DEFAULT_MONGO_URI = "mongodb://localhost:27017/"
GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"


def _flag(name, default=False):
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _int(name, default):
    raw = (os.environ.get(name) or "").strip()
    return int(raw) if raw else default


@dataclass(frozen=True)
class Settings:
    mongo_uri: str = DEFAULT_MONGO_URI
    mongo_db: str = "ecosnap_sort"
    mongo_change_streams: bool = False

    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    gemini_timeout: float = 30.0

    google_maps_api_key: str = ""
    secret_key: str = field(default_factory=lambda: secrets.token_hex(24))

    points_per_scan: int = 10
    leaderboard_size: int = 10
    award_anonymous_points: bool = False
    store_scan_images: bool = True
    max_image_bytes: int = 10 * 1024 * 1024
    write_queue_sync: bool = False

    log_level: str = "INFO"

    @property
    def gemini_url(self):
        return f"{GEMINI_API_BASE}/{self.gemini_model}:generateContent"


def load_settings():
    """Read .env (if any) and the process environment into a Settings object."""
    load_dotenv()
    return Settings(
        mongo_uri=os.environ.get("MONGO_URI", DEFAULT_MONGO_URI),
        mongo_db=os.environ.get("MONGO_DB", "ecosnap_sort"),
        mongo_change_streams=_flag("MONGO_CHANGE_STREAMS"),
        gemini_api_key=os.environ.get("GEMINI_API_KEY", "").strip(),
        gemini_model=os.environ.get("GEMINI_MODEL", "gemini-2.0-flash").strip(),
        gemini_timeout=float(os.environ.get("GEMINI_TIMEOUT", "30")),
        google_maps_api_key=os.environ.get("GOOGLE_MAPS_API_KEY", "").strip(),
        secret_key=os.environ.get("SECRET_KEY") or secrets.token_hex(24),
        points_per_scan=_int("POINTS_PER_SCAN", 10),
        leaderboard_size=_int("LEADERBOARD_SIZE", 10),
        award_anonymous_points=_flag("AWARD_ANONYMOUS_POINTS"),
        store_scan_images=_flag("STORE_SCAN_IMAGES", default=True),
        max_image_bytes=_int("MAX_IMAGE_BYTES", 10 * 1024 * 1024),
        write_queue_sync=_flag("WRITE_QUEUE_SYNC"),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )
