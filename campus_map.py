# campus_map.py
from dataclasses import dataclass

DEFAULT_CENTER = {"lat": 12.9716, "lng": 77.5946}
DEFAULT_ZOOM = 15

LOCATIONS = [
    {
        "key": "main",
        "position": {"lat": 12.9716, "lng": 77.5946},
        "label": "Main Recycling Center",
        "details": "Paper, Plastic, Glass",
    },
    {
        "key": "ewaste",
        "position": {"lat": 12.973, "lng": 77.592},
        "label": "E-Waste Drop-off",
        "details": "Batteries, Phones, Laptops",
    },
    {
        "key": "organic",
        "position": {"lat": 12.969, "lng": 77.598},
        "label": "Organic Compost Pit",
        "details": "Food scraps, Yard waste",
    },
]

MISSING_KEY_TITLE = "Google Maps API Key is Missing"
MISSING_KEY_HELP = (
    "Please add your key to a .env file as GOOGLE_MAPS_API_KEY "
    "and restart the server."
)


@dataclass(frozen=True)
class MapConfig:
    api_key: str = ""

    @classmethod
    def from_settings(cls, settings):
        return cls(api_key=settings.google_maps_api_key or "")

    @property
    def enabled(self):
        return bool(self.api_key)

    def to_dict(self):
        if not self.enabled:
            return {"enabled": False, "title": MISSING_KEY_TITLE, "message": MISSING_KEY_HELP}
        return {
            "enabled": True,
            "apiKey": self.api_key,
            "center": DEFAULT_CENTER,
            "zoom": DEFAULT_ZOOM,
            "locations": LOCATIONS,
        }
