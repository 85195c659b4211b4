"""
Pytest fixtures for EcoSnap Sort. MongoDB is replaced by mongomock and the
Gemini HTTP call by a MagicMock session, so nothing leaves the process.
"""

import io
from unittest.mock import MagicMock

import mongomock
import pytest
from PIL import Image

from application import create_app
from classifier import GeminiClassifier
from settings import Settings


def make_image_bytes(fmt="PNG"):
    buf = io.BytesIO()
    Image.new("RGB", (8, 8), (0, 128, 255)).save(buf, format=fmt)
    return buf.getvalue()


def gemini_http(text='{"binColor": "Blue", "ecoFact": "Recycling one can saves energy."}'):
    """A requests-like session whose post() returns a generateContent response."""
    http = MagicMock()
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.json.return_value = {"candidates": [{"content": {"parts": [{"text": text}]}}]}
    http.post.return_value = response
    return http


@pytest.fixture
def png_bytes():
    return make_image_bytes()


@pytest.fixture
def db():
    return mongomock.MongoClient()["ecosnap_test"]


@pytest.fixture
def settings():
    return Settings(
        secret_key="test-secret",
        gemini_api_key="test-key",
        write_queue_sync=True,
        store_scan_images=False,
    )


@pytest.fixture
def http():
    return gemini_http()


@pytest.fixture
def classifier(settings, http):
    return GeminiClassifier(settings.gemini_api_key, settings.gemini_url, session=http)


@pytest.fixture
def app(settings, db, classifier):
    app = create_app(settings=settings, db=db, classifier=classifier)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def signed_up(client):
    """Sign up a user through the API; returns the new uid."""
    r = client.post("/signup", json={"email": "jane@example.com", "password": "secret123",
                                     "displayName": "Jane Doe"})
    assert r.status_code == 201
    return r.get_json()["user"]["uid"]
