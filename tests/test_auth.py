import pytest

from auth import AuthService
from database import ensure_indexes
from errors import AuthFailure


@pytest.fixture
def auth(db):
    ensure_indexes(db)
    return AuthService(db)


def test_sign_up_then_sign_in(auth):
    created = auth.sign_up("Jane@Example.com", "secret123", "Jane Doe")
    assert created.email == "jane@example.com"
    assert not created.is_anonymous

    identity = auth.sign_in("jane@example.com", "secret123")
    assert identity.uid == created.uid
    assert identity.display_name == "Jane Doe"


def test_password_is_hashed(auth, db):
    auth.sign_up("jane@example.com", "secret123", "Jane")
    stored = db.accounts.find_one({"email": "jane@example.com"})["password"]
    assert stored != "secret123"


def test_duplicate_email(auth):
    auth.sign_up("jane@example.com", "secret123", "Jane")
    with pytest.raises(AuthFailure, match="Email already registered"):
        auth.sign_up("jane@example.com", "other-pass", "Jane Again")


def test_display_name_required(auth):
    with pytest.raises(AuthFailure, match="display name"):
        auth.sign_up("jane@example.com", "secret123", "  ")


@pytest.mark.parametrize("email,password", [
    ("not-an-email", "secret123"),
    ("jane@example.com", "123"),
])
def test_sign_up_validation(auth, email, password):
    with pytest.raises(AuthFailure):
        auth.sign_up(email, password, "Jane")


def test_bad_credentials(auth):
    auth.sign_up("jane@example.com", "secret123", "Jane")
    with pytest.raises(AuthFailure, match="Invalid email or password"):
        auth.sign_in("jane@example.com", "wrong")
    with pytest.raises(AuthFailure, match="Invalid email or password"):
        auth.sign_in("nobody@example.com", "secret123")


def test_anonymous_sign_in(auth):
    first = auth.sign_in_anonymously()
    second = auth.sign_in_anonymously()
    assert first.is_anonymous
    assert first.uid != second.uid
