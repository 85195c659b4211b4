# auth.py
# Email/password and anonymous sign-in, plus the per-request session context.
import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from flask import session
from pymongo.errors import DuplicateKeyError
from werkzeug.security import check_password_hash, generate_password_hash

from database import ACCOUNTS
from errors import AuthFailure
from models import Identity

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class SessionContext:
    """Who is using the app right now. Passed to everything that needs identity."""
    identity: Identity

    @property
    def uid(self):
        return self.identity.uid

    @property
    def is_anonymous(self):
        return self.identity.is_anonymous


class AuthService:
    def __init__(self, db):
        self.accounts = db[ACCOUNTS]

    def sign_up(self, email, password, display_name):
        email = (email or "").strip().lower()
        display_name = (display_name or "").strip()
        if not display_name:
            raise AuthFailure("Please enter a display name.")
        if not EMAIL_RE.match(email):
            raise AuthFailure("The email address is badly formatted.")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise AuthFailure("Password should be at least 6 characters.")
        if self.accounts.find_one({"email": email}):
            raise AuthFailure("Email already registered")

        uid = uuid.uuid4().hex
        try:
            self.accounts.insert_one({
                "email": email,
                "password": generate_password_hash(password),
                "uid": uid,
                "displayName": display_name,
                "created": datetime.now(timezone.utc),
            })
        except DuplicateKeyError as e:
            raise AuthFailure("Email already registered") from e
        logger.info("account created for %s", uid)
        return Identity(uid=uid, email=email, display_name=display_name)

    def sign_in(self, email, password):
        account = self.accounts.find_one({"email": (email or "").strip().lower()})
        if not account or not check_password_hash(account["password"], password or ""):
            raise AuthFailure("Invalid email or password")
        return Identity(
            uid=account["uid"],
            email=account["email"],
            display_name=account.get("displayName"),
            photo_url=account.get("photoURL"),
        )

    def sign_in_anonymously(self):
        return Identity(uid=uuid.uuid4().hex, is_anonymous=True)


# Flask session plumbing

def start_session(identity):
    session["identity"] = identity.to_dict()
    return SessionContext(identity)


def end_session():
    session.pop("identity", None)


def current_session():
    data = session.get("identity")
    if not data:
        return None
    return SessionContext(Identity(**data))
