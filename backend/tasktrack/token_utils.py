from __future__ import annotations

import base64
import datetime as dt
import hashlib
import hmac
import os
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from .config import settings
from .models import AccessToken, User

PASSWORD_SCHEME = "pbkdf2_sha256"


def _now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _ensure_aware(value: Optional[dt.datetime]) -> Optional[dt.datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


def generate_token_value() -> str:
    raw = os.urandom(32)
    return base64.urlsafe_b64encode(raw).decode("utf-8").rstrip("=")


def token_hash(token: str) -> str:
    digest = hmac.new(settings.token_secret.encode(), msg=token.encode(), digestmod=hashlib.sha256)
    return digest.hexdigest()


def hash_password(password: str, *, iterations: Optional[int] = None) -> str:
    """Return ``scheme$iterations$salt$hash`` for storage on the user row."""
    rounds = iterations or settings.password_iterations
    salt = base64.urlsafe_b64encode(os.urandom(16)).decode("utf-8").rstrip("=")
    derived = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), rounds)
    return f"{PASSWORD_SCHEME}${rounds}${salt}${derived.hex()}"


def verify_password(password: str, stored: str) -> bool:
    try:
        scheme, rounds, salt, expected = stored.split("$", 3)
    except ValueError:
        return False
    if scheme != PASSWORD_SCHEME:
        return False
    derived = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), int(rounds))
    return hmac.compare_digest(derived.hex(), expected)


def create_token(db: Session, user: User, ttl_minutes: Optional[int] = None) -> Tuple[AccessToken, str]:
    token_value = generate_token_value()
    expires_at = None
    ttl = ttl_minutes if ttl_minutes is not None else settings.token_ttl_minutes
    if ttl:
        expires_at = _now() + dt.timedelta(minutes=ttl)
    token = AccessToken(user_id=user.id, token_hash=token_hash(token_value), expires_at=expires_at)
    db.add(token)
    db.commit()
    db.refresh(token)
    return token, token_value


def verify_token(db: Session, token_value: str) -> Optional[AccessToken]:
    hashed = token_hash(token_value)
    token = db.query(AccessToken).filter(AccessToken.token_hash == hashed).one_or_none()
    if not token:
        return None
    if token.revoked_at is not None:
        return None
    expires_at = _ensure_aware(token.expires_at)
    if expires_at and expires_at < _now():
        return None
    token.last_used_at = _now()
    db.add(token)
    db.commit()
    return token


def revoke_token(db: Session, token: AccessToken) -> None:
    token.revoked_at = _now()
    db.add(token)
    db.commit()
