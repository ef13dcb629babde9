from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from jose import JWTError, jwt

from cafeos.core.config import settings

ALGORITHM = "HS256"
KNOWN_ROLES = {"admin", "manager", "staff"}


class TokenValidationError(ValueError):
    pass


@dataclass(frozen=True)
class Identity:
    user_id: str
    role: str


def create_token(subject: str, role: str, expires_delta: timedelta = timedelta(hours=8)) -> str:
    """Mint a token in the identity provider's format (local tooling and tests)."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "role": role,
        "jti": str(uuid4()),
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> Identity:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise TokenValidationError("Invalid token") from exc

    subject = payload.get("sub")
    if not subject:
        raise TokenValidationError("Invalid token subject")

    role = str(payload.get("role") or "").strip().lower()
    if role not in KNOWN_ROLES:
        raise TokenValidationError("Invalid token role")

    return Identity(user_id=str(subject), role=role)
