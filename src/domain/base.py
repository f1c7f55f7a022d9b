import hashlib
import uuid
from datetime import UTC, datetime
from sqlmodel import SQLModel


def generate_uuid() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Naive UTC now; every persisted timestamp uses this representation."""
    return datetime.now(UTC).replace(tzinfo=None)


def hash_token(token: str) -> str:
    """SHA-256 hex digest used to store and look up opaque refresh tokens."""
    return hashlib.sha256(token.encode()).hexdigest()


class BaseModel(SQLModel):
    pass
