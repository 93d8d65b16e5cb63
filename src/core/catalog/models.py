"""
Domain models for the device image catalog.

Nothing here is stored. Devices, operations and image roles are all
derived from object keys of the form ``deviceId/operationId/fileName``
each time a request is served. These helpers have no dependencies on
storage SDKs or HTTP frameworks.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

KEY_SEPARATOR = "/"


class ImageRole(Enum):
    """Which side of an inspection an image shows."""
    BEFORE = "before"
    AFTER = "after"


def key_segments(key: str) -> list[str]:
    """Split an object key on the hierarchy separator."""
    return key.split(KEY_SEPARATOR)


def device_id_from_key(key: str) -> Optional[str]:
    """First path segment, or None when it is empty."""
    first = key_segments(key)[0]
    return first or None


def operation_id_from_key(key: str) -> Optional[str]:
    """
    Second path segment, or None when the key has fewer than two
    segments or the second one is empty.
    """
    segments = key_segments(key)
    if len(segments) < 2 or not segments[1]:
        return None
    return segments[1]


def file_name_from_key(key: str) -> str:
    """Last path segment of the key."""
    return key_segments(key)[-1]


def device_prefix(device_id: str) -> str:
    return f"{device_id}{KEY_SEPARATOR}"


def operation_prefix(device_id: str, operation_id: str) -> str:
    return f"{device_id}{KEY_SEPARATOR}{operation_id}{KEY_SEPARATOR}"


def classify_image_roles(key: str) -> frozenset[ImageRole]:
    """
    Classify a key by case-insensitive substring match on its file name.

    A name like ``before_after_diff.png`` matches both roles; a name with
    neither token matches none.
    """
    name = file_name_from_key(key).lower()
    return frozenset(role for role in ImageRole if role.value in name)


@dataclass(frozen=True)
class SignedUrlWindow:
    """
    Validity window of a signed URL.

    Frozen because a window is a value. It always starts at issuance.
    """
    valid_from: datetime
    valid_until: datetime

    def __post_init__(self) -> None:
        if self.valid_until <= self.valid_from:
            raise ValueError("Signed URL window must end after it starts")

    @classmethod
    def starting_at(cls, moment: datetime, ttl: timedelta) -> "SignedUrlWindow":
        return cls(valid_from=moment, valid_until=moment + ttl)

    @property
    def duration(self) -> timedelta:
        return self.valid_until - self.valid_from


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class OperationImages:
    """
    Signed URLs for the before/after pair of one operation.

    Either side is None when no matching object was listed.
    """
    before: Optional[str] = None
    after: Optional[str] = None

    def assign(self, role: ImageRole, url: str) -> None:
        """Set the URL for a role, replacing any earlier match."""
        if role is ImageRole.BEFORE:
            self.before = url
        else:
            self.after = url
