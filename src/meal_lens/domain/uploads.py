"""Domain models for upload grants."""

from dataclasses import dataclass


@dataclass(frozen=True)
class UploadGrant:
    """Short-lived write grant for exactly one object key."""

    object_key: str
    upload_target: str
    expiry_seconds: int
    max_bytes: int
    allowed_content_types: frozenset[str]
