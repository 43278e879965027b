"""Upload grant issuance for direct-to-storage uploads."""

import logging
import re
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from meal_lens.domain.uploads import UploadGrant
from meal_lens.errors import (
    FieldError,
    PayloadTooLarge,
    UnsupportedMediaType,
    ValidationError,
)

logger = logging.getLogger(__name__)

MAX_FILE_NAME_LENGTH = 255
DEFAULT_EXTENSION = "jpg"
_EXTENSION_PATTERN = re.compile(r"^[a-z0-9]{1,10}$")


class ObjectStore(Protocol):
    """Interface for the external object store."""

    def create_upload_target(self, object_key: str, expiry_seconds: int) -> str:
        """Return a write-scoped upload URL for exactly one object key."""

    def exists(self, object_key: str) -> bool:
        """Return True when the object has been uploaded."""

    def download(self, object_key: str) -> bytes:
        """Return the stored object's bytes."""

    def delete(self, object_key: str) -> None:
        """Remove a stored object."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def _random_suffix() -> str:
    return secrets.token_hex(4)


@dataclass
class UploadGrantService:
    """Validates upload requests and mints scoped write grants."""

    object_store: ObjectStore
    max_bytes: int
    expiry_seconds: int
    allowed_content_types: frozenset[str]
    clock: Callable[[], datetime] = field(default=_utcnow)
    suffix_factory: Callable[[], str] = field(default=_random_suffix)

    def issue_upload_grant(
        self,
        owner_id: str,
        file_name: str,
        file_size_bytes: int,
        content_type: str,
    ) -> UploadGrant:
        """Validate the file and return a grant for a fresh object key."""
        normalized_type = content_type.strip().lower()
        if normalized_type not in self.allowed_content_types:
            raise UnsupportedMediaType(content_type, self.allowed_content_types)
        if file_size_bytes > self.max_bytes:
            raise PayloadTooLarge(file_size_bytes, self.max_bytes)
        errors: list[FieldError] = []
        if not file_name.strip():
            errors.append(FieldError("fileName", "File name is required"))
        elif len(file_name) > MAX_FILE_NAME_LENGTH:
            errors.append(FieldError("fileName", "File name is too long"))
        if file_size_bytes <= 0:
            errors.append(FieldError("fileSizeBytes", "File size must be positive"))
        if errors:
            raise ValidationError(errors)

        object_key = self.build_object_key(owner_id, file_name)
        upload_target = self.object_store.create_upload_target(
            object_key, self.expiry_seconds
        )
        logger.info(
            "Upload grant issued",
            extra={
                "object_key": object_key,
                "file_size_bytes": file_size_bytes,
                "content_type": normalized_type,
            },
        )
        return UploadGrant(
            object_key=object_key,
            upload_target=upload_target,
            expiry_seconds=self.expiry_seconds,
            max_bytes=self.max_bytes,
            allowed_content_types=self.allowed_content_types,
        )

    def build_object_key(self, owner_id: str, file_name: str) -> str:
        """Return ``meals/{owner}/{epoch_ms}-{suffix}.{ext}`` for a new upload."""
        timestamp = int(self.clock().timestamp() * 1000)
        extension = _file_extension(file_name)
        suffix = self.suffix_factory()
        return f"{owner_namespace(owner_id)}{timestamp}-{suffix}.{extension}"


def owner_namespace(owner_id: str) -> str:
    """Return the key prefix all of an owner's uploads live under."""
    return f"meals/{owner_id}/"


def _file_extension(file_name: str) -> str:
    if "." not in file_name:
        return DEFAULT_EXTENSION
    extension = file_name.rsplit(".", maxsplit=1)[1].strip().lower()
    if not _EXTENSION_PATTERN.match(extension):
        return DEFAULT_EXTENSION
    return extension
