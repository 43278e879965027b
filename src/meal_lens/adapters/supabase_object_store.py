"""Supabase Storage-backed object store."""

from dataclasses import dataclass

from supabase import Client

from meal_lens.services.uploads import ObjectStore


@dataclass
class SupabaseObjectStore(ObjectStore):
    """Object store that issues signed upload URLs for a single bucket."""

    client: Client
    bucket: str

    def create_upload_target(self, object_key: str, expiry_seconds: int) -> str:
        """Create a signed URL that allows one upload to ``object_key``.

        Supabase fixes the validity of signed upload URLs server-side;
        ``expiry_seconds`` is what the grant advertises to the client.
        """
        response = self.client.storage.from_(self.bucket).create_signed_upload_url(
            object_key
        )
        signed_url = response.get("signed_url") or response.get("signedUrl")
        if not signed_url:
            raise RuntimeError("Failed to create signed upload URL")
        return str(signed_url)

    def exists(self, object_key: str) -> bool:
        """Return True when the object is present in the bucket."""
        folder, _, name = object_key.rpartition("/")
        entries = self.client.storage.from_(self.bucket).list(
            folder, {"search": name, "limit": 100}
        )
        return any(entry.get("name") == name for entry in entries or [])

    def download(self, object_key: str) -> bytes:
        """Download the object's bytes."""
        return self.client.storage.from_(self.bucket).download(object_key)

    def delete(self, object_key: str) -> None:
        """Remove the object from the bucket."""
        self.client.storage.from_(self.bucket).remove([object_key])
