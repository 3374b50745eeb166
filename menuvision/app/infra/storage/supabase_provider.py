# menuvision/app/infra/storage/supabase_provider.py
"""
Supabase Storage provider: signs read URLs for uploaded photos.
"""
from __future__ import annotations

import logging

import httpx
from storage3.utils import StorageException
from supabase import Client

from menuvision.app.domain.errors import StorageError
from menuvision.app.infra.storage.base import StorageProvider

logger = logging.getLogger(__name__)


class SupabaseStorageProvider(StorageProvider):
    def __init__(self, client: Client, bucket_name: str = "submissions"):
        self._client = client
        self.bucket_name = bucket_name

    def generate_signed_get_url(self, object_key: str, expires_seconds: int = 3600) -> str:
        if not object_key or not object_key.strip():
            raise StorageError("Object key cannot be empty")

        try:
            response = self._client.storage.from_(self.bucket_name).create_signed_url(
                object_key, expires_seconds
            )
        except (StorageException, httpx.HTTPError) as error:
            logger.error("Failed to sign %s/%s: %s", self.bucket_name, object_key, error)
            raise StorageError(f"Failed to generate signed URL for {object_key}") from error

        signed_url = response.get("signedURL") or response.get("signedUrl")
        if not signed_url:
            raise StorageError(f"Storage returned no signed URL for {object_key}")

        logger.debug("Signed URL generated: bucket=%s, key=%s, ttl=%ds", self.bucket_name, object_key, expires_seconds)
        return signed_url
