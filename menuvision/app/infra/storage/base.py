# menuvision/app/infra/storage/base.py
"""
Abstract base class for storage providers.
The pipeline only ever reads photos, through time-bounded signed URLs.
"""
from __future__ import annotations

from abc import ABC, abstractmethod


class StorageProvider(ABC):
    """
    Abstract interface for object storage reads.

    Implementations:
    - SupabaseStorageProvider: Supabase Storage bucket
    """

    @abstractmethod
    def generate_signed_get_url(
        self,
        object_key: str,
        expires_seconds: int = 3600,
    ) -> str:
        """
        Generate a pre-signed URL for downloading an object.

        Args:
            object_key: The key/path of the object
            expires_seconds: URL validity in seconds

        Returns:
            The signed URL for downloading

        Raises:
            StorageError: If the URL could not be generated
        """
        pass
