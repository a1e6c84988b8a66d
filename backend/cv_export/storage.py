"""Object storage access for signing resume downloads."""

from __future__ import annotations

import asyncio
import threading
from typing import Any, Optional, Protocol

import structlog
from fastapi import Request
from supabase import Client, create_client

from cv_export.config import AppConfig
from cv_export.errors import SignedUrlError

logger = structlog.get_logger(__name__)


class ObjectStorage(Protocol):
    """Anything that can mint a time-limited download URL for a stored key."""

    async def create_signed_url(self, bucket: str, key: str, expires_in: int) -> str:
        ...


class SupabaseStorage:
    """Signs keys with the Supabase Storage API.

    The client is created on the first signing call. It is synchronous, so
    each call runs in a worker thread and many rows can be signed at once
    from the event loop.
    """

    def __init__(self, url: str, service_role_key: str) -> None:
        self._url = url
        self._key = service_role_key
        self._client: Optional[Client] = None
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: AppConfig) -> "SupabaseStorage":
        return cls(config.supabase_url, config.supabase_service_role_key.get_secret_value())

    def _get_client(self) -> Client:
        if not (self._url and self._key):
            raise SignedUrlError("Object storage is not configured")
        with self._lock:
            if self._client is None:
                try:
                    self._client = create_client(self._url, self._key)
                except Exception as exc:
                    raise SignedUrlError(getattr(exc, "message", None) or str(exc)) from exc
                logger.info("object_storage_client_created", provider="supabase")
            return self._client

    def _sign(self, bucket: str, key: str, expires_in: int) -> str:
        client = self._get_client()
        try:
            res: Any = client.storage.from_(bucket).create_signed_url(key, expires_in)
        except Exception as exc:
            raise SignedUrlError(getattr(exc, "message", None) or str(exc)) from exc

        url = ""
        if isinstance(res, dict):
            url = res.get("signedUrl") or res.get("signedURL") or res.get("signed_url") or ""
        if not url:
            raise SignedUrlError("Signed URL missing from storage response")
        return url

    async def create_signed_url(self, bucket: str, key: str, expires_in: int) -> str:
        return await asyncio.to_thread(self._sign, bucket, key, expires_in)


def get_storage(request: Request) -> ObjectStorage:
    """FastAPI dependency returning the app-wide storage client."""
    return request.app.state.storage
