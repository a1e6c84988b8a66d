"""Signed download URL resolution for stored resume files."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import structlog

from cv_export.errors import SignedUrlError
from cv_export.storage import ObjectStorage

logger = structlog.get_logger(__name__)

_ABSOLUTE_PREFIXES = ("http://", "https://")


@dataclass(frozen=True)
class SignedUrl:
    """Outcome for one row: a download URL, or the error that prevented one."""

    download_url: str = ""
    error: str = ""


async def resolve_download_url(
    storage: ObjectStorage,
    cv_key: str,
    bucket: str,
    expires_in: int,
    *,
    record_id: str,
    component: str,
) -> SignedUrl:
    """Resolve one file reference.

    Blank keys resolve to nothing, absolute URLs pass through untouched, and
    anything else is signed in ``bucket``. A signing failure is returned as
    the row's error instead of being raised.
    """
    key = cv_key.strip()
    if not key:
        return SignedUrl()
    if key.startswith(_ABSOLUTE_PREFIXES):
        return SignedUrl(download_url=key)

    try:
        url = await storage.create_signed_url(bucket, key, expires_in)
    except SignedUrlError as exc:
        logger.warning(
            "signed_url_failed",
            component=component,
            record_id=record_id,
            bucket=bucket,
            error=exc.message,
        )
        return SignedUrl(error=exc.message)
    return SignedUrl(download_url=url)


async def resolve_all(
    storage: ObjectStorage,
    items: Sequence[Tuple[str, str]],
    bucket: str,
    expires_in: int,
    *,
    component: str,
) -> List[SignedUrl]:
    """Resolve ``(record_id, cv_key)`` pairs concurrently.

    The result list lines up index for index with ``items``.
    """
    return list(
        await asyncio.gather(
            *(
                resolve_download_url(
                    storage,
                    cv_key,
                    bucket,
                    expires_in,
                    record_id=record_id,
                    component=component,
                )
                for record_id, cv_key in items
            )
        )
    )
