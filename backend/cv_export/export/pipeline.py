"""Shared export pipeline behind the campaign and candidate CSV endpoints.

fetch → drop rows without a file → sign concurrently → project → render.
Each endpoint supplies an :class:`ExportDefinition` describing its table,
columns and messages; the steps themselves are identical.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence
from urllib.parse import quote

import structlog
from fastapi.responses import Response
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from cv_export.errors import FetchError
from cv_export.export.csv_export import render_csv
from cv_export.export.params import ExportParams
from cv_export.export.signing import SignedUrl, resolve_all
from cv_export.repository import fetch_campaign_applications, fetch_candidates
from cv_export.schemas import CampaignApplicationRecord, CandidateRecord
from cv_export.storage import ObjectStorage

logger = structlog.get_logger(__name__)

ExportRow = Dict[str, str]

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"
NO_CACHE = "no-store, no-cache, must-revalidate"


@dataclass(frozen=True)
class ExportDefinition:
    """Everything that differs between the two export endpoints."""

    entity: str
    component: str
    headers: Sequence[str]
    total_header: str
    fetch_error_message: str
    fetch: Callable[[Session, str], List[Any]]
    cv_key_of: Callable[[Any], Optional[str]]
    project: Callable[[Any, str, str, SignedUrl], ExportRow]


@dataclass(frozen=True)
class ExportResult:
    content: str
    filename: str
    total_fetched: int
    total_exported: int


def _campaign_row(
    record: CampaignApplicationRecord, position: str, cv_key: str, signed: SignedUrl
) -> ExportRow:
    return {
        "application_id": record.id,
        "name": record.name or "",
        "email": record.email or "",
        "phone": record.phone or "",
        "position": record.position or position,
        "segment": record.segment or "",
        "status": record.status or "",
        "created_at": record.created_at_text,
        "cv_key": cv_key,
        "cv_filename": record.cv_filename or "",
        "cv_download_url": signed.download_url,
        "cv_error": signed.error,
    }


def _candidate_row(record: CandidateRecord, role: str, cv_key: str, signed: SignedUrl) -> ExportRow:
    return {
        "candidate_id": record.id,
        "name": record.name or "",
        "email": record.email or "",
        "phone": record.phone or "",
        "role": record.primary_role or role,
        "status": record.status or "",
        "created_at": record.created_at_text,
        "cv_key": cv_key,
        "cv_download_url": signed.download_url,
        "cv_error": signed.error,
    }


CAMPAIGN_EXPORT = ExportDefinition(
    entity="campaign",
    component="campaign_cv_export",
    headers=(
        "application_id",
        "name",
        "email",
        "phone",
        "position",
        "segment",
        "status",
        "created_at",
        "cv_key",
        "cv_filename",
        "cv_download_url",
        "cv_error",
    ),
    total_header="X-Total-Applications",
    fetch_error_message="Kunne ikke hente kampanjesoknader",
    fetch=fetch_campaign_applications,
    cv_key_of=lambda record: record.cv_url,
    project=_campaign_row,
)

CANDIDATE_EXPORT = ExportDefinition(
    entity="candidates",
    component="candidate_cv_export",
    headers=(
        "candidate_id",
        "name",
        "email",
        "phone",
        "role",
        "status",
        "created_at",
        "cv_key",
        "cv_download_url",
        "cv_error",
    ),
    total_header="X-Total-Candidates",
    fetch_error_message="Kunne ikke hente kandidater",
    fetch=fetch_candidates,
    cv_key_of=lambda record: record.cv_key,
    project=_candidate_row,
)


def build_filename(entity: str, filter_value: str, today: Optional[date] = None) -> str:
    """``<entity>-<filter>-cvs-<YYYY-MM-DD>.csv`` using the current UTC date."""
    stamp = (today or datetime.now(timezone.utc).date()).isoformat()
    return f"{entity}-{filter_value}-cvs-{stamp}.csv"


def _header_safe(ch: str) -> bool:
    # Printable latin-1, which is what Starlette can put on the wire.
    code = ord(ch)
    return (0x20 <= code <= 0x7E or 0xA0 <= code <= 0xFF) and ch not in '"\\'


def content_disposition(filename: str) -> str:
    """Attachment header; names beyond latin-1 also get an RFC 5987 ``filename*``."""
    fallback = "".join(ch if _header_safe(ch) else "_" for ch in filename)
    if fallback == filename:
        return f'attachment; filename="{filename}"'
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


async def run_export(
    definition: ExportDefinition,
    session: Session,
    storage: ObjectStorage,
    params: ExportParams,
    *,
    today: Optional[date] = None,
) -> ExportResult:
    """Fetch, sign and render one export.

    Raises:
        FetchError: the rows could not be loaded; carries the public message.
    """
    try:
        records = await run_in_threadpool(definition.fetch, session, params.filter_value)
    except FetchError as exc:
        logger.error(
            "cv_export_fetch_failed",
            component=definition.component,
            filter_value=params.filter_value,
            error=exc.message,
        )
        raise FetchError(definition.fetch_error_message) from exc

    keys = [(definition.cv_key_of(record) or "").strip() for record in records]
    if params.include_missing:
        selected = list(zip(records, keys))
    else:
        selected = [(record, key) for record, key in zip(records, keys) if key]

    signed = await resolve_all(
        storage,
        [(record.id, key) for record, key in selected],
        params.bucket,
        params.expires_in,
        component=definition.component,
    )

    rows = [
        definition.project(record, params.filter_value, key, result)
        for (record, key), result in zip(selected, signed)
    ]

    logger.info(
        "cv_export_completed",
        component=definition.component,
        filter_value=params.filter_value,
        total_fetched=len(records),
        total_exported=len(rows),
        signing_errors=sum(1 for result in signed if result.error),
    )

    return ExportResult(
        content=render_csv(definition.headers, rows),
        filename=build_filename(definition.entity, params.filter_value, today),
        total_fetched=len(records),
        total_exported=len(rows),
    )


def csv_response(definition: ExportDefinition, result: ExportResult) -> Response:
    """Wrap an export as a non-cacheable CSV attachment."""
    return Response(
        content=result.content,
        media_type=CSV_MEDIA_TYPE,
        headers={
            "Content-Disposition": content_disposition(result.filename),
            "Cache-Control": NO_CACHE,
            definition.total_header: str(result.total_fetched),
            "X-Total-Exported": str(result.total_exported),
        },
    )
