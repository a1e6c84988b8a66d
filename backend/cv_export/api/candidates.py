"""CSV export of talent-pool candidates with signed CV links."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from cv_export.api.deps import get_app_config, get_authorizer, require_secret
from cv_export.auth import ExportAuthorizer
from cv_export.config import AppConfig
from cv_export.database import get_db
from cv_export.export.params import build_export_params
from cv_export.export.pipeline import CANDIDATE_EXPORT, csv_response, run_export
from cv_export.storage import ObjectStorage, get_storage

router = APIRouter(prefix="/api/candidates", tags=["candidates"])


@router.get("/cvs")
async def export_candidate_cvs(
    secret: Optional[str] = Query(None, description="Shared export secret"),
    role: Optional[str] = Query(None, description="Primary role to export"),
    position: Optional[str] = Query(None, description="Synonym for role"),
    include_missing: Optional[str] = Query(
        None, alias="includeMissing", description='"true" keeps candidates without a CV'
    ),
    bucket: Optional[str] = Query(None, description="Storage bucket holding the CVs"),
    expires_in_seconds: Optional[str] = Query(None, alias="expiresInSeconds"),
    expires_in_days: Optional[str] = Query(None, alias="expiresInDays"),
    config: AppConfig = Depends(get_app_config),
    authorizer: ExportAuthorizer = Depends(get_authorizer),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
) -> Response:
    """Download candidates for one role as CSV. ``role`` wins over ``position``."""
    require_secret(authorizer, secret)

    params = build_export_params(
        filter_value=role or position,
        default_filter=config.default_role,
        filter_name="role",
        include_missing=include_missing,
        bucket=bucket,
        default_bucket=config.default_bucket,
        expires_in_seconds=expires_in_seconds,
        expires_in_days=expires_in_days,
    )

    result = await run_export(CANDIDATE_EXPORT, db, storage, params)
    return csv_response(CANDIDATE_EXPORT, result)
