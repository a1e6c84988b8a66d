"""Row fetchers for the two exported tables.

Rows are loaded newest first (rows without ``created_at`` last) and decoded
into typed records. A query error or a row that does not decode raises
:class:`FetchError`; nothing is exported from a partially valid result.
"""

from __future__ import annotations

from typing import List, Type, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cv_export.errors import FetchError
from cv_export.models import CampaignApplication, Candidate
from cv_export.schemas import CampaignApplicationRecord, CandidateRecord

RecordT = TypeVar("RecordT", bound=BaseModel)


def _decode(rows: list, record_type: Type[RecordT]) -> List[RecordT]:
    try:
        return [record_type.model_validate(row) for row in rows]
    except ValidationError as exc:
        raise FetchError(f"Unexpected {record_type.__name__} shape: {exc}") from exc


def fetch_campaign_applications(session: Session, position: str) -> List[CampaignApplicationRecord]:
    """Return every campaign application for ``position``, newest first."""
    stmt = (
        select(CampaignApplication)
        .where(CampaignApplication.position == position)
        .order_by(CampaignApplication.created_at.desc().nullslast())
    )
    try:
        rows = session.scalars(stmt).all()
    except SQLAlchemyError as exc:
        raise FetchError(str(exc)) from exc
    return _decode(list(rows), CampaignApplicationRecord)


def fetch_candidates(session: Session, role: str) -> List[CandidateRecord]:
    """Return every candidate whose primary role is ``role``, newest first."""
    stmt = (
        select(Candidate)
        .where(Candidate.primary_role == role)
        .order_by(Candidate.created_at.desc().nullslast())
    )
    try:
        rows = session.scalars(stmt).all()
    except SQLAlchemyError as exc:
        raise FetchError(str(exc)) from exc
    return _decode(list(rows), CandidateRecord)
