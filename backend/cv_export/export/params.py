"""Query parameter normalization for the CV export endpoints."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from cv_export.errors import ExportValidationError

SECONDS_PER_DAY = 24 * 60 * 60
MAX_EXPIRES_IN_SECONDS = 365 * SECONDS_PER_DAY
DEFAULT_EXPIRES_IN_SECONDS = MAX_EXPIRES_IN_SECONDS

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class ExportParams:
    """Normalized inputs shared by both export endpoints."""

    filter_value: str
    include_missing: bool
    bucket: str
    expires_in: int


def parse_positive_int(raw: Optional[str]) -> Optional[int]:
    """Parse the leading integer of ``raw``; None unless it is > 0.

    Trailing garbage is ignored, so ``"100s"`` is 100 and ``"1.5"`` is 1.
    """
    if not raw:
        return None
    match = _LEADING_INT.match(raw)
    if match is None:
        return None
    value = int(match.group(1))
    return value if value > 0 else None


def resolve_expires_in(
    expires_in_seconds: Optional[str] = None,
    expires_in_days: Optional[str] = None,
) -> int:
    """Signed URL lifetime in seconds, capped at one year."""
    seconds = parse_positive_int(expires_in_seconds)
    if seconds is not None:
        return min(seconds, MAX_EXPIRES_IN_SECONDS)

    days = parse_positive_int(expires_in_days)
    if days is not None:
        return min(days * SECONDS_PER_DAY, MAX_EXPIRES_IN_SECONDS)

    return DEFAULT_EXPIRES_IN_SECONDS


def normalize_filter(raw: Optional[str], default: str) -> str:
    """Apply the default to an absent or empty value, then trim and lower-case."""
    return (raw or default).strip().lower()


def parse_include_missing(raw: Optional[str]) -> bool:
    return raw == "true"


def normalize_bucket(raw: Optional[str], default: str) -> str:
    return (raw or default).strip()


def build_export_params(
    *,
    filter_value: Optional[str],
    default_filter: str,
    filter_name: str,
    include_missing: Optional[str],
    bucket: Optional[str],
    default_bucket: str,
    expires_in_seconds: Optional[str],
    expires_in_days: Optional[str],
) -> ExportParams:
    """Normalize raw query values into :class:`ExportParams`.

    Raises:
        ExportValidationError: the filter is empty after normalization.
    """
    normalized = normalize_filter(filter_value, default_filter)
    if not normalized:
        raise ExportValidationError(f"Missing {filter_name}")

    return ExportParams(
        filter_value=normalized,
        include_missing=parse_include_missing(include_missing),
        bucket=normalize_bucket(bucket, default_bucket),
        expires_in=resolve_expires_in(expires_in_seconds, expires_in_days),
    )
