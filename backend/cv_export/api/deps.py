"""Request-scoped dependencies shared by the export routers."""

from __future__ import annotations

from fastapi import Request

from cv_export.auth import ExportAuthorizer
from cv_export.config import AppConfig
from cv_export.errors import AuthorizationError


def get_app_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_authorizer(request: Request) -> ExportAuthorizer:
    return ExportAuthorizer.from_config(get_app_config(request))


def require_secret(authorizer: ExportAuthorizer, secret: str | None) -> None:
    """Raise :class:`AuthorizationError` unless ``secret`` opens the export."""
    if not authorizer.is_authorized(secret):
        raise AuthorizationError()
