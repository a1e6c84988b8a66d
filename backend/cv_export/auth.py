"""Shared-secret gate for the export endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from cv_export.config import AppConfig


@dataclass(frozen=True)
class ExportAuthorizer:
    """Checks the ``secret`` query parameter against the configured value.

    Development mode lets every request through. Outside it, a request is
    only authorized when a secret is configured and the supplied value is
    exactly equal to it.
    """

    development_mode: bool
    secret: Optional[str]

    @classmethod
    def from_config(cls, config: AppConfig) -> "ExportAuthorizer":
        return cls(development_mode=config.is_development, secret=config.export_secret)

    def is_authorized(self, supplied: Optional[str]) -> bool:
        if self.development_mode:
            return True
        if not self.secret:
            return False
        return supplied == self.secret
