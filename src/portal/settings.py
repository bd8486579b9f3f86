"""Portal client configuration.

Values come from the environment at the edge (PORTAL_API_URL,
PORTAL_TIMEOUT_SECONDS, REPLACEMENT_REASON_REQUIRED, REPLACEMENT_WINDOW_DAYS)
and are held in an immutable settings object passed down explicitly.
"""

import os

from pydantic import BaseModel, ConfigDict, Field

from shared.orders import (
    DEFAULT_WINDOW_DAYS,
    ReplacementStatus,
    reason_required_statuses,
    replacement_window_days,
)

API_URL_ENV = "PORTAL_API_URL"
TIMEOUT_ENV = "PORTAL_TIMEOUT_SECONDS"

DEFAULT_API_URL = "http://localhost:8000"
DEFAULT_TIMEOUT_SECONDS = 10.0


class PortalSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    api_url: str = DEFAULT_API_URL
    timeout_seconds: float = Field(DEFAULT_TIMEOUT_SECONDS, gt=0)
    reason_required: frozenset[ReplacementStatus] = Field(default_factory=lambda: reason_required_statuses(""))
    window_days: int = Field(DEFAULT_WINDOW_DAYS, ge=0)

    @classmethod
    def from_env(cls) -> "PortalSettings":
        return cls(
            api_url=os.environ.get(API_URL_ENV, DEFAULT_API_URL).rstrip("/"),
            timeout_seconds=float(os.environ.get(TIMEOUT_ENV, DEFAULT_TIMEOUT_SECONDS)),
            reason_required=reason_required_statuses(),
            window_days=replacement_window_days(),
        )

    def with_policy(self, policy: dict) -> "PortalSettings":
        """Adopt the reason-required set and window published by the server."""
        reason_required = frozenset(ReplacementStatus(value) for value in policy.get("reasonRequired", []))
        return self.model_copy(
            update={
                "reason_required": reason_required or self.reason_required,
                "window_days": policy.get("windowDays", self.window_days),
            }
        )
