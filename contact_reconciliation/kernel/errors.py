from __future__ import annotations

import re
from typing import Any


_ERROR_CODE_RE = re.compile(r"^[a-z][a-z0-9_]*(\.[a-z][a-z0-9_]*)*$")


class ReconciliationError(Exception):
    """Base typed error for the reconciliation service.

    - Stable `code` for programmatic handling across clients.
    - Human-readable `message` for callers.
    - Optional `meta` payload for debugging (safe-to-expose only).
    """

    def __init__(
        self,
        *,
        code: str,
        message: str,
        status_code: int = 500,
        meta: dict[str, Any] | None = None,
    ) -> None:
        if not _ERROR_CODE_RE.fullmatch(code):
            raise ValueError(
                "Invalid error code. Expected dot-separated lowercase tokens, "
                f"got: {code!r}"
            )
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = int(status_code)
        self.meta = dict(meta or {})

    def to_public_dict(self, *, request_id: str | None) -> dict[str, Any]:
        payload: dict[str, Any] = {
            # Keep `detail` for compatibility with FastAPI error surfaces.
            "detail": self.message,
            "code": self.code,
        }
        if request_id:
            payload["request_id"] = request_id
        if self.meta:
            payload["meta"] = self.meta
        return payload


class InvalidObservationError(ReconciliationError):
    """Neither an email nor a phone number was supplied."""

    def __init__(
        self,
        *,
        message: str = "Email or phoneNumber required",
        code: str = "observation.invalid",
        meta: dict[str, Any] | None = None,
    ):
        super().__init__(code=code, message=message, status_code=400, meta=meta)


class IntegrityFaultError(ReconciliationError):
    """A resolved cluster does not have exactly one primary contact.

    Signals stored data that violates the single-primary rule (prior
    corruption or a lost merge race). Never retried.
    """

    def __init__(
        self,
        *,
        message: str = "Contact cluster does not have exactly one primary",
        code: str = "contact.integrity_fault",
        meta: dict[str, Any] | None = None,
    ):
        super().__init__(code=code, message=message, status_code=500, meta=meta)
