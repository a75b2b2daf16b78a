"""Error taxonomy shared by every task runtime component."""

from __future__ import annotations

import json
from typing import Any


class TaskError(Exception):
    """Base error carrying a stable code and optional structured details."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "TASK_ERROR",
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.status_code is not None:
            payload["statusCode"] = self.status_code
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ConfigurationError(TaskError):
    """Raised when settings or the remote layer are unusable for this task."""

    def __init__(self, message: str, *, code: str = "CONFIGURATION_ERROR", **kwargs: Any) -> None:
        super().__init__(message, code=code, **kwargs)


class ValidationError(TaskError):
    """Raised when a value does not conform to its schema.

    ``path`` points at the first failing location (``$`` is the root) and
    ``value`` is a deep snapshot of the offending value taken at failure time.
    """

    def __init__(self, message: str, *, path: str = "$", value: Any = None, code: str = "VALIDATION_ERROR") -> None:
        super().__init__(f"{path}: {message}", code=code)
        self.reason = message
        self.path = path
        self.value = value

    @classmethod
    def from_pydantic(cls, exc: Any) -> ValidationError:
        """Convert the first error of a ``pydantic.ValidationError``."""
        first = exc.errors()[0]
        location = "".join(f"[{part}]" if isinstance(part, int) else f".{part}" for part in first.get("loc", ()))
        return cls(first.get("msg", "invalid value"), path=f"${location}", value=first.get("input"))

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["path"] = self.path
        payload["value"] = _json_snapshot(self.value)
        return payload


class TransportError(TaskError):
    """Raised for non-2xx responses and network failures."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "ETL_REQUEST_FAILED",
        status_code: int | None = None,
        body: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code=code, status_code=status_code, details=details)
        self.body = body


class SubmissionError(TaskError):
    """Raised when one chunk of a submission is rejected.

    Chunks posted before ``chunk_index`` were accepted by the server and are
    not retracted, so a failed submission may be partially delivered.
    """

    def __init__(
        self,
        message: str,
        *,
        chunk_index: int,
        delivered_chunks: int,
        status_code: int | None = None,
        code: str = "ETL_SUBMISSION_FAILED",
    ) -> None:
        super().__init__(
            message,
            code=code,
            status_code=status_code,
            details={"chunkIndex": chunk_index, "deliveredChunks": delivered_chunks},
        )
        self.chunk_index = chunk_index
        self.delivered_chunks = delivered_chunks


def _json_snapshot(value: Any) -> Any:
    try:
        return json.loads(json.dumps(value, default=str))
    except (TypeError, ValueError):
        return repr(value)
