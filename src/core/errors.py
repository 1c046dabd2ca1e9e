"""Error taxonomy surfaced by the SQL sandbox request boundary."""

from __future__ import annotations


class SandboxError(Exception):
    """Base class for terminal, single-attempt request failures."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(SandboxError):
    """The request is missing required input."""

    status_code = 400


class PolicyViolation(SandboxError):
    """The statement matched the destructive-operation denylist."""

    status_code = 403


class ExecutionError(SandboxError):
    """The engine rejected the statement; carries the engine message verbatim."""

    status_code = 400


class CatalogError(SandboxError):
    """Schema introspection failed."""

    status_code = 500


class NotFoundError(SandboxError):
    status_code = 404


__all__ = [
    "CatalogError",
    "ExecutionError",
    "NotFoundError",
    "PolicyViolation",
    "SandboxError",
    "ValidationError",
]
