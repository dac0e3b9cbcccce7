"""Exceptions raised across the request boundary."""

from __future__ import annotations


class InputValidationError(ValueError):
    """A required request field is missing or has the wrong type."""


class OperationError(RuntimeError):
    """An operation failed; ``label`` is stable, ``details`` carries the cause."""

    def __init__(self, label: str, details: str) -> None:
        super().__init__(f"{label}: {details}")
        self.label = label
        self.details = details

    def to_payload(self) -> dict:
        return {"ok": False, "error": self.label, "details": self.details}


__all__ = ["InputValidationError", "OperationError"]
