"""Custom exceptions used across pydantic-ai-proposer."""

from __future__ import annotations


class ProgramSchemaError(TypeError):
    """Raised when a program handed to the proposer does not expose a task schema."""


class DatasetSummaryError(RuntimeError):
    """Raised when the dataset summary could not be produced."""


__all__ = ["DatasetSummaryError", "ProgramSchemaError"]
