"""Read-only mapping fields for frozen models."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Annotated, Any

from pydantic import AfterValidator, PlainSerializer


def freeze_mapping(value: Mapping[Any, Any]) -> Mapping[Any, Any]:
    """Wrap ``value`` and every nested mapping in a read-only proxy."""
    return MappingProxyType(
        {
            key: freeze_mapping(inner) if isinstance(inner, Mapping) else inner
            for key, inner in value.items()
        }
    )


def thaw_mapping(value: Mapping[Any, Any]) -> dict[Any, Any]:
    return {
        key: thaw_mapping(inner) if isinstance(inner, Mapping) else inner
        for key, inner in value.items()
    }


Counts = Annotated[
    Mapping[str, int],
    AfterValidator(freeze_mapping),
    PlainSerializer(thaw_mapping),
]
"""Keyword or type name to occurrence count."""

TypeTally = Annotated[
    Mapping[str, Mapping[str, int]],
    AfterValidator(freeze_mapping),
    PlainSerializer(thaw_mapping),
]
"""Field name to per-type occurrence counts."""

PredictorInstructions = Annotated[
    Mapping[int, tuple[str, ...]],
    AfterValidator(freeze_mapping),
    PlainSerializer(thaw_mapping),
]
"""Predictor index to its candidate instructions."""


__all__ = [
    "Counts",
    "PredictorInstructions",
    "TypeTally",
    "freeze_mapping",
    "thaw_mapping",
]
