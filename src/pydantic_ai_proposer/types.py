"""Value types consumed by the grounded proposer."""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pydantic import BaseModel
from pydantic_evals import Case

if TYPE_CHECKING:
    from .schema import TaskSchema


@dataclass(frozen=True, slots=True)
class TrainingExample:
    """A single labelled training instance."""

    input: Mapping[str, Any]
    expected: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class FewShotExample:
    """A demonstration shown in-context to the proposal model."""

    input: Mapping[str, Any]
    output: Mapping[str, Any] = field(default_factory=dict)
    reasoning: str | None = None


@dataclass(frozen=True, slots=True)
class TrialLogEntry:
    """Outcome of one past optimization trial.

    ``instructions`` maps a predictor index (or ``"default"``) to the
    instruction text that predictor ran with during the trial. A sequence is
    read positionally, one instruction per predictor.
    """

    instructions: Mapping[int | str, str] | Sequence[str] = field(default_factory=dict)
    instruction: str | None = None
    score: Any = None

    @classmethod
    def from_value(cls, value: TrialLogEntry | Mapping[str, Any]) -> TrialLogEntry:
        """Coerce a raw trial-log mapping into an entry."""
        if isinstance(value, TrialLogEntry):
            return value
        instructions = value.get("instructions")
        if isinstance(instructions, Mapping):
            instructions = dict(instructions)
        elif isinstance(instructions, Sequence) and not isinstance(instructions, str):
            instructions = tuple(instructions)
        else:
            instructions = {}
        return cls(
            instructions=instructions,
            instruction=value.get("instruction"),
            score=value.get("score"),
        )

    def instruction_for(self, predictor_index: int) -> str | None:
        """Return the instruction recorded for ``predictor_index``, if any."""
        if isinstance(self.instructions, Mapping):
            text = self.instructions.get(predictor_index)
            if text is None:
                text = self.instructions.get("default")
        elif 0 <= predictor_index < len(self.instructions):
            text = self.instructions[predictor_index]
        else:
            text = None
        if text is None:
            text = self.instruction
        return text

    @property
    def numeric_score(self) -> float | None:
        if isinstance(self.score, bool) or not isinstance(self.score, (int, float)):
            return None
        return float(self.score)


TrialLogs = Mapping[int, TrialLogEntry | Mapping[str, Any]]
"""Trial index to the entry recorded for that trial."""

SourceProvider = Callable[[Any], str | None]
"""Returns an opaque description of a program's source, or ``None``."""


@runtime_checkable
class ProposalProgram(Protocol):
    """Minimal interface for programs passed to ``propose_instructions_for_program``.

    Programs may additionally expose an ``instructions`` string holding the
    instruction they currently run with.
    """

    task_schema: TaskSchema


def as_value_mapping(value: Any, *, scalar_key: str) -> dict[str, Any] | None:
    """Normalize an input/output payload into a plain mapping.

    Returns ``None`` for payloads that cannot be interpreted as field values.
    """
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return {str(key): inner for key, inner in value.items()}
    if isinstance(value, BaseModel):
        return value.model_dump()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (str, int, float, bool)):
        return {scalar_key: value}
    return None


def coerce_training_example(value: Any) -> TrainingExample | None:
    """Coerce supported example shapes into a ``TrainingExample``.

    Accepts ``TrainingExample``, ``pydantic_evals.Case``, ``{"input": ..., "expected": ...}``
    mappings, flat input mappings, and objects exposing ``input``/``expected``.
    Returns ``None`` for values that cannot be interpreted.
    """
    if isinstance(value, TrainingExample):
        return value

    if isinstance(value, Case):
        raw_input: Any = value.inputs
        raw_expected: Any = value.expected_output
    elif isinstance(value, Mapping):
        if "input" in value:
            raw_input = value["input"]
        else:
            raw_input = {
                key: inner
                for key, inner in value.items()
                if key not in ("expected", "output")
            }
        raw_expected = value.get("expected", value.get("output"))
    elif hasattr(value, "input") and hasattr(value, "expected"):
        raw_input = value.input
        raw_expected = value.expected
    else:
        return None

    inputs = as_value_mapping(raw_input, scalar_key="input")
    expected = as_value_mapping(raw_expected, scalar_key="output")
    if inputs is None or expected is None:
        return None
    return TrainingExample(input=inputs, expected=expected)


def coerce_few_shot_example(value: Any) -> FewShotExample | None:
    """Coerce supported demo shapes into a ``FewShotExample``."""
    if isinstance(value, FewShotExample):
        return value

    reasoning: Any = None
    if isinstance(value, TrainingExample):
        return FewShotExample(input=value.input, output=value.expected)
    if isinstance(value, Mapping):
        raw_input: Any = value.get("input", {})
        raw_output: Any = value.get("output", value.get("expected"))
        reasoning = value.get("reasoning")
    elif hasattr(value, "input") and (hasattr(value, "output") or hasattr(value, "expected")):
        raw_input = value.input
        raw_output = getattr(value, "output", None)
        if raw_output is None:
            raw_output = getattr(value, "expected", None)
        reasoning = getattr(value, "reasoning", None)
    else:
        return None

    inputs = as_value_mapping(raw_input, scalar_key="input")
    outputs = as_value_mapping(raw_output, scalar_key="output")
    if inputs is None or outputs is None:
        return None
    return FewShotExample(
        input=inputs,
        output=outputs,
        reasoning=reasoning if isinstance(reasoning, str) and reasoning else None,
    )


__all__ = [
    "Case",
    "FewShotExample",
    "ProposalProgram",
    "SourceProvider",
    "TrainingExample",
    "TrialLogEntry",
    "TrialLogs",
    "as_value_mapping",
    "coerce_few_shot_example",
    "coerce_training_example",
]
