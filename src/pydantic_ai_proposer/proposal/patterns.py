"""Heuristic task and training-data analysis."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from ..models import (
    Analysis,
    ComplexityIndicators,
    ExamplePatterns,
    FewShotPatterns,
    InputPatterns,
    OutputPatterns,
)
from ..schema import FieldDescriptor, FieldKind, TaskSchema, describe_fields
from ..types import FewShotExample, TrainingExample

MAX_KEYWORDS = 10
MIN_KEYWORD_LENGTH = 4
REASONING_SAMPLE_SIZE = 5

_WORD_SPLIT_RE = re.compile(r"\W+")
_REASONING_FIELD_RE = re.compile(r"reason|explain|rational|justif", re.IGNORECASE)
_REASONING_INPUT_RE = re.compile(r"\b(why|how|explain|analyze|reason)\b", re.IGNORECASE)
_REASONING_OUTPUT_KEYS = ("reasoning", "explanation", "rationale")


@dataclass(frozen=True, slots=True)
class ThemeRule:
    """Named predicate over a single input text."""

    name: str
    matches: Callable[[str], bool]


def _matches(pattern: str, flags: int = 0) -> Callable[[str], bool]:
    regex = re.compile(pattern, flags)
    return lambda text: regex.search(text) is not None


THEME_RULES_VERSION = 1
THEME_RULES: tuple[ThemeRule, ...] = (
    ThemeRule(
        "question_answering",
        lambda text: "question" in text.lower() or "?" in text,
    ),
    ThemeRule(
        "classification",
        _matches(r"\b(classify|category|type)\b", re.IGNORECASE),
    ),
    ThemeRule(
        "mathematical_reasoning",
        _matches(r"\d+.*[+\-*/].*\d+"),
    ),
    ThemeRule(
        "analytical_reasoning",
        _matches(r"\b(analyze|explain|reason)\b", re.IGNORECASE),
    ),
)
"""Ordered theme heuristics; themes are reported in this order and are not exclusive."""


def analyze_task(
    schema: TaskSchema,
    examples: Sequence[TrainingExample],
    *,
    window: int,
    few_shot_examples: Sequence[FewShotExample] | None = None,
) -> Analysis:
    """Build the frozen ``Analysis`` for a task and its training data."""
    input_fields = describe_fields(schema.input_fields)
    output_fields = describe_fields(schema.output_fields)
    return Analysis(
        task_description=schema.description,
        input_fields=input_fields,
        output_fields=output_fields,
        example_patterns=analyze_example_patterns(examples, window=window),
        complexity_indicators=assess_complexity(input_fields, output_fields, examples),
        few_shot_patterns=(
            analyze_few_shot_patterns(few_shot_examples) if few_shot_examples else None
        ),
    )


def analyze_example_patterns(
    examples: Sequence[TrainingExample], *, window: int
) -> ExamplePatterns:
    """Compute statistics and themes over the first ``window`` examples."""
    analyzed = list(examples[:window])
    return ExamplePatterns(
        total_examples=len(examples),
        analyzed_examples=len(analyzed),
        input_patterns=analyze_input_patterns(analyzed),
        output_patterns=analyze_output_patterns(analyzed),
        common_themes=detect_themes(analyzed),
    )


def analyze_input_patterns(examples: Sequence[TrainingExample]) -> InputPatterns:
    lengths: list[int] = []
    types: dict[str, dict[str, int]] = {}
    keywords: dict[str, int] = {}

    for values in _value_mappings(examples, "input"):
        for key, value in values.items():
            _tally(types, key, value)
            if not isinstance(value, str):
                continue
            lengths.append(len(value))
            for word in _WORD_SPLIT_RE.split(value.lower()):
                if len(word) >= MIN_KEYWORD_LENGTH:
                    keywords[word] = keywords.get(word, 0) + 1

    # sorted() is stable, so ties keep first-seen order.
    top_keywords = sorted(keywords.items(), key=lambda item: -item[1])[:MAX_KEYWORDS]
    return InputPatterns(
        avg_input_length=_average(lengths),
        input_types=types,
        frequent_keywords=dict(top_keywords),
    )


def analyze_output_patterns(examples: Sequence[TrainingExample]) -> OutputPatterns:
    lengths: list[int] = []
    types: dict[str, dict[str, int]] = {}

    for values in _value_mappings(examples, "expected"):
        for key, value in values.items():
            _tally(types, key, value)
            if isinstance(value, str):
                lengths.append(len(value))

    return OutputPatterns(avg_output_length=_average(lengths), output_types=types)


def detect_themes(examples: Sequence[TrainingExample]) -> tuple[str, ...]:
    """Apply ``THEME_RULES`` to every string input value."""
    texts = [text for example in examples for text in _string_inputs(example)]
    return tuple(
        rule.name for rule in THEME_RULES if any(rule.matches(text) for text in texts)
    )


def assess_complexity(
    input_fields: Sequence[FieldDescriptor],
    output_fields: Sequence[FieldDescriptor],
    examples: Sequence[TrainingExample],
) -> ComplexityIndicators:
    return ComplexityIndicators(
        num_input_fields=len(input_fields),
        num_output_fields=len(output_fields),
        has_complex_outputs=any(
            field.kind in (FieldKind.ENUM, FieldKind.COLLECTION) for field in output_fields
        ),
        requires_reasoning=requires_reasoning(output_fields, examples),
    )


def requires_reasoning(
    output_fields: Sequence[FieldDescriptor],
    examples: Sequence[TrainingExample],
) -> bool:
    """Whether the output schema or the sampled inputs ask for reasoning."""
    if any(_REASONING_FIELD_RE.search(field.name) for field in output_fields):
        return True
    for example in examples[:REASONING_SAMPLE_SIZE]:
        text = " ".join(_string_inputs(example))
        if _REASONING_INPUT_RE.search(text):
            return True
    return False


def analyze_few_shot_patterns(examples: Sequence[FewShotExample]) -> FewShotPatterns:
    return FewShotPatterns(
        num_examples=len(examples),
        demonstrates_reasoning=any(_demonstrates_reasoning(example) for example in examples),
        example_variety=assess_example_variety(examples),
    )


def assess_example_variety(examples: Sequence[FewShotExample]) -> str:
    if len(examples) < 3:
        return "low"
    signatures = [
        " ".join(str(value) for value in example.input.values()) for example in examples
    ]
    ratio = len(set(signatures)) / len(examples)
    if ratio >= 0.8:
        return "high"
    if ratio >= 0.5:
        return "medium"
    return "low"


def _demonstrates_reasoning(example: FewShotExample) -> bool:
    if example.reasoning:
        return True
    return any(key in example.output for key in _REASONING_OUTPUT_KEYS)


def _value_mappings(
    examples: Sequence[TrainingExample], attribute: str
) -> list[Mapping[str, Any]]:
    mappings: list[Mapping[str, Any]] = []
    for example in examples:
        values = getattr(example, attribute, None)
        if isinstance(values, Mapping):
            mappings.append(values)
    return mappings


def _string_inputs(example: TrainingExample) -> list[str]:
    values = getattr(example, "input", None)
    if not isinstance(values, Mapping):
        return []
    return [value for value in values.values() if isinstance(value, str)]


def _tally(types: dict[str, dict[str, int]], key: str, value: Any) -> None:
    if value is None:
        return
    counts = types.setdefault(str(key), {})
    name = type(value).__name__
    counts[name] = counts.get(name, 0) + 1


def _average(lengths: Sequence[int]) -> float:
    if not lengths:
        return 0.0
    return sum(lengths) / len(lengths)


__all__ = [
    "THEME_RULES",
    "THEME_RULES_VERSION",
    "ThemeRule",
    "analyze_example_patterns",
    "analyze_few_shot_patterns",
    "analyze_input_patterns",
    "analyze_output_patterns",
    "analyze_task",
    "assess_complexity",
    "assess_example_variety",
    "detect_themes",
    "requires_reasoning",
]
