"""Assembly of the prompt context handed to the instruction generator."""

from __future__ import annotations

import random
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from ..models import Analysis, ProposerConfig
from ..schema import FieldDescriptor
from ..types import FewShotExample, TrialLogEntry

MAX_HISTORY_INSTRUCTIONS = 5

TIPS: dict[str, str] = {
    "creative": "Don't be afraid to be creative when creating the new instruction!",
    "simple": "Keep the instruction clear and concise.",
    "description": "Make sure your instruction is very informative and descriptive.",
    "high_stakes": "The instruction should include a high stakes scenario in which the LM must solve the task!",
    "persona": 'Include a persona that is relevant to the task in the instruction (ie. "You are a ...")',
}
"""Prompting tips, one of which may be sampled into each proposal context."""


@dataclass(frozen=True, slots=True)
class ContextInputs:
    """Per-proposal material for ``build_generation_context``."""

    analysis: Analysis
    dataset_summary: str | None = None
    program_source: str | None = None
    few_shot_examples: Sequence[FewShotExample] = ()
    current_instruction: str | None = None
    trial_logs: Mapping[int, TrialLogEntry] | None = None
    predictor_index: int = 0


def build_generation_context(
    inputs: ContextInputs,
    *,
    config: ProposerConfig,
    rng: random.Random,
) -> str:
    """Concatenate the enabled, non-empty context sections in their fixed order."""
    analysis = inputs.analysis
    sections: list[str] = []

    if config.use_dataset_summary and inputs.dataset_summary:
        sections.append(f"Dataset Summary: {inputs.dataset_summary}")

    if config.use_program_aware and inputs.program_source:
        sections.append(f"Program Source:\n{inputs.program_source}")

    sections.append(f"Task: {analysis.task_description}")
    sections.append(
        "Input fields: "
        + ", ".join(format_field_description(field) for field in analysis.input_fields)
    )
    sections.append(
        "Output fields: "
        + ", ".join(format_field_description(field) for field in analysis.output_fields)
    )

    if config.use_task_demos and config.num_demos_in_context > 0 and inputs.few_shot_examples:
        demos = [
            format_demo(example)
            for example in inputs.few_shot_examples[: config.num_demos_in_context]
        ]
        sections.append("Task Demos:\n" + "\n\n".join(demos))

    if analysis.common_themes:
        sections.append(f"Task themes: {', '.join(analysis.common_themes)}")

    if inputs.current_instruction:
        sections.append(f'Current instruction: "{inputs.current_instruction}"')

    if config.use_tip:
        tip = select_tip(config, rng)
        if tip:
            sections.append(f"Tip: {tip}")

    if config.use_instruction_history and _include_history(config, rng):
        history = build_instruction_history_summary(
            inputs.trial_logs,
            predictor_index=inputs.predictor_index,
        )
        if history:
            sections.append(f"Previous instructions:\n{history}")

    return "\n\n".join(sections)


def format_field_description(field: FieldDescriptor) -> str:
    base = f"{field.name} ({field.type_name})"
    if field.is_enum and field.enum_values:
        return f"{base} [values: {', '.join(field.enum_values)}]"
    return base


def format_demo(example: FewShotExample) -> str:
    parts: list[str] = []
    if example.input:
        parts.append("Inputs: " + _format_values(example.input))
    if example.output:
        parts.append("Expected: " + _format_values(example.output))
    return " | ".join(parts)


def select_tip(config: ProposerConfig, rng: random.Random) -> str | None:
    """Pick a tip from ``TIPS`` when random tip selection is on."""
    if not config.set_tip_randomly:
        return None
    return TIPS[rng.choice(list(TIPS))]


def build_instruction_history_summary(
    trial_logs: Mapping[int, TrialLogEntry | Mapping[str, Any]] | None,
    *,
    predictor_index: int = 0,
    top_n: int = MAX_HISTORY_INSTRUCTIONS,
) -> str:
    """Render the best previously scored instructions, best one last.

    Scores for the same instruction text are averaged across trials. Entries
    without a numeric score or an instruction are ignored.
    """
    if not trial_logs:
        return ""

    totals: dict[str, list[float]] = {}
    for raw_entry in trial_logs.values():
        entry = TrialLogEntry.from_value(raw_entry)
        score = entry.numeric_score
        if score is None:
            continue
        instruction = entry.instruction_for(predictor_index)
        if not isinstance(instruction, str) or not instruction:
            continue
        totals.setdefault(instruction, []).append(score)

    if not totals:
        return ""

    ranked = sorted(
        ((instruction, sum(scores) / len(scores)) for instruction, scores in totals.items()),
        key=lambda item: -item[1],
    )
    top_entries = list(reversed(ranked[:top_n]))
    return "\n".join(f"{instruction} | Score: {average:.4f}" for instruction, average in top_entries)


def _include_history(config: ProposerConfig, rng: random.Random) -> bool:
    if not config.set_history_randomly:
        return True
    return rng.random() < 0.5


def _format_values(values: Mapping[str, Any]) -> str:
    return ", ".join(f"{key}: {value!r}" for key, value in values.items())


__all__ = [
    "MAX_HISTORY_INSTRUCTIONS",
    "TIPS",
    "ContextInputs",
    "build_generation_context",
    "build_instruction_history_summary",
    "format_demo",
    "format_field_description",
    "select_tip",
]
