"""LLM-backed generation of candidate instructions."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import logfire
from pydantic import BaseModel, Field
from pydantic_ai import Agent
from pydantic_ai.models import KnownModelName, Model
from pydantic_ai.settings import ModelSettings

from ..models import Analysis

DEFAULT_GENERATOR_INSTRUCTIONS = "Generate an improved instruction for a language model task."

REASONING_FALLBACK_SUFFIX = "Think step by step and provide a clear explanation."
DEFAULT_FALLBACK_SUFFIX = "Be accurate and specific in your response."
DEFAULT_TASK_DESCRIPTION = "Complete the given task"


class InstructionCandidate(BaseModel):
    """Agent output schema for a single candidate."""

    instruction: str = Field(description="A clear, specific instruction for the task.")


def build_requirements_text(analysis: Analysis) -> str:
    requirements = [
        "Be specific and actionable",
        "Guide the model's reasoning process",
    ]
    if analysis.requires_reasoning:
        requirements.append("Encourage step-by-step thinking")
    if "mathematical_reasoning" in analysis.common_themes:
        requirements.append("Emphasize mathematical accuracy")
    if "classification" in analysis.common_themes:
        requirements.append("Encourage careful categorization")
    return ". ".join(requirements) + "."


def fallback_instruction(analysis: Analysis) -> str:
    """Deterministic instruction used when no candidate could be generated."""
    base = analysis.task_description.strip() or DEFAULT_TASK_DESCRIPTION
    suffix = REASONING_FALLBACK_SUFFIX if analysis.requires_reasoning else DEFAULT_FALLBACK_SUFFIX
    return f"{base} {suffix}"


def dedupe(candidates: Sequence[str]) -> list[str]:
    """Drop repeated candidates, keeping the first occurrence."""
    return list(dict.fromkeys(candidates))


class InstructionCandidateGenerator:
    """Generate candidate instructions via independent structured agent calls."""

    def __init__(self, instructions: str | None = None) -> None:
        self._agent = Agent(
            instructions=instructions or DEFAULT_GENERATOR_INSTRUCTIONS,
            output_type=InstructionCandidate,
        )

    async def generate(
        self,
        *,
        context: str,
        analysis: Analysis,
        num_candidates: int,
        model: Model | KnownModelName | str,
        model_settings: ModelSettings | None = None,
        parallel: bool = False,
    ) -> list[str]:
        """Return deduplicated candidates, falling back to a fixed instruction.

        Each call is tagged with its 1-based candidate number. A failing call is
        logged and skipped; the remaining calls still run.
        """
        requirements = build_requirements_text(analysis)
        numbers = range(1, num_candidates + 1)

        if parallel:
            results = await asyncio.gather(
                *(
                    self._generate_one(
                        context=context,
                        requirements=requirements,
                        candidate_number=number,
                        model=model,
                        model_settings=model_settings,
                    )
                    for number in numbers
                )
            )
        else:
            results = []
            for number in numbers:
                results.append(
                    await self._generate_one(
                        context=context,
                        requirements=requirements,
                        candidate_number=number,
                        model=model,
                        model_settings=model_settings,
                    )
                )

        candidates = [text for text in results if text]
        if not candidates:
            logfire.warn(
                "No instruction candidates generated; using fallback instruction",
                requested=num_candidates,
            )
            candidates = [fallback_instruction(analysis)]
        return dedupe(candidates)

    async def _generate_one(
        self,
        *,
        context: str,
        requirements: str,
        candidate_number: int,
        model: Model | KnownModelName | str,
        model_settings: ModelSettings | None,
    ) -> str | None:
        prompt = render_generation_prompt(
            context=context,
            requirements=requirements,
            candidate_number=candidate_number,
        )
        try:
            result = await self._agent.run(
                prompt,
                model=model,
                model_settings=model_settings,
            )
        except Exception as exc:
            logfire.warn(
                "Failed to generate instruction candidate",
                candidate_number=candidate_number,
                error=str(exc),
            )
            return None
        return result.output.instruction.strip() or None


def render_generation_prompt(
    *,
    context: str,
    requirements: str,
    candidate_number: int,
) -> str:
    lines = [
        "## Task context",
        "",
        context.strip(),
        "",
        "## Requirements",
        "",
        requirements,
        "",
        "## Candidate number",
        "",
        str(candidate_number),
    ]
    return "\n".join(lines)


__all__ = [
    "DEFAULT_GENERATOR_INSTRUCTIONS",
    "InstructionCandidate",
    "InstructionCandidateGenerator",
    "build_requirements_text",
    "dedupe",
    "fallback_instruction",
    "render_generation_prompt",
]
