"""Iterative dataset summarization.

The summarizer never shows the model the whole training set at once. It seeds a
set of observations from the first batch, asks the model to extend them with
each following batch until it answers ``COMPLETE`` often enough (or the refinement
cap is reached), then condenses everything into a two to three sentence
summary.
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TypeAlias

import logfire
from pydantic import BaseModel, Field
from pydantic_ai import Agent
from pydantic_ai.models import KnownModelName, Model
from pydantic_ai.settings import ModelSettings
from pydantic_core import to_jsonable_python
from pydantic_graph import BaseNode, End, Graph, GraphRunContext

from ..exceptions import DatasetSummaryError
from ..types import TrainingExample

MAX_REFINEMENT_CALLS = 10
MAX_COMPLETE_SKIPS = 5
COMPLETE_MARKER = "COMPLETE"

_OBSERVATION_AREAS = (
    "Some areas you may consider in your observations: topics, content, syntax, conciseness, etc. "
    "It will be useful to make an educated guess as to the nature of the task this dataset will enable. "
    "Don't be afraid to be creative."
)

DESCRIBE_INSTRUCTIONS = (
    "Given several examples from a dataset please write observations about trends that hold "
    "for most or all of the samples. " + _OBSERVATION_AREAS
)

REFINE_INSTRUCTIONS = (
    "Given several examples from a dataset please write observations about trends that hold "
    "for most or all of the samples. I will also provide you with a few observations I have "
    "already made. Please add your own observations or if you feel the observations are "
    "comprehensive say 'COMPLETE'. " + _OBSERVATION_AREAS
)

SUMMARIZE_INSTRUCTIONS = (
    "Given a series of observations I have made about my dataset, please summarize them into "
    "a brief 2-3 sentence summary which highlights only the most important details."
)

_LABEL_PREFIX_RE = re.compile(r"^[\*\s]*(([\w'\-]+\s+){0,4}[\w'\-]+):\s*")
_EDGE_QUOTES_RE = re.compile(r"^[\"']|[\"']$")


class DatasetObservations(BaseModel):
    observations: str = Field(
        description="Something that holds true for most or all of the data you observed, "
        "or COMPLETE if you have nothing to add.",
    )


class DatasetSummary(BaseModel):
    summary: str = Field(
        description="Two to three sentence summary of only the most significant highlights "
        "of the observations.",
    )


@dataclass(slots=True)
class SummaryState:
    """Mutable state threaded through the summary graph."""

    observations: str = ""
    refinement_calls: int = 0
    skips: int = 0


@dataclass(slots=True)
class SummaryDeps:
    examples: Sequence[TrainingExample]
    batch_size: int
    model: Model | KnownModelName | str
    model_settings: ModelSettings | None = None
    verbose: bool = False
    describe_agent: Agent[None, DatasetObservations] = field(
        default_factory=lambda: Agent(
            instructions=DESCRIBE_INSTRUCTIONS, output_type=DatasetObservations
        )
    )
    refine_agent: Agent[None, DatasetObservations] = field(
        default_factory=lambda: Agent(
            instructions=REFINE_INSTRUCTIONS, output_type=DatasetObservations
        )
    )
    summarize_agent: Agent[None, DatasetSummary] = field(
        default_factory=lambda: Agent(
            instructions=SUMMARIZE_INSTRUCTIONS, output_type=DatasetSummary
        )
    )


SummaryRunContext: TypeAlias = GraphRunContext[SummaryState, SummaryDeps]


class SummaryNode(BaseNode[SummaryState, SummaryDeps, str]):
    """Base class for dataset summary graph nodes."""


@dataclass
class DescribeDatasetNode(SummaryNode):
    """Seed observations from the first batch."""

    async def run(
        self, ctx: SummaryRunContext
    ) -> RefineObservationsNode | SummarizeObservationsNode:
        deps = ctx.deps
        batch = deps.examples[: deps.batch_size]
        result = await deps.describe_agent.run(
            render_observation_prompt(batch),
            model=deps.model,
            model_settings=deps.model_settings,
        )
        ctx.state.observations = result.output.observations.strip()

        if len(deps.examples) > deps.batch_size:
            return RefineObservationsNode(offset=deps.batch_size)
        return SummarizeObservationsNode()


@dataclass
class RefineObservationsNode(SummaryNode):
    """Extend the observations with the batch starting at ``offset``."""

    offset: int

    async def run(
        self, ctx: SummaryRunContext
    ) -> RefineObservationsNode | SummarizeObservationsNode:
        state = ctx.state
        deps = ctx.deps

        if state.refinement_calls >= MAX_REFINEMENT_CALLS:
            return SummarizeObservationsNode()
        state.refinement_calls += 1

        if deps.verbose:
            logfire.info("Processing dataset batch", offset=self.offset)

        batch = deps.examples[self.offset : self.offset + deps.batch_size]
        try:
            result = await deps.refine_agent.run(
                render_observation_prompt(batch, prior_observations=state.observations),
                model=deps.model,
                model_settings=deps.model_settings,
            )
        except Exception as exc:
            logfire.warn(
                "Observation refinement failed; summarizing observations gathered so far",
                offset=self.offset,
                refinement_calls=state.refinement_calls,
                error=str(exc),
            )
            return SummarizeObservationsNode()

        text = result.output.observations.strip()
        if is_complete(text):
            state.skips += 1
            logfire.debug(
                "Observation refinement reported COMPLETE",
                offset=self.offset,
                skips=state.skips,
            )
            if state.skips >= MAX_COMPLETE_SKIPS:
                return SummarizeObservationsNode()
        elif text:
            state.observations = f"{state.observations}\n{text}".strip()

        next_offset = self.offset + deps.batch_size
        if next_offset >= len(deps.examples):
            return SummarizeObservationsNode()
        return RefineObservationsNode(offset=next_offset)


@dataclass
class SummarizeObservationsNode(SummaryNode):
    """Condense the accumulated observations into the final summary."""

    async def run(self, ctx: SummaryRunContext) -> End[str]:
        deps = ctx.deps
        result = await deps.summarize_agent.run(
            render_summary_prompt(ctx.state.observations),
            model=deps.model,
            model_settings=deps.model_settings,
        )
        summary = strip_prefix(result.output.summary)
        if deps.verbose:
            logfire.info("Generated dataset summary", summary=summary)
        return End(summary)


summary_graph = Graph(
    nodes=(DescribeDatasetNode, RefineObservationsNode, SummarizeObservationsNode),
    name="dataset_summary",
)


async def create_dataset_summary(
    examples: Sequence[TrainingExample],
    *,
    batch_size: int,
    model: Model | KnownModelName | str,
    model_settings: ModelSettings | None = None,
    verbose: bool = False,
) -> str:
    """Summarize ``examples`` into a short natural-language description.

    Failures while refining are absorbed; failures of the initial description or
    the final summarization raise ``DatasetSummaryError``.
    """
    if batch_size <= 0:
        raise ValueError("batch_size must be > 0.")
    if not examples:
        raise ValueError("Cannot summarize an empty training set.")

    deps = SummaryDeps(
        examples=list(examples),
        batch_size=batch_size,
        model=model,
        model_settings=model_settings,
        verbose=verbose,
    )
    state = SummaryState()
    with logfire.span(
        "create dataset summary",
        num_examples=len(deps.examples),
        batch_size=batch_size,
    ):
        try:
            result = await summary_graph.run(DescribeDatasetNode(), state=state, deps=deps)
        except Exception as exc:
            raise DatasetSummaryError(f"Dataset summary failed: {exc}") from exc

    logfire.debug(
        "Dataset summary complete",
        refinement_calls=state.refinement_calls,
        skips=state.skips,
    )
    return result.output


def is_complete(text: str) -> bool:
    """Whether a refinement response signals that it has nothing to add."""
    return text.lstrip().upper().startswith(COMPLETE_MARKER)


def strip_prefix(text: str) -> str:
    """Drop a leading ``Label:`` style prefix (up to four words) and edge quotes."""
    stripped = _LABEL_PREFIX_RE.sub("", text, count=1).strip()
    return _EDGE_QUOTES_RE.sub("", stripped)


def format_examples(examples: Sequence[TrainingExample]) -> str:
    records = [{"input": example.input, "expected": example.expected} for example in examples]
    return json.dumps(
        to_jsonable_python(records, fallback=str), indent=2, ensure_ascii=False
    )


def render_observation_prompt(
    examples: Sequence[TrainingExample],
    *,
    prior_observations: str | None = None,
) -> str:
    lines: list[str] = []
    if prior_observations is not None:
        lines.extend(["## Prior observations", "", prior_observations.strip(), ""])
    lines.extend(["## Examples", "", "```json", format_examples(examples), "```"])
    return "\n".join(lines)


def render_summary_prompt(observations: str) -> str:
    return "\n".join(["## Observations", "", observations.strip()])


__all__ = [
    "COMPLETE_MARKER",
    "MAX_COMPLETE_SKIPS",
    "MAX_REFINEMENT_CALLS",
    "DatasetObservations",
    "DatasetSummary",
    "DescribeDatasetNode",
    "RefineObservationsNode",
    "SummarizeObservationsNode",
    "SummaryDeps",
    "SummaryState",
    "create_dataset_summary",
    "format_examples",
    "is_complete",
    "render_observation_prompt",
    "render_summary_prompt",
    "strip_prefix",
    "summary_graph",
]
