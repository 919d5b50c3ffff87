"""Grounded instruction proposer."""

from __future__ import annotations

import random
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

import logfire
from pydantic_ai.models import KnownModelName, Model
from pydantic_ai.settings import ModelSettings

from .exceptions import DatasetSummaryError, ProgramSchemaError
from .models import ProposalMetadata, ProposalResult, ProposerConfig
from .proposal.candidates import InstructionCandidateGenerator
from .proposal.context import ContextInputs, build_generation_context
from .proposal.patterns import analyze_task
from .proposal.ranking import rank_candidates
from .proposal.summary import create_dataset_summary
from .schema import TaskSchema
from .source import describe_program_source
from .types import (
    FewShotExample,
    SourceProvider,
    TrainingExample,
    TrialLogEntry,
    TrialLogs,
    coerce_few_shot_example,
    coerce_training_example,
)


class GroundedProposer:
    """Propose ranked instructions for a task, grounded in its data and history.

    Use :meth:`create` to build an instance: it computes the dataset summary and
    the program source description once, and every proposal made by the
    instance reuses them.
    """

    def __init__(
        self,
        *,
        model: Model | KnownModelName | str,
        config: ProposerConfig | None = None,
        dataset_summary: str | None = None,
        program_source: str | None = None,
        rng: random.Random | None = None,
        generator: InstructionCandidateGenerator | None = None,
    ) -> None:
        self._model = model
        self._config = config or ProposerConfig()
        self._dataset_summary = dataset_summary
        self._program_source = program_source
        self._rng = rng if rng is not None else random.Random(self._config.seed)
        self._generator = generator or InstructionCandidateGenerator()

    @classmethod
    async def create(
        cls,
        *,
        model: Model | KnownModelName | str,
        config: ProposerConfig | None = None,
        trainset: Sequence[Any] | None = None,
        program: Any | None = None,
        source_provider: SourceProvider | None = describe_program_source,
        rng: random.Random | None = None,
        generator: InstructionCandidateGenerator | None = None,
    ) -> GroundedProposer:
        """Build a proposer, summarizing ``trainset`` and describing ``program``.

        Summary and source failures are logged and leave the respective
        context section out; they never fail construction.
        """
        config = config or ProposerConfig()

        dataset_summary: str | None = None
        if config.use_dataset_summary and trainset:
            examples = _coerce_examples(trainset)
            if examples:
                try:
                    dataset_summary = await create_dataset_summary(
                        examples,
                        batch_size=config.view_data_batch_size,
                        model=model,
                        verbose=config.verbose,
                    )
                except DatasetSummaryError as exc:
                    logfire.warn("Failed to generate dataset summary", error=str(exc))

        program_source: str | None = None
        if config.use_program_aware and program is not None and source_provider is not None:
            try:
                program_source = source_provider(program)
            except Exception as exc:
                logfire.warn(
                    "Could not describe program source",
                    program=type(program).__name__,
                    error=str(exc),
                )

        return cls(
            model=model,
            config=config,
            dataset_summary=dataset_summary,
            program_source=program_source,
            rng=rng,
            generator=generator,
        )

    @property
    def config(self) -> ProposerConfig:
        return self._config

    @property
    def dataset_summary(self) -> str | None:
        return self._dataset_summary

    @property
    def program_source(self) -> str | None:
        return self._program_source

    @property
    def model_name(self) -> str:
        if isinstance(self._model, Model):
            return self._model.model_name
        return str(self._model)

    async def propose_instructions(
        self,
        schema: TaskSchema,
        examples: Sequence[Any],
        *,
        few_shot_examples: Sequence[Any] | None = None,
        current_instruction: str | None = None,
        trial_logs: TrialLogs | None = None,
    ) -> ProposalResult:
        """Generate, rank and wrap candidate instructions for ``schema``.

        Model failures degrade the result instead of raising; at worst a single
        deterministic fallback instruction is returned.
        """
        if schema is None:
            raise ValueError("A task schema is required to propose instructions.")
        if examples is None:
            raise ValueError("A training set is required to propose instructions.")

        config = self._config
        training = _coerce_examples(examples)
        demos = _coerce_demos(few_shot_examples or ())
        logs = (
            {index: TrialLogEntry.from_value(entry) for index, entry in trial_logs.items()}
            if trial_logs
            else None
        )

        with logfire.span(
            "propose instructions",
            task=schema.description,
            num_examples=len(training),
            has_few_shot=bool(demos),
            has_current_instruction=current_instruction is not None,
        ):
            analysis = analyze_task(
                schema,
                training,
                window=config.view_data_batch_size,
                few_shot_examples=demos or None,
            )
            context = build_generation_context(
                ContextInputs(
                    analysis=analysis,
                    dataset_summary=self._dataset_summary,
                    program_source=self._program_source,
                    few_shot_examples=demos,
                    current_instruction=current_instruction,
                    trial_logs=logs,
                ),
                config=config,
                rng=self._rng,
            )
            logfire.debug("Built proposal context", context_length=len(context))

            candidates = await self._generator.generate(
                context=context,
                analysis=analysis,
                num_candidates=config.num_instruction_candidates,
                model=self._model,
                model_settings=ModelSettings(temperature=config.init_temperature),
                parallel=config.enable_parallel_generation,
            )
            ranked = rank_candidates(candidates, requires_reasoning=analysis.requires_reasoning)

        result = ProposalResult(
            candidate_instructions=tuple(ranked),
            analysis=analysis,
            metadata=ProposalMetadata(
                generation_timestamp=datetime.now(timezone.utc),
                model_used=self.model_name,
                num_examples_analyzed=min(len(training), config.view_data_batch_size),
                original_instruction=current_instruction,
            ),
        )
        logfire.info(
            "Instruction proposal complete",
            num_candidates=result.num_candidates,
            best_instruction_length=len(result.best_instruction),
            analysis_themes=list(analysis.common_themes),
            model_used=result.metadata.model_used,
        )
        return result

    async def propose_instructions_for_program(
        self,
        *,
        trainset: Sequence[Any],
        program: Any,
        demo_candidates: Mapping[int, Sequence[Sequence[Any]]] | None = None,
        trial_logs: TrialLogs | None = None,
        num_instruction_candidates: int | None = None,
    ) -> ProposalResult:
        """Propose instructions for a single-predictor program.

        ``program`` must expose ``task_schema``; its ``instructions`` attribute,
        when present, is treated as the current instruction. The returned
        ``predictor_instructions`` maps predictor ``0`` to the top
        ``num_instruction_candidates`` candidates.
        """
        num_candidates = num_instruction_candidates or self._config.num_instruction_candidates

        schema = getattr(program, "task_schema", None)
        if not isinstance(schema, TaskSchema):
            raise ProgramSchemaError(
                f"{type(program).__name__} must expose a `task_schema` for instruction proposal."
            )

        current_instruction = getattr(program, "instructions", None)
        if not isinstance(current_instruction, str):
            current_instruction = None

        demo_sets = (demo_candidates or {}).get(0) or ()
        few_shot_examples = list(_flatten(demo_sets))[: self._config.num_demos_in_context]

        base_result = await self.propose_instructions(
            schema,
            trainset,
            few_shot_examples=few_shot_examples,
            current_instruction=current_instruction,
            trial_logs=trial_logs,
        )
        return base_result.with_predictor_instructions(
            {0: base_result.candidate_instructions[:num_candidates]}
        )


def _coerce_examples(examples: Iterable[Any]) -> list[TrainingExample]:
    coerced = (coerce_training_example(example) for example in examples)
    return [example for example in coerced if example is not None]


def _coerce_demos(examples: Iterable[Any]) -> list[FewShotExample]:
    coerced = (coerce_few_shot_example(example) for example in examples)
    return [example for example in coerced if example is not None]


def _flatten(demo_sets: Iterable[Any]) -> Iterable[Any]:
    for demo_set in demo_sets:
        if isinstance(demo_set, (list, tuple)):
            yield from demo_set
        else:
            yield demo_set


__all__ = ["GroundedProposer"]
