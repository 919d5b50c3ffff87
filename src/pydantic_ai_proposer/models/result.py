"""Result model returned by the grounded proposer."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .analysis import Analysis
from .mapping import PredictorInstructions, freeze_mapping


class ProposalMetadata(BaseModel):
    """Provenance for a single proposal call."""

    generation_timestamp: datetime
    model_used: str
    num_examples_analyzed: int
    original_instruction: str | None = None

    model_config = ConfigDict(frozen=True)


class ProposalResult(BaseModel):
    """Ranked instruction candidates plus the analysis they were grounded on."""

    candidate_instructions: tuple[str, ...] = ()
    predictor_instructions: PredictorInstructions = Field(
        default_factory=dict, validate_default=True
    )
    analysis: Analysis
    metadata: ProposalMetadata

    model_config = ConfigDict(frozen=True)

    @property
    def best_instruction(self) -> str:
        """Highest ranked candidate, or an empty string when there is none."""
        return self.candidate_instructions[0] if self.candidate_instructions else ""

    @property
    def num_candidates(self) -> int:
        return len(self.candidate_instructions)

    def with_predictor_instructions(
        self, predictor_instructions: dict[int, list[str] | tuple[str, ...]]
    ) -> ProposalResult:
        """Return a copy carrying per-predictor candidate lists."""
        return self.model_copy(
            update={
                "predictor_instructions": freeze_mapping(
                    {
                        index: tuple(instructions)
                        for index, instructions in predictor_instructions.items()
                    }
                )
            }
        )
