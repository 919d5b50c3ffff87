"""Configuration model for grounded instruction proposals."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class ProposerConfig(BaseModel):
    """Immutable configuration for the grounded proposer.

    Every ``use_*`` toggle is independent: disabling one never disables another.
    """

    # Candidates
    num_instruction_candidates: int = Field(
        default=5,
        description="Number of independent model calls issued per proposal.",
    )
    init_temperature: float = Field(
        default=1.0,
        description="Sampling temperature used for candidate generation calls.",
    )
    enable_parallel_generation: bool = Field(
        default=False,
        description="Issue the candidate generation calls concurrently.",
    )

    # Context toggles
    use_dataset_summary: bool = Field(
        default=True,
        description="Summarize the training set once and include it in the proposal context.",
    )
    use_program_aware: bool = Field(
        default=True,
        description="Include a description of the program's source in the proposal context.",
    )
    use_task_demos: bool = Field(
        default=True,
        description="Include few-shot demos in the proposal context.",
    )
    use_tip: bool = Field(
        default=True,
        description="Include a prompting tip in the proposal context.",
    )
    use_instruction_history: bool = Field(
        default=True,
        description="Include previously tried instructions and their scores.",
    )

    # Data views
    view_data_batch_size: int = Field(
        default=10,
        description="Examples per summarizer batch; also the pattern analysis window.",
    )
    num_demos_in_context: int = Field(
        default=3,
        description="Maximum few-shot demos rendered into the proposal context.",
    )

    # Randomness
    set_tip_randomly: bool = Field(
        default=True,
        description="Pick a random tip per proposal; when False no tip is rendered.",
    )
    set_history_randomly: bool = Field(
        default=False,
        description="Include the instruction history only on a random coin flip.",
    )
    seed: int = Field(
        default=0,
        description="Seed for the default random source used for tip/history selection.",
    )

    verbose: bool = Field(
        default=False,
        description="Log summarizer progress and the generated summary at info level.",
    )

    model_config = ConfigDict(frozen=True)

    @field_validator("num_instruction_candidates", "view_data_batch_size")
    @classmethod
    def _validate_positive_int(cls, value: int, info: ValidationInfo) -> int:
        if value <= 0:
            raise ValueError(f"{info.field_name} must be > 0.")
        return value

    @field_validator("num_demos_in_context")
    @classmethod
    def _validate_non_negative_int(cls, value: int, info: ValidationInfo) -> int:
        if value < 0:
            raise ValueError(f"{info.field_name} must be >= 0.")
        return value

    @field_validator("init_temperature")
    @classmethod
    def _validate_temperature(cls, value: float) -> float:
        if value < 0:
            raise ValueError("init_temperature must be >= 0.")
        return value
