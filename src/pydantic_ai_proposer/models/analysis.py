"""Frozen analysis snapshot produced before generating candidates."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ..schema import FieldDescriptor
from .mapping import Counts, TypeTally


class InputPatterns(BaseModel):
    avg_input_length: float = 0.0
    input_types: TypeTally = Field(default_factory=dict, validate_default=True)
    frequent_keywords: Counts = Field(default_factory=dict, validate_default=True)

    model_config = ConfigDict(frozen=True)


class OutputPatterns(BaseModel):
    avg_output_length: float = 0.0
    output_types: TypeTally = Field(default_factory=dict, validate_default=True)

    model_config = ConfigDict(frozen=True)


class ExamplePatterns(BaseModel):
    """Statistics and themes computed over the analysis window."""

    total_examples: int = 0
    analyzed_examples: int = 0
    input_patterns: InputPatterns = Field(default_factory=InputPatterns)
    output_patterns: OutputPatterns = Field(default_factory=OutputPatterns)
    common_themes: tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)


class ComplexityIndicators(BaseModel):
    num_input_fields: int = 0
    num_output_fields: int = 0
    has_complex_outputs: bool = False
    requires_reasoning: bool = False

    model_config = ConfigDict(frozen=True)


class FewShotPatterns(BaseModel):
    num_examples: int
    demonstrates_reasoning: bool
    example_variety: Literal["low", "medium", "high"]

    model_config = ConfigDict(frozen=True)


class Analysis(BaseModel):
    """Everything the proposer learned about the task before asking the model."""

    task_description: str
    input_fields: tuple[FieldDescriptor, ...] = ()
    output_fields: tuple[FieldDescriptor, ...] = ()
    example_patterns: ExamplePatterns = Field(default_factory=ExamplePatterns)
    complexity_indicators: ComplexityIndicators = Field(
        default_factory=ComplexityIndicators
    )
    few_shot_patterns: FewShotPatterns | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def common_themes(self) -> tuple[str, ...]:
        return self.example_patterns.common_themes

    @property
    def requires_reasoning(self) -> bool:
        return self.complexity_indicators.requires_reasoning
