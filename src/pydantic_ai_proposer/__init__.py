"""Grounded instruction proposals for pydantic-ai tasks."""

from __future__ import annotations

from .exceptions import DatasetSummaryError, ProgramSchemaError
from .models import (
    Analysis,
    ComplexityIndicators,
    ExamplePatterns,
    FewShotPatterns,
    ProposalMetadata,
    ProposalResult,
    ProposerConfig,
)
from .proposal import (
    MAX_HISTORY_INSTRUCTIONS,
    THEME_RULES,
    TIPS,
    InstructionCandidateGenerator,
    create_dataset_summary,
    rank_candidates,
)
from .proposer import GroundedProposer
from .schema import FieldDescriptor, FieldKind, SchemaField, TaskSchema, describe_fields
from .source import describe_program_source
from .types import (
    Case,
    FewShotExample,
    ProposalProgram,
    SourceProvider,
    TrainingExample,
    TrialLogEntry,
    TrialLogs,
)

__all__ = [
    "GroundedProposer",
    "ProposerConfig",
    "ProposalResult",
    "ProposalMetadata",
    "Analysis",
    "ComplexityIndicators",
    "ExamplePatterns",
    "FewShotPatterns",
    "TaskSchema",
    "SchemaField",
    "FieldDescriptor",
    "FieldKind",
    "describe_fields",
    "TrainingExample",
    "FewShotExample",
    "TrialLogEntry",
    "TrialLogs",
    "ProposalProgram",
    "SourceProvider",
    "Case",
    "InstructionCandidateGenerator",
    "create_dataset_summary",
    "rank_candidates",
    "describe_program_source",
    "MAX_HISTORY_INSTRUCTIONS",
    "THEME_RULES",
    "TIPS",
    "DatasetSummaryError",
    "ProgramSchemaError",
]

__version__ = "0.1.0"
