"""Data models used by the grounded proposer."""

from .analysis import (
    Analysis,
    ComplexityIndicators,
    ExamplePatterns,
    FewShotPatterns,
    InputPatterns,
    OutputPatterns,
)
from .config import ProposerConfig
from .result import ProposalMetadata, ProposalResult

__all__ = [
    "Analysis",
    "ComplexityIndicators",
    "ExamplePatterns",
    "FewShotPatterns",
    "InputPatterns",
    "OutputPatterns",
    "ProposalMetadata",
    "ProposalResult",
    "ProposerConfig",
]
