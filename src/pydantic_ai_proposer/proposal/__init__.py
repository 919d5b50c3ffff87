"""Building blocks of a grounded instruction proposal."""

from .candidates import InstructionCandidateGenerator, fallback_instruction
from .context import (
    MAX_HISTORY_INSTRUCTIONS,
    TIPS,
    ContextInputs,
    build_generation_context,
    build_instruction_history_summary,
)
from .patterns import THEME_RULES, THEME_RULES_VERSION, ThemeRule, analyze_task
from .ranking import rank_candidates, score_candidate
from .summary import create_dataset_summary

__all__ = [
    "MAX_HISTORY_INSTRUCTIONS",
    "THEME_RULES",
    "THEME_RULES_VERSION",
    "TIPS",
    "ContextInputs",
    "InstructionCandidateGenerator",
    "ThemeRule",
    "analyze_task",
    "build_generation_context",
    "build_instruction_history_summary",
    "create_dataset_summary",
    "fallback_instruction",
    "rank_candidates",
    "score_candidate",
]
