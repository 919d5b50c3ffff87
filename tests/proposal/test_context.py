from __future__ import annotations

import random

from inline_snapshot import snapshot

from pydantic_ai_proposer import (
    FewShotExample,
    ProposerConfig,
    TaskSchema,
    TrainingExample,
    TrialLogEntry,
)
from pydantic_ai_proposer.models import Analysis
from pydantic_ai_proposer.proposal.context import (
    TIPS,
    ContextInputs,
    build_generation_context,
    build_instruction_history_summary,
    select_tip,
)
from pydantic_ai_proposer.proposal.patterns import analyze_task


class FixedRandom(random.Random):
    """Random source whose coin flips always return ``value``."""

    def __init__(self, value: float) -> None:
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


def _analysis(schema: TaskSchema) -> Analysis:
    examples = [
        TrainingExample(input={"text": "Is this good?"}, expected={"sentiment": "positive"})
    ]
    return analyze_task(schema, examples, window=10)


def _inputs(schema: TaskSchema, **overrides) -> ContextInputs:
    values = {
        "analysis": _analysis(schema),
        "dataset_summary": "Short reviews.",
        "program_source": "Program: Classifier\nSource: app.py:10",
        "few_shot_examples": (
            FewShotExample(input={"text": "Great!"}, output={"sentiment": "positive"}),
        ),
        "current_instruction": "Classify the text.",
        "trial_logs": {
            0: TrialLogEntry(instruction="Old A", score=0.5),
            1: TrialLogEntry(instruction="Old B", score=0.9),
        },
    }
    values.update(overrides)
    return ContextInputs(**values)


def test_sections_render_in_order(schema: TaskSchema, rng: random.Random) -> None:
    config = ProposerConfig(use_tip=False)

    context = build_generation_context(_inputs(schema), config=config, rng=rng)

    assert context == snapshot("""\
Dataset Summary: Short reviews.

Program Source:
Program: Classifier
Source: app.py:10

Task: Classify sentiment

Input fields: text (str)

Output fields: sentiment (Literal['positive', 'negative', 'neutral']) [values: positive, negative, neutral]

Task Demos:
Inputs: text: 'Great!' | Expected: sentiment: 'positive'

Task themes: question_answering

Current instruction: "Classify the text."

Previous instructions:
Old A | Score: 0.5000
Old B | Score: 0.9000\
""")


def test_disabled_toggles_drop_only_their_sections(
    schema: TaskSchema, rng: random.Random
) -> None:
    config = ProposerConfig(
        use_dataset_summary=False,
        use_program_aware=False,
        use_task_demos=False,
        use_tip=False,
        use_instruction_history=False,
    )

    context = build_generation_context(_inputs(schema), config=config, rng=rng)

    assert context.split("\n\n") == [
        "Task: Classify sentiment",
        "Input fields: text (str)",
        "Output fields: sentiment (Literal['positive', 'negative', 'neutral']) "
        "[values: positive, negative, neutral]",
        "Task themes: question_answering",
        'Current instruction: "Classify the text."',
    ]


def test_empty_sections_are_omitted(schema: TaskSchema, rng: random.Random) -> None:
    inputs = _inputs(
        schema,
        dataset_summary=None,
        program_source="",
        few_shot_examples=(),
        current_instruction=None,
        trial_logs=None,
    )

    context = build_generation_context(
        inputs, config=ProposerConfig(use_tip=False), rng=rng
    )

    assert "Dataset Summary" not in context
    assert "Program Source" not in context
    assert "Task Demos" not in context
    assert "Current instruction" not in context
    assert "Previous instructions" not in context


def test_random_tip_is_drawn_from_rng(schema: TaskSchema) -> None:
    expected_tip = TIPS[random.Random(3).choice(list(TIPS))]

    context = build_generation_context(
        _inputs(schema), config=ProposerConfig(), rng=random.Random(3)
    )

    assert f"Tip: {expected_tip}" in context
    assert context.index("Tip:") < context.index("Previous instructions:")


def test_no_tip_without_random_selection(schema: TaskSchema, rng: random.Random) -> None:
    config = ProposerConfig(use_tip=True, set_tip_randomly=False)

    context = build_generation_context(_inputs(schema), config=config, rng=rng)

    assert select_tip(config, rng) is None
    assert "Tip:" not in context
    assert not any(tip in context for tip in TIPS.values())


def test_demos_are_limited(schema: TaskSchema, rng: random.Random) -> None:
    demos = tuple(
        FewShotExample(input={"text": f"demo {idx}"}, output={"sentiment": "neutral"})
        for idx in range(3)
    )
    inputs = _inputs(schema, few_shot_examples=demos)

    limited = build_generation_context(
        inputs, config=ProposerConfig(use_tip=False, num_demos_in_context=2), rng=rng
    )
    none = build_generation_context(
        inputs, config=ProposerConfig(use_tip=False, num_demos_in_context=0), rng=rng
    )

    assert "demo 1" in limited
    assert "demo 2" not in limited
    assert "Task Demos" not in none


def test_random_history_follows_the_coin_flip(schema: TaskSchema) -> None:
    config = ProposerConfig(use_tip=False, set_history_randomly=True)

    included = build_generation_context(_inputs(schema), config=config, rng=FixedRandom(0.1))
    skipped = build_generation_context(_inputs(schema), config=config, rng=FixedRandom(0.9))

    assert "Previous instructions:" in included
    assert "Previous instructions:" not in skipped


def test_history_keeps_top_five_best_last() -> None:
    trial_logs = {
        index: {"instruction": f"Instruction {index}", "score": score}
        for index, score in enumerate([0.1, 0.7, 0.3, 0.9, 0.5, 0.2, 0.8])
    }

    summary = build_instruction_history_summary(trial_logs)

    assert summary.splitlines() == [
        "Instruction 2 | Score: 0.3000",
        "Instruction 4 | Score: 0.5000",
        "Instruction 1 | Score: 0.7000",
        "Instruction 6 | Score: 0.8000",
        "Instruction 3 | Score: 0.9000",
    ]


def test_history_averages_repeats_and_skips_unscored() -> None:
    trial_logs = {
        0: {"instruction": "Repeat", "score": 0.4},
        1: {"instruction": "Repeat", "score": 0.8},
        2: {"instruction": "Unscored", "score": "n/a"},
        3: {"instruction": "Flagged", "score": True},
        4: {"score": 0.9},
    }

    assert build_instruction_history_summary(trial_logs) == "Repeat | Score: 0.6000"


def test_history_prefers_predictor_specific_instructions() -> None:
    trial_logs = {
        0: TrialLogEntry(instructions={0: "First", 1: "Second"}, score=0.5),
        1: TrialLogEntry(instructions={"default": "Shared"}, score=0.25),
    }

    assert build_instruction_history_summary(trial_logs, predictor_index=1) == (
        "Shared | Score: 0.2500\nSecond | Score: 0.5000"
    )


def test_history_is_empty_without_logs() -> None:
    assert build_instruction_history_summary(None) == ""
    assert build_instruction_history_summary({}) == ""
    assert build_instruction_history_summary({0: {"instruction": "x"}}) == ""


def test_history_reads_positional_instructions() -> None:
    trial_logs = {
        0: {"instructions": ["Classify carefully.", "Explain the label."], "score": 0.9},
        1: {"instructions": ["Label the review."], "score": 0.5},
    }

    assert build_instruction_history_summary(trial_logs, predictor_index=0) == (
        "Label the review. | Score: 0.5000\nClassify carefully. | Score: 0.9000"
    )
    assert build_instruction_history_summary(trial_logs, predictor_index=1) == (
        "Explain the label. | Score: 0.9000"
    )
    assert build_instruction_history_summary(trial_logs, predictor_index=2) == ""
