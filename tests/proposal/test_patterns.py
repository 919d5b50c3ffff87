from __future__ import annotations

from typing import Literal

import pytest

from pydantic_ai_proposer import FewShotExample, SchemaField, TaskSchema, TrainingExample
from pydantic_ai_proposer.proposal.patterns import (
    THEME_RULES,
    analyze_example_patterns,
    analyze_few_shot_patterns,
    analyze_input_patterns,
    analyze_task,
    assess_example_variety,
    detect_themes,
)


def _example(**inputs: object) -> TrainingExample:
    return TrainingExample(input=inputs, expected={"label": "x"})


def test_average_input_length_and_keywords() -> None:
    examples = [_example(text="I love it"), _example(text="Bad!")]

    patterns = analyze_input_patterns(examples)

    assert patterns.avg_input_length == pytest.approx(6.5)
    assert patterns.frequent_keywords == {"love": 1}
    assert patterns.input_types == {"text": {"str": 2}}


def test_keyword_ties_keep_first_seen_order() -> None:
    examples = [
        _example(text="zebra apple mango"),
        _example(text="mango zebra apple"),
        _example(text="kiwi"),
    ]

    patterns = analyze_input_patterns(examples)

    assert list(patterns.frequent_keywords) == ["zebra", "apple", "mango", "kiwi"]
    assert patterns.frequent_keywords["zebra"] == 2


def test_keywords_are_capped() -> None:
    words = " ".join(f"word{idx:02d}" for idx in range(15))

    patterns = analyze_input_patterns([_example(text=words)])

    assert len(patterns.frequent_keywords) == 10


def test_non_string_inputs_are_tallied_but_not_measured() -> None:
    examples = [_example(text="abcd", count=3), _example(text="efgh", count=None)]

    patterns = analyze_input_patterns(examples)

    assert patterns.avg_input_length == 4.0
    assert patterns.input_types == {"text": {"str": 2}, "count": {"int": 1}}


def test_example_patterns_use_the_analysis_window() -> None:
    examples = [_example(text=f"sample {idx}?") for idx in range(12)]

    patterns = analyze_example_patterns(examples, window=10)

    assert patterns.total_examples == 12
    assert patterns.analyzed_examples == 10
    assert patterns.common_themes == ("question_answering",)


def test_theme_rules_are_ordered_and_not_exclusive() -> None:
    assert [rule.name for rule in THEME_RULES] == [
        "question_answering",
        "classification",
        "mathematical_reasoning",
        "analytical_reasoning",
    ]

    themes = detect_themes(
        [
            _example(text="Please explain the result"),
            _example(text="What is 12 + 30?"),
            _example(text="Classify this item"),
        ]
    )

    assert themes == (
        "question_answering",
        "classification",
        "mathematical_reasoning",
        "analytical_reasoning",
    )


def test_theme_keywords_match_whole_words() -> None:
    assert detect_themes([_example(text="typewriters and reasonable prices")]) == ()


def test_malformed_examples_are_skipped() -> None:
    malformed = TrainingExample(input="not a mapping", expected=None)  # type: ignore[arg-type]
    examples = [malformed, _example(text="Is this okay?")]

    patterns = analyze_example_patterns(examples, window=10)

    assert patterns.total_examples == 2
    assert patterns.input_patterns.avg_input_length == len("Is this okay?")
    assert patterns.common_themes == ("question_answering",)


def test_analysis_requires_reasoning_from_inputs() -> None:
    schema = TaskSchema(
        description="Answer questions",
        input_fields=(SchemaField("question", str),),
        output_fields=(SchemaField("answer", str),),
    )
    examples = [
        TrainingExample(
            input={"question": "Why does this happen and how do we explain it?"},
            expected={"answer": "Because."},
        )
    ]

    analysis = analyze_task(schema, examples, window=10)

    assert analysis.requires_reasoning
    assert analysis.common_themes == ("question_answering", "analytical_reasoning")
    assert analysis.complexity_indicators.has_complex_outputs is False
    assert analysis.few_shot_patterns is None


def test_analysis_requires_reasoning_from_output_field_names() -> None:
    schema = TaskSchema(
        description="Label",
        input_fields=(SchemaField("text", str),),
        output_fields=(SchemaField("rationale", str), SchemaField("label", str)),
    )

    analysis = analyze_task(schema, [_example(text="plain")], window=10)

    assert analysis.requires_reasoning


def test_enum_and_collection_outputs_are_complex() -> None:
    schema = TaskSchema(
        description="Tag",
        input_fields=(SchemaField("text", str),),
        output_fields=(SchemaField("label", Literal["a", "b"]),),
    )

    analysis = analyze_task(schema, [], window=10)

    assert analysis.complexity_indicators.has_complex_outputs
    assert analysis.complexity_indicators.num_input_fields == 1
    assert analysis.complexity_indicators.num_output_fields == 1
    assert analysis.example_patterns.total_examples == 0


def test_few_shot_patterns() -> None:
    demos = [
        FewShotExample(input={"text": "a"}, output={"label": "x"}),
        FewShotExample(input={"text": "b"}, output={"label": "y"}, reasoning="Because"),
        FewShotExample(input={"text": "c"}, output={"label": "z"}),
    ]

    patterns = analyze_few_shot_patterns(demos)

    assert patterns.num_examples == 3
    assert patterns.demonstrates_reasoning
    assert patterns.example_variety == "high"


def test_reasoning_output_keys_demonstrate_reasoning() -> None:
    demos = [FewShotExample(input={"text": "a"}, output={"explanation": "..."})]

    assert analyze_few_shot_patterns(demos).demonstrates_reasoning


@pytest.mark.parametrize(
    ("texts", "expected"),
    [
        (["a", "b"], "low"),
        (["a", "b", "c", "d", "e"], "high"),
        (["a", "a", "b", "c"], "medium"),
        (["a", "a", "a", "a", "b"], "low"),
    ],
)
def test_example_variety(texts: list[str], expected: str) -> None:
    demos = [FewShotExample(input={"text": text}) for text in texts]

    assert assess_example_variety(demos) == expected


def test_average_over_short_and_long_inputs() -> None:
    patterns = analyze_input_patterns([_example(text="hi"), _example(text="hello world")])

    assert patterns.avg_input_length == 6.5
    assert patterns.frequent_keywords == {"hello": 1, "world": 1}
