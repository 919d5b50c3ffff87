"""Shared stubs and helpers for proposer tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Literal

from pydantic import BaseModel, Field
from pydantic_ai.messages import ModelMessage, ModelRequest, ModelResponse, ToolCallPart, UserPromptPart
from pydantic_ai.models.function import AgentInfo, FunctionModel

from pydantic_ai_proposer import SchemaField, TaskSchema, TrainingExample

__all__ = [
    "SentimentInput",
    "SentimentOutput",
    "make_examples",
    "output_fields",
    "prompt_text",
    "respond",
    "routing_model",
    "sentiment_schema",
]


class SentimentInput(BaseModel):
    """Classify sentiment"""

    text: str = Field(description="Text to classify")


class SentimentOutput(BaseModel):
    sentiment: Literal["positive", "negative", "neutral"]


def sentiment_schema() -> TaskSchema:
    return TaskSchema(
        description="Classify sentiment",
        input_fields=(SchemaField("text", str),),
        output_fields=(
            SchemaField("sentiment", Literal["positive", "negative", "neutral"]),
        ),
    )


def make_examples(size: int = 3, *, prefix: str = "example") -> list[TrainingExample]:
    return [
        TrainingExample(
            input={"text": f"{prefix} text number {idx}"},
            expected={"label": f"label-{idx}"},
        )
        for idx in range(size)
    ]


def prompt_text(messages: list[ModelMessage]) -> str:
    """Return the user prompt of the latest request."""
    for message in reversed(messages):
        if not isinstance(message, ModelRequest):
            continue
        for part in message.parts:
            if isinstance(part, UserPromptPart) and isinstance(part.content, str):
                return part.content
    return ""


def output_fields(agent_info: AgentInfo) -> set[str]:
    """Field names of the structured output the calling agent expects."""
    if not agent_info.output_tools:
        return set()
    schema = agent_info.output_tools[0].parameters_json_schema
    return set(schema.get("properties", {}))


def respond(agent_info: AgentInfo, **values: Any) -> ModelResponse:
    """Answer the calling agent with a structured output tool call."""
    tool = agent_info.output_tools[0]
    return ModelResponse(parts=[ToolCallPart(tool_name=tool.name, args=values)])


def routing_model(
    *,
    instruction: Callable[[str], str] | None = None,
    observations: Callable[[str], str] | None = None,
    summary: Callable[[str], str] | None = None,
) -> FunctionModel:
    """Build a model that answers each agent by its output fields.

    Each callback receives the prompt and returns the field value; a callback
    that raises makes the corresponding model call fail.
    """

    async def handler(messages: list[ModelMessage], agent_info: AgentInfo) -> ModelResponse:
        prompt = prompt_text(messages)
        fields = output_fields(agent_info)
        if "instruction" in fields:
            if instruction is None:
                raise RuntimeError("no instruction handler")
            return respond(agent_info, instruction=instruction(prompt))
        if "observations" in fields:
            if observations is None:
                raise RuntimeError("no observations handler")
            return respond(agent_info, observations=observations(prompt))
        if "summary" in fields:
            if summary is None:
                raise RuntimeError("no summary handler")
            return respond(agent_info, summary=summary(prompt))
        raise RuntimeError(f"unexpected output fields: {sorted(fields)}")

    return FunctionModel(function=handler)
