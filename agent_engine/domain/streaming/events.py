from typing import Dict, Any, Optional, Literal, Union
from pydantic import BaseModel, Field
from datetime import datetime, timezone
from enum import Enum


class GenerationEventType(str, Enum):
    """Streamed generation event types"""
    TEXT_DELTA = "text-delta"
    TOOL_CALL = "tool-call"
    TOOL_RESULT = "tool-result"
    FINISH_STEP = "finish-step"


class BaseGenerationEvent(BaseModel):
    """Base model for all streamed events"""
    type: GenerationEventType
    step: int = Field(0, description="Model step the event belongs to, starting at 1")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class TextDeltaEvent(BaseGenerationEvent):
    """Text produced by the model"""
    type: Literal[GenerationEventType.TEXT_DELTA] = GenerationEventType.TEXT_DELTA
    text: str


class ToolCallEvent(BaseGenerationEvent):
    """The model asked for a tool"""
    type: Literal[GenerationEventType.TOOL_CALL] = GenerationEventType.TOOL_CALL
    tool_call_id: Optional[str] = None
    tool_name: str
    input: Dict[str, Any] = Field(default_factory=dict)


class ToolResultEvent(BaseGenerationEvent):
    """A tool finished"""
    type: Literal[GenerationEventType.TOOL_RESULT] = GenerationEventType.TOOL_RESULT
    tool_call_id: Optional[str] = None
    tool_name: Optional[str] = None
    output: Any = None
    is_error: bool = False


class FinishStepEvent(BaseGenerationEvent):
    """A model step ended"""
    type: Literal[GenerationEventType.FINISH_STEP] = GenerationEventType.FINISH_STEP
    finish_reason: Literal["tool-calls", "stop"] = "stop"


GenerationEvent = Union[TextDeltaEvent, ToolCallEvent, ToolResultEvent, FinishStepEvent]
