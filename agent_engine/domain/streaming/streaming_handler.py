from typing import Dict, Any, List
import structlog
from langchain_core.messages import AIMessage, BaseMessage, ToolMessage

from agent_engine.domain.models.agent_state import message_text
from .events import (
    GenerationEvent, TextDeltaEvent, ToolCallEvent, ToolResultEvent, FinishStepEvent
)

logger = structlog.get_logger(__name__)

# Separates parent and nested graph namespaces in stream metadata
NS_SEP = "|"


class StreamingHandler:
    """Turns generation graph updates into typed events for one call"""

    def __init__(self):
        self.step = 0

    def handle_update(self, update: Dict[str, Any]) -> List[GenerationEvent]:
        """Events for one graph update, in the order they happened"""

        events: List[GenerationEvent] = []
        for node_id, node_data in update.items():
            events.extend(self._process_node_update(node_id, node_data or {}))
        return events

    def handle_message_chunk(self, message: BaseMessage, metadata: Dict[str, Any]) -> List[GenerationEvent]:
        """Text delta for one chunk of the step in progress

        Only the model replies of this graph count; tool messages and the
        output of nested agents started by a tool are skipped.
        """

        if metadata.get("langgraph_node") != "agent" or NS_SEP in metadata.get("langgraph_checkpoint_ns", ""):
            return []
        if not isinstance(message, AIMessage):
            return []

        text = message_text(message)
        if not text:
            return []
        return [TextDeltaEvent(step=self.step + 1, text=text)]

    def _process_node_update(self, node_id: str, node_data: Dict[str, Any]) -> List[GenerationEvent]:
        logger.debug("Processing node update", node_id=node_id, step=self.step)

        if node_id == "agent":
            return self._handle_agent_step(node_data)
        elif node_id == "tools":
            return self._handle_tool_execution(node_data)
        return []

    def _handle_agent_step(self, data: Dict[str, Any]) -> List[GenerationEvent]:
        self.step = data.get("steps", self.step + 1)
        events: List[GenerationEvent] = []

        for message in data.get("messages", []):
            if not isinstance(message, AIMessage):
                continue
            for call in message.tool_calls:
                events.append(ToolCallEvent(
                    step=self.step,
                    tool_call_id=call.get("id"),
                    tool_name=call["name"],
                    input=call.get("args", {})
                ))
            events.append(FinishStepEvent(
                step=self.step,
                finish_reason="tool-calls" if message.tool_calls else "stop"
            ))
        return events

    def _handle_tool_execution(self, data: Dict[str, Any]) -> List[GenerationEvent]:
        events: List[GenerationEvent] = []
        for message in data.get("messages", []):
            if not isinstance(message, ToolMessage):
                continue
            events.append(ToolResultEvent(
                step=self.step,
                tool_call_id=message.tool_call_id,
                tool_name=message.name,
                output=message.content,
                is_error=getattr(message, "status", "success") == "error"
            ))
        return events
