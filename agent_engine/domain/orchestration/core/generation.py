from typing import TypedDict, Annotated, AsyncIterator, Callable, Dict, List, Literal, NamedTuple, Optional, Union
import operator
from langgraph.graph import StateGraph, END
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, SystemMessage, ToolMessage
from langchain_core.runnables import RunnableConfig
from langchain_core.tools import BaseTool
import structlog

from agent_engine.config import DEFAULT_MAX_STEPS
from agent_engine.domain.models.agent_state import ToolChoice
from agent_engine.domain.streaming.events import GenerationEvent
from agent_engine.domain.streaming.streaming_handler import StreamingHandler

logger = structlog.get_logger(__name__)


class GenerationState(TypedDict):
    """State for the generation graph"""
    messages: Annotated[List[BaseMessage], operator.add]
    steps: int


class GenerationCompleted(NamedTuple):
    """Last item of a streamed call: the messages the model produced"""
    messages: List[BaseMessage]


class GenerationCall:
    """One bounded agent/tools loop with a fixed tool set and directive"""

    def __init__(
        self,
        chat_model: BaseChatModel,
        tools: Dict[str, BaseTool],
        system_prompt: Callable[[], str],
        tool_choice: Optional[ToolChoice] = None,
        max_steps: int = DEFAULT_MAX_STEPS
    ):
        self.chat_model = chat_model
        self.tools = tools
        self.system_prompt = system_prompt
        self.tool_choice = tool_choice
        self.max_steps = max_steps
        self.workflow = self._create_workflow()

    def _create_workflow(self):
        workflow = StateGraph(GenerationState)

        workflow.add_node("agent", self.agent_node)
        workflow.add_node("tools", self.tool_execution_node)

        workflow.set_entry_point("agent")

        workflow.add_conditional_edges(
            "agent",
            self.route_after_agent,
            {
                "tools": "tools",
                "end": END
            }
        )
        workflow.add_conditional_edges(
            "tools",
            self.route_after_tools,
            {
                "agent": "agent",
                "end": END
            }
        )

        return workflow.compile()

    @property
    def recursion_limit(self) -> int:
        # Each round is one agent superstep plus one tools superstep
        return self.max_steps * 2 + 2

    def _bound_model(self):
        if not self.tools:
            return self.chat_model
        if self.tool_choice is None:
            return self.chat_model.bind_tools(list(self.tools.values()))
        return self.chat_model.bind_tools(list(self.tools.values()), tool_choice=self.tool_choice)

    async def agent_node(self, state: GenerationState, config: RunnableConfig) -> Dict[str, object]:
        """Run one model step with a freshly composed system prompt

        ``config`` carries the graph callbacks, so a streamed run receives the
        reply chunk by chunk.
        """

        step = state["steps"] + 1
        logger.debug("Model step", step=step, tool_choice=self.tool_choice)

        system = SystemMessage(content=self.system_prompt())
        reply = await self._bound_model().ainvoke([system, *state["messages"]], config)

        return {"messages": [reply], "steps": step}

    async def tool_execution_node(self, state: GenerationState) -> Dict[str, object]:
        """Execute the tool calls of the last model step, one after another"""

        last_message = state["messages"][-1]
        results: List[BaseMessage] = []

        for call in last_message.tool_calls:
            tool = self.tools.get(call["name"])
            if tool is None:
                logger.warning("Model requested unknown tool", tool_name=call["name"])
                results.append(ToolMessage(
                    content=f"Error: {call['name']} is not a valid tool, try one of [{', '.join(self.tools)}].",
                    tool_call_id=call["id"],
                    name=call["name"],
                    status="error"
                ))
                continue

            result = await tool.ainvoke({
                "type": "tool_call",
                "name": call["name"],
                "args": call["args"],
                "id": call["id"],
            })
            results.append(result)

        return {"messages": results}

    def route_after_agent(self, state: GenerationState) -> Literal["tools", "end"]:
        last_message = state["messages"][-1]
        if isinstance(last_message, AIMessage) and last_message.tool_calls:
            return "tools"
        return "end"

    def route_after_tools(self, state: GenerationState) -> Literal["agent", "end"]:
        if state["steps"] >= self.max_steps:
            logger.info("Step bound reached", max_steps=self.max_steps)
            return "end"
        return "agent"


class GenerationDriver:
    """Runs generation calls against one chat model, blocking or streamed"""

    def __init__(self, chat_model: BaseChatModel, max_steps: int = DEFAULT_MAX_STEPS):
        self.chat_model = chat_model
        self.max_steps = max_steps

    def _create_call(
        self,
        tools: Dict[str, BaseTool],
        system_prompt: Callable[[], str],
        tool_choice: Optional[ToolChoice]
    ) -> GenerationCall:
        return GenerationCall(
            self.chat_model,
            tools,
            system_prompt,
            tool_choice=tool_choice,
            max_steps=self.max_steps
        )

    async def run(
        self,
        history: List[BaseMessage],
        tools: Dict[str, BaseTool],
        system_prompt: Callable[[], str],
        tool_choice: Optional[ToolChoice] = None
    ) -> List[BaseMessage]:
        """Run the loop to completion and return the produced messages"""

        call = self._create_call(tools, system_prompt, tool_choice)
        final_state = await call.workflow.ainvoke(
            {"messages": list(history), "steps": 0},
            config={"recursion_limit": call.recursion_limit}
        )
        return final_state["messages"][len(history):]

    async def stream(
        self,
        history: List[BaseMessage],
        tools: Dict[str, BaseTool],
        system_prompt: Callable[[], str],
        tool_choice: Optional[ToolChoice] = None
    ) -> AsyncIterator[Union[GenerationEvent, GenerationCompleted]]:
        """Yield events as the model and tools produce them, then a ``GenerationCompleted``

        Text is relayed chunk by chunk; tool calls, tool results and step ends
        follow once their node finishes.
        """

        call = self._create_call(tools, system_prompt, tool_choice)
        handler = StreamingHandler()
        produced: List[BaseMessage] = []

        async for mode, chunk in call.workflow.astream(
            {"messages": list(history), "steps": 0},
            config={"recursion_limit": call.recursion_limit},
            stream_mode=["messages", "updates"]
        ):
            if mode == "messages":
                message, metadata = chunk
                for event in handler.handle_message_chunk(message, metadata):
                    yield event
                continue

            for node_data in chunk.values():
                produced.extend((node_data or {}).get("messages", []))
            for event in handler.handle_update(chunk):
                yield event

        yield GenerationCompleted(messages=produced)
