from typing import Dict, Any, List, Protocol, Sequence
import structlog
from langchain_core.tools import BaseTool, StructuredTool

from agent_engine.infrastructure.observability.logging import agent_logger

logger = structlog.get_logger(__name__)


class ToolObserver(Protocol):
    """Sink notified around every tool execution"""

    def on_tool_start(self, tool_name: str, tool_input: Dict[str, Any]) -> None: ...

    def on_tool_end(self, tool_name: str, result: Any) -> None: ...

    def on_tool_error(self, tool_name: str, error: BaseException) -> None: ...


class StructlogToolObserver:
    """Reports tool executions to the structured log"""

    def on_tool_start(self, tool_name: str, tool_input: Dict[str, Any]) -> None:
        logger.info("Tool call", tool_name=tool_name, input=tool_input)

    def on_tool_end(self, tool_name: str, result: Any) -> None:
        agent_logger.log_tool_execution(tool_name, output_data=result)

    def on_tool_error(self, tool_name: str, error: BaseException) -> None:
        agent_logger.log_tool_execution(tool_name, success=False, error=str(error))


class CompositeToolObserver:
    """Fans tool notifications out to several observers"""

    def __init__(self, observers: Sequence[ToolObserver]):
        self.observers: List[ToolObserver] = list(observers)

    def on_tool_start(self, tool_name: str, tool_input: Dict[str, Any]) -> None:
        for observer in self.observers:
            observer.on_tool_start(tool_name, tool_input)

    def on_tool_end(self, tool_name: str, result: Any) -> None:
        for observer in self.observers:
            observer.on_tool_end(tool_name, result)

    def on_tool_error(self, tool_name: str, error: BaseException) -> None:
        for observer in self.observers:
            observer.on_tool_error(tool_name, error)


def observe_tool(tool: StructuredTool, observer: ToolObserver) -> StructuredTool:
    """Wrap a tool so each execution is reported before and after it runs

    The wrapped tool returns the same result and raises the same error as the
    original one.
    """

    if tool.coroutine is None:
        return tool

    name = tool.name
    execute = tool.coroutine

    async def _observed(**kwargs: Any) -> Any:
        observer.on_tool_start(name, kwargs)
        try:
            result = await execute(**kwargs)
        except Exception as e:
            observer.on_tool_error(name, e)
            raise
        observer.on_tool_end(name, result)
        return result

    return StructuredTool.from_function(
        coroutine=_observed,
        name=name,
        description=tool.description,
        args_schema=tool.args_schema,
    )


def observe_tools(tools: Dict[str, BaseTool], observer: ToolObserver) -> Dict[str, BaseTool]:
    """Wrap every structured tool of a capability set"""

    return {
        name: observe_tool(tool, observer) if isinstance(tool, StructuredTool) else tool
        for name, tool in tools.items()
    }
