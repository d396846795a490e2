from typing import Dict, Any, List, Optional
import structlog
from langfuse import Langfuse

logger = structlog.get_logger(__name__)


class LangfuseToolObserver:
    """Traces every tool execution as a Langfuse span"""

    def __init__(
        self,
        client: Optional[Langfuse] = None,
        public_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        host: Optional[str] = None
    ):
        self.langfuse = client or Langfuse(
            public_key=public_key,
            secret_key=secret_key,
            host=host
        )
        # Open spans per tool name; tools of one step run one after another
        self._spans: Dict[str, List[Any]] = {}

    def on_tool_start(self, tool_name: str, tool_input: Dict[str, Any]) -> None:
        span = self.langfuse.start_span(
            name=f"tool:{tool_name}",
            input=tool_input,
            metadata={"tool_name": tool_name}
        )
        self._spans.setdefault(tool_name, []).append(span)

    def on_tool_end(self, tool_name: str, result: Any) -> None:
        span = self._pop_span(tool_name)
        if span is None:
            return
        span.update(output=result)
        span.end()

    def on_tool_error(self, tool_name: str, error: BaseException) -> None:
        span = self._pop_span(tool_name)
        if span is None:
            return
        span.update(level="ERROR", status_message=str(error))
        span.end()

    def _pop_span(self, tool_name: str) -> Optional[Any]:
        spans = self._spans.get(tool_name)
        if not spans:
            logger.warning("No open Langfuse span for tool", tool_name=tool_name)
            return None
        return spans.pop()
