from typing import Any, AsyncIterator, Awaitable, Callable, Iterable, Optional, TypeVar
from enum import Enum
import structlog

from agent_engine.domain.models.agent_state import ToolChoice

logger = structlog.get_logger(__name__)

T = TypeVar("T")

AUTO = "auto"


class FallbackState(str, Enum):
    """Tool-choice directive in effect for a call"""
    DIRECT = "direct"
    RELAXED = "relaxed"


def _error_message(error: BaseException) -> str:
    return str(error) if str(error) else repr(error)


def is_tool_choice_rejection(error: BaseException, signatures: Iterable[str]) -> bool:
    """Whether an upstream failure says the endpoint refuses a forced tool choice

    Looks at the error's own message and at one level of wrapped cause.
    """

    signatures = [s for s in signatures if s]
    message = _error_message(error)
    if any(signature in message for signature in signatures):
        return True

    cause = error.__cause__ or error.__context__
    if cause is not None:
        cause_message = _error_message(cause)
        return any(signature in cause_message for signature in signatures)
    return False


class ToolChoiceFallback:
    """Single relaxed retry for one generation call

    Starts ``DIRECT`` when the caller forces a tool choice. If the call fails
    with a tool-choice rejection it moves to ``RELAXED`` and the whole call is
    issued again with ``"auto"``. That happens at most once; any other error,
    or a second failure, reaches the caller unchanged.
    """

    def __init__(self, tool_choice: Optional[ToolChoice], signatures: Iterable[str]):
        self.tool_choice = tool_choice
        self.signatures = list(signatures)
        self.state = FallbackState.DIRECT if tool_choice is not None else FallbackState.RELAXED

    @property
    def current_choice(self) -> Optional[ToolChoice]:
        if self.state is FallbackState.DIRECT:
            return self.tool_choice
        # Without a caller directive the model keeps its own default
        return AUTO if self.tool_choice is not None else None

    def should_relax(self, error: BaseException) -> bool:
        return self.state is FallbackState.DIRECT and is_tool_choice_rejection(error, self.signatures)

    def relax(self, error: BaseException) -> None:
        logger.warning(
            "Tool choice rejected, falling back to auto",
            tool_choice=self.tool_choice,
            error=str(error)
        )
        self.state = FallbackState.RELAXED

    async def run(self, call: Callable[[Optional[ToolChoice]], Awaitable[T]]) -> T:
        """Run a blocking call, retrying once with ``"auto"`` on rejection"""

        try:
            return await call(self.current_choice)
        except Exception as e:
            if not self.should_relax(e):
                raise
            self.relax(e)
        return await call(self.current_choice)

    async def stream(self, call: Callable[[Optional[ToolChoice]], AsyncIterator[Any]]) -> AsyncIterator[Any]:
        """Relay a streaming call, restarting it once with ``"auto"`` on rejection

        Items already delivered from the rejected attempt stay delivered; the
        relaxed attempt starts from scratch.
        """

        try:
            async for item in call(self.current_choice):
                yield item
            return
        except Exception as e:
            if not self.should_relax(e):
                raise
            self.relax(e)

        async for item in call(self.current_choice):
            yield item
