"""Shared fixtures: a scripted chat model and helpers to build agents around it."""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage
from langchain_core.outputs import ChatGeneration, ChatResult
from pydantic import Field

from agent_engine import Agent, AgentAction, AgentSettings, Skill, ToolContext
from agent_engine.infrastructure.http.fetcher import AuthFetcher


FIXED_NOW = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


class ScriptedChatModel(BaseChatModel):
    """Chat model stub that replays a script of replies.

    Each script entry is an ``AIMessage``, an exception to raise, or a callable
    ``(messages, tool_choice, index) -> AIMessage``. Once the script runs out the
    last entry is repeated.
    """

    script: List[Any] = Field(default_factory=list)
    calls: List[Dict[str, Any]] = Field(default_factory=list)

    @property
    def _llm_type(self) -> str:
        return "scripted"

    def bind_tools(self, tools, *, tool_choice=None, **kwargs):
        return self.bind(tool_names=[tool.name for tool in tools], tool_choice=tool_choice, **kwargs)

    def _next_reply(self, messages: List[BaseMessage], tool_names=None, tool_choice=None) -> AIMessage:
        index = len(self.calls)
        self.calls.append({
            "messages": list(messages),
            "tool_names": list(tool_names or []),
            "tool_choice": tool_choice,
        })
        entry = self.script[min(index, len(self.script) - 1)]
        if isinstance(entry, BaseException):
            raise entry
        if callable(entry):
            entry = entry(messages, tool_choice, index)
        return entry.model_copy()

    def _generate(self, messages, stop=None, run_manager=None, **kwargs):
        reply = self._next_reply(messages, kwargs.get("tool_names"), kwargs.get("tool_choice"))
        return ChatResult(generations=[ChatGeneration(message=reply)])

    async def _agenerate(self, messages, stop=None, run_manager=None, **kwargs):
        reply = self._next_reply(messages, kwargs.get("tool_names"), kwargs.get("tool_choice"))
        return ChatResult(generations=[ChatGeneration(message=reply)])


class RecordingObserver:
    """Tool observer that keeps every notification."""

    def __init__(self):
        self.events: List[tuple] = []

    def on_tool_start(self, tool_name, tool_input):
        self.events.append(("start", tool_name, dict(tool_input)))

    def on_tool_end(self, tool_name, result):
        self.events.append(("end", tool_name, result))

    def on_tool_error(self, tool_name, error):
        self.events.append(("error", tool_name, error))


def tool_call(name: str, args: Optional[Dict[str, Any]] = None, call_id: str = "call-1") -> AIMessage:
    return AIMessage(content="", tool_calls=[{"name": name, "args": args or {}, "id": call_id}])


def use_skill_call(skill_name: str = "cooking", call_id: str = "call-1") -> AIMessage:
    return tool_call("use_skill", {"skill_name": skill_name, "reason": "the user asked about food"}, call_id)


COOKING = Skill(name="cooking", description="Recipes and meal planning", content="Always list ingredients first.")
TRAVEL = Skill(name="travel", description="Trip planning", content="Ask for dates before booking.")


@pytest.fixture
def backend_requests() -> List[httpx.Request]:
    return []


@pytest.fixture
def backend_fetcher(backend_requests) -> AuthFetcher:
    def handler(request: httpx.Request) -> httpx.Response:
        backend_requests.append(request)
        if request.method == "GET" and request.url.path.endswith("/schedule"):
            return httpx.Response(200, json=[{"id": "sch-1", "name": "daily"}])
        return httpx.Response(200, json={"ok": True})

    return AuthFetcher("http://backend.test", token="session-token", transport=httpx.MockTransport(handler))


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def make_agent(backend_fetcher, observer) -> Callable[..., Agent]:
    def _make(script: List[Any], chat_model: Optional[BaseChatModel] = None, **overrides: Any) -> Agent:
        values: Dict[str, Any] = {
            "model": "scripted",
            "allowed": [AgentAction.SKILL],
            "skills": [COOKING, TRAVEL],
            "tool_context": ToolContext(bot_id="bot-1", session_id="session-1"),
        }
        values.update(overrides)
        return Agent(
            AgentSettings(**values),
            chat_model=chat_model if chat_model is not None else ScriptedChatModel(script=script),
            fetcher=backend_fetcher,
            observer=observer,
            clock=lambda: FIXED_NOW,
        )

    return _make
