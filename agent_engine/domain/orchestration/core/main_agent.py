from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Union
from datetime import datetime, timezone
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage
from langchain_core.tools import BaseTool
import structlog

from agent_engine.config import AgentSettings
from agent_engine.domain.context.conversation_store import ConversationStore
from agent_engine.domain.models.agent_state import (
    AgentInput, AgentResult, EnabledSkills, ScheduleDescriptor,
    SubagentHistoryPolicy, ToolChoice
)
from agent_engine.domain.orchestration.core.fallback import ToolChoiceFallback
from agent_engine.domain.orchestration.core.generation import GenerationCompleted, GenerationDriver
from agent_engine.domain.orchestration.subagent.base_subagent import SubagentRunner
from agent_engine.domain.prompts import (
    compose_system_prompt, compose_subagent_prompt, render_schedule_prompt
)
from agent_engine.domain.streaming.events import GenerationEvent
from agent_engine.domain.tool.tool_executor import CompositeToolObserver, StructlogToolObserver, ToolObserver
from agent_engine.domain.tool.tool_registry import CapabilityRegistry
from agent_engine.domain.tool.tools.web import BraveSearchClient
from agent_engine.infrastructure.http.fetcher import AuthFetcher
from agent_engine.infrastructure.llm.gateway import create_chat_model
from agent_engine.infrastructure.observability.langfuse_tracing import LangfuseToolObserver
from agent_engine.infrastructure.observability.logging import agent_logger

logger = structlog.get_logger(__name__)

OnFinish = Callable[[List[BaseMessage]], Awaitable[None]]


class AgentStream:
    """Single-pass stream of generation events for one turn

    Iterate it to receive events; once it is exhausted ``result`` holds the
    turn result. Stopping early leaves the turn unfinished and ``result``
    unset.
    """

    def __init__(self, items: AsyncIterator[Union[GenerationEvent, AgentResult]]):
        self._items = items
        self._started = False
        self._result: Optional[AgentResult] = None

    def __aiter__(self) -> AsyncIterator[GenerationEvent]:
        if self._started:
            raise RuntimeError("AgentStream can only be consumed once")
        self._started = True
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[GenerationEvent]:
        async for item in self._items:
            if isinstance(item, AgentResult):
                self._result = item
                continue
            yield item

    @property
    def done(self) -> bool:
        return self._result is not None

    @property
    def result(self) -> AgentResult:
        if self._result is None:
            raise RuntimeError("AgentStream has not been consumed to the end")
        return self._result

    async def collect(self) -> AgentResult:
        """Drain the stream and return its result"""
        async for _ in self:
            pass
        return self.result

    async def aclose(self) -> None:
        await self._items.aclose()


class Agent:
    """Conversational agent that answers queries with a bounded tool loop

    One instance owns one conversation and one set of enabled skills; every
    entry point appends to them. The engine does no locking, so callers must
    await one entry point at a time per instance.
    """

    def __init__(
        self,
        settings: AgentSettings,
        chat_model: Optional[BaseChatModel] = None,
        fetcher: Optional[AuthFetcher] = None,
        observer: Optional[ToolObserver] = None,
        on_finish: Optional[OnFinish] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.settings = settings
        self.on_finish = on_finish
        self.clock = clock or (lambda: datetime.now(timezone.utc))

        self.chat_model = chat_model if chat_model is not None else create_chat_model(settings)

        self.fetcher = fetcher or AuthFetcher(
            settings.backend_base_url,
            token=settings.tool_context.session_token
        )
        self.observer = observer or self._create_observer(settings)

        self.store = ConversationStore()
        catalog = {skill.name: skill for skill in settings.skills}
        self.enabled_skills = EnabledSkills(
            catalog[name] for name in settings.use_skills if name in catalog
        )

        self.driver = GenerationDriver(self.chat_model, max_steps=settings.max_steps)
        self.registry = CapabilityRegistry(
            fetcher=self.fetcher,
            observer=self.observer,
            search_client=BraveSearchClient(settings.brave_api_key, settings.brave_base_url)
            if settings.brave_api_key else None,
            subagent_runner=SubagentRunner(settings, self._create_subagent_engine)
        )

    @staticmethod
    def _create_observer(settings: AgentSettings) -> ToolObserver:
        observers: List[ToolObserver] = [StructlogToolObserver()]
        if settings.langfuse_enabled:
            observers.append(LangfuseToolObserver(
                public_key=settings.langfuse_public_key,
                secret_key=settings.langfuse_secret_key,
                host=settings.langfuse_host
            ))
        return CompositeToolObserver(observers)

    def _create_subagent_engine(self, settings: AgentSettings) -> "Agent":
        return Agent(settings, chat_model=self.chat_model, fetcher=self.fetcher, observer=self.observer, clock=self.clock)

    # Call settings

    def get_tools(self) -> Dict[str, BaseTool]:
        """Tool set for a call, rebuilt from current permissions and skills"""

        return self.registry.assemble(
            allowed=self.settings.allowed,
            skills=self.settings.skills,
            enabled_skills=self.enabled_skills,
            tool_context=self.settings.tool_context
        )

    def get_system_prompt(self) -> str:
        return compose_system_prompt(
            date=self.clock(),
            locale=self.settings.locale,
            language=self.settings.language,
            max_context_load_time=self.settings.max_context_load_time,
            platforms=self.settings.platforms,
            current_platform=self.settings.current_platform or self.settings.tool_context.current_platform,
            skills=self.settings.skills,
            enabled_skills=self.enabled_skills.snapshot(),
            tool_context=self.settings.tool_context
        )

    def get_schedule_prompt(self, schedule: ScheduleDescriptor) -> str:
        return render_schedule_prompt(schedule, date=self.clock(), locale=self.settings.locale)

    def _log_context(self):
        return structlog.contextvars.bound_contextvars(
            session_id=self.settings.tool_context.session_id,
            bot_id=self.settings.tool_context.bot_id
        )

    def _fallback(self, tool_choice: Optional[ToolChoice]) -> ToolChoiceFallback:
        return ToolChoiceFallback(tool_choice, self.settings.tool_choice_rejection_signatures)

    # Turn lifecycle

    def _begin_turn(self, store: ConversationStore, input: AgentInput, content: str) -> HumanMessage:
        store.extend(input.messages)
        user = HumanMessage(content=content)
        store.append(user)
        return user

    async def _finish_turn(
        self,
        entry_point: str,
        store: ConversationStore,
        user: HumanMessage,
        produced: List[BaseMessage]
    ) -> AgentResult:
        store.extend(produced)
        result = AgentResult(messages=[user, *produced], skills=self.enabled_skills.names())

        agent_logger.log_turn_finished(
            entry_point,
            self.settings.tool_context.session_id,
            produced=len(produced),
            skills=result.skills
        )
        if self.on_finish is not None:
            await self.on_finish(result.messages)
        return result

    async def _generate(
        self,
        entry_point: str,
        store: ConversationStore,
        user: HumanMessage,
        system_prompt: Callable[[], str],
        tool_choice: Optional[ToolChoice] = None
    ) -> AgentResult:
        async def call(choice: Optional[ToolChoice]) -> List[BaseMessage]:
            tools = self.get_tools()
            agent_logger.log_turn_started(
                entry_point,
                self.settings.tool_context.session_id,
                history_length=len(store),
                tool_names=list(tools)
            )
            return await self.driver.run(store.snapshot(), tools, system_prompt, choice)

        with self._log_context():
            try:
                produced = await self._fallback(tool_choice).run(call)
            except Exception as e:
                logger.error("Agent turn failed", entry_point=entry_point, error=str(e))
                raise

            return await self._finish_turn(entry_point, store, user, produced)

    # Entry points

    async def ask(self, input: AgentInput) -> AgentResult:
        """Answer a query and return the turn's messages"""

        user = self._begin_turn(self.store, input, input.query)
        return await self._generate("ask", self.store, user, self.get_system_prompt, self.settings.tool_choice)

    def stream(self, input: AgentInput) -> AgentStream:
        """Answer a query, yielding events as each step finishes"""

        return AgentStream(self._stream_turn(input))

    async def _stream_turn(self, input: AgentInput) -> AsyncIterator[Union[GenerationEvent, AgentResult]]:
        user = self._begin_turn(self.store, input, input.query)

        def call(choice: Optional[ToolChoice]) -> AsyncIterator[Any]:
            tools = self.get_tools()
            agent_logger.log_turn_started(
                "stream",
                self.settings.tool_context.session_id,
                history_length=len(self.store),
                tool_names=list(tools)
            )
            return self.driver.stream(self.store.snapshot(), tools, self.get_system_prompt, choice)

        produced: List[BaseMessage] = []
        try:
            async for item in self._fallback(self.settings.tool_choice).stream(call):
                if isinstance(item, GenerationCompleted):
                    produced = item.messages
                    continue
                yield item
        except Exception as e:
            logger.error("Agent turn failed", entry_point="stream", session_id=self.settings.tool_context.session_id, error=str(e))
            raise

        yield await self._finish_turn("stream", self.store, user, produced)

    async def ask_as_subagent(
        self,
        input: AgentInput,
        name: str,
        description: Optional[str] = None
    ) -> AgentResult:
        """Answer a query as a named delegate with its own system prompt"""

        if self.settings.subagent_history_policy is SubagentHistoryPolicy.ISOLATED:
            store = ConversationStore()
        else:
            store = self.store

        def system_prompt() -> str:
            return compose_subagent_prompt(self.clock(), name=name, description=description)

        user = self._begin_turn(store, input, input.query)
        return await self._generate("subagent", store, user, system_prompt)

    async def trigger_schedule(self, input: AgentInput, schedule: ScheduleDescriptor) -> AgentResult:
        """Run a fired schedule as a synthetic user turn"""

        logger.info("Schedule triggered", schedule=schedule.name, pattern=schedule.pattern)
        user = self._begin_turn(self.store, input, self.get_schedule_prompt(schedule))
        return await self._generate("schedule", self.store, user, self.get_system_prompt)

    async def aclose(self) -> None:
        await self.fetcher.aclose()
