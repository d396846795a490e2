from typing import Dict, List, Iterable, Optional
import structlog
from langchain_core.tools import BaseTool

from agent_engine.domain.models.agent_state import AgentAction, EnabledSkills, Skill, ToolContext
from agent_engine.domain.orchestration.subagent.base_subagent import SubagentRunner
from agent_engine.infrastructure.http.fetcher import AuthFetcher
from .tool_executor import ToolObserver, observe_tools
from .tools.contact import get_contact_tools
from .tools.memory import get_memory_tools
from .tools.message import get_message_tools
from .tools.schedule import get_schedule_tools
from .tools.skill import get_skill_tools
from .tools.subagent import get_subagent_tools
from .tools.web import BraveSearchClient, get_web_tools

logger = structlog.get_logger(__name__)


class CapabilityRegistry:
    """Builds the tool set exposed to the model

    The registry only holds collaborators; every call to ``assemble`` builds a
    new tool set from the arguments it is given, so the result always reflects
    the current permissions and enabled skills.
    """

    def __init__(
        self,
        fetcher: AuthFetcher,
        observer: ToolObserver,
        search_client: Optional[BraveSearchClient] = None,
        subagent_runner: Optional[SubagentRunner] = None
    ):
        self.fetcher = fetcher
        self.observer = observer
        self.search_client = search_client
        self.subagent_runner = subagent_runner

    def assemble(
        self,
        allowed: Iterable[AgentAction],
        skills: List[Skill],
        enabled_skills: EnabledSkills,
        tool_context: Optional[ToolContext] = None
    ) -> Dict[str, BaseTool]:
        """Build the tools for every allowed category"""

        allowed = set(allowed)
        tools: Dict[str, BaseTool] = {}

        if AgentAction.SKILL in allowed:
            def use_skill(skill: Skill) -> None:
                if enabled_skills.enable(skill):
                    logger.info("Skill enabled", skill=skill.name)

            tools.update(get_skill_tools(skills, use_skill))

        if AgentAction.SCHEDULE in allowed:
            tools.update(get_schedule_tools(self.fetcher, tool_context))

        # Web search needs a search API key on top of the permission
        if AgentAction.WEB_SEARCH in allowed and self.search_client is not None:
            tools.update(get_web_tools(self.search_client))

        if AgentAction.SUBAGENT in allowed and self.subagent_runner is not None:
            tools.update(get_subagent_tools(self.subagent_runner))

        if AgentAction.MEMORY in allowed:
            tools.update(get_memory_tools(self.fetcher, tool_context))

        if AgentAction.MESSAGE in allowed:
            tools.update(get_message_tools(self.fetcher, tool_context))

        if AgentAction.CONTACT in allowed:
            tools.update(get_contact_tools(self.fetcher, tool_context))

        return observe_tools(tools, self.observer)
