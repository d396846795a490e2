from typing import Callable, Optional, Protocol

from agent_engine.config import AgentSettings
from agent_engine.domain.models.agent_state import AgentAction, AgentInput, AgentResult


class SubagentEngine(Protocol):
    async def ask_as_subagent(
        self,
        input: AgentInput,
        name: str,
        description: Optional[str] = None
    ) -> AgentResult: ...


class SubagentRunner:
    """Runs delegated tasks on a fresh agent built from the parent's settings

    The delegate reuses the parent's model and credentials but may not delegate
    again, and never inherits a forced tool choice.
    """

    def __init__(self, settings: AgentSettings, agent_factory: Callable[[AgentSettings], SubagentEngine]):
        self.settings = settings
        self.agent_factory = agent_factory

    def subagent_settings(self) -> AgentSettings:
        allowed = [action for action in self.settings.allowed if action != AgentAction.SUBAGENT]
        return self.settings.model_copy(update={"allowed": allowed, "tool_choice": None})

    async def run(self, name: str, description: Optional[str], task: str) -> AgentResult:
        """Run one task as the named subagent and return its turn result"""

        engine = self.agent_factory(self.subagent_settings())
        return await engine.ask_as_subagent(AgentInput(query=task), name=name, description=description)
