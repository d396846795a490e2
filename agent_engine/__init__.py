from agent_engine.config import AgentSettings
from agent_engine.domain.models.agent_state import (
    AgentAction, AgentInput, AgentResult, ScheduleDescriptor, Skill,
    SubagentHistoryPolicy, ToolContext
)
from agent_engine.domain.orchestration.core.main_agent import Agent, AgentStream
from agent_engine.infrastructure.observability.logging import setup_logging

__all__ = [
    "Agent",
    "AgentAction",
    "AgentInput",
    "AgentResult",
    "AgentSettings",
    "AgentStream",
    "ScheduleDescriptor",
    "Skill",
    "SubagentHistoryPolicy",
    "ToolContext",
    "setup_logging",
]
