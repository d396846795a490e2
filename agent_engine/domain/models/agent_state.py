from typing import Dict, Any, List, Optional, Iterable, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator
from enum import Enum
from langchain_core.messages import BaseMessage, convert_to_messages


ToolChoice = Union[str, Dict[str, Any]]


class AgentAction(str, Enum):
    """Tool categories an agent may be allowed to use"""
    WEB_SEARCH = "web_search"
    MESSAGE = "message"
    CONTACT = "contact"
    SUBAGENT = "subagent"
    SCHEDULE = "schedule"
    SKILL = "skill"
    MEMORY = "memory"


class SubagentHistoryPolicy(str, Enum):
    """Whether a delegated pass reads and appends to the parent's conversation"""
    SHARED = "shared"
    ISOLATED = "isolated"


class Skill(BaseModel):
    """A named unit of domain knowledge the agent can switch on"""
    name: str = Field(description="Unique skill name")
    description: str = Field("", description="Short summary shown in the skill catalog")
    content: str = Field("", description="Instructions injected into the system prompt once enabled")


class ToolContext(BaseModel):
    """Identity of the bot, session and contact a turn runs for"""
    bot_id: Optional[str] = None
    session_id: Optional[str] = None
    current_platform: Optional[str] = None
    reply_target: Optional[str] = None
    session_token: Optional[str] = None
    contact_id: Optional[str] = None
    contact_name: Optional[str] = None
    contact_alias: Optional[str] = None
    user_id: Optional[str] = None


class ScheduleDescriptor(BaseModel):
    """A fired schedule, as handed over by the scheduler"""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    name: str
    description: str = ""
    pattern: str = Field(description="Cron pattern")
    command: str = Field(description="Natural-language command to run when fired")
    max_calls: Optional[int] = Field(None, alias="maxCalls", description="Remaining call budget, None for unlimited")


class AgentInput(BaseModel):
    """Prior messages plus the new query for one turn"""
    messages: List[Any] = Field(default_factory=list)
    query: str = ""

    @field_validator("messages", mode="before")
    @classmethod
    def _coerce_messages(cls, value: Any) -> List[BaseMessage]:
        if not value:
            return []
        return convert_to_messages(value)


class AgentResult(BaseModel):
    """Messages produced by one turn and the skills enabled at its end"""
    messages: List[BaseMessage] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)


class EnabledSkills:
    """Skills switched on for the lifetime of one agent instance

    Enablement is monotonic: a skill can be added but never removed, and adding
    a skill twice is a no-op. Names are reported in enablement order.
    """

    def __init__(self, skills: Iterable[Skill] = ()):
        self._skills: Dict[str, Skill] = {}
        for skill in skills:
            self.enable(skill)

    def enable(self, skill: Skill) -> bool:
        """Enable a skill, returning False if it was already enabled"""

        if skill.name in self._skills:
            return False
        self._skills[skill.name] = skill
        return True

    def names(self) -> List[str]:
        return list(self._skills)

    def snapshot(self) -> List[Skill]:
        return list(self._skills.values())


def message_text(message: BaseMessage) -> str:
    """Plain text of a message whose content may be a list of content blocks"""

    content = message.content
    if isinstance(content, str):
        return content
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)
