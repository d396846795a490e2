from typing import Dict, Any, List, Optional
from pydantic import BaseModel, Field
import json
import os

from agent_engine.domain.models.agent_state import (
    AgentAction, Skill, ToolContext, ToolChoice, SubagentHistoryPolicy
)


DEFAULT_MAX_STEPS = 50
DEFAULT_LANGUAGE = "Same as user input"
DEFAULT_TOOL_CHOICE_REJECTION_SIGNATURES = [
    "Tool choice must be auto",
    "tool_choice",
    "No endpoints found that support the provided",
]


class AgentSettings(BaseModel):
    """Settings for one agent instance"""

    # Model
    model: str = Field(description="Model name passed to the provider")
    provider: str = Field("openai", description="Client type: openai, anthropic, google or any langchain provider")
    api_key: Optional[str] = None
    base_url: Optional[str] = None

    # Prompt
    locale: Optional[str] = None
    language: str = DEFAULT_LANGUAGE
    max_context_load_time: int = Field(1550, description="Minutes of history loaded into context")
    platforms: List[str] = Field(default_factory=list)
    current_platform: Optional[str] = None

    # Loop
    max_steps: int = Field(DEFAULT_MAX_STEPS, ge=1)
    tool_choice: Optional[ToolChoice] = None
    tool_choice_rejection_signatures: List[str] = Field(
        default_factory=lambda: list(DEFAULT_TOOL_CHOICE_REJECTION_SIGNATURES)
    )

    # Tools
    allowed: List[AgentAction] = Field(default_factory=lambda: list(AgentAction))
    brave_api_key: Optional[str] = None
    brave_base_url: Optional[str] = None
    backend_base_url: str = "http://127.0.0.1:8080"
    skills: List[Skill] = Field(default_factory=list)
    use_skills: List[str] = Field(default_factory=list)
    tool_context: ToolContext = Field(default_factory=ToolContext)
    subagent_history_policy: SubagentHistoryPolicy = SubagentHistoryPolicy.SHARED

    # Tracing
    langfuse_public_key: Optional[str] = None
    langfuse_secret_key: Optional[str] = None
    langfuse_host: Optional[str] = None

    @classmethod
    def from_env(cls, **overrides: Any) -> "AgentSettings":
        """Build settings from AGENT_* environment variables"""

        values: Dict[str, Any] = {
            "model": os.getenv("AGENT_MODEL", "gpt-4o-mini"),
            "provider": os.getenv("AGENT_PROVIDER", "openai"),
            "api_key": os.getenv("AGENT_API_KEY"),
            "base_url": os.getenv("AGENT_BASE_URL"),
            "locale": os.getenv("AGENT_LOCALE"),
            "language": os.getenv("AGENT_LANGUAGE", DEFAULT_LANGUAGE),
            "max_steps": int(os.getenv("AGENT_MAX_STEPS", DEFAULT_MAX_STEPS)),
            "max_context_load_time": int(os.getenv("AGENT_MAX_CONTEXT_LOAD_TIME", 1550)),
            "current_platform": os.getenv("AGENT_CURRENT_PLATFORM"),
            "brave_api_key": os.getenv("BRAVE_API_KEY"),
            "brave_base_url": os.getenv("BRAVE_BASE_URL"),
            "backend_base_url": os.getenv("AGENT_BACKEND_BASE_URL", "http://127.0.0.1:8080"),
            "langfuse_public_key": os.getenv("LANGFUSE_PUBLIC_KEY"),
            "langfuse_secret_key": os.getenv("LANGFUSE_SECRET_KEY"),
            "langfuse_host": os.getenv("LANGFUSE_HOST"),
        }

        platforms = os.getenv("AGENT_PLATFORMS")
        if platforms:
            values["platforms"] = [p.strip() for p in platforms.split(",") if p.strip()]

        allowed = os.getenv("AGENT_ALLOWED_ACTIONS")
        if allowed:
            values["allowed"] = [a.strip() for a in allowed.split(",") if a.strip()]

        # Tool choice may be a bare tool name or a JSON object
        tool_choice = os.getenv("AGENT_TOOL_CHOICE")
        if tool_choice:
            values["tool_choice"] = json.loads(tool_choice) if tool_choice.startswith("{") else tool_choice

        values.update(overrides)
        return cls(**values)

    @property
    def langfuse_enabled(self) -> bool:
        return bool(self.langfuse_public_key and self.langfuse_secret_key)
