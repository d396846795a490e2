from .contact import get_contact_tools
from .memory import get_memory_tools
from .message import get_message_tools
from .schedule import get_schedule_tools
from .skill import get_skill_tools
from .subagent import get_subagent_tools
from .web import get_web_tools, BraveSearchClient

__all__ = [
    "get_contact_tools",
    "get_memory_tools",
    "get_message_tools",
    "get_schedule_tools",
    "get_skill_tools",
    "get_subagent_tools",
    "get_web_tools",
    "BraveSearchClient",
]
