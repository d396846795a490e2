import structlog
import logging
import sys
from typing import Dict, Any, List, Optional
import os


# Longest tool payload, in characters, written to a single log entry
MAX_PAYLOAD_CHARS = 2000

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "langfuse")


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    service_name: str = "agent-engine"
) -> None:
    """Configure structlog on top of stdlib logging for the engine

    Level and format fall back to ``AGENT_LOG_LEVEL`` and ``AGENT_LOG_FORMAT``
    (``json`` or ``console``).
    """

    level_name = (log_level or os.getenv("AGENT_LOG_LEVEL", "INFO")).upper()
    renderer_name = (log_format or os.getenv("AGENT_LOG_FORMAT", "json")).lower()
    level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        truncate_payloads,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if renderer_name == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer(default=str)

    structlog.configure(
        processors=[*shared_processors, renderer],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(
        service=service_name,
        environment=os.getenv("ENVIRONMENT", "development")
    )


def truncate_payloads(logger: logging.Logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Cut tool inputs and outputs down to ``MAX_PAYLOAD_CHARS``"""

    for key in ("input", "input_data", "output_data"):
        value = event_dict.get(key)
        if value is None:
            continue
        text = value if isinstance(value, str) else repr(value)
        if len(text) > MAX_PAYLOAD_CHARS:
            event_dict[key] = f"{text[:MAX_PAYLOAD_CHARS]}... ({len(text)} chars)"
    return event_dict


class AgentLogger:
    """Turn and tool events with a fixed set of fields"""

    def __init__(self, name: str):
        self.logger = structlog.get_logger(name)

    def log_turn_started(
        self,
        entry_point: str,
        session_id: Optional[str],
        history_length: int,
        tool_names: Optional[List[str]] = None
    ):
        self.logger.info(
            "agent_turn_started",
            entry_point=entry_point,
            session_id=session_id,
            history_length=history_length,
            tools=tool_names or []
        )

    def log_turn_finished(
        self,
        entry_point: str,
        session_id: Optional[str],
        produced: int,
        skills: List[str]
    ):
        self.logger.info(
            "agent_turn_finished",
            entry_point=entry_point,
            session_id=session_id,
            produced=produced,
            skills=skills
        )

    def log_tool_execution(
        self,
        tool_name: str,
        output_data: Any = None,
        success: bool = True,
        error: Optional[str] = None
    ):
        if not success:
            self.logger.error("tool_failed", tool_name=tool_name, error=error)
            return
        self.logger.info("tool_finished", tool_name=tool_name, output_data=output_data)


agent_logger = AgentLogger("agent")
