class AgentError(Exception):
    """Base class for errors raised by the agent engine"""


class ConfigurationError(AgentError):
    """A required setting or identity parameter is missing"""
