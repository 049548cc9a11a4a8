"""Sentinel error taxonomy."""


class SentinelError(Exception):
    """Base class for watchdog errors."""
    pass


class ConfigurationError(SentinelError):
    """Raised when a configuration resource is missing, malformed or refers to an unknown place."""
    pass


class NamespaceError(SentinelError):
    """Raised when a name cannot be bound or looked up in the registry."""
    pass


class ProtocolRunError(SentinelError):
    """Raised when a protocol could not complete a polling cycle."""
    pass


class RecoveryError(SentinelError):
    """Raised when a recovery action could not signal an agent."""
    pass
