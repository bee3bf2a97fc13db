"""
errors.py - Exception hierarchy for the InfraQ resource graph

Caller errors (unknown kinds, unknown nodes, bad config keys) raise.
Rejected connections do not: they come back as an InvalidConnection
attached to the ConnectionResult.
"""


class InfraqError(Exception):
    """Base exception for InfraQ."""

    pass


class UnknownKindError(InfraqError, KeyError):
    """Raised when a resource kind is not in the catalog."""

    pass


class UnknownNodeError(InfraqError, KeyError):
    """Raised when a node id does not exist in the graph."""

    pass


class ConfigKeyError(InfraqError, KeyError):
    """Raised when a config key is not recognized for a kind."""

    pass


class ReadOnlyConfigKey(ConfigKeyError):
    """Raised when the editing surface tries to set a derived key."""

    pass


class InvalidConnection(InfraqError, ValueError):
    """Describes a rejected connection proposal."""

    def __init__(self, source: str, target: str, reason: str):
        super().__init__(f"{source} -> {target}: {reason}")
        self.source = source
        self.target = target
        self.reason = reason


class UnmappedKindError(InfraqError):
    """Raised by strict generation for kinds with no Terraform block."""

    pass


class GeneratedSyntaxError(InfraqError, ValueError):
    """Raised when generated text does not parse as HCL."""

    pass


class EventError(InfraqError, ValueError):
    """Raised when a replayed editor event is malformed."""

    def __init__(self, index: int, message: str):
        super().__init__(f"event {index}: {message}")
        self.index = index
