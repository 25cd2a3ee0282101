"""Exception types raised by the flow engine.

Configuration errors describe a broken flow definition and abort setup or
the current turn. Position errors describe serialized state that does not
match the running definition. Move errors describe player input that could
not be applied; the flow stays suspended on the same step.
"""


class FlowError(Exception):
    """Base class for all flow errors."""


class FlowConfigurationError(FlowError):
    """The flow definition is malformed or was used incorrectly."""


class EndlessLoopError(FlowConfigurationError):
    """A loop or a play cycle exceeded its iteration bound.

    Attributes:
        node_name: Name of the loop that overran, if known.
        limit: The bound that was exceeded.
    """

    def __init__(self, node_name: str, limit: int):
        self.node_name = node_name
        self.limit = limit
        super().__init__(f"Endless loop detected: {node_name} (limit {limit})")


class InterruptOutsideLoopError(FlowConfigurationError):
    """A repeat/continue/break reached the root without a matching loop."""

    def __init__(self, signal: str, loop: str = None):
        self.signal = signal
        self.loop = loop
        target = f" named '{loop}'" if loop else ""
        super().__init__(f"Cannot use Do.{signal} when not in a loop{target}")


class InvalidPositionError(FlowError):
    """A serialized position does not describe a reachable state."""


class SerializationError(FlowError):
    """A position value cannot be encoded or decoded."""


class InvalidMoveError(FlowError):
    """A move was submitted for an action or player that may not act now."""


class MoveRejectedError(FlowError):
    """The action resolver refused the move's arguments.

    Attributes:
        reason: Message returned by the resolver.
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class NodeProcessingError(FlowError):
    """Raised when a user-provided callable within a node fails.

    Wraps the original exception with context about which node and
    node kind caused the error.

    Attributes:
        node_name: Name of the node where the error occurred.
        kind: Kind tag of the node.
        original_error: The underlying exception.
    """

    def __init__(self, node_name: str, kind: str, original_error: Exception):
        self.node_name = node_name
        self.kind = kind
        self.original_error = original_error
        super().__init__(
            f"Error in node '{node_name}' ({kind}): {original_error}"
        )


__all__ = [
    "FlowError",
    "FlowConfigurationError",
    "EndlessLoopError",
    "InterruptOutsideLoopError",
    "InvalidPositionError",
    "SerializationError",
    "InvalidMoveError",
    "MoveRejectedError",
    "NodeProcessingError",
]
