"""Core flow value types.

Position is the serializable record of where execution stands inside one
flow node. Interrupt is the outcome a terminal step returns to repeat,
continue or break the nearest enclosing loop.

Example:
    >>> from turnpath.flow.node import Do
    >>>
    >>> def take_card(args):
    ...     if args["player"].hand_full():
    ...         return Do.break_()
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


# Mapping of node name -> bound value for every named node on the active path
FlowArguments = Dict[str, Any]


class FlowControl(str, Enum):
    """Completion marker returned by node transitions."""

    OK = "ok"
    COMPLETE = "complete"


class LoopInterrupt(str, Enum):
    """Non-local transfer requested by a terminal step."""

    REPEAT = "repeat"
    CONTINUE = "continue"
    BREAK = "break"


@dataclass(frozen=True)
class Interrupt:
    """Tagged outcome asking an enclosing loop to repeat, continue or break.

    Attributes:
        signal: Which transfer is requested.
        loop: Optional name of the loop to target. ``None`` targets the
            nearest enclosing loop.
    """

    signal: LoopInterrupt
    loop: Optional[str] = None

    def __str__(self) -> str:
        target = f"({self.loop})" if self.loop else ""
        return f"Do.{self.signal.value}{target}"


class Do:
    """Builders for loop interrupts.

    Return one of these from a step function, or place it directly in a
    block, to affect the enclosing loop.

    Example:
        >>> each_player(name="player", do=[
        ...     player_actions(name="turn", actions=[
        ...         action("shout", do=Do.repeat()),
        ...         "pass",
        ...     ]),
        ... ])
    """

    @staticmethod
    def repeat(loop: Optional[str] = None) -> Interrupt:
        """Skip the rest of this iteration and run it again with the same value."""
        return Interrupt(LoopInterrupt.REPEAT, loop)

    @staticmethod
    def continue_(loop: Optional[str] = None) -> Interrupt:
        """Skip the rest of this iteration and move to the next value."""
        return Interrupt(LoopInterrupt.CONTINUE, loop)

    @staticmethod
    def break_(loop: Optional[str] = None) -> Interrupt:
        """Skip the rest of this iteration and leave the loop."""
        return Interrupt(LoopInterrupt.BREAK, loop)


@dataclass(frozen=True)
class Move:
    """A player's request to perform an action with arguments.

    Attributes:
        player: Table seat of the acting player.
        name: Action name.
        args: Resolved action arguments.
    """

    player: int
    name: str
    args: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Position:
    """Where execution stands inside one flow node.

    Only the fields meaningful to the node kind are populated.

    Attributes:
        index: Iteration or case cursor. ``-1`` means the node has
            completed and is inert until reset.
        value: Domain payload (loop value, switch test, current player).
        sequence: Offset inside the node's current block.
        collection: Materialized ForEach collection.
        default: True when a switch fell through to its default block.
        players: Seats an action step is waiting on (``None`` = current).
        move: Accepted move of an action step.
    """

    index: int = 0
    value: Any = None
    sequence: Optional[int] = None
    collection: Optional[List[Any]] = None
    default: bool = False
    players: Optional[List[int]] = None
    move: Optional[Move] = None

    @property
    def complete(self) -> bool:
        """True once the node has exited."""
        return self.index == -1


@dataclass(frozen=True)
class Suspension:
    """Outcome of a step that now awaits external input.

    Attributes:
        node: Arena index of the action step that is waiting.
    """

    node: int


StepOutcome = Union[FlowControl, Interrupt, Suspension]


__all__ = [
    "FlowArguments",
    "FlowControl",
    "LoopInterrupt",
    "Interrupt",
    "Do",
    "Move",
    "Position",
    "Suspension",
    "StepOutcome",
]
