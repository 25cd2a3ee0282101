"""Collaborator protocols consumed by the flow engine.

The flow core does not own players or validate moves. It talks to a
player rotation provider and an action resolver through these protocols,
so games can plug in their own containers.

Example:
    >>> class AlwaysAccept:
    ...     def process(self, player, name, args):
    ...         return None
    >>>
    >>> driver = FlowDriver(flow, players=players, resolver=AlwaysAccept())
"""

from typing import Any, Dict, Iterator, List, Optional, Protocol, Sequence, Union, runtime_checkable


@runtime_checkable
class PlayerRotation(Protocol):
    """Ordered, stable collection of players with a shared turn marker.

    Players are opaque to the flow engine apart from their integer
    ``position`` (table seat), which is the stable reference written to
    serialized positions.
    """

    def __len__(self) -> int:
        ...

    def __iter__(self) -> Iterator[Any]:
        ...

    def __getitem__(self, index: int) -> Any:
        ...

    def at_position(self, position: int) -> Optional[Any]:
        """Return the player seated at ``position``."""
        ...

    def after(self, player: Any) -> Any:
        """Return the player who acts after ``player``."""
        ...

    def set_current(self, players: Union[Any, int, Sequence[Any]]) -> None:
        """Mark the player(s) whose turn it now is."""
        ...

    @property
    def current_position(self) -> List[int]:
        """Seats of the players who may currently act."""
        ...


@runtime_checkable
class ActionResolver(Protocol):
    """Validates and applies a player's chosen action.

    ``process`` returns ``None`` when the move was accepted, or an error
    message when the arguments were invalid. The flow engine stays
    suspended on a rejected move.
    """

    def process(self, player: Any, name: str, args: Dict[str, Any]) -> Optional[str]:
        ...


__all__ = ["PlayerRotation", "ActionResolver"]
