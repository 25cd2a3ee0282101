"""Reference player rotation provider.

PlayerCollection keeps the play order and the shared "whose turn is it"
marker that EachPlayer and action steps update. Games with their own
player containers only need to satisfy
:class:`turnpath.flow.protocols.PlayerRotation`.

Example:
    >>> players = PlayerCollection.of("Ann", "Bob", "Cy")
    >>> players.after(players[2]).name
    'Ann'
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union


@dataclass(eq=False)
class Player:
    """A seated player.

    Players compare by identity so attribute changes made during a game
    never make two seats look alike.

    Attributes:
        position: Table seat, stable for the whole game (1-based).
        name: Display name.
        attributes: Free-form game data.
    """

    position: int
    name: str = ""
    attributes: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.name or f"player #{self.position}"


class PlayerCollection:
    """Ordered players plus the set of seats that may currently act.

    List order is turn order; it may be changed during a game, whereas
    table positions never change.
    """

    def __init__(self, players: Optional[Sequence[Player]] = None):
        self._players: List[Player] = list(players or [])
        self._current: List[int] = []

    @classmethod
    def of(cls, *names: str) -> "PlayerCollection":
        """Create players seated 1..N in the given order."""
        return cls([Player(position=i + 1, name=n) for i, n in enumerate(names)])

    def add(self, player: Player) -> Player:
        if self.at_position(player.position) is not None:
            raise ValueError(f"Seat {player.position} is already taken")
        self._players.append(player)
        return player

    def __len__(self) -> int:
        return len(self._players)

    def __iter__(self) -> Iterator[Player]:
        return iter(self._players)

    def __getitem__(self, index: int) -> Player:
        return self._players[index]

    @property
    def current_position(self) -> List[int]:
        """Seats that may currently act."""
        return list(self._current)

    def at_position(self, position: int) -> Optional[Player]:
        """Return the player at a given table position."""
        for player in self._players:
            if player.position == position:
                return player
        return None

    def current(self) -> Optional[Player]:
        """The single player who may act.

        Raises:
            ValueError: If more than one player may act.
        """
        if len(self._current) > 1:
            raise ValueError(
                f"Using players.current when {len(self._current)} players may act"
            )
        return self.at_position(self._current[0]) if self._current else None

    def all_current(self) -> List[Player]:
        return [p for p in (self.at_position(s) for s in self._current) if p is not None]

    def set_current(self, players: Union[Player, int, Sequence[Union[Player, int]]]) -> None:
        """Set the player(s) to act, by player or table position."""
        if not isinstance(players, (list, tuple)):
            players = [players]
        self._current = [p if isinstance(p, int) else p.position for p in players]

    def turn_order_of(self, player: Union[Player, int]) -> int:
        """Index of a player in turn order, starting with 0."""
        seat = player if isinstance(player, int) else player.position
        for i, p in enumerate(self._players):
            if p.position == seat:
                return i
        raise ValueError(f"No such player: {player}")

    def after(self, player: Union[Player, int]) -> Player:
        """The player who acts after ``player`` in turn order."""
        return self._players[(self.turn_order_of(player) + 1) % len(self._players)]

    def next(self) -> Player:
        """Advance the turn marker to the next player and return them."""
        if not self._current:
            self._current = [self._players[0].position]
        elif len(self._current) == 1:
            self._current = [self.after(self._current[0]).position]
        return self.current()


__all__ = ["Player", "PlayerCollection"]
