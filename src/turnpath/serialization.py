"""Shared value codec for serialized flow positions.

Position values are written in the same format as the rest of the game
state: primitives inline, lists and dicts recursively, and references to
live domain objects by identity:

    players     "$p[<seat>]"    resolved through the player rotation
    entities    "$eid[<id>]"    objects exposing an integer ``entity_id``

References can only be decoded in the presence of the matching live game
instance.

Example:
    >>> codec = FlowCodec(players=players)
    >>> codec.serialize([players[0], 3, "x"])
    ['$p[1]', 3, 'x']
    >>> codec.deserialize(['$p[1]', 3, 'x'])[0] is players[0]
    True
"""

import re
from typing import Any, Callable, Optional

from turnpath.flow.errors import InvalidPositionError, SerializationError

PLAYER_REF = re.compile(r"^\$p\[(-?\d+)\]$")
ENTITY_REF = re.compile(r"^\$eid\[(-?\d+)\]$")

EntityLookup = Callable[[int], Optional[Any]]


class FlowCodec:
    """Encodes and decodes position values.

    Args:
        players: Player rotation used to resolve ``$p[...]`` references.
        entities: Optional lookup from entity id to live entity.
    """

    def __init__(self, players: Any = None, entities: Optional[EntityLookup] = None):
        self._players = players
        self._entities = entities

    def serialize(self, value: Any) -> Any:
        """Recursively serialize a value for JSON transmission.

        Raises:
            SerializationError: If the value has no serializable form.
        """
        if value is None or isinstance(value, (bool, int, float, str)):
            return value

        if isinstance(value, (list, tuple)):
            return [self.serialize(item) for item in value]

        if isinstance(value, dict):
            return {str(k): self.serialize(v) for k, v in value.items()}

        if self._is_player(value):
            return f"$p[{value.position}]"

        entity_id = getattr(value, "entity_id", None)
        if isinstance(entity_id, int):
            return f"$eid[{entity_id}]"

        raise SerializationError(
            f"Unable to serialize {value!r} ({type(value).__name__}) in a flow position"
        )

    def deserialize(self, value: Any) -> Any:
        """Recursively restore a serialized value.

        Raises:
            InvalidPositionError: If a reference cannot be resolved.
            SerializationError: If the value is not of a serialized type.
        """
        if value is None or isinstance(value, (bool, int, float)):
            return value

        if isinstance(value, str):
            return self._deserialize_string(value)

        if isinstance(value, list):
            return [self.deserialize(item) for item in value]

        if isinstance(value, dict):
            return {k: self.deserialize(v) for k, v in value.items()}

        raise SerializationError(f"Unable to deserialize {value!r}")

    def _deserialize_string(self, value: str) -> Any:
        match = PLAYER_REF.match(value)
        if match:
            seat = int(match.group(1))
            player = self._players.at_position(seat) if self._players is not None else None
            if player is None:
                raise InvalidPositionError(f"Unable to find player: {value}")
            return player

        match = ENTITY_REF.match(value)
        if match:
            entity = self._entities(int(match.group(1))) if self._entities is not None else None
            if entity is None:
                raise InvalidPositionError(f"Unable to find entity: {value}")
            return entity

        return value

    def _is_player(self, value: Any) -> bool:
        if self._players is None:
            return False
        return any(p is value for p in self._players)


__all__ = ["FlowCodec", "EntityLookup"]
