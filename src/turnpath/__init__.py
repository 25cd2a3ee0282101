"""turnpath - Resumable control flow for turn-based games.

turnpath runs a game's turn structure (rounds, player rotations, choices)
as a small interpreter whose whole state is a serializable path, so a game
can stop at any player decision and resume later, on another machine,
from that path alone.

Quick Start:
    >>> from turnpath import FlowDriver, Move, PlayerCollection
    >>> from turnpath.flow import each_player, player_actions
    >>>
    >>> players = PlayerCollection.of("Ann", "Bob")
    >>> flow = each_player(name="player", do=[
    ...     player_actions(name="turn", actions=["draw", "pass"]),
    ... ])
    >>> driver = FlowDriver(flow, players=players)
    >>> saved = driver.start().position
    >>>
    >>> later = FlowDriver(flow, players=players)
    >>> later.restore(saved)
    >>> later.resume(Move(player=1, name="draw")).status
    'awaiting'

For advanced usage, see:
- turnpath.flow: specs, builders, interpreter, driver
- turnpath.config: YAML configuration
- turnpath.observability: tracing
"""

try:
    from turnpath._version import __version__
except ImportError:
    __version__ = "0.0.0.dev0"

from turnpath.flow import Do, FlowDriver, FlowGraph, FlowResult, Move
from turnpath.flow.errors import FlowError
from turnpath.players import Player, PlayerCollection
from turnpath.serialization import FlowCodec

__all__ = [
    "__version__",
    "Do",
    "FlowDriver",
    "FlowGraph",
    "FlowResult",
    "Move",
    "FlowError",
    "Player",
    "PlayerCollection",
    "FlowCodec",
]
