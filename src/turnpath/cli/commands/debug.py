"""Debug command for playing a demo flow with automatic moves.

Usage:
    turnpath debug --players 3 --rounds 2
    turnpath debug --debug
"""

import json
from typing import Any, Dict, List, Optional

from turnpath.config import FlowSettings, apply_config, load_yaml_config
from turnpath.flow import (
    Do,
    FlowDriver,
    Move,
    action,
    each_player,
    for_loop,
    if_else,
    player_actions,
    sequence,
)
from turnpath.players import PlayerCollection


class DemoGame:
    """Tiny scoring game used to exercise every flow construct."""

    def __init__(self, players: PlayerCollection, rounds: int, target: int = 5):
        self.players = players
        self.rounds = rounds
        self.target = target
        self.scores: Dict[int, int] = {p.position: 0 for p in players}
        self.log: List[str] = []

    def draw(self, args: Dict[str, Any]) -> None:
        player = args["player"]
        self.scores[player.position] += 1
        self.log.append(f"round {args['round']}: {player} draws ({self.scores[player.position]})")

    def bet(self, args: Dict[str, Any]) -> None:
        player = args["player"]
        self.scores[player.position] += 2
        self.log.append(f"round {args['round']}: {player} bets ({self.scores[player.position]})")

    def reached_target(self, args: Dict[str, Any]) -> bool:
        return self.scores[args["player"].position] >= self.target

    def finish(self, args: Dict[str, Any]) -> None:
        self.log.append(f"{args['player']} reached {self.target}")

    def flow(self) -> Any:
        return sequence(
            for_loop(
                name="round",
                initial=1,
                next=lambda r: r + 1,
                condition=lambda r: r <= self.rounds,
                do=each_player(name="player", do=[
                    player_actions(
                        name="turn",
                        prompt="Your turn",
                        actions=[action("draw", do=self.draw), action("bet", do=self.bet)],
                        optional="Pass",
                    ),
                    if_else(self.reached_target, do=[self.finish, Do.break_("round")]),
                ]),
            ),
        )


def choose(step: int, names: List[str]) -> str:
    """Deterministic move choice for the demo."""
    return names[step % len(names)]


def cmd_debug(
    players: int = 2,
    rounds: int = 2,
    debug: bool = False,
    config_path: Optional[str] = None,
) -> int:
    """Play the demo flow to completion, printing each suspension.

    Returns:
        Exit code (0 for success).
    """
    settings = FlowSettings(debug=debug)
    if config_path:
        settings = apply_config(load_yaml_config(config_path))

    rotation = PlayerCollection.of(*(f"Player {i + 1}" for i in range(players)))
    game = DemoGame(rotation, rounds)

    print("=" * 60)
    print("turnpath Debug Flow")
    print("=" * 60)
    print(f"Players: {players}")
    print(f"Rounds: {rounds}")
    print(f"Debug: {debug or settings.debug}")
    print("=" * 60)

    driver = FlowDriver(game.flow(), players=rotation, settings=settings)
    result = driver.start()

    moves = 0
    while result.awaiting:
        request = result.request
        seat = (request.players or rotation.current_position)[0]
        name = choose(moves, request.action_names)
        print(f"\n--- Move {moves + 1}: player #{seat} -> {name} ---")
        if debug:
            print(driver.stacktrace())
            print(json.dumps(result.position))
        result = driver.resume(Move(player=seat, name=name))
        moves += 1

    print("\n" + "=" * 60)
    print("[Results]")
    print(f"  Moves: {moves}")
    for line in game.log:
        print(f"  {line}")
    for seat, score in game.scores.items():
        print(f"  {rotation.at_position(seat)}: {score}")
    print("=" * 60)
    return 0
