"""Tests for FlowDriver: suspension, resume, and serialized positions."""

import json

import pytest

from turnpath.flow import (
    PASS_ACTION,
    FlowDriver,
    FlowError,
    InvalidMoveError,
    InvalidPositionError,
    Move,
    MoveRejectedError,
    action,
    each_player,
    for_each,
    for_loop,
    if_else,
    player_actions,
    sequence,
    switch_case,
    case,
)
from turnpath.players import PlayerCollection


# =============================================================================
# Test Fixtures
# =============================================================================


class Game:
    """Minimal game state driven by the flows below."""

    def __init__(self, *names):
        self.players = PlayerCollection.of(*names)
        self.log = []

    def choose_flow(self):
        return each_player(name="player", do=[
            player_actions(name="choose", actions=[
                action("X", do=self.record("X")),
                action("Y", do=self.record("Y")),
            ]),
        ])

    def record(self, label):
        def fn(args):
            self.log.append((args["player"].name, label))
        fn.__name__ = f"record_{label}"
        return fn


class RecordingResolver:
    """Action resolver that accepts everything except ``reject``."""

    def __init__(self, reject=None):
        self.reject = reject
        self.calls = []

    def process(self, player, name, args):
        self.calls.append((player, name, args))
        if name == self.reject:
            return f"{name} is not allowed"
        return None


# =============================================================================
# Suspend and resume
# =============================================================================


class TestSuspendResume:
    """Tests for playing to suspensions and resuming with moves."""

    def test_start_suspends_on_first_action(self):
        game = Game("A", "B")
        driver = FlowDriver(game.choose_flow(), players=game.players)

        result = driver.start()

        assert result.status == "awaiting"
        assert result.request.step == "choose"
        assert result.request.action_names == ["X", "Y"]
        assert result.request.players == [1]
        assert driver.awaiting.action_names == ["X", "Y"]
        assert not driver.is_complete

    def test_example_scenario(self):
        game = Game("A", "B")
        driver = FlowDriver(game.choose_flow(), players=game.players)

        first = driver.start()
        assert first.position[0]["value"] == "$p[1]"

        second = driver.resume(Move(player=1, name="X"))
        assert second.awaiting
        assert second.position[0]["value"] == "$p[2]"

        third = driver.resume(Move(player=2, name="Y"))
        assert third.complete
        assert driver.is_complete
        assert driver.awaiting is None
        assert game.log == [("A", "X"), ("B", "Y")]

    def test_resume_after_restore_in_fresh_driver(self):
        game = Game("A", "B")
        driver = FlowDriver(game.choose_flow(), players=game.players)
        driver.start()
        saved = json.loads(json.dumps(driver.resume(Move(player=1, name="X")).position))

        fresh_game = Game("A", "B")
        fresh = FlowDriver(fresh_game.choose_flow(), players=fresh_game.players)
        fresh.restore(saved)

        assert fresh.awaiting.players == [2]
        assert fresh_game.players.current().name == "B"
        result = fresh.resume(Move(player=2, name="Y"))
        assert result.complete
        assert fresh_game.log == [("B", "Y")]

    def test_wrong_player(self):
        game = Game("A", "B")
        driver = FlowDriver(game.choose_flow(), players=game.players)
        before = driver.start().position

        with pytest.raises(InvalidMoveError, match="Player #2 may not act"):
            driver.resume(Move(player=2, name="X"))
        assert driver.branch_json() == before

    def test_unknown_action(self):
        game = Game("A", "B")
        driver = FlowDriver(game.choose_flow(), players=game.players)
        driver.start()

        with pytest.raises(InvalidMoveError, match="not a valid action"):
            driver.resume(Move(player=1, name="Z"))

    def test_resume_when_not_awaiting(self):
        game = Game("A")
        driver = FlowDriver(sequence(lambda args: game.log.append("-")), players=game.players)
        driver.start()

        with pytest.raises(InvalidMoveError, match="not awaiting"):
            driver.resume(Move(player=1, name="X"))

    def test_play_before_start(self):
        driver = FlowDriver(sequence(lambda a: None))
        with pytest.raises(InvalidPositionError, match="not been started"):
            driver.play()

    def test_move_args_reach_steps(self):
        seen = []
        players = PlayerCollection.of("A")
        flow = each_player(name="player", do=player_actions(
            name="turn",
            actions=[action("bid", do=lambda args: seen.append(args["bid"]["amount"]))],
        ))
        driver = FlowDriver(flow, players=players)
        driver.start()
        driver.resume(Move(player=1, name="bid", args={"amount": 3}))

        assert seen == [3]

    def test_move_args_keyed_by_action_in_unnamed_step(self):
        seen = []
        players = PlayerCollection.of("A")
        flow = each_player(name="player", do=player_actions(actions=[
            action("draw", do=lambda args: seen.append(sorted(args))),
        ]))
        driver = FlowDriver(flow, players=players)
        driver.start()
        driver.resume(Move(player=1, name="draw", args={"count": 2}))

        assert seen == [["draw", "player"]]

    def test_explicit_players(self):
        players = PlayerCollection.of("A", "B", "C")
        flow = player_actions(name="vote", players=lambda args: [players[1], players[2]], actions=["yes", "no"])
        driver = FlowDriver(flow, players=players)

        result = driver.start()

        assert result.request.players == [2, 3]
        assert players.current_position == [2, 3]
        assert result.position == [{"type": "action", "name": "vote", "index": 0, "players": [2, 3]}]
        with pytest.raises(InvalidMoveError):
            driver.resume(Move(player=1, name="yes"))
        assert driver.resume(Move(player=3, name="no")).complete

    def test_prompts(self):
        players = PlayerCollection.of("A")
        flow = each_player(name="player", do=player_actions(
            name="turn",
            prompt=lambda args: f"{args['player']}, your turn",
            actions=[action("draw", prompt="Draw a card")],
            optional="Pass",
        ))
        request = FlowDriver(flow, players=players).start().request

        assert request.prompt == "A, your turn"
        assert [(a.name, a.prompt) for a in request.actions] == [
            ("draw", "Draw a card"),
            (PASS_ACTION, "Pass"),
        ]


class TestResolver:
    """Tests for the action resolver collaborator."""

    def test_resolver_called_with_player(self):
        game = Game("A", "B")
        resolver = RecordingResolver()
        driver = FlowDriver(game.choose_flow(), players=game.players, resolver=resolver)
        driver.start()

        driver.resume(Move(player=1, name="X", args={"n": 1}))

        player, name, args = resolver.calls[0]
        assert player is game.players[0]
        assert (name, args) == ("X", {"n": 1})

    def test_rejected_move_keeps_suspension(self):
        game = Game("A", "B")
        driver = FlowDriver(game.choose_flow(), players=game.players, resolver=RecordingResolver(reject="Y"))
        before = driver.start().position

        with pytest.raises(MoveRejectedError, match="Y is not allowed") as exc_info:
            driver.resume(Move(player=1, name="Y"))

        assert exc_info.value.reason == "Y is not allowed"
        assert driver.branch_json() == before
        assert game.log == []

    def test_pass_skips_resolver(self):
        players = PlayerCollection.of("A", "B")
        resolver = RecordingResolver()
        flow = each_player(name="player", do=player_actions(name="turn", actions=["draw"], optional="Pass"))
        driver = FlowDriver(flow, players=players, resolver=resolver)
        driver.start()

        result = driver.resume(Move(player=1, name=PASS_ACTION))

        assert resolver.calls == []
        assert result.request.players == [2]


# =============================================================================
# Serialized positions
# =============================================================================


def nested_flow(log):
    return sequence(
        for_loop(name="round", initial=1, next=lambda r: r + 1, condition=lambda r: r <= 2, do=[
            for_each(name="suit", collection=["hearts", "spades"], do=[
                each_player(name="player", do=[
                    switch_case(lambda args: args["suit"], name="trump", cases=[
                        case("hearts", do=player_actions(name="play", actions=["lead", "follow"])),
                    ], default=lambda args: log.append(("skip", args["round"], args["player"].name))),
                ]),
            ]),
        ]),
        name="game",
    )


class TestSerialization:
    """Tests for branch_json and restore."""

    def test_records(self):
        players = PlayerCollection.of("A", "B")
        driver = FlowDriver(nested_flow([]), players=players)

        position = driver.start().position

        assert position == [
            {"type": "sequence", "name": "game", "index": 0, "sequence": 0},
            {"type": "for-loop", "name": "round", "index": 0, "sequence": 0, "value": 1},
            {"type": "for-each", "name": "suit", "index": 0, "sequence": 0,
             "value": "hearts", "collection": ["hearts", "spades"]},
            {"type": "each-player", "name": "player", "index": 0, "sequence": 0, "value": "$p[1]"},
            {"type": "switch-case", "name": "trump", "index": 0, "sequence": 0,
             "value": "hearts", "default": False},
            {"type": "action", "name": "play", "index": 0},
        ]

    def test_round_trip_reproduces_trajectory(self):
        moves = [Move(1, "lead"), Move(2, "follow"), Move(1, "follow"), Move(2, "lead")]

        log_a = []
        players_a = PlayerCollection.of("A", "B")
        driver_a = FlowDriver(nested_flow(log_a), players=players_a)
        driver_a.start()
        driver_a.resume(moves[0])
        saved = driver_a.branch_json()
        trajectory_a = [driver_a.resume(m).position for m in moves[1:]]

        log_b = []
        players_b = PlayerCollection.of("A", "B")
        driver_b = FlowDriver(nested_flow(log_b), players=players_b)
        driver_b.restore(saved)
        assert driver_b.branch_json() == saved
        trajectory_b = [driver_b.resume(m).position for m in moves[1:]]

        assert trajectory_a == trajectory_b
        assert log_b == log_a[len(log_a) - len(log_b):]
        assert driver_b.is_complete

    def test_restore_records_moves(self):
        players = PlayerCollection.of("A")
        seen = []
        flow = each_player(name="player", do=player_actions(
            name="bid", actions=[action("bid", do=[lambda a: seen.append(a["bid"]), lambda a: None])],
        ))
        driver = FlowDriver(flow, players=players)
        driver.start()
        driver.interpreter.apply_move(1, Move(player=1, name="bid", args={"amount": 2}))

        saved = driver.branch_json()
        assert saved[1]["move"] == {"player": 1, "name": "bid", "args": {"amount": 2}}
        assert saved[1]["sequence"] == 0

        fresh = FlowDriver(flow, players=PlayerCollection.of("A"))
        fresh.restore(saved)
        assert fresh.branch_json() == saved
        fresh.play()
        assert seen == [{"amount": 2}]

    def test_restore_does_not_run_steps(self):
        log = []
        players = PlayerCollection.of("A", "B")
        driver = FlowDriver(nested_flow(log), players=players)
        saved = driver.start().position

        FlowDriver(nested_flow(log), players=PlayerCollection.of("A", "B")).restore(saved)
        assert log == []


class TestRestoreErrors:
    """Tests for rejected positions."""

    def saved(self):
        game = Game("A", "B")
        driver = FlowDriver(game.choose_flow(), players=game.players)
        return game, driver, driver.start().position

    def test_type_mismatch(self):
        game, driver, saved = self.saved()
        saved[0]["type"] = "for-loop"
        with pytest.raises(InvalidPositionError, match="Flow mismatch"):
            driver.restore(saved)

    def test_name_mismatch(self):
        game, driver, saved = self.saved()
        saved[1]["name"] = "other"
        with pytest.raises(InvalidPositionError, match="Flow mismatch"):
            driver.restore(saved)

    def test_too_few_records(self):
        game, driver, saved = self.saved()
        with pytest.raises(InvalidPositionError, match="Insufficient"):
            driver.restore(saved[:1])

    def test_too_many_records(self):
        game, driver, saved = self.saved()
        with pytest.raises(InvalidPositionError, match="unexpected"):
            driver.restore(saved + [saved[-1]])

    def test_sequence_out_of_range(self):
        game, driver, saved = self.saved()
        saved[0]["sequence"] = 4
        with pytest.raises(InvalidPositionError, match="Invalid sequence"):
            driver.restore(saved)

    def test_unknown_player(self):
        game, driver, saved = self.saved()
        saved[0]["value"] = "$p[9]"
        with pytest.raises(InvalidPositionError, match="Unable to find player"):
            driver.restore(saved)

    def test_unknown_move(self):
        game, driver, saved = self.saved()
        saved[1]["move"] = {"player": 1, "name": "Z", "args": {}}
        with pytest.raises(InvalidPositionError, match="Invalid move"):
            driver.restore(saved)

    def test_empty(self):
        game, driver, saved = self.saved()
        with pytest.raises(InvalidPositionError):
            driver.restore([])

    def test_for_each_index_outside_collection(self):
        driver = FlowDriver(for_each(name="x", collection=[1, 2], do=player_actions(name="t", actions=["a"])))
        saved = driver.start().position
        saved[0]["index"] = 5
        with pytest.raises(InvalidPositionError, match="outside collection"):
            driver.restore(saved)

    def test_case_outside_switch(self):
        flow = switch_case(1, name="s", cases=[case(1, do=player_actions(name="t", actions=["a"]))])
        driver = FlowDriver(flow)
        saved = driver.start().position
        saved[0]["index"] = 3
        with pytest.raises(InvalidPositionError, match="Invalid case"):
            driver.restore(saved)

    def test_failed_restore_keeps_state(self):
        game, driver, saved = self.saved()
        broken = [dict(r) for r in saved]
        broken[1]["name"] = "other"

        with pytest.raises(InvalidPositionError):
            driver.restore(broken)

        assert driver.branch_json() == saved

    def test_failed_restore_keeps_turn(self):
        game, driver, saved = self.saved()
        after_a = driver.resume(Move(player=1, name="X")).position
        driver.restore(saved)

        with pytest.raises(InvalidPositionError, match="unexpected"):
            driver.restore(after_a + [after_a[-1]])

        assert game.players.current_position == [1]
        result = driver.resume(Move(player=1, name="X"))
        assert result.request.players == [2]

    def test_failed_restore_without_rotation_keeps_state(self):
        game, driver, saved = self.saved()
        unseated = FlowDriver(game.choose_flow())

        with pytest.raises(FlowError):
            unseated.restore(saved)

        assert not unseated.started

    def test_sequence_must_be_an_integer(self):
        for bad in ("0", True, 0.0):
            game, driver, saved = self.saved()
            saved[0]["sequence"] = bad
            with pytest.raises(InvalidPositionError, match="Invalid sequence"):
                driver.restore(saved)

    def test_players_must_be_seats(self):
        for bad in (3, ["A"], [True]):
            game, driver, saved = self.saved()
            saved[1]["players"] = bad
            with pytest.raises(InvalidPositionError, match="Invalid players"):
                driver.restore(saved)

    def test_errors_share_base(self):
        assert issubclass(InvalidPositionError, FlowError)


# =============================================================================
# Visualization
# =============================================================================


class TestVisualize:
    """Tests for visualize() and stacktrace()."""

    def test_tree_mirrors_definition(self):
        game = Game("A", "B")
        driver = FlowDriver(game.choose_flow(), players=game.players)
        driver.start()

        view = driver.visualize()

        assert view["type"] == "each-player"
        assert view["name"] == "player"
        assert view["current"] == {"block": "do", "position": "$p[1]", "sequence": 0}
        action_view = view["blocks"]["do"][0]
        assert action_view["type"] == "action"
        assert action_view["blocks"] == {"X": ["record_X"], "Y": ["record_Y"]}
        assert action_view["current"]["position"] == {"awaiting": None}

    def test_inactive_nodes_have_no_current(self):
        flow = sequence(
            if_else(lambda a: False, do=player_actions(name="never", actions=["a"])),
            player_actions(name="now", actions=["b"]),
        )
        view = FlowDriver(flow).start().visualization

        branch = view["blocks"]["do"][0]
        assert branch["current"] == {}
        assert branch["blocks"]["do"][0]["current"] == {}
        assert view["blocks"]["do"][1]["current"]["position"] == {"awaiting": None}

    def test_stacktrace(self):
        game = Game("A", "B")
        driver = FlowDriver(game.choose_flow(), players=game.players)
        driver.start()

        lines = driver.stacktrace().splitlines()

        assert lines[0].startswith("each-player:player (turn 1, player A")
        assert lines[1].startswith("  action:choose (awaiting")
