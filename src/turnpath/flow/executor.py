"""Flow driver for running turn-based flows via the interpreter.

FlowDriver plays a flow forward until it must wait for a player, accepts
the player's move, and plays on. Between moves the whole state is the
serialized active path returned by :meth:`FlowDriver.branch_json`, which
can be handed to :meth:`FlowDriver.restore` on a fresh driver built from
the same definition.

This is a convenience wrapper around FlowGraph + FlowInterpreter.

Example:
    >>> driver = FlowDriver(flow, players=PlayerCollection.of("A", "B"))
    >>> result = driver.start()
    >>> result.request.actions[0].name
    'draw'
    >>> result = driver.resume(Move(player=1, name="draw"))
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from turnpath.config.settings import FlowSettings
from turnpath.flow.errors import (
    EndlessLoopError,
    InterruptOutsideLoopError,
    InvalidMoveError,
    InvalidPositionError,
    MoveRejectedError,
)
from turnpath.flow.graph import FlowGraph, FlowNode
from turnpath.flow.interpreter import DebugHook, FlowInterpreter
from turnpath.flow.node import FlowControl, Interrupt, Move, Suspension
from turnpath.flow.protocols import ActionResolver
from turnpath.flow.specs import PASS_ACTION, ActionStepSpec
from turnpath.flow.visualize import stacktrace, visualize
from turnpath.observability import ObservabilityHub
from turnpath.observability.records import (
    FlowCompleteRecord,
    MoveRecord,
    SuspensionRecord,
)
from turnpath.serialization import EntityLookup, FlowCodec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActionStub:
    """An action a player may choose, with its resolved prompt."""

    name: str
    prompt: Optional[str] = None


@dataclass
class ActionRequest:
    """What a suspended flow is waiting for.

    Attributes:
        step: Name of the action step.
        node: Arena index of the action step.
        prompt: Resolved prompt of the step.
        actions: Actions that may be taken.
        players: Seats that may act, or None for anyone.
        skip_if: Presentation hint copied from the step.
    """

    step: Optional[str]
    node: int
    prompt: Optional[str] = None
    actions: List[ActionStub] = field(default_factory=list)
    players: Optional[List[int]] = None
    skip_if: str = "always"

    @property
    def action_names(self) -> List[str]:
        return [a.name for a in self.actions]


@dataclass
class FlowResult:
    """State of the flow after a start, play or resume.

    Attributes:
        status: "awaiting" or "complete".
        position: Serialized active path.
        visualization: Nested view of the definition.
        request: The pending action request when awaiting.
    """

    status: str
    position: List[Dict[str, Any]]
    visualization: Dict[str, Any]
    request: Optional[ActionRequest] = None

    @property
    def awaiting(self) -> bool:
        return self.status == "awaiting"

    @property
    def complete(self) -> bool:
        return self.status == "complete"


class FlowDriver:
    """Drives a flow between suspension points.

    Args:
        flow: A FlowGraph, a NodeSpec, or a list of steps.
        players: Player rotation (see PlayerRotation).
        resolver: Validates and applies moves (see ActionResolver).
        settings: Safety bounds and debug flag.
        entities: Lookup used to restore ``$eid[...]`` references.
        debug_hook: Receives every interpreter DebugEvent.
    """

    def __init__(
        self,
        flow: Any,
        players: Any = None,
        resolver: Optional[ActionResolver] = None,
        settings: Optional[FlowSettings] = None,
        entities: Optional[EntityLookup] = None,
        debug_hook: Optional[DebugHook] = None,
    ):
        self._graph = flow if isinstance(flow, FlowGraph) else FlowGraph(flow)
        self._settings = settings or FlowSettings()
        self._players = players
        self._resolver = resolver
        self._interpreter = FlowInterpreter(
            self._graph,
            players=players,
            codec=FlowCodec(players=players, entities=entities),
            max_loop_iterations=self._settings.max_loop_iterations,
            debug=self._settings.debug,
            debug_hook=debug_hook,
        )
        self._hub = ObservabilityHub.get_instance()

    @property
    def graph(self) -> FlowGraph:
        return self._graph

    @property
    def interpreter(self) -> FlowInterpreter:
        return self._interpreter

    @property
    def settings(self) -> FlowSettings:
        return self._settings

    @property
    def started(self) -> bool:
        return self._interpreter.position(0) is not None

    @property
    def is_complete(self) -> bool:
        position = self._interpreter.position(0)
        return position is not None and position.complete

    @property
    def awaiting(self) -> Optional[ActionRequest]:
        """The pending action request, if the flow is suspended."""
        node = self._suspended_node()
        return self._action_request(node) if node is not None else None

    # -----------------------------------------------------------------
    # Playing
    # -----------------------------------------------------------------

    def start(self) -> FlowResult:
        """Reset every node and play to the first suspension."""
        logger.info("Starting flow %s", self._graph.root)
        self._interpreter.clear()
        self._interpreter.reset(0)
        return self.play()

    def play(self) -> FlowResult:
        """Play synchronously until the flow suspends or completes.

        Raises:
            EndlessLoopError: If more than ``max_steps`` steps run without
                reaching a suspension.
            InterruptOutsideLoopError: If an interrupt finds no loop.
        """
        self._require_started()

        steps = 0
        while True:
            outcome = self._interpreter.play_one_step(0)
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("Advancing flow:\n%s", self.stacktrace())
            if outcome is not FlowControl.OK:
                break
            steps += 1
            if steps >= self._settings.max_steps:
                raise EndlessLoopError(str(self._graph.root), self._settings.max_steps)

        if isinstance(outcome, Interrupt):
            raise InterruptOutsideLoopError(outcome.signal.value, outcome.loop)

        if isinstance(outcome, Suspension):
            request = self._action_request(self._graph.node(outcome.node))
            logger.info(
                "Awaiting %s from players %s at %s",
                request.action_names, request.players, self._graph.node(outcome.node),
            )
            if self._hub.enabled:
                self._hub.emit(SuspensionRecord(
                    node=str(self._graph.node(outcome.node)),
                    actions=request.action_names,
                    players=list(request.players or []),
                    steps=steps,
                ))
            return self._result("awaiting", request)

        logger.info("Flow %s complete", self._graph.root)
        if self._hub.enabled:
            self._hub.emit(FlowCompleteRecord(root=str(self._graph.root), steps=steps))
        return self._result("complete")

    def resume(self, move: Move) -> FlowResult:
        """Apply a player's move to the suspended action step and play on.

        Raises:
            InvalidMoveError: If nothing is awaited, the action is not
                offered, or the player may not act.
            MoveRejectedError: If the action resolver refuses the move.
        """
        node = self._suspended_node()
        if node is None:
            raise InvalidMoveError("Flow is not awaiting a move")

        names = [a.name for a in node.spec.all_actions()]
        if move.name not in names:
            self._reject(node, move, "not offered")
            raise InvalidMoveError(
                f"{move.name} is not a valid action at {node}; expected one of {names}"
            )

        seats = self._allowed_seats(node)
        if seats is not None and move.player not in seats:
            self._reject(node, move, "not this player's turn")
            raise InvalidMoveError(f"Player #{move.player} may not act at {node} (players {seats})")

        if move.name != PASS_ACTION and self._resolver is not None:
            player = move.player
            if self._players is not None:
                player = self._players.at_position(move.player) or move.player
            error = self._resolver.process(player, move.name, dict(move.args))
            if error:
                self._reject(node, move, error)
                raise MoveRejectedError(error)

        logger.info("Player #%s took %s at %s", move.player, move.name, node)
        if self._hub.enabled:
            self._hub.emit(MoveRecord(node=str(node), player=move.player, action=move.name))

        self._interpreter.apply_move(node.index, move)
        return self.play()

    def _reject(self, node: FlowNode, move: Move, reason: str) -> None:
        logger.warning("Rejected %s by player #%s at %s: %s", move.name, move.player, node, reason)
        if self._hub.enabled:
            self._hub.emit(MoveRecord(
                node=str(node), player=move.player, action=move.name,
                accepted=False, reason=reason,
            ))

    # -----------------------------------------------------------------
    # Position
    # -----------------------------------------------------------------

    def branch_json(self) -> List[Dict[str, Any]]:
        """Serialized active path, root first."""
        self._require_started()
        return self._interpreter.snapshot()

    def restore(self, branch: List[Dict[str, Any]]) -> None:
        """Replace the current state with a serialized active path.

        Raises:
            InvalidPositionError: If the path does not fit this definition.
        """
        self._interpreter.restore(branch)
        logger.info("Restored flow %s at depth %d", self._graph.root, len(branch))

    def visualize(self) -> Dict[str, Any]:
        return visualize(self._interpreter)

    def stacktrace(self) -> str:
        return stacktrace(self._interpreter)

    # -----------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------

    def _require_started(self) -> None:
        if not self.started:
            raise InvalidPositionError("Flow has not been started or restored")

    def _suspended_node(self) -> Optional[FlowNode]:
        path = self._interpreter.active_path()
        if not path:
            return None
        node = self._graph.node(path[-1])
        position = self._interpreter.position(node.index)
        if isinstance(node.spec, ActionStepSpec) and position.move is None and not position.complete:
            return node
        return None

    def _allowed_seats(self, node: FlowNode) -> Optional[List[int]]:
        position = self._interpreter.position(node.index)
        if position.players is not None:
            return list(position.players)
        if self._players is not None and self._players.current_position:
            return list(self._players.current_position)
        return None

    def _action_request(self, node: FlowNode) -> ActionRequest:
        spec = node.spec
        evaluate = self._interpreter.evaluate
        return ActionRequest(
            step=node.name,
            node=node.index,
            prompt=evaluate(node.index, spec.prompt),
            actions=[
                ActionStub(name=a.name, prompt=evaluate(node.index, a.prompt))
                for a in spec.all_actions()
            ],
            players=self._allowed_seats(node),
            skip_if=spec.skip_if,
        )

    def _result(self, status: str, request: Optional[ActionRequest] = None) -> FlowResult:
        return FlowResult(
            status=status,
            position=self.branch_json(),
            visualization=self.visualize(),
            request=request,
        )


__all__ = ["FlowDriver", "FlowResult", "ActionRequest", "ActionStub"]
