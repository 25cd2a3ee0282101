"""FlowInterpreter: spec-based transition engine.

The interpreter reads the NodeSpec of each compiled FlowNode and applies
the matching transition. This is the "interpreter" half of the
definition/interpreter split:

    FlowGraph   = definition (immutable arena)
    NodeSpec    = node kind
    Interpreter = this module, owning every Position

Positions are kept in a dict keyed by arena index, so the definition is
never mutated and the active path can be captured or replaced as data.

Transitions per node kind:

    reset    (re)initialize the position and enter the first step
    advance  move to the next iteration, or exit
    repeat   re-check the current iteration without moving the value
    exit     mark the node complete (index -1)

Example:
    >>> interpreter = FlowInterpreter(FlowGraph(flow), players=players)
    >>> interpreter.reset(0)
    >>> outcome = interpreter.play_one_step()

Debug hooks:
    >>> def on_event(event):
    ...     print(event)
    >>> interpreter = FlowInterpreter(graph, debug_hook=on_event)
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional

from turnpath.flow.errors import (
    EndlessLoopError,
    FlowConfigurationError,
    FlowError,
    InvalidPositionError,
    NodeProcessingError,
)
from turnpath.flow.graph import FlowGraph, FlowNode, NodeRef
from turnpath.flow.node import (
    FlowArguments,
    FlowControl,
    Interrupt,
    LoopInterrupt,
    Move,
    Position,
    StepOutcome,
    Suspension,
)
from turnpath.flow.specs import (
    Block,
    SequenceSpec,
    WhileLoopSpec,
    ForLoopSpec,
    ForEachSpec,
    EachPlayerSpec,
    SwitchCaseSpec,
    IfSpec,
    ActionStepSpec,
)
from turnpath.observability import ObservabilityHub
from turnpath.observability.records import TransitionRecord
from turnpath.serialization import FlowCodec

logger = logging.getLogger(__name__)

DEFAULT_MAX_LOOP_ITERATIONS = 10_000


@dataclass
class DebugEvent:
    """Debug event emitted by interpreter hooks.

    Attributes:
        phase: 'reset', 'advance', 'repeat', 'exit', 'interrupt',
            'suspend' or 'move'.
        node: Node label (kind:name).
        kind: Kind tag of the node.
        index: Position index after the transition.
        value: Position value after the transition.
        extra: Additional context-specific info.
    """

    phase: str
    node: str
    kind: str
    index: Optional[int] = None
    value: Any = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        detail = f" index={self.index}" if self.index is not None else ""
        if self.value is not None:
            detail += f" value={self.value}"
        if self.extra:
            detail += " " + " ".join(f"{k}={v}" for k, v in self.extra.items())
        return f"[{self.phase.upper()}] {self.node}{detail}"


# Type alias for debug hook callback
DebugHook = Callable[[DebugEvent], None]


class FlowInterpreter:
    """Spec-based interpreter for turn-based control flow.

    Maintains one Position per active node, keyed by arena index.

    Error handling:
        Exceptions from user-provided callables (conditions, steppers,
        terminal steps) are wrapped in :class:`NodeProcessingError` and
        re-raised. Flow errors raised from inside a callable pass through
        unchanged.

    Debug hooks:
        Pass a debug_hook callback to observe transitions, or
        ``debug=True`` to print them.
    """

    def __init__(
        self,
        graph: FlowGraph,
        players: Any = None,
        codec: Optional[FlowCodec] = None,
        max_loop_iterations: int = DEFAULT_MAX_LOOP_ITERATIONS,
        debug: bool = False,
        debug_hook: Optional[DebugHook] = None,
    ) -> None:
        if max_loop_iterations < 1:
            raise ValueError(f"max_loop_iterations must be positive, got {max_loop_iterations}")
        self._graph = graph
        self._players = players
        self._codec = codec or FlowCodec(players=players)
        self._max_loop_iterations = max_loop_iterations
        self._positions: Dict[int, Position] = {}
        self._debug = debug
        self._debug_hook = debug_hook
        self._hub = ObservabilityHub.get_instance()

    @property
    def graph(self) -> FlowGraph:
        return self._graph

    @property
    def players(self) -> Any:
        return self._players

    @property
    def codec(self) -> FlowCodec:
        return self._codec

    def position(self, index: int) -> Optional[Position]:
        """Current position of a node, if it has one."""
        return self._positions.get(index)

    def clear(self) -> None:
        """Drop all positions."""
        self._positions.clear()

    # -----------------------------------------------------------------
    # Debug
    # -----------------------------------------------------------------

    def _emit(self, phase: str, node: FlowNode, **extra: Any) -> None:
        has_debug = self._debug or self._debug_hook is not None
        if not has_debug and not self._hub.enabled:
            return

        position = self._positions.get(node.index)
        index = position.index if position is not None else None
        value = position.value if position is not None else None

        if has_debug:
            event = DebugEvent(
                phase=phase, node=str(node), kind=node.kind,
                index=index, value=value, extra=extra,
            )
            if self._debug:
                print(event)
            if self._debug_hook is not None:
                self._debug_hook(event)

        if self._hub.enabled:
            self._hub.emit(TransitionRecord(
                phase=phase, node=str(node), kind=node.kind,
                index=index, value=repr(value) if value is not None else None,
            ))

    # -----------------------------------------------------------------
    # Flow arguments and user callables
    # -----------------------------------------------------------------

    def flow_args(self, index: int, include_self: bool = True) -> FlowArguments:
        """Bound values of every named node from the root down to ``index``.

        An action step with an accepted move contributes the move's args
        under the action name.

        Args:
            index: Arena index of the node asking.
            include_self: Whether the node's own value is included.
        """
        nodes = self._graph.ancestors(index)
        if include_self:
            nodes.append(self._graph.node(index))

        args: FlowArguments = {}
        for node in nodes:
            position = self._positions.get(node.index)
            if position is None:
                continue
            match node.spec:
                case SequenceSpec() | WhileLoopSpec():
                    pass
                case ActionStepSpec():
                    # keyed by the chosen action, named step or not
                    if position.move is not None:
                        args[position.move.name] = dict(position.move.args)
                case _:
                    if node.name is not None:
                        args[node.name] = position.value
        return args

    def _call(self, node: FlowNode, fn: Callable, arg: Any) -> Any:
        """Invoke a user callable, attributing failures to ``node``."""
        try:
            return fn(arg)
        except FlowError:
            raise
        except Exception as e:
            logger.error("Error in node '%s' (%s): %s", node, node.kind, e)
            raise NodeProcessingError(str(node), node.kind, e) from e

    def _evaluate(self, node: FlowNode, value: Any, include_self: bool = False) -> Any:
        """Resolve a value that may be a callable of FlowArguments."""
        if callable(value):
            return self._call(node, value, self.flow_args(node.index, include_self))
        return value

    def evaluate(self, index: int, value: Any) -> Any:
        """Resolve a literal or a callable of the node's FlowArguments."""
        return self._evaluate(self._graph.node(index), value, include_self=True)

    def _require_players(self, node: FlowNode) -> Any:
        if self._players is None:
            raise FlowConfigurationError(f"{node} requires a player rotation")
        return self._players

    # -----------------------------------------------------------------
    # Blocks
    # -----------------------------------------------------------------

    def current_block_label(self, index: int) -> Optional[str]:
        """Label of the block to pursue for the node's position, if any."""
        position = self._positions.get(index)
        if position is None or position.complete:
            return None
        node = self._graph.node(index)
        match node.spec:
            case SequenceSpec() | WhileLoopSpec() | ForLoopSpec() | ForEachSpec() | EachPlayerSpec():
                return "do"
            case SwitchCaseSpec() | IfSpec():
                if position.default:
                    return "default"
                return f"case:{position.index}"
            case ActionStepSpec():
                if position.move is None:
                    return None
                return f"action:{position.move.name}"
            case _:
                raise TypeError(f"FlowInterpreter does not know {type(node.spec).__name__}")

    def current_block(self, index: int) -> Optional[Block]:
        """Block to pursue for the node's position, or None if terminal."""
        label = self.current_block_label(index)
        if label is None:
            return None
        return self._graph.node(index).blocks.get(label) or None

    def current_step(self, index: int) -> Any:
        """Step at the node's sequence cursor, or None."""
        block = self.current_block(index)
        position = self._positions.get(index)
        if not block or position is None or position.sequence is None:
            return None
        return block[position.sequence]

    def active_path(self) -> List[int]:
        """Arena indices from the root to the active leaf."""
        path: List[int] = []
        index: Optional[int] = 0
        while index is not None and index in self._positions:
            path.append(index)
            step = self.current_step(index)
            index = step.index if isinstance(step, NodeRef) else None
        return path

    # -----------------------------------------------------------------
    # Transitions
    # -----------------------------------------------------------------

    def set_position(
        self,
        index: int,
        position: Position,
        sequence: Optional[int] = None,
        reset: bool = True,
        notify: bool = True,
    ) -> None:
        """Adopt a position and select the step at ``sequence``.

        Args:
            index: Arena index of the node.
            position: New position (owned by the interpreter from now on).
            sequence: Offset in the current block (defaults to 0).
            reset: Whether a nested node at that offset is reset.
            notify: Whether the player rotation is told who acts now.

        Raises:
            InvalidPositionError: If ``sequence`` is outside the block.
        """
        node = self._graph.node(index)
        self._positions[index] = position

        if notify:
            self._notify_rotation(node, position)

        block = self.current_block(index)
        if not block:
            position.sequence = None
            return

        if sequence is None:
            sequence = 0
        if not 0 <= sequence < len(block):
            raise InvalidPositionError(
                f"Invalid sequence for {node}: {sequence}/{len(block)}"
            )
        position.sequence = sequence

        step = block[sequence]
        if reset and isinstance(step, NodeRef):
            self.reset(step.index)

    def _notify_rotation(self, node: FlowNode, position: Position) -> None:
        if position.complete:
            return
        match node.spec:
            case EachPlayerSpec():
                if position.value is not None:
                    self._require_players(node).set_current(position.value)
            case ActionStepSpec():
                if position.move is None and position.players:
                    self._require_players(node).set_current(position.players)

    def reset(self, index: int) -> None:
        """(Re)initialize a node's position and enter its first step."""
        node = self._graph.node(index)
        spec = node.spec

        match spec:
            case SequenceSpec():
                position = Position()
            case WhileLoopSpec():
                position = Position()
                if not self._valid(node, position):
                    position.index = -1
            case ForLoopSpec():
                position = Position(value=self._evaluate(node, spec.initial))
                if not self._valid(node, position):
                    position.index = -1
            case ForEachSpec():
                collection = list(self._evaluate(node, spec.collection))
                position = Position(
                    index=0 if collection else -1,
                    value=collection[0] if collection else None,
                    collection=collection,
                )
            case EachPlayerSpec():
                players = self._require_players(node)
                if spec.starting_player is None:
                    first = players[0] if len(players) else None
                else:
                    first = self._evaluate(node, spec.starting_player)
                position = Position(value=first)
                if first is None or not self._valid(node, position):
                    position.index = -1
            case SwitchCaseSpec() | IfSpec():
                position = self._select_case(node)
            case ActionStepSpec():
                position = Position(players=self._resolve_players(node))
            case _:
                raise TypeError(
                    f"FlowInterpreter does not know how to reset "
                    f"{type(spec).__name__} from node '{node}'"
                )

        self.set_position(index, position)
        self._emit("reset", node)

    def _select_case(self, node: FlowNode) -> Position:
        """Evaluate the switch test and pick the first matching case."""
        spec = node.spec
        if isinstance(spec, IfSpec):
            test = bool(self._call(node, spec.condition, self.flow_args(node.index, False)))
        else:
            test = self._evaluate(node, spec.switch)

        position = Position(index=-1, value=test)
        for i, case in enumerate(spec.switch_cases()):
            if self._call(node, case.matches, test):
                position.index = i
                break
        if position.index == -1 and "default" in node.blocks:
            position.index = 0
            position.default = True
        return position

    def _resolve_players(self, node: FlowNode) -> Optional[List[int]]:
        """Seats an action step waits on, or None for the current player."""
        spec = node.spec
        if spec.players is None:
            return None
        players = self._evaluate(node, spec.players)
        if not isinstance(players, (list, tuple)):
            players = [players]
        return [p if isinstance(p, int) else p.position for p in players]

    def _valid(self, node: FlowNode, position: Position) -> bool:
        """Continuation check of a loop for a candidate position."""
        spec = node.spec
        match spec:
            case WhileLoopSpec():
                return bool(self._call(node, spec.condition, self.flow_args(node.index, False)))
            case ForLoopSpec():
                return bool(self._call(node, spec.condition, position.value))
            case ForEachSpec():
                return 0 <= position.index < len(position.collection or [])
            case EachPlayerSpec():
                if spec.continue_until is not None:
                    return not self._call(node, spec.continue_until, position.value)
                players = self._require_players(node)
                return position.index < len(players) * spec.turns
            case _:
                return True

    def _next_position(self, node: FlowNode, position: Position) -> Position:
        spec = node.spec
        index = position.index + 1
        match spec:
            case ForLoopSpec():
                value = position.value
                if spec.next is not None and value is not None:
                    value = self._call(node, spec.next, value)
                return Position(index=index, value=value)
            case ForEachSpec():
                collection = position.collection or []
                value = collection[index] if index < len(collection) else None
                return Position(index=index, value=value, collection=collection)
            case EachPlayerSpec():
                value = position.value
                if value is not None:
                    if spec.next_player is not None:
                        value = self._call(node, spec.next_player, value)
                    else:
                        value = self._require_players(node).after(value)
                return Position(index=index, value=value)
            case _:
                return Position(index=index)

    def advance(self, index: int) -> FlowControl:
        """Move a node to its next position, or exit.

        Non-loop nodes complete when their block is done.

        Raises:
            EndlessLoopError: If a loop would exceed its iteration bound.
        """
        node = self._graph.node(index)
        position = self._positions[index]

        if not node.is_loop or position.complete:
            return self.exit(index)

        candidate = self._next_position(node, position)
        if not self._valid(node, candidate):
            return self.exit(index)
        if candidate.index >= self._max_loop_iterations:
            raise EndlessLoopError(str(node), self._max_loop_iterations)

        self.set_position(index, candidate)
        self._emit("advance", node)
        return FlowControl.OK

    def repeat(self, index: int) -> FlowControl:
        """Re-enter the current iteration without changing its value."""
        node = self._graph.node(index)
        position = self._positions[index]

        if position.complete or not self._valid(node, position):
            return self.exit(index)

        self.set_position(index, replace(position, sequence=None))
        self._emit("repeat", node)
        return FlowControl.OK

    def exit(self, index: int) -> FlowControl:
        """Mark a node complete."""
        node = self._graph.node(index)
        position = self._positions[index]
        self.set_position(index, replace(position, index=-1, default=False, sequence=None))
        self._emit("exit", node)
        return FlowControl.COMPLETE

    def interrupt(self, index: int, signal: LoopInterrupt) -> FlowControl:
        """Apply a repeat/continue/break to a loop."""
        node = self._graph.node(index)
        self._emit("interrupt", node, signal=signal.value)
        match signal:
            case LoopInterrupt.REPEAT:
                return self.repeat(index)
            case LoopInterrupt.CONTINUE:
                return self.advance(index)
            case LoopInterrupt.BREAK:
                return self.exit(index)
        raise ValueError(f"Unknown loop interrupt {signal!r}")

    # -----------------------------------------------------------------
    # Stepping
    # -----------------------------------------------------------------

    def play_one_step(self, index: int = 0) -> StepOutcome:
        """Run one terminal step below ``index`` and bubble the outcome up.

        Returns:
            FlowControl.OK if the flow moved and may continue,
            FlowControl.COMPLETE if the node completed, a Suspension if an
            action step awaits a move, or an Interrupt no loop consumed.
        """
        node = self._graph.node(index)
        position = self._positions.get(index)
        if position is None:
            raise InvalidPositionError(
                f"{node} has no position; reset or restore the flow first"
            )

        step = self.current_step(index)
        if step is None:
            if isinstance(node.spec, ActionStepSpec) and position.move is None and not position.complete:
                self._emit("suspend", node)
                return Suspension(index)
            result: StepOutcome = FlowControl.COMPLETE
        elif isinstance(step, NodeRef):
            result = self.play_one_step(step.index)
        elif isinstance(step, Interrupt):
            result = step
        else:
            outcome = self._call(node, step, self.flow_args(index))
            result = outcome if isinstance(outcome, Interrupt) else FlowControl.COMPLETE

        if result is FlowControl.OK or isinstance(result, Suspension):
            return result

        if isinstance(result, Interrupt):
            if node.is_loop and (result.loop is None or result.loop == node.name):
                return self.interrupt(index, result.signal)
            return result

        # step completed, move along this block if able
        block = self.current_block(index)
        position = self._positions[index]
        if block and position.sequence is not None and position.sequence + 1 < len(block):
            self.set_position(index, position, position.sequence + 1)
            return FlowControl.OK

        # block completed, advance this node
        return self.advance(index)

    def apply_move(self, index: int, move: Move) -> None:
        """Record an accepted move on an action step and enter its block."""
        node = self._graph.node(index)
        position = self._positions[index]
        self.set_position(index, replace(position, move=move, sequence=None))
        self._emit("move", node, action=move.name, player=move.player)

    # -----------------------------------------------------------------
    # Serialization
    # -----------------------------------------------------------------

    def position_to_json(self, index: int) -> Dict[str, Any]:
        """Serialize one node's position as a flat record."""
        node = self._graph.node(index)
        position = self._positions[index]
        encode = self._codec.serialize

        record: Dict[str, Any] = {"type": node.kind}
        if node.name is not None:
            record["name"] = node.name
        record["index"] = position.index
        if position.sequence is not None:
            record["sequence"] = position.sequence

        match node.spec:
            case ForLoopSpec() | EachPlayerSpec():
                record["value"] = encode(position.value)
            case ForEachSpec():
                record["value"] = encode(position.value)
                record["collection"] = encode(position.collection or [])
            case SwitchCaseSpec() | IfSpec():
                record["value"] = encode(position.value)
                record["default"] = position.default
            case ActionStepSpec():
                if position.move is not None:
                    record["move"] = {
                        "player": position.move.player,
                        "name": position.move.name,
                        "args": encode(position.move.args),
                    }
                elif position.players is not None:
                    record["players"] = list(position.players)
        return record

    def position_from_json(self, index: int, record: Dict[str, Any]) -> Position:
        """Rebuild one node's position from a flat record.

        Raises:
            InvalidPositionError: If the record does not fit the node.
        """
        node = self._graph.node(index)
        if not isinstance(record, dict):
            raise InvalidPositionError(f"Position record for {node} must be an object")
        if record.get("type") != node.kind or record.get("name") != node.name:
            raise InvalidPositionError(
                f"Flow mismatch. Trying to set {record.get('type')}:{record.get('name')} on {node}"
            )

        pos_index = record.get("index")
        if not isinstance(pos_index, int) or isinstance(pos_index, bool) or pos_index < -1:
            raise InvalidPositionError(f"Invalid index {pos_index!r} for {node}")

        decode = self._codec.deserialize
        position = Position(index=pos_index)

        match node.spec:
            case ForLoopSpec() | EachPlayerSpec():
                position.value = decode(record.get("value"))
            case ForEachSpec():
                collection = decode(record.get("collection", []))
                if not isinstance(collection, list):
                    raise InvalidPositionError(f"Invalid collection for {node}")
                if pos_index != -1 and not 0 <= pos_index < len(collection):
                    raise InvalidPositionError(
                        f"Index {pos_index} outside collection of {len(collection)} for {node}"
                    )
                position.collection = collection
                position.value = decode(record.get("value"))
            case SwitchCaseSpec() | IfSpec():
                position.value = decode(record.get("value"))
                position.default = bool(record.get("default", False))
                if position.default and ("default" not in node.blocks or pos_index == -1):
                    raise InvalidPositionError(f"Invalid default position for {node}")
                if not position.default and pos_index >= len(node.spec.switch_cases()):
                    raise InvalidPositionError(f"Invalid case {pos_index} for {node}")
            case ActionStepSpec():
                move = record.get("move")
                if move is not None:
                    if (
                        not isinstance(move, dict)
                        or not isinstance(move.get("player"), int)
                        or f"action:{move.get('name')}" not in node.blocks
                    ):
                        raise InvalidPositionError(f"Invalid move {move!r} for {node}")
                    position.move = Move(
                        player=move.get("player"),
                        name=move["name"],
                        args=decode(move.get("args") or {}),
                    )
                else:
                    players = record.get("players")
                    if players is not None and (
                        not isinstance(players, list)
                        or not all(isinstance(p, int) and not isinstance(p, bool) for p in players)
                    ):
                        raise InvalidPositionError(f"Invalid players {players!r} for {node}")
                    position.players = list(players) if players is not None else None
        return position

    def snapshot(self) -> List[Dict[str, Any]]:
        """Serialize the active path, root first."""
        return [self.position_to_json(i) for i in self.active_path()]

    def restore(self, branch: List[Dict[str, Any]]) -> None:
        """Replace all positions with a serialized active path.

        Restoring does not run predicates or terminal steps. The player
        rotation is only updated once the whole path has been accepted, so
        on failure both the previous positions and the rotation are kept.

        Raises:
            InvalidPositionError: If the path does not describe a reachable
                state of this definition.
        """
        if not isinstance(branch, list) or not branch:
            raise InvalidPositionError("Position must be a non-empty list of records")

        previous = self._positions
        self._positions = {}
        try:
            self._restore_from(0, list(branch))
            for i in self.active_path():
                self._notify_rotation(self._graph.node(i), self._positions[i])
        except Exception:
            self._positions = previous
            raise

    def _restore_from(self, index: int, remaining: List[Dict[str, Any]]) -> None:
        while True:
            node = self._graph.node(index)
            if not remaining:
                raise InvalidPositionError(f"Insufficient position elements sent to flow for {node}")
            record = remaining.pop(0)
            position = self.position_from_json(index, record)

            self._positions[index] = position
            sequence = record.get("sequence")
            if sequence is not None and (not isinstance(sequence, int) or isinstance(sequence, bool)):
                raise InvalidPositionError(f"Invalid sequence {sequence!r} for {node}")
            has_block = bool(self.current_block(index))
            if has_block != (sequence is not None):
                raise InvalidPositionError(f"Sequence does not match the block of {node}")
            self.set_position(index, position, sequence, reset=False, notify=False)

            step = self.current_step(index)
            if isinstance(step, NodeRef):
                index = step.index
                continue
            if remaining:
                raise InvalidPositionError(
                    f"{len(remaining)} unexpected position element(s) after {node}"
                )
            return


__all__ = [
    "FlowInterpreter",
    "DebugEvent",
    "DebugHook",
    "DEFAULT_MAX_LOOP_ITERATIONS",
]
