"""Debug views of a running flow.

``visualize`` mirrors the definition as a nested dict and marks where the
active path stands in each node; ``stacktrace`` renders the active path as
one line per node.

Example:
    >>> visualize(interpreter)
    {'type': 'each-player', 'name': 'player', 'blocks': {'do': [...]},
     'current': {'block': 'do', 'position': '$p[1]', 'sequence': 0}}
"""

from typing import Any, Dict, List, Optional

from turnpath.flow.graph import FlowNode, NodeRef, step_label
from turnpath.flow.interpreter import FlowInterpreter
from turnpath.flow.node import Position
from turnpath.flow.specs import (
    ActionStepSpec,
    EachPlayerSpec,
    ForEachSpec,
    ForLoopSpec,
    IfSpec,
    SequenceSpec,
    SwitchCaseSpec,
    WhileLoopSpec,
)


def block_title(node: FlowNode, label: str) -> str:
    """Display title of a block label."""
    spec = node.spec
    if isinstance(spec, IfSpec):
        return "do" if label == "case:0" else "else"
    if isinstance(spec, SwitchCaseSpec) and label.startswith("case:"):
        return spec.cases[int(label.split(":", 1)[1])].label
    if isinstance(spec, ActionStepSpec):
        return label.split(":", 1)[1]
    return label


def _display_position(interpreter: FlowInterpreter, node: FlowNode, position: Position) -> Any:
    encode = interpreter.codec.serialize
    match node.spec:
        case SequenceSpec():
            return None
        case WhileLoopSpec():
            return position.index + 1
        case ForLoopSpec() | ForEachSpec() | EachPlayerSpec() | SwitchCaseSpec() | IfSpec():
            return encode(position.value)
        case ActionStepSpec():
            if position.move is not None:
                return position.move.name
            return {"awaiting": position.players}
    return None


def visualize(interpreter: FlowInterpreter) -> Dict[str, Any]:
    """Nested view of the definition annotated with current positions."""
    active = set(interpreter.active_path())

    def render(index: int) -> Dict[str, Any]:
        node = interpreter.graph.node(index)
        blocks: Dict[str, List[Any]] = {}
        for label, block in node.blocks.items():
            blocks[block_title(node, label)] = [
                render(step.index) if isinstance(step, NodeRef) else step_label(step)
                for step in block
            ]

        current: Dict[str, Any] = {}
        position = interpreter.position(index)
        if index in active and position is not None:
            label = interpreter.current_block_label(index)
            current = {
                "block": block_title(node, label) if label else None,
                "position": _display_position(interpreter, node, position),
                "sequence": position.sequence,
            }

        return {"type": node.kind, "name": node.name, "blocks": blocks, "current": current}

    return render(0)


def describe(interpreter: FlowInterpreter, index: int) -> str:
    """One-line description of a node's position."""
    node = interpreter.graph.node(index)
    position = interpreter.position(index)
    if position is None:
        return f"{node} (not started)"
    if position.complete:
        return f"{node} (complete)"

    parts: List[str] = []
    match node.spec:
        case WhileLoopSpec():
            parts.append(f"iteration {position.index + 1}")
        case ForLoopSpec() | ForEachSpec():
            parts.append(f"index {position.index}, {node.name}={position.value!r}")
        case EachPlayerSpec():
            parts.append(f"turn {position.index + 1}, player {position.value}")
        case SwitchCaseSpec() | IfSpec():
            label: Optional[str] = interpreter.current_block_label(index)
            parts.append(f"value {position.value!r} -> {block_title(node, label) if label else '-'}")
        case ActionStepSpec():
            if position.move is not None:
                parts.append(f"player #{position.move.player} chose {position.move.name}")
            else:
                parts.append(f"awaiting {position.players or 'current player'}")
    if position.sequence is not None:
        parts.append(f"step {position.sequence}")
    return f"{node} ({', '.join(parts)})" if parts else str(node)


def stacktrace(interpreter: FlowInterpreter) -> str:
    """Active path, root first, one indented line per node."""
    return "\n".join(
        "  " * depth + describe(interpreter, index)
        for depth, index in enumerate(interpreter.active_path())
    )


__all__ = ["visualize", "stacktrace", "describe", "block_title"]
