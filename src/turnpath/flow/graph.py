"""Compiled flow definition.

FlowGraph turns a tree of NodeSpecs into a flat arena of FlowNodes with
stable integer indices, parent links and compiled blocks. Nested specs
inside blocks are replaced by NodeRef so the interpreter can key positions
by index. The arena is read-only once built.
"""

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from turnpath.flow.errors import FlowConfigurationError
from turnpath.flow.node import Interrupt
from turnpath.flow.specs import (
    Block,
    NodeSpec,
    SequenceSpec,
    WhileLoopSpec,
    ForLoopSpec,
    ForEachSpec,
    EachPlayerSpec,
    SwitchCaseSpec,
    IfSpec,
    ActionStepSpec,
    MISSING,
    as_block,
)


@dataclass(frozen=True)
class NodeRef:
    """Reference from a compiled block to a child node in the arena."""

    index: int


@dataclass
class FlowNode:
    """One compiled node of the flow definition.

    Attributes:
        index: Stable arena index (pre-order, root is 0).
        spec: The node's spec.
        parent: Arena index of the parent node (None for the root).
        blocks: Compiled child blocks keyed by block label.
    """

    index: int
    spec: NodeSpec
    parent: Optional[int] = None
    blocks: Dict[str, Block] = field(default_factory=dict)

    @property
    def name(self) -> Optional[str]:
        return self.spec.name

    @property
    def kind(self) -> str:
        return self.spec.kind

    @property
    def is_loop(self) -> bool:
        return self.spec.is_loop

    def __str__(self) -> str:
        return f"{self.kind}:{self.name}" if self.name else self.kind


def _accepts_one_argument(fn: Callable) -> bool:
    """Check that ``fn`` can be called with a single positional argument.

    Callables whose signature cannot be inspected are accepted.
    """
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        return True
    try:
        sig.bind(None)
    except TypeError:
        return False
    return True


class FlowGraph:
    """Arena of compiled flow nodes.

    Example:
        >>> graph = FlowGraph(each_player(name="player", do=[take_turn]))
        >>> graph.root.kind
        'each-player'
        >>> graph.find("player").index
        0
    """

    def __init__(self, definition: Any):
        """Compile a flow definition.

        Args:
            definition: A NodeSpec, or a step / list of steps which is
                wrapped in an unnamed SequenceSpec.

        Raises:
            FlowConfigurationError: If the definition is malformed.
        """
        if not isinstance(definition, NodeSpec):
            definition = SequenceSpec(do=as_block(definition))

        self._nodes: List[FlowNode] = []
        self._by_name: Dict[str, int] = {}
        self._compile(definition, None)
        self.validate()

    @property
    def root(self) -> FlowNode:
        """The root node."""
        return self._nodes[0]

    @property
    def nodes(self) -> List[FlowNode]:
        """All nodes in arena order."""
        return list(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def node(self, index: int) -> FlowNode:
        """Get a node by arena index."""
        return self._nodes[index]

    def find(self, name: str) -> Optional[FlowNode]:
        """Get a node by name."""
        index = self._by_name.get(name)
        return None if index is None else self._nodes[index]

    def ancestors(self, index: int) -> List[FlowNode]:
        """Ancestors of a node, root first, excluding the node itself."""
        chain: List[FlowNode] = []
        parent = self._nodes[index].parent
        while parent is not None:
            chain.append(self._nodes[parent])
            parent = self._nodes[parent].parent
        chain.reverse()
        return chain

    def _compile(self, spec: NodeSpec, parent: Optional[int]) -> int:
        """Add ``spec`` and its descendants to the arena."""
        index = len(self._nodes)
        node = FlowNode(index=index, spec=spec, parent=parent)
        self._nodes.append(node)

        for label, block in spec.blocks().items():
            compiled = []
            for step in block:
                if isinstance(step, NodeSpec):
                    compiled.append(NodeRef(self._compile(step, index)))
                elif isinstance(step, Interrupt) or callable(step):
                    compiled.append(step)
                else:
                    raise FlowConfigurationError(
                        f"Invalid step {step!r} in {node} block '{label}': "
                        f"expected a flow node, a callable or a Do interrupt"
                    )
            node.blocks[label] = tuple(compiled)

        return index

    def validate(self) -> None:
        """Validate the compiled definition.

        Checks:
        - Node names are unique
        - Required callables are present and accept one argument
        - Loop and action parameters are well-formed

        Raises:
            FlowConfigurationError: If validation fails.
        """
        self._by_name = {}
        for node in self._nodes:
            if node.name is not None:
                if node.name in self._by_name:
                    raise FlowConfigurationError(f"Duplicate flow name: {node.name}")
                self._by_name[node.name] = node.index

            for label, block in node.blocks.items():
                for step in block:
                    if isinstance(step, (NodeRef, Interrupt)):
                        continue
                    self._check_callable(node, f"step in block '{label}'", step)

            self._check_spec(node)

    def _check_callable(self, node: FlowNode, what: str, fn: Any, required: bool = False) -> None:
        if fn is None:
            if required:
                raise FlowConfigurationError(f"{node} requires a {what}")
            return
        if not callable(fn):
            raise FlowConfigurationError(f"{what} of {node} must be callable, got {fn!r}")
        if not _accepts_one_argument(fn):
            raise FlowConfigurationError(
                f"{what} of {node} must accept exactly one argument"
            )

    def _check_spec(self, node: FlowNode) -> None:
        spec = node.spec
        match spec:
            case SequenceSpec():
                pass
            case WhileLoopSpec():
                self._check_callable(node, "condition", spec.condition, required=True)
            case ForLoopSpec():
                if node.name is None:
                    raise FlowConfigurationError("for-loop requires a name")
                self._check_callable(node, "condition", spec.condition, required=True)
                self._check_callable(node, "next", spec.next)
                if callable(spec.initial):
                    self._check_callable(node, "initial", spec.initial)
            case ForEachSpec():
                if node.name is None:
                    raise FlowConfigurationError("for-each requires a name")
                if callable(spec.collection):
                    self._check_callable(node, "collection", spec.collection)
                elif isinstance(spec.collection, (str, bytes)) or not hasattr(spec.collection, "__iter__"):
                    raise FlowConfigurationError(
                        f"collection of {node} must be a sequence or a callable"
                    )
            case EachPlayerSpec():
                if node.name is None:
                    raise FlowConfigurationError("each-player requires a name")
                if not isinstance(spec.turns, int) or spec.turns < 1:
                    raise FlowConfigurationError(
                        f"turns of {node} must be a positive integer, got {spec.turns!r}"
                    )
                self._check_callable(node, "next_player", spec.next_player)
                self._check_callable(node, "continue_until", spec.continue_until)
                if callable(spec.starting_player):
                    self._check_callable(node, "starting_player", spec.starting_player)
            case SwitchCaseSpec():
                if callable(spec.switch):
                    self._check_callable(node, "switch", spec.switch)
                for case in spec.cases:
                    matchers = sum([
                        case.eq is not MISSING,
                        case.among is not None,
                        case.test is not None,
                    ])
                    if matchers != 1:
                        raise FlowConfigurationError(
                            f"Each case of {node} needs exactly one of eq, among or test"
                        )
                    self._check_callable(node, "case test", case.test)
            case IfSpec():
                self._check_callable(node, "condition", spec.condition, required=True)
            case ActionStepSpec():
                names = [a.name for a in spec.all_actions()]
                if not names:
                    raise FlowConfigurationError(f"{node} offers no actions")
                if len(set(names)) != len(names):
                    raise FlowConfigurationError(f"Duplicate action names in {node}: {names}")
                if callable(spec.players):
                    self._check_callable(node, "players", spec.players)
            case _:
                raise TypeError(
                    f"FlowGraph does not know how to compile {type(spec).__name__}"
                )

    def print_ascii(self) -> str:
        """Render the definition as an indented tree."""
        lines: List[str] = []

        def render(index: int, depth: int) -> None:
            node = self._nodes[index]
            lines.append("  " * depth + str(node))
            for label, block in node.blocks.items():
                lines.append("  " * (depth + 1) + f"[{label}]")
                for step in block:
                    if isinstance(step, NodeRef):
                        render(step.index, depth + 2)
                    else:
                        lines.append("  " * (depth + 2) + step_label(step))

        render(0, 0)
        return "\n".join(lines)


def step_label(step: Any) -> str:
    """Short label for a terminal step."""
    if isinstance(step, Interrupt):
        return str(step)
    return getattr(step, "__name__", repr(step))


__all__ = ["FlowGraph", "FlowNode", "NodeRef", "step_label"]
