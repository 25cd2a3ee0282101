"""Declarative node specifications for flow definitions.

NodeSpec types describe each control structure as a frozen dataclass.
A flow definition is a tree of specs; the tree itself never changes while
a game runs. All mutable state (positions) lives in the interpreter, so a
definition can be shared freely and positions can be snapshotted without
touching it.

The set of node kinds is closed:

    SequenceSpec    ordered block of steps
    WhileLoopSpec   condition-driven loop
    ForLoopSpec     initial/next/while loop with a named value
    ForEachSpec     walks a collection materialized at reset
    EachPlayerSpec  walks the player rotation
    SwitchCaseSpec  multi-way dispatch on a test value
    IfSpec          single boolean case with optional else
    ActionStepSpec  waits for a player's decision

Use the helpers in :mod:`turnpath.flow.builder` rather than building
specs by hand.
"""

from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Dict, Optional, Tuple, Union

# Type aliases for callable fields in specs.
ConditionFn = Callable[..., bool]  # (FlowArguments) -> bool
ValueFn = Callable[..., Any]  # (FlowArguments) -> value
StepperFn = Callable[[Any], Any]  # (value) -> next value
Block = Tuple[Any, ...]  # steps: NodeSpec | callable | Interrupt


class _Missing:
    """Sentinel for an unset case equality value."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


def as_block(steps: Any) -> Block:
    """Normalize a step, a list of steps, or None into a block tuple."""
    if steps is None:
        return ()
    if isinstance(steps, (list, tuple)):
        return tuple(steps)
    return (steps,)


@dataclass(frozen=True)
class NodeSpec:
    """Base spec for all flow nodes.

    Attributes:
        name: Optional node name. Named nodes expose their value to
            descendants under this key and appear in serialized positions.
    """

    kind: ClassVar[str] = "node"
    is_loop: ClassVar[bool] = False

    name: Optional[str] = None

    def blocks(self) -> Dict[str, Block]:
        """Child blocks of this node keyed by block label."""
        return {}


@dataclass(frozen=True)
class SequenceSpec(NodeSpec):
    """Ordered list of steps run one after another.

    Attributes:
        do: Steps of the sequence.
    """

    kind: ClassVar[str] = "sequence"

    do: Block = ()

    def blocks(self) -> Dict[str, Block]:
        return {"do": as_block(self.do)}


@dataclass(frozen=True)
class WhileLoopSpec(NodeSpec):
    """Loop that runs while a condition over the flow arguments holds.

    Attributes:
        condition: Called with FlowArguments before each iteration.
        do: Loop body.
    """

    kind: ClassVar[str] = "while-loop"
    is_loop: ClassVar[bool] = True

    condition: Optional[ConditionFn] = None
    do: Block = ()

    def blocks(self) -> Dict[str, Block]:
        return {"do": as_block(self.do)}


@dataclass(frozen=True)
class ForLoopSpec(NodeSpec):
    """Loop over a named value produced by ``initial`` and ``next``.

    Attributes:
        initial: Starting value, or a callable of FlowArguments.
        next: Steps the value from one iteration to the next.
        condition: Continue while ``condition(value)`` is true.
        do: Loop body.
    """

    kind: ClassVar[str] = "for-loop"
    is_loop: ClassVar[bool] = True

    initial: Any = None
    next: Optional[StepperFn] = None
    condition: Optional[ConditionFn] = None
    do: Block = ()

    def blocks(self) -> Dict[str, Block]:
        return {"do": as_block(self.do)}


@dataclass(frozen=True)
class ForEachSpec(NodeSpec):
    """Loop over each element of a collection.

    The collection is materialized once per reset and stored in the
    position, so a resumed game walks exactly the values the decision was
    made against.

    Attributes:
        collection: Static sequence, or a callable of FlowArguments.
        do: Loop body.
    """

    kind: ClassVar[str] = "for-each"
    is_loop: ClassVar[bool] = True

    collection: Any = ()
    do: Block = ()

    def blocks(self) -> Dict[str, Block]:
        return {"do": as_block(self.do)}


@dataclass(frozen=True)
class EachPlayerSpec(NodeSpec):
    """Loop over the player rotation, one turn per iteration.

    Attributes:
        starting_player: Player (or callable of FlowArguments) to start
            with. Defaults to the first player in the rotation.
        next_player: Picks the next player. Defaults to rotation order.
        turns: Number of full rotations when ``continue_until`` is unset.
        continue_until: Stop once ``continue_until(player)`` is true.
        do: Loop body.
    """

    kind: ClassVar[str] = "each-player"
    is_loop: ClassVar[bool] = True

    starting_player: Any = None
    next_player: Optional[StepperFn] = None
    turns: int = 1
    continue_until: Optional[ConditionFn] = None
    do: Block = ()

    def blocks(self) -> Dict[str, Block]:
        return {"do": as_block(self.do)}


@dataclass(frozen=True)
class CaseSpec:
    """One case of a SwitchCaseSpec.

    Exactly one matcher is set: ``eq`` (equality), ``among`` (membership)
    or ``test`` (predicate of the test value).
    """

    eq: Any = MISSING
    among: Optional[Tuple[Any, ...]] = None
    test: Optional[ConditionFn] = None
    do: Block = ()

    def matches(self, value: Any) -> bool:
        """Return True if the test value selects this case."""
        if self.eq is not MISSING:
            return self.eq == value
        if self.among is not None:
            return value in self.among
        if self.test is not None:
            return bool(self.test(value))
        return False

    @property
    def label(self) -> str:
        """Human-readable matcher for visualization."""
        if self.eq is not MISSING:
            return repr(self.eq)
        if self.among is not None:
            return "in " + repr(list(self.among))
        return getattr(self.test, "__name__", repr(self.test))


@dataclass(frozen=True)
class SwitchCaseSpec(NodeSpec):
    """Multi-way dispatch on a test value. First matching case wins.

    Attributes:
        switch: Test value, or a callable of FlowArguments.
        cases: Cases evaluated in order.
        default: Block run when no case matches. ``None`` exits instead.
    """

    kind: ClassVar[str] = "switch-case"

    switch: Any = None
    cases: Tuple[CaseSpec, ...] = ()
    default: Optional[Block] = None

    def blocks(self) -> Dict[str, Block]:
        result = {f"case:{i}": as_block(c.do) for i, c in enumerate(self.cases)}
        if self.default is not None:
            result["default"] = as_block(self.default)
        return result

    def switch_cases(self) -> Tuple[CaseSpec, ...]:
        return self.cases


@dataclass(frozen=True)
class IfSpec(NodeSpec):
    """Boolean branch. Behaves as a switch with a single ``True`` case.

    Attributes:
        condition: Callable of FlowArguments.
        do: Block run when the condition is true.
        else_: Block run when the condition is false, if any.
    """

    kind: ClassVar[str] = "if-else"

    condition: Optional[ConditionFn] = None
    do: Block = ()
    else_: Optional[Block] = None

    def blocks(self) -> Dict[str, Block]:
        result = {"case:0": as_block(self.do)}
        if self.else_ is not None:
            result["default"] = as_block(self.else_)
        return result

    def switch_cases(self) -> Tuple[CaseSpec, ...]:
        return (CaseSpec(eq=True, do=self.do),)


@dataclass(frozen=True)
class ActionSpec:
    """One action offered by an ActionStepSpec.

    Attributes:
        name: Action name, passed to the action resolver.
        prompt: Prompt text, or a callable of FlowArguments.
        do: Block run after the action is accepted.
    """

    name: str = ""
    prompt: Union[str, ValueFn, None] = None
    do: Block = ()


PASS_ACTION = "__pass__"


@dataclass(frozen=True)
class ActionStepSpec(NodeSpec):
    """Suspends the flow until a player chooses one of ``actions``.

    Attributes:
        actions: Actions that may be taken.
        players: Player, list of players, or callable of FlowArguments
            restricting who may act. ``None`` means the current player.
        prompt: Prompt for the step, or a callable of FlowArguments.
        optional: If set, adds a pass action with this prompt.
        skip_if: Hint for the presentation layer ("always", "never",
            "only-one").
    """

    kind: ClassVar[str] = "action"

    actions: Tuple[ActionSpec, ...] = ()
    players: Any = None
    prompt: Union[str, ValueFn, None] = None
    optional: Union[str, ValueFn, None] = None
    skip_if: str = "always"

    def all_actions(self) -> Tuple[ActionSpec, ...]:
        """Actions including the built-in pass action when optional."""
        if self.optional is None:
            return self.actions
        return self.actions + (ActionSpec(name=PASS_ACTION, prompt=self.optional),)

    def blocks(self) -> Dict[str, Block]:
        return {f"action:{a.name}": as_block(a.do) for a in self.all_actions()}


__all__ = [
    # Type aliases
    "ConditionFn",
    "ValueFn",
    "StepperFn",
    "Block",
    "MISSING",
    "PASS_ACTION",
    "as_block",
    # Spec classes
    "NodeSpec",
    "SequenceSpec",
    "WhileLoopSpec",
    "ForLoopSpec",
    "ForEachSpec",
    "EachPlayerSpec",
    "CaseSpec",
    "SwitchCaseSpec",
    "IfSpec",
    "ActionSpec",
    "ActionStepSpec",
]
