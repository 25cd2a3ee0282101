"""Helpers for writing flow definitions.

Each helper returns a frozen spec, so definitions read as nested calls:

Example:
    >>> flow = sequence(
    ...     deal,
    ...     each_player(name="player", turns=2, do=[
    ...         player_actions(name="turn", actions=[
    ...             action("draw", do=draw_card),
    ...             "pass",
    ...         ]),
    ...     ]),
    ...     score,
    ... )

``do`` accepts a single step or a list. A step is a nested spec, a
callable of FlowArguments, or a ``Do`` interrupt.
"""

from typing import Any, Iterable, Optional, Sequence, Union

from turnpath.flow.specs import (
    MISSING,
    ActionSpec,
    ActionStepSpec,
    Block,
    CaseSpec,
    ConditionFn,
    EachPlayerSpec,
    ForEachSpec,
    ForLoopSpec,
    IfSpec,
    SequenceSpec,
    StepperFn,
    SwitchCaseSpec,
    WhileLoopSpec,
    as_block,
)


def _forever(args: Any) -> bool:
    return True


def sequence(*steps: Any, name: Optional[str] = None) -> SequenceSpec:
    """Run ``steps`` in order."""
    if len(steps) == 1 and isinstance(steps[0], (list, tuple)):
        steps = tuple(steps[0])
    return SequenceSpec(name=name, do=as_block(steps))


def loop(do: Any, name: Optional[str] = None) -> WhileLoopSpec:
    """Repeat ``do`` until a step breaks out of it."""
    return WhileLoopSpec(name=name, condition=_forever, do=as_block(do))


def while_loop(condition: ConditionFn, do: Any, name: Optional[str] = None) -> WhileLoopSpec:
    """Repeat ``do`` while ``condition(args)`` holds."""
    return WhileLoopSpec(name=name, condition=condition, do=as_block(do))


def for_loop(
    name: str,
    initial: Any,
    next: StepperFn,
    condition: ConditionFn,
    do: Any,
) -> ForLoopSpec:
    """Classic for loop over a named value.

    Example:
        >>> for_loop(name="x", initial=1, next=lambda x: x + 1,
        ...          condition=lambda x: x <= 3, do=[report])
    """
    return ForLoopSpec(name=name, initial=initial, next=next, condition=condition, do=as_block(do))


def for_each(name: str, collection: Any, do: Any) -> ForEachSpec:
    """Run ``do`` once per element of ``collection``.

    ``collection`` is a sequence or a callable of FlowArguments.
    """
    if not callable(collection) and isinstance(collection, Iterable) and not isinstance(collection, (str, bytes)):
        collection = tuple(collection)
    return ForEachSpec(name=name, collection=collection, do=as_block(do))


def each_player(
    name: str,
    do: Any,
    starting_player: Any = None,
    next_player: Optional[StepperFn] = None,
    turns: int = 1,
    continue_until: Optional[ConditionFn] = None,
) -> EachPlayerSpec:
    """Give each player a turn, ``turns`` times around the table."""
    return EachPlayerSpec(
        name=name,
        starting_player=starting_player,
        next_player=next_player,
        turns=turns,
        continue_until=continue_until,
        do=as_block(do),
    )


def case(
    eq: Any = MISSING,
    do: Any = None,
    among: Optional[Sequence[Any]] = None,
    test: Optional[ConditionFn] = None,
) -> CaseSpec:
    """A switch case matching by equality, membership or predicate."""
    return CaseSpec(
        eq=eq,
        among=tuple(among) if among is not None else None,
        test=test,
        do=as_block(do),
    )


def switch_case(
    switch: Any,
    cases: Sequence[CaseSpec],
    default: Any = None,
    name: Optional[str] = None,
) -> SwitchCaseSpec:
    """Run the first case whose matcher accepts the ``switch`` value."""
    return SwitchCaseSpec(
        name=name,
        switch=switch,
        cases=tuple(cases),
        default=as_block(default) if default is not None else None,
    )


def if_else(
    condition: ConditionFn,
    do: Any,
    else_: Any = None,
    name: Optional[str] = None,
) -> IfSpec:
    """Run ``do`` if ``condition(args)`` is truthy, else ``else_``."""
    return IfSpec(
        name=name,
        condition=condition,
        do=as_block(do),
        else_=as_block(else_) if else_ is not None else None,
    )


def action(name: str, do: Any = None, prompt: Any = None) -> ActionSpec:
    """An action offered by ``player_actions``."""
    return ActionSpec(name=name, prompt=prompt, do=as_block(do))


def player_actions(
    actions: Sequence[Union[ActionSpec, str]],
    name: Optional[str] = None,
    players: Any = None,
    prompt: Any = None,
    optional: Any = None,
    skip_if: str = "always",
) -> ActionStepSpec:
    """Wait for one of ``players`` (default: the current player) to act.

    Plain strings are shorthand for actions with no follow-up steps.
    ``optional`` adds a pass action with that prompt.
    """
    specs = tuple(a if isinstance(a, ActionSpec) else ActionSpec(name=a) for a in actions)
    return ActionStepSpec(
        name=name,
        actions=specs,
        players=players,
        prompt=prompt,
        optional=optional,
        skip_if=skip_if,
    )


__all__ = [
    "Block",
    "sequence",
    "loop",
    "while_loop",
    "for_loop",
    "for_each",
    "each_player",
    "case",
    "switch_case",
    "if_else",
    "action",
    "player_actions",
]
