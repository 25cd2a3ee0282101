"""Tests for flow specs and builder helpers."""

import dataclasses

import pytest

from turnpath.flow import (
    Do,
    PASS_ACTION,
    ActionSpec,
    ActionStepSpec,
    CaseSpec,
    EachPlayerSpec,
    ForEachSpec,
    ForLoopSpec,
    IfSpec,
    SequenceSpec,
    SwitchCaseSpec,
    WhileLoopSpec,
    action,
    case,
    each_player,
    for_each,
    for_loop,
    if_else,
    loop,
    player_actions,
    sequence,
    switch_case,
    while_loop,
)
from turnpath.flow.specs import MISSING, as_block


def step(args):
    pass


class TestAsBlock:
    """Tests for block normalization."""

    def test_none_is_empty(self):
        assert as_block(None) == ()

    def test_single_step(self):
        assert as_block(step) == (step,)

    def test_list(self):
        assert as_block([step, Do.break_()]) == (step, Do.break_())


class TestSpecs:
    """Tests for spec dataclasses."""

    def test_specs_are_frozen(self):
        spec = SequenceSpec(name="main", do=(step,))
        with pytest.raises(dataclasses.FrozenInstanceError):
            spec.name = "other"

    def test_kind_tags(self):
        assert SequenceSpec.kind == "sequence"
        assert WhileLoopSpec.kind == "while-loop"
        assert ForLoopSpec.kind == "for-loop"
        assert ForEachSpec.kind == "for-each"
        assert EachPlayerSpec.kind == "each-player"
        assert SwitchCaseSpec.kind == "switch-case"
        assert IfSpec.kind == "if-else"
        assert ActionStepSpec.kind == "action"

    def test_loop_flags(self):
        assert WhileLoopSpec.is_loop
        assert ForLoopSpec.is_loop
        assert ForEachSpec.is_loop
        assert EachPlayerSpec.is_loop
        assert not SequenceSpec.is_loop
        assert not SwitchCaseSpec.is_loop
        assert not IfSpec.is_loop
        assert not ActionStepSpec.is_loop

    def test_switch_blocks(self):
        spec = SwitchCaseSpec(
            switch=1,
            cases=(CaseSpec(eq=1, do=(step,)), CaseSpec(eq=2)),
            default=(step,),
        )
        assert list(spec.blocks()) == ["case:0", "case:1", "default"]

    def test_switch_without_default(self):
        spec = SwitchCaseSpec(switch=1, cases=(CaseSpec(eq=1),))
        assert "default" not in spec.blocks()

    def test_if_is_single_true_case(self):
        spec = IfSpec(condition=step, do=(step,), else_=(step,))
        cases = spec.switch_cases()
        assert len(cases) == 1
        assert cases[0].matches(True)
        assert not cases[0].matches(False)
        assert list(spec.blocks()) == ["case:0", "default"]

    def test_optional_action_adds_pass(self):
        spec = ActionStepSpec(actions=(ActionSpec(name="draw"),), optional="Skip")
        names = [a.name for a in spec.all_actions()]
        assert names == ["draw", PASS_ACTION]
        assert "action:__pass__" in spec.blocks()


class TestCaseSpec:
    """Tests for case matchers."""

    def test_eq(self):
        assert CaseSpec(eq=3).matches(3)
        assert not CaseSpec(eq=3).matches(4)

    def test_eq_none_is_a_value(self):
        assert CaseSpec(eq=None).matches(None)

    def test_among(self):
        c = CaseSpec(among=("a", "b"))
        assert c.matches("b")
        assert not c.matches("c")

    def test_test(self):
        c = CaseSpec(test=lambda v: v > 10)
        assert c.matches(11)
        assert not c.matches(1)

    def test_unset_matches_nothing(self):
        assert CaseSpec().eq is MISSING
        assert not CaseSpec().matches(None)

    def test_labels(self):
        assert CaseSpec(eq="x").label == "'x'"
        assert CaseSpec(among=(1, 2)).label == "in [1, 2]"

        def big(v):
            return v > 10

        assert CaseSpec(test=big).label == "big"


class TestBuilders:
    """Tests for builder helpers."""

    def test_sequence_varargs_and_list(self):
        assert sequence(step, step).do == (step, step)
        assert sequence([step, step]).do == (step, step)

    def test_loop_runs_forever(self):
        spec = loop(do=step, name="main")
        assert isinstance(spec, WhileLoopSpec)
        assert spec.condition({}) is True

    def test_while_loop(self):
        cond = lambda args: False  # noqa: E731
        spec = while_loop(cond, do=[step])
        assert spec.condition is cond
        assert spec.do == (step,)

    def test_for_loop(self):
        spec = for_loop(name="x", initial=1, next=lambda x: x + 1, condition=lambda x: x < 3, do=step)
        assert spec.name == "x"
        assert spec.initial == 1

    def test_for_each_materializes_iterables(self):
        spec = for_each(name="card", collection=iter([1, 2]), do=step)
        assert spec.collection == (1, 2)

    def test_for_each_keeps_callables(self):
        fn = lambda args: [1]  # noqa: E731
        assert for_each(name="card", collection=fn, do=step).collection is fn

    def test_each_player_defaults(self):
        spec = each_player(name="player", do=step)
        assert spec.turns == 1
        assert spec.starting_player is None

    def test_switch_case(self):
        spec = switch_case(lambda a: 1, cases=[case(1, do=step), case(among=[2, 3])], default=step)
        assert spec.cases[1].among == (2, 3)
        assert spec.default == (step,)

    def test_if_else(self):
        spec = if_else(lambda a: True, do=step)
        assert spec.else_ is None

    def test_player_actions_accepts_strings(self):
        spec = player_actions(name="turn", actions=[action("draw", do=step), "pass"])
        assert [a.name for a in spec.actions] == ["draw", "pass"]
        assert spec.actions[0].do == (step,)
        assert spec.actions[1].do == ()
