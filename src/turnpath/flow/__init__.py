"""Flow control system for turnpath.

The flow module runs turn-based game flows: nested sequences, loops and
branches whose terminal steps are game callbacks or player decisions.

Key Components:
- NodeSpec: Frozen description of one control structure
- FlowGraph: Compiled arena of nodes
- FlowInterpreter: Applies transitions and owns every Position
- FlowDriver: Plays to the next suspension and resumes with moves
- Do: Repeat/continue/break interrupts for enclosing loops

Example:
    >>> from turnpath.flow import FlowDriver, each_player, player_actions
    >>>
    >>> flow = each_player(name="player", turns=2, do=[
    ...     player_actions(name="turn", actions=["draw", "pass"]),
    ... ])
    >>> driver = FlowDriver(flow, players=players)
    >>> result = driver.start()
    >>> result = driver.resume(Move(player=1, name="draw"))
"""

from turnpath.flow.errors import (
    FlowError,
    FlowConfigurationError,
    EndlessLoopError,
    InterruptOutsideLoopError,
    InvalidPositionError,
    SerializationError,
    InvalidMoveError,
    MoveRejectedError,
    NodeProcessingError,
)
from turnpath.flow.node import (
    FlowArguments,
    FlowControl,
    LoopInterrupt,
    Interrupt,
    Do,
    Move,
    Position,
    Suspension,
)
from turnpath.flow.graph import FlowGraph, FlowNode, NodeRef
from turnpath.flow.interpreter import FlowInterpreter, DebugEvent, DebugHook
from turnpath.flow.executor import FlowDriver, FlowResult, ActionRequest, ActionStub
from turnpath.flow.protocols import PlayerRotation, ActionResolver
from turnpath.flow.builder import (
    sequence,
    loop,
    while_loop,
    for_loop,
    for_each,
    each_player,
    case,
    switch_case,
    if_else,
    action,
    player_actions,
)

# Import all spec types
from turnpath.flow.specs import (
    NodeSpec,
    SequenceSpec,
    WhileLoopSpec,
    ForLoopSpec,
    ForEachSpec,
    EachPlayerSpec,
    CaseSpec,
    SwitchCaseSpec,
    IfSpec,
    ActionSpec,
    ActionStepSpec,
    PASS_ACTION,
)

__all__ = [
    # Core
    "FlowArguments",
    "FlowControl",
    "LoopInterrupt",
    "Interrupt",
    "Do",
    "Move",
    "Position",
    "Suspension",
    "FlowGraph",
    "FlowNode",
    "NodeRef",
    "FlowInterpreter",
    "DebugEvent",
    "DebugHook",
    "FlowDriver",
    "FlowResult",
    "ActionRequest",
    "ActionStub",
    "PlayerRotation",
    "ActionResolver",
    # Errors
    "FlowError",
    "FlowConfigurationError",
    "EndlessLoopError",
    "InterruptOutsideLoopError",
    "InvalidPositionError",
    "SerializationError",
    "InvalidMoveError",
    "MoveRejectedError",
    "NodeProcessingError",
    # Builders
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
    # Specs
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
    "PASS_ACTION",
]
