"""Deterministic, headless rules engine for Homeworlds.

IMPORTANT: This package must never import the CLI or the services.
"""

from .actions import (
    Action,
    BuildAction,
    CaptureAction,
    CatastropheAction,
    ColorAction,
    DeclareFreeMoveAction,
    EndTurnAction,
    MoveAction,
    SacrificeAction,
    SetupAction,
    TradeAction,
)
from .bank import Bank
from .game import (
    GameState,
    StepResult,
    SystemSummary,
    bank_counts,
    conservation_errors,
    current_phase,
    current_player,
    declare_catastrophe,
    declare_free_move,
    end_turn,
    free_action_colors,
    is_over,
    new_game,
    perform_action,
    replay,
    sacrifice,
    setup,
    step,
    system_summaries,
)
from .system import StarSystem
from .types import (
    ALL_COLORS,
    ALL_PIECES,
    ALL_SIZES,
    SIZE_RANK,
    Color,
    Done,
    ErrorCode,
    Finished,
    FreeMove,
    GameConfig,
    Piece,
    RulesError,
    Sacrifice,
    Setup,
    Size,
    Started,
    Turn,
)

__all__ = [
    "ALL_COLORS",
    "ALL_PIECES",
    "ALL_SIZES",
    "Action",
    "Bank",
    "BuildAction",
    "CaptureAction",
    "CatastropheAction",
    "Color",
    "ColorAction",
    "DeclareFreeMoveAction",
    "Done",
    "EndTurnAction",
    "ErrorCode",
    "Finished",
    "FreeMove",
    "GameConfig",
    "GameState",
    "MoveAction",
    "Piece",
    "RulesError",
    "SIZE_RANK",
    "Sacrifice",
    "SacrificeAction",
    "Setup",
    "SetupAction",
    "Size",
    "StarSystem",
    "Started",
    "StepResult",
    "SystemSummary",
    "TradeAction",
    "Turn",
    "bank_counts",
    "conservation_errors",
    "current_phase",
    "current_player",
    "declare_catastrophe",
    "declare_free_move",
    "end_turn",
    "free_action_colors",
    "is_over",
    "new_game",
    "perform_action",
    "replay",
    "sacrifice",
    "setup",
    "step",
    "system_summaries",
]
