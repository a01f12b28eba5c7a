from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Color = Literal["red", "blue", "green", "yellow"]
Size = Literal["small", "medium", "large"]

ALL_COLORS: tuple[Color, ...] = ("red", "blue", "green", "yellow")
ALL_SIZES: tuple[Size, ...] = ("small", "medium", "large")

SIZE_RANK: dict[Size, int] = {"small": 1, "medium": 2, "large": 3}

ErrorCode = Literal[
    # state shape
    "wrong_state",
    "wrong_phase",
    "wrong_player",
    # action legality
    "wrong_action_color",
    "wrong_system",
    "wrong_color",
    "ship_too_big",
    "systems_not_adjacent",
    # resources
    "piece_unavailable",
    "piece_at_capacity",
    # references
    "no_such_ship",
    "bad_system",
    # thresholds
    "not_catastrophe_enough",
    "free_action_unavailable",
    "no_actions_left",
    "unknown_action",
]


class RulesError(RuntimeError):
    """Raised by the bank and star systems when a rule would be broken."""

    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(message)
        self.code: ErrorCode = code
        self.message = message


@dataclass(frozen=True)
class Piece:
    color: Color
    size: Size

    @property
    def rank(self) -> int:
        return SIZE_RANK[self.size]

    def __str__(self) -> str:
        return f"{self.color.capitalize()} {self.size.capitalize()}"

    def to_dict(self) -> dict[str, str]:
        return {"color": self.color, "size": self.size}


ALL_PIECES: tuple[Piece, ...] = tuple(Piece(c, s) for c in ALL_COLORS for s in ALL_SIZES)


# Turn phases


@dataclass(frozen=True)
class Started:
    pass


@dataclass(frozen=True)
class FreeMove:
    system: int
    color: Color


@dataclass(frozen=True)
class Sacrifice:
    color: Color
    moves_left: int


@dataclass(frozen=True)
class Done:
    pass


Phase = Started | FreeMove | Sacrifice | Done


# Machine states


@dataclass(frozen=True)
class Setup:
    next_player: int


@dataclass(frozen=True)
class Turn:
    player: int
    phase: Phase


@dataclass(frozen=True)
class Finished:
    winner: int | None  # None when every player lost on the same step


MachineState = Setup | Turn | Finished


@dataclass(frozen=True)
class GameConfig:
    num_players: int = 2
    bank_copies: int = 3
    catastrophe_threshold: int = 4

    def __post_init__(self) -> None:
        if self.num_players < 2:
            raise ValueError(f"A game needs at least 2 players, got {self.num_players}.")
        if self.bank_copies < 1:
            raise ValueError(f"bank_copies must be positive, got {self.bank_copies}.")
        if self.catastrophe_threshold < 1:
            raise ValueError(f"catastrophe_threshold must be positive, got {self.catastrophe_threshold}.")
