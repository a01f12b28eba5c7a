from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from .types import Color, Piece


@dataclass(frozen=True)
class SetupAction:
    """Seat the next player: two homeworld stars and one starting ship."""

    stars: tuple[Piece, Piece]
    ship: Piece


@dataclass(frozen=True)
class DeclareFreeMoveAction:
    system: int
    color: Color


@dataclass(frozen=True)
class SacrificeAction:
    system: int
    ship: Piece


@dataclass(frozen=True)
class CaptureAction:
    system: int
    ship: Piece
    enemy_player: int
    target: Piece

    color: ClassVar[Color] = "red"


@dataclass(frozen=True)
class TradeAction:
    system: int
    ship: Piece
    new_color: Color

    color: ClassVar[Color] = "blue"


@dataclass(frozen=True)
class BuildAction:
    system: int
    ship: Piece

    color: ClassVar[Color] = "green"


@dataclass(frozen=True)
class MoveAction:
    """Yellow action: move to an existing system, or discover a new one.

    Exactly one of `destination` and `discover` is set.
    """

    system: int
    ship: Piece
    destination: int | None = None
    discover: Piece | None = None

    color: ClassVar[Color] = "yellow"

    @staticmethod
    def to_system(system: int, ship: Piece, destination: int) -> "MoveAction":
        return MoveAction(system=system, ship=ship, destination=destination)

    @staticmethod
    def to_new_system(system: int, ship: Piece, star: Piece) -> "MoveAction":
        return MoveAction(system=system, ship=ship, discover=star)


@dataclass(frozen=True)
class CatastropheAction:
    system: int
    color: Color


@dataclass(frozen=True)
class EndTurnAction:
    pass


ColorAction = CaptureAction | TradeAction | BuildAction | MoveAction

Action = (
    SetupAction
    | DeclareFreeMoveAction
    | SacrificeAction
    | ColorAction
    | CatastropheAction
    | EndTurnAction
)
