from __future__ import annotations

from typing import Literal

from .bank import Bank
from .types import Color, Piece, RulesError, Size

CatastropheOutcome = Literal["still_exists", "evaporated"]


class StarSystem:
    """One or two stars plus every player's ships located there.

    Ships are plain piece values: removing a ship removes the first matching
    value, never a particular object.
    """

    def __init__(
        self,
        stars: tuple[Piece, ...],
        num_players: int,
        home_player: int | None = None,
    ) -> None:
        if not 1 <= len(stars) <= 2:
            raise ValueError("A system has one or two stars.")
        if home_player is not None and len(stars) != 2:
            raise ValueError("A homeworld starts with two stars.")
        self._stars: list[Piece] = list(stars)
        self.home_player = home_player
        self._ships: list[list[Piece]] = [[] for _ in range(num_players)]

    @staticmethod
    def neutral(star: Piece, num_players: int = 2) -> "StarSystem":
        return StarSystem((star,), num_players)

    @staticmethod
    def homeworld(star1: Piece, star2: Piece, player: int, num_players: int = 2) -> "StarSystem":
        return StarSystem((star1, star2), num_players, home_player=player)

    @property
    def stars(self) -> tuple[Piece, ...]:
        return tuple(self._stars)

    @property
    def is_homeworld(self) -> bool:
        return self.home_player is not None

    @property
    def num_players(self) -> int:
        return len(self._ships)

    def star_sizes(self) -> set[Size]:
        return {s.size for s in self._stars}

    def is_empty(self) -> bool:
        return not any(self._ships)

    def add_ship(self, player: int, ship: Piece) -> None:
        # Provenance (bank or another system) is the caller's job.
        self._ships[player].append(ship)

    def remove_ship(self, player: int, ship: Piece) -> None:
        fleet = self._ships[player]
        try:
            fleet.remove(ship)
        except ValueError:
            raise RulesError("no_such_ship", f"Player {player} has no {ship} here.") from None

    def has_ship(self, player: int, ship: Piece) -> bool:
        return ship in self._ships[player]

    def ships_of(self, player: int) -> tuple[Piece, ...]:
        return tuple(self._ships[player])

    def all_ships(self) -> list[Piece]:
        return [ship for fleet in self._ships for ship in fleet]

    def pieces(self) -> list[Piece]:
        return list(self._stars) + self.all_ships()

    def is_adjacent(self, other: "StarSystem") -> bool:
        return not (self.star_sizes() & other.star_sizes())

    def color_count(self, color: Color) -> int:
        return sum(1 for p in self.pieces() if p.color == color)

    def evaporate(self, bank: Bank) -> None:
        """Return every remaining star and ship to the bank."""
        bank.deposit_many(self.pieces())
        self._stars = []
        for fleet in self._ships:
            fleet.clear()

    def catastrophe(self, color: Color, bank: Bank) -> CatastropheOutcome:
        doomed = [ship for ship in self.all_ships() if ship.color == color]
        bank.deposit_many(doomed)
        self._ships = [[s for s in fleet if s.color != color] for fleet in self._ships]

        if self.is_empty():
            self.evaporate(bank)
            return "evaporated"

        hit_stars = [star for star in self._stars if star.color == color]
        if len(hit_stars) == len(self._stars):
            self.evaporate(bank)
            return "evaporated"
        if hit_stars:
            star = hit_stars[0]
            bank.deposit(star)
            self._stars.remove(star)
        return "still_exists"

    def __repr__(self) -> str:
        return (
            f"StarSystem(stars={self._stars!r}, home_player={self.home_player!r}, "
            f"ships={self._ships!r})"
        )
