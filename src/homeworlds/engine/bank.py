from __future__ import annotations

from collections import Counter
from typing import Iterable

from .types import ALL_COLORS, ALL_PIECES, ALL_SIZES, Piece, RulesError


class Bank:
    """Shared supply of pieces, at most `copies` of each of the 12 kinds."""

    def __init__(self, counts: dict[Piece, int], copies: int = 3) -> None:
        self._counts = dict(counts)
        self._copies = copies

    @staticmethod
    def full(copies: int = 3) -> "Bank":
        return Bank({p: copies for p in ALL_PIECES}, copies=copies)

    def available(self, piece: Piece) -> int:
        return self._counts.get(piece, 0)

    def counts(self) -> dict[Piece, int]:
        return dict(self._counts)

    def withdraw(self, piece: Piece) -> None:
        self.withdraw_many([piece])

    def withdraw_many(self, pieces: Iterable[Piece]) -> None:
        """Take every requested piece, or nothing if any kind runs short."""
        wanted = Counter(pieces)
        for piece, n in wanted.items():
            have = self.available(piece)
            if have < n:
                raise RulesError("piece_unavailable", f"Bank has {have} {piece}, need {n}.")
        for piece, n in wanted.items():
            self._counts[piece] = self.available(piece) - n

    def deposit(self, piece: Piece) -> None:
        self.deposit_many([piece])

    def deposit_many(self, pieces: Iterable[Piece]) -> None:
        returned = Counter(pieces)
        for piece, n in returned.items():
            if self.available(piece) + n > self._copies:
                raise RulesError("piece_at_capacity", f"Bank already holds every {piece}.")
        for piece, n in returned.items():
            self._counts[piece] = self.available(piece) + n

    def __str__(self) -> str:
        parts: list[str] = []
        for color in ALL_COLORS:
            sizes = ", ".join(f"{self.available(Piece(color, s))} {s}" for s in ALL_SIZES)
            parts.append(f"{color.capitalize()}: {sizes}")
        return "Bank - " + "; ".join(parts)
