"""Text notation for pieces and commands.

Pieces are written as a color letter plus a rank (``g3`` is a large green)
or spelled out (``green-large``). Commands are whitespace separated::

    setup r1 y2 g3
    free 0 green
    sacrifice 0 y2
    capture 0 r3 1 g1
    trade 0 g3 red
    build 0 g3
    move 0 y1 2
    discover 0 y1 b3
    catastrophe 0 green
    end
"""

from __future__ import annotations

from homeworlds.engine.actions import (
    Action,
    BuildAction,
    CaptureAction,
    CatastropheAction,
    DeclareFreeMoveAction,
    EndTurnAction,
    MoveAction,
    SacrificeAction,
    SetupAction,
    TradeAction,
)
from homeworlds.engine.types import ALL_COLORS, ALL_SIZES, SIZE_RANK, Color, Piece, Size


class NotationError(ValueError):
    pass


_COLOR_BY_LETTER: dict[str, Color] = {c[0]: c for c in ALL_COLORS}
_SIZE_BY_RANK: dict[str, Size] = {str(r): s for s, r in SIZE_RANK.items()}

COMMANDS = (
    "setup",
    "free",
    "sacrifice",
    "capture",
    "trade",
    "build",
    "move",
    "discover",
    "catastrophe",
    "end",
)


def parse_color(text: str) -> Color:
    t = text.strip().lower()
    if t in ALL_COLORS:
        return t  # type: ignore[return-value]
    if t in _COLOR_BY_LETTER:
        return _COLOR_BY_LETTER[t]
    raise NotationError(f"Unknown color: {text!r}")


def parse_piece(text: str) -> Piece:
    t = text.strip().lower()
    if "-" in t:
        color_part, _, size_part = t.partition("-")
        if size_part not in ALL_SIZES:
            raise NotationError(f"Unknown size in {text!r}")
        return Piece(parse_color(color_part), size_part)  # type: ignore[arg-type]
    if len(t) == 2 and t[0] in _COLOR_BY_LETTER and t[1] in _SIZE_BY_RANK:
        return Piece(_COLOR_BY_LETTER[t[0]], _SIZE_BY_RANK[t[1]])
    raise NotationError(f"Unknown piece: {text!r}")


def format_piece(piece: Piece) -> str:
    return f"{piece.color[0]}{piece.rank}"


def _parse_int(text: str, what: str) -> int:
    try:
        return int(text)
    except ValueError:
        raise NotationError(f"Expected a {what} number, got {text!r}") from None


def _expect(args: list[str], n: int, usage: str) -> None:
    if len(args) != n:
        raise NotationError(f"Usage: {usage}")


def parse_command(line: str) -> Action:
    words = line.split()
    if not words:
        raise NotationError("Empty command.")
    cmd, args = words[0].lower(), words[1:]

    if cmd == "setup":
        _expect(args, 3, "setup <star> <star> <ship>")
        return SetupAction(stars=(parse_piece(args[0]), parse_piece(args[1])), ship=parse_piece(args[2]))
    if cmd == "free":
        _expect(args, 2, "free <system> <color>")
        return DeclareFreeMoveAction(system=_parse_int(args[0], "system"), color=parse_color(args[1]))
    if cmd == "sacrifice":
        _expect(args, 2, "sacrifice <system> <ship>")
        return SacrificeAction(system=_parse_int(args[0], "system"), ship=parse_piece(args[1]))
    if cmd == "capture":
        _expect(args, 4, "capture <system> <ship> <player> <target>")
        return CaptureAction(
            system=_parse_int(args[0], "system"),
            ship=parse_piece(args[1]),
            enemy_player=_parse_int(args[2], "player"),
            target=parse_piece(args[3]),
        )
    if cmd == "trade":
        _expect(args, 3, "trade <system> <ship> <color>")
        return TradeAction(
            system=_parse_int(args[0], "system"), ship=parse_piece(args[1]), new_color=parse_color(args[2])
        )
    if cmd == "build":
        _expect(args, 2, "build <system> <ship>")
        return BuildAction(system=_parse_int(args[0], "system"), ship=parse_piece(args[1]))
    if cmd == "move":
        _expect(args, 3, "move <system> <ship> <destination>")
        return MoveAction.to_system(
            _parse_int(args[0], "system"), parse_piece(args[1]), _parse_int(args[2], "system")
        )
    if cmd == "discover":
        _expect(args, 3, "discover <system> <ship> <star>")
        return MoveAction.to_new_system(_parse_int(args[0], "system"), parse_piece(args[1]), parse_piece(args[2]))
    if cmd == "catastrophe":
        _expect(args, 2, "catastrophe <system> <color>")
        return CatastropheAction(system=_parse_int(args[0], "system"), color=parse_color(args[1]))
    if cmd == "end":
        _expect(args, 0, "end")
        return EndTurnAction()
    raise NotationError(f"Unknown command: {cmd!r}")
