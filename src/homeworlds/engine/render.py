"""Plain-text status for diagnostics and the CLI. Not a stable format."""

from __future__ import annotations

from .game import GameState
from .system import StarSystem
from .types import Done, Finished, FreeMove, MachineState, Piece, Sacrifice, Setup, Started


def piece_label(piece: Piece) -> str:
    return f"{piece.color[0].upper()}{piece.rank}"


def describe_machine(m: MachineState) -> str:
    if isinstance(m, Setup):
        return f"Setup: player {m.next_player} to place a homeworld"
    if isinstance(m, Finished):
        if m.winner is None:
            return "Finished: draw"
        return f"Finished: player {m.winner} wins"
    phase = m.phase
    if isinstance(phase, Started):
        detail = "choose a free move or a sacrifice"
    elif isinstance(phase, FreeMove):
        detail = f"free {phase.color} action in system {phase.system}"
    elif isinstance(phase, Sacrifice):
        detail = f"sacrifice, {phase.moves_left} {phase.color} action(s) left"
    else:
        assert isinstance(phase, Done)
        detail = "done, end the turn"
    return f"Turn: player {m.player}, {detail}"


def describe_system(sid: int, system: StarSystem) -> str:
    stars = " ".join(piece_label(s) for s in system.stars)
    home = f" (home of player {system.home_player})" if system.home_player is not None else ""
    fleets = []
    for player in range(system.num_players):
        ships = " ".join(piece_label(s) for s in system.ships_of(player)) or "-"
        fleets.append(f"p{player}: {ships}")
    return f"[{sid}] stars {stars}{home} | " + " | ".join(fleets)


def describe(state: GameState) -> str:
    lines = [describe_machine(state.machine), str(state.bank)]
    for sid, system in state.systems.items():
        lines.append(describe_system(sid, system))
    return "\n".join(lines)
