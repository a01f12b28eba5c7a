from __future__ import annotations


from .actions import (
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
from .game import GameState
from .system import StarSystem
from .types import Done, Finished, FreeMove, MachineState, Piece, Sacrifice, Setup


def _piece(p: Piece | None) -> dict[str, str] | None:
    if p is None:
        return None
    return p.to_dict()


def action_to_dict(a: Action) -> dict[str, object]:
    if isinstance(a, SetupAction):
        return {"type": "setup", "stars": [_piece(s) for s in a.stars], "ship": _piece(a.ship)}
    if isinstance(a, DeclareFreeMoveAction):
        return {"type": "free", "system": a.system, "color": a.color}
    if isinstance(a, SacrificeAction):
        return {"type": "sacrifice", "system": a.system, "ship": _piece(a.ship)}
    if isinstance(a, CaptureAction):
        return {
            "type": "capture",
            "system": a.system,
            "ship": _piece(a.ship),
            "enemy_player": a.enemy_player,
            "target": _piece(a.target),
        }
    if isinstance(a, TradeAction):
        return {"type": "trade", "system": a.system, "ship": _piece(a.ship), "new_color": a.new_color}
    if isinstance(a, BuildAction):
        return {"type": "build", "system": a.system, "ship": _piece(a.ship)}
    if isinstance(a, MoveAction):
        return {
            "type": "move",
            "system": a.system,
            "ship": _piece(a.ship),
            "destination": a.destination,
            "discover": _piece(a.discover),
        }
    if isinstance(a, CatastropheAction):
        return {"type": "catastrophe", "system": a.system, "color": a.color}
    if isinstance(a, EndTurnAction):
        return {"type": "end_turn"}
    # should be unreachable
    return {"type": "unknown"}


def _machine_to_dict(m: MachineState) -> dict[str, object]:
    if isinstance(m, Setup):
        return {"state": "setup", "player": m.next_player}
    if isinstance(m, Finished):
        return {"state": "finished", "winner": m.winner}
    phase = m.phase
    out: dict[str, object] = {"state": "turn", "player": m.player}
    if isinstance(phase, FreeMove):
        out["phase"] = {"name": "free_move", "system": phase.system, "color": phase.color}
    elif isinstance(phase, Sacrifice):
        out["phase"] = {"name": "sacrifice", "color": phase.color, "moves_left": phase.moves_left}
    elif isinstance(phase, Done):
        out["phase"] = {"name": "done"}
    else:
        out["phase"] = {"name": "started"}
    return out


def _system_to_dict(sid: int, s: StarSystem) -> dict[str, object]:
    return {
        "id": sid,
        "stars": [p.to_dict() for p in s.stars],
        "home_player": s.home_player,
        "ships": [[p.to_dict() for p in s.ships_of(i)] for i in range(s.num_players)],
    }


def snapshot(state: GameState) -> dict[str, object]:
    """Return a JSON-serializable canonical snapshot of the current game state."""
    return {
        "machine": _machine_to_dict(state.machine),
        "bank": [
            {"piece": p.to_dict(), "count": n}
            for p, n in state.bank.counts().items()
        ],
        "systems": [_system_to_dict(sid, s) for sid, s in state.systems.items()],
        "action_log": [action_to_dict(a) for a in state.action_log],
    }
