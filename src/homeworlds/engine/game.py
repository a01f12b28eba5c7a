from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

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
from .system import StarSystem
from .types import (
    ALL_COLORS,
    ALL_PIECES,
    ALL_SIZES,
    Color,
    Done,
    ErrorCode,
    Finished,
    FreeMove,
    GameConfig,
    MachineState,
    Phase,
    Piece,
    RulesError,
    Sacrifice,
    Setup,
    Started,
    Turn,
)

Event = dict[str, object]


@dataclass
class StepResult:
    ok: bool
    events: list[Event]
    error: str | None = None
    code: ErrorCode | None = None


@dataclass(frozen=True)
class SystemSummary:
    id: int
    stars: tuple[Piece, ...]
    home_player: int | None
    ships: tuple[tuple[Piece, ...], ...]  # indexed by player


@dataclass
class GameState:
    """Bank, systems and machine state of one game.

    Systems are addressed by id. Ids are handed out in creation order and
    never reused, so an id stays valid until its system is destroyed.
    """

    config: GameConfig = field(default_factory=GameConfig)
    machine: MachineState = Setup(0)
    bank: Bank = field(init=False)
    systems: dict[int, StarSystem] = field(default_factory=dict)
    next_system_id: int = 0
    action_log: list[Action] = field(default_factory=list)
    event_log: list[Event] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.bank = Bank.full(self.config.bank_copies)

    @property
    def num_players(self) -> int:
        return self.config.num_players


def _emit(state: GameState, event_type: str, **payload: object) -> None:
    event: Event = {"type": event_type}
    event.update(payload)
    state.event_log.append(event)


def _require_turn(state: GameState) -> Turn:
    m = state.machine
    if not isinstance(m, Turn):
        raise RulesError("wrong_state", "Setup is not finished yet.")
    return m


def _get_system(state: GameState, system_id: int) -> StarSystem:
    system = state.systems.get(system_id)
    if system is None:
        raise RulesError("bad_system", f"No system {system_id}.")
    return system


def _add_system(state: GameState, system: StarSystem) -> int:
    sid = state.next_system_id
    state.systems[sid] = system
    state.next_system_id += 1
    return sid


def _remove_system(state: GameState, system_id: int) -> None:
    del state.systems[system_id]
    _emit(state, "SYSTEM_EVAPORATED", system=system_id)
    # A free action locked to a vanished system is forfeited.
    m = state.machine
    if isinstance(m, Turn) and isinstance(m.phase, FreeMove) and m.phase.system == system_id:
        state.machine = Turn(m.player, Done())
        _emit(state, "PHASE_DONE", player=m.player)


def _evaporate(state: GameState, system_id: int) -> None:
    state.systems[system_id].evaporate(state.bank)
    _remove_system(state, system_id)


def _available_colors(system: StarSystem, player: int) -> list[Color]:
    ships = system.ships_of(player)
    if not ships:
        return []
    present = {p.color for p in system.stars} | {s.color for s in ships}
    return [c for c in ALL_COLORS if c in present]


def _has_lost(state: GameState, player: int) -> bool:
    homes = [s for s in state.systems.values() if s.home_player == player]
    if not homes:
        return True
    return not any(s.ships_of(player) for s in homes)


def _check_winner(state: GameState) -> None:
    # Only meaningful once every player owns a homeworld.
    if not isinstance(state.machine, Turn):
        return
    survivors = [p for p in range(state.num_players) if not _has_lost(state, p)]
    if len(survivors) == 1:
        state.machine = Finished(survivors[0])
        _emit(state, "GAME_ENDED", winner=survivors[0], reason="homeworld_lost")
    elif not survivors:
        state.machine = Finished(None)
        _emit(state, "GAME_ENDED", winner=None, reason="draw")


# Setup


def _setup(state: GameState, action: SetupAction) -> None:
    m = state.machine
    if not isinstance(m, Setup):
        raise RulesError("wrong_state", "Setup is already finished.")
    player = m.next_player
    star1, star2 = action.stars

    state.bank.withdraw_many([star1, star2, action.ship])
    homeworld = StarSystem.homeworld(star1, star2, player, state.num_players)
    homeworld.add_ship(player, action.ship)
    sid = _add_system(state, homeworld)
    _emit(
        state,
        "HOMEWORLD_CREATED",
        player=player,
        system=sid,
        stars=[star1.to_dict(), star2.to_dict()],
        ship=action.ship.to_dict(),
    )

    if player + 1 < state.num_players:
        state.machine = Setup(player + 1)
        return
    state.machine = Turn(0, Started())
    _emit(state, "SETUP_COMPLETED")
    _emit(state, "TURN_STARTED", player=0)


# Turn openers


def _declare_free_move(state: GameState, action: DeclareFreeMoveAction) -> None:
    turn = _require_turn(state)
    if not isinstance(turn.phase, Started):
        raise RulesError("wrong_phase", "An action was already chosen this turn.")
    system = _get_system(state, action.system)
    colors = _available_colors(system, turn.player)
    if not colors:
        raise RulesError("free_action_unavailable", "You have no ships in that system.")
    if action.color not in colors:
        raise RulesError(
            "free_action_unavailable", f"{action.color.capitalize()} is not available in that system."
        )
    state.machine = Turn(turn.player, FreeMove(action.system, action.color))
    _emit(state, "FREE_MOVE_DECLARED", player=turn.player, system=action.system, color=action.color)


def _sacrifice(state: GameState, action: SacrificeAction) -> None:
    turn = _require_turn(state)
    if not isinstance(turn.phase, Started):
        raise RulesError("wrong_phase", "An action was already chosen this turn.")
    system = _get_system(state, action.system)
    if not system.has_ship(turn.player, action.ship):
        raise RulesError("no_such_ship", f"You have no {action.ship} in system {action.system}.")

    system.remove_ship(turn.player, action.ship)
    state.bank.deposit(action.ship)
    _emit(state, "SHIP_SACRIFICED", player=turn.player, system=action.system, ship=action.ship.to_dict())
    if system.is_empty():
        _evaporate(state, action.system)
    state.machine = Turn(turn.player, Sacrifice(action.ship.color, action.ship.rank))
    _check_winner(state)


# Colored actions


def _capture(state: GameState, player: int, system: StarSystem, action: CaptureAction) -> None:
    if action.enemy_player == player or not 0 <= action.enemy_player < state.num_players:
        raise RulesError("wrong_player", "Capture must target another player.")
    if not system.has_ship(action.enemy_player, action.target):
        raise RulesError("no_such_ship", f"Player {action.enemy_player} has no {action.target} here.")
    if action.target.rank > action.ship.rank:
        raise RulesError("ship_too_big", f"{action.ship} cannot capture {action.target}.")

    system.remove_ship(action.enemy_player, action.target)
    system.add_ship(player, action.target)
    _emit(
        state,
        "SHIP_CAPTURED",
        player=player,
        enemy=action.enemy_player,
        system=action.system,
        ship=action.target.to_dict(),
    )


def _trade(state: GameState, player: int, system: StarSystem, action: TradeAction) -> None:
    if action.new_color == action.ship.color:
        raise RulesError("wrong_color", "Trade for a different color.")
    traded = Piece(action.new_color, action.ship.size)
    if state.bank.available(traded) < 1:
        raise RulesError("piece_unavailable", f"No {traded} left in the bank.")

    system.remove_ship(player, action.ship)
    state.bank.withdraw(traded)
    state.bank.deposit(action.ship)
    system.add_ship(player, traded)
    _emit(
        state,
        "SHIP_TRADED",
        player=player,
        system=action.system,
        old=action.ship.to_dict(),
        new=traded.to_dict(),
    )


def _build(state: GameState, player: int, system: StarSystem, action: BuildAction) -> None:
    for size in ALL_SIZES:
        piece = Piece(action.ship.color, size)
        if state.bank.available(piece) > 0:
            state.bank.withdraw(piece)
            system.add_ship(player, piece)
            _emit(state, "SHIP_BUILT", player=player, system=action.system, ship=piece.to_dict())
            return
    raise RulesError("piece_unavailable", f"No {action.ship.color} pieces left in the bank.")


def _move(state: GameState, player: int, source: StarSystem, action: MoveAction) -> None:
    if (action.destination is None) == (action.discover is None):
        raise RulesError("bad_system", "Name either a destination system or a star to discover.")

    if action.discover is not None:
        star = action.discover
        if state.bank.available(star) < 1:
            raise RulesError("piece_unavailable", f"No {star} left in the bank.")
        dest = StarSystem.neutral(star, state.num_players)
        if not source.is_adjacent(dest):
            raise RulesError("systems_not_adjacent", f"A {star.size} star is not adjacent to this system.")
        state.bank.withdraw(star)
        source.remove_ship(player, action.ship)
        dest.add_ship(player, action.ship)
        dest_id = _add_system(state, dest)
        _emit(state, "SYSTEM_DISCOVERED", player=player, system=dest_id, star=star.to_dict())
    else:
        assert action.destination is not None
        dest_id = action.destination
        dest = _get_system(state, dest_id)
        if dest is source or not source.is_adjacent(dest):
            raise RulesError("systems_not_adjacent", f"System {dest_id} is not adjacent to {action.system}.")
        source.remove_ship(player, action.ship)
        dest.add_ship(player, action.ship)

    _emit(
        state,
        "SHIP_MOVED",
        player=player,
        ship=action.ship.to_dict(),
        source=action.system,
        destination=dest_id,
    )
    if source.is_empty():
        _evaporate(state, action.system)


def _perform_action(state: GameState, action: ColorAction) -> None:
    turn = _require_turn(state)
    phase = turn.phase
    if isinstance(phase, Started):
        raise RulesError("wrong_phase", "Declare a free move or a sacrifice first.")
    if isinstance(phase, Done):
        raise RulesError("no_actions_left", "No actions left this turn.")
    if action.color != phase.color:
        raise RulesError("wrong_action_color", f"This turn allows {phase.color} actions only.")
    if isinstance(phase, FreeMove) and action.system != phase.system:
        raise RulesError("wrong_system", f"The free action is locked to system {phase.system}.")
    system = _get_system(state, action.system)
    if not system.has_ship(turn.player, action.ship):
        raise RulesError("no_such_ship", f"You have no {action.ship} in system {action.system}.")

    if isinstance(action, CaptureAction):
        _capture(state, turn.player, system, action)
    elif isinstance(action, TradeAction):
        _trade(state, turn.player, system, action)
    elif isinstance(action, BuildAction):
        _build(state, turn.player, system, action)
    else:
        _move(state, turn.player, system, action)

    next_phase: Phase = Done()
    if isinstance(phase, Sacrifice) and phase.moves_left > 1:
        next_phase = Sacrifice(phase.color, phase.moves_left - 1)
    # an evaporated source may already have closed the free action
    already_done = state.machine == Turn(turn.player, Done())
    state.machine = Turn(turn.player, next_phase)
    if isinstance(next_phase, Done) and not already_done:
        _emit(state, "PHASE_DONE", player=turn.player)
    _check_winner(state)


# Anytime and end of turn


def _declare_catastrophe(state: GameState, action: CatastropheAction) -> None:
    system = _get_system(state, action.system)
    count = system.color_count(action.color)
    threshold = state.config.catastrophe_threshold
    if count < threshold:
        raise RulesError(
            "not_catastrophe_enough",
            f"Only {count} {action.color} pieces in system {action.system}, need {threshold}.",
        )

    stars_before = system.stars
    outcome = system.catastrophe(action.color, state.bank)
    _emit(state, "CATASTROPHE", system=action.system, color=action.color)
    if outcome == "evaporated":
        _remove_system(state, action.system)
    else:
        if len(system.stars) < len(stars_before):
            lost = [s for s in stars_before if s not in system.stars]
            _emit(state, "STAR_DESTROYED", system=action.system, star=lost[0].to_dict())
        m = state.machine
        if (
            isinstance(m, Turn)
            and isinstance(m.phase, FreeMove)
            and m.phase.system == action.system
            and not system.ships_of(m.player)
        ):
            state.machine = Turn(m.player, Done())
            _emit(state, "PHASE_DONE", player=m.player)
    _check_winner(state)


def _end_turn(state: GameState, action: EndTurnAction) -> None:
    turn = _require_turn(state)
    if not isinstance(turn.phase, Done):
        raise RulesError("wrong_phase", "Finish your action before ending the turn.")
    nxt = (turn.player + 1) % state.num_players
    _emit(state, "TURN_ENDED", player=turn.player)
    state.machine = Turn(nxt, Started())
    _emit(state, "TURN_STARTED", player=nxt)


def step(state: GameState, action: Action) -> StepResult:
    """Apply one action.

    On success every change is committed; on failure the state is left as it
    was and the result carries an error code and message.
    """
    if isinstance(state.machine, Finished):
        return StepResult(ok=False, events=[], error="Game already finished.", code="wrong_state")

    state.action_log.append(action)
    mark = len(state.event_log)
    try:
        if isinstance(action, SetupAction):
            _setup(state, action)
        elif isinstance(action, DeclareFreeMoveAction):
            _declare_free_move(state, action)
        elif isinstance(action, SacrificeAction):
            _sacrifice(state, action)
        elif isinstance(action, (CaptureAction, TradeAction, BuildAction, MoveAction)):
            _perform_action(state, action)
        elif isinstance(action, CatastropheAction):
            _declare_catastrophe(state, action)
        elif isinstance(action, EndTurnAction):
            _end_turn(state, action)
        else:
            raise RulesError("unknown_action", "Unknown action.")
    except RulesError as e:
        return StepResult(ok=False, events=[], error=e.message, code=e.code)
    return StepResult(ok=True, events=state.event_log[mark:])


def new_game(config: GameConfig | None = None) -> GameState:
    return GameState(config=config or GameConfig())


def replay(actions: Iterable[Action], config: GameConfig | None = None) -> GameState:
    state = new_game(config)
    for a in actions:
        step(state, a)
        if isinstance(state.machine, Finished):
            break
    return state


# Operation wrappers


def setup(state: GameState, stars: tuple[Piece, Piece], ship: Piece) -> StepResult:
    return step(state, SetupAction(stars=stars, ship=ship))


def declare_free_move(state: GameState, system: int, color: Color) -> StepResult:
    return step(state, DeclareFreeMoveAction(system=system, color=color))


def sacrifice(state: GameState, system: int, ship: Piece) -> StepResult:
    return step(state, SacrificeAction(system=system, ship=ship))


def perform_action(state: GameState, action: ColorAction) -> StepResult:
    return step(state, action)


def declare_catastrophe(state: GameState, system: int, color: Color) -> StepResult:
    return step(state, CatastropheAction(system=system, color=color))


def end_turn(state: GameState) -> StepResult:
    return step(state, EndTurnAction())


# Queries


def current_phase(state: GameState) -> Phase | None:
    m = state.machine
    return m.phase if isinstance(m, Turn) else None


def current_player(state: GameState) -> int | None:
    m = state.machine
    if isinstance(m, Setup):
        return m.next_player
    if isinstance(m, Turn):
        return m.player
    return None


def is_over(state: GameState) -> bool:
    return isinstance(state.machine, Finished)


def bank_counts(state: GameState) -> dict[Piece, int]:
    return state.bank.counts()


def system_summaries(state: GameState) -> list[SystemSummary]:
    return [
        SystemSummary(
            id=sid,
            stars=s.stars,
            home_player=s.home_player,
            ships=tuple(s.ships_of(p) for p in range(state.num_players)),
        )
        for sid, s in state.systems.items()
    ]


def free_action_colors(state: GameState, system: int, player: int | None = None) -> list[Color]:
    """Colors `player` (default: the current player) could use for a free action there."""
    sys_ = state.systems.get(system)
    if player is None:
        player = current_player(state)
    if sys_ is None or player is None:
        return []
    return _available_colors(sys_, player)


def conservation_errors(state: GameState) -> dict[Piece, int]:
    """Piece kinds whose bank + board total differs from the copy count, with that total."""
    totals = {p: state.bank.available(p) for p in ALL_PIECES}
    for system in state.systems.values():
        for piece in system.pieces():
            totals[piece] += 1
    return {p: n for p, n in totals.items() if n != state.config.bank_copies}
