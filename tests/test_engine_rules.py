from __future__ import annotations

import pytest

from homeworlds.engine.actions import BuildAction, CaptureAction, MoveAction, TradeAction
from homeworlds.engine.game import (
    GameState,
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
    sacrifice,
    setup,
    system_summaries,
)
from homeworlds.engine.render import describe
from homeworlds.engine.types import Done, Finished, FreeMove, GameConfig, Piece, Sacrifice, Setup, Started, Turn


def p(text: str) -> Piece:
    colors = {"r": "red", "b": "blue", "g": "green", "y": "yellow"}
    sizes = {"1": "small", "2": "medium", "3": "large"}
    return Piece(colors[text[0]], sizes[text[1]])  # type: ignore[arg-type]


def _seated(
    home0: tuple[str, str, str] = ("r1", "y2", "g3"),
    home1: tuple[str, str, str] = ("b3", "r2", "y3"),
) -> GameState:
    state = new_game()
    assert setup(state, (p(home0[0]), p(home0[1])), p(home0[2])).ok
    assert setup(state, (p(home1[0]), p(home1[1])), p(home1[2])).ok
    return state


def _free_build(state: GameState, system: int, ship: str) -> None:
    assert declare_free_move(state, system, "green").ok
    assert perform_action(state, BuildAction(system=system, ship=p(ship))).ok
    assert end_turn(state).ok


def test_new_game_starts_in_setup_with_full_bank() -> None:
    state = GameState()
    assert state.machine == Setup(0)
    assert state.systems == {}
    assert conservation_errors(state) == {}


def test_setup_seats_players_in_order() -> None:
    state = new_game()
    res = setup(state, (p("r1"), p("y2")), p("g3"))
    assert res.ok
    assert state.machine == Setup(1)
    assert [e["type"] for e in res.events] == ["HOMEWORLD_CREATED"]

    res = setup(state, (p("b3"), p("r2")), p("y3"))
    assert res.ok
    assert state.machine == Turn(0, Started())
    assert state.systems[0].home_player == 0
    assert state.systems[1].home_player == 1
    assert state.systems[1].ships_of(1) == (p("y3"),)
    assert state.bank.available(p("r1")) == 2
    assert conservation_errors(state) == {}

    res = setup(state, (p("b1"), p("b2")), p("b3"))
    assert not res.ok
    assert res.code == "wrong_state"


def test_setup_is_atomic_when_bank_runs_short() -> None:
    state = new_game()
    assert setup(state, (p("r3"), p("r3")), p("g1")).ok
    before = state.bank.counts()
    # one large red left, two requested
    res = setup(state, (p("r3"), p("y2")), p("r3"))
    assert not res.ok
    assert res.code == "piece_unavailable"
    assert state.bank.counts() == before
    assert state.machine == Setup(1)
    assert len(state.systems) == 1


def test_turn_operations_rejected_during_setup() -> None:
    state = new_game()
    assert declare_free_move(state, 0, "green").code == "wrong_state"
    assert sacrifice(state, 0, p("g3")).code == "wrong_state"
    assert end_turn(state).code == "wrong_state"


def test_scenario_a_free_green_build() -> None:
    state = _seated()
    before = state.bank.available(p("g1"))

    assert declare_free_move(state, 0, "green").ok
    assert state.machine == Turn(0, FreeMove(0, "green"))
    res = perform_action(state, BuildAction(system=0, ship=p("g3")))

    assert res.ok
    assert state.bank.available(p("g1")) == before - 1
    assert sorted(state.systems[0].ships_of(0), key=lambda s: s.rank) == [p("g1"), p("g3")]
    assert state.machine == Turn(0, Done())
    assert any(e["type"] == "SHIP_BUILT" for e in res.events)


def test_free_move_requires_ship_and_color() -> None:
    state = _seated()
    # player 0 has no ships in player 1's homeworld
    assert declare_free_move(state, 1, "blue").code == "free_action_unavailable"
    assert declare_free_move(state, 0, "blue").code == "free_action_unavailable"
    assert declare_free_move(state, 7, "red").code == "bad_system"
    assert free_action_colors(state, 0) == ["red", "green", "yellow"]
    assert state.machine == Turn(0, Started())


def test_free_move_locks_color_and_system() -> None:
    state = _seated()
    assert declare_free_move(state, 0, "green").ok
    assert declare_free_move(state, 0, "green").code == "wrong_phase"

    res = perform_action(state, TradeAction(system=0, ship=p("g3"), new_color="blue"))
    assert res.code == "wrong_action_color"
    res = perform_action(state, BuildAction(system=1, ship=p("y3")))
    assert res.code == "wrong_system"
    res = perform_action(state, BuildAction(system=0, ship=p("g1")))
    assert res.code == "no_such_ship"
    assert state.machine == Turn(0, FreeMove(0, "green"))


def test_action_before_declaring_is_wrong_phase() -> None:
    state = _seated()
    res = perform_action(state, BuildAction(system=0, ship=p("g3")))
    assert res.code == "wrong_phase"


def test_end_turn_cycles_players() -> None:
    state = _seated()
    assert end_turn(state).code == "wrong_phase"
    declare_free_move(state, 0, "green")
    assert end_turn(state).code == "wrong_phase"
    perform_action(state, BuildAction(system=0, ship=p("g3")))
    assert perform_action(state, BuildAction(system=0, ship=p("g3"))).code == "no_actions_left"

    res = end_turn(state)
    assert res.ok
    assert state.machine == Turn(1, Started())
    assert [e["type"] for e in res.events] == ["TURN_ENDED", "TURN_STARTED"]


def _to_capture_range() -> GameState:
    # player 1's homeworld has only large stars, so it neighbours player 0's
    state = _seated(home0=("r1", "y2", "g1"), home1=("b3", "g3", "y3"))
    _free_build(state, 0, "g1")
    _free_build(state, 1, "y3")
    _free_build(state, 0, "g1")
    assert declare_free_move(state, 1, "yellow").ok
    assert perform_action(state, MoveAction.to_system(1, p("y3"), 0)).ok
    assert end_turn(state).ok
    return state


def test_scenario_b_capture_of_bigger_ship_fails() -> None:
    state = _to_capture_range()
    fleets_before = (state.systems[0].ships_of(0), state.systems[0].ships_of(1))

    assert declare_free_move(state, 0, "red").ok
    res = perform_action(state, CaptureAction(system=0, ship=p("g1"), enemy_player=1, target=p("y3")))

    assert not res.ok
    assert res.code == "ship_too_big"
    assert (state.systems[0].ships_of(0), state.systems[0].ships_of(1)) == fleets_before


def test_capture_rules() -> None:
    state = _to_capture_range()
    _free_build(state, 0, "g1")  # small greens are gone, so this builds a g2

    # the red star in player 0's homeworld is open to player 1's ship there
    assert declare_free_move(state, 0, "red").ok
    res = perform_action(state, CaptureAction(system=0, ship=p("y3"), enemy_player=1, target=p("y3")))
    assert res.code == "wrong_player"
    res = perform_action(state, CaptureAction(system=0, ship=p("y3"), enemy_player=0, target=p("r1")))
    assert res.code == "no_such_ship"

    res = perform_action(state, CaptureAction(system=0, ship=p("y3"), enemy_player=0, target=p("g2")))
    assert res.ok
    assert p("g2") in state.systems[0].ships_of(1)
    assert p("g2") not in state.systems[0].ships_of(0)
    assert conservation_errors(state) == {}


def test_scenario_c_discover_must_be_adjacent() -> None:
    state = _seated()
    systems_before = dict(state.systems)
    assert declare_free_move(state, 0, "yellow").ok

    res = perform_action(state, MoveAction.to_new_system(0, p("g3"), p("b1")))

    assert not res.ok
    assert res.code == "systems_not_adjacent"
    assert state.systems == systems_before
    assert state.bank.available(p("b1")) == 3
    assert state.systems[0].ships_of(0) == (p("g3"),)


def test_discover_creates_system_and_empty_source_evaporates() -> None:
    state = _seated()
    _free_build(state, 0, "g3")
    assert declare_free_move(state, 1, "yellow").ok
    res = perform_action(state, MoveAction.to_new_system(1, p("y3"), p("g1")))

    assert res.ok
    # player 1 left home empty: homeworld evaporated, player 0 wins
    assert 1 not in state.systems
    assert state.systems[2].stars == (p("g1"),)
    assert state.systems[2].ships_of(1) == (p("y3"),)
    assert state.machine == Finished(0)
    assert state.bank.available(p("b3")) == 3
    assert conservation_errors(state) == {}
    types = [e["type"] for e in res.events]
    assert types.index("SYSTEM_DISCOVERED") < types.index("SHIP_MOVED") < types.index("SYSTEM_EVAPORATED")
    assert types[-1] == "GAME_ENDED"


def test_move_to_unknown_or_same_system() -> None:
    state = _seated()
    declare_free_move(state, 0, "yellow")
    assert perform_action(state, MoveAction.to_system(0, p("g3"), 9)).code == "bad_system"
    assert perform_action(state, MoveAction.to_system(0, p("g3"), 0)).code == "systems_not_adjacent"
    assert perform_action(state, MoveAction.to_system(0, p("g3"), 1)).code == "systems_not_adjacent"
    assert perform_action(state, MoveAction(system=0, ship=p("g3"))).code == "bad_system"
    assert state.machine == Turn(0, FreeMove(0, "yellow"))


def test_trade_goes_through_the_bank() -> None:
    state = _seated(home0=("b1", "y2", "g3"))
    assert declare_free_move(state, 0, "blue").ok
    assert perform_action(state, TradeAction(system=0, ship=p("g3"), new_color="green")).code == "wrong_color"

    res = perform_action(state, TradeAction(system=0, ship=p("g3"), new_color="red"))
    assert res.ok
    assert state.systems[0].ships_of(0) == (p("r3"),)
    assert state.bank.available(p("g3")) == 3
    assert state.bank.available(p("r3")) == 2
    assert conservation_errors(state) == {}


def test_trade_needs_the_new_piece_in_the_bank() -> None:
    # player 1 holds every large red
    state = _seated(home0=("b1", "y2", "g3"), home1=("r3", "r3", "r3"))
    declare_free_move(state, 0, "blue")
    res = perform_action(state, TradeAction(system=0, ship=p("g3"), new_color="red"))
    assert res.code == "piece_unavailable"
    assert state.systems[0].ships_of(0) == (p("g3"),)
    assert state.machine == Turn(0, FreeMove(0, "blue"))


def test_build_takes_smallest_available_size() -> None:
    state = _seated(home0=("g1", "g2", "g3"), home1=("g1", "g2", "g3"))
    _free_build(state, 0, "g3")
    assert p("g1") in state.systems[0].ships_of(0)
    _free_build(state, 1, "g3")
    assert p("g2") in state.systems[1].ships_of(1)
    _free_build(state, 0, "g3")
    assert state.systems[0].ships_of(0).count(p("g3")) == 2

    # every green piece is now in play
    assert declare_free_move(state, 1, "green").ok
    res = perform_action(state, BuildAction(system=1, ship=p("g3")))
    assert res.code == "piece_unavailable"
    assert state.systems[1].ships_of(1) == (p("g3"), p("g2"))


@pytest.mark.parametrize("size,budget", [("small", 1), ("medium", 2), ("large", 3)])
def test_sacrifice_budget_matches_rank(size: str, budget: int) -> None:
    ship = Piece("green", size)  # type: ignore[arg-type]
    state = new_game()
    assert setup(state, (p("r1"), p("y2")), ship).ok
    assert setup(state, (p("b3"), p("g3")), p("y3")).ok
    _free_build(state, 0, f"g{ship.rank}")
    _free_build(state, 1, "y3")

    res = sacrifice(state, 0, ship)
    assert res.ok
    assert state.machine == Turn(0, Sacrifice("green", budget))

    for left in range(budget, 0, -1):
        assert current_phase(state) == Sacrifice("green", left)
        assert perform_action(state, BuildAction(system=0, ship=p("g1"))).ok
        assert conservation_errors(state) == {}
    assert current_phase(state) == Done()
    assert perform_action(state, BuildAction(system=0, ship=p("g1"))).code == "no_actions_left"
    assert end_turn(state).ok


def test_sacrifice_returns_ship_to_bank() -> None:
    state = _seated()
    _free_build(state, 0, "g3")
    assert declare_free_move(state, 1, "blue").ok
    assert perform_action(state, TradeAction(system=1, ship=p("y3"), new_color="blue")).ok
    assert end_turn(state).ok

    g3_before = state.bank.available(p("g3"))
    assert sacrifice(state, 0, p("r1")).code == "no_such_ship"
    res = sacrifice(state, 0, p("g3"))
    assert res.ok
    assert state.bank.available(p("g3")) == g3_before + 1
    assert state.systems[0].ships_of(0) == (p("g1"),)
    assert sacrifice(state, 0, p("g1")).code == "wrong_phase"
    assert conservation_errors(state) == {}


def test_sacrificing_last_home_ship_loses() -> None:
    state = _seated()
    res = sacrifice(state, 0, p("g3"))
    assert res.ok
    assert 0 not in state.systems
    assert state.machine == Finished(1)
    assert end_turn(state).code == "wrong_state"
    assert conservation_errors(state) == {}


def test_capture_of_last_home_ship_wins() -> None:
    state = _seated(home0=("r1", "b2", "g1"), home1=("b3", "g3", "y3"))
    assert declare_free_move(state, 0, "blue").ok
    assert perform_action(state, TradeAction(system=0, ship=p("g1"), new_color="yellow")).ok
    assert end_turn(state).ok
    _free_build(state, 1, "y3")
    assert declare_free_move(state, 0, "blue").ok
    assert perform_action(state, TradeAction(system=0, ship=p("y1"), new_color="green")).ok
    assert end_turn(state).ok
    assert declare_free_move(state, 1, "yellow").ok
    assert perform_action(state, MoveAction.to_system(1, p("y3"), 0)).ok
    assert end_turn(state).ok
    assert declare_free_move(state, 0, "blue").ok
    assert perform_action(state, TradeAction(system=0, ship=p("g1"), new_color="yellow")).ok
    assert end_turn(state).ok

    assert declare_free_move(state, 1, "red").ok
    res = perform_action(state, CaptureAction(system=0, ship=p("y3"), enemy_player=0, target=p("y1")))
    assert res.ok
    assert state.machine == Finished(1)
    assert res.events[-1] == {"type": "GAME_ENDED", "winner": 1, "reason": "homeworld_lost"}
    assert end_turn(state).code == "wrong_state"


def test_catastrophe_gating_and_homeworld_loss() -> None:
    state = _seated(home0=("g1", "y2", "g3"), home1=("b3", "g2", "y3"))
    _free_build(state, 0, "g3")
    _free_build(state, 1, "y3")
    assert state.systems[0].color_count("green") == 3
    assert declare_catastrophe(state, 0, "green").code == "not_catastrophe_enough"
    assert declare_catastrophe(state, 5, "green").code == "bad_system"

    declare_free_move(state, 0, "green")
    perform_action(state, BuildAction(system=0, ship=p("g3")))
    assert state.systems[0].color_count("green") == 4

    res = declare_catastrophe(state, 0, "green")
    assert res.ok
    # every ship there was green: the homeworld evaporates and player 0 is out
    assert 0 not in state.systems
    assert state.machine == Finished(1)
    assert conservation_errors(state) == {}


def test_catastrophe_destroys_one_homeworld_star() -> None:
    state = _seated(home0=("g1", "b2", "g3"), home1=("b3", "g3", "y3"))
    _free_build(state, 0, "g3")
    _free_build(state, 1, "y3")
    assert declare_free_move(state, 0, "blue").ok
    assert perform_action(state, TradeAction(system=0, ship=p("g1"), new_color="red")).ok
    assert end_turn(state).ok
    _free_build(state, 1, "y3")
    _free_build(state, 0, "g3")
    _free_build(state, 1, "y3")
    assert declare_free_move(state, 0, "green").ok
    assert perform_action(state, BuildAction(system=0, ship=p("g3"))).ok
    assert state.systems[0].color_count("green") == 4

    res = declare_catastrophe(state, 0, "green")

    assert res.ok
    assert [e["type"] for e in res.events] == ["CATASTROPHE", "STAR_DESTROYED"]
    home = state.systems[0]
    assert home.stars == (p("b2"),)
    assert home.ships_of(0) == (p("r1"),)
    assert home.home_player == 0
    assert home.color_count("green") == 0
    assert state.machine == Turn(0, Done())
    assert conservation_errors(state) == {}


def test_status_queries() -> None:
    state = new_game()
    assert current_player(state) == 0
    assert current_phase(state) is None
    state = _seated()
    _free_build(state, 0, "g3")

    assert current_player(state) == 1
    assert current_phase(state) == Started()
    assert not is_over(state)
    summaries = system_summaries(state)
    assert [s.id for s in summaries] == [0, 1]
    assert summaries[0].stars == (p("r1"), p("y2"))
    assert summaries[0].home_player == 0
    assert summaries[0].ships == ((p("g3"), p("g1")), ())
    counts = bank_counts(state)
    assert len(counts) == 12
    assert counts[p("g1")] == 2
    # the query hands out a copy
    counts[p("g1")] = 0
    assert state.bank.available(p("g1")) == 2

    text = describe(state)
    assert text.splitlines()[0] == "Turn: player 1, choose a free move or a sacrifice"
    assert "[0] stars R1 Y2 (home of player 0) | p0: G3 G1 | p1: -" in text


def test_config_needs_two_players() -> None:
    for n in (0, 1):
        with pytest.raises(ValueError):
            new_game(GameConfig(num_players=n))

    state = new_game(GameConfig(num_players=3))
    assert setup(state, (p("r1"), p("y2")), p("g3")).ok
    assert setup(state, (p("b3"), p("r2")), p("y3")).ok
    assert state.machine == Setup(2)
    assert setup(state, (p("g2"), p("b1")), p("r3")).ok
    assert state.machine == Turn(0, Started())
    assert conservation_errors(state) == {}


def _green_outpost() -> GameState:
    # player 0 ends up with three small greens around a large green star
    state = _seated(home0=("r1", "y2", "g3"), home1=("b3", "g3", "y3"))
    _free_build(state, 0, "g3")
    _free_build(state, 1, "y3")
    assert declare_free_move(state, 0, "yellow").ok
    assert perform_action(state, MoveAction.to_new_system(0, p("g1"), p("g3"))).ok
    assert end_turn(state).ok
    _free_build(state, 1, "y3")
    _free_build(state, 2, "g1")
    _free_build(state, 1, "y3")
    _free_build(state, 2, "g1")
    _free_build(state, 1, "y3")
    return state


def test_free_action_forfeited_when_its_system_evaporates() -> None:
    state = _green_outpost()
    assert state.systems[2].color_count("green") == 4
    assert declare_free_move(state, 2, "green").ok

    res = declare_catastrophe(state, 2, "green")

    assert res.ok
    assert [e["type"] for e in res.events] == ["CATASTROPHE", "SYSTEM_EVAPORATED", "PHASE_DONE"]
    assert 2 not in state.systems
    assert state.machine == Turn(0, Done())
    assert conservation_errors(state) == {}
    assert perform_action(state, BuildAction(system=2, ship=p("g1"))).code == "no_actions_left"
    assert end_turn(state).ok


def test_free_action_forfeited_when_catastrophe_clears_own_fleet() -> None:
    state = _seated(home0=("r1", "y2", "g3"), home1=("b3", "g3", "y3"))
    _free_build(state, 0, "g3")
    _free_build(state, 1, "y3")
    assert declare_free_move(state, 0, "yellow").ok
    assert perform_action(state, MoveAction.to_system(0, p("g1"), 1)).ok
    assert end_turn(state).ok
    _free_build(state, 1, "y3")
    _free_build(state, 0, "g3")  # another g1 at home
    _free_build(state, 1, "y3")
    assert declare_free_move(state, 1, "green").ok
    assert perform_action(state, BuildAction(system=1, ship=p("g1"))).ok
    assert end_turn(state).ok
    _free_build(state, 1, "y3")
    assert state.systems[1].color_count("green") == 3

    assert declare_free_move(state, 1, "green").ok
    assert perform_action(state, BuildAction(system=1, ship=p("g1"))).ok
    assert end_turn(state).ok
    _free_build(state, 1, "y3")
    assert state.systems[1].color_count("green") == 4

    assert declare_free_move(state, 1, "green").ok
    res = declare_catastrophe(state, 1, "green")

    assert res.ok
    assert [e["type"] for e in res.events] == ["CATASTROPHE", "STAR_DESTROYED", "PHASE_DONE"]
    home1 = state.systems[1]
    assert home1.stars == (p("b3"),)
    assert home1.ships_of(0) == ()
    assert home1.ships_of(1)
    assert state.machine == Turn(0, Done())
    assert conservation_errors(state) == {}


def test_sacrifice_actions_must_be_spent_before_ending_turn() -> None:
    state = _seated(home0=("g1", "y2", "r3"), home1=("b3", "g3", "y3"))
    _free_build(state, 0, "r3")  # builds r1
    _free_build(state, 1, "y3")
    assert sacrifice(state, 0, p("r1")).ok
    assert state.machine == Turn(0, Sacrifice("red", 1))

    # no enemy ship shares a system with player 0, so the capture has no target
    res = perform_action(state, CaptureAction(system=0, ship=p("r3"), enemy_player=1, target=p("y3")))
    assert res.code == "no_such_ship"
    assert end_turn(state).code == "wrong_phase"
    assert state.machine == Turn(0, Sacrifice("red", 1))
