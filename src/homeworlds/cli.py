from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Iterable, TextIO

from homeworlds.engine.game import GameState, StepResult, new_game, step
from homeworlds.engine.render import describe
from homeworlds.engine.types import GameConfig
from homeworlds.notation import COMMANDS, NotationError, parse_command
from homeworlds.paths import get_paths
from homeworlds.services.scenarios import Scenario, ScenarioError, ScenarioService
from homeworlds.services.telemetry import TelemetryService

HELP = "Commands: " + ", ".join(COMMANDS) + "; plus status, bank, help, quit."


def apply_command(
    state: GameState, line: str, telemetry: TelemetryService | None = None
) -> StepResult:
    """Parse one command line and step the game with it.

    Notation errors never reach the engine and are reported with no code.
    """
    try:
        action = parse_command(line)
    except NotationError as e:
        return StepResult(ok=False, events=[], error=str(e))
    result = step(state, action)
    if telemetry is not None and result.ok:
        telemetry.log_events(result.events)
    return result


def _report(result: StepResult, out: TextIO) -> None:
    if result.ok:
        return
    if result.code is None:
        out.write(f"error: {result.error}\n")
    else:
        out.write(f"error [{result.code}]: {result.error}\n")


def run_script(
    state: GameState,
    scenario: Scenario,
    out: TextIO,
    telemetry: TelemetryService | None = None,
) -> bool:
    """Apply every scenario command; stop at the first rejected one."""
    for line in scenario.commands:
        result = apply_command(state, line, telemetry)
        if not result.ok:
            out.write(f"> {line}\n")
            _report(result, out)
            return False
    return True


def repl(
    state: GameState,
    lines: Iterable[str],
    out: TextIO,
    telemetry: TelemetryService | None = None,
) -> None:
    out.write(describe(state) + "\n")
    for raw in lines:
        line = raw.strip()
        if not line:
            continue
        word = line.split()[0].lower()
        if word in ("quit", "exit"):
            break
        if word == "help":
            out.write(HELP + "\n")
            continue
        if word == "bank":
            out.write(str(state.bank) + "\n")
            continue
        if word == "status":
            out.write(describe(state) + "\n")
            continue
        result = apply_command(state, line, telemetry)
        _report(result, out)
        if result.ok:
            out.write(describe(state) + "\n")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="homeworlds")
    parser.add_argument("--script", type=Path, default=None, help="JSON scenario to apply first")
    parser.add_argument(
        "--scenario", default=None, help="name of a bundled scenario to apply first"
    )
    parser.add_argument("--telemetry", type=Path, default=None, help="append engine events to this JSONL file")
    parser.add_argument("--players", type=int, default=2)
    parser.add_argument(
        "--no-interactive", action="store_true", help="exit after the script instead of reading commands"
    )
    args = parser.parse_args(argv)

    paths = get_paths()
    scenarios = ScenarioService(paths.scenario_dir, paths.schema_dir)
    try:
        config = GameConfig(num_players=args.players)
    except ValueError as e:
        sys.stderr.write(f"--players: {e}\n")
        return 1
    telemetry = TelemetryService(args.telemetry) if args.telemetry is not None else None
    state = new_game(config)
    out = sys.stdout

    scenario: Scenario | None = None
    try:
        if args.script is not None:
            scenario = scenarios.load(args.script)
        elif args.scenario is not None:
            scenario = scenarios.load_bundled(args.scenario)
    except ScenarioError as e:
        sys.stderr.write(f"{e}\n")
        return 1

    if scenario is not None and not run_script(state, scenario, out, telemetry):
        return 1

    if args.no_interactive:
        out.write(describe(state) + "\n")
        return 0
    repl(state, sys.stdin, out, telemetry)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
