from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from homeworlds.engine.actions import Action
from homeworlds.notation import NotationError, parse_command


class ScenarioError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ScenarioError(f"Missing scenario file: {path}") from e
    except json.JSONDecodeError as e:
        raise ScenarioError(f"Invalid JSON in {path}: {e}") from e


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: e.path)
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise ScenarioError("\n".join(lines))


def _require_str(obj: Mapping[str, object], key: str) -> str:
    v = obj.get(key)
    if not isinstance(v, str):
        raise ScenarioError(f"Expected string for {key}")
    return v


@dataclass(frozen=True)
class Scenario:
    name: str
    description: str
    commands: tuple[str, ...]
    actions: tuple[Action, ...]


class ScenarioService:
    def __init__(self, scenario_dir: Path, schema_dir: Path) -> None:
        self._scenario_dir = scenario_dir
        self._schema_dir = schema_dir

    def schema(self, name: str) -> object:
        return _load_json(self._schema_dir / f"{name}.schema.json")

    def load(self, path: Path) -> Scenario:
        raw = _load_json(path)
        validate_json(raw, self.schema("scenario"), context=str(path))
        if not isinstance(raw, dict):
            raise ScenarioError(f"{path.name} must be an object")

        name = _require_str(raw, "name")
        description = raw.get("description", "")
        if not isinstance(description, str):
            description = ""
        raw_commands = raw.get("commands")
        if not isinstance(raw_commands, list):
            raise ScenarioError(f"{path.name}.commands must be a list")

        commands: list[str] = []
        actions: list[Action] = []
        for i, line in enumerate(raw_commands):
            try:
                actions.append(parse_command(line))
            except NotationError as e:
                raise ScenarioError(f"{path.name}: command {i} ({line!r}): {e}") from e
            commands.append(line)
        return Scenario(name=name, description=description, commands=tuple(commands), actions=tuple(actions))

    def load_bundled(self, name: str) -> Scenario:
        return self.load(self._scenario_dir / f"{name}.json")

    def bundled_names(self) -> list[str]:
        return sorted(p.stem for p in self._scenario_dir.glob("*.json"))

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        for name in self.bundled_names():
            _ = self.load_bundled(name)
