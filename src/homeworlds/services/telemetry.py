from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping


@dataclass
class TelemetryService:
    """JSONL sink for engine events.

    Every record is ``{"ts", "seq", "type", "payload"}``; ``seq`` keeps counting
    across calls so the events of one session can be ordered after the fact.
    """

    path: Path
    seq: int = 0

    def log_events(self, events: Iterable[Mapping[str, object]]) -> int:
        """Append one record per engine event; returns how many were written."""
        ts = datetime.now(tz=timezone.utc).isoformat()
        lines: list[str] = []
        for event in events:
            payload = {k: v for k, v in event.items() if k != "type"}
            rec = {"ts": ts, "seq": self.seq, "type": str(event["type"]), "payload": payload}
            lines.append(json.dumps(rec, ensure_ascii=False))
            self.seq += 1
        if not lines:
            return 0
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")
        return len(lines)

    def read(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        with self.path.open("r", encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]
