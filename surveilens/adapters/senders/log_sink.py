"""Appends one JSON line per logged event."""

import asyncio
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from surveilens.config import CONFIG
from surveilens.ports.outbound import SendResult


def _log(msg: str):
    print(msg, file=sys.stderr)


class LogSink:
    """Appends to ``{STORAGE_DIR}/event_log.jsonl``. Writes are serialized."""

    def __init__(self, path: Optional[str] = None):
        self._path = Path(path) if path else Path(CONFIG["storage_dir"]) / "event_log.jsonl"
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def is_authenticated(self, block_id: str) -> bool:
        return True

    def _append(self, line: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")

    async def send(self, block_id, config, event) -> SendResult:
        entry = {
            "logged_at": datetime.now().isoformat(),
            "block_id": block_id,
            "level": config.level,
            "message": config.message,
            "event": event.to_dict(),
        }
        line = json.dumps(entry, ensure_ascii=False)
        async with self._lock:
            await asyncio.to_thread(self._append, line)
        _log(f"[LogSink] {config.level.upper()} {config.message}")
        return SendResult(success=True, detail=f"logged to {self._path.name}")
