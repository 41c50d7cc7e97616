"""JSON file-based workflow storage — implements StoragePort."""

import json
import os
import re
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from surveilens.domain.errors import GraphError
from surveilens.domain.models import Workflow

_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


def _log(msg: str):
    print(msg, file=sys.stderr)


class GraphStore:
    """One ``<id>.json`` per workflow under ``{storage_dir}/workflows``."""

    def __init__(self, storage_dir: str = "memory"):
        self._dir = Path(storage_dir) / "workflows"
        self._dir.mkdir(parents=True, exist_ok=True)

    @property
    def directory(self) -> Path:
        return self._dir

    def _path(self, key: str) -> Path:
        if not _KEY_RE.match(key or ""):
            raise ValueError(f"invalid workflow id {key!r}")
        return self._dir / f"{key}.json"

    def keys(self) -> List[str]:
        return sorted(p.stem for p in self._dir.glob("*.json"))

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        path = self._path(key)
        if not path.exists():
            return None
        raw = json.loads(path.read_text(encoding="utf-8"))
        return raw if isinstance(raw, dict) else None

    def save(self, key: str, data: Dict[str, Any]) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        content = json.dumps(data, ensure_ascii=False, indent=2)
        # Atomic write
        fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_path, str(path))
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    def delete(self, key: str) -> bool:
        path = self._path(key)
        if not path.exists():
            return False
        path.unlink()
        return True

    # ── Workflow helpers ──────────────────────────────

    def get_workflow(self, key: str) -> Optional[Workflow]:
        data = self.load(key)
        if data is None:
            return None
        if not isinstance(data, dict):
            raise GraphError(f"{key}.json does not hold a workflow object")
        data.setdefault("id", key)
        return Workflow.from_dict(data)

    def put_workflow(self, workflow: Workflow) -> None:
        self.save(workflow.id, workflow.to_dict())

    def load_all(self) -> List[Workflow]:
        """Every decodable workflow. Unreadable files are skipped with a warning."""
        workflows = []
        for key in self.keys():
            try:
                workflow = self.get_workflow(key)
            except (OSError, ValueError, GraphError) as e:
                _log(f"[GraphStore] WARNING skipping {key}.json: {e}")
                continue
            if workflow is not None:
                workflows.append(workflow)
        return workflows
