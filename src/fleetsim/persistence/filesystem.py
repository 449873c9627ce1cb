"""File-based persistence of simulation results inside project directories."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..config import settings
from ..errors import ProjectNotFoundError


class FileStorage:
    """Thin wrapper around the projects root for storing JSON results."""

    def __init__(self, root: Path | None = None, result_filename: str | None = None) -> None:
        self.root = (root or settings.projects_root).resolve()
        self.result_filename = result_filename or settings.result_filename

    def project_dir(self, project_name: str) -> Path:
        return self.root / project_name

    def result_path(self, project_name: str) -> Path:
        return self.project_dir(project_name) / self.result_filename

    def write_json(self, path: Path, data: Any, *, indent: int = 2) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, ensure_ascii=False, indent=indent)

    def read_json(self, path: Path) -> Any:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)

    def save_result(self, project_name: str, result: dict) -> Path:
        path = self.result_path(project_name)
        self.write_json(path, result)
        return path

    def load_result(self, project_name: str) -> dict:
        path = self.result_path(project_name)
        if not path.exists():
            raise ProjectNotFoundError(f"Simulation result not found for '{project_name}'. Run simulation first.")
        return self.read_json(path)

    def result_status(self, project_name: str) -> dict:
        path = self.result_path(project_name)
        if not path.exists():
            return {"exists": False}
        stat = path.stat()
        try:
            metadata = self.read_json(path).get("metadata")
        except (json.JSONDecodeError, AttributeError):
            metadata = None
        return {
            "exists": True,
            "file_size": stat.st_size,
            "last_modified": datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            "metadata": metadata,
        }
