"""Writes exported routes in the folder layout the route loader reads."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..config import settings
from ..data.routes_repository import INDEX_FILENAME, ROUTES_FILENAME, STOPS_FILENAME


class RouteFolderStorage:
    """Export area under ``data_root/outputs``.

    Every export gets its own timestamped directory holding an ``index.json``
    and one folder per route with ``routes.geojson`` and ``stops.geojson``, so an
    export directory can be used as ``routes_dir`` without changes.
    """

    def __init__(self, root: Path | None = None) -> None:
        self.root = (root or settings.data_root).resolve()
        self.output_root = self.root / "outputs"
        self.output_root.mkdir(parents=True, exist_ok=True)

    def make_run_directory(self, prefix: str = "export") -> Path:
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        path = self.output_root / f"{prefix}_{timestamp}"
        path.mkdir(parents=True, exist_ok=False)
        return path

    def write_route_folder(
        self,
        run_dir: Path,
        route_id: str,
        routes_fc: dict[str, Any],
        stops_fc: dict[str, Any],
    ) -> Path:
        """Write one route folder and list it in the run directory's index."""
        folder = run_dir / route_id
        self.write_json(folder / ROUTES_FILENAME, routes_fc)
        self.write_json(folder / STOPS_FILENAME, stops_fc)

        index_path = run_dir / INDEX_FILENAME
        folders: list[str] = []
        if index_path.exists():
            with index_path.open("r", encoding="utf-8") as handle:
                folders = json.load(handle)
        if route_id not in folders:
            folders.append(route_id)
        self.write_json(index_path, folders)
        return folder

    def write_json(self, path: Path, data: Any, *, indent: int = 2) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, ensure_ascii=False, indent=indent)
