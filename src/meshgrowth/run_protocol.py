"""Run-folder layout for growth runs that keep their artifacts."""

from __future__ import annotations

import json
import os
import re
import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict


@dataclass
class RunPaths:
    run_id: str
    run_dir: Path
    input_dir: Path
    artifacts_dir: Path
    mesh_path: Path
    placements_path: Path
    manifest_path: Path
    metrics_path: Path
    summary_path: Path


def slugify(value: str) -> str:
    value = re.sub(r"[^a-z0-9]+", "-", value.strip().lower())
    return value.strip("-") or "growth"


def create_run_id(name: str, seed: int) -> str:
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    return f"{stamp}_{slugify(name)}_s{seed}"


def prepare_run_dir(runs_root: str, name: str, seed: int) -> RunPaths:
    run_id = create_run_id(name, seed)
    run_dir = Path(runs_root) / run_id
    input_dir = run_dir / "input"
    artifacts_dir = run_dir / "artifacts"
    input_dir.mkdir(parents=True, exist_ok=True)
    artifacts_dir.mkdir(parents=True, exist_ok=True)

    return RunPaths(
        run_id=run_id,
        run_dir=run_dir,
        input_dir=input_dir,
        artifacts_dir=artifacts_dir,
        mesh_path=artifacts_dir / "grown.stl",
        placements_path=artifacts_dir / "placements.json",
        manifest_path=run_dir / "manifest.json",
        metrics_path=run_dir / "metrics.json",
        summary_path=run_dir / "summary.md",
    )


def store_input_mesh(data: bytes, input_dir: Path, filename: str) -> Path:
    """Keep the exact input bytes next to the run, even when read from stdin."""
    dst = input_dir / (Path(filename).name or "input.stl")
    dst.write_bytes(data)
    return dst


def write_json(path: Path, payload: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)


def write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def update_latest_pointer(runs_root: str, run_dir: Path) -> None:
    latest = Path(runs_root) / "latest"
    if latest.is_symlink() or latest.is_file():
        latest.unlink()
    elif latest.exists():
        shutil.rmtree(latest)

    try:
        latest.symlink_to(os.path.relpath(run_dir, runs_root))
    except OSError:
        # No symlink support: leave a marker file instead.
        latest.mkdir(parents=True, exist_ok=True)
        (latest / "latest_run.txt").write_text(run_dir.name, encoding="utf-8")
