"""Command line entry point: grow an STL mesh read from a file or stdin."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import asdict, replace
from pathlib import Path
from typing import Optional

from meshgrowth.contracts import PRESETS, GrowthConfig, GrowthResult, MeshGrowthError
from meshgrowth.geometry import twist_mesh
from meshgrowth.pipeline import grow_mesh
from meshgrowth.run_protocol import (
    RunPaths,
    prepare_run_dir,
    store_input_mesh,
    update_latest_pointer,
    write_json,
    write_text,
)
from meshgrowth.stl_io import encode_stl, parse_stl

logger = logging.getLogger(__name__)

# Maps CLI destinations onto GrowthConfig fields.
_OVERRIDES = {
    "seed": "seed",
    "depth": "depth",
    "children": "num_children",
    "scale": "child_scale",
    "sampling": "sampling",
    "mode": "mode",
    "iterations": "iterations",
    "max_depth": "max_depth",
    "max_triangles": "max_triangles",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Grow scaled copies of an STL mesh onto its own triangles"
    )
    parser.add_argument(
        "--mesh", default="-", help="Input STL path, '-' for stdin (default)"
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Output STL path, '-' for stdout. Defaults to stdout unless --runs-dir is set",
    )
    parser.add_argument(
        "--preset", choices=sorted(PRESETS), default=None, help="Named parameter set"
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed (default 0)")
    parser.add_argument("--depth", type=int, default=None, help="Recursion depth")
    parser.add_argument(
        "--children", type=int, default=None, help="Growths attached per level"
    )
    parser.add_argument(
        "--scale", type=float, default=None, help="Uniform scale of each child copy"
    )
    parser.add_argument(
        "--sampling",
        choices=["uniform", "area_weighted"],
        default=None,
        help="Triangle selection strategy",
    )
    parser.add_argument(
        "--mode", choices=["recursive", "flat"], default=None, help="Growth mode"
    )
    parser.add_argument(
        "--iterations", type=int, default=None, help="Copies placed in flat mode"
    )
    parser.add_argument(
        "--max-depth", type=int, default=None, help="Refuse deeper recursion"
    )
    parser.add_argument(
        "--max-triangles",
        type=int,
        default=None,
        help="Refuse runs generating more triangles than this",
    )
    parser.add_argument(
        "--twist",
        type=float,
        nargs="?",
        const=0.001,
        default=None,
        help="Rotate v1/v2 of every base triangle about z by this many radians first",
    )
    parser.add_argument("--ascii", action="store_true", help="Write ASCII STL")
    parser.add_argument(
        "--runs-dir", default=None, help="Keep a run folder with artifacts under this root"
    )
    parser.add_argument("--name", default="growth", help="Run name")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logs"
    )
    return parser


def config_from_args(args: argparse.Namespace) -> GrowthConfig:
    config = PRESETS[args.preset] if args.preset else GrowthConfig()
    overrides = {
        field_name: getattr(args, dest)
        for dest, field_name in _OVERRIDES.items()
        if getattr(args, dest) is not None
    }
    config = replace(config, **overrides)
    config.validate()
    return config


def _read_input(mesh_arg: str) -> bytes:
    if mesh_arg == "-":
        return sys.stdin.buffer.read()
    return Path(mesh_arg).read_bytes()


def _write_output(output_arg: str, payload: bytes) -> None:
    if output_arg == "-":
        sys.stdout.buffer.write(payload)
        sys.stdout.buffer.flush()
        return
    Path(output_arg).write_bytes(payload)


def _build_summary(run_id: str, elapsed_s: float, result: GrowthResult) -> str:
    config = result.config
    return "\n".join(
        [
            f"# Run {run_id}",
            "",
            f"- Duration: {elapsed_s:.2f}s",
            f"- Mode: {config.mode} ({config.sampling} sampling, seed {config.seed})",
            f"- Triangles: {result.base_count} base + {result.generated_count} generated",
            f"- Copies placed: {len(result.placements)}",
            "",
        ]
    )


def _write_run(
    run_paths: RunPaths,
    args: argparse.Namespace,
    data: bytes,
    payload: bytes,
    result: GrowthResult,
    elapsed: float,
) -> None:
    input_name = "stdin.stl" if args.mesh == "-" else args.mesh
    stored_input = store_input_mesh(data, run_paths.input_dir, input_name)
    run_paths.mesh_path.write_bytes(payload)
    write_json(
        run_paths.placements_path,
        {"placements": [p.to_dict() for p in result.placements]},
    )
    write_json(
        run_paths.metrics_path,
        {
            "run_id": run_paths.run_id,
            "elapsed_s": round(elapsed, 3),
            "counts": {
                "base_triangles": result.base_count,
                "generated_triangles": result.generated_count,
                "total_triangles": result.total_count,
                "copies": len(result.placements),
            },
        },
    )
    write_json(
        run_paths.manifest_path,
        {
            "run_id": run_paths.run_id,
            "name": args.name,
            "created_utc": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "input_mesh": str(stored_input),
            "twist": args.twist,
            "ascii": bool(args.ascii),
            "config": asdict(result.config),
            "artifacts": {
                "mesh": str(run_paths.mesh_path),
                "placements": str(run_paths.placements_path),
            },
        },
    )
    write_text(run_paths.summary_path, _build_summary(run_paths.run_id, elapsed, result))
    update_latest_pointer(args.runs_dir, run_paths.run_dir)


def main(argv: Optional[list] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    try:
        config = config_from_args(args)
    except ValueError as exc:
        parser.error(str(exc))

    started = time.perf_counter()
    try:
        data = _read_input(args.mesh)
        base = parse_stl(data)
        if args.twist is not None:
            base = twist_mesh(base, args.twist)
        result = grow_mesh(base, config)
        payload = encode_stl(result.triangles, ascii=args.ascii)
    except MeshGrowthError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        return 2
    elapsed = time.perf_counter() - started

    if args.runs_dir:
        run_paths = prepare_run_dir(args.runs_dir, args.name, config.seed)
        _write_run(run_paths, args, data, payload, result, elapsed)
        # stdout may be carrying the mesh itself
        info = sys.stderr if args.output == "-" else sys.stdout
        print(f"Run ID: {run_paths.run_id}", file=info)
        print(f"Mesh: {run_paths.mesh_path}", file=info)

    output = args.output
    if output is None and not args.runs_dir:
        output = "-"
    if output is not None:
        _write_output(output, payload)
    return 0


if __name__ == "__main__":
    sys.exit(main())
