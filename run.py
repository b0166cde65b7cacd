"""CLI entrypoint: load puzzle(s), run solver, and report results and timing."""

import argparse
import csv
import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from tqdm import tqdm

from solver import solve_puzzle, to_config
from src.utils.io import save_json
from src.utils.trace import get_tracer, reset_tracer
from src.zebra.errors import ConflictError, PuzzleError
from src.zebra.loader import load_puzzles
from src.zebra.model import PuzzleConfig, SlotStore
from src.zebra.parser import compile_constraints
from src.zebra.puzzles import BUILTIN_PUZZLES, CLASSIC_ZEBRA
from src.zebra.solver_core import propagate_to_fixed_point

ENV_PUZZLE_PATH = "ZEBRA_PUZZLE_PATH"


def parse_args(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Solve zebra-style puzzles by constraint propagation")
    parser.add_argument(
        "input",
        type=Path,
        nargs="?",
        default=None,
        help=f"Path to puzzle file or directory of puzzles (default: ${ENV_PUZZLE_PATH})",
    )
    parser.add_argument("--classic", action="store_true", help="Solve the built-in classic Zebra puzzle")
    parser.add_argument(
        "--builtin",
        action="append",
        default=[],
        choices=sorted(BUILTIN_PUZZLES),
        help="Solve a built-in puzzle by id (repeatable)",
    )
    parser.add_argument("--output", type=Path, default=None, help="Optional path to write solutions (.csv or .json)")
    parser.add_argument("--trace-dir", type=Path, default=None, help="Write one solver trace CSV per puzzle here")
    parser.add_argument(
        "--include-status",
        action="store_true",
        help="Include a 'status' field in grid_solution.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print what propagation alone can deduce before any guessing.",
    )
    args = parser.parse_args(argv)
    if args.input is None and not args.classic and not args.builtin:
        env_path = os.environ.get(ENV_PUZZLE_PATH)
        if env_path:
            args.input = Path(env_path)
        else:
            args.classic = True
    return args


def describe_store(store: SlotStore, config: PuzzleConfig, final: bool = False) -> str:
    """Render the store as text; unless `final`, include the ruled-out values."""
    lines = ["Here's what we know:"]
    for house in range(store.num_houses):
        lines.append(f"\tFor house: {house + 1}")
        for attr in store.attributes:
            good = config.display_value(attr, store.certain(house, attr))
            if final:
                lines.append(f"\t\tAttr: {attr} Good: {good}")
            else:
                bad = ",".join(config.display_value(attr, v) for v in sorted(store.excluded(house, attr)))
                lines.append(f"\t\tAttr: {attr} Good: {good}\t\tBad: {bad}")
    return "\n".join(lines)


def explain_propagation(config: PuzzleConfig) -> str:
    store = SlotStore.for_config(config)
    try:
        propagate_to_fixed_point(store, compile_constraints(config))
    except ConflictError as exc:
        return f"Propagation hit a contradiction before any guess: {exc}"
    return describe_store(store, config)


def reformat_to_grid(
    assignment: dict,
    *,
    header: Optional[List[str]] = None,
    num_houses: Optional[int] = None,
) -> dict:
    houses = set()
    attributes = []

    for var_name in assignment.keys():
        if var_name.startswith("House_"):
            _, house, attr = var_name.split("_", 2)
            houses.add(int(house))
            if attr not in attributes:
                attributes.append(attr)

    if header:
        # Header includes "House" as first column.
        attributes = list(header[1:])

    if num_houses is None:
        num_houses = max(houses) if houses else 0

    rows: List[List[Any]] = []
    for h in range(1, num_houses + 1):
        row = [str(h)]
        for attr in attributes:
            row.append(assignment.get(f"House_{h}_{attr}", "___"))
        rows.append(row)

    return {
        "header": ["House"] + attributes,
        "rows": rows,
    }


def format_solution(
    solution: dict,
    config: Optional[PuzzleConfig] = None,
    *,
    include_status: bool = False,
) -> dict:
    if not solution:
        grid = {"header": [], "rows": []}
    elif config is not None:
        grid = reformat_to_grid(
            solution,
            header=["House", *config.attributes],
            num_houses=config.num_houses,
        )
    else:
        grid = reformat_to_grid(solution)

    if include_status:
        status = "solved" if solution else "unsolved"
        return {"status": status, **grid}
    return grid


def render_grid(grid: dict) -> str:
    header = grid.get("header") or []
    rows = grid.get("rows") or []
    if not header:
        return "(no solution)"
    widths = [len(str(h)) for h in header]
    for row in rows:
        widths = [max(w, len(str(cell))) for w, cell in zip(widths, row)]
    lines = [" | ".join(str(h).ljust(w) for h, w in zip(header, widths))]
    lines.append("-+-".join("-" * w for w in widths))
    for row in rows:
        lines.append(" | ".join(str(cell).ljust(w) for cell, w in zip(row, widths)))
    return "\n".join(lines)


def write_results_csv(results, output_path: Path):
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["id", "grid_solution", "steps"])

        for r in results:
            writer.writerow([
                r["id"],
                json.dumps(r["grid_solution"], ensure_ascii=False, separators=(",", ":")),
                r["steps"]
            ])


def collect_puzzles(args) -> List[Dict[str, Any]]:
    puzzles: List[Dict[str, Any]] = []
    names = list(args.builtin)
    if args.classic and CLASSIC_ZEBRA["id"] not in names:
        names.insert(0, CLASSIC_ZEBRA["id"])
    puzzles.extend(BUILTIN_PUZZLES[name] for name in names)
    if args.input is None:
        return puzzles

    if args.input.is_file():
        puzzles.extend(load_puzzles(str(args.input)))
    elif args.input.is_dir():
        for file_path in sorted(args.input.iterdir()):
            if file_path.suffix in [".json", ".jsonl", ".parquet"]:
                puzzles.extend(load_puzzles(str(file_path)))
    else:
        raise ValueError(f"Input path {args.input} is neither file nor directory")
    return puzzles


def main(argv: Optional[List[str]] = None):
    args = parse_args(argv)
    puzzles = collect_puzzles(args)
    results = []

    for idx, puzzle in enumerate(tqdm(puzzles, desc="Solving", unit="puzzle", disable=len(puzzles) < 2)):
        puzzle_id = str(puzzle.get("id", f"row_{idx}"))
        reset_tracer()
        tracer = get_tracer()

        try:
            config = to_config(puzzle)
            if args.verbose:
                print(explain_propagation(config))
            solution = solve_puzzle(config)
            grid = format_solution(solution, config, include_status=args.include_status)
            summary = tracer.summary()

            results.append({
                "id": puzzle_id,
                "grid_solution": grid,
                # Guesses are the search effort; propagation passes are bookkeeping.
                "steps": summary["num_assignments"],
            })
            if not args.output:
                print(f"Puzzle {puzzle_id}:")
                print(render_grid(grid))
            print(f"TIME: {summary['elapsed_time_seconds']:.4f}s", file=sys.stderr)
        except (PuzzleError, ValueError) as e:
            print(f"ERROR: Failed to solve puzzle {puzzle_id}: {e}")
            results.append({
                "id": puzzle_id,
                "grid_solution": {"header": [], "rows": []},
                "steps": -1
            })

        if args.trace_dir:
            tracer.to_csv(args.trace_dir / f"{puzzle_id}.csv")

    if args.output:
        if args.output.suffix == ".json":
            save_json(args.output, results)
        else:
            write_results_csv(results, args.output)
    return results


if __name__ == "__main__":
    main()
