"""CLI for frame evaluation.

Reads a composition file, optionally resolves cursor targets against a
recorded layout snapshot, and evaluates frame states as JSON.

Usage:
    # Print the state of one frame
    framecompose evaluate --composition comp.yaml --frame 45

    # Export a frame range as JSON lines (one state per line)
    framecompose evaluate --composition comp.yaml --output states.jsonl \
        --start 0 --end 150

    # Parallel export (4 workers) with cursor targets from a layout snapshot
    framecompose evaluate --composition comp.yaml --output states.jsonl \
        --layout layout.yaml --workers 4

    # Validate only
    framecompose evaluate --composition comp.yaml --validate
"""

import argparse
import json
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path

from .composition import load_composition, validate_media_paths
from .cursor_targets import load_layout_snapshot, resolve_all_cursor_targets
from .frame import evaluate_frame


DEFAULT_CHUNK_FRAMES = 30


# ── Helpers ───────────────────────────────────────────────────────


def resolve_targets(composition: dict, layout_path: str | None) -> dict | None:
    """Resolve cursor targets against a layout snapshot, if one is given."""
    if not layout_path:
        return None
    snapshot = load_layout_snapshot(layout_path)
    context = snapshot.context(composition["width"], composition["height"])
    return resolve_all_cursor_targets(composition["tracks"], context)


def _state_json(state: dict) -> str:
    return json.dumps(state, separators=(",", ":"))


def _frame_chunks(start: int, end: int, size: int) -> list[tuple[int, int]]:
    return [(s, min(s + size, end)) for s in range(start, end, size)]


def _evaluate_chunk(args):
    """Worker function for parallel export.

    Takes a single tuple so it works with ProcessPoolExecutor. Returns the
    chunk start so results can be written back in frame order.
    """
    chunk_start, chunk_end, composition, resolved = args
    lines = [
        _state_json(evaluate_frame(composition, frame, resolved))
        for frame in range(chunk_start, chunk_end)
    ]
    return chunk_start, lines


# ── Export ────────────────────────────────────────────────────────


def export_states(
    composition_path: str,
    output_path: str,
    start: int = 0,
    end: int | None = None,
    layout_path: str | None = None,
    workers: int = 1,
) -> int:
    """Evaluate a frame range and write one JSON state per line.

    Args:
        composition_path: Path to the composition file.
        output_path: Output .jsonl path.
        start: First frame (inclusive).
        end: Last frame (exclusive). Defaults to the composition duration.
        layout_path: Optional layout snapshot for cursor target resolution.
        workers: Number of parallel worker processes. 1 = sequential.

    Returns:
        Number of frames written.
    """
    composition = load_composition(composition_path)
    validate_media_paths(composition)
    if end is None:
        end = composition["durationInFrames"]
    if start < 0 or end <= start:
        raise ValueError(f"Invalid frame range [{start}, {end})")

    resolved = resolve_targets(composition, layout_path)
    chunks = _frame_chunks(start, end, DEFAULT_CHUNK_FRAMES)
    effective_workers = min(workers, len(chunks))

    print(
        f"Evaluating frames {start}-{end - 1} "
        f"({composition['width']}x{composition['height']}, {composition['fps']}fps)",
        flush=True,
    )
    t_start = time.monotonic()

    results = {}
    work = [(s, e, composition, resolved) for s, e in chunks]
    if effective_workers <= 1:
        for item in work:
            chunk_start, lines = _evaluate_chunk(item)
            results[chunk_start] = lines
    else:
        print(f"  {len(chunks)} chunks on {effective_workers} workers", flush=True)
        with ProcessPoolExecutor(max_workers=effective_workers) as pool:
            futures = {pool.submit(_evaluate_chunk, item): item[0] for item in work}
            for future in as_completed(futures):
                chunk_start, lines = future.result()  # propagate exceptions
                results[chunk_start] = lines
                print(f"  DONE   frames {chunk_start}+{len(lines)}", flush=True)

    out = Path(output_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    print(f"Writing to: {output_path}", flush=True)
    with open(out, "w") as f:
        for chunk_start in sorted(results):
            for line in results[chunk_start]:
                f.write(line + "\n")

    total = end - start
    print(f"\nDone: {total} frames in {time.monotonic() - t_start:.1f}s", flush=True)
    return total


# ── CLI entry point ───────────────────────────────────────────────


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="framecompose evaluate",
        description="Evaluate composition frame states as JSON.",
    )
    parser.add_argument(
        "--composition", required=True,
        help="Path to YAML/JSON composition file",
    )
    parser.add_argument(
        "--frame", type=int, default=None,
        help="Print the state of this single frame to stdout",
    )
    parser.add_argument(
        "--output",
        help="Output .jsonl path for a frame range",
    )
    parser.add_argument(
        "--start", type=int, default=0,
        help="First frame of the range (default: 0)",
    )
    parser.add_argument(
        "--end", type=int, default=None,
        help="End frame of the range, exclusive (default: composition duration)",
    )
    parser.add_argument(
        "--layout", default=None,
        help="Layout snapshot (YAML/JSON) used to resolve cursor targets",
    )
    parser.add_argument(
        "--workers", type=int, default=1,
        help="Number of parallel workers for range export (default: 1)",
    )
    parser.add_argument(
        "--validate", action="store_true",
        help="Validate composition only, don't evaluate",
    )
    args = parser.parse_args(args)

    if args.validate:
        composition = load_composition(args.composition)
        validate_media_paths(composition)
        tracks = composition["tracks"]
        print(
            f"Composition valid: {len(tracks)} tracks, "
            f"{len(composition['scenes'])} scenes, "
            f"{composition['durationInFrames']} frames @ {composition['fps']}fps"
        )
        for i, track in enumerate(tracks):
            hidden = "" if track["visible"] else " [hidden]"
            print(f"  {i}: {track['type']} '{track['id']}'{hidden}, {len(track['items'])} items")
        print("All paths verified.")
        return

    if args.frame is not None and args.output:
        parser.error("--frame and --output are mutually exclusive")

    if args.workers < 1:
        parser.error("--workers must be >= 1")

    if args.frame is not None:
        composition = load_composition(args.composition)
        if args.frame < 0 or args.frame >= composition["durationInFrames"]:
            parser.error(
                f"--frame {args.frame} out of range "
                f"(composition has {composition['durationInFrames']} frames)"
            )
        resolved = resolve_targets(composition, args.layout)
        state = evaluate_frame(composition, args.frame, resolved)
        print(json.dumps(state, indent=2))
        return

    if not args.output:
        parser.error("--output is required (unless using --frame or --validate)")

    export_states(
        args.composition, args.output,
        start=args.start,
        end=args.end,
        layout_path=args.layout,
        workers=args.workers,
    )


if __name__ == "__main__":
    main()
