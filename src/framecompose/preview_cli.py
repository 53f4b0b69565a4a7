"""CLI for schematic preview rendering.

Usage:
    # Render the whole composition to mp4
    framecompose preview --composition comp.yaml --output /tmp/preview.mp4

    # Cap to the first 2 seconds, with cursor targets from a layout snapshot
    framecompose preview --composition comp.yaml --output /tmp/preview.mp4 \
        --layout layout.yaml --preview-duration 2

    # Render a single frame to PNG
    framecompose preview --composition comp.yaml --output /tmp/f45.png --still 45
"""

import argparse
import math

from .cli import resolve_targets
from .composition import load_composition, validate_media_paths
from .preview import build_preview_clip, export_clip, save_still


def render_preview(
    composition_path: str,
    output_path: str,
    layout_path: str | None = None,
    start: int = 0,
    end: int | None = None,
    preview_duration: float | None = None,
    quiet: bool = False,
) -> None:
    """Load a composition, render its frames schematically, export mp4.

    Args:
        composition_path: Path to the composition file.
        output_path: Output mp4 path.
        layout_path: Optional layout snapshot for cursor target resolution.
        start: First frame (inclusive).
        end: End frame (exclusive). Defaults to the composition duration.
        preview_duration: If set, cap the render to this many seconds.
        quiet: Suppress moviepy's progress bar.
    """
    composition = load_composition(composition_path)
    validate_media_paths(composition)
    fps = composition["fps"]
    if end is None:
        end = composition["durationInFrames"]
    if preview_duration:
        end = min(end, start + math.ceil(preview_duration * fps))
    if start < 0 or end <= start:
        raise ValueError(f"Invalid frame range [{start}, {end})")

    resolved = resolve_targets(composition, layout_path)
    clip = build_preview_clip(composition, resolved, start_frame=start, end_frame=end)

    print(f"Rendering frames {start}-{end - 1}: {clip.duration:.1f}s")
    print(f"\nResolution: {composition['width']}x{composition['height']}, {fps}fps")
    print(f"Writing to: {output_path}")
    export_clip(clip, output_path, fps, quiet=quiet)
    print(f"\nDone: {output_path}")


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="framecompose preview",
        description="Render a schematic preview of a composition to mp4 or PNG.",
    )
    parser.add_argument(
        "--composition", required=True,
        help="Path to YAML/JSON composition file",
    )
    parser.add_argument(
        "--output", required=True,
        help="Output mp4 path (or PNG path with --still)",
    )
    parser.add_argument(
        "--layout", default=None,
        help="Layout snapshot (YAML/JSON) used to resolve cursor targets",
    )
    parser.add_argument(
        "--start", type=int, default=0,
        help="First frame to render (default: 0)",
    )
    parser.add_argument(
        "--end", type=int, default=None,
        help="End frame, exclusive (default: composition duration)",
    )
    parser.add_argument(
        "--preview-duration", type=float, default=None,
        help="Cap the render to N seconds for fast iteration",
    )
    parser.add_argument(
        "--still", type=int, default=None,
        help="Render only this frame, as a PNG",
    )
    parser.add_argument(
        "--quiet", action="store_true",
        help="Suppress the encoder progress bar",
    )
    args = parser.parse_args(args)

    if args.still is not None:
        composition = load_composition(args.composition)
        if args.still < 0 or args.still >= composition["durationInFrames"]:
            parser.error(
                f"--still {args.still} out of range "
                f"(composition has {composition['durationInFrames']} frames)"
            )
        resolved = resolve_targets(composition, args.layout)
        save_still(composition, args.still, args.output, resolved)
        print(f"Done: {args.output}")
        return

    render_preview(
        args.composition, args.output,
        layout_path=args.layout,
        start=args.start,
        end=args.end,
        preview_duration=args.preview_duration,
        quiet=args.quiet,
    )


if __name__ == "__main__":
    main()
