"""Subcommand dispatcher for framecompose.

Usage:
    framecompose evaluate --composition ... [--frame N | --output states.jsonl]
    framecompose preview  --composition ... --output preview.mp4
"""

import argparse
import sys


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="framecompose",
        description="Frame-accurate evaluation and preview of video compositions.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Register subcommands. Each delegates to its own module's main().
    subparsers.add_parser("evaluate", help="Evaluate frame states as JSON")
    subparsers.add_parser("preview", help="Render a schematic preview to mp4/PNG")

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None:
        parser.print_help()
        sys.exit(1)

    if parsed.command == "evaluate":
        from .cli import main as evaluate_main
        evaluate_main(remaining)
    elif parsed.command == "preview":
        from .preview_cli import main as preview_main
        preview_main(remaining)


if __name__ == "__main__":
    main()
