"""CLI entry point: ``homework-review serve|compare|extract``."""

from __future__ import annotations

# Phase 1: Singleton logging, before any transitive litellm imports
from homework_review.logging_config import setup_logging

setup_logging()

import argparse  # noqa: E402
import json  # noqa: E402
import sys  # noqa: E402
from pathlib import Path  # noqa: E402

from homework_review import __version__  # noqa: E402
from homework_review.comparison.similarity import (  # noqa: E402
    text_similarity,
)
from homework_review.config import Settings  # noqa: E402
from homework_review.logging_config import (  # noqa: E402
    cleanup_third_party_handlers,
)
from homework_review.parsing.json_extract import (  # noqa: E402
    ParseFailure,
    extract_json,
)

# Phase 2: Clear litellm's duplicate handlers after all imports
cleanup_third_party_handlers()


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point. Returns the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"homework-review {__version__}")
        return 0

    if args.command == "serve":
        return _run_serve(args)
    if args.command == "compare":
        return _run_compare(args)
    if args.command == "extract":
        return _run_extract(args)
    parser.print_help()
    return 0


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="homework-review",
        description="Grade answer sheets with a vision-language model.",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )

    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None, help="Bind address")
    serve.add_argument("--port", type=int, default=None, help="Bind port")
    serve.add_argument(
        "--reload", action="store_true", help="Reload on code changes"
    )

    compare = sub.add_parser(
        "compare", help="Print the similarity of two texts"
    )
    compare.add_argument("text1")
    compare.add_argument("text2")
    compare.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Match threshold (default: ANSWER_MATCH_THRESHOLD)",
    )

    extract = sub.add_parser(
        "extract", help="Recover JSON from a model completion"
    )
    extract.add_argument(
        "file",
        nargs="?",
        default="-",
        help="File to read ('-' or omitted for stdin)",
    )

    return parser


def _run_serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = Settings()
    uvicorn.run(
        "homework_review.main:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )
    return 0


def _run_compare(args: argparse.Namespace) -> int:
    threshold = (
        args.threshold
        if args.threshold is not None
        else Settings().answer_match_threshold
    )
    score = text_similarity(args.text1, args.text2)
    print(json.dumps({"similarity": score, "match": score >= threshold}))
    return 0


def _run_extract(args: argparse.Namespace) -> int:
    if args.file == "-":
        content = sys.stdin.read()
    else:
        content = Path(args.file).read_text(encoding="utf-8")

    try:
        value = extract_json(content)
    except ParseFailure as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(value, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
