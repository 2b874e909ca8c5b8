"""
CLI interface for ecdict-lookup.

Usage:
    ecdict-lookup build --corpus ecdict.csv
    ecdict-lookup search lik
    ecdict-lookup search 喜欢 --json
    ecdict-lookup show like
    ecdict-lookup random --count 10
"""

import argparse
import json
import logging
import sys
from dataclasses import asdict
from typing import List, Optional

from ecdict_lookup import __version__
from ecdict_lookup.build import build_indices
from ecdict_lookup.context import open_context
from ecdict_lookup.settings import (
    BATCH_SIZE,
    BUILD_WORKERS,
    CORPUS_PATH,
    GLOSS_DB_PATH,
    WORD_DB_PATH,
)
from ecdict_lookup.store import BuildError, ForwardEntry, GlossEntry


# ============================================================================
# Output Formatting
# ============================================================================

def unescape_lines(text: str) -> List[str]:
    """Split a stored field on its literal \\n / \\r\\n escapes."""
    text = text.replace("\\r\\n", "\n").replace("\\n", "\n").replace("\\r", "\n")
    return [line.strip() for line in text.split("\n") if line.strip()]


def format_word_entry(entry: ForwardEntry) -> str:
    """Plain-text view of a word entry."""
    lines = [entry.word]
    if entry.phonetic:
        lines.append(f"[{entry.phonetic}]")
    definitions = unescape_lines(entry.definition)
    if definitions:
        lines.append("")
        lines.extend(f"  - {d}" for d in definitions)
    translations = unescape_lines(entry.translation)
    if translations:
        lines.append("")
        lines.extend(f"  - {t}" for t in translations)
    if entry.frequency and entry.frequency != "0":
        lines.append("")
        lines.append(f"BNC: {entry.frequency}")
    return "\n".join(lines)


def format_gloss_entry(entry: GlossEntry) -> str:
    """Plain-text view of a gloss and its ranked English words."""
    lines = [entry.gloss, ""]
    for i, (word, translation) in enumerate(entry.english_entries, 1):
        joined = "；".join(unescape_lines(translation))
        lines.append(f"{i}. {word}（{joined}）")
    return "\n".join(lines)


def format_entry_json(entry) -> str:
    data = asdict(entry)
    if isinstance(entry, GlossEntry):
        data["english_entries"] = [
            {"word": word, "translation": translation}
            for word, translation in entry.english_entries
        ]
    return json.dumps(data, ensure_ascii=False, indent=2)


# ============================================================================
# Commands
# ============================================================================

def cmd_build(args) -> int:
    try:
        built = build_indices(
            args.corpus,
            args.word_db,
            args.gloss_db,
            workers=args.workers,
            batch_size=args.batch_size,
            show_progress=not args.quiet,
        )
    except BuildError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    built.close()
    if not args.quiet:
        print(f"{args.word_db}: {built.word_rows} words")
        print(f"{args.gloss_db}: {built.gloss_rows} glosses")
    return 0


def cmd_search(args) -> int:
    with open_context(args.word_db, args.gloss_db) as ctx:
        results = ctx.search(args.query)
    if args.json:
        print(json.dumps(results, ensure_ascii=False))
    else:
        for key in results:
            print(key)
    return 0


def cmd_show(args) -> int:
    with open_context(args.word_db, args.gloss_db) as ctx:
        entry = ctx.lookup(args.key)
    if entry is None:
        print(f"Not found: {args.key!r}", file=sys.stderr)
        return 1

    if args.json:
        print(format_entry_json(entry))
    elif isinstance(entry, GlossEntry):
        print(format_gloss_entry(entry))
    else:
        print(format_word_entry(entry))
    return 0


def cmd_random(args) -> int:
    with open_context(args.word_db, args.gloss_db) as ctx:
        for word in ctx.initial_words(args.count):
            print(word)
    return 0


# ============================================================================
# Main
# ============================================================================

def _add_index_paths(parser: argparse.ArgumentParser):
    parser.add_argument(
        "--word-db",
        default=WORD_DB_PATH,
        help=f"Word index path (default: {WORD_DB_PATH})",
    )
    parser.add_argument(
        "--gloss-db",
        default=GLOSS_DB_PATH,
        help=f"Gloss index path (default: {GLOSS_DB_PATH})",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ecdict-lookup",
        description="English <-> Chinese dictionary lookup over ECDICT",
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"ecdict-lookup {__version__}",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command")

    build = subparsers.add_parser("build", help="Build both indices from the corpus")
    build.add_argument(
        "--corpus", "-c",
        default=CORPUS_PATH,
        help=f"ECDICT CSV file, optionally .gz (default: {CORPUS_PATH})",
    )
    _add_index_paths(build)
    build.add_argument(
        "--workers", "-w",
        type=int,
        default=BUILD_WORKERS,
        help=f"Word index writer threads (default: {BUILD_WORKERS})",
    )
    build.add_argument(
        "--batch-size", "-b",
        type=int,
        default=BATCH_SIZE,
        help=f"Records per transaction (default: {BATCH_SIZE})",
    )
    build.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="No progress bars or summary",
    )
    build.set_defaults(func=cmd_build)

    search = subparsers.add_parser("search", help="Search words or Chinese glosses")
    search.add_argument("query", help="English text or Chinese gloss")
    search.add_argument("--json", "-j", action="store_true", help="Output as JSON")
    _add_index_paths(search)
    search.set_defaults(func=cmd_search)

    show = subparsers.add_parser("show", help="Show the entry for an exact key")
    show.add_argument("key", help="English word or Chinese gloss")
    show.add_argument("--json", "-j", action="store_true", help="Output as JSON")
    _add_index_paths(show)
    show.set_defaults(func=cmd_show)

    random_cmd = subparsers.add_parser("random", help="Show random common words")
    random_cmd.add_argument("--count", "-n", type=int, default=20, help="Number of words")
    _add_index_paths(random_cmd)
    random_cmd.set_defaults(func=cmd_random)

    return parser


def main(argv: Optional[List[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    try:
        code = args.func(args)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        code = 1

    sys.exit(code)


if __name__ == "__main__":
    main()
