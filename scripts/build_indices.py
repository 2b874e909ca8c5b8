#!/usr/bin/env python3
"""
Index Builder for ecdict-lookup.

This script reads the ECDICT CSV and builds both lookup indices:
the word index (English -> Chinese) and the gloss index (Chinese -> English).

Usage:
    python scripts/build_indices.py [--corpus PATH] [--word-db PATH] [--gloss-db PATH]
"""

import argparse
import logging
import sys
import time
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from ecdict_lookup.build import build_indices
from ecdict_lookup.settings import BATCH_SIZE, BUILD_WORKERS
from ecdict_lookup.store import BuildError

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


# ============================================================================
# Paths
# ============================================================================

DEFAULT_CORPUS = Path(__file__).parent.parent / "data" / "ecdict.csv"
DEFAULT_WORD_DB = Path(__file__).parent.parent / "data" / "english_chinese.db"
DEFAULT_GLOSS_DB = Path(__file__).parent.parent / "data" / "chinese_english.db"


# ============================================================================
# Main
# ============================================================================

def main():
    parser = argparse.ArgumentParser(
        description="Build ecdict-lookup indices from the ECDICT CSV"
    )
    parser.add_argument(
        '--corpus', '-c',
        type=Path,
        default=DEFAULT_CORPUS,
        help=f"Path to ECDICT CSV, optionally .gz (default: {DEFAULT_CORPUS})"
    )
    parser.add_argument(
        '--word-db', '-e',
        type=Path,
        default=DEFAULT_WORD_DB,
        help=f"Output word index path (default: {DEFAULT_WORD_DB})"
    )
    parser.add_argument(
        '--gloss-db', '-z',
        type=Path,
        default=DEFAULT_GLOSS_DB,
        help=f"Output gloss index path (default: {DEFAULT_GLOSS_DB})"
    )
    parser.add_argument(
        '--workers', '-w',
        type=int,
        default=BUILD_WORKERS,
        help=f"Writer threads for the word index (default: {BUILD_WORKERS})"
    )
    parser.add_argument(
        '--batch-size', '-b',
        type=int,
        default=BATCH_SIZE,
        help=f"Records per transaction (default: {BATCH_SIZE})"
    )

    args = parser.parse_args()

    start_time = time.time()

    try:
        built = build_indices(
            args.corpus,
            args.word_db,
            args.gloss_db,
            workers=args.workers,
            batch_size=args.batch_size,
            show_progress=True,
        )
    except BuildError as e:
        logger.error(f"Build failed: {e}")
        sys.exit(1)

    built.close()

    for path in (args.word_db, args.gloss_db):
        file_size = path.stat().st_size / (1024 * 1024)
        logger.info(f"Saved {path} ({file_size:.1f} MB)")

    elapsed = time.time() - start_time
    logger.info(
        f"Indexed {built.record_count} records: {built.word_rows} words, "
        f"{built.gloss_rows} glosses in {elapsed:.1f} seconds"
    )


if __name__ == '__main__':
    main()
