"""
Reverse (Chinese -> English) index builder.

A gloss can be reached from words anywhere in the corpus, so nothing is
written until the whole corpus has been aggregated in memory:

1. gloss -> {word: translation}, keeping the first translation seen for each
   (gloss, word) pair
2. word -> rank, keeping the first rank seen for each word
3. per gloss, candidate words sorted by rank; Python's sort is stable, so
   words with equal rank keep the order in which they were first seen

The rows are then written in one transaction.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Dict, List, Sequence, Tuple, Union

from tqdm import tqdm

from ecdict_lookup.glosses import extract_glosses
from ecdict_lookup.records import DictionaryRecord
from ecdict_lookup.settings import UNRANKED
from ecdict_lookup.store import (
    GLOSS_SCHEMA,
    BuildError,
    connect_for_build,
    finalize_build,
    format_english_entries,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Aggregation
# ============================================================================

def collect_gloss_candidates(records: Sequence[DictionaryRecord]) -> Dict[str, Dict[str, str]]:
    """
    Map every gloss to the words whose translation contains it.

    Returns:
        gloss -> {word: translation}; both levels keep first-seen order
    """
    candidates: Dict[str, Dict[str, str]] = {}
    for record in records:
        for gloss in extract_glosses(record.translation):
            words = candidates.setdefault(gloss, {})
            if record.word not in words:
                words[record.word] = record.translation
    return candidates


def collect_ranks(records: Sequence[DictionaryRecord]) -> Dict[str, int]:
    """Map every word to the rank of its first occurrence."""
    ranks: Dict[str, int] = {}
    for record in records:
        if record.word not in ranks:
            ranks[record.word] = record.rank
    return ranks


def rank_candidates(words: Dict[str, str], ranks: Dict[str, int]) -> List[Tuple[str, str]]:
    """
    Order a gloss's candidate words by rank, most frequent first.

    Ties keep the insertion order of `words`.
    """
    return sorted(words.items(), key=lambda item: ranks.get(item[0], UNRANKED))


def aggregate_glosses(records: Sequence[DictionaryRecord]) -> Dict[str, List[Tuple[str, str]]]:
    """
    Build the complete ranked reverse mapping in memory.

    Returns:
        gloss -> ranked [(word, translation), ...], glosses in first-seen order
    """
    candidates = collect_gloss_candidates(records)
    ranks = collect_ranks(records)
    return {gloss: rank_candidates(words, ranks) for gloss, words in candidates.items()}


# ============================================================================
# Writing
# ============================================================================

def build_gloss_index(
    records: Sequence[DictionaryRecord],
    db_path: Union[str, Path],
    show_progress: bool = False,
) -> int:
    """
    Write a new gloss index for the whole corpus.

    Args:
        records: Parsed corpus records
        db_path: Database file to create
        show_progress: Draw a progress bar on stderr

    Returns:
        Number of gloss rows written

    Raises:
        BuildError: If the schema cannot be created or the transaction fails
    """
    logger.info(f"Building gloss index at {db_path}")
    conn = connect_for_build(db_path, GLOSS_SCHEMA)

    try:
        ranked = aggregate_glosses(records)
        logger.info(f"Aggregated {len(ranked)} glosses")

        try:
            conn.execute("BEGIN")
        except sqlite3.Error as e:
            raise BuildError(f"Cannot begin transaction: {e}") from e

        written = 0
        cursor = conn.cursor()
        for gloss, pairs in tqdm(ranked.items(), total=len(ranked), desc="Gloss index",
                                 unit="glosses", disable=not show_progress):
            try:
                cursor.execute(GLOSS_SCHEMA.insert_sql, (gloss, format_english_entries(pairs)))
            except (sqlite3.Error, UnicodeEncodeError) as e:
                logger.debug(f"Skipping gloss {gloss!r}: {e}")
                continue
            written += 1
        cursor.close()

        try:
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            raise BuildError(f"Cannot commit gloss index: {e}") from e
    except BaseException:
        try:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
        except sqlite3.Error as e:
            logger.debug(f"Rollback failed: {e}")
        conn.close()
        raise

    finalize_build(conn)
    logger.info(f"Gloss index complete ({written} glosses)")
    return written
