"""
Corpus records for ecdict-lookup.

The corpus is the ECDICT CSV export: one header row followed by data rows of
at least 13 columns. Only five columns matter for indexing:

    0  word          source-language headword
    1  phonetic      pronunciation
    2  definition    English definitions, lines joined by a literal "\\n"
    3  translation   Chinese translation, lines joined by a literal "\\n"
    8  bnc           BNC frequency rank (may be empty, "0" or junk)

Field text is passed through untouched; escape sequences are left for the
display layer.
"""

import csv
import gzip
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Iterator, List, Optional, Sequence, Union

from ecdict_lookup.settings import (
    COL_DEFINITION,
    COL_FREQUENCY,
    COL_PHONETIC,
    COL_TRANSLATION,
    COL_WORD,
    MIN_FIELDS,
    UNRANKED,
)
from ecdict_lookup.store import is_storable

logger = logging.getLogger(__name__)

# Undecodable bytes become lone surrogates and the row is dropped later
CORPUS_ERRORS = "surrogateescape"


# ============================================================================
# Frequency Rank
# ============================================================================

def parse_frequency(raw: str) -> int:
    """
    Convert a raw frequency string to a sortable rank.

    Smaller ranks are more common words. Empty, zero, negative or
    non-numeric values map to UNRANKED so they sort last.

    Example:
        >>> parse_frequency("25")
        25
        >>> parse_frequency("") == UNRANKED
        True
    """
    raw = (raw or "").strip()
    if not raw:
        return UNRANKED
    try:
        rank = int(raw)
    except ValueError:
        return UNRANKED
    if rank <= 0:
        return UNRANKED
    return rank


# ============================================================================
# Record Data Structure
# ============================================================================

@dataclass(frozen=True, slots=True)
class DictionaryRecord:
    """
    One parsed corpus row.

    Attributes:
        word: The source-language headword
        phonetic: Pronunciation (may be empty)
        definition: Raw English definitions
        translation: Raw Chinese translation
        frequency: Raw frequency string exactly as it appears in the corpus
    """
    word: str
    phonetic: str
    definition: str
    translation: str
    frequency: str

    @property
    def rank(self) -> int:
        """Frequency rank derived from the raw frequency."""
        return parse_frequency(self.frequency)

    def as_row(self) -> tuple:
        """Column values in word-index order."""
        return (self.word, self.phonetic, self.definition, self.translation, self.frequency)


def parse_row(row: Sequence[str]) -> Optional[DictionaryRecord]:
    """
    Build a record from one CSV row.

    Returns:
        The record, or None if the row has too few fields
    """
    if len(row) < MIN_FIELDS:
        return None
    return DictionaryRecord(
        word=row[COL_WORD],
        phonetic=row[COL_PHONETIC],
        definition=row[COL_DEFINITION],
        translation=row[COL_TRANSLATION],
        frequency=row[COL_FREQUENCY],
    )


# ============================================================================
# Corpus Loading
# ============================================================================

def open_corpus(path: Union[str, Path]) -> IO[str]:
    """
    Open a corpus file for CSV reading, decompressing .gz transparently.

    Invalid UTF-8 bytes are decoded as lone surrogates instead of raising,
    so `iter_records` can skip the affected rows one by one.
    """
    path = Path(path)
    if path.suffix == ".gz":
        return gzip.open(path, "rt", encoding="utf-8", errors=CORPUS_ERRORS, newline="")
    return open(path, "r", encoding="utf-8", errors=CORPUS_ERRORS, newline="")


def iter_records(stream: IO[str]) -> Iterator[DictionaryRecord]:
    """
    Yield records from an open CSV stream, skipping the header row.

    Malformed rows, short rows and rows holding bytes that are not valid
    UTF-8 are skipped; they never stop the iteration.
    """
    reader = csv.reader(stream)
    try:
        next(reader)
    except StopIteration:
        return

    skipped = 0
    while True:
        try:
            row = next(reader)
        except StopIteration:
            break
        except csv.Error as e:
            skipped += 1
            logger.debug(f"Skipping malformed row near line {reader.line_num}: {e}")
            continue

        record = parse_row(row)
        if record is None:
            skipped += 1
            continue
        if not all(is_storable(field) for field in record.as_row()):
            skipped += 1
            logger.debug(f"Skipping row with invalid UTF-8 near line {reader.line_num}")
            continue
        yield record

    if skipped:
        logger.info(f"Skipped {skipped} unusable corpus rows")


def load_corpus(path: Union[str, Path]) -> List[DictionaryRecord]:
    """
    Read the whole corpus into memory.

    The reverse index needs every record before it can rank anything, so
    the corpus is always fully materialized.

    Args:
        path: Path to the CSV (or .csv.gz) file

    Returns:
        List of records in corpus order

    Raises:
        FileNotFoundError: If the corpus file does not exist
    """
    with open_corpus(path) as f:
        records = list(iter_records(f))
    logger.info(f"Read {len(records)} records from {path}")
    return records
