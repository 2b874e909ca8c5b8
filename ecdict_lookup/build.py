"""
Build both indices from an ECDICT corpus.

Each index is written to a sibling "<name>.building" file and only moved
into place once both builds have succeeded, so a failed build leaves either
the previous indices or nothing at all. The two moves are separate renames:
the gloss index is moved first, and if moving the word index then fails the
new gloss index is left beside the previous word index.
"""

import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

from ecdict_lookup.forward import build_word_index
from ecdict_lookup.records import load_corpus
from ecdict_lookup.reverse import build_gloss_index
from ecdict_lookup.settings import BATCH_SIZE, BUILD_WORKERS
from ecdict_lookup.store import (
    BuildError,
    IndexHandle,
    open_gloss_index,
    open_word_index,
)

logger = logging.getLogger(__name__)

BUILDING_SUFFIX = ".building"
JOURNAL_SUFFIXES = ("-wal", "-shm", "-journal")


@dataclass
class BuiltIndices:
    """Handles and row counts from a finished build."""
    words: IndexHandle
    glosses: IndexHandle
    record_count: int = 0
    word_rows: int = 0
    gloss_rows: int = 0

    def close(self):
        self.words.close()
        self.glosses.close()


def _building_path(target: Path) -> Path:
    return target.with_name(target.name + BUILDING_SUFFIX)


def _remove_db_files(path: Path):
    """Delete a database file together with its journal side files."""
    for suffix in ("",) + JOURNAL_SUFFIXES:
        candidate = path.with_name(path.name + suffix)
        if candidate.exists():
            candidate.unlink()


def _publish(tmp: Path, target: Path):
    """
    Move a finished index over its target.

    Raises:
        BuildError: If the file cannot be moved into place
    """
    for suffix in JOURNAL_SUFFIXES:
        side = target.with_name(target.name + suffix)
        if side.exists():
            side.unlink()
    try:
        os.replace(tmp, target)
    except OSError as e:
        raise BuildError(f"Cannot move {tmp} to {target}: {e}") from e


def resolve_corpus(corpus_path: Union[str, Path]) -> Path:
    """
    Find the corpus file, falling back to its gzip-compressed sibling.

    Raises:
        BuildError: If neither the file nor "<file>.gz" exists
    """
    path = Path(corpus_path)
    if path.exists():
        return path
    compressed = path.with_name(path.name + ".gz")
    if compressed.exists():
        return compressed
    raise BuildError(f"Corpus not found: {path} (or {compressed.name})")


def build_indices(
    corpus_path: Union[str, Path],
    word_db: Union[str, Path],
    gloss_db: Union[str, Path],
    workers: int = BUILD_WORKERS,
    batch_size: int = BATCH_SIZE,
    show_progress: bool = False,
) -> BuiltIndices:
    """
    Build the word index and the gloss index from a corpus.

    Existing index files are replaced only when both builds succeed.

    Args:
        corpus_path: ECDICT CSV file (.csv or .csv.gz)
        word_db: Target path of the word index
        gloss_db: Target path of the gloss index
        workers: Worker threads for the word index
        batch_size: Records per word-index transaction
        show_progress: Draw progress bars on stderr

    Returns:
        BuiltIndices with open read handles

    Raises:
        BuildError: If the corpus cannot be read or either index fails
    """
    corpus = resolve_corpus(corpus_path)
    word_db = Path(word_db)
    gloss_db = Path(gloss_db)
    word_tmp = _building_path(word_db)
    gloss_tmp = _building_path(gloss_db)

    start_time = time.time()

    try:
        records = load_corpus(corpus)
    except (OSError, EOFError, UnicodeDecodeError) as e:
        raise BuildError(f"Cannot read corpus {corpus}: {e}") from e

    for path in (word_tmp, gloss_tmp):
        path.parent.mkdir(parents=True, exist_ok=True)
        _remove_db_files(path)

    try:
        word_rows = build_word_index(
            records, word_tmp,
            workers=workers,
            batch_size=batch_size,
            show_progress=show_progress,
        )
        gloss_rows = build_gloss_index(records, gloss_tmp, show_progress=show_progress)

        # Gloss index first: if the word swap then fails, the new gloss
        # index sits next to the previous word index
        for tmp, target in ((gloss_tmp, gloss_db), (word_tmp, word_db)):
            _publish(tmp, target)
    except BaseException:
        _remove_db_files(word_tmp)
        _remove_db_files(gloss_tmp)
        raise

    elapsed = time.time() - start_time
    logger.info(f"Build completed in {elapsed:.1f} seconds")

    return BuiltIndices(
        words=open_word_index(word_db),
        glosses=open_gloss_index(gloss_db),
        record_count=len(records),
        word_rows=word_rows,
        gloss_rows=gloss_rows,
    )


def indices_exist(word_db: Union[str, Path], gloss_db: Union[str, Path]) -> bool:
    """Check whether both index files are present."""
    return Path(word_db).exists() and Path(gloss_db).exists()


def ensure_indices(
    corpus_path: Union[str, Path],
    word_db: Union[str, Path],
    gloss_db: Union[str, Path],
    **build_options,
) -> Tuple[IndexHandle, IndexHandle]:
    """
    Open the indices, building them first if either one is missing.

    Returns:
        (word handle, gloss handle)

    Raises:
        BuildError: If a build is needed and fails
    """
    if indices_exist(word_db, gloss_db):
        logger.info("Indices ready")
        return open_word_index(word_db), open_gloss_index(gloss_db)

    logger.info("Indices missing, building from corpus (this runs once)")
    built = build_indices(corpus_path, word_db, gloss_db, **build_options)
    return built.words, built.glosses
