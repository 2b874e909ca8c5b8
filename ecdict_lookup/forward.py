"""
Forward (English -> Chinese) index builder.

Records are cut into fixed-size batches and pushed through a bounded queue
to a small pool of worker threads. Every worker writes its batch in one
transaction. SQLite admits a single writer, so the whole BEGIN..COMMIT span
is held under one shared lock; the workers overlap only while turning
records into parameter rows.
"""

import logging
import queue
import sqlite3
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Sequence, Union

from tqdm import tqdm

from ecdict_lookup.records import DictionaryRecord
from ecdict_lookup.settings import BATCH_SIZE, BUILD_WORKERS
from ecdict_lookup.store import (
    WORD_SCHEMA,
    BuildError,
    connect_for_build,
    finalize_build,
)

logger = logging.getLogger(__name__)

# Queue marker telling a worker to stop
_DONE = None


class RowCounter:
    """Thread-safe running total of committed rows."""

    def __init__(self, progress: Optional[tqdm] = None):
        self._lock = threading.Lock()
        self._total = 0
        self._progress = progress

    @property
    def total(self) -> int:
        with self._lock:
            return self._total

    def add(self, count: int) -> int:
        with self._lock:
            self._total += count
            if self._progress is not None:
                self._progress.update(count)
            return self._total


def make_batches(records: Sequence[DictionaryRecord], batch_size: int) -> List[Sequence[DictionaryRecord]]:
    """Slice records into consecutive batches of at most batch_size."""
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")
    return [records[i:i + batch_size] for i in range(0, len(records), batch_size)]


def _rollback(conn: sqlite3.Connection):
    if not conn.in_transaction:
        return
    try:
        conn.execute("ROLLBACK")
    except sqlite3.Error as e:
        logger.debug(f"Rollback failed: {e}")


def write_batch(conn: sqlite3.Connection, write_lock: threading.Lock, rows: Sequence[tuple]) -> int:
    """
    Insert one batch of word rows in a single transaction.

    A row that fails to insert, including one whose text cannot be encoded,
    is skipped; the rest of the batch is still committed. Any other failure
    rolls the batch back before it propagates, so the connection is never
    left inside a transaction.

    Returns:
        Number of rows inserted

    Raises:
        BuildError: If the transaction cannot be started or committed
    """
    inserted = 0
    with write_lock:
        try:
            conn.execute("BEGIN")
        except sqlite3.Error as e:
            raise BuildError(f"Cannot begin transaction: {e}") from e

        try:
            cursor = conn.cursor()
            for row in rows:
                try:
                    cursor.execute(WORD_SCHEMA.insert_sql, row)
                except (sqlite3.Error, UnicodeEncodeError) as e:
                    logger.debug(f"Skipping word row {row[0]!r}: {e}")
                    continue
                inserted += 1
            cursor.close()
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            _rollback(conn)
            raise BuildError(f"Cannot commit batch: {e}") from e
        except BaseException:
            _rollback(conn)
            raise

    return inserted


def build_word_index(
    records: Sequence[DictionaryRecord],
    db_path: Union[str, Path],
    workers: int = BUILD_WORKERS,
    batch_size: int = BATCH_SIZE,
    show_progress: bool = False,
) -> int:
    """
    Write every record to a new word index.

    Args:
        records: Parsed corpus records
        db_path: Database file to create
        workers: Number of worker threads
        batch_size: Records per transaction
        show_progress: Draw a progress bar on stderr

    Returns:
        Total number of rows committed

    Raises:
        BuildError: If the schema cannot be created or a batch cannot be
            committed
    """
    if workers < 1:
        raise ValueError("workers must be >= 1")

    logger.info(f"Building word index at {db_path} ({len(records)} records)")
    conn = connect_for_build(db_path, WORD_SCHEMA)

    batches = make_batches(records, batch_size)
    work: "queue.Queue[Optional[Sequence[DictionaryRecord]]]" = queue.Queue(maxsize=workers)
    write_lock = threading.Lock()
    failed = threading.Event()
    errors: List[Exception] = []

    progress = tqdm(
        total=len(records),
        desc="Word index",
        unit="rows",
        disable=not show_progress,
    )
    counter = RowCounter(progress)

    def worker():
        while True:
            batch = work.get()
            if batch is _DONE:
                return
            # Keep draining after a failure so the producer never blocks
            if failed.is_set():
                continue
            rows = [record.as_row() for record in batch]
            try:
                counter.add(write_batch(conn, write_lock, rows))
            except Exception as e:
                errors.append(e)
                failed.set()

    try:
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ecdict-writer") as pool:
            futures = [pool.submit(worker) for _ in range(workers)]
            for batch in batches:
                work.put(batch)
            for _ in futures:
                work.put(_DONE)
            for future in futures:
                future.result()
    finally:
        progress.close()

    if errors:
        conn.close()
        error = errors[0]
        if isinstance(error, BuildError):
            raise error
        raise BuildError(f"Word index worker failed: {error}") from error

    finalize_build(conn)
    logger.info(f"Word index complete ({counter.total} rows)")
    return counter.total
