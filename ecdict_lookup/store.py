"""
SQLite storage for the two lookup indices.

The word index (English -> Chinese) keeps one row per corpus record. The
gloss index (Chinese -> English) keeps one row per gloss, with its ranked
candidate words packed into a single text column:

    like（喜欢\\n像）
    love（爱）

one "word（translation）" segment per line, most frequent word first.

Builders write through `connect_for_build`; searches and point lookups go
through an `IndexHandle`, which opens the finished file read-only.
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from ecdict_lookup.settings import READ_POOL_SIZE

logger = logging.getLogger(__name__)


class BuildError(RuntimeError):
    """Raised when an index cannot be built."""
    pass


# ============================================================================
# Schema
# ============================================================================

@dataclass(frozen=True, slots=True)
class IndexSchema:
    """Table layout of one index."""
    name: str
    table: str
    key_column: str
    create_sql: str
    index_sql: str
    insert_sql: str


WORD_SCHEMA = IndexSchema(
    name="words",
    table="words",
    key_column="word",
    create_sql="""
        CREATE TABLE IF NOT EXISTS words (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            word TEXT NOT NULL,
            phonetic TEXT,
            definition TEXT,
            translation TEXT,
            frequency TEXT
        );
    """,
    index_sql="""
        CREATE INDEX IF NOT EXISTS idx_word ON words(word);
        CREATE INDEX IF NOT EXISTS idx_frequency ON words(CAST(frequency AS INTEGER));
    """,
    insert_sql=(
        "INSERT INTO words (word, phonetic, definition, translation, frequency) "
        "VALUES (?, ?, ?, ?, ?)"
    ),
)

GLOSS_SCHEMA = IndexSchema(
    name="glosses",
    table="glosses",
    key_column="gloss",
    create_sql="""
        CREATE TABLE IF NOT EXISTS glosses (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            gloss TEXT NOT NULL UNIQUE,
            english_entries TEXT NOT NULL
        );
    """,
    index_sql="""
        CREATE INDEX IF NOT EXISTS idx_gloss ON glosses(gloss);
    """,
    insert_sql="INSERT INTO glosses (gloss, english_entries) VALUES (?, ?)",
)


# ============================================================================
# Entries
# ============================================================================

@dataclass(frozen=True, slots=True)
class ForwardEntry:
    """A stored word-index row."""
    word: str
    phonetic: str
    definition: str
    translation: str
    frequency: str


@dataclass(frozen=True, slots=True)
class GlossEntry:
    """
    A stored gloss-index row.

    Attributes:
        gloss: The Chinese gloss (unique key)
        english_entries: (word, translation) pairs, most frequent word first
    """
    gloss: str
    english_entries: Tuple[Tuple[str, str], ...]

    @property
    def words(self) -> List[str]:
        return [word for word, _ in self.english_entries]


ENTRY_OPEN = "（"
ENTRY_CLOSE = "）"
ENTRY_SEPARATOR = "\n"


def format_english_entries(pairs: Sequence[Tuple[str, str]]) -> str:
    """Serialize ranked (word, translation) pairs to the stored text form."""
    return ENTRY_SEPARATOR.join(
        f"{word}{ENTRY_OPEN}{translation}{ENTRY_CLOSE}" for word, translation in pairs
    )


def parse_english_entries(text: str) -> List[Tuple[str, str]]:
    """
    Parse the stored text form back into (word, translation) pairs.

    Segments are split on a closing bracket followed by a line break, so a
    translation that itself contains a real line break stays intact.
    """
    if not text:
        return []

    segments = text.split(ENTRY_CLOSE + ENTRY_SEPARATOR)
    # Only the last segment still carries its own closing bracket
    if segments[-1].endswith(ENTRY_CLOSE):
        segments[-1] = segments[-1][: -len(ENTRY_CLOSE)]

    pairs = []
    for segment in segments:
        word, sep, translation = segment.partition(ENTRY_OPEN)
        word = word.strip()
        if not word:
            continue
        pairs.append((word, translation if sep else ""))
    return pairs


def is_storable(text: str) -> bool:
    """
    Check if text can be bound as a SQLite parameter.

    Lone surrogates (for example undecodable bytes smuggled in through
    command-line arguments) cannot be encoded as UTF-8 and are rejected.
    """
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


# ============================================================================
# Build Connections
# ============================================================================

def connect_for_build(path: Union[str, Path], schema: IndexSchema) -> sqlite3.Connection:
    """
    Create a database file and its schema for writing.

    The connection runs in autocommit mode; callers issue BEGIN/COMMIT
    themselves. It may be used from several threads as long as the caller
    serializes access.

    Raises:
        BuildError: If the database, table, indices or pragmas fail
    """
    try:
        conn = sqlite3.connect(str(path), isolation_level=None, check_same_thread=False)
    except sqlite3.Error as e:
        raise BuildError(f"Cannot create database {path}: {e}") from e

    try:
        conn.execute("PRAGMA journal_mode = WAL")
        conn.execute("PRAGMA synchronous = NORMAL")
        conn.executescript(schema.create_sql)
        conn.executescript(schema.index_sql)
    except sqlite3.Error as e:
        conn.close()
        raise BuildError(f"Cannot create {schema.name} schema in {path}: {e}") from e

    return conn


def finalize_build(conn: sqlite3.Connection) -> None:
    """
    Fold the write-ahead log into the main file and close the connection.

    The finished file uses the rollback journal again so it can be opened
    read-only without a -wal/-shm pair next to it.
    """
    try:
        conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")
        conn.execute("PRAGMA journal_mode = DELETE")
    except sqlite3.Error as e:
        raise BuildError(f"Cannot finalize database: {e}") from e
    finally:
        conn.close()


# ============================================================================
# Read Handles
# ============================================================================

class IndexHandle:
    """
    Read-only access to one built index.

    Queries borrow a connection from a small pool and hand it back when
    done, so any number of threads can search concurrently while at most
    `pool_size` idle connections stay open between searches.
    """

    def __init__(self, path: Union[str, Path], schema: IndexSchema, pool_size: int = READ_POOL_SIZE):
        if pool_size < 1:
            raise ValueError("pool_size must be >= 1")
        self.path = Path(path)
        self.schema = schema
        self.pool_size = pool_size
        self._idle: List[sqlite3.Connection] = []
        self._open = 0
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"IndexHandle({str(self.path)!r}, {self.schema.name!r})"

    @property
    def table(self) -> str:
        return self.schema.table

    @property
    def key_column(self) -> str:
        return self.schema.key_column

    @property
    def open_connections(self) -> int:
        """Connections currently open, idle or in use."""
        with self._lock:
            return self._open

    def _connect(self) -> sqlite3.Connection:
        uri = f"{self.path.resolve().as_uri()}?mode=ro"
        return sqlite3.connect(uri, uri=True, check_same_thread=False)

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Borrow a read-only connection for the duration of the block."""
        with self._lock:
            conn = self._idle.pop() if self._idle else None
            if conn is None:
                self._open += 1

        if conn is None:
            try:
                conn = self._connect()
            except BaseException:
                with self._lock:
                    self._open -= 1
                raise

        try:
            yield conn
        finally:
            self._release(conn)

    def _release(self, conn: sqlite3.Connection):
        with self._lock:
            if len(self._idle) < self.pool_size:
                self._idle.append(conn)
                return
            self._open -= 1
        conn.close()

    def execute(self, sql: str, params: Sequence = ()) -> List[tuple]:
        """Run a read query and fetch all rows."""
        with self.connection() as conn:
            return conn.execute(sql, params).fetchall()

    def close(self):
        """Close every idle connection; borrowed ones rejoin the pool when returned."""
        with self._lock:
            idle, self._idle = self._idle, []
            self._open -= len(idle)
        for conn in idle:
            try:
                conn.close()
            except sqlite3.Error as e:
                logger.debug(f"Error closing {self.path}: {e}")


def open_index(path: Union[str, Path], schema: IndexSchema) -> IndexHandle:
    """
    Open a built index for reading.

    Raises:
        FileNotFoundError: If the index file does not exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(
            f"Index not found at {path}. "
            "Run 'ecdict-lookup build' to build it."
        )
    return IndexHandle(path, schema)


def open_word_index(path: Union[str, Path]) -> IndexHandle:
    return open_index(path, WORD_SCHEMA)


def open_gloss_index(path: Union[str, Path]) -> IndexHandle:
    return open_index(path, GLOSS_SCHEMA)


# ============================================================================
# Point Lookups
# ============================================================================

def lookup_word(handle: IndexHandle, word: str) -> Optional[ForwardEntry]:
    """
    Get the first stored row for an exact word.

    Args:
        handle: Word index handle
        word: The exact headword

    Returns:
        The entry, or None if the word is not stored
    """
    if not is_storable(word):
        return None
    rows = handle.execute(
        "SELECT word, phonetic, definition, translation, frequency "
        "FROM words WHERE word = ? ORDER BY id LIMIT 1",
        (word,),
    )
    if not rows:
        return None
    word, phonetic, definition, translation, frequency = rows[0]
    return ForwardEntry(
        word=word,
        phonetic=phonetic or "",
        definition=definition or "",
        translation=translation or "",
        frequency=frequency or "",
    )


def lookup_gloss(handle: IndexHandle, gloss: str) -> Optional[GlossEntry]:
    """Get a gloss row with its candidate words parsed."""
    if not is_storable(gloss):
        return None
    rows = handle.execute(
        "SELECT gloss, english_entries FROM glosses WHERE gloss = ? LIMIT 1",
        (gloss,),
    )
    if not rows:
        return None
    gloss, entries = rows[0]
    return GlossEntry(gloss=gloss, english_entries=tuple(parse_english_entries(entries)))
