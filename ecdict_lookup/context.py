"""
Dictionary context: both index handles plus the recency cache.

One `DictionaryContext` is passed to whatever drives the lookups (the CLI,
a UI) instead of keeping open handles in module globals.
"""

import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Union

from ecdict_lookup.glosses import contains_han
from ecdict_lookup.history import RecencyCache
from ecdict_lookup.search import random_words, search
from ecdict_lookup.settings import GLOSS_DB_PATH, HISTORY_SIZE, SEARCH_LIMIT, WORD_DB_PATH
from ecdict_lookup.store import (
    ForwardEntry,
    GlossEntry,
    IndexHandle,
    lookup_gloss,
    lookup_word,
    open_gloss_index,
    open_word_index,
)


class QuerySequence:
    """
    Ticket counter for discarding stale search results.

    Issue a ticket before starting a search; when it completes, keep the
    results only if `is_current(ticket)` is still true.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._latest = 0

    def issue(self) -> int:
        with self._lock:
            self._latest += 1
            return self._latest

    def is_current(self, ticket: int) -> bool:
        with self._lock:
            return ticket == self._latest


class DictionaryContext:
    """
    Everything a lookup session needs.

    Attributes:
        words: Word index handle
        glosses: Gloss index handle
        history: Recently selected keys
        limit: Maximum keys per search
    """

    def __init__(
        self,
        words: IndexHandle,
        glosses: IndexHandle,
        history: Optional[RecencyCache] = None,
        limit: int = SEARCH_LIMIT,
    ):
        self.words = words
        self.glosses = glosses
        self.history = history if history is not None else RecencyCache(HISTORY_SIZE)
        self.limit = limit
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()

    def __enter__(self) -> "DictionaryContext":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search(self, query: str) -> List[str]:
        """Tiered search; Han queries hit the gloss index."""
        return search(query, self.words, self.glosses, self.limit)

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="ecdict-search")
            return self._executor

    async def search_async(self, query: str) -> List[str]:
        """
        Run a search on the context's thread pool.

        Concurrent calls may complete in any order; pair them with a
        QuerySequence to drop stale results.
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._get_executor(), self.search, query)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def lookup(self, key: str) -> Union[ForwardEntry, GlossEntry, None]:
        """Fetch the stored entry for an exact key from the matching index."""
        key = (key or "").strip()
        if not key:
            return None
        if contains_han(key):
            return lookup_gloss(self.glosses, key)
        return lookup_word(self.words, key)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def remember(self, key: str):
        """Record a selected key in the history."""
        self.history.add(key)

    def recent(self) -> List[str]:
        return self.history.snapshot()

    def initial_words(self, count: int = 20) -> List[str]:
        """Keys to show with no active query: history, else random words."""
        recent = self.recent()
        if recent:
            return recent
        return random_words(self.words, count)

    def close(self):
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=True)
                self._executor = None
        self.words.close()
        self.glosses.close()


def open_context(
    word_db: Union[str, Path] = WORD_DB_PATH,
    gloss_db: Union[str, Path] = GLOSS_DB_PATH,
    history_size: int = HISTORY_SIZE,
) -> DictionaryContext:
    """
    Open both indices and wrap them in a context.

    Raises:
        FileNotFoundError: If either index has not been built
    """
    words = open_word_index(word_db)
    glosses = open_gloss_index(gloss_db)
    return DictionaryContext(words, glosses, RecencyCache(history_size))
