"""
Tiered search over the word and gloss indices.

Results come in three tiers, each deduplicated against the earlier ones:

    1. exact      key == query
    2. prefix     key starts with query
    3. substring  key contains query anywhere else

at most SEARCH_LIMIT keys in total. A query containing any Han character
searches the gloss index, anything else the word index.

A store error inside a tier only empties that tier; a search never raises
because of the database.
"""

import logging
import sqlite3
from typing import List, Set

from ecdict_lookup.glosses import contains_han
from ecdict_lookup.settings import RANDOM_RANK_MAX, RANDOM_RANK_MIN, SEARCH_LIMIT
from ecdict_lookup.store import IndexHandle, is_storable

logger = logging.getLogger(__name__)

LIKE_ESCAPE = "\\"


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so text matches literally."""
    return (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


# ============================================================================
# Tiers
# ============================================================================

def _exact_sql(table: str, key: str) -> str:
    return f"SELECT DISTINCT {key} FROM {table} WHERE {key} = ? LIMIT ?"


def _prefix_sql(table: str, key: str) -> str:
    return (
        f"SELECT DISTINCT {key} FROM {table} "
        f"WHERE {key} LIKE ? ESCAPE '{LIKE_ESCAPE}' AND {key} != ? LIMIT ?"
    )


def _substring_sql(table: str, key: str) -> str:
    return (
        f"SELECT DISTINCT {key} FROM {table} "
        f"WHERE {key} LIKE ? ESCAPE '{LIKE_ESCAPE}' "
        f"AND {key} NOT LIKE ? ESCAPE '{LIKE_ESCAPE}' LIMIT ?"
    )


def _run_tier(
    handle: IndexHandle,
    tier: str,
    sql: str,
    params: tuple,
    results: List[str],
    seen: Set[str],
):
    """Append a tier's new keys to results; store errors leave it empty."""
    try:
        rows = handle.execute(sql, params)
    except sqlite3.Error as e:
        logger.warning(f"{tier} search on {handle.schema.name} failed: {e}")
        return

    for (key,) in rows:
        if key is None or key in seen:
            continue
        seen.add(key)
        results.append(key)


def search_index(handle: IndexHandle, query: str, limit: int = SEARCH_LIMIT) -> List[str]:
    """
    Run the three search tiers against one index.

    Args:
        handle: The index to search
        query: Text to look for (used as-is)
        limit: Maximum number of keys returned

    Returns:
        Distinct keys: exact matches, then prefix matches, then substring
        matches
    """
    results: List[str] = []
    seen: Set[str] = set()
    if not query or limit <= 0:
        return results
    if not is_storable(query):
        logger.debug(f"Ignoring query that is not valid UTF-8: {query!r}")
        return results

    table, key = handle.table, handle.key_column
    escaped = escape_like(query)
    prefix = escaped + "%"

    _run_tier(handle, "exact", _exact_sql(table, key), (query, limit), results, seen)
    if len(results) >= limit:
        return results[:limit]

    remaining = limit - len(results)
    _run_tier(handle, "prefix", _prefix_sql(table, key), (prefix, query, remaining), results, seen)
    if len(results) >= limit:
        return results[:limit]

    remaining = limit - len(results)
    _run_tier(
        handle, "substring", _substring_sql(table, key),
        ("%" + escaped + "%", prefix, remaining), results, seen,
    )
    return results[:limit]


def search(
    query: str,
    words: IndexHandle,
    glosses: IndexHandle,
    limit: int = SEARCH_LIMIT,
) -> List[str]:
    """
    Search whichever index fits the query.

    Han text goes to the gloss index, everything else to the word index.

    Example (words and glosses are open handles, see open_context):
        results = search("lik", words, glosses)
        # ['like', 'likely', 'dislike']
    """
    query = (query or "").strip()
    if not query:
        return []
    handle = glosses if contains_han(query) else words
    return search_index(handle, query, limit)


# ============================================================================
# Suggestions
# ============================================================================

def random_words(handle: IndexHandle, count: int = 20) -> List[str]:
    """
    Pick random common words from the word index.

    Only words with a real frequency rank below RANDOM_RANK_MAX qualify.
    """
    if count <= 0:
        return []
    sql = (
        "SELECT word FROM words "
        "WHERE CAST(frequency AS INTEGER) > ? AND CAST(frequency AS INTEGER) < ? "
        "ORDER BY RANDOM() LIMIT ?"
    )
    try:
        rows = handle.execute(sql, (RANDOM_RANK_MIN, RANDOM_RANK_MAX, count))
    except sqlite3.Error as e:
        logger.warning(f"Random word query failed: {e}")
        return []
    return [word for (word,) in rows]
