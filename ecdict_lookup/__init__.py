"""
ecdict-lookup: English <-> Chinese dictionary lookup over ECDICT

Builds two SQLite indices from the ECDICT CSV, one keyed by English word and
one keyed by Chinese gloss, and serves ranked exact / prefix / substring
search over either.

Basic Usage:
    import ecdict_lookup

    # Build once per corpus version
    ecdict_lookup.build_indices("ecdict.csv", "english_chinese.db", "chinese_english.db")

    # Then search
    with ecdict_lookup.open_context("english_chinese.db", "chinese_english.db") as ctx:
        for key in ctx.search("lik"):
            print(key)
        entry = ctx.lookup("喜欢")
        print(entry.words)
"""

from ecdict_lookup.build import BuiltIndices, build_indices, ensure_indices
from ecdict_lookup.context import DictionaryContext, QuerySequence, open_context
from ecdict_lookup.glosses import extract_glosses
from ecdict_lookup.history import RecencyCache
from ecdict_lookup.records import DictionaryRecord, load_corpus, parse_frequency
from ecdict_lookup.search import random_words, search, search_index
from ecdict_lookup.settings import UNRANKED
from ecdict_lookup.store import (
    BuildError,
    ForwardEntry,
    GlossEntry,
    IndexHandle,
    lookup_gloss,
    lookup_word,
    open_gloss_index,
    open_word_index,
)

__version__ = "0.1.0"


def get_version() -> str:
    """Get the library version."""
    return __version__


# =============================================================================
# Module-level exports
# =============================================================================

__all__ = [
    # Data classes
    "DictionaryRecord",
    "ForwardEntry",
    "GlossEntry",
    "BuiltIndices",
    # Building
    "load_corpus",
    "parse_frequency",
    "extract_glosses",
    "build_indices",
    "ensure_indices",
    # Reading
    "IndexHandle",
    "open_word_index",
    "open_gloss_index",
    "lookup_word",
    "lookup_gloss",
    "search",
    "search_index",
    "random_words",
    # Session
    "DictionaryContext",
    "QuerySequence",
    "RecencyCache",
    "open_context",
    # Exceptions
    "BuildError",
    # Constants
    "UNRANKED",
    "get_version",
    "__version__",
]
