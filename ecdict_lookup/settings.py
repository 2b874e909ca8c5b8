"""
Settings for ecdict-lookup.

Module-level defaults, each overridable through an environment variable
read once at import time. Command-line flags override these per run.
"""

import os

# ============================================================================
# Paths
# ============================================================================

CORPUS_PATH = os.getenv("ECDICT_CORPUS", "ecdict.csv")
WORD_DB_PATH = os.getenv("ECDICT_WORD_DB", "english_chinese.db")
GLOSS_DB_PATH = os.getenv("ECDICT_GLOSS_DB", "chinese_english.db")

# ============================================================================
# Build
# ============================================================================

# SQLite allows one writer, so more workers only help batch preparation
BUILD_WORKERS = int(os.getenv("ECDICT_BUILD_WORKERS", "4"))
BATCH_SIZE = int(os.getenv("ECDICT_BATCH_SIZE", "1000"))

# Minimum number of CSV columns in an ECDICT data row
MIN_FIELDS = 13

# Column positions in the corpus
COL_WORD = 0
COL_PHONETIC = 1
COL_DEFINITION = 2
COL_TRANSLATION = 3
COL_FREQUENCY = 8

# Rank given to words with no usable frequency; sorts after every real rank
UNRANKED = 1 << 30

# ============================================================================
# Search
# ============================================================================

SEARCH_LIMIT = 100
HISTORY_SIZE = int(os.getenv("ECDICT_HISTORY_SIZE", "20"))

# Idle read connections kept per index between searches
READ_POOL_SIZE = 8

# Random suggestions are drawn from words ranked strictly inside this range
RANDOM_RANK_MIN = 0
RANDOM_RANK_MAX = 1000
