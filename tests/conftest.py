"""
Shared fixtures: small ECDICT-shaped corpora and indices built from them.
"""

import csv
import gzip

import pytest

from ecdict_lookup.build import build_indices
from ecdict_lookup.context import DictionaryContext
from ecdict_lookup.history import RecencyCache

HEADER = [
    "word", "phonetic", "definition", "translation", "pos", "collins",
    "oxford", "tag", "bnc", "frq", "exchange", "detail", "audio",
]


def make_row(word, phonetic="", definition="", translation="", bnc=""):
    """A 13-column ECDICT row with the indexed columns filled in."""
    return [word, phonetic, definition, translation, "", "", "", "", bnc, "", "", "", ""]


# Corpus order matters: "like" and "enjoy" share rank 25 and "like" comes first
SAMPLE_ROWS = [
    make_row("like", "/laɪk/", "similar to", "喜欢\\n像", "25"),
    make_row("likely", "/ˈlaɪkli/", "probably", "adj. 可能的", "300"),
    make_row("dislike", "/dɪsˈlaɪk/", "a feeling of aversion", "vt. 不喜欢, 厌恶", "2000"),
    make_row("love", "/lʌv/", "a strong positive emotion", "vt. 爱; 喜欢", "5"),
    make_row("enjoy", "/ɪnˈdʒɔɪ/", "take delight in", "vt. 喜欢, 享受", "25"),
    make_row("fancy", "/ˈfænsi/", "imagine", "vt. 喜欢(某人)", ""),
    make_row("the", "/ðə/", "definite article", "art. 这, 那", "1"),
]


def write_corpus(path, rows, header=True):
    """Write rows as an ECDICT CSV (gzip-compressed if path ends in .gz)."""
    opener = gzip.open if str(path).endswith(".gz") else open
    with opener(path, "wt", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        if header:
            writer.writerow(HEADER)
        writer.writerows(rows)
    return path


@pytest.fixture
def corpus_factory(tmp_path):
    """Return a function that writes a corpus file under tmp_path."""
    def _make(rows, name="ecdict.csv", header=True):
        return write_corpus(tmp_path / name, rows, header=header)
    return _make


@pytest.fixture
def sample_corpus(corpus_factory):
    return corpus_factory(SAMPLE_ROWS)


@pytest.fixture
def built(tmp_path, sample_corpus):
    """Both indices built from SAMPLE_ROWS."""
    result = build_indices(
        sample_corpus,
        tmp_path / "english_chinese.db",
        tmp_path / "chinese_english.db",
        workers=2,
        batch_size=2,
    )
    yield result
    result.close()


@pytest.fixture
def context(built):
    ctx = DictionaryContext(built.words, built.glosses, RecencyCache(20))
    yield ctx
    ctx.close()
