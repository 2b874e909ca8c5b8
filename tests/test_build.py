"""Tests for whole-corpus builds."""

import pytest

import ecdict_lookup.build as build_module
from ecdict_lookup.build import build_indices, ensure_indices, resolve_corpus
from ecdict_lookup.store import (
    BuildError,
    lookup_gloss,
    lookup_word,
    open_gloss_index,
    open_word_index,
)

from conftest import SAMPLE_ROWS, make_row


def test_word_lookup_returns_fields_verbatim(built):
    entry = lookup_word(built.words, "like")

    assert entry.word == "like"
    assert entry.phonetic == "/laɪk/"
    assert entry.definition == "similar to"
    assert entry.translation == "喜欢\\n像"
    assert entry.frequency == "25"


def test_gloss_entries_ranked_by_frequency(built):
    entry = lookup_gloss(built.glosses, "喜欢")

    assert entry.words == ["love", "like", "enjoy", "fancy"]
    assert ("like", "喜欢\\n像") in entry.english_entries


def test_every_gloss_of_a_translation_is_indexed(built):
    entry = lookup_gloss(built.glosses, "像")
    assert entry.english_entries == (("like", "喜欢\\n像"),)


def test_missing_keys(built):
    assert lookup_word(built.words, "nonexistent") is None
    assert lookup_gloss(built.glosses, "不存在") is None


def test_build_counts(built):
    assert built.record_count == len(SAMPLE_ROWS)
    assert built.word_rows == len(SAMPLE_ROWS)
    assert built.gloss_rows == 9


def test_lookup_returns_first_homograph(tmp_path, corpus_factory):
    corpus = corpus_factory([
        make_row("bank", "", "financial institution", "n. 银行", "500"),
        make_row("bank", "", "river side", "n. 河岸", "900"),
    ])
    result = build_indices(corpus, tmp_path / "w.db", tmp_path / "g.db", workers=1)
    try:
        assert lookup_word(result.words, "bank").definition == "financial institution"
    finally:
        result.close()


def test_missing_corpus(tmp_path):
    with pytest.raises(BuildError):
        build_indices(tmp_path / "missing.csv", tmp_path / "w.db", tmp_path / "g.db")


def test_gzip_sibling_is_used(tmp_path, corpus_factory):
    corpus_factory(SAMPLE_ROWS, name="ecdict.csv.gz")

    assert resolve_corpus(tmp_path / "ecdict.csv") == tmp_path / "ecdict.csv.gz"

    result = build_indices(tmp_path / "ecdict.csv", tmp_path / "w.db", tmp_path / "g.db")
    try:
        assert lookup_word(result.words, "love") is not None
    finally:
        result.close()


def test_failed_build_leaves_previous_indices(tmp_path, sample_corpus, monkeypatch):
    word_db = tmp_path / "w.db"
    gloss_db = tmp_path / "g.db"
    word_db.write_text("previous")
    gloss_db.write_text("previous")

    def fail(*args, **kwargs):
        raise BuildError("disk full")

    monkeypatch.setattr(build_module, "build_gloss_index", fail)

    with pytest.raises(BuildError):
        build_indices(sample_corpus, word_db, gloss_db)

    assert word_db.read_text() == "previous"
    assert gloss_db.read_text() == "previous"
    assert not list(tmp_path.glob("*.building*"))


def test_failed_first_build_leaves_nothing(tmp_path, sample_corpus, monkeypatch):
    def fail(*args, **kwargs):
        raise BuildError("disk full")

    monkeypatch.setattr(build_module, "build_gloss_index", fail)

    with pytest.raises(BuildError):
        build_indices(sample_corpus, tmp_path / "w.db", tmp_path / "g.db")

    assert not (tmp_path / "w.db").exists()
    assert not (tmp_path / "g.db").exists()
    assert not list(tmp_path.glob("*.building*"))


def test_rebuild_replaces_indices(tmp_path, corpus_factory):
    first = corpus_factory([make_row("old", "", "", "旧", "1")], name="first.csv")
    second = corpus_factory([make_row("new", "", "", "新", "1")], name="second.csv")

    build_indices(first, tmp_path / "w.db", tmp_path / "g.db").close()
    result = build_indices(second, tmp_path / "w.db", tmp_path / "g.db")
    try:
        assert lookup_word(result.words, "old") is None
        assert lookup_word(result.words, "new") is not None
        assert lookup_gloss(result.glosses, "旧") is None
    finally:
        result.close()


def test_ensure_indices_builds_once(tmp_path, sample_corpus, monkeypatch):
    word_db = tmp_path / "w.db"
    gloss_db = tmp_path / "g.db"

    words, glosses = ensure_indices(sample_corpus, word_db, gloss_db, workers=1)
    words.close()
    glosses.close()

    def fail(*args, **kwargs):
        raise AssertionError("should not rebuild")

    monkeypatch.setattr(build_module, "build_indices", fail)

    words, glosses = ensure_indices(sample_corpus, word_db, gloss_db)
    try:
        assert lookup_word(words, "like") is not None
    finally:
        words.close()
        glosses.close()


def test_gloss_index_is_published_before_word_index(tmp_path, corpus_factory, monkeypatch):
    first = corpus_factory([make_row("old", "", "", "旧", "1")], name="first.csv")
    second = corpus_factory([make_row("new", "", "", "新", "1")], name="second.csv")
    word_db = tmp_path / "w.db"
    gloss_db = tmp_path / "g.db"
    build_indices(first, word_db, gloss_db).close()

    real_replace = build_module.os.replace
    moved = []

    def replace_once(src, dst):
        if moved:
            raise OSError("device busy")
        moved.append(dst)
        real_replace(src, dst)

    monkeypatch.setattr(build_module.os, "replace", replace_once)

    with pytest.raises(BuildError):
        build_indices(second, word_db, gloss_db)

    monkeypatch.undo()
    assert moved == [gloss_db]
    assert not list(tmp_path.glob("*.building*"))

    words = open_word_index(word_db)
    glosses = open_gloss_index(gloss_db)
    try:
        assert lookup_word(words, "old") is not None
        assert lookup_gloss(glosses, "新") is not None
    finally:
        words.close()
        glosses.close()
