"""Tests for the gloss index builder."""

import sqlite3

from ecdict_lookup.records import DictionaryRecord
from ecdict_lookup.reverse import (
    aggregate_glosses,
    build_gloss_index,
    collect_gloss_candidates,
    collect_ranks,
)
from ecdict_lookup.settings import UNRANKED
from ecdict_lookup.store import format_english_entries, parse_english_entries


def _record(word, translation, frequency=""):
    return DictionaryRecord(word, "", "", translation, frequency)


def test_first_translation_wins_per_gloss_and_word():
    records = [
        _record("bank", "n. 银行", "500"),
        _record("bank", "n. 银行, 河岸", "900"),
    ]
    candidates = collect_gloss_candidates(records)

    assert candidates["银行"] == {"bank": "n. 银行"}
    assert candidates["河岸"] == {"bank": "n. 银行, 河岸"}


def test_first_rank_wins_per_word():
    records = [_record("bank", "", "500"), _record("bank", "", "7")]
    assert collect_ranks(records) == {"bank": 500}


def test_candidates_sorted_by_rank():
    records = [
        _record("adore", "vt. 爱慕, 喜欢", "9000"),
        _record("like", "vt. 喜欢", "25"),
        _record("love", "vt. 爱, 喜欢", "5"),
    ]
    ranked = aggregate_glosses(records)

    assert [word for word, _ in ranked["喜欢"]] == ["love", "like", "adore"]


def test_equal_ranks_keep_first_seen_order():
    records = [
        _record("zeta", "喜欢", "25"),
        _record("alpha", "喜欢", "25"),
        _record("mid", "喜欢", "25"),
    ]
    ranked = aggregate_glosses(records)

    assert [word for word, _ in ranked["喜欢"]] == ["zeta", "alpha", "mid"]


def test_unranked_words_sort_last():
    records = [
        _record("fancy", "喜欢", ""),
        _record("cherish", "喜欢", "0"),
        _record("like", "喜欢", "25"),
        _record("relish", "喜欢", "n/a"),
    ]
    ranked = aggregate_glosses(records)

    assert [word for word, _ in ranked["喜欢"]] == ["like", "fancy", "cherish", "relish"]
    assert collect_ranks(records)["fancy"] == UNRANKED


def test_glosses_from_anywhere_in_corpus_are_merged():
    records = [_record("like", "喜欢", "25")]
    records += [_record(f"filler{i}", "填充", "") for i in range(50)]
    records.append(_record("love", "喜欢", "5"))

    ranked = aggregate_glosses(records)

    assert [word for word, _ in ranked["喜欢"]] == ["love", "like"]


def test_english_entries_round_trip_with_escapes():
    pairs = [("like", "喜欢\\n像"), ("love", "vt. 爱（动词）")]
    text = format_english_entries(pairs)

    assert text == "like（喜欢\\n像）\nlove（vt. 爱（动词））"
    assert parse_english_entries(text) == pairs


def test_build_writes_one_row_per_gloss(tmp_path):
    records = [
        _record("like", "喜欢\\n像", "25"),
        _record("love", "vt. 爱; 喜欢", "5"),
    ]
    db_path = tmp_path / "glosses.db"

    written = build_gloss_index(records, db_path)

    conn = sqlite3.connect(str(db_path))
    try:
        rows = dict(conn.execute("SELECT gloss, english_entries FROM glosses").fetchall())
    finally:
        conn.close()

    assert written == 3
    assert set(rows) == {"喜欢", "像", "爱"}
    assert rows["喜欢"] == "love（vt. 爱; 喜欢）\nlike（喜欢\\n像）"
    assert rows["像"] == "like（喜欢\\n像）"


def test_build_with_no_glosses(tmp_path):
    records = [_record("abc", "no chinese here", "1")]
    assert build_gloss_index(records, tmp_path / "glosses.db") == 0
