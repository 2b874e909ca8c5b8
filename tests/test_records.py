"""Tests for corpus ingestion and frequency ranks."""

import pytest

from ecdict_lookup.records import (
    DictionaryRecord,
    load_corpus,
    parse_frequency,
    parse_row,
)
from ecdict_lookup.settings import UNRANKED

from conftest import SAMPLE_ROWS, make_row


@pytest.mark.parametrize("raw", ["", "   ", "0", "abc", "12x", "-3"])
def test_unusable_frequency_is_unranked(raw):
    assert parse_frequency(raw) == UNRANKED


def test_frequency_parses_and_trims():
    assert parse_frequency("25") == 25
    assert parse_frequency(" 7 ") == 7


def test_unranked_sorts_after_real_ranks():
    ranks = [parse_frequency(r) for r in ["", "999999", "0", "1"]]
    assert sorted(ranks) == [1, 999999, UNRANKED, UNRANKED]


def test_parse_row_picks_indexed_columns():
    record = parse_row(make_row("like", "/laɪk/", "similar to", "喜欢\\n像", "25"))

    assert record == DictionaryRecord("like", "/laɪk/", "similar to", "喜欢\\n像", "25")
    assert record.rank == 25
    assert record.as_row() == ("like", "/laɪk/", "similar to", "喜欢\\n像", "25")


def test_parse_row_rejects_short_rows():
    assert parse_row(["like", "/laɪk/", "similar to", "喜欢"]) is None
    assert parse_row(make_row("like")[:12]) is None


def test_records_are_immutable():
    record = parse_row(make_row("like"))
    with pytest.raises(AttributeError):
        record.word = "love"


def test_load_corpus_skips_header_and_short_rows(corpus_factory):
    rows = [SAMPLE_ROWS[0], ["broken", "row"], SAMPLE_ROWS[1]]
    records = load_corpus(corpus_factory(rows))

    assert [r.word for r in records] == ["like", "likely"]


def test_load_corpus_passes_fields_through_verbatim(corpus_factory):
    records = load_corpus(corpus_factory([SAMPLE_ROWS[0]]))

    assert records[0].translation == "喜欢\\n像"
    assert records[0].definition == "similar to"


def test_load_corpus_reads_gzip(corpus_factory):
    records = load_corpus(corpus_factory(SAMPLE_ROWS, name="ecdict.csv.gz"))

    assert len(records) == len(SAMPLE_ROWS)
    assert records[0].word == "like"


def test_load_corpus_empty_file(corpus_factory):
    assert load_corpus(corpus_factory([], header=False)) == []


def test_load_corpus_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_corpus(tmp_path / "missing.csv")


def test_load_corpus_skips_rows_with_invalid_utf8(sample_corpus):
    with open(sample_corpus, "ab") as f:
        f.write(b"bad\xff,,,,,,,,1,,,,\n")
        f.write(b"good,,,,,,,,2,,,,\n")

    records = load_corpus(sample_corpus)

    assert len(records) == len(SAMPLE_ROWS) + 1
    assert records[-1].word == "good"
    assert all(not r.word.startswith("bad") for r in records)


def test_invalid_utf8_in_unindexed_column_is_kept(sample_corpus):
    with open(sample_corpus, "ab") as f:
        f.write(b"fine,,,,,\xfe,,,3,,,,\n")

    assert load_corpus(sample_corpus)[-1].word == "fine"
