"""Dataset loader: fetch, CSV parsing, count coercion and city ordering."""

import asyncio
import urllib.error
import urllib.request

import pytest

import college_cases.io as io_module
from college_cases.io import (
    LoadFailure, aload_dataset, build_dataset, collation_key, fetch_csv_text,
    load_dataset, parse_csv_text,
)


# ── build_dataset ─────────────────────────────────────────────────────────────


def test_dataset_sorted_by_city_keeps_source_order_on_ties(dataset):
    assert [(r.city, r.institution) for r in dataset] == [("Am", "B"), ("Bx", "A"), ("Bx", "C")]


def test_counts_preserved_exactly(dataset):
    by_name = {r.institution: r for r in dataset}
    assert by_name["A"].cases == 10
    assert isinstance(by_name["A"].cases, int)
    assert by_name["A"].cases_2021 == 4


def test_empty_count_is_unreported_not_zero(dataset):
    by_name = {r.institution: r for r in dataset}
    assert by_name["B"].cases is None
    assert by_name["C"].cases_2021 is None


def test_zero_count_stays_zero():
    (record,) = build_dataset([{"college": "Z", "city": "X", "state": "TX", "cases": "0", "cases_2021": "0"}])
    assert record.cases == 0
    assert record.is_eligible


def test_float_counts_keep_precision():
    (record,) = build_dataset([{"college": "F", "city": "X", "state": "TX", "cases": "12.75"}])
    assert record.cases == 12.75


def test_malformed_count_becomes_unreported():
    (record,) = build_dataset([{"college": "M", "city": "X", "state": "TX", "cases": "n/a", "cases_2021": "inf"}])
    assert record.cases is None
    assert record.cases_2021 is None


def test_only_plain_numerals_are_counts():
    rows = [
        {"college": "U", "city": "X", "state": "TX", "cases": "1_000", "cases_2021": "0x1F"},
        {"college": "E", "city": "Y", "state": "TX", "cases": "1e3", "cases_2021": "-2"},
    ]
    underscored, exponent = build_dataset(rows)
    assert underscored.cases is None
    assert underscored.cases_2021 is None
    assert exponent.cases == 1000.0
    assert exponent.cases_2021 == -2


def test_missing_columns_read_as_empty():
    (record,) = build_dataset([{"college": "Q", "state": "WA"}])
    assert record.city == ""
    assert record.cases is None
    assert not record.is_eligible


def test_values_are_stripped():
    (record,) = build_dataset([{"college": " Q ", "city": " Yakima ", "state": "WA", "cases": " 3 "}])
    assert (record.institution, record.city, record.cases) == ("Q", "Yakima", 3)


def test_locale_aware_ordering():
    cities = ["Zurich", "Ávila", "Boston", "avon"]
    rows = [{"college": c, "city": c, "state": "XX", "cases": "1"} for c in cities]
    assert [r.city for r in build_dataset(rows)] == ["Ávila", "avon", "Boston", "Zurich"]


def test_case_ties_ordered_regardless_of_source_order():
    for cities in (["B", "b"], ["b", "B"]):
        rows = [{"college": c, "city": c, "state": "XX"} for c in cities]
        assert [r.city for r in build_dataset(rows)] == ["b", "B"]


def test_accent_ties_put_plain_letters_first():
    rows = [{"college": c, "city": c, "state": "XX"} for c in ["Ávila", "Avila"]]
    assert [r.city for r in build_dataset(rows)] == ["Avila", "Ávila"]


def test_adjacent_pairs_ordered():
    cities = ["b", "A", "c", "a", "", "B"]
    rows = [{"college": str(i), "city": c, "state": "XX"} for i, c in enumerate(cities)]
    data = build_dataset(rows)
    keys = [collation_key(r.city) for r in data]
    assert all(a <= b for a, b in zip(keys, keys[1:]))


def test_no_rows_gives_empty_dataset():
    assert build_dataset([]) == ()


# ── parse_csv_text ────────────────────────────────────────────────────────────


def test_parse_keeps_strings(sample_csv):
    rows = parse_csv_text(sample_csv)
    assert len(rows) == 3
    assert rows[0]["college"] == "A"
    assert rows[0]["cases"] == "10"
    assert rows[1]["cases"] == ""
    assert rows[0]["ipeds_id"] == "1"


def test_parse_normalizes_headers():
    rows = parse_csv_text("College, City ,State,Cases,Cases 2021\nA,Bx,NY,1,2\n")
    assert set(rows[0]) == {"college", "city", "state", "cases", "cases_2021"}


def test_parse_empty_text_is_load_failure():
    with pytest.raises(LoadFailure):
        parse_csv_text("")


# ── fetch / load ──────────────────────────────────────────────────────────────


def test_fetch_rejects_non_http_url():
    with pytest.raises(ValueError):
        fetch_csv_text("file:///etc/passwd")


def test_fetch_wraps_network_errors(monkeypatch):
    def boom(*args, **kwargs):
        raise urllib.error.URLError("unreachable")

    monkeypatch.setattr(urllib.request, "urlopen", boom)
    with pytest.raises(LoadFailure):
        fetch_csv_text("https://example.invalid/colleges.csv")


def test_load_dataset(monkeypatch, sample_csv):
    monkeypatch.setattr(io_module, "fetch_csv_text", lambda url: sample_csv)
    data = load_dataset("https://example.invalid/colleges.csv")
    assert [r.institution for r in data] == ["B", "A", "C"]


def test_load_failure_yields_empty_dataset(monkeypatch):
    def fail(url):
        raise LoadFailure("down")

    monkeypatch.setattr(io_module, "fetch_csv_text", fail)
    assert load_dataset("https://example.invalid/colleges.csv") == ()


def test_bad_url_yields_empty_dataset():
    assert load_dataset("ftp://example.invalid/colleges.csv") == ()


def test_load_uses_configured_url(monkeypatch, sample_csv):
    seen = []
    monkeypatch.setenv("COLLEGE_CASES_URL", "https://example.invalid/other.csv")
    monkeypatch.setattr(io_module, "fetch_csv_text", lambda url: seen.append(url) or sample_csv)
    load_dataset()
    assert seen == ["https://example.invalid/other.csv"]


def test_async_load(monkeypatch, sample_csv):
    monkeypatch.setattr(io_module, "fetch_csv_text", lambda url: sample_csv)
    data = asyncio.run(aload_dataset("https://example.invalid/colleges.csv"))
    assert len(data) == 3
