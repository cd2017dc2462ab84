"""Tests for parsing helpers."""

from __future__ import annotations

import pytest

from buildpush.utils import get_list, parse_bool, parse_csv_records, split_kvp


def test_get_list_splits_lines_and_commas() -> None:
    assert get_list("a,b\nc\n\n d ") == ["a", "b", "c", "d"]


def test_get_list_empty() -> None:
    assert get_list("") == []
    assert get_list("\n \n") == []


def test_get_list_ignore_comma_keeps_lines_whole() -> None:
    value = "type=local,dest=./out\ntype=tar,dest=out.tar\n"
    assert get_list(value, ignore_comma=True) == ["type=local,dest=./out", "type=tar,dest=out.tar"]


def test_get_list_quoted_field() -> None:
    assert get_list('"a,b",c') == ["a,b", "c"]


def test_get_list_without_quote_handling() -> None:
    value = 'type=image,"name=a,b"'
    assert get_list(value, ignore_comma=True, quote=False) == ['type=image,"name=a,b"']


def test_parse_csv_records_skips_blank() -> None:
    assert parse_csv_records("a,b\n\n,\nc") == [["a", "b"], ["c"]]


@pytest.mark.parametrize("value", ["1", "t", "T", "true", "TRUE", "True"])
def test_parse_bool_true(value: str) -> None:
    assert parse_bool(value) is True


@pytest.mark.parametrize("value", ["0", "f", "F", "false", "FALSE", "False"])
def test_parse_bool_false(value: str) -> None:
    assert parse_bool(value) is False


def test_parse_bool_invalid() -> None:
    with pytest.raises(ValueError, match="parseBool syntax error: yes"):
        parse_bool("yes")


def test_split_kvp() -> None:
    assert split_kvp(" a = b=c ") == ("a", "b=c")
    assert split_kvp("flag") == ("flag", "")
