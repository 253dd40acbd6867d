import pytest

from optchains.apputils import (
    join_items,
    join_keys,
    key_list,
    split_by_linefeed,
    split_str,
    trim,
)


def test_trim_removes_trailing_whitespace():
    assert trim("key  \n") == "key"


def test_trim_keeps_leading_text():
    assert trim("  key") == "  key"


def test_split_basic():
    assert split_str("a,b,c", ",") == ["a", "b", "c"]


def test_split_default_separator():
    assert split_str("x,y") == ["x", "y"]


def test_split_trailing_delimiter_dropped():
    assert split_str("a,b,", ",") == ["a", "b"]


def test_split_leading_delimiter_kept():
    assert split_str(",a", ",") == ["", "a"]


def test_split_empty():
    assert split_str("", ",") == []


def test_split_multichar_delimiter():
    assert split_str("a::b::c", "::") == ["a", "b", "c"]


def test_split_empty_delimiter_rejected():
    with pytest.raises(ValueError):
        split_str("abc", "")


def test_split_by_linefeed():
    assert split_by_linefeed("one\ntwo\n") == ["one", "two"]


@pytest.mark.parametrize("text", ["a,b,c", "single", "x,,y"])
def test_split_join_round_trip(text):
    assert join_items(split_str(text, ","), ",") == text


def test_key_list_sorted():
    assert key_list({"b": 1, "a": 2, "c": 3}) == ["a", "b", "c"]


def test_join_keys():
    assert join_keys({"b": 1, "a": 2}, ";") == "a;b"


def test_join_items_numbers():
    assert join_items([1, 2, 3], "-") == "1-2-3"


def test_join_items_empty():
    assert join_items([], ",") == ""