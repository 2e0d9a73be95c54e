import pytest

from location_relay.utils.validators import (
    decode_json_object,
    first_present,
    is_present,
    parse_float,
    parse_number_text,
    preview,
)


def test_presence():
    assert is_present(0)
    assert is_present(False)
    assert not is_present(None)
    assert not is_present("")


def test_first_present_skips_empty_sources():
    assert first_present("a", None, {"a": ""}, {"a": 3}) == 3
    assert first_present("a", {}, None) is None


@pytest.mark.parametrize("bad", ["abc", True, "nan", "inf", None])
def test_parse_float_rejects(bad):
    with pytest.raises((TypeError, ValueError)):
        parse_float(bad)


def test_parse_float_accepts_text():
    assert parse_float(" 37.7749 ") == 37.7749


def test_parse_number_text():
    assert parse_number_text("72") == 72
    assert isinstance(parse_number_text("72"), int)
    assert parse_number_text("7.5") == 7.5


def test_preview_truncates():
    assert preview("x" * 10) == "x" * 10
    assert preview("x" * 200) == "x" * 100 + "..."


def test_decode_json_object():
    assert decode_json_object('{"a": 1}') == {"a": 1}
    with pytest.raises(ValueError):
        decode_json_object("[1]")
    with pytest.raises(ValueError):
        decode_json_object("{bad")
