"""Tests for the forgiving token parser."""

from __future__ import annotations

from typing import Any

from json_autocorrect import (
    NO_VALUE,
    Token,
    TokenKind,
    fix_tokens,
    parse,
    tokenize,
)


def parse_text(text: str) -> Any:
    return parse(fix_tokens(tokenize(text)), 0).value


def test_parse_simple_object() -> None:
    toks = [
        Token(TokenKind.LBRACE, "{"),
        Token(TokenKind.STRING, "key"),
        Token(TokenKind.COLON, ":"),
        Token(TokenKind.NUMBER, "42"),
        Token(TokenKind.RBRACE, "}"),
        Token(TokenKind.EOF),
    ]

    result = parse(toks, 0)

    assert result.value == {"key": 42}
    assert result.index == 5


def test_parse_array() -> None:
    result = parse(tokenize("[1,2]"), 0)

    assert result.value == [1, 2]


def test_scalars() -> None:
    assert parse_text('"hi"') == "hi"
    assert parse_text("true") is True
    assert parse_text("false") is False
    assert parse_text("null") is None


def test_number_classification() -> None:
    assert parse_text("42") == 42
    assert isinstance(parse_text("42"), int)
    assert parse_text("-3.5") == -3.5
    assert isinstance(parse_text("1e3"), float)
    assert parse_text("1E3") == 1000.0


def test_out_of_range_numbers_fall_back_to_string() -> None:
    big = "123456789012345678901234567890"

    assert parse_text(big) == big
    assert parse_text("9223372036854775807") == 9223372036854775807
    assert parse_text("9223372036854775808") == "9223372036854775808"
    assert parse_text("1e999") == "1e999"


def test_closer_or_eof_gives_no_value_without_consuming() -> None:
    toks = [Token(TokenKind.RBRACE, "}"), Token(TokenKind.EOF)]

    result = parse(toks, 0)
    assert result.value is NO_VALUE
    assert result.index == 0

    result = parse(toks, 1)
    assert result.value is NO_VALUE
    assert result.index == 1


def test_stray_separator_gives_no_value_and_is_consumed() -> None:
    for kind in (TokenKind.COLON, TokenKind.COMMA, TokenKind.UNKNOWN):
        result = parse([Token(kind, "x"), Token(TokenKind.EOF)], 0)
        assert result.value is NO_VALUE
        assert result.index == 1


def test_index_past_end_gives_no_value() -> None:
    result = parse([Token(TokenKind.EOF)], 5)

    assert result.value is NO_VALUE
    assert result.index == 5


def test_missing_comma_between_members() -> None:
    assert parse_text('{"a":1 "b":2 "c":3}') == {"a": 1, "b": 2, "c": 3}


def test_missing_colon_gives_null_value() -> None:
    assert parse_text('{"a" "b":1}') == {"a": None, "b": 1}
    assert parse_text('{"a"}') == {"a": None}


def test_missing_value_drops_the_key() -> None:
    assert parse_text('{"a":}') == {}
    assert parse_text('{"a":,"b":2}') == {"b": 2}


def test_trailing_and_doubled_commas_are_absorbed() -> None:
    assert parse_text('{"a":1,}') == {"a": 1}
    assert parse_text('{"a":1,,"b":2}') == {"a": 1, "b": 2}
    assert parse_text("[1,2,]") == [1, 2]


def test_object_skips_noise_between_members() -> None:
    assert parse_text('{"a":1 : 1.2.3 "b":2}') == {"a": 1, "b": 2}
    assert parse_text('{{"name": "Test"}') == {"name": "Test"}


def test_duplicate_keys_last_value_wins_at_first_position() -> None:
    value = parse_text('{"a":1,"b":2,"a":[3]}')

    assert value == {"a": [3], "b": 2}
    assert list(value) == ["a", "b"]


def test_array_missing_comma() -> None:
    assert parse_text("[1 2 true]") == [1, 2, True]


def test_array_skips_noise_where_comma_expected() -> None:
    assert parse_text("[1 : 2]") == [1, 2]


def test_array_stops_at_unrecognized_token() -> None:
    toks = tokenize("[1,:2]")

    result = parse(toks, 0)

    assert result.value == [1]
    # the ':' is left for the caller
    assert toks[result.index].kind is TokenKind.COLON


def test_array_stop_inside_object_keeps_parsing_the_object() -> None:
    assert parse_text('{"a":[1,:],"b":2}') == {"a": [1], "b": 2}


def test_nested_containers() -> None:
    value = parse_text('{"a":{"b":[1,{"c":[]}]},"d":[[],{}]}')

    assert value == {"a": {"b": [1, {"c": []}]}, "d": [[], {}]}


def test_only_first_top_level_value_is_returned() -> None:
    assert parse_text('{"a":1} {"b":2}') == {"a": 1}


def test_deep_nesting_does_not_hit_recursion_limit() -> None:
    depth = 5000
    value = parse_text("[" * depth)

    for _ in range(depth - 1):
        assert isinstance(value, list) and len(value) == 1
        value = value[0]
    assert value == []


def test_parse_without_eof_terminates() -> None:
    toks = [Token(TokenKind.LBRACE, "{"), Token(TokenKind.STRING, "a")]

    assert parse(toks, 0).value == {"a": None}
