import pytest

from revise.models import DiagnosticKind
from revise.options import Cursor, Divergence, OptionMode, parse_guess, parse_options


def _field(text: str) -> tuple[list[str], int]:
    cursor = Cursor(text)
    options = parse_options(cursor, OptionMode.FIELD)
    return [option.text for option in options], cursor.pos


def test_parse_guess_empty_inputs() -> None:
    assert parse_guess("") == ()
    assert parse_guess("   ") == ()
    assert parse_guess(",,,,,,") == ()


def test_parse_guess_trims_and_splits() -> None:
    assert parse_guess(" foo ") == ("foo",)
    assert parse_guess("a, b ,c") == ("a", "b", "c")
    assert parse_guess("to eat, food") == ("to eat", "food")


def test_parse_guess_drops_empty_and_duplicate_options() -> None:
    assert parse_guess('a, "" ,,b,,,') == ("a", "b")
    assert parse_guess("x, y, x") == ("x", "y")


def test_parse_guess_quoted_and_escapes() -> None:
    assert parse_guess('"a,b"') == ("a,b",)
    assert parse_guess('"\\"\\\\"') == ('"\\',)
    assert parse_guess('"a\\q"') == ("aq",)


def test_parse_guess_hyphens_are_ordinary() -> None:
    assert parse_guess(" - - , -- -- ") == ("- -", "-- --")


def test_parse_guess_quotes_inside_atoms() -> None:
    assert parse_guess('a",b""') == ('a"', 'b""')


def test_parse_guess_glues_text_after_closing_quote() -> None:
    assert parse_guess('"ab"cd ef') == ("abcd ef",)


def test_parse_guess_unterminated_quote_takes_rest() -> None:
    assert parse_guess('"abc') == ("abc",)
    assert parse_guess('"abc, def') == ("abc, def",)


def test_parse_guess_trailing_backslash_is_literal() -> None:
    assert parse_guess('"abc\\') == ("abc\\",)


def test_parse_guess_newlines_are_whitespace() -> None:
    assert parse_guess("a\nb,\nc") == ("a\nb", "c")


def test_field_options_stop_at_separator_dash() -> None:
    texts, pos = _field("mi - me")
    assert texts == ["mi"]
    assert pos == 2


def test_field_options_keep_inner_separators() -> None:
    assert _field("to eat, well-known, a--b")[0] == ["to eat", "well-known", "a--b"]


def test_field_options_stop_at_comment() -> None:
    texts, pos = _field("a, b # note")
    assert texts == ["a", "b"]
    assert pos == 4


def test_field_options_skip_missing_option_after_comma() -> None:
    texts, pos = _field("a, , b")
    assert texts == ["a", "b"]
    texts, pos = _field("a,")
    assert texts == ["a"]
    assert pos == 2


def test_field_options_empty_when_no_leading_option() -> None:
    assert _field("- b") == ([], 0)


def test_field_quoted_option() -> None:
    cursor = Cursor('"a - b", c')
    options = parse_options(cursor, OptionMode.FIELD)
    assert [option.text for option in options] == ["a - b", "c"]
    assert options[0].quoted is True
    assert options[1].quoted is False
    assert (options[0].span.start, options[0].span.end) == (0, 7)


def test_field_unterminated_quote_diverges_at_opening_quote() -> None:
    with pytest.raises(Divergence) as info:
        parse_options(Cursor('a, "bc'), OptionMode.FIELD)
    assert info.value.kind is DiagnosticKind.UNTERMINATED_QUOTE
    assert info.value.offset == 3


def test_field_unknown_escape_diverges_at_backslash() -> None:
    with pytest.raises(Divergence) as info:
        parse_options(Cursor('"a\\nb"'), OptionMode.FIELD)
    assert info.value.kind is DiagnosticKind.INVALID_ESCAPE
    assert info.value.offset == 2


def test_field_control_character_inside_quotes() -> None:
    with pytest.raises(Divergence) as info:
        parse_options(Cursor('"a\x07b"'), OptionMode.FIELD)
    assert info.value.kind is DiagnosticKind.CONTROL_CHARACTER
    assert info.value.offset == 2


def test_cursor_respects_end_bound() -> None:
    cursor = Cursor("abc\ndef", 0, 3)
    assert cursor.take_while(str.isalpha) == "abc"
    assert cursor.at_end
    assert cursor.peek() == ""
    assert cursor.advance() == ""
