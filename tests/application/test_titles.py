"""Test suite for derive_title()."""

import pytest

from menechat.application.controller.titles import derive_title


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Hello", "Hello"),
        ("  Hello   world  ", "Hello world"),
        ("one two three four five", "one two three four five"),
        ("one two three four five six", "one two three four five..."),
        ("Supercalifragilisticexpialidocious word", "Supercalifragilisticexpialidoc..."),
        ("abcdefghij abcdefghij abcdefg xyzw", "abcdefghij abcdefghij abcdefg..."),
    ],
)
def test_derive_title(text: str, expected: str) -> None:
    assert derive_title(text) == expected


def test_derive_title_respects_custom_limits() -> None:
    assert derive_title("a b c", max_words=2, max_chars=30) == "a b..."
    assert derive_title("abcdef", max_words=5, max_chars=3) == "abc..."
