"""Unit tests for the plain-text fallback of HTML emails."""

from __future__ import annotations

import pytest

from services.classroom_service.implementations.email_provider_impl import html_to_text


def test_tags_are_stripped_and_breaks_kept() -> None:
    text = html_to_text("<div><p>Hello <b>Sam</b></p><p>Welcome<br/>aboard</p></div>")

    assert text == "Hello Sam\nWelcome\naboard"


@pytest.mark.parametrize(
    ("markup", "expected"),
    [
        ("<p>Don&#39;t miss it</p>", "Don't miss it"),
        ("&quot;Algebra&quot; &amp; more", '"Algebra" & more'),
        ("Grade&nbsp;A", "Grade A"),
    ],
)
def test_entities_are_decoded(markup: str, expected: str) -> None:
    assert html_to_text(markup) == expected


def test_escaped_markup_survives_as_text() -> None:
    text = html_to_text("<p>Use &lt;b&gt; for bold, not &amp;lt;b&amp;gt;</p>")

    assert text == "Use <b> for bold, not &lt;b&gt;"
