#!/usr/bin/env python3
"""
Text Normalizer

Turns a notification body (plain text or HTML) into the single plain-text
form every field extractor works on.
"""

import re

from bs4 import BeautifulSoup

from ..core.currency import to_halfwidth

# Plain-text parts shorter than this are placeholders ("View this mail in HTML")
MIN_PLAIN_TEXT_CHARS = 20

BLOCK_TAGS = ["p", "div", "tr", "li", "table", "h1", "h2", "h3", "h4", "h5", "h6"]
CELL_TAGS = ["td", "th"]

_BLANK_RUN = re.compile(r"[ \t\xa0\u3000]+")
_NEWLINE_RUN = re.compile(r"\n{3,}")


def html_to_text(html: str) -> str:
    """
    Strip markup from an HTML body.

    Line, row and paragraph boundaries become newlines, table cells are
    separated by a space and entities are decoded by the parser.
    """
    soup = BeautifulSoup(html, "lxml")

    for tag in soup(["script", "style", "head"]):
        tag.decompose()
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for tag in soup.find_all(BLOCK_TAGS):
        tag.append("\n")
    for cell in soup.find_all(CELL_TAGS):
        cell.append(" ")

    return soup.get_text()


def collapse_whitespace(text: str) -> str:
    """Collapse blank runs, trim lines and squeeze runs of empty lines."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = [_BLANK_RUN.sub(" ", line).strip() for line in text.split("\n")]
    return _NEWLINE_RUN.sub("\n\n", "\n".join(lines)).strip()


def normalize_text(text: str) -> str:
    """Half-width conversion plus whitespace collapsing for any fragment (subjects too)."""
    return collapse_whitespace(to_halfwidth(text))


def normalize_message_text(text_content: str | None, html_content: str | None) -> str | None:
    """
    Produce the normalized body of a message.

    Prefers the plain-text part when it carries real content, otherwise
    strips the HTML part.

    Returns:
        Normalized text, or None when the message has no usable body
    """
    if text_content and len(text_content.strip()) >= MIN_PLAIN_TEXT_CHARS:
        raw = text_content
    elif html_content:
        raw = html_to_text(html_content)
    elif text_content:
        raw = text_content
    else:
        return None

    normalized = normalize_text(raw)
    return normalized or None
