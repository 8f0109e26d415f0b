"""
Regex based HTML cleaning.

This is a lexical approximation, not a parser: block elements are removed up
to the first closing tag of the same name (nested elements of the same name
are not balanced), and only double-quoted href attributes are recognized
when extracting links.
"""

import html as _html
import re

BLOCK_ELEMENTS = ("head", "style", "script", "noscript", "iframe", "svg")

_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_TAG_RE = re.compile(r"<[^<>]+>")
_ENTITY_RE = re.compile(r"&[^;\s]+;")
_ANGLE_RE = re.compile(r"[<>]")
_HREF_RE = re.compile(
    r"<a\s+(?:[^>]*?\s)?href\s*=\s*\"([^\"]*)\"[^>]*>",
    re.IGNORECASE,
)

_element_patterns: dict[str, re.Pattern] = {}


def _element_re(name: str) -> re.Pattern:
    pattern = _element_patterns.get(name)
    if pattern is None:
        escaped = re.escape(name)
        pattern = re.compile(
            rf"<\s*{escaped}\b[^>]*>.*?</\s*{escaped}\s*>",
            re.IGNORECASE | re.DOTALL,
        )
        _element_patterns[name] = pattern
    return pattern


def strip_comments(html: str) -> str:
    """Remove <!-- ... --> spans, including ones spanning several lines."""
    return _COMMENT_RE.sub("", html)


def strip_element(html: str, name: str) -> str:
    """
    Remove every `name` element: the opening tag, its content and the first
    matching closing tag. Case-insensitive; content may span lines.
    """
    return _element_re(name).sub("", html)


def strip_block_elements(html: str) -> str:
    """Remove comments and the head, style, script, noscript, iframe and svg elements."""
    html = strip_comments(html)
    for name in BLOCK_ELEMENTS:
        html = strip_element(html, name)
    return html


def strip_tags(html: str) -> str:
    """Remove all remaining tags, so A<b>B</b>C becomes ABC."""
    return _TAG_RE.sub("", html)


def strip_entities(html: str) -> str:
    """
    Decode named and numeric entities (&ndash;, &#8211;, &#x2013;) and drop
    anything entity-shaped that did not decode.
    """
    return _ENTITY_RE.sub("", _html.unescape(html))


def strip_html(html: str) -> str:
    """
    Convert markup into plain text.

    Decoded &lt; and &gt; entities, and any stray angle bracket, are removed
    as well so the result never contains markup delimiters.
    """
    html = strip_block_elements(html)
    html = strip_tags(html)
    html = strip_entities(html)
    return _ANGLE_RE.sub("", html)


def extract_hyperlinks(html: str) -> list[str]:
    """
    Return the href value of every <a> tag in document order. Values are not
    resolved or unescaped. Single-quoted and unquoted hrefs are ignored.
    """
    return _HREF_RE.findall(html)
