import re

import pytest

from webindex.cleaner import (
    extract_hyperlinks,
    strip_block_elements,
    strip_comments,
    strip_element,
    strip_entities,
    strip_html,
    strip_tags,
)


def test_strip_comments_single_and_multiline():
    assert strip_comments("A<!-- B -->C") == "AC"
    assert strip_comments("A<!--\nB -->C") == "AC"
    assert strip_comments("A<!-- x -->B<!-- y -->C") == "ABC"


def test_strip_element_removes_script_body():
    html = '<p>a</p><script type="text/javascript">\nvar s = "</p>";\nif (a < b) { x = \'>\'; }\n</script>b'
    assert strip_element(html, "script") == "<p>a</p>b"


def test_strip_element_is_case_insensitive():
    assert strip_element("x<SCRIPT>alert(1)</Script >y", "script") == "xy"
    assert strip_element("x< style media='all'>p{}</STYLE>y", "style") == "xy"


def test_strip_element_does_not_touch_similar_names():
    assert strip_element("<header>keep</header>", "head") == "<header>keep</header>"


def test_strip_element_closes_on_first_end_tag():
    # Nested elements of the same name are not balanced.
    html = "<div><script>a<script>b</script>c</script>d"
    assert strip_element(html, "script") == "<div>c</script>d"


def test_strip_block_elements():
    html = (
        "<html><head><title>t</title></head><body>"
        "<!-- note --><style>p{}</style><noscript>n</noscript>"
        "<iframe src='x'></iframe><svg><path/></svg>body</body></html>"
    )
    assert strip_block_elements(html) == "<html><body>body</body></html>"


def test_strip_tags():
    assert strip_tags("A<b>B</b>C") == "ABC"
    assert strip_tags('<a href="x"\n class="y">link</a>') == "link"


@pytest.mark.parametrize(
    "html, expected",
    [
        ("2010&ndash;2012", "2010–2012"),
        ("2010&#8211;2012", "2010–2012"),
        ("2010&#x2013;2012", "2010–2012"),
        ("&gt;&bogus;x", ">x"),
        ("fish &amp; chips", "fish & chips"),
        ("a & b", "a & b"),
    ],
)
def test_strip_entities(html, expected):
    assert strip_entities(html) == expected


def test_strip_html():
    html = """<html>
<head><title>Birds</title><script>var x = 1;</script></head>
<body>
<!-- hidden -->
<h1>Falcons &amp; Hawks</h1>
<p>Fast&nbsp;birds &lt;really&gt;</p>
</body>
</html>"""
    text = strip_html(html)
    assert "Birds" not in text
    assert "var x" not in text
    assert "hidden" not in text
    assert "Falcons & Hawks" in text
    assert "Fast\xa0birds really" in text


@pytest.mark.parametrize(
    "html",
    [
        "a < b > c",
        "&lt;script&gt;alert(1)&lt;/script&gt;",
        "&amp;lt;tag&amp;gt; &unknown; &#xZZ;",
        "<p>unterminated <b",
        "<<b>>x<</b>>",
        "&amp;amp;",
    ],
)
def test_strip_html_leaves_no_markup(html):
    text = strip_html(html)
    assert "<" not in text
    assert ">" not in text
    assert re.search(r"&[^;\s]+;", text) is None


def test_extract_hyperlinks_double_quoted_only():
    html = "<a href=\"https://x.com/a\">t</a><a HREF='skip'>u</a>"
    assert extract_hyperlinks(html) == ["https://x.com/a"]


def test_extract_hyperlinks_order_and_attributes():
    html = """
    <A class="nav" HREF="/one">1</A>
    <a
       href = "two.html#frag" target="_blank">2</a>
    <link href="style.css">
    <a data-href="nope">x</a>
    <a href=unquoted>3</a>
    <a title="t" href="https://example.com/three?x=1&amp;y=2">3</a>
    """
    assert extract_hyperlinks(html) == [
        "/one",
        "two.html#frag",
        "https://example.com/three?x=1&amp;y=2",
    ]


def test_extract_hyperlinks_none():
    assert extract_hyperlinks("<p>no links</p>") == []
