"""Unit tests for text normalization."""

from feed_aggregator.text import decode_entities, normalize, strip_cdata, strip_tags


class TestNormalizeUnit:
    """Unit tests for normalize and its steps."""

    def test_cdata_markers_removed(self):
        assert normalize("<![CDATA[Hello <b>world</b>]]>") == "Hello world"

    def test_entity_decoding(self):
        assert normalize("Tom &amp; Jerry") == "Tom & Jerry"
        assert normalize("it&#39;s &quot;new&quot; &#x2F; &#x27;old&#x27;") == (
            "it's \"new\" / 'old'"
        )

    def test_escaped_markup_is_stripped(self):
        assert normalize("&lt;p&gt;Text&lt;/p&gt;") == "Text"

    def test_double_escaped_markup_is_stripped(self):
        assert normalize("&amp;lt;b&amp;gt;bold&amp;lt;/b&amp;gt;") == "bold"

    def test_tags_become_single_spaces(self):
        assert normalize("<p>One</p><p>Two</p>") == "One Two"

    def test_whitespace_collapsed_and_trimmed(self):
        assert normalize("  a\n\t  b \r\n c  ") == "a b c"

    def test_empty_and_none(self):
        assert normalize(None) == ""
        assert normalize("") == ""
        assert normalize("   ") == ""
        assert normalize("<div></div>") == ""

    def test_plain_text_unchanged(self):
        assert normalize("Česká obchodní inspekce varuje") == (
            "Česká obchodní inspekce varuje"
        )

    def test_steps(self):
        assert strip_cdata("<![CDATA[x]]>") == "x"
        assert strip_cdata("a <![CDATA[x]]> b") == "a <![CDATA[x]]> b"
        assert decode_entities("&amp;lt;") == "<"
        assert strip_tags("a<br/>b") == "a b"
