"""Tests for the stray-ampersand repair pass."""

import pytest

from forgiving_xml.character.entities import (
    MAX_ENTITY_LENGTH,
    is_legal_entity_at,
    repair_entities,
    repair_entities_counted,
)

SAMPLES = [
    "",
    "plain text",
    "a & b",
    "&&",
    "&&amp;",
    "x=1&y=2&amp;z=&#x3f;",
    "&#123456;&#x12345;",
    "&nbsp;&copy;&AMP;",
    "tail&",
    "&#;&#x;&#X1F;&#xG1;",
    "<url>http://example.org/?a=1&b=2</url>",
]


def _assert_only_legal_ampersands(text):
    pos = text.find("&")
    while pos >= 0:
        assert is_legal_entity_at(text, pos), text[pos:pos + MAX_ENTITY_LENGTH]
        pos = text.find("&", pos + 1)


class TestIsLegalEntityAt:
    """Test the bounded lookahead entity matcher."""

    @pytest.mark.parametrize("text", [
        "&amp;", "&lt;", "&gt;", "&quot;", "&apos;",
        "&#1;", "&#63;", "&#12345;", "&#00063;",
        "&#x3f;", "&#x3F;", "&#xFFFF;", "&#xabcd;", "&#x0;",
    ])
    def test_legal_forms(self, text):
        """Test that every legal form matches."""
        assert is_legal_entity_at(text + "trailing", 0) is True

    @pytest.mark.parametrize("text", [
        "&", "& ", "&amp", "&AMP;", "&Lt;", "&nbsp;", "&copy;",
        "&#;", "&#x;", "&#X3F;", "&#xZZ;", "&#12a;",
        "&#123456;", "&#x12345;", "&#1", "&#x1",
    ])
    def test_illegal_forms(self, text):
        """Test that non-entities and over-long references do not match."""
        assert is_legal_entity_at(text, 0) is False

    def test_digit_count_boundaries(self):
        """Test five decimal and four hex digits match but one more does not."""
        assert is_legal_entity_at("&#99999;", 0) is True
        assert is_legal_entity_at("&#999999;", 0) is False
        assert is_legal_entity_at("&#xFFFF;", 0) is True
        assert is_legal_entity_at("&#xFFFFF;", 0) is False

    def test_bytes_input(self):
        """Test matching over raw bytes."""
        assert is_legal_entity_at(b"\xe9&amp;", 1) is True
        assert is_legal_entity_at(b"\xe9&\xe9", 1) is False

    def test_offset_without_ampersand(self):
        """Test that pointing at something other than '&' is rejected."""
        with pytest.raises(ValueError, match="No ampersand"):
            is_legal_entity_at("abc", 1)


class TestRepairEntities:
    """Test rewriting of stray ampersands."""

    def test_no_ampersand_returns_same_object(self):
        """Test the fast path leaves the input untouched."""
        text = "<root>nothing to fix</root>"
        assert repair_entities(text) is text

    def test_legal_references_untouched(self):
        """Test that legal references survive unchanged."""
        text = "&amp;&lt;&gt;&quot;&apos;&#1;&#12345;&#x1;&#xFFFF;"
        assert repair_entities(text) == text

    def test_bare_ampersand_escaped(self):
        """Test a lone ampersand becomes &amp; and the text after it is kept."""
        assert repair_entities("fish & chips") == "fish &amp; chips"

    def test_adjacent_ampersands(self):
        """Test each ampersand of '&&' is judged on its own."""
        assert repair_entities("&&") == "&amp;&amp;"
        assert repair_entities("&&amp;") == "&amp;&amp;"
        assert repair_entities("&&lt;x") == "&amp;&lt;x"

    def test_trailing_ampersand(self):
        """Test an ampersand at the very end of the buffer."""
        assert repair_entities("tail&") == "tail&amp;"

    def test_overlong_numeric_references_escaped(self):
        """Test references one digit over the limit are escaped."""
        assert repair_entities("&#123456;") == "&amp;#123456;"
        assert repair_entities("&#x12345;") == "&amp;#x12345;"

    def test_unknown_named_entities_escaped(self):
        """Test entities outside the predefined five are escaped."""
        assert repair_entities("&nbsp;") == "&amp;nbsp;"
        assert repair_entities("&AMP;") == "&amp;AMP;"

    def test_url_query_string(self):
        """Test the typical scraped URL case."""
        text = "?key=ABC&language=en&#x3f;&#x003F;&#0063;"
        assert repair_entities(text) == "?key=ABC&amp;language=en&#x3f;&#x003F;&#0063;"

    def test_bytes_keep_type_and_non_ascii(self):
        """Test raw bytes are repaired without touching other bytes."""
        result = repair_entities(b"\xe9&x\xff")
        assert isinstance(result, bytes)
        assert result == b"\xe9&amp;x\xff"

    def test_counted_variant(self):
        """Test the number of inserted escapes is reported."""
        text, count = repair_entities_counted("a&b&c&amp;d")
        assert text == "a&amp;b&amp;c&amp;d"
        assert count == 2

        text, count = repair_entities_counted("&amp;")
        assert count == 0

    @pytest.mark.parametrize("sample", SAMPLES)
    def test_idempotent(self, sample):
        """Test repairing twice equals repairing once."""
        once = repair_entities(sample)
        assert repair_entities(once) == once

    @pytest.mark.parametrize("sample", SAMPLES)
    def test_every_ampersand_starts_legal_form(self, sample):
        """Test that after repair no stray ampersand remains."""
        _assert_only_legal_ampersands(repair_entities(sample))
