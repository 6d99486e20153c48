"""Tests for leading-tag attribute extraction."""

from bmad2vibe.metadata import extract_agent_meta, extract_tag_attr, leading_tag


class TestLeadingTag:
    """Test leading tag scanning."""

    def test_leading_tag_stops_at_first_bracket(self) -> None:
        raw = '<agent title="PM">\n<persona name="Inner"/>'
        assert leading_tag(raw) == '<agent title="PM">'

    def test_no_closing_bracket(self) -> None:
        assert leading_tag('<agent title="PM"') == ""
        assert extract_tag_attr('<agent title="PM"', "title") == ""

    def test_attributes_after_leading_tag_ignored(self) -> None:
        """Attribute-like text deeper in the body never matches."""
        raw = '<agent title="PM">\n<persona name="Inner" description="deep"/>'
        assert extract_tag_attr(raw, "name") == ""
        assert extract_tag_attr(raw, "description") == ""

    def test_attribute_name_must_match_whole_word(self) -> None:
        """subtitle= does not satisfy a lookup for title."""
        raw = '<agent subtitle="Sub" title="Main">'
        assert extract_tag_attr(raw, "title") == "Main"
        assert extract_tag_attr('<agent subtitle="Sub">', "title") == ""

    def test_empty_value(self) -> None:
        assert extract_tag_attr('<agent name="">', "name") == ""


class TestExtractAgentMeta:
    """Test persona metadata records."""

    def test_full_metadata(self) -> None:
        raw = '<agent id="pm" name="John" title="Product Manager" icon="📋" description="Plans">'
        meta = extract_agent_meta("pm", raw)

        assert meta.slug == "pm"
        assert meta.name == "John"
        assert meta.title == "Product Manager"
        assert meta.icon == "📋"
        assert meta.description == "Plans"

    def test_missing_attributes_are_empty(self) -> None:
        meta = extract_agent_meta("analyst", '<agent title="Analyst">')
        assert meta.title == "Analyst"
        assert meta.name == ""
        assert meta.icon == ""
        assert meta.description == ""
