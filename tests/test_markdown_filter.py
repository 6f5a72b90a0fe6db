"""Tests for the template filters."""

from datetime import date

from markupsafe import Markup

from src.web.templates import date_filter, markdown_filter, rating_filter, rich_text_filter


class TestMarkdownFilter:
    """Test the markdown_filter function used for comments."""

    def test_markdown_filter_renders_bold(self) -> None:
        """Test that bold markdown is converted to HTML."""
        result = markdown_filter("This is **bold** text")
        assert isinstance(result, Markup)
        assert "<strong>bold</strong>" in result

    def test_markdown_filter_renders_italic(self) -> None:
        """Test that italic markdown is converted to HTML."""
        result = markdown_filter("This is _italic_ text")
        assert "<em>italic</em>" in result

    def test_markdown_filter_renders_inline_code(self) -> None:
        """Test that inline code is converted to HTML."""
        result = markdown_filter("Use the `abide()` function")
        assert "<code>abide()</code>" in result

    def test_markdown_filter_renders_lists(self) -> None:
        """Test that unordered lists are converted to HTML."""
        result = markdown_filter("- Bowling\n- Bathrobe\n- Rug")
        assert "<ul>" in result
        assert "<li>Bowling</li>" in result

    def test_markdown_filter_renders_links(self) -> None:
        """Test that links survive with their href."""
        result = markdown_filter("See [the rug](https://dudefest.test/rug)")
        assert 'href="https://dudefest.test/rug"' in result
        assert ">the rug</a>" in result

    def test_markdown_filter_drops_headers(self) -> None:
        """Test that headers are reduced to their text in comments."""
        result = markdown_filter("# Shouting")
        assert "<h1>" not in result
        assert "Shouting" in result

    def test_markdown_filter_linkifies_bare_urls(self) -> None:
        """Test that bare addresses become links."""
        result = markdown_filter("Check https://example.com out")
        assert '<a href="https://example.com"' in result

    def test_markdown_filter_strips_dangerous_html_tags(self) -> None:
        """Test that script tags are stripped but their text kept."""
        result = markdown_filter("This has <script>alert('xss')</script> in it")
        assert "<script>" not in result
        assert "</script>" not in result
        assert "This has" in result
        assert "in it" in result

    def test_markdown_filter_handles_empty_string(self) -> None:
        """Test that empty strings are handled gracefully."""
        result = markdown_filter("")
        assert isinstance(result, Markup)
        assert result == ""

    def test_markdown_filter_preserves_newlines_with_nl2br(self) -> None:
        """Test that newlines are converted to br tags."""
        result = markdown_filter("Line 1\nLine 2")
        assert "<br" in result


class TestRichTextFilter:
    """Test rich_text_filter for article bodies."""

    def test_keeps_editor_markup(self) -> None:
        """Test that formatting from the editor is kept."""
        result = rich_text_filter("<p>The <strong>Dude</strong> abides</p>")
        assert isinstance(result, Markup)
        assert result == "<p>The <strong>Dude</strong> abides</p>"

    def test_removes_scripts_and_handlers(self) -> None:
        """Test that scripts and event handlers are removed."""
        result = rich_text_filter('<p onclick="steal()">Hi</p><script>bad()</script>')
        assert "onclick" not in result
        assert "<script>" not in result

    def test_handles_none(self) -> None:
        """Test that a missing body renders as nothing."""
        assert rich_text_filter(None) == ""


class TestSmallFilters:
    """Test the rating and date filters."""

    def test_rating(self) -> None:
        """Test that whole ratings drop their decimals."""
        assert rating_filter(8.0) == "8"
        assert rating_filter(7.5) == "7.5"
        assert rating_filter(None) == "-"

    def test_date(self) -> None:
        """Test that dates are formatted and None is blank."""
        assert date_filter(date(1998, 3, 6)) == "1998-03-06"
        assert date_filter(date(1998, 3, 6), "%B %d, %Y") == "March 06, 1998"
        assert date_filter(None) == ""
