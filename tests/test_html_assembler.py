"""
Tests for HTML email assembly with Jinja2 templates.
"""
import pytest

from share_webhook.html_assembler import (
    DEFAULT_PALETTE,
    TYPE_PALETTES,
    HtmlAssembler,
    TemplateRenderError,
    display_title,
    format_field_value,
    palette_for,
)
from share_webhook.log_parser import parse_log
from share_webhook.models import LogEntry, ParsedLog, RequestContext


@pytest.fixture
def assembler():
    return HtmlAssembler()


class TestHelpers:
    """Tests for module-level helpers."""

    def test_palette_lookup_is_case_insensitive(self):
        assert palette_for('network') == TYPE_PALETTES['NETWORK']

    def test_unknown_type_uses_default(self):
        assert palette_for('CUSTOM') == DEFAULT_PALETTE
        assert palette_for('') == DEFAULT_PALETTE

    def test_named_palettes_are_distinct(self):
        palettes = list(TYPE_PALETTES.values()) + [DEFAULT_PALETTE]
        assert len(set(palettes)) == 5

    @pytest.mark.parametrize('value, expected', [
        (True, 'true'),
        (False, 'false'),
        (None, ''),
        (42, '42'),
        (1.5, '1.5'),
        ('text', 'text'),
        ({'a': [1, 2]}, '{"a":[1,2]}'),
        (['x', 'ü'], '["x","ü"]'),
    ])
    def test_format_field_value(self, value, expected):
        assert format_field_value(value) == expected

    def test_display_title(self):
        assert display_title('Shared: Title') == 'Title'
        assert display_title('Other') == 'Other'


class TestBuildLogHtml:
    """Tests for HtmlAssembler.build_log_html()."""

    def test_header_and_entries(self, assembler, sample_log, ctx, soup):
        doc = soup(assembler.build_log_html(parse_log(sample_log), ctx))

        assert doc.find('h1').get_text() == 'Logarte Export'
        assert 'Session 2024-05-01 12:00 (Pixel 7)' in doc.get_text()
        assert doc.find('h2').get_text() == 'Log Entries'
        assert '3 entries' in doc.get_text()

    def test_badges_use_type_palette(self, assembler, sample_log, ctx, soup):
        doc = soup(assembler.build_log_html(parse_log(sample_log), ctx))
        badges = [s for s in doc.find_all('span') if 'font-weight:bold' in s.get('style', '')]

        assert [b.get_text() for b in badges] == ['NAVIGATION', 'NETWORK', 'CUSTOM']
        assert f"background:{TYPE_PALETTES['NETWORK'].bg}" in badges[1]['style']
        assert f"background:{DEFAULT_PALETTE.bg}" in badges[2]['style']

    def test_time_prefix(self, assembler, sample_log, ctx):
        html = assembler.build_log_html(parse_log(sample_log), ctx)
        assert '[12:00:01]</span>' in html

    def test_content_is_escaped_verbatim(self, assembler, sample_log, ctx):
        html = assembler.build_log_html(parse_log(sample_log), ctx)

        assert 'something &lt;b&gt;bold&lt;/b&gt;' in html
        assert '<b>bold</b>' not in html

    def test_line_breaks_preserved(self, assembler, sample_log, ctx):
        html = assembler.build_log_html(parse_log(sample_log), ctx)
        assert 'GET /api/items<br>200 OK' in html

    def test_one_break_per_newline(self, assembler, ctx):
        """The entry block is pre-wrap, so a raw newline next to <br> would double the break."""
        parsed = ParsedLog(subject='Logarte', entries=[LogEntry(content='a\nb\n\nc', time='1:2:3', type='LOG')])
        html = assembler.build_log_html(parsed, ctx)

        assert 'a<br>b<br><br>c' in html
        assert '<br>\n' not in html

    def test_no_markdown_in_entries(self, assembler, ctx):
        parsed = ParsedLog(subject='Logarte', entries=[LogEntry(content='**not bold**', time='1:2:3', type='LOG')])
        html = assembler.build_log_html(parsed, ctx)
        assert '**not bold**' in html
        assert '<strong>' not in html

    def test_headerless_entry_has_no_badge(self, assembler, ctx, soup):
        parsed = ParsedLog(subject='Logarte', entries=[LogEntry(content='raw')])
        doc = soup(assembler.build_log_html(parsed, ctx))
        assert 'UNKNOWN' not in doc.get_text()
        assert 'raw' in doc.get_text()

    def test_header_lines_are_escaped(self, assembler, ctx):
        parsed = ParsedLog(subject='Logarte', header_lines=['LOGARTE', '<script>x</script>'])
        html = assembler.build_log_html(parsed, ctx)
        assert '<script>' not in html


class TestBuildGenericHtml:
    """Tests for HtmlAssembler.build_generic_html()."""

    def test_title_and_body(self, assembler, ctx, soup):
        doc = soup(assembler.build_generic_html('<p>Body</p>', 'Shared: My Title', ctx))

        assert doc.find('h1').get_text() == 'My Title'
        assert doc.find('p').get_text() == 'Body'

    def test_title_is_escaped(self, assembler, ctx):
        html = assembler.build_generic_html('', 'Shared: <i>x</i>', ctx)
        assert '&lt;i&gt;x&lt;/i&gt;' in html

    def test_extra_fields_table(self, assembler, ctx, soup):
        html = assembler.build_generic_html('', 'Shared: T', ctx, {'source': 'app', 'pinned': True, 'tags': ['a']})
        doc = soup(html)

        assert 'Additional Fields' in doc.get_text()
        cells = [td.get_text() for td in doc.find_all('td')]
        assert cells == ['source', 'app', 'pinned', 'true', 'tags', '["a"]']

    def test_extra_field_values_are_escaped(self, assembler, ctx):
        html = assembler.build_generic_html('', 'Shared: T', ctx, {'<k>': '<v>'})
        assert '&lt;k&gt;' in html
        assert '&lt;v&gt;' in html

    def test_no_extra_fields_section(self, assembler, ctx):
        html = assembler.build_generic_html('<p>x</p>', 'Shared: T', ctx, {})
        assert 'Additional Fields' not in html


class TestFooter:
    """The footer carries escaped request metadata in both templates."""

    def test_footer_values(self, assembler, ctx):
        html = assembler.build_generic_html('', 'Shared: T', ctx)
        assert 'Received: 2024-05-01T12:00:00+00:00' in html
        assert 'IP: 203.0.113.7' in html
        assert 'UA: curl/8.0' in html

    def test_footer_is_escaped(self, assembler, sample_log):
        hostile = RequestContext(time='now', ip='1.2.3.4', user_agent='<script>alert(1)</script>')
        for html in (
            assembler.build_generic_html('', 'Shared: T', hostile),
            assembler.build_log_html(parse_log(sample_log), hostile),
        ):
            assert '<script>' not in html
            assert '&lt;script&gt;alert(1)&lt;/script&gt;' in html


class TestCustomTemplates:
    """Tests for template_dir overrides."""

    def test_custom_template_dir(self, tmp_path, ctx):
        (tmp_path / 'generic_email.html.j2').write_text('<h1>{{ title }}</h1>{{ body_html }}', encoding='utf-8')
        assembler = HtmlAssembler(template_dir=tmp_path)

        assert assembler.build_generic_html('<p>b</p>', 'Shared: X', ctx) == '<h1>X</h1><p>b</p>'

    def test_missing_template_raises(self, tmp_path, ctx):
        assembler = HtmlAssembler(template_dir=tmp_path)
        with pytest.raises(TemplateRenderError, match='Template not found'):
            assembler.build_generic_html('', 'Shared: X', ctx)

    def test_broken_template_raises(self, tmp_path, ctx):
        (tmp_path / 'generic_email.html.j2').write_text('{% if %}', encoding='utf-8')
        assembler = HtmlAssembler(template_dir=tmp_path)
        with pytest.raises(TemplateRenderError):
            assembler.build_generic_html('', 'Shared: X', ctx)
