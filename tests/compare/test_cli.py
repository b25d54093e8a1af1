"""
Tests for the Command Line
==========================
python -m preview_diff: JSON output, options and exit codes.
"""

import json

import pytest

from config_logging import StructuredLogger, reset_config
from preview_diff.__main__ import main


@pytest.fixture(autouse=True)
def fresh_config():
    """Each test starts from an unloaded global config."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def documents(tmp_path):
    """Before/after HTML files with one replacement."""
    before = tmp_path / 'before.html'
    after = tmp_path / 'after.html'
    before.write_text('<p>hello world</p>', encoding='utf-8')
    after.write_text('<p>hello universe</p>', encoding='utf-8')
    return str(before), str(after)


class TestOutput:
    """JSON printed on stdout."""

    def test_full_outcome(self, documents, capsys):
        """Test the full session payload is printed."""
        assert main(list(documents)) == 0
        data = json.loads(capsys.readouterr().out)

        assert data['open'] is True
        assert data['total_changes'] == 1
        assert data['current_index'] == 0
        assert data['highlight_style'] == 'default'
        assert data['outcome']['after_markup'] == (
            '<p>hello <span class="diff-added" data-change-id="change-1">universe</span></p>'
        )
        assert data['outcome']['change_locations'] == [
            {'id': 'change-1', 'before_offset': 6, 'after_offset': 6, 'kind': 'both'}
        ]

    def test_summary_only(self, documents, capsys):
        """Test --summary prints statistics and locations only."""
        assert main([*documents, '--summary']) == 0
        data = json.loads(capsys.readouterr().out)

        assert set(data) == {'summary', 'change_locations'}
        assert data['summary'] == {
            'change_count': 2, 'added_newline_count': 0, 'removed_newline_count': 0
        }
        assert data['change_locations'][0]['id'] == 'change-1'

    def test_high_contrast_style(self, documents, capsys):
        """Test --style high-contrast adds the contrast class."""
        assert main([*documents, '--style', 'high-contrast']) == 0
        data = json.loads(capsys.readouterr().out)

        assert data['highlight_style'] == 'high-contrast'
        assert 'class="diff-added diff-high-contrast"' in data['outcome']['after_markup']
        assert 'class="diff-removed diff-high-contrast"' in data['outcome']['before_markup']

    def test_each_run_gets_a_correlation_id(self, documents, capsys):
        """Test a new correlation id is set per run."""
        StructuredLogger.set_correlation_id('previous-run')
        assert main(list(documents)) == 0
        correlation_id = StructuredLogger.get_correlation_id()
        assert correlation_id != 'previous-run'
        assert len(correlation_id) == 12


class TestErrors:
    """Failures exit with status 1 and a JSON error on stderr."""

    def test_missing_file(self, tmp_path, capsys):
        """Test a missing input file reports FILE_ERROR."""
        code = main([str(tmp_path / 'nope.html'), str(tmp_path / 'nope2.html')])
        captured = capsys.readouterr()

        assert code == 1
        assert captured.out == ''
        assert '"FILE_ERROR"' in captured.err

    def test_invalid_style_from_environment(self, documents, monkeypatch, capsys):
        """Test an unknown PD_HIGHLIGHT_STYLE is rejected."""
        monkeypatch.setenv('PD_HIGHLIGHT_STYLE', 'neon')
        assert main(list(documents)) == 1
        captured = capsys.readouterr()

        assert captured.out == ''
        assert '"VALIDATION_ERROR"' in captured.err
        assert 'Invalid highlight_style: neon' in captured.err

    def test_non_numeric_timeout_from_environment(self, documents, monkeypatch, capsys):
        """Test a non-numeric PD_DIFF_TIMEOUT is reported, not raised."""
        monkeypatch.setenv('PD_DIFF_TIMEOUT', 'soon')
        assert main(list(documents)) == 1
        assert "Invalid diff_timeout: 'soon'" in capsys.readouterr().err

    def test_style_option_overrides_environment(self, documents, monkeypatch, capsys):
        """Test --style replaces an invalid environment style."""
        monkeypatch.setenv('PD_HIGHLIGHT_STYLE', 'neon')
        assert main([*documents, '--style', 'default']) == 0
        assert json.loads(capsys.readouterr().out)['highlight_style'] == 'default'
