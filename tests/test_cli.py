"""Tests for the command-line interface."""

import json

from pathlib import Path

from click.testing import CliRunner

from willsx_autolinker.cli import main
from willsx_autolinker.config import KEYWORDS_OPTION


POST_HTML = "<h2>Making a Will</h2><p>Make a will and apply for probate.</p>"


def _write_post(tmp_path: Path) -> Path:
    path = tmp_path / "post.html"
    path.write_text(POST_HTML, encoding="utf-8")
    return path


class TestAnnotateCommand:
    """Tests for the annotate command."""

    def test_annotate_with_stored_options(self, tmp_path: Path, options_file: Path):
        """Test annotating with settings and keywords from the options file."""
        source = _write_post(tmp_path)
        output = tmp_path / "post.linked.html"

        result = CliRunner().invoke(
            main, ["annotate", str(source), "--options", str(options_file), "-o", str(output)]
        )

        assert result.exit_code == 0, result.output
        assert output.read_text(encoding="utf-8") == (
            "<h2>Making a Will</h2>"
            '<p>Make a <a href="https://willsx.co.uk/services/wills/" target="_blank" rel="noopener">will</a>'
            ' and apply for <a href="https://willsx.co.uk/services/probate/" target="_blank" rel="noopener">'
            "probate</a>.</p>"
        )

    def test_annotate_with_keyword_file(self, tmp_path: Path, sample_keywords_csv: Path):
        """Test overriding the dictionary and quota from the command line."""
        source = _write_post(tmp_path)
        output = tmp_path / "out.html"

        result = CliRunner().invoke(
            main,
            [
                "annotate", str(source),
                "--options", str(tmp_path / "none.json"),
                "--keywords", str(sample_keywords_csv),
                "--max-links", "1",
                "-o", str(output),
            ],
        )

        assert result.exit_code == 0, result.output
        assert output.read_text(encoding="utf-8") == (
            "<h2>Making a Will</h2>"
            '<p>Make a <a href="https://willsx.co.uk/services/wills/">will</a> and apply for probate.</p>'
        )

    def test_annotate_stdin_to_stdout(self, tmp_path: Path, options_file: Path):
        """Test reading from stdin and writing to stdout."""
        result = CliRunner().invoke(
            main,
            ["annotate", "-", "--options", str(options_file), "--max-per-keyword", "2"],
            input="<p>probate</p>",
        )

        assert result.exit_code == 0, result.output
        assert (
            '<p><a href="https://willsx.co.uk/services/probate/" target="_blank" rel="noopener">'
            "probate</a></p>"
        ) in result.output

    def test_annotate_ineligible_scope(self, tmp_path: Path, options_file: Path):
        """Test that an ineligible scope leaves the content unchanged."""
        source = _write_post(tmp_path)
        output = tmp_path / "out.html"

        result = CliRunner().invoke(
            main,
            ["annotate", str(source), "--options", str(options_file), "--scope", "attachment", "-o", str(output)],
        )

        assert result.exit_code == 0, result.output
        assert output.read_text(encoding="utf-8") == POST_HTML

    def test_annotate_bad_keyword_file(self, tmp_path: Path):
        """Test that an unreadable keyword file exits with an error."""
        source = _write_post(tmp_path)
        keywords = tmp_path / "keywords.txt"
        keywords.write_text("will")

        result = CliRunner().invoke(
            main,
            ["annotate", str(source), "--options", str(tmp_path / "none.json"), "--keywords", str(keywords)],
        )

        assert result.exit_code == 1

    def test_annotate_missing_source(self, tmp_path: Path):
        """Test that a missing source file is a usage error."""
        result = CliRunner().invoke(main, ["annotate", str(tmp_path / "missing.html")])

        assert result.exit_code == 2


class TestOptionsCommands:
    """Tests for init, import-keywords and keywords."""

    def test_init_creates_defaults(self, tmp_path: Path):
        """Test creating an options file with default keywords."""
        options = tmp_path / "options.json"

        result = CliRunner().invoke(main, ["init", "--options", str(options), "--home-url", "https://willsx.co.uk/"])

        assert result.exit_code == 0, result.output
        stored = json.loads(options.read_text())
        assert stored["willsx_autolinker_max_links"] == 5
        assert stored[KEYWORDS_OPTION][0] == {"keyword": "will", "url": "https://willsx.co.uk/services/wills/"}
        assert len(stored[KEYWORDS_OPTION]) == 5

    def test_init_refuses_overwrite(self, options_file: Path):
        """Test that init keeps an existing file unless forced."""
        before = options_file.read_text()

        result = CliRunner().invoke(main, ["init", "--options", str(options_file), "--home-url", "https://x.test"])

        assert result.exit_code == 1
        assert options_file.read_text() == before

    def test_init_force(self, options_file: Path):
        """Test that --force overwrites the file."""
        result = CliRunner().invoke(
            main, ["init", "--options", str(options_file), "--home-url", "https://x.test", "--force"]
        )

        assert result.exit_code == 0, result.output
        assert json.loads(options_file.read_text())["willsx_autolinker_max_links"] == 5

    def test_import_keywords(self, tmp_path: Path, sample_keywords_csv: Path):
        """Test importing keywords from a CSV file."""
        options = tmp_path / "options.json"

        result = CliRunner().invoke(main, ["import-keywords", str(sample_keywords_csv), "--options", str(options)])

        assert result.exit_code == 0, result.output
        stored = json.loads(options.read_text())
        assert [k["keyword"] for k in stored[KEYWORDS_OPTION]] == ["will", "estate planning", "probate"]

    def test_import_keywords_bad_file(self, tmp_path: Path):
        """Test that a bad keyword file leaves the options untouched."""
        options = tmp_path / "options.json"
        bad = tmp_path / "bad.csv"
        bad.write_text("keyword,volume\nwill,10\n")

        result = CliRunner().invoke(main, ["import-keywords", str(bad), "--options", str(options)])

        assert result.exit_code == 1
        assert not options.exists()

    def test_list_keywords(self, options_file: Path):
        """Test showing stored keywords."""
        result = CliRunner().invoke(main, ["keywords", "--options", str(options_file)])

        assert result.exit_code == 0, result.output

    def test_list_keywords_empty(self, tmp_path: Path):
        """Test showing an empty store."""
        result = CliRunner().invoke(main, ["keywords", "--options", str(tmp_path / "none.json")])

        assert result.exit_code == 0, result.output
