"""Tests for the command-line interface."""

import json

from click.testing import CliRunner

from collectrr.cli import main
from collectrr.core.grouper import Grouper


class TestCli:
    """Test the collectrr command."""

    def test_group_sets(self, sample_library_file):
        """Test default set grouping of a library file."""
        runner = CliRunner()

        result = runner.invoke(main, [str(sample_library_file)])

        assert result.exit_code == 0, result.output
        assert "Group #1: SET 3" in result.output
        assert "Title: Alien Collection" in result.output
        assert "Total groups: 1" in result.output
        assert "Ungrouped items: 3" in result.output

    def test_group_movies_and_export(self, sample_library_file, temp_dir):
        """Test movie grouping with JSON export."""
        output = temp_dir / "groups.json"
        runner = CliRunner()

        result = runner.invoke(
            main,
            [str(sample_library_file), "--by", "set", "--by", "movie",
             "--output-json", str(output)],
        )

        assert result.exit_code == 0, result.output
        assert "MOVIE DUPLICATES tt0113277" in result.output
        data = json.loads(output.read_text())
        assert [g["kind"] for g in data["grouped"]] == ["set", "movie_duplicate"]
        assert data["grouped"][1]["path"] == "videodb://movies/titles/?imdbid=tt0113277"

    def test_recombined_export(self, sample_library_file, temp_dir, monkeypatch):
        """Test that --recombine goes through group_and_recombine."""
        output = temp_dir / "combined.json"
        runner = CliRunner()
        calls = []
        original = Grouper.group_and_recombine

        def recording(self, *args, **kwargs):
            calls.append(args)
            return original(self, *args, **kwargs)

        monkeypatch.setattr(Grouper, "group_and_recombine", recording)

        result = runner.invoke(
            main,
            [str(sample_library_file), "--by", "movie", "--recombine",
             "--output-json", str(output)],
        )

        assert result.exit_code == 0, result.output
        assert len(calls) == 1
        assert "Members: 2" in result.output
        data = json.loads(output.read_text())
        assert data["items"][0]["kind"] == "movie_duplicate"
        assert [i["id"] for i in data["items"][1:]] == [1, 2, 5]
        assert len(data["items"]) == 4

    def test_without_recombine_skips_recombination(self, sample_library_file, monkeypatch):
        def fail(*args, **kwargs):
            raise AssertionError("group_and_recombine should not be called")

        monkeypatch.setattr(Grouper, "group_and_recombine", fail)

        result = CliRunner().invoke(main, [str(sample_library_file), "--by", "movie"])

        assert result.exit_code == 0, result.output
        assert "Grouped items: 2" in result.output

    def test_invalid_base_dir(self, sample_library_file):
        """Test that an invalid base directory exits with an error."""
        runner = CliRunner()

        result = runner.invoke(main, [str(sample_library_file), "--base-dir", "/tmp/movies"])

        assert result.exit_code == 1
        assert "Cannot parse base directory" in result.output

    def test_malformed_base_dir(self, sample_library_file):
        runner = CliRunner()

        result = runner.invoke(main, [str(sample_library_file), "--base-dir", "videodb://[x/"])

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "Cannot parse base directory" in result.output

    def test_no_modes_configured(self, sample_library_file, temp_dir):
        config_path = temp_dir / "config.yaml"
        config_path.write_text("grouping:\n  group_by: []\n")
        runner = CliRunner()

        result = runner.invoke(main, [str(sample_library_file), "--config", str(config_path)])

        assert result.exit_code == 1
        assert "grouping mode" in result.output

    def test_invalid_library(self, temp_dir):
        library = temp_dir / "bad.yaml"
        library.write_text("just a string")
        runner = CliRunner()

        result = runner.invoke(main, [str(library)])

        assert result.exit_code == 1
        assert "Error:" in result.output
