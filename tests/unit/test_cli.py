"""Tests for the command-line interface."""

from typer.testing import CliRunner

from show_pipeline.cli import app
from show_pipeline.models import StagingStatus
from show_pipeline.stores import ProductionStore, SourceScoreStore, StagingStore

runner = CliRunner()


class TestSourcesCommands:
    def test_add_list_disable(self, tmp_path):
        url = "https://example.com/shows"
        result = runner.invoke(app, ["sources", "add", url, "--state", "in", "--data-dir", str(tmp_path)])
        assert result.exit_code == 0
        assert SourceScoreStore(tmp_path).get(url).state == "IN"

        result = runner.invoke(app, ["sources", "--data-dir", str(tmp_path)])
        assert result.exit_code == 0
        assert "example.com" in result.output

        result = runner.invoke(app, ["sources", "disable", url, "--data-dir", str(tmp_path)])
        assert result.exit_code == 0
        assert not SourceScoreStore(tmp_path).get(url).enabled

    def test_disable_unknown(self, tmp_path):
        result = runner.invoke(app, ["sources", "disable", "https://nowhere.com", "--data-dir", str(tmp_path)])
        assert result.exit_code == 1


class TestTransferCommand:
    def test_transfer(self, tmp_path, sample_show):
        record = StagingStore(tmp_path).insert("https://example.com/shows", {}, normalized=sample_show)

        result = runner.invoke(app, ["transfer", "--data-dir", str(tmp_path)])

        assert result.exit_code == 0
        assert len(ProductionStore(tmp_path)) == 1
        assert StagingStore(tmp_path).get(record.id).status == StagingStatus.TRANSFERRED

    def test_transfer_dry_run(self, tmp_path, sample_show):
        StagingStore(tmp_path).insert("https://example.com/shows", {}, normalized=sample_show)

        result = runner.invoke(app, ["transfer", "--dry-run", "--data-dir", str(tmp_path)])

        assert result.exit_code == 0
        assert len(ProductionStore(tmp_path)) == 0


class TestMiscCommands:
    def test_stats(self, tmp_path, sample_show):
        StagingStore(tmp_path).insert("https://example.com/shows", {}, normalized=sample_show)
        result = runner.invoke(app, ["stats", "--data-dir", str(tmp_path)])
        assert result.exit_code == 0
        assert "Staging pending" in result.output

    def test_scrape_without_urls(self, tmp_path):
        result = runner.invoke(app, ["scrape", "--data-dir", str(tmp_path)])
        assert result.exit_code == 0
        assert "No URLs to scrape" in result.output

    def test_corrupt_store_exits(self, tmp_path):
        (tmp_path / "staging.json").write_text("[oops")
        result = runner.invoke(app, ["stats", "--data-dir", str(tmp_path)])
        assert result.exit_code == 1

    def test_inspect_unknown_record(self, tmp_path):
        result = runner.invoke(app, ["inspect", "missing", "--no-geocode", "--data-dir", str(tmp_path)])
        assert result.exit_code == 1
