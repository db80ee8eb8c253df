"""Tests for the command-line entry point."""

import httpx
import pytest

from conftest import API_URL, FakeRewriteService
from redraft import cli
from redraft.api_client import RewriteClient


@pytest.fixture
def fake_service(monkeypatch):
    """Route every client the CLI builds to an in-process fake service."""
    service = FakeRewriteService()
    original = RewriteClient.from_settings.__func__

    def fake_from_settings(cls, settings, transport=None):
        return original(cls, settings, transport=httpx.MockTransport(service))

    monkeypatch.setattr(RewriteClient, "from_settings", classmethod(fake_from_settings))
    monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)
    return service


class TestRewriteCommand:
    def test_writes_output_file(self, fake_service, tmp_path, capsys):
        source = tmp_path / "in.html"
        target = tmp_path / "out.html"
        source.write_text("<p>Hello <b>there</b> friend</p>", encoding="utf-8")

        code = cli.main(["--api-url", API_URL, "rewrite", str(source), "-o", str(target)])

        assert code == 0
        assert target.read_text(encoding="utf-8") == "<p>HELLO <b>THERE</b> FRIEND</p>"
        err = capsys.readouterr().err.strip().splitlines()
        assert "[Progress] 100%" in err
        assert err[-1] == "llm"

    def test_writes_stdout_and_forwards_options(self, fake_service, tmp_path, capsys):
        source = tmp_path / "in.html"
        source.write_text("".join(f"<p>Line {i} here</p>" for i in range(5)), encoding="utf-8")

        code = cli.main([
            "--api-url", API_URL, "rewrite", str(source),
            "--batch-size", "2", "--concurrency", "1", "--directive", "Cheer up",
        ])

        assert code == 0
        assert capsys.readouterr().out.startswith("<p>LINE 0 HERE</p>")
        assert fake_service.batch_sizes == [2, 2, 1]
        assert all(body["opinion"] == "Cheer up" for body in fake_service.requests)

    def test_heuristic_outcome_still_exits_zero(self, fake_service, tmp_path, capsys):
        fake_service.fail_when = lambda segments: True
        source = tmp_path / "in.html"
        source.write_text("<p>Very good</p>", encoding="utf-8")

        code = cli.main(["--api-url", API_URL, "rewrite", str(source)])

        captured = capsys.readouterr()
        assert code == 0
        assert captured.out == "<p>tremendous good</p>"
        assert captured.err.strip().splitlines()[-1] == "heuristic"

    def test_api_url_after_subcommand(self, fake_service, tmp_path, capsys):
        source = tmp_path / "in.html"
        source.write_text("<p>Hello there</p>", encoding="utf-8")

        code = cli.main(["rewrite", str(source), "--api-url", API_URL])

        assert code == 0
        assert capsys.readouterr().out == "<p>HELLO THERE</p>"
        assert len(fake_service.requests) == 1

    def test_unwritable_output(self, fake_service, tmp_path, capsys):
        source = tmp_path / "in.html"
        source.write_text("<p>Hello there</p>", encoding="utf-8")
        target = tmp_path / "missing" / "out.html"

        code = cli.main(["--api-url", API_URL, "rewrite", str(source), "-o", str(target)])

        assert code == 1
        assert "Cannot write" in capsys.readouterr().err
        assert not target.exists()

    def test_missing_input(self, fake_service, tmp_path, capsys):
        code = cli.main(["--api-url", API_URL, "rewrite", str(tmp_path / "nope.html")])
        assert code == 1
        assert "Cannot read" in capsys.readouterr().err

    def test_invalid_batch_size(self, fake_service, tmp_path, capsys):
        code = cli.main(["rewrite", str(tmp_path / "x.html"), "--batch-size", "0"])
        assert code == 2
        assert "[Config]" in capsys.readouterr().err


class TestHealthCommand:
    def test_healthy(self, fake_service, capsys):
        assert cli.main(["--api-url", API_URL, "health"]) == 0
        assert "http://rewrite.test/health: ok" in capsys.readouterr().err

    def test_api_url_after_subcommand(self, fake_service, capsys):
        assert cli.main(["health", "--api-url", API_URL]) == 0
        assert "http://rewrite.test/health: ok" in capsys.readouterr().err

    def test_unreachable(self, monkeypatch, capsys):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        original = RewriteClient.from_settings.__func__
        monkeypatch.setattr(
            RewriteClient,
            "from_settings",
            classmethod(lambda cls, s, transport=None: original(cls, s, transport=httpx.MockTransport(handler))),
        )
        monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)

        assert cli.main(["--api-url", API_URL, "health"]) == 1
