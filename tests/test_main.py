import functools
import json

import pytest

from sqliprobe import main as cli
from sqliprobe.core.prober import Prober

from fakes import LAB


@pytest.fixture
def lab_cli(monkeypatch, lab_transport):
    """Route the CLI's prober into the Flask lab."""
    monkeypatch.setattr(cli, "Prober", functools.partial(Prober, transport=lab_transport))


class TestArguments:
    def test_defaults(self):
        args = cli.build_parser().parse_args(["http://t.test/?id=1"])
        assert args.mode == "quick"
        assert args.timeout == 30000
        assert args.param == []
        assert not args.yes

    def test_data_implies_post(self):
        args = cli.build_parser().parse_args(
            ["-u", "http://t.test/login", "-d", "user=a", "-H", "X-Test: 1", "-c", "sid=abc"])
        req = cli.build_target(args)
        assert req.method == "POST"
        assert req.body == "user=a"
        assert req.headers["X-Test"] == "1"
        assert req.cookies == {"sid": "abc"}

    def test_cookie_header_becomes_cookies(self):
        args = cli.build_parser().parse_args(
            ["http://t.test/", "-H", "Cookie: sid=abc; theme=dark", "-c", "theme=light"])
        req = cli.build_target(args)
        assert req.cookies == {"sid": "abc", "theme": "light"}
        assert "cookie" not in req.headers

    def test_request_file(self, tmp_path):
        raw = tmp_path / "req.txt"
        raw.write_text("GET /item?id=7 HTTP/1.1\r\nHost: t.test\r\n\r\n")
        args = cli.build_parser().parse_args(["--request", str(raw), "--scheme", "http"])
        req = cli.build_target(args)
        assert req.url.startswith("http://t.test/item")
        assert req.query_params == {"id": "7"}


class TestMain:
    def test_missing_target(self, capsys):
        assert cli.main(["-y"]) == 1
        assert "required" in capsys.readouterr().out

    def test_bad_scheme(self):
        assert cli.main(["-y", "ftp://t.test/?id=1"]) == 1

    def test_bad_proxy(self):
        assert cli.main(["-y", "--proxy", "nope", "http://t.test/?id=1"]) == 1

    def test_authorization_declined(self, monkeypatch, lab_cli):
        monkeypatch.setattr("builtins.input", lambda prompt: "no")
        assert cli.main([f"{LAB}/sqli?id=1"]) == 1

    def test_authorization_eof(self, monkeypatch):
        def eof(prompt):
            raise EOFError
        monkeypatch.setattr("builtins.input", eof)
        assert cli.confirm_authorization("http://t.test/") is False

    def test_vulnerable_target_exit_code_and_json(self, lab_cli, tmp_path, capsys):
        out = tmp_path / "report.json"
        assert cli.main(["-y", f"{LAB}/sqli?id=1", "-o", str(out)]) == 1
        assert "requests sent" in capsys.readouterr().out
        with open(out, encoding="utf-8") as fh:
            doc = json.load(fh)
        assert doc["summary"]["total"] == 1
        assert doc["findings"][0]["database"] == "SQLite"

    def test_clean_target(self, lab_cli):
        assert cli.main(["-y", f"{LAB}/profile?id=1"]) == 0

    def test_html_report(self, lab_cli, tmp_path):
        out = tmp_path / "report.html"
        cli.main(["-y", "--mode", "quick", f"{LAB}/sqli?id=1", "-o", str(out)])
        assert "SQLiProbe Report" in out.read_text(encoding="utf-8")
