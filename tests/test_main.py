"""
Smoke tests for the CLI.
Run with:  pytest tests/test_main.py
"""

from __future__ import annotations

from main import main, parse_args


class TestCli:

    def test_defaults(self):
        args = parse_args([])
        assert args.fps == 30
        assert args.synthetic is None
        assert not args.headless

    def test_synthetic_run_reports_bpm(self, capsys):
        assert main(["--synthetic", "72", "--duration", "12"]) == 0
        out = capsys.readouterr().out
        assert "BPM=" in out

    def test_synthetic_run_too_short(self, capsys):
        # 3 s at 30 fps never reaches the 100-frame minimum
        assert main(["--synthetic", "72", "--duration", "3"]) == 1
