import re
from unittest.mock import patch

import pytest

from errors import InvariantViolation
from main import build_parser, main

EVENT_LINE = re.compile(r"^\[(\d{4})\] (deposit|withdraw)\s+([+-])(\d+)\s+balance=(\d+)$")


def event_lines(output: str):
    return [m for m in (EVENT_LINE.match(line) for line in output.splitlines()) if m]


class TestCommandLine:
    """Test the bank-monitor entry point."""

    def test_run_until_complete(self, capsys):
        """Test a bounded run printing one line per transaction."""
        exit_code = main([
            "--env", "testing",
            "--until-complete",
            "--deposits", "6",
            "--withdrawals", "0",
            "--seed", "5",
        ])

        assert exit_code == 0
        out = capsys.readouterr().out
        lines = event_lines(out)

        assert len(lines) == 6
        assert all(m.group(2) == "deposit" for m in lines)
        total = sum(int(m.group(4)) for m in lines)
        assert f"final balance={total}" in out

    def test_balances_match_printed_amounts(self, capsys):
        """Test that the printed events add up to the printed balances."""
        exit_code = main([
            "--env", "testing",
            "--until-complete",
            "--deposits", "40",
            "--withdrawals", "30",
            "--initial-balance", "10",
        ])

        assert exit_code == 0
        lines = sorted(event_lines(capsys.readouterr().out), key=lambda m: int(m.group(1)))

        balance = 10
        for m in lines:
            delta = int(m.group(4))
            balance += delta if m.group(3) == "+" else -delta
            assert balance == int(m.group(5))
            assert balance >= 0

    def test_invalid_configuration(self, capsys):
        """Test that an invalid amount range exits with status 2."""
        exit_code = main(["--env", "testing", "--min-amount", "9", "--max-amount", "2"])

        assert exit_code == 2
        assert "Invalid configuration" in capsys.readouterr().err

    def test_unknown_option(self):
        """Test that argparse rejects unknown options."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--bogus"])

        assert exc_info.value.code == 2

    @patch("main.logger")
    @patch("main.Runner")
    def test_invariant_violation_exit_code(self, mock_runner, mock_logger):
        """Test that a fatal bank error exits with status 1 and is logged."""
        mock_runner.return_value.run.side_effect = InvariantViolation("balance went negative")

        exit_code = main(["--env", "testing"])

        assert exit_code == 1
        mock_logger.error.assert_called()

    def test_parser_defaults(self):
        """Test that no argument is required."""
        args = build_parser().parse_args([])

        assert args.env == "development"
        assert args.duration is None
        assert not args.unfair_lock
