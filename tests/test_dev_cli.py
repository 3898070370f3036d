from __future__ import annotations

import importlib.util
import json
from pathlib import Path

import pytest

CLI_PATH = Path(__file__).resolve().parents[1] / "tools" / "dev_cli.py"


@pytest.fixture
def dev_cli():
    spec = importlib.util.spec_from_file_location("dev_cli", CLI_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def statement_file(tmp_path, fee_row, trade_row, csv_bytes):
    path = tmp_path / "statement_2024-10.csv"
    path.write_bytes(
        csv_bytes(
            [
                fee_row("10/13/2024", "10/13 STOCK BORROW FEE GV", "-15.00"),
                trade_row("10/12/2024", "GV", "B", "100", "5.00", "-500.00"),
            ]
        )
    )
    return path


def test_parse_command_prints_totals(dev_cli, statement_file, capsys):
    assert dev_cli.main(["parse", str(statement_file)]) == 0
    out = capsys.readouterr().out
    assert "Period:        2024-10" in out
    assert "Total fees:    15.00" in out


def test_parse_command_json(dev_cli, statement_file, capsys):
    assert dev_cli.main(["parse", str(statement_file), "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["total_overnight_fees"] == 15.0
    assert payload["positions"][0]["date"] == "2024-10-12"


def test_positions_command_filters_by_ticker(dev_cli, statement_file, capsys):
    assert dev_cli.main(["positions", str(statement_file), "--ticker", "gv"]) == 0
    out = capsys.readouterr().out
    assert "2024-10-12  GV" in out
    assert "pnl=-500.00" in out


def test_history_command_lists_periods(dev_cli, statement_file, capsys):
    assert dev_cli.main(["history", str(statement_file)]) == 0
    assert "2024-10" in capsys.readouterr().out


def test_parse_errors_exit_non_zero(dev_cli, tmp_path, capsys):
    bad = tmp_path / "statement.txt"
    bad.write_text("nothing")
    assert dev_cli.main(["parse", str(bad)]) == 1
    assert "Unsupported file type" in capsys.readouterr().err
