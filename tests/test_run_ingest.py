from __future__ import annotations

import logging
from typing import Iterator

import pytest

from scripts import run_ingest

HEADERS = ["Date", "Open", "High", "Low", "Close", "Volume"]


@pytest.fixture(autouse=True)
def _log_to_tmp(tmp_path, monkeypatch) -> Iterator[None]:
    monkeypatch.setattr(run_ingest, "LOG_DIR", str(tmp_path / "logs"))
    root = logging.getLogger()
    handlers = list(root.handlers)
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers


def test_prints_summary_for_valid_file(write_csv, capsys) -> None:
    rows = [[f"2025-01-{day:02d}", "100", "104", "99", str(100 + day), "1000"] for day in range(2, 12)]
    path = write_csv("prices.csv", HEADERS, rows)

    exit_code = run_ingest.main([str(path), "--seed", "5"])

    output = capsys.readouterr().out
    assert exit_code == 0
    assert "Source: prices.csv" in output
    assert "Rows: 10 (2025-01-02 to 2025-01-11)" in output
    assert "Simulated target:" in output


def test_reports_rejected_file(write_csv, capsys) -> None:
    path = write_csv("short.csv", HEADERS, [["2025-01-02", "100", "104", "99", "102", "1000"]])

    exit_code = run_ingest.main([str(path), "--min-rows", "5"])

    assert exit_code == 1
    assert "Could not ingest file" in capsys.readouterr().out


def test_missing_file(tmp_path, capsys) -> None:
    exit_code = run_ingest.main([str(tmp_path / "absent.csv")])

    assert exit_code == 1
    assert "File not found" in capsys.readouterr().out


def test_seed_defaults_to_configured_seed(write_csv, capsys, monkeypatch) -> None:
    rows = [[f"2025-01-{day:02d}", "100", "104", "99", str(100 + day), ""] for day in range(2, 12)]
    path = write_csv("no_volume.csv", HEADERS, rows)
    monkeypatch.setattr(run_ingest, "RANDOM_SEED", 11)

    outputs = []
    for _ in range(2):
        assert run_ingest.main([str(path)]) == 0
        outputs.append(capsys.readouterr().out)

    assert outputs[0] == outputs[1]
    assert "Simulated target:" in outputs[0]
