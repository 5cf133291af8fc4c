"""
Unit Tests for Replay Output and the ucitap2json CLI

Tests for:
    - JSON array layout and fixed field set
    - zstandard-compressed output
    - Default output naming
    - End-to-end conversion through tools/ucitap2json.py
"""

import importlib.util
import json
from datetime import datetime, timezone
from pathlib import Path

import pytest
import zstandard

from ucitap.replay import OutputRecord, default_output_path, load_records, records_to_json, write_records
from ucitap.tap.logfile import Direction, LogLine

TOOL_PATH = Path(__file__).parent.parent / "tools" / "ucitap2json.py"
STAMP = datetime(2026, 10, 16, 12, 0, 0, tzinfo=timezone.utc)

RECORD = OutputRecord(
    engine="Stockfish 16.1",
    fen="rnbqkbnr/pppp1ppp/8/4p3/4P3/8/PPPP1PPP/RNBQKBNR w KQkq - 0 2",
    ply=2,
    score=35,
    mate=None,
    nodes=120,
    nps=60000,
    time=2,
    pv="Nf3 Nc6",
)

SESSION = [
    LogLine(Direction.GUI_TO_ENGINE, STAMP, "uci"),
    LogLine(Direction.ENGINE_TO_GUI, STAMP, "id name Stockfish 16.1"),
    LogLine(Direction.ENGINE_TO_GUI, STAMP, "uciok"),
    LogLine(Direction.GUI_TO_ENGINE, STAMP, "position startpos moves e2e4 e7e5"),
    LogLine(Direction.GUI_TO_ENGINE, STAMP, "go movetime 100"),
    LogLine(Direction.ENGINE_TO_GUI, STAMP, "info depth 1 score cp 40 nodes 20 nps 20000 time 1 pv g1f3"),
    LogLine(Direction.ENGINE_TO_GUI, STAMP, "info depth 2 score mate 7 nodes 120 nps 60000 time 2 pv g1f3 b8c6"),
    LogLine(Direction.ENGINE_TO_GUI, STAMP, "info depth 3 pv g1f3 g1f3"),
    LogLine(Direction.ENGINE_TO_GUI, STAMP, "Stockfish says hello"),
    LogLine(Direction.ENGINE_TO_GUI, STAMP, "bestmove g1f3"),
]


def load_tool():
    """Import tools/ucitap2json.py as a module."""
    loader_spec = importlib.util.spec_from_file_location("ucitap2json", TOOL_PATH)
    module = importlib.util.module_from_spec(loader_spec)
    loader_spec.loader.exec_module(module)
    return module


@pytest.fixture
def log_file(tmp_path):
    path = tmp_path / "uci-session.log"
    path.write_text("".join(line.format() for line in SESSION), encoding="utf-8")
    return path


class TestOutput:
    """Tests for the JSON writer."""

    def test_json_array_with_fixed_fields(self):
        payload = json.loads(records_to_json([RECORD]))

        assert isinstance(payload, list)
        assert list(payload[0]) == ["engine", "fen", "ply", "score", "mate", "nodes", "nps", "time", "pv"]
        assert payload[0]["mate"] is None
        assert payload[0]["pv"] == "Nf3 Nc6"

    def test_empty_array(self):
        assert json.loads(records_to_json([])) == []

    def test_non_ascii_engine_name(self):
        record = OutputRecord("Fritz Ü", "8/8/8/8/8/8/8/k6K w - - 0 1", 0, None, None, 0, 0, 0, None)

        assert "Fritz Ü" in records_to_json([record]).decode("utf-8")

    def test_write_json(self, tmp_path):
        path = tmp_path / "out" / "analysis.json"

        written = write_records([RECORD, RECORD], path)

        assert written == path.stat().st_size
        assert load_records(path) == [RECORD.to_dict(), RECORD.to_dict()]

    def test_write_zst(self, tmp_path):
        path = tmp_path / "analysis.zst"

        write_records([RECORD], path, compress=True)

        data = zstandard.ZstdDecompressor().decompress(path.read_bytes())
        assert json.loads(data) == [RECORD.to_dict()]
        assert load_records(path) == [RECORD.to_dict()]

    def test_default_output_path(self):
        assert default_output_path("/var/log/uci-session.log") == Path("uci-session.json")
        assert default_output_path("/var/log/uci-session.log", compress=True) == Path("uci-session.zst")


class TestCli:
    """End-to-end tests for tools/ucitap2json.py."""

    def test_convert(self, log_file, tmp_path, capsys):
        tool = load_tool()
        output = tmp_path / "analysis.json"

        exit_code = tool.main(["--log", str(log_file), "--output", str(output), "--no-progress"])

        assert exit_code == 0
        records = load_records(output)
        assert [r["pv"] for r in records] == ["Nf3", "Nf3 Nc6", None]
        assert records[1]["mate"] == 7
        assert records[1]["score"] is None
        assert all(r["engine"] == "Stockfish 16.1" for r in records)

        err = capsys.readouterr().err
        assert "Skipped: 1 unrecognized line(s), 1 desync(s)" in err

    def test_default_output_name_in_working_directory(self, log_file, tmp_path, monkeypatch):
        tool = load_tool()
        workdir = tmp_path / "work"
        workdir.mkdir()
        monkeypatch.chdir(workdir)

        assert tool.main(["-l", str(log_file), "-c", "--no-progress"]) == 0

        assert load_records(workdir / "uci-session.zst")[0]["pv"] == "Nf3"

    def test_bestmove_policy(self, log_file, tmp_path):
        tool = load_tool()
        output = tmp_path / "analysis.json"

        tool.main(["--log", str(log_file), "-o", str(output), "--emit", "bestmove", "--no-progress"])

        records = load_records(output)
        assert len(records) == 1
        assert records[0]["pv"] is None
        assert records[0]["mate"] == 7

    def test_missing_log(self, tmp_path, capsys):
        tool = load_tool()

        assert tool.main(["--log", str(tmp_path / "nope.log"), "--no-progress"]) == 1
        assert "not found" in capsys.readouterr().err
