"""Tests for the per-run TTC results table."""

from pathlib import Path

import pytest

from ttcfusion import TTCResult, TTCRun, TTCStatus, read_results, write_results
from ttcfusion.io import format_ttc
from ttcfusion.pipeline import RegionTTC


def make_run(label: str, pairs) -> TTCRun:
    run = TTCRun(label=label)
    for range_ttc, vision_ttc in pairs:
        run.add(RegionTTC(prev_id=0, curr_id=0, range_ttc=range_ttc, vision_ttc=vision_ttc))
    return run


class TestFormatTTC:

    def test_computable(self):
        assert format_ttc(TTCResult.ok(12.51649)) == "12.516"
        assert format_ttc(TTCResult.ok(2.0), precision=1) == "2.0"

    def test_not_computable(self):
        assert format_ttc(TTCResult.not_computable(TTCStatus.EMPTY_INPUT)) == "n/a"


class TestResultsTable:

    @pytest.fixture
    def runs(self) -> list[TTCRun]:
        return [
            make_run(
                "FAST-BRIEF",
                [
                    (TTCResult.ok(12.5), TTCResult.ok(11.9)),
                    (TTCResult.not_computable(TTCStatus.NON_POSITIVE_CLOSING), TTCResult.ok(13.25)),
                ],
            ),
            make_run(
                "ORB-ORB",
                [(TTCResult.ok(8.0), TTCResult.not_computable(TTCStatus.DIVISION_GUARD))],
            ),
        ]

    def test_file_layout(self, tmp_path: Path, runs):
        path = write_results(tmp_path / "out" / "ttc.tsv", runs)

        lines = path.read_text().splitlines()
        assert lines[0] == "#run\tsource\tttc"
        assert lines[1] == "FAST-BRIEF\trange\t12.500\tn/a"
        assert lines[2] == "FAST-BRIEF\tvision\t11.900\t13.250"
        assert lines[3] == "ORB-ORB\trange\t8.000"
        assert lines[4] == "ORB-ORB\tvision\tn/a"

    def test_read_back(self, tmp_path: Path, runs):
        path = write_results(tmp_path / "ttc.tsv", runs)
        table = read_results(path)

        assert set(table) == {"FAST-BRIEF", "ORB-ORB"}
        assert table["FAST-BRIEF"]["range"] == [12.5, None]
        assert table["FAST-BRIEF"]["vision"] == [11.9, 13.25]
        assert table["ORB-ORB"]["vision"] == [None]

    def test_empty_run(self, tmp_path: Path):
        path = write_results(tmp_path / "ttc.tsv", [TTCRun(label="SIFT-SIFT")])
        assert read_results(path) == {"SIFT-SIFT": {"range": [], "vision": []}}

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError, match="Results file not found"):
            read_results(tmp_path / "missing.tsv")

    def test_invalid_line(self, tmp_path: Path):
        path = tmp_path / "bad.tsv"
        path.write_text("#run\tsource\tttc\nlonely\n")
        with pytest.raises(ValueError, match="Invalid line"):
            read_results(path)
