"""Tests for the replay CLI."""

import json

from conftest import FIGURE_EIGHT_COORDS, SQUARE_COORDS, local_path, make_fixes
from territory_engine import cli


def _write_fixes(path, coords):
    fixes = make_fixes(local_path(coords))
    path.write_text(
        json.dumps(
            [
                {
                    "lat": f.point.lat,
                    "lon": f.point.lon,
                    "timestamp": f.timestamp.isoformat(),
                    "accuracy": f.horizontal_accuracy_m,
                }
                for f in fixes
            ]
        ),
        encoding="utf-8",
    )
    return path


class TestLoaders:
    def test_flat_fix_format(self, tmp_path):
        fixes = cli.load_fixes(_write_fixes(tmp_path / "fixes.json", SQUARE_COORDS))
        assert len(fixes) == 16
        assert fixes[0].horizontal_accuracy_m == 5.0

    def test_no_territories_file(self):
        assert cli.load_territories(None) == []


class TestMain:
    def test_valid_square_exits_zero(self, tmp_path, capsys):
        fixes = _write_fixes(tmp_path / "fixes.json", SQUARE_COORDS)
        log_file = tmp_path / "out" / "claim.log"

        assert cli.main([str(fixes), "--export-log", str(log_file)]) == 0
        assert "Territory valid" in capsys.readouterr().out
        assert log_file.read_text(encoding="utf-8").startswith("=== Territory claim log ===")

    def test_figure_eight_rejected(self, tmp_path, capsys):
        fixes = _write_fixes(tmp_path / "fixes.json", FIGURE_EIGHT_COORDS)
        assert cli.main([str(fixes)]) == 2
        assert "Territory rejected" in capsys.readouterr().out

    def test_start_blocked(self, tmp_path, capsys, foreign_square):
        fixes = _write_fixes(tmp_path / "fixes.json", [(20, 20), (30, 20)])
        territories = tmp_path / "territories.json"
        territories.write_text(json.dumps([foreign_square.model_dump(by_alias=True)]), encoding="utf-8")

        assert cli.main([str(fixes), "--territories", str(territories)]) == 2
        assert "Start blocked" in capsys.readouterr().out
