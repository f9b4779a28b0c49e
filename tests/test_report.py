"""Tests for report rendering and export."""

import json

import pandas as pd
import pytest
from rich.console import Console

from demoguard.core.config import ReportConfig
from demoguard.pipeline.runner import AnalysisResult
from demoguard.report import (
    category_frame,
    category_keys,
    export_result,
    players_frame,
    render_report,
    result_to_dict,
)
from demoguard.stats.models import (
    AntiCheatKey,
    Category,
    DemoStats,
    GameInfoKey,
    KillKey,
    Metric,
    WeaponKey,
)

ALICE = 76561198000000001
BOB = 76561198000000002


def _make_result():
    stats = DemoStats(tick_rate=64.0, tick_count=1000, demo_name="match.dem", map_name="de_inferno")
    stats.replay.add(Category.GAME_INFO, GameInfoKey.GAME_MODE, Metric.text("Competitive"))
    stats.replay.add(Category.GAME_INFO, GameInfoKey.ROUND_COUNT, Metric.integer(24))

    bob = stats.player(BOB, "bob")
    bob.add(Category.WEAPONS, WeaponKey.TOTAL_TICKS, Metric.count(100))
    bob.add(Category.WEAPONS, WeaponKey.KNIFE_TICKS, Metric.count(20))
    bob.add(Category.WEAPONS, WeaponKey.KNIFE_PERCENTAGE, Metric.percentage(20.0))
    bob.add(Category.ANTI_CHEAT, AntiCheatKey.CHEAT_LIKELIHOOD, Metric.percentage(12.5))
    bob.add(Category.ANTI_CHEAT, AntiCheatKey.CHEATER, Metric.text("No"))

    alice = stats.player(ALICE, "Alice")
    alice.add(Category.KILLS, KillKey.TOTAL_KILLS, Metric.integer(40))
    alice.add(Category.KILLS, KillKey.HEADSHOT_PERCENTAGE, Metric.percentage(80.0))
    alice.add(Category.ANTI_CHEAT, AntiCheatKey.CHEAT_LIKELIHOOD, Metric.percentage(84.0))
    alice.add(Category.ANTI_CHEAT, AntiCheatKey.CHEATER, Metric.text("Yes"))

    return AnalysisResult(
        stats=stats,
        categories=[Category.WEAPONS, Category.KILLS, Category.RECOIL, Category.ANTI_CHEAT],
    )


class TestFrames:
    """Test DataFrame conversion."""

    def test_raw_counters_hidden(self):
        stats = _make_result().stats
        assert category_keys(stats, Category.WEAPONS) == ["knife_percentage"]
        assert category_keys(stats, Category.WEAPONS, hide_raw_counters=False) == [
            "total_ticks",
            "knife_ticks",
            "knife_percentage",
        ]

    def test_category_frame(self):
        df = category_frame(_make_result().stats, Category.KILLS)
        assert list(df.columns) == ["steam_id", "name", "total_kills", "headshot_percentage"]
        assert len(df) == 1
        assert df.iloc[0]["total_kills"] == 40

    def test_empty_category(self):
        df = category_frame(_make_result().stats, Category.RECOIL)
        assert df.empty
        assert list(df.columns) == ["steam_id", "name"]

    def test_players_frame_merges_categories(self):
        result = _make_result()
        df = players_frame(result.stats, result.categories)
        assert list(df["name"]) == ["Alice", "bob"]
        assert "kills.total_kills" in df.columns
        assert "anti_cheat.cheat_likelihood" in df.columns
        # Bob has no kills metrics
        assert pd.isna(df.loc[df["name"] == "bob", "kills.total_kills"]).all()


class TestRender:
    """Test console rendering."""

    def _render(self, result, **kwargs):
        console = Console(record=True, width=200)
        render_report(result, console, **kwargs)
        return console.export_text()

    def test_tables_rendered(self):
        text = self._render(_make_result())
        assert "DemoGuard Report" in text
        assert "de_inferno" in text
        assert "Competitive" in text
        assert "Weapons" in text
        assert "Anti Cheat" in text
        assert "84.00%" in text

    def test_empty_category_skipped(self):
        text = self._render(_make_result())
        assert "Recoil" not in text

    def test_flagged_column(self):
        text = self._render(_make_result())
        lines = [line for line in text.splitlines() if "Alice" in line and "84.00%" in line]
        assert lines and "YES" in lines[0]

    def test_anti_cheat_sorted_by_likelihood(self):
        text = self._render(_make_result())
        anti_cheat = text[text.index("Anti Cheat"):]
        assert anti_cheat.index("Alice") < anti_cheat.index("bob")

    def test_precision(self):
        text = self._render(_make_result(), config=ReportConfig(float_precision=1))
        assert "84.0%" in text

    def test_no_metrics(self):
        text = self._render(AnalysisResult(stats=DemoStats(), categories=[Category.KILLS]))
        assert "No player metrics were collected" in text


class TestExport:
    """Test file export."""

    def test_json(self, tmp_path):
        path = tmp_path / "out.json"
        export_result(_make_result(), path)
        data = json.loads(path.read_text())

        assert data["_metadata"]["format"] == "demoguard_json"
        assert data["demo_info"]["map"] == "de_inferno"
        assert data["demo_info"]["game_info"]["round_count"] == 24
        assert data["players"][str(ALICE)]["kills"]["total_kills"] == 40
        assert data["players"][str(BOB)]["name"] == "bob"

    def test_csv(self, tmp_path):
        path = tmp_path / "out.csv"
        export_result(_make_result(), path)
        df = pd.read_csv(path)
        assert len(df) == 2
        assert "weapons.knife_percentage" in df.columns
        assert "weapons.total_ticks" not in df.columns

    def test_csv_delimiter(self, tmp_path):
        path = tmp_path / "out.csv"
        export_result(_make_result(), path, ReportConfig(csv_delimiter=";"))
        assert ";" in path.read_text().splitlines()[0]

    def test_explicit_format(self, tmp_path):
        path = tmp_path / "results.txt"
        export_result(_make_result(), path, format="json")
        assert "players" in json.loads(path.read_text())

    def test_unsupported_format(self, tmp_path):
        with pytest.raises(ValueError, match="Unsupported"):
            export_result(_make_result(), tmp_path / "out.xlsx")

    def test_result_to_dict_has_no_sentinel_player(self):
        data = result_to_dict(_make_result())
        assert set(data["players"]) == {str(ALICE), str(BOB)}
