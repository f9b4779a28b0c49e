"""Tests for the composite cheat scorer."""

import pytest

from demoguard.core.config import ScoringConfig
from demoguard.detectors.scoring import CheatScorer
from demoguard.stats.models import (
    AimKey,
    AntiCheatKey,
    Category,
    DemoStats,
    GameInfoKey,
    KillKey,
    Metric,
    ReactionKey,
    RecoilKey,
)

ALICE = 76561198000000001


def _make_player(
    kills=0,
    hs_pct=0.0,
    snap_p95=None,
    snap_count=0,
    reaction_p10=None,
    reaction_samples=0,
    recoil_score=None,
    game_mode=None,
    rounds=None,
):
    stats = DemoStats()
    player = stats.player(ALICE, "Alice")
    if kills:
        player.add(Category.KILLS, KillKey.TOTAL_KILLS, Metric.integer(kills))
        player.add(Category.KILLS, KillKey.HEADSHOT_PERCENTAGE, Metric.percentage(hs_pct))
    if snap_p95 is not None:
        player.add(Category.AIMING, AimKey.P95_SNAP_VELOCITY, Metric.floating(snap_p95))
        player.add(Category.AIMING, AimKey.SNAP_COUNT, Metric.integer(snap_count))
    if reaction_p10 is not None:
        player.add(Category.REACTION, ReactionKey.P10_REACTION_TIME, Metric.floating(reaction_p10))
        player.add(Category.REACTION, ReactionKey.REACTION_SAMPLES, Metric.integer(reaction_samples))
    if recoil_score is not None:
        player.add(Category.RECOIL, RecoilKey.RECOIL_SCORE, Metric.floating(recoil_score))
    if game_mode is not None:
        player.add(Category.GAME_INFO, GameInfoKey.GAME_MODE, Metric.text(game_mode))
    if rounds is not None:
        player.add(Category.GAME_INFO, GameInfoKey.ROUND_COUNT, Metric.integer(rounds))
    return stats, player


class TestComponents:
    """Test each component factor and its sample guard."""

    def test_headshot_factor(self):
        """40 kills at 80% headshots: factor 1.0, plus the competitive boost."""
        _, player = _make_player(kills=40, hs_pct=80.0)
        result = CheatScorer().score(player)
        assert result.hs_score == pytest.approx(1.0)
        assert result.total == pytest.approx(0.45)
        assert result.competitive_boost
        assert result.likelihood == pytest.approx(54.0)

    def test_headshot_guard(self):
        _, player = _make_player(kills=29, hs_pct=100.0)
        assert CheatScorer().score(player).hs_score == 0.0

    def test_headshot_midpoint(self):
        _, player = _make_player(kills=30, hs_pct=65.0)
        assert CheatScorer().score(player).hs_score == pytest.approx(0.5)

    def test_snap_factor_and_guard(self):
        _, player = _make_player(snap_p95=2.75, snap_count=5)
        assert CheatScorer().score(player).snap_score == pytest.approx(0.5)
        _, player = _make_player(snap_p95=10.0, snap_count=4)
        assert CheatScorer().score(player).snap_score == 0.0

    def test_reaction_factor_and_guard(self):
        _, player = _make_player(reaction_p10=90.0, reaction_samples=5)
        assert CheatScorer().score(player).reaction_score == pytest.approx(0.5)
        _, player = _make_player(reaction_p10=10.0, reaction_samples=4)
        assert CheatScorer().score(player).reaction_score == 0.0

    def test_recoil_taken_as_is(self):
        _, player = _make_player(recoil_score=0.6)
        result = CheatScorer().score(player)
        assert result.recoil_score == pytest.approx(0.6)
        assert result.likelihood == pytest.approx(9.0)

    def test_clean_player(self):
        _, player = _make_player()
        result = CheatScorer().score(player)
        assert result.total == 0.0
        assert result.likelihood == 0.0


class TestBoosts:
    """Test the game-mode kill boosts and the cap."""

    def test_wingman_boost(self):
        _, player = _make_player(kills=16, recoil_score=1.0, game_mode="Wingman", rounds=16)
        result = CheatScorer().score(player)
        assert result.wingman_boost
        assert not result.competitive_boost
        assert result.likelihood == pytest.approx(18.0)

    def test_wingman_threshold_is_exclusive(self):
        _, player = _make_player(kills=15, recoil_score=1.0, game_mode="Wingman")
        assert not CheatScorer().score(player).wingman_boost

    def test_competitive_overtime_no_boost(self):
        _, player = _make_player(kills=45, hs_pct=80.0, game_mode="Competitive", rounds=36)
        result = CheatScorer().score(player)
        assert not result.competitive_boost
        assert result.likelihood == pytest.approx(45.0)

    def test_capped_at_100(self):
        _, player = _make_player(
            kills=50,
            hs_pct=90.0,
            snap_p95=5.0,
            snap_count=10,
            reaction_p10=40.0,
            reaction_samples=20,
            recoil_score=1.0,
            game_mode="Competitive",
            rounds=24,
        )
        result = CheatScorer().score(player)
        assert result.total == pytest.approx(1.0)
        assert result.competitive_boost
        assert result.likelihood == 100.0


class TestFinalize:
    """Test the metrics written by the scorer."""

    def test_flagged_player(self):
        stats, player = _make_player(kills=40, hs_pct=80.0, snap_p95=3.5, snap_count=5)
        CheatScorer().finalize(stats)

        assert player.get_float(Category.ANTI_CHEAT, AntiCheatKey.HS_SCORE) == pytest.approx(1.0)
        assert player.get_float(Category.ANTI_CHEAT, AntiCheatKey.SNAP_SCORE) == pytest.approx(1.0)
        assert player.get_float(Category.ANTI_CHEAT, AntiCheatKey.TOTAL_CHEAT_SCORE) == pytest.approx(0.7)
        assert player.get_float(Category.ANTI_CHEAT, AntiCheatKey.CHEAT_LIKELIHOOD) == pytest.approx(84.0)
        assert player.get_str(Category.ANTI_CHEAT, AntiCheatKey.COMPETITIVE_BOOST) == "Yes"
        assert not player.has(Category.ANTI_CHEAT, AntiCheatKey.WINGMAN_BOOST)
        assert player.get_str(Category.ANTI_CHEAT, AntiCheatKey.CHEATER) == "Yes"

    def test_clean_player_written(self):
        stats, player = _make_player(kills=10, hs_pct=40.0)
        CheatScorer().finalize(stats)
        assert player.get_float(Category.ANTI_CHEAT, AntiCheatKey.CHEAT_LIKELIHOOD) == 0.0
        assert player.get_str(Category.ANTI_CHEAT, AntiCheatKey.CHEATER) == "No"
        assert not player.has(Category.ANTI_CHEAT, AntiCheatKey.COMPETITIVE_BOOST)

    def test_custom_threshold(self):
        stats, player = _make_player(recoil_score=1.0)
        CheatScorer(ScoringConfig(cheater_threshold=10.0)).finalize(stats)
        assert player.get_str(Category.ANTI_CHEAT, AntiCheatKey.CHEATER) == "Yes"

    def test_invalid_weights(self):
        with pytest.raises(ValueError):
            CheatScorer(ScoringConfig(recoil_weight=0.5))

    def test_depends_on_signal_detectors(self):
        assert set(CheatScorer().depends_on) == {"headshots", "snap", "reaction", "recoil", "game_mode"}
