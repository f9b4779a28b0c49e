"""Tests for the metrics store."""

from datetime import timedelta

import pytest

from demoguard.stats.models import (
    AimKey,
    AntiCheatKey,
    Category,
    DemoStats,
    GameInfoKey,
    KillKey,
    Metric,
    MetricKeyError,
    MetricStore,
    MetricType,
    MetricTypeError,
    WeaponKey,
)

STEAM_ID = 76561198000000001


class TestMetric:
    """Tests for the Metric tagged value."""

    def test_factories_set_type(self):
        """Each factory produces its own tag."""
        assert Metric.count(3).type == MetricType.COUNT
        assert Metric.integer(3).type == MetricType.INTEGER
        assert Metric.percentage(50).type == MetricType.PERCENTAGE
        assert Metric.floating(1.5).type == MetricType.FLOAT
        assert Metric.duration(timedelta(milliseconds=5)).type == MetricType.DURATION
        assert Metric.text("Yes").type == MetricType.STRING

    def test_percentage_value_is_float(self):
        """Integer input to a float-tagged metric is stored as float."""
        metric = Metric.percentage(50)
        assert isinstance(metric.value, float)
        assert metric.value == 50.0

    def test_integer_rejects_float(self):
        """Integer metrics must hold ints."""
        with pytest.raises(MetricTypeError):
            Metric.integer(1.5)

    def test_integer_rejects_bool(self):
        with pytest.raises(MetricTypeError):
            Metric.integer(True)

    def test_string_rejects_number(self):
        with pytest.raises(MetricTypeError):
            Metric.text(5)

    def test_is_immutable(self):
        """Metrics are frozen."""
        metric = Metric.integer(1)
        with pytest.raises(AttributeError):
            metric.value = 2

    def test_duration_as_float_is_milliseconds(self):
        metric = Metric.duration(timedelta(milliseconds=93.75))
        assert metric.as_float() == pytest.approx(93.75)

    def test_string_has_no_numeric_value(self):
        with pytest.raises(MetricTypeError):
            Metric.text("No").as_float()

    def test_format(self):
        """Percentages get a % sign, floats use the given precision."""
        assert Metric.percentage(42.123).format(1) == "42.1%"
        assert Metric.floating(0.5).format(3) == "0.500"
        assert Metric.integer(7).format() == "7"
        assert Metric.text("Wingman").format() == "Wingman"


class TestMetricStore:
    """Tests for MetricStore."""

    def test_get_missing_returns_none(self):
        store = MetricStore()
        assert store.get(Category.KILLS, KillKey.TOTAL_KILLS) is None
        assert not store.has(Category.KILLS, KillKey.TOTAL_KILLS)

    def test_add_overwrites(self):
        """Last write wins."""
        store = MetricStore()
        store.add(Category.KILLS, KillKey.TOTAL_KILLS, Metric.integer(1))
        store.add(Category.KILLS, KillKey.TOTAL_KILLS, Metric.integer(5))
        assert store.get_int(Category.KILLS, KillKey.TOTAL_KILLS) == 5

    def test_key_must_match_category(self):
        """A key from another category is rejected."""
        store = MetricStore()
        with pytest.raises(MetricKeyError):
            store.add(Category.KILLS, AimKey.SNAP_COUNT, Metric.integer(1))
        with pytest.raises(MetricKeyError):
            store.get(Category.WEAPONS, KillKey.TOTAL_KILLS)

    def test_increment_int_creates_then_adds(self):
        store = MetricStore()
        store.increment_int(Category.KILLS, KillKey.TOTAL_KILLS)
        store.increment_int(Category.KILLS, KillKey.TOTAL_KILLS)
        metric = store.get(Category.KILLS, KillKey.TOTAL_KILLS)
        assert metric.type == MetricType.INTEGER
        assert metric.value == 2

    def test_increment_int_keeps_count_tag(self):
        store = MetricStore()
        store.add(Category.WEAPONS, WeaponKey.TOTAL_TICKS, Metric.count(4))
        store.increment_int(Category.WEAPONS, WeaponKey.TOTAL_TICKS)
        metric = store.get(Category.WEAPONS, WeaponKey.TOTAL_TICKS)
        assert metric.type == MetricType.COUNT
        assert metric.value == 5

    def test_increment_int_rejects_string(self):
        """Incrementing a string metric is a programming error."""
        store = MetricStore()
        store.add(Category.ANTI_CHEAT, AntiCheatKey.CHEATER, Metric.text("No"))
        with pytest.raises(MetricTypeError):
            store.increment_int(Category.ANTI_CHEAT, AntiCheatKey.CHEATER)

    def test_increment_float(self):
        store = MetricStore()
        store.increment_float(Category.ANTI_CHEAT, AntiCheatKey.TOTAL_CHEAT_SCORE, 0.25)
        store.increment_float(Category.ANTI_CHEAT, AntiCheatKey.TOTAL_CHEAT_SCORE, 0.5)
        assert store.get_float(Category.ANTI_CHEAT, AntiCheatKey.TOTAL_CHEAT_SCORE) == pytest.approx(0.75)

    def test_increment_float_rejects_integer(self):
        store = MetricStore()
        store.add(Category.KILLS, KillKey.TOTAL_KILLS, Metric.integer(1))
        with pytest.raises(MetricTypeError):
            store.increment_float(Category.KILLS, KillKey.TOTAL_KILLS, 1.0)

    def test_defaults_for_absent_metrics(self):
        store = MetricStore()
        assert store.get_float(Category.AIMING, AimKey.P95_SNAP_VELOCITY) == 0.0
        assert store.get_int(Category.AIMING, AimKey.SNAP_COUNT, default=7) == 7
        assert store.get_str(Category.GAME_INFO, GameInfoKey.GAME_MODE, "Competitive") == "Competitive"

    def test_categories_and_items(self):
        store = MetricStore()
        store.add(Category.KILLS, KillKey.TOTAL_KILLS, Metric.integer(3))
        store.add(Category.KILLS, KillKey.HEADSHOT_KILLS, Metric.integer(1))
        store.add(Category.GAME_INFO, GameInfoKey.GAME_MODE, Metric.text("Wingman"))

        assert store.categories() == [Category.KILLS, Category.GAME_INFO]
        keys = [key for key, _ in store.items(Category.KILLS)]
        assert keys == [KillKey.TOTAL_KILLS, KillKey.HEADSHOT_KILLS]
        assert list(store.items(Category.RECOIL)) == []

    def test_to_dict(self):
        store = MetricStore()
        store.add(Category.KILLS, KillKey.TOTAL_KILLS, Metric.integer(3))
        store.add(Category.GAME_INFO, GameInfoKey.GAME_MODE, Metric.text("Wingman"))
        assert store.to_dict() == {
            "kills": {"total_kills": 3},
            "game_info": {"game_mode": "Wingman"},
        }


class TestDemoStats:
    """Tests for DemoStats player bookkeeping."""

    def test_player_created_lazily(self):
        stats = DemoStats()
        assert len(stats) == 0
        player = stats.player(STEAM_ID, "Alice")
        assert len(stats) == 1
        assert player.name == "Alice"
        assert player.steam_id == STEAM_ID

    def test_player_identity_is_fixed(self):
        """A later name does not rename an existing player."""
        stats = DemoStats()
        first = stats.player(STEAM_ID, "Alice")
        second = stats.player(STEAM_ID, "Renamed")
        assert first is second
        assert second.name == "Alice"

    def test_missing_name_defaults(self):
        stats = DemoStats()
        assert stats.player(STEAM_ID).name == "Unknown"

    @pytest.mark.parametrize("bad_id", [0, -1, None])
    def test_invalid_ids_rejected(self, bad_id):
        """There is no sentinel player for replay-wide data."""
        stats = DemoStats()
        with pytest.raises(ValueError):
            stats.player(bad_id)

    def test_find_does_not_create(self):
        stats = DemoStats()
        assert stats.find(STEAM_ID) is None
        assert len(stats) == 0

    def test_replay_store_is_separate(self):
        stats = DemoStats()
        stats.replay.add(Category.GAME_INFO, GameInfoKey.ROUND_COUNT, Metric.integer(24))
        assert len(stats) == 0
        assert stats.replay.get_int(Category.GAME_INFO, GameInfoKey.ROUND_COUNT) == 24
