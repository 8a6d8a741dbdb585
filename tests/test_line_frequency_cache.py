"""Tests for the line frequency cache."""

from unittest.mock import MagicMock

from transit_timetables.application.services import LineFrequencyCache
from transit_timetables.domain.models import Frequency


def _provider(frequencies: dict[int, int | None]) -> MagicMock:
    provider = MagicMock()
    provider.get_frequency_seconds.side_effect = lambda line: frequencies.get(line)
    return provider


class TestLineFrequencyCache:
    """Tests for bounded-staleness frequency caching."""

    def test_when_lines_unchanged_within_ttl_then_nothing_recomputed(self) -> None:
        """Given a warm cache, when refreshing within the TTL, then there are zero recomputes."""
        provider = _provider({1: 600, 2: 300})
        cache = LineFrequencyCache(provider, ttl_seconds=5)
        cache.refresh([1, 2], now=0)
        provider.get_frequency_seconds.reset_mock()

        recomputed = cache.refresh([1, 2], now=4)

        assert recomputed == set()
        provider.get_frequency_seconds.assert_not_called()

    def test_when_line_added_then_only_new_line_computed(self) -> None:
        """Given a warm cache, when a line appears, then only that line is computed."""
        provider = _provider({1: 600, 2: 300, 3: 240})
        cache = LineFrequencyCache(provider, ttl_seconds=5)
        cache.refresh([1, 2], now=0)
        provider.get_frequency_seconds.reset_mock()

        recomputed = cache.refresh([1, 2, 3], now=1)

        assert recomputed == {3}
        provider.get_frequency_seconds.assert_called_once_with(3)
        assert cache.get(3) == Frequency(4, 0)

    def test_when_line_removed_then_purged_on_next_refresh(self) -> None:
        """Given a cached line, when it disappears, then its entry is purged immediately."""
        cache = LineFrequencyCache(_provider({1: 600, 2: 300}), ttl_seconds=5)
        cache.refresh([1, 2], now=0)

        cache.refresh([1], now=1)

        assert 2 not in cache
        assert cache.get(2) is None
        assert cache.current_lines == frozenset({1})

    def test_when_entry_older_than_ttl_then_recomputed(self) -> None:
        """Given an entry older than the TTL, when refreshing, then it is recomputed."""
        frequencies = {1: 600}
        cache = LineFrequencyCache(_provider(frequencies), ttl_seconds=5)
        cache.refresh([1], now=0)
        frequencies[1] = 450

        assert cache.refresh([1], now=4) == set()
        assert cache.get_seconds(1) == 600
        assert cache.refresh([1], now=5) == {1}
        assert cache.get_seconds(1) == 450
        assert cache.get_entry(1).last_update_time == 5

    def test_when_full_refresh_enabled_then_membership_change_recomputes_all(self) -> None:
        """Given full refresh mode, when a line appears, then every line is recomputed."""
        cache = LineFrequencyCache(
            _provider({1: 600, 2: 300}), ttl_seconds=5, full_refresh_on_line_change=True
        )
        cache.refresh([1], now=0)

        assert cache.refresh([1, 2], now=1) == {1, 2}

    def test_when_provider_reports_no_frequency_then_entry_is_unknown(self) -> None:
        """Given a line without a frequency, when cached, then lookups return None."""
        cache = LineFrequencyCache(_provider({1: None, 2: 0}))
        cache.refresh([1, 2], now=0)

        assert 1 in cache
        assert cache.get(1) is None
        assert cache.get(2) is None

    def test_when_cold_initialized_then_every_line_computed(self) -> None:
        """Given a stale cache, when cold-initializing, then all lines are recomputed."""
        provider = _provider({1: 600, 2: 300})
        cache = LineFrequencyCache(provider)
        cache.refresh([1, 9], now=0)

        cache.cold_initialize([1, 2], now=100)

        assert len(cache) == 2
        assert 9 not in cache
        assert cache.get_entry(1).last_update_time == 100
