#!/usr/bin/env python3
"""
Property-based tests for freshness evaluation

Property: Recency Threshold
*For any* parsed instant P at or before now and threshold T,
age_hours = (now - P) in hours and the item SHALL be recent if and only if
age_hours - offset < T.

Property: Negative Age Guard
*For any* parsed instant strictly after now, evaluation SHALL fail with
NegativeAge and never report a negative age.
"""
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import unittest
from datetime import datetime, timedelta
from hypothesis import given, strategies as st, settings

from monitor.errors import NegativeAge
from monitor.freshness import evaluate_freshness
from monitor.models import ParsedInstant


NOW = datetime(2024, 1, 15, 12, 0, 0)

seconds_ago_strategy = st.integers(min_value=0, max_value=60 * 60 * 24 * 400)
threshold_strategy = st.floats(min_value=0.5, max_value=500.0, allow_nan=False, allow_infinity=False)
offset_strategy = st.floats(min_value=-24.0, max_value=24.0, allow_nan=False, allow_infinity=False)


def parsed_at(instant):
    return ParsedInstant(instant=instant, source_text=instant.isoformat())


class TestEvaluateFreshness(unittest.TestCase):
    def test_six_hours_old(self):
        """測試 6 小時前的更新"""
        parsed = parsed_at(datetime(2024, 1, 15, 6, 0, 0))

        result = evaluate_freshness(parsed, NOW, threshold_hours=7)
        self.assertEqual(result.age_hours, 6.0)
        self.assertTrue(result.is_recent)

        result = evaluate_freshness(parsed, NOW, threshold_hours=5)
        self.assertEqual(result.age_hours, 6.0)
        self.assertFalse(result.is_recent)

    def test_age_equal_to_threshold_is_not_recent(self):
        parsed = parsed_at(NOW - timedelta(hours=7))
        self.assertFalse(evaluate_freshness(parsed, NOW, threshold_hours=7).is_recent)

    def test_same_instant_is_zero_age(self):
        result = evaluate_freshness(parsed_at(NOW), NOW, threshold_hours=1)
        self.assertEqual(result.age_hours, 0.0)
        self.assertTrue(result.is_recent)

    def test_timezone_offset(self):
        """測試時區修正：比較與回報都使用修正後的小時數"""
        parsed = parsed_at(NOW - timedelta(hours=12))
        result = evaluate_freshness(parsed, NOW, threshold_hours=7, timezone_offset_hours=7)
        self.assertEqual(result.age_hours, 12.0)
        self.assertEqual(result.reported_age_hours, 5.0)
        self.assertTrue(result.is_recent)
        self.assertTrue(result.should_notify)

    def test_offset_larger_than_age_does_not_notify(self):
        """測試修正後為負值時不通知"""
        parsed = parsed_at(NOW - timedelta(hours=3))
        result = evaluate_freshness(parsed, NOW, threshold_hours=7, timezone_offset_hours=7)
        self.assertTrue(result.is_recent)
        self.assertEqual(result.reported_age_hours, -4.0)
        self.assertFalse(result.should_notify)

    def test_future_instant_raises(self):
        with self.assertRaises(NegativeAge):
            evaluate_freshness(parsed_at(NOW + timedelta(seconds=1)), NOW, threshold_hours=7)


@settings(max_examples=100)
@given(
    seconds_ago=seconds_ago_strategy,
    threshold=threshold_strategy,
    offset=offset_strategy,
)
def test_recency_threshold(seconds_ago, threshold, offset):
    """
    Property: Recency Threshold

    Recent if and only if the corrected age is below the threshold.
    """
    parsed = parsed_at(NOW - timedelta(seconds=seconds_ago))

    result = evaluate_freshness(parsed, NOW, threshold_hours=threshold, timezone_offset_hours=offset)

    assert result.age_hours >= 0
    assert abs(result.age_hours - seconds_ago / 3600) < 1e-9
    assert result.is_recent == (result.age_hours - offset < threshold)


@settings(max_examples=100)
@given(seconds_ago=seconds_ago_strategy, threshold=threshold_strategy)
def test_evaluation_is_idempotent(seconds_ago, threshold):
    """
    Property: Pure Evaluation

    Identical inputs always give identical results.
    """
    parsed = parsed_at(NOW - timedelta(seconds=seconds_ago))
    first = evaluate_freshness(parsed, NOW, threshold_hours=threshold)
    second = evaluate_freshness(parsed, NOW, threshold_hours=threshold)
    assert first == second


@settings(max_examples=100)
@given(seconds_ahead=st.integers(min_value=1, max_value=60 * 60 * 24 * 400), threshold=threshold_strategy)
def test_negative_age_guard(seconds_ahead, threshold):
    """
    Property: Negative Age Guard

    A parsed instant after now always fails with NegativeAge.
    """
    parsed = parsed_at(NOW + timedelta(seconds=seconds_ahead))
    try:
        evaluate_freshness(parsed, NOW, threshold_hours=threshold)
    except NegativeAge:
        return
    raise AssertionError("expected NegativeAge")


if __name__ == "__main__":
    import pytest
    pytest.main([__file__, "-v"])
