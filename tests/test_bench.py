"""
Tests for bench duration and risk labels.
"""

import pytest
from datetime import date, timedelta
from types import SimpleNamespace

from talentmap.schemas.utilization import BenchRisk
from talentmap.services.bench import (
    bench_days,
    bench_start_date,
    classify_bench_risk,
    risk_label,
)

TODAY = date(2024, 6, 15)


def employee(created="2024-01-01T09:30:00", on_hold_since=None):
    return SimpleNamespace(created_at=created, on_hold_since=on_hold_since)


def ended(days_ago):
    return SimpleNamespace(end_date=TODAY - timedelta(days=days_ago))


class TestBenchStart:

    def test_latest_past_end_date_wins(self):
        start = bench_start_date(employee(), [ended(40), ended(12)], [ended(20)], TODAY)
        assert start == TODAY - timedelta(days=12)

    def test_future_and_open_end_dates_are_ignored(self):
        records = [SimpleNamespace(end_date=None), SimpleNamespace(end_date=TODAY + timedelta(days=5))]
        assert bench_start_date(employee(), records, [], TODAY) == date(2024, 1, 1)

    def test_falls_back_to_on_hold_date(self):
        assert bench_start_date(employee(on_hold_since="2024-05-01"), today=TODAY) == date(2024, 5, 1)

    def test_falls_back_to_creation_date(self):
        assert bench_start_date(employee(), today=TODAY) == date(2024, 1, 1)

    def test_unknown_start(self):
        assert bench_start_date(employee(created=None), today=TODAY) is None


class TestBenchDays:

    def test_counts_whole_days(self):
        assert bench_days(TODAY - timedelta(days=31), TODAY) == 31

    def test_unknown_or_future_start_is_zero(self):
        assert bench_days(None, TODAY) == 0
        assert bench_days(TODAY + timedelta(days=2), TODAY) == 0


class TestRiskClassification:

    @pytest.mark.parametrize("utilization,days,expected", [
        (0, 46, BenchRisk.crisis),
        (0, 45, BenchRisk.layoff_recommended),
        (0, 31, BenchRisk.layoff_recommended),
        (0, 30, BenchRisk.at_risk),
        (0, 0, BenchRisk.at_risk),
        (1, 90, BenchRisk.underutilized),
        (49, 90, BenchRisk.underutilized),
        (50, 90, BenchRisk.optimal),
        (120, 0, BenchRisk.optimal),
    ])
    def test_thresholds(self, utilization, days, expected):
        assert classify_bench_risk(utilization, days) == expected

    def test_optimal_has_no_label(self):
        assert risk_label(BenchRisk.optimal) is None
        assert risk_label(BenchRisk.crisis) == "Crisis"

    def test_severity(self):
        assert BenchRisk.crisis.severity == "destructive"
        assert BenchRisk.optimal.severity is None
