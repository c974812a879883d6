"""
Income cluster derivation and classification.

Covers the multiplier table shape checks, the lower-inclusive boundary
policy, monotonicity and the display helpers.
"""

from decimal import Decimal

import pytest
from hypothesis import given
from hypothesis import strategies as st

from sitio_kernel.domain.income import (
    INCOME_CLUSTER_MULTIPLIERS,
    Bounded,
    IncomeClassifier,
    IncomeCluster,
    MultiplierTable,
    OpenAbove,
    OpenBelow,
    classify,
    classify_daily,
    cluster_label,
    cluster_ranges,
    count_by_cluster,
    format_peso,
    range_label,
    threshold_description,
    threshold_label,
)
from sitio_kernel.domain.schemas import PovertyThresholdsConfig
from sitio_kernel.exceptions import DomainError


def _thresholds(monthly: str) -> PovertyThresholdsConfig:
    return PovertyThresholdsConfig(
        monthly_threshold=Decimal(monthly),
        reference_year=2023,
        source="PSA",
        description="Family of 5",
    )


incomes = st.decimals(min_value=0, max_value=Decimal("1000000"), places=2)
monthly_thresholds = st.decimals(min_value=Decimal("1"), max_value=Decimal("100000"), places=2)


class TestMultiplierTable:
    def test_default_table_order(self):
        assert INCOME_CLUSTER_MULTIPLIERS.clusters == tuple(IncomeCluster)

    @pytest.mark.parametrize(
        "entries",
        [
            [("a", OpenBelow(Decimal(1)))],
            [("a", Bounded(Decimal(0), Decimal(1))), ("b", OpenAbove(Decimal(1)))],
            [("a", OpenBelow(Decimal(1))), ("b", Bounded(Decimal(1), Decimal(2)))],
            [("a", OpenBelow(Decimal(1))), ("b", OpenAbove(Decimal(2)))],
            [
                ("a", OpenBelow(Decimal(1))),
                ("b", Bounded(Decimal(1), Decimal(1))),
                ("c", OpenAbove(Decimal(1))),
            ],
            [("a", OpenBelow(Decimal(1))), ("a", OpenAbove(Decimal(1)))],
            [("a", OpenBelow(Decimal(0))), ("b", OpenAbove(Decimal(0)))],
            [
                ("a", OpenBelow(Decimal(1))),
                ("b", OpenBelow(Decimal(2))),
                ("c", OpenAbove(Decimal(2))),
            ],
        ],
        ids=[
            "single",
            "no-open-below",
            "no-open-above",
            "gap",
            "empty-bounded",
            "duplicate-name",
            "zero-width-first",
            "two-open-below",
        ],
    )
    def test_malformed_tables_rejected(self, entries):
        with pytest.raises(ValueError):
            MultiplierTable(entries)

    def test_custom_table(self, thresholds_9000):
        classifier = IncomeClassifier(
            MultiplierTable([("below", OpenBelow(Decimal(1))), ("above", OpenAbove(Decimal(1)))])
        )
        assert classifier.classify_daily(Decimal("299.99"), thresholds_9000) == "below"
        assert classifier.classify_daily(300, thresholds_9000) == "above"
        assert classifier.rank("above") == 1


class TestClusterRanges:
    def test_ranges_for_9000(self, thresholds_9000):
        ranges = cluster_ranges(thresholds_9000)

        assert [r.cluster for r in ranges] == list(IncomeCluster)
        assert ranges[0].lower_bound_inclusive is None
        assert ranges[0].upper_bound_exclusive == Decimal(300)
        assert ranges[1].lower_bound_inclusive == Decimal(300)
        assert ranges[1].upper_bound_exclusive == Decimal(600)
        assert ranges[-1].lower_bound_inclusive == Decimal(6000)
        assert ranges[-1].upper_bound_exclusive is None

    @given(monthly=monthly_thresholds)
    def test_ranges_are_contiguous(self, monthly):
        ranges = cluster_ranges(_thresholds(str(monthly)))
        for current, following in zip(ranges, ranges[1:]):
            assert current.upper_bound_exclusive == following.lower_bound_inclusive
            assert current.rank + 1 == following.rank

    def test_non_positive_threshold_rejected(self):
        with pytest.raises(DomainError):
            cluster_ranges(_thresholds("0"))


class TestClassify:
    def test_daily_boundary_belongs_to_higher_cluster(self, thresholds_9000):
        assert classify_daily(300, thresholds_9000) is IncomeCluster.LOW_INCOME
        assert classify_daily(Decimal("299.99"), thresholds_9000) is IncomeCluster.POOR
        assert classify_daily(6000, thresholds_9000) is IncomeCluster.RICH

    def test_monthly_boundary(self, thresholds_9000):
        assert classify(9000, thresholds_9000) is IncomeCluster.LOW_INCOME
        assert classify(Decimal("8999.70"), thresholds_9000) is IncomeCluster.POOR
        assert classify(0, thresholds_9000) is IncomeCluster.POOR

    def test_boundary_exact_for_repeating_daily_threshold(self):
        # 20000 / 30 has no finite decimal expansion
        thresholds = _thresholds("20000")
        assert classify(20000, thresholds) is IncomeCluster.LOW_INCOME
        assert classify(Decimal("19999.99"), thresholds) is IncomeCluster.POOR
        assert classify(40000, thresholds) is IncomeCluster.LOWER_MIDDLE

    def test_float_input(self, thresholds_9000):
        assert classify_daily(450.5, thresholds_9000) is IncomeCluster.LOW_INCOME

    @pytest.mark.parametrize("value", [-1, Decimal("-0.01"), float("nan"), float("inf"), "abc", None, True])
    def test_invalid_income_rejected(self, thresholds_9000, value):
        with pytest.raises(DomainError) as exc_info:
            classify(value, thresholds_9000)
        assert exc_info.value.code == "DOMAIN_INPUT_INVALID"
        assert exc_info.value.field == "monthly_income"

    def test_range_contains_float_income(self, thresholds_9000):
        ranges = cluster_ranges(thresholds_9000)
        assert [r.cluster for r in ranges if r.contains(450.5)] == [IncomeCluster.LOW_INCOME]
        assert ranges[0].contains(299.99)
        assert not ranges[0].contains(300.0)

    @pytest.mark.parametrize("value", [-1, float("nan"), "abc", None, True])
    def test_range_rejects_invalid_income(self, thresholds_9000, value):
        with pytest.raises(DomainError) as exc_info:
            cluster_ranges(thresholds_9000)[0].contains(value)
        assert exc_info.value.field == "daily_income"

    @given(income=incomes, monthly=monthly_thresholds)
    def test_exactly_one_range_contains_daily_income(self, income, monthly):
        thresholds = _thresholds(str(monthly))
        containing = [r for r in cluster_ranges(thresholds) if r.contains(income)]
        assert len(containing) == 1
        assert containing[0].cluster == classify_daily(income, thresholds)

    @given(a=incomes, b=incomes, monthly=monthly_thresholds)
    def test_monotonic(self, a, b, monthly):
        thresholds = _thresholds(str(monthly))
        low, high = sorted((a, b))
        classifier = IncomeClassifier()
        assert classifier.rank(classify(low, thresholds)) <= classifier.rank(
            classify(high, thresholds)
        )

    def test_count_by_cluster(self, thresholds_9000):
        counts = count_by_cluster([100, 300, 301, 7000], thresholds_9000)

        assert counts[IncomeCluster.POOR] == 1
        assert counts[IncomeCluster.LOW_INCOME] == 2
        assert counts[IncomeCluster.RICH] == 1
        assert counts[IncomeCluster.MIDDLE_MIDDLE] == 0
        assert len(counts) == len(IncomeCluster)


class TestLabels:
    def test_format_peso(self):
        assert format_peso(Decimal("6000")) == "₱6,000.00"
        assert format_peso(Decimal("400.995")) == "₱401.00"

    def test_range_labels(self, thresholds_9000):
        assert range_label(IncomeCluster.POOR, thresholds_9000) == "<₱300.00/day"
        assert range_label(IncomeCluster.LOW_INCOME, thresholds_9000) == "₱300.00–₱600.00/day"
        assert range_label(IncomeCluster.RICH, thresholds_9000) == "≥₱6,000.00/day"

    def test_cluster_labels(self):
        assert cluster_label(IncomeCluster.LOW_INCOME) == "Low-Income (Not Poor)"
        assert cluster_label(IncomeCluster.LOW_INCOME, short=True) == "Low-Income"

    def test_threshold_text(self):
        thresholds = _thresholds("12030")
        assert threshold_label(thresholds) == "₱401.00/day"
        assert threshold_description(thresholds) == (
            "Based on 2023 PSA poverty threshold of ₱401.00/day "
            "(₱12,030/month) for a family of 5"
        )
