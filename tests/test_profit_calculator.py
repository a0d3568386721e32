# tests/test_profit_calculator.py
"""Unit tests for the profit calculator (pure functions, no database)."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from types import SimpleNamespace
from datetime import datetime
from dealership.services import profit_calculator as calc


def txn(id, direction, total, date, vehicle_id=1):
    return SimpleNamespace(id=id, vehicle_id=vehicle_id, direction=direction, total_price=total, date=date)


def expense(id, amount, date, vehicle_id=1, category="Repair"):
    return SimpleNamespace(id=id, vehicle_id=vehicle_id, amount=amount, date=date, category=category)


NOW = datetime(2025, 6, 1)


class TestCycles:
    def test_single_cycle_profit_nets_expenses(self):
        txns = [txn(1, "IN", 1_000_000, datetime(2025, 1, 1)), txn(2, "OUT", 1_300_000, datetime(2025, 2, 1))]
        exps = [expense(1, 50_000, datetime(2025, 1, 15))]

        result = calc.calculate_vehicle_profit(1, txns, exps, now=NOW)

        assert result.total_profit == 250_000
        assert result.unrealized_value == 0
        assert len(result.cycles) == 1
        assert result.cycles[0].is_complete

    def test_open_cycle_is_unrealized_not_profit(self):
        txns = [txn(1, "IN", 800_000, datetime(2025, 3, 1))]
        exps = [expense(1, 20_000, datetime(2025, 3, 5))]

        result = calc.calculate_vehicle_profit(1, txns, exps, now=NOW)

        assert result.total_profit == 0
        assert result.unrealized_value == 820_000

    def test_multiple_cycles_paired_chronologically(self):
        txns = [
            txn(3, "IN", 900_000, datetime(2025, 3, 1)),
            txn(1, "IN", 1_000_000, datetime(2025, 1, 1)),
            txn(2, "OUT", 1_100_000, datetime(2025, 2, 1)),
            txn(4, "OUT", 1_000_000, datetime(2025, 4, 1)),
        ]
        cycles = calc.build_cycles(txns, [], now=NOW)

        assert [(c.acquisition.id, c.sale.id) for c in cycles] == [(1, 2), (3, 4)]
        assert calc.calculate_vehicle_profit(1, txns, [], now=NOW).total_profit == 200_000

    def test_expenses_attributed_to_their_own_cycle(self):
        txns = [
            txn(1, "IN", 100, datetime(2025, 1, 1)),
            txn(2, "OUT", 200, datetime(2025, 2, 1)),
            txn(3, "IN", 150, datetime(2025, 3, 1)),
            txn(4, "OUT", 300, datetime(2025, 4, 1)),
        ]
        exps = [expense(1, 10, datetime(2025, 1, 20)), expense(2, 40, datetime(2025, 3, 20))]

        cycles = calc.build_cycles(txns, exps, now=NOW)

        assert cycles[0].profit == 90
        assert cycles[1].profit == 110

    def test_second_in_supersedes_open_cycle(self):
        txns = [
            txn(1, "IN", 500, datetime(2025, 1, 1)),
            txn(2, "IN", 700, datetime(2025, 2, 1)),
        ]
        result = calc.calculate_vehicle_profit(1, txns, [], now=NOW)

        assert len(result.cycles) == 2
        assert result.cycles[0].superseded
        assert not result.cycles[0].is_complete
        assert result.unrealized_value == 700

    def test_out_without_open_cycle_is_ignored(self):
        txns = [txn(1, "OUT", 500, datetime(2025, 1, 1))]
        result = calc.calculate_vehicle_profit(1, txns, [], now=NOW)

        assert result.cycles == []
        assert result.total_profit == 0

    def test_other_vehicles_are_excluded(self):
        txns = [txn(1, "IN", 100, datetime(2025, 1, 1), vehicle_id=2)]
        result = calc.calculate_vehicle_profit(1, txns, [], now=NOW)
        assert result.cycles == []

    def test_latest_ownership_status(self):
        assert calc.latest_ownership_status([]) == "NotOwned"
        assert calc.latest_ownership_status([txn(1, "IN", 1, datetime(2025, 1, 1))]) == "InStock"
        assert calc.latest_ownership_status([
            txn(2, "OUT", 1, datetime(2025, 2, 1)),
            txn(1, "IN", 1, datetime(2025, 1, 1)),
        ]) == "Sold"


class TestPeriodProfit:
    def test_net_profit_sums_window(self):
        txns = [txn(1, "IN", 500_000, datetime(2025, 1, 5)), txn(2, "OUT", 700_000, datetime(2025, 1, 20))]
        pnl = calc.calculate_period_profit(txns, [], datetime(2025, 1, 1), datetime(2025, 1, 31))

        assert pnl.net_profit == 200_000
        assert pnl.to_dict()["transaction_count"] == {"in": 1, "out": 1}

    def test_empty_window_is_all_zero(self):
        txns = [txn(1, "IN", 500_000, datetime(2025, 1, 5))]
        exps = [expense(1, 100, datetime(2025, 1, 6))]
        pnl = calc.calculate_period_profit(txns, exps, datetime(2024, 1, 1), datetime(2024, 1, 31)).to_dict()

        assert pnl["revenue"] == 0
        assert pnl["costs"] == 0
        assert pnl["expenses"] == 0
        assert pnl["net_profit"] == 0

    def test_window_bounds_are_inclusive(self):
        start, end = datetime(2025, 1, 1), datetime(2025, 1, 31, 23, 59, 59)
        txns = [txn(1, "OUT", 10, start), txn(2, "OUT", 20, end)]
        assert calc.calculate_period_profit(txns, [], start, end).revenue == 30


class TestPeriodBreakdown:
    def test_monthly_buckets_clamped_to_end(self):
        buckets = calc.generate_period_breakdown([], [], datetime(2025, 1, 15), datetime(2025, 3, 10), "monthly")

        assert [b["period"] for b in buckets] == ["2025-01", "2025-02", "2025-03"]
        assert buckets[1]["start_date"] == datetime(2025, 2, 1)
        assert buckets[-1]["end_date"] == datetime(2025, 3, 10)

    def test_buckets_do_not_overlap(self):
        txns = [txn(1, "OUT", 100, datetime(2025, 1, 2))]
        buckets = calc.generate_period_breakdown(txns, [], datetime(2025, 1, 1), datetime(2025, 1, 3, 23, 59), "daily")

        assert len(buckets) == 3
        assert sum(b["revenue"] for b in buckets) == 100
        assert buckets[1]["revenue"] == 100

    def test_weekly_labels(self):
        buckets = calc.generate_period_breakdown([], [], datetime(2025, 1, 1), datetime(2025, 1, 20), "weekly")
        assert [b["period"] for b in buckets] == ["Week of 2025-01-01", "Week of 2025-01-08", "Week of 2025-01-15"]

    def test_bucket_count_is_capped(self):
        buckets = calc.generate_period_breakdown([], [], datetime(2020, 1, 1), datetime(2025, 1, 1), "monthly")
        assert len(buckets) == 24

    def test_unknown_period_rejected(self):
        with pytest.raises(ValueError):
            calc.generate_period_breakdown([], [], datetime(2025, 1, 1), datetime(2025, 2, 1), "hourly")


class TestSalePerformance:
    def test_margin_and_days_to_sell(self):
        buy = txn(1, "IN", 1_000_000, datetime(2025, 1, 1))
        sell = txn(2, "OUT", 1_300_000, datetime(2025, 1, 11, 6))
        cycle = calc.build_cycles([buy, sell], [expense(1, 50_000, datetime(2025, 1, 5))], now=NOW)[0]

        perf = calc.sale_performance(sell, cycle, [])

        assert perf["gross_profit"] == 250_000
        assert perf["profit_margin"] == 19.23
        assert perf["days_to_sell"] == 11

    def test_no_matching_purchase_reports_zeros(self):
        sell = txn(2, "OUT", 0, datetime(2025, 1, 11))
        perf = calc.sale_performance(sell, None, [])

        assert perf["purchase_price"] == 0
        assert perf["profit_margin"] == 0
        assert perf["days_to_sell"] == 0

    def test_profit_margin_zero_sale_price(self):
        assert calc.profit_margin(100, 0) == 0

    def test_rank_by_speed_excludes_unknown(self):
        perfs = [
            {"gross_profit": 1, "profit_margin": 1, "sale_price": 1, "days_to_sell": 0},
            {"gross_profit": 2, "profit_margin": 2, "sale_price": 2, "days_to_sell": 30},
            {"gross_profit": 3, "profit_margin": 3, "sale_price": 3, "days_to_sell": 5},
        ]
        assert [p["days_to_sell"] for p in calc.rank_performers(perfs, "speed")] == [5, 30]
        assert [p["gross_profit"] for p in calc.rank_performers(perfs, "profit")] == [3, 2, 1]


class TestInventoryValue:
    def test_only_currently_owned_vehicles_count(self):
        txns = [
            txn(1, "IN", 1000, datetime(2025, 1, 1), vehicle_id=1),
            txn(2, "OUT", 1500, datetime(2025, 2, 1), vehicle_id=1),
            txn(3, "IN", 2000, datetime(2025, 1, 1), vehicle_id=2),
        ]
        exps = [expense(1, 100, datetime(2025, 1, 10), vehicle_id=2)]

        value = calc.calculate_inventory_value(txns, exps)

        assert value["vehicle_count"] == 1
        assert value["total_value"] == 2100
