# dealership/services/profit_calculator.py
"""
Profit and P&L arithmetic over already-fetched transactions and expenses.

Nothing here touches the database. Inputs are any objects exposing the
Transaction / Expense attributes (ORM rows in production, simple stand-ins
in tests):

  transaction: id, vehicle_id, direction ("IN" | "OUT"), date, total_price
  expense:     id, vehicle_id, category, amount, date

Cycle matching:
  Transactions of one vehicle are walked in date order (ties by id).
  An IN opens a cycle; the next OUT closes it. An IN arriving while a cycle
  is still open supersedes it (the earlier purchase stays listed as an
  incomplete cycle but no longer counts as stock). An OUT with no open
  cycle has nothing to pair with and is ignored.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, Optional

PERIOD_TYPES = ("daily", "weekly", "monthly")
MAX_BUCKETS = {"daily": 366, "weekly": 53, "monthly": 24}
SORT_KEYS = ("profit", "margin", "revenue", "speed")


@dataclass
class VehicleCycle:
    acquisition: object
    sale: Optional[object] = None
    expenses: list = field(default_factory=list)
    superseded: bool = False

    @property
    def is_complete(self) -> bool:
        return self.sale is not None

    @property
    def total_expenses(self) -> float:
        return sum(e.amount for e in self.expenses)

    @property
    def profit(self) -> Optional[float]:
        if not self.is_complete:
            return None
        return self.sale.total_price - self.acquisition.total_price - self.total_expenses

    @property
    def cost_basis(self) -> float:
        return self.acquisition.total_price + self.total_expenses

    @property
    def days_held(self) -> Optional[int]:
        if not self.is_complete:
            return None
        return days_between(self.acquisition.date, self.sale.date)

    def to_dict(self) -> dict:
        return {
            "acquisition_transaction_id": self.acquisition.id,
            "sale_transaction_id": self.sale.id if self.sale else None,
            "purchase_price": self.acquisition.total_price,
            "sale_price": self.sale.total_price if self.sale else None,
            "acquisition_date": self.acquisition.date,
            "sale_date": self.sale.date if self.sale else None,
            "expenses": [
                {"id": e.id, "category": e.category, "amount": e.amount, "date": e.date}
                for e in self.expenses
            ],
            "total_expenses": self.total_expenses,
            "profit": self.profit,
            "days_held": self.days_held,
            "is_complete": self.is_complete,
            "superseded": self.superseded,
        }


@dataclass
class VehicleProfit:
    vehicle_id: int
    cycles: list
    total_profit: float
    unrealized_value: float

    def to_dict(self) -> dict:
        return {
            "vehicle_id": self.vehicle_id,
            "cycles": [c.to_dict() for c in self.cycles],
            "total_profit": self.total_profit,
            "unrealized_value": self.unrealized_value,
        }


@dataclass
class PeriodProfit:
    revenue: float = 0.0
    costs: float = 0.0
    expenses: float = 0.0
    in_count: int = 0
    out_count: int = 0

    @property
    def net_profit(self) -> float:
        return self.revenue - self.costs - self.expenses

    def to_dict(self) -> dict:
        return {
            "revenue": self.revenue,
            "costs": self.costs,
            "expenses": self.expenses,
            "net_profit": self.net_profit,
            "transaction_count": {"in": self.in_count, "out": self.out_count},
        }


# ── Small helpers ────────────────────────────────────────────────────────────

def days_between(start: datetime, end: datetime) -> int:
    """Whole days from start to end, rounded up (a sale later the same day counts as 1)."""
    return math.ceil((end - start).total_seconds() / 86400)


def profit_margin(gross_profit: float, sale_price: float) -> float:
    """Margin as a percentage of the sale price, 2 decimals. 0 when there is no sale price."""
    if not sale_price or sale_price <= 0:
        return 0.0
    return round(gross_profit / sale_price * 100, 2)


def _in_window(when: datetime, start: Optional[datetime], end: Optional[datetime]) -> bool:
    if start is not None and when < start:
        return False
    if end is not None and when > end:
        return False
    return True


def _chronological(transactions: Iterable) -> list:
    return sorted(transactions, key=lambda t: (t.date, t.id or 0))


# ── Per-vehicle ──────────────────────────────────────────────────────────────

def build_cycles(transactions: Iterable, expenses: Iterable, now: Optional[datetime] = None) -> list:
    """Pair one vehicle's IN/OUT transactions into ownership cycles."""
    now = now or datetime.utcnow()
    expenses = list(expenses)
    cycles = []
    current = None

    for txn in _chronological(transactions):
        if txn.direction == "IN":
            if current is not None:
                current.superseded = True
                current.expenses = [e for e in expenses if _in_window(e.date, current.acquisition.date, txn.date)]
                cycles.append(current)
            current = VehicleCycle(acquisition=txn)
        elif txn.direction == "OUT" and current is not None:
            current.sale = txn
            current.expenses = [e for e in expenses if _in_window(e.date, current.acquisition.date, txn.date)]
            cycles.append(current)
            current = None

    if current is not None:
        current.expenses = [e for e in expenses if _in_window(e.date, current.acquisition.date, now)]
        cycles.append(current)

    return cycles


def calculate_vehicle_profit(vehicle_id: int, transactions: Iterable, expenses: Iterable,
                             now: Optional[datetime] = None) -> VehicleProfit:
    """
    Realized profit over completed cycles plus the cost basis of the vehicle
    if it is still held (unrealized value, never counted as profit).
    """
    own_txns = [t for t in transactions if t.vehicle_id == vehicle_id]
    own_expenses = [e for e in expenses if e.vehicle_id == vehicle_id]
    cycles = build_cycles(own_txns, own_expenses, now=now)

    total_profit = sum(c.profit for c in cycles if c.is_complete)
    open_cycles = [c for c in cycles if not c.is_complete and not c.superseded]
    unrealized = sum(c.cost_basis for c in open_cycles)

    return VehicleProfit(vehicle_id=vehicle_id, cycles=cycles,
                         total_profit=total_profit, unrealized_value=unrealized)


def calculate_portfolio_profit(vehicle_ids: Iterable[int], transactions: Iterable,
                               expenses: Iterable, now: Optional[datetime] = None) -> dict:
    transactions = list(transactions)
    expenses = list(expenses)
    results = [calculate_vehicle_profit(vid, transactions, expenses, now=now) for vid in vehicle_ids]
    return {
        "total_profit": sum(r.total_profit for r in results),
        "total_unrealized_value": sum(r.unrealized_value for r in results),
        "vehicle_profits": results,
    }


def latest_ownership_status(transactions: Iterable) -> str:
    """Status implied by the most recent transaction: IN → InStock, OUT → Sold, none → NotOwned."""
    ordered = _chronological(transactions)
    if not ordered:
        return "NotOwned"
    return "InStock" if ordered[-1].direction == "IN" else "Sold"


def calculate_inventory_value(transactions: Iterable, expenses: Iterable) -> dict:
    """Cost basis of every vehicle whose latest transaction is a purchase."""
    by_vehicle = {}
    for txn in _chronological(transactions):
        if txn.direction == "IN":
            by_vehicle[txn.vehicle_id] = txn
        elif txn.direction == "OUT":
            by_vehicle.pop(txn.vehicle_id, None)

    details = []
    for vehicle_id, acquisition in by_vehicle.items():
        spent = sum(e.amount for e in expenses
                    if e.vehicle_id == vehicle_id and e.date >= acquisition.date)
        details.append({
            "vehicle_id": vehicle_id,
            "acquisition_cost": acquisition.total_price,
            "expenses": spent,
            "total_value": acquisition.total_price + spent,
        })

    return {
        "total_value": sum(d["total_value"] for d in details),
        "vehicle_count": len(details),
        "details": details,
    }


# ── Periods ──────────────────────────────────────────────────────────────────

def calculate_period_profit(transactions: Iterable, expenses: Iterable,
                            start: datetime, end: datetime) -> PeriodProfit:
    """Flat P&L sums for everything dated inside [start, end]. No cycle matching."""
    result = PeriodProfit()
    for txn in transactions:
        if not _in_window(txn.date, start, end):
            continue
        if txn.direction == "OUT":
            result.revenue += txn.total_price
            result.out_count += 1
        elif txn.direction == "IN":
            result.costs += txn.total_price
            result.in_count += 1
    for expense in expenses:
        if _in_window(expense.date, start, end):
            result.expenses += expense.amount
    return result


def _next_bucket_start(current: datetime, period: str) -> datetime:
    if period == "daily":
        return current + timedelta(days=1)
    if period == "weekly":
        return current + timedelta(days=7)
    if current.month == 12:
        return datetime(current.year + 1, 1, 1)
    return datetime(current.year, current.month + 1, 1)


def _bucket_label(start: datetime, period: str) -> str:
    if period == "daily":
        return start.strftime("%Y-%m-%d")
    if period == "weekly":
        return f"Week of {start.strftime('%Y-%m-%d')}"
    return start.strftime("%Y-%m")


def generate_period_breakdown(transactions: Iterable, expenses: Iterable,
                              start: datetime, end: datetime, period: str = "monthly") -> list:
    """
    Split [start, end] into consecutive daily / weekly / monthly buckets and
    sum P&L per bucket. Buckets never overlap and the last one is clamped to end.
    The number of buckets is capped (366 days, 53 weeks, 24 months).
    """
    if period not in PERIOD_TYPES:
        raise ValueError(f"Unknown period '{period}'")

    transactions = list(transactions)
    expenses = list(expenses)
    buckets = []
    current = start

    while current <= end and len(buckets) < MAX_BUCKETS[period]:
        next_start = _next_bucket_start(current, period)
        bucket_end = min(next_start - timedelta(microseconds=1), end)
        pnl = calculate_period_profit(transactions, expenses, current, bucket_end)
        buckets.append({
            "period": _bucket_label(current, period),
            "start_date": current,
            "end_date": bucket_end,
            **pnl.to_dict(),
        })
        current = next_start

    return buckets


def expenses_by_category(expenses: Iterable) -> dict:
    totals = {}
    for expense in expenses:
        totals[expense.category] = totals.get(expense.category, 0) + expense.amount
    return totals


# ── Sale performance / rankings ──────────────────────────────────────────────

def sale_performance(sale, cycle: Optional[VehicleCycle], vehicle_expenses: Iterable) -> dict:
    """
    Profit figures for one OUT transaction. With no matching purchase the
    purchase price and days-to-sell are 0 and every vehicle expense up to the
    sale date is charged against it.
    """
    if cycle is not None:
        purchase = cycle.acquisition
        spent = cycle.total_expenses
    else:
        purchase = None
        spent = sum(e.amount for e in vehicle_expenses if e.date <= sale.date)

    purchase_price = purchase.total_price if purchase else 0
    gross = sale.total_price - purchase_price - spent
    return {
        "vehicle_id": sale.vehicle_id,
        "transaction_id": sale.id,
        "purchase_price": purchase_price,
        "sale_price": sale.total_price,
        "total_expenses": spent,
        "gross_profit": gross,
        "profit_margin": profit_margin(gross, sale.total_price),
        "purchase_date": purchase.date if purchase else None,
        "sale_date": sale.date,
        "days_to_sell": days_between(purchase.date, sale.date) if purchase else 0,
    }


def rank_performers(performances: list, sort_by: str = "profit") -> list:
    """Order sale performances. 'speed' keeps only sales with a known, positive days_to_sell."""
    if sort_by == "margin":
        return sorted(performances, key=lambda p: p["profit_margin"], reverse=True)
    if sort_by == "revenue":
        return sorted(performances, key=lambda p: p["sale_price"], reverse=True)
    if sort_by == "speed":
        return sorted((p for p in performances if p["days_to_sell"] > 0), key=lambda p: p["days_to_sell"])
    return sorted(performances, key=lambda p: p["gross_profit"], reverse=True)


def summarize_performances(performances: list) -> dict:
    count = len(performances)
    timed = [p["days_to_sell"] for p in performances if p["days_to_sell"] > 0]
    total_profit = sum(p["gross_profit"] for p in performances)
    return {
        "total_vehicles": count,
        "total_revenue": sum(p["sale_price"] for p in performances),
        "total_profit": total_profit,
        "average_profit": total_profit / count if count else 0,
        "average_margin": sum(p["profit_margin"] for p in performances) / count if count else 0,
        "average_days_to_sell": sum(timed) / len(timed) if timed else 0,
    }
