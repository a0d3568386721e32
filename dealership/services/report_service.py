# dealership/services/report_service.py
"""
Reporting: fetches active transactions/expenses for a window and hands
them to profit_calculator. Every function returns plain dicts ready for
JSON encoding.

Used by the reports, analytics, stats and vehicles routers.
"""

import csv
import html
import io
from datetime import datetime, time
from typing import Optional

from fpdf import FPDF
from sqlalchemy.orm import Session

from dealership.config import settings
from dealership.models.expense import Expense
from dealership.models.person import Person
from dealership.models.transaction import Transaction
from dealership.models.vehicle import Vehicle
from dealership.schemas.common import PersonSummary, VehicleSummary
from dealership.schemas.transaction import TransactionOut
from dealership.services import crud
from dealership.services import profit_calculator as calc
from dealership.services.vehicle_service import get_vehicle
from dealership.utils.logger import get_logger

logger = get_logger(__name__)


# ── Helpers ──────────────────────────────────────────────────────────────────

def end_of_day(value: datetime) -> datetime:
    """A bare date (midnight) as an upper bound means the whole of that day."""
    if value.time() == time(0, 0):
        return value.replace(hour=23, minute=59, second=59, microsecond=999999)
    return value


def format_currency(amount: float) -> str:
    return f"{settings.CURRENCY_PREFIX} {amount:,.2f}"


def _transactions(db: Session, start=None, end=None, vehicle_ids=None, direction=None) -> list:
    q = crud.active(db.query(Transaction), Transaction)
    if start is not None:
        q = q.filter(Transaction.date >= start)
    if end is not None:
        q = q.filter(Transaction.date <= end)
    if vehicle_ids is not None:
        q = q.filter(Transaction.vehicle_id.in_(vehicle_ids))
    if direction:
        q = q.filter(Transaction.direction == direction)
    return q.order_by(Transaction.date.asc(), Transaction.id.asc()).all()


def _expenses(db: Session, start=None, end=None, vehicle_ids=None) -> list:
    q = crud.active(db.query(Expense), Expense)
    if start is not None:
        q = q.filter(Expense.date >= start)
    if end is not None:
        q = q.filter(Expense.date <= end)
    if vehicle_ids is not None:
        q = q.filter(Expense.vehicle_id.in_(vehicle_ids))
    return q.order_by(Expense.date.asc()).all()


def _vehicle_summary(vehicle) -> Optional[dict]:
    return VehicleSummary.model_validate(vehicle).model_dump() if vehicle is not None else None


def _person_summary(person) -> Optional[dict]:
    return PersonSummary.model_validate(person).model_dump() if person is not None else None


def _counterparty_name(transaction) -> str:
    return transaction.counterparty.display_name if transaction.counterparty else "Unknown"


# ── P&L ──────────────────────────────────────────────────────────────────────

def pnl_report(db: Session, start: datetime, end: datetime, period: str = "monthly") -> dict:
    end = end_of_day(end)
    transactions = _transactions(db, start, end)
    expenses = _expenses(db, start, end)

    overall = calc.calculate_period_profit(transactions, expenses, start, end)
    return {
        "period": {"start_date": start, "end_date": end, "period_type": period},
        "overall": overall.to_dict(),
        "breakdown": calc.generate_period_breakdown(transactions, expenses, start, end, period),
        "expenses_by_category": calc.expenses_by_category(expenses),
    }


def profit_per_vehicle(db: Session, vehicle_id: int = None, start: datetime = None,
                       end: datetime = None) -> dict:
    """Cycle-matched profit per vehicle. The date window applies only when both bounds are given."""
    if vehicle_id is not None:
        vehicles = [get_vehicle(db, vehicle_id)]
    else:
        vehicles = crud.active(db.query(Vehicle), Vehicle).order_by(Vehicle.id.asc()).all()

    ids = [v.id for v in vehicles]
    if start is not None and end is not None:
        end = end_of_day(end)
        transactions = _transactions(db, start, end, vehicle_ids=ids)
        expenses = _expenses(db, start, end, vehicle_ids=ids)
    else:
        transactions = _transactions(db, vehicle_ids=ids)
        expenses = _expenses(db, vehicle_ids=ids)

    portfolio = calc.calculate_portfolio_profit(ids, transactions, expenses)
    data = []
    for vehicle, result in zip(vehicles, portfolio["vehicle_profits"]):
        data.append({"vehicle": _vehicle_summary(vehicle), **result.to_dict()})

    return {
        "data": data,
        "summary": {
            "total_vehicles": len(vehicles),
            "total_profit": portfolio["total_profit"],
            "total_unrealized_value": portfolio["total_unrealized_value"],
        },
    }


# ── Sale performance ─────────────────────────────────────────────────────────

def _sale_performances(db: Session, sales: list) -> list:
    """Match each OUT against its vehicle's full cycle history."""
    if not sales:
        return []
    vehicle_ids = sorted({s.vehicle_id for s in sales})
    transactions = _transactions(db, vehicle_ids=vehicle_ids)
    expenses = _expenses(db, vehicle_ids=vehicle_ids)

    cycle_for_sale = {}
    for vid in vehicle_ids:
        own_expenses = [e for e in expenses if e.vehicle_id == vid]
        own_txns = [t for t in transactions if t.vehicle_id == vid]
        for cycle in calc.build_cycles(own_txns, own_expenses):
            if cycle.sale is not None:
                cycle_for_sale[cycle.sale.id] = cycle

    performances = []
    for sale in sales:
        own_expenses = [e for e in expenses if e.vehicle_id == sale.vehicle_id]
        perf = calc.sale_performance(sale, cycle_for_sale.get(sale.id), own_expenses)
        perf["vehicle"] = _vehicle_summary(sale.vehicle)
        perf["customer"] = _person_summary(sale.counterparty)
        performances.append(perf)
    return performances


def _period_start(period: str, now: datetime) -> Optional[datetime]:
    if period == "month":
        return datetime(now.year, now.month, 1)
    if period == "year":
        return datetime(now.year, 1, 1)
    return None


def top_performers(db: Session, limit: int = 10, sort_by: str = "profit", period: str = "all") -> dict:
    sales = _transactions(db, start=_period_start(period, datetime.utcnow()), direction="OUT")
    performances = _sale_performances(db, sales)
    ranked = calc.rank_performers(performances, sort_by)
    return {
        "summary": calc.summarize_performances(performances),
        "top_performers": ranked[:limit],
        "sort_by": sort_by,
        "period": period,
        "total": len(performances),
    }


# ── Income ───────────────────────────────────────────────────────────────────

def vehicle_income(db: Session, vehicle_id: int) -> dict:
    """Income for the vehicle's most recent ownership cycle."""
    get_vehicle(db, vehicle_id)
    transactions = _transactions(db, vehicle_ids=[vehicle_id])
    expenses = _expenses(db, vehicle_ids=[vehicle_id])
    cycles = calc.build_cycles(transactions, expenses)

    if not cycles:
        return {
            "vehicle_id": vehicle_id, "purchase_price": 0, "sale_price": 0, "total_expenses": 0,
            "gross_profit": 0, "profit_margin": 0, "is_sold": False,
            "purchase_date": None, "sale_date": None,
        }

    latest = cycles[-1]
    if latest.is_complete:
        perf = calc.sale_performance(latest.sale, latest, expenses)
        return {**perf, "is_sold": True}

    return {
        "vehicle_id": vehicle_id,
        "purchase_price": latest.acquisition.total_price,
        "sale_price": 0,
        "total_expenses": latest.total_expenses,
        "gross_profit": -latest.cost_basis,
        "profit_margin": 0,
        "is_sold": False,
        "purchase_date": latest.acquisition.date,
        "sale_date": None,
    }


def period_income(db: Session, start: datetime = None, end: datetime = None) -> dict:
    """Income over every sale in [start, end]; all sales when no window is given."""
    if end is not None:
        end = end_of_day(end)
    sales = _transactions(db, start, end, direction="OUT")
    performances = _sale_performances(db, sales)

    total_revenue = sum(p["sale_price"] for p in performances)
    total_profit = sum(p["gross_profit"] for p in performances)
    count = len(performances)
    return {
        "period": {"start_date": start, "end_date": end} if start or end else {"all": True},
        "total_revenue": total_revenue,
        "total_profit": total_profit,
        "average_profit": total_profit / count if count else 0,
        "total_sales": count,
        "average_profit_margin": total_profit / total_revenue * 100 if total_revenue > 0 else 0,
        "vehicles": performances,
    }


# ── Dashboard ────────────────────────────────────────────────────────────────

def quick_stats(db: Session) -> dict:
    now = datetime.utcnow()
    month_start = datetime(now.year, now.month, 1)
    active_txns = crud.active(db.query(Transaction), Transaction)

    return {
        "total_vehicles": crud.active(db.query(Vehicle), Vehicle).count(),
        "this_month_sales": active_txns.filter(Transaction.direction == "OUT",
                                               Transaction.date >= month_start).count(),
        "total_customers": crud.active(db.query(Person), Person).count(),
        "total_transactions": active_txns.count(),
        "inventory_value": calc.calculate_inventory_value(_transactions(db), _expenses(db))["total_value"],
    }


def vehicle_history(db: Session, vehicle_id: int) -> dict:
    vehicle = get_vehicle(db, vehicle_id)
    transactions = _transactions(db, vehicle_ids=[vehicle_id])
    expenses = _expenses(db, vehicle_ids=[vehicle_id])
    cycles = calc.build_cycles(transactions, expenses)

    completed = []
    for number, cycle in enumerate((c for c in cycles if c.is_complete), start=1):
        completed.append({
            "cycle_number": number,
            "buy_transaction_id": cycle.acquisition.id,
            "sell_transaction_id": cycle.sale.id,
            "purchase_price": cycle.acquisition.total_price,
            "sale_price": cycle.sale.total_price,
            "total_expenses": cycle.total_expenses,
            "profit": cycle.profit,
            "duration": cycle.days_held,
            "counterparty_buy": _counterparty_name(cycle.acquisition),
            "counterparty_sell": _counterparty_name(cycle.sale),
        })

    open_cycle = next((c for c in cycles if not c.is_complete and not c.superseded), None)
    total_profit = sum(c["profit"] for c in completed)
    count = len(completed)

    return {
        "vehicle": {**_vehicle_summary(vehicle), "ownership_status": vehicle.ownership_status},
        "cycles": completed,
        "incomplete_cycle": {
            "buy_transaction_id": open_cycle.acquisition.id,
            "purchase_price": open_cycle.acquisition.total_price,
            "total_expenses": open_cycle.total_expenses,
            "counterparty_buy": _counterparty_name(open_cycle.acquisition),
        } if open_cycle else None,
        "summary": {
            "total_cycles": count,
            "total_transactions": len(transactions),
            "total_profit": total_profit,
            "average_profit": total_profit / count if count else 0,
            "average_duration": round(sum(c["duration"] for c in completed) / count) if count else 0,
            "current_status": vehicle.ownership_status,
        },
        "all_transactions": [TransactionOut.model_validate(t).model_dump() for t in transactions],
    }


# ── Export ───────────────────────────────────────────────────────────────────

def _vehicle_label(transaction) -> str:
    v = transaction.vehicle
    if v is None:
        return "Unknown Vehicle"
    return f"{v.make} {v.vehicle_model} ({v.registration_number})"


def _export_csv(transactions, expenses, pnl, start, end) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(["Vehicle Sales Report"])
    writer.writerow([f"Period: {start:%Y-%m-%d} - {end:%Y-%m-%d}"])
    writer.writerow([])
    writer.writerow(["SUMMARY"])
    writer.writerow(["Total Revenue", format_currency(pnl.revenue)])
    writer.writerow(["Total Costs", format_currency(pnl.costs)])
    writer.writerow(["Total Expenses", format_currency(pnl.expenses)])
    writer.writerow(["Net Profit", format_currency(pnl.net_profit)])
    writer.writerow(["Vehicles Sold", pnl.out_count])
    writer.writerow(["Vehicles Purchased", pnl.in_count])
    writer.writerow([])
    writer.writerow(["TRANSACTIONS"])
    writer.writerow(["Date", "Type", "Vehicle", "Counterparty", "Amount"])
    for t in transactions:
        writer.writerow([f"{t.date:%Y-%m-%d}", "Sale" if t.direction == "OUT" else "Purchase",
                         _vehicle_label(t), _counterparty_name(t), format_currency(t.total_price)])
    writer.writerow([])
    writer.writerow(["EXPENSES"])
    writer.writerow(["Date", "Category", "Description", "Amount"])
    for e in expenses:
        writer.writerow([f"{e.date:%Y-%m-%d}", e.category, e.description, format_currency(e.amount)])
    return buffer.getvalue()


def _html_rows(rows) -> str:
    return "\n".join(
        "<tr>" + "".join(f"<td>{html.escape(str(cell))}</td>" for cell in row) + "</tr>"
        for row in rows
    )


def _export_html(transactions, expenses, pnl, start, end) -> str:
    summary = [
        ("Total Revenue", format_currency(pnl.revenue)),
        ("Total Costs", format_currency(pnl.costs)),
        ("Total Expenses", format_currency(pnl.expenses)),
        ("Net Profit", format_currency(pnl.net_profit)),
        ("Vehicles Sold", pnl.out_count),
        ("Vehicles Purchased", pnl.in_count),
    ]
    txn_rows = [(f"{t.date:%Y-%m-%d}", "Sale" if t.direction == "OUT" else "Purchase",
                 _vehicle_label(t), _counterparty_name(t), format_currency(t.total_price))
                for t in transactions]
    exp_rows = [(f"{e.date:%Y-%m-%d}", e.category, e.description, format_currency(e.amount))
                for e in expenses]

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <title>Vehicle Sales Report</title>
  <style>
    body {{ font-family: Arial, sans-serif; padding: 20px; font-size: 12px; }}
    table {{ width: 100%; border-collapse: collapse; margin-bottom: 24px; }}
    th, td {{ border: 1px solid #dee2e6; padding: 6px; text-align: left; }}
    th {{ background: #f8f9fa; }}
  </style>
</head>
<body>
  <h1>Vehicle Sales Report</h1>
  <p>Period: {start:%Y-%m-%d} - {end:%Y-%m-%d}</p>
  <h2>Summary</h2>
  <table>
{_html_rows(summary)}
  </table>
  <h2>Transactions</h2>
  <table>
    <tr><th>Date</th><th>Type</th><th>Vehicle</th><th>Counterparty</th><th>Amount</th></tr>
{_html_rows(txn_rows)}
  </table>
  <h2>Expenses</h2>
  <table>
    <tr><th>Date</th><th>Category</th><th>Description</th><th>Amount</th></tr>
{_html_rows(exp_rows)}
  </table>
</body>
</html>
"""


PDF_FONT = "Helvetica"


def _latin1(value) -> str:
    """Core PDF fonts only cover Latin-1; anything else becomes '?'."""
    return str(value).encode("latin-1", errors="replace").decode("latin-1")


class ReportPDF(FPDF):
    """Portrait A4 sales report with a title header and page numbers."""

    def __init__(self, period_label: str):
        super().__init__(orientation="P", unit="mm", format="A4")
        self.period_label = period_label

    def header(self):
        self.set_font(PDF_FONT, "B", 14)
        self.cell(0, 8, "Vehicle Sales Report", align="C", new_x="LMARGIN", new_y="NEXT")
        self.set_font(PDF_FONT, "", 9)
        self.cell(0, 5, _latin1(self.period_label), align="C", new_x="LMARGIN", new_y="NEXT")
        self.ln(4)

    def footer(self):
        self.set_y(-15)
        self.set_font(PDF_FONT, "", 7)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="C")

    def section(self, title: str):
        self.set_font(PDF_FONT, "B", 11)
        self.cell(0, 7, title, new_x="LMARGIN", new_y="NEXT")

    def table(self, headers, widths, rows, right_align_last=True):
        self.set_font(PDF_FONT, "B", 8)
        self.set_fill_color(248, 249, 250)
        for header, width in zip(headers, widths):
            self.cell(width, 6, header, border=1, fill=True)
        self.ln()
        self.set_font(PDF_FONT, "", 8)
        for row in rows:
            for i, (cell, width) in enumerate(zip(row, widths)):
                align = "R" if right_align_last and i == len(widths) - 1 else "L"
                # Truncate to keep each row on one line
                text = _latin1(cell)[: int(width / 1.7)]
                self.cell(width, 5, text, border=1, align=align)
            self.ln()
        self.ln(4)


def _export_pdf(transactions, expenses, pnl, start, end) -> bytes:
    pdf = ReportPDF(f"Period: {start:%Y-%m-%d} - {end:%Y-%m-%d}")
    pdf.alias_nb_pages()
    pdf.set_auto_page_break(auto=True, margin=20)
    pdf.add_page()

    pdf.section("Summary")
    pdf.table(["Metric", "Value"], [120, 70], [
        ("Total Revenue", format_currency(pnl.revenue)),
        ("Total Costs", format_currency(pnl.costs)),
        ("Total Expenses", format_currency(pnl.expenses)),
        ("Net Profit", format_currency(pnl.net_profit)),
        ("Vehicles Sold", pnl.out_count),
        ("Vehicles Purchased", pnl.in_count),
    ])

    pdf.section("Transactions")
    pdf.table(["Date", "Type", "Vehicle", "Counterparty", "Amount"], [24, 22, 64, 46, 34],
              [(f"{t.date:%Y-%m-%d}", "Sale" if t.direction == "OUT" else "Purchase",
                _vehicle_label(t), _counterparty_name(t), format_currency(t.total_price))
               for t in transactions])

    pdf.section("Expenses")
    pdf.table(["Date", "Category", "Description", "Amount"], [24, 28, 104, 34],
              [(f"{e.date:%Y-%m-%d}", e.category, e.description, format_currency(e.amount))
               for e in expenses])

    return bytes(pdf.output())


EXPORT_RENDERERS = {"csv": _export_csv, "html": _export_html, "pdf": _export_pdf}
EXPORT_MEDIA_TYPES = {"csv": "text/csv", "html": "text/html", "pdf": "application/pdf"}


def export_report(db: Session, start: datetime, end: datetime, fmt: str = "csv"):
    """Returns (content, media_type, filename)."""
    end = end_of_day(end)
    transactions = _transactions(db, start, end)
    expenses = _expenses(db, start, end)
    pnl = calc.calculate_period_profit(transactions, expenses, start, end)

    content = EXPORT_RENDERERS[fmt](transactions, expenses, pnl, start, end)
    filename = f"vehicle-sales-report-{start:%Y-%m-%d}-to-{end:%Y-%m-%d}.{fmt}"
    logger.info(f"[REPORT] Exported {fmt} {filename} ({len(transactions)} transactions, {len(expenses)} expenses)")
    return content, EXPORT_MEDIA_TYPES[fmt], filename
