"""Tests for order summaries, frames and explanations."""
from __future__ import annotations

from decimal import Decimal

from portfolio.allocation import Allocation
from portfolio.order import Order
from reporting.explainability import explain_allocations, explainability_report
from reporting.summary import FRAME_COLUMNS, amount_by_symbol, order_metrics, order_summary, orders_frame


def alloc(symbol: str, amount: str, price: str = "100", quantity: str = "0") -> Allocation:
    return Allocation(symbol, Decimal(amount), Decimal(price), Decimal(quantity))


def make_order(order_id: str, order_type: str, *lines: Allocation) -> Order:
    return Order(order_id, "Core", order_type, "Created", "2024-01-23", list(lines))


ORDERS = [
    make_order("1", "BUY", alloc("AAPL", "60.00", quantity="0.600"), alloc("TSLA", "40.00", quantity="0.400")),
    make_order("2", "SELL", alloc("AAPL", "33.33"), alloc("MSFT", "66.67")),
]


class TestSummary:
    """Tests for order_summary and the pandas frame."""

    def test_order_summary(self):
        summary = order_summary(ORDERS[0])

        assert summary["total_amount"] == Decimal("100.00")
        assert summary["lines"] == 2
        assert summary["remainder_symbol"] == "TSLA"

    def test_order_summary_without_lines(self):
        assert order_summary(make_order("x", "BUY"))["remainder_symbol"] is None

    def test_frame_one_row_per_line(self):
        df = orders_frame(ORDERS)

        assert list(df.columns) == FRAME_COLUMNS
        assert len(df) == 4
        assert df["line"].tolist() == [0, 1, 0, 1]
        assert df.loc[3, "symbol"] == "MSFT"
        assert df.loc[3, "amount"] == Decimal("66.67")

    def test_empty_frame_keeps_columns(self):
        df = orders_frame([])

        assert df.empty
        assert list(df.columns) == FRAME_COLUMNS

    def test_metrics(self):
        metrics = order_metrics(ORDERS)

        assert metrics == {
            "total_orders": 2,
            "total_amount": Decimal("200.00"),
            "average_order_size": Decimal("100.00"),
            "buy_orders": 1,
            "sell_orders": 1,
            "symbols": 3,
        }

    def test_amount_by_symbol(self):
        assert amount_by_symbol(ORDERS) == {
            "AAPL": Decimal("93.33"),
            "MSFT": Decimal("66.67"),
            "TSLA": Decimal("40.00"),
        }
        assert amount_by_symbol([]) == {}


class TestExplainability:
    """Tests for the explanation lines and report."""

    def test_last_line_marked_as_remainder(self):
        lines = explain_allocations(ORDERS[0].orders)

        assert lines[0] == "AAPL: $60.00 @ $100.00 = 0.600 sh  |  weight x total, rounded half-even"
        assert lines[1].endswith("remainder (total - allocated)")

    def test_report_is_json_ready(self):
        report = explainability_report(ORDERS[0], {"precision": 3, "total_amount": Decimal("100")})

        assert report["meta"] == {"precision": "3", "total_amount": "100"}
        assert report["orders"][1] == {"symbol": "TSLA", "amount": "40.00", "price": "100", "quantity": "0.400"}
        assert len(report["explanations"]) == 2
        assert report["summary"]["id"] == "1"
