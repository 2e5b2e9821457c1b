"""Tests for ad hoc ledger queries."""

from types import SimpleNamespace

import pytest

from community_ledger.models.queries import LedgerQuery
from community_ledger.models.records import PaymentStatus
from community_ledger.queries import QueryExecutor


@pytest.fixture
def executor(members, payments, expenses) -> QueryExecutor:
    source = SimpleNamespace(members=members, payments=payments, expenses=expenses)
    return QueryExecutor(source)


class TestListing:
    """Tests for list queries."""

    def test_transactions_exclude_pending(self, executor):
        result = executor.execute(LedgerQuery(source="transactions"))
        assert result.success
        assert {row["id"] for row in result.results} == {"p1", "p3", "e1", "e2"}

    def test_payments_include_pending(self, executor):
        result = executor.execute(LedgerQuery(source="payments", status=PaymentStatus.PENDING))
        assert [row["id"] for row in result.results] == ["p2"]
        assert result.results[0]["description"] == "Mensalidade: Bruno Lima"

    def test_month_filter_is_zero_based(self, executor):
        result = executor.execute(LedgerQuery(source="expenses", year=2024, month=2))
        assert [row["id"] for row in result.results] == ["e1"]
        assert "Março 2024" in result.query_description

    def test_limit(self, executor):
        result = executor.execute(LedgerQuery(source="transactions", limit=2))
        assert result.result_count == 2

    def test_no_match(self, executor):
        result = executor.execute(LedgerQuery(source="expenses", year=1999))
        assert result.success
        assert not result.data_found

    def test_status_filter_on_expenses_fails(self, executor):
        """Test that a payments-only filter on another source is reported, not ignored."""
        result = executor.execute(LedgerQuery(source="expenses", status=PaymentStatus.PAID))
        assert not result.success
        assert "status filter" in result.error_message


class TestAggregation:
    """Tests for aggregate queries."""

    def test_sum_of_expenses(self, executor):
        result = executor.execute(LedgerQuery(source="expenses", aggregation_type="sum"))
        assert result.aggregation_result["value"] == 60.0
        assert result.aggregation_result["row_count"] == 2

    def test_group_by_category(self, executor):
        result = executor.execute(LedgerQuery(source="transactions", group_by="category"))
        breakdown = result.aggregation_result["breakdown"]
        assert breakdown == {"Mensalidade": 80.0, "Manutenção": 40.0, "Eventos": 20.0}

    def test_group_by_month(self, executor):
        result = executor.execute(
            LedgerQuery(source="payments", aggregation_type="count", group_by="month")
        )
        assert result.aggregation_result["breakdown"] == {"2024-03 Mar": 2, "2024-04 Abr": 1}

    def test_invalid_aggregation_rejected(self):
        with pytest.raises(ValueError):
            LedgerQuery(aggregation_type="median")
