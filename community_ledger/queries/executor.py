"""
Query Execution Engine

DESIGN DECISION: Query execution is DETERMINISTIC.
A LedgerQuery is run over the collections currently held by the record
store, with the same subset rules as the aggregation engine:
- payments are placed in their dues period (month/year of the record)
- expenses and cash-flow lines are placed by their date

Every row is flattened to a plain dict first, so filters and groupings
work the same way whatever the source.
"""

from typing import Optional, Protocol, Sequence

from community_ledger.config import get_settings
from community_ledger.ledger.cashflow import unify_transactions
from community_ledger.models.queries import LedgerQuery, QueryResult
from community_ledger.models.records import MONTH_NAMES, Expense, Member, Payment


class QueryExecutionError(Exception):
    """Error during query execution."""
    pass


class CollectionSource(Protocol):
    """Anything holding the loaded collections (normally the RecordStore)."""

    @property
    def members(self) -> Sequence[Member]: ...

    @property
    def payments(self) -> Sequence[Payment]: ...

    @property
    def expenses(self) -> Sequence[Expense]: ...


class QueryExecutor:
    """
    Executes ledger queries against the loaded collections.

    GUARANTEES:
    - Only returns real data from the collections
    - Clear "no data found" if nothing matches
    """

    def __init__(self, source: CollectionSource):
        self._source = source

    def execute(self, query: LedgerQuery) -> QueryResult:
        """Execute a query and return results."""
        try:
            rows = [row for row in self._rows(query) if self._matches(row, query)]
        except QueryExecutionError as e:
            return QueryResult(
                query_id=query.query_id,
                success=False,
                error_message=str(e),
                data_found=False,
                result_count=0,
                query_description=f"Query failed: {e}",
            )

        if query.aggregation_type or query.group_by:
            return self._aggregate(query, rows)

        limited = rows[:query.limit]
        return QueryResult(
            query_id=query.query_id,
            success=True,
            data_found=len(limited) > 0,
            result_count=len(limited),
            results=limited,
            query_description=self._describe(query, f"Listing {query.source}"),
        )

    # -------------------------------------------------------------------------
    # Rows
    # -------------------------------------------------------------------------

    def _rows(self, query: LedgerQuery) -> list[dict]:
        if query.status is not None and query.source != "payments":
            raise QueryExecutionError(
                f"status filter only applies to payments, not {query.source}"
            )

        settings = get_settings().ledger

        if query.source == "payments":
            names = {m.id: m.name for m in self._source.members}
            return [
                {
                    "id": p.id,
                    "year": p.year,
                    "month": p.month,
                    "date": p.payment_date.isoformat(),
                    "description": (
                        f"{settings.dues_description_prefix}: "
                        f"{names.get(p.member_id) or settings.unknown_member_label}"
                    ),
                    "category": settings.dues_category_label,
                    "operator": p.created_by_name or settings.system_operator_label,
                    "method": p.payment_method.value if p.payment_method else settings.unknown_method_label,
                    "status": p.status.value,
                    "amount": p.amount,
                }
                for p in self._source.payments
            ]

        if query.source == "expenses":
            return [
                {
                    "id": e.id,
                    "year": e.date.year,
                    "month": e.date.month - 1,
                    "date": e.date.isoformat(),
                    "description": e.description,
                    "category": e.category.value,
                    "operator": e.created_by_name,
                    "method": e.payment_method.value if e.payment_method else settings.unknown_method_label,
                    "status": None,
                    "amount": e.amount,
                }
                for e in self._source.expenses
            ]

        transactions = unify_transactions(
            self._source.payments,
            self._source.expenses,
            self._source.members,
        )
        return [
            {
                "id": t.id,
                "year": t.date.year,
                "month": t.date.month - 1,
                "date": t.date.isoformat(),
                "type": t.type.value,
                "description": t.description,
                "category": t.category,
                "operator": t.operator,
                "method": t.payment_method,
                "status": None,
                "amount": t.amount,
            }
            for t in transactions
        ]

    def _matches(self, row: dict, query: LedgerQuery) -> bool:
        if query.year is not None and row["year"] != query.year:
            return False
        if query.month is not None and row["month"] != query.month:
            return False
        if query.category and row["category"].lower() != query.category.lower():
            return False
        if query.operator and row["operator"].lower() != query.operator.lower():
            return False
        if query.status is not None and row["status"] != query.status.value:
            return False
        if query.search_term:
            needle = query.search_term.lower()
            haystack = (row["description"], row["category"], row["operator"], row["method"])
            if not any(needle in field.lower() for field in haystack):
                return False
        return True

    # -------------------------------------------------------------------------
    # Aggregation
    # -------------------------------------------------------------------------

    @staticmethod
    def _reduce(amounts: list[float], aggregation_type: Optional[str]):
        if aggregation_type == "count":
            return len(amounts)
        if not amounts:
            return 0.0
        if aggregation_type == "average":
            return sum(amounts) / len(amounts)
        if aggregation_type == "min":
            return min(amounts)
        if aggregation_type == "max":
            return max(amounts)
        return sum(amounts)

    @staticmethod
    def _group_key(row: dict, group_by: str) -> str:
        if group_by == "month":
            return f"{row['year']}-{row['month'] + 1:02d} {MONTH_NAMES[row['month']][:3]}"
        return row[group_by]

    def _aggregate(self, query: LedgerQuery, rows: list[dict]) -> QueryResult:
        if not rows:
            return QueryResult(
                query_id=query.query_id,
                success=True,
                data_found=False,
                result_count=0,
                query_description=self._describe(query, "No rows found for aggregation"),
            )

        aggregation_type = query.aggregation_type or "sum"
        amounts = [row["amount"] for row in rows]

        aggregation_result: dict = {
            "aggregation_type": aggregation_type,
            "value": self._reduce(amounts, aggregation_type),
            "row_count": len(rows),
        }

        if query.group_by:
            groups: dict[str, list[float]] = {}
            for row in rows:
                groups.setdefault(self._group_key(row, query.group_by), []).append(row["amount"])
            aggregation_result["breakdown"] = {
                key: self._reduce(values, aggregation_type)
                for key, values in groups.items()
            }

        return QueryResult(
            query_id=query.query_id,
            success=True,
            data_found=True,
            result_count=len(rows),
            aggregation_result=aggregation_result,
            query_description=self._describe(query, f"Calculating {aggregation_type} of {query.source}"),
        )

    def _describe(self, query: LedgerQuery, head: str) -> str:
        """Human-readable description of what was queried."""
        parts = [head]
        if query.year is not None:
            if query.month is not None:
                parts.append(f"in {MONTH_NAMES[query.month]} {query.year}")
            else:
                parts.append(f"in {query.year}")
        elif query.month is not None:
            parts.append(f"in {MONTH_NAMES[query.month]}")
        if query.category:
            parts.append(f"category: {query.category}")
        if query.operator:
            parts.append(f"by {query.operator}")
        if query.status:
            parts.append(f"status: {query.status.value}")
        if query.search_term:
            parts.append(f"matching '{query.search_term}'")
        if query.group_by:
            parts.append(f"grouped by {query.group_by}")
        return " | ".join(parts)
