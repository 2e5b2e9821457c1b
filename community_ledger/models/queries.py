"""
Ad hoc Query Models

A LedgerQuery describes a filtered subset of the association's money
movements and, optionally, an aggregation over it. The executor runs it
deterministically over the loaded collections.
"""

from datetime import datetime, timezone
from typing import Literal, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from community_ledger.models.records import PaymentStatus


class LedgerQuery(BaseModel):
    """A structured question over payments, expenses or the cash-flow feed."""

    query_id: UUID = Field(default_factory=uuid4)

    source: Literal["payments", "expenses", "transactions"] = Field(
        default="transactions",
        description="payments: every dues record; expenses; transactions: paid dues + expenses"
    )

    # Filters
    year: Optional[int] = None
    month: Optional[int] = Field(default=None, ge=0, le=11)
    category: Optional[str] = None
    operator: Optional[str] = None
    status: Optional[PaymentStatus] = Field(
        default=None,
        description="Only meaningful for the payments source"
    )
    search_term: Optional[str] = None

    # For aggregations
    aggregation_type: Optional[str] = Field(
        default=None,
        pattern="^(sum|count|average|min|max)$"
    )
    group_by: Optional[str] = Field(
        default=None,
        pattern="^(category|month|operator|method)$"
    )

    limit: int = Field(
        default=100,
        ge=1,
        le=1000
    )


class QueryResult(BaseModel):
    """Result of executing a LedgerQuery."""

    query_id: UUID
    executed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    success: bool
    error_message: Optional[str] = None

    data_found: bool
    result_count: int = Field(ge=0)

    results: list[dict] = Field(default_factory=list)
    aggregation_result: Optional[dict] = None

    query_description: str
