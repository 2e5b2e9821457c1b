"""Query execution package."""

from community_ledger.queries.executor import QueryExecutionError, QueryExecutor

__all__ = ["QueryExecutionError", "QueryExecutor"]
