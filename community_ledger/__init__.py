"""
Community Ledger - Source Package

Record keeping for a neighborhood association: member registry,
monthly dues, expenses, the unified cash-flow feed and its reports.

DESIGN PRINCIPLES:
1. Validate at the boundary → Compute purely → Persist whole collections
2. Fail early, fail visibly
3. No silent corrections
4. Every mutation and refusal is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Community Ledger Team"
