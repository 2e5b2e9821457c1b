"""
Audit Trail of Members

Members carry their own audit stamps:
- createdById / createdByName: set once, when the member is registered
- updatedById / updatedByName / updatedAt: rewritten on every save,
  registration included, so updatedAt is always set after the first save

Payments and expenses only carry a creator name (see ledger.dues and
ledger.cashflow).

The rollups below feed the audit section of the reports.
"""

from collections import Counter
from datetime import date, datetime
from typing import Optional, Sequence

from community_ledger.config import get_settings
from community_ledger.ledger.clock import (
    join_date_stamp,
    new_record_id,
    now_stamp,
    stamp_to_epoch,
)
from community_ledger.models.forms import MemberDraft
from community_ledger.models.records import Member, User
from community_ledger.models.views import OperatorCount
from community_ledger.security import require_editor
from community_ledger.services.storage import NotFoundError


def save_member(
    members: Sequence[Member],
    draft: MemberDraft,
    actor: User,
    member_id: Optional[str] = None,
    now: Optional[datetime] = None,
    today: Optional[date] = None,
) -> tuple[list[Member], Member, bool]:
    """
    Register a new member (member_id None) or edit an existing one.

    Returns (new collection, saved member, created).
    """
    require_editor(actor, "cadastrar associados")

    stamp = now_stamp(now)
    fields = draft.model_dump()
    fields.update(
        updated_by_id=actor.id,
        updated_by_name=actor.name,
        updated_at=stamp,
    )

    if member_id is None:
        member = Member(
            id=new_record_id(),
            join_date=join_date_stamp(today),
            created_by_id=actor.id,
            created_by_name=actor.name,
            **fields,
        )
        return [*members, member], member, True

    existing = next((m for m in members if m.id == member_id), None)
    if existing is None:
        raise NotFoundError(f"Associado {member_id} não encontrado.")

    member = existing.model_copy(update={**fields, "address": draft.address})
    updated = [member if m.id == member_id else m for m in members]
    return updated, member, False


def top_operators(
    members: Sequence[Member],
    limit: Optional[int] = None,
) -> list[OperatorCount]:
    """
    Members registered per operator, most active first.

    Members without a createdByName are not counted. Ties keep the order
    in which operators first appear.
    """
    limit = limit or get_settings().ledger.top_operators_limit
    counts = Counter(m.created_by_name for m in members if m.created_by_name)
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [OperatorCount(name=name, count=count) for name, count in ranked[:limit]]


def recent_activity(
    members: Sequence[Member],
    limit: Optional[int] = None,
) -> list[Member]:
    """Members by last save, newest first; never-stamped members sort last."""
    limit = limit or get_settings().ledger.recent_activity_limit
    ranked = sorted(members, key=lambda m: stamp_to_epoch(m.updated_at), reverse=True)
    return ranked[:limit]
