"""Member search, the address directory and the birthday reminder."""

from datetime import date
from itertools import groupby
from typing import Literal, Optional, Sequence

from community_ledger.config import get_settings
from community_ledger.models.records import Address, Member
from community_ledger.models.views import StreetGroup, UpcomingBirthday


StatusFilter = Literal["all", "active", "inactive"]


def search_members(
    members: Sequence[Member],
    search_term: str = "",
    status: StatusFilter = "all",
) -> list[Member]:
    """
    Member list filter.

    The name is matched case-insensitively; the CPF is matched as typed.
    """
    needle = search_term.lower()
    result = []
    for member in members:
        if search_term and needle not in member.name.lower() and search_term not in member.cpf:
            continue
        if status == "active" and not member.active:
            continue
        if status == "inactive" and member.active:
            continue
        result.append(member)
    return result


def blank_address() -> Address:
    """Address pre-filled on the registration form."""
    settings = get_settings().ledger
    return Address(
        street="",
        number="",
        neighborhood=settings.default_neighborhood,
        zip_code=settings.default_zip_code,
    )


def group_by_street(
    members: Sequence[Member],
    search_term: str = "",
) -> list[StreetGroup]:
    """
    Address directory: members grouped by street, streets sorted.

    The search matches street, neighborhood or member name.
    """
    needle = search_term.lower()
    matching = [
        m for m in members
        if needle in m.address.street.lower()
        or needle in m.address.neighborhood.lower()
        or needle in m.name.lower()
    ]
    # sorted() is stable, so members keep collection order within a street
    matching.sort(key=lambda m: m.address.street)
    return [
        StreetGroup(street=street, members=list(group))
        for street, group in groupby(matching, key=lambda m: m.address.street)
    ]


def _birthday_in(year: int, birth_date: date) -> date:
    # 29 February rolls over to 1 March in common years
    try:
        return birth_date.replace(year=year)
    except ValueError:
        return date(year, 3, 1)


def upcoming_birthdays(
    members: Sequence[Member],
    today: Optional[date] = None,
    window_days: Optional[int] = None,
) -> list[UpcomingBirthday]:
    """Active members whose birthday falls within the next window_days (today included)."""
    today = today or date.today()
    if window_days is None:
        window_days = get_settings().ledger.birthday_window_days

    upcoming = []
    for member in members:
        if not member.active or member.birth_date is None:
            continue
        next_birthday = _birthday_in(today.year, member.birth_date)
        if next_birthday < today:
            next_birthday = _birthday_in(today.year + 1, member.birth_date)
        days_until = (next_birthday - today).days
        if days_until <= window_days:
            upcoming.append(UpcomingBirthday(
                member=member,
                days_until=days_until,
                birth_date=member.birth_date,
            ))

    upcoming.sort(key=lambda item: item.days_until)
    return upcoming
