"""Country scoping for back-office listings."""

from collections.abc import Collection
from typing import Optional

from sqlalchemy import Select, select

from portal.infrastructure.database.schema import users


def restrict_to_countries(
    stmt: Select, user_id_column, countries: Optional[Collection[str]]
) -> Select:
    """Limit ``stmt`` to rows whose client lives in one of ``countries``.

    ``None`` leaves the statement untouched; an empty collection
    matches nothing.
    """
    if countries is None:
        return stmt
    visible = select(users.c.id).where(users.c.country.in_(list(countries)))
    return stmt.where(user_id_column.in_(visible))
