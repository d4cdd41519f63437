"""
statement_services.owners -- Owner lookup for statement generation.

Statements are addressed to an owner.  Legacy callers send the default
owner as ``1``, ``"1"`` or ``"default"``; unknown ids fall back to the
default (first) owner rather than failing the statement.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from statement_kernel.domain.dtos import coerce_property_id
from statement_kernel.exceptions import OwnerNotFoundError
from statement_kernel.logging_config import get_logger

logger = get_logger("services.owners")

DEFAULT_OWNER_ALIASES: frozenset[object] = frozenset({1, "1", "default"})


@dataclass(frozen=True)
class Owner:
    owner_id: int | str
    name: str
    email: str = ""

    @property
    def is_default(self) -> bool:
        return self.owner_id in DEFAULT_OWNER_ALIASES or self.name.lower() == "default"


def resolve_owner(owner_id: int | str | None, owners: Sequence[Owner]) -> Owner:
    """
    Map a requested owner id to a known owner.

    Raises:
        OwnerNotFoundError: only when ``owners`` is empty.
    """
    if not owners:
        raise OwnerNotFoundError(owner_id)

    if owner_id is None or owner_id == "" or owner_id in DEFAULT_OWNER_ALIASES:
        return next((o for o in owners if o.is_default), owners[0])

    numeric = coerce_property_id(owner_id)
    for owner in owners:
        if owner.owner_id == owner_id:
            return owner
        if numeric is not None and coerce_property_id(owner.owner_id) == numeric:
            return owner

    logger.warning("owner_fallback_to_default", extra={
        "requested_owner_id": str(owner_id),
        "fallback_owner_id": str(owners[0].owner_id),
    })
    return owners[0]
