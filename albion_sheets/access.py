"""
Access Transition — hand the document to its owner, then drop our own grant.

Drive's ownership transfer downgrades the previous owner (the service
account) to ``writer``.  After the transfer the file is expected to carry
exactly two permissions: the new ``owner`` and that leftover grant.

Which non-owner grants get deleted is a policy:

``RevokePolicy.STRICT``
    exactly one non-owner grant must exist; anything else raises
    ``PermissionInvariantError`` before deleting anything.
``RevokePolicy.ALL``
    every non-owner grant is deleted.

Under both policies the requested owner must already hold the owner role,
and grants belonging to that address are never selected.
"""

from __future__ import annotations

import logging
from enum import Enum

from albion_sheets.errors import PermissionInvariantError
from albion_sheets.models import Permission

logger = logging.getLogger("albion.access")

OWNER_ROLE = "owner"


class RevokePolicy(str, Enum):
    STRICT = "strict"
    ALL = "all"

    @classmethod
    def parse(cls, value: str) -> "RevokePolicy":
        try:
            return cls(value.strip().lower())
        except ValueError:
            allowed = ", ".join(p.value for p in cls)
            raise ValueError(f"Unknown revoke policy '{value}' (expected one of: {allowed})")


def transfer_ownership(access, document_id: str, owner_email: str) -> str:
    """Grant *owner_email* the owner role on the document."""
    return access.grant_owner(document_id, owner_email)


def _same_email(a: str | None, b: str | None) -> bool:
    return bool(a) and bool(b) and a.strip().lower() == b.strip().lower()


def select_revocations(
    permissions: list[Permission], owner_email: str, policy: RevokePolicy
) -> list[Permission]:
    """Pick the grants to delete, or raise if the permission set is unexpected.

    *owner_email* must already hold the owner role, and none of its grants
    are ever selected.
    """
    snapshot = [{"id": p.id, "role": p.role, "email": p.email} for p in permissions]

    if not any(p.role == OWNER_ROLE and _same_email(p.email, owner_email) for p in permissions):
        raise PermissionInvariantError(
            f"{owner_email} does not hold the owner role; refusing to revoke",
            permissions=snapshot,
        )

    non_owner = [
        p for p in permissions
        if p.role != OWNER_ROLE and not _same_email(p.email, owner_email)
    ]
    if not non_owner:
        raise PermissionInvariantError(
            "No non-owner permission found to revoke", permissions=snapshot
        )
    if policy is RevokePolicy.STRICT and len(non_owner) > 1:
        raise PermissionInvariantError(
            f"Expected one non-owner permission, found {len(non_owner)}",
            permissions=snapshot,
        )
    return non_owner


def revoke_automation_access(
    access,
    document_id: str,
    owner_email: str,
    policy: RevokePolicy = RevokePolicy.STRICT,
) -> tuple[list[str], list[Permission]]:
    """Delete the automation identity's leftover grant(s).

    Returns the deleted permission ids and the permissions left in place.
    """
    permissions = access.list_permissions(document_id)
    targets = select_revocations(permissions, owner_email, policy)

    revoked: list[str] = []
    for perm in targets:
        access.delete_permission(document_id, perm.id)
        revoked.append(perm.id)
        logger.info(
            "Revoked %s permission %s (%s) on %s",
            perm.role, perm.id, perm.email or perm.type, document_id,
        )
    remaining = [p for p in permissions if p.id not in revoked]
    return revoked, remaining
