"""FastAPI dependencies: caller identity, channel access and services.

Every service is built per request around the request's ``AsyncSession``;
FastAPI caches dependencies within a request, so a route that needs several
services still works inside a single unit of work.
"""

from typing import Annotated

from fastapi import Depends, Header

from src.core.constants import USER_ID_HEADER
from src.core.context import RequestContext
from src.core.exceptions import AuthorizationError
from src.domain.access.guard import (
    AccessDecision,
    AccessGuard,
    MembershipAccessGuard,
    require_admin,
    require_member,
)
from src.domain.access.service import MembershipService
from src.domain.catalog.resolver import CatalogResolver
from src.domain.hierarchy.service import HierarchyAuthority
from src.domain.ledger.service import RegisterLedger
from src.infrastructure.database.dependencies import DatabaseSession


async def get_current_user(
    x_user_id: Annotated[str | None, Header(alias=USER_ID_HEADER)] = None,
) -> str:
    """The pre-authenticated caller.

    Raises:
        AuthorizationError: The identity header is missing or blank.
    """
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise AuthorizationError(
            f"Missing caller identity header {USER_ID_HEADER}",
            context={"header": USER_ID_HEADER},
        )
    RequestContext.set_user_id(user_id)
    return user_id


CurrentUser = Annotated[str, Depends(get_current_user)]


def get_access_guard(session: DatabaseSession) -> AccessGuard:
    return MembershipAccessGuard(session)


Guard = Annotated[AccessGuard, Depends(get_access_guard)]


async def channel_member(
    channel_id: int, user_id: CurrentUser, guard: Guard
) -> AccessDecision:
    """Authorize the caller as an active member of ``channel_id``."""
    decision = await guard.authorize(user_id, channel_id)
    return require_member(decision, user_id=user_id, channel_id=channel_id)


async def channel_admin(
    channel_id: int, user_id: CurrentUser, guard: Guard
) -> AccessDecision:
    """Authorize the caller as an admin of ``channel_id``."""
    decision = await guard.authorize(user_id, channel_id)
    return require_admin(decision, user_id=user_id, channel_id=channel_id)


ChannelMember = Annotated[AccessDecision, Depends(channel_member)]
ChannelAdmin = Annotated[AccessDecision, Depends(channel_admin)]


def get_ledger(session: DatabaseSession) -> RegisterLedger:
    return RegisterLedger(session)


Ledger = Annotated[RegisterLedger, Depends(get_ledger)]


def get_hierarchy(session: DatabaseSession, ledger: Ledger) -> HierarchyAuthority:
    return HierarchyAuthority(session, ledger)


Hierarchy = Annotated[HierarchyAuthority, Depends(get_hierarchy)]


def get_catalog(session: DatabaseSession) -> CatalogResolver:
    return CatalogResolver(session)


Catalog = Annotated[CatalogResolver, Depends(get_catalog)]


def get_memberships(session: DatabaseSession) -> MembershipService:
    return MembershipService(session)


Memberships = Annotated[MembershipService, Depends(get_memberships)]
