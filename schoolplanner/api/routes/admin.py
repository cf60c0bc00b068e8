"""Role management routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel

from schoolplanner.access.administration import RoleAdministration
from schoolplanner.access.decisions import AccessDecisions
from schoolplanner.auth import get_access, require_minimum_role, require_permission, require_view
from schoolplanner.core.models import UserRoleAssignment
from schoolplanner.rbac import Role

router = APIRouter(prefix="/admin", tags=["Admin"])

_audit_logger = logging.getLogger("schoolplanner.audit")


class RoleListResponse(BaseModel):
    users: list[UserRoleAssignment]
    stats: dict[Role, int]


class ChangeRoleRequest(BaseModel):
    role: Role


async def require_user_management(
    access: AccessDecisions = Depends(get_access),
) -> AccessDecisions:
    if not access.can_manage_users():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You don't have permission to manage user roles.",
        )
    return access


@router.get("/roles", response_model=RoleListResponse, summary="List role assignments")
async def list_roles(
    request: Request,
    q: str | None = Query(default=None, max_length=256, description="Search term"),
    access: AccessDecisions = Depends(require_user_management),
):
    admin = RoleAdministration(request.app.state.store)
    return RoleListResponse(
        users=await admin.list_users(access, q), stats=await admin.role_stats(access)
    )


@router.patch(
    "/roles/{user_id}", response_model=UserRoleAssignment, summary="Change a user's role"
)
async def change_role(
    user_id: str,
    req: ChangeRoleRequest,
    request: Request,
    access: AccessDecisions = Depends(get_access),
):
    admin = RoleAdministration(request.app.state.store)
    return await admin.change_role(access, user_id, req.role)


@router.get(
    "/stats",
    response_model=dict[Role, int],
    summary="Role assignment counts",
)
async def role_stats(
    request: Request, access: AccessDecisions = Depends(require_view("analytics"))
):
    return await RoleAdministration(request.app.state.store).role_stats(access)


# ---------------------------------------------------------------------------
# Grant rows
# ---------------------------------------------------------------------------


class GrantResponse(BaseModel):
    role: Role
    permission: str
    changed: bool


@router.get(
    "/grants/{role}",
    response_model=list[str],
    summary="Permissions granted to a role",
    dependencies=[Depends(require_minimum_role(Role.SCHOOL_ADMIN))],
)
async def list_grants(role: Role, request: Request):
    return await request.app.state.store.get_role_permissions(role)


@router.put(
    "/grants/{role}/{permission}",
    response_model=GrantResponse,
    summary="Grant a permission to a role",
    dependencies=[Depends(require_permission("can_change_any_role"))],
)
async def grant(role: Role, permission: str, request: Request):
    added = await request.app.state.store.grant_permission(role, permission)
    _audit_logger.info(
        "Permission %s granted to %s",
        permission,
        role.value,
        extra={"event_category": "audit", "action": "grant_added", "role": role.value},
    )
    return GrantResponse(role=role, permission=permission, changed=added)


@router.delete(
    "/grants/{role}/{permission}",
    response_model=GrantResponse,
    summary="Revoke a permission from a role",
    dependencies=[Depends(require_permission("can_change_any_role"))],
)
async def revoke(role: Role, permission: str, request: Request):
    removed = await request.app.state.store.revoke_permission(role, permission)
    _audit_logger.info(
        "Permission %s revoked from %s",
        permission,
        role.value,
        extra={"event_category": "audit", "action": "grant_removed", "role": role.value},
    )
    return GrantResponse(role=role, permission=permission, changed=removed)
