"""Routes describing the caller's own access."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from schoolplanner.access.administration import PermissionOverview, RoleAdministration
from schoolplanner.access.decisions import VIEW_PERMISSIONS, AccessDecisions
from schoolplanner.auth import get_access
from schoolplanner.core.models import Permission, ResolutionStatus
from schoolplanner.rbac import Role

router = APIRouter(tags=["Access"])


class AccessResponse(BaseModel):
    user_id: str | None
    status: ResolutionStatus
    role: Role | None
    school_id: str | None
    permissions: list[str]
    views: list[str]
    role_config: dict[str, str] | None
    can_manage_users: bool
    can_change_roles: bool


class ViewAccessResponse(BaseModel):
    view: str
    permission: str | None
    allowed: bool


@router.get("/me/access", response_model=AccessResponse, summary="Resolved role and permissions")
async def my_access(access: AccessDecisions = Depends(get_access)):
    return AccessResponse(
        user_id=access.state.user_id,
        status=access.state.status,
        role=access.role,
        school_id=access.school_id,
        permissions=sorted(access.permissions),
        views=access.accessible_views(),
        role_config=access.role_config(),
        can_manage_users=access.can_manage_users(),
        can_change_roles=access.can_change_roles(),
    )


@router.get(
    "/me/permissions",
    response_model=PermissionOverview,
    summary="Every catalog permission with granted/locked status",
)
async def my_permissions(request: Request, access: AccessDecisions = Depends(get_access)):
    admin = RoleAdministration(request.app.state.store)
    return await admin.permission_overview(access.state)


@router.get("/me/views/{view}", response_model=ViewAccessResponse, summary="Check one view")
async def my_view_access(view: str, access: AccessDecisions = Depends(get_access)):
    return ViewAccessResponse(
        view=view,
        permission=VIEW_PERMISSIONS.get(view),
        allowed=access.can_access_view(view),
    )


@router.get("/permissions", response_model=list[Permission], summary="Permission catalog")
async def list_permissions(request: Request):
    return await request.app.state.store.list_permissions()
