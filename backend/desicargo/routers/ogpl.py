"""OGPL (manifest) router.

Endpoints:
    POST   /api/ogpl/                  Create manifest and load bookings
    GET    /api/ogpl/?status=&branch_id=   List manifests
    GET    /api/ogpl/incoming?branch_id=   Manifests in transit to a branch
    GET    /api/ogpl/unloadings        Completed unloading records
    GET    /api/ogpl/{id}              Manifest with loading records
    POST   /api/ogpl/{id}/unload       Record conditions and complete the manifest
"""

from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from desicargo.auth.deps import require_permission
from desicargo.database import get_db
from desicargo.models.user import User
from desicargo.schemas.ogpl import OGPLCreate, OGPLOut, OGPLSummary, UnloadingOut, UnloadRequest
from desicargo.services import ogpl as ogpl_service

router = APIRouter()


@router.post("/", response_model=OGPLOut, status_code=status.HTTP_201_CREATED)
async def create_ogpl(
    body: OGPLCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("ogpl.write")),
):
    ogpl = await ogpl_service.create_ogpl(db, body, user)
    return OGPLOut.model_validate(ogpl)


@router.get("/", response_model=list[OGPLSummary])
async def list_ogpls(
    status_filter: Literal["in_transit", "completed"] | None = Query(None, alias="status"),
    branch_id: str | None = None,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("ogpl.read")),
):
    rows = await ogpl_service.list_ogpls(db, status=status_filter, branch_id=branch_id)
    return [OGPLSummary.model_validate(o) for o in rows]


@router.get("/incoming", response_model=list[OGPLOut])
async def incoming_ogpls(
    branch_id: str | None = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("ogpl.read")),
):
    """In-transit manifests headed for ``branch_id`` (default: the caller's branch)."""
    rows = await ogpl_service.incoming_ogpls(db, branch_id or user.branch_id)
    return [OGPLOut.model_validate(o) for o in rows]


@router.get("/unloadings", response_model=list[UnloadingOut])
async def list_unloadings(
    branch_id: str | None = None,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("ogpl.read")),
):
    rows = await ogpl_service.list_unloadings(db, branch_id)
    return [UnloadingOut.model_validate(r) for r in rows]


@router.get("/{ogpl_id}", response_model=OGPLOut)
async def get_ogpl(
    ogpl_id: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("ogpl.read")),
):
    return OGPLOut.model_validate(await ogpl_service.get_ogpl(db, ogpl_id))


@router.post("/{ogpl_id}/unload", response_model=UnloadingOut, status_code=status.HTTP_201_CREATED)
async def unload_ogpl(
    ogpl_id: str,
    body: UnloadRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("ogpl.write")),
):
    record = await ogpl_service.unload_ogpl(db, ogpl_id, body, user)
    return UnloadingOut.model_validate(record)
