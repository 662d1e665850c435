"""API endpoints for clients."""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, status, Query

from billbook.api.deps import DB
from billbook.schemas.client import ClientCreate, ClientResponse, ClientListResponse
from billbook.services.client_service import ClientService

router = APIRouter()


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(client_in: ClientCreate, db: DB):
    client = await ClientService(db).create_client(client_in)
    return ClientResponse.model_validate(client)


@router.get("", response_model=ClientListResponse)
async def list_clients(
    db: DB,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    search: Optional[str] = None,
):
    """List clients by name, optionally filtered by a name fragment."""
    items, total = await ClientService(db).list_clients(skip, limit, search)
    return ClientListResponse(
        items=[ClientResponse.model_validate(c) for c in items],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(client_id: UUID, db: DB):
    client = await ClientService(db).get_client(client_id)
    return ClientResponse.model_validate(client)
