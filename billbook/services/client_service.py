"""Client Service: billed parties whose state and country drive GST."""
import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from billbook.core.exceptions import NotFoundError
from billbook.models.client import Client
from billbook.schemas.client import ClientCreate


logger = logging.getLogger(__name__)


class ClientService:
    """Service for creating and looking up clients."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_client(self, client_in: ClientCreate) -> Client:
        client = Client(**client_in.model_dump())
        self.db.add(client)
        await self.db.flush()
        logger.info(f"Created client {client.company_name} (state {client.state_code}, {client.country})")
        return client

    async def get_client(self, client_id: uuid.UUID) -> Client:
        client = await self.db.get(Client, client_id)
        if not client:
            raise NotFoundError("Client", client_id)
        return client

    async def list_clients(
        self,
        skip: int = 0,
        limit: int = 50,
        search: Optional[str] = None,
    ) -> Tuple[List[Client], int]:
        """Clients by name, with the unpaginated total."""
        filters = []
        if search:
            filters.append(Client.company_name.ilike(f"%{search}%"))

        count_result = await self.db.execute(
            select(func.count(Client.id)).where(*filters)
        )
        total = count_result.scalar() or 0

        result = await self.db.execute(
            select(Client)
            .where(*filters)
            .order_by(Client.company_name)
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all()), total
