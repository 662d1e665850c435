from fastapi import APIRouter

from billbook.api.v1.endpoints import (
    clients,
    invoices,
    quotations,
    tax,
    settings,
)

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(clients.router, prefix="/clients", tags=["Clients"])
api_router.include_router(invoices.router, prefix="/invoices", tags=["Invoices"])
api_router.include_router(quotations.router, prefix="/quotations", tags=["Quotations"])
api_router.include_router(tax.router, prefix="/tax", tags=["Tax"])
api_router.include_router(settings.router, prefix="/settings", tags=["Settings"])
