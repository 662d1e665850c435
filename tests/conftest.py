"""Shared fixtures: a throwaway SQLite database per test, seeded company and clients."""
from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from billbook.database import create_engine_for_url, init_db, get_db
from billbook.models import Client, CompanyProfile, EXPORT_STATE_CODE
from billbook.schemas.billing import InvoiceCreate, QuotationCreate


MAHARASHTRA = 27
KARNATAKA = 29

# Falls in FY 2024-25
ISSUE_DATE = date(2024, 6, 15)


@pytest_asyncio.fixture
async def engine(tmp_path):
    # File-backed so that separate sessions get separate connections
    engine = create_engine_for_url(f"sqlite+aiosqlite:///{tmp_path / 'billbook_test.db'}")
    await init_db(bind=engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def company(session_factory):
    async with session_factory() as session:
        profile = CompanyProfile(
            company_name="Acme Tech Pvt Ltd",
            gstin="27AAACA1234A1Z5",
            home_state_code=MAHARASHTRA,
            home_country="India",
            is_active=True,
        )
        session.add(profile)
        await session.commit()
        return profile


@pytest_asyncio.fixture
async def clients(session_factory):
    async with session_factory() as session:
        seeded = {
            "local": Client(company_name="Pune Traders", state_code=MAHARASHTRA, country="India"),
            "interstate": Client(company_name="Bengaluru Systems", state_code=KARNATAKA, country="India"),
            "foreign": Client(company_name="Globex Inc", state_code=EXPORT_STATE_CODE, country="United States"),
        }
        session.add_all(seeded.values())
        await session.commit()
        return seeded


def make_invoice(client_id, subtotal="1000.00", issue_date=ISSUE_DATE, **kwargs) -> InvoiceCreate:
    return InvoiceCreate(client_id=client_id, issue_date=issue_date, subtotal=Decimal(subtotal), **kwargs)


def make_quotation(client_id, subtotal="1000.00", issue_date=ISSUE_DATE, **kwargs) -> QuotationCreate:
    return QuotationCreate(client_id=client_id, issue_date=issue_date, subtotal=Decimal(subtotal), **kwargs)


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client against the app, with requests bound to the test database."""
    from billbook.main import app

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
