import uuid

import pydantic
import pytest

from billbook.core.exceptions import NotFoundError
from billbook.schemas.client import ClientCreate
from billbook.services.client_service import ClientService


async def test_create_and_get_client(db):
    service = ClientService(db)
    created = await service.create_client(
        ClientCreate(company_name="Nagpur Steel", tax_id="27AABCN1234K1Z2", state_code=27)
    )

    fetched = await service.get_client(created.id)
    assert fetched.company_name == "Nagpur Steel"
    assert fetched.country == "India"
    assert fetched.state_name == "Maharashtra"


async def test_export_client_state_name(db):
    created = await ClientService(db).create_client(
        ClientCreate(company_name="Globex Inc", state_code=99, country="United States")
    )
    assert created.state_name == "International / Export"


async def test_unknown_client(db):
    with pytest.raises(NotFoundError) as exc_info:
        await ClientService(db).get_client(uuid.uuid4())
    assert exc_info.value.status_code == 404


async def test_list_clients_by_name(db, clients):
    items, total = await ClientService(db).list_clients()
    assert total == 3
    assert [c.company_name for c in items] == ["Bengaluru Systems", "Globex Inc", "Pune Traders"]

    items, total = await ClientService(db).list_clients(search="trad")
    assert total == 1
    assert items[0].company_name == "Pune Traders"


async def test_list_clients_pagination(db, clients):
    items, total = await ClientService(db).list_clients(skip=1, limit=1)
    assert total == 3
    assert [c.company_name for c in items] == ["Globex Inc"]


@pytest.mark.parametrize("state_code", [0, 39, 50, 100])
def test_unknown_state_code_is_rejected(state_code):
    with pytest.raises(pydantic.ValidationError):
        ClientCreate(company_name="Nowhere Ltd", state_code=state_code)


def test_state_code_is_optional():
    assert ClientCreate(company_name="Walk-in").state_code is None
