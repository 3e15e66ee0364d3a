"""Integration tests for MongoDBCustomerRepository."""

from decimal import Decimal

import pytest

from keystone.domain import Customer, CustomerNotFoundError, EmailAlreadyExistsError
from keystone.integrations.mongodb import MongoDBCustomerRepository


def new_customer(email: str = "ada@example.com", credit: str = "100") -> Customer:
    return Customer(
        first_name="Ada",
        last_name="Lovelace",
        email=email,
        phone="555-0100",
        address="12 Analytical Row",
        available_credit=Decimal(credit),
    )


@pytest.mark.integration
@pytest.mark.asyncio
async def test_create_and_find(mongo_repository: MongoDBCustomerRepository):
    created = await mongo_repository.create(new_customer(credit="150.25"))

    found = await mongo_repository.find_by_id(created.id)

    assert found == created
    assert found.available_credit == Decimal("150.25")
    assert (await mongo_repository.find_by_email("ada@example.com")) == created


@pytest.mark.integration
@pytest.mark.asyncio
async def test_unique_email(mongo_repository: MongoDBCustomerRepository):
    await mongo_repository.create(new_customer())

    with pytest.raises(EmailAlreadyExistsError):
        await mongo_repository.create(new_customer())


@pytest.mark.integration
@pytest.mark.asyncio
async def test_update_keeps_created_at(mongo_repository: MongoDBCustomerRepository):
    created = await mongo_repository.create(new_customer())
    created.add_credit(Decimal("50"))

    updated = await mongo_repository.update(created)

    assert updated.available_credit == Decimal("150")
    assert updated.created_at == created.created_at
    assert updated.updated_at >= created.updated_at
    assert (await mongo_repository.find_by_id(created.id)) == updated


@pytest.mark.integration
@pytest.mark.asyncio
async def test_update_missing(mongo_repository: MongoDBCustomerRepository):
    with pytest.raises(CustomerNotFoundError):
        await mongo_repository.update(new_customer().model_copy(update={"id": "missing"}))


@pytest.mark.integration
@pytest.mark.asyncio
async def test_find_all_sorted_by_credit(mongo_repository: MongoDBCustomerRepository):
    for index, credit in enumerate(("5", "500", "50")):
        await mongo_repository.create(new_customer(email=f"c{index}@example.com", credit=credit))

    listing = await mongo_repository.find_all("available_credit", "desc")

    assert [c.available_credit for c in listing] == [Decimal("500"), Decimal("50"), Decimal("5")]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_delete(mongo_repository: MongoDBCustomerRepository):
    created = await mongo_repository.create(new_customer())

    assert await mongo_repository.delete(created.id) is True
    assert await mongo_repository.delete(created.id) is False
    assert await mongo_repository.find_by_id(created.id) is None
