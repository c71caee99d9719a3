"""
Unit tests for orgdesk/services/contact_service.py

The default-address and primary-contact flags are cleared with a single
UPDATE; the tests inspect the statement handed to the session.
"""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.sql.dml import Update

from orgdesk.models.customer import CustomerAddress, CustomerContact
from orgdesk.models.supplier import SupplierAddress
from orgdesk.schemas.contacts import AddressCreate, AddressUpdate, ContactCreate, ContactUpdate
from orgdesk.services.contact_service import (
    add_address,
    add_contact,
    change_address,
    change_contact,
    clear_default_addresses,
)


def _mock_session():
    session = AsyncMock()
    session.add = MagicMock()
    return session


def _updates(session):
    return [
        c.args[0]
        for c in session.execute.await_args_list
        if isinstance(c.args[0], Update)
    ]


# ---------------------------------------------------------------------------
# Default addresses
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_default_address_clears_same_type_only():
    db = _mock_session()
    customer_id = uuid.uuid4()

    address = await add_address(
        db,
        CustomerAddress,
        "customer_id",
        customer_id,
        AddressCreate(address_type="shipping", address="Depo Sk. 4", is_default=True),
    )

    (stmt,) = _updates(db)
    params = stmt.compile().params
    assert stmt.table.name == "customer_addresses"
    assert params["is_default"] is False
    assert params["customer_id_1"] == customer_id
    assert params["address_type_1"] == "shipping"
    assert address.is_default is True
    db.add.assert_called_once_with(address)


@pytest.mark.asyncio
async def test_non_default_address_leaves_others_alone():
    db = _mock_session()

    await add_address(
        db, CustomerAddress, "customer_id", uuid.uuid4(), AddressCreate(address="Depo Sk. 4")
    )

    assert _updates(db) == []


@pytest.mark.asyncio
async def test_clear_default_addresses_keeps_the_edited_row():
    db = _mock_session()
    keep = uuid.uuid4()

    await clear_default_addresses(
        db, SupplierAddress, "supplier_id", uuid.uuid4(), "billing", keep_id=keep
    )

    (stmt,) = _updates(db)
    assert stmt.table.name == "supplier_addresses"
    assert "supplier_addresses.id !=" in str(stmt)
    assert keep in stmt.compile().params.values()


@pytest.mark.asyncio
async def test_moving_default_address_to_new_type_clears_that_type():
    db = _mock_session()
    customer_id = uuid.uuid4()
    address = CustomerAddress(
        id=uuid.uuid4(),
        customer_id=customer_id,
        address_type="billing",
        address="Merkez Cd. 1",
        is_default=True,
    )

    await change_address(db, address, "customer_id", AddressUpdate(address_type="office"))

    (stmt,) = _updates(db)
    params = stmt.compile().params
    assert params["address_type_1"] == "office"
    assert params["id_1"] == address.id


@pytest.mark.asyncio
async def test_editing_other_fields_of_default_address_skips_clear():
    db = _mock_session()
    address = CustomerAddress(
        id=uuid.uuid4(),
        customer_id=uuid.uuid4(),
        address_type="billing",
        address="Merkez Cd. 1",
        is_default=True,
    )

    await change_address(db, address, "customer_id", AddressUpdate(city="Bursa"))

    assert _updates(db) == []
    assert address.city == "Bursa"


# ---------------------------------------------------------------------------
# Primary contacts
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_primary_contact_clears_previous_primary():
    db = _mock_session()
    customer_id = uuid.uuid4()

    await add_contact(
        db,
        CustomerContact,
        "customer_id",
        customer_id,
        ContactCreate(first_name="Ayşe", last_name="Kaya", is_primary=True),
    )

    (stmt,) = _updates(db)
    params = stmt.compile().params
    assert stmt.table.name == "customer_contacts"
    assert params["is_primary"] is False
    assert params["customer_id_1"] == customer_id
    assert "customer_contacts.id !=" not in str(stmt)


@pytest.mark.asyncio
async def test_promoting_contact_keeps_it_primary():
    db = _mock_session()
    contact = CustomerContact(
        id=uuid.uuid4(),
        customer_id=uuid.uuid4(),
        first_name="Ayşe",
        last_name="Kaya",
        is_primary=False,
    )

    await change_contact(db, contact, "customer_id", ContactUpdate(is_primary=True))

    (stmt,) = _updates(db)
    assert stmt.compile().params["id_1"] == contact.id
    assert contact.is_primary is True


@pytest.mark.asyncio
async def test_demoting_contact_skips_clear():
    db = _mock_session()
    contact = CustomerContact(
        id=uuid.uuid4(), customer_id=uuid.uuid4(), first_name="Ali", last_name="Demir"
    )

    await change_contact(db, contact, "customer_id", ContactUpdate(is_primary=False))

    assert _updates(db) == []
