"""Shared pytest fixtures for Covenant tests.

Fixtures are organized by category:
- Logging fixtures: Reset the covenant logger between tests
- Record fixtures: Tenancy, members, property, landlord and agency records
- Section fixtures: Stores, resolvers and assemblers with seeded clauses
"""

import logging
from collections.abc import Iterator
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from covenant.assembler import DocumentAssembler
from covenant.context import build_context
from covenant.models import (
    CompanyInfo,
    Guarantor,
    Landlord,
    Property,
    RenderContext,
    Tenancy,
    TenancyMember,
    TenancyRecords,
    TenancyType,
)
from covenant.sections import InMemorySectionStore, SectionResolver
from tests.fixtures import LANDLORD_ID, make_section

# =============================================================================
# Logging Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_covenant_logger() -> Iterator[None]:
    """Undo CLI logging setup so caplog and other tests see records."""
    logger = logging.getLogger("covenant")
    yield
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


# =============================================================================
# Record Fixtures
# =============================================================================


@pytest.fixture
def company() -> CompanyInfo:
    """Return the managing agent's details."""
    return CompanyInfo(
        name="Letably",
        address_line1="1 Agency Row",
        city="Sheffield",
        postcode="S1 1AA",
        email="hello@letably.example",
        phone="0114 000 0000",
    )


@pytest.fixture
def landlord() -> Landlord:
    """Return a landlord with bank details and a utilities cap."""
    return Landlord(
        id=LANDLORD_ID,
        name="Acme Lettings",
        email="acme@example.com",
        address_line1="9 Landlord Lane",
        city="Sheffield",
        bank_name="Example Bank",
        bank_account_name="Acme Lettings Ltd",
        sort_code="12-34-56",
        account_number="12345678",
        utilities_cap_amount=Decimal("1040.00"),
    )


@pytest.fixture
def members() -> list[TenancyMember]:
    """Return two tenants with different rents (deliberately unsorted)."""
    return [
        TenancyMember(
            id=2,
            first_name="Bob",
            last_name="Brown",
            title="mr",
            email="bob@example.com",
            room="Room 2",
            rent_pppw=Decimal("110"),
            deposit_amount=Decimal("400"),
        ),
        TenancyMember(
            id=1,
            first_name="Alice",
            last_name="Jones",
            title="ms",
            email="alice@example.com",
            room="Room 1",
            rent_pppw=Decimal("125"),
            deposit_amount=Decimal("400"),
        ),
    ]


@pytest.fixture
def property_record() -> Property:
    """Return the let property."""
    return Property(address_line1="12 High Street", city="Sheffield", postcode="S10 2AB")


@pytest.fixture
def tenancy() -> Tenancy:
    """Return a fixed-term room-only tenancy."""
    return Tenancy(
        tenancy_type=TenancyType.ROOM_ONLY,
        start_date=date(2025, 9, 1),
        end_date=date(2026, 8, 31),
    )


@pytest.fixture
def records(
    tenancy: Tenancy,
    members: list[TenancyMember],
    property_record: Property,
    landlord: Landlord,
) -> TenancyRecords:
    """Return a complete tenancy records bundle."""
    return TenancyRecords(
        tenancy=tenancy,
        members=members,
        property=property_record,
        landlord=landlord,
        primary_member_id=1,
        guarantors=[Guarantor(member_id=1, name="Carol Jones", address="3 Parent Road, York")],
    )


@pytest.fixture
def context(
    tenancy: Tenancy,
    members: list[TenancyMember],
    property_record: Property,
    landlord: Landlord,
    company: CompanyInfo,
) -> RenderContext:
    """Return a render context for Alice's copy of the agreement."""
    return build_context(tenancy, members, property_record, landlord, company, primary_member_id=1)


# =============================================================================
# Section Fixtures
# =============================================================================


@pytest.fixture
def store() -> InMemorySectionStore:
    """Return a store holding three defaults, one override and one custom clause."""
    return InMemorySectionStore([
        make_section("parties", 1, content="<p>Between {{landlord_display_name}} and {{primary_tenant_name}}</p>"),
        make_section("rent", 2, content="<p>Rent &pound;{{primary_tenant_rent_pppw}}</p>"),
        make_section("governing_law", 3, content="<p>England and Wales</p>"),
        make_section("rent", 2, landlord_id=LANDLORD_ID, title="Rent (Acme)", content="<p>Acme rent {{primary_tenant_rent_pppw}}</p>"),
        make_section("pets", 2.5, landlord_id=LANDLORD_ID, content="<p>No pets</p>"),
    ])


@pytest.fixture
def resolver(store: InMemorySectionStore) -> SectionResolver:
    """Return a resolver reading directly from the store."""
    return SectionResolver(store)


@pytest.fixture
def assembler(resolver: SectionResolver) -> DocumentAssembler:
    """Return a document assembler."""
    return DocumentAssembler(resolver)
