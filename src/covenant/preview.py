"""Synthetic preview data for agreement authoring.

Preview records are ordinary TenancyRecords built in memory, so a preview
goes through exactly the same context builder, resolver and renderer as a
real agreement. Nothing is persisted.
"""

import builtins
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Any

from covenant.models.tenancy import (
    Guarantor,
    Landlord,
    Property,
    Tenancy,
    TenancyMember,
    TenancyRecords,
    TenancyType,
)
from covenant.utils.formatting import parse_date

PREVIEW_LANDLORD_NAME = "Preview Landlord"
PREVIEW_GUARANTOR_NAME = "Robert Smith"
PREVIEW_GUARANTOR_ADDRESS = "10 Family Lane, Leeds, LS1 4AB"
PREVIEW_START_DATE = date(2025, 9, 1)
PREVIEW_END_DATE = date(2026, 8, 31)

DEFAULT_TENANTS: tuple[TenancyMember, ...] = (
    TenancyMember(
        id=1,
        first_name="John",
        last_name="Smith",
        title="mr",
        email="john.smith@example.com",
        phone="07700900123",
        room="Room 1 (Double)",
        rent_pppw=Decimal("125.00"),
        deposit_amount=Decimal("500.00"),
        current_address="123 Previous Street, Sheffield, S1 1AA",
    ),
    TenancyMember(
        id=2,
        first_name="Jane",
        last_name="Doe",
        title="miss",
        email="jane.doe@example.com",
        phone="07700900456",
        room="Room 2 (Single)",
        rent_pppw=Decimal("115.00"),
        deposit_amount=Decimal("450.00"),
        current_address="456 Previous Road, Sheffield, S2 2BB",
    ),
)

DEFAULT_PROPERTY = Property(
    address_line1="123 Example Street",
    city="Sheffield",
    postcode="S1 2AB",
    location="Broomhill",
)


@dataclass
class PreviewOptions:
    """Options for a preview render.

    Attributes:
        tenancy_type: room_only previews one tenant, whole_house previews two
        landlord: Landlord to preview as; None previews with a placeholder
            landlord and agency defaults only
        tenants: Replacement tenants (defaults to John Smith and Jane Doe)
        property: Replacement property
        start_date: Tenancy start
        end_date: Tenancy end (ignored for rolling monthly previews)
        is_rolling_monthly: Preview a periodic tenancy
        include_inactive: Include inactive sections for authoring review
        defaults_only: Ignore landlord sections even if a landlord is given
    """

    tenancy_type: TenancyType = TenancyType.WHOLE_HOUSE
    landlord: Landlord | None = None
    tenants: list[TenancyMember] = field(default_factory=list)
    property: Property | None = None
    start_date: date = PREVIEW_START_DATE
    end_date: date | None = PREVIEW_END_DATE
    is_rolling_monthly: bool = False
    include_inactive: bool = False
    defaults_only: bool = False

    # The "property" field shadows the builtin inside this class body.
    @builtins.property
    def landlord_id(self) -> int | None:
        """Landlord scope used for section resolution."""
        if self.defaults_only or self.landlord is None:
            return None
        return self.landlord.id

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PreviewOptions":
        """Create options from a dictionary (CLI or API payload)."""
        landlord = data.get("landlord")
        property_data = data.get("property")
        return cls(
            tenancy_type=TenancyType(data.get("tenancy_type", TenancyType.WHOLE_HOUSE.value)),
            landlord=Landlord.from_dict(landlord) if landlord else None,
            tenants=[TenancyMember.from_dict(t) for t in data.get("tenants") or []],
            property=Property.from_dict(property_data) if property_data else None,
            start_date=parse_date(data.get("start_date")) or PREVIEW_START_DATE,
            end_date=parse_date(data.get("end_date", PREVIEW_END_DATE)),
            is_rolling_monthly=bool(data.get("is_rolling_monthly", False)),
            include_inactive=bool(data.get("include_inactive", False)),
            defaults_only=bool(data.get("defaults_only", False)),
        )


def build_preview_records(options: PreviewOptions) -> TenancyRecords:
    """Build synthetic tenancy records for a preview.

    Room-only previews carry a single tenant; whole-house previews carry two
    (unless explicit tenants are given). The first tenant signs the preview.
    """
    if options.tenants:
        members = list(options.tenants)
    elif options.tenancy_type is TenancyType.ROOM_ONLY:
        members = [DEFAULT_TENANTS[0]]
    else:
        members = list(DEFAULT_TENANTS)

    members = [
        replace(m, application_type=m.application_type or options.tenancy_type.value)
        for m in members
    ]

    landlord = options.landlord or Landlord(name=PREVIEW_LANDLORD_NAME)
    tenancy = Tenancy(
        tenancy_type=options.tenancy_type,
        start_date=options.start_date,
        end_date=None if options.is_rolling_monthly else options.end_date,
        is_rolling_monthly=options.is_rolling_monthly,
        status="preview",
    )

    return TenancyRecords(
        tenancy=tenancy,
        members=members,
        property=options.property or DEFAULT_PROPERTY,
        landlord=landlord,
        primary_member_id=members[0].id,
    )


def preview_guarantor(records: TenancyRecords) -> Guarantor:
    """Placeholder guarantor for the signing tenant of preview records."""
    member_id = records.primary_member_id or records.members[0].id
    return Guarantor(
        member_id=member_id,
        name=PREVIEW_GUARANTOR_NAME,
        address=PREVIEW_GUARANTOR_ADDRESS,
        email="guarantor@example.com",
    )
