"""Tenancy input records.

These records are owned by other parts of the letting platform and are only
read by Covenant. They can come from real tenancy rows or from synthetic
preview data; the context builder treats both identically.

- TenancyType: room_only or whole_house
- Tenancy: Dates, type and status of a tenancy
- TenancyMember: One tenant on the tenancy
- Property: Address of the let property
- Landlord: Landlord identity, bank details and bill settings
- CompanyInfo: The letting agency's own contact details
- Guarantor: A guarantor for one tenancy member
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from covenant.utils.formatting import join_address, parse_date, to_decimal


class TenancyType(str, Enum):
    """Letting arrangement of a tenancy."""

    ROOM_ONLY = "room_only"
    WHOLE_HOUSE = "whole_house"

    @property
    def description(self) -> str:
        """Human-readable label used in agreements."""
        return "Room Only" if self is TenancyType.ROOM_ONLY else "Whole House"


def _str(value: Any) -> str:
    return "" if value is None else str(value)


def _optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


@dataclass
class Tenancy:
    """A tenancy being documented.

    A tenancy with no end date, or one explicitly marked rolling monthly, is
    periodic; otherwise it is a fixed term.
    """

    tenancy_type: TenancyType
    start_date: date | None
    end_date: date | None = None
    is_rolling_monthly: bool = False
    status: str = "pending"
    id: int | None = None

    @property
    def is_periodic(self) -> bool:
        """Return True for rolling monthly tenancies."""
        return self.is_rolling_monthly or self.end_date is None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Tenancy":
        """Create a tenancy from a dictionary."""
        return cls(
            tenancy_type=TenancyType(data.get("tenancy_type", TenancyType.WHOLE_HOUSE.value)),
            start_date=parse_date(data.get("start_date")),
            end_date=parse_date(data.get("end_date")),
            is_rolling_monthly=bool(data.get("is_rolling_monthly", False)),
            status=_str(data.get("status", "pending")),
            id=data.get("id"),
        )


@dataclass
class TenancyMember:
    """One tenant on a tenancy.

    Attributes:
        id: Member identifier, used to pick the signing tenant
        first_name: Given name
        last_name: Family name
        email: Contact email
        rent_pppw: Rent per person per week
        deposit_amount: Deposit held for this tenant
        title: Honorific (mr, mrs, miss, ms, dr); "other" is never printed
        phone: Contact phone
        room: Bedroom name for room-only lets
        current_address: Address before moving in
        application_type: Application route (room_only, whole_house)
    """

    id: int
    first_name: str
    last_name: str
    email: str = ""
    rent_pppw: Decimal | None = None
    deposit_amount: Decimal | None = None
    title: str | None = None
    phone: str = ""
    room: str = ""
    current_address: str = ""
    application_type: str = ""

    @property
    def name(self) -> str:
        """First and last name."""
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def formal_name(self) -> str:
        """Name with title prefix, e.g. "Mr John Smith"."""
        if self.title and self.title.lower() != "other":
            return f"{self.title.capitalize()} {self.name}"
        return self.name

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TenancyMember":
        """Create a member from a dictionary.

        Accepts ``surname`` as an alias of ``last_name`` and ``bedroom_name``
        as an alias of ``room``.
        """
        return cls(
            id=int(data["id"]),
            first_name=_str(data.get("first_name")),
            last_name=_str(data.get("last_name", data.get("surname"))),
            email=_str(data.get("email")),
            rent_pppw=to_decimal(data.get("rent_pppw")),
            deposit_amount=to_decimal(data.get("deposit_amount")),
            title=_optional_str(data.get("title")),
            phone=_str(data.get("phone")),
            room=_str(data.get("room", data.get("bedroom_name"))),
            current_address=_str(data.get("current_address", data.get("address"))),
            application_type=_str(data.get("application_type")),
        )


@dataclass
class Property:
    """The let property."""

    address_line1: str = ""
    address_line2: str = ""
    city: str = ""
    postcode: str = ""
    location: str = ""

    @property
    def full_address(self) -> str:
        """Comma-joined address."""
        return join_address(self.address_line1, self.address_line2, self.city, self.postcode)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Property":
        """Create a property from a dictionary."""
        return cls(
            address_line1=_str(data.get("address_line1")),
            address_line2=_str(data.get("address_line2")),
            city=_str(data.get("city")),
            postcode=_str(data.get("postcode")),
            location=_str(data.get("location")),
        )


@dataclass
class Landlord:
    """Landlord identity and agreement settings.

    Attributes:
        id: Landlord identifier (selects override and custom sections)
        name: Trading name
        legal_name: Registered legal name
        agreement_display_format: Preferred name on agreements, if set
        utilities_cap_amount: Annual fair-usage utilities cap, if bills are included
        council_tax_in_bills: Whether council tax is part of the bills package
    """

    id: int | None = None
    name: str = ""
    legal_name: str = ""
    agreement_display_format: str = ""
    email: str = ""
    phone: str = ""
    address_line1: str = ""
    address_line2: str = ""
    city: str = ""
    postcode: str = ""
    bank_name: str = ""
    bank_account_name: str = ""
    sort_code: str = ""
    account_number: str = ""
    utilities_cap_amount: Decimal | None = None
    council_tax_in_bills: bool = False

    @property
    def address(self) -> str:
        """Comma-joined address."""
        return join_address(self.address_line1, self.address_line2, self.city, self.postcode)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Landlord":
        """Create a landlord from a dictionary."""
        return cls(
            id=data.get("id"),
            name=_str(data.get("name")),
            legal_name=_str(data.get("legal_name")),
            agreement_display_format=_str(data.get("agreement_display_format")),
            email=_str(data.get("email")),
            phone=_str(data.get("phone")),
            address_line1=_str(data.get("address_line1")),
            address_line2=_str(data.get("address_line2")),
            city=_str(data.get("city")),
            postcode=_str(data.get("postcode")),
            bank_name=_str(data.get("bank_name")),
            bank_account_name=_str(data.get("bank_account_name")),
            sort_code=_str(data.get("sort_code")),
            account_number=_str(data.get("account_number")),
            utilities_cap_amount=to_decimal(data.get("utilities_cap_amount")),
            council_tax_in_bills=bool(data.get("council_tax_in_bills", False)),
        )


@dataclass
class CompanyInfo:
    """The letting agency's own details (managing agent)."""

    name: str = "Letably"
    address_line1: str = ""
    address_line2: str = ""
    city: str = ""
    postcode: str = ""
    email: str = ""
    phone: str = ""

    @property
    def address(self) -> str:
        """Comma-joined address."""
        return join_address(self.address_line1, self.address_line2, self.city, self.postcode)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CompanyInfo":
        """Create company info from a dictionary."""
        return cls(
            name=_str(data.get("name")) or "Letably",
            address_line1=_str(data.get("address_line1")),
            address_line2=_str(data.get("address_line2")),
            city=_str(data.get("city")),
            postcode=_str(data.get("postcode")),
            email=_str(data.get("email")),
            phone=_str(data.get("phone")),
        )


@dataclass
class Guarantor:
    """Guarantor for one tenancy member."""

    member_id: int
    name: str
    address: str = ""
    email: str = ""
    phone: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Guarantor":
        """Create a guarantor from a dictionary."""
        return cls(
            member_id=int(data["member_id"]),
            name=_str(data.get("name")),
            address=_str(data.get("address")),
            email=_str(data.get("email")),
            phone=_str(data.get("phone")),
        )


@dataclass
class TenancyRecords:
    """Everything the context builder reads for one agreement.

    Attributes:
        tenancy: The tenancy
        members: All tenants on the tenancy
        property: The let property
        landlord: The landlord (None when the agency lets directly)
        primary_member_id: The tenant signing this copy of the agreement
        guarantors: Guarantors by member
    """

    tenancy: Tenancy
    members: list[TenancyMember]
    property: Property
    landlord: Landlord | None = None
    primary_member_id: int | None = None
    guarantors: list[Guarantor] = field(default_factory=list)

    @property
    def landlord_id(self) -> int | None:
        """Landlord id used to select landlord sections."""
        return self.landlord.id if self.landlord else None

    def guarantor_for(self, member_id: int) -> Guarantor | None:
        """Return the guarantor for a member, if any."""
        for guarantor in self.guarantors:
            if guarantor.member_id == member_id:
                return guarantor
        return None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TenancyRecords":
        """Create records from a dictionary (the tenancy data file format)."""
        landlord_data = data.get("landlord")
        return cls(
            tenancy=Tenancy.from_dict(data.get("tenancy") or {}),
            members=[TenancyMember.from_dict(m) for m in data.get("members") or []],
            property=Property.from_dict(data.get("property") or {}),
            landlord=Landlord.from_dict(landlord_data) if landlord_data else None,
            primary_member_id=data.get("primary_member_id"),
            guarantors=[Guarantor.from_dict(g) for g in data.get("guarantors") or []],
        )
