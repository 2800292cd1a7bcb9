"""Render context builder.

Shapes tenancy, member, property, landlord and agency records into the
three namespaces consumed by the template engine. Every scalar is formatted
to its final display string here, so rendering itself never formats dates or
amounts and never reads the clock or the locale.

The builder does not care where the records came from: real tenancy rows
and synthetic preview data go through exactly the same code.
"""

import logging
from collections.abc import Sequence
from decimal import Decimal

from covenant.models.context import Record, RenderContext
from covenant.models.tenancy import (
    CompanyInfo,
    Guarantor,
    Landlord,
    Property,
    Tenancy,
    TenancyMember,
    TenancyRecords,
    TenancyType,
)
from covenant.utils.formatting import (
    format_currency,
    format_date,
    format_term_duration,
    to_decimal,
)

logger = logging.getLogger(__name__)

_WEEKS_PER_YEAR = Decimal(52)
_DAYS_PER_WEEK = Decimal(7)
_MONTHS_PER_YEAR = Decimal(12)


class ContextError(ValueError):
    """Raised when the supplied records cannot describe an agreement."""


def _member_sort_key(member: TenancyMember) -> tuple[str, str, int]:
    return (member.first_name.lower(), member.last_name.lower(), member.id)


def _member_record(member: TenancyMember, primary_id: int | None = None) -> Record:
    record: Record = {
        "name": member.name,
        "first_name": member.first_name,
        "last_name": member.last_name,
        "address": member.current_address,
        "email": member.email,
        "phone": member.phone,
        "room": member.room,
        "rent_pppw": format_currency(member.rent_pppw),
        "deposit_amount": format_currency(member.deposit_amount),
        "application_type": member.application_type,
    }
    if primary_id is not None:
        record["is_primary"] = member.id == primary_id
    return record


def _utilities_cap_amount(tenancy: Tenancy, cap: Decimal) -> str:
    """Cap for the tenancy period: pro-rated over a fixed term, annual otherwise."""
    if tenancy.is_periodic or tenancy.start_date is None or tenancy.end_date is None:
        return format_currency(cap)
    days = Decimal((tenancy.end_date - tenancy.start_date).days)
    weeks = days / _DAYS_PER_WEEK
    return format_currency(cap / _WEEKS_PER_YEAR * weeks)


def _utilities_cap_period(tenancy: Tenancy) -> str:
    if tenancy.is_periodic:
        return "per year (pro-rated for your actual tenancy period)"
    return (
        f"for the period {format_date(tenancy.start_date)} "
        f"to {format_date(tenancy.end_date)}"
    )


def build_context(
    tenancy: Tenancy,
    members: Sequence[TenancyMember],
    property: Property,
    landlord: Landlord | None,
    company: CompanyInfo,
    primary_member_id: int | None = None,
) -> RenderContext:
    """Build the render context for one tenant's copy of an agreement.

    Args:
        tenancy: The tenancy
        members: All tenants on the tenancy
        property: The let property
        landlord: The landlord, or None when the agency lets directly
        company: Agency details (the managing agent)
        primary_member_id: The tenant signing this copy; defaults to the
            first member in name order

    Returns:
        A fresh RenderContext

    Raises:
        ContextError: If there are no members or the primary member is not
            on the tenancy
    """
    if not members:
        raise ContextError("No tenants found for this tenancy")

    ordered = sorted(members, key=_member_sort_key)
    if primary_member_id is None:
        primary = ordered[0]
    else:
        primary = next((m for m in ordered if m.id == primary_member_id), None)
        if primary is None:
            raise ContextError(
                f"Tenant {primary_member_id} is not a member of this tenancy"
            )
    others = [m for m in ordered if m.id != primary.id]
    landlord = landlord or Landlord()

    room_only = tenancy.tenancy_type is TenancyType.ROOM_ONLY
    rolling = tenancy.is_periodic

    rents = {to_decimal(m.rent_pppw) for m in ordered}
    deposits = {to_decimal(m.deposit_amount) for m in ordered}
    individual_rents = len(rents) > 1
    individual_deposits = len(deposits) > 1
    total_deposit = sum(
        (to_decimal(m.deposit_amount) or Decimal(0) for m in ordered),
        Decimal(0),
    )

    cap = to_decimal(landlord.utilities_cap_amount)
    has_cap = bool(cap)

    variables: dict[str, str] = {
        # Company (managing agent)
        "company_name": company.name,
        "company_address": company.address,
        "company_address_line1": company.address_line1,
        "company_address_line2": company.address_line2,
        "company_city": company.city,
        "company_postcode": company.postcode,
        "company_email": company.email,
        "company_phone": company.phone,

        # Landlord
        "landlord_display_name": (
            landlord.agreement_display_format or landlord.name or company.name
        ),
        "landlord_address": landlord.address,
        "landlord_email": landlord.email,
        "landlord_phone": landlord.phone,

        # Property
        "property_address": property.full_address,
        "property_address_line1": property.address_line1,
        "property_address_line2": property.address_line2,
        "property_city": property.city,
        "property_postcode": property.postcode,
        "property_location": property.location,

        # Tenancy
        "tenancy_type": tenancy.tenancy_type.value,
        "tenancy_type_description": tenancy.tenancy_type.description,
        "start_date": format_date(tenancy.start_date),
        "end_date": format_date(tenancy.end_date),
        "status": tenancy.status,

        # Signing tenant
        "primary_tenant_name": primary.formal_name,
        "primary_tenant_first_name": primary.first_name,
        "primary_tenant_last_name": primary.last_name,
        "primary_tenant_address": primary.current_address,
        "primary_tenant_email": primary.email,
        "primary_tenant_phone": primary.phone,
        "primary_tenant_room": primary.room,
        "primary_tenant_rent_pppw": format_currency(primary.rent_pppw),
        "primary_tenant_deposit": format_currency(primary.deposit_amount),

        # Other tenants
        "other_tenants_names_list": ", ".join(m.formal_name for m in others),
        "other_tenants_count": str(len(others)),
        "tenant_names_list": ", ".join(m.formal_name for m in ordered),
        "tenant_contact_details": "\n".join(
            f"{m.name}: {m.email}{', ' + m.phone if m.phone else ''}" for m in ordered
        ),

        # Rent and deposit
        "total_rent_pppw": "" if individual_rents else format_currency(ordered[0].rent_pppw),
        "total_deposit": format_currency(total_deposit),
        "rooms_list": primary.room if room_only else "",

        # Bank details
        "bank_name": landlord.bank_name,
        "bank_account_name": landlord.bank_account_name,
        "sort_code": landlord.sort_code,
        "account_number": landlord.account_number,

        # Utilities
        "utilities_cap_amount": _utilities_cap_amount(tenancy, cap) if has_cap else "",
        "utilities_cap_annual_amount": format_currency(cap) if has_cap else "",
        "utilities_cap_period": _utilities_cap_period(tenancy) if has_cap else "",
    }

    flags = {
        "room_only": room_only,
        "whole_house": not room_only,
        "fixed_term": not rolling,
        "rolling_monthly": rolling,
        "individual_rents": individual_rents,
        "individual_deposits": individual_deposits,
        "utilities_cap": has_cap,
        "council_tax_included": landlord.council_tax_in_bills,
    }

    lists: dict[str, list[Record]] = {
        "tenants": [_member_record(m, primary.id) for m in ordered],
        "other_tenants": [_member_record(m) for m in others],
    }

    logger.debug(
        "Built context: %d variables, %d flags, %d tenants",
        len(variables), len(flags), len(ordered),
    )
    return RenderContext(variables=variables, flags=flags, lists=lists)


def build_guarantor_context(
    tenancy: Tenancy,
    members: Sequence[TenancyMember],
    property: Property,
    landlord: Landlord | None,
    company: CompanyInfo,
    guarantor: Guarantor,
) -> RenderContext:
    """Build the context for a guarantor's deed of guarantee.

    The guaranteed tenant is the signing tenant of the underlying tenancy
    context, so every tenancy variable stays available to guarantor clauses.

    Args:
        tenancy: The tenancy
        members: All tenants on the tenancy
        property: The let property
        landlord: The landlord, if any
        company: Agency details
        guarantor: The guarantor and the member they guarantee

    Returns:
        Tenancy context extended with guarantor variables
    """
    base = build_context(
        tenancy,
        members,
        property,
        landlord,
        company,
        primary_member_id=guarantor.member_id,
    )
    tenant = next(m for m in members if m.id == guarantor.member_id)

    rent = to_decimal(tenant.rent_pppw)
    monthly_rent = (
        format_currency(rent * _WEEKS_PER_YEAR / _MONTHS_PER_YEAR) if rent else "0.00"
    )
    term = "" if tenancy.is_periodic else format_term_duration(tenancy.start_date, tenancy.end_date)

    extra = RenderContext(
        variables={
            "guarantor_name": guarantor.name,
            "guarantor_address": guarantor.address,
            "guarantor_email": guarantor.email,
            "guarantor_phone": guarantor.phone,
            "tenant_name": tenant.name,
            "monthly_rent": monthly_rent,
            "term_duration": term,
            "agreement_date": format_date(tenancy.start_date, "long"),
        },
    )
    return base.merged(extra)


def build_context_from_records(
    records: TenancyRecords,
    company: CompanyInfo,
) -> RenderContext:
    """Build a tenancy context from a TenancyRecords bundle."""
    return build_context(
        records.tenancy,
        records.members,
        records.property,
        records.landlord,
        company,
        primary_member_id=records.primary_member_id,
    )
