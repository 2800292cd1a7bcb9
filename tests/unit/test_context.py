"""Unit tests for the render context builder."""

from datetime import date
from decimal import Decimal

import pytest

from covenant.context import (
    ContextError,
    build_context,
    build_context_from_records,
    build_guarantor_context,
)
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


class TestBuildContext:
    """Tests for build_context."""

    def test_primary_and_other_tenants(self, context: RenderContext) -> None:
        """Test signing tenant and co-tenant variables."""
        assert context.variables["primary_tenant_name"] == "Ms Alice Jones"
        assert context.variables["primary_tenant_first_name"] == "Alice"
        assert context.variables["other_tenants_names_list"] == "Mr Bob Brown"
        assert context.variables["other_tenants_count"] == "1"
        assert context.variables["tenant_names_list"] == "Ms Alice Jones, Mr Bob Brown"

    def test_members_sorted_by_name(self, context: RenderContext) -> None:
        """Test that loop records are in name order regardless of input order."""
        names = [record["name"] for record in context.lists["tenants"]]

        assert names == ["Alice Jones", "Bob Brown"]

    def test_primary_marker(self, context: RenderContext) -> None:
        """Test is_primary on tenant records."""
        markers = [record["is_primary"] for record in context.lists["tenants"]]

        assert markers == [True, False]
        assert "is_primary" not in context.lists["other_tenants"][0]

    def test_tenancy_flags(self, context: RenderContext) -> None:
        """Test flags for a fixed-term room-only tenancy."""
        assert context.flags["room_only"] is True
        assert context.flags["whole_house"] is False
        assert context.flags["fixed_term"] is True
        assert context.flags["rolling_monthly"] is False

    def test_individual_rents(self, context: RenderContext) -> None:
        """Test that differing rents switch to the per-tenant table."""
        assert context.flags["individual_rents"] is True
        assert context.variables["total_rent_pppw"] == ""
        assert context.variables["primary_tenant_rent_pppw"] == "125.00"

    def test_uniform_deposits(self, context: RenderContext) -> None:
        """Test deposit variables when every tenant pays the same."""
        assert context.flags["individual_deposits"] is False
        assert context.variables["total_deposit"] == "800.00"
        assert context.variables["primary_tenant_deposit"] == "400.00"

    def test_dates_are_preformatted(self, context: RenderContext) -> None:
        """Test UK short date formatting."""
        assert context.variables["start_date"] == "01/09/2025"
        assert context.variables["end_date"] == "31/08/2026"

    def test_room_only_rooms_list(self, context: RenderContext) -> None:
        """Test that room-only tenancies expose the signing tenant's room."""
        assert context.variables["rooms_list"] == "Room 1"
        assert context.variables["primary_tenant_room"] == "Room 1"

    def test_landlord_and_bank_details(self, context: RenderContext) -> None:
        """Test landlord variables."""
        assert context.variables["landlord_display_name"] == "Acme Lettings"
        assert context.variables["sort_code"] == "12-34-56"
        assert context.variables["account_number"] == "12345678"

    def test_utilities_cap_fixed_term(self, context: RenderContext) -> None:
        """Test a full-year fixed term gets the whole annual cap."""
        assert context.flags["utilities_cap"] is True
        assert context.variables["utilities_cap_amount"] == "1040.00"
        assert context.variables["utilities_cap_annual_amount"] == "1040.00"
        assert context.variables["utilities_cap_period"] == "for the period 01/09/2025 to 31/08/2026"

    def test_utilities_cap_pro_rated(
        self,
        members: list[TenancyMember],
        property_record: Property,
        landlord: Landlord,
        company: CompanyInfo,
    ) -> None:
        """Test the cap is pro-rated by weeks over a short fixed term."""
        tenancy = Tenancy(
            tenancy_type=TenancyType.ROOM_ONLY,
            start_date=date(2025, 9, 1),
            end_date=date(2026, 2, 28),
        )

        ctx = build_context(tenancy, members, property_record, landlord, company)

        # 180 days = 25.71 weeks at 20.00 per week
        assert ctx.variables["utilities_cap_amount"] == "514.29"

    def test_rolling_monthly_without_end_date(
        self,
        members: list[TenancyMember],
        property_record: Property,
        landlord: Landlord,
        company: CompanyInfo,
    ) -> None:
        """Test that a tenancy without an end date is periodic."""
        tenancy = Tenancy(tenancy_type=TenancyType.WHOLE_HOUSE, start_date=date(2025, 9, 1))

        ctx = build_context(tenancy, members, property_record, landlord, company)

        assert ctx.flags["rolling_monthly"] is True
        assert ctx.flags["fixed_term"] is False
        assert ctx.flags["whole_house"] is True
        assert ctx.variables["end_date"] == ""
        assert ctx.variables["rooms_list"] == ""
        assert ctx.variables["utilities_cap_amount"] == "1040.00"
        assert ctx.variables["utilities_cap_period"].startswith("per year")

    def test_explicit_rolling_monthly(
        self,
        members: list[TenancyMember],
        property_record: Property,
        company: CompanyInfo,
    ) -> None:
        """Test that is_rolling_monthly wins over an end date."""
        tenancy = Tenancy(
            tenancy_type=TenancyType.WHOLE_HOUSE,
            start_date=date(2025, 9, 1),
            end_date=date(2026, 8, 31),
            is_rolling_monthly=True,
        )

        ctx = build_context(tenancy, members, property_record, None, company)

        assert ctx.flags["rolling_monthly"] is True

    def test_without_landlord(
        self,
        tenancy: Tenancy,
        members: list[TenancyMember],
        property_record: Property,
        company: CompanyInfo,
    ) -> None:
        """Test the agency stands in when no landlord is given."""
        ctx = build_context(tenancy, members, property_record, None, company)

        assert ctx.variables["landlord_display_name"] == "Letably"
        assert ctx.flags["utilities_cap"] is False
        assert ctx.variables["utilities_cap_amount"] == ""

    def test_same_rent_sets_total(
        self,
        tenancy: Tenancy,
        property_record: Property,
        company: CompanyInfo,
    ) -> None:
        """Test total_rent_pppw when every tenant pays the same."""
        members = [
            TenancyMember(id=1, first_name="A", last_name="One", rent_pppw=Decimal("120")),
            TenancyMember(id=2, first_name="B", last_name="Two", rent_pppw=Decimal("120.00")),
        ]

        ctx = build_context(tenancy, members, property_record, None, company)

        assert ctx.flags["individual_rents"] is False
        assert ctx.variables["total_rent_pppw"] == "120.00"

    def test_default_primary_is_first_by_name(
        self,
        tenancy: Tenancy,
        members: list[TenancyMember],
        property_record: Property,
        company: CompanyInfo,
    ) -> None:
        """Test the signing tenant defaults to the first member in name order."""
        ctx = build_context(tenancy, members, property_record, None, company)

        assert ctx.variables["primary_tenant_name"] == "Ms Alice Jones"

    def test_other_title_not_printed(
        self,
        tenancy: Tenancy,
        property_record: Property,
        company: CompanyInfo,
    ) -> None:
        """Test that the "other" honorific is dropped."""
        members = [TenancyMember(id=1, first_name="Sam", last_name="Lee", title="other")]

        ctx = build_context(tenancy, members, property_record, None, company)

        assert ctx.variables["primary_tenant_name"] == "Sam Lee"
        assert ctx.variables["other_tenants_count"] == "0"
        assert ctx.lists["other_tenants"] == []

    def test_no_members_raises(
        self,
        tenancy: Tenancy,
        property_record: Property,
        company: CompanyInfo,
    ) -> None:
        """Test that an empty tenancy cannot produce an agreement."""
        with pytest.raises(ContextError, match="No tenants"):
            build_context(tenancy, [], property_record, None, company)

    def test_unknown_primary_raises(
        self,
        tenancy: Tenancy,
        members: list[TenancyMember],
        property_record: Property,
        company: CompanyInfo,
    ) -> None:
        """Test that the signing tenant must be on the tenancy."""
        with pytest.raises(ContextError, match="99"):
            build_context(tenancy, members, property_record, None, company, primary_member_id=99)

    def test_context_is_fresh(
        self,
        tenancy: Tenancy,
        members: list[TenancyMember],
        property_record: Property,
        company: CompanyInfo,
    ) -> None:
        """Test that two builds do not share mutable state."""
        first = build_context(tenancy, members, property_record, None, company)
        second = build_context(tenancy, members, property_record, None, company)

        first.variables["company_name"] = "Changed"

        assert second.variables["company_name"] == "Letably"
        assert first.lists["tenants"] is not second.lists["tenants"]

    def test_from_records(self, records: TenancyRecords, company: CompanyInfo, context: RenderContext) -> None:
        """Test the records convenience wrapper."""
        assert build_context_from_records(records, company) == context


class TestBuildGuarantorContext:
    """Tests for build_guarantor_context."""

    def test_guarantor_variables(self, records: TenancyRecords, company: CompanyInfo) -> None:
        """Test guarantor-specific variables."""
        ctx = build_guarantor_context(
            records.tenancy,
            records.members,
            records.property,
            records.landlord,
            company,
            records.guarantors[0],
        )

        assert ctx.variables["guarantor_name"] == "Carol Jones"
        assert ctx.variables["guarantor_address"] == "3 Parent Road, York"
        assert ctx.variables["tenant_name"] == "Alice Jones"
        assert ctx.variables["monthly_rent"] == "541.67"
        assert ctx.variables["term_duration"] == "12 Months"
        assert ctx.variables["agreement_date"] == "01 September 2025"

    def test_tenancy_variables_kept(self, records: TenancyRecords, company: CompanyInfo) -> None:
        """Test that the guaranteed tenant is the signing tenant."""
        guarantor = Guarantor(member_id=2, name="Dan Brown")

        ctx = build_guarantor_context(
            records.tenancy, records.members, records.property, records.landlord, company, guarantor
        )

        assert ctx.variables["primary_tenant_name"] == "Mr Bob Brown"
        assert ctx.variables["property_address"] == "12 High Street, Sheffield, S10 2AB"
        assert ctx.flags["fixed_term"] is True

    def test_rolling_has_no_term(self, records: TenancyRecords, company: CompanyInfo) -> None:
        """Test that periodic tenancies leave term_duration empty."""
        records.tenancy.end_date = None

        ctx = build_guarantor_context(
            records.tenancy,
            records.members,
            records.property,
            records.landlord,
            company,
            records.guarantors[0],
        )

        assert ctx.variables["term_duration"] == ""

    def test_guarantor_for_unknown_member(self, records: TenancyRecords, company: CompanyInfo) -> None:
        """Test that a guarantor for a non-member is rejected."""
        with pytest.raises(ContextError):
            build_guarantor_context(
                records.tenancy,
                records.members,
                records.property,
                records.landlord,
                company,
                Guarantor(member_id=42, name="Nobody"),
            )
