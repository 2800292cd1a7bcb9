"""Document assembler (Principles: Fail-Open Rendering, Preview Equivalence).

Composes the section resolver and the template engine: resolves the ordered
section list for a landlord, renders every title and body against one
context, and returns the whole document. A section that cannot be rendered
is returned degraded, never dropped.

Production generation and previews both end in ``assemble``; only the
source of the tenancy records differs.
"""

import logging

from covenant.context import build_context_from_records, build_guarantor_context
from covenant.models.context import RenderContext
from covenant.models.document import (
    AgreementDocument,
    RenderedSection,
    RenderWarning,
    WarningKind,
)
from covenant.models.section import AgreementType, ResolvedSection
from covenant.models.tenancy import CompanyInfo, Guarantor, TenancyRecords
from covenant.preview import PreviewOptions, build_preview_records, preview_guarantor
from covenant.sections.resolver import SectionResolver
from covenant.templates.engine import render_with_warnings
from covenant.utils.formatting import format_date
from covenant.utils.logging import get_logger

logger = logging.getLogger(__name__)
_logger = get_logger()


class DocumentAssembler:
    """Builds rendered agreements.

    Usage:
        assembler = DocumentAssembler(SectionResolver(store))
        document = assembler.generate(agency_id, records, company)
    """

    def __init__(self, resolver: SectionResolver) -> None:
        """Initialize the assembler.

        Args:
            resolver: Section resolver (backed by a store or a cache)
        """
        self.resolver = resolver

    def assemble(
        self,
        agency_id: int,
        landlord_id: int | None,
        agreement_type: AgreementType,
        context: RenderContext,
        include_inactive: bool = False,
        metadata: dict[str, str] | None = None,
    ) -> AgreementDocument:
        """Resolve and render a document.

        Args:
            agency_id: Agency
            landlord_id: Landlord whose overrides and custom sections apply
            agreement_type: Document kind
            context: Render context shared by every section
            include_inactive: Include inactive sections (authoring previews)
            metadata: Display data passed through to page wrappers

        Returns:
            The ordered rendered document
        """
        agreement_type = AgreementType.parse(agreement_type)
        sections = self.resolver.resolve(
            agency_id,
            landlord_id,
            agreement_type,
            include_inactive=include_inactive,
        )
        document = AgreementDocument(
            agreement_type=agreement_type,
            sections=self.render_sections(sections, context),
            metadata=dict(metadata or {}),
        )

        logger.info(
            "Assembled %s: %d section(s), %d warning(s)",
            agreement_type.value,
            len(document.sections),
            len(document.warnings),
        )
        return document

    def render_sections(
        self,
        sections: list[ResolvedSection],
        context: RenderContext,
    ) -> list[RenderedSection]:
        """Render resolved sections in order."""
        return [self._render_section(section, context) for section in sections]

    def _render_section(self, section: ResolvedSection, context: RenderContext) -> RenderedSection:
        try:
            title = render_with_warnings(section.title, context)
            body = render_with_warnings(section.content, context)
        except Exception as e:
            logger.exception("Rendering failed for section %s", section.key)
            warning = RenderWarning(
                kind=WarningKind.RENDER_FAILURE,
                message=f"Section could not be rendered and is shown unprocessed: {e}",
                section_key=section.key,
            )
            rendered = RenderedSection(
                key=section.key,
                title=section.title,
                html=section.content,
                provenance=section.provenance,
                order=section.order,
                warnings=(warning,),
            )
        else:
            rendered = RenderedSection(
                key=section.key,
                title=title.text,
                html=body.text,
                provenance=section.provenance,
                order=section.order,
                warnings=tuple(
                    w.for_section(section.key) for w in title.warnings + body.warnings
                ),
            )

        for warning in rendered.warnings:
            _logger.structured(
                logging.WARNING,
                f"Section '{section.key}': {warning.message}",
                section_key=section.key,
                warning_kind=warning.kind.value,
                directive=warning.directive,
                offset=warning.offset,
            )
        return rendered

    # =========================================================================
    # Entry points
    # =========================================================================

    def generate(
        self,
        agency_id: int,
        records: TenancyRecords,
        company: CompanyInfo,
        agreement_type: AgreementType = AgreementType.TENANCY_AGREEMENT,
        include_inactive: bool = False,
    ) -> AgreementDocument:
        """Generate a tenancy agreement from tenancy records.

        Args:
            agency_id: Agency
            records: Tenancy, members, property and landlord
            company: Agency details
            agreement_type: Document kind
            include_inactive: Include inactive sections

        Returns:
            The rendered agreement

        Raises:
            ContextError: If the records cannot describe an agreement
        """
        context = build_context_from_records(records, company)
        return self.assemble(
            agency_id,
            records.landlord_id,
            agreement_type,
            context,
            include_inactive=include_inactive,
            metadata=_metadata(records, context),
        )

    def generate_guarantor(
        self,
        agency_id: int,
        records: TenancyRecords,
        company: CompanyInfo,
        guarantor: Guarantor,
        include_inactive: bool = False,
    ) -> AgreementDocument:
        """Generate a guarantor's deed of guarantee.

        Args:
            agency_id: Agency
            records: The guaranteed tenancy
            company: Agency details
            guarantor: Guarantor and the member they guarantee
            include_inactive: Include inactive sections

        Raises:
            ContextError: If the guaranteed member is not on the tenancy
        """
        context = _guarantor_context(records, company, guarantor)
        return self.assemble(
            agency_id,
            records.landlord_id,
            AgreementType.GUARANTOR_AGREEMENT,
            context,
            include_inactive=include_inactive,
            metadata=_metadata(records, context, guarantor),
        )

    def preview(
        self,
        agency_id: int,
        options: PreviewOptions,
        company: CompanyInfo,
        agreement_type: AgreementType = AgreementType.TENANCY_AGREEMENT,
    ) -> AgreementDocument:
        """Render an agreement from synthetic preview data.

        Uses the same context builder, resolver and renderer as ``generate``;
        only the records are synthetic. ``options.defaults_only`` resolves
        agency defaults without any landlord sections.
        """
        agreement_type = AgreementType.parse(agreement_type)
        records = build_preview_records(options)
        logger.debug(
            "Previewing %s (%s) for landlord=%s",
            agreement_type.value,
            options.tenancy_type.value,
            options.landlord_id,
        )

        guarantor = None
        if agreement_type is AgreementType.GUARANTOR_AGREEMENT:
            guarantor = preview_guarantor(records)
            context = _guarantor_context(records, company, guarantor)
        else:
            context = build_context_from_records(records, company)

        return self.assemble(
            agency_id,
            options.landlord_id,
            agreement_type,
            context,
            include_inactive=options.include_inactive,
            metadata=_metadata(records, context, guarantor),
        )


def _guarantor_context(
    records: TenancyRecords,
    company: CompanyInfo,
    guarantor: Guarantor,
) -> RenderContext:
    return build_guarantor_context(
        records.tenancy,
        records.members,
        records.property,
        records.landlord,
        company,
        guarantor,
    )


def _metadata(
    records: TenancyRecords,
    context: RenderContext,
    guarantor: Guarantor | None = None,
) -> dict[str, str]:
    """Display data for page wrappers, drawn from the render context."""
    variables = context.variables
    metadata = {
        "property_address": variables.get("property_address", ""),
        "primary_tenant_name": variables.get("primary_tenant_name", ""),
        "other_tenants_names_list": variables.get("other_tenants_names_list", ""),
        "landlord_display_name": variables.get("landlord_display_name", ""),
        "company_name": variables.get("company_name", ""),
        "tenancy_type_description": variables.get("tenancy_type_description", ""),
        "start_date": format_date(records.tenancy.start_date, "long"),
        "end_date": format_date(records.tenancy.end_date, "long"),
    }
    if guarantor is not None:
        metadata["guarantor_name"] = guarantor.name
    return metadata
