"""Covenant CLI interface.

Commands:
- init: Initialize Covenant configuration
- seed: Load the default clause library into the section store
- sections: List stored or resolved agreement sections
- generate: Generate an agreement from a tenancy data file
- preview: Render an agreement from synthetic preview data
- validate: Lint a clause template file

Global options:
- --config: Path to configuration file
- --verbose: Enable verbose output with timestamps
- --quiet: Suppress info messages
- --ci: JSON log output
- --version: Show version and exit
"""

import json
from pathlib import Path
from typing import Annotated

import typer

from covenant import __version__
from covenant.config import CovenantConfig, create_default_config, load_config
from covenant.utils.logging import configure_from_cli, get_logger

# Create Typer app
app = typer.Typer(
    name="covenant",
    help="Tenancy and guarantor agreement generator",
    add_completion=False,
    no_args_is_help=True,
)

# Global state
_config: CovenantConfig | None = None
_logger = get_logger()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"covenant {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output with timestamps",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress info messages (warnings and errors only)",
        ),
    ] = False,
    ci: Annotated[
        bool,
        typer.Option(
            "--ci",
            help="Enable CI mode with JSON log output",
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """Covenant - Agreement Document Generation Engine.

    Resolves agency default, landlord override and landlord custom clauses
    and renders them into tenancy and guarantor agreements.
    """
    global _config

    # Configure logging based on CLI flags
    configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)

    # Load configuration
    try:
        _config = load_config(config_path=config)
        if _config.config_path:
            _logger.debug(f"Loaded config from: {_config.config_path}")
    except FileNotFoundError as e:
        _logger.error(str(e))
        raise typer.Exit(1)
    except Exception as e:
        _logger.error(f"Failed to load config: {e}")
        raise typer.Exit(1)


def _get_config() -> CovenantConfig:
    return _config or CovenantConfig()


def _open_store(config: CovenantConfig):  # noqa: ANN202
    """Open the configured section store and a resolver reading from it."""
    from covenant.sections import SectionCache, SectionResolver, SqlSectionStore

    try:
        store = SqlSectionStore(config.store.url, echo=config.store.echo)
    except Exception as e:
        _logger.error(f"Cannot open section store {config.store.url}: {e}")
        raise typer.Exit(1)

    source = SectionCache(store) if config.store.cache else store
    return store, SectionResolver(source)


def _parse_agreement_type(value: str):  # noqa: ANN202
    from covenant.models import AgreementType

    try:
        return AgreementType.parse(value)
    except ValueError as e:
        _logger.error(str(e))
        raise typer.Exit(1)


def _write_document(
    document,  # noqa: ANN001
    output: Path | None,
    output_format: str | None,
    dry_run: bool,
) -> None:
    """Write or preview a rendered document, then exit with its status code.

    Exit codes:
        0: Rendered cleanly
        1: Error, or warnings with rendering.fail_on_warning
        2: Rendered with content-authoring warnings
    """
    from covenant.templates import DocumentRenderer

    config = _get_config()
    output_path = output or Path(config.output.path)
    output_format = output_format or config.output.format
    renderer = DocumentRenderer(config=config)

    if not document.sections:
        _logger.error("No agreement sections found; run 'covenant seed' first")
        raise typer.Exit(1)

    try:
        if dry_run:
            typer.echo(renderer.render(document, output_format))
            _logger.info("Dry run complete - no files written")
        else:
            rendered_path = renderer.render_to_file(document, output_path, output_format)
            typer.echo(f"Agreement written to: {rendered_path}")
    except Exception as e:
        _logger.error(f"Rendering failed: {e}")
        raise typer.Exit(1)

    if document.warnings:
        _logger.warning(
            f"{len(document.warnings)} content warning(s) in "
            f"{len({w.section_key for w in document.warnings})} section(s)"
        )
        raise typer.Exit(1 if config.rendering.fail_on_warning else 2)

    raise typer.Exit(0)


# =============================================================================
# init command
# =============================================================================


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            help="Overwrite existing config",
        ),
    ] = False,
) -> None:
    """Initialize Covenant configuration.

    Creates .covenant/config.yaml with default settings.
    """
    covenant_dir = Path(".covenant")
    covenant_dir.mkdir(exist_ok=True)

    config_file = covenant_dir / "config.yaml"

    if config_file.exists() and not force:
        _logger.error(f"Config already exists: {config_file}")
        _logger.info("Use --force to overwrite")
        raise typer.Exit(1)

    config_file.write_text(create_default_config())
    _logger.info(f"Created config: {config_file}")

    typer.echo("\nCovenant configuration initialized")
    typer.echo(f"   Config: {config_file}")
    typer.echo("   Next: covenant seed")
    raise typer.Exit(0)


# =============================================================================
# seed command
# =============================================================================


@app.command()
def seed(
    landlord: Annotated[
        int | None,
        typer.Option(
            "--landlord",
            "-l",
            help="Seed as overrides for this landlord (default: agency defaults)",
        ),
    ] = None,
    library: Annotated[
        Path | None,
        typer.Option(
            "--library",
            help="Clause library YAML (default: bundled library)",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    agreement_type: Annotated[
        str | None,
        typer.Option(
            "--type",
            "-t",
            help="Only seed this agreement type",
        ),
    ] = None,
) -> None:
    """Replace a scope's sections with the clause library.

    Existing sections of every seeded scope are removed first.
    """
    from covenant.sections import SectionStoreError, SeedError, seed_sections

    config = _get_config()
    store, _ = _open_store(config)
    types = [_parse_agreement_type(agreement_type)] if agreement_type else None

    try:
        created = seed_sections(
            store,
            config.company.agency_id,
            landlord_id=landlord,
            path=library,
            agreement_types=types,
        )
    except (SeedError, SectionStoreError) as e:
        _logger.error(f"Seeding failed: {e}")
        raise typer.Exit(1)

    scope = "agency defaults" if landlord is None else f"landlord {landlord}"
    for seeded_type, sections in created.items():
        typer.echo(f"Seeded {len(sections)} {seeded_type.value} section(s) as {scope}")
        for section in sections:
            typer.echo(f"  {section.section_order:g}. {section.section_title} ({section.section_key})")
    raise typer.Exit(0)


# =============================================================================
# sections command
# =============================================================================


@app.command()
def sections(
    landlord: Annotated[
        int | None,
        typer.Option(
            "--landlord",
            "-l",
            help="Show the resolved list for this landlord",
        ),
    ] = None,
    agreement_type: Annotated[
        str,
        typer.Option(
            "--type",
            "-t",
            help="Agreement type",
        ),
    ] = "tenancy_agreement",
    resolved: Annotated[
        bool,
        typer.Option(
            "--resolved",
            help="Show the merged document skeleton instead of stored rows",
        ),
    ] = False,
    include_inactive: Annotated[
        bool,
        typer.Option(
            "--include-inactive",
            help="Include inactive sections in the resolved list",
        ),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output results as JSON",
        ),
    ] = False,
) -> None:
    """List agreement sections.

    Without --resolved, lists every stored row of the agency (optionally
    only one landlord's rows). With --resolved, shows the ordered section
    list a document for that landlord would use, with provenance.
    """
    config = _get_config()
    store, resolver = _open_store(config)
    parsed_type = _parse_agreement_type(agreement_type)
    agency_id = config.company.agency_id

    if resolved:
        entries = resolver.resolve(
            agency_id, landlord, parsed_type, include_inactive=include_inactive
        )
        if json_output:
            typer.echo(json.dumps([e.to_dict() for e in entries], indent=2))
            raise typer.Exit(0)
        for entry in entries:
            inactive = "" if entry.is_active else " [inactive]"
            typer.echo(f"{entry.order:g}\t{entry.key}\t{entry.provenance.value}\t{entry.title}{inactive}")
        raise typer.Exit(0)

    rows = store.list_sections(agency_id, parsed_type)
    if landlord is not None:
        rows = [row for row in rows if row.landlord_id == landlord]

    if json_output:
        typer.echo(json.dumps([row.to_dict() for row in rows], indent=2))
        raise typer.Exit(0)

    for row in rows:
        scope = "default" if row.is_default else f"landlord {row.landlord_id}"
        status = "" if row.is_active else " [inactive]"
        typer.echo(f"{row.id}\t{row.section_order:g}\t{row.section_key}\t{scope}\t{row.section_title}{status}")
    raise typer.Exit(0)


# =============================================================================
# generate command
# =============================================================================


@app.command()
def generate(
    tenancy_file: Annotated[
        Path,
        typer.Argument(
            help="Tenancy data file (YAML or JSON)",
            exists=True,
            dir_okay=False,
        ),
    ],
    member: Annotated[
        int | None,
        typer.Option(
            "--member",
            "-m",
            help="Tenancy member signing this copy (overrides the file)",
        ),
    ] = None,
    guarantor: Annotated[
        bool,
        typer.Option(
            "--guarantor",
            help="Generate the member's guarantor agreement instead",
        ),
    ] = False,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output file path (overrides config)",
        ),
    ] = None,
    format: Annotated[
        str | None,
        typer.Option(
            "--format",
            "-f",
            help="Output format: html, text, json",
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            help="Print the agreement instead of writing a file",
        ),
    ] = False,
) -> None:
    """Generate an agreement from a tenancy data file.

    Exit codes:
        0: Agreement generated successfully
        1: Error during generation
        2: Generated with content warnings
    """
    from covenant.assembler import DocumentAssembler
    from covenant.context import ContextError
    from covenant.loaders import TenancyFileError, load_tenancy_file

    config = _get_config()

    try:
        records = load_tenancy_file(tenancy_file)
    except TenancyFileError as e:
        _logger.error(str(e))
        raise typer.Exit(1)

    if member is not None:
        records.primary_member_id = member

    _, resolver = _open_store(config)
    assembler = DocumentAssembler(resolver)
    company = config.company.to_company_info()

    try:
        if guarantor:
            member_id = records.primary_member_id
            if member_id is None:
                _logger.error("Guarantor agreements need --member or primary_member_id")
                raise typer.Exit(1)
            guarantor_record = records.guarantor_for(member_id)
            if guarantor_record is None:
                _logger.error(f"No guarantor recorded for member {member_id}")
                raise typer.Exit(1)
            document = assembler.generate_guarantor(
                config.company.agency_id, records, company, guarantor_record
            )
        else:
            document = assembler.generate(config.company.agency_id, records, company)
    except ContextError as e:
        _logger.error(f"Cannot build agreement: {e}")
        raise typer.Exit(1)

    _write_document(document, output, format, dry_run)


# =============================================================================
# preview command
# =============================================================================


@app.command()
def preview(
    tenancy_type: Annotated[
        str,
        typer.Option(
            "--tenancy-type",
            help="room_only or whole_house",
        ),
    ] = "whole_house",
    landlord: Annotated[
        int | None,
        typer.Option(
            "--landlord",
            "-l",
            help="Preview with this landlord's overrides and custom sections",
        ),
    ] = None,
    agreement_type: Annotated[
        str,
        typer.Option(
            "--type",
            "-t",
            help="Agreement type",
        ),
    ] = "tenancy_agreement",
    rolling: Annotated[
        bool,
        typer.Option(
            "--rolling",
            help="Preview a rolling monthly tenancy",
        ),
    ] = False,
    include_inactive: Annotated[
        bool,
        typer.Option(
            "--include-inactive",
            help="Include inactive sections",
        ),
    ] = False,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Write to this file instead of printing",
        ),
    ] = None,
    format: Annotated[
        str,
        typer.Option(
            "--format",
            "-f",
            help="Output format: html, text, json",
        ),
    ] = "text",
) -> None:
    """Render an agreement from synthetic preview data.

    Uses the same resolver and renderer as generate; only the tenancy
    records are synthetic (John Smith and Jane Doe at 123 Example Street).
    """
    from covenant.assembler import DocumentAssembler
    from covenant.models import Landlord, TenancyType
    from covenant.preview import PREVIEW_LANDLORD_NAME, PreviewOptions

    config = _get_config()

    try:
        parsed_tenancy_type = TenancyType(tenancy_type)
    except ValueError:
        _logger.error(f"Invalid tenancy type: {tenancy_type}. Valid: room_only, whole_house")
        raise typer.Exit(1)

    options = PreviewOptions(
        tenancy_type=parsed_tenancy_type,
        landlord=Landlord(id=landlord, name=PREVIEW_LANDLORD_NAME) if landlord is not None else None,
        is_rolling_monthly=rolling,
        include_inactive=include_inactive,
    )

    _, resolver = _open_store(config)
    document = DocumentAssembler(resolver).preview(
        config.company.agency_id,
        options,
        config.company.to_company_info(),
        agreement_type=_parse_agreement_type(agreement_type),
    )

    _write_document(document, output, format, dry_run=output is None)


# =============================================================================
# validate command
# =============================================================================


@app.command()
def validate(
    template: Annotated[
        Path,
        typer.Argument(
            help="Path to a clause template file to validate",
            exists=True,
            dir_okay=False,
        ),
    ],
    agreement_type: Annotated[
        str,
        typer.Option(
            "--type",
            "-t",
            help="Agreement type whose variables count as defined",
        ),
    ] = "tenancy_agreement",
) -> None:
    """Validate a clause template.

    Reports unterminated blocks, stray closing tags, nested loops and names
    the agreement context does not define.

    Exit codes:
        0: Template is valid
        1: Structural problems
        2: Only undefined names
    """
    from covenant.context import build_context_from_records, build_guarantor_context
    from covenant.models import AgreementType, WarningKind
    from covenant.preview import PreviewOptions, build_preview_records, preview_guarantor
    from covenant.validation import validate_template

    _logger.info(f"Validating template: {template}")

    # Any context yields the full set of names; preview data is convenient.
    company = _get_config().company.to_company_info()
    records = build_preview_records(PreviewOptions())
    if _parse_agreement_type(agreement_type) is AgreementType.GUARANTOR_AGREEMENT:
        context = build_guarantor_context(
            records.tenancy,
            records.members,
            records.property,
            records.landlord,
            company,
            preview_guarantor(records),
        )
    else:
        context = build_context_from_records(records, company)

    report = validate_template(template.read_text(encoding="utf-8"), context)

    if report.ok:
        typer.echo(f"Template is valid: {template}")
        raise typer.Exit(0)

    structural = {WarningKind.UNTERMINATED_BLOCK, WarningKind.UNMATCHED_CLOSE, WarningKind.NESTED_LOOP}
    for warning in report.warnings:
        typer.echo(f"  offset {warning.offset}: {warning.message}")

    if any(w.kind in structural for w in report.warnings):
        typer.echo(f"Template has structural problems: {template}")
        raise typer.Exit(1)

    typer.echo(f"Template references undefined names: {template}")
    raise typer.Exit(2)


if __name__ == "__main__":
    app()
