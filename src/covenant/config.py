"""Covenant configuration system.

Configuration is YAML-based with minimal CLI overrides (--output, --format).
Supports environment variable substitution (${VAR}) in config files, which
keeps database credentials out of the file itself.

Configuration file discovery (in priority order):
1. CLI --config argument
2. ./.covenant/config.yaml
3. ./covenant.yaml
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from covenant.models.tenancy import CompanyInfo

OUTPUT_FORMATS = {"html", "text", "json"}

# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass
class CompanyConfig:
    """The letting agency (managing agent) generating agreements.

    Attributes:
        agency_id: Agency whose sections are used
        name: Trading name printed on agreements
        address_line1: Address
        address_line2: Address
        city: City
        postcode: Postcode
        email: Contact email
        phone: Contact phone
    """

    agency_id: int = 1
    name: str = "Letably"
    address_line1: str = ""
    address_line2: str = ""
    city: str = ""
    postcode: str = ""
    email: str = ""
    phone: str = ""

    def __post_init__(self) -> None:
        """Validate company configuration."""
        if not isinstance(self.agency_id, int) or self.agency_id < 1:
            raise ValueError(f"company.agency_id must be a positive integer (got {self.agency_id!r})")

    def to_company_info(self) -> CompanyInfo:
        """Return the record consumed by the context builder."""
        return CompanyInfo(
            name=self.name,
            address_line1=self.address_line1,
            address_line2=self.address_line2,
            city=self.city,
            postcode=self.postcode,
            email=self.email,
            phone=self.phone,
        )


@dataclass
class StoreConfig:
    """Section store configuration.

    Attributes:
        url: SQLAlchemy database URL for agreement sections
        cache: Put the scope-keyed section cache in front of the store
        echo: Log emitted SQL (debugging)
    """

    url: str = "sqlite:///covenant.db"
    cache: bool = True
    echo: bool = False

    def __post_init__(self) -> None:
        """Validate store configuration."""
        if not self.url:
            raise ValueError("store.url is required")


@dataclass
class OutputConfig:
    """Output configuration.

    Attributes:
        path: Output file path
        format: Output format (html, text, json)
    """

    path: str = "agreements/agreement.html"
    format: str = "html"

    def __post_init__(self) -> None:
        """Validate output configuration."""
        if self.format not in OUTPUT_FORMATS:
            raise ValueError(f"Invalid output format: {self.format}. Valid: {sorted(OUTPUT_FORMATS)}")


@dataclass
class RenderingConfig:
    """Rendering behaviour.

    Attributes:
        fail_on_warning: Treat content-authoring warnings as failures
            (generate exits 1 instead of 2)
    """

    fail_on_warning: bool = False


@dataclass
class CovenantConfig:
    """Top-level Covenant configuration.

    CLI provides only per-run overrides (--output, --format).

    Attributes:
        company: Agency identity fed to the context builder
        store: Section store settings
        output: Output path and format
        rendering: Rendering behaviour
    """

    company: CompanyConfig = field(default_factory=CompanyConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    rendering: RenderingConfig = field(default_factory=RenderingConfig)

    # Runtime overrides (set by CLI)
    _config_path: Path | None = field(default=None, repr=False)

    @property
    def config_path(self) -> Path | None:
        """Get the path to the config file that was loaded."""
        return self._config_path


# =============================================================================
# Environment Variable Substitution
# =============================================================================

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)\}")


def substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in config values.

    Supports ${VAR} syntax for environment variable substitution.
    Example: ${COVENANT_DATABASE_URL} -> value of COVENANT_DATABASE_URL

    Args:
        value: Config value (string, dict, list, or other)

    Returns:
        Value with environment variables substituted

    Raises:
        ValueError: If a referenced variable is not set
    """
    if isinstance(value, str):

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(f"Environment variable not set: {var_name}")
            return env_value

        return _ENV_VAR_RE.sub(replace_var, value)

    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]

    return value


# =============================================================================
# Config File Discovery
# =============================================================================


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find configuration file in standard locations.

    Search order:
    1. ./.covenant/config.yaml
    2. ./covenant.yaml

    Args:
        start_path: Starting directory for search (defaults to cwd)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_path is None:
        start_path = Path.cwd()

    start_path = start_path.resolve()

    candidates = [
        start_path / ".covenant" / "config.yaml",
        start_path / "covenant.yaml",
    ]

    for candidate in candidates:
        if candidate.exists():
            return candidate

    return None


# =============================================================================
# Config Loading
# =============================================================================


def load_config_from_dict(data: dict[str, Any]) -> CovenantConfig:
    """Load configuration from a dictionary.

    Args:
        data: Configuration dictionary

    Returns:
        CovenantConfig instance

    Raises:
        ValueError: If a value is invalid or an environment variable is unset
    """
    data = substitute_env_vars(data)

    config = CovenantConfig()

    if "company" in data:
        company_data = data["company"] or {}
        defaults = config.company
        config.company = CompanyConfig(
            agency_id=company_data.get("agency_id", defaults.agency_id),
            name=str(company_data.get("name", defaults.name)),
            address_line1=str(company_data.get("address_line1", "")),
            address_line2=str(company_data.get("address_line2", "")),
            city=str(company_data.get("city", "")),
            postcode=str(company_data.get("postcode", "")),
            email=str(company_data.get("email", "")),
            phone=str(company_data.get("phone", "")),
        )

    if "store" in data:
        store_data = data["store"] or {}
        config.store = StoreConfig(
            url=store_data.get("url", config.store.url),
            cache=bool(store_data.get("cache", config.store.cache)),
            echo=bool(store_data.get("echo", config.store.echo)),
        )

    if "output" in data:
        output_data = data["output"] or {}
        config.output = OutputConfig(
            path=output_data.get("path", config.output.path),
            format=output_data.get("format", config.output.format),
        )

    if "rendering" in data:
        rendering_data = data["rendering"] or {}
        config.rendering = RenderingConfig(
            fail_on_warning=bool(rendering_data.get("fail_on_warning", False)),
        )

    return config


def load_config(
    config_path: Path | None = None,
    auto_discover: bool = True,
) -> CovenantConfig:
    """Load configuration from file.

    Args:
        config_path: Explicit path to config file
        auto_discover: Whether to search for config file if not specified

    Returns:
        CovenantConfig instance

    Raises:
        FileNotFoundError: If config_path specified but doesn't exist
    """
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        found_path = config_path
    elif auto_discover:
        found_path = find_config_file()
    else:
        found_path = None

    if found_path is not None:
        with open(found_path) as f:
            data = yaml.safe_load(f) or {}
        config = load_config_from_dict(data)
        config._config_path = found_path
    else:
        config = CovenantConfig()

    return config


def create_default_config() -> str:
    """Create default configuration YAML content.

    Returns:
        YAML string with default configuration and comments
    """
    return '''# Covenant Configuration

# The letting agency generating agreements (the managing agent)
company:
  agency_id: 1
  name: "Letably"
  address_line1: ""
  city: ""
  postcode: ""
  email: ""
  phone: ""

# Agreement section storage (any SQLAlchemy URL)
store:
  url: "sqlite:///covenant.db"  # e.g. "${COVENANT_DATABASE_URL}"
  cache: true

# Output settings
output:
  path: "agreements/agreement.html"
  format: "html"  # html, text, json

# Rendering
rendering:
  fail_on_warning: false  # exit 1 instead of 2 when clauses produce warnings
'''
