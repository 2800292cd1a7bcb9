"""Tenancy data file loading.

A tenancy file is YAML (or JSON, which YAML accepts) describing everything
the context builder reads::

    tenancy:
      tenancy_type: room_only
      start_date: 2025-09-01
      end_date: 2026-08-31
    members:
      - id: 1
        first_name: Alice
        last_name: Jones
        rent_pppw: 125
    property:
      address_line1: 1 High Street
      city: Sheffield
    landlord:
      id: 7
      name: Acme Lettings
    primary_member_id: 1
"""

import logging
from pathlib import Path

import yaml

from covenant.models.tenancy import TenancyRecords

logger = logging.getLogger(__name__)


class TenancyFileError(ValueError):
    """Raised when a tenancy file cannot be read or parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"{path}: {reason}")


def load_tenancy_file(path: Path) -> TenancyRecords:
    """Load tenancy records from a YAML or JSON file.

    Args:
        path: Tenancy data file

    Returns:
        TenancyRecords

    Raises:
        TenancyFileError: If the file is missing, unparsable or incomplete
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise TenancyFileError(path, "file not found") from e
    except yaml.YAMLError as e:
        raise TenancyFileError(path, f"invalid YAML ({e})") from e

    if not isinstance(data, dict):
        raise TenancyFileError(path, "expected a mapping at the top level")
    if "tenancy" not in data:
        raise TenancyFileError(path, "missing 'tenancy'")

    try:
        records = TenancyRecords.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise TenancyFileError(path, f"invalid tenancy data ({e})") from e

    logger.debug("Loaded tenancy file %s (%d member(s))", path, len(records.members))
    return records
