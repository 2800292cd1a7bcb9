"""Covenant - Agreement Document Generation Engine.

Covenant produces tenancy and guarantor agreements for a letting agency by
resolving a three-tier clause hierarchy (agency defaults, landlord overrides,
landlord custom clauses) and rendering every clause template against a
per-tenancy data context.

Core principles:
- Determinism: Same sections and context always produce byte-identical text
- Fail-Open Rendering: Malformed clause content degrades, it never aborts a document
- Preview Equivalence: Previews and production share one rendering code path
- Escaped Data: Values entered by tenants and landlords are always HTML-escaped
"""

__version__ = "0.1.0"
__author__ = "Covenant Contributors"
