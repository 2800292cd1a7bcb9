"""Bundled clause library."""
