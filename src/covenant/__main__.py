"""Entry point for running Covenant as a module.

Usage:
    python -m covenant [command] [options]

Example:
    python -m covenant preview --tenancy-type room_only
    python -m covenant generate tenancy.yaml --member 1 --output agreement.html
"""

from covenant.cli import app

if __name__ == "__main__":
    app()
