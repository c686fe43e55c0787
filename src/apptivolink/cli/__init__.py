"""CLI package for apptivolink.

The main Typer app is created in app.py and commands are registered from
each module on import.
"""

import apptivolink.cli.commands_records  # noqa: F401, E402
import apptivolink.cli.commands_schema  # noqa: F401, E402
from apptivolink.cli.app import app

__all__ = ["app"]
