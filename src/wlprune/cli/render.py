from __future__ import annotations

from rich.console import Console

# Plain command output (tables, env dumps). Log lines go through RichHandler.
RENDER = Console(highlight=False, soft_wrap=True)
