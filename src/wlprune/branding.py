from __future__ import annotations

import shutil
from typing import Literal

DEFAULT_WIDTH = 72
LOG_GUTTER_WIDTH = 10  # "[ INFO ]  " etc.

Width = int | Literal["auto"]


def _resolve_width(width: Width) -> int:
    if width == "auto":
        try:
            cols = shutil.get_terminal_size().columns
        except (OSError, ValueError):
            cols = DEFAULT_WIDTH
        return max(DEFAULT_WIDTH, cols - LOG_GUTTER_WIDTH)
    return max(DEFAULT_WIDTH, int(width))


WLPRUNE_BANNER = r"""

          _
__      _| |_ __  _ __ _   _ _ __   ___
\ \ /\ / / | '_ \| '__| | | | '_ \ / _ \
 \ V  V /| | |_) | |  | |_| | | | |  __/
  \_/\_/ |_| .__/|_|   \__,_|_| |_|\___|
           |_|

"""


def WLPRUNE_HEADER(
    title: str,
    *,
    width: Width = DEFAULT_WIDTH,
    pad: int = 8,
    motif: str = "•⊱✦⊰•",
) -> str:
    title = title.strip()
    inner = max(_resolve_width(width) - 2, len(title) + pad * 2)

    filler = inner - len(motif)
    left = filler // 2
    right = filler - left

    top = f"╔{'═' * left}{motif}{'═' * right}╗"
    mid = f"│{title.center(inner)}│"
    bot = f"╚{'═' * left}{motif}{'═' * right}╝"

    return f"\n{top}\n{mid}\n{bot}\n"

