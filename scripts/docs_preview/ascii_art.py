"""Banner art used at the top of docs preview comments.

Pool order is part of the contract: seeded selection walks it front to back.
"""

from __future__ import annotations

from dataclasses import dataclass

# U+2800 BRAILLE PATTERN BLANK. Renders as whitespace but survives
# Markdown trimming inside code blocks.
BRAILLE_SPACE = "⠀"

LEFT_PAD = BRAILLE_SPACE * 2


@dataclass(frozen=True)
class AsciiChoice:
    """One weighted banner in the selection pool."""
    art: str
    weight: float = 1.0


_DOCS_BOOK = r"""
     _______  _______
    /      /,/      /,
   / DOCS // PREV  //
  /______//______ //
 (______(/(______(/
""".strip("\n")

_ROCKET = r"""
        /\
       /  \
      | () |
      |    |   preview deployed
     /|/\/\|\
    /_/    \_\
""".strip("\n")

_CAT = r"""
   /\_/\
  ( o.o )   docs are live
   > ^ <
""".strip("\n")

_SHIP = r"""
         |    |    |
        )_)  )_)  )_)
       )___))___))___)\
      )____)____)_____)\\
    _____|____|____|____\\\__
    \   ship it!        /
""".strip("\n")

_LIGHTHOUSE = r"""
        _
       /_\      ~ preview ready ~
       |_|
      /___\
     |  #  |
     |_____|
""".strip("\n")

ASCII_SET: tuple[AsciiChoice, ...] = (
    AsciiChoice(art=_DOCS_BOOK, weight=4),
    AsciiChoice(art=_ROCKET, weight=3),
    AsciiChoice(art=_CAT, weight=2),
    AsciiChoice(art=_SHIP, weight=2),
    # rare
    AsciiChoice(art=_LIGHTHOUSE, weight=0.5),
)

FIRST_CONTRIBUTION_ASCII = r"""
   *    .  *       .     *
  .  _____________   .
    |  FIRST  PR  |  *
  * |  welcome!   |     .
    |_____________|
   .   \ (^_^) /    *
         |   |
        _/   \_
""".strip("\n")
