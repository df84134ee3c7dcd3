"""Typed cipher programs extracted from player code.

The player's scramble function is compiled into a closed set of
primitive operations and interpreted directly; player code is never
evaluated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Swap:
    """Exchange the first element with the one at ``index % len``."""

    index: int


@dataclass(frozen=True)
class Splice:
    """Drop the first ``index`` elements."""

    index: int


@dataclass(frozen=True)
class Reverse:
    """Reverse the whole sequence."""


CipherOp = Union[Swap, Splice, Reverse]


@dataclass(frozen=True)
class CipherOperationSequence:
    """Ordered operations extracted from one player version.

    Order matters: the operations do not commute.
    """

    player_version: str
    operations: tuple[CipherOp, ...]

    def __len__(self) -> int:
        return len(self.operations)


@dataclass(frozen=True)
class PlayerProgram:
    """Everything extracted from one player script.

    ``n_transform`` is ``None`` when the script carries no recognised
    n-parameter function; resolving a URL with an ``n`` parameter then
    fails explicitly.
    """

    player_version: str
    signature: CipherOperationSequence
    n_transform: CipherOperationSequence | None = None


@dataclass(frozen=True)
class PlayerRef:
    """Where a page's player script lives."""

    version: str
    url: str
