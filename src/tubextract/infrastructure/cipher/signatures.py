"""Structural signatures of the player's cipher code.

The player script is minified and renamed on every release, but the
shape of the scramble function and of its three helpers is stable.
Each idiom is a compiled regex; alternatives are tried in order, so a
new upstream layout is supported by appending a pattern.

Adding a layout = adding a new ``PlayerSignatures`` constant + appending
it to ``ALL_PLAYER_SIGNATURES``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from tubextract.domain.entities import Reverse, Splice, Swap

# JS identifiers may contain ``$``.
_ID = r"[A-Za-z0-9_$]+"
# Array positions and splice counts; longer literals are not cipher code.
_INDEX = r"[0-9]{1,9}"


@dataclass(frozen=True)
class OperationShape:
    """Maps a helper body (or an inline statement) onto one primitive op."""

    op: type
    pattern: re.Pattern[str]
    takes_index: bool


@dataclass(frozen=True)
class PlayerSignatures:
    """Immutable pattern set for one player code layout."""

    name: str
    # Scramble entry: groups ``name``, ``body`` (statements between split/join).
    entry_functions: tuple[re.Pattern[str], ...]
    # ``OBJ.helper(a,3)`` style calls: groups ``object``, ``helper``, ``arg``.
    helper_calls: tuple[re.Pattern[str], ...]
    # Helper method definitions inside the helper object: group ``helper``.
    helper_definition: str
    # Helper body shapes, tried in order.
    helper_shapes: tuple[OperationShape, ...]
    # Statements applied directly to the array (no helper indirection).
    inline_ops: tuple[OperationShape, ...]
    # Where the n-parameter function is referenced: groups ``name``, ``idx``.
    n_function_refs: tuple[re.Pattern[str], ...]
    # Body of a function written as split / statements / join: group ``body``.
    split_join_body: re.Pattern[str]


WEB_PLAYER = PlayerSignatures(
    name="web_player",
    entry_functions=(
        re.compile(
            rf"\b(?P<name>{_ID})=function\((?P<arg>{_ID})\)\{{(?P=arg)=(?P=arg)"
            rf"\.split\(\"\"\);(?P<body>.*?)return\s+(?P=arg)\.join\(\"\"\)\}}"
        ),
        re.compile(
            rf"\bfunction\s+(?P<name>{_ID})\((?P<arg>{_ID})\)\{{(?P=arg)=(?P=arg)"
            rf"\.split\(\"\"\);(?P<body>.*?)return\s+(?P=arg)\.join\(\"\"\)\}}"
        ),
    ),
    helper_calls=(
        re.compile(rf"^(?P<object>{_ID})\.(?P<helper>{_ID})\({_ID},(?P<arg>{_ID})\)$"),
        re.compile(
            rf"^(?P<object>{_ID})\[[\"'](?P<helper>{_ID})[\"']\]"
            rf"\({_ID},(?P<arg>{_ID})\)$"
        ),
    ),
    helper_definition=r"(?:^|[{{,\s]){helper}:function\(" + _ID + r"(?:," + _ID + r")*\)",
    helper_shapes=(
        OperationShape(Reverse, re.compile(rf"{_ID}\.reverse\(\)"), False),
        OperationShape(Splice, re.compile(rf"{_ID}\.splice\(0,{_ID}\)"), True),
        OperationShape(
            Swap,
            re.compile(
                rf"var\s+{_ID}={_ID}\[0\];{_ID}\[0\]={_ID}\[{_ID}%{_ID}\.length\];"
                rf"{_ID}\[{_ID}(?:%{_ID}\.length)?\]={_ID}"
            ),
            True,
        ),
    ),
    inline_ops=(
        OperationShape(Reverse, re.compile(rf"^{_ID}\.reverse\(\)$"), False),
        OperationShape(Splice, re.compile(rf"^{_ID}\.splice\(0,(?P<arg>{_INDEX})\)$"), True),
    ),
    n_function_refs=(
        re.compile(
            rf"\.get\(\"n\"\)\)&&\({_ID}=(?P<name>{_ID})(?:\[(?P<idx>{_INDEX})\])?\({_ID}\)"
        ),
        re.compile(
            rf"{_ID}=String\.fromCharCode\(110\),{_ID}={_ID}\.get\({_ID}\)\)&&"
            rf"\({_ID}=(?P<name>{_ID})(?:\[(?P<idx>{_INDEX})\])?\({_ID}\)"
        ),
    ),
    split_join_body=re.compile(
        rf"^(?:var\s+)?(?P<arr>{_ID})={_ID}\.split\(\"\"\);(?P<body>.*?);?"
        rf"return\s+(?P=arr)\.join\(\"\"\);?$",
        re.DOTALL,
    ),
)

ALL_PLAYER_SIGNATURES: tuple[PlayerSignatures, ...] = (WEB_PLAYER,)
