"""Signature cipher: player code analysis and deciphering."""

from __future__ import annotations

from .decipherer import decipher, needs_player, resolve_n_param, resolve_url
from .player_analyzer import analyze, analyze_player, describe
from .program_cache import PlayerProgramCache
from .signatures import ALL_PLAYER_SIGNATURES, WEB_PLAYER, PlayerSignatures

__all__ = [
    "ALL_PLAYER_SIGNATURES",
    "PlayerProgramCache",
    "PlayerSignatures",
    "WEB_PLAYER",
    "analyze",
    "analyze_player",
    "decipher",
    "describe",
    "needs_player",
    "resolve_n_param",
    "resolve_url",
]
