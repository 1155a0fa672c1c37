"""Debrid storage backends."""

from __future__ import annotations

from .premiumize import PremiumizeBackend
from .realdebrid import RealDebridBackend
from .registry import DEFAULT_BACKENDS, DebridRegistry
from .stremthru import STORE_SHORT_NAMES, StremThruBackend

__all__ = [
    "DEFAULT_BACKENDS",
    "STORE_SHORT_NAMES",
    "DebridRegistry",
    "PremiumizeBackend",
    "RealDebridBackend",
    "StremThruBackend",
]
