#!/usr/bin/env python3
"""
General utilities for Stellar Forge.
"""
from typing import Optional


def try_float(val) -> Optional[float]:
    try:
        return float(val)
    except (TypeError, ValueError):
        return None


def escape_name(name: str) -> str:
    """Make a display name a single whitespace-free token."""
    return "_".join(name.split()) or "_"


def unescape_name(token: str) -> str:
    return token.replace("_", " ")
