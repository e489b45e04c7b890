#!/usr/bin/env python3
"""
Exceptions raised by Stellar Forge.

Body-level numeric edge cases (coincident centres, unbound orbit requests,
render capacity overflow) are absorbed where they occur and only logged. The
classes here cover failures the caller has to react to, chiefly scene files.
"""
from typing import Optional


class SimulationError(Exception):
    """Base exception for simulation-related errors."""
    pass


class SceneFileError(SimulationError):
    """Raised when a scene file cannot be read or written."""
    pass


class SceneFormatError(SimulationError):
    """Raised when scene text is malformed."""

    def __init__(self, message: str, line: Optional[int] = None):
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)
