# src/momentum/core/errors.py

from __future__ import annotations


class MomentumError(Exception):
    """Base class for errors reported at the command boundary."""


class ValidationError(MomentumError):
    """Blank title/text on a mutating command. Raised before any state change."""


class ExternalCallFailure(MomentumError):
    """Ingestion or first-step suggestion failed or returned malformed data."""


class StorageFailure(MomentumError):
    """Persistence read/write failed. Never reverts an in-memory change."""
