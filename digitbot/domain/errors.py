from __future__ import annotations


class DigitBotError(Exception):
    """Base class for errors raised by the prediction pipeline."""


class InvalidObservation(DigitBotError):
    """A price observation that cannot be fed to the smoother (NaN, inf, non-numeric)."""


class WeightStoreError(DigitBotError):
    """Weight persistence failed; in-memory weights remain authoritative."""


class FeedError(DigitBotError):
    """The tick feed reported an error; the connection is dropped and re-established."""
