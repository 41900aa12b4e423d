"""Signal errors raised by core parsers.

None of these are fatal: the engine logs them and degrades to "no action".
"""

from __future__ import annotations


class SignalError(Exception):
    """Base class for recoverable signal errors."""


class MalformedSignal(SignalError):
    """Text did not match any known pattern."""


class UnrecognizedPageStructure(SignalError):
    """A scraped DOM fragment had no recognizable conversation container."""
