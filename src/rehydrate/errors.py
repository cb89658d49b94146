from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

This module defines the error taxonomy used by history hydration.
"""


class HydrationError(Exception):
    """Base exception for all rehydrate errors."""

    pass


class TransportError(HydrationError):
    """
    A backend call failed: fetching history, listing runs, reading state or
    joining a live stream.

    The orchestrator recovers these locally wherever a fallback value exists
    and otherwise answers with the fallback event bracket. They never reach
    the protocol consumer.
    """

    pass


class TranslationError(HydrationError):
    """
    One stream chunk had a recognised shape but could not be translated
    (for example a model-stream chunk without a message id).

    The chunk is logged and skipped; the stream continues.
    """

    pass


class ConfigurationError(HydrationError):
    """
    Raised at construction time when required identifiers for building the
    backend client are missing or invalid.
    """

    pass
