"""Typed exceptions for the translation package.

Most failure paths in the relay degrade to ``None`` ("no translation
available") rather than raising.  The exceptions here cover the few
conditions that need a name of their own:

    - ``NoEndpointsConfiguredError`` is raised by the router when the
      endpoint list is empty; the dispatcher catches it, logs a warning and
      resolves the caller with ``None``.
    - ``FeedAccessDeniedError`` is what a config feed adapter raises (or
      hands to ``on_error``) when the current session may not read the
      endpoint document.  It is swallowed by the feed listener.
"""

from __future__ import annotations


class TranslationError(RuntimeError):
    """Base exception for translation-layer failures."""


class NoEndpointsConfiguredError(TranslationError):
    """The endpoint list is empty; nothing can be dispatched."""

    def __init__(self) -> None:
        super().__init__("No translation endpoints configured")


class FeedAccessDeniedError(TranslationError):
    """The config feed refused the subscription for the current session."""

    code = "permission-denied"
