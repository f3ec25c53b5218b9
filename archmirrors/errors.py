#!/usr/bin/env python3

"""Exceptions raised while fetching and storing a mirror list."""

from typing import Optional


class MirrorListError(Exception):
    """Base class for every error reported by arch-mirrorlist."""


class ConfigError(MirrorListError):
    """A required selection is missing or the config file is invalid."""


class FetchError(MirrorListError):
    """The mirror list could not be retrieved."""

    def __init__(self, message: str, url: Optional[str] = None):
        self.url = url
        super().__init__(message)


class TransportError(FetchError):
    """DNS, connection, TLS or timeout failure while talking to the server."""


class UnexpectedContentTypeError(FetchError):
    """The server answered with something other than plain text."""

    def __init__(self, content_type: Optional[str], url: Optional[str] = None):
        self.content_type = content_type
        super().__init__(
            f"Expected plaintext, got {content_type or 'no content type'}", url
        )


class IncompleteReadError(FetchError):
    """The response body ended with a read error before end-of-input."""

    def __init__(self, message: str, url: Optional[str] = None, lines_read: int = 0):
        self.lines_read = lines_read
        super().__init__(message, url)


class FileOpenError(MirrorListError):
    """The output file already exists or cannot be created."""


class WriteError(MirrorListError):
    """Writing the mirror list to disk failed."""
