"""Error kinds raised across the core."""

from __future__ import annotations


class BridgeError(Exception):
    """Base class for wabridge errors."""


class HostTransportError(BridgeError):
    """The host reported "not found" or the server refused the request.

    Host adapters raise this for the one failure kind the command surface
    translates into a neutral return value. Anything else propagates.
    """


class InvalidArgumentError(BridgeError, ValueError):
    """A caller argument cannot be represented at all."""


class UnsupportedOperationError(BridgeError):
    """The connected account cannot perform the requested operation."""
