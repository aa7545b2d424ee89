"""streamguard: request validation and rate limiting for media services."""

from streamguard.version import __version__

__all__ = ["__version__"]
