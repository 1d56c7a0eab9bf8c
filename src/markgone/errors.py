"""Markgone exception hierarchy.

The conversion core never raises: these are only used by the outer layers
(configuration, site builder, CLI).
"""


class MarkgoneError(Exception):
    """Base exception for all Markgone errors."""


class MarkgoneConfigError(MarkgoneError):
    """Raised for invalid user configuration."""


class MarkgoneBuildError(MarkgoneError):
    """Raised when a site build cannot proceed."""
