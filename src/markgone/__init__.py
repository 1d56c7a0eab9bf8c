from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from markgone.body import render_body
from markgone.errors import MarkgoneBuildError, MarkgoneConfigError, MarkgoneError
from markgone.prepare import PreparedDocument, prepare
from markgone.render import to_html, to_html_string


def _package_version() -> str:
    try:
        return version("markgone")
    except PackageNotFoundError:
        # Running from a source checkout, or otherwise not installed.
        return "0.0.0"


__version__ = _package_version()

__all__ = [
    "MarkgoneBuildError",
    "MarkgoneConfigError",
    "MarkgoneError",
    "PreparedDocument",
    "__version__",
    "prepare",
    "render_body",
    "to_html",
    "to_html_string",
]
