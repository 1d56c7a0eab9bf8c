"""Render a directory of markgone documents into HTML files."""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from markgone.errors import MarkgoneBuildError
from markgone.render import to_html_string

logger = logging.getLogger("markgone.builder")


@dataclass(frozen=True, slots=True)
class BuildReport:
    rendered: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    failed: dict[Path, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


def discover_documents(source_dir: Path, suffixes: Sequence[str]) -> list[Path]:
    """Return all document files under `source_dir`, sorted for stable output."""

    wanted = set(suffixes)
    return sorted(
        p for p in source_dir.rglob("*") if p.is_file() and p.suffix in wanted
    )


def output_path_for(source: Path, *, source_dir: Path, output_dir: Path) -> Path:
    return (output_dir / source.relative_to(source_dir)).with_suffix(".html")


def _is_up_to_date(source: Path, out_path: Path) -> bool:
    try:
        return out_path.stat().st_mtime >= source.stat().st_mtime
    except OSError:
        return False


def detect_stale_documents(
    documents: Sequence[Path],
    *,
    source_dir: Path,
    output_dir: Path,
    force: bool = False,
) -> list[Path]:
    """Documents whose HTML output is missing or older than the source."""

    if force:
        return list(documents)
    return [
        doc
        for doc in documents
        if not _is_up_to_date(
            doc, output_path_for(doc, source_dir=source_dir, output_dir=output_dir)
        )
    ]


def atomic_write_text(path: Path, text: str) -> Path:
    """Write `text` to `path` so readers never see a partial file."""

    path.parent.mkdir(parents=True, exist_ok=True)

    # Temp file in the same directory then os.replace.
    fd, tmp = tempfile.mkstemp(
        dir=str(path.parent),
        prefix=".markgone-tmp-",
        suffix=path.suffix,
        text=True,
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    finally:
        try:
            os.unlink(tmp)
        except FileNotFoundError:
            pass
    return path


def write_rendered(*, output_dir: Path, out_path: Path, html: str) -> Path:
    """Atomically write rendered HTML below `output_dir`."""

    out_path = out_path.resolve()
    root = output_dir.resolve()
    if root not in out_path.parents:
        raise MarkgoneBuildError(f"Refusing to write outside output_dir: {out_path}")
    return atomic_write_text(out_path, html)


def render_document(
    doc: Path,
    *,
    source_dir: Path,
    output_dir: Path,
    link_words: Mapping[str, str] | None = None,
) -> Path:
    """Render one source document to its HTML path and return that path.

    Read errors (OSError, UnicodeDecodeError) propagate unchanged; write
    errors are raised as MarkgoneBuildError.
    """

    text = doc.read_text(encoding="utf-8")
    out_path = output_path_for(doc, source_dir=source_dir, output_dir=output_dir)
    try:
        write_rendered(
            output_dir=output_dir,
            out_path=out_path,
            html=to_html_string(text, link_words),
        )
    except OSError as e:
        raise MarkgoneBuildError(f"Failed writing {out_path}: {e}") from e
    logger.debug("rendered %s -> %s", doc, out_path)
    return out_path


def remove_output(doc: Path, *, source_dir: Path, output_dir: Path) -> Path | None:
    """Delete the HTML rendered from `doc`, if any. Returns the deleted path."""

    out_path = output_path_for(doc, source_dir=source_dir, output_dir=output_dir)
    try:
        out_path.unlink()
    except FileNotFoundError:
        return None
    logger.debug("removed %s (source %s is gone)", out_path, doc)
    return out_path


def run_build(
    *,
    source_dir: Path,
    output_dir: Path,
    suffixes: Sequence[str],
    link_words: Mapping[str, str] | None = None,
    force: bool = False,
) -> BuildReport:
    """Render every stale document under `source_dir` into `output_dir`.

    Unreadable documents are recorded in the report and the build continues.
    Failing to write output raises MarkgoneBuildError.
    """

    documents = discover_documents(source_dir, suffixes)
    stale = detect_stale_documents(
        documents, source_dir=source_dir, output_dir=output_dir, force=force
    )
    stale_set = set(stale)
    report = BuildReport(skipped=[d for d in documents if d not in stale_set])
    logger.debug(
        "build %s -> %s: %d documents, %d stale",
        source_dir,
        output_dir,
        len(documents),
        len(stale),
    )

    for doc in stale:
        try:
            render_document(
                doc, source_dir=source_dir, output_dir=output_dir, link_words=link_words
            )
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed reading %s: %s", doc, e)
            report.failed[doc] = f"{type(e).__name__}: {e}"
            continue
        report.rendered.append(doc)

    return report
