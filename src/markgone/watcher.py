"""Watch mode: keep a site's HTML in step with its source documents.

Each batch of filesystem changes is sorted into documents that now exist
(re-rendered one by one) and documents that are gone (their HTML is
deleted). Nothing else in the source tree is touched.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from markgone import builder
from markgone.errors import MarkgoneBuildError, MarkgoneConfigError

logger = logging.getLogger("markgone.watcher")


@dataclass(frozen=True, slots=True)
class DocumentChanges:
    updated: tuple[Path, ...] = ()
    removed: tuple[Path, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.updated or self.removed)


@dataclass(frozen=True, slots=True)
class CycleReport:
    rendered: list[Path] = field(default_factory=list)
    removed: list[Path] = field(default_factory=list)
    failed: dict[Path, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


def classify_changes(
    raw_changes: Iterable[tuple[object, str]],
    *,
    source_dir: Path,
    suffixes: Sequence[str],
) -> DocumentChanges:
    """Split a watchfiles batch into documents to render and documents gone.

    The change kind is not trusted: editors that save by delete-and-rename
    report a deletion for a file that exists again. What is on disk now
    decides. Directories and paths outside `source_dir` are ignored.
    """

    wanted = set(suffixes)
    updated: set[Path] = set()
    removed: set[Path] = set()
    for _, raw in raw_changes:
        path = Path(raw)
        if path.suffix not in wanted or not path.is_relative_to(source_dir):
            continue
        if path.is_file():
            updated.add(path)
        elif not path.exists():
            removed.add(path)
    return DocumentChanges(updated=tuple(sorted(updated)), removed=tuple(sorted(removed)))


def apply_changes(
    changes: DocumentChanges,
    *,
    source_dir: Path,
    output_dir: Path,
    link_words: Mapping[str, str] | None = None,
) -> CycleReport:
    """Render updated documents and delete the HTML of removed ones."""

    report = CycleReport()
    for doc in changes.updated:
        try:
            builder.render_document(
                doc, source_dir=source_dir, output_dir=output_dir, link_words=link_words
            )
        except (OSError, UnicodeDecodeError, MarkgoneBuildError) as e:
            logger.warning("Failed rendering %s: %s", doc, e)
            report.failed[doc] = f"{type(e).__name__}: {e}"
            continue
        report.rendered.append(doc)

    for doc in changes.removed:
        try:
            gone = builder.remove_output(doc, source_dir=source_dir, output_dir=output_dir)
        except OSError as e:
            logger.warning("Failed removing output of %s: %s", doc, e)
            report.failed[doc] = f"{type(e).__name__}: {e}"
            continue
        if gone is not None:
            report.removed.append(doc)
    return report


async def watch_documents(
    *,
    changes_iter: AsyncIterator[Iterable[tuple[object, str]]],
    source_dir: Path,
    output_dir: Path,
    suffixes: Sequence[str],
    link_words: Mapping[str, str] | None = None,
    on_cycle: Callable[[CycleReport], None],
) -> None:
    """Apply every relevant batch from `changes_iter` until it is exhausted."""

    async for raw_changes in changes_iter:
        changes = classify_changes(raw_changes, source_dir=source_dir, suffixes=suffixes)
        if not changes:
            continue
        report = apply_changes(
            changes, source_dir=source_dir, output_dir=output_dir, link_words=link_words
        )
        on_cycle(report)


def _relative(paths: Iterable[Path], source_dir: Path) -> list[str]:
    return sorted(str(p.relative_to(source_dir)) for p in paths)


def describe_cycle(report: CycleReport, *, source_dir: Path) -> str:
    """One human-readable line summarizing a cycle."""

    parts = []
    for label, paths in (
        ("rendered", report.rendered),
        ("removed", report.removed),
        ("failed", report.failed),
    ):
        if paths:
            parts.append(f"{label} " + ", ".join(_relative(paths, source_dir)))
    return "[watch] " + ("; ".join(parts) or "no output changed")


def format_cycle_json(report: CycleReport, *, source_dir: Path) -> dict[str, object]:
    return {
        "command": "watch",
        "ok": report.ok,
        "rendered": _relative(report.rendered, source_dir),
        "removed": _relative(report.removed, source_dir),
        "failed": {
            str(p.relative_to(source_dir)): reason for p, reason in sorted(report.failed.items())
        },
    }


def open_change_stream(source_dir: Path) -> AsyncIterator[set[tuple[object, str]]]:
    """Stream batches of `(change, path)` pairs from watchfiles."""

    try:
        import watchfiles
    except ImportError:
        raise MarkgoneConfigError(
            "watch mode needs watchfiles. Install it with: pip install 'markgone[watch]'"
        ) from None
    return watchfiles.awatch(source_dir, debounce=200)
