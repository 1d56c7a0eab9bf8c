from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from markgone import __version__
from markgone.errors import MarkgoneBuildError, MarkgoneConfigError

if TYPE_CHECKING:  # pragma: no cover
    from markgone.builder import BuildReport
    from markgone.config import MarkgoneConfig


EXIT_OK = 0
EXIT_CONFIG_ERROR = 2
EXIT_BUILD_FAILURE = 3


def _add_project_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--root",
        type=str,
        default=None,
        help="Project root (defaults to searching upward from cwd for markgone.toml).",
    )
    p.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to markgone.toml (defaults to <root>/markgone.toml).",
    )
    p.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Print a machine-readable JSON summary on stdout.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="markgone")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")

    subparsers = parser.add_subparsers(dest="command", required=True)

    render_p = subparsers.add_parser("render", help="Render one document to HTML.")
    render_p.add_argument("path", nargs="?", default=None, help="Input file (default: stdin).")
    render_p.add_argument(
        "--link",
        action="append",
        default=[],
        metavar="WORD=URL",
        help="Link WORD to URL in the body (repeatable).",
    )
    render_p.add_argument("-o", "--output", default=None, help="Output file (default: stdout).")

    build_p = subparsers.add_parser("build", help="Render all documents of a project.")
    _add_project_flags(build_p)
    build_p.add_argument("--force", action="store_true", help="Re-render up-to-date documents.")

    watch_p = subparsers.add_parser("watch", help="Re-render documents when they change.")
    _add_project_flags(watch_p)

    return parser


def parse_args(argv: list[str]) -> argparse.Namespace:
    return _build_parser().parse_args(argv)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


def _print_error(e: BaseException) -> None:
    msg = (str(e) or repr(e)).strip()
    _eprint(f"error: {msg}")


def _emit_json(payload: dict[str, object]) -> None:
    print(json.dumps(payload, sort_keys=True))


def parse_link_words(items: list[str]) -> dict[str, str]:
    """Parse repeated WORD=URL options into a link-words mapping."""

    out: dict[str, str] = {}
    for item in items:
        word, sep, url = item.partition("=")
        word = word.strip()
        if not sep or not word:
            raise MarkgoneConfigError(f"Expected --link WORD=URL, got: {item!r}")
        out[word] = url.strip()
    return out


def _load_config(args: argparse.Namespace) -> tuple[Path, MarkgoneConfig]:
    from markgone.config import find_project_root, load_config

    root = Path(args.root).resolve() if args.root else None
    config_path = Path(args.config).resolve() if args.config else None
    if root is None and config_path is None:
        root = find_project_root(Path.cwd())
    elif root is None and config_path is not None:
        root = config_path.parent

    assert root is not None
    cfg = load_config(root=root, config_path=config_path)
    return root, cfg


def cmd_render(args: argparse.Namespace) -> int:
    from markgone.builder import atomic_write_text
    from markgone.render import to_html, to_html_string

    try:
        link_words = parse_link_words(args.link)
        if args.path:
            text = Path(args.path).read_text(encoding="utf-8")
        else:
            text = sys.stdin.read()
    except MarkgoneConfigError as e:
        _print_error(e)
        return EXIT_CONFIG_ERROR
    except (OSError, UnicodeDecodeError) as e:
        _print_error(e)
        return EXIT_BUILD_FAILURE

    if args.output:
        try:
            atomic_write_text(Path(args.output), to_html_string(text, link_words))
        except OSError as e:
            _print_error(e)
            return EXIT_BUILD_FAILURE
    else:
        to_html(sys.stdout, text, link_words)
    return EXIT_OK


def run_build_command(args: argparse.Namespace) -> tuple[int, BuildReport | None]:
    """Load config and build; returns (exit code, report or None on error)."""

    from markgone import builder

    try:
        root, cfg = _load_config(args)
        source_dir = cfg.source_path(root)
        report = builder.run_build(
            source_dir=source_dir,
            output_dir=cfg.output_path(root),
            suffixes=cfg.paths.suffixes,
            link_words=cfg.links,
            force=bool(getattr(args, "force", False)),
        )
    except MarkgoneConfigError as e:
        _print_error(e)
        return EXIT_CONFIG_ERROR, None
    except MarkgoneBuildError as e:
        _print_error(e)
        return EXIT_BUILD_FAILURE, None

    for path, reason in sorted(report.failed.items()):
        _eprint(f"error: {path}: {reason}")
    return (EXIT_OK if report.ok else EXIT_BUILD_FAILURE), report


def format_build_json(rc: int, report: BuildReport | None) -> dict[str, object]:
    payload: dict[str, object] = {"command": "build", "ok": rc == EXIT_OK, "exit_code": rc}
    if report is not None:
        payload["rendered"] = [str(p) for p in report.rendered]
        payload["skipped"] = [str(p) for p in report.skipped]
        payload["failed"] = {str(p): reason for p, reason in sorted(report.failed.items())}
    return payload


def cmd_build(args: argparse.Namespace) -> int:
    rc, report = run_build_command(args)
    if args.json_output:
        _emit_json(format_build_json(rc, report))
    return rc


def cmd_watch(args: argparse.Namespace) -> int:
    from markgone import watcher

    try:
        root, cfg = _load_config(args)
        source_dir = cfg.source_path(root).resolve()
        output_dir = cfg.output_path(root).resolve()
        changes_iter = watcher.open_change_stream(source_dir)
    except MarkgoneConfigError as e:
        if args.json_output:
            _emit_json({"command": "watch", "ok": False, "error": str(e)})
        else:
            _print_error(e)
        return EXIT_CONFIG_ERROR

    def on_cycle(report: watcher.CycleReport) -> None:
        if args.json_output:
            _emit_json(watcher.format_cycle_json(report, source_dir=source_dir))
        else:
            _eprint(watcher.describe_cycle(report, source_dir=source_dir))

    # Bring the site up to date once, then follow individual documents.
    rc, _ = run_build_command(args)
    if not args.json_output:
        _eprint(f"[watch] initial build exit code {rc}; watching {source_dir}")

    try:
        asyncio.run(
            watcher.watch_documents(
                changes_iter=changes_iter,
                source_dir=source_dir,
                output_dir=output_dir,
                suffixes=cfg.paths.suffixes,
                link_words=cfg.links,
                on_cycle=on_cycle,
            )
        )
    except KeyboardInterrupt:
        if not args.json_output:
            _eprint("[watch] stopped")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    try:
        args = parse_args(list(sys.argv[1:] if argv is None else argv))
    except SystemExit as e:
        # argparse uses SystemExit for --help/--version and parse errors.
        code = e.code
        return int(code) if isinstance(code, int) else EXIT_CONFIG_ERROR

    _configure_logging(bool(args.verbose))

    if args.command == "render":
        return cmd_render(args)
    if args.command == "build":
        return cmd_build(args)
    if args.command == "watch":
        return cmd_watch(args)

    return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
