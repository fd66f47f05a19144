"""CLI entrypoints for litdoc commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .builder import ProjectBuilder
from .config import ConfigError, LitDocConfig, load_config
from .logging import configure_logging, get_logger
from .orchestrator import HtmlOptions, Orchestrator
from .page import PageRenderer
from .render.highlight import QuickInfoHighlighter
from .render.prose import ProseRenderer
from .service import run_server

DEFAULT_PORT = 3000


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument("-v", "--verbose", **kwargs)


def _add_build_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "outdir",
        nargs="?",
        default=None,
        help="Directory for generated documents.",
    )
    parser.add_argument(
        "--externals",
        action="store_true",
        default=None,
        help="Also render files outside the project that the sources reference.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a .litdoc.yml file (defaults to the one in the target directory).",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write DEBUG-level logs to this file.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="litdoc",
        description="Render literate TypeScript into hyperlinked HTML.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    html_parser = subparsers.add_parser(
        "html",
        help="Render a file to stdout, or a directory into an output tree.",
    )
    _add_verbose_option(html_parser, suppress_default=True)
    html_parser.add_argument("target", help="A .ts file or a source directory.")
    _add_build_options(html_parser)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Build a directory and serve it with live reload.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("target", help="Source directory to watch.")
    _add_build_options(serve_parser)
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help=f"Port to listen on (default {DEFAULT_PORT}).",
    )
    serve_parser.add_argument("--host", default=None, help="Interface to bind.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for litdoc commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    target = Path(args.target).expanduser()
    if not target.exists():
        parser.exit(1, f"{target} does not exist\n")

    try:
        config = _load_config(args, target)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file or config.log_file)
    logger = get_logger("cli")

    orchestrator = _build_orchestrator(config)
    include_externals = args.externals if args.externals is not None else config.externals

    if args.command == "html":
        try:
            if target.is_file():
                _render_file(orchestrator, target, config)
            else:
                output_dir = _output_dir(args.outdir, target, "html", config)
                _project_builder(orchestrator, target, output_dir, config, include_externals).build()
        except FileNotFoundError as exc:
            parser.exit(1, f"{exc}\n")
        except Exception as exc:  # pragma: no cover - defensive guard
            logger.debug("html failed", exc_info=True)
            parser.exit(1, f"litdoc html failed: {exc}\nRun with --verbose for more details.\n")
    elif args.command == "serve":
        if not target.is_dir():
            parser.exit(1, f"{target} is not a directory\n")
        output_dir = _output_dir(args.outdir, target, ".litdoc", config)
        builder = _project_builder(orchestrator, target, output_dir, config, include_externals)
        try:
            run_server(
                builder,
                host=args.host or config.serve.host,
                port=args.port or config.serve.port,
                debounce_ms=config.serve.debounce_ms,
            )
        except KeyboardInterrupt:  # pragma: no cover - interactive
            pass
        except Exception as exc:  # pragma: no cover - defensive guard
            logger.debug("serve failed", exc_info=True)
            parser.exit(1, f"litdoc serve failed: {exc}\nRun with --verbose for more details.\n")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _load_config(args: argparse.Namespace, target: Path) -> LitDocConfig:
    if args.config is not None:
        return load_config(args.config)
    return load_config(target if target.is_dir() else target.parent)


def _build_orchestrator(config: LitDocConfig) -> Orchestrator:
    highlight = config.highlight
    page_renderer = PageRenderer(
        templates_dir=config.output.templates_dir,
        highlighter=QuickInfoHighlighter(style=highlight.style, language=highlight.default_language),
    )
    prose_renderer = ProseRenderer(style=highlight.style, default_language=highlight.default_language)
    return Orchestrator(prose_renderer=prose_renderer, page_renderer=page_renderer)


def _html_options(config: LitDocConfig, **overrides: object) -> HtmlOptions:
    options = HtmlOptions(
        css_file=config.output.css_file,
        include_highlight_script=config.output.include_highlight_script,
        title=config.output.title,
    )
    for name, value in overrides.items():
        setattr(options, name, value)
    return options


def _render_file(orchestrator: Orchestrator, target: Path, config: LitDocConfig) -> None:
    source = target.read_text(encoding="utf-8")
    title = config.output.title or target.stem
    result = orchestrator.generate_html(str(target), source, _html_options(config, title=title))
    sys.stdout.write(result.html)
    sys.stdout.write("\n")


def _output_dir(outdir: str | None, target: Path, default_name: str, config: LitDocConfig) -> Path:
    if outdir:
        return Path(outdir)
    if config.output.dir:
        return config.root / config.output.dir
    return target / default_name


def _project_builder(
    orchestrator: Orchestrator,
    target: Path,
    output_dir: Path,
    config: LitDocConfig,
    include_externals: bool,
) -> ProjectBuilder:
    return ProjectBuilder(
        target,
        output_dir,
        options=_html_options(config, include_externals=include_externals),
        exclude_paths=config.exclude_paths,
        orchestrator=orchestrator,
    )


if __name__ == "__main__":
    main(sys.argv[1:])
