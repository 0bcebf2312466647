"""CLI entrypoints for qtest commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Sequence

from .analyzers import analyze_content, is_eligible
from .config import (
    ConfigError,
    ProjectConfig,
    QTestConfig,
    load_settings,
    write_project_config,
)
from .errors import BatchEnumerationError, InvalidInputError
from .logging import configure_logging
from .models import FileRecord, Framework
from .orchestrator import GenerationOrchestrator, write_tests
from .scanner import ProjectScanner, detect_project_type

SUMMARY_FILE_LIMIT = 8

_INSTALL_HINTS = {
    Framework.JEST: "npm install --save-dev jest @testing-library/react",
    Framework.VITEST: "npm install --save-dev vitest @testing-library/react",
    Framework.MOCHA: "npm install --save-dev mocha chai",
}


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
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_target_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Project directory or single source file (defaults to current directory).",
    )
    parser.add_argument(
        "-f",
        "--framework",
        default=Framework.JEST.value,
        help="Test framework: jest, vitest or mocha (unknown values fall back to jest).",
    )
    parser.add_argument(
        "-o",
        "--output",
        default="./tests",
        help="Directory the generated tests are written to.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qtest",
        description="Generate unit test scaffolds for JavaScript and TypeScript projects.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write log records to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Analyze a project and generate tests for its source files.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    _add_target_options(analyze_parser)
    analyze_parser.add_argument(
        "--offline",
        action="store_true",
        help="Skip the remote AI service and use local templates only.",
    )
    analyze_parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of files generated concurrently.",
    )

    watch_parser = subparsers.add_parser(
        "watch",
        help="Regenerate tests whenever source files change.",
    )
    _add_verbose_option(watch_parser, suppress_default=True)
    _add_target_options(watch_parser)
    watch_parser.add_argument(
        "--offline",
        action="store_true",
        help="Skip the remote AI service and use local templates only.",
    )

    init_parser = subparsers.add_parser(
        "init",
        help="Write a .test-cli.json configuration for the project.",
    )
    _add_verbose_option(init_parser, suppress_default=True)
    init_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Project root that receives .test-cli.json (defaults to current directory).",
    )
    init_parser.add_argument(
        "--framework",
        default=Framework.JEST.value,
        help="Default test framework recorded in the configuration.",
    )
    init_parser.add_argument(
        "--output-dir",
        default="./tests",
        help="Default output directory recorded in the configuration.",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the agent-backed generation HTTP service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default=None, help="Bind address (default 0.0.0.0).")
    serve_parser.add_argument(
        "--port", type=int, default=None, help="Bind port (default $PORT or 3000)."
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for qtest commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        log_file=args.log_file,
        timestamps=args.command == "serve",
    )

    try:
        settings = load_settings()
    except ConfigError as exc:
        parser.exit(1, f"qtest: {exc}\n")

    if args.command == "analyze":
        _run_analyze(parser, args, settings)
    elif args.command == "watch":
        _run_watch(parser, args, settings)
    elif args.command == "init":
        _run_init(parser, args)
    elif args.command == "serve":
        from .service import run_service

        run_service(args.host, args.port, config=settings)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_analyze(
    parser: argparse.ArgumentParser, args: argparse.Namespace, settings: QTestConfig
) -> None:
    framework = Framework.parse(args.framework)
    if not Framework.is_known(args.framework):
        print(f"Unknown framework '{args.framework}', using {framework.value}")

    scanner = ProjectScanner(settings.max_file_bytes)
    try:
        files = scanner.scan(args.path)
    except (OSError, ValueError) as exc:
        parser.exit(1, f"qtest analyze failed: {exc}\n")

    eligible = [file for file in files if is_eligible(file)]
    if not eligible:
        print("No source files found to test.")
        return

    print(_format_summary(files, eligible, framework))

    orchestrator = GenerationOrchestrator(
        settings,
        remote_enabled=False if args.offline else None,
        max_workers=args.workers,
    )
    try:
        tests = orchestrator.generate_tests(files, framework)
        written = write_tests(tests, Path(args.output))
    except (BatchEnumerationError, InvalidInputError, OSError) as exc:
        parser.exit(1, f"qtest analyze failed: {exc}\nRun with --verbose for more details.\n")

    print(f"Generated {len(written)} test file(s) in {_relativize(Path(args.output))}")
    for path in written:
        print(f"  {_relativize(path)}")


def _run_watch(
    parser: argparse.ArgumentParser, args: argparse.Namespace, settings: QTestConfig
) -> None:
    from .watcher import TestWatcher

    root = Path(args.path)
    if not root.is_dir():
        parser.exit(1, f"qtest watch needs a project directory: {args.path}\n")

    watcher = TestWatcher(
        root,
        args.framework,
        Path(args.output),
        orchestrator=GenerationOrchestrator(
            settings, remote_enabled=False if args.offline else None
        ),
        scanner=ProjectScanner(settings.max_file_bytes),
        on_regenerated=lambda written: print(f"Updated {len(written)} test file(s)"),
    )
    try:
        watcher.regenerate()
    except (BatchEnumerationError, InvalidInputError, OSError, ValueError) as exc:
        parser.exit(1, f"qtest watch failed: {exc}\n")
    print("Watching for changes (Ctrl+C to stop)")
    try:
        watcher.run()
    except KeyboardInterrupt:
        print("Stopped watching")


def _run_init(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    framework = Framework.parse(args.framework)
    config = ProjectConfig(framework=framework.value, output_dir=args.output_dir)
    try:
        config_path = write_project_config(Path(args.path), config)
    except OSError as exc:
        parser.exit(1, f"qtest init failed: {exc}\n")
    print(f"Configuration written to {_relativize(config_path)}")
    print("Install the test dependencies with:")
    print(f"  {_INSTALL_HINTS[framework]}")


def _format_summary(
    files: Sequence[FileRecord], eligible: Sequence[FileRecord], framework: Framework
) -> str:
    lines: List[str] = [
        f"Project type: {detect_project_type(files)}",
        f"Framework: {framework.value}",
        f"Files to test: {len(eligible)}",
    ]
    total_complexity = 0
    for index, file in enumerate(eligible):
        analysis = analyze_content(file.content)
        total_complexity += analysis.complexity
        if index >= SUMMARY_FILE_LIMIT:
            continue
        functions = ", ".join(analysis.functions[:5]) or "none"
        line = f"  {file.relative_path or file.name}: {functions}"
        features = analysis.features()
        if features:
            line += f" [{', '.join(features)}]"
        lines.append(line)
    if len(eligible) > SUMMARY_FILE_LIMIT:
        lines.append(f"  ... and {len(eligible) - SUMMARY_FILE_LIMIT} more")
    average = total_complexity / len(eligible)
    lines.append(f"Average complexity: {average:.1f}")
    return "\n".join(lines)


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
