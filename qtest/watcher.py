"""Regenerate tests whenever project source files change."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable, List, Optional

from watchfiles import Change, watch

from .analyzers import is_source_file
from .errors import QTestError
from .logging import get_logger
from .models import Framework
from .orchestrator import GenerationOrchestrator, write_tests
from .scanner import ProjectScanner

DEBOUNCE_MS = 1600

_IGNORED_PARTS = frozenset({"node_modules", "dist", "build", "coverage"})

logger = get_logger("watcher")


class SourceChangeFilter:
    """watchfiles filter: code files only, never hidden dirs or the output dir."""

    def __init__(self, root: Path, output_dir: Path | None = None) -> None:
        self.root = root.resolve()
        self.output_dir = output_dir.resolve() if output_dir is not None else None

    def __call__(self, change: Change, path: str) -> bool:
        if change == Change.deleted:
            return False
        candidate = Path(path)
        try:
            parts = candidate.resolve().relative_to(self.root).parts
        except ValueError:
            parts = candidate.parts
        for part in parts:
            if part.startswith("."):
                return False
            if part in _IGNORED_PARTS:
                return False
        if self.output_dir is not None:
            try:
                candidate.resolve().relative_to(self.output_dir)
            except ValueError:
                pass
            else:
                return False
        return is_source_file(candidate.name)


class TestWatcher:
    """Rescans and regenerates the whole project on every batch of changes."""

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        root: Path,
        framework: "Framework | str",
        output_dir: Path,
        *,
        orchestrator: GenerationOrchestrator | None = None,
        scanner: ProjectScanner | None = None,
        on_regenerated: Optional[Callable[[List[Path]], None]] = None,
    ) -> None:
        self.root = root.resolve()
        self.framework = Framework.parse(framework)
        self.output_dir = output_dir
        self.orchestrator = orchestrator or GenerationOrchestrator()
        self.scanner = scanner or ProjectScanner()
        self.on_regenerated = on_regenerated

    def regenerate(self) -> List[Path]:
        files = self.scanner.scan(str(self.root))
        tests = self.orchestrator.generate_tests(files, self.framework)
        written = write_tests(tests, self.output_dir)
        logger.info("Updated %d test files", len(written))
        if self.on_regenerated is not None:
            self.on_regenerated(written)
        return written

    def run(self, stop_event: threading.Event | None = None) -> None:
        """Block, regenerating after each debounced batch of source changes."""
        logger.info("Watching %s for changes", self.root)
        for changes in watch(
            self.root,
            watch_filter=SourceChangeFilter(self.root, self.output_dir),
            debounce=DEBOUNCE_MS,
            stop_event=stop_event,
        ):
            for _change, path in sorted(changes):
                logger.info("File changed: %s", Path(path).name)
            try:
                self.regenerate()
            except (QTestError, OSError, ValueError) as exc:
                logger.error("Watch error: %s", exc)


__all__ = ["SourceChangeFilter", "TestWatcher"]
