"""Tiered test generation: remote AI first, local templates as the fallback."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from .analyzers import generated_filename, is_eligible
from .config import QTestConfig
from .errors import BatchEnumerationError, RemoteProtocolError, TransportError
from .failsafe import format_reason, generate_local_test
from .logging import get_logger
from .models import FileRecord, Framework, GeneratedTest, GenerationOptions
from .remote import RemoteGenerationClient

# Options sent with every remote request from the CLI pipeline.
REMOTE_OPTIONS = GenerationOptions(generate_edge_cases=True, include_setup=True)


@dataclass
class TierOutcome:
    """Content for one file plus the tier that produced it."""

    content: str
    method: str
    fallback_reason: Optional[str] = None


class GenerationOrchestrator:
    """Produces one ``GeneratedTest`` per eligible file, in input order."""

    def __init__(
        self,
        config: QTestConfig | None = None,
        *,
        remote_client: RemoteGenerationClient | None = None,
        remote_enabled: bool | None = None,
        max_workers: int | None = None,
    ) -> None:
        self.config = config or QTestConfig()
        enabled = self.config.remote.enabled if remote_enabled is None else remote_enabled
        if remote_client is None and enabled and self.config.remote.base_url:
            remote_client = RemoteGenerationClient.from_config(self.config.remote)
        self.remote_client = remote_client if enabled else None
        self.max_workers = max(1, max_workers or self.config.max_workers)
        self.logger = get_logger("orchestrator")

    def generate_tests(
        self, files: Iterable[FileRecord], framework: "Framework | str" = Framework.JEST
    ) -> List[GeneratedTest]:
        """Generate tests for every eligible file; ineligible files are skipped.

        Raises:
            BatchEnumerationError: iterating ``files`` failed.
            InvalidInputError: a record carries non-text content.
        """
        target = Framework.parse(framework)
        try:
            eligible = [file for file in files if is_eligible(file)]
        except Exception as exc:
            raise BatchEnumerationError(f"Test generation failed: {exc}") from exc

        self.logger.debug("Generating %d %s test(s)", len(eligible), target.value)
        if self.max_workers > 1 and len(eligible) > 1:
            with ThreadPoolExecutor(
                max_workers=self.max_workers, thread_name_prefix="qtest-generate"
            ) as pool:
                return list(pool.map(lambda file: self._build_test(file, target), eligible))
        return [self._build_test(file, target) for file in eligible]

    def generate_single_test(self, file: FileRecord, framework: "Framework | str") -> TierOutcome:
        """Run the tiered protocol for one file."""
        target = Framework.parse(framework)
        if self.remote_client is None:
            return TierOutcome(content=generate_local_test(file, target), method="template")

        try:
            result = self.remote_client.generate(file, target, REMOTE_OPTIONS)
        except TransportError as exc:
            if exc.refused:
                self.logger.warning("Server unavailable, using local fallback for %s", file.name)
            else:
                self.logger.warning("Network error for %s: %s", file.name, exc)
            return self._fallback(file, target, exc)
        except RemoteProtocolError as exc:
            self.logger.warning(
                "Server error (%s) for %s: %s",
                exc.status if exc.status is not None else "n/a",
                file.name,
                exc.message,
            )
            return self._fallback(file, target, exc)

        self.logger.info("Test generated via %s for %s", result.method, file.name)
        return TierOutcome(content=result.content, method=result.method)

    def _build_test(self, file: FileRecord, framework: Framework) -> GeneratedTest:
        self.logger.info("Generating test for: %s", file.name)
        outcome = self.generate_single_test(file, framework)
        return GeneratedTest(
            filename=generated_filename(file.name, framework),
            content=outcome.content,
            source_file=file.name,
        )

    def _fallback(self, file: FileRecord, framework: Framework, exc: Exception) -> TierOutcome:
        self.logger.debug("Generating local template test for %s", file.name)
        return TierOutcome(
            content=generate_local_test(file, framework),
            method="template",
            fallback_reason=format_reason(str(exc)),
        )


def write_tests(tests: Iterable[GeneratedTest], output_dir: Path) -> List[Path]:
    """Write generated tests into ``output_dir`` and return the written paths."""
    output_dir.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []
    for test in tests:
        target = output_dir / test.filename
        target.write_text(test.content, encoding="utf-8")
        written.append(target)
    return written


def generate_tests(
    files: Iterable[FileRecord],
    framework: "Framework | str" = Framework.JEST,
    *,
    config: QTestConfig | None = None,
) -> List[GeneratedTest]:
    """Convenience wrapper around ``GenerationOrchestrator.generate_tests``."""
    return GenerationOrchestrator(config).generate_tests(files, framework)


__all__ = [
    "GenerationOrchestrator",
    "REMOTE_OPTIONS",
    "TierOutcome",
    "generate_tests",
    "write_tests",
]
