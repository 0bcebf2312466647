"""Runtime settings (environment) and project configuration (.test-cli.json)."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

PROJECT_CONFIG_FILENAME = ".test-cli.json"

DEFAULT_API_URL = "http://localhost:3000"
DEFAULT_TIMEOUT = 120.0
DEFAULT_AGENT = "cline"
DEFAULT_MAX_BUFFER = 50 * 1024 * 1024
DEFAULT_MAX_CONTENT_BYTES = 1024 * 1024

DEFAULT_FILE_PATTERNS: tuple[str, ...] = ("**/*.js", "**/*.ts", "**/*.jsx", "**/*.tsx")
DEFAULT_EXCLUDE_PATTERNS: tuple[str, ...] = (
    "node_modules/**",
    "dist/**",
    "build/**",
    "**/*.test.*",
)

ENV_API_URL_KEYS = ("QTEST_API_URL", "AI_TEST_API")
ENV_TIMEOUT_KEYS = ("QTEST_API_TIMEOUT",)
ENV_AGENT_BIN_KEYS = ("QTEST_AGENT_BIN",)
ENV_AGENT_TIMEOUT_KEYS = ("QTEST_AGENT_TIMEOUT",)
ENV_MAX_BUFFER_KEYS = ("QTEST_AGENT_MAX_BUFFER",)
ENV_WORKSPACE_KEYS = ("QTEST_WORKSPACE_ROOT",)
ENV_PORT_KEYS = ("QTEST_PORT", "PORT")


class ConfigError(RuntimeError):
    """Raised when configuration cannot be parsed."""


@dataclass
class RemoteConfig:
    """Where and how to reach the remote generation service."""

    base_url: Optional[str] = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT
    enabled: bool = True


@dataclass
class AgentConfig:
    """External coding agent invocation settings."""

    name: str = DEFAULT_AGENT
    executable: str = DEFAULT_AGENT
    timeout: float = DEFAULT_TIMEOUT
    max_buffer: int = DEFAULT_MAX_BUFFER
    workspace_root: Optional[Path] = None


@dataclass
class ServiceConfig:
    """HTTP service bind address and request limits."""

    host: str = "0.0.0.0"
    port: int = 3000
    max_content_bytes: int = DEFAULT_MAX_CONTENT_BYTES


@dataclass
class QTestConfig:
    """Process-wide settings, built once at start-up and passed down explicitly."""

    remote: RemoteConfig = field(default_factory=RemoteConfig)
    agent: AgentConfig = field(default_factory=AgentConfig)
    service: ServiceConfig = field(default_factory=ServiceConfig)
    max_workers: int = 1
    max_file_bytes: int = DEFAULT_MAX_CONTENT_BYTES


@dataclass
class ProjectConfig:
    """Contents of a project's .test-cli.json."""

    framework: str = "jest"
    output_dir: str = "./tests"
    file_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_FILE_PATTERNS))
    exclude_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS))

    def to_payload(self) -> Dict[str, Any]:
        return {
            "framework": self.framework,
            "outputDir": self.output_dir,
            "filePatterns": list(self.file_patterns),
            "excludePatterns": list(self.exclude_patterns),
        }


def load_settings(env: Mapping[str, str] | None = None) -> QTestConfig:
    """Build the runtime configuration from environment variables."""
    source = os.environ if env is None else env

    remote = RemoteConfig()
    base_url = _first_value(source, ENV_API_URL_KEYS)
    if base_url:
        remote.base_url = base_url.rstrip("/")
    timeout = _as_float(_first_value(source, ENV_TIMEOUT_KEYS))
    if timeout is not None and timeout > 0:
        remote.timeout = timeout

    agent = AgentConfig()
    executable = _first_value(source, ENV_AGENT_BIN_KEYS)
    if executable:
        agent.executable = executable
        agent.name = Path(executable).stem or DEFAULT_AGENT
    agent_timeout = _as_float(_first_value(source, ENV_AGENT_TIMEOUT_KEYS))
    if agent_timeout is not None and agent_timeout > 0:
        agent.timeout = agent_timeout
    max_buffer = _as_int(_first_value(source, ENV_MAX_BUFFER_KEYS))
    if max_buffer is not None:
        if max_buffer <= 0:
            raise ConfigError("QTEST_AGENT_MAX_BUFFER must be a positive number of bytes")
        agent.max_buffer = max_buffer
    workspace_root = _first_value(source, ENV_WORKSPACE_KEYS)
    if workspace_root:
        agent.workspace_root = Path(workspace_root).expanduser()

    service = ServiceConfig()
    port = _as_int(_first_value(source, ENV_PORT_KEYS))
    if port is not None:
        service.port = port

    return QTestConfig(remote=remote, agent=agent, service=service)


def load_project_config(path: Path) -> ProjectConfig:
    """Load .test-cli.json from ``path`` (a directory or the file itself)."""
    config_file = _resolve_config_path(path)
    if not config_file.exists():
        return ProjectConfig()

    text = config_file.read_text(encoding="utf-8")
    if not text.strip():
        return ProjectConfig()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Failed to parse {config_file.name}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a JSON object at the root")

    defaults = ProjectConfig()
    file_patterns = _as_str_list(data.get("filePatterns"))
    exclude_patterns = _as_str_list(data.get("excludePatterns"))
    return ProjectConfig(
        framework=_as_str(data.get("framework")) or defaults.framework,
        output_dir=_as_str(data.get("outputDir")) or defaults.output_dir,
        file_patterns=file_patterns if "filePatterns" in data else defaults.file_patterns,
        exclude_patterns=exclude_patterns if "excludePatterns" in data else defaults.exclude_patterns,
    )


def write_project_config(path: Path, config: ProjectConfig) -> Path:
    """Persist ``config`` as .test-cli.json and return the written path."""
    config_file = _resolve_config_path(path)
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config.to_payload(), indent=2) + "\n", encoding="utf-8")
    return config_file


def _resolve_config_path(path: Path) -> Path:
    path = path.expanduser()
    if path.is_dir():
        return (path / PROJECT_CONFIG_FILENAME).resolve()
    return path.resolve()


def _first_value(env: Mapping[str, str], keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        value = env.get(key)
        if value:
            return value
    return None


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "AgentConfig",
    "ConfigError",
    "ProjectConfig",
    "QTestConfig",
    "RemoteConfig",
    "ServiceConfig",
    "load_project_config",
    "load_settings",
    "write_project_config",
]
