"""Client for the remote AI generation service (``POST /analyze``)."""

from __future__ import annotations

import http.client
import json
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ..config import DEFAULT_TIMEOUT, RemoteConfig
from ..errors import RemoteProtocolError, TransportError
from ..logging import get_logger
from ..models import FileRecord, Framework, GenerationOptions

logger = get_logger("remote")


@dataclass
class RemoteResult:
    """Test content returned by the remote service."""

    content: str
    method: str


class RemoteGenerationClient:
    """Sends one file per request; never retries."""

    def __init__(self, base_url: str, *, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: RemoteConfig) -> "RemoteGenerationClient":
        if not config.base_url:
            raise ValueError("Remote generation requires a base_url")
        return cls(config.base_url, timeout=config.timeout)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/analyze"

    def generate(
        self,
        file: FileRecord,
        framework: "Framework | str",
        options: GenerationOptions | None = None,
    ) -> RemoteResult:
        """Return generated test content or raise a classified error.

        Raises:
            TransportError: the service could not be reached (refused, DNS,
                timeout, reset).
            RemoteProtocolError: the service answered with a non-2xx status or
                a body without test content.
        """
        payload = build_payload(file, framework, options or GenerationOptions())
        data = json.dumps(payload).encode("utf-8")
        http_request = Request(
            self.endpoint,
            data=data,
            headers={"Content-Type": "application/json"},
            method="POST",
        )

        logger.debug("Posting %s to %s", file.name, self.endpoint)
        try:
            with urlopen(http_request, timeout=self.timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:
            message = _error_message(exc)
            raise RemoteProtocolError(message, status=exc.code) from exc
        except URLError as exc:
            refused = isinstance(exc.reason, ConnectionRefusedError)
            raise TransportError(f"Remote service unreachable: {exc.reason}", refused=refused) from exc
        except OSError as exc:
            refused = isinstance(exc, ConnectionRefusedError)
            raise TransportError(f"Remote service unreachable: {exc}", refused=refused) from exc
        except http.client.HTTPException as exc:
            raise TransportError(
                f"Remote service connection failed: {exc.__class__.__name__}: {exc}"
            ) from exc

        return parse_response(raw)


def build_payload(
    file: FileRecord, framework: "Framework | str", options: GenerationOptions
) -> Dict[str, Any]:
    return {
        "file": {
            "name": file.name,
            "content": file.content,
            "path": file.request_path,
        },
        "framework": Framework.parse(framework).value,
        "options": options.to_payload(),
    }


def parse_response(raw: bytes) -> RemoteResult:
    """Validate a 2xx body and pull out ``generatedTest``."""
    try:
        payload = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise RemoteProtocolError("Server returned invalid JSON") from exc
    if not isinstance(payload, dict):
        raise RemoteProtocolError("Server returned an unexpected payload")
    if not payload.get("success"):
        raise RemoteProtocolError(
            _as_message(payload.get("error")) or "Server returned unsuccessful response"
        )

    content = payload.get("generatedTest")
    if not isinstance(content, str) or not content:
        raise RemoteProtocolError("Server returned success but no test content")

    metadata = payload.get("metadata")
    method = None
    if isinstance(metadata, dict):
        method = _as_message(metadata.get("method"))
    return RemoteResult(content=content, method=method or "API")


def _error_message(exc: HTTPError) -> str:
    try:
        body = exc.read().decode("utf-8", errors="ignore") if exc.fp is not None else ""
    except OSError:
        body = ""
    detail: Optional[str] = None
    if body.strip():
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            detail = body.strip()
        else:
            if isinstance(parsed, dict):
                detail = _as_message(parsed.get("error")) or _as_message(parsed.get("detail"))
    return detail or str(exc.reason) or "Unknown error"


def _as_message(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


__all__ = ["RemoteGenerationClient", "RemoteResult", "build_payload", "parse_response"]
