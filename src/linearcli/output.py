"""JSON output for CLI commands: results on stdout, errors on stderr."""

from __future__ import annotations

import json
import sys
from typing import Any, TextIO

from .errors import classify_error


def output_success(data: Any, stream: TextIO | None = None) -> None:
    out = stream or sys.stdout
    out.write(json.dumps(data, indent=2, default=str) + "\n")


def output_error(exc: BaseException, stream: TextIO | None = None) -> None:
    info = classify_error(exc)
    payload: dict[str, Any] = {"error": info.message, "category": info.category}
    if info.details:
        payload["details"] = info.details
    out = stream or sys.stderr
    out.write(json.dumps(payload, indent=2, default=str) + "\n")


__all__ = ["output_error", "output_success"]
