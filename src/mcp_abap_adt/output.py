# ABAP ADT MCP Server
# File: output.py
# Version: v1

"""Optional writing of tool results to a local file."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def write_result_to_file(result: Any, file_path: str) -> Path:
    """Write ``result`` to ``file_path``, creating parent directories.

    Strings are written as-is (text mode, platform line endings); anything else is
    dumped as indented JSON.
    """
    path = Path(file_path).resolve()
    path.parent.mkdir(parents=True, exist_ok=True)

    if isinstance(result, str):
        data = result
    else:
        data = json.dumps(result, indent=2, ensure_ascii=False)

    path.write_text(data, encoding="utf-8")
    logger.info("Wrote result to: %s", path)
    return path
