"""Write raw retailer responses to disk for debugging detection logic."""

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping, Optional

import structlog

from stockwatch.config import settings


logger = structlog.get_logger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def write_response_to_file(
    body: str,
    folder: str,
    product_name: str,
    headers: Optional[Mapping[str, str]] = None,
    base_dir: Optional[str] = None,
) -> Path:
    """Dump a response body (and optionally headers) to `<base>/<folder>/`.

    Args:
        body: Response text
        folder: Sub-folder, usually the retailer key
        product_name: Used in the file name
        headers: Optional headers written before the body
        base_dir: Root directory, defaults to settings.RESPONSE_DUMP_DIR

    Returns:
        Path of the written file
    """
    directory = Path(base_dir or settings.RESPONSE_DUMP_DIR) / folder
    directory.mkdir(parents=True, exist_ok=True)

    stamp = datetime.now(timezone.utc).isoformat().replace(":", "-")
    safe_name = _UNSAFE_CHARS.sub("_", product_name).strip("_") or "product"
    path = directory / f"{safe_name}-log-{stamp}.txt"

    with path.open("w", encoding="utf-8") as fh:
        for name, value in (headers or {}).items():
            fh.write(f"{name}: {value}\n")
        if headers:
            fh.write("\n")
        fh.write(body)

    logger.info("response_dumped", path=str(path), folder=folder)
    return path
