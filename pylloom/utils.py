"""
Utility functions for pylloom.
"""

from __future__ import annotations
import hashlib
import logging
import re
import sys
from datetime import datetime
from typing import Any, BinaryIO, Dict, Optional, Union


_FRACTION_RE = re.compile(r'\.(\d+)')


def setup_logging(level: str = "INFO") -> None:
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stderr)
        ]
    )

    # Reduce noise from third-party libraries unless debugging
    if level.upper() != "DEBUG":
        for name in ("urllib3", "requests"):
            logging.getLogger(name).setLevel(logging.WARNING)


def normalize_keep_alive(value: Any) -> Optional[str]:
    """Normalize a keep-alive value to the server's duration string form.

    Empty and falsey strings ('', 'false', '0', 'no') disable keep-alive.
    Bare integers are taken as seconds ('300' -> '300s'); '-1' and values
    that already carry a unit are passed through.
    """
    if value is None:
        return None
    text = str(value).strip()
    if text == '' or text.lower() in {'false', '0', 'no'}:
        return None
    if text.isdigit():
        return f"{text}s"
    return text


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp as sent by the server.

    The server emits nanosecond precision and a trailing 'Z'; datetime only
    keeps microseconds, so the fraction is truncated to six digits.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith('Z') or text.endswith('z'):
        text = text[:-1] + '+00:00'
    text = _FRACTION_RE.sub(lambda m: '.' + m.group(1)[:6].ljust(6, '0'), text, count=1)
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def drop_empty(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Drop unset fields from a request body (None, '', empty containers)."""
    cleaned = {}
    for key, value in payload.items():
        if value is None:
            continue
        if isinstance(value, (str, list, tuple, dict)) and len(value) == 0:
            continue
        cleaned[key] = value
    return cleaned


def blob_digest(source: Union[bytes, bytearray, str, BinaryIO], chunk_size: int = 1 << 20) -> str:
    """Return the 'sha256:<hex>' digest of bytes, a file path or a binary file object."""
    h = hashlib.sha256()
    if isinstance(source, (bytes, bytearray)):
        h.update(source)
    elif isinstance(source, str):
        with open(source, 'rb') as fh:
            for chunk in iter(lambda: fh.read(chunk_size), b''):
                h.update(chunk)
    else:
        for chunk in iter(lambda: source.read(chunk_size), b''):
            h.update(chunk)
    return f"sha256:{h.hexdigest()}"


def truncate_text(text: str, max_length: int = 512) -> str:
    """Truncate text with ellipsis if too long."""
    if len(text) <= max_length:
        return text
    return text[:max_length - 3] + "..."
