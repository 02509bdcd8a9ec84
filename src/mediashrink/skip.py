"""
Skip markers for mediashrink.

A `.skip` file next to an input records that the file was estimated not to
shrink enough. Its presence alone excludes the input from later runs; the
JSON body is only read back by inspection commands. Markers are never
deleted automatically.
"""

import datetime
import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

SKIP_EXT = ".skip"

REASON_INSUFFICIENT_SAVINGS = "insufficient_savings"


@dataclass
class SkipRecord:
    """Why a file was excluded from full encoding."""

    reason: str
    quality: int
    encoder: str
    timestamp: str  # ISO 8601
    original_size_bytes: int
    estimated_size_bytes: int
    required_size_bytes: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SkipRecord":
        return cls(
            reason=str(data.get("reason", "")),
            quality=int(data.get("quality", 0)),
            encoder=str(data.get("encoder", "")),
            timestamp=str(data.get("timestamp", "")),
            original_size_bytes=int(data.get("original_size_bytes", 0)),
            estimated_size_bytes=int(data.get("estimated_size_bytes", 0)),
            required_size_bytes=int(data.get("required_size_bytes", 0)),
        )


def now_iso() -> str:
    """Current local time with UTC offset, ISO 8601."""
    return datetime.datetime.now().astimezone().isoformat()


def skip_path_for(input_path: Path) -> Path:
    """Sidecar path: the input with its extension replaced by .skip."""
    return input_path.with_suffix(SKIP_EXT)


def has_skip_marker(input_path: Path) -> bool:
    """Return True if a skip marker exists. The marker is not parsed."""
    return skip_path_for(input_path).exists()


def write_skip_marker(input_path: Path, record: SkipRecord) -> bool:
    """
    Write the skip marker for an input as indented JSON.

    Failures are logged and swallowed: a missing marker only means the file
    is evaluated again next run.

    Returns:
        True if the marker was written.
    """
    path = skip_path_for(input_path)
    try:
        path.write_text(json.dumps(record.to_dict(), indent=2) + "\n", encoding="utf-8")
    except OSError as e:
        logger.warning("Failed to create skip file file=%s error=%s", path, e)
        return False
    logger.debug("Wrote skip file file=%s reason=%s", path, record.reason)
    return True


def read_skip_marker(input_path: Path) -> Optional[SkipRecord]:
    """
    Read back a skip marker for inspection.

    Returns:
        The record, or None if there is no marker or it cannot be parsed.
    """
    path = skip_path_for(input_path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as e:
        logger.warning("Unreadable skip file file=%s error=%s", path, e)
        return None
    if not isinstance(data, dict):
        logger.warning("Unexpected skip file content file=%s", path)
        return None
    try:
        return SkipRecord.from_dict(data)
    except (TypeError, ValueError) as e:
        logger.warning("Invalid skip file file=%s error=%s", path, e)
        return None


def remove_skip_markers(inputs: List[Path]) -> Tuple[int, int]:
    """
    Delete the skip markers of the given inputs.

    Returns:
        Tuple of (removed, failed).
    """
    removed = 0
    failed = 0
    for inp in inputs:
        path = skip_path_for(inp)
        try:
            path.unlink()
            removed += 1
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.warning("Failed to remove skip file file=%s error=%s", path, e)
            failed += 1
    return removed, failed
