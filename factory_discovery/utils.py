"""
Common helpers for factory discovery.

Duration formatting and JSON serialization of results.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Any, Union


def format_duration(seconds: float) -> str:
    """
    Format a scan duration for log output.

    Examples:
        >>> format_duration(0.25)
        '250ms'
        >>> format_duration(12.345)
        '12.3s'
        >>> format_duration(245)
        '4m 05s'
        >>> format_duration(3720)
        '1h 02m'
    """
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(seconds), 60)
    if minutes < 60:
        return f"{minutes}m {secs:02d}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes:02d}m"


# JSON utilities
def safe_json_dump(data: Any, **kwargs) -> str:
    """
    Serialize data to JSON with sensible defaults.

    Args:
        data: Data to serialize
        **kwargs: Additional arguments to json.dumps

    Returns:
        JSON string
    """
    defaults = {"ensure_ascii": False, "indent": 2, "default": _json_default_handler}
    defaults.update(kwargs)
    return json.dumps(data, **defaults)


def _json_default_handler(obj: Any) -> Any:
    """Default JSON serialization handler for custom types."""
    if isinstance(obj, Enum):
        return obj.value
    elif isinstance(obj, bytes):
        return "0x" + obj.hex()
    elif hasattr(obj, "to_dict"):
        return obj.to_dict()
    elif hasattr(obj, "__dict__"):
        return obj.__dict__
    else:
        return str(obj)


def write_text_file(path: Union[str, Path], content: str) -> Path:
    """
    Write `content` to `path`, creating missing parent directories.

    Raises:
        OSError: If the directory or file cannot be written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path
