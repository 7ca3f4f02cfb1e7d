"""Centralized canonical JSON serialization.

Used for verification reports written by the CLI so that two runs with the
same inputs and the same clock produce byte-identical files.
"""

import json
from typing import Any


def canonical_dumps(obj: Any) -> str:
    """
    Canonical JSON serialization for byte-stable reports.

    Rules:
    - UTF-8 encoding
    - Sorted keys
    - Stable separators (",", ":")
    - No trailing whitespace

    Args:
        obj: Python object to serialize

    Returns:
        Canonical JSON string
    """
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False  # UTF-8 encoding
    )
