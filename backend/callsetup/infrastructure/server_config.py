"""Server Call Config: key/value switches pushed by the signalling server.

Invariants:
    - update_from_json() replaces the whole store atomically (latest push wins)
    - A payload that is not a JSON object is rejected; the previous store is kept
    - get_bool() never raises: missing or non-boolean values yield the default

Design Decisions:
    - Lock-guarded dict: pushes arrive on the signalling thread while calls read
"""

import json
import logging
import threading
from typing import Any

logger = logging.getLogger(__name__)

# Keys read during call setup
USE_SYSTEM_AEC = "use_system_aec"
USE_SYSTEM_NS = "use_system_ns"
ENABLE_STUN_MARKING = "voip_enable_stun_marking"
ENABLE_H265_ENCODER = "enable_h265_encoder"
ENABLE_H265_DECODER = "enable_h265_decoder"
ENABLE_H264_ENCODER = "enable_h264_encoder"
ENABLE_H264_DECODER = "enable_h264_decoder"


class ServerCallConfig:
    """Thread-safe store of server-provided call configuration."""

    def __init__(self, values: dict[str, Any] | None = None):
        self._lock = threading.Lock()
        self._values: dict[str, Any] = dict(values or {})

    def update_from_json(self, payload: str) -> bool:
        """Replace the store from a JSON object. Returns False if rejected."""
        try:
            values = json.loads(payload)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring malformed server call config: {e}")
            return False
        if not isinstance(values, dict):
            logger.warning(
                f"Ignoring server call config of type {type(values).__name__}",
            )
            return False
        with self._lock:
            self._values = values
        return True

    def get_bool(self, key: str, default: bool) -> bool:
        with self._lock:
            value = self._values.get(key)
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return value != 0
        return default

    def as_dict(self) -> dict[str, Any]:
        with self._lock:
            return dict(self._values)
