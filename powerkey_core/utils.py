"""
powerkey_core.utils
-------------------
Lightweight helpers for timestamps, base64, hex handles and canonical JSON.
Signing and proof bytes are always built through canonical_json() so both
sides of a verification agree byte for byte.
"""

from __future__ import annotations
import base64, json, time, hashlib
from typing import Any, Dict

def b64e(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")

def b64d(s: str) -> bytes:
    return base64.b64decode(s.encode("ascii"))

def now_epoch() -> int:
    # Whole seconds, UTC
    return int(time.time())

def to_hex(b: bytes) -> str:
    return "0x" + b.hex()

def from_hex(s: str) -> bytes:
    return bytes.fromhex(s[2:] if s.startswith("0x") else s)

def canonical_json(obj: Dict[str, Any]) -> bytes:
    return json.dumps(obj, separators=(",", ":"), sort_keys=True, ensure_ascii=False).encode("utf-8")

def sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()
