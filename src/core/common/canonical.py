import hashlib
import json
from copy import deepcopy
from typing import Any

SHORT_ID_LENGTH = 12


def canonical_json(payload: Any) -> str:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"))


def hash_canonical_payload(payload: Any) -> str:
    digest = hashlib.sha256(canonical_json(payload).encode("utf-8")).hexdigest()
    return f"sha256:{digest}"


def strip_keys(payload: Any, *, exclude: set[str]) -> Any:
    if isinstance(payload, dict):
        return {
            key: strip_keys(value, exclude=exclude)
            for key, value in payload.items()
            if key not in exclude
        }
    if isinstance(payload, list):
        return [strip_keys(item, exclude=exclude) for item in payload]
    return deepcopy(payload)


def content_id(prefix: str, payload: Any, *, exclude: set[str] | None = None) -> str:
    """Deterministic identifier derived from payload content, e.g. ``plan_3f1c0a9b2d4e``."""
    canonical_payload = strip_keys(payload, exclude=exclude or set())
    digest = hash_canonical_payload(canonical_payload).split(":", 1)[1]
    return f"{prefix}_{digest[:SHORT_ID_LENGTH]}"
