# engine/storage.py
import json
import math
import os
from typing import Any, Dict


def empty_plan_document() -> Dict[str, Dict[str, Any]]:
    return {"plans": {}, "breakdowns": {}}


def ensure_user_data_dir(path: str) -> None:
    folder = os.path.dirname(path)
    if folder and not os.path.exists(folder):
        os.makedirs(folder, exist_ok=True)


def _sanitize_json_compat(value: Any):
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return value
    if isinstance(value, dict):
        return {key: _sanitize_json_compat(val) for key, val in value.items()}
    if isinstance(value, list):
        return [_sanitize_json_compat(item) for item in value]
    return value


def load_plan_document(path: str) -> Dict[str, Dict[str, Any]]:
    """Read the plans file. A missing or blank file is an empty store; corrupt JSON raises."""
    document = empty_plan_document()
    if not os.path.exists(path):
        return document
    with open(path, "r", encoding="utf-8") as f:
        raw_text = f.read().strip()
    if not raw_text:
        return document
    data = json.loads(raw_text)
    for key in document:
        document[key] = data.get(key) or {}
    return _sanitize_json_compat(document)


def save_plan_document(path: str, document: Dict[str, Dict[str, Any]]) -> None:
    ensure_user_data_dir(path)
    tmp_path = f"{path}.tmp"
    clean = _sanitize_json_compat(document)
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(clean, f, allow_nan=False)
    os.replace(tmp_path, path)
