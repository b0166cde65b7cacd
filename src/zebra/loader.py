import json
import os
from typing import Any, Dict, List

import pandas as pd

from src.utils.io import load_json


def _coerce_jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _coerce_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_coerce_jsonable(v) for v in value]
    if hasattr(value, "tolist"):
        return _coerce_jsonable(value.tolist())
    return value


def _normalize_record(record: Dict[str, Any]) -> Dict[str, Any]:
    record = _coerce_jsonable(record)

    # Attribute columns stored as JSON text (common when exporting from CSV tools).
    for key in ("attributes", "domains", "constraints"):
        value = record.get(key)
        if isinstance(value, str) and value.strip()[:1] in ("{", "["):
            record[key] = json.loads(value)

    # Mixed parquet rows come back with NaN where a column was absent.
    for key in ("houses", "size"):
        value = record.get(key)
        if isinstance(value, float) and pd.isna(value):
            record[key] = None

    if record.get("houses") is None and record.get("size"):
        try:
            record["houses"] = int(str(record["size"]).split("*", 1)[0])
        except ValueError:
            pass
    return record


def _read_json_lines(file_path: str) -> List[Dict[str, Any]]:
    data = []
    with open(file_path, "r", encoding="utf-8") as f:
        for line in f:
            if not line.strip():
                continue
            try:
                obj = json.loads(line)
            except json.JSONDecodeError:
                continue
            if isinstance(obj, dict):
                data.append(_normalize_record(obj))
    return data


def load_puzzles(file_path: str) -> List[Dict[str, Any]]:
    """
    Reads puzzle records from a file. Handles .parquet, .json and .jsonl formats.
    Returns a list of raw puzzle dictionaries ready for `parse_puzzle`.
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"File not found: {file_path}")

    # Case 1: Parquet File (Binary)
    if file_path.endswith(".parquet"):
        df = pd.read_parquet(file_path)
        records = df.to_dict(orient="records")
        return [_normalize_record(r) for r in records]

    # Case 2: JSON File (Text; array or object)
    if file_path.endswith(".json"):
        try:
            payload = load_json(file_path)
        except json.JSONDecodeError:
            # Some sources use ".json" but actually store JSONL; fall back to line-delimited parsing.
            return _read_json_lines(file_path)
        if isinstance(payload, list):
            return [_normalize_record(p) for p in payload if isinstance(p, dict)]
        if isinstance(payload, dict):
            return [_normalize_record(payload)]
        return []

    # Case 3: JSONL File (Text)
    return _read_json_lines(file_path)
