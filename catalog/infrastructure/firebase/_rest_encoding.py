"""Encode/decode Python values to/from Firestore REST API 'fields' format."""

import base64
from datetime import UTC, datetime
from typing import Any

from catalog.application.interfaces.store import SERVER_TIMESTAMP


def encode_value(v: Any) -> dict:
    if v is None:
        return {"nullValue": None}
    if isinstance(v, bool):
        return {"booleanValue": v}
    if isinstance(v, int):
        return {"integerValue": str(v)}
    if isinstance(v, float):
        return {"doubleValue": v}
    if isinstance(v, datetime):
        if v.tzinfo is not None:
            v = v.astimezone(UTC)
        return {"timestampValue": v.strftime("%Y-%m-%dT%H:%M:%S.%fZ")}
    if isinstance(v, str):
        return {"stringValue": v}
    if isinstance(v, bytes):
        return {"bytesValue": base64.standard_b64encode(v).decode("ascii")}
    if isinstance(v, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(x) for x in v]}}
    if isinstance(v, dict):
        return {"mapValue": {"fields": {k: encode_value(x) for k, x in v.items()}}}
    raise TypeError(f"Unsupported Firestore value type: {type(v)}")


def encode_fields(data: dict[str, Any]) -> tuple[dict, list[dict]]:
    """Split data into Document.fields and REQUEST_TIME field transforms.

    SERVER_TIMESTAMP values become transforms; "id" is the document key and
    is never stored as a field.
    """
    fields: dict[str, dict] = {}
    transforms: list[dict] = []
    for key, value in data.items():
        if key == "id":
            continue
        if value is SERVER_TIMESTAMP:
            transforms.append({"fieldPath": key, "setToServerValue": "REQUEST_TIME"})
        else:
            fields[key] = encode_value(value)
    return fields, transforms


def decode_value(obj: dict) -> Any:
    """Decode one Firestore Value (document field or transformResults entry)."""
    if "nullValue" in obj:
        return None
    if "booleanValue" in obj:
        return obj["booleanValue"]
    if "integerValue" in obj:
        return int(obj["integerValue"])
    if "doubleValue" in obj:
        return obj["doubleValue"]
    if "timestampValue" in obj:
        return _parse_timestamp(obj["timestampValue"])
    if "stringValue" in obj:
        return obj["stringValue"]
    if "bytesValue" in obj:
        return base64.standard_b64decode(obj["bytesValue"])
    if "arrayValue" in obj:
        vals = obj.get("arrayValue", {}).get("values") or []
        return [decode_value(x) for x in vals]
    if "mapValue" in obj:
        fields = obj["mapValue"].get("fields") or {}
        return {k: decode_value(x) for k, x in fields.items()}
    return None


def _parse_timestamp(raw: str) -> datetime:
    # Firestore returns RFC 3339 with up to nanosecond precision; trim to microseconds.
    text = raw.replace("Z", "+00:00")
    if "." in text:
        head, _, rest = text.partition(".")
        digits = rest[: len(rest) - len(rest.lstrip("0123456789"))]
        text = f"{head}.{digits[:6].ljust(6, '0')}{rest[len(digits):]}"
    return datetime.fromisoformat(text)


def decode_document(document: dict | None) -> dict[str, Any]:
    """Convert a Firestore REST Document to a dict with the document key as "id"."""
    if not document:
        return {}
    out = {k: decode_value(v) for k, v in (document.get("fields") or {}).items()}
    name = document.get("name", "")
    if name:
        out["id"] = name.rsplit("/", 1)[-1]
    return out
