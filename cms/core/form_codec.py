"""
Form encoding for collection submits.

Records travel as flat form fields: ``values[i][field]`` for scalars and
``values[i][field][j]`` for string lists. Chosen files travel as separate
parts named ``file{i}`` (becomes the record's ``image``) or ``video{i}``
(becomes its ``video``).
"""

import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .content import pending_uploads, record_to_values
from .schema import PendingUpload

VALUE_KEY = re.compile(r"values\[(\d+)\]\[(\w+)\](?:\[(\d+)\])?")
UPLOAD_KEY = re.compile(r"(file|video)(\d+)")
UPLOAD_TARGETS = {"file": "image", "video": "video"}


def _group_fields(fields: Iterable[Tuple[str, str]]) -> Dict[int, Dict[str, Any]]:
    grouped: Dict[int, Dict[str, Any]] = {}
    for name, value in fields:
        match = VALUE_KEY.fullmatch(name)
        if not match:
            continue
        index, field_name, array_index = match.groups()
        record = grouped.setdefault(int(index), {})
        if array_index is None:
            record[field_name] = value
        else:
            items = record.get(field_name)
            if not isinstance(items, dict):
                items = record[field_name] = {}
            items[int(array_index)] = value
    return grouped


def _compact(grouped: Dict[int, Dict[str, Any]]) -> List[Dict[str, Any]]:
    values = []
    for index in sorted(grouped):
        record = {}
        for field_name, value in grouped[index].items():
            if isinstance(value, dict):
                record[field_name] = [value[j] for j in sorted(value)]
            else:
                record[field_name] = value
        values.append(record)
    return values


def parse_upload_key(name: str) -> Optional[Tuple[str, int]]:
    """Return (target field, record index) for ``file{i}``/``video{i}`` parts."""
    match = UPLOAD_KEY.fullmatch(name)
    if not match:
        return None
    return UPLOAD_TARGETS[match.group(1)], int(match.group(2))


def decode_form(fields: Iterable[Tuple[str, str]], uploads: Dict[str, PendingUpload] = None,
                provider=None) -> List[Dict[str, Any]]:
    """
    Decode submitted form fields into the values array to persist.

    Uploads run one at a time, in part order, before anything is returned;
    an UploadError from the provider propagates and nothing is decoded.
    Empty files are skipped. Record order follows the submitted indices.
    """
    grouped = _group_fields(fields)

    for name, upload in (uploads or {}).items():
        parsed = parse_upload_key(name)
        if parsed is None or upload.size == 0:
            continue
        if provider is None:
            raise ValueError("An upload provider is required to store files")
        target, index = parsed
        url = provider.upload(upload)
        grouped.setdefault(index, {})[target] = url

    return _compact(grouped)


def encode_records(records: Sequence[Any]) -> Tuple[Dict[str, str], Dict[str, Tuple[str, bytes, str]]]:
    """Encode records into (form fields, file parts) for a POST/PUT body."""
    data: Dict[str, str] = {}
    files: Dict[str, Tuple[str, bytes, str]] = {}

    for i, record in enumerate(records):
        for wire, value in record_to_values(record).items():
            if isinstance(value, list):
                for j, item in enumerate(value):
                    data[f"values[{i}][{wire}][{j}]"] = item
            else:
                data[f"values[{i}][{wire}]"] = "" if value is None else str(value)

        for prefix, upload in pending_uploads(record):
            files[f"{prefix}{i}"] = (upload.filename, upload.content, upload.content_type)

    return data, files
