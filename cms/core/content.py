"""
Content types edited through the dashboard.

Each content type is a frozen record dataclass plus a registry entry naming
its store key, its add-gate validator and the filter used to pick which
records are submitted. Upload fields carry a PendingUpload until the store
turns them into a URL, and they never appear in wire values.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Type

from .schema import ClientKey, PendingUpload, new_client_key

# Field metadata markers
WIRE = "wire"          # wire name when it differs from the attribute name
UPLOAD = "upload"      # form part prefix for an upload field (file{i}, video{i})
TARGET = "target"      # record field that receives the uploaded URL
INTERNAL = "internal"  # bookkeeping, excluded from search and wire values


def _key_field():
    return field(default=ClientKey(""), compare=False, metadata={INTERNAL: True})


def _upload_field(prefix: str, target: str):
    return field(default=None, compare=False, metadata={UPLOAD: prefix, TARGET: target})


@dataclass(frozen=True)
class FAQ:
    question: str = ""
    answer: str = ""
    key: ClientKey = _key_field()


@dataclass(frozen=True)
class Service:
    title: str = ""
    description: str = ""
    image: str = ""
    file: Optional[PendingUpload] = _upload_field("file", "image")
    key: ClientKey = _key_field()


@dataclass(frozen=True)
class NewsItem:
    fallback: str = ""
    title: str = ""
    link: str = ""
    image: str = ""
    file: Optional[PendingUpload] = _upload_field("file", "image")
    key: ClientKey = _key_field()


@dataclass(frozen=True)
class SectorItem:
    image: str = ""
    link: str = ""
    title: str = ""
    description: str = ""
    file: Optional[PendingUpload] = _upload_field("file", "image")
    key: ClientKey = _key_field()


@dataclass(frozen=True)
class HighlightItem:
    text_lists: Tuple[str, ...] = field(default=("", ""), metadata={WIRE: "textLists"})
    video: str = ""
    video_duration: int = field(default=0, metadata={WIRE: "videoDuration"})
    video_file: Optional[PendingUpload] = _upload_field("video", "video")
    key: ClientKey = _key_field()


def is_filled(value: Any) -> bool:
    """Non-blank string, sequence with a non-blank string, or any truthy value."""
    if isinstance(value, str):
        return value.strip() != ""
    if isinstance(value, (tuple, list)):
        return any(isinstance(v, str) and v.strip() != "" for v in value)
    return bool(value)


def faq_complete(item: FAQ) -> bool:
    return is_filled(item.question) and is_filled(item.answer)


def service_complete(item: Service) -> bool:
    return is_filled(item.title) and is_filled(item.description)


def news_complete(item: NewsItem) -> bool:
    return is_filled(item.title) and is_filled(item.fallback)


def highlight_complete(item: HighlightItem) -> bool:
    # A chosen video file stands in for the URL until it is uploaded
    return is_filled(item.text_lists) and (is_filled(item.video) or item.video_file is not None)


def sector_has_content(item: SectorItem) -> bool:
    return (
        is_filled(item.title)
        or is_filled(item.description)
        or is_filled(item.link)
        or is_filled(item.image)
        or item.file is not None
    )


def wire_name(f) -> str:
    return f.metadata.get(WIRE, f.name)


def is_upload_field(f) -> bool:
    return UPLOAD in f.metadata


def value_fields(record_cls: Type) -> List:
    """Fields persisted as wire values (no uploads, no bookkeeping)."""
    return [f for f in fields(record_cls) if not is_upload_field(f) and not f.metadata.get(INTERNAL)]


def searchable_text(record: Any) -> Iterator[str]:
    """Yield every string the search box matches against."""
    for f in value_fields(type(record)):
        value = getattr(record, f.name)
        if isinstance(value, str):
            yield value
        elif isinstance(value, (tuple, list)):
            for v in value:
                if isinstance(v, str):
                    yield v


def pending_uploads(record: Any) -> List[Tuple[str, PendingUpload]]:
    """(form part prefix, upload) pairs for the record's chosen files."""
    result = []
    for f in fields(record):
        if is_upload_field(f):
            upload = getattr(record, f.name)
            if upload is not None:
                result.append((f.metadata[UPLOAD], upload))
    return result


def clear_uploads(record: Any) -> Any:
    changes = {f.name: None for f in fields(record) if is_upload_field(f)}
    return replace(record, **changes) if changes else record


def _to_int(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def record_to_values(record: Any) -> Dict[str, Any]:
    """Wire values for one record, keyed by wire name."""
    values = {}
    for f in value_fields(type(record)):
        value = getattr(record, f.name)
        values[wire_name(f)] = list(value) if isinstance(value, tuple) else value
    return values


def record_from_values(record_cls: Type, values: Dict[str, Any], key: ClientKey) -> Any:
    """Build a record from stored wire values, tolerating missing or loose types."""
    kwargs = {"key": key}
    for f in value_fields(record_cls):
        raw = values.get(wire_name(f))
        if raw is None:
            continue
        if isinstance(f.default, tuple):
            if isinstance(raw, (list, tuple)):
                kwargs[f.name] = tuple("" if v is None else str(v) for v in raw)
            else:
                kwargs[f.name] = (str(raw),)
        elif isinstance(f.default, int):
            kwargs[f.name] = _to_int(raw)
        else:
            kwargs[f.name] = str(raw)
    return record_cls(**kwargs)


def add_text_line(item: HighlightItem) -> HighlightItem:
    return replace(item, text_lists=item.text_lists + ("",))


def remove_text_line(item: HighlightItem, index: int) -> HighlightItem:
    remaining = tuple(text for i, text in enumerate(item.text_lists) if i != index)
    return replace(item, text_lists=remaining or ("",))


@dataclass(frozen=True)
class ContentType:
    name: str
    label: str
    record_cls: Type
    validator: Optional[Callable[[Any], bool]] = None
    submit_filter: Optional[Callable[[Any], bool]] = None
    title_field: str = "title"

    def new_record(self) -> Any:
        """Fresh default record with its own key."""
        return self.record_cls(key=new_client_key(self.name))

    def is_valid(self, record: Any) -> bool:
        return self.validator is None or self.validator(record)

    def should_submit(self, record: Any) -> bool:
        check = self.submit_filter or self.validator
        return True if check is None else check(record)

    def from_values(self, values: Dict[str, Any]) -> Any:
        return record_from_values(self.record_cls, values, new_client_key(self.name))

    def title_of(self, record: Any) -> str:
        value = getattr(record, self.title_field, "")
        if isinstance(value, tuple):
            value = next((v for v in value if v.strip()), "")
        return value


CONTENT_TYPES: Dict[str, ContentType] = {
    "faq": ContentType("faq", "FAQ", FAQ, faq_complete, title_field="question"),
    "details": ContentType("details", "service", Service, service_complete),
    "newsletter": ContentType("newsletter", "newsletter", NewsItem, news_complete),
    "setors": ContentType("setors", "sector", SectorItem, None, submit_filter=sector_has_content),
    "highlights": ContentType("highlights", "highlight", HighlightItem, highlight_complete,
                              title_field="text_lists"),
}


def get_content_type(name: str) -> ContentType:
    """Look up a registered content type by its store key."""
    try:
        return CONTENT_TYPES[name]
    except KeyError:
        raise ValueError(f"Unknown content type: {name}") from None
