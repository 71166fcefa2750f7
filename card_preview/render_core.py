import json
from dataclasses import dataclass, field
from collections.abc import Mapping
from typing import Any

# ====== Field Paths ======
class _Missing:
    """Marker for a field path that did not resolve."""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


def resolve(record: Any, path: str) -> Any:
    """Walk a dotted path (e.g. "author.name") through nested mappings.

    Returns MISSING when a segment is absent, when any value along the way is
    None, or when an intermediate value is not a mapping. Never raises.
    """
    current = record
    for segment in path.split("."):
        if not isinstance(current, Mapping):
            return MISSING
        current = current.get(segment)
        if current is None:
            return MISSING
    return current


def _first_resolved(record: Any, candidates: tuple[str, ...]) -> Any:
    for path in candidates:
        value = resolve(record, path)
        if value is not MISSING:
            return value
    return MISSING


# ====== SharePoint Link ======
NO_SHAREPOINT_URL = "(no SharePoint URL found in description)"
_LINK_START = "]("
_LINK_END = ' "'


def extract_sharepoint_url(text: Any) -> str:
    """Return the target of the first markdown link that carries a title.

    Only the `[label](target "title")` shape is recognised: the target is the
    raw text between the first `](` and the next ` "`. Nothing is trimmed or
    decoded. Falls back to NO_SHAREPOINT_URL.
    """
    if not isinstance(text, str):
        return NO_SHAREPOINT_URL
    start = text.find(_LINK_START)
    if start == -1:
        return NO_SHAREPOINT_URL
    end = text.find(_LINK_END, start)
    if end == -1:
        return NO_SHAREPOINT_URL
    return text[start + len(_LINK_START):end]


# ====== Field Inspector ======
@dataclass(frozen=True)
class FieldCheck:
    path: str
    found: bool
    value: Any = None


@dataclass(frozen=True)
class FieldReport:
    empty: bool
    actual_fields: tuple[str, ...] = ()
    checks: tuple[FieldCheck, ...] = ()

    @property
    def missing(self) -> list[str]:
        return [c.path for c in self.checks if not c.found]


def inspect_fields(records: Any, expected_paths: list[str]) -> FieldReport:
    """Check which expected paths exist on the first record of a sequence.

    Only the first record is looked at; the point is discovering the upstream
    field names, not validating every record.
    """
    if not isinstance(records, (list, tuple)) or not records:
        return FieldReport(empty=True)
    first = records[0]
    actual = tuple(str(k) for k in first.keys()) if isinstance(first, Mapping) else ()
    checks = []
    for path in expected_paths:
        value = resolve(first, path)
        if value is MISSING:
            checks.append(FieldCheck(path=path, found=False))
        else:
            checks.append(FieldCheck(path=path, found=True, value=value))
    return FieldReport(empty=False, actual_fields=actual, checks=tuple(checks))


def format_field_report(label: str, report: FieldReport) -> list[str]:
    lines = [f"── {label} field report ──"]
    if report.empty:
        lines.append("  (empty list - no field names to inspect)")
        return lines
    lines.append(f"  Actual top-level fields: {', '.join(report.actual_fields)}")
    for check in report.checks:
        if check.found:
            try:
                shown = json.dumps(check.value, ensure_ascii=False)
            except (TypeError, ValueError):
                shown = repr(check.value)
            lines.append(f"  [OK] {check.path} = {shown}")
        else:
            lines.append(f"  [MISSING] {check.path} -- UPDATE FIELD NAME IN EXPRESSIONS")
    return lines


# ====== Canonical Model ======
@dataclass(frozen=True)
class CanonicalComment:
    author_name: str = ""
    timestamp: str = ""
    body: str = ""


@dataclass(frozen=True)
class CanonicalChecklistItem:
    label: str = ""
    done: bool = False


@dataclass(frozen=True)
class CanonicalChecklist:
    title: str = ""
    items: tuple[CanonicalChecklistItem, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class CanonicalCard:
    title: str = ""
    status: str = ""
    completed_at: str = ""
    description: str = ""
    sharepoint_url: str = NO_SHAREPOINT_URL


# Candidate source fields per canonical attribute; first resolvable one wins.
COMMENT_FIELDS = {
    "author_name": ("author.name",),
    "timestamp": ("created", "createdAt"),
    "body": ("content", "text"),
}
CHECKLIST_FIELDS = {
    "title": ("title", "name"),
}
CHECKLIST_ITEM_FIELDS = {
    "label": ("title", "name"),
}
CARD_FIELDS = {
    "title": ("title",),
    "status": ("status",),
    "completed_at": ("endDates.actual",),
    "description": ("description",),
}
COMPLETION_MARKERS = (
    ("status", "complete"),
    ("checked", True),
    ("state", "complete"),
)


# ====== Normalizer ======
def _as_text(value: Any) -> str:
    """Coerce a resolved value to display text; malformed values become ""."""

    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return ""
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def _text_fields(raw: Any, table: dict[str, tuple[str, ...]]) -> dict[str, str]:
    return {name: _as_text(_first_resolved(raw, paths)) for name, paths in table.items()}


def _is_done(raw: Any) -> bool:
    for path, marker in COMPLETION_MARKERS:
        value = resolve(raw, path)
        if marker is True:
            # only the boolean True marks completion
            if value is True:
                return True
        elif isinstance(value, str) and value == marker:
            return True
    return False


def to_comment(raw: Any) -> CanonicalComment:
    return CanonicalComment(**_text_fields(raw, COMMENT_FIELDS))


def to_checklist_item(raw: Any) -> CanonicalChecklistItem:
    return CanonicalChecklistItem(done=_is_done(raw), **_text_fields(raw, CHECKLIST_ITEM_FIELDS))


def to_checklist(raw: Any) -> CanonicalChecklist:
    items = resolve(raw, "items")
    if not isinstance(items, (list, tuple)):
        items = ()
    return CanonicalChecklist(
        items=tuple(to_checklist_item(item) for item in items),
        **_text_fields(raw, CHECKLIST_FIELDS),
    )


def to_card(raw: Any) -> CanonicalCard:
    fields = _text_fields(raw, CARD_FIELDS)
    return CanonicalCard(sharepoint_url=extract_sharepoint_url(fields["description"]), **fields)


def normalize_comments(records: Any) -> tuple[CanonicalComment, ...]:
    if not isinstance(records, (list, tuple)):
        return ()
    return tuple(to_comment(r) for r in records)


def normalize_checklists(records: Any) -> tuple[CanonicalChecklist, ...]:
    if not isinstance(records, (list, tuple)):
        return ()
    return tuple(to_checklist(r) for r in records)


# ====== HTML Renderer ======
CHECK_MARK = "&#10003;"
EMPTY_BOX = "&#9744;"
NO_COMMENTS = "<p><em>No comments.</em></p>"
NO_CHECKLISTS = "<p><em>No checklists.</em></p>"

_STYLE = """    body { font-family: Arial, sans-serif; max-width: 800px; margin: 40px auto; color: #222; }
    h1 { color: #1a3a5c; }
    h2 { border-bottom: 1px solid #ccc; padding-bottom: 4px; margin-top: 32px; }
    h3 { color: #444; margin-bottom: 4px; }
    p  { margin: 6px 0; }
    hr { border: 0; border-top: 2px solid #1a3a5c; }
    .meta { background: #f0f4f8; padding: 12px; border-radius: 4px; }
    .sp-link { font-size: 0.85em; color: #555; }"""


def _render_comment(comment: CanonicalComment) -> str:
    return f"<p><strong>{comment.author_name}</strong> — {comment.timestamp}<br/>{comment.body}</p>"


def _render_checklist(checklist: CanonicalChecklist) -> str:
    items_html = "".join(
        f"<p>{CHECK_MARK if item.done else EMPTY_BOX} {item.label}</p>" for item in checklist.items
    )
    return f"<h3>{checklist.title}</h3>{items_html}"


def render_document(
    card: CanonicalCard,
    comments: tuple[CanonicalComment, ...] | list[CanonicalComment],
    checklists: tuple[CanonicalChecklist, ...] | list[CanonicalChecklist],
) -> str:
    """Render the card preview page.

    Field values are interpolated as-is (no HTML escaping), matching what the
    flow's Compose action produces. Order of comments, checklists and items
    follows the input.
    """
    comments_html = "".join(_render_comment(c) for c in comments) or NO_COMMENTS
    checklists_html = "".join(_render_checklist(c) for c in checklists) or NO_CHECKLISTS
    description_html = card.description.replace("\n", "<br/>")
    sp_url = card.sharepoint_url

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8"/>
  <style>
{_STYLE}
  </style>
</head>
<body>
  <h1>{card.title}</h1>
  <hr/>
  <div class="meta">
    <p><strong>Status:</strong> {card.status}</p>
    <p><strong>Completed:</strong> {card.completed_at}</p>
    <p class="sp-link"><strong>SharePoint folder:</strong> <a href="{sp_url}">{sp_url}</a></p>
  </div>

  <h2>Description</h2>
  <p>{description_html}</p>

  <h2>Comments ({len(comments)})</h2>
  {comments_html}

  <h2>Checklists ({len(checklists)})</h2>
  {checklists_html}
</body>
</html>"""
