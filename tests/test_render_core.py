import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from card_preview.render_core import (  # noqa: E402
    MISSING,
    NO_SHAREPOINT_URL,
    CanonicalCard,
    CanonicalChecklist,
    CanonicalChecklistItem,
    CanonicalComment,
    extract_sharepoint_url,
    format_field_report,
    inspect_fields,
    normalize_checklists,
    normalize_comments,
    render_document,
    resolve,
    to_card,
    to_checklist,
    to_checklist_item,
    to_comment,
)


def test_resolve_walks_nested_mappings():
    record = {"author": {"name": "A"}, "created": "2020-01-01"}
    assert resolve(record, "author.name") == "A"
    assert resolve(record, "created") == "2020-01-01"


def test_resolve_missing_and_none_are_not_found():
    record = {"author": None, "endDates": {"actual": None}, "title": "x"}
    assert resolve(record, "author.name") is MISSING
    assert resolve(record, "endDates.actual") is MISSING
    assert resolve(record, "nope.deeper.still") is MISSING
    assert resolve(record, "title.length") is MISSING
    assert resolve("not a mapping", "title") is MISSING


def test_resolve_keeps_falsy_values():
    record = {"count": 0, "flag": False, "text": ""}
    assert resolve(record, "count") == 0
    assert resolve(record, "flag") is False
    assert resolve(record, "text") == ""


def test_resolve_does_not_mutate_record():
    record = {"a": {"b": 1}}
    resolve(record, "a.c")
    assert record == {"a": {"b": 1}}


def test_extract_link_with_title():
    text = 'see [here](https://example.com/a "title")'
    assert extract_sharepoint_url(text) == "https://example.com/a"


def test_extract_uses_first_link_only():
    text = 'one [a](http://first "t") two [b](http://second "u")'
    assert extract_sharepoint_url(text) == "http://first"


def test_extract_without_markers_returns_sentinel():
    assert extract_sharepoint_url("plain text, no link") == NO_SHAREPOINT_URL
    assert extract_sharepoint_url("[a](http://x)") == NO_SHAREPOINT_URL
    assert extract_sharepoint_url("") == NO_SHAREPOINT_URL
    assert extract_sharepoint_url(None) == NO_SHAREPOINT_URL


def test_extract_does_not_trim_or_decode():
    text = '[a]( http://x/a%20b "t")'
    assert extract_sharepoint_url(text) == " http://x/a%20b"


def test_extract_title_before_link_is_ignored():
    # The closing marker is only searched for after the first "]("
    text = 'say "hi" then [a](http://x)'
    assert extract_sharepoint_url(text) == NO_SHAREPOINT_URL


def test_to_comment_prefers_first_candidate():
    comment = to_comment({"content": "primary", "text": "secondary", "createdAt": "later"})
    assert comment.body == "primary"
    assert comment.timestamp == "later"
    assert comment.author_name == ""


def test_to_comment_skips_null_candidates():
    comment = to_comment({"content": None, "text": "fallback", "created": None, "createdAt": "ts"})
    assert comment.body == "fallback"
    assert comment.timestamp == "ts"


def test_normalizers_accept_empty_mapping():
    assert to_comment({}) == CanonicalComment("", "", "")
    assert to_checklist({}) == CanonicalChecklist("", ())
    assert to_checklist_item({}) == CanonicalChecklistItem("", False)
    assert to_card({}) == CanonicalCard("", "", "", "", NO_SHAREPOINT_URL)


def test_malformed_values_fall_back_to_defaults():
    comment = to_comment({"content": {"nested": 1}, "created": 1700000000, "author": "flat"})
    assert comment.body == ""
    assert comment.timestamp == "1700000000"
    assert comment.author_name == ""
    checklist = to_checklist({"name": "N", "items": "not a list"})
    assert checklist == CanonicalChecklist("N", ())


def test_checklist_item_completion_markers():
    assert to_checklist_item({"title": "a", "status": "complete"}).done is True
    assert to_checklist_item({"name": "b", "checked": True}).done is True
    assert to_checklist_item({"title": "c", "state": "complete"}).done is True
    assert to_checklist_item({"title": "d", "status": "incomplete"}).done is False
    assert to_checklist_item({"title": "e", "checked": 1}).done is False
    assert to_checklist_item({"title": "f"}).done is False


def test_checklist_keeps_item_order_and_bad_items():
    checklist = to_checklist({"title": "C", "items": [{"title": "z"}, "junk", {"name": "a"}]})
    assert [i.label for i in checklist.items] == ["z", "", "a"]


def test_to_card_derives_sharepoint_url():
    card = to_card({
        "title": "T",
        "status": "DONE",
        "endDates": {"actual": "2026-02-19"},
        "description": 'see [here](http://x "t")',
    })
    assert card.completed_at == "2026-02-19"
    assert card.sharepoint_url == "http://x"


def test_normalize_sequences_ignore_non_lists():
    assert normalize_comments(None) == ()
    assert normalize_checklists({"data": []}) == ()
    assert [c.body for c in normalize_comments([{"text": "1"}, {"text": "2"}])] == ["1", "2"]


def test_inspect_fields_first_record_only():
    records = [{"content": "hi", "author": {"name": "A"}}, {"text": "other"}]
    report = inspect_fields(records, ["content", "text", "author.name"])
    assert report.empty is False
    assert report.actual_fields == ("content", "author")
    assert [(c.path, c.found) for c in report.checks] == [
        ("content", True),
        ("text", False),
        ("author.name", True),
    ]
    assert report.checks[2].value == "A"
    assert report.missing == ["text"]


def test_inspect_fields_empty_input_is_explicit():
    report = inspect_fields([], ["content"])
    assert report.empty is True
    lines = format_field_report("Comments", report)
    assert "no field names to inspect" in lines[-1]
    assert inspect_fields(None, ["content"]).empty is True


def test_inspect_fields_non_mapping_first_record():
    report = inspect_fields(["x", {"content": "hi"}], ["content", "author.name"])
    assert report.empty is False
    assert report.actual_fields == ()
    assert [c.found for c in report.checks] == [False, False]
    assert report.missing == ["content", "author.name"]


def test_format_field_report_lines():
    report = inspect_fields([{"content": "hi"}], ["content", "text"])
    lines = format_field_report("Comments", report)
    assert lines[0] == "── Comments field report ──"
    assert "  Actual top-level fields: content" in lines
    assert '  [OK] content = "hi"' in lines
    assert "  [MISSING] text -- UPDATE FIELD NAME IN EXPRESSIONS" in lines


def _scenario_html():
    card = to_card({"title": "T", "status": "DONE", "description": 'see [here](http://x "t")'})
    comments = normalize_comments([{"content": "hi", "author": {"name": "A"}, "created": "2020-01-01"}])
    checklists = normalize_checklists([{"title": "C", "items": [{"title": "i1", "status": "complete"}]}])
    return render_document(card, comments, checklists)


def test_render_end_to_end_scenario():
    html = _scenario_html()
    assert html.startswith("<!DOCTYPE html>")
    assert "<h1>T</h1>" in html
    assert "<strong>Status:</strong> DONE" in html
    assert '<a href="http://x">http://x</a>' in html
    assert "<p><strong>A</strong> — 2020-01-01<br/>hi</p>" in html
    assert "<h3>C</h3><p>&#10003; i1</p>" in html
    assert "Comments (1)" in html and "Checklists (1)" in html


def test_render_is_idempotent():
    assert _scenario_html() == _scenario_html()


def test_render_empty_sections_use_placeholders():
    html = render_document(to_card({}), [], [])
    assert "<p><em>No comments.</em></p>" in html
    assert "<p><em>No checklists.</em></p>" in html
    assert "Comments (0)" in html and "Checklists (0)" in html
    assert NO_SHAREPOINT_URL in html


def test_render_preserves_order_and_newlines():
    card = to_card({"description": "line one\nline two"})
    comments = normalize_comments([{"text": "second"}, {"text": "first"}])
    checklists = normalize_checklists([{"title": "L", "items": [{"title": "b"}, {"title": "a", "checked": True}]}])
    html = render_document(card, comments, checklists)
    assert "line one<br/>line two" in html
    assert html.index("second") < html.index("first")
    assert "<h3>L</h3><p>&#9744; b</p><p>&#10003; a</p>" in html


def test_render_does_not_escape_markup():
    card = to_card({"title": "<b>bold</b>"})
    html = render_document(card, [], [])
    assert "<h1><b>bold</b></h1>" in html
