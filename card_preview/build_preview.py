"""Build a local preview of the card PDF HTML the automation flow composes.

Two modes:

    Live API (needs a Placker API key and a card ID):
        PLACKER_API_KEY=... PLACKER_CARD_ID=57175086 python -m card_preview.build_preview

    Sample data (no key needed):
        python -m card_preview.build_preview

Writes the rendered document to PREVIEW_OUTPUT_FILE (default output.html) and
prints which expected field names were found, so the flow expressions can be
corrected before they are built.
"""

import copy
import math
import os
import sys
from concurrent.futures import ThreadPoolExecutor

import requests

from card_preview.render_core import (
    format_field_report,
    inspect_fields,
    normalize_checklists,
    normalize_comments,
    render_document,
    to_card,
)
from card_preview.sample_data import SAMPLE_CARD, SAMPLE_CHECKLISTS, SAMPLE_COMMENTS

# ====== Secrets / Env ======
PLACKER_API_KEY = os.environ.get("PLACKER_API_KEY", "").strip()
PLACKER_CARD_ID = os.environ.get("PLACKER_CARD_ID", "").strip()
PLACKER_BASE_URL = os.environ.get("PLACKER_BASE_URL", "https://placker.com").strip().rstrip("/")
OUTPUT_FILE = os.environ.get("PREVIEW_OUTPUT_FILE", "output.html").strip() or "output.html"
SHOW_FLOW_HINTS = os.environ.get("SHOW_FLOW_HINTS", "1").strip() != "0"

_DEFAULT_TIMEOUT = 20
try:
    REQUEST_TIMEOUT = float(os.environ.get("PLACKER_TIMEOUT", _DEFAULT_TIMEOUT))
except ValueError:
    REQUEST_TIMEOUT = _DEFAULT_TIMEOUT
if not math.isfinite(REQUEST_TIMEOUT) or REQUEST_TIMEOUT <= 0:
    REQUEST_TIMEOUT = _DEFAULT_TIMEOUT

# Expected field paths printed in the field reports.
COMMENT_PATHS = ["content", "text", "author.name", "created", "createdAt"]
CHECKLIST_PATHS = ["title", "items"]
CHECKLIST_ITEM_PATHS = ["title", "status", "state", "checked"]


class PlackerAPIError(RuntimeError):
    """Raised when a Placker request fails or returns something unusable."""


def _mask_secret(secret: str, visible: int = 4) -> str:
    """Return a masked representation of a secret for console output."""

    secret = (secret or "").strip()
    if not secret:
        return ""
    if len(secret) <= visible:
        return "*" * len(secret)
    return f"{secret[:visible]}…{'*' * max(len(secret) - visible, 0)}"


def _summarize_http_error(err: Exception) -> str:
    """Return a short string summarizing an HTTP error response body."""

    response = getattr(err, "response", None)
    if response is None:
        return ""
    text = (response.text or "").strip().replace("\n", " ")
    if len(text) > 240:
        text = text[:240] + "…"
    return text


# ====== Placker Fetch ======
def fetch_json(url: str, api_key: str | None = None, timeout: float | None = None):
    """GET a Placker endpoint and return the decoded JSON body."""

    key = PLACKER_API_KEY if api_key is None else api_key
    try:
        resp = requests.get(
            url,
            headers={"X-API-Key": key, "Accept": "application/json"},
            timeout=timeout or REQUEST_TIMEOUT,
        )
    except requests.RequestException as exc:
        summary = _summarize_http_error(exc)
        raise PlackerAPIError(f"Request to {url} failed: {summary or exc}") from exc

    if resp.status_code != 200:
        raise PlackerAPIError(f"HTTP {resp.status_code} from {url}: {resp.text}")
    try:
        return resp.json()
    except ValueError as exc:
        raise PlackerAPIError(f"Failed to parse JSON from {url}: {resp.text[:200]}") from exc


def fetch_card_bundle(card_id: str, base_url: str | None = None) -> tuple:
    """Fetch card, comments and checklists concurrently and wait for all three."""

    base = (base_url or PLACKER_BASE_URL).rstrip("/")
    urls = [
        f"{base}/card/{card_id}",
        f"{base}/card/{card_id}/comment",
        f"{base}/card/{card_id}/checklist",
    ]
    with ThreadPoolExecutor(max_workers=len(urls)) as pool:
        futures = [pool.submit(fetch_json, url) for url in urls]
        card, comments, checklists = (f.result() for f in futures)
    return card, comments, checklists


def _unwrap_list(value) -> list:
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        data = value.get("data")
        return data if isinstance(data, list) else []
    return []


def unwrap_bundle(card, comments, checklists) -> tuple[dict, list, list]:
    """Reduce live responses to the shapes the flow's Parse JSON step sees.

    Placker returns bodies directly; list endpoints may also wrap results in
    a `data` key.
    """
    if isinstance(card, list):
        card = card[0] if card else {}
    if not isinstance(card, dict):
        card = {}
    return card, _unwrap_list(comments), _unwrap_list(checklists)


def sample_bundle() -> tuple[dict, list, list]:
    return copy.deepcopy(SAMPLE_CARD), copy.deepcopy(SAMPLE_COMMENTS), copy.deepcopy(SAMPLE_CHECKLISTS)


# ====== Diagnostics ======
def field_report_lines(comments: list, checklists: list) -> list[str]:
    """Field reports for comments, checklists and the first checklist's items."""

    lines: list[str] = []
    lines += [""] + format_field_report("Comments", inspect_fields(comments, COMMENT_PATHS))
    lines += [""] + format_field_report("Checklists", inspect_fields(checklists, CHECKLIST_PATHS))
    first_items = None
    if checklists and isinstance(checklists[0], dict):
        first_items = checklists[0].get("items")
    if isinstance(first_items, list) and first_items:
        report = inspect_fields(first_items, CHECKLIST_ITEM_PATHS)
        lines += [""] + format_field_report("Checklist items (first checklist)", report)
    return lines


FLOW_EXPRESSION_HINTS = """
── Power Automate expressions for Action 7 (Select - Format Comments) ──

  From:  body('HTTP_-_Get_Comments')
  Map:   concat(
           '<p><strong>', item()?['author']?['name'], '</strong> — ',
           item()?['created'], '<br/>',
           item()?['content'], '</p>'
         )

── Power Automate expressions for Action 7 (Select - Format Checklists) ──

  From:  body('HTTP_-_Get_Checklists')
  Map:   concat('<h3>', item()?['title'], '</h3>')
         (items array requires a nested loop)

── Compose - Build HTML Content (Action 7 final expression) ──

  concat(
    '<html><body>',
    '<h1>', first(body('Filter_array'))?['title'], '</h1>',
    '<hr/>',
    '<p><strong>Status:</strong> ', first(body('Filter_array'))?['status'], '</p>',
    '<p><strong>Completed:</strong> ', first(body('Filter_array'))?['endDates']?['actual'], '</p>',
    '<h2>Description</h2>',
    '<p>', first(body('Filter_array'))?['description'], '</p>',
    '<h2>Comments</h2>',
    join(body('Select_-_Format_Comments'), ''),
    '<h2>Checklists</h2>',
    join(body('Select_-_Format_Checklists'), ''),
    '</body></html>'
  )

  NOTE: Verify the field names above against the field report.
  Any field reported as [MISSING] needs its item()?['fieldname'] updated.
"""


# ====== Output Writer ======
def write_document(path: str, html: str) -> str:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(html)
    return path


# ====== Main ======
def main() -> int:
    if PLACKER_API_KEY and PLACKER_CARD_ID:
        print(f"Mode A — Live API  (card ID: {PLACKER_CARD_ID}, key: {_mask_secret(PLACKER_API_KEY)})")
        print("Fetching card, comments, and checklists from Placker...")
        try:
            raw = fetch_card_bundle(PLACKER_CARD_ID)
        except PlackerAPIError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        card, comments, checklists = unwrap_bundle(*raw)
    else:
        print("Mode B — Sample data (set PLACKER_API_KEY and PLACKER_CARD_ID for live mode)")
        card, comments, checklists = sample_bundle()

    for line in field_report_lines(comments, checklists):
        print(line)

    canonical_card = to_card(card)
    print("\n── SharePoint URL extraction ──")
    print(f"  Result: {canonical_card.sharepoint_url}")

    html = render_document(canonical_card, normalize_comments(comments), normalize_checklists(checklists))
    try:
        target = write_document(OUTPUT_FILE, html)
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(f"\nWrote: {target}")
    print("  Open it in a browser to preview the PDF content.")

    if SHOW_FLOW_HINTS:
        print(FLOW_EXPRESSION_HINTS)
    return 0


if __name__ == "__main__":
    sys.exit(main())
