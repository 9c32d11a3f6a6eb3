# =============================================================================
# Reply Sanitizer — LaTeX Cleanup & Chart Id Deduplication
# =============================================================================
#
# Post-processes the markdown an expert (or the synthesizer) produced before
# it is stored in the session and returned to the client.
#
# LaTeX cleanup (MathJax in the client chokes on these):
#   1. \text{...} / \textrm{...} containing Hebrew → plain "(...)"
#   2. ₪ / ש"ח inside \( \) or \[ \] → moved after the closing delimiter
#   3. '#' inside \( \) or \[ \] → removed
#
# Chart id deduplication:
#   Every reply embeds <canvas id="..."> elements plus a script that looks
#   them up by id. The client renders the whole session on one page, so an
#   id reused from an earlier assistant message would draw into the old
#   canvas. Reused ids are renamed and their script references rewritten.
# =============================================================================

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Iterable

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# LaTeX cleanup
# ---------------------------------------------------------------------------

_HEBREW_TEXT = re.compile(r"\\(?:text|textrm)\{([^}]*[\u0590-\u05FF]+[^}]*)\}")

_CURRENCY = re.compile(r'₪|ש"?ח')

_INLINE_WITH_CURRENCY = re.compile(r'\\\(([^)]*?)((₪|ש"?ח)[^)]*?)\\\)')
_DISPLAY_WITH_CURRENCY = re.compile(
    r'\\\[((?:(?!\\\]).)*?)((₪|ש"?ח)(?:(?!\\\]).)*?)\\\]', re.DOTALL,
)

_INLINE_MATH = re.compile(r"\\\(([^)]*?)\\\)")
_DISPLAY_MATH = re.compile(r"\\\[(.*?)\\\]", re.DOTALL)


def _strip_hebrew_text(content: str) -> str:
    return _HEBREW_TEXT.sub(lambda m: f"({m.group(1)})", content)


def _move_currency_out(content: str) -> str:
    def inline(m: re.Match) -> str:
        expr = _CURRENCY.sub("", m.group(1)).strip()
        return f"\\({expr}\\) {m.group(2).strip()}"

    def display(m: re.Match) -> str:
        expr = _CURRENCY.sub("", m.group(1)).strip()
        return f"\\[{expr}\\] {m.group(2).strip()}"

    content = _INLINE_WITH_CURRENCY.sub(inline, content)
    return _DISPLAY_WITH_CURRENCY.sub(display, content)


def _drop_hash_chars(content: str) -> str:
    content = _INLINE_MATH.sub(
        lambda m: "\\(" + m.group(1).replace("#", "") + "\\)", content,
    )
    return _DISPLAY_MATH.sub(
        lambda m: "\\[" + m.group(1).replace("#", "") + "\\]", content,
    )


def sanitize_reply(reply: str) -> str:
    """Apply the three LaTeX cleanup passes in order."""
    cleaned = _strip_hebrew_text(reply)
    cleaned = _move_currency_out(cleaned)
    return _drop_hash_chars(cleaned)


# ---------------------------------------------------------------------------
# Chart id deduplication
# ---------------------------------------------------------------------------

_CANVAS_ID = re.compile(r"""<canvas[^>]*id=["']([^"']+)["']""")


def extract_used_chart_ids(messages: Iterable[dict[str, str]]) -> set[str]:
    """Collect canvas ids from assistant messages."""
    ids: set[str] = set()
    for msg in messages:
        content = msg.get("content")
        if msg.get("role") == "assistant" and isinstance(content, str):
            ids.update(_CANVAS_ID.findall(content))
    return ids


def _fresh_chart_id(used_ids: set[str]) -> str:
    while True:
        candidate = f"chart_{uuid.uuid4().hex[:10]}"
        if candidate not in used_ids:
            return candidate


def _rewrite_references(reply: str, old_id: str, new_id: str) -> str:
    escaped = re.escape(old_id)

    reply = re.sub(
        rf"""getElementById\(["']{escaped}["']\)""",
        f'getElementById("{new_id}")',
        reply,
    )
    reply = re.sub(rf"ctx_{escaped}\b", f"ctx_{new_id}", reply)
    reply = re.sub(
        rf"\b(chart|Chart)_?{escaped}\b",
        lambda m: m.group(0).replace(old_id, new_id),
        reply,
    )
    return re.sub(rf"""["']{escaped}["']""", f'"{new_id}"', reply)


def fix_duplicate_chart_ids(reply: str, used_ids: set[str]) -> str:
    """
    Rename canvas ids in `reply` that already appear in `used_ids`.

    Only ids from earlier messages are renamed; an id repeated within the
    reply itself is left as is.

    `used_ids` is updated in place with every id the reply ends up using.
    """
    previously_used = set(used_ids)
    replacements: dict[str, str] = {}
    updated = reply

    for match in _CANVAS_ID.finditer(reply):
        tag, chart_id = match.group(0), match.group(1)
        if chart_id not in previously_used:
            used_ids.add(chart_id)
            continue

        new_id = replacements.get(chart_id) or _fresh_chart_id(used_ids)
        replacements[chart_id] = new_id
        used_ids.add(new_id)
        new_tag = (
            tag.replace(f'id="{chart_id}"', f'id="{new_id}"')
            .replace(f"id='{chart_id}'", f"id='{new_id}'")
        )
        updated = updated.replace(tag, new_tag, 1)

    for old_id, new_id in replacements.items():
        updated = _rewrite_references(updated, old_id, new_id)

    if replacements:
        logger.info("Renamed %d duplicate chart ids", len(replacements))
    return updated
