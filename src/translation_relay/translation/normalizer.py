"""Response normalizer for translation endpoints.

``ResponseNormalizer`` takes the raw body of a successful HTTP response and
decides whether it carries a usable translation.  Unusable bodies yield
``None`` so the caller moves on to the next transport or endpoint.

Normalization pipeline (applied in order)
-----------------------------------------
1. **Empty check**: empty body → ``None``.
2. **HTML error page**: a body that starts with ``<`` (after trimming) and
   mentions ``html`` is a proxy fallback or misconfigured endpoint → ``None``.
3. **JSON extraction**: the first truthy of ``translatedText``, ``text``,
   ``translation``.  A string goes on to cleanup.  Anything else (``None``,
   a number, an object) is returned unchanged.
4. **Plain-text fallback**: a body that is not JSON is the translation.
5. **Cleanup**: see ``clean_translated_text``.  A body that cleans down to
   ``""`` (e.g. ``"<b></b>"``) still counts as a translation.

Non-string passthrough
----------------------
Step 3 hands non-string field values back untouched instead of coercing or
rejecting them.  Callers can therefore receive e.g. an ``int``.  The
behaviour is pinned by tests; do not change it without changing them.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from translation_relay.translation.codec import PLACEHOLDER_PATTERN

logger = logging.getLogger(__name__)

# Priority order of the JSON fields that may carry the translation.
RESULT_FIELDS: tuple[str, ...] = ("translatedText", "text", "translation")

# ``&amp;`` is decoded last so that ``&amp;lt;`` becomes ``&lt;``, not ``<``.
_HTML_ENTITIES: tuple[tuple[str, str], ...] = (
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&amp;", "&"),
)

_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_PARAGRAPH_BREAK_RE = re.compile(r"</p>\s*<p>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]*>")
_PADDED_PLACEHOLDER_RE = re.compile(r"\s*(" + PLACEHOLDER_PATTERN.pattern + r")\s*")


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON; such a body is plain text.
    raise ValueError(f"not a JSON value: {name}")


def _strip_tag(match: re.Match) -> str:
    tag = match.group(0)
    return tag if PLACEHOLDER_PATTERN.fullmatch(tag) else ""


def clean_translated_text(raw: str) -> str:
    """Turn raw translated text into plain text.

    Entity decoding runs first so that escaped markup (``&lt;br&gt;``) is
    treated like real markup by the later steps.  Placeholder tokens are
    stripped of surrounding whitespace but otherwise left intact; the
    ``<LB…>`` style is protected from the tag-stripping step.
    """
    text = raw
    for entity, char in _HTML_ENTITIES:
        text = text.replace(entity, char)

    text = text.replace("\\n", "\n")
    text = _BR_RE.sub("\n", text)
    text = _PARAGRAPH_BREAK_RE.sub("\n\n", text)
    text = _TAG_RE.sub(_strip_tag, text)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _PADDED_PLACEHOLDER_RE.sub(r"\1", text)
    return text.strip()


class ResponseNormalizer:
    """Extracts a translated string from a raw endpoint response body."""

    def normalize(self, body: str) -> Any:
        """Normalize one response body.

        Args:
            body: Raw response text, possibly empty.

        Returns:
            Cleaned translated string; ``None`` when the body is unusable; or
            a non-string JSON field value passed through unchanged.
        """
        if not body:
            return None

        if body.strip().startswith("<") and "html" in body:
            logger.warning(
                "Received an unexpected HTML response; check the endpoint configuration."
            )
            return None

        try:
            payload = json.loads(body, parse_constant=_reject_constant)
        except (ValueError, RecursionError):
            raw: Any = body
        else:
            if not isinstance(payload, dict):
                logger.debug("JSON response is not an object: %r", body[:60])
                return None
            raw = next((payload[name] for name in RESULT_FIELDS if payload.get(name)), None)
            if not isinstance(raw, str):
                return raw

        return clean_translated_text(raw)
