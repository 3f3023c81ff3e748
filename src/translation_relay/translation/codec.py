"""Line-structure codec for multi-line translation requests.

Translation endpoints do not reliably preserve raw line breaks.  Before a
multi-line text is sent, every ``\\n`` is replaced by a placeholder token;
after the reply comes back the token is turned back into ``\\n``.

Placeholder styles
------------------
The token is drawn at random from ``LineBreakPlaceholder``.  Each style wraps
``LB`` plus a millisecond timestamp in a different bracket pair, so a
service that mangles one bracket style on a given request does not mangle
every request.  The chosen token lives only in the ``EncodedText`` returned
by ``encode`` and is never shared between calls.

Structural fallback
-------------------
When the token does not survive the round trip, ``preserve_blank_lines``
rebuilds the blank-line layout of the source by aligning source and
translated lines.  It is a best-effort heuristic, not a diff.
"""

from __future__ import annotations

import logging
import random
import re
import time
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class LineBreakPlaceholder(Enum):
    """Bracket styles a line-break token can take.  ``{ts}`` is a timestamp."""

    SQUARE = "[LB{ts}]"
    PIPE = "|LB{ts}|"
    ANGLE = "<LB{ts}>"
    CURLY = "{{LB{ts}}}"
    DASH = "--LB{ts}--"

    def render(self, timestamp: int) -> str:
        return self.value.format(ts=timestamp)


# Matches any rendered placeholder, whatever its style.  Used by the
# normalizer to pull surrounding whitespace off tokens without eating them.
PLACEHOLDER_PATTERN = re.compile(r"\[LB\d+\]|\|LB\d+\||<LB\d+>|\{LB\d+\}|--LB\d+--")


def preserve_blank_lines(src: str, dest: str) -> str:
    """Re-impose the source's blank-line layout on a translated text.

    Both strings are split on ``\\n``.  When the line counts differ by at
    most one, the source is walked line by line: a blank source line emits a
    blank line and absorbs a blank destination line at the cursor (so blank
    lines are not doubled), a non-blank source line emits the next
    destination line (``""`` once the destination runs out).  When the
    counts diverge further, blank source lines are emitted without consuming
    anything and non-blank source lines consume destination lines only while
    some remain.  Unconsumed destination lines are appended in both cases.

    Args:
        src:  Source text as it was before translation.
        dest: Translated text.

    Returns:
        The translated text with the source's blank lines restored.
    """
    s = src.split("\n")
    d = dest.split("\n")
    out: list[str] = []
    j = 0

    if abs(len(s) - len(d)) <= 1:
        for line in s:
            if line.strip() == "":
                out.append("")
                if j < len(d) and d[j].strip() == "":
                    j += 1
            else:
                out.append(d[j] if j < len(d) else "")
                j += 1
    else:
        for line in s:
            if line.strip() == "":
                out.append("")
            elif j < len(d):
                out.append(d[j])
                j += 1

    out.extend(d[j:])
    return "\n".join(out)


@dataclass(frozen=True)
class EncodedText:
    """A source text prepared for sending, plus what is needed to undo it.

    Attributes:
        source:      The original text, newlines intact.
        payload:     The text to send to the endpoint.
        placeholder: The token substituted for ``\\n`` in ``payload``, or
                     ``None`` when the source had no newline.
    """

    source: str
    payload: str
    placeholder: str | None = None

    def decode(self, translated: str) -> str:
        """Turn placeholders back into newlines.

        If the source was multi-line but the decoded result has no newline
        at all, the token was lost in transit and the blank-line layout is
        rebuilt with ``preserve_blank_lines``.
        """
        if self.placeholder is None:
            return translated

        decoded = translated.replace(self.placeholder, "\n")
        if "\n" not in decoded and "\n" in self.source:
            logger.debug("Line break placeholder %r lost in translation", self.placeholder)
            decoded = preserve_blank_lines(self.source, decoded)
        return decoded


class LineStructureCodec:
    """Encodes newlines into a per-call placeholder token.

    Attributes:
        _rng:   Random source used to pick the placeholder style.
        _clock: Returns the current time in milliseconds.
    """

    def __init__(self, *, rng: random.Random | None = None, clock=None) -> None:
        self._rng = rng or random.Random()
        self._clock = clock or (lambda: int(time.time() * 1000))

    def encode(self, text: str) -> EncodedText:
        """Replace every newline in ``text`` with a freshly chosen token.

        Single-line text is returned unchanged with no placeholder.
        """
        if "\n" not in text:
            return EncodedText(source=text, payload=text)

        style = self._rng.choice(list(LineBreakPlaceholder))
        placeholder = style.render(self._clock())
        logger.debug(
            "Encoding %d line break(s) with placeholder %r", text.count("\n"), placeholder
        )
        return EncodedText(
            source=text,
            payload=text.replace("\n", placeholder),
            placeholder=placeholder,
        )
