"""Field markup normalization: HTML fragments to plain study text."""

import re

_BR_RE = re.compile(r"<br ?/?>", re.IGNORECASE)
_P_CLOSE_RE = re.compile(r"</p>", re.IGNORECASE)
_P_OPEN_RE = re.compile(r"<p(?:\s[^>]*)?>", re.IGNORECASE)
_HR_RE = re.compile(r"<hr(?:\s[^>]*)?/?>", re.IGNORECASE)
_ENTITIES = {"&nbsp;": " ", "&lt;": "<", "&gt;": ">", "&amp;": "&"}
_ENTITY_RE = re.compile("|".join(re.escape(e) for e in _ENTITIES))
_TAG_RE = re.compile(r"<[^>]+>")
_SOUND_RE = re.compile(r"\[sound:[^\]]*\]")
_SPACE_AROUND_NL_RE = re.compile(r" *\n *")
_BLANK_LINES_RE = re.compile(r"\n\s*\n+")
_SPACES_RE = re.compile(r" +")


def _rewrite(s: str) -> str:
    s = _BR_RE.sub("\n", s)
    s = _P_CLOSE_RE.sub("\n\n", s)
    s = _P_OPEN_RE.sub("", s)
    s = _HR_RE.sub("\n\n", s)
    s = _ENTITY_RE.sub(lambda m: _ENTITIES[m.group(0)], s)
    s = _TAG_RE.sub(" ", s)
    s = _SOUND_RE.sub("", s)
    s = s.replace("\r\n", "\n")
    s = _SPACE_AROUND_NL_RE.sub("\n", s)
    s = _BLANK_LINES_RE.sub("\n\n", s)
    s = _SPACES_RE.sub(" ", s)
    return s.strip()


def html_to_text(s: str | None) -> str:
    """Strip markup, entities and audio references; collapse whitespace.

    Every rewrite only ever shortens the text, so repeating the pass until it
    stops changing terminates, and the result is stable under reapplication
    even when decoding exposes new markup (e.g. ``&amp;lt;b&amp;gt;``).
    """
    if not s:
        return ""
    current = str(s)
    while True:
        rewritten = _rewrite(current)
        if rewritten == current:
            return rewritten
        current = rewritten
