"""
String-aware, character level scanning helpers for JSON-like text.

All scanners in this module share ``JsonScanState`` so that the notion of
"inside a string literal" (including escaped quotes) is identical for the
brace matcher, the control character escaper and the quote repair.
"""
from typing import Iterator, Optional, Tuple

OUTSIDE = 'outside'
STRING = 'string'
QUOTE = 'quote'

_CONTROL_ESCAPES = {'\n': '\\n', '\r': '\\r', '\t': '\\t'}
_ALLOWED_WHITESPACE = ('\n', '\r', '\t')


class JsonScanState:
    """
    Tracks whether the scanner is inside a JSON string literal.

    ``classify`` consumes one character and reports what it was:
    ``OUTSIDE`` for structural text, ``STRING`` for string content (escape
    sequences included) and ``QUOTE`` for an unescaped double quote that
    opened or closed a string.
    """

    def __init__(self):
        self.in_string = False
        self.escaped = False

    def classify(self, char: str) -> str:
        if self.in_string:
            if self.escaped:
                self.escaped = False
                return STRING
            if char == '\\':
                self.escaped = True
                return STRING
            if char == '"':
                self.in_string = False
                return QUOTE
            return STRING
        if char == '"':
            self.in_string = True
            return QUOTE
        return OUTSIDE

    def reopen(self) -> None:
        """Treat the quote just classified as string content instead of a terminator."""
        self.in_string = True
        self.escaped = False


def tokenize(text: str) -> Iterator[Tuple[int, str, str]]:
    """Yield ``(index, char, kind)`` for every character of ``text``."""
    state = JsonScanState()
    for index, char in enumerate(text):
        yield index, char, state.classify(char)


def next_significant_char(text: str, start: int) -> Optional[str]:
    """Return the first non-whitespace character at or after ``start``."""
    for char in text[start:]:
        if not char.isspace():
            return char
    return None


def _balanced_block(text: str, start: int) -> Tuple[str, bool]:
    """Return the block opened by the brace at ``start`` and whether it was closed."""
    depth = 0
    candidate = text[start:]
    for index, char, kind in tokenize(candidate):
        if kind != OUTSIDE:
            continue
        if char == '{':
            depth += 1
        elif char == '}':
            depth -= 1
            if depth == 0:
                return candidate[:index + 1], True
    return candidate, False


def extract_first_object(text: str) -> str:
    """
    Return the first balanced top-level ``{...}`` block of ``text``.

    Prose before the first brace and after the matching closing brace is
    discarded. Braces inside string literals are ignored. If the object is
    never closed (truncated output) everything from the opening brace on is
    returned.
    """
    start = text.find('{')
    if start == -1:
        return text
    return _balanced_block(text, start)[0]


def iter_object_candidates(text: str) -> Iterator[str]:
    """
    Yield every top-level ``{...}`` block of ``text`` in order.

    Prose may contain braces of its own (``{{ name }}``), so the first block
    is not necessarily the answer. Scanning resumes after each closed block;
    after an unclosed one it resumes at the next brace.
    """
    start = text.find('{')
    while start != -1:
        block, closed = _balanced_block(text, start)
        yield block
        start = text.find('{', start + len(block) if closed else start + 1)


def escape_control_characters(text: str) -> str:
    """
    Escape raw control characters inside string literals and drop the
    disallowed ones outside of them.

    Newline, carriage return and tab inside a string become ``\\n``, ``\\r``
    and ``\\t``; other control characters inside a string become ``\\u00XX``.
    A control character that directly follows a backslash already has its
    escape introducer and only gets the escape letter. Outside strings only
    JSON whitespace control characters are kept.
    """
    state = JsonScanState()
    out = []
    for char in text:
        after_backslash = state.in_string and state.escaped
        kind = state.classify(char)
        if ord(char) >= 0x20 and char != '\x7f':
            out.append(char)
        elif kind == STRING:
            escape = _CONTROL_ESCAPES.get(char, '\\u%04x' % ord(char))
            out.append(escape[1:] if after_backslash else escape)
        elif char in _ALLOWED_WHITESPACE:
            out.append(char)
    return ''.join(out)


def strip_trailing_commas(text: str) -> str:
    """Remove commas that directly precede a closing ``}`` or ``]``."""
    out = []
    for index, char, kind in tokenize(text):
        if kind == OUTSIDE and char == ',' and next_significant_char(text, index + 1) in ('}', ']'):
            continue
        out.append(char)
    return ''.join(out)


def repair_unescaped_quotes(text: str) -> str:
    """
    Escape double quotes that appear in the middle of a string value.

    A closing quote of a value string is only accepted as a terminator when
    the next non-whitespace character is ``,`` or ``}`` (or the text ends).
    Otherwise it is escaped and the string continues. A string is a value
    when the last significant character before its opening quote was ``:``;
    key strings are never modified.

    This is a heuristic: a value that legitimately contains ``", `` will be
    cut short.
    """
    state = JsonScanState()
    out = []
    last_significant = ''
    is_value = False
    for index, char in enumerate(text):
        kind = state.classify(char)
        if kind == QUOTE and state.in_string:
            is_value = last_significant == ':'
            out.append(char)
        elif kind == QUOTE:
            if is_value and next_significant_char(text, index + 1) not in (',', '}', None):
                state.reopen()
                out.append('\\"')
            else:
                out.append(char)
                last_significant = char
        else:
            out.append(char)
            if kind == OUTSIDE and not char.isspace():
                last_significant = char
    return ''.join(out)
