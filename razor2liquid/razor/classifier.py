"""
Razor span classifier - splits a template into classified spans.

Recognizes Razor patterns:
- @@ - Escaped at sign
- @* ... *@ - Razor comment
- @{ ... } - Code block
- @( ... ) - Explicit expression
- @if (...) { ... } - Statement blocks (if, foreach, for, while, switch, ...)
- @helper ShowName(...) { ... } - Helper declaration
- @using Ns, @inherits T, @functions { } - Directives
- @Model.Name - Implicit expression

Inside code, a tag at the start of a statement switches to markup until the
tag closes, ``@:`` starts a markup line and ``<text>`` tags are transitions.
Spans are emitted in source order; problems are collected as ParseError
records and never stop the scan.
"""

from __future__ import annotations

import bisect
import re
from dataclasses import dataclass, field
from typing import Optional

from ..core.logging import get_logger
from ..models import ParseError, SourceLocation
from .spans import Span, SpanKind

logger = get_logger(__name__)


STATEMENT_KEYWORDS = frozenset(
    {"if", "foreach", "for", "while", "switch", "lock", "try", "do"}
)

# keyword -> words that may follow its closing brace in the same statement
CONTINUATIONS = {
    "if": ("else",),
    "try": ("catch", "finally"),
    "catch": ("catch", "finally"),
}

LINE_DIRECTIVES = frozenset({"using", "inherits"})

VOID_ELEMENTS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
})

TAG_RE = re.compile(r"<(/?)([A-Za-z!][\w:.\-]*)")
IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def _is_identifier_start(ch: str) -> bool:
    return ch.isalpha() or ch == "_"


@dataclass
class ClassificationResult:
    """Result of classifying a template."""

    spans: list[Span] = field(default_factory=list)
    """Spans in source order"""

    errors: list[ParseError] = field(default_factory=list)
    """Recoverable problems found while scanning"""


class RazorClassifier:
    """
    Classify a Razor template into markup, code, comment, transition and
    meta-code spans.

    The classifier is single use: create one per template.
    """

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.spans: list[Span] = []
        self.errors: list[ParseError] = []
        self._line_starts = [0] + [i + 1 for i, ch in enumerate(text) if ch == "\n"]

    def classify(self) -> ClassificationResult:
        """Classify the entire template."""
        self._parse_document()
        logger.debug(
            "Classified template into %d spans with %d errors",
            len(self.spans), len(self.errors),
        )
        return ClassificationResult(spans=self.spans, errors=self.errors)

    # ------------------------------------------------------------------
    # Bookkeeping
    # ------------------------------------------------------------------

    def _location(self, index: int) -> SourceLocation:
        line = bisect.bisect_right(self._line_starts, index) - 1
        return SourceLocation(
            absolute_index=index,
            line_index=line,
            character_index=index - self._line_starts[line],
        )

    def _emit(self, kind: SpanKind, start: int, end: int) -> None:
        if end > start:
            self.spans.append(Span(kind, self.text[start:end], self._location(start)))

    def _error(self, index: int, message: str) -> None:
        self.errors.append(ParseError(location=self._location(index), message=message))

    def _peek(self, offset: int = 0) -> str:
        index = self.pos + offset
        return self.text[index] if index < len(self.text) else ""

    def _word_at(self, index: int) -> str:
        match = IDENTIFIER_RE.match(self.text, index)
        return match.group(0) if match else ""

    def _skip_space(self, index: int) -> int:
        while index < len(self.text) and self.text[index].isspace():
            index += 1
        return index

    def _line_end(self, index: int) -> int:
        """Index just past the newline ending the line at ``index``."""
        newline = self.text.find("\n", index)
        return len(self.text) if newline < 0 else newline + 1

    def _consume_line_end(self) -> None:
        """Swallow trailing blanks and one newline when nothing else follows."""
        index = self.pos
        while index < len(self.text) and self.text[index] in " \t":
            index += 1
        if self.text.startswith("\r\n", index):
            self.pos = index + 2
        elif index >= len(self.text) or self.text[index] == "\n":
            self.pos = min(index + 1, len(self.text))

    def _line_indent_start(self, lower: int, index: int) -> int:
        """Start of the blank run before ``index`` when it begins its line."""
        start = index
        while start > lower and self.text[start - 1] in " \t":
            start -= 1
        if start == 0 or self.text[start - 1] == "\n":
            return start
        return index

    # ------------------------------------------------------------------
    # Skipping C# lexical elements
    # ------------------------------------------------------------------

    def _skip_string(self, index: int) -> int:
        text = self.text
        verbatim = False
        while text[index] in "$@":
            verbatim = verbatim or text[index] == "@"
            index += 1
        quote = text[index]
        index += 1
        while index < len(text):
            ch = text[index]
            if verbatim and ch == quote:
                if text.startswith(quote * 2, index):
                    index += 2
                    continue
                return index + 1
            if not verbatim:
                if ch == "\\":
                    index += 2
                    continue
                if ch == quote:
                    return index + 1
                if ch == "\n":
                    return index
            index += 1
        return index

    def _starts_string(self, index: int) -> bool:
        text = self.text
        ch = text[index]
        if ch in "\"'":
            return True
        if ch in "$@":
            rest = text[index:index + 3]
            return rest[:2] in ('@"', '$"') or rest in ('$@"', '@$"')
        return False

    def _skip_comment(self, index: int) -> int:
        if self.text.startswith("//", index):
            newline = self.text.find("\n", index)
            return len(self.text) if newline < 0 else newline
        end = self.text.find("*/", index + 2)
        return len(self.text) if end < 0 else end + 2

    def _find_closing(self, index: int, open_ch: str, close_ch: str) -> Optional[int]:
        """Index of the bracket matching the one at ``index``, or None."""
        depth = 0
        text = self.text
        while index < len(text):
            ch = text[index]
            if self._starts_string(index):
                index = self._skip_string(index)
                continue
            if text.startswith("//", index) or text.startswith("/*", index):
                index = self._skip_comment(index)
                continue
            if ch == open_ch:
                depth += 1
            elif ch == close_ch:
                depth -= 1
                if depth == 0:
                    return index
            index += 1
        return None

    # ------------------------------------------------------------------
    # Markup
    # ------------------------------------------------------------------

    def _parse_document(self) -> None:
        segment_start = 0
        while self.pos < len(self.text):
            if self.text[self.pos] == "@":
                resumed = self._markup_at(segment_start)
                if resumed is not None:
                    segment_start = resumed
                    continue
            self.pos += 1
        self._emit(SpanKind.MARKUP, segment_start, self.pos)

    def _is_transition(self, index: int) -> bool:
        text = self.text
        following = text[index + 1] if index + 1 < len(text) else ""
        preceding = text[index - 1] if index > 0 else ""
        if preceding.isalnum() and (following.isalnum() or following == "."):
            # e-mail address
            return False
        return following in ("*", "{", "(") or _is_identifier_start(following)

    def _opens_block(self, index: int) -> bool:
        following = self.text[index + 1] if index + 1 < len(self.text) else ""
        if following == "{":
            return True
        word = self._word_at(index + 1)
        return (
            word in STATEMENT_KEYWORDS
            or word in LINE_DIRECTIVES
            or word in ("helper", "functions")
        )

    def _markup_at(self, segment_start: int) -> Optional[int]:
        """
        Handle an '@' met while reading markup.

        Returns:
            The start of the next markup segment, or None when the '@'
            is plain text
        """
        index = self.pos
        if self._peek(1) == "@":
            self._emit(SpanKind.MARKUP, segment_start, index + 1)
            self.pos = index + 2
            return self.pos
        if not self._is_transition(index):
            return None

        indent_start = index
        if self._opens_block(index):
            indent_start = self._line_indent_start(segment_start, index)
        self._emit(SpanKind.MARKUP, segment_start, indent_start)
        self._emit(SpanKind.CODE, indent_start, index)
        self._parse_transition()
        return self.pos

    def _parse_markup_block(self, start: int) -> None:
        """Read one markup element started inside code (pos is at '<')."""
        text = self.text
        segment_start = start
        depth = 0
        in_tag = False
        closing = False
        tag_name = ""
        quote = ""
        text_block = False

        while self.pos < len(text):
            ch = text[self.pos]

            if ch == "@":
                resumed = self._markup_at(segment_start)
                if resumed is not None:
                    segment_start = resumed
                else:
                    self.pos += 1
                continue

            if in_tag:
                if quote:
                    if ch == quote:
                        quote = ""
                elif ch in "\"'":
                    quote = ch
                elif ch == ">":
                    self_closing = text[self.pos - 1] == "/"
                    self.pos += 1
                    in_tag = False
                    if closing:
                        depth -= 1
                    elif not self_closing and not tag_name.startswith("!") \
                            and tag_name.lower() not in VOID_ELEMENTS:
                        depth += 1
                    if depth <= 0:
                        break
                    continue
                self.pos += 1
                continue

            if text.startswith("<!--", self.pos):
                end = text.find("-->", self.pos + 4)
                self.pos = len(text) if end < 0 else end + 3
                if depth == 0:
                    break
                continue

            if depth == 0 and text.startswith("<text>", self.pos):
                self._emit(SpanKind.MARKUP, segment_start, self.pos)
                self._emit(SpanKind.TRANSITION, self.pos, self.pos + 6)
                self.pos += 6
                segment_start = self.pos
                depth = 1
                text_block = True
                continue

            if text_block and depth == 1 and text.startswith("</text>", self.pos):
                self._emit(SpanKind.MARKUP, segment_start, self.pos)
                self._emit(SpanKind.TRANSITION, self.pos, self.pos + 7)
                self.pos += 7
                segment_start = self.pos
                depth = 0
                break

            match = TAG_RE.match(text, self.pos) if ch == "<" else None
            if match:
                in_tag = True
                closing = bool(match.group(1))
                tag_name = match.group(2)
                self.pos = match.end()
                continue
            self.pos += 1

        if depth > 0:
            self._error(start, f'The "{tag_name}" element was not closed')
        self._consume_line_end()
        self._emit(SpanKind.MARKUP, segment_start, self.pos)

    def _parse_markup_line(self) -> None:
        """Read an '@:' markup line inside code (pos is at '@')."""
        self._emit(SpanKind.TRANSITION, self.pos, self.pos + 1)
        self._emit(SpanKind.META_CODE, self.pos + 1, self.pos + 2)
        self.pos += 2
        segment_start = self.pos
        while self.pos < len(self.text) and self.text[self.pos] != "\n":
            if self.text[self.pos] == "@":
                resumed = self._markup_at(segment_start)
                if resumed is not None:
                    segment_start = resumed
                    continue
            self.pos += 1
        self.pos = min(self.pos + 1, len(self.text))
        self._emit(SpanKind.MARKUP, segment_start, self.pos)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _parse_transition(self) -> None:
        """Read the construct introduced by the '@' at pos."""
        start = self.pos
        following = self._peek(1)
        if following == "*":
            self._parse_razor_comment()
            return

        self._emit(SpanKind.TRANSITION, start, start + 1)
        self.pos = start + 1
        if following == "{":
            self._parse_code_block()
            return
        if following == "(":
            self._parse_explicit_expression()
            return

        word = self._word_at(self.pos)
        if word in STATEMENT_KEYWORDS or (
            word == "using"
            and self.text.startswith("(", self._skip_space(self.pos + len(word)))
        ):
            self._parse_statement(word)
        elif word == "helper":
            meta_end = self.pos + len(word)
            while meta_end < len(self.text) and self.text[meta_end] in " \t":
                meta_end += 1
            self._emit(SpanKind.META_CODE, self.pos, meta_end)
            self.pos = meta_end
            name = self._word_at(self.pos)
            if not name:
                self._error(self.pos, "Helper declaration is missing a name")
            self._parse_statement(name)
        elif word in LINE_DIRECTIVES:
            end = self._line_end(self.pos)
            self._emit(SpanKind.META_CODE, self.pos, end)
            self.pos = end
        elif word == "functions":
            self._parse_functions()
        else:
            self._parse_implicit_expression()

    def _parse_razor_comment(self) -> None:
        start = self.pos
        self._emit(SpanKind.TRANSITION, start, start + 1)
        self._emit(SpanKind.META_CODE, start + 1, start + 2)
        end = self.text.find("*@", start + 2)
        if end < 0:
            self._error(start, 'The razor comment is missing a closing "*@"')
            self._emit(SpanKind.COMMENT, start + 2, len(self.text))
            self.pos = len(self.text)
            return
        self._emit(SpanKind.COMMENT, start + 2, end)
        self._emit(SpanKind.META_CODE, end, end + 1)
        self._emit(SpanKind.TRANSITION, end + 1, end + 2)
        self.pos = end + 2

    def _parse_code_block(self) -> None:
        """Read '{ ... }' after a transition (pos is at '{')."""
        start = self.pos
        self._emit(SpanKind.META_CODE, start, start + 1)
        self.pos = start + 1
        code_start, _ = self._scan_code(self.pos, depth=0, stop_on_close=False)
        self._emit(SpanKind.CODE, code_start, self.pos)
        if self._peek() == "}":
            self._emit(SpanKind.META_CODE, self.pos, self.pos + 1)
            self.pos += 1
        else:
            self._error(start, 'The code block is missing a closing "}" character')

    def _parse_explicit_expression(self) -> None:
        """Read '( ... )' after a transition (pos is at '(')."""
        start = self.pos
        self._emit(SpanKind.META_CODE, start, start + 1)
        close = self._find_closing(start, "(", ")")
        if close is None:
            self._error(start, 'The explicit expression is missing a closing ")" character')
            self._emit(SpanKind.CODE, start + 1, len(self.text))
            self.pos = len(self.text)
            return
        self._emit(SpanKind.CODE, start + 1, close)
        self._emit(SpanKind.META_CODE, close, close + 1)
        self.pos = close + 1

    def _parse_implicit_expression(self) -> None:
        text = self.text
        start = self.pos
        self.pos += len(self._word_at(self.pos))
        while self.pos < len(text):
            ch = text[self.pos]
            if ch == "." and _is_identifier_start(self._peek(1)):
                self.pos += 1 + len(self._word_at(self.pos + 1))
                continue
            if ch in "([":
                close = self._find_closing(self.pos, ch, ")" if ch == "(" else "]")
                if close is None:
                    self._error(self.pos, f'The "{ch}" in the expression is never closed')
                    self.pos = len(text)
                    break
                self.pos = close + 1
                continue
            break
        self._emit(SpanKind.CODE, start, self.pos)

    def _parse_functions(self) -> None:
        start = self.pos
        brace = self._skip_space(start + len("functions"))
        close = None
        if self.text.startswith("{", brace):
            close = self._find_closing(brace, "{", "}")
        if close is None:
            self._error(start, 'The functions block is missing a "{ ... }" body')
            self.pos = self._line_end(start)
        else:
            self.pos = close + 1
            self._consume_line_end()
        self._emit(SpanKind.META_CODE, start, self.pos)

    def _parse_statement(self, keyword: str) -> None:
        """
        Read a statement block such as ``if (...) { ... } else { ... }``.

        The keyword, header, braces and any code in the body form code
        spans; markup inside the body is split out as it is met.
        """
        text = self.text
        code_start = self.pos
        while True:
            self.pos += len(keyword)
            if keyword == "else":
                following = self._skip_space(self.pos)
                if self._word_at(following) == "if":
                    self.pos = following
                    keyword = "if"
                    continue

            header = self._skip_space(self.pos)
            if text.startswith("(", header):
                close = self._find_closing(header, "(", ")")
                if close is None:
                    self._error(header, f'The "{keyword}" header is missing a closing ")"')
                    self.pos = len(text)
                    break
                self.pos = close + 1

            brace = self._skip_space(self.pos)
            if not text.startswith("{", brace):
                self._error(self.pos, f'Expected a "{{" after the "{keyword}" header')
                break

            self.pos = brace + 1
            code_start, closed = self._scan_code(code_start, depth=1, stop_on_close=True)
            if not closed:
                self._error(brace, f'The "{keyword}" block is missing a closing "}}" character')
                break

            following = self._skip_space(self.pos)
            word = self._word_at(following)
            if keyword == "do" and word == "while":
                self._parse_do_condition(following)
                break
            if word in CONTINUATIONS.get(keyword, ()):
                self.pos = following
                keyword = word
                continue
            break

        self._consume_line_end()
        self._emit(SpanKind.CODE, code_start, self.pos)

    def _parse_do_condition(self, index: int) -> None:
        header = self._skip_space(index + len("while"))
        close = self._find_closing(header, "(", ")") if self.text.startswith("(", header) else None
        if close is None:
            self._error(index, 'The "do" loop is missing its "while (...)" condition')
            return
        self.pos = close + 1
        semicolon = self._skip_space(self.pos)
        if self.text.startswith(";", semicolon):
            self.pos = semicolon + 1

    # ------------------------------------------------------------------
    # Code bodies
    # ------------------------------------------------------------------

    def _scan_code(self, code_start: int, depth: int, stop_on_close: bool) -> tuple[int, bool]:
        """
        Scan code until an unmatched '}' (left unread) or, with
        ``stop_on_close``, until the brace that brings ``depth`` to zero
        (consumed).

        Returns:
            (start of the pending code span, whether the closing brace was met)
        """
        text = self.text
        markup_allowed = True
        while self.pos < len(text):
            ch = text[self.pos]

            if self._starts_string(self.pos):
                self.pos = self._skip_string(self.pos)
                markup_allowed = False
                continue
            if text.startswith("//", self.pos) or text.startswith("/*", self.pos):
                self.pos = self._skip_comment(self.pos)
                continue

            if ch == "{":
                depth += 1
                self.pos += 1
                markup_allowed = True
                continue
            if ch == "}":
                if depth == 0:
                    return code_start, True
                depth -= 1
                self.pos += 1
                markup_allowed = True
                if depth == 0 and stop_on_close:
                    return code_start, True
                continue
            if ch == ";":
                self.pos += 1
                markup_allowed = True
                continue

            if ch == "@":
                following = self._peek(1)
                if following == ":":
                    self._emit(SpanKind.CODE, code_start, self.pos)
                    self._parse_markup_line()
                    code_start = self.pos
                    markup_allowed = True
                    continue
                if following in ("*", "{", "(") or _is_identifier_start(following):
                    self._emit(SpanKind.CODE, code_start, self.pos)
                    self._parse_transition()
                    code_start = self.pos
                    markup_allowed = True
                    continue

            if ch == "<" and markup_allowed and TAG_RE.match(text, self.pos):
                indent_start = self._line_indent_start(code_start, self.pos)
                self._emit(SpanKind.CODE, code_start, indent_start)
                self._parse_markup_block(indent_start)
                code_start = self.pos
                markup_allowed = True
                continue

            if not ch.isspace():
                markup_allowed = False
            self.pos += 1

        return code_start, False


def classify(text: str) -> ClassificationResult:
    """Classify a template (convenience wrapper)."""
    return RazorClassifier(text).classify()
