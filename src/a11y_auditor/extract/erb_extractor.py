import logging
import re
from enum import Enum
from typing import List, Optional

from .erb_tokenizer import TokenKind, tokenize
from .helpers import PLACEHOLDER, is_block_opener, render_helper

logger = logging.getLogger(__name__)


class HtmlState(Enum):
    DATA = "data"
    LT = "lt"                      # just saw "<"
    BANG = "bang"                  # "<!"
    BANG_DASH = "bang_dash"        # "<!-"
    TAG = "tag"                    # inside an open/close tag, outside values
    BEFORE_VALUE = "before_value"  # after "="
    DOUBLE_QUOTED = "dq"
    SINGLE_QUOTED = "sq"
    UNQUOTED = "unquoted"
    COMMENT = "comment"
    RAW_TEXT = "raw_text"          # body of <script> or <style>


_VALUE_STATES = {HtmlState.BEFORE_VALUE, HtmlState.DOUBLE_QUOTED, HtmlState.SINGLE_QUOTED, HtmlState.UNQUOTED}
_TAG_STATES = {HtmlState.LT, HtmlState.BANG, HtmlState.BANG_DASH, HtmlState.TAG, HtmlState.COMMENT}

# Elements whose body is not markup: a "<" in there never opens a tag
_RAW_TEXT_ELEMENTS = ("script", "style")


class HtmlContext:
    """
    Minimal HTML lexer state, fed with the literal markup emitted so far.

    It only answers one question for the extractor: where would a runtime value
    land if it were printed right now: body text, script or style text, inside a
    tag, or inside an attribute value.
    """

    def __init__(self):
        self.state = HtmlState.DATA
        self._tail = ""
        self._tag_name = ""
        self._naming = False
        self._raw_end = ""
        self._raw_tail = ""

    @property
    def in_attribute_value(self) -> bool:
        return self.state in _VALUE_STATES

    @property
    def in_raw_text(self) -> bool:
        return self.state == HtmlState.RAW_TEXT

    @property
    def in_tag(self) -> bool:
        return self.state in _TAG_STATES

    def feed(self, text: str) -> None:
        for ch in text:
            self._step(ch)
            self._tail = (self._tail + ch)[-3:]

    def _step(self, ch: str) -> None:
        state = self.state
        if state == HtmlState.DATA:
            if ch == "<":
                self.state = HtmlState.LT
        elif state == HtmlState.LT:
            if ch.isalpha() or ch == "/":
                self.state = HtmlState.TAG
                self._tag_name = ch
                self._naming = True
            elif ch == "!":
                self.state = HtmlState.BANG
                self._tag_name = ""
                self._naming = False
            elif ch != "<":
                self.state = HtmlState.DATA
        elif state == HtmlState.BANG:
            self.state = HtmlState.BANG_DASH if ch == "-" else HtmlState.TAG
            if ch == ">":
                self.state = HtmlState.DATA
        elif state == HtmlState.BANG_DASH:
            self.state = HtmlState.COMMENT if ch == "-" else HtmlState.TAG
        elif state == HtmlState.COMMENT:
            if ch == ">" and self._tail.endswith("--"):
                self.state = HtmlState.DATA
        elif state == HtmlState.TAG:
            if self._naming and (ch.isalnum() or ch == "-"):
                self._tag_name += ch
                return
            self._naming = False
            if ch == ">":
                self._close_tag()
            elif ch == "=":
                self.state = HtmlState.BEFORE_VALUE
        elif state == HtmlState.RAW_TEXT:
            self._raw_tail = (self._raw_tail + ch.lower())[-len(self._raw_end):]
            if self._raw_tail == self._raw_end:
                self.state = HtmlState.TAG
                self._tag_name = self._raw_end[1:]
        elif state == HtmlState.BEFORE_VALUE:
            if ch == '"':
                self.state = HtmlState.DOUBLE_QUOTED
            elif ch == "'":
                self.state = HtmlState.SINGLE_QUOTED
            elif ch == ">":
                self._close_tag()
            elif not ch.isspace():
                self.state = HtmlState.UNQUOTED
        elif state == HtmlState.DOUBLE_QUOTED:
            if ch == '"':
                self.state = HtmlState.TAG
        elif state == HtmlState.SINGLE_QUOTED:
            if ch == "'":
                self.state = HtmlState.TAG
        elif state == HtmlState.UNQUOTED:
            if ch == ">":
                self._close_tag()
            elif ch.isspace():
                self.state = HtmlState.TAG

    def _close_tag(self) -> None:
        name = self._tag_name.lower()
        if name in _RAW_TEXT_ELEMENTS:
            self.state = HtmlState.RAW_TEXT
            self._raw_end = f"</{name}"
            self._raw_tail = ""
        else:
            self.state = HtmlState.DATA


_END_RE = re.compile(r"^(?:end|\})(?:\W|$)")
_KEYWORD_OPEN_RE = re.compile(r"^(?:if|unless|case|while|until|for|begin)\b")
_INLINE_END_RE = re.compile(r"\bend\s*$")
_BRACE_OPEN_RE = re.compile(r"\{\s*(?:\|[^|]*\|)?\s*$")

_TRAILING_SPACE_RE = re.compile(r"[ \t]+$", re.M)
_BLANK_RUN_RE = re.compile(r"\n\s*\n\s*\n")


def normalize_whitespace(markup: str) -> str:
    markup = _TRAILING_SPACE_RE.sub("", markup)
    return _BLANK_RUN_RE.sub("\n\n", markup)


class ErbExtractor:
    """
    Converts an ERB template into plain markup for static analysis.

    Literal markup is kept as-is. Catalogued helpers are rewritten to the
    element they render; any other printed value becomes PLACEHOLDER (inside
    attribute values and in body text) or disappears (elsewhere inside a tag).
    Statements and comments are removed, but still drive a block stack so that
    block helpers (`link_to ... do`) wrap their body in the right element.
    """

    def __init__(self, content: str):
        self._content = content
        self._out: List[str] = []
        self._context = HtmlContext()
        self._blocks: List[Optional[str]] = []

    @classmethod
    def extract_html(cls, content: str) -> str:
        return cls(content).extract()

    def extract(self) -> str:
        self._out = []
        self._context = HtmlContext()
        self._blocks = []

        for token in tokenize(self._content):
            if token.kind == TokenKind.TEXT:
                self._emit(token.value)
            elif token.kind == TokenKind.OUTPUT:
                self._handle_output(token.value)
            elif token.kind == TokenKind.STATEMENT:
                self._handle_statement(token.value)

        # Unbalanced templates still get their helper elements closed
        while self._blocks:
            closing = self._blocks.pop()
            if closing:
                self._emit(closing)

        return normalize_whitespace("".join(self._out))

    def _emit(self, text: str) -> None:
        self._out.append(text)
        self._context.feed(text)

    def _handle_output(self, code: str) -> None:
        if self._context.in_attribute_value or self._context.in_raw_text:
            self._emit(PLACEHOLDER)
            return

        if self._context.in_tag:
            if is_block_opener(code):
                self._blocks.append(None)
            return

        rendered = render_helper(code)
        if rendered is not None:
            (markup, closing), is_block = rendered
            self._emit(markup)
            if is_block:
                self._blocks.append(closing)
            return

        if is_block_opener(code):
            self._blocks.append(None)
            return

        self._emit(PLACEHOLDER)

    def _handle_statement(self, code: str) -> None:
        if _END_RE.match(code):
            if self._blocks:
                closing = self._blocks.pop()
                if closing:
                    self._emit(closing)
            else:
                logger.debug("Unbalanced block end ignored: %r", code)
            return

        if is_block_opener(code) or _BRACE_OPEN_RE.search(code):
            self._blocks.append(None)
        elif _KEYWORD_OPEN_RE.match(code) and not _INLINE_END_RE.search(code):
            self._blocks.append(None)
