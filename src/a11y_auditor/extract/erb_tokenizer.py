from enum import Enum
from typing import Iterator, List, NamedTuple


class TokenKind(str, Enum):
    TEXT = "text"
    OUTPUT = "output"        # <%= ... %> and <%== ... %>
    STATEMENT = "statement"  # <% ... %> and <%- ... -%>
    COMMENT = "comment"      # <%# ... %>


class Token(NamedTuple):
    kind: TokenKind
    value: str  # literal text, or the stripped code between the delimiters
    line: int   # 1-based line on which the token starts


_OPEN = "<%"
_CLOSE = "%>"


def tokenize(source: str) -> List[Token]:
    """
    Splits an ERB template into literal text and code tokens.

    Handles `<%%` escapes (emitted as a literal `<%`), `-%>` trim markers and
    unterminated tags (the rest of the file becomes the tag's code).
    """
    tokens: List[Token] = []
    text_parts: List[str] = []
    text_line = 1
    line = 1
    pos = 0
    length = len(source)

    def flush_text():
        text = "".join(text_parts)
        if text:
            tokens.append(Token(TokenKind.TEXT, text, text_line))
        text_parts.clear()

    while pos < length:
        start = source.find(_OPEN, pos)
        if start == -1:
            if not text_parts:
                text_line = line
            text_parts.append(source[pos:])
            break

        if not text_parts:
            text_line = line
        text_parts.append(source[pos:start])
        line += source.count("\n", pos, start)

        if source.startswith("<%%", start):
            text_parts.append(_OPEN)
            pos = start + 3
            continue

        flush_text()

        cursor = start + 2
        if source.startswith("==", cursor):
            kind, cursor = TokenKind.OUTPUT, cursor + 2
        elif source.startswith("=", cursor):
            kind, cursor = TokenKind.OUTPUT, cursor + 1
        elif source.startswith("#", cursor):
            kind, cursor = TokenKind.COMMENT, cursor + 1
        elif source.startswith("-", cursor):
            kind, cursor = TokenKind.STATEMENT, cursor + 1
        else:
            kind = TokenKind.STATEMENT

        end = source.find(_CLOSE, cursor)
        if end == -1:
            code, next_pos = source[cursor:], length
        else:
            code, next_pos = source[cursor:end], end + 2

        if code.endswith("-"):
            code = code[:-1]

        tokens.append(Token(kind, code.strip(), line))
        line += source.count("\n", start, next_pos)
        pos = next_pos

    flush_text()
    return tokens


def code_fragments(source: str) -> Iterator[Token]:
    """Yields only the executable fragments (print and statement tags)."""
    for token in tokenize(source):
        if token.kind in (TokenKind.OUTPUT, TokenKind.STATEMENT):
            yield token
