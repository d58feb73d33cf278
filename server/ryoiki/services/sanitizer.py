"""
Comment and literal stripping for C-family source text.

The metric counters work on plain tokens, so anything inside a comment or a
string/char literal has to disappear first. It is not a lexer:
it knows about `//`, `/* */`, `"..."` and `'...'` and nothing else.
"""

from enum import Enum


class _Mode(Enum):
    NORMAL = "normal"
    LINE_COMMENT = "line_comment"
    BLOCK_COMMENT = "block_comment"
    STRING = "string"
    CHAR = "char"


def sanitize(text: str) -> str:
    """
    Return `text` with comments and literal contents removed.

    - Line comments are dropped up to (not including) the newline, so line
      numbering is preserved for anything that follows.
    - Block comments are dropped entirely, delimiters included.
    - String and char literals are dropped, quotes included. A backslash
      escapes exactly one following character.

    Everything outside those regions is copied through unchanged.
    """
    out: list[str] = []
    mode = _Mode.NORMAL
    escaped = False
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]
        nxt = text[i + 1] if i + 1 < n else ""

        if mode is _Mode.LINE_COMMENT:
            if ch == "\n":
                mode = _Mode.NORMAL
                out.append(ch)
            i += 1
            continue

        if mode is _Mode.BLOCK_COMMENT:
            if ch == "*" and nxt == "/":
                mode = _Mode.NORMAL
                i += 2
            else:
                i += 1
            continue

        if mode is _Mode.STRING or mode is _Mode.CHAR:
            quote = '"' if mode is _Mode.STRING else "'"
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                mode = _Mode.NORMAL
            i += 1
            continue

        if ch == "/" and nxt == "/":
            mode = _Mode.LINE_COMMENT
            i += 2
            continue
        if ch == "/" and nxt == "*":
            mode = _Mode.BLOCK_COMMENT
            i += 2
            continue
        if ch == '"':
            mode = _Mode.STRING
            i += 1
            continue
        if ch == "'":
            mode = _Mode.CHAR
            i += 1
            continue

        out.append(ch)
        i += 1

    return "".join(out)


def split_lines(text: str) -> list[str]:
    """
    Split on newlines the way line counters expect: a trailing newline does not
    start an extra empty line, and an empty text has no lines at all.
    """
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines
