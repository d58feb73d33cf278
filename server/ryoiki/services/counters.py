import math
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Set, Tuple

# Identifiers directly before "(" that are control flow, not calls.
BRANCH_EXCLUDED_WORDS: FrozenSet[str] = frozenset({"fn", "if", "match", "loop"})

# Longest first: the first match wins.
HALSTEAD_MULTI_OPERATORS: Tuple[str, ...] = (
    "<<=", ">>=",
    "==", "!=", "<=", ">=", "&&", "||",
    "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=",
    "<<", ">>", "->", "=>", "::",
)

HALSTEAD_SINGLE_OPERATORS: FrozenSet[str] = frozenset("+-*/%=&|^!<>.?:@")

HALSTEAD_KEYWORDS: FrozenSet[str] = frozenset({
    "fn", "let", "mut", "if", "else", "match", "for", "while", "loop",
    "return", "break", "continue", "struct", "enum", "impl", "trait", "use",
    "mod", "pub", "crate", "super", "Self", "self", "in", "as", "where",
    "const", "static", "ref", "type", "true", "false", "await", "async",
    "move", "unsafe",
})

COMPOUND_ASSIGNMENT_PREFIXES: FrozenSet[str] = frozenset("+-*/%&|^")

ASCII_WHITESPACE: FrozenSet[str] = frozenset(" \t\n\r\x0b\x0c")

C_LIKE_LANGUAGES: FrozenSet[str] = frozenset({
    "typescript", "javascript", "java", "cpp", "c", "csharp", "php",
    "kotlin", "swift", "scala", "go",
})

C_LIKE_DECISION_TOKENS: Tuple[str, ...] = ("if", "switch", "case", "&&", "||", "for", "while")

PYTHON_DECISION_TOKENS: Tuple[str, ...] = ("if ", "elif ", "for ", "while ", "except ", " and ", " or ")

FUNCTION_TOKENS: Dict[str, Tuple[str, ...]] = {
    "rust": ("fn ",),
    "typescript": ("function ", "=>"),
    "javascript": ("function ", "=>"),
    "python": ("def ",),
    "go": ("func ",),
}


def _is_ident_char(ch: str) -> bool:
    return ch == "_" or (ch.isascii() and ch.isalnum())


def count_token(text: str, token: str) -> int:
    """
    Count non-overlapping, case-sensitive occurrences of `token`.

    The next search starts right after each match, so "&&&&" holds two "&&".
    """
    if not token:
        return 0
    count = 0
    start = 0
    while True:
        pos = text.find(token, start)
        if pos == -1:
            return count
        count += 1
        start = pos + len(token)


def count_assignments(text: str) -> int:
    """
    Count `=` assignments plus compound assignments (`+=`, `-=`, ...).

    Comparison and arrow forms (`==`, `!=`, `<=`, `>=`, `=>`) are skipped.
    """
    count = 0
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "=":
            prev = text[i - 1] if i > 0 else ""
            nxt = text[i + 1] if i + 1 < n else ""
            if prev not in ("!", "<", ">", "=") and nxt not in ("=", ">"):
                count += 1
            i += 1
            continue
        if ch in COMPOUND_ASSIGNMENT_PREFIXES and i + 1 < n and text[i + 1] == "=":
            count += 1
            i += 2
            continue
        i += 1
    return count


def count_branches(text: str) -> int:
    """
    Count call-shaped parentheses: an identifier (optionally followed by `!`
    and whitespace) right before `(`, unless it is a control-flow keyword.
    """
    count = 0
    for i, ch in enumerate(text):
        if ch != "(" or i == 0:
            continue

        j = i - 1
        while j > 0 and text[j] in ASCII_WHITESPACE:
            j -= 1
        if text[j] == "!":
            j = max(j - 1, 0)

        k = j
        while k > 0 and _is_ident_char(text[k]):
            k -= 1
        start = k if _is_ident_char(text[k]) else k + 1

        if start <= j:
            ident = text[start:j + 1]
            if ident not in BRANCH_EXCLUDED_WORDS:
                count += 1
    return count


def count_conditionals(text: str) -> int:
    return (
        count_token(text, "if")
        + count_token(text, "match")
        + count_token(text, "&&")
        + count_token(text, "||")
    )


def count_cyclomatic_decisions(text: str) -> int:
    return count_conditionals(text)


def count_language_decisions(text: str, language: str | None) -> int | None:
    """
    Decision count using the token set for `language`.

    Returns None for languages without a decision heuristic.
    """
    if language == "rust":
        return count_cyclomatic_decisions(text)
    if language in C_LIKE_LANGUAGES:
        return sum(count_token(text, t) for t in C_LIKE_DECISION_TOKENS)
    if language == "python":
        return sum(count_token(text, t) for t in PYTHON_DECISION_TOKENS)
    return None


def count_functions(text: str, language: str | None) -> int:
    tokens = FUNCTION_TOKENS.get(language or "", ())
    return sum(count_token(text, t) for t in tokens)


@dataclass
class HalsteadCounts:
    """Operator/operand tallies. Unique sets union, totals add."""

    ops_total: int = 0
    operands_total: int = 0
    ops_unique: Set[str] = field(default_factory=set)
    operands_unique: Set[str] = field(default_factory=set)

    @property
    def n1(self) -> int:
        return len(self.ops_unique)

    @property
    def n2(self) -> int:
        return len(self.operands_unique)

    @property
    def length(self) -> int:
        return self.ops_total + self.operands_total

    @property
    def volume(self) -> float:
        vocabulary = self.n1 + self.n2
        if vocabulary == 0:
            return 0.0
        return self.length * math.log2(vocabulary)

    @property
    def difficulty(self) -> float:
        if self.n2 == 0:
            return 0.0
        return (self.n1 / 2.0) * (self.operands_total / self.n2)

    @property
    def effort(self) -> float:
        return self.difficulty * self.volume

    def merge(self, other: "HalsteadCounts") -> None:
        self.ops_total += other.ops_total
        self.operands_total += other.operands_total
        self.ops_unique |= other.ops_unique
        self.operands_unique |= other.operands_unique

    @classmethod
    def combine(cls, parts: Iterable["HalsteadCounts"]) -> "HalsteadCounts":
        total = cls()
        for part in parts:
            total.merge(part)
        return total


def halstead_collect(text: str) -> HalsteadCounts:
    """
    Classify every lexeme of sanitized text as operator or operand.

    Multi-character operators are tried first, then single glyphs. Numbers
    (with suffix/float tails) and non-keyword identifiers are operands.
    Anything else, like braces and semicolons, is ignored.
    """
    counts = HalsteadCounts()
    i = 0
    n = len(text)
    while i < n:
        op = next((m for m in HALSTEAD_MULTI_OPERATORS if text.startswith(m, i)), None)
        if op is not None:
            counts.ops_total += 1
            counts.ops_unique.add(op)
            i += len(op)
            continue

        ch = text[i]
        if ch in HALSTEAD_SINGLE_OPERATORS:
            counts.ops_total += 1
            counts.ops_unique.add(ch)
            i += 1
            continue

        if ch.isascii() and ch.isdigit():
            j = i + 1
            while j < n and (_is_ident_char(text[j]) or text[j] == "."):
                j += 1
            counts.operands_total += 1
            counts.operands_unique.add(text[i:j])
            i = j
            continue

        if ch == "_" or (ch.isascii() and ch.isalpha()):
            j = i + 1
            while j < n and _is_ident_char(text[j]):
                j += 1
            ident = text[i:j]
            if ident not in HALSTEAD_KEYWORDS:
                counts.operands_total += 1
                counts.operands_unique.add(ident)
            i = j
            continue

        i += 1
    return counts


def abc_magnitude(assignments: int, branches: int, conditionals: int) -> float:
    return math.sqrt(assignments ** 2 + branches ** 2 + conditionals ** 2)
