import math
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from ryoiki.config import EXTENSION_LANGUAGES, FILENAME_LANGUAGES, HASH_COMMENT_LANGUAGES
from ryoiki.models import Metrics
from ryoiki.services.counters import (
    HalsteadCounts,
    count_assignments,
    count_branches,
    count_conditionals,
    count_cyclomatic_decisions,
    count_functions,
    count_language_decisions,
    count_token,
    halstead_collect,
)
from ryoiki.services.sanitizer import sanitize, split_lines


def classify_language(path: Path) -> Optional[str]:
    """Map a file to a language id by extension (or by name for Dockerfile)."""
    suffix = path.suffix.lower().lstrip(".")
    if suffix in EXTENSION_LANGUAGES:
        return EXTENSION_LANGUAGES[suffix]
    return FILENAME_LANGUAGES.get(path.name.lower())


def maintainability_index(orig_lines: int, code_lines: int, decisions: int, halstead: HalsteadCounts) -> float:
    """
    Per-file maintainability index on a 0-100 scale.

    This is the classic 171 - 5.2 ln(V) - 0.23 CC - 16.2 ln(LOC) rescaled to
    100, plus a project-specific comment bonus of 50 sin(sqrt(2.4 cm%)) where
    cm% counts every source line that is blank after sanitizing. The bonus is
    kept as-is so scores stay comparable with earlier reports.
    """
    volume = halstead.volume
    cyclomatic = decisions + 1

    if code_lines > 0 and volume > 0:
        raw = 171.0 - 5.2 * math.log(volume) - 0.23 * cyclomatic - 16.2 * math.log(code_lines)
    else:
        raw = 0.0

    if orig_lines > 0:
        comment_pct = max(orig_lines - code_lines, 0) * 100.0 / orig_lines
    else:
        comment_pct = 0.0

    mi = raw * 100.0 / 171.0 + 50.0 * math.sin(math.sqrt(2.4 * comment_pct))
    return min(max(mi, 0.0), 100.0)


@dataclass
class FileAnalysis:
    """Everything one file contributes to the tree and to the project summary."""

    path: str
    language: Optional[str]
    metrics: Metrics
    lines: int = 0
    code_lines: int = 0
    comment_lines: int = 0
    blank_lines: int = 0
    # Only filled for files of the tracked language.
    tracked: bool = False
    assignments: int = 0
    branches: int = 0
    conditionals: int = 0
    decisions: int = 0
    halstead: HalsteadCounts = field(default_factory=HalsteadCounts)
    maintainability: float = 0.0
    audit: Counter = field(default_factory=Counter)


def _count_comment_lines(orig: list[str], code_lines: int, blank_lines: int, language: Optional[str]) -> int:
    if language in HASH_COMMENT_LANGUAGES:
        return sum(1 for line in orig if line.lstrip().startswith("#"))
    # Non-blank lines that vanished once comments were stripped. Block
    # comments drop their newlines, so this cannot be done line by line.
    return max(len(orig) - blank_lines - code_lines, 0)


def analyze_source(
    text: str,
    path: str,
    language: Optional[str],
    tracked_language: Optional[str] = None,
    audit_tokens: Iterable[str] = (),
) -> FileAnalysis:
    clean = sanitize(text)
    orig_lines = split_lines(text)
    clean_lines = split_lines(clean)

    lines = len(orig_lines)
    sanitized_code_lines = sum(1 for line in clean_lines if line.strip())
    blank_lines = sum(1 for line in orig_lines if not line.strip())
    comment_lines = _count_comment_lines(orig_lines, sanitized_code_lines, blank_lines, language)

    decisions = count_language_decisions(clean, language)
    metrics = Metrics(
        loc=lines,
        complexity=decisions + 1 if decisions is not None else 0,
        functions=count_functions(clean, language),
    )

    analysis = FileAnalysis(
        path=path,
        language=language,
        metrics=metrics,
        lines=lines,
        code_lines=max(lines - blank_lines - comment_lines, 0),
        comment_lines=comment_lines,
        blank_lines=blank_lines,
    )

    if language is None or language != tracked_language:
        return analysis

    analysis.tracked = True
    analysis.assignments = count_assignments(clean)
    analysis.branches = count_branches(clean)
    analysis.conditionals = count_conditionals(clean)
    analysis.decisions = count_cyclomatic_decisions(clean)
    analysis.halstead = halstead_collect(clean)
    analysis.maintainability = maintainability_index(lines, sanitized_code_lines, analysis.decisions, analysis.halstead)
    for token in audit_tokens:
        hits = count_token(clean, token)
        if hits:
            analysis.audit[token] += hits
    return analysis


def analyze_file(
    file_path: Path,
    rel_path: str,
    tracked_language: Optional[str] = None,
    audit_tokens: Iterable[str] = (),
) -> FileAnalysis:
    """
    Read and analyze a single file.

    Raises OSError / UnicodeDecodeError when the file cannot be read as UTF-8;
    the tree builder treats that as "skip this file".
    """
    text = file_path.read_text(encoding="utf-8")
    return analyze_source(text, rel_path, classify_language(file_path), tracked_language, audit_tokens)
