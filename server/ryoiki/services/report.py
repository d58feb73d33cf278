"""
Project-wide aggregation of per-file analyses into a MetricsSummary, and the
plain-text stats table written next to the JSON artifacts.
"""

from collections import Counter
from typing import Dict, Iterable, List, Optional

from ryoiki.config import LANGUAGE_CATEGORIES
from ryoiki.models import (
    AbcMetrics,
    AdvancedMetrics,
    CategoryTotals,
    HalsteadMetrics,
    LanguageTotals,
    MetricsSummary,
    Totals,
)
from ryoiki.services.counters import HalsteadCounts, abc_magnitude
from ryoiki.services.file_metrics import FileAnalysis


def classify_category(language: str) -> str:
    return LANGUAGE_CATEGORIES.get(language, "other")


def _language_totals(files: Iterable[FileAnalysis]) -> List[LanguageTotals]:
    by_language: Dict[str, LanguageTotals] = {}
    for f in files:
        if f.language is None:
            continue
        entry = by_language.setdefault(f.language, LanguageTotals(name=f.language))
        entry.files += 1
        entry.lines += f.lines
        entry.code += f.code_lines
        entry.comments += f.comment_lines
        entry.blanks += f.blank_lines
    return sorted(by_language.values(), key=lambda t: (-t.code, t.name))


def _category_totals(languages: Iterable[LanguageTotals]) -> List[CategoryTotals]:
    by_category: Dict[str, CategoryTotals] = {}
    for lang in languages:
        name = classify_category(lang.name)
        entry = by_category.setdefault(name, CategoryTotals(name=name))
        entry.files += lang.files
        entry.lines += lang.lines
        entry.code += lang.code
        entry.comments += lang.comments
    return sorted(by_category.values(), key=lambda t: (-t.code, t.name))


def _advanced(tracked: List[FileAnalysis], tracked_totals: Optional[LanguageTotals]) -> AdvancedMetrics:
    a = sum(f.assignments for f in tracked)
    b = sum(f.branches for f in tracked)
    c = sum(f.conditionals for f in tracked)
    cyclomatic_total = sum(f.decisions for f in tracked) + 1
    halstead = HalsteadCounts.combine(f.halstead for f in tracked)

    tracked_lines = tracked_totals.lines if tracked_totals else 0
    tracked_code = tracked_totals.code if tracked_totals else 0
    tracked_comments = tracked_totals.comments if tracked_totals else 0

    return AdvancedMetrics(
        comment_density_pct=tracked_comments * 100.0 / tracked_lines if tracked_lines else 0.0,
        cyclomatic_total=cyclomatic_total,
        cyclomatic_density=cyclomatic_total / tracked_code if tracked_code else 0.0,
        abc=AbcMetrics(a=a, b=b, c=c, magnitude=abc_magnitude(a, b, c)),
        halstead=HalsteadMetrics(
            n1_ops_unique=halstead.n1,
            n2_operands_unique=halstead.n2,
            ops_total=halstead.ops_total,
            operands_total=halstead.operands_total,
            volume=halstead.volume,
            difficulty=halstead.difficulty,
            effort=halstead.effort,
        ),
        maintainability_index=(
            sum(f.maintainability for f in tracked) / len(tracked) if tracked else 0.0
        ),
    )


def build_summary(files: Iterable[FileAnalysis], tracked_language: Optional[str] = "rust") -> MetricsSummary:
    """
    Combine per-file analyses into the project summary.

    Totals, languages and categories cover every file with a recognized
    language. The advanced block (ABC, Halstead, cyclomatic, MI) and the audit
    counters only cover files of `tracked_language` that were analyzed as
    tracked; the comment and cyclomatic densities use those same files.
    """
    files = list(files)
    languages = _language_totals(files)
    tracked = [f for f in files if f.tracked and f.language == tracked_language]
    tracked_totals = next(iter(_language_totals(tracked)), None)

    audit: Counter = Counter()
    for f in tracked:
        audit.update(f.audit)

    return MetricsSummary(
        totals=Totals(
            files=sum(lang.files for lang in languages),
            lines=sum(lang.lines for lang in languages),
            code=sum(lang.code for lang in languages),
            comments=sum(lang.comments for lang in languages),
        ),
        advanced=_advanced(tracked, tracked_totals),
        languages=languages,
        categories=_category_totals(languages),
        audit=dict(sorted(audit.items(), key=lambda item: (-item[1], item[0]))),
    )


_RULE = "-" * 40


def _table_row(label: str, files, lines, code, comments) -> str:
    return f"{label[:12]:<12} {files:>7} {lines:>7} {code:>7} {comments:>7}"


def render_stats_report(summary: MetricsSummary, tracked_language: Optional[str] = "rust") -> str:
    """Fixed-width text report: languages, categories, audit tokens, advanced metrics."""
    out: List[str] = [_RULE, _table_row("Lang", "F", "Ln", "Cd", "Cmt"), _RULE]
    for lang in summary.languages:
        out.append(_table_row(lang.name, lang.files, lang.lines, lang.code, lang.comments))
    t = summary.totals
    out += [_RULE, _table_row("Total", t.files, t.lines, t.code, t.comments), _RULE]

    out += ["", "By Category", _RULE, _table_row("Cat", "F", "Ln", "Cd", "Cmt"), _RULE]
    for cat in summary.categories:
        out.append(_table_row(cat.name, cat.files, cat.lines, cat.code, cat.comments))

    title = f"{tracked_language.capitalize()} Audit" if tracked_language else "Audit"
    out += ["", title, _RULE, f"{'Token':<16} {'Count':>7}", _RULE]
    for token, count in summary.audit.items():
        out.append(f"{token:<16} {count:>7}")

    adv = summary.advanced
    hal = adv.halstead
    rows = [
        ("Comment Density (%)", f"{adv.comment_density_pct:>12.2f}"),
        ("Cyclomatic Complexity", f"{adv.cyclomatic_total:>12}"),
        ("Cyclomatic Density", f"{adv.cyclomatic_density:>12.6f}"),
        ("ABC A", f"{adv.abc.a:>12}"),
        ("ABC B", f"{adv.abc.b:>12}"),
        ("ABC C", f"{adv.abc.c:>12}"),
        ("ABC Magnitude", f"{adv.abc.magnitude:>12.2f}"),
        ("Halstead n1 (ops)", f"{hal.n1_ops_unique:>12}"),
        ("Halstead n2 (operands)", f"{hal.n2_operands_unique:>12}"),
        ("Halstead N1 (ops)", f"{hal.ops_total:>12}"),
        ("Halstead N2 (operands)", f"{hal.operands_total:>12}"),
        ("Halstead Volume", f"{hal.volume:>12.2f}"),
        ("Halstead Difficulty", f"{hal.difficulty:>12.2f}"),
        ("Halstead Effort", f"{hal.effort:>12.2f}"),
        ("Maintainability Index", f"{adv.maintainability_index:>12.2f}"),
    ]
    out += ["", "Advanced Metrics", _RULE]
    out += [f"{label:<24} {value}" for label, value in rows]
    return "\n".join(out) + "\n"
