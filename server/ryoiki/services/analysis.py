import logging
import os
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from ryoiki.config import AUDIT_TOKENS, EXCLUDE_PATTERNS, ScanConfig
from ryoiki.models import Metrics, Node, ScanResult
from ryoiki.services.file_metrics import FileAnalysis, analyze_file
from ryoiki.services.gitignore import IgnoreRules, load_ignore_rules
from ryoiki.services.report import build_summary

logger = logging.getLogger(__name__)


class ScanError(RuntimeError):
    """The scan root could not be enumerated."""


@dataclass
class TreeBuild:
    """A built subtree plus what it contributes to its parent."""

    node: Node
    language_loc: Counter = field(default_factory=Counter)
    files: List[FileAnalysis] = field(default_factory=list)


@dataclass(frozen=True)
class _WalkOptions:
    root: Path
    excludes: FrozenSet[str]
    ignore: IgnoreRules
    tracked_language: Optional[str]
    audit_tokens: Tuple[str, ...]
    skip_paths: FrozenSet[Path] = frozenset()


def dominant_language(language_loc: Dict[str, int]) -> Optional[str]:
    """
    Language with the most lines. Ties go to the language seen first, which is
    stable because children are visited in sorted order.
    """
    if not language_loc:
        return None
    return max(language_loc.items(), key=lambda item: item[1])[0]


def _is_excluded(path: Path, opts: _WalkOptions, is_dir: bool) -> bool:
    try:
        parts = path.relative_to(opts.root).parts
    except ValueError:
        parts = path.parts
    if any(part in opts.excludes for part in parts):
        return True
    if path in opts.skip_paths:
        return True
    return opts.ignore.is_ignored(path, is_dir=is_dir)


def _list_children(directory: Path, opts: _WalkOptions) -> List[Tuple[Path, bool]]:
    """
    Immediate children of `directory` that survive the exclude list, hidden
    file rules and ignore rules, sorted by name. Raises OSError if the
    directory cannot be listed.
    """
    children: List[Tuple[Path, bool]] = []
    with os.scandir(directory) as it:
        for entry in it:
            if entry.name.startswith("."):
                continue
            try:
                # Symlinked directories are not followed
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = entry.is_file()
            except OSError:
                continue
            if not is_dir and not is_file:
                continue
            path = Path(entry.path)
            if _is_excluded(path, opts, is_dir):
                continue
            children.append((path, is_dir))
    children.sort(key=lambda child: child[0].name)
    return children


def _relative(path: Path, root: Path) -> str:
    if path == root:
        return "."
    return path.relative_to(root).as_posix()


def _build_file(path: Path, opts: _WalkOptions) -> Optional[TreeBuild]:
    rel_path = _relative(path, opts.root)
    try:
        analysis = analyze_file(path, rel_path, opts.tracked_language, opts.audit_tokens)
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("Skipping unreadable file %s: %s", path, e)
        return None

    node = Node(
        name=path.name,
        path=rel_path,
        kind="file",
        metrics=analysis.metrics.model_copy(),
        language=analysis.language,
    )
    language_loc: Counter = Counter()
    if analysis.language is not None:
        language_loc[analysis.language] += analysis.metrics.loc
    return TreeBuild(node=node, language_loc=language_loc, files=[analysis])


def _build_directory(directory: Path, opts: _WalkOptions, entries: Iterable[Tuple[Path, bool]]) -> TreeBuild:
    children: List[Node] = []
    totals = Metrics()
    language_loc: Counter = Counter()
    files: List[FileAnalysis] = []

    for path, is_dir in entries:
        if is_dir:
            try:
                sub_entries = _list_children(path, opts)
            except OSError as e:
                logger.warning("Skipping unreadable directory %s: %s", path, e)
                continue
            child = _build_directory(path, opts, sub_entries)
        else:
            child = _build_file(path, opts)
            if child is None:
                continue

        totals.loc += child.node.metrics.loc
        totals.complexity += child.node.metrics.complexity
        totals.functions += child.node.metrics.functions
        language_loc.update(child.language_loc)
        files.extend(child.files)
        children.append(child.node)

    is_root = directory == opts.root
    node = Node(
        name=(directory.name or ".") if is_root else directory.name,
        path=_relative(directory, opts.root),
        kind="directory",
        metrics=totals,
        language=dominant_language(language_loc),
        children=children,
    )
    return TreeBuild(node=node, language_loc=language_loc, files=files)


def build_tree(
    root_path: Path,
    excludes: Iterable[str] = EXCLUDE_PATTERNS,
    ignore: Optional[IgnoreRules] = None,
    tracked_language: Optional[str] = "rust",
    audit_tokens: Iterable[str] = AUDIT_TOKENS,
    skip_paths: Iterable[Path] = (),
) -> TreeBuild:
    """
    Walk `root_path` depth-first and build the metrics tree.

    Each directory's metrics are the sum of its children's; its language is the
    one with the most lines anywhere below it. The root is always rendered as
    path "." with kind "directory".

    Raises ScanError if the root itself cannot be listed. Unreadable files and
    subdirectories below it are skipped.
    """
    root = root_path.resolve()
    if not root.is_dir():
        raise ScanError(f"Scan root is not a directory: {root}")
    if ignore is None:
        ignore = load_ignore_rules(root, excludes)

    opts = _WalkOptions(
        root=root,
        excludes=frozenset(excludes),
        ignore=ignore,
        tracked_language=tracked_language,
        audit_tokens=tuple(audit_tokens),
        skip_paths=frozenset(p.resolve() for p in skip_paths),
    )

    try:
        entries = _list_children(root, opts)
    except OSError as e:
        raise ScanError(f"Cannot enumerate scan root {root}: {e}") from e

    return _build_directory(root, opts, entries)


def scan(config: ScanConfig, project_root: Optional[Path] = None) -> ScanResult:
    """
    Run one full scan: build the tree and the project summary.

    This is the single entry point shared by the CLI and the HTTP refresh
    endpoint; where the result gets written is up to them.
    """
    project_root = project_root or Path.cwd()
    scan_root = config.resolve_scan_root(project_root)
    print(f"🔍 Scanning: {scan_root}", flush=True)

    # The output dir (and any parent it needs) exists before the walk so the
    # tree looks the same whether or not results were saved before.
    metrics_dir = config.resolve_metrics_dir(scan_root)
    if scan_root.is_dir():
        try:
            metrics_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("Could not create metrics dir %s: %s", metrics_dir, e)

    built = build_tree(
        scan_root,
        excludes=config.exclude_patterns,
        tracked_language=config.tracked_language,
        skip_paths=[metrics_dir],
    )
    summary = build_summary(built.files, config.tracked_language)

    print(f"📂 Analyzed {len(built.files)} source files", flush=True)
    return ScanResult(tree=built.node, summary=summary)
