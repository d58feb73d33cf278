import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Mapping, Optional

from pathspec import PathSpec

from ryoiki.config import EXCLUDE_PATTERNS, GLOBAL_GITIGNORE_NAME

logger = logging.getLogger(__name__)


def find_repo_root(start_path: Path) -> Path:
    current = start_path.resolve()
    for parent in [current, *current.parents]:
        if (parent / ".git").exists(): return parent
    return current


def translate_gitignore_pattern(raw_line: str, base_rel: str) -> str | None:
    """
    Translate a single .gitignore pattern that lives in a directory `base_rel`
    (relative to the ignore root) into a root-relative gitwildmatch pattern.

    This approximates Git's semantics including:
    - patterns starting with '!' (negation)
    - patterns starting with '/' (anchored to the .gitignore directory)
    - patterns with an inner '/' (also anchored)
    - other patterns matching at any depth below the directory
    """
    line = raw_line.rstrip("\r\n").rstrip()
    if not line or line.lstrip().startswith("#"):
        return None

    negated = line.startswith("!")
    body = line[1:] if negated else line

    anchored = body.startswith("/")
    if anchored:
        body = body.lstrip("/")
    # A trailing slash only restricts the match to directories.
    if "/" in body.rstrip("/"):
        anchored = True
    if not body:
        return None

    prefix = f"{base_rel}/" if base_rel else ""

    if anchored:
        # Leading slash keeps pathspec from matching at any depth
        pat = f"/{prefix}{body}"
    elif base_rel:
        pat = f"{base_rel}/**/{body}"
    else:
        pat = f"**/{body}"

    return f"!{pat}" if negated else pat


def _read_patterns(ignore_file: Path, base_rel: str) -> List[str]:
    with open(ignore_file, "r", encoding="utf-8") as f:
        return [
            translated
            for translated in (translate_gitignore_pattern(raw, base_rel) for raw in f)
            if translated is not None
        ]


def global_gitignore_path(environ: Optional[Mapping[str, str]] = None) -> Optional[Path]:
    env = os.environ if environ is None else environ
    home = env.get("HOME") or env.get("USERPROFILE")
    if not home:
        return None
    candidate = Path(home) / GLOBAL_GITIGNORE_NAME
    return candidate if candidate.is_file() else None


@dataclass(frozen=True)
class IgnoreRules:
    """Compiled ignore patterns, matched relative to `root`."""

    root: Path
    spec: Optional[PathSpec] = None

    def is_ignored(self, path: Path, is_dir: bool = False) -> bool:
        if self.spec is None:
            return False

        try:
            rel = path.relative_to(self.root)
        except ValueError:
            rel = path

        rel_str = rel.as_posix()
        if self.spec.match_file(rel_str):
            return True
        # Patterns like "build/" only match directories.
        return is_dir and self.spec.match_file(rel_str + "/")


def _compile(patterns: List[str]) -> Optional[PathSpec]:
    return PathSpec.from_lines("gitwildmatch", patterns) if patterns else None


def _base_rel(directory: Path, ignore_root: Path) -> str:
    return directory.relative_to(ignore_root).as_posix() if directory != ignore_root else ""


def _read_dir_gitignore(directory: Path, ignore_root: Path) -> List[str]:
    ignore_file = directory / ".gitignore"
    if not ignore_file.is_file():
        return []
    return _read_patterns(ignore_file, _base_rel(directory, ignore_root))


def _ancestor_dirs(ignore_root: Path, scan_root: Path) -> List[Path]:
    """Directories from `ignore_root` down to the parent of `scan_root`."""
    try:
        parts = scan_root.relative_to(ignore_root).parts
    except ValueError:
        return []
    dirs: List[Path] = []
    current = ignore_root
    for part in parts:
        dirs.append(current)
        current = current / part
    return dirs


def _collect_scan_patterns(
    scan_root: Path,
    ignore_root: Path,
    excluded_dirs: Iterable[str],
    patterns: List[str],
) -> List[str]:
    """
    Add the .gitignore files found under `scan_root` to `patterns`.

    Hidden, excluded and already ignored directories are not entered, so
    their ignore files are never read.
    """
    excluded = set(excluded_dirs)
    patterns = list(patterns)
    spec = _compile(patterns)
    for dirpath, dirnames, filenames in os.walk(scan_root):
        directory = Path(dirpath)
        if ".gitignore" in filenames:
            found = _read_dir_gitignore(directory, ignore_root)
            if found:
                patterns.extend(found)
                spec = _compile(patterns)

        kept = []
        for name in sorted(dirnames):
            if name.startswith(".") or name in excluded:
                continue
            rel = _base_rel(directory / name, ignore_root)
            if spec is not None and (spec.match_file(rel) or spec.match_file(rel + "/")):
                continue
            kept.append(name)
        dirnames[:] = kept
    return patterns


def load_ignore_rules(
    scan_root: Path,
    excluded_dirs: Iterable[str] = EXCLUDE_PATTERNS,
    environ: Optional[Mapping[str, str]] = None,
) -> IgnoreRules:
    """
    Build the ignore rules visible from `scan_root`.

    Rules are rooted at the enclosing repository (or the scan root when there
    is none) so a scan of a subdirectory still honors the repository's
    .gitignore files. The user's global ignore file, `.git/info/exclude`, the
    .gitignore files on the way down from the repository root, and those below
    the scan root are merged in. Nothing else in the repository is read.

    Any failure while reading or compiling the rules degrades to "no rules".
    """
    scan_root = scan_root.resolve()
    ignore_root = find_repo_root(scan_root)
    all_patterns: List[str] = []

    try:
        global_file = global_gitignore_path(environ)
        if global_file is not None:
            all_patterns.extend(_read_patterns(global_file, ""))

        info_exclude = ignore_root / ".git" / "info" / "exclude"
        if info_exclude.is_file():
            all_patterns.extend(_read_patterns(info_exclude, ""))

        for directory in _ancestor_dirs(ignore_root, scan_root):
            all_patterns.extend(_read_dir_gitignore(directory, ignore_root))

        all_patterns = _collect_scan_patterns(scan_root, ignore_root, excluded_dirs, all_patterns)

        spec = _compile(all_patterns)
    except (OSError, UnicodeDecodeError, ValueError) as e:
        logger.warning("Could not build ignore rules under %s, ignoring none: %s", ignore_root, e)
        return IgnoreRules(root=ignore_root)

    return IgnoreRules(root=ignore_root, spec=spec)
