import json
import logging
import os
from pathlib import Path
from typing import Dict, FrozenSet, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "tools.config.json"
AUDIT_DIR_ENV_VARS: Tuple[str, ...] = ("RYOIKI_AUDIT_DIR", "TOKADO_AUDIT_DIR")

TREE_FILE_NAME = "ryoiki.cc.json"
SUMMARY_FILE_NAME = "ryoiki.metrics.json"
STATS_FILE_NAME = "ryoiki_stats.txt"

# Matched against every path component below the scan root.
EXCLUDE_PATTERNS: FrozenSet[str] = frozenset({
    'target',
    'node_modules',
    'dist',
    'build',
    'npm_modules',
    '.git',
    TREE_FILE_NAME,
    SUMMARY_FILE_NAME,
    STATS_FILE_NAME,
    'package-lock.json',
})

GLOBAL_GITIGNORE_NAME = ".gitignore_global"

AUDIT_TOKENS: Tuple[str, ...] = (
    '.unwrap()',
    '.expect(',
    'panic!',
    'todo!',
    'dbg!',
    'unimplemented!',
    'assert!',
    'assert_eq!',
    'unsafe',
    '.clone()',
    'unwrap_or(',
    'unwrap_or_else(',
)

EXTENSION_LANGUAGES: Dict[str, str] = {
    'rs': 'rust',
    'ts': 'typescript', 'tsx': 'typescript',
    'js': 'javascript', 'jsx': 'javascript', 'mjs': 'javascript', 'cjs': 'javascript',
    'json': 'json',
    'toml': 'toml',
    'md': 'markdown', 'markdown': 'markdown',
    'py': 'python', 'pyw': 'python',
    'java': 'java',
    'go': 'go',
    'cpp': 'cpp', 'cxx': 'cpp', 'cc': 'cpp', 'hpp': 'cpp', 'hxx': 'cpp',
    'c': 'c', 'h': 'c',
    'cs': 'csharp',
    'php': 'php',
    'rb': 'ruby',
    'kt': 'kotlin', 'kts': 'kotlin',
    'swift': 'swift',
    'scala': 'scala', 'sc': 'scala',
    'sh': 'shell', 'bash': 'shell', 'zsh': 'shell',
    'ps1': 'powershell', 'psm1': 'powershell', 'psd1': 'powershell',
    'html': 'html', 'htm': 'html',
    'css': 'css', 'scss': 'css', 'sass': 'css', 'less': 'css',
    'yaml': 'yaml', 'yml': 'yaml',
    'xml': 'xml',
    'svelte': 'svelte',
    'sql': 'sql',
    'dockerfile': 'docker',
}

# Extension-less files recognized by name (lowercased).
FILENAME_LANGUAGES: Dict[str, str] = {
    'dockerfile': 'docker',
}

LANGUAGE_CATEGORIES: Dict[str, str] = {
    'rust': 'systems', 'c': 'systems', 'cpp': 'systems', 'csharp': 'systems',
    'go': 'systems', 'swift': 'systems',
    'python': 'scripting', 'ruby': 'scripting', 'shell': 'scripting',
    'powershell': 'scripting',
    'javascript': 'web', 'typescript': 'web', 'svelte': 'web', 'html': 'web',
    'css': 'web',
    'json': 'config', 'yaml': 'config', 'toml': 'config', 'xml': 'config',
    'markdown': 'docs',
    'docker': 'build',
    'sql': 'data',
}

# Languages whose line comments start with "#"; the sanitizer only knows //.
HASH_COMMENT_LANGUAGES: FrozenSet[str] = frozenset({
    'python', 'ruby', 'shell', 'powershell', 'yaml', 'toml', 'docker',
})


class ScanConfig(BaseModel):
    audit_dir: str = "."
    metrics_dir: str = "tools/metrics"
    exclude_patterns: FrozenSet[str] = Field(default=EXCLUDE_PATTERNS)
    tracked_language: str = "rust"
    web_public_dir: Optional[str] = "apps/web/public"

    model_config = {
        "frozen": True
    }

    def resolve_scan_root(self, project_root: Path) -> Path:
        candidate = Path(self.audit_dir)
        if candidate.is_absolute():
            return candidate
        return project_root / candidate

    def resolve_metrics_dir(self, scan_root: Path) -> Path:
        candidate = Path(self.metrics_dir)
        if candidate.is_absolute():
            return candidate
        return scan_root / candidate

    def resolve_web_public_dir(self, project_root: Path) -> Optional[Path]:
        if not self.web_public_dir:
            return None
        candidate = Path(self.web_public_dir)
        if candidate.is_absolute():
            return candidate
        return project_root / candidate


def _read_config_file(project_root: Path) -> dict:
    """
    Read `tools.config.json` from the project root.

    A missing file is normal. A file that cannot be read or parsed is logged
    and treated as empty.
    """
    config_path = project_root / CONFIG_FILE_NAME
    if not config_path.exists():
        return {}
    try:
        with config_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Malformed config %s, using defaults: %s", config_path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Malformed config %s: expected an object, using defaults", config_path)
        return {}
    return data


def load_config(project_root: Path, environ: Optional[Dict[str, str]] = None) -> ScanConfig:
    """
    Build the scan configuration for `project_root`.

    `audit_dir` comes from `paths.audit_dir`, then the top-level `audit_dir`
    key, and is overridden by RYOIKI_AUDIT_DIR / TOKADO_AUDIT_DIR when set.
    """
    env = os.environ if environ is None else environ
    data = _read_config_file(project_root)

    paths = data.get("paths")
    if not isinstance(paths, dict):
        paths = {}

    values: dict = {}

    env_audit_dir = next((env[var] for var in AUDIT_DIR_ENV_VARS if env.get(var)), None)
    audit_dir = env_audit_dir or paths.get("audit_dir", data.get("audit_dir"))
    if audit_dir is not None:
        values["audit_dir"] = audit_dir

    if "metrics_dir" in paths:
        values["metrics_dir"] = paths["metrics_dir"]
    if "tracked_language" in data:
        values["tracked_language"] = data["tracked_language"]

    try:
        return ScanConfig(**values)
    except ValidationError as e:
        logger.warning("Malformed config values in %s, using defaults: %s", project_root / CONFIG_FILE_NAME, e)
        if env_audit_dir:
            return ScanConfig(audit_dir=env_audit_dir)
        return ScanConfig()
