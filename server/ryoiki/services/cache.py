import json
import logging
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel

from ryoiki.config import STATS_FILE_NAME, SUMMARY_FILE_NAME, TREE_FILE_NAME, ScanConfig
from ryoiki.models import MetricsSummary, ScanResult
from ryoiki.services.layout import parse_tree_json
from ryoiki.services.report import render_stats_report

logger = logging.getLogger(__name__)


def to_json(model: BaseModel) -> str:
    """Pretty JSON for a model, or "{}" if it cannot be serialized."""
    try:
        return model.model_dump_json(indent=2)
    except (ValueError, TypeError) as e:
        logger.warning("Failed to serialize %s: %s", type(model).__name__, e)
        return "{}"


def output_dirs(config: ScanConfig, project_root: Path) -> List[Path]:
    """Metrics dir first, then the web public dir when it exists."""
    scan_root = config.resolve_scan_root(project_root)
    dirs = [config.resolve_metrics_dir(scan_root)]
    web_dir = config.resolve_web_public_dir(project_root)
    if web_dir is not None and web_dir.is_dir():
        dirs.append(web_dir)
    return dirs


def save_analysis(config: ScanConfig, project_root: Path, result: ScanResult) -> List[Path]:
    """
    Write the tree and summary JSON (and the text stats report) for a scan.
    Returns the paths that were written.
    """
    tree_json = to_json(result.tree)
    summary_json = to_json(result.summary)
    written: List[Path] = []

    metrics_dir, *mirrors = output_dirs(config, project_root)
    metrics_dir.mkdir(parents=True, exist_ok=True)

    for target in [metrics_dir, *mirrors]:
        for name, payload in ((TREE_FILE_NAME, tree_json), (SUMMARY_FILE_NAME, summary_json)):
            path = target / name
            try:
                path.write_text(payload, encoding="utf-8")
            except OSError as e:
                logger.warning("Failed to write %s: %s", path, e)
                continue
            written.append(path)

    stats_path = metrics_dir / STATS_FILE_NAME
    try:
        stats_path.write_text(render_stats_report(result.summary, config.tracked_language), encoding="utf-8")
        written.append(stats_path)
    except OSError as e:
        logger.warning("Failed to write %s: %s", stats_path, e)

    print(f"✅ Saved scan to {metrics_dir}", flush=True)
    return written


def load_analysis(config: ScanConfig, project_root: Path) -> Optional[ScanResult]:
    metrics_dir = output_dirs(config, project_root)[0]
    tree_path = metrics_dir / TREE_FILE_NAME
    summary_path = metrics_dir / SUMMARY_FILE_NAME
    if not tree_path.exists() or not summary_path.exists():
        return None

    try:
        tree = parse_tree_json(tree_path.read_text(encoding="utf-8"))
        with open(summary_path, "r", encoding="utf-8") as f:
            summary = MetricsSummary.model_validate(json.load(f))
    except (OSError, ValueError) as e:
        print(f"⚠️ Failed to load cache: {e}", flush=True)
        return None

    return ScanResult(tree=tree, summary=summary)
