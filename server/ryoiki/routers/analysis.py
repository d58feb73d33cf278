import threading
from pathlib import Path

import anyio
from fastapi import APIRouter, HTTPException

from ryoiki.config import load_config
from ryoiki.models import MetricsSummary, Node, ScanResult
from ryoiki.services import analysis, cache

router = APIRouter(prefix="/api", tags=["analysis"])

# Project root the server was started from; tools.config.json lives here.
ROOT_PATH = Path.cwd()

# Overlapping refresh requests must not race on the same output files.
_scan_lock = threading.Lock()


def _run_scan() -> ScanResult:
    """Scan and persist. The caller holds `_scan_lock`."""
    config = load_config(ROOT_PATH)
    try:
        result = analysis.scan(config, ROOT_PATH)
    except analysis.ScanError as e:
        print(f"❌ Scan failed: {e}", flush=True)
        raise HTTPException(status_code=500, detail=str(e))
    cache.save_analysis(config, ROOT_PATH, result)
    return result


def _load_cached() -> ScanResult | None:
    return cache.load_analysis(load_config(ROOT_PATH), ROOT_PATH)


def _scan_and_save() -> ScanResult:
    with _scan_lock:
        return _run_scan()


def _cached_or_scan() -> ScanResult:
    cached = _load_cached()
    if cached is not None:
        return cached
    with _scan_lock:
        # A scan that held the lock while we waited may have saved a result
        cached = _load_cached()
        if cached is not None:
            return cached
        return _run_scan()


@router.get("/analysis", response_model=Node)
async def get_analysis():
    """
    Get the metrics tree of the codebase.
    Returns the saved result if available, otherwise triggers a scan.
    """
    result = await anyio.to_thread.run_sync(_cached_or_scan)
    return result.tree


@router.get("/analysis/metrics", response_model=MetricsSummary)
async def get_metrics_summary():
    """
    Get the project-wide metrics summary.
    """
    result = await anyio.to_thread.run_sync(_cached_or_scan)
    return result.summary


@router.post("/refresh", response_model=Node)
async def refresh_analysis():
    """
    Force a re-scan of the codebase.
    """
    print("Refresh requested", flush=True)
    result = await anyio.to_thread.run_sync(_scan_and_save)
    print("Scan completed successfully", flush=True)
    return result.tree
