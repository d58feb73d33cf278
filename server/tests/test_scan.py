from pathlib import Path

import pytest
from pydantic import BaseModel

from ryoiki.config import ScanConfig, load_config
from ryoiki.run import main
from ryoiki.services import cache
from ryoiki.services.analysis import ScanError, scan


def test_scan_is_deterministic(sample_repo: Path) -> None:
    config = load_config(sample_repo, environ={})

    first = scan(config, sample_repo)
    second = scan(config, sample_repo)

    assert first.model_dump_json() == second.model_dump_json()


def test_saved_artifacts_are_not_rescanned(sample_repo: Path) -> None:
    config = load_config(sample_repo, environ={})
    tree_json = sample_repo / "tools" / "metrics" / "ryoiki.cc.json"
    summary_json = sample_repo / "tools" / "metrics" / "ryoiki.metrics.json"

    cache.save_analysis(config, sample_repo, scan(config, sample_repo))
    first_tree = tree_json.read_bytes()
    first_summary = summary_json.read_bytes()

    cache.save_analysis(config, sample_repo, scan(config, sample_repo))

    assert tree_json.read_bytes() == first_tree
    assert summary_json.read_bytes() == first_summary


def test_missing_scan_root_is_not_created(tmp_path: Path) -> None:
    config = ScanConfig(audit_dir="missing")

    with pytest.raises(ScanError):
        scan(config, tmp_path)

    assert not (tmp_path / "missing").exists()


def test_save_and_load_round_trip(sample_repo: Path) -> None:
    config = load_config(sample_repo, environ={})
    result = scan(config, sample_repo)

    written = cache.save_analysis(config, sample_repo, result)
    loaded = cache.load_analysis(config, sample_repo)

    assert {p.name for p in written} == {"ryoiki.cc.json", "ryoiki.metrics.json", "ryoiki_stats.txt"}
    assert loaded == result


def test_outputs_are_mirrored_to_web_public(sample_repo: Path) -> None:
    web_public = sample_repo / "apps" / "web" / "public"
    web_public.mkdir(parents=True)
    config = load_config(sample_repo, environ={})

    cache.save_analysis(config, sample_repo, scan(config, sample_repo))

    assert (web_public / "ryoiki.cc.json").exists()
    assert (web_public / "ryoiki.metrics.json").exists()
    assert not (web_public / "ryoiki_stats.txt").exists()


def test_load_without_saved_result(tmp_path: Path) -> None:
    assert cache.load_analysis(ScanConfig(), tmp_path) is None


def test_load_corrupt_cache(tmp_path: Path, capsys) -> None:
    metrics_dir = tmp_path / "tools" / "metrics"
    metrics_dir.mkdir(parents=True)
    (metrics_dir / "ryoiki.cc.json").write_text("{broken", encoding="utf-8")
    (metrics_dir / "ryoiki.metrics.json").write_text("{}", encoding="utf-8")

    assert cache.load_analysis(ScanConfig(), tmp_path) is None
    assert "Failed to load cache" in capsys.readouterr().out


def test_to_json_falls_back_to_empty_object() -> None:
    class Unserializable(BaseModel):
        def model_dump_json(self, **kwargs) -> str:
            raise ValueError("nope")

    assert cache.to_json(Unserializable()) == "{}"


def test_cli_scan_only(sample_repo: Path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(sample_repo.parent)
    monkeypatch.delenv("RYOIKI_AUDIT_DIR", raising=False)
    monkeypatch.delenv("TOKADO_AUDIT_DIR", raising=False)

    main([str(sample_repo), "--scan-only"])

    out = capsys.readouterr().out
    assert "Total" in out
    assert "Rust Audit" in out
    assert (sample_repo / "tools" / "metrics" / "ryoiki.cc.json").exists()
