import json
from pathlib import Path

from ryoiki.config import EXCLUDE_PATTERNS, ScanConfig, load_config


def _write_config(root: Path, data) -> None:
    text = data if isinstance(data, str) else json.dumps(data)
    (root / "tools.config.json").write_text(text, encoding="utf-8")


def test_defaults_without_config_file(tmp_path: Path) -> None:
    config = load_config(tmp_path, environ={})

    assert config.audit_dir == "."
    assert config.metrics_dir == "tools/metrics"
    assert config.tracked_language == "rust"
    assert config.exclude_patterns == EXCLUDE_PATTERNS
    assert config.resolve_scan_root(tmp_path) == tmp_path


def test_paths_audit_dir_wins_over_top_level(tmp_path: Path) -> None:
    _write_config(tmp_path, {"audit_dir": "top", "paths": {"audit_dir": "crates"}})
    assert load_config(tmp_path, environ={}).audit_dir == "crates"


def test_top_level_audit_dir(tmp_path: Path) -> None:
    _write_config(tmp_path, {"audit_dir": "top"})
    config = load_config(tmp_path, environ={})

    assert config.audit_dir == "top"
    assert config.resolve_scan_root(tmp_path) == tmp_path / "top"


def test_metrics_dir_and_tracked_language(tmp_path: Path) -> None:
    _write_config(tmp_path, {"paths": {"metrics_dir": "out"}, "tracked_language": "go"})
    config = load_config(tmp_path, environ={})

    assert config.metrics_dir == "out"
    assert config.tracked_language == "go"
    assert config.resolve_metrics_dir(tmp_path / "src") == tmp_path / "src" / "out"


def test_environment_overrides_config_file(tmp_path: Path) -> None:
    _write_config(tmp_path, {"audit_dir": "from-file"})

    assert load_config(tmp_path, environ={"TOKADO_AUDIT_DIR": "legacy"}).audit_dir == "legacy"
    both = {"RYOIKI_AUDIT_DIR": "primary", "TOKADO_AUDIT_DIR": "legacy"}
    assert load_config(tmp_path, environ=both).audit_dir == "primary"
    # Empty values are treated as unset.
    assert load_config(tmp_path, environ={"RYOIKI_AUDIT_DIR": ""}).audit_dir == "from-file"


def test_malformed_json_falls_back_to_defaults(tmp_path: Path, caplog) -> None:
    _write_config(tmp_path, "{ not json")

    config = load_config(tmp_path, environ={})

    assert config == ScanConfig()
    assert "Malformed config" in caplog.text


def test_non_object_config_falls_back_to_defaults(tmp_path: Path) -> None:
    _write_config(tmp_path, ["audit_dir"])
    assert load_config(tmp_path, environ={}) == ScanConfig()


def test_wrong_value_types_fall_back_but_keep_env(tmp_path: Path) -> None:
    _write_config(tmp_path, {"paths": {"audit_dir": ["x"]}, "tracked_language": 3})

    assert load_config(tmp_path, environ={}) == ScanConfig()

    _write_config(tmp_path, {"tracked_language": 3})
    assert load_config(tmp_path, environ={"RYOIKI_AUDIT_DIR": "src"}).audit_dir == "src"


def test_absolute_paths_are_kept(tmp_path: Path) -> None:
    config = ScanConfig(audit_dir=str(tmp_path / "abs"), metrics_dir=str(tmp_path / "m"))

    assert config.resolve_scan_root(Path("/elsewhere")) == tmp_path / "abs"
    assert config.resolve_metrics_dir(Path("/elsewhere")) == tmp_path / "m"


def test_web_public_dir_can_be_disabled(tmp_path: Path) -> None:
    assert ScanConfig().resolve_web_public_dir(tmp_path) == tmp_path / "apps" / "web" / "public"
    assert ScanConfig(web_public_dir=None).resolve_web_public_dir(tmp_path) is None
