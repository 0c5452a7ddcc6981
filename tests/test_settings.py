import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from svg_tester.core.settings import DEFAULT_VISUAL_TEMPLATE, load_settings


def test_packaged_defaults(monkeypatch):
    for name in ("PORT", "TESTER_MAX_FILES", "TESTER_MAX_FILE_BYTES", "TESTER_VALIDATOR_COMMAND", "TESTER_TMP_ROOT"):
        monkeypatch.delenv(name, raising=False)
    settings = load_settings()
    assert settings.port == 3000
    assert settings.uploads.field_name == "svgFiles"
    assert settings.uploads.max_file_bytes == 2 * 1024 * 1024
    assert settings.uploads.max_files == 4000
    assert settings.uploads.allowed_extensions == [".svg"]
    assert settings.validator.command[0] == "node_modules/.bin/mocha"
    assert "{metadata}" in settings.validator.command
    assert settings.visual_template == DEFAULT_VISUAL_TEMPLATE
    assert DEFAULT_VISUAL_TEMPLATE.exists()


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("TESTER_TMP_ROOT", str(tmp_path))
    monkeypatch.setenv("TESTER_MAX_FILES", "12")
    monkeypatch.setenv("TESTER_VALIDATOR_COMMAND", "validate --data '{metadata}' --src {workspace}")
    monkeypatch.setenv("API_CORS_ORIGINS", "https://a.example, https://b.example")

    settings = load_settings()

    assert settings.port == 8080
    assert settings.tmp_root == tmp_path
    assert settings.uploads.max_files == 12
    assert settings.uploads.max_file_bytes == 2 * 1024 * 1024
    assert settings.validator.command == ["validate", "--data", "{metadata}", "--src", "{workspace}"]
    assert settings.cors_origins == ["https://a.example", "https://b.example"]


def test_config_file_nulls_fall_back_to_model_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("TESTER_TMP_ROOT", raising=False)
    config = tmp_path / "tester.yaml"
    config.write_text("tmp_root: null\nuploads:\n  max_files: 3\n", encoding="utf-8")
    settings = load_settings(config)
    assert settings.uploads.max_files == 3
    assert settings.tmp_root.is_dir()
