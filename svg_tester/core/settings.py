"""Process-wide configuration.

Defaults are read from the packaged ``config/tester.yaml`` and can be
overridden through environment variables so deployments only need to set
what differs (``PORT``, ``TESTER_TMP_ROOT`` and friends).
"""
from __future__ import annotations

import os
import shlex
import tempfile
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"
TEMPLATE_DIR = Path(__file__).resolve().parents[1] / "templates"
DEFAULT_VISUAL_TEMPLATE = TEMPLATE_DIR / "template-visual-test.html"


class UploadLimits(BaseModel):
    field_name: str = "svgFiles"
    max_file_bytes: int = Field(default=2 * 1024 * 1024, gt=0)
    max_files: int = Field(default=4000, gt=0)
    allowed_extensions: list[str] = Field(default_factory=lambda: [".svg"])
    allowed_media_types: list[str] = Field(default_factory=lambda: ["image/svg+xml"])

    @field_validator("allowed_extensions")
    @classmethod
    def _lower_extensions(cls, value: list[str]) -> list[str]:
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in value]


class ValidatorSettings(BaseModel):
    command: list[str] = Field(default_factory=list)
    suite_dir: Path = Path("openmoji/test")
    metadata_filename: str = "openmoji.json"
    report_filename: str = "report.html"
    max_output_bytes: int = Field(default=10 * 1024 * 1024, gt=0)


class OutlineSettings(BaseModel):
    stroke: str = "#ffffff"
    stroke_width: float = Field(default=6, gt=0)


class TesterSettings(BaseModel):
    port: int = 3000
    tmp_root: Path = Field(default_factory=lambda: Path(tempfile.gettempdir()))
    catalog_path: Path = Path("openmoji/data/openmoji-tester.json")
    public_dir: Path | None = Path("public")
    visual_template: Path = DEFAULT_VISUAL_TEMPLATE
    job_prefix: str = "openmoji-"
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"]
    )
    uploads: UploadLimits = Field(default_factory=UploadLimits)
    validator: ValidatorSettings = Field(default_factory=ValidatorSettings)
    outline: OutlineSettings = Field(default_factory=OutlineSettings)


def _read_defaults(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    # null in the YAML means "use the model default"
    return {key: value for key, value in data.items() if value is not None}


def _apply_env(data: dict[str, Any]) -> dict[str, Any]:
    env = os.environ
    if env.get("PORT"):
        data["port"] = env["PORT"]
    if env.get("TESTER_TMP_ROOT"):
        data["tmp_root"] = Path(env["TESTER_TMP_ROOT"]).expanduser()
    if env.get("TESTER_CATALOG_PATH"):
        data["catalog_path"] = Path(env["TESTER_CATALOG_PATH"]).expanduser()
    if env.get("TESTER_PUBLIC_DIR"):
        data["public_dir"] = Path(env["TESTER_PUBLIC_DIR"]).expanduser()
    if env.get("TESTER_VISUAL_TEMPLATE"):
        data["visual_template"] = Path(env["TESTER_VISUAL_TEMPLATE"]).expanduser()

    uploads = dict(data.get("uploads") or {})
    if env.get("TESTER_MAX_FILE_BYTES"):
        uploads["max_file_bytes"] = env["TESTER_MAX_FILE_BYTES"]
    if env.get("TESTER_MAX_FILES"):
        uploads["max_files"] = env["TESTER_MAX_FILES"]
    data["uploads"] = uploads

    validator = dict(data.get("validator") or {})
    if env.get("TESTER_VALIDATOR_COMMAND"):
        validator["command"] = shlex.split(env["TESTER_VALIDATOR_COMMAND"])
    data["validator"] = validator

    origins_env = env.get("API_CORS_ORIGINS", "")
    origins = [origin.strip() for origin in origins_env.split(",") if origin.strip()]
    if origins:
        data["cors_origins"] = origins
    return data


def load_settings(config_path: Path | None = None) -> TesterSettings:
    """Build settings from the YAML defaults plus environment overrides."""

    data = _read_defaults(config_path or CONFIG_DIR / "tester.yaml")
    return TesterSettings(**_apply_env(data))
