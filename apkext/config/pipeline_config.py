import os
import platform
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, field_validator

from apkext.config.defaults import (
    AAPT_PATHS,
    DEFAULT_AAPT_PATH,
    DEFAULT_APKTOOL_JAR,
    DEFAULT_FRAMEWORK_DIR,
    DEFAULT_JAVA_CMD,
    DEFAULT_PROCYON_JAR,
    DEX2JAR_DIR,
)
from apkext.core.errors import ConfigError
from apkext.utils.logger import get_logger

logger = get_logger()


def resolve_aapt_path(system: str) -> str:
    """
    Map an operating system identifier (as returned by `platform.system()`)
    to the relative path of the aapt binary inside apktool.jar.
    Unknown systems get the Linux binary.
    """
    return AAPT_PATHS.get(system, DEFAULT_AAPT_PATH)


def resolve_dex2jar_script(system: str) -> str:
    script = "d2j-dex2jar.bat" if system == "Windows" else "d2j-dex2jar.sh"
    return f"{DEX2JAR_DIR}/{script}"


def detect_java_cmd(system: str) -> str:
    """
    Prefer $JAVA_HOME/bin/java when it exists, otherwise rely on `java` from PATH.
    """
    java_home = os.environ.get("JAVA_HOME")
    if java_home:
        java_exe = "java.exe" if system == "Windows" else "java"
        candidate = Path(java_home) / "bin" / java_exe
        if candidate.exists():
            return str(candidate)
    return DEFAULT_JAVA_CMD


class PipelineConfig(BaseModel):
    """
    Tool names and runtime settings resolved once per command.
    Paths are relative to the working directory the assets are materialized into.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    java_cmd: str = DEFAULT_JAVA_CMD
    java_options: Tuple[str, ...] = ()
    apktool_jar: str = DEFAULT_APKTOOL_JAR
    procyon_jar: str = DEFAULT_PROCYON_JAR
    dex2jar_script: str = Field(default_factory=lambda: resolve_dex2jar_script(platform.system()))
    framework_dir: str = DEFAULT_FRAMEWORK_DIR
    aapt_path: str = Field(default_factory=lambda: resolve_aapt_path(platform.system()))
    keep_intermediate: bool = False

    @field_validator("java_cmd", "apktool_jar", "procyon_jar", "dex2jar_script", "framework_dir", "aapt_path")
    @classmethod
    def non_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("java_options", mode="before")
    @classmethod
    def normalize_options(cls, v):
        if v is None:
            return ()
        if isinstance(v, str):
            return tuple(v.split())
        return tuple(str(opt) for opt in v)

    def with_overrides(self, **overrides: Any) -> "PipelineConfig":
        data = self.model_dump()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return PipelineConfig(**data)


def _read_overrides(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as ex:
        raise ConfigError(f"Failed to read config file {path}: {ex}") from ex

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
    return data


def load_config(path: Optional[Path] = None, system: Optional[str] = None) -> PipelineConfig:
    """
    Build the pipeline configuration for the current platform.

    Args:
        path: Optional YAML file whose keys override the defaults.
        system: Operating system identifier; defaults to `platform.system()`.

    Returns:
        PipelineConfig: Immutable configuration.

    Raises:
        ConfigError: The file is unreadable, not a mapping, or holds invalid values.
    """
    system = system or platform.system()
    values: Dict[str, Any] = {
        "java_cmd": detect_java_cmd(system),
        "aapt_path": resolve_aapt_path(system),
        "dex2jar_script": resolve_dex2jar_script(system),
    }

    if path is not None:
        values.update(_read_overrides(Path(path)))
        logger.debug(f"[Config] Loaded overrides from {path}")

    try:
        return PipelineConfig(**values)
    except PydanticValidationError as ex:
        raise ConfigError(f"Invalid configuration: {ex}") from ex
