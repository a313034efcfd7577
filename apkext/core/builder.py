from enum import Enum
from pathlib import Path
from typing import Optional, Union

from apkext.config.defaults import APKTOOL_PROJECT_FILE, UNPACKED_SUBDIR
from apkext.config.pipeline_config import PipelineConfig
from apkext.core.errors import ApkExtError, StageError, ValidationError
from apkext.core.tool_runner import ToolKind, ToolRunner
from apkext.utils.fs_utils import file_exists, has_apk_extension
from apkext.utils.logger import get_logger

logger = get_logger()


class BuildStage(str, Enum):
    INITIALIZING = "initializing tools"
    EXTRACTING_AAPT = "extracting aapt"
    BUILDING = "building"


def resolve_project_dir(source_dir: Path) -> Path:
    """
    Accept either an apktool project directory or the extraction directory
    produced by `unpack` (which holds the project under `unpacked/`).
    """
    if (source_dir / APKTOOL_PROJECT_FILE).exists():
        return source_dir
    nested = source_dir / UNPACKED_SUBDIR
    if (nested / APKTOOL_PROJECT_FILE).exists():
        return nested
    return source_dir


class APKBuilder:
    """
    Reverse conversion: apktool project directory → APK, using the aapt binary
    shipped inside apktool.jar for the current platform.
    """

    def __init__(self, config: PipelineConfig, tool_runner: Optional[ToolRunner] = None):
        self.config = config
        self.tool_runner = tool_runner or ToolRunner(config)

    def pack(self, source_dir: Union[str, Path], output_apk: Union[str, Path]) -> Path:
        source_dir = Path(source_dir)
        output_apk = Path(output_apk)
        completed = False

        try:
            if not file_exists(source_dir):
                raise ValidationError(f"unpacked directory does not exist: {source_dir}")
            if not has_apk_extension(output_apk):
                raise ValidationError("output file must have .apk extension")

            logger.info(f"[+] Building APK from '{source_dir}' to '{output_apk}'")

            try:
                self.tool_runner.initialize()
            except ApkExtError as ex:
                raise StageError(BuildStage.INITIALIZING, "failed to initialize tools", ex) from ex

            try:
                aapt_path = self.ensure_aapt()
            except (ApkExtError, OSError) as ex:
                raise StageError(BuildStage.EXTRACTING_AAPT, "failed to extract aapt", ex) from ex

            project_dir = resolve_project_dir(source_dir)
            try:
                self.tool_runner.run(
                    ToolKind.RESOURCE_DECODER,
                    ["-aapt", aapt_path, "b", project_dir, "-o", output_apk],
                )
            except ApkExtError as ex:
                logger.error(f"[✗] Build failed: {ex}")
                raise StageError(BuildStage.BUILDING, "failed to build APK", ex) from ex

            logger.info(f"[+] Built '{output_apk}'")
            completed = True
            return output_apk
        finally:
            self.tool_runner.cleanup(quiet=not completed)

    def ensure_aapt(self) -> Path:
        """
        Make sure the platform aapt binary exists in the working directory,
        pulling it out of apktool.jar when needed.
        """
        aapt_path = self.tool_runner.aapt_path()
        if not aapt_path.exists():
            assets = self.tool_runner.assets
            apktool_jar = assets.path_for(self.config.apktool_jar)
            pattern = f"{Path(self.config.aapt_path).parent.as_posix()}/*"
            logger.debug(f"[Tools] Extracting '{pattern}' from {apktool_jar.name}")
            assets.extract_from_bundled_archive(apktool_jar, pattern, assets.work_dir)
        if not aapt_path.exists():
            raise FileNotFoundError(f"{self.config.aapt_path} not found in {self.config.apktool_jar}")
        aapt_path.chmod(0o755)
        return aapt_path
