import zipfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from apkext.config.defaults import (
    INTERMEDIATE_JAR_NAME,
    LEGACY_DEX_NAME,
    MANIFEST_NAME,
    PRIMARY_DEX_NAME,
    SOURCE_SUBDIR,
    UNPACKED_SUBDIR,
)
from apkext.config.pipeline_config import PipelineConfig
from apkext.core.asset_manager import ZIP_READ_ERRORS
from apkext.core.errors import ApkExtError, ArchiveError, StageError, ValidationError
from apkext.core.tool_runner import ToolKind, ToolRunner
from apkext.utils.fs_utils import create_dir, file_exists, get_extract_dir, has_apk_extension, remove_dir
from apkext.utils.logger import get_logger
from apkext.utils.manifest_utils import read_manifest_package

logger = get_logger()


class ExtractionStage(str, Enum):
    VALIDATING = "validating"
    EXTRACTING_RESOURCES = "extracting resources"
    EXTRACTING_BYTECODE = "extracting bytecode"
    CONVERTING_TO_INTERMEDIATE = "converting bytecode to jar"
    DECOMPILING = "decompiling jar"
    DONE = "done"
    FAILED = "failed"


# Each stage runs only after the previous one returned; FAILED is reachable from any of them.
TRANSITIONS: Dict[ExtractionStage, ExtractionStage] = {
    ExtractionStage.VALIDATING: ExtractionStage.EXTRACTING_RESOURCES,
    ExtractionStage.EXTRACTING_RESOURCES: ExtractionStage.EXTRACTING_BYTECODE,
    ExtractionStage.EXTRACTING_BYTECODE: ExtractionStage.CONVERTING_TO_INTERMEDIATE,
    ExtractionStage.CONVERTING_TO_INTERMEDIATE: ExtractionStage.DECOMPILING,
    ExtractionStage.DECOMPILING: ExtractionStage.DONE,
}

STAGE_ERRORS: Dict[ExtractionStage, str] = {
    ExtractionStage.EXTRACTING_RESOURCES: "failed to extract resources",
    ExtractionStage.EXTRACTING_BYTECODE: "failed to extract DEX",
    ExtractionStage.CONVERTING_TO_INTERMEDIATE: "failed to convert DEX to JAR",
    ExtractionStage.DECOMPILING: "failed to decompile JAR",
}


@dataclass
class ExtractionResult:
    apk_path: Path
    extract_dir: Path
    stage: ExtractionStage = ExtractionStage.VALIDATING
    visited: List[ExtractionStage] = field(default_factory=list)
    package_name: Optional[str] = None

    @property
    def unpacked_dir(self) -> Path:
        return self.extract_dir / UNPACKED_SUBDIR

    @property
    def src_dir(self) -> Path:
        return self.extract_dir / SOURCE_SUBDIR

    @property
    def dex_path(self) -> Path:
        return self.extract_dir / PRIMARY_DEX_NAME

    @property
    def jar_path(self) -> Path:
        return self.extract_dir / INTERMEDIATE_JAR_NAME


class APKExtractor:
    """
    Forward conversion: APK → decoded resources (`unpacked/`) + decompiled Java (`src/`).

    Stages run strictly in the order given by TRANSITIONS. The first failing stage
    stops the pipeline; whatever earlier stages wrote stays on disk. The tool
    runner's working directory is removed on every exit path.
    """

    def __init__(self, config: PipelineConfig, tool_runner: Optional[ToolRunner] = None):
        self.config = config
        self.tool_runner = tool_runner or ToolRunner(config)
        self._handlers: Dict[ExtractionStage, Callable[[ExtractionResult], None]] = {
            ExtractionStage.VALIDATING: self._validate,
            ExtractionStage.EXTRACTING_RESOURCES: self._extract_resources,
            ExtractionStage.EXTRACTING_BYTECODE: self._extract_dex,
            ExtractionStage.CONVERTING_TO_INTERMEDIATE: self._convert_dex_to_jar,
            ExtractionStage.DECOMPILING: self._decompile_jar,
        }

    def unpack(self, apk_path: Union[str, Path]) -> ExtractionResult:
        """
        Run the whole pipeline for one APK.

        Returns:
            ExtractionResult: Output locations and the stages that ran.

        Raises:
            ValidationError: Bad input, nothing was written.
            StageError: A later stage failed; `.stage` tells which one.
        """
        apk_path = Path(apk_path)
        result = ExtractionResult(apk_path=apk_path, extract_dir=get_extract_dir(apk_path))
        completed = False
        try:
            while result.stage is not ExtractionStage.DONE:
                self._run_stage(result)
                result.stage = TRANSITIONS[result.stage]
            result.visited.append(ExtractionStage.DONE)
            self._summarize(result)
            completed = True
            return result
        except ApkExtError:
            result.stage = ExtractionStage.FAILED
            raise
        finally:
            self.tool_runner.cleanup(quiet=not completed)

    def _run_stage(self, result: ExtractionResult) -> None:
        stage = result.stage
        result.visited.append(stage)
        handler = self._handlers[stage]
        if stage is ExtractionStage.VALIDATING:
            handler(result)
            return
        try:
            handler(result)
        except (ApkExtError, OSError) as ex:
            logger.error(f"[✗] Stage '{stage.value}' failed: {ex}")
            raise StageError(stage, STAGE_ERRORS[stage], ex) from ex

    def _validate(self, result: ExtractionResult) -> None:
        if not has_apk_extension(result.apk_path):
            raise ValidationError("file must have .apk extension")
        if not file_exists(result.apk_path):
            raise ValidationError(f"APK file does not exist: {result.apk_path}")
        if file_exists(result.extract_dir):
            raise ValidationError(
                f"directory '{result.extract_dir}' already exists. Remove or rename it and then retry"
            )
        logger.info(f"[+] Extracting under '{result.extract_dir}'")

    def _extract_resources(self, result: ExtractionResult) -> None:
        logger.info("[+] Extracting resources")
        self.tool_runner.run(ToolKind.RESOURCE_DECODER, ["d", result.apk_path, "-o", result.unpacked_dir])

    def _extract_dex(self, result: ExtractionResult) -> None:
        logger.info(f"[+] Extracting {PRIMARY_DEX_NAME}")
        create_dir(result.extract_dir)

        try:
            with zipfile.ZipFile(result.apk_path, "r") as zipf:
                names = set(zipf.namelist())
                if PRIMARY_DEX_NAME in names:
                    zipf.extract(PRIMARY_DEX_NAME, result.extract_dir)
                    return
                if LEGACY_DEX_NAME not in names:
                    raise FileNotFoundError(
                        f"neither {PRIMARY_DEX_NAME} nor {LEGACY_DEX_NAME} found in {result.apk_path.name}"
                    )
                logger.info(f"[+] {PRIMARY_DEX_NAME} missing, using {LEGACY_DEX_NAME}")
                zipf.extract(LEGACY_DEX_NAME, result.extract_dir)
        except ZIP_READ_ERRORS as ex:
            raise ArchiveError(f"cannot read DEX from {result.apk_path.name}: {ex}") from ex

        (result.extract_dir / LEGACY_DEX_NAME).rename(result.dex_path)

    def _convert_dex_to_jar(self, result: ExtractionResult) -> None:
        logger.info(f"[+] Converting {PRIMARY_DEX_NAME} to jar")
        self.tool_runner.run(ToolKind.BYTECODE_CONVERTER, [result.dex_path, "-o", result.jar_path])
        result.dex_path.unlink()

    def _decompile_jar(self, result: ExtractionResult) -> None:
        logger.info("[+] Decompiling jar files")
        remove_dir(result.src_dir)
        create_dir(result.src_dir)
        self.tool_runner.run(ToolKind.DECOMPILER, ["-jar", result.jar_path, "-o", result.src_dir])
        if not self.config.keep_intermediate:
            result.jar_path.unlink(missing_ok=True)

    def _summarize(self, result: ExtractionResult) -> None:
        result.package_name = read_manifest_package(result.unpacked_dir / MANIFEST_NAME)
        if result.package_name:
            logger.info(f"[+] Package: {result.package_name}")
        logger.info(f"[+] Resources and smali are in '{result.unpacked_dir}'")
        logger.info(f"[+] Decompiled classes in '{result.src_dir}'")
        if self.config.keep_intermediate:
            logger.info(f"[+] Converted jar kept at '{result.jar_path}'")
