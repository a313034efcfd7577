import fnmatch
import shutil
import tempfile
import zipfile
import zlib
from pathlib import Path
from typing import Iterable, List, Optional

from apkext.config.defaults import (
    ASSET_GROUPS,
    ASSETS_DIR,
    EXECUTABLE_SUFFIXES,
    PLACEHOLDER_FILES,
    WORK_DIR_PREFIX,
)
from apkext.core.errors import AssetError
from apkext.utils.logger import get_logger

logger = get_logger()

# What zipfile raises for damaged, encrypted or unsupported members
ZIP_READ_ERRORS = (zipfile.BadZipFile, zlib.error, RuntimeError, NotImplementedError)


def is_safe_path(root: Path, target: Path) -> bool:
    root = root.resolve(strict=False)
    target = target.resolve(strict=False)
    return root == target or root in target.parents


def member_matches(name: str, pattern: str) -> bool:
    """
    Glob match where `*` stays inside one path segment:
    `prebuilt/linux/*` matches `prebuilt/linux/aapt` but not `prebuilt/linux/lib64/x.so`.
    """
    return name.count("/") == pattern.count("/") and fnmatch.fnmatchcase(name, pattern)


class AssetManager:
    """
    Materializes the bundled helper tools into a private working directory.

    The directory is created on the first `initialize()` call and removed by
    `teardown()`. Every operation owns its own instance; nothing is shared
    between managers.

        with AssetManager() as assets:
            assets.initialize()
            jar = assets.path_for("apktool.jar")
    """

    def __init__(self, bundle_root: Optional[Path] = None, groups: Iterable[str] = ASSET_GROUPS):
        self.bundle_root = Path(bundle_root) if bundle_root else ASSETS_DIR
        self.groups = tuple(groups)
        self.work_dir: Optional[Path] = None
        self.initialized = False

    def __enter__(self) -> "AssetManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.teardown()

    def initialize(self) -> Path:
        """
        Unpack every bundled resource group into the working directory.
        Repeated calls return the same directory without touching it.
        """
        if self.initialized:
            return self.work_dir

        if self.work_dir is None:
            try:
                self.work_dir = Path(tempfile.mkdtemp(prefix=WORK_DIR_PREFIX))
            except OSError as ex:
                raise AssetError(f"Failed to create working directory: {ex}") from ex
            logger.debug(f"[Assets] Working directory: {self.work_dir}")

        for group in self.groups:
            self._materialize_group(group)

        self.initialized = True
        return self.work_dir

    def path_for(self, name: str) -> Path:
        """
        Absolute path of a materialized resource. Existence is not checked.
        """
        if self.work_dir is None:
            raise AssetError(f"Cannot resolve '{name}': assets have not been initialized")
        return self.work_dir / name

    def extract_from_bundled_archive(self, archive_path: Path, pattern: str, dest_dir: Path) -> List[Path]:
        """
        Extract the members of a ZIP archive whose names match the glob `pattern`
        into `dest_dir`, keeping their relative paths.

        Returns:
            List[Path]: Extracted files.
        """
        extracted = []
        try:
            with zipfile.ZipFile(archive_path, "r") as zipf:
                for entry in zipf.infolist():
                    if entry.is_dir() or not member_matches(entry.filename, pattern):
                        continue
                    target = dest_dir / entry.filename
                    if not is_safe_path(dest_dir, target):
                        raise AssetError(f"Refusing to extract '{entry.filename}' outside {dest_dir}")
                    target.parent.mkdir(parents=True, exist_ok=True)
                    with zipf.open(entry) as src, target.open("wb") as dst:
                        shutil.copyfileobj(src, dst)
                    extracted.append(target)
        except (OSError, *ZIP_READ_ERRORS) as ex:
            raise AssetError(f"Failed to extract '{pattern}' from {archive_path}: {ex}") from ex

        logger.debug(f"[Assets] Extracted {len(extracted)} file(s) matching '{pattern}' from {archive_path.name}")
        return extracted

    def teardown(self) -> None:
        """
        Remove the working directory. Safe to call before `initialize()` and more than once.
        """
        work_dir, self.work_dir = self.work_dir, None
        self.initialized = False
        if work_dir is None:
            return
        try:
            shutil.rmtree(work_dir)
        except FileNotFoundError:
            pass
        except OSError as ex:
            raise AssetError(f"Failed to remove working directory {work_dir}: {ex}") from ex
        logger.debug(f"[Assets] Removed working directory: {work_dir}")

    def _materialize_group(self, group: str) -> None:
        source_root = self.bundle_root / group
        if not source_root.is_dir():
            raise AssetError(f"Bundled resource group '{group}' not found in {self.bundle_root}")

        for source in sorted(source_root.rglob("*")):
            if not source.is_file() or source.name in PLACEHOLDER_FILES:
                continue
            target = self.work_dir / source.relative_to(source_root)
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(source, target)
                if target.suffix in EXECUTABLE_SUFFIXES:
                    target.chmod(0o755)
            except OSError as ex:
                raise AssetError(f"Failed to materialize {source}: {ex}") from ex
