import shutil
from pathlib import Path
from typing import Union

from apkext.config.defaults import APK_EXTENSION

PathLike = Union[str, Path]


def file_exists(path: PathLike) -> bool:
    return Path(path).exists()


def has_apk_extension(path: PathLike) -> bool:
    return Path(path).suffix == APK_EXTENSION


def create_dir(path: PathLike) -> Path:
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def remove_dir(path: PathLike) -> None:
    """
    Recursively remove `path`. A missing directory is not an error.
    """
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        pass


def get_extract_dir(apk_path: PathLike) -> Path:
    """
    Derive the extraction target for an archive: same parent directory,
    file name with the archive extension stripped.

        get_extract_dir("out/app.apk") -> Path("out/app")
    """
    apk_path = Path(apk_path)
    name = apk_path.name
    if name.endswith(APK_EXTENSION):
        name = name[: -len(APK_EXTENSION)]
    return apk_path.parent / name
