from pathlib import Path
from typing import Optional

from lxml import etree

from apkext.utils.logger import get_logger

logger = get_logger()


def read_manifest_package(manifest_path: Path) -> Optional[str]:
    """
    Return the `package` attribute of a decoded (text) AndroidManifest.xml,
    or None when the file is missing or not parseable.
    """
    if not manifest_path.is_file():
        return None
    try:
        root = etree.parse(str(manifest_path)).getroot()
    except (OSError, etree.XMLSyntaxError) as ex:
        logger.warning(f"[Manifest] Could not parse {manifest_path}: {ex}")
        return None
    return root.get("package") or None
