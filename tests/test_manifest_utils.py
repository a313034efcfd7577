from apkext.utils.manifest_utils import read_manifest_package


def test_reads_package_attribute(tmp_path):
    manifest = tmp_path / "AndroidManifest.xml"
    manifest.write_text(
        '<?xml version="1.0" encoding="utf-8"?>\n'
        '<manifest xmlns:android="http://schemas.android.com/apk/res/android" package="org.sample"/>\n'
    )
    assert read_manifest_package(manifest) == "org.sample"


def test_missing_manifest(tmp_path):
    assert read_manifest_package(tmp_path / "AndroidManifest.xml") is None


def test_binary_manifest_is_not_parseable(tmp_path):
    manifest = tmp_path / "AndroidManifest.xml"
    manifest.write_bytes(b"\x03\x00\x08\x00\x00\x00")
    assert read_manifest_package(manifest) is None


def test_manifest_without_package(tmp_path):
    manifest = tmp_path / "AndroidManifest.xml"
    manifest.write_text("<manifest/>")
    assert read_manifest_package(manifest) is None
