from setuptools import setup, find_namespace_packages
from pathlib import Path

here = Path(__file__).parent
long_description = (here / "README.md").read_text(encoding="utf-8")

setup(
    name="apkext",
    version="0.1.0",
    description="Unpack Android APKs to resources and Java source, and pack them back, using bundled apktool, dex2jar and Procyon",
    long_description=long_description,
    long_description_content_type="text/markdown",

    packages=find_namespace_packages(include=["apkext", "apkext.*"], exclude=["apkext.assets*"]),
    package_data={"apkext": ["assets/jars/**/*", "assets/tools/**/*", "assets/jars/.gitkeep", "assets/tools/.gitkeep"]},
    include_package_data=True,
    python_requires=">=3.10",

    install_requires=[
        "pydantic>=2.6.0",
        "PyYAML>=6.0",
        "lxml>=5.2.0"
    ],

    extras_require={
        "dev": [
            "pytest>=7.0.0",
        ]
    },

    entry_points={
        "console_scripts": [
            "apkext=apkext.main:main"
        ]
    },

    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Intended Audience :: Developers",
        "Topic :: Security",
        "Topic :: Software Development :: Disassemblers",
        "Topic :: Software Development :: Build Tools",
    ],

    keywords="android apk apktool dex2jar procyon decompile repack reverse-engineering",
    license="MIT",
)
