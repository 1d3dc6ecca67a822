"""
Build cache paths configuration.

Centralized path definitions for the build cache. Paths are relative to the
directory cbuild is invoked from unless overridden.

Layout:
    <cache>/                  CBUILD_CACHE_DIR or ./.cbuild
    <cache>/obj/              object files, mirroring the source tree
"""

import os
from pathlib import Path

CACHE_DIR_NAME = ".cbuild"
OBJ_DIR_NAME = "obj"
DEFAULT_BUILD_SCRIPT = Path("build.py")
DEFAULT_DATABASE_FILE = Path("compile_commands.json")


def get_cache_dir() -> Path:
    """Determine the build cache root directory.

    Priority: CBUILD_CACHE_DIR > ./.cbuild
    """
    cache_env = os.environ.get("CBUILD_CACHE_DIR")
    if cache_env:
        return Path(cache_env)
    return Path(CACHE_DIR_NAME)


def get_obj_dir(cache_dir: Path) -> Path:
    """Object file directory inside a cache root."""
    return cache_dir / OBJ_DIR_NAME
