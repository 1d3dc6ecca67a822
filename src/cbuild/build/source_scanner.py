"""Source file discovery.

Expands a target's configured files and directories into a flat list of
source files and pairs each one with the object file it compiles to.

Discovery rules:
    - A configured path listed verbatim in the exclusion list is dropped,
      together with everything under it when it is a directory.
    - Exclusions only apply to the configured top-level paths, never to
      files found inside an expanded directory.
    - Directories are expanded to their full depth (depth-first, in
      directory order, not sorted).
    - Anything else is taken as-is, even if it does not exist yet.

Object paths mirror the source path relative to the source root under the
cache's object directory, with the extension replaced by the toolchain's
object extension:

    src/net/http.c  ->  .cbuild/obj/net/http.o
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Sequence

from .errors import ConfigurationError, FilesystemError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceFile:
    """A discovered source and the object path it compiles to."""

    source: Path
    object: Path


class SourceScanner:
    """Discovers the sources of one target."""

    def __init__(
        self,
        files: Sequence[Path],
        excludes: Sequence[Path],
        src_dir: Path,
        obj_dir: Path,
        obj_ext: str,
    ):
        """Initialize the scanner.

        Args:
            files: Configured files and directories
            excludes: Configured paths to skip (matched verbatim)
            src_dir: Source root stripped from object paths
            obj_dir: Directory object files are placed under
            obj_ext: Object file extension without the dot
        """
        self.files = [Path(f) for f in files]
        self.excludes = {Path(e) for e in excludes}
        self.src_dir = Path(src_dir)
        self.obj_dir = Path(obj_dir)
        self.obj_ext = obj_ext

    def iter_sources(self) -> Iterator[Path]:
        """Lazily yield every concrete source path."""
        for path in self.files:
            if path in self.excludes:
                logger.debug(f"Excluded {path}")
                continue
            if path.is_dir():
                yield from self._walk(path)
            else:
                yield path

    def _walk(self, directory: Path) -> Iterator[Path]:
        try:
            entries = list(directory.iterdir())
        except OSError as e:
            raise FilesystemError(directory, e) from e
        for entry in entries:
            if entry.is_dir():
                yield from self._walk(entry)
            else:
                yield entry

    def object_path_for(self, source: Path) -> Path:
        """Object path for a source file.

        Sources outside the source root keep their own relative path; `..`
        components become `__` and absolute anchors are dropped so the
        object always lands inside the object directory.
        """
        try:
            relative = source.relative_to(self.src_dir)
        except ValueError:
            relative = source
        parts = ["__" if part == ".." else part for part in relative.parts if part != relative.anchor]
        return self.obj_dir.joinpath(*parts).with_suffix(f".{self.obj_ext}")

    def scan(self) -> List[SourceFile]:
        """Discover all sources and compute their object paths.

        Returns:
            Sources paired with object paths, duplicates removed

        Raises:
            ConfigurationError: If two different sources map to one object
            FilesystemError: If a directory cannot be read
        """
        result: List[SourceFile] = []
        owners: Dict[Path, Path] = {}
        for source in self.iter_sources():
            obj = self.object_path_for(source)
            owner = owners.get(obj)
            if owner is not None:
                if owner == source:
                    continue
                raise ConfigurationError(f"`{owner}` and `{source}` would both compile to `{obj}`")
            owners[obj] = source
            result.append(SourceFile(source=source, object=obj))
        logger.debug(f"Discovered {len(result)} source files")
        return result
