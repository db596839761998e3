"""Interface file discovery from install prefixes.

Each prefix lists its interface packages in the ``rosidl_interfaces`` resource
index: one file per package whose lines name the generated ``.idl`` files,
e.g. ``msg/Point.idl``. The matching definition sits in
``share/<package>/msg/Point.msg``.
"""

import logging
from collections.abc import Collection
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from ros_idl_gen.exceptions import StructuralError
from ros_idl_gen.models import InterfaceKind

logger = logging.getLogger(__name__)

RESOURCE_INDEX = PurePosixPath("share/ament_index/resource_index/rosidl_interfaces")
IDL_SUFFIX = ".idl"


@dataclass(frozen=True)
class IndexEntry:
    kind: InterfaceKind
    file_name: str

    @property
    def name(self) -> str:
        return PurePosixPath(self.file_name).stem


@dataclass
class PackageFiles:
    """Definition files of one package found in one prefix."""

    name: str
    prefix: Path
    entries: list[IndexEntry] = field(default_factory=list)

    @property
    def share_suffixes(self) -> list[PurePosixPath]:
        return [PurePosixPath(self.name, entry.kind.value, entry.file_name) for entry in self.entries]

    @property
    def paths(self) -> list[Path]:
        return [self.prefix / "share" / suffix for suffix in self.share_suffixes]


def parse_index_line(line: str) -> IndexEntry | None:
    """Map a resource index line to the definition file it stands for.

    ``msg/TestHoge.idl`` becomes ``TestHoge.msg`` in the ``msg`` namespace.
    Lines that do not name an ``.idl`` file are ignored and return ``None``.
    """
    line = line.strip()
    if not line.endswith(IDL_SUFFIX):
        return None

    namespace, _, file_name = line.partition("/")
    try:
        kind = InterfaceKind(namespace)
    except ValueError:
        raise StructuralError(f"unknown interface namespace in resource index line {line!r}") from None
    if not file_name:
        raise StructuralError(f"missing file name in resource index line {line!r}")

    return IndexEntry(kind=kind, file_name=str(PurePosixPath(file_name).with_suffix(kind.suffix)))


def load_index_file(package: str, prefix: Path, index_file: Path) -> PackageFiles:
    files = PackageFiles(name=package, prefix=prefix)
    for line_number, line in enumerate(index_file.read_text(encoding="utf-8").splitlines(), start=1):
        try:
            entry = parse_index_line(line)
        except StructuralError as e:
            e.path = index_file
            e.line = line_number
            raise
        if entry is not None:
            files.entries.append(entry)
    return files


def discover_prefix(prefix: str | Path, exclude_packages: Collection[str] = ()) -> list[PackageFiles]:
    """List the interface packages of one install prefix, sorted by name.

    A prefix without a resource index holds no interfaces and yields nothing.
    """
    prefix = Path(prefix)
    index_dir = prefix / RESOURCE_INDEX
    if not index_dir.is_dir():
        logger.debug(f"No interface resource index in {prefix}")
        return []

    packages = []
    for index_file in sorted(index_dir.iterdir()):
        if not index_file.is_file():
            continue
        if index_file.name in exclude_packages:
            logger.debug(f"Skipping excluded package {index_file.name}")
            continue
        files = load_index_file(index_file.name, prefix, index_file)
        logger.debug(f"Found {len(files.entries)} interfaces in {files.name} ({prefix})")
        packages.append(files)

    logger.info(f"Found {len(packages)} interface packages in {prefix}")
    return packages


def discover(prefixes: list[Path], exclude_packages: Collection[str] = ()) -> list[PackageFiles]:
    """List the interface packages of several prefixes, in prefix order."""
    packages: list[PackageFiles] = []
    for prefix in prefixes:
        packages.extend(discover_prefix(prefix, exclude_packages))
    return packages
