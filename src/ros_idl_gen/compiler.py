"""Compile driver: discover, parse, check and generate interface packages."""

import logging
import os
from collections import Counter
from collections.abc import Mapping
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from pathlib import Path, PurePosixPath

from ros_idl_gen.codegen import Layout, generate
from ros_idl_gen.dialects import parse_interface_file
from ros_idl_gen.discovery import PackageFiles, discover
from ros_idl_gen.exceptions import CompileError, DuplicateError, IdlError
from ros_idl_gen.models import Action, Message, Package, Service

logger = logging.getLogger(__name__)

AMENT_PREFIX_PATH = "AMENT_PREFIX_PATH"
DEFAULT_EXCLUDED_PACKAGES = frozenset({"libstatistics_collector"})


@dataclass
class CompileConfig:
    """Settings of one compile run.

    Parameters:
        prefixes: Install prefixes to search, in order.
        search_env: Also search the prefixes listed in ``AMENT_PREFIX_PATH``.
        exclude_packages: Package names to skip during discovery.
        output_dir: Where generated modules are written, ``None`` keeps them in memory.
        layout: Module layout of the generated code.
        max_workers: Parser worker count, ``None`` lets the executor decide.
        fail_fast: Raise the first parse failure instead of a :class:`CompileError`
            holding all of them.
        comments: Emit docstrings in the generated code.
    """

    prefixes: list[Path] = field(default_factory=list)
    search_env: bool = True
    exclude_packages: set[str] = field(default_factory=lambda: set(DEFAULT_EXCLUDED_PACKAGES))
    output_dir: Path | None = None
    layout: Layout = Layout.PACKAGE
    max_workers: int | None = None
    fail_fast: bool = True
    comments: bool = True

    def with_environment(self, environ: Mapping[str, str]) -> "CompileConfig":
        """Resolve ``search_env`` against ``environ``.

        Returns a copy whose prefixes start with the ``AMENT_PREFIX_PATH`` entries
        and with ``search_env`` cleared, so resolving twice is harmless.
        """
        if not self.search_env:
            return self

        value = environ.get(AMENT_PREFIX_PATH, "")
        if not value:
            logger.warning(f"{AMENT_PREFIX_PATH} is not set, searching only the given prefixes")
        env_prefixes = [Path(p) for p in value.split(os.pathsep) if p]
        return replace(self, prefixes=[*env_prefixes, *self.prefixes], search_env=False)


@dataclass
class CompileOutput:
    package_names: list[str]
    packages: list[Package]
    # Generated sources keyed by path relative to the output directory
    sources: dict[PurePosixPath, str]
    generated_files: list[Path] = field(default_factory=list)


def _parse_file(package: str, path: Path) -> Message | Service | Action:
    try:
        return parse_interface_file(package, path)
    except OSError as e:
        raise IdlError(f"unable to read file: {e.strerror or e}", path=path) from e


def _assemble(files: PackageFiles, results: list[Message | Service | Action]) -> Package:
    return Package(
        name=files.name,
        messages=[result for result in results if isinstance(result, Message)],
        services=[result for result in results if isinstance(result, Service)],
        actions=[result for result in results if isinstance(result, Action)],
        share_suffixes=files.share_suffixes,
    )


def parse_packages(
    package_files: list[PackageFiles], *, max_workers: int | None = None, fail_fast: bool = True
) -> list[Package]:
    """Parse every definition file in a worker pool, one task per file.

    A failing file does not stop its siblings. Once all tasks are done the first
    failure is raised (``fail_fast``) or all of them as one :class:`CompileError`.
    """
    futures: list[list[Future[Message | Service | Action]]] = []
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        for files in package_files:
            futures.append([executor.submit(_parse_file, files.name, path) for path in files.paths])

    errors: list[IdlError] = []
    packages: list[Package] = []
    for files, package_futures in zip(package_files, futures, strict=True):
        results = []
        for future in package_futures:
            error = future.exception()
            if error is None:
                results.append(future.result())
            elif isinstance(error, IdlError):
                errors.append(error)
            else:
                raise error
        packages.append(_assemble(files, results))
        logger.debug(f"Parsed {len(results)} interfaces of {files.name}")

    if errors:
        if fail_fast:
            raise errors[0]
        raise CompileError(errors)
    return packages


def check_duplicates(packages: list[Package], package_files: list[PackageFiles] | None = None) -> list[str]:
    """Reject duplicate package names and duplicate declarations within a package.

    Returns the sorted package names.
    """
    names = sorted(package.name for package in packages)
    counts = Counter(names)
    for name in names:
        if counts[name] > 1:
            sources = [str(files.prefix) for files in package_files or [] if files.name == name]
            raise DuplicateError("package", name, sources=sources)

    for package in packages:
        declarations = Counter(package.declaration_names())
        for (kind, name), count in declarations.items():
            if count > 1:
                raise DuplicateError(f"{kind.value} declaration", f"{package.name}/{kind.value}/{name}")
    return names


def write_sources(sources: dict[PurePosixPath, str], output_dir: Path) -> list[Path]:
    written = []
    for relative_path, text in sorted(sources.items()):
        path = output_dir / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        written.append(path)
    logger.info(f"Wrote {len(written)} files to {output_dir}")
    return written


def compile_packages(config: CompileConfig, environ: Mapping[str, str] | None = None) -> CompileOutput:
    """Discover, parse and generate every interface package of ``config``.

    ``environ`` defaults to ``os.environ`` and is only read when
    ``config.search_env`` is set.
    """
    config = config.with_environment(os.environ if environ is None else environ)
    package_files = discover(config.prefixes, config.exclude_packages)

    packages = parse_packages(package_files, max_workers=config.max_workers, fail_fast=config.fail_fast)
    package_names = check_duplicates(packages, package_files)

    non_empty = []
    for package in sorted(packages, key=lambda package: package.name):
        if package.is_empty:
            logger.debug(f"Skipping package {package.name} without interfaces")
            continue
        non_empty.append(package)

    sources = generate(non_empty, config.layout, comments=config.comments)
    output = CompileOutput(package_names=package_names, packages=non_empty, sources=sources)
    if config.output_dir is not None:
        output.generated_files = write_sources(sources, config.output_dir)
    return output
