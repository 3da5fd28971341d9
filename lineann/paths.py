"""Path prefix trimming and directory remapping of project files."""

from __future__ import annotations

import os

from lineann.model import ProjectAnnotation


def _trim_path_prefix(s: str, prefix: str, allow_unprefixed: bool, sep: str) -> str:
    if not s.startswith(prefix):
        if not allow_unprefixed:
            raise ValueError(f"string {s} not prefixed with {prefix}")
        return ""
    return s[len(prefix):].removeprefix(sep)


def trim_prefix(s: str, prefix: str) -> str:
    """Strip ``prefix`` and a following separator; raise ValueError if absent."""
    return _trim_path_prefix(s, prefix, False, os.sep)


def trim_prefix_or_empty(s: str, prefix: str) -> str:
    """Like trim_prefix, but return an empty string if the prefix is absent."""
    return _trim_path_prefix(s, prefix, True, os.sep)


def trim_mod_prefix_or_empty(pkg_file: str, mod_path: str) -> str:
    """Strip a module path from a package file; empty if it does not match."""
    return _trim_path_prefix(pkg_file, mod_path, True, "/")


def trim_or_add_prefix_dir(project: ProjectAnnotation, directory: str) -> None:
    """Add ``directory`` as a prefix of every file, or remove it when given as ``-dir``."""
    directory = directory.strip()
    remove = directory.startswith("-")
    if remove:
        directory = directory[1:]
    _remap_dir(project, remove, directory)


def trim_prefix_dir(project: ProjectAnnotation, directory: str) -> None:
    _remap_dir(project, True, directory)


def add_prefix_dir(project: ProjectAnnotation, directory: str) -> None:
    _remap_dir(project, False, directory)


def _remap_dir(project: ProjectAnnotation, remove: bool, directory: str) -> None:
    if not directory:
        return
    directory = directory.removeprefix(".").removeprefix("/").removesuffix("/")
    if not directory:
        return

    files = project.files or {}
    new_files = {}
    for file, value in files.items():
        if remove:
            new_file = _trim_for_remap(file, directory)
            if not new_file:
                continue
        else:
            new_file = f"{directory}/{file}"
        new_files[new_file] = value
    project.files = new_files


def _trim_for_remap(file: str, prefix: str) -> str:
    if not file.startswith(prefix):
        return ""
    return file[len(prefix):].removeprefix("/")