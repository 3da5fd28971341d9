"""File filter options by suffix and path, and profile languages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence


@dataclass
class FilterOptions:
    suffix: list[str] = field(default_factory=list)
    exclude_suffix: list[str] = field(default_factory=list)
    include: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)

    def match_suffix(self, file: str) -> bool:
        """True if ``file`` ends with an allowed suffix and no excluded one."""
        return _check_suffix_match(file, self.suffix, self.exclude_suffix)


@dataclass
class LegacyOptions:
    """Older filter form excluding whole path prefixes."""

    suffix: list[str] = field(default_factory=list)
    exclude_suffix: list[str] = field(default_factory=list)
    exclude_path: list[str] = field(default_factory=list)

    def match(self, file: str) -> bool:
        if not _check_suffix_match(file, self.suffix, self.exclude_suffix):
            return False
        return not _match_any_path(file, self.exclude_path, False)


class ProfileLanguage(str, Enum):
    DEFAULT = ""
    GO = "go"
    JS = "js"

    def is_go(self) -> bool:
        return self in (ProfileLanguage.DEFAULT, ProfileLanguage.GO)


def _check_suffix_match(file: str, suffix: Sequence[str], exclude_suffix: Sequence[str]) -> bool:
    if not _match_any_suffix(file, suffix, True):
        return False
    return not _match_any_suffix(file, exclude_suffix, False)


def _match_any_suffix(file: str, suffixes: Sequence[str], default: bool) -> bool:
    if not suffixes:
        return default
    return any(file.endswith(s) for s in suffixes)


def _match_any_path(file: str, paths: Sequence[str], default: bool) -> bool:
    if not paths:
        return default
    return any(match_path(file, path) for path in paths)


def match_path(file: str, path: str) -> bool:
    """True if ``file`` is ``path`` itself or lies beneath it."""
    if not file.startswith(path):
        return False
    return len(file) == len(path) or file[len(path)] == "/"