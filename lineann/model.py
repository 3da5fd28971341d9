"""Core annotation data structures: blocks, lines, functions, files and projects."""

from __future__ import annotations

import functools
import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, MutableSequence, Optional

StringSet = dict[str, bool]

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class Block:
    """A source range; unique within one file."""

    start_line: int = 0
    start_col: int = 0
    end_line: int = 0
    end_col: int = 0

    def block_id(self) -> str:
        """Return the textual identifier ``startLine:startCol-endLine:endCol``."""
        return f"{self.start_line}:{self.start_col}-{self.end_line}:{self.end_col}"

    def __str__(self) -> str:
        return self.block_id()

    def same_block(self, other: Block) -> bool:
        return (
            self.start_line == other.start_line
            and self.start_col == other.start_col
            and self.end_line == other.end_line
            and self.end_col == other.end_col
        )

    def compare(self, other: Block) -> int:
        """Return a negative, zero or positive difference ordering the two blocks."""
        for diff in (
            self.start_line - other.start_line,
            self.start_col - other.start_col,
            self.end_line - other.end_line,
        ):
            if diff != 0:
                return diff
        return self.end_col - other.end_col

    def after(self, other: Block) -> bool:
        return self.compare(other) > 0

    def before(self, other: Block) -> bool:
        return self.compare(other) < 0

    def clone(self) -> Block:
        return Block(self.start_line, self.start_col, self.end_line, self.end_col)


def parse_block_id(value: str | bytes | None) -> str:
    """Decode a block id from its JSON text, which may be a string or an integer."""
    if value is None:
        return ""
    text = value.decode() if isinstance(value, (bytes, bytearray)) else value
    if text == "":
        return ""
    if text.startswith('"'):
        decoded = json.loads(text)
        if not isinstance(decoded, str):
            raise ValueError(f"invalid block id: {text}")
        return decoded
    if _INTEGER_RE.fullmatch(text) and _INT64_MIN <= int(text) <= _INT64_MAX:
        return text
    decoded = json.loads(text)
    if decoded is None:
        return ""
    if not isinstance(decoded, str):
        raise ValueError(f"cannot use {text} as a block id")
    return decoded


def _block_of(item: Any) -> Block:
    if isinstance(item, Block):
        return item
    return item.block


def sort_blocks(items: MutableSequence[Any]) -> None:
    """Sort blocks, or objects carrying a ``block`` attribute, in place by position."""
    items.sort(key=functools.cmp_to_key(lambda a, b: _block_of(a).compare(_block_of(b))))


@dataclass
class BlockAnnotation:
    block: Optional[Block] = None
    func_id: str = ""
    exec_labels: Optional[StringSet] = None
    block_data_type: str = ""
    block_data: Any = None


class CommentLabel(str, Enum):
    LABELS = "labels"
    UNREACHABLE = "unreachable"
    NOCOV = "nocov"
    DEPRECATED = "deprecated"


@dataclass
class CodeComment:
    author: str = ""
    values: Optional[list[str]] = None

    def clone(self) -> CodeComment:
        return CodeComment(
            author=self.author,
            values=None if self.values is None else list(self.values),
        )


@dataclass
class CodeAnnotation:
    comments: Optional[dict[CommentLabel, CodeComment]] = None
    excluded: bool = False


@dataclass
class FileDetail:
    """How a file changed between two revisions."""

    is_new: bool = False
    deleted: bool = False
    renamed_from: str = ""
    content_changed: bool = False


class ExcludeReason(str, Enum):
    OTHER = "other"


class CodeSuggestion(str, Enum):
    OTHER = "other"


@dataclass
class Comment:
    author: str = ""
    create_time: str = ""
    content: str = ""


@dataclass
class Remark:
    excluded: bool = False
    reason: str = ""
    suggestion: str = ""
    comments: Optional[list[Comment]] = None
    create_time: str = ""
    creator: str = ""
    update_time: str = ""
    updater: str = ""


@dataclass
class LineAnnotation:
    old_line: int = 0
    changed: bool = False
    block_id: str = ""
    empty: bool = False
    labels: Optional[StringSet] = None
    exec_labels: Optional[StringSet] = None
    coverage_labels: Optional[dict[str, bool]] = None
    func_id: str = ""
    uncoverable: bool = False
    code: Optional[CodeAnnotation] = None
    remark: Optional[Remark] = None
    line_data_type: str = ""
    line_data: Any = None

    def simplify(self) -> None:
        """Drop empty label maps."""
        if not self.labels:
            self.labels = None
        if not self.exec_labels:
            self.exec_labels = None
        if not self.coverage_labels:
            self.coverage_labels = None


@dataclass
class FuncAnnotation:
    block: Optional[Block] = None
    name: str = ""
    owner_type_name: str = ""
    closure: bool = False
    changed: bool = False
    ptr: bool = False
    labels: Optional[StringSet] = None
    exec_labels: Optional[StringSet] = None
    coverage_labels: Optional[dict[str, bool]] = None
    code: Optional[CodeAnnotation] = None
    first_line_excluded: bool = False

    def simplify(self) -> None:
        """Drop empty label maps."""
        if not self.labels:
            self.labels = None
        if not self.exec_labels:
            self.exec_labels = None
        if not self.coverage_labels:
            self.coverage_labels = None


@dataclass
class FileAnnotation:
    change_detail: Optional[FileDetail] = None
    lines: Optional[dict[int, LineAnnotation]] = None
    line_changes: Any = None
    deleted_lines: Optional[dict[int, bool]] = None
    blocks: Optional[dict[str, BlockAnnotation]] = None
    funcs: Optional[dict[str, FuncAnnotation]] = None
    file_data_type: str = ""
    file_data: Any = None

    def simplify(self) -> None:
        """Drop empty mappings and simplify the annotations they hold."""
        if not self.lines:
            self.lines = None
        else:
            for line in self.lines.values():
                line.simplify()
        if not self.blocks:
            self.blocks = None
        if not self.funcs:
            self.funcs = None
        else:
            for fn in self.funcs.values():
                fn.simplify()


class AnnotationType(str, Enum):
    BLOCKS = "blocks"
    CHANGE_DETAIL = "change_detail"

    LINE_EMPTY = "line_empty"
    LINE_BLOCK_ID = "line_block_id"
    LINE_FUNC_ID = "line_func_id"
    LINE_CHANGES = "line_changes"
    LINE_CHANGED = "line_changed"
    LINE_OLD_LINE = "line_old_line"
    LINE_LABELS = "line_labels"
    LINE_EXEC_LABELS = "line_exec_labels"
    LINE_COVERAGE_LABELS = "line_coverage_labels"
    LINE_UNCOVERABLE = "line_uncoverable"
    LINE_CODE_EXCLUDED = "line_code_excluded"
    LINE_REMARK = "line_remark"

    FILE_FUNCS = "funcs"
    FUNC_LABELS = "func_labels"
    FUNC_EXEC_LABELS = "func_exec_labels"
    FUNC_COVERAGE_LABELS = "func_coverage_labels"
    FUNC_CHANGED = "func_changed"
    FUNC_CODE_COMMENTS = "func_code_comments"
    # Exclusion by comment; a function may also be excluded by its head line.
    FUNC_CODE_EXCLUDED = "func_code_excluded"
    FIRST_LINE_EXCLUDED = "func_first_line_excluded"


class MissingAnnotationError(Exception):
    """Raised when a computation needs an annotation type the project lacks."""

    def __init__(self, reason: str, annotation_type: AnnotationType | str) -> None:
        name = annotation_type.value if isinstance(annotation_type, AnnotationType) else annotation_type
        super().__init__(f"{reason} requires {name}")
        self.reason = reason
        self.annotation_type = annotation_type


@dataclass
class ProjectAnnotation:
    files: Optional[dict[str, FileAnnotation]] = None
    types: Optional[dict[AnnotationType, bool]] = None
    commit_hash: str = ""
    project_data_type: str = ""
    project_data: Any = None

    def has(self, annotation_type: AnnotationType) -> bool:
        return bool(self.types and self.types.get(annotation_type, False))

    def require(self, reason: str, *annotation_types: AnnotationType) -> None:
        """Raise MissingAnnotationError for the first type that is not present."""
        for annotation_type in annotation_types:
            if not self.has(annotation_type):
                raise MissingAnnotationError(reason, annotation_type)

    def mark(self, annotation_type: AnnotationType) -> None:
        if self.types is None:
            self.types = {}
        self.types[annotation_type] = True

    def simplify(self) -> None:
        """Drop empty mappings throughout the project."""
        if not self.types:
            self.types = None
        if not self.files:
            self.files = None
        else:
            for file_annotation in self.files.values():
                file_annotation.simplify()

    def simplified(self) -> ProjectAnnotation:
        self.simplify()
        return self


@dataclass
class RemapRequest:
    include: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)
    git_url: str = ""
    commit_hash: str = ""
    old_commit_hash: str = ""
    annotation: Optional[ProjectAnnotation] = None


@dataclass
class RemapResponse:
    annotation: Optional[ProjectAnnotation] = None


def _iter_types(values: Iterable[AnnotationType]) -> list[str]:
    return [value.value for value in values]