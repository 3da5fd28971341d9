"""Exclusion and coverability of lines and functions, from comments, remarks and blocks."""

from __future__ import annotations

from typing import Mapping, Optional

from lineann.compute import ensure_func_id_for_line
from lineann.model import (
    AnnotationType,
    CodeAnnotation,
    CodeComment,
    CommentLabel,
    FileAnnotation,
    LineAnnotation,
    ProjectAnnotation,
)

_EXCLUDED_LABELS = (
    CommentLabel.DEPRECATED,
    CommentLabel.NOCOV,
    CommentLabel.UNREACHABLE,
)


def _should_be_excluded(comments: Mapping[CommentLabel, CodeComment]) -> bool:
    return any(label in comments for label in _EXCLUDED_LABELS)


def code_excluded_for_func(project: ProjectAnnotation) -> None:
    """Mark functions excluded when their comments carry an excluding label."""
    project.require("func code excluded ", AnnotationType.FUNC_CODE_COMMENTS)
    for file in (project.files or {}).values():
        for fn in (file.funcs or {}).values():
            if fn.code is None or not fn.code.comments:
                continue
            fn.code.excluded = _should_be_excluded(fn.code.comments)
    project.mark(AnnotationType.FUNC_CODE_EXCLUDED)


def ensure_code_excluded_for_func(project: ProjectAnnotation) -> None:
    if project.has(AnnotationType.FUNC_CODE_EXCLUDED):
        return
    code_excluded_for_func(project)


def code_excluded_func_to_line(project: ProjectAnnotation) -> None:
    """Mark every line of an excluded function as excluded."""
    project.require(
        "line code excluded",
        AnnotationType.FUNC_CODE_EXCLUDED,
        AnnotationType.LINE_FUNC_ID,
        AnnotationType.FILE_FUNCS,
    )
    for file in (project.files or {}).values():
        funcs = file.funcs or {}
        for line in (file.lines or {}).values():
            fn = funcs.get(line.func_id)
            if fn is None or fn.code is None or not fn.code.excluded:
                continue
            if line.code is None:
                line.code = CodeAnnotation()
            line.code.excluded = True
    project.mark(AnnotationType.LINE_CODE_EXCLUDED)


def ensure_code_excluded_func_to_line(project: ProjectAnnotation) -> None:
    if project.has(AnnotationType.LINE_CODE_EXCLUDED):
        return
    ensure_code_excluded_for_func(project)
    ensure_func_id_for_line(project)
    code_excluded_func_to_line(project)


def line_uncoverable(line_data: LineAnnotation) -> bool:
    """A line is uncoverable when it is empty or belongs to no block."""
    return line_data.empty or line_data.block_id == ""


def uncoverable_for_line(project: Optional[ProjectAnnotation]) -> None:
    if project is None:
        return
    for file in (project.files or {}).values():
        for line in (file.lines or {}).values():
            line.uncoverable = line_uncoverable(line)
    project.mark(AnnotationType.LINE_UNCOVERABLE)


def ensure_uncoverable_for_line(project: ProjectAnnotation) -> None:
    if project.has(AnnotationType.LINE_UNCOVERABLE):
        return
    uncoverable_for_line(project)


def line_labels_from_line_comment(project: ProjectAnnotation) -> None:
    """Replace each file with only the upper-cased labels taken from ``labels`` comments."""
    files = project.files or {}
    for file, file_ann in list(files.items()):
        lines: dict[int, LineAnnotation] = {}
        for line_num, line_ann in (file_ann.lines or {}).items():
            if line_ann.code is None:
                continue
            comment = (line_ann.code.comments or {}).get(CommentLabel.LABELS)
            if comment is None:
                continue
            labels = {value.upper(): True for value in comment.values or []}
            if not labels:
                continue
            lines[line_num] = LineAnnotation(labels=labels)
        files[file] = FileAnnotation(lines=lines)


def first_line_excluded_by_remark(project: ProjectAnnotation) -> None:
    """Mark a function excluded when the remark on its first line excludes it."""
    if project.has(AnnotationType.FIRST_LINE_EXCLUDED):
        return
    for file in (project.files or {}).values():
        lines = file.lines or {}
        for fn in (file.funcs or {}).values():
            line = lines.get(fn.block.start_line)
            if line is None or line.remark is None:
                continue
            if line.remark.excluded:
                fn.first_line_excluded = True
    project.mark(AnnotationType.FIRST_LINE_EXCLUDED)