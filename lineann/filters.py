"""Narrowing projects to selected files and to what a line view needs."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Optional

from lineann.exclusion import line_uncoverable
from lineann.model import (
    AnnotationType,
    CodeAnnotation,
    FileAnnotation,
    LineAnnotation,
    ProjectAnnotation,
)
from lineann.options import FilterOptions, ProfileLanguage


def filter_files_with_check(
    project: ProjectAnnotation, check: Optional[Callable[[str], bool]]
) -> None:
    """Keep only the files of ``project`` for which ``check`` returns true."""
    if check is None:
        return
    project.files = {file: value for file, value in (project.files or {}).items() if check(file)}


def make_filter(language: ProfileLanguage | str) -> Optional[FilterOptions]:
    """Return the default file filter for a profile language, or None if there is none."""
    try:
        lang = ProfileLanguage(language)
    except ValueError:
        return None
    if lang.is_go():
        return FilterOptions(
            suffix=[".go"],
            exclude_suffix=["_test.go"],
            exclude=["vendor"],
        )
    if lang == ProfileLanguage.JS:
        return FilterOptions(suffix=[".js", ".ts"], exclude=["node_modules"])
    return None


class MissingDiffFileOption(IntEnum):
    ERROR = 0
    # A file compiled in but unknown to version control, such as a local debug file.
    AS_UNCHANGED = 1


@dataclass
class ReserveOptions:
    changed_only: bool = False
    missing_diff_file_option: MissingDiffFileOption = MissingDiffFileOption.ERROR


def reserve_for_line_view(
    project: Optional[ProjectAnnotation], options: Optional[ReserveOptions]
) -> Optional[ProjectAnnotation]:
    """Build a new project holding only the line data a line view shows.

    Raises ValueError when the project tracks change details but a file has none,
    unless the options say to treat such files as unchanged.
    """
    if project is None:
        return None
    opts = options if options is not None else ReserveOptions()
    tracks_changes = project.has(AnnotationType.CHANGE_DETAIL)

    files: dict[str, FileAnnotation] = {}
    for file, file_data in (project.files or {}).items():
        file_changed = False
        if tracks_changes:
            detail = file_data.change_detail
            if detail is None:
                if opts.missing_diff_file_option != MissingDiffFileOption.AS_UNCHANGED:
                    raise ValueError(f"missing diff: {file}")
            else:
                file_changed = detail.is_new or detail.content_changed
        if opts.changed_only and not file_changed:
            continue

        lines: dict[int, LineAnnotation] = {}
        for line_num, line_data in (file_data.lines or {}).items():
            ann = LineAnnotation(
                old_line=line_data.old_line,
                changed=line_data.changed,
                coverage_labels=line_data.coverage_labels,
                uncoverable=line_uncoverable(line_data),
                remark=line_data.remark,
            )
            if line_data.code is not None and line_data.code.excluded:
                ann.code = CodeAnnotation(excluded=True)
            lines[line_num] = ann
        files[file] = FileAnnotation(lines=lines, change_detail=file_data.change_detail)

    res = ProjectAnnotation(files=files)
    for annotation_type in (
        AnnotationType.LINE_OLD_LINE,
        AnnotationType.LINE_CHANGED,
        AnnotationType.LINE_COVERAGE_LABELS,
        AnnotationType.LINE_UNCOVERABLE,
        AnnotationType.CHANGE_DETAIL,
        AnnotationType.LINE_CODE_EXCLUDED,
    ):
        res.mark(annotation_type)
    if project.has(AnnotationType.LINE_REMARK):
        res.mark(AnnotationType.LINE_REMARK)
    return res