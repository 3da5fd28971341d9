"""Coverage summaries computed from line and function annotations."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Mapping, Optional

from lineann.compute import (
    LabelOption,
    changed_line_to_func,
    ensure_coverage_labels_for_line,
    ensure_coverage_labels_line_to_func,
    labels_on_the_fly,
)
from lineann.exclusion import (
    ensure_code_excluded_for_func,
    ensure_code_excluded_func_to_line,
    uncoverable_for_line,
)
from lineann.model import AnnotationType, FileAnnotation, LineAnnotation, ProjectAnnotation
from lineann.profile import CoverageMode, Detail, Item, Summary, UncoveredItem


@dataclass
class ComputeOptions:
    label_options: dict[str, LabelOption] = field(default_factory=dict)
    disable_func: bool = False
    need_uncovered_list: bool = False


def _div(a: int, b: int) -> float:
    if b == 0:
        return 1.0  # nothing to cover counts as fully covered
    return math.floor(a / b * 10000 + 0.5) / 10000


def update_coverage_value(detail: Detail) -> None:
    """Fill in the ratio and its text for the total and incremental items."""
    for item in (detail.total, detail.incrimental):
        if item is None:
            continue
        item.value_num = _div(item.covered, item.total)
        item.value = f"{item.value_num:.4f}"


def line_changed(file_data: Optional[FileAnnotation], line_data: Optional[LineAnnotation]) -> bool:
    if file_data is not None and file_data.change_detail is not None and file_data.change_detail.is_new:
        return True
    return line_data is not None and line_data.changed


def line_uncoverable_or_excluded(line_data: LineAnnotation) -> bool:
    return (
        line_data.uncoverable
        or (line_data.code is not None and line_data.code.excluded)
        or (line_data.remark is not None and line_data.remark.excluded)
    )


def update_coverage_detail(
    label: str,
    covered: bool,
    changed: bool,
    detail: Optional[Detail],
    need_uncovered_list: bool,
    file: str,
    line_num: int,
    func_name: str,
) -> Detail:
    """Count one line or function into ``detail``, creating it if needed."""
    if detail is None:
        detail = Detail(total=Item(), incrimental=Item())
    detail.total.total += 1
    if changed:
        detail.incrimental.total += 1
    if covered:
        detail.total.covered += 1
        if changed:
            detail.incrimental.covered += 1
    elif need_uncovered_list and file:
        item = UncoveredItem(file=file, line=line_num, func=func_name)
        if detail.total.uncovered_list is None:
            detail.total.uncovered_list = []
        detail.total.uncovered_list.append(item)
        if changed:
            if detail.incrimental.uncovered_list is None:
                detail.incrimental.uncovered_list = []
            detail.incrimental.uncovered_list.append(item)
    return detail


def _add_coverage(
    mapping: dict[str, Detail],
    coverage_labels: Optional[Mapping[str, bool]],
    changed: bool,
    need_uncovered_list: bool,
    file: str,
    line_num: int,
    func_name: str,
) -> None:
    for label, covered in (coverage_labels or {}).items():
        mapping[label] = update_coverage_detail(
            label, covered, changed, mapping.get(label), need_uncovered_list, file, line_num, func_name
        )


def _line_coverage(project: ProjectAnnotation, need_uncovered_list: bool) -> dict[str, Detail]:
    mapping: dict[str, Detail] = {}
    for file, file_data in (project.files or {}).items():
        for line_num, line_data in (file_data.lines or {}).items():
            if line_uncoverable_or_excluded(line_data):
                continue
            _add_coverage(
                mapping,
                line_data.coverage_labels,
                line_changed(file_data, line_data),
                need_uncovered_list,
                file,
                line_num,
                "",
            )
    return mapping


def _func_coverage(project: ProjectAnnotation, need_uncovered_list: bool) -> dict[str, Detail]:
    mapping: dict[str, Detail] = {}
    track_changes = project.has(AnnotationType.CHANGE_DETAIL)
    for file, file_data in (project.files or {}).items():
        for fn in (file_data.funcs or {}).values():
            if (fn.code is not None and fn.code.excluded) or fn.first_line_excluded:
                continue
            changed = False
            if track_changes:
                detail = file_data.change_detail
                changed = (detail is not None and detail.is_new) or fn.changed
            line = fn.block.start_line if fn.block is not None else 0
            _add_coverage(
                mapping, fn.coverage_labels, changed, need_uncovered_list, file, line, fn.name
            )
    return mapping


def compute_coverage_summary(
    project: ProjectAnnotation, options: Optional[ComputeOptions]
) -> dict[str, Summary]:
    """Compute line (and unless disabled, function) coverage for every label."""
    labels_on_the_fly(project)
    opts = options if options is not None else ComputeOptions()
    label_options = opts.label_options or {}

    if not project.has(AnnotationType.FUNC_CHANGED):
        changed_line_to_func(project)

    ensure_coverage_labels_for_line(project, label_options)
    if not opts.disable_func:
        ensure_coverage_labels_line_to_func(project)

    if not project.has(AnnotationType.LINE_UNCOVERABLE):
        uncoverable_for_line(project)
    if not opts.disable_func:
        ensure_code_excluded_for_func(project)
        ensure_code_excluded_func_to_line(project)

    line_coverages = _line_coverage(project, opts.need_uncovered_list)
    func_coverages: dict[str, Detail] = {}
    if not opts.disable_func:
        func_coverages = _func_coverage(project, opts.need_uncovered_list)

    summary: dict[str, Summary] = {}
    for label, line_state in line_coverages.items():
        display_name = label
        option = label_options.get(label)
        if option is not None and option.display_name:
            display_name = option.display_name

        details = {CoverageMode.LINE: line_state}
        func_state = func_coverages.get(label)
        if func_state is not None:
            details[CoverageMode.FUNC] = func_state
        summary[display_name] = Summary(detail=line_state, details=details)

    for item in summary.values():
        if item.detail is not None:
            update_coverage_value(item.detail)
        for detail in item.details.values():
            update_coverage_value(detail)
    return summary


def compute_line_summary(project: ProjectAnnotation) -> dict[str, Summary]:
    """Line coverage summary without function coverage."""
    return compute_coverage_summary(project, ComputeOptions(disable_func=True))