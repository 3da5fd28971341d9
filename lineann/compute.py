"""Derivation of line and function annotations from blocks, functions and labels."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional

from lineann.model import (
    AnnotationType,
    Block,
    FileAnnotation,
    FuncAnnotation,
    LineAnnotation,
    ProjectAnnotation,
)


def _files(project: ProjectAnnotation) -> list[FileAnnotation]:
    return list((project.files or {}).values())


def _ensure_lines(file: FileAnnotation) -> dict[int, LineAnnotation]:
    if file.lines is None:
        file.lines = {}
    return file.lines


def _ensure_funcs(file: FileAnnotation) -> dict[str, FuncAnnotation]:
    if file.funcs is None:
        file.funcs = {}
    return file.funcs


def _assign_line_ids(file: FileAnnotation, mapping: Mapping[int, str], attr: str) -> None:
    lines = _ensure_lines(file)
    for line_num, ident in mapping.items():
        ann = lines.get(line_num)
        if ann is None:
            ann = LineAnnotation()
            lines[line_num] = ann
        setattr(ann, attr, ident)


def ensure_block_id_for_line(project: ProjectAnnotation) -> None:
    if project.has(AnnotationType.LINE_BLOCK_ID):
        return
    block_id_for_line(project)


def block_id_for_line(project: ProjectAnnotation) -> None:
    """Give every line covered by a block that block's id.

    Where blocks overlap, the block that sorts first keeps the line.
    """
    project.require(AnnotationType.LINE_BLOCK_ID.value, AnnotationType.BLOCKS)

    for file in _files(project):
        line_mapping: dict[int, str] = {}
        line_to_block: dict[int, Block] = {}
        for block_id, block_annotation in (file.blocks or {}).items():
            block = block_annotation.block
            for line_num in range(block.start_line, block.end_line + 1):
                prev = line_to_block.get(line_num)
                if prev is not None and prev.before(block):
                    continue
                line_to_block[line_num] = block
                line_mapping[line_num] = block_id
        _assign_line_ids(file, line_mapping, "block_id")

    project.mark(AnnotationType.LINE_BLOCK_ID)


def ensure_func_id_for_line(project: ProjectAnnotation) -> None:
    if project.has(AnnotationType.LINE_FUNC_ID):
        return
    func_id_for_line(project)


def func_id_for_line(project: ProjectAnnotation) -> None:
    """Give every line inside a function that function's id.

    Where functions nest, the function that sorts last keeps the line.
    """
    project.require(AnnotationType.LINE_FUNC_ID.value, AnnotationType.FILE_FUNCS)

    for file in _files(project):
        line_mapping: dict[int, str] = {}
        line_to_block: dict[int, Block] = {}
        for func_id, fn in (file.funcs or {}).items():
            block = fn.block
            for line_num in range(block.start_line, block.end_line + 1):
                prev = line_to_block.get(line_num)
                if prev is not None and prev.after(block):
                    continue
                line_to_block[line_num] = block
                line_mapping[line_num] = func_id
        _assign_line_ids(file, line_mapping, "func_id")

    project.mark(AnnotationType.LINE_FUNC_ID)


def ensure_exec_labels_block_to_line(project: ProjectAnnotation) -> None:
    if project.has(AnnotationType.LINE_EXEC_LABELS):
        return
    ensure_block_id_for_line(project)
    exec_labels_block_to_line(project)


def exec_labels_block_to_line(project: ProjectAnnotation) -> None:
    """Copy the executed labels of each block onto the lines it owns."""
    project.require(AnnotationType.LINE_EXEC_LABELS.value, AnnotationType.LINE_BLOCK_ID)
    for file in _files(project):
        blocks = file.blocks or {}
        for line in (file.lines or {}).values():
            block = blocks.get(line.block_id)
            if block is None or not block.exec_labels:
                continue
            if line.exec_labels is None:
                line.exec_labels = {}
            for label, value in block.exec_labels.items():
                if value:
                    line.exec_labels[label] = True
    project.mark(AnnotationType.LINE_EXEC_LABELS)


def _line_sets_to_func(project: ProjectAnnotation, attr: str) -> None:
    for file in _files(project):
        func_sets: dict[str, set[str]] = {}
        for line in (file.lines or {}).values():
            if not line.func_id:
                continue
            labels = func_sets.setdefault(line.func_id, set())
            labels.update(label for label, value in (getattr(line, attr) or {}).items() if value)

        funcs = _ensure_funcs(file)
        for func_id, labels in func_sets.items():
            fn = funcs.get(func_id)
            if fn is None:
                fn = FuncAnnotation()
                funcs[func_id] = fn
            target = getattr(fn, attr)
            if target is None:
                target = {}
                setattr(fn, attr, target)
            for label in labels:
                target[label] = True


def exec_labels_line_to_func(project: ProjectAnnotation) -> None:
    """Collect the executed labels of each function's lines onto the function."""
    _line_sets_to_func(project, "exec_labels")
    project.mark(AnnotationType.FUNC_EXEC_LABELS)


def labels_line_to_func(project: ProjectAnnotation) -> None:
    """Collect the labels of each function's lines onto the function."""
    _line_sets_to_func(project, "labels")
    project.mark(AnnotationType.FUNC_LABELS)


def labels_on_the_fly(project: ProjectAnnotation) -> None:
    """Derive function labels and executed labels from the lines."""
    exec_labels_line_to_func(project)
    labels_line_to_func(project)


class MatchMode(str, Enum):
    EXACT = ""
    ANY = "any"


@dataclass
class LabelOption:
    display_name: str = ""
    alias: set[str] = field(default_factory=set)
    match_mode: MatchMode = MatchMode.EXACT


def _collect_mark_labels(project: ProjectAnnotation) -> dict[str, bool]:
    labels: dict[str, bool] = {}
    for file in _files(project):
        for line in (file.lines or {}).values():
            for label, value in (line.labels or {}).items():
                if label and value:
                    labels[label] = True
    return labels


def _has_label_mark(
    labels: Optional[Mapping[str, bool]], label: str, option: Optional[LabelOption]
) -> bool:
    if label == "":
        return True
    labels = labels or {}
    if option is not None and option.alias:
        return any(labels.get(alias, False) for alias in option.alias)
    return labels.get(label, False)


def _has_exec_label(
    exec_labels: Optional[Mapping[str, bool]], label: str, option: Optional[LabelOption]
) -> bool:
    exec_labels = exec_labels or {}
    if option is not None and option.match_mode != MatchMode.EXACT:
        if option.match_mode == MatchMode.ANY:
            return len(exec_labels) > 0
        return False
    if option is not None and option.alias:
        return any(exec_labels.get(alias, False) for alias in option.alias)
    return exec_labels.get(label, False)


def ensure_coverage_labels_for_line(
    project: ProjectAnnotation, label_options: Optional[Mapping[str, LabelOption]]
) -> None:
    if project.has(AnnotationType.LINE_COVERAGE_LABELS):
        return
    ensure_exec_labels_block_to_line(project)
    coverage_labels_for_line(project, label_options)


def coverage_labels_for_line(
    project: ProjectAnnotation, label_options: Optional[Mapping[str, LabelOption]]
) -> None:
    """Record, for each label a line is marked with, whether it was executed.

    The empty label marks every line.
    """
    project.require(AnnotationType.LINE_COVERAGE_LABELS.value, AnnotationType.LINE_EXEC_LABELS)
    options = label_options or {}

    labels = _collect_mark_labels(project)
    labels[""] = True
    for label in options:
        labels[label] = True

    for file in _files(project):
        for line in (file.lines or {}).values():
            for label in labels:
                option = options.get(label)
                if not _has_label_mark(line.labels, label, option):
                    continue
                if line.coverage_labels is None:
                    line.coverage_labels = {}
                line.coverage_labels[label] = _has_exec_label(line.exec_labels, label, option)

    project.mark(AnnotationType.LINE_COVERAGE_LABELS)


def ensure_coverage_labels_line_to_func(project: ProjectAnnotation) -> None:
    if project.has(AnnotationType.FUNC_COVERAGE_LABELS):
        return
    ensure_func_id_for_line(project)
    ensure_coverage_labels_for_line(project, None)
    coverage_labels_line_to_func(project)


def coverage_labels_line_to_func(project: ProjectAnnotation) -> None:
    """A function is covered for a label if any of its lines is."""
    project.require(
        AnnotationType.FUNC_COVERAGE_LABELS.value,
        AnnotationType.LINE_FUNC_ID,
        AnnotationType.LINE_COVERAGE_LABELS,
    )
    for file in _files(project):
        func_labels: dict[str, dict[str, bool]] = {}
        for line in (file.lines or {}).values():
            if not line.func_id:
                continue
            labels = func_labels.setdefault(line.func_id, {})
            for label, value in (line.coverage_labels or {}).items():
                labels[label] = labels.get(label, False) or value

        funcs = _ensure_funcs(file)
        for func_id, labels in func_labels.items():
            fn = funcs.get(func_id)
            if fn is None:
                fn = FuncAnnotation()
                funcs[func_id] = fn
            fn.coverage_labels = labels

    project.mark(AnnotationType.FUNC_COVERAGE_LABELS)


def changed_line_to_func(project: ProjectAnnotation) -> None:
    """Mark a function changed if any of its lines changed."""
    for file in _files(project):
        for line in (file.lines or {}).values():
            if not line.func_id or not line.changed:
                continue
            funcs = _ensure_funcs(file)
            fn = funcs.get(line.func_id)
            if fn is None:
                funcs[line.func_id] = FuncAnnotation(changed=True)
            else:
                fn.changed = True
    project.mark(AnnotationType.FUNC_CHANGED)