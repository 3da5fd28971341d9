"""Merging of annotations: later sources fill in what earlier ones lack."""

from __future__ import annotations

from typing import Mapping, MutableMapping, Optional

from lineann.model import (
    AnnotationType,
    BlockAnnotation,
    CodeAnnotation,
    FileAnnotation,
    FuncAnnotation,
    LineAnnotation,
    ProjectAnnotation,
)


def merge_string_set(dst: MutableMapping[str, bool], src: Optional[Mapping[str, bool]]) -> None:
    """Add every key of ``src`` to ``dst`` as present."""
    for key in src or {}:
        dst[key] = True


def merge_block(dst: BlockAnnotation, src: BlockAnnotation) -> None:
    if dst.block is None:
        dst.block = src.block
    if not dst.func_id:
        dst.func_id = src.func_id
    if dst.exec_labels is None:
        dst.exec_labels = {}
    merge_string_set(dst.exec_labels, src.exec_labels)


def merge_blocks(
    dst: MutableMapping[str, BlockAnnotation],
    src: Optional[Mapping[str, BlockAnnotation]],
) -> None:
    for block_id, src_ann in (src or {}).items():
        dst_ann = dst.get(block_id)
        if dst_ann is None:
            dst[block_id] = src_ann
        else:
            merge_block(dst_ann, src_ann)


def merge_code(dst: CodeAnnotation, src: Optional[CodeAnnotation]) -> None:
    """Merge exclusion flags and comments; comments new to ``dst`` are copied."""
    if src is None:
        return
    dst.excluded = dst.excluded or src.excluded

    if dst.comments is None:
        if not src.comments:
            return
        dst.comments = {}
    for prop, comment in (src.comments or {}).items():
        dst_comment = dst.comments.get(prop)
        if dst_comment is None:
            dst.comments[prop] = comment.clone()
            continue
        if not dst_comment.author:
            dst_comment.author = comment.author
        for value in comment.values or []:
            if dst_comment.values is None:
                dst_comment.values = []
            if value not in dst_comment.values:
                dst_comment.values.append(value)


def merge_func(dst: FuncAnnotation, src: FuncAnnotation) -> None:
    if dst.block is None:
        dst.block = src.block
    dst.changed = dst.changed or src.changed
    dst.first_line_excluded = dst.first_line_excluded or src.first_line_excluded

    if dst.labels is None:
        dst.labels = {}
    merge_string_set(dst.labels, src.labels)

    if dst.exec_labels is None:
        dst.exec_labels = {}
    merge_string_set(dst.exec_labels, src.exec_labels)

    if dst.coverage_labels is None:
        dst.coverage_labels = {}
    merge_string_set(dst.coverage_labels, src.coverage_labels)

    if dst.code is None:
        dst.code = src.code
    else:
        merge_code(dst.code, src.code)


def merge_funcs(
    dst: MutableMapping[str, FuncAnnotation],
    src: Optional[Mapping[str, FuncAnnotation]],
) -> None:
    for func_id, src_ann in (src or {}).items():
        dst_ann = dst.get(func_id)
        if dst_ann is None:
            dst[func_id] = src_ann
        else:
            merge_func(dst_ann, src_ann)


def merge_line(dst: LineAnnotation, src: LineAnnotation) -> None:
    dst.changed = dst.changed or src.changed
    dst.empty = dst.empty or src.empty
    if not dst.block_id:
        dst.block_id = src.block_id
    if not dst.func_id:
        dst.func_id = src.func_id

    if dst.labels is None:
        dst.labels = {}
    merge_string_set(dst.labels, src.labels)

    if dst.exec_labels is None:
        dst.exec_labels = {}
    merge_string_set(dst.exec_labels, src.exec_labels)

    if dst.coverage_labels is None:
        dst.coverage_labels = {}
    merge_string_set(dst.coverage_labels, src.coverage_labels)

    # An existing remark is kept as is.
    if dst.remark is None:
        dst.remark = src.remark

    if dst.code is None:
        dst.code = src.code
    else:
        merge_code(dst.code, src.code)


def merge_lines(
    dst: MutableMapping[int, LineAnnotation],
    src: Optional[Mapping[int, LineAnnotation]],
) -> None:
    for line_num, src_ann in (src or {}).items():
        dst_ann = dst.get(line_num)
        if dst_ann is None:
            dst[line_num] = src_ann
        else:
            merge_line(dst_ann, src_ann)


def merge_file(dst: FileAnnotation, src: FileAnnotation) -> None:
    if dst.change_detail is None:
        dst.change_detail = src.change_detail

    if dst.lines is None:
        dst.lines = {}
    merge_lines(dst.lines, src.lines)

    if dst.line_changes is None:
        dst.line_changes = src.line_changes
    if dst.deleted_lines is None:
        dst.deleted_lines = src.deleted_lines

    if dst.blocks is None:
        dst.blocks = {}
    merge_blocks(dst.blocks, src.blocks)

    if dst.funcs is None:
        dst.funcs = {}
    merge_funcs(dst.funcs, src.funcs)


def merge_files(
    dst: MutableMapping[str, FileAnnotation],
    src: Optional[Mapping[str, FileAnnotation]],
) -> None:
    for file, src_ann in (src or {}).items():
        dst_ann = dst.get(file)
        if dst_ann is None:
            dst[file] = src_ann
        else:
            merge_file(dst_ann, src_ann)


def merge_types(
    dst: MutableMapping[AnnotationType, bool],
    src: Optional[Mapping[AnnotationType, bool]],
) -> None:
    for annotation_type in src or {}:
        dst[annotation_type] = True


def merge_annotations_into(
    res: ProjectAnnotation, *annotations: Optional[ProjectAnnotation]
) -> None:
    """Merge every given annotation into ``res``; ``None`` entries are skipped."""
    if res is None:
        raise ValueError("res should not be None")
    for src in annotations:
        if src is None:
            continue
        if res.files is None:
            res.files = {}
        merge_files(res.files, src.files)

        if res.types is None:
            res.types = {}
        merge_types(res.types, src.types)


def merge_annotations(*annotations: Optional[ProjectAnnotation]) -> Optional[ProjectAnnotation]:
    """Merge annotations into a new project; a single one is returned unchanged."""
    if not annotations:
        return None
    if len(annotations) == 1:
        return annotations[0]
    res = ProjectAnnotation(files={}, types={})
    merge_annotations_into(res, *annotations)
    return res


def clone(project: Optional[ProjectAnnotation]) -> Optional[ProjectAnnotation]:
    """Return a new project holding the files and types of ``project``."""
    if project is None:
        return None
    res = ProjectAnnotation(files={}, types={})
    merge_annotations_into(res, project)
    return res