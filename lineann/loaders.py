"""Building annotations from coverage profiles, function lists and source comments."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, Optional, Sequence

from lineann.model import (
    AnnotationType,
    Block,
    BlockAnnotation,
    CodeAnnotation,
    CodeComment,
    CommentLabel,
    FileAnnotation,
    FuncAnnotation,
    ProjectAnnotation,
)
from lineann.paths import trim_mod_prefix_or_empty
from lineann.profile import BinaryProfile, BlockStats

_INT64_MAX = (1 << 63) - 1


def block_stats_to_annotation(stats: BlockStats) -> BlockAnnotation:
    """Labels with a positive count become the block's executed labels."""
    labels = {label: True for label, value in (stats.count or {}).items() if value > 0}
    return BlockAnnotation(block=stats.block, exec_labels=labels)


def block_stats_to_annotation_mapping(
    stats_list: Iterable[BlockStats],
) -> dict[str, BlockAnnotation]:
    return {stats.block.block_id(): block_stats_to_annotation(stats) for stats in stats_list}


def _profile_to_annotation(
    profile: Optional[Mapping[str, Sequence[BlockStats]]],
    trim_file: Optional[Callable[[str], str]],
) -> Optional[ProjectAnnotation]:
    if not profile:
        return None
    files: dict[str, FileAnnotation] = {}
    for file, block_stats in profile.items():
        rel_file = trim_file(file) if trim_file is not None else file
        if not rel_file:
            # files outside the main module
            continue
        files[rel_file] = FileAnnotation(blocks=block_stats_to_annotation_mapping(block_stats))
    return ProjectAnnotation(files=files, types={AnnotationType.BLOCKS: True})


def binary_profile_to_annotation(
    mod_path: str, profile: Optional[Mapping[str, Sequence[BlockStats]]]
) -> Optional[ProjectAnnotation]:
    """Convert a profile keyed by package file, keeping only files under ``mod_path``."""
    return _profile_to_annotation(
        profile, lambda file: trim_mod_prefix_or_empty(file, mod_path)
    )


def binary_profile_trimmed_to_annotation(
    profile: Optional[Mapping[str, Sequence[BlockStats]]],
) -> Optional[ProjectAnnotation]:
    """Convert a profile whose file names are already relative."""
    return _profile_to_annotation(profile, None)


def func_info_mapping_to_annotation(
    mapping: Optional[Mapping[str, Sequence[FuncAnnotation]]],
) -> Optional[ProjectAnnotation]:
    """Index each file's functions by block id; functions without a block are dropped."""
    if not mapping:
        return None
    files = {
        file: FileAnnotation(
            funcs={fn.block.block_id(): fn for fn in funcs if fn.block is not None}
        )
        for file, funcs in mapping.items()
    }
    return ProjectAnnotation(files=files, types={AnnotationType.FILE_FUNCS: True})


_LABELS_WITH_VALUES = {
    CommentLabel.LABELS: True,
    CommentLabel.UNREACHABLE: False,
    CommentLabel.NOCOV: False,
    CommentLabel.DEPRECATED: False,
}


def parse_line_comment(line: str) -> tuple[Optional[CommentLabel], str, list[str]]:
    """Parse the text after ``//`` of a comment line.

    Forms: `` unreachable:reason``, `` unreachable(author): reason``,
    `` labels(author): a,b,c``. At least one leading blank is required.
    Returns the label (None when not a recognised label), the author and,
    for labels that take them, the comma separated values.
    """
    if not line or line[0] not in " \t":
        return None, "", []
    line = line.strip()

    par_idx = line.find("(")
    colon_idx = line.find(":")
    space_idx = line.find(" ")

    author = ""
    if par_idx >= 0 and (colon_idx < 0 or par_idx < colon_idx):
        sub_line = line[par_idx + 1 :] if colon_idx < 0 else line[par_idx + 1 : colon_idx]
        par_end_idx = sub_line.find(")")
        if par_end_idx >= 0:
            author = sub_line[:par_end_idx].strip()

    ends = [idx for idx in (par_idx, colon_idx, space_idx) if idx >= 0]
    prop_end = min(ends) if ends else len(line)
    prop_text = line[:prop_end].strip().lower()
    if not prop_text:
        return None, author, []
    try:
        prop = CommentLabel(prop_text)
    except ValueError:
        return None, author, []

    values: list[str] = []
    if _LABELS_WITH_VALUES[prop] and colon_idx >= 0:
        values = [v.strip() for v in line[colon_idx + 1 :].split(",") if v.strip()]
    return prop, author, values


def _slash(path: str) -> str:
    return path.replace(os.sep, "/") if os.sep != "/" else path


def func_comments_from_sources(
    sources: Mapping[str, str | bytes],
    mapping: Mapping[str, Sequence[FuncAnnotation]],
) -> ProjectAnnotation:
    """Collect the label comments written directly above each function.

    ``sources`` maps relative file paths to their content; ``mapping`` gives
    the functions of each file.
    """
    files: dict[str, FileAnnotation] = {}
    for rel_path, content in sources.items():
        rel_file = _slash(rel_path)
        funcs = mapping.get(rel_file)
        if not funcs:
            continue
        text = content.decode() if isinstance(content, (bytes, bytearray)) else content
        lines = text.split("\n")

        func_anns: dict[str, FuncAnnotation] = {}
        for fn in funcs:
            # lines are 1-based; start just above the function
            for i in range(fn.block.start_line - 2, -1, -1):
                stripped = lines[i].strip()
                if not stripped.startswith("//"):
                    break
                prop, author, values = parse_line_comment(stripped[2:])
                if prop is None:
                    continue
                fn_id = fn.block.block_id()
                fn_ann = func_anns.get(fn_id)
                if fn_ann is None:
                    fn_ann = FuncAnnotation(code=CodeAnnotation(comments={}))
                    func_anns[fn_id] = fn_ann
                comment = fn_ann.code.comments.get(prop)
                if comment is None:
                    comment = CodeComment(author=author)
                    fn_ann.code.comments[prop] = comment
                if not comment.author:
                    comment.author = author
                for value in values:
                    if comment.values is None:
                        comment.values = []
                    if value not in comment.values:
                        comment.values.append(value)
        if func_anns:
            files[rel_file] = FileAnnotation(funcs=func_anns)

    return ProjectAnnotation(files=files, types={AnnotationType.FUNC_CODE_COMMENTS: True})


@dataclass
class CovLine:
    """One profile line: the block text before its count, and the count."""

    prefix: str = ""
    count: int = 0


@dataclass
class CoverageBlock:
    """A parsed profile line: ``<file>:<l0>.<c0>,<l1>.<c1> <num_stmts> <count>``."""

    file_name: str = ""
    start_line: int = 0
    start_col: int = 0
    end_line: int = 0
    end_col: int = 0
    num_stmts: int = 0
    count: int = 0

    def _range(self) -> str:
        return f"{self.start_line}.{self.start_col},{self.end_line}.{self.end_col}"

    def format_with_count(self, count: int) -> str:
        return f"{self.file_name}:{self._range()} {self.num_stmts} {count}"

    def __str__(self) -> str:
        return self.format_with_count(self.count)


_BLOCK_RE = re.compile(r"^([^:]+):(\d+)\.(\d+),(\d+)\.(\d+) (\d+) (\d+)", re.ASCII)


def _parse_int(text: str, name: str) -> int:
    value = int(text)
    if value > _INT64_MAX:
        raise ValueError(f"{name}:value out of range: {text}")
    return value


def parse_coverage_block(line: str) -> CoverageBlock:
    """Parse one profile line; raise ValueError if it does not have the expected form."""
    m = _BLOCK_RE.match(line)
    if m is None:
        raise ValueError("invalid line")
    names = ("line0", "col0", "line1", "col1", "num_stmts", "count")
    nums = [_parse_int(m.group(i + 2), name) for i, name in enumerate(names)]
    return CoverageBlock(m.group(1), *nums)


def convert_to_binary_profile(cov_lines: Iterable[CovLine]) -> BinaryProfile:
    """Group profile lines by file as block statistics under the empty label."""
    profile = BinaryProfile()
    for cov_line in cov_lines:
        block = parse_coverage_block(f"{cov_line.prefix} {cov_line.count}")
        stats = BlockStats(
            block=Block(block.start_line, block.start_col, block.end_line, block.end_col),
            count={"": block.count},
        )
        profile.setdefault(block.file_name, []).append(stats)
    return profile