import pytest

from lineann.exclusion import (
    code_excluded_for_func,
    code_excluded_func_to_line,
    ensure_code_excluded_for_func,
    ensure_code_excluded_func_to_line,
    ensure_uncoverable_for_line,
    first_line_excluded_by_remark,
    line_labels_from_line_comment,
    line_uncoverable,
    uncoverable_for_line,
)
from lineann.model import (
    AnnotationType,
    Block,
    CodeAnnotation,
    CodeComment,
    CommentLabel,
    FileAnnotation,
    FuncAnnotation,
    LineAnnotation,
    MissingAnnotationError,
    ProjectAnnotation,
    Remark,
)


def _func(block, comments=None):
    code = CodeAnnotation(comments=comments) if comments is not None else None
    return FuncAnnotation(block=block, code=code)


def test_code_excluded_for_func_requires_comments_type():
    project = ProjectAnnotation(files={})
    with pytest.raises(MissingAnnotationError):
        code_excluded_for_func(project)


@pytest.mark.parametrize(
    "label, excluded",
    [
        (CommentLabel.NOCOV, True),
        (CommentLabel.UNREACHABLE, True),
        (CommentLabel.DEPRECATED, True),
        (CommentLabel.LABELS, False),
    ],
)
def test_code_excluded_for_func_by_label(label, excluded):
    fn = _func(Block(1, 1, 3, 1), {label: CodeComment()})
    project = ProjectAnnotation(
        files={"a.go": FileAnnotation(funcs={"f": fn})},
        types={AnnotationType.FUNC_CODE_COMMENTS: True},
    )
    code_excluded_for_func(project)
    assert fn.code.excluded is excluded
    assert project.has(AnnotationType.FUNC_CODE_EXCLUDED)


def test_code_excluded_for_func_skips_funcs_without_comments():
    fn = _func(Block(1, 1, 3, 1))
    project = ProjectAnnotation(
        files={"a.go": FileAnnotation(funcs={"f": fn})},
        types={AnnotationType.FUNC_CODE_COMMENTS: True},
    )
    ensure_code_excluded_for_func(project)
    assert fn.code is None


def test_code_excluded_func_to_line_marks_lines():
    fn = FuncAnnotation(block=Block(1, 1, 2, 1), code=CodeAnnotation(excluded=True))
    kept = FuncAnnotation(block=Block(5, 1, 6, 1))
    lines = {
        1: LineAnnotation(func_id="f"),
        2: LineAnnotation(func_id="f"),
        5: LineAnnotation(func_id="g"),
    }
    project = ProjectAnnotation(
        files={"a.go": FileAnnotation(funcs={"f": fn, "g": kept}, lines=lines)},
        types={
            AnnotationType.FUNC_CODE_EXCLUDED: True,
            AnnotationType.LINE_FUNC_ID: True,
            AnnotationType.FILE_FUNCS: True,
        },
    )
    code_excluded_func_to_line(project)
    assert lines[1].code.excluded and lines[2].code.excluded
    assert lines[5].code is None
    assert project.has(AnnotationType.LINE_CODE_EXCLUDED)


def test_code_excluded_func_to_line_requires_types():
    project = ProjectAnnotation(files={}, types={AnnotationType.FUNC_CODE_EXCLUDED: True})
    with pytest.raises(MissingAnnotationError):
        code_excluded_func_to_line(project)


def test_ensure_code_excluded_func_to_line_computes_chain():
    fn = _func(Block(2, 1, 3, 1), {CommentLabel.NOCOV: CodeComment()})
    file = FileAnnotation(funcs={"2:1-3:1": fn})
    project = ProjectAnnotation(
        files={"a.go": file},
        types={AnnotationType.FUNC_CODE_COMMENTS: True, AnnotationType.FILE_FUNCS: True},
    )
    ensure_code_excluded_func_to_line(project)
    assert sorted(file.lines) == [2, 3]
    assert all(line.code.excluded for line in file.lines.values())
    assert project.has(AnnotationType.LINE_FUNC_ID)


@pytest.mark.parametrize(
    "line, expected",
    [
        (LineAnnotation(empty=True, block_id="b"), True),
        (LineAnnotation(block_id=""), True),
        (LineAnnotation(block_id="b"), False),
    ],
)
def test_line_uncoverable(line, expected):
    assert line_uncoverable(line) is expected


def test_uncoverable_for_line_none_project():
    assert uncoverable_for_line(None) is None


def test_uncoverable_for_line_sets_flags():
    lines = {1: LineAnnotation(block_id="b"), 2: LineAnnotation(), 3: LineAnnotation(empty=True)}
    project = ProjectAnnotation(files={"a.go": FileAnnotation(lines=lines)})
    ensure_uncoverable_for_line(project)
    assert [lines[n].uncoverable for n in (1, 2, 3)] == [False, True, True]
    assert project.has(AnnotationType.LINE_UNCOVERABLE)


def test_line_labels_from_line_comment():
    lines = {
        1: LineAnnotation(
            code=CodeAnnotation(
                comments={CommentLabel.LABELS: CodeComment(values=["rc", "Ab"])}
            )
        ),
        2: LineAnnotation(block_id="b"),
        3: LineAnnotation(code=CodeAnnotation(comments={CommentLabel.NOCOV: CodeComment()})),
        4: LineAnnotation(code=CodeAnnotation(comments={CommentLabel.LABELS: CodeComment()})),
    }
    project = ProjectAnnotation(files={"a.go": FileAnnotation(lines=lines)})
    line_labels_from_line_comment(project)
    result = project.files["a.go"].lines
    assert list(result) == [1]
    assert result[1].labels == {"RC": True, "AB": True}


def test_first_line_excluded_by_remark():
    excluded = FuncAnnotation(block=Block(1, 1, 3, 1))
    kept = FuncAnnotation(block=Block(5, 1, 7, 1))
    lines = {
        1: LineAnnotation(remark=Remark(excluded=True)),
        5: LineAnnotation(remark=Remark(excluded=False)),
    }
    project = ProjectAnnotation(
        files={"a.go": FileAnnotation(funcs={"a": excluded, "b": kept}, lines=lines)}
    )
    first_line_excluded_by_remark(project)
    assert excluded.first_line_excluded is True
    assert kept.first_line_excluded is False
    assert project.has(AnnotationType.FIRST_LINE_EXCLUDED)


def test_first_line_excluded_by_remark_skips_when_marked():
    fn = FuncAnnotation(block=Block(1, 1, 3, 1))
    project = ProjectAnnotation(
        files={
            "a.go": FileAnnotation(
                funcs={"a": fn}, lines={1: LineAnnotation(remark=Remark(excluded=True))}
            )
        },
        types={AnnotationType.FIRST_LINE_EXCLUDED: True},
    )
    first_line_excluded_by_remark(project)
    assert fn.first_line_excluded is False