import pytest

from lineann.compute import LabelOption
from lineann.coverage import (
    ComputeOptions,
    compute_coverage_summary,
    compute_line_summary,
    line_changed,
    line_uncoverable_or_excluded,
    update_coverage_detail,
    update_coverage_value,
)
from lineann.model import (
    AnnotationType,
    Block,
    BlockAnnotation,
    CodeAnnotation,
    CodeComment,
    CommentLabel,
    FileAnnotation,
    FileDetail,
    FuncAnnotation,
    LineAnnotation,
    MissingAnnotationError,
    ProjectAnnotation,
    Remark,
)
from lineann.profile import CoverageMode, Detail, Item


def _project(with_funcs=False):
    blocks = {
        "1:1-2:2": BlockAnnotation(block=Block(1, 1, 2, 2), exec_labels={"": True}),
        "3:1-3:5": BlockAnnotation(block=Block(3, 1, 3, 5), exec_labels={}),
        "5:1-6:1": BlockAnnotation(block=Block(5, 1, 6, 1), exec_labels={}),
    }
    types = {AnnotationType.BLOCKS: True}
    funcs = None
    if with_funcs:
        funcs = {
            "1:1-3:5": FuncAnnotation(block=Block(1, 1, 3, 5), name="covered"),
            "5:1-6:1": FuncAnnotation(
                block=Block(5, 1, 6, 1),
                name="skipped",
                code=CodeAnnotation(comments={CommentLabel.NOCOV: CodeComment()}),
            ),
        }
        types[AnnotationType.FILE_FUNCS] = True
        types[AnnotationType.FUNC_CODE_COMMENTS] = True
    file = FileAnnotation(blocks=blocks, lines={4: LineAnnotation(empty=True)}, funcs=funcs)
    return ProjectAnnotation(files={"a.go": file}, types=types)


def test_line_summary_counts_and_formats():
    summary = compute_line_summary(_project())
    assert list(summary) == [""]
    item = summary[""]
    assert item.details[CoverageMode.LINE] is item.detail
    assert CoverageMode.FUNC not in item.details
    total = item.detail.total
    assert total.covered < total.total
    assert total.value == f"{total.value_num:.4f}"
    assert 0 < total.value_num < 1


def test_line_summary_empty_incremental_is_full():
    summary = compute_line_summary(_project())
    incremental = summary[""].detail.incrimental
    assert incremental.total == 0
    assert incremental.value_num == 1
    assert incremental.value == "1.0000"


def test_func_summary_excludes_commented_funcs():
    project = _project(with_funcs=True)
    line_only = compute_line_summary(_project(with_funcs=False))
    summary = compute_coverage_summary(project, ComputeOptions())
    func_detail = summary[""].details[CoverageMode.FUNC]
    assert func_detail.total.total == 1
    assert func_detail.total.covered == 1
    # lines of the excluded function are not counted
    assert summary[""].detail.total.total == line_only[""].detail.total.total - 2
    lines = project.files["a.go"].lines
    assert lines[5].code.excluded and lines[6].code.excluded


def test_func_summary_requires_comment_annotation():
    with pytest.raises(MissingAnnotationError):
        compute_coverage_summary(_project(), ComputeOptions())


def test_display_name_and_uncovered_list():
    options = ComputeOptions(
        label_options={"": LabelOption(display_name="ALL")},
        disable_func=True,
        need_uncovered_list=True,
    )
    summary = compute_coverage_summary(_project(), options)
    assert list(summary) == ["ALL"]
    uncovered = summary["ALL"].detail.total.uncovered_list
    assert [(u.file, u.line) for u in uncovered] == [("a.go", 3), ("a.go", 5), ("a.go", 6)] or sorted(
        (u.file, u.line) for u in uncovered
    ) == [("a.go", 3), ("a.go", 5), ("a.go", 6)]
    assert len(uncovered) == summary["ALL"].detail.total.total - summary["ALL"].detail.total.covered


def test_update_coverage_value_zero_total_is_one():
    detail = Detail(total=Item(covered=0, total=0))
    update_coverage_value(detail)
    assert detail.total.value_num == 1
    assert detail.total.value == "1.0000"
    assert detail.incrimental is None


def test_update_coverage_value_full_and_empty():
    detail = Detail(total=Item(covered=3, total=3), incrimental=Item(covered=0, total=3))
    update_coverage_value(detail)
    assert detail.total.value_num == 1
    assert detail.incrimental.value_num == 0
    assert detail.incrimental.value == "0.0000"


def test_update_coverage_detail_creates_and_counts():
    detail = update_coverage_detail("", True, True, None, False, "a.go", 1, "")
    detail = update_coverage_detail("", False, True, detail, True, "a.go", 2, "fn")
    detail = update_coverage_detail("", False, False, detail, True, "a.go", 3, "")
    assert detail.total.total == 3
    assert detail.total.covered == 1
    assert detail.incrimental.total == 2
    assert detail.incrimental.covered == 1
    assert [u.line for u in detail.total.uncovered_list] == [2, 3]
    assert [u.func for u in detail.incrimental.uncovered_list] == ["fn"]


def test_update_coverage_detail_no_list_without_file():
    detail = update_coverage_detail("", False, False, None, True, "", 7, "")
    assert detail.total.uncovered_list is None
    assert detail.total.total == 1


@pytest.mark.parametrize(
    "file_data, line_data, expected",
    [
        (FileAnnotation(change_detail=FileDetail(is_new=True)), None, True),
        (FileAnnotation(), LineAnnotation(changed=True), True),
        (None, LineAnnotation(), False),
        (None, None, False),
    ],
)
def test_line_changed(file_data, line_data, expected):
    assert line_changed(file_data, line_data) is expected


@pytest.mark.parametrize(
    "line, expected",
    [
        (LineAnnotation(uncoverable=True), True),
        (LineAnnotation(code=CodeAnnotation(excluded=True)), True),
        (LineAnnotation(remark=Remark(excluded=True)), True),
        (LineAnnotation(remark=Remark(excluded=False), code=CodeAnnotation()), False),
    ],
)
def test_line_uncoverable_or_excluded(line, expected):
    assert line_uncoverable_or_excluded(line) is expected