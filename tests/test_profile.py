import pytest

from lineann.model import Block
from lineann.profile import (
    BinaryProfile,
    BlockData,
    BlockProfile,
    BlockStats,
    CoverageMode,
    Detail,
    Item,
    Summary,
    UncoveredItem,
    sort_copy,
)


def _stats(sl, sc, el, ec, **count):
    return BlockStats(block=Block(sl, sc, el, ec), count=dict(count))


def _profile():
    return BinaryProfile(
        {
            "m/a.go": [_stats(5, 1, 6, 2, x=1), _stats(1, 1, 2, 2, y=3)],
            "m/b.go": [_stats(3, 4, 3, 9, x=0)],
        }
    )


def test_block_stats_clone_is_independent():
    original = _stats(1, 2, 3, 4, a=1)
    copied = original.clone()
    copied.count["a"] = 99
    assert original.count == {"a": 1}
    assert copied.block == original.block


def test_block_stats_merged_adds_counts():
    a = _stats(1, 1, 2, 2, x=1, y=2)
    b = _stats(1, 1, 2, 2, y=3, z=4)
    res = a.merged(b)
    assert res.count == {"x": 1, "y": 5, "z": 4}
    assert a.count == {"x": 1, "y": 2}


def test_sort_copy_leaves_input_untouched():
    items = [_stats(5, 1, 6, 1), _stats(1, 1, 2, 1), _stats(1, 0, 2, 1)]
    result = sort_copy(items)
    assert [s.block.block_id() for s in result] == ["1:0-2:1", "1:1-2:1", "5:1-6:1"]
    assert items[0].block == Block(5, 1, 6, 1)


def test_labels_collects_all():
    assert _profile().labels() == ["x", "y"]


def test_iter_blocks_visits_every_block():
    pairs = list(_profile().iter_blocks())
    assert len(pairs) == 3
    assert {file for file, _ in pairs} == {"m/a.go", "m/b.go"}


def test_clone_is_deep():
    profile = _profile()
    copied = profile.clone()
    copied["m/a.go"][0].count["x"] = 100
    assert profile["m/a.go"][0].count["x"] == 1
    assert copied.checksum() != profile.checksum()
    assert copied.static_checksum() == profile.static_checksum()


def test_merge_same_load_adds_counts():
    a = _profile()
    b = _profile()
    a.merge_same_load(b)
    assert a["m/a.go"][1].count == {"y": 6}
    assert a["m/b.go"][0].count == {"x": 0}


def test_merge_same_load_rejects_mismatch():
    a = _profile()
    b = _profile()
    b["m/a.go"].pop()
    with pytest.raises(ValueError, match="inconsistent blocks at file: m/a.go"):
        a.merge_same_load(b)


def test_static_checksum_ignores_order_and_counts():
    a = _profile()
    b = _profile()
    b["m/a.go"].reverse()
    b["m/b.go"][0].count["x"] = 42
    assert a.static_checksum() == b.static_checksum()
    assert a.checksum() != b.checksum()


def test_checksum_is_order_independent():
    a = _profile()
    b = _profile()
    b["m/a.go"].reverse()
    assert a.checksum() == b.checksum()


def test_static_checksum_changes_with_structure():
    a = _profile()
    b = _profile()
    b["m/b.go"].append(_stats(10, 1, 11, 1))
    assert a.static_checksum() != b.static_checksum()


def test_col8bits_checksum():
    small = BinaryProfile({"f.go": [_stats(1, 3, 2, 2)]})
    large = BinaryProfile({"f.go": [_stats(1, 3 + 256, 2, 2)]})
    assert small.static_checksum_col8bits() == small.static_checksum()
    assert large.static_checksum_col8bits() == small.static_checksum()
    assert large.static_checksum() != small.static_checksum()


def test_static_file_checksum():
    profile = BinaryProfile({"empty.go": [], "f.go": [_stats(1, 1, 2, 2)]})
    sums = profile.static_file_checksum()
    assert sums["empty.go"] == "d41d8cd98f00b204e9800998ecf8427e"
    other = BinaryProfile({"f.go": [_stats(1, 1, 2, 2, x=7)]})
    assert other.static_file_checksum()["f.go"] == sums["f.go"]


def test_to_block_profile():
    bp = _profile().to_block_profile()
    assert isinstance(bp, BlockProfile)
    assert bp["m/b.go"][0].block == Block(3, 4, 3, 9)
    assert bp["m/b.go"][0].data == {"x": 0}


def test_sort_all():
    profile = _profile()
    profile.sort_all()
    assert [s.block.start_line for s in profile["m/a.go"]] == [1, 5]


def test_block_profile_append_and_sort():
    bp = BlockProfile()
    bp.append("f.go", BlockData(Block(4, 1, 5, 1), "b"))
    bp.append("f.go", BlockData(Block(2, 1, 3, 1), "a"))
    bp.sort_all()
    assert [d.data for d in bp["f.go"]] == ["a", "b"]
    assert [f for f, _ in bp.iter_blocks()] == ["f.go", "f.go"]


def test_block_mapping():
    bp = BlockProfile({"f.go": [BlockData(Block(1, 1, 2, 2), "v")]})
    assert bp.block_mapping()["f.go"][Block(1, 1, 2, 2)].data == "v"


def test_left_join():
    left = BlockProfile(
        {
            "f.go": [
                BlockData(Block(1, 1, 2, 2), 1),
                BlockData(Block(3, 1, 4, 2), 2),
                BlockData(Block(5, 1, 6, 2), 3),
            ],
            "g.go": [BlockData(Block(1, 1, 1, 5), 4)],
        }
    )
    right = BlockProfile(
        {
            "f.go": [
                BlockData(Block(1, 1, 2, 2), 10),
                BlockData(Block(3, 1, 4, 2), 20),
            ]
        }
    )
    res = left.left_join(right, lambda a, b: (a + b, a != 2))
    assert [(d.block.start_line, d.data) for d in res["f.go"]] == [(1, 11)]
    assert res["g.go"] == []


def test_summary_structures():
    item = Item(total=2, covered=1, uncovered_list=[UncoveredItem(file="f.go", line=3)])
    detail = Detail(total=item)
    summary = Summary(detail=detail, details={CoverageMode.LINE: detail})
    assert summary.details[CoverageMode("line")].total.uncovered_list[0].line == 3
    assert summary.detail.incrimental is None