"""Coverage profiles: per-file block statistics, checksums and summaries."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Iterator, Optional

from lineann.model import Block, sort_blocks


@dataclass
class BlockStats:
    """A block together with its execution count per label (including the empty label)."""

    block: Optional[Block] = None
    count: dict[str, int] = field(default_factory=dict)

    def clone(self) -> BlockStats:
        return BlockStats(
            block=None if self.block is None else self.block.clone(),
            count=dict(self.count or {}),
        )

    def merged(self, other: BlockStats) -> BlockStats:
        """Return a copy whose counts are the per-label sums of both stats."""
        res = self.clone()
        for label, value in (other.count or {}).items():
            res.count[label] = res.count.get(label, 0) + value
        return res


def sort_copy(stats: Iterable[BlockStats]) -> list[BlockStats]:
    """Return a new list of the stats sorted by block position."""
    copied = list(stats)
    sort_blocks(copied)
    return copied


@dataclass
class BlockData:
    """A block with arbitrary attached data."""

    block: Optional[Block] = None
    data: Any = None


def _hex_md5(parts: Iterable[str]) -> str:
    digest = hashlib.md5()
    for part in parts:
        digest.update(part.encode())
    return digest.hexdigest()


def _block_parts(block: Block, col_mask: Optional[int] = None) -> list[str]:
    start_col = block.start_col if col_mask is None else block.start_col & col_mask
    return [
        str(block.start_line),
        str(start_col),
        str(block.end_line),
        str(block.end_col),
    ]


class BinaryProfile(dict):
    """Mapping of package file to the block statistics collected for it."""

    def iter_blocks(self) -> Iterator[tuple[str, BlockStats]]:
        for pkg_file, blocks in self.items():
            for data in blocks:
                yield pkg_file, data

    def labels(self) -> list[str]:
        """Return every label seen in any block, sorted."""
        return sorted({label for _, data in self.iter_blocks() for label in data.count or {}})

    def clone(self) -> BinaryProfile:
        return BinaryProfile(
            {pkg_file: [stats.clone() for stats in blocks] for pkg_file, blocks in self.items()}
        )

    def merge_same_load(self, other: BinaryProfile) -> None:
        """Add the counts of ``other`` into this profile, block by block.

        Both profiles must share the same static structure; compare their
        static checksums first.
        """
        for pkg_file, blocks_a in self.items():
            blocks_b = other.get(pkg_file) or []
            if len(blocks_b) != len(blocks_a):
                raise ValueError(
                    f"inconsistent blocks at file: {pkg_file}, "
                    f"want {len(blocks_a)} blocks, actual {len(blocks_b)}"
                )
            for block_a, block_b in zip(blocks_a, blocks_b):
                if block_a.count is None:
                    block_a.count = {}
                for label, value in (block_b.count or {}).items():
                    block_a.count[label] = block_a.count.get(label, 0) + value

    def _sorted_pairs(self) -> list[tuple[str, list[BlockStats]]]:
        return sorted(
            ((pkg_file, sort_copy(blocks)) for pkg_file, blocks in self.items()),
            key=lambda pair: pair[0],
        )

    def _structure_parts(self, col_mask: Optional[int], with_counts: bool) -> Iterator[str]:
        pairs = self._sorted_pairs()
        yield str(len(pairs))
        for pkg_file, blocks in pairs:
            yield pkg_file
            yield str(len(blocks))
            for stats in blocks:
                yield from _block_parts(stats.block, col_mask)
                if with_counts:
                    for label, value in sorted((stats.count or {}).items()):
                        yield label
                        yield str(int(value))

    def static_checksum(self) -> str:
        """Checksum of the block layout only, ignoring counters."""
        return _hex_md5(self._structure_parts(None, False))

    def static_checksum_col8bits(self) -> str:
        """Like static_checksum, keeping only the low 8 bits of each start column."""
        return _hex_md5(self._structure_parts(0xFF, False))

    def checksum(self) -> str:
        """Checksum of the block layout and every label count."""
        return _hex_md5(self._structure_parts(None, True))

    def static_file_checksum(self) -> dict[str, str]:
        """Block layout checksum of each file."""
        return {
            pkg_file: _hex_md5(
                part for stats in sort_copy(blocks) for part in _block_parts(stats.block)
            )
            for pkg_file, blocks in self.items()
        }

    def to_block_profile(self) -> BlockProfile:
        return BlockProfile(
            {
                pkg_file: [BlockData(block=stats.block, data=stats.count) for stats in blocks]
                for pkg_file, blocks in self.items()
            }
        )

    def sort_all(self) -> None:
        for blocks in self.values():
            sort_blocks(blocks)


class BlockProfile(dict):
    """Mapping of package file to blocks carrying arbitrary data."""

    def iter_blocks(self) -> Iterator[tuple[str, BlockData]]:
        for pkg_file, blocks in self.items():
            for data in blocks:
                yield pkg_file, data

    def append(self, pkg_file: str, data: BlockData) -> None:
        self.setdefault(pkg_file, []).append(data)

    def sort_all(self) -> None:
        for blocks in self.values():
            sort_blocks(blocks)

    def block_mapping(self) -> dict[str, dict[Block, BlockData]]:
        """Index the data of each file by its block."""
        return {
            pkg_file: {data.block: data for data in blocks}
            for pkg_file, blocks in self.items()
        }

    def left_join(
        self,
        other: BlockProfile,
        joint: Callable[[Any, Any], tuple[Any, bool]],
    ) -> BlockProfile:
        """Join blocks of this profile with the same blocks of ``other``.

        ``joint`` receives both data values and returns ``(result, ok)``;
        blocks missing from ``other`` or rejected by ``joint`` are dropped.
        """
        res = BlockProfile()
        mapping = other.block_mapping()
        for pkg_file, blocks in self.items():
            file_mapping = mapping.get(pkg_file, {})
            joined = []
            for x in blocks:
                y = file_mapping.get(x.block)
                if y is None:
                    continue
                result, ok = joint(x.data, y.data)
                if not ok:
                    continue
                joined.append(BlockData(block=x.block, data=result))
            res[pkg_file] = joined
        return res


class CoverageMode(str, Enum):
    LINE = "line"
    BLOCK = "block"
    STMT = "stmt"
    FUNC = "func"
    FILE = "file"
    PACKAGE = "package"


@dataclass
class UncoveredItem:
    file: str = ""
    line: int = 0
    func: str = ""


@dataclass
class Item:
    value: str = ""
    value_num: float = 0.0
    passed: bool = False
    total: int = 0
    covered: int = 0
    threshold: str = ""
    uncovered_list: Optional[list[UncoveredItem]] = None


@dataclass
class Detail:
    total: Optional[Item] = None
    # Serialized under this spelling; ``incremental`` is the corrected field.
    incrimental: Optional[Item] = None
    incremental: Optional[Item] = None


@dataclass
class Summary:
    """The default coverage detail plus details by mode."""

    detail: Optional[Detail] = None
    details: dict[CoverageMode, Detail] = field(default_factory=dict)