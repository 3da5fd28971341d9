# lineann

`lineann` keeps annotations about a project's source files (per line, per
code block and per function) and combines them into coverage summaries.

An annotation set is a `ProjectAnnotation`: a mapping of relative file names
to `FileAnnotation` objects, plus a record of which kinds of data
(`AnnotationType`) it already holds. Separate sets, such as block layouts
with execution labels, function lists and change details, can be merged into
one, and derived data is then computed step by step. Steps that need a kind
of data the project lacks raise `MissingAnnotationError`.

## Installing

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## Modules

- `lineann.model`: the data model: `Block`, `BlockAnnotation`,
  `LineAnnotation`, `FuncAnnotation`, `FileAnnotation`, `FileDetail`,
  `CodeAnnotation`, `CodeComment`, `Remark`, `ProjectAnnotation` and
  `AnnotationType`, plus `sort_blocks` and `parse_block_id`.
- `lineann.merge`: `merge_annotations`, `merge_annotations_into`, `clone`
  and the per-level merge functions (`merge_file`, `merge_line`, ...).
- `lineann.paths`: `trim_prefix`, `trim_prefix_or_empty`,
  `trim_mod_prefix_or_empty`, and `trim_or_add_prefix_dir`,
  `add_prefix_dir`, `trim_prefix_dir` for re-rooting every file of a project.
- `lineann.options`: `FilterOptions` and `LegacyOptions` suffix/path filters,
  `match_path`, and `ProfileLanguage`.
- `lineann.profile`: `BinaryProfile` of per-block execution counts (with
  `merge_same_load`, `static_checksum`, `checksum`, `static_file_checksum`),
  `BlockProfile` with `left_join`, and the summary types `Summary`, `Detail`,
  `Item`, `UncoveredItem`, `CoverageMode`.
- `lineann.compute`: propagation of block ids and function ids to lines,
  labels and execution labels from blocks to lines and lines to functions,
  and coverage labels per line and per function (`LabelOption`, `MatchMode`).
- `lineann.exclusion`: exclusion through `nocov`, `unreachable` and
  `deprecated` comments, remark-based first-line exclusion, and uncoverable
  lines.
- `lineann.coverage`: `compute_coverage_summary` (with `ComputeOptions`) and
  `compute_line_summary`.
- `lineann.filters`: `filter_files_with_check`, `make_filter` and
  `reserve_for_line_view`.
- `lineann.loaders`: parsing of coverage profile lines (`CovLine`,
  `parse_coverage_block`, `convert_to_binary_profile`), conversion of
  profiles and function lists into annotations, and collection of label
  comments written above functions (`func_comments_from_sources`).

## Example

```python
from lineann.loaders import CovLine, convert_to_binary_profile, binary_profile_to_annotation
from lineann.coverage import compute_line_summary

profile = convert_to_binary_profile([
    CovLine(prefix="example.com/app/main.go:3.10,5.2 1", count=1),
    CovLine(prefix="example.com/app/main.go:7.10,9.2 1", count=0),
])
project = binary_profile_to_annotation("example.com/app", profile)
summary = compute_line_summary(project)
print(summary[""].detail.total.value)  # 0.5000
```

## What it does not do

`lineann` works on data handed to it. It does not parse source code to find
blocks, empty lines or functions, it does not read version-control history to
find changed files or lines, and it does not read profile files from disk:
block statistics, function lists, change details and file contents are all
passed in by the caller. It has no command-line interface.