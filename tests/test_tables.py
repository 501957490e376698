# tests/test_tables.py  (scanner, column editor, row sorter)
from mdstars import tables as T
from mdstars.cells import is_github_link
from mdstars.utils import columns as U

DOC = """# Tools

Intro text | not a table
| Name | Github |
| :--- | ---: |
| one | [Link](https://github.com/a/one) |
| two | |

## Next section
| Only | Header |
| --- | --- |

|x|
""".split("\n")


def _cell_counts(lines, table):
    return [len(U.split_row(lines[i])) for i in table.rows]

# ---------- SCANNER ----------

def test_scan_tables_boundaries():
    tables = T.scan_tables(DOC)
    assert [t.start for t in tables] == [3, 9, 12]
    assert tables[0].rows == [3, 4, 5, 6]
    assert tables[0].data_rows == [5, 6]
    assert tables[0].has_data
    assert tables[1].rows == [9, 10]
    assert tables[2].rows == [12] and not tables[2].has_separator
    assert tables[1].has_separator and not tables[1].has_data

def test_scan_tables_heading_and_blank_lines_close_tables():
    lines = ["| a |", "| - |", "## H", "| b |", "", "| c |"]
    tables = T.scan_tables(lines)
    assert [t.rows for t in tables] == [[0, 1], [3], [5]]

def test_scan_tables_is_read_only():
    lines = list(DOC)
    T.scan_tables(lines)
    assert lines == DOC

# ---------- INSERT ----------

def test_insert_column_after_anchor_keeps_cell_counts_aligned():
    lines = list(DOC)
    table = T.scan_tables(lines)[0]
    before = _cell_counts(lines, table)
    github = table.column(lines, *U.GITHUB)
    idx = T.insertion_index(table.header_cells(lines), github)
    touched = T.insert_column(lines, table, idx, "GitHub Stars", ref_index=github)

    assert touched == 4
    assert _cell_counts(lines, table) == [n + 1 for n in before]
    assert lines[3] == "| Name | Github | GitHub Stars |"
    assert lines[4] == "| :--- | ---: | ---: |"
    assert lines[5] == "| one | [Link](https://github.com/a/one) | |"
    assert lines[6] == "| two | | |"
    # everything outside the table is untouched
    outside = [i for i in range(len(DOC)) if i not in table.rows]
    assert [lines[i] for i in outside] == [DOC[i] for i in outside]
    # indices must be resolved again after a structural edit
    assert table.column(lines, *U.STARS) == idx

def test_insertion_index_without_anchor_precedes_trailing_cell():
    cells = U.split_row("| Name | Website |")
    assert T.insertion_index(cells, None) == 3
    assert T.insertion_index(cells, 1) == 2

def test_insert_column_alignment_from_reference():
    for ref, expected in ((":---:", ":---:"), ("---:", "---:"), ("---", "---")):
        lines = ["| A |", f"| {ref} |", "| 1 |"]
        table = T.scan_tables(lines)[0]
        T.insert_column(lines, table, 2, "B", ref_index=1)
        assert lines[1] == f"| {ref} | {expected} |"
        assert lines[0] == "| A | B |"

# ---------- SPLIT ----------

def test_split_column_routes_content_by_predicate():
    lines = [
        "| Name | Link | Note |",
        "| --- | :---: | --- |",
        "| a | [Link](https://github.com/o/a) | x |",
        "| b | [Link](https://a.dev) | y |",
        "| c |  | z |",
    ]
    table = T.scan_tables(lines)[0]
    moved = T.split_column(lines, table, 2, labels=("Website", "Github"), predicate=is_github_link)
    assert moved == 2
    assert lines[0] == "| Name | Website | Github | Note |"
    assert lines[1] == "| --- | :---: | :---: | --- |"
    assert lines[2] == "| a | | [Link](https://github.com/o/a) | x |"
    assert lines[3] == "| b | [Link](https://a.dev) | | y |"
    assert lines[4] == "| c | | | z |"
    assert len({len(U.split_row(l)) for l in lines}) == 1

# ---------- SORT ----------

STAR_TABLE = [
    "before",
    "| Name | GitHub Stars |",
    "| --- | ---: |",
    "| a | 150 |",
    "| b |  |",
    "| c | 300 |",
    "| d | n/a |",
    "| e | 150 |",
    "after",
]

def test_sort_rows_stable_with_nulls_last():
    lines = list(STAR_TABLE)
    table = T.scan_tables(lines)[0]
    assert T.sort_rows(lines, table, 2) is True
    assert [l.split("|")[1].strip() for l in lines[3:8]] == ["c", "a", "e", "b", "d"]
    assert lines[:3] == STAR_TABLE[:3]
    assert lines[-1] == "after"
    assert sorted(lines) == sorted(STAR_TABLE)

def test_sort_rows_reports_noop_and_is_idempotent():
    lines = list(STAR_TABLE)
    table = T.scan_tables(lines)[0]
    T.sort_rows(lines, table, 2)
    once = list(lines)
    assert T.sort_rows(lines, table, 2) is False
    assert lines == once

def test_sort_rows_understands_k_suffix_and_commas():
    lines = ["| N | GitHub Stars |", "|---|---|", "| a | 999 |", "| b | 1.2k |", "| c | 1,100 |"]
    table = T.scan_tables(lines)[0]
    T.sort_rows(lines, table, 2)
    assert [l.split("|")[1].strip() for l in lines[2:]] == ["b", "c", "a"]

def test_star_frame_uses_nan_for_unparseable():
    lines = list(STAR_TABLE)
    frame = T.star_frame(lines, T.scan_tables(lines)[0], 2)
    assert frame["pos"].tolist() == [0, 1, 2, 3, 4]
    assert frame["stars"].isna().tolist() == [False, True, False, True, False]

def test_sort_rows_skips_tables_without_data():
    lines = ["| N | GitHub Stars |", "|---|---|"]
    assert T.sort_rows(lines, T.scan_tables(lines)[0], 2) is False
