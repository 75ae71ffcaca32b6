from __future__ import annotations

from gratmap.sheet.parser import parse_delimited


def test_simple_rows():
    assert parse_delimited("a,b,c\n1,2,3") == [["a", "b", "c"], ["1", "2", "3"]]


def test_quoted_delimiter_and_escaped_quote():
    grid = parse_delimited('"R$ 1,00","He said ""ok"""\n')
    assert grid == [["R$ 1,00", 'He said "ok"']]


def test_quoted_line_break_stays_in_cell():
    grid = parse_delimited('Mapa,"Ult Dia\nEvento",Valor\n1,2,3\n')
    assert grid[0] == ["Mapa", "Ult Dia\nEvento", "Valor"]
    assert len(grid) == 2


def test_crlf_is_one_row_break():
    assert parse_delimited("a,b\r\nc,d\r\n") == [["a", "b"], ["c", "d"]]


def test_lone_cr_breaks_row():
    assert parse_delimited("a\rb") == [["a"], ["b"]]


def test_cells_are_trimmed():
    assert parse_delimited("  a , b  \n") == [["a", "b"]]


def test_empty_lines_are_not_emitted():
    assert parse_delimited("a\n\n\nb\n") == [["a"], ["b"]]


def test_row_of_empty_cells_is_kept():
    # the delimiter makes the row non-empty even when every cell is blank
    assert parse_delimited(",,\nx") == [["", "", ""], ["x"]]


def test_empty_input():
    assert parse_delimited("") == []


def test_unbalanced_quote_never_raises():
    grid = parse_delimited('a,"unterminated\nb,c\n')
    # everything after the opening quote is literal text of one cell
    assert grid == [["a", "unterminated\nb,c"]]


def test_custom_delimiter():
    assert parse_delimited("a;b;'c;d'", delimiter=";", quote="'") == [["a", "b", "c;d"]]


def test_reparsing_rendered_grid_is_stable(sample_csv_text):
    grid = parse_delimited(sample_csv_text)

    def render(rows):
        out = []
        for row in rows:
            cells = []
            for c in row:
                cells.append('"' + c.replace('"', '""') + '"' if any(x in c for x in ',"\n') else c)
            out.append(",".join(cells))
        return "\n".join(out)

    assert parse_delimited(render(grid)) == grid


def test_sample_export_shape(sample_csv_text, sheet_grid):
    grid = parse_delimited(sample_csv_text)
    assert len(grid) == 6
    assert grid[3] == sheet_grid[3]
    assert grid[5][18] == "Encaminhado para a 4ª Bda"
