import pytest

from src.sem_copilot.apa_table import (
    ApaTable,
    parse_csv_table,
    render_markdown_table,
    select_visible_columns,
    toggle_hidden_column,
)


def test_hidden_column_is_removed_from_header_and_body():
    header, body = parse_csv_table("A,B\n1,2")
    assert select_visible_columns(header, body, ["A"]) == (["B"], [["2"]])


def test_parse_trims_cells_and_blank_text_is_empty():
    assert parse_csv_table(" X , Y \n 1 , 2 ") == (["X", "Y"], [["1", "2"]])
    assert parse_csv_table("   ") == ([], [])


def test_short_rows_render_empty_cells():
    header, body = parse_csv_table("A,B,C\n1")
    assert select_visible_columns(header, body, []) == (["A", "B", "C"], [["1", "", ""]])


def test_toggle_hidden_column_adds_and_removes():
    hidden = toggle_hidden_column([], "CR")
    assert hidden == ["CR"]
    assert toggle_hidden_column(hidden, "CR") == []


def test_markdown_layout():
    text = render_markdown_table("Table 1\nResults", ["B"], [["2"]], "Note. x")
    assert text == "**Table 1**  \n*Results*\n\n| B |\n| --- |\n| 2 |\n\n*Note. x*\n"


def test_table_applies_hidden_columns_to_markdown():
    table = ApaTable.from_csv("Table 2\nLoadings", "Item, Loading, SE\nL1, .71, .04")
    table.toggle_column("SE")
    markdown = table.to_markdown()
    assert "| Item | Loading |" in markdown
    assert "SE" not in markdown


def test_pdf_export_produces_pdf_bytes():
    pytest.importorskip("reportlab")
    table = ApaTable.from_csv("Table 1\nReliability & <Validity>", "A,B\n1,2", "Note. AVE > .50", ["A"])
    data = table.to_pdf()
    assert data.startswith(b"%PDF")


def test_pdf_export_handles_empty_table():
    pytest.importorskip("reportlab")
    assert ApaTable.from_csv("", "").to_pdf().startswith(b"%PDF")
