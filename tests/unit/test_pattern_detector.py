from __future__ import annotations

from invoice_import.parsing.pattern_detector import (
    CONFIDENCE_THRESHOLD,
    detect_line_item_pattern,
    is_valid_product_code,
    meets_confidence_threshold,
    score_offset,
    try_pattern,
)


def test_threshold_boundary_59_rejected_60_accepted():
    assert CONFIDENCE_THRESHOLD == 60
    assert not meets_confidence_threshold(59)
    assert meets_confidence_threshold(60)


def test_full_standard_row_scores_100(report):
    assert score_offset(report.item_cells(), 0) == 100


def test_row_scoring_55_is_rejected():
    # product code 30 + amounts 25; bad quantity, cost and margin
    cells = ["OP19", "Tire", "", "abc", "10", "0", "0", "10", "xx", "zz", "yy"]
    assert score_offset(cells, 0) == 55
    assert try_pattern(cells, 0) is None


def test_row_scoring_60_is_accepted():
    # product code 30 + quantity 20 + margin 10; bad amounts and cost
    cells = ["OP19", "Tire", "", "1", "a", "0", "0", "10", "b", "50", "c"]
    assert score_offset(cells, 0) == 60
    pattern = try_pattern(cells, 0)
    assert pattern is not None
    assert pattern.confidence == 60


def test_short_row_scores_zero(report):
    assert score_offset(report.item_cells()[:10], 0) == 0


def test_detects_embedded_offset(report):
    cells = ["Invoice Detail Report"] + [""] * 25 + report.item_cells()
    pattern = detect_line_item_pattern(cells)
    assert pattern is not None
    assert pattern.offset == 26
    assert pattern.is_embedded
    assert pattern.product_code_index == 26
    assert pattern.gp_index == 36


def test_detects_report_layout_offset_11(report):
    cells = [""] * 11 + report.item_cells()
    pattern = detect_line_item_pattern(cells)
    assert pattern is not None
    assert pattern.offset == 11


def test_tie_keeps_lower_offset(report):
    cells = report.item_cells() + report.item_cells()
    pattern = detect_line_item_pattern(cells)
    assert pattern is not None
    assert pattern.offset == 0


def test_higher_confidence_wins_over_lower_offset(report):
    weak = ["OP19", "Tire", "", "1", "a", "0", "0", "10", "b", "50", "c"]  # 60
    cells = weak + report.item_cells()  # offset 11 scores 100
    pattern = detect_line_item_pattern(cells)
    assert pattern is not None
    assert pattern.offset == 11
    assert pattern.confidence == 100


def test_restricting_offsets():
    cells = ["OP19", "Tire", "", "1", "10", "0", "0", "10", "5", "50", "5"]
    assert detect_line_item_pattern(cells, offsets=(26,)) is None


def test_product_code_shapes():
    for code in ["OP19", "V86216-2", "SRV-SHOP01", "48-01-091-1", "046240", "ENV-F01"]:
        assert is_valid_product_code(code), code
    for code in ["", "X", "INVOICE", "TOTALS", "Page 2", "Tire 205/55"]:
        assert not is_valid_product_code(code), code
