"""
Tests for parsers/validator.py.

Each candidate task line that fails the strict grammar gets exactly one
diagnostic, classified in a fixed order; results are merged with the
parser's diagnostics without duplicates.
"""

import sys
from pathlib import Path

# Add src to path so imports work without installation
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from models.diagnostics import (
    DUPLICATE_TASK_ID,
    INVALID_STATUS_SYMBOL,
    INVALID_TASK_ID,
    MALFORMED_TASK_LINE,
    MISSING_FORMAT_HEADER,
    MISSING_TASK_ID,
    NO_TASKS,
)
from parsers.validator import validate_plan

H = "<!-- long-term-plan:format=v1 -->"


def _doc(*lines: str) -> str:
    return "\n".join([H, "", "# T", "", *lines]) + "\n"


def _codes(diagnostics):
    return [d.code for d in diagnostics]


class TestValidDocuments:
    def test_clean(self):
        result = validate_plan(_doc("- [ ] A <!-- long-term-plan:id=t_a -->"))
        assert result.ok
        assert result.errors == []
        assert result.warnings == []

    def test_no_tasks_warning_once(self):
        result = validate_plan(_doc())
        assert result.ok
        assert _codes(result.warnings) == [NO_TASKS]

    def test_body_lines_are_not_candidates(self):
        result = validate_plan(_doc(
            "- [ ] A <!-- long-term-plan:id=t_a -->",
            "  > - [ ] not a task",
        ))
        assert result.ok


class TestCandidateClassification:
    @pytest.mark.parametrize("line, code", [
        ("- [x] A <!-- long-term-plan:id=t_a -->", INVALID_STATUS_SYMBOL),
        ("- [x] A", INVALID_STATUS_SYMBOL),
        ("- [ ] A", MISSING_TASK_ID),
        ("- [ ] A <!-- long-term-plan:id=a.b -->", MISSING_TASK_ID),
        ("- [ ] A <!-- long-term-plan:id=_a -->", INVALID_TASK_ID),
        ("- [ ] A <!-- long-term-plan:id=" + "x" * 129 + " -->", INVALID_TASK_ID),
        ("-  [ ] A <!-- long-term-plan:id=t_a -->", MALFORMED_TASK_LINE),
        ("\t- [ ] A <!-- long-term-plan:id=t_a -->", MALFORMED_TASK_LINE),
        ("- [ ] A <!-- x --> <!-- long-term-plan:id=t_a -->", MALFORMED_TASK_LINE),
    ])
    def test_single_diagnostic(self, line, code):
        result = validate_plan(_doc(line))
        assert _codes(result.errors) == [code]
        assert result.errors[0].line == 4

    def test_reported_line_is_one_based_in_dict(self):
        result = validate_plan(_doc("- [ ] A"))
        assert result.errors[0].to_dict()["line"] == 5

    def test_every_bad_line_reported(self):
        result = validate_plan(_doc("- [ ] A", "- [?] B <!-- long-term-plan:id=t_b -->"))
        assert _codes(result.errors) == [MISSING_TASK_ID, INVALID_STATUS_SYMBOL]


class TestMergedDiagnostics:
    def test_missing_header_reported_once(self):
        result = validate_plan("# T\n- [ ] A <!-- long-term-plan:id=t_a -->\n")
        assert _codes(result.errors) == [MISSING_FORMAT_HEADER]
        assert result.errors[0].line is None

    def test_duplicate_reported_once(self):
        result = validate_plan(_doc(
            "- [ ] A <!-- long-term-plan:id=t_x -->",
            "- [ ] B <!-- long-term-plan:id=t_x -->",
        ))
        assert _codes(result.errors) == [DUPLICATE_TASK_ID]
        assert result.errors[0].line == 5

    def test_no_tasks_needs_header(self):
        result = validate_plan("# T\n")
        assert _codes(result.errors) == [MISSING_FORMAT_HEADER]
        assert result.warnings == []

    def test_crlf_document(self):
        text = _doc("- [ ] A <!-- long-term-plan:id=t_a -->", "- [ ] B").replace("\n", "\r\n")
        result = validate_plan(text)
        assert _codes(result.errors) == [MISSING_TASK_ID]
        assert result.errors[0].line == 5
