"""
Unit tests for the dashboard adapter.
"""
from datetime import datetime

from castcheck.verification_engine import run_verification, to_dashboard


REPORT_DATE = datetime(2025, 3, 14, 9, 30)


class TestToDashboard:
    """Tests for to_dashboard."""

    def test_header_and_kpis(self, failing_extraction):
        verification = run_verification(failing_extraction)
        dashboard = to_dashboard(failing_extraction, verification, REPORT_DATE)

        assert dashboard.company_name == "SYARIKAT CONTOH BERHAD"
        assert dashboard.financial_year_end == "31 December 2024"
        assert dashboard.report_date == "14 March 2025 09:30"
        assert dashboard.kpi.total_tests == 5
        assert dashboard.kpi.tests_failed == 2
        assert dashboard.kpi.exceptions_found == 2
        assert dashboard.kpi.pass_rate == 60
        assert dashboard.kpi.horizontal_checks == "1/1"

    def test_vertical_casting_rows(self, failing_extraction):
        dashboard = to_dashboard(failing_extraction, run_verification(failing_extraction))

        row = dashboard.vertical_casting[0]
        assert row.components[0].name == "Inventories"
        assert row.components[0].value == "RM 500"
        assert row.calculated == "RM 790"
        assert row.stated == "RM 800"
        assert row.variance == "RM 10"
        assert row.variance_amount == 10
        assert row.status == "fail"

    def test_horizontal_casting_rows(self, clean_extraction):
        dashboard = to_dashboard(clean_extraction, run_verification(clean_extraction))

        row = dashboard.horizontal_casting[0]
        assert row.account == "Property, plant and equipment"
        assert row.additions[0].description == "+ Additions"
        assert row.deductions[0].description == "- Depreciation"
        assert row.deductions[0].value == "RM 50"
        assert row.calculated_closing == "RM 1,150"
        assert row.variance == "RM 0"
        assert row.status == "pass"

    def test_cross_reference_line_item_falls_back_to_description(self, clean_payload):
        from castcheck.schemas.extraction import ExtractionResult

        clean_payload["crossReferences"][0]["statementLineItem"] = ""
        extraction = ExtractionResult.model_validate(clean_payload)
        dashboard = to_dashboard(extraction, run_verification(extraction))

        row = dashboard.cross_reference_checks[0]
        assert row.line_item == "Property, plant and equipment"
        assert row.per_note == "RM 1,250,000"

    def test_exception_rows(self, failing_extraction):
        dashboard = to_dashboard(failing_extraction, run_verification(failing_extraction))

        assert [e.type for e in dashboard.exceptions] == ["Casting Error", "Balance Sheet Imbalance"]
        assert dashboard.exceptions[1].severity == "high"
        assert dashboard.exceptions[1].difference == "RM 50"
        assert dashboard.conclusion_items[0].priority == "high"

    def test_serializes_camel_case(self, failing_extraction):
        dashboard = to_dashboard(failing_extraction, run_verification(failing_extraction))
        data = dashboard.model_dump(by_alias=True)

        assert "conclusionSummary" in data
        assert "horizontalChecks" in data["kpi"]
        assert "varianceAmount" in data["verticalCasting"][0]
        assert "perStatement" in data["exceptions"][0]
