"""
Unit tests for the verification orchestrator.
"""
import random

import pytest

from castcheck.exceptions import InvariantViolationError
from castcheck.schemas.extraction import ExtractionResult, WarningType
from castcheck.verification_engine import (
    ExceptionType,
    Severity,
    VerificationOptions,
    VerificationStatus,
    run_column_verification,
    run_verification,
)
from castcheck.verification_engine import orchestrator
from castcheck.verification_engine.models import CastingVerificationResult


def _casting(label, amounts, total, column=None):
    return {
        "totalLabel": label,
        "totalAmount": total,
        "section": "Notes",
        "componentLabels": [f"{label} {i}" for i in range(len(amounts))],
        "componentAmounts": amounts,
        "columnSource": column,
    }


class TestRunVerification:
    """Tests for run_verification."""

    def test_clean_extraction_passes_everything(self, clean_extraction):
        result = run_verification(clean_extraction)

        assert result.kpi.total_checks == 5
        assert result.kpi.passed == 5
        assert result.kpi.pass_rate == 100
        assert result.exceptions == ()
        assert result.balance_sheet_result is not None
        assert "All 5 checks passed." in result.conclusion_summary
        assert result.verification_method == "deterministic_code"

    def test_failing_extraction(self, failing_extraction):
        result = run_verification(failing_extraction)

        assert result.kpi.total_checks == 5
        assert result.kpi.failed == 2
        assert result.kpi.exceptions_count == 2
        assert result.kpi.high_severity == 1
        assert result.kpi.low_severity == 1
        assert [e.type for e in result.exceptions] == [
            ExceptionType.CASTING_ERROR,
            ExceptionType.BALANCE_SHEET_IMBALANCE,
        ]
        assert result.conclusion_items[0].priority == Severity.HIGH

    def test_casting_failure_scenario(self):
        extraction = ExtractionResult.model_validate(
            {"castingRelationships": [_casting("Total", [500, 290], 800)]}
        )
        result = run_verification(extraction)

        casting = result.casting_results[0]
        assert casting.variance == 10
        assert casting.status == VerificationStatus.FAIL
        assert len(result.exceptions) == 1
        assert result.exceptions[0].severity == Severity.LOW
        assert result.exceptions[0].difference == 10

    def test_balance_sheet_imbalance_scenario(self):
        extraction = ExtractionResult.model_validate({
            "statements": [{
                "statementType": "SOFP",
                "totalAssets": {"current": 1000},
                "totalLiabilities": {"current": 600},
                "totalEquity": {"current": 350},
            }]
        })
        result = run_verification(extraction)

        assert result.balance_sheet_result.calculated_liabilities_plus_equity == 950
        assert result.balance_sheet_result.variance == 50
        assert result.exceptions[0].severity == Severity.HIGH

    def test_no_sofp_leaves_balance_sheet_out(self):
        extraction = ExtractionResult.model_validate(
            {"castingRelationships": [_casting("Total", [1, 2], 3)]}
        )
        result = run_verification(extraction)

        assert result.balance_sheet_result is None
        assert result.kpi.total_checks == 1
        assert all(e.related_check_id != "bs_001" for e in result.exceptions)
        assert "not checked" in result.conclusion_note

    def test_pass_rate_aggregation(self):
        castings = [_casting(f"Total {i}", [100, 100], 200) for i in range(8)]
        castings += [_casting("Short 1", [100, 90], 200), _casting("Short 2", [100], 200)]
        extraction = ExtractionResult.model_validate({"castingRelationships": castings})

        result = run_verification(extraction)

        assert result.kpi.total_checks == 10
        assert result.kpi.passed == 8
        assert result.kpi.failed == 2
        assert result.kpi.pass_rate == 80
        assert result.kpi.exceptions_count == 2

    def test_empty_extraction(self):
        result = run_verification(ExtractionResult())

        assert result.kpi.total_checks == 0
        assert result.kpi.pass_rate == 100
        assert "No casting checks" in result.conclusion_summary

    def test_review_items_follow_extraction_warnings(self):
        extraction = ExtractionResult.model_validate({
            "warnings": [{"type": "POSSIBLE_OCR_ERROR", "location": "Note 7", "confidence": 60}],
            "castingRelationships": [
                _casting("Total", [1, 2], None),
                {"totalLabel": "Odd", "totalAmount": 3, "componentLabels": ["a"], "componentAmounts": [1, 2]},
            ],
            "movements": [{"accountName": "Borrowings", "opening": 10}],
        })
        result = run_verification(extraction)

        types = [w.type for w in result.needs_human_review]
        assert types == [
            WarningType.POSSIBLE_OCR_ERROR,
            WarningType.MISSING_DATA,
            WarningType.CONFLICTING_VALUES,
            WarningType.MISSING_DATA,
        ]
        assert result.kpi.total_checks == 1

    def test_currency_from_extraction(self):
        extraction = ExtractionResult.model_validate({
            "reportingCurrency": "USD",
            "castingRelationships": [_casting("Total", [500, 290], 800)],
        })
        result = run_verification(extraction)

        assert result.currency_symbol == "USD"
        assert "USD 790" in result.exceptions[0].description

    def test_parallel_matches_sequential(self, failing_extraction):
        sequential = run_verification(failing_extraction)
        parallel = run_verification(failing_extraction, VerificationOptions(parallel=True))

        assert parallel.kpi == sequential.kpi
        assert parallel.exceptions == sequential.exceptions
        assert parallel.casting_results == sequential.casting_results

    def test_same_input_same_output(self, failing_extraction):
        first = run_verification(failing_extraction).to_dict()
        second = run_verification(failing_extraction).to_dict()
        first.pop("verified_at")
        second.pop("verified_at")
        assert first == second

    def test_options_from_settings(self, monkeypatch):
        monkeypatch.setenv("CASTCHECK_SEVERITY_HIGH_THRESHOLD", "5")
        monkeypatch.setenv("CASTCHECK_SIGN_AWARE_CROSS_REFERENCES", "false")

        options = VerificationOptions.from_settings()

        assert options.thresholds.high == 5
        assert options.sign_aware_cross_references is False

    def test_settings_apply_without_explicit_options(self, monkeypatch):
        monkeypatch.setenv("CASTCHECK_SEVERITY_MEDIUM_THRESHOLD", "5")
        extraction = ExtractionResult.model_validate(
            {"castingRelationships": [_casting("Total", [500, 290], 800)]}
        )

        result = run_verification(extraction)

        assert result.exceptions[0].severity == Severity.MEDIUM

    def test_mapping_threshold_from_settings(self, monkeypatch):
        monkeypatch.setenv("CASTCHECK_MAPPING_CONFIDENCE_THRESHOLD", "95")
        extraction = ExtractionResult.model_validate({"crossReferences": [{
            "noteRef": "Note 9",
            "noteTotal": 100,
            "statementAmount": 120,
            "mappingConfidence": 90,
        }]})

        result = run_verification(extraction)

        assert result.exceptions[0].type == ExceptionType.REQUIRES_HUMAN_REVIEW

    def test_rejected_records_are_review_items(self, clean_payload):
        clean_payload["movements"].append({"accountName": "Borrowings", "opening": "ten"})

        result = run_verification(ExtractionResult.model_validate(clean_payload))

        assert result.kpi.total_checks == 5
        assert result.needs_human_review[0].location == "movements[1]"

    def test_to_dict_uses_plain_values(self, failing_extraction):
        data = run_verification(failing_extraction).to_dict()
        assert data["exceptions"][0]["type"] == "Casting Error"
        assert data["casting_results"][0]["status"] == "fail"


def _generated_extraction(seed):
    """Extraction mixing exact, off-by-cents, negative, zero and malformed records."""
    rng = random.Random(seed)

    def amount():
        return rng.choice([
            0,
            0.1,
            0.2,
            0.3,
            round(rng.uniform(-1, 1), 2),
            round(rng.uniform(-1_000_000, 1_000_000), 2),
        ])

    def nudge(value):
        return round(value + rng.choice([0, 0, 0, 0.01, -0.4, 1000]), 2)

    castings = []
    for i in range(rng.randint(0, 5)):
        amounts = [amount() for _ in range(rng.randint(0, 4))]
        if amounts and rng.random() < 0.2:
            amounts[rng.randrange(len(amounts))] = None
        n_labels = max(0, len(amounts) + rng.choice([0, 0, 0, 1, -1]))
        total = nudge(sum(a for a in amounts if a is not None))
        castings.append({
            "totalLabel": rng.choice([f"Total {i}", None]),
            "totalAmount": None if rng.random() < 0.1 else total,
            "section": "Notes",
            "componentLabels": [f"Line {n}" for n in range(n_labels)],
            "componentAmounts": amounts,
        })

    movements = []
    for i in range(rng.randint(0, 3)):
        opening = amount()
        additions = [abs(amount()) for _ in range(rng.randint(0, 2))]
        deductions = [abs(amount()) for _ in range(rng.randint(0, 2))]
        closing = nudge(opening + sum(additions) - sum(deductions))
        movements.append({
            "accountName": f"Account {i}",
            "opening": opening,
            "additions": [{"amount": a} for a in additions],
            "deductions": [{"amount": d} for d in deductions],
            "statedClosing": None if rng.random() < 0.1 else closing,
        })

    cross_references = []
    for i in range(rng.randint(0, 4)):
        note = amount()
        cross_references.append({
            "noteRef": f"Note {i}",
            "noteTotal": None if rng.random() < 0.1 else note,
            "statementAmount": rng.choice([note, -note, round(note + 0.01, 2), round(note * 2, 2)]),
            "isExpenseOrDeduction": rng.choice([None, True, False]),
            "signConventionNote": rng.choice([None, "positive", "negative"]),
            "signConventionStatement": rng.choice([None, "positive", "negative"]),
            "mappingConfidence": rng.choice([None, 30, 90]),
            "mappingType": rng.choice([None, "uncertain", "total_to_total"]),
        })

    liabilities, equity = amount(), amount()
    statements = [{
        "statementType": "SOFP",
        "totalAssets": {"current": nudge(liabilities + equity)},
        "totalLiabilities": {"current": liabilities},
        "totalEquity": {"current": equity},
    }] if rng.random() < 0.7 else []

    return ExtractionResult.model_validate({
        "statements": statements,
        "castingRelationships": castings,
        "movements": movements,
        "crossReferences": cross_references,
    })


class TestResultInvariants:
    """Status, variance and exceptions stay coupled on any input."""

    @pytest.mark.parametrize("sign_aware", [True, False])
    @pytest.mark.parametrize("seed", range(25))
    def test_generated_inputs(self, seed, sign_aware):
        extraction = _generated_extraction(seed)
        result = run_verification(
            extraction, VerificationOptions(sign_aware_cross_references=sign_aware)
        )

        for check in result.all_results():
            assert (check.status == VerificationStatus.PASS) == (check.variance == 0), check.id

        failing = [r.id for r in result.all_results() if r.status != VerificationStatus.PASS]
        assert [e.related_check_id for e in result.exceptions] == failing
        assert [e.id for e in result.exceptions] == list(range(1, len(failing) + 1))
        assert result.kpi.total_checks == len(result.all_results())

    @pytest.mark.parametrize(
        "payload",
        [
            {"castingRelationships": [_casting("Cents", [0.1, 0.2], 0.3)]},
            {"castingRelationships": [_casting("Cents", [0.1, 0.2], 0.31)]},
            {"castingRelationships": [_casting("Negative", [-500, 200], -300)]},
            {"castingRelationships": [_casting("Flipped", [-500, 200], 300)]},
            {"castingRelationships": [_casting("Zero", [], 0), _casting("Zero", [5], 0)]},
            {"castingRelationships": [{
                "totalLabel": "Odd", "totalAmount": 3,
                "componentLabels": ["a", "b", "c"], "componentAmounts": [1, None],
            }]},
            {"crossReferences": [{
                "noteRef": "Note 20", "noteTotal": 45000, "statementAmount": -45000,
                "isExpenseOrDeduction": True,
            }]},
            {"crossReferences": [{
                "noteRef": "Note 21", "noteTotal": 45000, "statementAmount": -45000.01,
                "signConventionNote": "positive", "signConventionStatement": "negative",
            }]},
            {"movements": [{
                "accountName": "Cash", "opening": 1000.1,
                "additions": [{"amount": 0.2}], "deductions": [{"amount": 0.3}],
                "statedClosing": 1000,
            }]},
        ],
        ids=[
            "fractional_cents_pass",
            "fractional_cents_fail",
            "negative_total",
            "negative_components_positive_total",
            "zero_totals",
            "malformed_arrays",
            "expense_sign_difference",
            "declared_sign_conventions_off_by_cent",
            "movement_cents",
        ],
    )
    def test_edge_case_inputs(self, payload):
        result = run_verification(ExtractionResult.model_validate(payload))

        for check in result.all_results():
            assert (check.status == VerificationStatus.PASS) == (check.variance == 0), check.id
        failing = [r.id for r in result.all_results() if r.status != VerificationStatus.PASS]
        assert [e.related_check_id for e in result.exceptions] == failing


class TestInvariantEnforcement:
    """A verifier that breaks status/variance coupling must not go unnoticed."""

    @pytest.fixture
    def broken_casting(self, monkeypatch):
        def fake_verify_all_castings(relationships):
            bad = CastingVerificationResult(
                id="cast_001",
                section="Current assets",
                description="Broken",
                components=(),
                calculated_total=10,
                stated_total=0,
                variance=10,
                variance_percentage=100,
                status=VerificationStatus.PASS,
            )
            return [bad], []

        monkeypatch.setattr(orchestrator, "verify_all_castings", fake_verify_all_castings)

    def test_strict_mode_raises(self, broken_casting):
        with pytest.raises(InvariantViolationError) as exc_info:
            run_verification(ExtractionResult())
        assert exc_info.value.details["check_id"] == "cast_001"

    def test_lenient_mode_logs_and_continues(self, broken_casting):
        result = run_verification(
            ExtractionResult(), VerificationOptions(strict_invariants=False)
        )
        assert result.kpi.total_checks == 1


class TestColumnVerification:
    """Tests for per-column verification."""

    def test_runs_once_per_column(self):
        extraction = ExtractionResult.model_validate({
            "castingRelationships": [
                _casting("Total", [500, 300], 800, column="group_current"),
                _casting("Total", [500, 290], 800, column="company_current"),
                _casting("Total", [1, 1], 2),
            ],
        })
        results = run_column_verification(extraction)

        assert list(results) == ["group_current", "company_current", "current"]
        assert results["group_current"].kpi.passed == 1
        assert results["company_current"].kpi.failed == 1
        assert results["current"].kpi.total_checks == 1

    def test_empty_extraction_has_current_column(self):
        results = run_column_verification(ExtractionResult())
        assert list(results) == ["current"]
