"""
Unit tests for the extraction input contract.
"""
import pytest
from pydantic import ValidationError

from castcheck.schemas.extraction import ExtractionResult, WarningType


class TestRecordLevelTolerance:
    """A single broken record must not reject the whole extraction."""

    def test_null_labels_and_amounts_are_accepted(self, clean_payload):
        clean_payload["castingRelationships"][0]["componentLabels"] = ["Inventories", None]
        del clean_payload["castingRelationships"][1]["totalLabel"]
        clean_payload["movements"][0]["additions"] = [{"amount": None}]
        del clean_payload["movements"][0]["accountName"]
        del clean_payload["crossReferences"][0]["noteRef"]

        result = ExtractionResult.model_validate(clean_payload)

        assert result.casting_relationships[0].component_labels == ["Inventories", None]
        assert result.casting_relationships[1].total_label is None
        assert result.movements[0].additions[0].amount is None
        assert result.rejected_records == []

    def test_wrongly_typed_record_is_set_aside(self, clean_payload):
        clean_payload["castingRelationships"].append(
            {"totalLabel": "Total equity", "totalAmount": "lots", "pageNumber": 6}
        )

        result = ExtractionResult.model_validate(clean_payload)

        assert len(result.casting_relationships) == 2
        assert len(result.rejected_records) == 1
        rejected = result.rejected_records[0]
        assert rejected.type == WarningType.CONFLICTING_VALUES
        assert rejected.location == "castingRelationships[2]"
        assert "totalAmount" in rejected.description
        assert rejected.page_number == 6

    def test_missing_required_field_is_missing_data(self, clean_payload):
        clean_payload["statements"].append({"title": "Statement of Cash Flows"})

        result = ExtractionResult.model_validate(clean_payload)

        assert len(result.statements) == 1
        assert result.rejected_records[0].type == WarningType.MISSING_DATA
        assert result.rejected_records[0].location == "statements[1]"

    def test_non_object_record_is_set_aside(self, clean_payload):
        clean_payload["movements"].append("see note 12")

        result = ExtractionResult.model_validate(clean_payload)

        assert len(result.movements) == 1
        assert result.rejected_records[0].location == "movements[1]"

    def test_snake_case_keys(self):
        result = ExtractionResult.model_validate(
            {"cross_references": [{"note_ref": "Note 7", "note_total": "n/a"}]}
        )

        assert result.cross_references == []
        assert result.rejected_records[0].location == "cross_references[0]"

    def test_client_cannot_supply_rejected_records(self):
        result = ExtractionResult.model_validate(
            {"rejectedRecords": [{"type": "MISSING_DATA"}]}
        )
        assert result.rejected_records == []


class TestDocumentLevelValidation:

    def test_collection_of_wrong_type_is_rejected(self):
        with pytest.raises(ValidationError):
            ExtractionResult.model_validate({"movements": "none"})

    def test_non_finite_amount_sets_record_aside(self, clean_payload):
        clean_payload["crossReferences"][0]["noteTotal"] = float("inf")

        result = ExtractionResult.model_validate(clean_payload)

        assert result.cross_references == []
        assert result.rejected_records[0].location == "crossReferences[0]"
