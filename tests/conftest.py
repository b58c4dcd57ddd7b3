"""
Pytest configuration and fixtures.
"""
import copy
from typing import Any, Dict, Generator

import pytest
from fastapi.testclient import TestClient

from castcheck.config import get_settings
from castcheck.schemas.extraction import ExtractionResult
from castcheck.services import analytics


CLEAN_EXTRACTION: Dict[str, Any] = {
    "companyName": "SYARIKAT CONTOH BERHAD",
    "financialYearEnd": "31 December 2024",
    "reportingCurrency": "RM",
    "statements": [
        {
            "statementType": "SOFP",
            "title": "Statement of Financial Position",
            "pageNumbers": [5],
            "totalAssets": {"current": 1500000, "prior": 1400000},
            "totalLiabilities": {"current": 600000, "prior": 580000},
            "totalEquity": {"current": 900000, "prior": 820000},
        }
    ],
    "castingRelationships": [
        {
            "totalLabel": "Total current assets",
            "totalAmount": 800,
            "section": "Current assets",
            "componentLabels": ["Inventories", "Trade receivables"],
            "componentAmounts": [500, 300],
            "pageNumber": 5,
        },
        {
            "totalLabel": "Total non-current assets",
            "totalAmount": 1499200,
            "section": "Non-current assets",
            "componentLabels": ["Property, plant and equipment", "Right-of-use assets"],
            "componentAmounts": [1250000, 249200],
            "pageNumber": 5,
        },
    ],
    "movements": [
        {
            "accountName": "Property, plant and equipment",
            "noteRef": "Note 4",
            "opening": 1000,
            "additions": [{"description": "Additions", "amount": 200}],
            "deductions": [{"description": "Depreciation", "amount": 50}],
            "statedClosing": 1150,
        }
    ],
    "crossReferences": [
        {
            "noteRef": "Note 4",
            "noteDescription": "Property, plant and equipment",
            "noteTotal": 1250000,
            "statementLineItem": "Property, plant and equipment",
            "statementAmount": 1250000,
            "statementType": "SOFP",
            "mappingConfidence": 95,
            "mappingType": "total_to_total",
        }
    ],
    "warnings": [],
}


@pytest.fixture(autouse=True)
def reset_settings() -> Generator[None, None, None]:
    """Reload settings from the environment for every test."""
    get_settings.cache_clear()
    analytics._sink = None
    yield
    get_settings.cache_clear()
    analytics._sink = None


@pytest.fixture
def clean_payload() -> Dict[str, Any]:
    """Extraction payload on which every check passes."""
    return copy.deepcopy(CLEAN_EXTRACTION)


@pytest.fixture
def failing_payload(clean_payload: Dict[str, Any]) -> Dict[str, Any]:
    """Clean payload with a casting error and a balance sheet imbalance."""
    clean_payload["castingRelationships"][0]["componentAmounts"] = [500, 290]
    clean_payload["statements"][0]["totalEquity"]["current"] = 899950
    return clean_payload


@pytest.fixture
def clean_extraction(clean_payload: Dict[str, Any]) -> ExtractionResult:
    return ExtractionResult.model_validate(clean_payload)


@pytest.fixture
def failing_extraction(failing_payload: Dict[str, Any]) -> ExtractionResult:
    return ExtractionResult.model_validate(failing_payload)


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Create a test client for the API."""
    from castcheck.main import app

    with TestClient(app) as test_client:
        yield test_client
