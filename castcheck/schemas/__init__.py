"""Pydantic schemas for the extraction input and the dashboard output."""
from castcheck.schemas.dashboard import (
    AnalyzeResponse,
    AuditDashboard,
    ColumnDashboardResponse,
)
from castcheck.schemas.extraction import (
    CamelModel,
    ExtractedCastingRelationship,
    ExtractedCrossReference,
    ExtractedMovement,
    ExtractedStatement,
    ExtractionResult,
    ExtractionWarning,
    MappingType,
    SignConvention,
    StatementType,
    WarningType,
)

__all__ = [
    "AnalyzeResponse",
    "AuditDashboard",
    "CamelModel",
    "ColumnDashboardResponse",
    "ExtractedCastingRelationship",
    "ExtractedCrossReference",
    "ExtractedMovement",
    "ExtractedStatement",
    "ExtractionResult",
    "ExtractionWarning",
    "MappingType",
    "SignConvention",
    "StatementType",
    "WarningType",
]
