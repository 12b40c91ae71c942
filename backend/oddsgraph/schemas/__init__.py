from oddsgraph.schemas.odds import (
    ArbitrageLegOut,
    ArbitrageOpportunityOut,
    ArbitrageOut,
    ArchiveOut,
    ArchiveRequest,
    CheatSheetOut,
    CheatSheetRowOut,
    ErrorDetail,
    ErrorResponse,
    IngestionStatusOut,
    OddsFormatParam,
    PositiveEVBetOut,
    PositiveEVOut,
    RefreshOut,
    RefreshRequest,
    SportInfoOut,
    SportsOut,
    SuccessResponse,
)

__all__ = [
    "ArbitrageLegOut",
    "ArbitrageOpportunityOut",
    "ArbitrageOut",
    "ArchiveOut",
    "ArchiveRequest",
    "CheatSheetOut",
    "CheatSheetRowOut",
    "ErrorDetail",
    "ErrorResponse",
    "IngestionStatusOut",
    "OddsFormatParam",
    "PositiveEVBetOut",
    "PositiveEVOut",
    "RefreshOut",
    "RefreshRequest",
    "SportInfoOut",
    "SportsOut",
    "SuccessResponse",
]
