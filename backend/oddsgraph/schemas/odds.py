from datetime import datetime
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field

DataT = TypeVar("DataT")

OddsFormatParam = Literal["american", "decimal", "hongkong"]


class SuccessResponse(BaseModel, Generic[DataT]):
    success: bool = True
    data: DataT


class ErrorDetail(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: ErrorDetail


class RefreshRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sport_key: str = Field("", alias="sportKey")
    regions: list[str] | None = None
    markets: list[str] | None = None
    odds_format: OddsFormatParam | None = Field(None, alias="oddsFormat")


class ArchiveRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    days_old: float = Field(7, alias="daysOld")


class RefreshOut(BaseModel):
    model_config = {"from_attributes": True}

    ingested_snapshots: int
    remaining: int
    warning: str | None = None


class ArchiveOut(BaseModel):
    model_config = {"from_attributes": True}

    archived: int
    archive_inserted: int
    archive_duplicates: int


class IngestionStatusOut(BaseModel):
    model_config = {"from_attributes": True}

    snapshots: int
    archived: int
    last_fetched_at: datetime | None


class SportsOut(BaseModel):
    sports: list[dict]
    remaining: int
    warning: str | None = None


class ArbitrageLegOut(BaseModel):
    model_config = {"from_attributes": True}

    outcome: str
    best_bookmaker: str | None
    best_price: float
    decimal_odds: float
    implied_probability: float


class ArbitrageOpportunityOut(BaseModel):
    model_config = {"from_attributes": True}

    event_id: str
    commence_time: str | None
    home_team: str | None
    away_team: str | None
    sport_key: str
    market: str
    implied_sum: float
    edge_percent: float
    legs: list[ArbitrageLegOut]


class ArbitrageOut(BaseModel):
    model_config = {"from_attributes": True}

    data: list[ArbitrageOpportunityOut]
    remaining: int
    warning: str | None = None


class CheatSheetRowOut(BaseModel):
    model_config = {"from_attributes": True}

    event_id: str
    commence_time: str | None
    home_team: str | None
    away_team: str | None
    sport_key: str
    player: str
    side: str
    line: float | None
    best_bookmaker: str | None
    best_price: float | None
    implied_probability: float | None


class CheatSheetOut(BaseModel):
    model_config = {"from_attributes": True}

    data: list[CheatSheetRowOut]
    remaining: int
    warning: str | None = None


class SportInfoOut(BaseModel):
    model_config = {"from_attributes": True}

    key: str
    title: str
    group: str


class PositiveEVBetOut(BaseModel):
    model_config = {"from_attributes": True}

    event_id: str
    sport_title: str
    sport_group: str
    region: str
    commence_time: str | None
    home_team: str | None
    away_team: str | None
    market: str
    outcome: str
    point: float | None
    best_bookmaker: str | None
    best_price: float
    decimal_odds: float
    implied_probability: float
    fair_probability: float
    ev_percent: float
    books_count: int


class PositiveEVOut(BaseModel):
    model_config = {"from_attributes": True}

    sport: SportInfoOut
    region: str
    count: int
    bets: list[PositiveEVBetOut]
    warning: str | None = None
