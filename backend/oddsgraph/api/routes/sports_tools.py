from fastapi import APIRouter, Depends, Query

from oddsgraph.adapters.odds_feed import OddsFeed
from oddsgraph.api.deps import get_odds_feed, split_csv_param
from oddsgraph.schemas import (
    ArbitrageOut,
    CheatSheetOut,
    OddsFormatParam,
    PositiveEVOut,
    SportsOut,
    SuccessResponse,
)
from oddsgraph.services.arbitrage import ArbitrageService
from oddsgraph.services.cheat_sheet import CheatSheetService
from oddsgraph.services.positive_ev import DEFAULT_MARKETS, DEFAULT_REGION, DEFAULT_SPORT, PositiveEVService

router = APIRouter()


@router.get("/sports", response_model=SuccessResponse[SportsOut])
async def list_sports(feed: OddsFeed = Depends(get_odds_feed)) -> SuccessResponse[SportsOut]:
    result = await feed.get_sports()
    return SuccessResponse(data=SportsOut(sports=result.data, remaining=result.remaining, warning=result.warning))


@router.get("/arbitrage", response_model=SuccessResponse[ArbitrageOut])
async def arbitrage(
    sport: str = Query(""),
    market: str = Query("h2h"),
    regions: str | None = Query(None),
    odds_format: OddsFormatParam = Query("american", alias="oddsFormat"),
    top: int = Query(50),
    feed: OddsFeed = Depends(get_odds_feed),
) -> SuccessResponse[ArbitrageOut]:
    result = await ArbitrageService(feed).get_arbitrage(
        sport=sport,
        market=market,
        regions=split_csv_param(regions),
        odds_format=odds_format,
        top=top,
    )
    return SuccessResponse(data=ArbitrageOut.model_validate(result))


@router.get("/cheat-sheet", response_model=SuccessResponse[CheatSheetOut])
async def cheat_sheet(
    sport: str = Query(""),
    market: str = Query(""),
    regions: str | None = Query(None),
    odds_format: OddsFormatParam = Query("american", alias="oddsFormat"),
    top: int = Query(50),
    feed: OddsFeed = Depends(get_odds_feed),
) -> SuccessResponse[CheatSheetOut]:
    result = await CheatSheetService(feed).get_cheat_sheet(
        sport=sport,
        market=market,
        regions=split_csv_param(regions),
        odds_format=odds_format,
        top=top,
    )
    return SuccessResponse(data=CheatSheetOut.model_validate(result))


@router.get("/positive-ev", response_model=SuccessResponse[PositiveEVOut])
async def positive_ev(
    sport: str = Query(DEFAULT_SPORT),
    region: str = Query(DEFAULT_REGION),
    markets: str = Query(DEFAULT_MARKETS),
    odds_format: OddsFormatParam = Query("american", alias="oddsFormat"),
    feed: OddsFeed = Depends(get_odds_feed),
) -> SuccessResponse[PositiveEVOut]:
    result = await PositiveEVService(feed).get_positive_ev(
        sport=sport,
        region=region,
        markets=markets,
        odds_format=odds_format,
    )
    return SuccessResponse(data=PositiveEVOut.model_validate(result))
