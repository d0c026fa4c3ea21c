"""FastAPI routes for City Explorer.

Endpoint          Method  Description
-----------------------------------------------------------------------
/location         GET     Resolve-or-create a Location from ?data=<text>
/weather          GET     Forecast days for data[id], data[latitude], data[longitude]
/events           GET     Events for data[id], data[formatted_query]
/movies           GET     Movies for data[id], data[search_query]
/yelp             GET     Businesses for data[id], data[latitude], data[longitude]
/explore          GET     Location plus every category, fetched in parallel
/health           GET     Provider configuration and freshness windows

Browser clients send the location object back as ``data[id]=...&data[...]=``
pairs; a ``data`` parameter holding a JSON object is accepted too.  Service
dependencies are read from ``app.state`` (populated in ``main.py``).
"""

from __future__ import annotations

import json
import re
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import ValidationError

from city_explorer import __version__
from city_explorer.api.schemas import ExploreResponse, HealthResponse
from city_explorer.models.category import Category
from city_explorer.models.records import (
    Business,
    Event,
    Location,
    LocationRef,
    Movie,
    WeatherDay,
)
from city_explorer.services.cache_aside import CacheAside
from city_explorer.services.explorer_service import ExplorerService

router = APIRouter()

_BRACKET_PARAM = re.compile(r"data\[(\w+)\]")

# Response keys used by the client for each fan-out category.
_RESPONSE_KEYS: dict[Category, str] = {
    Category.WEATHER: "weather",
    Category.EVENT: "events",
    Category.MOVIE: "movies",
    Category.BUSINESS: "yelp",
}


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _get_cache(request: Request) -> CacheAside:
    return request.app.state.cache_aside


def _get_explorer(request: Request) -> ExplorerService:
    return request.app.state.explorer_service


def _location_ref(request: Request) -> LocationRef:
    """Build a LocationRef from ``data[...]`` query params or a JSON ``data`` param."""
    raw: dict[str, Any] = {}
    params = request.query_params

    if "data" in params:
        try:
            decoded = json.loads(params["data"])
        except ValueError as exc:
            raise HTTPException(status_code=422, detail="data must be a JSON object") from exc
        if not isinstance(decoded, dict):
            raise HTTPException(status_code=422, detail="data must be a JSON object")
        raw.update(decoded)

    for name, value in params.items():
        match = _BRACKET_PARAM.fullmatch(name)
        if match:
            raw[match.group(1)] = value

    try:
        return LocationRef.model_validate(raw)
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail="data must include a numeric location id",
        ) from exc


def _require(ref: LocationRef, *fields: str) -> LocationRef:
    missing = [f for f in fields if getattr(ref, f) in (None, "")]
    if missing:
        raise HTTPException(
            status_code=422,
            detail=f"data is missing required fields: {', '.join(missing)}",
        )
    return ref


CacheDep = Annotated[CacheAside, Depends(_get_cache)]
ExplorerDep = Annotated[ExplorerService, Depends(_get_explorer)]
LocationRefDep = Annotated[LocationRef, Depends(_location_ref)]
SearchText = Annotated[str, Query(alias="data", min_length=1, description="Free-text place name.")]


# ---------------------------------------------------------------------------
# Category endpoints
# ---------------------------------------------------------------------------


@router.get("/location", response_model=Location)
async def get_location(cache: CacheDep, search_query: SearchText) -> Location:
    return await cache.resolve_location(search_query)


@router.get("/weather", response_model=list[WeatherDay])
async def get_weather(cache: CacheDep, ref: LocationRefDep) -> list[Any]:
    _require(ref, "latitude", "longitude")
    return await cache.resolve(Category.WEATHER, ref)


@router.get("/events", response_model=list[Event])
async def get_events(cache: CacheDep, ref: LocationRefDep) -> list[Any]:
    _require(ref, "formatted_query")
    return await cache.resolve(Category.EVENT, ref)


@router.get("/movies", response_model=list[Movie])
async def get_movies(cache: CacheDep, ref: LocationRefDep) -> list[Any]:
    _require(ref, "search_query")
    return await cache.resolve(Category.MOVIE, ref)


@router.get("/yelp", response_model=list[Business])
async def get_yelp(cache: CacheDep, ref: LocationRefDep) -> list[Any]:
    _require(ref, "latitude", "longitude")
    return await cache.resolve(Category.BUSINESS, ref)


# ---------------------------------------------------------------------------
# Composite view & health
# ---------------------------------------------------------------------------


@router.get("/explore", response_model=ExploreResponse)
async def explore(explorer: ExplorerDep, search_query: SearchText) -> ExploreResponse:
    result = await explorer.explore(search_query)
    body: dict[str, Any] = {"location": result.location}
    for category, records in result.records.items():
        body[_RESPONSE_KEYS[category]] = records
    body["errors"] = {_RESPONSE_KEYS[c]: message for c, message in result.errors.items()}
    return ExploreResponse(**body)


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    state = request.app.state
    return HealthResponse(
        version=__version__,
        providers=state.provider_registry,
        freshness={c.value: state.freshness_policy.ttl(c) for c in Category},
    )
