"""Sample value endpoints signed through the query string and form fields."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Form, Request

from ..dependencies import get_authenticated_username
from ..models import CityResponse, QueryPair, ValuesResponse

router = APIRouter(prefix="/api/values", tags=["values"])


@router.get("", response_model=ValuesResponse, summary="Echo signed query parameters")
async def list_values(
    request: Request,
    username: str = Depends(get_authenticated_username),
) -> ValuesResponse:
    pairs = [QueryPair(key=key, value=value) for key, value in request.query_params.multi_items()]
    return ValuesResponse(username=username, parameters=pairs)


@router.post("/postcity", response_model=CityResponse, summary="Submit a city as form fields")
async def post_city(
    icao_code: str = Form(..., alias="IcaoCode"),
    city_short_name: str = Form(..., alias="CityShortName"),
    _: str = Depends(get_authenticated_username),
) -> CityResponse:
    """Accept a form-encoded city; the signature covers both fields."""

    return CityResponse(icao_code=icao_code, city_short_name=city_short_name)
