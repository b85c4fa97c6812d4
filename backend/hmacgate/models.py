"""Pydantic models used by the API."""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from .canonical import IdentityField, SignedModel


class HealthResponse(BaseModel):
    """Response payload for service health checks."""

    status: str = Field(..., description="Human-readable service status message.")
    replay_cache_entries: int = Field(
        ..., description="Number of live signatures retained for replay protection."
    )


class QueryPair(BaseModel):
    key: str
    value: str


class ValuesResponse(BaseModel):
    """Echo of the query parameters a signed GET carried."""

    username: str
    parameters: list[QueryPair]


IcaoCode = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=4)]


class CityResponse(BaseModel):
    """City record accepted by the form-encoded endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    icao_code: IcaoCode = Field(..., alias="IcaoCode")
    city_short_name: str = Field(..., alias="CityShortName", min_length=1)


class ContactCreate(SignedModel):
    """Contact payload. The signature covers every populated field but the id."""

    model_config = ConfigDict(populate_by_name=True)

    contact_id: int | None = IdentityField(None, alias="ContactID")
    name_style: bool = Field(False, alias="NameStyle")
    title: str | None = Field(None, alias="Title", max_length=8)
    first_name: str = Field(..., alias="FirstName", min_length=1, max_length=50)
    middle_name: str | None = Field(None, alias="MiddleName", max_length=50)
    last_name: str = Field(..., alias="LastName", min_length=1, max_length=50)
    suffix: str | None = Field(None, alias="Suffix", max_length=10)
    email_address: str | None = Field(None, alias="EmailAddress", max_length=50)
    email_promotion: int = Field(0, alias="EmailPromotion", ge=0, le=2)
    phone: str | None = Field(None, alias="Phone", max_length=25)


class ContactAcknowledgement(BaseModel):
    """Returned once a contact payload has passed the gate and validation."""

    accepted: bool = True
    submitted_by: str
    contact: ContactCreate
