"""Trip models - cities, stays, driving segments and the assembled plan."""

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from roadtrip.models.geo import LatLng

MAX_IMPORTANCE = 300


class City(BaseModel):
    """A city on (or near) the route.

    Importance is derived by corridor scoring and is 0 until then.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    location: LatLng
    population: int = Field(default=0, ge=0)
    country: str = ""
    importance: int = Field(default=0, ge=0, le=MAX_IMPORTANCE)

    def same_place(self, other: "City") -> bool:
        """Cities are identified by case-insensitive name."""
        return self.name.casefold() == other.name.casefold()


class RouteSegment(BaseModel):
    """Driving leg between two consecutive cities."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_city: City = Field(..., alias="from")
    to_city: City = Field(..., alias="to")
    distance_meters: float = Field(..., ge=0)
    duration_seconds: float = Field(..., ge=0)
    # Opaque routing-provider payload; None when the leg is an estimate
    provider_route: Any | None = None
    segment_index: int = Field(..., ge=0)

    @property
    def is_estimate(self) -> bool:
        return self.provider_route is None


class CityStay(BaseModel):
    """Contiguous block of trip days spent in one city."""

    city: City
    days: int = Field(..., ge=0)
    start_day: int = Field(default=0, ge=0)
    end_day: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def validate_day_range(self) -> "CityStay":
        """Ensure start/end days agree with the stay length."""
        if self.days == 0:
            if self.start_day != 0 or self.end_day != 0:
                raise ValueError("a zero-day stay must have start_day = end_day = 0")
        elif self.start_day < 1 or self.end_day != self.start_day + self.days - 1:
            raise ValueError("end_day must equal start_day + days - 1 with start_day >= 1")
        return self


class TripRequest(BaseModel):
    """User request: free-text endpoints and inclusive travel dates."""

    origin: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def validate_dates(self) -> "TripRequest":
        """Ensure end_date >= start_date."""
        if self.end_date < self.start_date:
            raise ValueError("end_date must be >= start_date")
        return self


class TripPlan(BaseModel):
    """Fully assembled multi-city road trip."""

    cities: list[City] = Field(..., min_length=2)
    segments: list[RouteSegment]
    city_stays: list[CityStay]
    total_days: int = Field(..., ge=0)
    total_distance_meters: float = Field(..., ge=0)
    total_driving_seconds: float = Field(..., ge=0)
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def validate_alignment(self) -> "TripPlan":
        """Ensure segments and stays line up with the city sequence."""
        if len(self.segments) != len(self.cities) - 1:
            raise ValueError("segments must contain exactly len(cities) - 1 legs")
        if len(self.city_stays) != len(self.cities):
            raise ValueError("city_stays must contain one stay per city")

        for i, segment in enumerate(self.segments):
            if segment.segment_index != i:
                raise ValueError(f"segment {i} has segment_index {segment.segment_index}")
            if segment.from_city != self.cities[i] or segment.to_city != self.cities[i + 1]:
                raise ValueError(f"segment {i} does not connect cities {i} and {i + 1}")

        for stay, city in zip(self.city_stays, self.cities, strict=True):
            if stay.city != city:
                raise ValueError(f"stay for {stay.city.name} is out of route order")

        allocated = sum(stay.days for stay in self.city_stays)
        if allocated != self.total_days:
            raise ValueError(f"stays cover {allocated} days but total_days is {self.total_days}")
        return self
