"""Geographic value types."""

from pydantic import BaseModel, ConfigDict, Field


class LatLng(BaseModel):
    """Geographic coordinates (WGS84, degrees)."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
