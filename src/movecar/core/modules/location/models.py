from pydantic import BaseModel, Field


class Coordinates(BaseModel):
    """WGS-84 point as reported by the browser."""

    lat: float = Field(..., ge=-90, le=90, description="Latitude")
    lng: float = Field(..., ge=-180, le=180, description="Longitude")
