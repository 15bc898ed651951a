"""Place Schemas — Pydantic models with field-level validation for the places API.

Invariants:
    - PlaceCreate/PlaceUpdate: title non-empty, description >= 5 chars, address non-empty,
      all stripped before length checks
    - PlaceResponse exposes ids as strings and location as {lat, lng}

Design Decisions:
    - field_validator for side-effect-free transforms (strip) — keeps models pure
    - PlaceResponse.from_model() over from_attributes: location is assembled from two columns
"""

from pydantic import BaseModel, Field, field_validator

from app.models.place import Place

_DESCRIPTION_MIN_LENGTH = 5


def _strip(v: str) -> str:
    return v.strip() if isinstance(v, str) else v


class PlaceCreate(BaseModel):
    """Place creation input (multipart form fields, image handled separately)."""
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(
        min_length=_DESCRIPTION_MIN_LENGTH, max_length=5_000,
    )
    address: str = Field(min_length=1, max_length=500)

    @field_validator("title", "description", "address", mode="before")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return _strip(v)


class PlaceUpdate(BaseModel):
    """Place update input — only title and description are mutable."""
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(
        min_length=_DESCRIPTION_MIN_LENGTH, max_length=5_000,
    )

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return _strip(v)


class Location(BaseModel):
    lat: float
    lng: float


class PlaceResponse(BaseModel):
    """Place response — public-facing place data."""
    id: str
    title: str
    description: str
    address: str
    location: Location
    image: str
    creator: str

    @classmethod
    def from_model(cls, place: Place) -> "PlaceResponse":
        return cls(
            id=str(place.id),
            title=place.title,
            description=place.description,
            address=place.address,
            location=Location(lat=place.lat, lng=place.lng),
            image=place.image,
            creator=str(place.creator_id),
        )


class PlaceEnvelope(BaseModel):
    place: PlaceResponse


class PlacesEnvelope(BaseModel):
    places: list[PlaceResponse]


class MessageResponse(BaseModel):
    message: str
