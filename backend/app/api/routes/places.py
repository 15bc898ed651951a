"""Places Routes — HTTP surface of the place workflow.

Invariants:
    - Reads are public; create, update and delete require a verified actor
    - Form/body validation happens before the workflow runs (422 on failure)
    - A create that fails after the image was stored removes that image again
    - Responses are envelopes: {"place": ...}, {"places": [...]}, {"message": ...}

Design Decisions:
    - Create takes multipart form fields validated through PlaceCreate, so create and
      update share one validation path and one 422 envelope
    - /user/{user_id} declared before /{place_id} so the literal segment wins
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from app.api.dependencies import (
    get_current_actor, get_image_storage, get_place_workflow,
)
from app.core.domain_types import PlaceId, UserId
from app.infrastructure.image_storage import ImageStorage
from app.schemas.place import (
    MessageResponse, PlaceCreate, PlaceEnvelope, PlaceResponse,
    PlacesEnvelope, PlaceUpdate,
)
from app.services.place_workflow import PlaceWorkflow

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/places", tags=["places"])


def parse_place_form(
    title: str = Form(""),
    description: str = Form(""),
    address: str = Form(""),
) -> PlaceCreate:
    """Validate multipart fields with the same rules as JSON bodies."""
    try:
        return PlaceCreate(
            title=title, description=description, address=address,
        )
    except ValidationError as e:
        raise RequestValidationError(
            [{**err, "loc": ("body", *err["loc"])} for err in e.errors()],
        )


@router.get("/user/{user_id}", response_model=PlacesEnvelope)
async def get_places_by_user(
    user_id: UUID, workflow: PlaceWorkflow = Depends(get_place_workflow),
):
    """List places owned by a user."""
    places = await workflow.get_places_by_user(UserId(user_id))
    return PlacesEnvelope(
        places=[PlaceResponse.from_model(p) for p in places],
    )


@router.get("/{place_id}", response_model=PlaceEnvelope)
async def get_place(
    place_id: UUID, workflow: PlaceWorkflow = Depends(get_place_workflow),
):
    """Get a place by id."""
    place = await workflow.get_place(PlaceId(place_id))
    return PlaceEnvelope(place=PlaceResponse.from_model(place))


@router.post(
    "", response_model=PlaceEnvelope, status_code=status.HTTP_201_CREATED,
)
async def create_place(
    actor_id: UserId = Depends(get_current_actor),
    data: PlaceCreate = Depends(parse_place_form),
    image: UploadFile = File(...),
    images: ImageStorage = Depends(get_image_storage),
    workflow: PlaceWorkflow = Depends(get_place_workflow),
):
    """Create a place from form fields and an uploaded image."""
    image_path = await images.save(image)
    try:
        place = await workflow.create_place(data, image_path, actor_id)
    except Exception:
        await images.remove(image_path)
        raise
    return PlaceEnvelope(place=PlaceResponse.from_model(place))


@router.patch("/{place_id}", response_model=PlaceEnvelope)
async def update_place(
    place_id: UUID,
    body: PlaceUpdate,
    actor_id: UserId = Depends(get_current_actor),
    workflow: PlaceWorkflow = Depends(get_place_workflow),
):
    """Update title and description of an owned place."""
    place = await workflow.update_place(PlaceId(place_id), body, actor_id)
    return PlaceEnvelope(place=PlaceResponse.from_model(place))


@router.delete("/{place_id}", response_model=MessageResponse)
async def delete_place(
    place_id: UUID,
    actor_id: UserId = Depends(get_current_actor),
    workflow: PlaceWorkflow = Depends(get_place_workflow),
):
    """Delete an owned place and its image."""
    await workflow.delete_place(PlaceId(place_id), actor_id)
    return MessageResponse(message="Deleted place.")
