from fastapi import APIRouter, Depends, Query, Form, File, UploadFile, status
from app.schemas import EventCreate, EventUpdate, EventFilter, EventOut, EventListResponse, MessageResponse, parse_schema
from app.services.event_service import EventService
from app.api.deps import get_event_service, read_images
from app.auth import get_current_user
from typing import Any, Dict, List, Optional

router = APIRouter(prefix="/events", tags=["events"])


def _form_fields(**fields: Any) -> Dict[str, Any]:
    # Browsers send blank inputs as empty strings
    return {k: v for k, v in fields.items() if v not in (None, "")}


@router.post("", response_model=EventOut, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    start_date: Optional[str] = Form(None, alias="startDate"),
    end_date: Optional[str] = Form(None, alias="endDate"),
    total_guests: Optional[str] = Form(None, alias="totalGuests"),
    category: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None, description="Up to 10 images, 5MB each"),
    user=Depends(get_current_user),
    event_service: EventService = Depends(get_event_service)
):
    """
    Create an event owned by the caller. Multipart form; attached images are
    stored and their URLs saved on the event.
    """
    payload = parse_schema(EventCreate, _form_fields(
        title=title,
        description=description,
        start_date=start_date,
        end_date=end_date,
        total_guests=total_guests,
        category=category,
        location=location,
        price=price,
    ))
    files = read_images(images)
    return await event_service.create_event(payload, user, files)


@router.get("", response_model=EventListResponse)
async def get_events(
    search: Optional[str] = Query(None, description="Search in title, description and category"),
    category: Optional[str] = Query(None, description="Filter by exact category"),
    start_date: Optional[str] = Query(None, alias="startDate", description="Events starting at or after"),
    end_date: Optional[str] = Query(None, alias="endDate", description="Events ending at or before"),
    min_guests: Optional[str] = Query(None, alias="minGuests"),
    max_guests: Optional[str] = Query(None, alias="maxGuests"),
    page: Optional[str] = Query(None, description="Page number, 1-indexed (default 1)"),
    limit: Optional[str] = Query(None, description="Items per page, 1-100 (default 10)"),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="title, startDate, endDate, totalGuests, category or createdAt"),
    sort_order: Optional[str] = Query(None, alias="sortOrder", description="ASC or DESC"),
    event_service: EventService = Depends(get_event_service)
):
    """
    List events with filtering, sorting and pagination.
    - search: case-insensitive match on title, description or category
    - startDate / endDate: bounds on the event's start and end
    - minGuests / maxGuests: bounds on totalGuests
    - page, limit: pagination (offset = (page - 1) * limit)
    - sortBy, sortOrder: single-key ordering (default startDate ASC)
    """
    filters = parse_schema(EventFilter, {
        "search": search,
        "category": category,
        "start_date": start_date,
        "end_date": end_date,
        "min_guests": min_guests,
        "max_guests": max_guests,
        "page": page,
        "limit": limit,
        "sort_by": sort_by,
        "sort_order": sort_order,
    })
    return await event_service.list_events(filters)


@router.get("/{event_id}", response_model=EventOut)
async def get_event_detail(
    event_id: int,
    event_service: EventService = Depends(get_event_service)
):
    return await event_service.get_event(event_id)


@router.put("/{event_id}", response_model=EventOut)
async def update_event_endpoint(
    event_id: int,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    start_date: Optional[str] = Form(None, alias="startDate"),
    end_date: Optional[str] = Form(None, alias="endDate"),
    total_guests: Optional[str] = Form(None, alias="totalGuests"),
    category: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    user=Depends(get_current_user),
    event_service: EventService = Depends(get_event_service)
):
    """Update an event. Only the owner may do so; anyone else gets 404."""
    payload = parse_schema(EventUpdate, _form_fields(
        title=title,
        description=description,
        start_date=start_date,
        end_date=end_date,
        total_guests=total_guests,
        category=category,
        location=location,
        price=price,
    ))
    files = read_images(images)
    return await event_service.update_event(event_id, payload, user, files)


@router.delete("/{event_id}", response_model=MessageResponse)
async def delete_event_endpoint(
    event_id: int,
    user=Depends(get_current_user),
    event_service: EventService = Depends(get_event_service)
):
    """Delete an event. Only the owner may do so; anyone else gets 404."""
    return await event_service.remove_event(event_id, user)
