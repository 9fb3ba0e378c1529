from sqlalchemy.ext.asyncio import AsyncSession
from app.schemas import EventCreate, EventUpdate, EventFilter, to_utc
from app.db.models.user import User
from app.db.models.event import Event
from app.db import repositories as repo
from app.services.upload_service import UploadService, IncomingFile
from app.core.exceptions import NotFoundError, ValidationError
from app.core.logging import get_logger
from app.auth import ensure_owner
from typing import Any, Dict, List, Optional, Sequence
from datetime import datetime


def check_date_order(start_date: datetime, end_date: datetime) -> None:
    # Stored values may come back naive (SQLite); both sides are compared as UTC
    if to_utc(end_date) <= to_utc(start_date):
        raise ValidationError(
            "endDate must be after startDate",
            errors=[{"field": "endDate", "message": "must be after startDate"}],
        )


class EventService:
    def __init__(self, session: AsyncSession, uploads: UploadService, log=None):
        self.session = session
        self.uploads = uploads
        self.log = log or get_logger("events")

    async def _store_images(self, files: Optional[Sequence[IncomingFile]]) -> List[str]:
        if not files:
            return []
        stored = await self.uploads.handle_file_uploads(files)
        return [self.uploads.get_url(name) for name in stored]

    async def create_event(
        self,
        payload: EventCreate,
        owner: User,
        files: Optional[Sequence[IncomingFile]] = None,
    ) -> Event:
        check_date_order(payload.start_date, payload.end_date)
        image_urls = await self._store_images(files)
        if image_urls:
            payload = payload.model_copy(update={"images": image_urls})
        ev = await repo.create_event(self.session, payload, owner.id)
        self.log.info(f"User {owner.id} created event {ev.id}")
        return ev

    async def get_event(self, event_id: int) -> Dict[str, Any]:
        ev = await repo.get_event(self.session, event_id)
        if not ev:
            raise NotFoundError(f"Event with ID {event_id} not found")
        return ev

    async def list_events(self, filters: EventFilter) -> Dict[str, Any]:
        """
        Return one page of matching events plus the pre-pagination total.
        """
        total = await repo.count_events(self.session, filters)
        events = await repo.list_events(self.session, filters)
        return {
            "events": events,
            "total": total,
            "page": filters.page,
            "limit": filters.limit,
        }

    async def _get_owned(self, event_id: int, acting_user: User) -> Event:
        ev = await repo.get_event_row(self.session, event_id)
        if not ev:
            raise NotFoundError(f"Event with ID {event_id} not found")
        ensure_owner(ev.user_id, acting_user, "Event", event_id)
        return ev

    async def update_event(
        self,
        event_id: int,
        payload: EventUpdate,
        acting_user: User,
        files: Optional[Sequence[IncomingFile]] = None,
    ) -> Event:
        """
        Apply a partial update on behalf of the event's owner.

        New images replace the stored list only when at least one is uploaded.
        """
        ev = await self._get_owned(event_id, acting_user)
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)

        check_date_order(
            changes.get("start_date", ev.start_date),
            changes.get("end_date", ev.end_date),
        )

        image_urls = await self._store_images(files)
        if image_urls:
            changes["images"] = image_urls

        ev = await repo.update_event(self.session, ev, changes)
        self.log.info(f"User {acting_user.id} updated event {event_id}")
        return ev

    async def remove_event(self, event_id: int, acting_user: User) -> Dict[str, str]:
        ev = await self._get_owned(event_id, acting_user)
        await repo.delete_event(self.session, ev)
        self.log.info(f"User {acting_user.id} deleted event {event_id}")
        return {"message": "Event deleted successfully"}
