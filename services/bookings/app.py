from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional

from fastapi import Depends, FastAPI, Query, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CollectorRegistry
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.orm import Session

from common.config import get_settings
from common.database import Base, engine, get_db
from common.dependencies import get_current_actor
from common.errors import Forbidden, NotFound, add_error_handlers
from common.logging_middleware import add_audit_middleware
from common.models import Booking, BookingStatus, Resource, RoleEnum
from common.rate_limit import apply_rate_limiter, limiter
from common.schemas import Actor, Availability, BookingCreate, BookingRead, BookingTransition, ResourceRead
from workflow import lifecycle
from workflow.authorization import Action, can_perform
from workflow.conflicts import has_conflict
from workflow.store import BookingStore

settings = get_settings()


@asynccontextmanager
async def lifespan(_: FastAPI):
    if settings.run_db_migrations:
        Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    fastapi_app = FastAPI(title="Bookings Service", version="0.3.0", lifespan=lifespan)
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    apply_rate_limiter(fastapi_app)
    logger = add_audit_middleware(fastapi_app, "bookings", "workflow")
    add_error_handlers(fastapi_app, logger)
    # one registry per app so both services can live in one process
    Instrumentator(registry=CollectorRegistry()).instrument(fastapi_app).expose(fastapi_app, include_in_schema=False)
    return fastapi_app


app = create_app()


def get_store(db: Session = Depends(get_db)) -> BookingStore:
    return BookingStore(db)


@app.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok", "service": "bookings"}


@app.get("/resources", response_model=List[ResourceRead])
@limiter.limit("30/minute")
def list_resources(
    request: Request,
    _: Actor = Depends(get_current_actor),
    store: BookingStore = Depends(get_store),
) -> List[Resource]:
    """Active resources that can be booked."""
    return store.list_resources()


@app.get("/bookings", response_model=List[BookingRead])
@limiter.limit("30/minute")
def list_bookings(
    request: Request,
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    actor: Actor = Depends(get_current_actor),
    store: BookingStore = Depends(get_store),
) -> List[Booking]:
    """Admins see every booking; requesters see only their own."""
    requester_id = None if actor.actor_role == RoleEnum.ADMIN else actor.actor_id
    return store.list_bookings(requester_id=requester_id, status=status_filter)


@app.get("/bookings/availability", response_model=Availability)
@limiter.limit("40/minute")
def check_availability(
    request: Request,
    resource_id: int,
    start_time: datetime = Query(...),
    end_time: datetime = Query(...),
    _: Actor = Depends(get_current_actor),
    store: BookingStore = Depends(get_store),
) -> Availability:
    if not lifecycle.is_bookable(store.get_resource(resource_id)):
        raise NotFound("Resource", resource_id)
    available = not has_conflict(store, resource_id, start_time, end_time)
    return Availability(resource_id=resource_id, available=available)


@app.get("/bookings/{booking_id}", response_model=BookingRead)
@limiter.limit("30/minute")
def get_booking(
    request: Request,
    booking_id: int,
    actor: Actor = Depends(get_current_actor),
    store: BookingStore = Depends(get_store),
) -> Booking:
    booking = store.get_booking(booking_id)
    if booking is None:
        raise NotFound("Booking", booking_id)
    if not can_perform(actor.actor_role, Action.VIEW, booking, actor.actor_id):
        raise Forbidden("Access denied")
    return booking


@app.post("/bookings", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
def create_booking(
    request: Request,
    booking_in: BookingCreate,
    actor: Actor = Depends(get_current_actor),
    store: BookingStore = Depends(get_store),
) -> Booking:
    return lifecycle.create_booking(
        store,
        actor,
        booking_in.resource_id,
        booking_in.start_time,
        booking_in.end_time,
    )


@app.post("/bookings/{booking_id}/transition", response_model=BookingRead)
@limiter.limit("20/minute")
def transition_booking(
    request: Request,
    booking_id: int,
    transition_in: BookingTransition,
    actor: Actor = Depends(get_current_actor),
    store: BookingStore = Depends(get_store),
) -> Booking:
    return lifecycle.transition(store, booking_id, actor, transition_in.status)


@app.delete("/bookings/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("10/minute")
def delete_booking(
    request: Request,
    booking_id: int,
    actor: Actor = Depends(get_current_actor),
    store: BookingStore = Depends(get_store),
) -> Response:
    """Administrative override; removes the row without lifecycle checks."""
    if not can_perform(actor.actor_role, Action.DELETE):
        raise Forbidden("Admins only")
    if store.get_booking(booking_id) is None:
        raise NotFound("Booking", booking_id)
    store.delete_booking(booking_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
