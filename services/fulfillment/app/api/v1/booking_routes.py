"""API routes for buyer pickup bookings."""

from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.security import Principal
from app.dependencies import get_db, get_principal, require_admin, require_buyer
from app.schemas.booking import (
    BookingResponse,
    BookingStatusUpdate,
    BookingViewResponse,
    PickupBookingCreate,
)
from app.services.booking_service import BookingService
from app.services.fulfillment_view import FulfillmentViewService

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("/pickups", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_pickup_booking(
    payload: PickupBookingCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    buyer: Principal = Depends(require_buyer),
) -> BookingResponse:
    """Book a pickup slot for a product whose delivery has been completed."""

    service = BookingService(db)
    return service.create_pickup_booking(buyer, payload, background_tasks=background_tasks)


@router.get("", response_model=List[BookingViewResponse])
def list_bookings(
    *,
    db: Session = Depends(get_db),
    viewer: Principal = Depends(get_principal),
    status: Optional[str] = Query(None, description="Filter by booking status"),
    schedule_id: Optional[int] = Query(None, description="Filter by pickup slot"),
    delivery_id: Optional[int] = Query(None, description="Filter by delivery"),
    buyer_id: Optional[int] = Query(None, description="Filter by buyer (admins only)"),
    admin_id: Optional[int] = Query(None, description="Filter by responsible admin"),
) -> List[BookingViewResponse]:
    """Buyers see their own bookings; admins see every booking."""

    service = FulfillmentViewService(db)
    return service.list_bookings(
        viewer,
        status_filter=status,
        schedule_id=schedule_id,
        delivery_id=delivery_id,
        buyer_id=buyer_id,
        admin_id=admin_id,
    )


@router.put("/status", response_model=BookingResponse)
def update_booking_status(
    payload: BookingStatusUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin),
) -> BookingResponse:

    service = BookingService(db)
    return service.transition_booking_status(admin, payload, background_tasks=background_tasks)


@router.get("/{booking_id}", response_model=BookingViewResponse)
def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    viewer: Principal = Depends(get_principal),
) -> BookingViewResponse:

    service = FulfillmentViewService(db)
    return service.get_booking(viewer, booking_id)
