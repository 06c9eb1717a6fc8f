"""API routes for seller delivery bookings."""

from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.security import Principal
from app.dependencies import get_db, get_principal, require_admin, require_seller
from app.schemas.delivery import (
    DeliveryCreate,
    DeliveryResponse,
    DeliveryStatusUpdate,
    DeliveryViewResponse,
)
from app.services.delivery_service import DeliveryService
from app.services.fulfillment_view import FulfillmentViewService

router = APIRouter(prefix="/deliveries", tags=["deliveries"])


@router.post("", response_model=DeliveryResponse, status_code=status.HTTP_201_CREATED)
def create_delivery(
    payload: DeliveryCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    seller: Principal = Depends(require_seller),
) -> DeliveryResponse:
    """Book one of the seller's products into an admin delivery slot."""

    service = DeliveryService(db)
    return service.create_delivery_booking(seller, payload, background_tasks=background_tasks)


@router.get("", response_model=List[DeliveryViewResponse])
def list_deliveries(
    *,
    db: Session = Depends(get_db),
    viewer: Principal = Depends(get_principal),
    status: Optional[str] = Query(None, description="Filter by delivery status"),
    schedule_id: Optional[int] = Query(None, description="Filter by delivery slot"),
    listing_id: Optional[int] = Query(None, description="Filter by product"),
    admin_id: Optional[int] = Query(None, description="Filter by responsible admin"),
) -> List[DeliveryViewResponse]:

    service = FulfillmentViewService(db)
    return service.list_deliveries(
        viewer,
        status_filter=status,
        schedule_id=schedule_id,
        listing_id=listing_id,
        admin_id=admin_id,
    )


@router.put("/{delivery_id}/status", response_model=DeliveryResponse)
def update_delivery_status(
    delivery_id: int,
    payload: DeliveryStatusUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin),
) -> DeliveryResponse:

    service = DeliveryService(db)
    return service.transition_delivery_status(
        admin, delivery_id, payload, background_tasks=background_tasks
    )
