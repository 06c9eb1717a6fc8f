"""API routes for admin schedule slots."""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.security import Principal
from app.dependencies import get_db, require_admin, require_buyer
from app.schemas.schedule import (
    ScheduleAvailabilityResponse,
    ScheduleCreate,
    ScheduleDeleteResponse,
    ScheduleResponse,
    ScheduleUpdate,
)
from app.services.schedule_service import ScheduleService

router = APIRouter(prefix="/schedules", tags=["schedules"])


@router.get("", response_model=List[ScheduleAvailabilityResponse])
def list_schedules(
    *,
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin),
    date_from: Optional[date] = Query(None, description="First date to include (YYYY-MM-DD)"),
    date_to: Optional[date] = Query(None, description="Last date to include (YYYY-MM-DD)"),
    type: Optional[str] = Query(None, description="Filter by slot type: delivery or pickup"),
    status: Optional[str] = Query(None, description="Filter by schedule status"),
) -> List[ScheduleAvailabilityResponse]:
    """List the caller's schedules with their current utilization."""

    service = ScheduleService(db)
    return service.list_schedules(
        admin,
        date_from=date_from,
        date_to=date_to,
        type_filter=type,
        status_filter=status,
    )


@router.get("/available", response_model=List[ScheduleAvailabilityResponse])
def list_available_schedules(
    *,
    db: Session = Depends(get_db),
    buyer: Principal = Depends(require_buyer),
    date_value: Optional[date] = Query(
        None,
        alias="date",
        description="Only return slots on this date (YYYY-MM-DD)",
    ),
) -> List[ScheduleAvailabilityResponse]:
    """Pickup slots the buyer can book with the admins handling their orders."""

    service = ScheduleService(db)
    return service.list_available_for_buyer(buyer, target_date=date_value)


@router.get("/{schedule_id}", response_model=ScheduleResponse)
def get_schedule(
    schedule_id: int,
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin),
) -> ScheduleResponse:

    service = ScheduleService(db)
    return service.get_schedule(admin, schedule_id)


@router.post("", response_model=ScheduleResponse, status_code=status.HTTP_201_CREATED)
def create_schedule(
    payload: ScheduleCreate,
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin),
) -> ScheduleResponse:
    """Publish a new delivery or pickup slot."""

    service = ScheduleService(db)
    return service.create_schedule(admin, payload)


@router.put("/{schedule_id}", response_model=ScheduleResponse)
def update_schedule(
    schedule_id: int,
    payload: ScheduleUpdate,
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin),
) -> ScheduleResponse:

    service = ScheduleService(db)
    return service.update_schedule(admin, schedule_id, payload)


@router.delete("/{schedule_id}", response_model=ScheduleDeleteResponse)
def delete_schedule(
    schedule_id: int,
    db: Session = Depends(get_db),
    admin: Principal = Depends(require_admin),
) -> ScheduleDeleteResponse:
    """Delete a schedule, or cancel it when bookings already reference it."""

    service = ScheduleService(db)
    return service.delete_schedule(admin, schedule_id)
