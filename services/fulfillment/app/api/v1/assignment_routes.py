from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.security import Principal
from app.dependencies import get_db, require_buyer
from app.schemas.assignment import OrderAdminResponse
from app.services.fulfillment_view import FulfillmentViewService

router = APIRouter(prefix="/assignments", tags=["assignments"])


@router.get("/orders/{order_id}/admin", response_model=OrderAdminResponse)
def get_order_admin(
    order_id: int,
    db: Session = Depends(get_db),
    buyer: Principal = Depends(require_buyer),
) -> OrderAdminResponse:
    """Admin contact details for one of the caller's orders."""

    service = FulfillmentViewService(db)
    return service.get_order_admin(buyer, order_id)
