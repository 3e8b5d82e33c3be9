import logging
from typing import Callable, List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from core.db import get_db
from core.errors import AppError
from core.tenancy import get_current_store
from models.order import Order
from models.store import Store
from schemas.order import GuestOrderCreate, OrderCreated, OrderOut, StoreOrderCreate
from services import orders as order_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


def _intake(create: Callable[..., Order], db: Session, data):
    # Intake endpoints always answer with a success flag, errors included
    try:
        order = create(db, data)
    except AppError as exc:
        return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.message})
    except Exception:
        logger.exception("Unexpected error while creating order")
        return JSONResponse(status_code=500, content={"success": False, "error": "Failed to create order"})
    return OrderCreated(order_number=order.order_number, order_id=order.id, total=float(order.total))


@router.post("/guest", response_model=OrderCreated, status_code=201)
def create_guest_order(data: GuestOrderCreate, db: Session = Depends(get_db)):
    return _intake(order_service.create_guest_order, db, data)


@router.post("/retail", response_model=OrderCreated, status_code=201)
def create_retail_order(data: StoreOrderCreate, db: Session = Depends(get_db)):
    return _intake(order_service.create_retail_order, db, data)


@router.post("/wholesale", response_model=OrderCreated, status_code=201)
def create_wholesale_order(data: StoreOrderCreate, db: Session = Depends(get_db)):
    return _intake(order_service.create_wholesale_order, db, data)


@router.get("/", response_model=List[OrderOut])
def list_orders(store: Store = Depends(get_current_store), db: Session = Depends(get_db)):
    return db.query(Order).filter(Order.store_id == store.id).order_by(Order.created_at.desc()).all()


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: str, store: Store = Depends(get_current_store), db: Session = Depends(get_db)):
    order = db.query(Order).filter(Order.store_id == store.id, Order.id == order_id).one_or_none()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order
