from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.security import require_operator
from app.schemas.usage import SpendingStatus, SystemStatus
from app.services.spending_service import SpendingService

router = APIRouter()

@router.get("", response_model=SystemStatus)
async def get_system_status(db: Session = Depends(get_db)):
    """Whether billable operations are currently accepted"""
    paused = SpendingService.is_paused(db)
    return SystemStatus(status="limited" if paused else "operational")

@router.get("/spending", response_model=SpendingStatus, dependencies=[Depends(require_operator)])
async def get_spending_status(db: Session = Depends(get_db)):
    """Operator view of spend against the breaker limits"""
    return SpendingService.get_status(db)
