# app/routers/settings.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.core.auth import require_admin
from app.database import get_session
from app.repositories.setting_repo import SettingRepository
from app.schemas.setting import BusinessInfo, SettingsUpdate
from app.services.setting_service import SettingService

router = APIRouter(prefix="/settings", tags=["Settings"])

repo = SettingRepository()
service = SettingService(repo)


@router.get("", response_model=BusinessInfo)
def get_business_info(session: Session = Depends(get_session)):
    """
    Store name, address and contact details shown on receipts.

    - Public endpoint (the login screen shows the store name).
    """
    return service.get_business_info(session)


@router.put(
    "",
    response_model=BusinessInfo,
    dependencies=[Depends(require_admin)],
)
def update_business_info(
    payload: SettingsUpdate,
    session: Session = Depends(get_session),
):
    """
    Update receipt header settings (admin only). Omitted fields keep
    their stored value.
    """
    return service.update(session, payload)
