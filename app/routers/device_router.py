# app/routers/device_router.py

from typing import List
from sqlalchemy.orm import Session
from fastapi import APIRouter, Depends, status

from app.database import get_db
from app.core import TokenData, get_current_user
from app.core.exceptions import SmartHomeError
from app.schemas import DeviceResponse, DeviceCreate, DeviceRename, DeviceTopicsResponse
from app.services import (
    create_device_service,
    get_all_devices_by_user_service,
    get_device_by_id_service,
    rename_device_service,
    get_device_topics_service,
)
from app.routers.errors import to_http_exception

router = APIRouter(prefix="/devices", tags=["Devices"])

@router.post("/", response_model=DeviceResponse, status_code=status.HTTP_201_CREATED)
def create_device_route(device_data: DeviceCreate, db: Session = Depends(get_db), current_user: TokenData = Depends(get_current_user)):
    try:
        return create_device_service(db, user_id=current_user.user_id, device_data=device_data)
    except SmartHomeError as e:
        raise to_http_exception(e)

@router.get("/", response_model=List[DeviceResponse])
def get_all_devices_route(db: Session = Depends(get_db), current_user: TokenData = Depends(get_current_user)):
    return get_all_devices_by_user_service(db, user_id=current_user.user_id)

@router.get("/{dev_id}", response_model=DeviceResponse)
def get_device_by_id_route(dev_id: str, db: Session = Depends(get_db), current_user: TokenData = Depends(get_current_user)):
    try:
        return get_device_by_id_service(db, dev_id=dev_id, user_id=current_user.user_id)
    except SmartHomeError as e:
        raise to_http_exception(e)

@router.patch("/{dev_id}", response_model=DeviceResponse)
def rename_device_route(dev_id: str, device_data: DeviceRename, db: Session = Depends(get_db), current_user: TokenData = Depends(get_current_user)):
    try:
        return rename_device_service(db, dev_id=dev_id, user_id=current_user.user_id, device_data=device_data)
    except SmartHomeError as e:
        raise to_http_exception(e)

@router.get("/{dev_id}/topics", response_model=DeviceTopicsResponse)
def get_device_topics_route(dev_id: str, db: Session = Depends(get_db), current_user: TokenData = Depends(get_current_user)):
    """
    Tópicos MQTT del dispositivo (base, command, state, telemetry) para configurar la placa.
    """
    try:
        return get_device_topics_service(db, dev_id=dev_id, user_id=current_user.user_id)
    except SmartHomeError as e:
        raise to_http_exception(e)
