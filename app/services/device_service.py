# app/services/device_service.py

from sqlalchemy.orm import Session
from app.repositories import DeviceRepository, DeviceSpec
from app.schemas import DeviceCreate, DeviceRename, DeviceResponse, DeviceTopicsResponse
from app.core import logger, topics

def get_device_by_id_service(db: Session, dev_id: str, user_id: str) -> DeviceResponse:
    device = DeviceRepository(db).find_owned(user_id, dev_id)
    return DeviceResponse.model_validate(device)

def get_all_devices_by_user_service(db: Session, user_id: str) -> list[DeviceResponse]:
    devices = DeviceRepository(db).list_by_owner(user_id)
    return [DeviceResponse.model_validate(device) for device in devices]

def create_device_service(db: Session, user_id: str, device_data: DeviceCreate) -> DeviceResponse:
    spec = DeviceSpec(
        name=device_data.dev_name,
        description=device_data.dev_description,
        endpoint_id=device_data.dev_endpoint_id,
        type=device_data.dev_type,
        integration=device_data.dev_integration,
        topic=device_data.dev_topic,
        channels=device_data.dev_channels,
    )
    device = DeviceRepository(db).create(user_id, spec)
    logger.info(f"Dispositivo {device.dev_endpoint_id} ({device.dev_integration.value}) registrado para el usuario {user_id}")
    return DeviceResponse.model_validate(device)

def rename_device_service(db: Session, dev_id: str, user_id: str, device_data: DeviceRename) -> DeviceResponse:
    device_repo = DeviceRepository(db)
    device = device_repo.find_owned(user_id, dev_id)
    device = device_repo.rename(device, device_data.dev_name)
    return DeviceResponse.model_validate(device)

def get_device_topics_service(db: Session, dev_id: str, user_id: str) -> DeviceTopicsResponse:
    device = DeviceRepository(db).find_owned(user_id, dev_id)
    return DeviceTopicsResponse(**topics.derive_topics(device.dev_topic_base))
