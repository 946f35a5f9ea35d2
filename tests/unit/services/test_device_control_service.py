import json

import pytest

from app.core.exceptions import DeviceNotFound, TransportError, TransportUnavailable
from app.models import PowerState
from app.repositories import DeviceRepository
from app.services.device_control_service import DeviceControlService, build_power_payload


def test_build_power_payload_is_compact_lowercase_json() -> None:
    assert build_power_payload(PowerState.ON) == '{"type":"power","state":"on"}'
    assert json.loads(build_power_payload(PowerState.OFF)) == {"type": "power", "state": "off"}


@pytest.mark.asyncio
async def test_send_power_publishes_then_persists(db_session, fake_transport, lamp) -> None:
    service = DeviceControlService(db_session, fake_transport)

    command = await service.send_power("u1", lamp.dev_id, PowerState.ON)

    assert command.topic == "users/u1/devices/lamp1/command"
    assert command.qos == 1
    assert fake_transport.published == [("users/u1/devices/lamp1/command", '{"type":"power","state":"on"}', 1)]
    assert DeviceRepository(db_session).find_owned("u1", lamp.dev_id).dev_power_state == PowerState.ON


@pytest.mark.asyncio
async def test_send_power_to_foreign_device_is_not_found(db_session, fake_transport, user_u2, lamp) -> None:
    service = DeviceControlService(db_session, fake_transport)

    with pytest.raises(DeviceNotFound):
        await service.send_power("u2", lamp.dev_id, PowerState.ON)

    assert fake_transport.published == []


@pytest.mark.asyncio
async def test_foreign_and_missing_devices_fail_identically(db_session, fake_transport, user_u2, lamp) -> None:
    service = DeviceControlService(db_session, fake_transport)

    with pytest.raises(DeviceNotFound) as foreign:
        await service.send_power("u2", lamp.dev_id, PowerState.ON)
    with pytest.raises(DeviceNotFound) as missing:
        await service.send_power("u2", "does-not-exist", PowerState.ON)

    assert foreign.value.message == missing.value.message == "Device not found"
    assert fake_transport.published == []
    assert DeviceRepository(db_session).find_owned("u1", lamp.dev_id).dev_power_state == PowerState.OFF


@pytest.mark.asyncio
async def test_send_power_while_disconnected_leaves_state_untouched(db_session, fake_transport, lamp) -> None:
    fake_transport.is_connected = False
    service = DeviceControlService(db_session, fake_transport)

    with pytest.raises(TransportUnavailable):
        await service.send_power("u1", lamp.dev_id, PowerState.ON)

    db_session.expire_all()
    assert DeviceRepository(db_session).find_owned("u1", lamp.dev_id).dev_power_state == PowerState.OFF


@pytest.mark.asyncio
async def test_send_power_failed_ack_leaves_state_untouched(db_session, fake_transport, lamp) -> None:
    fake_transport.fail_with = TransportError("Publish acknowledgement timed out")
    service = DeviceControlService(db_session, fake_transport)

    with pytest.raises(TransportError):
        await service.send_power("u1", lamp.dev_id, PowerState.ON)

    db_session.expire_all()
    assert DeviceRepository(db_session).find_owned("u1", lamp.dev_id).dev_power_state == PowerState.OFF


@pytest.mark.asyncio
async def test_send_power_custom_topic_uses_stored_base(db_session, fake_transport, user_u1, device_factory) -> None:
    from app.models import DeviceIntegration

    relay = device_factory("u1", "relay1", integration=DeviceIntegration.CUSTOM_TOPIC, topic="home/kitchen/relay/1")
    service = DeviceControlService(db_session, fake_transport)

    await service.send_power("u1", relay.dev_id, PowerState.OFF)

    assert fake_transport.published[0][0] == "home/kitchen/relay/1/command"
