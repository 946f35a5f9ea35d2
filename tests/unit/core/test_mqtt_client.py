from types import SimpleNamespace

import paho.mqtt.client as mqtt
import pytest

from app.core.exceptions import TransportError, TransportUnavailable
from app.core.mqtt_client import MQTTClient


class _StubMessageInfo:
    def __init__(self, rc: int = mqtt.MQTT_ERR_SUCCESS, published: bool = True, error: Exception | None = None):
        self.rc = rc
        self._published = published
        self._error = error
        self.waited_with = None

    def wait_for_publish(self, timeout=None):
        self.waited_with = timeout
        if self._error:
            raise self._error

    def is_published(self) -> bool:
        return self._published


class _StubPahoClient:
    def __init__(self, info: _StubMessageInfo | None = None):
        self.info = info or _StubMessageInfo()
        self.published = []
        self.subscribed = []

    def publish(self, topic, payload, qos=0):
        self.published.append((topic, payload, qos))
        return self.info

    def subscribe(self, topic, qos=0):
        self.subscribed.append((topic, qos))


def _connected_client(info: _StubMessageInfo | None = None) -> MQTTClient:
    client = MQTTClient(host="broker.test", port=1883, publish_timeout=0.5)
    client.client = _StubPahoClient(info)
    client.is_connected = True
    return client


@pytest.mark.asyncio
async def test_publish_waits_for_ack_with_timeout() -> None:
    client = _connected_client()

    await client.publish("users/u1/devices/lamp1/command", '{"type":"power","state":"on"}', qos=1)

    assert client.client.published == [("users/u1/devices/lamp1/command", '{"type":"power","state":"on"}', 1)]
    assert client.client.info.waited_with == 0.5


@pytest.mark.asyncio
async def test_publish_without_connection_is_unavailable() -> None:
    client = MQTTClient(host="broker.test", port=1883)

    with pytest.raises(TransportUnavailable):
        await client.publish("a/b/c/d/command", "{}")


@pytest.mark.asyncio
async def test_publish_rejected_by_paho_raises_transport_error() -> None:
    client = _connected_client(_StubMessageInfo(rc=mqtt.MQTT_ERR_NO_CONN))

    with pytest.raises(TransportError):
        await client.publish("a/b/c/d/command", "{}")


@pytest.mark.asyncio
async def test_publish_ack_timeout_raises_transport_error() -> None:
    client = _connected_client(_StubMessageInfo(published=False))

    with pytest.raises(TransportError) as exc_info:
        await client.publish("a/b/c/d/command", "{}")
    assert not isinstance(exc_info.value, TransportUnavailable)


@pytest.mark.asyncio
async def test_publish_wait_failure_raises_transport_error() -> None:
    client = _connected_client(_StubMessageInfo(error=RuntimeError("connection lost")))

    with pytest.raises(TransportError):
        await client.publish("a/b/c/d/command", "{}")


def test_on_message_dispatches_to_matching_filters_only() -> None:
    client = _connected_client()
    received = []
    client.subscribe("users/+/devices/+/state", 1, lambda topic, payload: received.append((topic, payload)))
    client.subscribe("other/#", 0, lambda topic, payload: received.append(("other", payload)))

    client._on_message(None, None, SimpleNamespace(topic="users/u1/devices/lamp1/state", payload=b"ON"))

    assert received == [("users/u1/devices/lamp1/state", b"ON")]


def test_on_message_survives_failing_callback() -> None:
    client = _connected_client()
    received = []

    def broken(topic, payload):
        raise RuntimeError("boom")

    client.subscribe("users/+/devices/+/state", 1, broken)
    client.subscribe("users/#", 1, lambda topic, payload: received.append(payload))

    client._on_message(None, None, SimpleNamespace(topic="users/u1/devices/lamp1/state", payload=b"OFF"))

    assert received == [b"OFF"]


def test_on_connect_resubscribes_every_filter() -> None:
    client = MQTTClient(host="broker.test", port=1883)
    client.subscribe("users/+/devices/+/state", 1, lambda topic, payload: None)
    paho = _StubPahoClient()

    client._on_connect(paho, None, None, SimpleNamespace(is_failure=False), None)

    assert client.is_connected
    assert paho.subscribed == [("users/+/devices/+/state", 1)]


def test_on_disconnect_marks_client_offline() -> None:
    client = _connected_client()

    client._on_disconnect(None, None, None, "unexpected", None)

    assert not client.is_connected
