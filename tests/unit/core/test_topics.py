import pytest

from app.core import topics
from app.core.exceptions import InvalidTopic


def test_derive_default_builds_board_topic() -> None:
    assert topics.derive_default("u1", "lamp1") == "users/u1/devices/lamp1"


def test_channel_topics_append_suffix() -> None:
    base = "users/u1/devices/lamp1"
    assert topics.command(base) == "users/u1/devices/lamp1/command"
    assert topics.state(base) == "users/u1/devices/lamp1/state"
    assert topics.telemetry(base) == "users/u1/devices/lamp1/telemetry"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("  home/kitchen/relay/1  ", "home/kitchen/relay/1"),
        ("users/u1/devices/lamp1/state", "users/u1/devices/lamp1"),
        ("users/u1/devices/lamp1/command", "users/u1/devices/lamp1"),
        ("users/u1/devices/lamp1/telemetry/state", "users/u1/devices/lamp1"),
        ("site-a/floor_2/dev:01/relay.3", "site-a/floor_2/dev:01/relay.3"),
    ],
)
def test_normalize_trims_and_strips_channel_suffix(raw: str, expected: str) -> None:
    assert topics.normalize(raw) == expected


def test_normalize_is_idempotent() -> None:
    once = topics.normalize(" users/u1/devices/lamp1/state/command ")
    assert topics.normalize(once) == once


@pytest.mark.parametrize(
    "raw",
    [
        "users/+/devices/lamp1",
        "users/u1/devices/#",
        "users//devices/lamp1",
        "users/u1/devices",
        "users/u1/devices/lamp 1",
        "users/u1/devices/lamp1/",
        "users/u1/devices/lämp",
        "",
        "   ",
    ],
)
def test_normalize_rejects_unsafe_topics(raw: str) -> None:
    with pytest.raises(InvalidTopic):
        topics.normalize(raw)


def test_derive_default_rejects_invalid_endpoint() -> None:
    with pytest.raises(InvalidTopic):
        topics.derive_default("u1", "lamp#1")


@pytest.mark.parametrize("endpoint_id", ["lamp/state", "a/b", "lamp/", "", "lamp 1"])
def test_derive_default_requires_single_segment_endpoint(endpoint_id: str) -> None:
    with pytest.raises(InvalidTopic):
        topics.derive_default("u1", endpoint_id)


def test_derive_default_requires_single_segment_user() -> None:
    with pytest.raises(InvalidTopic):
        topics.derive_default("u1/devices", "lamp1")


@pytest.mark.parametrize("endpoint_id", ["lamp1", "lamp.state", "dev:01", "relay-1_a"])
def test_derive_default_keeps_endpoint_verbatim(endpoint_id: str) -> None:
    assert topics.derive_default("u1", endpoint_id) == f"users/u1/devices/{endpoint_id}"


def test_derive_topics_returns_full_family() -> None:
    assert topics.derive_topics("users/u1/devices/lamp1") == {
        "base": "users/u1/devices/lamp1",
        "command": "users/u1/devices/lamp1/command",
        "state": "users/u1/devices/lamp1/state",
        "telemetry": "users/u1/devices/lamp1/telemetry",
    }


def test_parse_state_topic_extracts_address() -> None:
    address = topics.parse_state_topic("users/u1/devices/lamp1/state")

    assert address == topics.StateAddress(user_id="u1", endpoint_id="lamp1")
    assert address.user_id == "u1"
    assert address.endpoint_id == "lamp1"


@pytest.mark.parametrize(
    "topic",
    [
        "users/u1/devices/lamp1/command",
        "users/u1/devices/lamp1/telemetry",
        "users/u1/devices/lamp1",
        "users/u1/devices/lamp1/state/extra",
        "people/u1/devices/lamp1/state",
        "users/u1/things/lamp1/state",
        "users//devices/lamp1/state",
        "",
    ],
)
def test_parse_state_topic_ignores_other_shapes(topic: str) -> None:
    assert topics.parse_state_topic(topic) is None


def test_state_subscription_matches_derived_state_topic() -> None:
    import paho.mqtt.client as mqtt

    state_topic = topics.state(topics.derive_default("u1", "lamp1"))
    assert mqtt.topic_matches_sub(topics.STATE_SUBSCRIPTION, state_topic)
