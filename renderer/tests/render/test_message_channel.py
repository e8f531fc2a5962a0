import pytest

from renderer.app.errors import ProtocolViolation
from renderer.app.render.channel import ChannelMessage, MessageChannel
from renderer.tests.render.fake_sandbox import drain

pytestmark = pytest.mark.anyio


async def test_messages_posted_before_start_are_queued_in_order():
    channel = MessageChannel()
    received = []

    async def listener(message: ChannelMessage) -> None:
        received.append(message.data)

    channel.port2.post_message("first")
    channel.port2.post_message({"second": 2})

    channel.port1.start(listener)
    channel.port2.post_message("third")
    await drain()

    assert received == ["first", {"second": 2}, "third"]


async def test_ports_are_transferred_with_message():
    channel = MessageChannel()
    other = MessageChannel()
    received = []

    async def listener(message: ChannelMessage) -> None:
        received.append(message)

    channel.port1.start(listener)
    channel.port2.post_message("start", transfer=[other.port2])
    await drain()

    assert len(received) == 1
    assert received[0].data == "start"
    assert received[0].ports == (other.port2,)


async def test_delivery_is_bidirectional():
    channel = MessageChannel()
    host, isolated = [], []

    async def host_listener(message: ChannelMessage) -> None:
        host.append(message.data)

    async def isolated_listener(message: ChannelMessage) -> None:
        isolated.append(message.data)
        channel.port2.post_message("ready")

    channel.port1.start(host_listener)
    channel.port2.start(isolated_listener)
    channel.port1.post_message("render")
    await drain()

    assert isolated == ["render"]
    assert host == ["ready"]


async def test_port_accepts_a_single_listener():
    channel = MessageChannel()

    async def listener(message: ChannelMessage) -> None:
        return

    channel.port1.start(listener)
    assert channel.port1.started

    with pytest.raises(ProtocolViolation):
        channel.port1.start(listener)


async def test_closed_port_drops_messages():
    channel = MessageChannel()
    received = []

    async def listener(message: ChannelMessage) -> None:
        received.append(message.data)
        channel.port1.close()

    channel.port1.start(listener)
    channel.port2.post_message("ready")
    channel.port2.post_message("ready")
    await drain()
    channel.port2.post_message("late")
    channel.port1.post_message("outbound")
    await drain()

    assert received == ["ready"]
    assert channel.port1.closed

    with pytest.raises(ProtocolViolation):
        channel.port1.start(listener)


async def test_listener_failure_does_not_stop_delivery():
    channel = MessageChannel()
    received = []

    async def listener(message: ChannelMessage) -> None:
        received.append(message.data)
        if message.data == "bad":
            raise RuntimeError("listener failed")

    channel.port1.start(listener)
    channel.port2.post_message("bad")
    channel.port2.post_message("good")
    await drain()

    assert received == ["bad", "good"]
