"""Tests for flows."""

import threading

import pytest

from timberlogs import (
    Flow,
    HttpError,
    LogLevel,
    NotConnectedError,
    ValidationError,
)


def test_flow_steps_increment(make_client, transport):
    """Test three logs through a flow carry steps 0, 1, 2 and one flow id."""
    client = make_client()
    flow = client.flow("checkout")

    flow.info("Cart loaded")
    flow.info("Payment accepted")
    flow.info("Order placed")
    client.flush()

    assert transport.flow_names == ["checkout"]
    assert [e.flow_id for e in transport.entries] == [flow.id] * 3
    assert [e.step_index for e in transport.entries] == [0, 1, 2]
    assert flow.step_index == 3


def test_flow_handle(make_client):
    client = make_client()
    flow = client.flow("checkout")

    assert isinstance(flow, Flow)
    assert flow.id == "flow_1"
    assert flow.name == "checkout"
    assert flow.step_index == 0


def test_flow_methods_chain_and_set_level(make_client, transport):
    """Test convenience methods chain and use their own level."""
    client = make_client()
    client.flow("job").debug("d").info("i").warn("w").error("e", {"code": 7})
    client.flush()

    assert [e.level for e in transport.entries] == [
        LogLevel.DEBUG,
        LogLevel.INFO,
        LogLevel.WARN,
        LogLevel.ERROR,
    ]
    assert transport.entries[3].data == {"code": 7}


def test_log_with_level_tags(make_client, transport):
    client = make_client()
    client.flow("job").log_with_level(LogLevel.WARN, "tagged", {"k": 1}, ["retry"])
    client.flush()

    entry = transport.entries[0]
    assert entry.tags == ["retry"]
    assert entry.data == {"k": 1}
    assert entry.step_index == 0


def test_flow_entries_get_default_context(make_client, transport):
    client = make_client(user_id="u1")
    client.flow("job").info("step")
    client.flush()

    assert transport.entries[0].user_id == "u1"


def test_separate_flows_count_independently(make_client, transport):
    client = make_client()
    first = client.flow("first")
    second = client.flow("second")

    first.info("a")
    second.info("b")
    first.info("c")
    client.flush()

    steps = [(e.flow_id, e.step_index) for e in transport.entries]
    assert steps == [(first.id, 0), (second.id, 0), (first.id, 1)]


def test_rejected_step_is_not_reused(make_client, transport):
    """Test a rejected log still consumes its step."""
    client = make_client(min_level=LogLevel.INFO)
    flow = client.flow("job")

    with pytest.raises(ValidationError):
        flow.debug("filtered")
    flow.info("kept")
    client.flush()

    assert [e.step_index for e in transport.entries] == [1]


def test_concurrent_flow_logging_unique_steps(make_client, transport):
    """Test concurrent calls on one flow never share a step."""
    client = make_client(max_buffer_size=10_000)
    flow = client.flow("parallel")
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        for _ in range(100):
            flow.info("step")

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    client.flush()

    steps = [e.step_index for e in transport.entries]
    assert steps == list(range(800))


def test_flow_creation_failure(make_client, transport):
    """Test a failed flow request raises and returns no handle."""
    transport.flow_error = HttpError(401, "unauthorized")
    client = make_client()

    with pytest.raises(HttpError):
        client.flow("checkout")


def test_flow_name_required(make_client):
    client = make_client()
    with pytest.raises(ValidationError):
        client.flow("")


def test_flow_unusable_after_disconnect(make_client, transport):
    """Test flows stop accepting logs once their client disconnects."""
    client = make_client()
    flow = client.flow("checkout")
    flow.info("before")
    client.disconnect()

    with pytest.raises(NotConnectedError):
        flow.info("after")
    with pytest.raises(NotConnectedError):
        client.flow("another")

    assert [e.message for e in transport.entries] == ["before"]
