# backend/tests/unit/services/test_push_gateway.py
import pytest

from carenow.integrations.push import ConsolePushGateway, PushGateway, build_push_gateway


def test_console_gateway_satisfies_protocol():
    assert isinstance(build_push_gateway("console"), PushGateway)


def test_unknown_provider():
    with pytest.raises(ValueError):
        build_push_gateway("carrier-pigeon")


def test_console_gateway_records_sends():
    gateway = ConsolePushGateway()
    assert gateway.send_to_token("tok", "Title", "Body", {"booking_id": "b1"})
    assert list(gateway.sent) == [
        {"target": "token:tok", "title": "Title", "body": "Body", "data": {"booking_id": "b1"}}
    ]


def test_console_gateway_keeps_only_recent_sends():
    gateway = ConsolePushGateway(history=2)
    for n in range(5):
        gateway.send_to_topic("all", f"Title {n}", "Body")
    assert [p["title"] for p in gateway.sent] == ["Title 3", "Title 4"]
