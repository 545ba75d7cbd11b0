"""Tests for the HTTP transport and response envelope decoding.

Requests are answered by an ``httpx.MockTransport``; nothing listens on a port.
"""

import json

import httpx
import pytest

from pyphantom import (
    MalformedResponseError,
    RawBodyError,
    RemoteError,
    RPCTransport,
    UnexpectedStatusError,
    UnknownOperationError,
)
from pyphantom._internal.rpc_transports import HTTPTransport, decode_envelope
from pyphantom._internal.wire import as_str, decode_settings


def value_of(data):
    return as_str(data.get("value"))


@pytest.fixture
def transport(mock_client):
    return HTTPTransport("http://localhost:20202/", client=mock_client)


def test_http_transport_satisfies_protocol(transport):
    assert isinstance(transport, RPCTransport)


class TestCall:
    def test_posts_json_with_content_type(self):
        captured = {}

        def handler(request):
            captured["method"] = request.method
            captured["url"] = str(request.url)
            captured["content_type"] = request.headers.get("content-type")
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"value": "Example Domain"})

        client = httpx.Client(transport=httpx.MockTransport(handler))
        result = HTTPTransport("http://localhost:20202", client=client).call(
            "POST", "/webpage/Title", {"ref": "1"}, value_of
        )

        assert result == "Example Domain"
        assert captured == {
            "method": "POST",
            "url": "http://localhost:20202/webpage/Title",
            "content_type": "application/json",
            "body": {"ref": "1"},
        }

    def test_no_payload_sends_no_body(self, transport, remote):
        remote.answer("/webpage/Create", {"ref": {"id": "1"}})

        transport.call("POST", "/webpage/Create")

        assert remote.last == ("/webpage/Create", None)

    def test_no_decoder_returns_none(self, transport, remote):
        remote.answer("/webpage/Reload", {"value": "ignored"})

        assert transport.call("POST", "/webpage/Reload", {"ref": "1"}) is None

    def test_error_field_raises_remote_error(self, transport, remote):
        remote.answer("/webpage/Title", {"error": "reference not found: 9"}, status=500)

        with pytest.raises(RemoteError) as exc_info:
            transport.call("POST", "/webpage/Title", {"ref": "9"}, value_of)

        assert str(exc_info.value) == "reference not found: 9"

    def test_error_wins_over_payload(self, transport, remote):
        remote.answer("/webpage/Title", {"error": "boom", "value": "title"})

        with pytest.raises(RemoteError, match="^boom$"):
            transport.call("POST", "/webpage/Title", {"ref": "1"}, value_of)

    def test_empty_error_is_not_an_error(self, transport, remote):
        remote.answer("/webpage/Title", {"error": "", "value": "title"})

        assert transport.call("POST", "/webpage/Title", {"ref": "1"}, value_of) == "title"

    def test_404_is_unknown_operation(self, transport):
        with pytest.raises(UnknownOperationError) as exc_info:
            transport.call("POST", "/webpage/NoSuchOp", {"ref": "1"})

        assert exc_info.value.path == "/webpage/NoSuchOp"

    def test_raw_text_body(self, transport, remote):
        remote.answer("/webpage/Title", text="TypeError: undefined is not an object", status=500)

        with pytest.raises(RawBodyError) as exc_info:
            transport.call("POST", "/webpage/Title", {"ref": "1"}, value_of)

        assert str(exc_info.value) == "pyphantom: TypeError: undefined is not an object"

    def test_wrong_value_type_is_malformed(self, transport, remote):
        remote.answer("/webpage/Title", {"value": 42})

        with pytest.raises(MalformedResponseError) as exc_info:
            transport.call("POST", "/webpage/Title", {"ref": "1"}, value_of)

        assert str(exc_info.value).startswith("unmarshal error: path=/webpage/Title")
        assert isinstance(exc_info.value.__cause__, TypeError)

    @pytest.mark.parametrize("resource_timeout", [1e20, 10**30, 10**400])
    def test_out_of_range_duration_is_malformed(self, transport, remote, resource_timeout):
        remote.answer("/webpage/Settings", {"settings": {"resourceTimeout": resource_timeout}})

        with pytest.raises(MalformedResponseError) as exc_info:
            transport.call(
                "POST", "/webpage/Settings", {"ref": "1"}, lambda data: decode_settings(data.get("settings"))
            )

        assert str(exc_info.value).startswith("unmarshal error: path=/webpage/Settings")
        assert "resourceTimeout" in exc_info.value.body

    def test_transport_errors_propagate_unwrapped(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.Client(transport=httpx.MockTransport(handler))

        with pytest.raises(httpx.ConnectError):
            HTTPTransport("http://localhost:1", client=client).call("POST", "/webpage/Title", {"ref": "1"})


class TestDecodeEnvelope:
    @pytest.mark.parametrize("body", [b"", b"not json", b"[1, 2]", b'"text"'])
    def test_non_object_bodies_are_raw(self, body):
        with pytest.raises(RawBodyError):
            decode_envelope("/webpage/Title", body, value_of)

    def test_null_body_is_empty_object(self):
        assert decode_envelope("/webpage/Title", b"null", value_of) == ""

    def test_non_string_error_is_serialized(self):
        with pytest.raises(RemoteError) as exc_info:
            decode_envelope("/webpage/Title", b'{"error": {"code": 1}}')

        assert str(exc_info.value) == '{"code": 1}'


class TestPing:
    def test_ok(self, transport, remote):
        remote.answer("/ping", text="ok")

        transport.ping(timeout=0.3)

        assert remote.last == ("/ping", None)

    def test_non_200_raises(self, transport, remote):
        remote.answer("/ping", text="starting", status=503)

        with pytest.raises(UnexpectedStatusError) as exc_info:
            transport.ping()

        assert exc_info.value.status_code == 503


class TestClose:
    def test_injected_client_left_open(self, transport, mock_client):
        transport.close()

        assert not mock_client.is_closed

    def test_owned_client_recreated_after_close(self):
        transport = HTTPTransport("http://localhost:20202")
        first = transport._get_client()
        transport.close()

        assert first.is_closed
        second = transport._get_client()
        assert second is not first
        transport.close()
