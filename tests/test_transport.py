import json
import logging

import pytest
import requests

from conftest import FakeResponse, FakeSession, ndjson
from pylloom.errors import (
    ConfigurationError,
    DecodeError,
    RequestError,
    ResponseError,
    StreamLimitError,
)
from pylloom.infrastructure.http.retry import RetryConfig
from pylloom.infrastructure.http.transport import HttpTransport


def _transport(*responses, retry_config=None, **kwargs):
    session = FakeSession(*responses)
    transport = HttpTransport(
        kwargs.pop("base_url", "http://localhost:11434"),
        session=session,
        retry_config=retry_config or RetryConfig.disabled(),
        **kwargs,
    )
    return transport, session


@pytest.mark.parametrize("base_url", ["", "localhost:11434", "ftp://example.com", "http://"])
def test_invalid_base_url_rejected(base_url):
    with pytest.raises(ConfigurationError):
        HttpTransport(base_url, session=FakeSession())


def test_absolute_endpoint_path_replaces_base_path():
    transport, _ = _transport(base_url="http://example.com:8080/prefix/")
    assert transport.url_for("/api/tags") == "http://example.com:8080/api/tags"


def test_request_json_sends_json_body_and_headers():
    transport, session = _transport(
        FakeResponse(200, {"ok": True}),
        headers={"Authorization": "Bearer k"},
        timeout=60.0,
        connect_timeout=2.0,
    )
    assert transport.request_json("POST", "/api/show", {"model": "m"}) == {"ok": True}
    call = session.last_call
    assert call["method"] == "POST"
    assert call["url"] == "http://localhost:11434/api/show"
    assert json.loads(call["data"]) == {"model": "m"}
    assert call["headers"]["Content-Type"] == "application/json"
    assert call["headers"]["Authorization"] == "Bearer k"
    assert call["timeout"] == (2.0, 60.0)


def test_request_json_non_2xx_raises_with_status_and_body():
    transport, _ = _transport(FakeResponse(404, '{"error":"model not found"}'))
    with pytest.raises(ResponseError) as exc:
        transport.request_json("POST", "/api/show", {"model": "nope"})
    assert exc.value.status_code == 404
    assert str(exc.value) == 'HTTP request failed with status 404: {"error":"model not found"}'


def test_request_json_invalid_body_raises_decode_error():
    transport, _ = _transport(FakeResponse(200, "<html>"))
    with pytest.raises(DecodeError):
        transport.request_json("GET", "/api/version")


def test_request_json_error_payload_on_success_status():
    transport, _ = _transport(FakeResponse(200, {"error": "boom"}))
    with pytest.raises(ResponseError, match="boom"):
        transport.request_json("GET", "/api/version")


def test_status_stream_collects_status_fields():
    body = ndjson({"status": "pulling manifest"}, {"digest": "sha256:a", "total": 10}, {"status": "success"})
    transport, session = _transport(FakeResponse(200, body))
    assert transport.status_stream("POST", "/api/pull", {"model": "m"}) == [
        "pulling manifest",
        "",
        "success",
    ]
    assert session.last_call["stream"] is True


def test_status_stream_empty_body_is_no_messages():
    transport, _ = _transport(FakeResponse(200, b""))
    assert transport.status_stream("POST", "/api/copy", {"source": "a", "destination": "b"}) == []


def test_status_stream_below_limit_succeeds():
    body = ndjson(*[{"status": f"s{i}"} for i in range(999)])
    transport, _ = _transport(FakeResponse(200, body))
    assert len(transport.status_stream("POST", "/api/pull", {"model": "m"})) == 999


def test_status_stream_exactly_at_limit_fails():
    body = ndjson(*[{"status": f"s{i}"} for i in range(1000)])
    response = FakeResponse(200, body)
    transport, _ = _transport(response)
    with pytest.raises(StreamLimitError, match="exceeded maximum allowed messages"):
        transport.status_stream("POST", "/api/pull", {"model": "m"})
    assert response.closed is True


def test_status_stream_custom_limit():
    body = ndjson({"status": "a"}, {"status": "b"}, {"status": "c"})
    transport, _ = _transport(FakeResponse(200, body))
    with pytest.raises(StreamLimitError):
        transport.status_stream("POST", "/api/pull", {"model": "m"}, max_messages=2)


def test_status_stream_error_body_truncated_to_512_bytes():
    transport, _ = _transport(FakeResponse(500, "x" * 2000))
    with pytest.raises(ResponseError) as exc:
        transport.status_stream("POST", "/api/pull", {"model": "m"})
    assert exc.value.status_code == 500
    assert exc.value.body == "x" * 512


def test_status_stream_invalid_json_raises_decode_error():
    transport, _ = _transport(FakeResponse(200, b'{"status": "ok"}\n{oops\n'))
    with pytest.raises(DecodeError, match="error decoding stream"):
        transport.status_stream("POST", "/api/create", {"model": "m"})


def test_status_stream_error_object_mid_stream():
    body = ndjson({"status": "pulling manifest"}, {"error": "pull model manifest: file does not exist"})
    transport, _ = _transport(FakeResponse(200, body))
    with pytest.raises(ResponseError, match="file does not exist"):
        transport.status_stream("POST", "/api/pull", {"model": "m"})


def test_status_stream_fails_at_malformed_line_without_reading_rest():
    sent = []

    def _chunks():
        sent.append(1)
        yield ndjson({"status": "pulling manifest"}) + b"garbage\n"
        for _ in range(3000):
            sent.append(1)
            yield ndjson({"status": "x"})

    response = FakeResponse(200, chunks=_chunks())
    transport, _ = _transport(response)
    with pytest.raises(DecodeError, match="error decoding stream"):
        transport.status_stream("POST", "/api/pull", {"model": "m"})
    assert len(sent) == 2
    assert response.closed is True


def test_status_stream_null_line_is_empty_status():
    transport, _ = _transport(FakeResponse(200, b'{"status": "a"}\nnull\n{"status": "b"}\n'))
    assert transport.status_stream("POST", "/api/pull", {"model": "m"}) == ["a", "", "b"]


def test_status_stream_non_string_status_rejected():
    transport, _ = _transport(FakeResponse(200, ndjson({"status": 42})))
    with pytest.raises(DecodeError, match="status must be a string"):
        transport.status_stream("POST", "/api/pull", {"model": "m"})


def test_stream_json_yields_values_in_order():
    body = ndjson({"response": "Hel"}, {"response": "lo", "done": True})
    transport, _ = _transport(FakeResponse(200, chunks=[body[:7], body[7:20], body[20:]]))
    values = list(transport.stream_json("POST", "/api/generate", {"model": "m"}))
    assert [v["response"] for v in values] == ["Hel", "lo"]


def test_retry_on_retryable_status_then_success():
    busy = FakeResponse(503, "busy")
    transport, session = _transport(
        busy,
        FakeResponse(200, {"version": "0.5.1"}),
        retry_config=RetryConfig(max_retries=2),
    )
    assert transport.request_json("GET", "/api/version") == {"version": "0.5.1"}
    assert len(session.calls) == 2
    assert busy.closed is True


def test_retryable_status_on_final_attempt_is_reported():
    transport, session = _transport(
        FakeResponse(503, "busy"),
        FakeResponse(503, "still busy"),
        retry_config=RetryConfig(max_retries=1),
    )
    with pytest.raises(ResponseError) as exc:
        transport.request_json("GET", "/api/version")
    assert exc.value.status_code == 503
    assert len(session.calls) == 2


def test_connection_error_retried_then_wrapped():
    transport, session = _transport(
        requests.exceptions.ConnectionError("refused"),
        requests.exceptions.ConnectionError("refused"),
        retry_config=RetryConfig(max_retries=1),
    )
    with pytest.raises(RequestError) as exc:
        transport.request_json("GET", "/api/version")
    assert isinstance(exc.value.__cause__, requests.exceptions.ConnectionError)
    assert len(session.calls) == 2


def test_non_retryable_status_not_retried():
    transport, session = _transport(
        FakeResponse(400, "bad request"),
        retry_config=RetryConfig(max_retries=3),
    )
    with pytest.raises(ResponseError):
        transport.request_json("POST", "/api/generate", {"model": "m"})
    assert len(session.calls) == 1


def test_close_only_closes_owned_session():
    transport, session = _transport()
    transport.close()
    assert session.closed is False


def test_stream_interrupted_after_first_chunk_not_retried():
    def _chunks():
        yield ndjson({"status": "pulling manifest"})
        raise requests.exceptions.ConnectionError("connection reset")

    transport, session = _transport(
        FakeResponse(200, chunks=_chunks()),
        retry_config=RetryConfig(max_retries=2),
    )
    with pytest.raises(RequestError, match="stream interrupted"):
        transport.status_stream("POST", "/api/pull", {"model": "m"})
    assert len(session.calls) == 1


def test_retryable_status_on_final_attempt_logged_as_error(caplog):
    transport, _ = _transport(
        FakeResponse(503, "busy"),
        FakeResponse(503, "busy"),
        retry_config=RetryConfig(max_retries=1),
    )
    with caplog.at_level(logging.DEBUG):
        with pytest.raises(ResponseError):
            transport.request_json("GET", "/api/version")
    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "Final attempt 2" in errors[0].getMessage()


def test_non_retryable_exception_logged_as_error(caplog):
    transport, session = _transport(
        requests.exceptions.InvalidURL("bad url"),
        retry_config=RetryConfig(max_retries=2),
    )
    with caplog.at_level(logging.DEBUG):
        with pytest.raises(RequestError):
            transport.request_json("GET", "/api/version")
    assert len(session.calls) == 1
    assert any(r.levelno == logging.ERROR and "bad url" in r.getMessage() for r in caplog.records)


def test_error_body_read_failure_logged(caplog):
    def _chunks():
        yield b"partial"
        raise requests.exceptions.ChunkedEncodingError("cut")

    transport, _ = _transport(FakeResponse(500, chunks=_chunks()))
    with caplog.at_level(logging.DEBUG):
        with pytest.raises(ResponseError) as exc:
            transport.status_stream("POST", "/api/pull", {"model": "m"})
    assert exc.value.body == "partial"
    assert any("cut short" in r.getMessage() for r in caplog.records)
