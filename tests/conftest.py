import json

import pytest

from pylloom import OllamaClient, RetryConfig


class FakeResponse:
    """Stand-in for requests.Response covering what the transport touches."""

    def __init__(self, status_code=200, body=b"", chunks=None):
        self.status_code = status_code
        if isinstance(body, (dict, list)):
            body = json.dumps(body).encode("utf-8")
        elif isinstance(body, str):
            body = body.encode("utf-8")
        self._body = body
        self._chunks = chunks
        self.closed = False

    @property
    def content(self):
        return self._body

    @property
    def text(self):
        return self._body.decode("utf-8", errors="replace")

    def json(self):
        return json.loads(self._body.decode("utf-8"))

    def iter_content(self, chunk_size=1, decode_unicode=False):
        if self._chunks is not None:
            for chunk in self._chunks:
                yield chunk
            return
        size = chunk_size or len(self._body) or 1
        for i in range(0, len(self._body), size):
            yield self._body[i:i + size]

    def close(self):
        self.closed = True


def ndjson(*objects):
    return "".join(json.dumps(o) + "\n" for o in objects).encode("utf-8")


class FakeSession:
    """Records requests and replays queued responses (or raises queued exceptions)."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []
        self.closed = False

    def request(self, method, url, data=None, headers=None, timeout=None, stream=False):
        self.calls.append({
            "method": method,
            "url": url,
            "data": data,
            "headers": dict(headers or {}),
            "timeout": timeout,
            "stream": stream,
        })
        resp = self.responses.pop(0)
        if isinstance(resp, Exception):
            raise resp
        return resp

    def close(self):
        self.closed = True

    @property
    def last_call(self):
        return self.calls[-1]

    def last_json(self):
        return json.loads(self.calls[-1]["data"])


@pytest.fixture(autouse=True)
def _no_retry_sleep(monkeypatch):
    monkeypatch.setattr("pylloom.infrastructure.http.retry.time.sleep", lambda _s: None)
    yield


@pytest.fixture
def make_client():
    def _make(*responses, retry_config=None, **kwargs):
        session = FakeSession(*responses)
        client = OllamaClient(
            kwargs.pop("base_url", "http://localhost:11434"),
            session=session,
            retry_config=retry_config or RetryConfig.disabled(),
            **kwargs,
        )
        return client, session
    return _make
