import httpx

from bgsubs.fetch import FetchOutcome, FetchState, fetch_bytes


class BrokenStream(httpx.SyncByteStream):
    """Sends its chunks and then drops the connection."""

    def __init__(self, chunks):
        self.chunks = chunks

    def __iter__(self):
        for chunk in self.chunks:
            yield chunk
        raise httpx.RemoteProtocolError("peer closed connection without sending complete message body")


def client_for(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_complete_response_succeeds():
    with client_for(lambda request: httpx.Response(200, content=b"PK\x03\x04data")) as client:
        outcome = fetch_bytes(client, "https://subsunacs.net/getentry.php?id=1&ei=0")
    assert outcome.state is FetchState.SUCCEEDED
    assert outcome.content == b"PK\x03\x04data"
    assert outcome.status_code == 200
    assert outcome.usable


def test_body_kept_when_connection_breaks_after_payload():
    with client_for(lambda request: httpx.Response(200, stream=BrokenStream([b"PK\x03\x04", b"rest"]))) as client:
        outcome = fetch_bytes(client, "https://subsunacs.net/getentry.php?id=1&ei=0")
    assert outcome.state is FetchState.PARTIAL
    assert outcome.content == b"PK\x03\x04rest"
    assert outcome.usable
    assert "peer closed" in outcome.error


def test_broken_connection_without_bytes_fails():
    with client_for(lambda request: httpx.Response(200, stream=BrokenStream([]))) as client:
        outcome = fetch_bytes(client, "https://example.test/x")
    assert outcome.state is FetchState.FAILED
    assert not outcome.usable


def test_network_error_fails():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    with client_for(handler) as client:
        outcome = fetch_bytes(client, "https://example.test/x")
    assert outcome.state is FetchState.FAILED
    assert outcome.content == b""


def test_error_status_fails():
    with client_for(lambda request: httpx.Response(404, content=b"not here")) as client:
        outcome = fetch_bytes(client, "https://example.test/x")
    assert outcome.state is FetchState.FAILED
    assert outcome.status_code == 404
    assert outcome.error == "HTTP 404"


def test_empty_body_fails():
    with client_for(lambda request: httpx.Response(200, content=b"")) as client:
        outcome = fetch_bytes(client, "https://example.test/x")
    assert outcome == FetchOutcome.failed("empty body", 200)


def test_form_post_sends_data():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["body"] = request.content
        seen["referer"] = request.headers.get("Referer")
        return httpx.Response(200, content=b"ok")

    with client_for(handler) as client:
        fetch_bytes(client, "https://example.test/x", method="POST", headers={"Referer": "r"}, data={"id": "5"})
    assert seen == {"method": "POST", "body": b"id=5", "referer": "r"}


def test_outcome_carries_only_body_status_and_error():
    with client_for(lambda request: httpx.Response(200, content=b"abc", headers={"X-Extra": "1"})) as client:
        outcome = fetch_bytes(client, "https://example.test/x")
    assert outcome == FetchOutcome(FetchState.SUCCEEDED, b"abc", 200)
    assert not hasattr(outcome, "headers")
