import json
import threading
import urllib.error
import urllib.request

import pytest

from feedwatch.normalizer_service import create_server


class FakeCollection:
    def __init__(self, documents=()):
        self.documents = list(documents)

    def find(self, query, limit=0, sort=None):
        return list(self.documents)

    def find_one(self, query):
        for document in self.documents:
            if document.get("id") == query.get("id"):
                return document
        return None


@pytest.fixture
def running_server():
    server = create_server(FakeCollection(), "127.0.0.1", 0)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield server
    finally:
        server.shutdown()
        thread.join(timeout=5)


def test_server_binds_requested_host(running_server):
    assert running_server.host == "127.0.0.1"
    assert running_server.server_port > 0


def test_server_answers_health_check(running_server):
    url = f"http://127.0.0.1:{running_server.server_port}/healthz"
    with urllib.request.urlopen(url, timeout=5) as response:
        assert response.status == 200
        assert json.loads(response.read()) == {"status": "ok"}


def test_server_reports_missing_indicator(running_server):
    url = f"http://127.0.0.1:{running_server.server_port}/indicators/bundle--missing"
    with pytest.raises(urllib.error.HTTPError) as excinfo:
        urllib.request.urlopen(url, timeout=5)
    assert excinfo.value.code == 404
    assert json.loads(excinfo.value.read()) == {"error": "indicator not found"}