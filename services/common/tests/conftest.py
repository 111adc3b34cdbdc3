import urllib.request

import pytest


class _AcceptedResponse:
    """Stand-in for a VictoriaLogs ingestion reply."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def read(self):
        return b""


@pytest.fixture(autouse=True)
def _no_log_shipping(monkeypatch):
    # Handlers installed by logging setup must never reach the network.
    monkeypatch.setattr(urllib.request, "urlopen", lambda *args, **kwargs: _AcceptedResponse())
