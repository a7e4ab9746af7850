import pytest

from servicebook.config import Settings


@pytest.mark.config
class TestServerWorkers:
    """Worker count handed to uvicorn."""

    def test_memory_store_runs_single_worker(self):
        assert Settings(store_backend="memory", workers=4).server_workers == 1

    def test_http_store_uses_configured_workers(self):
        assert Settings(store_backend="http", workers=4).server_workers == 4

    def test_debug_runs_single_worker(self):
        assert Settings(store_backend="http", workers=4, debug=True).server_workers == 1

    def test_environment_prefix(self, monkeypatch):
        monkeypatch.setenv("SERVICEBOOK_STORE_BACKEND", "http")
        monkeypatch.setenv("SERVICEBOOK_WORKERS", "3")
        assert Settings().server_workers == 3
