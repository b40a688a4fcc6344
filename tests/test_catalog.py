"""
Tests for model discovery.
"""

import subprocess

import pytest

from neuratalk.core.catalog import ModelCatalog, parse_model_listing
from neuratalk.core.errors import BackendUnavailable, NoModelsInstalled

LISTING = (
    "NAME               ID              SIZE      MODIFIED\n"
    "llama3.2:latest    a80c4f17acd5    2.0 GB    3 days ago\n"
    "mistral:7b         f974a74358d6    4.1 GB    2 weeks ago\n"
    "\n"
)


class FakeRunner:
    def __init__(self, outputs=None, fail_on=None):
        self.outputs = outputs or {}
        self.fail_on = fail_on
        self.calls = []

    def __call__(self, args, timeout):
        self.calls.append(list(args))
        command = args[1]
        if command == self.fail_on:
            raise subprocess.CalledProcessError(1, list(args))
        return self.outputs.get(command, "")


@pytest.fixture
def binary(tmp_path):
    path = tmp_path / "ollama"
    path.write_text("#!/bin/sh\n")
    return str(path)


class TestParseModelListing:
    def test_header_then_first_column(self):
        assert parse_model_listing("NAME\nllama3.2:latest  4GB\n") == ["llama3.2:latest"]

    def test_multiple_models(self):
        assert parse_model_listing(LISTING) == ["llama3.2:latest", "mistral:7b"]

    def test_lines_before_header_ignored(self):
        output = "warning: something\nNAME ID\nphi3:mini abc\n"
        assert parse_model_listing(output) == ["phi3:mini"]

    def test_no_header_gives_empty_list(self):
        assert parse_model_listing("llama3.2:latest  4GB\n") == []


class TestModelCatalog:
    def test_list_models_checks_status_first(self, binary):
        runner = FakeRunner(outputs={"list": LISTING})
        catalog = ModelCatalog(binary=binary, runner=runner)

        assert catalog.list_models() == ["llama3.2:latest", "mistral:7b"]
        assert runner.calls == [[binary, "ps"], [binary, "list"]]

    def test_service_down_is_backend_unavailable(self, binary):
        runner = FakeRunner(outputs={"list": LISTING}, fail_on="ps")
        catalog = ModelCatalog(binary=binary, runner=runner)

        with pytest.raises(BackendUnavailable):
            catalog.list_models()
        assert runner.calls == [[binary, "ps"]]

    def test_list_failure_is_backend_unavailable(self, binary):
        catalog = ModelCatalog(binary=binary, runner=FakeRunner(fail_on="list"))
        with pytest.raises(BackendUnavailable):
            catalog.list_models()

    def test_timeout_is_backend_unavailable(self, binary):
        def runner(args, timeout):
            raise subprocess.TimeoutExpired(list(args), timeout)

        with pytest.raises(BackendUnavailable):
            ModelCatalog(binary=binary, runner=runner).list_models()

    def test_no_models_installed(self, binary):
        runner = FakeRunner(outputs={"list": "NAME    ID    SIZE    MODIFIED\n"})
        with pytest.raises(NoModelsInstalled):
            ModelCatalog(binary=binary, runner=runner).list_models()

    def test_missing_header_raises_no_models(self, binary):
        runner = FakeRunner(outputs={"list": "llama3.2:latest  4GB\n"})
        with pytest.raises(NoModelsInstalled):
            ModelCatalog(binary=binary, runner=runner).list_models()

    def test_result_is_not_cached(self, binary):
        runner = FakeRunner(outputs={"list": LISTING})
        catalog = ModelCatalog(binary=binary, runner=runner)
        catalog.list_models()
        runner.outputs["list"] = "NAME\nphi3:mini x\n"
        assert catalog.list_models() == ["phi3:mini"]

    @pytest.mark.asyncio
    async def test_alist_models(self, binary):
        catalog = ModelCatalog(binary=binary, runner=FakeRunner(outputs={"list": LISTING}))
        assert await catalog.alist_models() == ["llama3.2:latest", "mistral:7b"]


class TestLocateBinary:
    def test_prefers_path(self, monkeypatch):
        monkeypatch.setattr("neuratalk.core.catalog.shutil.which", lambda name: "/opt/bin/ollama")
        assert ModelCatalog().locate_binary() == "/opt/bin/ollama"

    def test_falls_back_to_install_locations(self, monkeypatch, binary):
        monkeypatch.setattr("neuratalk.core.catalog.shutil.which", lambda name: None)
        monkeypatch.setattr("neuratalk.core.catalog._fallback_paths", lambda platform: ["/nope/ollama", binary])
        assert ModelCatalog().locate_binary() == binary

    def test_not_found(self, monkeypatch):
        monkeypatch.setattr("neuratalk.core.catalog.shutil.which", lambda name: None)
        monkeypatch.setattr("neuratalk.core.catalog._fallback_paths", lambda platform: ["/nope/ollama"])
        with pytest.raises(BackendUnavailable):
            ModelCatalog().list_models()

    def test_explicit_binary_missing(self, monkeypatch):
        monkeypatch.setattr("neuratalk.core.catalog.shutil.which", lambda name: None)
        with pytest.raises(BackendUnavailable):
            ModelCatalog(binary="/nope/ollama").locate_binary()

    def test_linux_fallbacks(self):
        from neuratalk.core.catalog import _fallback_paths

        paths = _fallback_paths("linux")
        assert paths[:2] == ["/usr/bin/ollama", "/usr/local/bin/ollama"]
