"""
Tests for the generation client.
"""

import httpx
import pytest
from langchain_core.language_models import FakeListLLM

from neuratalk.core.errors import ConnectFailed, GenerationFailed
from neuratalk.core.generation import GenerationClient, GenerationOptions, build_llm, build_prompt


class FailingLLM:
    def __init__(self, error):
        self.error = error

    async def ainvoke(self, prompt):
        raise self.error


class RecordingLLM:
    def __init__(self, response):
        self.response = response
        self.prompts = []

    async def ainvoke(self, prompt):
        self.prompts.append(prompt)
        return self.response


class TestBuildPrompt:
    def test_prior_and_prompt_separated_by_blank_line(self):
        assert build_prompt("You: hi\n\nAI: hello", "again") == "You: hi\n\nAI: hello\n\nagain"

    def test_no_prior(self):
        assert build_prompt("", "hi") == "hi"


class TestBuildLLM:
    def test_options_forwarded(self):
        options = GenerationOptions(temperature=1.5, top_p=0.5, top_k=10, max_tokens=300, context_length=1024)
        llm = build_llm("llama3.2:latest", options, base_url="http://127.0.0.1:11434")

        assert llm.model == "llama3.2:latest"
        assert llm.base_url == "http://127.0.0.1:11434"
        assert llm.temperature == 1.5
        assert llm.top_p == 0.5
        assert llm.top_k == 10
        assert llm.num_predict == 300
        assert llm.num_ctx == 1024


class TestGenerationClient:
    @pytest.mark.asyncio
    async def test_returns_full_text(self):
        client = GenerationClient(llm_factory=lambda model, options: FakeListLLM(responses=["hello"]))
        assert await client.generate("m1", "", "hi", GenerationOptions()) == "hello"

    @pytest.mark.asyncio
    async def test_sends_flattened_prompt_once(self):
        llm = RecordingLLM("fine")
        seen = []

        def factory(model, options):
            seen.append((model, options))
            return llm

        options = GenerationOptions(temperature=0.1)
        client = GenerationClient(llm_factory=factory)
        await client.generate("m1", "You: hi\n\nAI: hello", "how are you?", options)

        assert seen == [("m1", options)]
        assert llm.prompts == ["You: hi\n\nAI: hello\n\nhow are you?"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            ConnectionError("Failed to connect to Ollama"),
            httpx.ConnectError("connection refused"),
        ],
    )
    async def test_connection_errors(self, error):
        client = GenerationClient(llm_factory=lambda model, options: FailingLLM(error))
        with pytest.raises(ConnectFailed):
            await client.generate("m1", "", "hi", GenerationOptions())

    @pytest.mark.asyncio
    async def test_backend_error_is_generation_failed(self):
        client = GenerationClient(llm_factory=lambda model, options: FailingLLM(ValueError("model 'x' not found")))
        with pytest.raises(GenerationFailed) as exc_info:
            await client.generate("m1", "", "hi", GenerationOptions())
        assert "not found" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_factory_failure_is_connect_failed(self):
        def factory(model, options):
            raise RuntimeError("bad base url")

        with pytest.raises(ConnectFailed):
            await GenerationClient(llm_factory=factory).generate("m1", "", "hi", GenerationOptions())

    @pytest.mark.asyncio
    async def test_no_retry(self):
        calls = []

        class CountingLLM:
            async def ainvoke(self, prompt):
                calls.append(prompt)
                raise ValueError("boom")

        client = GenerationClient(llm_factory=lambda model, options: CountingLLM())
        with pytest.raises(GenerationFailed):
            await client.generate("m1", "", "hi", GenerationOptions())
        assert len(calls) == 1
