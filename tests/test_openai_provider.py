"""Tests for the OpenAI chat completions adapter, run against a fake client."""

import base64
from types import SimpleNamespace

import pytest
from openai import OpenAIError

from llm_kit.config import OpenAIConfig
from llm_kit.core.exceptions import ConfigurationError, ProviderError, UnsupportedModeError
from llm_kit.core.types import (
    AssistantMessage,
    ImagePart,
    Prompt,
    TextPart,
    ToolCallPart,
    ToolMessage,
    ToolResultPart,
    UserMessage,
)
from llm_kit.generate.object import generate_object
from llm_kit.generate.stream_object import stream_object
from llm_kit.generate.text import generate_text, stream_text
from llm_kit.providers.openai import OpenAIChatModel, convert_to_openai_messages
from llm_kit.tools.function_calling import Tool
from llm_kit.utils.streaming import collect

from .helpers import Person


class FakeCompletions:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


def _model(completions, **kwargs):
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return OpenAIChatModel("gpt-4o", client=client, **kwargs)


def _completion(content=None, tool_calls=None, finish_reason="stop"):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(
        choices=[SimpleNamespace(message=message, finish_reason=finish_reason)],
        usage=SimpleNamespace(prompt_tokens=12, completion_tokens=6),
    )


def _function_call(tool_call_id, name, arguments):
    return SimpleNamespace(id=tool_call_id, function=SimpleNamespace(name=name, arguments=arguments))


def _chunk(content=None, tool_calls=None, finish_reason=None, usage=None):
    choices = []
    if content is not None or tool_calls is not None or finish_reason is not None:
        delta = SimpleNamespace(content=content, tool_calls=tool_calls)
        choices = [SimpleNamespace(delta=delta, finish_reason=finish_reason)]
    return SimpleNamespace(choices=choices, usage=usage)


async def _chunks(items, error=None):
    for item in items:
        yield item
    if error is not None:
        raise error


def test_default_object_mode():
    assert _model(FakeCompletions()).default_object_mode == "tool"
    assert _model(FakeCompletions(), config=OpenAIConfig(object_mode="json")).default_object_mode == "json"
    assert _model(FakeCompletions(), object_mode="json").default_object_mode == "json"
    with pytest.raises(ConfigurationError):
        _model(FakeCompletions(), object_mode="grammar")


@pytest.mark.asyncio
async def test_tool_mode_forces_the_object_tool():
    completions = FakeCompletions(
        _completion(tool_calls=[_function_call("call_1", "json", '{"name":"Rin"}')], finish_reason="tool_calls")
    )
    model = _model(completions)

    result = await generate_object(model=model, schema=Person, prompt="Who?")

    assert result.object == Person(name="Rin")
    assert result.finish_reason == "tool-calls"
    assert result.usage.total_tokens == 18
    request = completions.calls[0]
    assert request["model"] == "gpt-4o"
    assert request["messages"] == [{"role": "user", "content": "Who?"}]
    assert request["tools"][0]["function"]["name"] == "json"
    assert request["tool_choice"] == {"type": "function", "function": {"name": "json"}}
    assert "response_format" not in request


@pytest.mark.asyncio
async def test_json_mode_requests_json_object():
    completions = FakeCompletions(_completion(content='{"name":"Rin"}'))
    model = _model(completions)

    result = await generate_object(model=model, schema=Person, mode="json", prompt="Who?", temperature=0.2)

    assert result.object == Person(name="Rin")
    request = completions.calls[0]
    assert request["response_format"] == {"type": "json_object"}
    assert request["messages"][0]["role"] == "system"
    assert request["messages"][0]["content"].startswith("JSON schema:")
    assert request["temperature"] == 0.2
    assert "top_p" not in request
    assert "tools" not in request


@pytest.mark.asyncio
async def test_grammar_mode_is_rejected_before_any_request():
    completions = FakeCompletions(_completion(content="{}"))

    with pytest.raises(UnsupportedModeError) as excinfo:
        await generate_object(model=_model(completions), schema=Person, mode="grammar", prompt="Who?")

    assert excinfo.value.mode == "object-grammar"
    assert completions.calls == []


@pytest.mark.asyncio
async def test_regular_mode_sends_caller_tools():
    completions = FakeCompletions(_completion(content="Sunny."))
    tools = {"weather": Tool(parameters=Person, description="Weather lookup")}

    result = await generate_text(model=_model(completions), tools=tools, prompt="Weather?", max_tokens=64, seed=7)

    assert result.text == "Sunny."
    request = completions.calls[0]
    assert request["tools"][0] == {
        "type": "function",
        "function": {
            "name": "weather",
            "description": "Weather lookup",
            "parameters": tools["weather"].schema.json_schema(),
        },
    }
    assert "tool_choice" not in request
    assert request["max_tokens"] == 64
    assert request["seed"] == 7


@pytest.mark.asyncio
async def test_sdk_errors_become_provider_errors():
    completions = FakeCompletions(error=OpenAIError("invalid api key"))

    with pytest.raises(ProviderError) as excinfo:
        await generate_text(model=_model(completions), prompt="Hi")

    assert excinfo.value.provider == "openai"
    assert "invalid api key" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, OpenAIError)


@pytest.mark.asyncio
async def test_stream_normalizes_chunks():
    completions = FakeCompletions(
        _chunks(
            [
                _chunk(content='{"name":'),
                _chunk(content='"Rin"}'),
                _chunk(finish_reason="stop"),
                _chunk(usage=SimpleNamespace(prompt_tokens=5, completion_tokens=3)),
            ]
        )
    )

    result = await stream_object(model=_model(completions), schema=Person, mode="json", prompt="Who?")

    assert await collect(result) == [{}, {"name": "Rin"}]
    assert result.finish_reason == "stop"
    assert result.usage.total_tokens == 8
    request = completions.calls[0]
    assert request["stream"] is True
    assert request["stream_options"] == {"include_usage": True}


@pytest.mark.asyncio
async def test_stream_tool_call_deltas():
    completions = FakeCompletions(
        _chunks(
            [
                _chunk(tool_calls=[SimpleNamespace(index=0, id="call_1", function=SimpleNamespace(name="json", arguments=""))]),
                _chunk(tool_calls=[SimpleNamespace(index=0, id=None, function=SimpleNamespace(name=None, arguments='{"name"'))]),
                _chunk(tool_calls=[SimpleNamespace(index=0, id=None, function=SimpleNamespace(name=None, arguments=':"Rin"}'))]),
                _chunk(finish_reason="tool_calls"),
            ]
        )
    )

    result = await stream_object(model=_model(completions), schema=Person, prompt="Who?")

    assert await collect(result) == [{}, {"name": "Rin"}]
    assert result.finish_reason == "tool-calls"


@pytest.mark.asyncio
async def test_mid_stream_sdk_error_becomes_provider_error():
    completions = FakeCompletions(_chunks([_chunk(content="Hel")], error=OpenAIError("stream dropped")))

    result = await stream_text(model=_model(completions), prompt="Hi")

    with pytest.raises(ProviderError):
        await collect(result.full_stream)


@pytest.mark.asyncio
async def test_unexpected_client_errors_become_provider_errors():
    completions = FakeCompletions(error=RuntimeError("connection reset"))

    with pytest.raises(ProviderError) as excinfo:
        await generate_text(model=_model(completions), prompt="Hi")

    assert "connection reset" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, RuntimeError)


@pytest.mark.asyncio
async def test_completion_without_choices_is_a_provider_error():
    completions = FakeCompletions(SimpleNamespace(choices=[], usage=None))

    with pytest.raises(ProviderError, match="no choices"):
        await generate_text(model=_model(completions), prompt="Hi")


class FakeResponseStream:
    """Mimics the SDK's response stream: iterable, released with ``close``."""

    def __init__(self, chunks):
        self.chunks = chunks
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk

    async def close(self):
        self.closed = True


@pytest.mark.asyncio
async def test_closing_the_result_closes_the_response():
    response = FakeResponseStream([_chunk(content='{"name":'), _chunk(content='"Rin"}'), _chunk(finish_reason="stop")])
    completions = FakeCompletions(response)

    result = await stream_object(model=_model(completions), schema=Person, mode="json", prompt="Who?")
    async for _ in result:
        break
    await result.aclose()

    assert response.closed
    assert result.done


@pytest.mark.asyncio
async def test_exhausted_stream_closes_the_response():
    response = FakeResponseStream([_chunk(content="Hello"), _chunk(finish_reason="stop")])
    completions = FakeCompletions(response)

    result = await stream_text(model=_model(completions), prompt="Hi")

    assert await result.text() == "Hello"
    assert response.closed


def test_message_conversion():
    prompt = Prompt(
        system="Be brief.",
        messages=(
            UserMessage(content=(TextPart(text="What is this?"), ImagePart(image=b"\x89PNG", mime_type="image/png"))),
            AssistantMessage(
                content=(
                    TextPart(text="Checking."),
                    ToolCallPart(tool_call_id="c1", tool_name="describe", args={"detail": "high"}),
                )
            ),
            ToolMessage(content=(ToolResultPart(tool_call_id="c1", tool_name="describe", result={"label": "logo"}),)),
        ),
    )

    messages = convert_to_openai_messages(prompt)

    encoded = base64.b64encode(b"\x89PNG").decode("ascii")
    assert messages == [
        {"role": "system", "content": "Be brief."},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": "What is this?"},
                {"type": "image_url", "image_url": {"url": f"data:image/png;base64,{encoded}"}},
            ],
        },
        {
            "role": "assistant",
            "content": "Checking.",
            "tool_calls": [
                {"id": "c1", "type": "function", "function": {"name": "describe", "arguments": '{"detail": "high"}'}}
            ],
        },
        {"role": "tool", "tool_call_id": "c1", "content": '{"label": "logo"}'},
    ]
