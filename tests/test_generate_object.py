"""Tests for generate_object."""

import json

import pytest

from llm_kit.core.exceptions import (
    ConfigurationError,
    NoDefaultObjectModeError,
    NoObjectGeneratedError,
    ObjectParseError,
    ObjectValidationError,
    ProviderError,
    UnsupportedModeError,
)
from llm_kit.core.types import (
    GenerateResponse,
    ObjectGrammarMode,
    ObjectJsonMode,
    ObjectToolMode,
    ToolCall,
    Usage,
)
from llm_kit.generate.object import generate_object
from llm_kit.schema.object_schema import PydanticSchema
from llm_kit.testing import MockLanguageModel
from llm_kit.tools.structured_output import DEFAULT_SCHEMA_SUFFIX, OBJECT_TOOL_DESCRIPTION, OBJECT_TOOL_NAME

from .helpers import Person, generate_returning

NAME_SCHEMA = {
    "type": "object",
    "properties": {"name": {"type": "string"}},
    "required": ["name"],
}


def _tool_response(args: str) -> GenerateResponse:
    return GenerateResponse(
        tool_calls=(ToolCall(tool_call_id="call_1", tool_name=OBJECT_TOOL_NAME, args=args),),
        finish_reason="tool-calls",
        usage=Usage(prompt_tokens=10, completion_tokens=4),
    )


@pytest.mark.asyncio
async def test_tool_mode_returns_validated_object():
    model = generate_returning(_tool_response('{"name":"Rin"}'))

    result = await generate_object(model=model, schema=Person, mode="tool", prompt="Who?")

    assert result.object == Person(name="Rin")
    assert result.finish_reason == "tool-calls"
    assert result.usage.total_tokens == 14

    options = model.calls[0]
    assert isinstance(options.mode, ObjectToolMode)
    assert options.mode.tool.name == OBJECT_TOOL_NAME
    assert options.mode.tool.description == OBJECT_TOOL_DESCRIPTION
    assert options.mode.tool.parameters == PydanticSchema(Person).json_schema()
    assert options.prompt.system is None
    assert options.input_format == "prompt"


@pytest.mark.asyncio
async def test_tool_mode_with_json_schema_dict():
    model = generate_returning(_tool_response('{"name":"Rin"}'))

    result = await generate_object(model=model, schema=NAME_SCHEMA, mode="tool", prompt="Who?")

    assert result.object == {"name": "Rin"}


@pytest.mark.asyncio
async def test_tool_mode_keeps_caller_system_text():
    model = generate_returning(_tool_response('{"name":"Rin"}'))

    await generate_object(model=model, schema=Person, mode="tool", system="Be terse.", prompt="Who?")

    assert model.calls[0].prompt.system == "Be terse."


@pytest.mark.asyncio
async def test_model_default_mode_is_used():
    model = generate_returning(GenerateResponse(text='{"name":"Rin"}'), default_object_mode="json")

    result = await generate_object(model=model, schema=Person, prompt="Who?")

    assert result.object == Person(name="Rin")
    assert isinstance(model.calls[0].mode, ObjectJsonMode)


@pytest.mark.asyncio
async def test_json_mode_injects_schema_into_system():
    model = generate_returning(GenerateResponse(text='{"name":"Rin"}'))

    await generate_object(model=model, schema=NAME_SCHEMA, mode="json", system="You are helpful.", prompt="Who?")

    schema_text = json.dumps(
        {"$schema": "http://json-schema.org/draft-07/schema#", **NAME_SCHEMA}, separators=(",", ":")
    )
    assert model.calls[0].prompt.system == "\n".join(
        ["You are helpful.", "", "JSON schema:", schema_text, DEFAULT_SCHEMA_SUFFIX]
    )


@pytest.mark.asyncio
async def test_grammar_mode_attaches_schema_and_instruction():
    model = generate_returning(GenerateResponse(text='{"name":"Rin"}'))

    await generate_object(model=model, schema=NAME_SCHEMA, mode="grammar", prompt="Who?")

    options = model.calls[0]
    assert isinstance(options.mode, ObjectGrammarMode)
    assert options.mode.json_schema["properties"] == NAME_SCHEMA["properties"]
    assert options.prompt.system.startswith("JSON schema:\n")


@pytest.mark.asyncio
async def test_no_default_mode_fails_before_any_call():
    model = MockLanguageModel(default_object_mode=None)

    with pytest.raises(NoDefaultObjectModeError):
        await generate_object(model=model, schema=Person, prompt="Who?")

    assert model.calls == []


@pytest.mark.asyncio
async def test_unknown_mode_is_rejected():
    model = MockLanguageModel()

    with pytest.raises(UnsupportedModeError):
        await generate_object(model=model, schema=Person, mode="xml", prompt="Who?")

    assert model.calls == []


@pytest.mark.asyncio
async def test_malformed_text_raises_parse_error():
    model = generate_returning(GenerateResponse(text="not json"))

    with pytest.raises(ObjectParseError) as excinfo:
        await generate_object(model=model, schema=Person, mode="json", prompt="Who?")

    assert excinfo.value.value_text == "not json"
    assert excinfo.value.cause is not None


@pytest.mark.asyncio
async def test_deeply_nested_text_raises_parse_error():
    text = "[" * 100000
    model = generate_returning(GenerateResponse(text=text))

    with pytest.raises(ObjectParseError) as excinfo:
        await generate_object(model=model, schema=Person, mode="json", prompt="Who?")

    assert excinfo.value.value_text == text


@pytest.mark.asyncio
async def test_schema_mismatch_raises_validation_error():
    model = generate_returning(GenerateResponse(text='{"name": 5}'))

    with pytest.raises(ObjectValidationError) as excinfo:
        await generate_object(model=model, schema=Person, mode="json", prompt="Who?")

    assert excinfo.value.value_text == '{"name": 5}'
    assert excinfo.value.value == {"name": 5}
    assert excinfo.value.cause.issues[0].path == ("name",)


@pytest.mark.asyncio
async def test_json_mode_without_text_raises_no_object_generated():
    model = generate_returning(_tool_response('{"name":"Rin"}'))

    with pytest.raises(NoObjectGeneratedError):
        await generate_object(model=model, schema=Person, mode="json", prompt="Who?")


@pytest.mark.asyncio
async def test_tool_mode_without_tool_call_raises_no_object_generated():
    model = generate_returning(GenerateResponse(text='{"name":"Rin"}'))

    with pytest.raises(NoObjectGeneratedError):
        await generate_object(model=model, schema=Person, mode="tool", prompt="Who?")


@pytest.mark.asyncio
async def test_settings_are_forwarded():
    model = generate_returning(GenerateResponse(text='{"name":"Rin"}'))

    await generate_object(model=model, schema=Person, mode="json", prompt="Who?", max_tokens=20, temperature=0.1)

    assert model.calls[0].max_tokens == 20
    assert model.calls[0].temperature == 0.1


@pytest.mark.asyncio
@pytest.mark.parametrize("settings", [{"max_tokens": 0}, {"stream": True}])
async def test_invalid_settings_are_rejected(settings):
    model = generate_returning(GenerateResponse(text='{"name":"Rin"}'))

    with pytest.raises(ConfigurationError):
        await generate_object(model=model, schema=Person, mode="json", prompt="Who?", **settings)

    assert model.calls == []


@pytest.mark.asyncio
async def test_provider_errors_propagate_unchanged():
    error = ProviderError("backend down", provider="mock-provider")

    def fail(options):
        raise error

    model = MockLanguageModel(do_generate=fail)

    with pytest.raises(ProviderError) as excinfo:
        await generate_object(model=model, schema=Person, mode="json", prompt="Who?")

    assert excinfo.value is error


@pytest.mark.asyncio
async def test_tracing_enabled_does_not_change_result():
    model = generate_returning(_tool_response('{"name":"Rin"}'))

    result = await generate_object(model=model, schema=Person, mode="tool", prompt="Who?", tracing=True)

    assert result.object == Person(name="Rin")
