import asyncio
import os

from dotenv import load_dotenv

from llm_kit import KitConfig, LLMKit, OpenAIConfig, tool_from_function

load_dotenv()


def get_weather(city: str, unit: str = "celsius") -> str:
    """Get the current weather for a city."""
    return f"It is 18 degrees {unit} in {city}."


async def main():
    kit = LLMKit(KitConfig(
        openai=OpenAIConfig(api_key=os.getenv("OPENAI_API_KEY")),
        enable_tracing=True,
    ))

    tools = {"get_weather": tool_from_function(get_weather)}

    result = await kit.stream_text(
        model="openai:gpt-4o-mini",
        tools=tools,
        prompt="Is it raining in Seattle? Use a tool if needed.",
    )

    async for part in result.full_stream:
        if part.type == "text-delta":
            print(part.text_delta, end="", flush=True)
        elif part.type == "tool-call":
            # tools are executed by the caller
            print(f"\nTool call {part.tool_name}: {get_weather(**part.args.model_dump())}")
        elif part.type == "error":
            print(f"\nError: {part.error}")
        elif part.type == "final-metadata":
            print(f"\nFinish reason: {part.finish_reason}, usage: {part.usage.total_tokens} tokens")

if __name__ == "__main__":
    asyncio.run(main())
