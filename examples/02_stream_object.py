import asyncio
import os
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel

from llm_kit import KitConfig, LLMKit, OpenAIConfig

load_dotenv()


class Recipe(BaseModel):
    title: str
    ingredients: List[str]
    steps: List[str]


async def main():
    kit = LLMKit(KitConfig(
        openai=OpenAIConfig(api_key=os.getenv("OPENAI_API_KEY")),
    ))

    result = await kit.stream_object(
        model="openai:gpt-4o-mini",
        schema=Recipe,
        mode="json",
        system="You write short recipes.",
        prompt="A recipe for pancakes.",
    )

    # each snapshot is a deep partial dict, repeated shapes are suppressed
    async for partial in result.partial_object_stream:
        print(partial)

    print(f"Finish reason: {result.finish_reason}")
    if result.errors:
        print(f"Stream errors: {result.errors}")

if __name__ == "__main__":
    asyncio.run(main())
