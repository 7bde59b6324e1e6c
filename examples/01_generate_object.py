import asyncio
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from llm_kit import KitConfig, LLMKit, OpenAIConfig, configure_logging

load_dotenv()


class Product(BaseModel):
    name: str
    price_usd: float = Field(ge=0)


async def main():
    configure_logging()
    kit = LLMKit(KitConfig(
        openai=OpenAIConfig(api_key=os.getenv("OPENAI_API_KEY"), max_retries=5),
    ))

    # mode defaults to the adapter's object mode ("tool" for OpenAI)
    result = await kit.generate_object(
        model="openai:gpt-4o-mini",
        schema=Product,
        prompt="Return a product with name and price_usd=19.99",
    )
    print(result.object)
    print(f"Type: {type(result.object)}")
    print(f"Usage: {result.usage.total_tokens} tokens")

if __name__ == "__main__":
    asyncio.run(main())
