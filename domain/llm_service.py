from enum import Enum
import logging
from typing import Callable

import openai
from openai.types.chat import (
    ChatCompletionMessageParam,
    ChatCompletionSystemMessageParam,
    ChatCompletionUserMessageParam,
)

from domain.aopenai import MAX_TOKENS, openai_client_factory, quick_chat
from domain.errors import RecommendationError
from domain.models import Recommendation
from domain.prompts import RecommendPrompt, condition_message


logger = logging.getLogger(__name__)


MIN_API_KEY_LENGTH = 20


class Model(Enum):
    GPT_4O_MINI = "gpt-4o-mini"
    GPT_4O = "gpt-4o"


class LLMService:
    """Talks to OpenAI on behalf of a session. A client is made per API key since
    every session brings its own."""

    def __init__(
        self,
        *,
        model: str = Model.GPT_4O_MINI.value,
        client_factory: Callable[[str], openai.AsyncClient] = openai_client_factory,
        max_tokens: int = MAX_TOKENS,
    ) -> None:
        self.model = model
        self.client_factory = client_factory
        self.max_tokens = max_tokens

    async def recommend(
        self,
        condition: str,
        *,
        menu_names: list[str],
        api_key: str,
    ) -> Recommendation:
        system_message: ChatCompletionSystemMessageParam = {
            "role": "system",
            "content": str(RecommendPrompt(menu_names)),
        }
        user_message: ChatCompletionUserMessageParam = {
            "role": "user",
            "content": condition_message(condition),
        }
        messages: list[ChatCompletionMessageParam] = [system_message, user_message]

        openai_client = self.client_factory(api_key)
        try:
            resp = await openai_client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=self.max_tokens,
                response_format={"type": "json_object"},
            )
        except openai.OpenAIError as e:
            raise RecommendationError(f"Problem creating recommendation. {e}") from e
        finally:
            await openai_client.close()

        if not resp.choices:
            raise RecommendationError("No choices in the recommendation response.")
        content = resp.choices[0].message.content
        logger.debug("Recommendation for %r: %s", condition, content)
        return Recommendation.from_json(content)

    async def validate_api_key(self, api_key: str) -> bool:
        if not api_key or len(api_key) < MIN_API_KEY_LENGTH:
            return False

        openai_client = self.client_factory(api_key)
        try:
            await quick_chat(
                "Connection test",
                openai_client=openai_client,
                model=self.model,
                max_tokens=1,
            )
        except openai.OpenAIError as e:
            logger.warning("API key validation failed: %s", e)
            return False
        finally:
            await openai_client.close()
        return True
