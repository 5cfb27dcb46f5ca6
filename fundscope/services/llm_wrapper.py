import logging
from typing import Optional
from openai import AsyncOpenAI, APIConnectionError, APITimeoutError
from tenacity import retry, stop_after_attempt, wait_fixed, retry_if_exception_type
from fundscope.core.config import Settings, get_settings
from fundscope.core.exceptions import InsightServiceError

logger = logging.getLogger(__name__)

_client: Optional[AsyncOpenAI] = None


def get_client(settings: Optional[Settings] = None) -> AsyncOpenAI:
    """Lazily build the shared client so a missing key only matters when insights are requested."""
    global _client
    settings = settings or get_settings()
    if _client is None:
        if not settings.OPENAI_API_KEY:
            raise InsightServiceError("OPENAI_API_KEY is not configured")
        _client = AsyncOpenAI(
            api_key=settings.OPENAI_API_KEY,
            base_url=settings.OPENAI_BASE_URL,
            timeout=settings.INSIGHT_TIMEOUT,
            max_retries=0,
        )
    return _client


def reset_client() -> None:
    global _client
    _client = None


_settings = get_settings()


@retry(
    stop=stop_after_attempt(_settings.INSIGHT_RETRY_ATTEMPTS),
    wait=wait_fixed(_settings.INSIGHT_RETRY_WAIT),
    retry=retry_if_exception_type((APIConnectionError, APITimeoutError)),
    reraise=True,
)
async def call_chat_completion(
    system_prompt: str,
    user_prompt: str,
    model: Optional[str] = None,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None
) -> str:
    """
    Wrapper for chat completions against any OpenAI-compatible endpoint.
    Retries transient connection errors only; rate limits and billing
    errors go straight back to the caller.
    """
    settings = get_settings()
    model = model or settings.INSIGHT_MODEL
    logger.info(f"🤖 Sending prompt to chat model [{model}]...")

    response = await get_client(settings).chat.completions.create(
        model=model,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt}
        ],
        temperature=settings.INSIGHT_TEMPERATURE if temperature is None else temperature,
        max_tokens=max_tokens or settings.INSIGHT_MAX_TOKENS
    )

    if not response.choices or not response.choices[0].message.content:
        raise InsightServiceError("No content in model response")

    usage = response.usage
    if usage is not None:
        logger.info(f"🧾 Token usage: Total={usage.total_tokens}, Prompt={usage.prompt_tokens}, Completion={usage.completion_tokens}")

    return response.choices[0].message.content.strip()
