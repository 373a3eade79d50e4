import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from openai import AsyncOpenAI

from rag.config import Settings
from rag.schemas import ClinicalRequest

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.1
DEFAULT_TOP_P = 0.95
DEFAULT_TOP_K = 40


def _number_or(value: Any, default):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return value


@dataclass(frozen=True)
class SamplingConfig:
    temperature: float = DEFAULT_TEMPERATURE
    top_p: float = DEFAULT_TOP_P
    top_k: int = DEFAULT_TOP_K
    stop_sequences: Optional[List[str]] = None

    @classmethod
    def from_request(cls, req: ClinicalRequest) -> "SamplingConfig":
        stop = req.stopSequences
        if not (isinstance(stop, list) and all(isinstance(s, str) for s in stop)):
            stop = None
        return cls(
            temperature=_number_or(req.temperature, DEFAULT_TEMPERATURE),
            top_p=_number_or(req.topP, DEFAULT_TOP_P),
            top_k=_number_or(req.topK, DEFAULT_TOP_K),
            stop_sequences=stop,
        )


@dataclass(frozen=True)
class TokenUsage:
    input_tokens: Optional[int]
    output_tokens: Optional[int]
    total_tokens: Optional[int]


@dataclass(frozen=True)
class Completion:
    text: str
    usage: Optional[TokenUsage] = None


def make_async_client(settings: Settings) -> AsyncOpenAI:
    kwargs = {"api_key": settings.llm_api_key, "max_retries": 0}
    if settings.llm_base_url:
        kwargs["base_url"] = settings.llm_base_url
    if settings.llm_timeout_s is not None:
        kwargs["timeout"] = settings.llm_timeout_s
    return AsyncOpenAI(**kwargs)


class CompletionClient:
    """
    Sends one flat prompt to an OpenAI-compatible chat completions endpoint.

    The wrapped AsyncOpenAI client is built once per process and only read
    afterwards, so a single instance serves concurrent requests. Provider
    errors are not caught here.
    """

    def __init__(self, client: AsyncOpenAI, model: str, max_tokens: Optional[int] = None):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    @classmethod
    def from_settings(cls, settings: Settings) -> "CompletionClient":
        return cls(make_async_client(settings), settings.llm_model, settings.llm_max_tokens)

    async def complete(self, prompt: str, sampling: SamplingConfig) -> Completion:
        kwargs = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": sampling.temperature,
            "top_p": sampling.top_p,
            "extra_body": {"top_k": sampling.top_k},
        }
        if sampling.stop_sequences:
            kwargs["stop"] = sampling.stop_sequences
        if self.max_tokens:
            kwargs["max_tokens"] = self.max_tokens

        resp = await self.client.chat.completions.create(**kwargs)

        usage = None
        if getattr(resp, "usage", None) is not None:
            usage = TokenUsage(
                input_tokens=resp.usage.prompt_tokens,
                output_tokens=resp.usage.completion_tokens,
                total_tokens=resp.usage.total_tokens,
            )
            logger.info(
                f"Token usage: input={usage.input_tokens} "
                f"output={usage.output_tokens} total={usage.total_tokens}"
            )
        else:
            logger.warning("No usage metadata available from the model response.")

        text = ""
        if resp.choices:
            text = resp.choices[0].message.content or ""
        return Completion(text=text, usage=usage)

    async def close(self) -> None:
        await self.client.close()
