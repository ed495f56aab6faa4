# services/model_fallback.py
"""Sequential model fallback shared by chat, follow-up, analysis, and improvement."""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from config import settings
from core.enums import TerminalPolicy
from core.exceptions import InvalidModelResponse, ModelInvocationError, ModelTimeoutError
from core.interfaces import IChatModelClient

logger = logging.getLogger(settings.LOGGER_NAME)

RequestBuilder = Callable[[str], Dict[str, Any]]


@dataclass(frozen=True)
class InvocationProfile:
    """Per-feature knobs; the state machine itself is identical for every feature."""
    feature: str
    timeout: float
    max_tokens: int
    terminal_policy: TerminalPolicy
    temperature: float = 0.7
    top_p: float = 0.9


CHAT_PROFILE = InvocationProfile(
    "chat", settings.CHAT_TIMEOUT_SEC, settings.CHAT_MAX_TOKENS, TerminalPolicy.RAISE
)
FOLLOW_UP_PROFILE = InvocationProfile(
    "follow-up questions", settings.FOLLOW_UP_TIMEOUT_SEC, settings.FOLLOW_UP_MAX_TOKENS, TerminalPolicy.EMPTY
)
ANALYSIS_PROFILE = InvocationProfile(
    "document analysis", settings.ANALYSIS_TIMEOUT_SEC, settings.ANALYSIS_MAX_TOKENS, TerminalPolicy.RAISE,
    temperature=0.5
)
IMPROVE_PROFILE = InvocationProfile(
    "section improvement", settings.IMPROVE_TIMEOUT_SEC, settings.IMPROVE_MAX_TOKENS, TerminalPolicy.RAISE
)


def extract_message_content(response: Any, model: str) -> str:
    """choices[0].message.content, or InvalidModelResponse."""
    try:
        content = response["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise InvalidModelResponse(f"Invalid response from {model}", model=model) from e
    if not isinstance(content, str):
        raise InvalidModelResponse(f"Invalid response from {model}", model=model)
    return content


class ModelFallbackInvoker:
    """
    Tries candidate models in order, each raced against its own timeout.

    The first well-formed answer wins and later candidates are never called.
    A failed candidate is not retried. When the last candidate fails the
    terminal policy decides: RAISE re-raises the last error, EMPTY returns None.
    """

    def __init__(self, client: IChatModelClient, candidates: Sequence[str]):
        self.client = client
        self.candidates = list(candidates)

    async def invoke(
        self,
        request_builder: RequestBuilder,
        timeout: float,
        terminal_policy: TerminalPolicy,
        feature: str = "chat",
        candidates: Optional[Sequence[str]] = None
    ) -> Optional[str]:
        models: List[str] = list(candidates if candidates is not None else self.candidates)
        last_error: Optional[Exception] = None

        for i, model in enumerate(models):
            logger.info(f"Trying model {i + 1}/{len(models)} for {feature}: {model}")
            try:
                response = await asyncio.wait_for(
                    self.client.complete(model, request_builder(model)),
                    timeout=timeout
                )
                content = extract_message_content(response, model)
                logger.info(f"Response generated successfully with {model}")
                return content
            except asyncio.TimeoutError:
                last_error = ModelTimeoutError(f"{feature} API timeout for {model}", model=model)
                logger.error(f"{model} timed out after {timeout}s for {feature}")
            except Exception as e:
                last_error = e
                logger.error(f"{model} failed for {feature}: {e}")

            if i < len(models) - 1:
                logger.warning(f"Trying next model for {feature}...")

        if terminal_policy == TerminalPolicy.EMPTY:
            logger.warning(f"All models failed for {feature}, returning empty result")
            return None

        if last_error is None:
            raise ModelInvocationError(f"No candidate models configured for {feature}")
        if isinstance(last_error, ModelTimeoutError):
            logger.error("All models timed out - this might be due to model loading or network issues")
        raise last_error

    async def run(
        self,
        profile: InvocationProfile,
        messages: List[Dict[str, str]],
        candidates: Optional[Sequence[str]] = None
    ) -> Optional[str]:
        """invoke() with the request body derived from a profile."""
        def build(model: str) -> Dict[str, Any]:
            return {
                "messages": messages,
                "max_tokens": profile.max_tokens,
                "temperature": profile.temperature,
                "top_p": profile.top_p,
            }

        return await self.invoke(
            build,
            timeout=profile.timeout,
            terminal_policy=profile.terminal_policy,
            feature=profile.feature,
            candidates=candidates
        )
