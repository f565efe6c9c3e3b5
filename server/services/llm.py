"""Settings-driven chat model factory."""

from __future__ import annotations

from langchain_core.language_models import BaseChatModel

SAFETY_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)


def create_llm(
    provider_type: str,
    model_name: str,
    *,
    api_key: str | None = None,
    temperature: float | None = None,
    top_p: float | None = None,
    top_k: int | None = None,
    max_tokens: int | None = None,
    timeout: float | None = None,
    max_retries: int | None = None,
    safety_threshold: str | None = None,
) -> BaseChatModel:
    kwargs: dict = {"model": model_name}
    if temperature is not None:
        kwargs["temperature"] = temperature
    if top_p is not None:
        kwargs["top_p"] = top_p
    if timeout is not None:
        kwargs["timeout"] = timeout
    if max_retries is not None:
        kwargs["max_retries"] = max_retries

    if provider_type == "google":
        from langchain_google_genai import (
            ChatGoogleGenerativeAI,
            HarmBlockThreshold,
            HarmCategory,
        )
        if top_k is not None:
            kwargs["top_k"] = top_k
        if max_tokens is not None:
            kwargs["max_output_tokens"] = max_tokens
        if safety_threshold:
            threshold = HarmBlockThreshold[safety_threshold]
            kwargs["safety_settings"] = {
                HarmCategory[category]: threshold for category in SAFETY_CATEGORIES
            }
        return ChatGoogleGenerativeAI(google_api_key=api_key, **kwargs)

    if provider_type == "openai":
        from langchain_openai import ChatOpenAI
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens
        return ChatOpenAI(api_key=api_key, **kwargs)

    if provider_type == "anthropic":
        from langchain_anthropic import ChatAnthropic
        if top_k is not None:
            kwargs["top_k"] = top_k
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens
        return ChatAnthropic(api_key=api_key, **kwargs)

    raise ValueError(f"Unsupported provider type: {provider_type}")


def create_llm_from_settings() -> BaseChatModel:
    from config import settings

    return create_llm(
        settings.LLM_PROVIDER,
        settings.LLM_MODEL,
        api_key=settings.LLM_API_KEY or None,
        temperature=settings.LLM_TEMPERATURE,
        top_p=settings.LLM_TOP_P,
        top_k=settings.LLM_TOP_K,
        max_tokens=settings.LLM_MAX_OUTPUT_TOKENS,
        timeout=settings.LLM_TIMEOUT_SECONDS,
        max_retries=settings.LLM_MAX_RETRIES,
        safety_threshold=settings.LLM_SAFETY_THRESHOLD,
    )
