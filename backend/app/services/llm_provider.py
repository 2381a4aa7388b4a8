import base64
import logging
from abc import ABC, abstractmethod

import httpx
import openai
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types
from openai import OpenAI

from app.config import Settings
from app.errors import InferenceError
from app.models.domain import ImageSegment, PromptDocument

logger = logging.getLogger(__name__)

DEFAULT_OPENAI_MODEL = "gpt-4.1-mini"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"


def to_data_url(segment: ImageSegment) -> str:
    encoded = base64.b64encode(segment.image.data).decode("ascii")
    return f"data:{segment.image.media_type};base64,{encoded}"


class VisionProvider(ABC):
    """A hosted model that takes interleaved text and images and returns free text."""

    model: str

    @abstractmethod
    def generate_content(
        self,
        document: PromptDocument,
        system_prompt: str,
        max_output_tokens: int,
        model: str | None = None,
    ) -> str:
        """Returns the raw model text, which may be empty. Raises InferenceError on failure."""


class OpenAIProvider(VisionProvider):
    def __init__(self, model: str = DEFAULT_OPENAI_MODEL, api_key: str = "", timeout: float = 90.0):
        self.model = model
        self.client = OpenAI(api_key=api_key, timeout=timeout, max_retries=0) if api_key else None

    @staticmethod
    def build_input(document: PromptDocument) -> list[dict]:
        parts = []
        for segment in document.segments:
            if isinstance(segment, ImageSegment):
                parts.append({"type": "input_image", "image_url": to_data_url(segment)})
            else:
                parts.append({"type": "input_text", "text": segment.text})
        return [{"role": "user", "content": parts}]

    def generate_content(self, document, system_prompt, max_output_tokens, model=None) -> str:
        if not self.client:
            raise InferenceError("OPENAI_API_KEY not set for OpenAIProvider")

        try:
            response = self.client.responses.create(
                model=model or self.model,
                instructions=system_prompt,
                input=self.build_input(document),
                max_output_tokens=max_output_tokens,
            )
        except openai.OpenAIError as e:
            logger.warning(f"OpenAI request failed: {e}")
            raise InferenceError(f"Model request failed: {e}") from e
        return response.output_text or ""


class GeminiProvider(VisionProvider):
    def __init__(self, model: str = DEFAULT_GEMINI_MODEL, api_key: str = "", timeout: float = 90.0):
        self.model = model
        self.client = genai.Client(
            api_key=api_key,
            http_options=genai_types.HttpOptions(timeout=int(timeout * 1000)),
        ) if api_key else None

    @staticmethod
    def build_contents(document: PromptDocument) -> list[genai_types.Content]:
        parts = []
        for segment in document.segments:
            if isinstance(segment, ImageSegment):
                parts.append(genai_types.Part.from_bytes(
                    data=segment.image.data,
                    mime_type=segment.image.media_type,
                ))
            else:
                parts.append(genai_types.Part.from_text(text=segment.text))
        return [genai_types.Content(role="user", parts=parts)]

    def generate_content(self, document, system_prompt, max_output_tokens, model=None) -> str:
        if not self.client:
            raise InferenceError("GOOGLE_API_KEY not set for GeminiProvider")

        try:
            response = self.client.models.generate_content(
                model=model or self.model,
                contents=self.build_contents(document),
                config=genai_types.GenerateContentConfig(
                    system_instruction=system_prompt,
                    max_output_tokens=max_output_tokens,
                    temperature=0.1,
                ),
            )
        except (genai_errors.APIError, httpx.HTTPError) as e:
            logger.warning(f"Gemini request failed: {e}")
            raise InferenceError(f"Model request failed: {e}") from e
        return response.text or ""


def get_llm_provider(settings: Settings) -> VisionProvider:
    provider_type = settings.llm_provider
    model = settings.llm_model
    timeout = settings.llm_timeout_seconds

    if provider_type == "openai":
        return OpenAIProvider(model=model or DEFAULT_OPENAI_MODEL, api_key=settings.openai_api_key, timeout=timeout)
    elif provider_type == "gemini":
        return GeminiProvider(model=model or DEFAULT_GEMINI_MODEL, api_key=settings.google_api_key, timeout=timeout)
    else:
        logger.warning(f"Unknown LLM_PROVIDER '{provider_type}', falling back to OpenAI")
        return OpenAIProvider(model=DEFAULT_OPENAI_MODEL, api_key=settings.openai_api_key, timeout=timeout)
