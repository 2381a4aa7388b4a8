import asyncio
import logging

from app.config import MAX_OUTPUT_TOKENS_CAP
from app.errors import EmptyModelResponse, InferenceError
from app.models.domain import PromptDocument
from app.services.llm_provider import VisionProvider

logger = logging.getLogger(__name__)


class InferenceInvoker:
    """
    Sends one assembled prompt to the model. Exactly one provider call per
    invocation: a failure is reported, never retried, because a second
    multimodal call would be billed again.
    """

    def __init__(self, provider: VisionProvider):
        self.provider = provider

    @property
    def model(self) -> str:
        return self.provider.model

    async def invoke(
        self,
        policy_text: str,
        document: PromptDocument,
        model: str | None = None,
        max_output_tokens: int = 220,
    ) -> str:
        limit = max(1, min(max_output_tokens, MAX_OUTPUT_TOKENS_CAP))
        model = model or self.provider.model

        # Provider SDKs are synchronous, so dispatch to a thread
        loop = asyncio.get_running_loop()
        try:
            text = await loop.run_in_executor(
                None, self.provider.generate_content, document, policy_text, limit, model
            )
        except InferenceError:
            raise
        except Exception as e:
            logger.error(f"Unexpected provider failure ({model}): {e}")
            raise InferenceError(str(e) or "Model request failed") from e

        if not (text or "").strip():
            logger.warning(f"Model {model} returned an empty response")
            raise EmptyModelResponse()
        return text
