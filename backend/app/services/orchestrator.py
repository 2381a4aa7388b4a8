"""
Orchestrator that coordinates one estimate:
  Assemble prompt → Invoke model → Interpret → Persist
"""
import logging
from functools import lru_cache

from fastapi import Depends

from app.config import Settings, get_settings, settings as app_settings
from app.errors import StorageUnavailable
from app.models.domain import EstimateOutcome, EstimationRequest, NewEstimate, SaveOutcome, Unsaved
from app.services.estimate_store import EstimateStore, get_estimate_store
from app.services.inference import InferenceInvoker
from app.services.interpreter import interpret
from app.services.llm_provider import get_llm_provider
from app.services.policy import PolicyProfile, load_policy
from app.services.prompt_assembler import build_prompt_document

logger = logging.getLogger(__name__)


class EstimationPipeline:
    """
    Runs the estimate path for an already-validated request. Inference
    success is decoupled from persistence: once the model has answered, a
    storage failure only downgrades the outcome to Unsaved.
    """

    def __init__(
        self,
        invoker: InferenceInvoker,
        store: EstimateStore,
        policy: PolicyProfile,
        max_output_tokens: int,
    ):
        self.invoker = invoker
        self.store = store
        self.policy = policy
        self.max_output_tokens = max_output_tokens

    async def run(self, request: EstimationRequest) -> EstimateOutcome:
        document = build_prompt_document(request)
        model = self.invoker.model

        result_text = await self.invoker.invoke(
            self.policy.text, document, model=model, max_output_tokens=self.max_output_tokens
        )
        interpretation = interpret(result_text)

        saved = await self._persist(NewEstimate(
            agent_label=request.agent_label,
            job_type=request.job_type,
            dumpster_size=request.dumpster_size,
            notes=request.notes,
            photo_count=request.photo_count,
            model_name=model,
            result_text=interpretation.text,
            confidence=interpretation.confidence,
            policy_version=self.policy.version,
        ))
        return EstimateOutcome(interpretation=interpretation, saved=saved)

    async def _persist(self, estimate: NewEstimate) -> SaveOutcome:
        try:
            return await self.store.append(estimate)
        except StorageUnavailable as e:
            logger.warning(f"Estimate computed but not saved: {e.message}")
            return Unsaved(reason=e.message)


@lru_cache
def _default_invoker() -> InferenceInvoker:
    return InferenceInvoker(get_llm_provider(app_settings))


@lru_cache
def _default_policy() -> PolicyProfile:
    return load_policy(app_settings)


def get_inference_invoker() -> InferenceInvoker:
    return _default_invoker()


def get_policy() -> PolicyProfile:
    return _default_policy()


def get_estimation_pipeline(
    invoker: InferenceInvoker = Depends(get_inference_invoker),
    store: EstimateStore = Depends(get_estimate_store),
    policy: PolicyProfile = Depends(get_policy),
    settings: Settings = Depends(get_settings),
) -> EstimationPipeline:
    return EstimationPipeline(invoker, store, policy, settings.output_token_limit)
