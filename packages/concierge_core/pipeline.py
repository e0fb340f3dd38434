"""Reply pipeline for guest questions.

This module provides the orchestrator that answers an inbound guest
message from the listing, the FAQ corpus or the generative fallback,
sends the reply, records both turns and escalates when needed.

Uses a LangGraph state machine for the stage sequence; the pipeline
itself never raises for a valid message.
"""

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Optional, Union

from concierge_config import ConciergeConfig, ConfigurationError
from concierge_runtime import AnswerSource, ConversationLog

from .classifier import FieldClassifier, create_classifier
from .dispatch import DeliveryResult, MessagingGateway, OutboundDispatcher
from .escalation import ConfidenceGate, EscalationNotifier, EscalationReason, EscalationRequest
from .graph import create_initial_state, create_pipeline_graph
from .graph.state import PipelineState
from .knowledge import (
    TECHNICAL_FALLBACK_MESSAGE,
    CuratedFAQResolver,
    FAQRepository,
    GenerativeFallbackResolver,
    ListingRepository,
    StructuredPropertyResolver,
    build_categories,
)
from .llm_provider import LLMProvider
from .metrics import PIPELINE_LATENCY, PIPELINE_RUNS, STAGE_FAILURES
from .results import InboundMessage, PipelineOutcome, ResolutionResult
from .rewrite import FriendlyRewriter

if TYPE_CHECKING:
    from langgraph.graph.state import CompiledStateGraph  # type: ignore[import-not-found]

logger = logging.getLogger(__name__)


class ResponsePipeline:
    """Answer guest messages and decide when a human must follow up.

    Stage order is listing, then FAQ, then generative fallback; the first
    answer wins. Collaborators not passed in are built from configuration
    on first use.
    """

    def __init__(
        self,
        config: ConciergeConfig,
        conversation_log: ConversationLog,
        listing_repository: ListingRepository,
        faq_repository: FAQRepository,
        gateway: MessagingGateway,
        notifier: EscalationNotifier,
        llm_provider: Optional[LLMProvider] = None,
        classifier: Optional[FieldClassifier] = None,
    ):
        """Initialize the pipeline.

        Args:
            config: Service configuration
            conversation_log: Conversation history store
            listing_repository: Property fact sheets
            faq_repository: Curated FAQ corpus
            gateway: Outbound messaging gateway
            notifier: Support ticket and push notifier
            llm_provider: Optional LLM provider (created from config if not provided)
            classifier: Optional field classifier (created from config if not provided)

        Raises:
            ConfigurationError: If the configured aliases name an unknown topic
        """
        self.config = config
        self.conversation_log = conversation_log
        self.listing_repository = listing_repository
        self.faq_repository = faq_repository
        self.gateway = gateway
        self.notifier = notifier
        self._llm_provider = llm_provider
        self._classifier = classifier
        self._listing_resolver = self._build_listing_resolver(config)
        self._faq_resolver: Optional[CuratedFAQResolver] = None
        self._fallback_resolver: Optional[GenerativeFallbackResolver] = None
        self._rewriter: Optional[FriendlyRewriter] = None
        self._dispatcher: Optional[OutboundDispatcher] = None
        self.gate = ConfidenceGate(config.confidence)
        self._graph: Optional["CompiledStateGraph"] = None

    @property
    def llm_provider(self) -> LLMProvider:
        """Get or create the LLM provider."""
        if self._llm_provider is None:
            self._llm_provider = LLMProvider(self.config.llm)
        return self._llm_provider

    @staticmethod
    def _build_listing_resolver(config: ConciergeConfig) -> StructuredPropertyResolver:
        try:
            categories = build_categories(config.knowledge.extra_aliases)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        return StructuredPropertyResolver(config.confidence, categories)

    @property
    def listing_resolver(self) -> StructuredPropertyResolver:
        """Get the structured property resolver."""
        return self._listing_resolver

    @property
    def classifier(self) -> FieldClassifier:
        """Get or create the field classifier."""
        if self._classifier is None:
            self._classifier = create_classifier(
                self.config.classifier,
                self.llm_provider,
                self.listing_resolver.categories,
            )
        return self._classifier

    @property
    def faq_resolver(self) -> CuratedFAQResolver:
        """Get or create the FAQ resolver."""
        if self._faq_resolver is None:
            self._faq_resolver = CuratedFAQResolver(
                self.faq_repository,
                self.llm_provider,
                history_window=self.config.classifier.history_window,
            )
        return self._faq_resolver

    @property
    def fallback_resolver(self) -> GenerativeFallbackResolver:
        """Get or create the generative fallback resolver."""
        if self._fallback_resolver is None:
            self._fallback_resolver = GenerativeFallbackResolver(
                self.llm_provider,
                confidence=self.config.confidence.ai_fallback_confidence,
                history_window=self.config.classifier.history_window,
                language=self.config.language,
            )
        return self._fallback_resolver

    @property
    def rewriter(self) -> FriendlyRewriter:
        """Get or create the friendly rewriter."""
        if self._rewriter is None:
            self._rewriter = FriendlyRewriter(
                self.llm_provider,
                self.config.confidence,
                language=self.config.language,
                timeout_seconds=self.config.pipeline.stage_timeout_seconds,
            )
        return self._rewriter

    @property
    def dispatcher(self) -> OutboundDispatcher:
        """Get or create the outbound dispatcher."""
        if self._dispatcher is None:
            self._dispatcher = OutboundDispatcher(
                self.gateway, timeout_seconds=self.config.pipeline.dispatch_timeout_seconds
            )
        return self._dispatcher

    @property
    def graph(self) -> "CompiledStateGraph":
        """Get or create the pipeline graph."""
        if self._graph is None:
            self._graph = create_pipeline_graph(self)
        return self._graph

    async def with_stage_timeout(self, awaitable: Awaitable[Any]) -> Any:
        """Await a collaborator call under the stage timeout."""
        return await asyncio.wait_for(
            awaitable, timeout=self.config.pipeline.stage_timeout_seconds
        )

    async def run_stage(
        self, state: PipelineState, stage: str, call: Callable[[], Awaitable[Any]]
    ) -> Any:
        """Run a recoverable stage; any exception or timeout becomes a miss.

        The call is made inside the guarded block, so a collaborator that
        fails while being built counts as a miss of that stage too.

        Args:
            state: Current pipeline state
            stage: Stage name used in logs and metrics
            call: Zero-argument function returning the collaborator call

        Returns:
            The call's result, or None on failure
        """
        try:
            return await self.with_stage_timeout(call())
        except Exception as e:
            self.record_stage_failure(state, stage, e)
            return None

    def record_stage_failure(self, state: PipelineState, stage: str, error: BaseException) -> None:
        """Log and count a stage degraded to a miss."""
        detail = str(error) or type(error).__name__
        state["stage_failures"].append(stage)
        STAGE_FAILURES.labels(stage=stage).inc()
        logger.warning(
            "Stage %s failed for guest %s, continuing: %s",
            stage,
            state["request"].guest_id,
            detail,
        )

    async def escalate(
        self,
        state: PipelineState,
        reason: Optional[EscalationReason],
        error: Optional[str],
    ) -> None:
        """Open the run's support ticket; failures are logged, not raised."""
        request = state["request"]
        result = state["result"]
        try:
            created = await self.notifier.notify(
                EscalationRequest(
                    guest_id=request.guest_id,
                    reservation_id=request.reservation_id,
                    listing_map_id=request.listing_map_id,
                    question=request.message,
                    response=result.response if result is not None else None,
                    reason=reason,
                    error=error,
                )
            )
            state["metadata"]["ticket_id"] = created.ticket_id
        except Exception as e:
            logger.error(
                "Escalation for guest %s could not be recorded: %s", request.guest_id, e
            )

    async def execute(self, request: Union[InboundMessage, Dict[str, Any]]) -> PipelineOutcome:
        """Answer one inbound guest message.

        Args:
            request: Inbound message, as a model or a mapping of its fields

        Returns:
            PipelineOutcome with the reply, its source and confidence, the
            escalation decision and the delivery outcome

        Raises:
            ValueError: If the request itself is invalid
        """
        if not isinstance(request, InboundMessage):
            request = InboundMessage.model_validate(request)

        started_at = time.monotonic()
        logger.info(
            "Processing message from guest %s (reservation=%s, listing=%s)",
            request.guest_id,
            request.reservation_id,
            request.listing_map_id,
        )

        try:
            final_state: Dict[str, Any] = await self.graph.ainvoke(
                create_initial_state(request, started_at)
            )
            outcome = self._build_outcome(final_state, started_at)
        except Exception as e:
            logger.exception("Pipeline failed for guest %s", request.guest_id)
            outcome = await self._fail(request, e, started_at)

        PIPELINE_RUNS.labels(source=outcome.source.value).inc()
        PIPELINE_LATENCY.observe(time.monotonic() - started_at)
        logger.info(
            "Finished message from guest %s: source=%s confidence=%.2f escalate=%s sent=%s (%sms)",
            request.guest_id,
            outcome.source.value,
            outcome.confidence,
            outcome.requires_escalation,
            outcome.sent,
            outcome.processing_time_ms,
        )
        return outcome

    def _build_outcome(self, final_state: Dict[str, Any], started_at: float) -> PipelineOutcome:
        """Merge the resolution with its delivery and any fatal-path escalation."""
        result: ResolutionResult = final_state["result"]
        delivery: Optional[DeliveryResult] = final_state["delivery"]
        fields = result.model_dump(exclude={"processing_time_ms"})
        error_reason: Optional[EscalationReason] = final_state["error_reason"]
        if error_reason is not None:
            fields.update(
                requires_escalation=True,
                escalation_reason=error_reason.message,
                reason_code=error_reason,
            )
        return PipelineOutcome(
            **fields,
            processing_time_ms=_elapsed_ms(started_at),
            sent=bool(delivery and delivery.sent),
            message_id=delivery.message_id if delivery else None,
            error=final_state["error"],
        )

    async def _fail(
        self, request: InboundMessage, error: Exception, started_at: float
    ) -> PipelineOutcome:
        """Fall back to the technical reply after an unexpected failure."""
        error_text = str(error) or type(error).__name__
        reason = EscalationReason.PIPELINE_ERROR

        delivery = await self.dispatcher.dispatch(
            request.reservation_id, TECHNICAL_FALLBACK_MESSAGE, request.conversation_id
        )

        state = create_initial_state(request, started_at)
        state["result"] = ResolutionResult(
            response=TECHNICAL_FALLBACK_MESSAGE,
            source=AnswerSource.ERROR,
            confidence=0.0,
            requires_escalation=True,
            escalation_reason=reason.message,
            reason_code=reason,
        )
        await self.escalate(state, reason=reason, error=error_text)

        return PipelineOutcome(
            response=TECHNICAL_FALLBACK_MESSAGE,
            source=AnswerSource.ERROR,
            confidence=0.0,
            requires_escalation=True,
            escalation_reason=reason.message,
            reason_code=reason,
            processing_time_ms=_elapsed_ms(started_at),
            sent=delivery.sent,
            message_id=delivery.message_id,
            error=error_text,
        )


def _elapsed_ms(started_at: float) -> int:
    return max(0, int((time.monotonic() - started_at) * 1000))
