"""Criteria Evaluator — evaluates herindicatie criteria against one client's dossier.

Invariants:
    - One result per criterion, in criteria-set order
    - Evidence per criterion = top `max_evidence` search hits inside the period
    - Never fails because of the LLM: API errors and unparseable answers fall back
      to the heuristic evaluation with an explanatory uncertainty
    - Without a configured API key the LLM is never called

Design Decisions:
    - Criteria evaluated concurrently (asyncio.gather): each is an independent LLM call
    - LLM client injected: tests pass a fake, production builds ResilientAnthropicClient
"""

import asyncio
import logging

from zorgdossier.config import Settings
from zorgdossier.core.criteria import (
    AI_DISABLED_UNCERTAINTY,
    AI_UNAVAILABLE_UNCERTAINTY,
    NO_EVIDENCE_UNCERTAINTY,
    SYSTEM_PROMPT,
    Criterion,
    build_evaluation_prompt,
    evaluate_heuristically,
    parse_evaluation_response,
)
from zorgdossier.core.dossier import Dossier
from zorgdossier.core.dossier_search import SearchFilters, search_dossier
from zorgdossier.core.errors import AnthropicAPIError, ErrorContext
from zorgdossier.infrastructure.anthropic_client import ResilientAnthropicClient

logger = logging.getLogger(__name__)


def build_llm_client(settings: Settings) -> ResilientAnthropicClient | None:
    """Resilient client when AI evaluation is configured, else None."""
    if not settings.ai_configured:
        return None
    return ResilientAnthropicClient(
        api_key=settings.anthropic_api_key,
        max_retries=settings.anthropic_max_retries,
        base_delay_ms=settings.anthropic_base_delay_ms,
        max_delay_ms=settings.anthropic_max_delay_ms,
        timeout_seconds=settings.anthropic_timeout_seconds,
    )


class CriteriaEvaluator:
    """Search-then-judge evaluation of herindicatie criteria."""

    def __init__(
        self,
        llm: ResilientAnthropicClient | None,
        model: str,
        max_tokens: int = 1024,
    ):
        self.llm = llm
        self.model = model
        self.max_tokens = max_tokens

    def gather_evidence(
        self,
        dossier: Dossier,
        criterion: Criterion,
        period_from: str,
        period_to: str,
        max_evidence: int,
    ) -> list[dict]:
        hits = search_dossier(
            dossier,
            criterion.search_query,
            k=max_evidence,
            filters=SearchFilters(date_from=period_from, date_to=period_to),
        )
        return [
            {"source": h["source"], "row": h["row"], "snippet": h["snippet"]}
            for h in hits
        ]

    async def evaluate(
        self,
        dossier: Dossier,
        criterion: Criterion,
        period_from: str,
        period_to: str,
        max_evidence: int = 3,
    ) -> dict:
        evidence = self.gather_evidence(
            dossier, criterion, period_from, period_to, max_evidence,
        )
        if self.llm is None:
            return evaluate_heuristically(criterion, evidence, AI_DISABLED_UNCERTAINTY)

        client_id = dossier.client.client_id
        prompt = build_evaluation_prompt(
            criterion, evidence, client_id, period_from, period_to,
        )
        try:
            text = await self.llm.create_text(
                model=self.model,
                max_tokens=self.max_tokens,
                system=SYSTEM_PROMPT,
                prompt=prompt,
                context=ErrorContext(client_id=client_id, operation="evaluate_criterion"),
            )
            parsed = parse_evaluation_response(text)
        except (AnthropicAPIError, ValueError) as e:
            logger.warning(
                f"AI evaluation failed, falling back to heuristics: {e}",
                extra={"client_id": client_id, "criterion_id": criterion.id},
            )
            return evaluate_heuristically(criterion, evidence, AI_UNAVAILABLE_UNCERTAINTY)

        return {
            "id": criterion.id,
            "status": parsed["status"],
            "argument": parsed["argument"],
            "evidence": evidence,
            "confidence": parsed["confidence"],
            "uncertainty": NO_EVIDENCE_UNCERTAINTY if not evidence else None,
        }

    async def evaluate_all(
        self,
        dossier: Dossier,
        criteria: list[Criterion],
        period_from: str,
        period_to: str,
        max_evidence: int = 3,
    ) -> list[dict]:
        return list(await asyncio.gather(*(
            self.evaluate(dossier, c, period_from, period_to, max_evidence)
            for c in criteria
        )))
