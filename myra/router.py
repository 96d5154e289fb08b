"""
Message router: picks the backend and task mode for a text message. [CA][REH]

Routing is two-tier. An LLM classifier is asked for a strict JSON decision
first; if it is not configured, fails, or answers with something unusable,
an ordered keyword rule table decides instead. `Router.route` never raises.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .backends import BaseBackendAdapter
from .config import get_api_key, get_model
from .exceptions import ClassificationError
from .prompts import ROUTER_SYSTEM
from .types import Provider, RouteDecision, Task, Urgency
from .utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_PROVIDER = Provider.OPENAI
ROUTER_MAX_OUTPUT_TOKENS = 200

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

IMAGE_PROMPT_RE = re.compile(
    r"(image|picture|photo|illustration|dessin|generate image|create image)", re.IGNORECASE
)


@dataclass(frozen=True)
class RoutingRule:
    name: str
    pattern: re.Pattern
    provider: Provider
    task: Task
    reason: str

    def decision(self) -> RouteDecision:
        return RouteDecision(provider=self.provider, task=self.task, reason=self.reason)


# Evaluated in order against lower-cased text; the first match wins
ROUTING_RULES: Tuple[RoutingRule, ...] = (
    RoutingRule("image", IMAGE_PROMPT_RE, Provider.OPENAI, Task.IMAGE, "image request"),
    RoutingRule(
        "search",
        re.compile(r"(sources?|citations?|news|latest|search)"),
        Provider.PERPLEXITY,
        Task.SEARCH,
        "info retrieval",
    ),
    RoutingRule(
        "short",
        re.compile(
            r"(tldr|tl;dr|resume|summary|bref|court|en 1 phrase|en une phrase|ultra court|tres court)"
        ),
        Provider.MISTRAL,
        Task.GENERAL,
        "ultra short response",
    ),
    RoutingRule(
        "explicit",
        re.compile(r"(sex|porn|nude|explicit|kink)"),
        Provider.GROK,
        Task.EXPLICIT,
        "edgy or explicit",
    ),
    RoutingRule(
        "code",
        re.compile(
            r"(code|bug|debug|error|stack|function|class|script|typescript|javascript|python|java|c\+\+)"
        ),
        Provider.OPENAI,
        Task.CODE,
        "coding request",
    ),
    RoutingRule(
        "article",
        re.compile(r"(article|resume|summary|summarize|writeup|blog|long form)"),
        Provider.CLAUDE,
        Task.ARTICLE,
        "structured writing",
    ),
    RoutingRule(
        "reasoning",
        re.compile(r"(analyze|reason|proof|rigorous)"),
        Provider.CLAUDE,
        Task.GENERAL,
        "deep reasoning",
    ),
)

DEFAULT_DECISION = RouteDecision(provider=DEFAULT_PROVIDER, task=Task.GENERAL, reason="default")


def is_image_prompt(text: Optional[str]) -> bool:
    return bool(IMAGE_PROMPT_RE.search(text or ""))


def route_with_rules(text: Optional[str]) -> RouteDecision:
    """Deterministic fallback routing. Total: every string maps to one decision."""
    lower = (text or "").lower()
    for rule in ROUTING_RULES:
        if rule.pattern.search(lower):
            return rule.decision()
    return DEFAULT_DECISION


def extract_json_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Parse the first-brace-to-last-brace span of `text`, tolerating prose around it."""
    match = _JSON_OBJECT_RE.search(text or "")
    if not match:
        return None
    try:
        value = json.loads(match.group(0))
    except ValueError:
        return None
    return value if isinstance(value, dict) else None


def normalize_task(task: Any) -> Task:
    try:
        return Task(str(task or "general").strip().lower())
    except ValueError:
        return Task.GENERAL


def normalize_urgency(urgency: Any) -> Urgency:
    try:
        return Urgency(str(urgency or "normal").strip().lower())
    except ValueError:
        return Urgency.NORMAL


def decision_from_payload(payload: Optional[Dict[str, Any]]) -> RouteDecision:
    """Build a decision from classifier JSON; raises ClassificationError if unusable."""
    if not payload or not payload.get("provider"):
        raise ClassificationError("classifier returned no provider")

    provider = Provider.parse(payload["provider"])
    if provider is None:
        raise ClassificationError(f"unsupported provider: {payload['provider']!r}")

    return RouteDecision(
        provider=provider,
        task=normalize_task(payload.get("task")),
        reason=str(payload.get("reason") or ""),
        urgency=normalize_urgency(payload.get("urgency")),
    )


class Router:
    """Routes text messages to a backend/task pair."""

    def __init__(self, config: Dict[str, Any], adapters: Dict[Provider, BaseBackendAdapter]):
        self.config = config
        self.adapters = adapters

    async def route(self, text: str) -> RouteDecision:
        decision = await self.route_with_llm(text)
        if decision is not None:
            source = "llm"
        else:
            decision = route_with_rules(text)
            source = "rules"

        logger.info(
            f"🧭 Routed to {decision.provider.value}/{decision.task.value} via {source}",
            extra={
                "subsys": "router",
                "event": "router.decision",
                "provider": decision.provider.value,
                "detail": {**decision.to_dict(), "source": source},
            },
        )
        return decision

    async def route_with_llm(self, text: str) -> Optional[RouteDecision]:
        """Ask the configured router backend; None means fall back to rules."""
        provider = Provider.parse(self.config.get("ROUTER_PROVIDER") or DEFAULT_PROVIDER.value)
        if provider is None:
            logger.warning(f"⚠️  Unsupported ROUTER_PROVIDER {self.config.get('ROUTER_PROVIDER')!r}")
            return None

        api_key = get_api_key(provider, self.config)
        model = self.config.get("ROUTER_MODEL") or get_model(provider, self.config)
        if not api_key or not model:
            return None

        try:
            raw = await self.adapters[provider].generate(
                api_key=api_key,
                model=model,
                system_prompt=ROUTER_SYSTEM,
                user_prompt=text,
                max_output_tokens=ROUTER_MAX_OUTPUT_TOKENS,
            )
            return decision_from_payload(extract_json_object(raw))
        except ClassificationError as e:
            logger.info(
                f"Router classification unusable, using rules: {e}",
                extra={"subsys": "router", "event": "router.classification_unusable"},
            )
        except Exception as e:
            logger.warning(
                f"⚠️  Router backend call failed, using rules: {e}",
                extra={
                    "subsys": "router",
                    "event": "router.llm_failed",
                    "provider": provider.value,
                    "detail": {"error_type": type(e).__name__},
                },
            )
        return None
