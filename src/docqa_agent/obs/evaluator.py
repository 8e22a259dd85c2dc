"""LLM-as-judge rubric scoring of finished answers."""

from __future__ import annotations

import json
import logging
import math
from typing import Any

from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate

from docqa_agent.config import EvaluatorConfig
from docqa_agent.errors import ToolFailure
from docqa_agent.obs.tracing import run_with_timeout
from docqa_agent.types import Evaluation

logger = logging.getLogger(__name__)

NEUTRAL_SCORE = 3
PARSE_FAILURE_FEEDBACK = "Unable to parse evaluation"
_SCORE_FIELDS = {
    "relevance": "relevance",
    "clarity": "clarity",
    "toolEffectiveness": "tool_effectiveness",
}

_RUBRIC_PROMPT = ChatPromptTemplate.from_template(
    """Evaluate the following AI response on a scale of 1-5 for each criterion:

Question: {question}
Answer: {answer}
Tools Used: {tools_used}

Provide scores (1-5) for:
1. Relevance: How relevant is the answer to the question?
2. Clarity: How clear and understandable is the answer?
3. Tool Effectiveness: Were the right tools used?

Respond in JSON format:
{{
  "relevance": <score>,
  "clarity": <score>,
  "toolEffectiveness": <score>,
  "feedback": "<brief explanation>"
}}"""
)


class ResponseEvaluator:
    """Scores (question, answer, tools used) against a fixed rubric.

    The evaluation is advisory: this class never raises. Model failures,
    timeouts and unparsable output all produce the neutral evaluation, and
    individual scores that are non-numeric are replaced by 3 while numeric
    ones are clamped into [1, 5].

    Usage:
        evaluator = ResponseEvaluator(llm)
        evaluation = evaluator.evaluate(
            "What is the capital of France?",
            "Paris.",
            ["vector_search"],
        )
    """

    def __init__(self, llm: Any | None, config: EvaluatorConfig | None = None) -> None:
        self.config = config or EvaluatorConfig()
        self._chain = _RUBRIC_PROMPT | llm | StrOutputParser() if llm is not None else None

    def evaluate(self, question: str, answer: str, tools_used: list[str]) -> Evaluation:
        if self._chain is None:
            logger.info("No evaluator model configured; returning neutral evaluation")
            return Evaluation.neutral("Evaluation model not configured")

        try:
            raw = run_with_timeout(
                "evaluator",
                self._chain.invoke,
                self.config.call_timeout_seconds,
                {
                    "question": question,
                    "answer": answer,
                    "tools_used": ", ".join(tools_used),
                },
            )
        except ToolFailure as exc:
            logger.warning("Evaluation call failed: %s", exc.reason)
            return Evaluation.neutral(PARSE_FAILURE_FEEDBACK)

        evaluation = parse_evaluation(raw)
        logger.info("Evaluation: %s", evaluation.model_dump(by_alias=True))
        return evaluation


def parse_evaluation(raw: str) -> Evaluation:
    """Parse judge output into an `Evaluation`, degrading instead of failing."""

    data = _load_json_object(raw)
    if data is None:
        logger.warning("Failed to parse evaluation output")
        logger.debug("Raw evaluation output: %r", raw)
        return Evaluation.neutral(PARSE_FAILURE_FEEDBACK)

    scores = {field: _coerce_score(data.get(key)) for key, field in _SCORE_FIELDS.items()}
    feedback = data.get("feedback", "")
    if not isinstance(feedback, str):
        feedback = "" if feedback is None else str(feedback)
    return Evaluation(**scores, feedback=feedback)


def _load_json_object(raw: str) -> dict[str, Any] | None:
    text = raw if isinstance(raw, str) else str(raw)
    if "```json" in text:
        text = text.split("```json", 1)[1].split("```", 1)[0]
    elif "```" in text:
        text = text.split("```", 1)[1].split("```", 1)[0]
    try:
        data = json.loads(text.strip())
    except (json.JSONDecodeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def _coerce_score(value: Any) -> int:
    if isinstance(value, bool):
        return NEUTRAL_SCORE
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return NEUTRAL_SCORE
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return NEUTRAL_SCORE
    return int(min(5, max(1, round(value))))
