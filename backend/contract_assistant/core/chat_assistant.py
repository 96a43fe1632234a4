"""
Question answering over an analyzed contract
"""

from typing import Dict, Optional, Tuple

from contract_assistant.core.exceptions import LLMError
from contract_assistant.core.llm_client import call_openai_api
from contract_assistant.core.prompts import get_chat_prompts
from contract_assistant.core.response_parser import parse_chat_context
from contract_assistant.schemas import ContractAnalysis
from contract_assistant.utils.logger import log_function_call, logger

# Focus keywords, checked in order
QUESTION_FOCUS = [
    ("risk", ("risk", "score")),
    ("recommendations", ("recommend", "suggest")),
    ("terms", ("term", "clause")),
    ("issues", ("issue", "problem")),
]


def format_analysis_context(analysis: ContractAnalysis) -> str:
    level = analysis.risk_level.value if analysis.risk_level else ""
    return (
        "Contract Analysis Context:\n"
        f"Summary: {analysis.summary}\n"
        f"Risk Score: {analysis.risk_score}/100 ({level} Risk)\n"
        f"Key Terms: {', '.join(analysis.key_terms)}\n"
        f"Potential Issues: {', '.join(analysis.potential_issues)}\n"
        f"Recommendations: {', '.join(analysis.recommendations)}"
    )


def analysis_context_fields(analysis: ContractAnalysis) -> Dict[str, object]:
    """Chat context fields taken straight from a structured analysis"""
    return {
        "summary": analysis.summary or "",
        "risk_score": str(analysis.risk_score),
        "key_terms": list(analysis.key_terms),
        "potential_issues": list(analysis.potential_issues),
        "recommendations": list(analysis.recommendations),
    }


def classify_question(question: str) -> str:
    lowered = (question or "").lower()
    for focus, keywords in QUESTION_FOCUS:
        if any(keyword in lowered for keyword in keywords):
            return focus
    return "general"


def _bullets(items) -> str:
    return "\n".join(f"- {item}" for item in items)


def build_focused_context(context: Dict[str, object], focus: str) -> str:
    """Keep the parts of the analysis that matter for the question"""
    summary = context.get("summary", "")
    risk_score = context.get("risk_score", "0")
    key_terms = context.get("key_terms", [])
    issues = context.get("potential_issues", [])
    recommendations = context.get("recommendations", [])

    if focus == "risk":
        return (
            f"Risk Score: {risk_score}/100\n"
            f"Risk Analysis:\n{summary}\n"
            f"Potential Issues:\n{_bullets(issues)}"
        )
    if focus == "recommendations":
        return (
            f"Summary: {summary}\n"
            f"Recommendations:\n{_bullets(recommendations)}"
        )
    if focus == "terms":
        return (
            f"Summary: {summary}\n"
            f"Key Terms:\n{_bullets(key_terms)}"
        )
    if focus == "issues":
        return (
            f"Summary: {summary}\n"
            f"Potential Issues:\n{_bullets(issues)}\n"
            f"Risk Score: {risk_score}/100"
        )
    return (
        f"Summary: {summary}\n"
        f"Risk Score: {risk_score}/100\n"
        f"Key Terms:\n{_bullets(key_terms)}\n"
        f"Potential Issues:\n{_bullets(issues)}\n"
        f"Recommendations:\n{_bullets(recommendations)}"
    )


@log_function_call
async def answer_question(question: str, context: Optional[str] = None,
                          analysis: Optional[ContractAnalysis] = None) -> Tuple[str, str]:
    """
    Answer a follow-up question about a contract.

    Args:
        question: The user's question
        context: Free-text analysis context sent by the client
        analysis: Structured analysis, preferred over the free-text context

    Returns:
        (answer, focus)
    """
    if analysis is not None:
        fields = analysis_context_fields(analysis)
    elif context and context.strip():
        fields = parse_chat_context(context)
    else:
        raise ValueError("Context or analysis is required")

    focus = classify_question(question)
    focused_context = build_focused_context(fields, focus)
    logger.info(f"Answering contract question with focus '{focus}'")

    system_prompt, user_prompt = get_chat_prompts(focused_context, question)
    response = await call_openai_api(system_prompt, user_prompt, purpose="chat", use_cache=False)

    if not response or not response.strip():
        raise LLMError("Failed to generate response")
    return response.strip(), focus
