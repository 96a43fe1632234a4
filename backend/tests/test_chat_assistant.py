import asyncio

import pytest

from contract_assistant.core import chat_assistant
from contract_assistant.core.chat_assistant import (
    answer_question, build_focused_context, classify_question, format_analysis_context
)
from contract_assistant.core.exceptions import LLMError
from contract_assistant.core.response_parser import parse_chat_context
from contract_assistant.schemas import ContractAnalysis


@pytest.fixture
def analysis():
    return ContractAnalysis(
        summary="A one-year software license.",
        risk_score=45,
        key_terms=["Annual fee", "Auto renewal"],
        potential_issues=["No SLA"],
        recommendations=["Negotiate uptime commitments"]
    )


def test_format_analysis_context(analysis):
    context = format_analysis_context(analysis)

    assert context.startswith("Contract Analysis Context:")
    assert "Risk Score: 45/100 (Moderate Risk)" in context
    assert "Key Terms: Annual fee, Auto renewal" in context
    assert "Recommendations: Negotiate uptime commitments" in context


def test_formatted_context_parses_back(analysis):
    parsed = parse_chat_context(format_analysis_context(analysis))

    assert parsed["summary"] == "A one-year software license."
    assert parsed["risk_score"] == "45"
    assert parsed["key_terms"] == ["Annual fee", "Auto renewal"]


@pytest.mark.parametrize("question, focus", [
    ("What is the risk score?", "risk"),
    ("What do you recommend I change?", "recommendations"),
    ("Explain the payment terms", "terms"),
    ("Which clause covers liability?", "terms"),
    ("Are there any problems?", "issues"),
    ("Who are the parties?", "general"),
    # risk is checked before recommendations
    ("Can you suggest ways to reduce risk?", "risk"),
])
def test_classify_question(question, focus):
    assert classify_question(question) == focus


def test_focused_context_keeps_relevant_sections(analysis):
    context = parse_chat_context(format_analysis_context(analysis))

    risk_context = build_focused_context(context, "risk")
    assert "Risk Score: 45/100" in risk_context
    assert "- No SLA" in risk_context
    assert "Negotiate" not in risk_context

    recommendations_context = build_focused_context(context, "recommendations")
    assert "- Negotiate uptime commitments" in recommendations_context
    assert "Annual fee" not in recommendations_context

    general_context = build_focused_context(context, "general")
    for expected in ("Annual fee", "No SLA", "Negotiate uptime commitments", "45/100"):
        assert expected in general_context


def test_answer_question_with_structured_analysis(monkeypatch, analysis):
    prompts = []

    async def fake_call(system_prompt, user_prompt, purpose="analysis", timeout=None, use_cache=True):
        prompts.append((purpose, user_prompt))
        return "  The main risk is the missing SLA.  "

    monkeypatch.setattr(chat_assistant, "call_openai_api", fake_call)

    answer, focus = asyncio.run(answer_question("What is the biggest risk?", analysis=analysis))

    assert answer == "The main risk is the missing SLA."
    assert focus == "risk"
    purpose, user_prompt = prompts[0]
    assert purpose == "chat"
    assert "USER QUESTION:\nWhat is the biggest risk?" in user_prompt
    assert "- No SLA" in user_prompt


def test_answer_question_with_text_context(monkeypatch):
    async def fake_call(system_prompt, user_prompt, purpose="analysis", timeout=None, use_cache=True):
        return "Renewal is automatic."

    monkeypatch.setattr(chat_assistant, "call_openai_api", fake_call)

    answer, focus = asyncio.run(answer_question(
        "Does it renew?", context="Summary: A lease.\nRisk Score: 20%\nKey Terms: Auto renewal"
    ))
    assert answer == "Renewal is automatic."
    assert focus == "general"


def test_answer_question_requires_context():
    with pytest.raises(ValueError):
        asyncio.run(answer_question("Anything?"))


def test_empty_model_answer_raises(monkeypatch, analysis):
    async def fake_call(system_prompt, user_prompt, purpose="analysis", timeout=None, use_cache=True):
        return ""

    monkeypatch.setattr(chat_assistant, "call_openai_api", fake_call)

    with pytest.raises(LLMError, match="Failed to generate response"):
        asyncio.run(answer_question("What now?", analysis=analysis))


def test_structured_analysis_keeps_items_with_commas(monkeypatch):
    prompts = []

    async def fake_call(system_prompt, user_prompt, purpose="analysis", timeout=None, use_cache=True):
        prompts.append(user_prompt)
        return "The fee is payable in advance."

    monkeypatch.setattr(chat_assistant, "call_openai_api", fake_call)
    analysis = ContractAnalysis(
        summary="A license.",
        risk_score=30,
        key_terms=["Annual fee of $5,000, payable in advance", "Auto renewal"]
    )

    asyncio.run(answer_question("Explain the fee terms", analysis=analysis))

    assert "- Annual fee of $5,000, payable in advance\n- Auto renewal" in prompts[0]
    assert "- 000" not in prompts[0]
