"""
Prompt templates for contract analysis and the contract chat assistant
"""

from typing import List, Tuple

ANALYST_SYSTEM_PROMPT = """You are an expert contract analyst. You review commercial agreements,
identify obligations, risks and deadlines, and report them in the exact format requested.
Never invent clauses that are not in the text."""

ASSISTANT_SYSTEM_PROMPT = """You are an expert contract analyst assistant. Your task is to answer
the user's question about a contract that has been analyzed."""

CHAT_GUIDELINES = [
    "Be concise but thorough in your response",
    "Focus on the most relevant information for the specific question",
    "If you're unsure about something, say so rather than making assumptions",
    "Provide specific references to the contract analysis when applicable",
    "If the question cannot be answered with the given context, explain why",
    "Keep your response clear and easy to understand",
    "If appropriate, suggest follow-up questions the user might want to ask"
]


def get_chunk_analysis_prompts(chunk: str, index: int = 0, total: int = 1, pass_number: int = 0) -> Tuple[str, str]:
    """Prompts for analyzing a single contract section"""
    user_prompt = f"""Independent review #{pass_number + 1}.
Analyze this contract section concisely (section {index + 1} of {total}). Focus on:
1. Key terms and risks
2. Main obligations
3. Critical issues
4. Dates, deadlines and notice periods

Contract section:
{chunk}

Format:
SUMMARY: [Brief summary]
RISK LEVEL: [Low/Medium/High]
KEY POINTS:
- [Point 1]
- [Point 2]
ISSUES:
- [Issue 1]
- [Issue 2]
IMPORTANT DATES:
- [Date or period]: [what happens]"""

    return ANALYST_SYSTEM_PROMPT, user_prompt


def get_synthesis_prompts(chunk_analyses: List[str], pass_number: int = 0) -> Tuple[str, str]:
    """Prompts for merging section analyses into one contract-level answer"""
    joined = "\n---\n".join(chunk_analyses)

    user_prompt = f"""Independent review #{pass_number + 1}.
Synthesize these contract analysis results briefly:
{joined}

Provide, using exactly these headings:
Summary: one paragraph summary
Risk Score: a number from 0 to 100 (0 = no risk, 100 = extreme risk)
Risk Explanation: one or two sentences justifying the score
Key Points:
- 3-5 key points
Issues:
- 2-3 main issues
Recommendations:
- 2-3 recommendations"""

    return ANALYST_SYSTEM_PROMPT, user_prompt


def get_chat_prompts(focused_context: str, question: str) -> Tuple[str, str]:
    """Prompts for answering a follow-up question about an analyzed contract"""
    guidelines = "\n".join(f"{i}. {line}" for i, line in enumerate(CHAT_GUIDELINES, start=1))

    user_prompt = f"""CONTEXT:
{focused_context.strip()}

USER QUESTION:
{question}

GUIDELINES:
{guidelines}

Please provide a clear, direct answer to the user's question."""

    return ASSISTANT_SYSTEM_PROMPT, user_prompt
