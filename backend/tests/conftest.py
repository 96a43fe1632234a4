import os
import sys
import tempfile

import pytest

# Add the backend directory to the Python path to import contract_assistant
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Configuration is read at import time, so the environment is set up first
_test_dir = tempfile.mkdtemp(prefix="contract_assistant_tests_")
os.environ.setdefault("OPENAI_API_KEY", "sk-test-key")
os.environ["STORAGE_DIR"] = os.path.join(_test_dir, "storage")
os.environ["LOG_DIR"] = os.path.join(_test_dir, "logs")
os.environ["ENABLE_RESPONSE_CACHE"] = "false"
os.environ["DOCUSIGN_CLIENT_ID"] = "test-client-id"
os.environ["DOCUSIGN_CLIENT_SECRET"] = "test-client-secret"

from contract_assistant.core.model_config import SERVER_CONFIG  # noqa: E402


SAMPLE_CONTRACT = """SERVICES AGREEMENT

This Services Agreement is effective as of January 15, 2024 between Acme Corp and Vendor LLC.
Vendor shall deliver the implementation milestones no later than March 1, 2024.
Customer shall pay each invoice within 30 days of receipt. Late payments accrue a late fee of 1.5% per month.
Vendor shall indemnify Customer against all third-party claims.
Either party may terminate this Agreement for convenience upon thirty (30) days prior written notice.
This Agreement shall automatically renew for successive one-year terms unless terminated.
Vendor shall comply with all applicable data protection regulations, including GDPR.
This Agreement expires on 12/31/2025.
"""

SYNTHESIS_ANSWER = """Summary: A services agreement between Acme Corp and Vendor LLC with payment, indemnity and renewal terms.
Risk Score: 62
Risk Explanation: Broad indemnity and automatic renewal increase exposure.
Key Points:
- Payment due within 30 days
- Automatic renewal for one-year terms
- Termination for convenience on 30 days notice
Issues:
- Broad indemnification obligations
- Late fees of 1.5% per month
Recommendations:
- Negotiate a cap on indemnification
- Add an opt-out window before renewal
"""

CHUNK_ANSWER = """SUMMARY: Services agreement with payment and renewal terms.
RISK LEVEL: Medium
KEY POINTS:
- Payment due within 30 days
- Automatic renewal
ISSUES:
- Broad indemnification
IMPORTANT DATES:
- January 15, 2024: agreement becomes effective
"""


@pytest.fixture
def storage_dir(tmp_path, monkeypatch):
    """Isolated storage directory per test"""
    monkeypatch.setitem(SERVER_CONFIG, "storage_dir", str(tmp_path / "storage"))
    return tmp_path / "storage"


@pytest.fixture
def sample_contract():
    return SAMPLE_CONTRACT


@pytest.fixture
def fake_model():
    """
    Replacement for call_openai_api that answers chunk prompts with a
    section analysis and synthesis prompts with the contract-level answer.
    """
    calls = []

    async def _fake_call(system_prompt, user_prompt, purpose="analysis", timeout=None, use_cache=True):
        calls.append({"purpose": purpose, "user_prompt": user_prompt})
        if purpose == "synthesis":
            return SYNTHESIS_ANSWER
        return CHUNK_ANSWER

    _fake_call.calls = calls
    return _fake_call


@pytest.fixture
def synthesis_answer():
    return SYNTHESIS_ANSWER


@pytest.fixture
def chunk_answer():
    return CHUNK_ANSWER
