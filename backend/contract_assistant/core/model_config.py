"""
Model and service configuration for the Contract Assistant
"""

import os
from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    try:
        return int(value) if value else default
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    try:
        return float(value) if value else default
    except ValueError:
        return default


# Model selection per purpose
MODEL_CONFIG = {
    # Per-chunk contract section analysis
    "analysis": {
        "model": os.environ.get("OPENAI_MODEL_ANALYSIS", "gpt-4o-mini"),
        "temperature": _env_float("OPENAI_TEMPERATURE", 0.3),
        "max_tokens": _env_int("OPENAI_MAX_TOKENS", 2000)
    },

    # Merging the chunk analyses into one answer
    "synthesis": {
        "model": os.environ.get("OPENAI_MODEL_ANALYSIS", "gpt-4o-mini"),
        "temperature": _env_float("OPENAI_TEMPERATURE", 0.3),
        "max_tokens": _env_int("OPENAI_MAX_TOKENS", 2000)
    },

    # Follow-up questions about an analyzed contract
    "chat": {
        "model": os.environ.get("OPENAI_MODEL_CHAT", "gpt-4o-mini"),
        "temperature": _env_float("OPENAI_CHAT_TEMPERATURE", 0.7),
        "max_tokens": _env_int("OPENAI_MAX_TOKENS", 2000)
    }
}

# Retry and concurrency handling for the model API
RATE_LIMIT_CONFIG = {
    "max_retries": _env_int("OPENAI_MAX_RETRIES", 3),
    "base_delay": 1.0,  # seconds, doubled after every failed attempt
    "request_timeout": _env_float("OPENAI_REQUEST_TIMEOUT", 30.0),
    "max_concurrent_requests": _env_int("OPENAI_MAX_CONCURRENT_REQUESTS", 5)
}

# Contract analysis pipeline
ANALYSIS_CONFIG = {
    "max_chunk_size": _env_int("MAX_CHUNK_SIZE", 2000),  # characters
    "num_analyses": _env_int("NUM_ANALYSES", 3),  # independent passes
    "max_full_chunks": 5,  # above this only first/middle/last chunks are analyzed
    "analysis_timeout": _env_float("ANALYSIS_TIMEOUT", 30.0),  # seconds per model call
    "default_risk_score": 50,
    "consensus_tolerance": 20,  # points between model median and heuristic score
    "heuristic_weight": 0.3,
    "max_key_terms": 5,
    "max_issues": 5,
    "max_recommendations": 5,
    "max_important_dates": 10,
    "use_caching": os.environ.get("ENABLE_RESPONSE_CACHE", "true").lower() != "false"
}

# DocuSign OAuth and eSignature REST API
DOCUSIGN_CONFIG = {
    "auth_server": os.environ.get("DOCUSIGN_AUTH_SERVER", "https://account-d.docusign.com"),
    "base_path": os.environ.get("DOCUSIGN_BASE_PATH", "https://demo.docusign.net/restapi"),
    "client_id": os.environ.get("DOCUSIGN_CLIENT_ID"),
    "client_secret": os.environ.get("DOCUSIGN_CLIENT_SECRET"),
    "redirect_uri": f"{os.environ.get('CLIENT_URL', 'http://localhost:5173')}/auth/callback",
    "scopes": os.environ.get("DOCUSIGN_SCOPES", "signature impersonation").split(),
    "timeout": _env_float("DOCUSIGN_TIMEOUT", 30.0)
}

SERVER_CONFIG = {
    "cors_origins": [
        origin.strip() for origin in os.environ.get(
            "CORS_ORIGINS",
            "https://ai-contract-assistant.vercel.app,http://localhost:5173"
        ).split(",") if origin.strip()
    ],
    "cors_origin_regex": r"chrome-extension://.*",
    "storage_dir": os.environ.get("STORAGE_DIR", os.path.join("contract_assistant", "storage")),
    "log_dir": os.environ.get("LOG_DIR", os.path.join("contract_assistant", "logs")),
    "pending_url_ttl_minutes": _env_int("PENDING_URL_TTL_MINUTES", 10)
}
