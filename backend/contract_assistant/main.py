from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import os
from dotenv import load_dotenv
from contract_assistant.core.gpt_cache import gpt_cache
from contract_assistant.core.model_config import SERVER_CONFIG
from contract_assistant.routes import analysis, auth, calendar, chat, contract
from contract_assistant.schemas import HealthResponse
from contract_assistant.utils.logger import logger

# Load environment variables from .env file
load_dotenv()

# Verify OpenAI API key is loaded
api_key = os.environ.get("OPENAI_API_KEY")
if api_key:
    logger.info(f"OpenAI API key loaded successfully (starts with: {api_key[:7]}...)")
else:
    logger.warning("OpenAI API key not found in environment variables")

app = FastAPI(
    title="Contract Assistant",
    description="DocuSign contract retrieval, AI risk analysis and contract chat",
    version="1.0.0"
)

# Set up CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=SERVER_CONFIG["cors_origins"],
    allow_origin_regex=SERVER_CONFIG["cors_origin_regex"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=86400,
)


@app.exception_handler(StarletteHTTPException)
async def error_body_handler(request: Request, exc: StarletteHTTPException):
    """Send dict details as the top-level body: {"error": ..., "details": ...}"""
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content=exc.detail, headers=getattr(exc, "headers", None))
    return await http_exception_handler(request, exc)


# Include routers
app.include_router(auth.router, prefix="/api", tags=["Auth"])
app.include_router(contract.router, prefix="/api", tags=["Contract"])
app.include_router(analysis.router, prefix="/api", tags=["Analysis"])
app.include_router(chat.router, prefix="/api", tags=["Chat"])
app.include_router(calendar.router, prefix="/api", tags=["Calendar"])


@app.get("/")
async def root():
    return {"message": "Welcome to the Contract Assistant API"}


@app.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(status="ok", cache=gpt_cache.stats())
