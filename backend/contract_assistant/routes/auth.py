from fastapi import APIRouter, Depends, HTTPException

from contract_assistant.core.docusign_client import DocuSignClient
from contract_assistant.core.exceptions import ContractAssistantError
from contract_assistant.schemas import AuthUrlResponse, TokenExchangeRequest, TokenResponse
from contract_assistant.utils.logger import logger

router = APIRouter()


def get_docusign_client() -> DocuSignClient:
    return DocuSignClient()


@router.get("/auth/docusign/url", response_model=AuthUrlResponse)
async def get_auth_url(client: DocuSignClient = Depends(get_docusign_client)):
    """
    Build the DocuSign consent URL the web app redirects to
    """
    try:
        return AuthUrlResponse(url=client.build_auth_url())
    except ContractAssistantError as e:
        logger.error(f"Error generating auth URL: {e.message}")
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to generate auth URL", "details": e.message}
        )


@router.post("/auth/docusign/token", response_model=TokenResponse)
async def exchange_token(request: TokenExchangeRequest, client: DocuSignClient = Depends(get_docusign_client)):
    """
    Exchange the OAuth authorization code for an access token
    """
    try:
        token_data = await client.exchange_code(request.code)
        return TokenResponse(**token_data)
    except ContractAssistantError as e:
        logger.error(f"Token exchange error: {e.message}")
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to exchange token", "details": e.details or e.message}
        )
    except Exception as e:
        logger.error(f"Token exchange error: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to exchange token", "details": str(e)}
        )
