from typing import Optional

from fastapi import APIRouter, Depends, File, Header, HTTPException, UploadFile

from contract_assistant.core.docusign_client import DocuSignClient, extract_envelope_id, is_docusign_url
from contract_assistant.core.exceptions import ContractAssistantError, PDFExtractionError
from contract_assistant.core.pdf_parser import parse_pdf_async
from contract_assistant.core.url_store import pending_urls
from contract_assistant.routes.auth import get_docusign_client
from contract_assistant.schemas import (
    ContractUrlRequest, ContractUrlResponse, FetchContractRequest,
    FetchContractResponse, PendingUrlResponse
)
from contract_assistant.utils.logger import logger

router = APIRouter()


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        return None
    return parts[1].strip()


@router.post("/contract/url", response_model=ContractUrlResponse)
async def receive_contract_url(request: ContractUrlRequest):
    """
    Receive a DocuSign URL from the browser extension and keep it for the web app
    """
    logger.info(f"Received contract URL: {request.url}")

    if not request.url:
        raise HTTPException(status_code=400, detail={"error": "URL is required"})
    if not is_docusign_url(request.url):
        raise HTTPException(status_code=400, detail={"error": "Invalid DocuSign URL"})

    await pending_urls.put(request.url)
    return ContractUrlResponse(message="URL received successfully", url=request.url, redirect=True)


@router.get("/contract/url/pending", response_model=PendingUrlResponse)
async def get_pending_url():
    """
    Hand the last URL sent by the extension to the web app, once
    """
    return PendingUrlResponse(url=await pending_urls.pop())


@router.post("/fetch-contract", response_model=FetchContractResponse)
async def fetch_contract(request: FetchContractRequest,
                         authorization: Optional[str] = Header(None),
                         client: DocuSignClient = Depends(get_docusign_client)):
    """
    Download a DocuSign envelope and return its text
    """
    if not request.docusign_url:
        raise HTTPException(status_code=400, detail={"error": "DocuSign URL is required"})

    access_token = _bearer_token(authorization)
    if not access_token:
        raise HTTPException(status_code=401, detail={"error": "No authorization token provided"})

    if not extract_envelope_id(request.docusign_url):
        raise HTTPException(status_code=400, detail={
            "error": "Invalid DocuSign URL",
            "details": "URL must contain either an envelope ID or document details ID."
        })

    try:
        result = await client.fetch_contract_text(access_token, request.docusign_url)
        return FetchContractResponse(**result)
    except ContractAssistantError as e:
        logger.error(f"Error fetching contract: {e.message}")
        status_code = e.status_code if e.status_code in (400, 401, 404) else 500
        raise HTTPException(status_code=status_code, detail={"error": e.message, "details": e.details or e.message})
    except Exception as e:
        logger.error(f"Error fetching contract: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail={"error": "Failed to fetch contract", "details": str(e)})


@router.post("/contract/upload", response_model=FetchContractResponse)
async def upload_contract(file: UploadFile = File(...)):
    """
    Extract the text of a PDF uploaded directly instead of fetched from DocuSign
    """
    if not file.filename or not file.filename.lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail={"error": "Only PDF files are supported"})

    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail={"error": "Uploaded file is empty"})

    try:
        is_scanned, content = await parse_pdf_async(data)
    except PDFExtractionError as e:
        logger.error(f"Error extracting uploaded PDF {file.filename}: {e.message}")
        raise HTTPException(status_code=400, detail={"error": e.message, "details": e.details})
    except Exception as e:
        logger.error(f"Error processing uploaded PDF {file.filename}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail={"error": "Failed to process PDF", "details": str(e)})

    logger.info(f"Extracted {len(content)} characters from uploaded {file.filename}")
    return FetchContractResponse(content=content, is_scanned=is_scanned)
