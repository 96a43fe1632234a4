"""
DocuSign OAuth and eSignature REST client

Covers the authorization-code flow, default account lookup and download of
the combined envelope PDF.
"""

import re
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode, urlparse

import httpx

from contract_assistant.core.exceptions import (
    ConfigurationError, DocuSignAuthError, DocuSignError,
    DocuSignNotFoundError, InvalidDocuSignUrlError
)
from contract_assistant.core.model_config import DOCUSIGN_CONFIG
from contract_assistant.core.pdf_parser import parse_pdf_async
from contract_assistant.utils.logger import logger

DOCUSIGN_HOSTS = ("docusign.com", "docusign.net")
ENVELOPE_PATTERN = re.compile(r"envelopes/([a-zA-Z0-9-]+)")
DETAILS_PATTERN = re.compile(r"documents/details/([a-zA-Z0-9-]+)")


def is_docusign_url(url: str) -> bool:
    """Check that the URL points at a DocuSign host"""
    if not url:
        return False
    try:
        hostname = urlparse(url).hostname or ""
    except ValueError:
        return False
    if hostname:
        return any(host in hostname for host in DOCUSIGN_HOSTS)
    # Scheme-less URLs only carry the host in the path
    return any(host in url for host in DOCUSIGN_HOSTS)


def extract_envelope_id(url: str) -> Optional[str]:
    """Pull the envelope ID out of an envelope or document-details URL"""
    if not url:
        return None
    match = ENVELOPE_PATTERN.search(url) or DETAILS_PATTERN.search(url)
    return match.group(1) if match else None


def validate_contract_url(url: str) -> bool:
    """A contract URL must be on DocuSign and reference an envelope"""
    return is_docusign_url(url) and ("envelopes/" in url or "documents/details/" in url)


class DocuSignClient:
    """Thin async wrapper over the DocuSign OAuth and REST endpoints"""

    def __init__(self, config: Optional[Dict[str, Any]] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config or DOCUSIGN_CONFIG
        self.auth_server = self.config["auth_server"].rstrip("/")
        self.base_path = self.config["base_path"].rstrip("/")
        self.timeout = self.config.get("timeout", 30.0)
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def build_auth_url(self) -> str:
        """Build the consent URL the user is redirected to"""
        client_id = self.config.get("client_id")
        if not client_id:
            raise ConfigurationError("DocuSign Client ID not configured")

        params = {
            "response_type": "code",
            "scope": " ".join(self.config.get("scopes", [])),
            "client_id": client_id,
            "redirect_uri": self.config["redirect_uri"],
            "prompt": "login"
        }
        auth_url = f"{self.auth_server}/oauth/auth?{urlencode(params)}"
        logger.info(f"Generated auth URL: {auth_url}")
        return auth_url

    async def exchange_code(self, code: str) -> Dict[str, Any]:
        """Exchange an authorization code for an access token and attach the default account ID"""
        client_id = self.config.get("client_id")
        client_secret = self.config.get("client_secret")
        if not client_id or not client_secret:
            raise ConfigurationError("DocuSign credentials not configured")

        logger.info("Exchanging code for token...")
        async with self._client() as client:
            response = await client.post(
                f"{self.auth_server}/oauth/token",
                data={
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": self.config["redirect_uri"]
                },
                auth=(client_id, client_secret)
            )
            self._raise_for_status(response, "Failed to exchange token")
            token_data = response.json()

        account = await self.get_default_account(token_data["access_token"])
        logger.info("Token exchange successful")
        return {**token_data, "account_id": account["account_id"]}

    async def get_default_account(self, access_token: str) -> Dict[str, Any]:
        """Return the user's default account, or the first one listed"""
        async with self._client() as client:
            response = await client.get(
                f"{self.auth_server}/oauth/userinfo",
                headers={"Authorization": f"Bearer {access_token}"}
            )
            self._raise_for_status(response, "Failed to fetch DocuSign user info")
            accounts = response.json().get("accounts", [])

        default_account = next((acc for acc in accounts if acc.get("is_default")), None)
        if default_account is None and accounts:
            default_account = accounts[0]
        if not default_account:
            raise DocuSignError("No DocuSign account found")

        logger.info(f"Using DocuSign Account ID: {default_account.get('account_id')}")
        return default_account

    async def list_documents(self, access_token: str, account_id: str, envelope_id: str) -> List[Dict[str, Any]]:
        url = f"{self.base_path}/v2.1/accounts/{account_id}/envelopes/{envelope_id}/documents"
        logger.info(f"Fetching document list from: {url}")

        async with self._client() as client:
            response = await client.get(
                url,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Content-Type": "application/json"
                }
            )
            self._raise_for_status(response, "Failed to fetch document list")
            documents = response.json().get("envelopeDocuments") or []

        if not documents:
            raise DocuSignError("No documents found in the envelope")

        logger.info(f"Found {len(documents)} documents in envelope")
        return documents

    async def download_combined_document(self, access_token: str, account_id: str, envelope_id: str) -> bytes:
        url = f"{self.base_path}/v2.1/accounts/{account_id}/envelopes/{envelope_id}/documents/combined"
        logger.info(f"Fetching combined document from: {url}")

        async with self._client() as client:
            response = await client.get(
                url,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/pdf"
                }
            )
            self._raise_for_status(response, "Failed to fetch contract from DocuSign API")

        logger.info(f"Received PDF document, size: {len(response.content)} bytes")
        return response.content

    async def fetch_contract_text(self, access_token: str, docusign_url: str) -> Dict[str, Any]:
        """
        Full retrieval sequence: resolve the envelope, find the account,
        check the envelope has documents, download the combined PDF and convert it to text.
        """
        envelope_id = extract_envelope_id(docusign_url)
        logger.info(f"Extracted envelope ID: {envelope_id}")
        if not envelope_id:
            raise InvalidDocuSignUrlError(
                "Invalid DocuSign URL. URL must contain either an envelope ID or document details ID."
            )

        account = await self.get_default_account(access_token)
        account_id = account["account_id"]

        documents = await self.list_documents(access_token, account_id, envelope_id)
        pdf_bytes = await self.download_combined_document(access_token, account_id, envelope_id)

        is_scanned, content = await parse_pdf_async(pdf_bytes)
        logger.info(f"Successfully extracted text from PDF, {len(content)} characters")

        return {
            "content": content,
            "envelope_id": envelope_id,
            "account_id": account_id,
            "document_count": len(documents),
            "is_scanned": is_scanned
        }

    @staticmethod
    def _raise_for_status(response: httpx.Response, message: str):
        if response.is_success:
            return

        try:
            details = response.json()
        except ValueError:
            details = response.text

        logger.error(f"DocuSign API error ({response.status_code}): {details}")

        if response.status_code == 401:
            raise DocuSignAuthError(details=details)
        if response.status_code == 404:
            raise DocuSignNotFoundError(details=details)

        upstream_message = details.get("message") if isinstance(details, dict) else None
        raise DocuSignError(
            f"{message}: {upstream_message}" if upstream_message else message,
            status_code=response.status_code,
            details=details
        )
