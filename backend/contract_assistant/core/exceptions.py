from typing import Any, Optional


class ContractAssistantError(Exception):
    """Base error for the contract assistant"""
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None, details: Any = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details


class ConfigurationError(ContractAssistantError):
    """Required credentials or settings are missing"""


class DocuSignError(ContractAssistantError):
    """DocuSign API call failed"""


class DocuSignAuthError(DocuSignError):
    status_code = 401

    def __init__(self, message: str = "DocuSign authentication failed. Please sign in again.", details: Any = None):
        super().__init__(message, details=details)


class DocuSignNotFoundError(DocuSignError):
    status_code = 404

    def __init__(self, message: str = "Contract not found. Please check the URL and try again.", details: Any = None):
        super().__init__(message, details=details)


class InvalidDocuSignUrlError(ContractAssistantError):
    status_code = 400


class PDFExtractionError(ContractAssistantError):
    """No text could be recovered from a PDF"""

    def __init__(self, message: str = "Failed to extract text from the PDF", details: Any = None):
        super().__init__(message, details=details)


class LLMError(ContractAssistantError):
    """The language model returned nothing usable"""
