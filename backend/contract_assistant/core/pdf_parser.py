import asyncio
import re
from typing import Tuple

import fitz  # PyMuPDF
import pytesseract
from pdf2image import convert_from_bytes

from contract_assistant.core.exceptions import PDFExtractionError
from contract_assistant.utils.logger import log_function_call, logger

# Thresholds for deciding whether the embedded text layer is usable
MIN_CHARS_REQUIRED = 200
MIN_NON_WHITESPACE_REQUIRED = 100
MIN_LINES_REQUIRED = 5


def has_meaningful_content(text: str) -> bool:
    """Check whether extracted text looks like a real text layer rather than a scan"""
    char_count = len(text)
    non_whitespace_count = len(re.sub(r'\s', '', text))
    lines_count = len(text.splitlines())

    return (
        char_count > MIN_CHARS_REQUIRED and
        non_whitespace_count > MIN_NON_WHITESPACE_REQUIRED and
        lines_count > MIN_LINES_REQUIRED
    )


@log_function_call
def parse_pdf(data: bytes) -> Tuple[bool, str]:
    """
    Convert a PDF document to text.
    Returns a tuple (is_scanned, text_content).
    """
    text_content, page_count = extract_text_from_pdf_bytes(data)

    logger.info(f"PDF text extraction: {len(text_content)} chars from {page_count} pages")
    if chr(0) in text_content:
        logger.warning("PDF contains null bytes, which may indicate corruption or encoding issues")

    if has_meaningful_content(text_content):
        logger.info("PDF contains extractable text, no OCR needed")
        return False, text_content

    logger.info("PDF appears to be scanned or lacks extractable text, performing OCR")
    ocr_text = perform_full_ocr(data)

    if ocr_text.strip():
        logger.info(f"OCR extracted {len(ocr_text)} characters, {len(ocr_text.splitlines())} lines")
        return True, ocr_text

    # A short but non-empty text layer is still better than nothing
    if text_content.strip():
        logger.warning("OCR produced no text, using the sparse embedded text layer")
        return False, text_content

    logger.error("No text content extracted from PDF")
    raise PDFExtractionError()


async def parse_pdf_async(data: bytes) -> Tuple[bool, str]:
    """Run parse_pdf in a worker thread"""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, parse_pdf, data)


def extract_text_from_pdf_bytes(data: bytes) -> Tuple[str, int]:
    """Extract text directly from a native PDF held in memory"""
    text = ""
    page_stats = []

    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except (fitz.EmptyFileError, fitz.FileDataError):
        logger.error("Empty or invalid PDF data")
        return "", 0
    except Exception as e:
        logger.error(f"Error opening PDF: {str(e)}")
        return "", 0

    try:
        page_count = len(doc)
        logger.info(f"PDF has {page_count} pages")

        metadata = doc.metadata
        if metadata:
            logger.info(f"PDF metadata: Title='{metadata.get('title', 'None')}', Creator='{metadata.get('creator', 'None')}', Producer='{metadata.get('producer', 'None')}', Encryption={doc.is_encrypted}")

        for page_num in range(page_count):
            page = doc.load_page(page_num)
            page_text = page.get_text()
            text += page_text

            page_stats.append({
                "page": page_num + 1,
                "chars": len(page_text),
                "non_whitespace": len(re.sub(r'\s', '', page_text))
            })

        empty_pages = [p["page"] for p in page_stats if p["non_whitespace"] < 20]
        if empty_pages:
            logger.warning(f"Pages with little or no text content: {empty_pages}")

        return text, page_count
    except Exception as e:
        logger.error(f"Error extracting text from PDF: {str(e)}")
        return "", 0
    finally:
        doc.close()


def perform_full_ocr(data: bytes) -> str:
    """OCR every page of a scanned PDF; returns an empty string if nothing could be read"""
    dpi = 300
    try:
        images = convert_from_bytes(data, dpi=dpi)
        logger.info(f"Converted PDF to {len(images)} images at {dpi} DPI")
    except Exception as e:
        logger.error(f"PDF to image conversion failed: {str(e)}")
        return ""

    text = ""
    for i, image in enumerate(images):
        try:
            page_text = pytesseract.image_to_string(image)

            # Retry sparse pages with automatic page segmentation and the LSTM engine
            if len(re.sub(r'\s', '', page_text)) < 20 and i < 5:
                logger.warning(f"OCR returned minimal text for page {i+1}, trying alternate config")
                page_text = pytesseract.image_to_string(image, config="--psm 1 --oem 1")

            if page_text.strip():
                text += f"\n--- PAGE {i+1} ---\n{page_text}\n"
        except Exception as e:
            logger.error(f"OCR failed for page {i+1}: {str(e)}")

    return text
