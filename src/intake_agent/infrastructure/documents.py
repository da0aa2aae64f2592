"""Document ingestion: fetch an uploaded file and pull plain text out of it."""

from __future__ import annotations

import io
from typing import Literal, NamedTuple, Protocol, runtime_checkable
from urllib.parse import unquote, urlparse

import docx
import httpx
import structlog
from PyPDF2 import PdfReader

logger = structlog.get_logger(__name__)

DocumentKind = Literal["pdf", "docx", "text"]

NO_PDF_TEXT = "No text content found in PDF."
NO_DOCUMENT_TEXT = "No text content found in document."
UNSUPPORTED_FORMAT_TEXT = "Unsupported document format. Please upload PDF, DOCX, or TXT files."

MAX_PDF_PAGES = 100


class FetchError(Exception):
    """The document could not be downloaded (unreachable or non-success status)."""


class UnsupportedFormatError(Exception):
    """The content is neither a known document type nor decodable plain text."""


class FetchedDocument(NamedTuple):
    content: bytes
    content_type: str


@runtime_checkable
class DocumentFetcher(Protocol):
    async def fetch(self, url: str) -> FetchedDocument:
        """Return raw bytes and the content-type hint. Raise FetchError on failure."""
        ...


class HttpDocumentFetcher:
    """httpx-backed fetcher. Owns its AsyncClient; call aclose() at shutdown."""

    def __init__(self, timeout: float = 30.0, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport, follow_redirects=True)

    async def fetch(self, url: str) -> FetchedDocument:
        try:
            r = await self._client.get(url)
        except httpx.RequestError as e:
            raise FetchError(f"Failed to fetch document: {e}") from e
        if not r.is_success:
            raise FetchError(f"Failed to fetch document: {r.status_code} {r.reason_phrase}")
        return FetchedDocument(r.content, r.headers.get("content-type", ""))

    async def aclose(self) -> None:
        await self._client.aclose()


def filename_from_url(url: str) -> str:
    path = unquote(urlparse(url).path)
    name = path.rsplit("/", 1)[-1]
    return name or "document"


def classify_document(content_type: str, url: str) -> DocumentKind:
    """Content-type header first, filename extension as fallback, plain text otherwise."""
    ct = (content_type or "").lower()
    if "pdf" in ct:
        return "pdf"
    if "wordprocessingml" in ct or "msword" in ct:
        return "docx"
    name = filename_from_url(url).lower()
    if name.endswith(".pdf"):
        return "pdf"
    if name.endswith((".docx", ".doc")):
        return "docx"
    return "text"


def extract_pdf_text(data: bytes) -> str:
    # PyPDF2 surfaces broken cross-references as arbitrary errors (AttributeError,
    # KeyError, ...), not only PdfReadError.
    try:
        reader = PdfReader(io.BytesIO(data))
        pages = reader.pages[:MAX_PDF_PAGES]
        text = "\n".join((page.extract_text() or "") for page in pages)
    except Exception as e:
        raise UnsupportedFormatError(f"Could not read PDF: {e}") from e
    return text.strip() or NO_PDF_TEXT


def extract_docx_text(data: bytes) -> str:
    try:
        document = docx.Document(io.BytesIO(data))
        text = "\n".join(p.text for p in document.paragraphs)
    except Exception as e:
        raise UnsupportedFormatError(f"Could not read document: {e}") from e
    return text.strip() or NO_DOCUMENT_TEXT


def decode_plain_text(data: bytes) -> str:
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise UnsupportedFormatError("Content is not decodable as UTF-8 text") from e
    text = text.strip()
    if not text:
        raise UnsupportedFormatError("Document has no readable text")
    return text


class DocumentIngestor:
    """Turns a document URL into plain text for the extractor."""

    def __init__(self, fetcher: DocumentFetcher) -> None:
        self._fetcher = fetcher

    async def extract_text(self, url: str) -> str:
        """Raises FetchError or UnsupportedFormatError."""
        fetched = await self._fetcher.fetch(url)
        kind = classify_document(fetched.content_type, url)
        logger.info("document_fetched", url=url, kind=kind, size=len(fetched.content))
        if kind == "pdf":
            return extract_pdf_text(fetched.content)
        if kind == "docx":
            return extract_docx_text(fetched.content)
        return decode_plain_text(fetched.content)

    async def extract_text_or_placeholder(self, url: str) -> tuple[str, bool]:
        """(text, ok). Failures degrade to a placeholder the assistant can talk about."""
        try:
            return await self.extract_text(url), True
        except FetchError as e:
            logger.warning("document_fetch_failed", url=url, error=str(e))
            return f"Failed to read document: {e}", False
        except UnsupportedFormatError as e:
            logger.warning("document_unsupported", url=url, error=str(e))
            return UNSUPPORTED_FORMAT_TEXT, False
