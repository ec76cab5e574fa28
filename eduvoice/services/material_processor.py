"""Content extraction for uploaded materials (PyMuPDF for PDFs)."""

import re

import pymupdf  # PyMuPDF

from eduvoice.db.models import MaterialType

# Control characters that Postgres TEXT/VARCHAR cannot store (NUL, etc.)
_ILLEGAL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")

_YOUTUBE_ID = re.compile(
    r"(?:youtube\.com/(?:watch\?(?:.*&)?v=|embed/|shorts/)|youtu\.be/)([A-Za-z0-9_-]{6,})"
)

VIDEO_PLACEHOLDER = "Video file: {filename}\nTranscript extraction is not available for uploaded videos."
YOUTUBE_PLACEHOLDER = "YouTube video: {url}\nVideo ID: {video_id}\nTranscript extraction is not available."


class UnsupportedMaterialError(ValueError):
    """The upload's MIME type maps to no material type."""


class MaterialProcessor:
    """Turns raw uploads into material type + text content."""

    @staticmethod
    def classify(mime_type: str | None) -> MaterialType:
        """Map a MIME type to a material type."""
        mime_type = (mime_type or "").lower()
        if mime_type.startswith("text/"):
            return MaterialType.TEXT
        if mime_type == "application/pdf":
            return MaterialType.PDF
        if mime_type.startswith("image/"):
            return MaterialType.IMAGE
        if mime_type.startswith("video/"):
            return MaterialType.VIDEO
        raise UnsupportedMaterialError(f"Unsupported file type: {mime_type or 'unknown'}")

    @staticmethod
    def decode_text(data: bytes) -> str:
        """Decode a text upload; invalid UTF-8 sequences are replaced rather than rejected."""
        text = data.decode("utf-8-sig", errors="replace")
        return _ILLEGAL_CHARS.sub("", text)

    @staticmethod
    def extract_pdf(pdf_bytes: bytes) -> dict:
        """
        Extract text from PDF bytes.

        Returns:
            Dictionary with:
                - text: Extracted text from all pages
                - page_count: Number of pages in the PDF
                - status: 'success' or 'failed'
                - error: Error message if status is 'failed' (optional)
        """
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:
                text_pages = [page.get_text() for page in doc]
                page_count = len(doc)
        except Exception as e:
            return {"text": "", "page_count": 0, "status": "failed", "error": str(e)}

        # Combine all pages with double newline separator
        full_text = _ILLEGAL_CHARS.sub("", "\n\n".join(text_pages))
        return {"text": full_text, "page_count": page_count, "status": "success"}

    @staticmethod
    def youtube_video_id(url: str) -> str | None:
        """Extract the video id from a YouTube watch/short/embed URL."""
        match = _YOUTUBE_ID.search(url)
        return match.group(1) if match else None


# Singleton instance
material_processor = MaterialProcessor()
