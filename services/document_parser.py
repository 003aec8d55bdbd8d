# services/document_parser.py
import os
from typing import Protocol

import pdfplumber


class DocumentParser(Protocol):
    def extract_text(self, filepath: str) -> str: ...


class UnsupportedDocumentError(ValueError):
    pass


class FileDocumentParser:
    """Plain text extraction for statements sent as PDF or TXT."""

    def extract_text(self, filepath: str) -> str:
        if not filepath or not os.path.exists(filepath):
            raise FileNotFoundError(f"Document not found: {filepath}")

        ext = os.path.splitext(filepath)[1].lower()

        if ext == ".pdf":
            with pdfplumber.open(filepath) as pdf:
                return "\n".join(page.extract_text() or "" for page in pdf.pages)

        if ext in (".txt", ".csv"):
            with open(filepath, "r", encoding="utf-8") as fh:
                return fh.read()

        raise UnsupportedDocumentError(f"Unsupported document type: {ext}")
