# services/statement_extractor.py
import json
import logging
from typing import Awaitable, Callable, Sequence

from pydantic import ValidationError

from models.transaction import ExtractedTransaction, StatementExtraction
from services.intent_parser import load_json_object

logger = logging.getLogger("statement_extractor")

CompletePrompt = Callable[[str], Awaitable[str]]


class StatementExtractionError(RuntimeError):
    pass


def build_extraction_prompt(statement_text: str, categories: Sequence[str]) -> str:
    return (
        "Analyze the following bank statement text and extract ALL transactions.\n\n"
        "IMPORTANT:\n"
        "- Charges / debits are NEGATIVE amounts (e.g. -480.00)\n"
        "- Deposits / credits are POSITIVE amounts (e.g. 1.50)\n"
        "- Dates must be YYYY-MM-DD\n"
        "- Keep the full payee / description\n\n"
        f"Available categories: {', '.join(categories)}\n\n"
        "Respond ONLY with valid JSON (no markdown, no explanations):\n"
        '{"transactions": [{"date": "YYYY-MM-DD", "amount": -480.00, "payee": "Store", '
        '"category_name": "Suggested category", "memo": ""}]}\n\n'
        f"STATEMENT TEXT:\n{statement_text}"
    )


class StatementExtractor:
    """Document text -> ordered candidate records, via the completion collaborator."""

    def __init__(self, complete_prompt: CompletePrompt):
        self.complete_prompt = complete_prompt

    async def extract(self, statement_text: str, categories: Sequence[str]) -> StatementExtraction:
        if not statement_text or not statement_text.strip():
            raise StatementExtractionError("The document contains no readable text")

        text = await self.complete_prompt(build_extraction_prompt(statement_text, categories))

        try:
            rows = load_json_object(text).get("transactions") or []
            if not isinstance(rows, list):
                raise ValueError("\"transactions\" is not a list")
        except (ValueError, json.JSONDecodeError) as e:
            logger.warning(f"[EXTRACTION_PARSE_FAILED] {e}")
            raise StatementExtractionError("Could not read transactions from the document") from e

        # A bad row is dropped and counted; it never reaches the ledger.
        records, skipped = [], 0
        for index, row in enumerate(rows, start=1):
            try:
                records.append(ExtractedTransaction.model_validate(row))
            except ValidationError as e:
                skipped += 1
                logger.warning(f"[EXTRACTION_ROW_SKIPPED] index={index}, errors={e.error_count()}")

        logger.info(f"[EXTRACTED] records={len(records)}, skipped={skipped}")
        return StatementExtraction(transactions=records, skipped=skipped)
