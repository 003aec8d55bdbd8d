import asyncio
import logging
import re
from collections import defaultdict
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, List, Optional

from core.amount import from_milliunits, to_major_units, to_milliunits
from executors.base import BaseExecutor
from models.agent_io import AgentRequest, AgentResult, ExecutionContext
from models.transaction import ExtractedTransaction, LedgerAccount
from services.document_parser import DocumentParser, FileDocumentParser
from services.extraction_cache import ExtractionCache
from services.ledger import LedgerClient
from services.statement_extractor import StatementExtractionError, StatementExtractor
from services.utils import deep_serialize

logger = logging.getLogger("budget_agent")

CompletePrompt = Callable[[str], Awaitable[str]]

RESEND_DOCUMENT = (
    "📄 I don't have any recent statement transactions waiting for you "
    "(they expire after 30 minutes). Please send the statement again."
)


def _days(value: Any, default: int = 30) -> int:
    """Leading number of a loosely typed day count ("7", 14, "7 days"); default otherwise."""
    match = re.match(r"\s*(\d+)", str(value)) if value is not None else None
    days = int(match.group(1)) if match else 0
    return days if days > 0 else default


def _money(amount: Decimal) -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


class BudgetExecutor(BaseExecutor):
    """
    Budget agent: balances, transactions, spending, and the statement
    extract -> confirm -> commit pipeline.
    """

    name = "budget"
    capabilities = [
        "view_balance",
        "create_transaction",
        "categorize_transactions",
        "view_transactions",
        "analyze_spending",
        "import_statement",
        "commit_statement",
        "general_query",
    ]

    def __init__(
        self,
        ledger: LedgerClient,
        complete_prompt: CompletePrompt,
        extraction_cache: ExtractionCache,
        document_parser: Optional[DocumentParser] = None,
    ):
        self.ledger = ledger
        self.complete_prompt = complete_prompt
        self.extraction_cache = extraction_cache
        self.document_parser = document_parser or FileDocumentParser()
        self.extractor = StatementExtractor(complete_prompt)

    async def handle(self, request: AgentRequest, context: ExecutionContext) -> AgentResult:
        handlers = {
            "view_balance": self.view_balance,
            "create_transaction": self.create_transaction,
            "categorize_transactions": self.categorize_transactions,
            "view_transactions": self.view_transactions,
            "analyze_spending": self.analyze_spending,
            "import_statement": self.import_statement,
            "commit_statement": self.commit_statement,
        }
        logger.info(f"[BUDGET] user_id={context.user_id}, action={request.action}")
        handler = handlers.get(request.action)
        if handler is None:
            return await self.general_query(request, context)
        return await handler(request, context)

    # -----------------------------
    # Read-only
    # -----------------------------
    async def view_balance(self, request: AgentRequest, context: ExecutionContext) -> AgentResult:
        accounts = await self.ledger.get_accounts()
        if not accounts:
            return AgentResult(message="💰 No accounts found.")

        lines = ["💰 *Account Balances*", ""]
        for acc in accounts:
            balance = from_milliunits(acc.balance)
            emoji = "✅" if balance >= 0 else "⚠️"
            lines.append(f"{emoji} *{acc.name}*: {_money(balance)} ({acc.type})")
        total = from_milliunits(sum(acc.balance for acc in accounts))
        lines += ["", f"📊 *Total Balance:* {_money(total)}"]
        return AgentResult(message="\n".join(lines), data={"accounts": deep_serialize(accounts)})

    async def view_transactions(self, request: AgentRequest, context: ExecutionContext) -> AgentResult:
        days = _days(request.params.get("days"))
        account = await self._find_account(request.params.get("account"))
        transactions = await self.ledger.get_transactions(account.id if account else None, days)
        if not transactions:
            return AgentResult(message="📊 No recent transactions found.")

        recent = sorted(transactions, key=lambda tx: tx.date, reverse=True)[:10]
        lines = [f"📊 *Recent Transactions* (Last {len(recent)})", ""]
        for i, tx in enumerate(recent, start=1):
            amount = from_milliunits(tx.amount)
            emoji = "🔴" if amount < 0 else "🟢"
            lines.append(f"{i}. {emoji} *{tx.payee_name or 'N/A'}* {_money(amount)} | {tx.date.isoformat()}")
            lines.append(f"   📁 {tx.category_name or 'Uncategorized'}")
        lines += ["", f"💡 Total: {len(transactions)} transactions in last {days} days"]
        return AgentResult(message="\n".join(lines))

    async def analyze_spending(self, request: AgentRequest, context: ExecutionContext) -> AgentResult:
        days = _days(request.params.get("days"))
        transactions = await self.ledger.get_transactions(None, days)
        outflows = [tx for tx in transactions if tx.amount < 0]
        if not outflows:
            return AgentResult(message=f"📊 No spending in the last {days} days.")

        by_category: Dict[str, Decimal] = defaultdict(Decimal)
        for tx in outflows:
            by_category[tx.category_name or "Uncategorized"] += abs(from_milliunits(tx.amount))
        total = sum(by_category.values(), Decimal(0))
        top = sorted(by_category.items(), key=lambda item: item[1], reverse=True)[:5]

        lines = [f"📊 *Spending Analysis* (last {days} days)", "", f"💰 Total Spent: {_money(total)}", "", "📁 *Top Categories:*"]
        for i, (category, amount) in enumerate(top, start=1):
            percent = (amount / total * 100).quantize(Decimal("0.1"))
            lines.append(f"{i}. {category}: {_money(amount)} ({percent}%)")
        return AgentResult(message="\n".join(lines), data={"by_category": deep_serialize(dict(by_category))})

    async def categorize_transactions(self, request: AgentRequest, context: ExecutionContext) -> AgentResult:
        transactions = await self.ledger.get_transactions(None, 90)
        uncategorized = [tx for tx in transactions if not tx.approved or not tx.category_name]
        if not uncategorized:
            return AgentResult(message="✅ All transactions are categorized!")

        categories = await self.ledger.get_categories()
        listing = "\n".join(
            f"{i}. {tx.payee_name} - {_money(from_milliunits(tx.amount))} - {tx.date.isoformat()}"
            for i, tx in enumerate(uncategorized[:10], start=1)
        )
        suggestions = await self.complete_prompt(
            "You are helping categorize budget transactions.\n\n"
            f"Uncategorized transactions:\n{listing}\n\n"
            f"Available categories: {', '.join(categories)}\n\n"
            "Suggest a category for each transaction. Respond with a numbered list of category names only."
        )
        return AgentResult(
            message=(
                "📋 *Transactions Needing Categorization*\n\n"
                f"Found {len(uncategorized)} uncategorized transactions.\n\n"
                f"📝 *Suggestions:*\n{suggestions}\n\n"
                "💡 Confirm or adjust these categories to apply them."
            )
        )

    async def general_query(self, request: AgentRequest, context: ExecutionContext) -> AgentResult:
        reply = await self.complete_prompt(
            "You are a friendly budget assistant.\n\n"
            f'User question: "{request.original_message}"\n\n'
            "Answer helpfully in 2-3 sentences. If the question needs account data, say which."
        )
        return AgentResult(message=reply)

    # -----------------------------
    # Side-effecting
    # -----------------------------
    async def create_transaction(self, request: AgentRequest, context: ExecutionContext) -> AgentResult:
        params = request.params
        amount = to_major_units(params.get("amount"), params.get("amount_unit"))
        payee = params.get("payee") or "Unknown payee"
        if amount == 0:
            return AgentResult(message="❓ How much was it? I need an amount to record the transaction.")

        if context.approval_required and not context.get("approved"):
            return AgentResult(
                message=(
                    "⚠️ *Approval needed*\n\n"
                    f"Record {_money(amount)} at {payee}? Reply to confirm before I create it."
                ),
                data={"pending_transaction": deep_serialize({"amount": amount, "payee": payee})},
            )

        account = await self._find_account(params.get("account"))
        if account is None:
            return AgentResult(message="❓ Which account should I use? I couldn't find one.")

        tx = await self.ledger.create_transaction(
            account_id=account.id,
            amount=to_milliunits(amount),
            payee=payee,
            category_name=params.get("category_name") or params.get("category"),
            memo=params.get("memo") or "",
        )
        return AgentResult(
            message=(
                "✅ *Transaction Created*\n\n"
                f"💵 Amount: {_money(from_milliunits(tx.amount))}\n"
                f"🏪 Payee: {tx.payee_name}\n"
                f"📁 Category: {tx.category_name or 'Uncategorized'}\n"
                f"📅 Date: {tx.date.isoformat()}"
            ),
            data={"transaction": deep_serialize(tx)},
        )

    # -----------------------------
    # Statement pipeline
    # -----------------------------
    async def import_statement(self, request: AgentRequest, context: ExecutionContext) -> AgentResult:
        """Extract turn: parse the document, cache the candidates, ask where they go."""
        statement_text = context.get("document_text")
        if not statement_text and context.get("document_path"):
            statement_text = await asyncio.to_thread(self.document_parser.extract_text, context.get("document_path"))
        if not statement_text:
            return AgentResult(message="📄 Please send the bank statement (PDF or text) you want me to import.")

        categories = await self.ledger.get_categories()
        try:
            extraction = await self.extractor.extract(statement_text, categories)
        except StatementExtractionError as e:
            return AgentResult(message=f"❌ {e}. Please send the statement again.")

        records = extraction.transactions
        skipped_note = (
            f"\n\n⚠️ Skipped {extraction.skipped} row(s) I couldn't read."
            if extraction.skipped
            else ""
        )
        if not records:
            return AgentResult(
                message=f"📄 I couldn't find any transactions in that document. Please send it again.{skipped_note}",
                data={"extracted": 0, "skipped": extraction.skipped},
            )

        self.extraction_cache.put(context.user_id, records, budget_name=request.params.get("budget_name"))

        accounts = await self.ledger.get_accounts()
        account_names = ", ".join(acc.name for acc in accounts) or "none found"
        return AgentResult(
            message=(
                f"📄 *Found {len(records)} transactions*\n\n"
                f"{self._enumerate(records)}{skipped_note}\n\n"
                f"❓ Which account should I add them to? ({account_names})"
            ),
            data={"extracted": len(records), "skipped": extraction.skipped},
        )

    async def commit_statement(self, request: AgentRequest, context: ExecutionContext) -> AgentResult:
        """Commit turn: only a fresh cached batch is ever submitted."""
        batch = self.extraction_cache.get(context.user_id)
        if batch is None:
            return AgentResult(message=RESEND_DOCUMENT, data={"committed": 0})

        account = await self._find_account(request.params.get("account"), use_default=False)
        if account is None:
            accounts = await self.ledger.get_accounts()
            return AgentResult(
                message=(
                    f"❓ Which account should I add the {len(batch.payload)} transactions to? "
                    f"({', '.join(acc.name for acc in accounts)})"
                )
            )

        created, errors = 0, []
        for index, record in enumerate(batch.payload, start=1):
            try:
                await self.ledger.create_transaction(
                    account_id=account.id,
                    amount=to_milliunits(record.amount),
                    payee=record.payee,
                    category_name=record.category_name,
                    date=record.date,
                    memo=record.memo,
                )
                created += 1
            except Exception as e:
                logger.warning(f"[COMMIT_RECORD_FAILED] user_id={context.user_id}, index={index}, error={e}")
                errors.append({"index": index, "payee": record.payee, "error": str(e)})

        self.extraction_cache.discard(context.user_id)
        logger.info(
            f"[COMMIT] user_id={context.user_id}, created={created}, failed={len(errors)}, account={account.name}"
        )

        message = f"✅ Created {created}/{len(batch.payload)} transactions in *{account.name}*."
        if errors:
            failed = "\n".join(f"• #{e['index']} {e['payee']}: {e['error']}" for e in errors)
            message += f"\n\n❌ {len(errors)} failed:\n{failed}"
        return AgentResult(
            message=message,
            data={"committed": created, "failed": len(errors), "errors": errors},
        )

    # -----------------------------
    # Helpers
    # -----------------------------
    async def _find_account(self, name: Any, use_default: bool = True) -> Optional[LedgerAccount]:
        accounts = await self.ledger.get_accounts()
        if name:
            key = str(name).strip().lower()
            for acc in accounts:
                if key in (acc.id.lower(), acc.name.lower()):
                    return acc
            for acc in accounts:
                if key in acc.name.lower():
                    return acc
            return None
        if use_default and accounts:
            return accounts[0]
        return None

    @staticmethod
    def _enumerate(records: List[ExtractedTransaction]) -> str:
        return "\n".join(
            f"{i}. {record.date} | {record.payee} | {_money(record.amount)}"
            + (f" | 📁 {record.category_name}" if record.category_name else "")
            for i, record in enumerate(records, start=1)
        )
