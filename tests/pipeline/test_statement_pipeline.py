import asyncio
import datetime as dt
import json

import pytest

from executors.budget import RESEND_DOCUMENT, BudgetExecutor
from models.agent_io import AgentRequest, ExecutionContext
from services.extraction_cache import ExtractionCache
from services.ledger import LedgerError
from services.statement_extractor import StatementExtractionError, StatementExtractor
from tests.support import StubCompletion, make_ledger

STATEMENT = """
03ABR  WONG SUPERMERCADO     -120.40
05ABR  TRANSFERENCIA RECIBIDA +500.00
"""

EXTRACTED = {
    "transactions": [
        {"date": "2025-04-03", "amount": -120.40, "payee": "Wong Supermercado", "category_name": "Groceries"},
        {"date": "2025-04-05", "amount": 500.00, "payee": "Transferencia recibida", "category_name": "Income"},
    ]
}


@pytest.fixture
def ledger():
    return make_ledger()


@pytest.fixture
def extraction_cache(clock):
    return ExtractionCache(clock=clock)


def make_budget(ledger, extraction_cache, completion):
    return BudgetExecutor(ledger=ledger, complete_prompt=completion, extraction_cache=extraction_cache)


def run(executor, action, user_id="u1", params=None, **extra):
    return asyncio.run(
        executor.handle(
            AgentRequest(action=action, params=params or {}, original_message=""),
            ExecutionContext(user_id=user_id, **extra),
        )
    )


# ---------------------------------------------------------------------
# Extract turn
# ---------------------------------------------------------------------

def test_extract_turn_caches_and_asks_for_account(ledger, extraction_cache):
    budget = make_budget(ledger, extraction_cache, StubCompletion("```json\n" + json.dumps(EXTRACTED) + "\n```"))

    result = run(budget, "import_statement", document_text=STATEMENT)

    assert result.data == {"extracted": 2, "skipped": 0}
    assert "Wong Supermercado" in result.message
    assert "Which account" in result.message
    assert [r.payee for r in extraction_cache.get("u1").payload] == ["Wong Supermercado", "Transferencia recibida"]
    # Nothing committed yet
    assert ledger.transactions == []


def test_extract_turn_without_document_asks_for_one(ledger, extraction_cache):
    budget = make_budget(ledger, extraction_cache, StubCompletion(EXTRACTED))

    result = run(budget, "import_statement")

    assert "send the bank statement" in result.message
    assert extraction_cache.get("u1") is None


def test_unreadable_extraction_caches_nothing(ledger, extraction_cache):
    budget = make_budget(ledger, extraction_cache, StubCompletion("sorry, I cannot read this"))

    result = run(budget, "import_statement", document_text=STATEMENT)

    assert "send the statement again" in result.message
    assert extraction_cache.get("u1") is None


def test_extractor_rejects_empty_text():
    extractor = StatementExtractor(StubCompletion(EXTRACTED))

    with pytest.raises(StatementExtractionError):
        asyncio.run(extractor.extract("   ", ["Groceries"]))


# ---------------------------------------------------------------------
# Commit turn
# ---------------------------------------------------------------------

def test_commit_submits_every_cached_record(ledger, extraction_cache):
    budget = make_budget(ledger, extraction_cache, StubCompletion(EXTRACTED))
    run(budget, "import_statement", document_text=STATEMENT)

    result = run(budget, "commit_statement", params={"account": "checking"})

    assert result.data["committed"] == 2
    assert result.data["failed"] == 0
    assert [tx.amount for tx in ledger.transactions] == [-120_400, 500_000]
    assert all(tx.account_id == "checking" for tx in ledger.transactions)
    assert extraction_cache.get("u1") is None


def test_commit_without_cache_refuses(ledger, extraction_cache):
    budget = make_budget(ledger, extraction_cache, StubCompletion(EXTRACTED))

    result = run(budget, "commit_statement", params={"account": "checking"})

    assert result.message == RESEND_DOCUMENT
    assert ledger.transactions == []


def test_commit_after_ttl_refuses(ledger, extraction_cache, clock):
    budget = make_budget(ledger, extraction_cache, StubCompletion(EXTRACTED))
    run(budget, "import_statement", document_text=STATEMENT)

    clock.advance(minutes=31)
    result = run(budget, "commit_statement", params={"account": "checking"})

    assert result.message == RESEND_DOCUMENT
    assert ledger.transactions == []


def test_commit_without_account_keeps_batch(ledger, extraction_cache):
    budget = make_budget(ledger, extraction_cache, StubCompletion(EXTRACTED))
    run(budget, "import_statement", document_text=STATEMENT)

    result = run(budget, "commit_statement")

    assert "Which account" in result.message
    assert extraction_cache.get("u1") is not None
    assert ledger.transactions == []


def test_commit_only_sees_own_batch(ledger, extraction_cache):
    budget = make_budget(ledger, extraction_cache, StubCompletion(EXTRACTED))
    run(budget, "import_statement", user_id="u1", document_text=STATEMENT)

    result = run(budget, "commit_statement", user_id="u2", params={"account": "checking"})

    assert result.message == RESEND_DOCUMENT


def test_commit_reports_per_record_failures(ledger, extraction_cache):
    budget = make_budget(ledger, extraction_cache, StubCompletion(EXTRACTED))
    run(budget, "import_statement", document_text=STATEMENT)

    original = ledger.create_transaction
    calls = {"n": 0}

    async def flaky(**kwargs):
        calls["n"] += 1
        if calls["n"] == 1:
            raise LedgerError("bank API unavailable")
        return await original(**kwargs)

    ledger.create_transaction = flaky

    result = run(budget, "commit_statement", params={"account": "savings"})

    assert result.data["committed"] == 1
    assert result.data["failed"] == 1
    assert result.data["errors"][0]["payee"] == "Wong Supermercado"
    assert "1 failed" in result.message


# ---------------------------------------------------------------------
# Direct transactions
# ---------------------------------------------------------------------

def test_large_transaction_waits_for_approval(ledger, extraction_cache):
    budget = make_budget(ledger, extraction_cache, StubCompletion())

    result = run(
        budget,
        "create_transaction",
        params={"amount": -200, "payee": "Starbucks"},
        approval_required=True,
    )

    assert "Approval needed" in result.message
    assert ledger.transactions == []


def test_approved_transaction_is_created(ledger, extraction_cache):
    budget = make_budget(ledger, extraction_cache, StubCompletion())

    result = run(
        budget,
        "create_transaction",
        params={"amount": -200, "payee": "Starbucks"},
        approval_required=True,
        approved=True,
    )

    assert "Transaction Created" in result.message
    assert ledger.transactions[0].amount == -200_000
    assert ledger.accounts["checking"].balance == 1_250_000 - 200_000


def test_balance_is_rendered_in_major_units(ledger, extraction_cache):
    budget = make_budget(ledger, extraction_cache, StubCompletion())

    result = run(budget, "view_balance")

    assert "$1,250.00" in result.message
    assert "$6,250.00" in result.message


# ---------------------------------------------------------------------
# Unreadable rows
# ---------------------------------------------------------------------

def test_unreadable_amount_rows_are_dropped_and_counted(ledger, extraction_cache):
    extracted = {
        "transactions": [
            {"date": "2025-04-03", "amount": -120.40, "payee": "Wong Supermercado"},
            {"date": "2025-04-04", "amount": "N/A", "payee": "Pending hold"},
            {"date": "2025-04-05", "amount": "NaN", "payee": "Glitch"},
        ]
    }
    budget = make_budget(ledger, extraction_cache, StubCompletion(extracted))

    result = run(budget, "import_statement", document_text=STATEMENT)

    assert result.data == {"extracted": 1, "skipped": 2}
    assert "Skipped 2 row(s)" in result.message
    assert [r.payee for r in extraction_cache.get("u1").payload] == ["Wong Supermercado"]

    committed = run(budget, "commit_statement", params={"account": "checking"})

    assert committed.data["committed"] == 1
    assert [tx.amount for tx in ledger.transactions] == [-120_400]


def test_all_rows_unreadable_caches_nothing(ledger, extraction_cache):
    extracted = {"transactions": [{"date": "2025-04-04", "amount": "—", "payee": "Shop"}]}
    budget = make_budget(ledger, extraction_cache, StubCompletion(extracted))

    result = run(budget, "import_statement", document_text=STATEMENT)

    assert result.data == {"extracted": 0, "skipped": 1}
    assert "couldn't find any transactions" in result.message
    assert extraction_cache.get("u1") is None


# ---------------------------------------------------------------------
# Day windows
# ---------------------------------------------------------------------

@pytest.mark.parametrize(
    "days, expected",
    [
        ("7 days", "No recent transactions"),
        (7, "No recent transactions"),
        ("last week", "Recent Transactions"),
        (None, "Recent Transactions"),
    ],
)
def test_loose_day_counts_are_read_leniently(ledger, extraction_cache, days, expected):
    asyncio.run(
        ledger.create_transaction(
            account_id="checking",
            amount=-9_990,
            payee="Bookshop",
            date=dt.date.today() - dt.timedelta(days=20),
        )
    )
    budget = make_budget(ledger, extraction_cache, StubCompletion())

    result = run(budget, "view_transactions", params={"days": days})

    assert expected in result.message
