"""Shared pytest fixtures for fundtrack tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal

import pytest

from fundtrack.database.factories import create_sqlite_database
from fundtrack.domain.account import AccountService
from fundtrack.domain.allocation import AllocationEngine
from fundtrack.domain.goal import GoalService
from fundtrack.domain.ledger import LedgerService
from fundtrack.domain.reporting import ReportingService
from fundtrack.domain.reversal import ReversalResolver


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def ledger_service(temp_db):
    """Create a LedgerService with a temporary database."""
    return LedgerService(temp_db)


@pytest.fixture
def allocation_engine(temp_db):
    """Create an AllocationEngine with a temporary database."""
    return AllocationEngine(temp_db)


@pytest.fixture
def goal_service(temp_db, allocation_engine):
    """Create a GoalService sharing the allocation engine fixture."""
    return GoalService(temp_db, allocations=allocation_engine)


@pytest.fixture
def reversal_resolver(temp_db):
    """Create a ReversalResolver with a temporary database."""
    return ReversalResolver(temp_db)


@pytest.fixture
def reporting_service(temp_db, reversal_resolver):
    """Create a ReportingService with a temporary database."""
    return ReportingService(temp_db, resolver=reversal_resolver)


@pytest.fixture
def checking(account_service):
    """Spending account holding 10,000."""
    account_id = account_service.create_account(
        name="Checking", institution_name="Test Bank", opening_balance=Decimal("10000")
    )
    return account_service.get_account(account_id)


@pytest.fixture
def savings(account_service):
    """Empty account used to hold goal money."""
    account_id = account_service.create_account(name="Savings", institution_name="Test Bank")
    return account_service.get_account(account_id)


@pytest.fixture
def sample_goal(goal_service, savings):
    """Active goal of 1,000 linked to the savings account."""
    goal_id = goal_service.create_goal(
        name="Holiday",
        target_amount=Decimal("1000"),
        deadline=date(2030, 12, 31),
        category="vacation",
        linked_account_id=savings.id,
    )
    return goal_service.get_goal(goal_id)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
