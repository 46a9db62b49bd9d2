import pytest

from database.db_manager import DatabaseManager
from database.account_dao import AccountDAO
from database.transaction_dao import TransactionDAO
from database.category_dao import CategoryDAO
from services.account_service import AccountService
from services.transaction_service import TransactionService
from services.category_service import CategoryService
from services.report_service import ReportService

OWNER = "shopkeeper"


@pytest.fixture
def db(tmp_path):
    manager = DatabaseManager(str(tmp_path / "ledger.db")).open()
    manager.initialize()
    yield manager
    manager.close()


@pytest.fixture
def account_dao(db):
    return AccountDAO(db)


@pytest.fixture
def tx_dao(db):
    return TransactionDAO(db)


@pytest.fixture
def category_dao(db):
    return CategoryDAO(db)


@pytest.fixture
def accounts(db, account_dao, tx_dao):
    return AccountService(db, account_dao, tx_dao)


@pytest.fixture
def ledger(db, tx_dao, account_dao):
    return TransactionService(db, tx_dao, account_dao)


@pytest.fixture
def categories(db, category_dao):
    return CategoryService(db, category_dao)


@pytest.fixture
def reports(tx_dao, account_dao):
    return ReportService(tx_dao, account_dao)


@pytest.fixture
def cash(accounts):
    """Default cash drawer opened with 1000.00."""
    return accounts.create(OWNER, "Cash", opening_balance="1000", is_default=True)
