import os
import sys
import customtkinter as ctk
import structlog

# Ensure project root is on sys.path when run directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from database.db_manager import DatabaseManager
from database.account_dao import AccountDAO
from database.transaction_dao import TransactionDAO
from database.category_dao import CategoryDAO

from services.account_service import AccountService
from services.transaction_service import TransactionService
from services.report_service import ReportService
from services.category_service import CategoryService

from ui.app_window import AppWindow
from utils.app_config import get_db_path, get_log_level, get_owner_id, load_config
from utils.constants import DEFAULT_ACCOUNT_NAME, DEFAULT_CURRENCY_SYMBOL
from utils.logging_config import configure_logging

log = structlog.get_logger(__name__)


def main():
    # ── Bootstrap: pre-DB config and logging ─────────────────────────────────
    config = load_config()
    configure_logging(get_log_level(config))
    owner_id = get_owner_id(config)

    # ── Database ─────────────────────────────────────────────────────────────
    db = DatabaseManager(get_db_path(config)).open()
    db.initialize()

    # ── DAOs ─────────────────────────────────────────────────────────────────
    account_dao = AccountDAO(db)
    tx_dao = TransactionDAO(db)
    category_dao = CategoryDAO(db)

    # ── Services ─────────────────────────────────────────────────────────────
    account_svc = AccountService(db, account_dao, tx_dao)
    tx_svc = TransactionService(db, tx_dao, account_dao)
    report_svc = ReportService(tx_dao, account_dao)
    category_svc = CategoryService(db, category_dao)

    # ── First run: default categories and a cash drawer ──────────────────────
    category_svc.initialize_defaults(owner_id)
    if not account_svc.get_all(owner_id):
        account_svc.create(owner_id, DEFAULT_ACCOUNT_NAME, is_default=True)

    # ── Restore last-used account ─────────────────────────────────────────────
    initial_account = account_svc.get_default(owner_id)
    last_account_id_str = db.get_setting("last_account_id", "")
    if last_account_id_str.isdigit():
        last = account_svc.get_by_id(int(last_account_id_str))
        if last is not None and last.owner_id == owner_id and last.is_active:
            initial_account = last

    # ── Appearance ───────────────────────────────────────────────────────────
    appearance = db.get_setting("appearance_mode", "system")
    date_format = db.get_setting("date_format", "DD/MM/YYYY")
    currency_symbol = db.get_setting("currency_symbol", DEFAULT_CURRENCY_SYMBOL)
    ctk.set_appearance_mode(appearance)
    ctk.set_default_color_theme("blue")

    log.info("app_started", owner_id=owner_id, db_path=db.db_path)

    # ── Launch UI ────────────────────────────────────────────────────────────
    app = AppWindow(
        account_service=account_svc,
        tx_service=tx_svc,
        report_service=report_svc,
        category_service=category_svc,
        owner_id=owner_id,
        initial_account=initial_account,
        currency_symbol=currency_symbol,
        date_format=date_format,
    )

    # Save last-used account on close
    def on_close():
        if app.current_account:
            db.set_setting("last_account_id", str(app.current_account.id))
        db.close()
        app.destroy()

    app.protocol("WM_DELETE_WINDOW", on_close)
    app.mainloop()


if __name__ == "__main__":
    main()
