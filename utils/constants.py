APP_NAME = "Cash Ledger"
APP_WIDTH = 1200
APP_HEIGHT = 750
DB_FILE = "cashledger.db"
DB_BUSY_TIMEOUT_SECONDS = 5.0

DEFAULT_ACCOUNT_NAME = "Cash"
DEFAULT_CURRENCY = "INR"
DEFAULT_CURRENCY_SYMBOL = "₹"
DATE_FORMAT = "%Y-%m-%d"
MONTH_FORMAT = "%Y-%m"

OPENING_BALANCE_CATEGORY = "Opening Balance"
OPENING_BALANCE_DESCRIPTION = "Initial opening balance"
TRANSFER_CATEGORY = "Transfer"
BILL_PAYMENT_CATEGORY = "Sales"

DEFAULT_PAGE_SIZE = 50
RECENT_TRANSACTIONS_LIMIT = 10
CHART_MONTHS = 6

DEFAULT_CATEGORY_ICON = "category"
DEFAULT_CATEGORY_COLOR = "#007bff"

DEFAULT_CATEGORIES = [
    {"name": "Sales",          "type": "income",  "icon": "shopping-cart", "color_hex": "#28a745"},
    {"name": "Services",       "type": "income",  "icon": "briefcase",     "color_hex": "#17a2b8"},
    {"name": "Other Income",   "type": "income",  "icon": "plus-circle",   "color_hex": "#6c757d"},
    {"name": "Rent",           "type": "expense", "icon": "home",          "color_hex": "#dc3545"},
    {"name": "Utilities",      "type": "expense", "icon": "zap",           "color_hex": "#fd7e14"},
    {"name": "Salaries",       "type": "expense", "icon": "users",         "color_hex": "#e83e8c"},
    {"name": "Supplies",       "type": "expense", "icon": "package",       "color_hex": "#6f42c1"},
    {"name": "Transportation", "type": "expense", "icon": "truck",         "color_hex": "#20c997"},
    {"name": "Other Expenses", "type": "expense", "icon": "minus-circle",  "color_hex": "#6c757d"},
]
