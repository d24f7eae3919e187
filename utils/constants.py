APP_NAME = "Expense Tracker"
APP_WIDTH = 1100
APP_HEIGHT = 720
DB_FILE = "expenses.db"

MONTH_FORMAT = "%Y-%m"
DEFAULT_TIME_ZONE = "UTC"
DEFAULT_TREND_MONTHS = 6
MAX_TREND_MONTHS = 120
MIN_TRANSACTION_YEAR = 1900
MAX_TRANSACTION_YEAR = 2999
RECENT_TRANSACTION_LIMIT = 10

INCOME = "income"
EXPENSE = "expense"
TRANSACTION_TYPES = [INCOME, EXPENSE]

UNKNOWN_CATEGORY_NAME = "unknown"
UNKNOWN_CATEGORY_ICON = "help_outline"
UNKNOWN_CATEGORY_COLOR = "#666666"

DEFAULT_CATEGORIES = [
    {"name": "Dining",        "icon": "restaurant",      "type": EXPENSE, "color_hex": "#FF6B6B"},
    {"name": "Transport",     "icon": "directions_car",  "type": EXPENSE, "color_hex": "#4ECDC4"},
    {"name": "Shopping",      "icon": "shopping_cart",   "type": EXPENSE, "color_hex": "#45B7D1"},
    {"name": "Entertainment", "icon": "movie",           "type": EXPENSE, "color_hex": "#96CEB4"},
    {"name": "Living",        "icon": "home",            "type": EXPENSE, "color_hex": "#FECA57"},
    {"name": "Healthcare",    "icon": "local_hospital",  "type": EXPENSE, "color_hex": "#FF9FF3"},
    {"name": "Education",     "icon": "school",          "type": EXPENSE, "color_hex": "#54A0FF"},
    {"name": "Other",         "icon": "more_horiz",      "type": EXPENSE, "color_hex": "#95A5A6"},
    {"name": "Salary",        "icon": "work",            "type": INCOME,  "color_hex": "#2ECC71"},
    {"name": "Bonus",         "icon": "star",            "type": INCOME,  "color_hex": "#F39C12"},
    {"name": "Investment",    "icon": "trending_up",     "type": INCOME,  "color_hex": "#3498DB"},
    {"name": "Part-time",     "icon": "business_center", "type": INCOME,  "color_hex": "#9B59B6"},
    {"name": "Gifts",         "icon": "card_giftcard",   "type": INCOME,  "color_hex": "#E74C3C"},
    {"name": "Other",         "icon": "more_horiz",      "type": INCOME,  "color_hex": "#1ABC9C"},
]

TYPE_COLORS = {
    INCOME:  "#4CAF50",
    EXPENSE: "#F44336",
}
