"""
Default Seed Data

Used when a collection has never been saved: a fresh install starts with
three accounts and a starter set of income/expense categories, and no
transactions or budgets.
"""

from decimal import Decimal

from finance_tracker.models.entities import (
    Account,
    AccountType,
    Category,
    CategoryType,
)


DEFAULT_CATEGORIES: tuple[Category, ...] = (
    # Expenses
    Category(id="cat-exp-1", name="Makanan & Minuman", type=CategoryType.EXPENSE, icon="fas fa-utensils", color="text-red-500"),
    Category(id="cat-exp-2", name="Transportasi", type=CategoryType.EXPENSE, icon="fas fa-bus", color="text-blue-500"),
    Category(id="cat-exp-3", name="Tagihan & Utilitas", type=CategoryType.EXPENSE, icon="fas fa-file-invoice-dollar", color="text-yellow-500"),
    Category(id="cat-exp-4", name="Belanja", type=CategoryType.EXPENSE, icon="fas fa-shopping-cart", color="text-green-500"),
    Category(id="cat-exp-5", name="Hiburan", type=CategoryType.EXPENSE, icon="fas fa-film", color="text-purple-500"),
    Category(id="cat-exp-6", name="Kesehatan", type=CategoryType.EXPENSE, icon="fas fa-heartbeat", color="text-pink-500"),
    Category(id="cat-exp-7", name="Pendidikan", type=CategoryType.EXPENSE, icon="fas fa-graduation-cap", color="text-indigo-500"),
    # Income
    Category(id="cat-inc-1", name="Gaji", type=CategoryType.INCOME, icon="fas fa-money-bill-wave", color="text-emerald-500"),
    Category(id="cat-inc-2", name="Bonus", type=CategoryType.INCOME, icon="fas fa-gift", color="text-teal-500"),
    Category(id="cat-inc-3", name="Investasi", type=CategoryType.INCOME, icon="fas fa-chart-line", color="text-cyan-500"),
)

DEFAULT_ACCOUNTS: tuple[Account, ...] = (
    Account(id="acc-1", name="Bank BCA", type=AccountType.BANK, balance=Decimal("10000000"), icon="fas fa-university"),
    Account(id="acc-2", name="GoPay", type=AccountType.EWALLET, balance=Decimal("500000"), icon="fas fa-wallet"),
    Account(id="acc-3", name="Tunai", type=AccountType.CASH, balance=Decimal("200000"), icon="fas fa-money-bill-alt"),
)

# Icon suggestions per account type, for presentation layers
ACCOUNT_TYPE_ICONS: dict[AccountType, str] = {
    AccountType.BANK: "fas fa-university",
    AccountType.EWALLET: "fas fa-wallet",
    AccountType.CREDIT_CARD: "fas fa-credit-card",
    AccountType.CASH: "fas fa-money-bill-alt",
}
