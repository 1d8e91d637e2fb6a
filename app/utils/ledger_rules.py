"""
LedgerBooks - Ledger Rules

Pure bookkeeping rules used by the voucher and report services:
- Money rounding and the double-entry tolerance check
- Balance representation: a signed decimal internally (debit positive),
  (magnitude, side) at the serialization boundary
- The balance update rule applied for every voucher line
- Financial year derivation (April - March) and voucher numbering
"""

import re
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Tuple, Union

from app.utils.books_enums import AccountGroup, AccountType, BalanceSide, VoucherType


Number = Union[Decimal, int, float, str]

ZERO = Decimal("0.00")
CENT = Decimal("0.01")
DEFAULT_TOLERANCE = Decimal("0.01")
FY_START_MONTH = 4

_FY_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


# =============================================================================
# ROUNDING
# =============================================================================

def round_money(value: Number) -> Decimal:
    """Round to 2 decimal places, half away from zero."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def is_balanced(
    total_debit: Number,
    total_credit: Number,
    tolerance: Number = DEFAULT_TOLERANCE,
) -> bool:
    """Debits equal credits within the rounding tolerance."""
    difference = abs(Decimal(str(total_debit)) - Decimal(str(total_credit)))
    return difference <= Decimal(str(tolerance))


def sum_entries(entries: Iterable) -> Tuple[Decimal, Decimal]:
    """Total the debit and credit columns of a set of voucher lines."""
    total_debit = ZERO
    total_credit = ZERO
    for entry in entries:
        total_debit += Decimal(str(entry.debit))
        total_credit += Decimal(str(entry.credit))
    return round_money(total_debit), round_money(total_credit)


# =============================================================================
# BALANCE REPRESENTATION
# =============================================================================

DEBIT_NORMAL_GROUPS = frozenset({AccountGroup.ASSETS, AccountGroup.EXPENSES})


def normal_side(group: AccountGroup) -> BalanceSide:
    """Dr for Assets/Expenses, Cr for Liabilities, Capital and Income."""
    return BalanceSide.DR if AccountGroup(group) in DEBIT_NORMAL_GROUPS else BalanceSide.CR


def to_signed(magnitude: Number, side: BalanceSide) -> Decimal:
    """(magnitude, side) -> signed decimal, debit positive."""
    amount = round_money(abs(Decimal(str(magnitude))))
    return amount if BalanceSide(side) == BalanceSide.DR else -amount


def to_balance_pair(signed: Number, group: AccountGroup) -> Tuple[Decimal, BalanceSide]:
    """Signed decimal -> (magnitude, side); zero reports the group's normal side."""
    signed = round_money(signed)
    if signed > 0:
        return signed, BalanceSide.DR
    if signed < 0:
        return -signed, BalanceSide.CR
    return ZERO, normal_side(group)


def signed_delta(debit: Number, credit: Number) -> Decimal:
    """Effect of a voucher line on a debit-positive balance."""
    return round_money(Decimal(str(debit)) - Decimal(str(credit)))


def apply_balance_update(
    magnitude: Number,
    side: BalanceSide,
    group: AccountGroup,
    debit: Number,
    credit: Number,
) -> Tuple[Decimal, BalanceSide]:
    """
    Apply one voucher line to an account balance.

    A debit moves the balance toward Dr and a credit toward Cr for every
    group. For debit-normal groups this reads as balance += debit - credit;
    for credit-normal groups as balance += credit - debit on the Cr side.
    Passing the negated amounts reverses a previous application exactly.

    Examples:
        (100, Dr) Assets      + (50, 20)  -> (130, Dr)
        (100, Cr) Liabilities + (150, 0)  -> (50, Dr)
    """
    signed = to_signed(magnitude, side) + signed_delta(debit, credit)
    return to_balance_pair(signed, group)


def normal_amount(signed: Number, group: AccountGroup) -> Decimal:
    """Balance measured on the group's normal side (positive when normal)."""
    signed = round_money(signed)
    return signed if normal_side(group) == BalanceSide.DR else -signed


# =============================================================================
# FINANCIAL YEAR
# =============================================================================

def financial_year_for(value: date, start_month: int = FY_START_MONTH) -> str:
    """Financial year code ("YYYY-YY") containing the given date."""
    start_year = value.year if value.month >= start_month else value.year - 1
    return f"{start_year}-{(start_year + 1) % 100:02d}"


def current_financial_year(today: Optional[date] = None) -> str:
    """Financial year code for today."""
    return financial_year_for(today or date.today())


def parse_financial_year(code: str) -> Tuple[date, date]:
    """
    Return the (start, end) dates of a "YYYY-YY" financial year.

    Raises:
        ValueError: If the code is malformed or the years are not consecutive
    """
    match = _FY_PATTERN.match(code or "")
    if not match:
        raise ValueError(f"Invalid financial year '{code}', expected format YYYY-YY")
    start_year = int(match.group(1))
    if (start_year + 1) % 100 != int(match.group(2)):
        raise ValueError(f"Invalid financial year '{code}', years must be consecutive")
    return date(start_year, 4, 1), date(start_year + 1, 3, 31)


# =============================================================================
# VOUCHER NUMBERING
# =============================================================================

VOUCHER_PREFIXES: Dict[VoucherType, str] = {
    VoucherType.PAYMENT: "PAY",
    VoucherType.RECEIPT: "REC",
    VoucherType.JOURNAL: "JNL",
    VoucherType.CONTRA: "CNT",
    VoucherType.SALES: "SAL",
    VoucherType.PURCHASE: "PUR",
    VoucherType.DEBIT_NOTE: "DBN",
    VoucherType.CREDIT_NOTE: "CRN",
}
FALLBACK_PREFIX = "VOC"


def voucher_prefix(voucher_type: Union[VoucherType, str]) -> str:
    """Three-letter prefix for a voucher type; unknown types get VOC."""
    try:
        return VOUCHER_PREFIXES.get(VoucherType(voucher_type), FALLBACK_PREFIX)
    except ValueError:
        return FALLBACK_PREFIX


def format_voucher_number(
    voucher_type: Union[VoucherType, str],
    financial_year: str,
    sequence: int,
) -> str:
    """e.g. PAY/2024-25/0007"""
    return f"{voucher_prefix(voucher_type)}/{financial_year}/{sequence:04d}"


def voucher_sequence(voucher_number: Optional[str]) -> int:
    """Trailing numeric segment of a voucher number, 0 when unparsable."""
    if not voucher_number:
        return 0
    tail = voucher_number.rsplit("/", 1)[-1]
    return int(tail) if tail.isdigit() else 0


def next_voucher_number(
    voucher_type: Union[VoucherType, str],
    financial_year: str,
    last_number: Optional[str] = None,
) -> str:
    """Number following the highest existing one for (type, financial year)."""
    return format_voucher_number(voucher_type, financial_year, voucher_sequence(last_number) + 1)


# =============================================================================
# ACCOUNT GROUP HIERARCHY
# =============================================================================

ACCOUNT_GROUP_HIERARCHY: Dict[AccountGroup, List[AccountType]] = {
    AccountGroup.ASSETS: [
        AccountType.CURRENT_ASSETS,
        AccountType.FIXED_ASSETS,
        AccountType.BANK_ACCOUNT,
        AccountType.CASH,
        AccountType.SUNDRY_DEBTORS,
    ],
    AccountGroup.LIABILITIES: [
        AccountType.CURRENT_LIABILITIES,
        AccountType.SUNDRY_CREDITORS,
        AccountType.LOANS,
        AccountType.PROVISIONS,
    ],
    AccountGroup.INCOME: [
        AccountType.DIRECT_INCOME,
        AccountType.INDIRECT_INCOME,
    ],
    AccountGroup.EXPENSES: [
        AccountType.DIRECT_EXPENSES,
        AccountType.INDIRECT_EXPENSES,
    ],
    AccountGroup.CAPITAL: [
        AccountType.CAPITAL_ACCOUNT,
    ],
}

# Types that may sit under any group
UNGROUPED_TYPES = frozenset({AccountType.DUTIES_AND_TAXES, AccountType.OTHER})


def is_type_allowed(group: AccountGroup, account_type: AccountType) -> bool:
    """Check that an account type belongs under the given group."""
    account_type = AccountType(account_type)
    if account_type in UNGROUPED_TYPES:
        return True
    return account_type in ACCOUNT_GROUP_HIERARCHY[AccountGroup(group)]
