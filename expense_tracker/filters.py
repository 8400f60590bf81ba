import datetime as dt
from dataclasses import dataclass, fields
from typing import Dict, Iterable, List, Mapping, Optional

from .dates import GROUP_MODES, group_key, parse_date, preset_range
from .models import CATEGORIES, PAYMENT_METHODS, Expense


@dataclass
class ExpenseFilter:
    """Constraints applied to a user's expense list; None means unconstrained."""
    search: Optional[str] = None
    category: Optional[str] = None
    payment_method: Optional[str] = None
    start: Optional[dt.date] = None
    end: Optional[dt.date] = None
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None
    is_recurring: Optional[bool] = None
    preset: str = 'custom'

    @property
    def has_active_filters(self) -> bool:
        return any(getattr(self, f.name) not in (None, '')
                   for f in fields(self) if f.name != 'preset')

    @classmethod
    def from_args(cls, args: Mapping[str, str], today: Optional[dt.date] = None) -> 'ExpenseFilter':
        flt = cls()
        flt.search = (args.get('q') or '').strip() or None

        category = args.get('category')
        if category and category != 'all':
            if category not in CATEGORIES:
                raise ValueError(f'Invalid category: {category}')
            flt.category = category

        payment_method = args.get('paymentMethod')
        if payment_method and payment_method != 'all':
            if payment_method not in PAYMENT_METHODS:
                raise ValueError(f'Invalid paymentMethod: {payment_method}')
            flt.payment_method = payment_method

        for name, param in (('start', 'start'), ('end', 'end')):
            value = args.get(param)
            if value:
                try:
                    setattr(flt, name, parse_date(value))
                except ValueError:
                    raise ValueError(f'Invalid {param} date, use YYYY-MM-DD')

        preset = args.get('preset')
        if preset:
            start, end = preset_range(preset, today)
            flt.preset = preset
            if preset != 'custom':
                flt.start, flt.end = start, end

        for name, param in (('min_amount', 'minAmount'), ('max_amount', 'maxAmount')):
            value = args.get(param)
            if value not in (None, ''):
                try:
                    setattr(flt, name, float(value))
                except ValueError:
                    raise ValueError(f'Invalid {param}, expected a number')

        recurring = (args.get('isRecurring') or 'all').lower()
        if recurring in ('true', '1'):
            flt.is_recurring = True
        elif recurring in ('false', '0'):
            flt.is_recurring = False
        elif recurring != 'all':
            raise ValueError('Invalid isRecurring, expected true, false or all')

        return flt

    def matches(self, expense: Expense) -> bool:
        if self.search:
            query = self.search.lower()
            description = (expense.description or '').lower()
            if query not in description and query not in expense.category.lower():
                return False
        if self.category and expense.category != self.category:
            return False
        if self.payment_method and expense.payment_method != self.payment_method:
            return False
        # Date bounds cover whole days
        if self.start and expense.date < self.start:
            return False
        if self.end and expense.date > self.end:
            return False
        amount = float(expense.amount)
        if self.min_amount is not None and amount < self.min_amount:
            return False
        if self.max_amount is not None and amount > self.max_amount:
            return False
        if self.is_recurring is not None and bool(expense.is_recurring) != self.is_recurring:
            return False
        return True


def filter_expenses(expenses: Iterable[Expense], flt: Optional[ExpenseFilter]) -> List[Expense]:
    if flt is None:
        return list(expenses)
    return [e for e in expenses if flt.matches(e)]


def total_amount(expenses: Iterable[Expense]) -> float:
    return round(sum(float(e.amount) for e in expenses), 2)


def group_expenses(expenses: Iterable[Expense], mode: str = 'day') -> Dict[str, List[Expense]]:
    """Bucket expenses by date key, newest bucket first."""
    if mode not in GROUP_MODES:
        raise ValueError(f'Unknown grouping mode: {mode}')
    groups: Dict[str, List[Expense]] = {}
    latest: Dict[str, dt.date] = {}
    for expense in expenses:
        key = group_key(expense.date, mode)
        groups.setdefault(key, []).append(expense)
        if key not in latest or expense.date > latest[key]:
            latest[key] = expense.date
    ordered = sorted(groups, key=lambda k: latest[k], reverse=True)
    return {key: groups[key] for key in ordered}


def summarize_by_category(expenses: Iterable[Expense]) -> Dict[str, list]:
    totals: Dict[str, float] = {}
    for expense in expenses:
        totals[expense.category] = totals.get(expense.category, 0) + float(expense.amount)

    categories = list(totals.keys())
    values = [round(totals[category], 2) for category in categories]
    return {'categories': categories, 'values': values}
