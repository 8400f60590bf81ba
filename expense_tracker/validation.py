import re
import math
import logging
from typing import Dict, List, Optional, Tuple

from .dates import parse_date
from .models import CATEGORIES, PAYMENT_METHODS

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
PASSWORD_RULES = (
    (re.compile(r'[A-Z]'), 'Password must include at least one uppercase letter'),
    (re.compile(r'[a-z]'), 'Password must include at least one lowercase letter'),
    (re.compile(r'[0-9]'), 'Password must include at least one number'),
    (re.compile(r'[@$!%*?&]'), 'Password must include at least one special character'),
)

Errors = Dict[str, List[str]]


def _add(errors: Errors, field: str, message: str):
    errors.setdefault(field, []).append(message)


def _check_email(data: Dict, errors: Errors) -> Optional[str]:
    email = data.get('email')
    if not isinstance(email, str) or not email.strip():
        _add(errors, 'email', 'Email is required')
        return None
    email = email.strip()
    if not EMAIL_PATTERN.match(email):
        _add(errors, 'email', 'Invalid email format')
    return email.lower()


# Expenses
def validate_expense_data(data: Dict) -> Tuple[Dict, Errors]:
    errors: Errors = {}
    if not isinstance(data, dict):
        return {}, {'_body': ['Request body must be a JSON object']}
    cleaned = {}

    amount = data.get('amount')
    if amount is None or amount == '':
        _add(errors, 'amount', 'Amount is required')
    else:
        try:
            if isinstance(amount, bool):
                raise ValueError(amount)
            amount = float(amount)
            if not math.isfinite(amount):
                raise ValueError(amount)
        except (TypeError, ValueError):
            _add(errors, 'amount', 'Amount must be a number')
        else:
            # Stored in cents, so the rounded value must stay positive
            amount = round(amount, 2)
            if amount <= 0:
                _add(errors, 'amount', "Amount can't be empty or a negative number")
            cleaned['amount'] = amount

    date_str = data.get('date')
    if not date_str or not isinstance(date_str, str):
        _add(errors, 'date', 'Date is required')
    else:
        try:
            cleaned['date'] = parse_date(date_str)
        except ValueError:
            _add(errors, 'date', 'Invalid date format. Please use YYYY-MM-DD')

    category = data.get('category')
    if category not in CATEGORIES:
        _add(errors, 'category', f'Invalid category, expected one of: {", ".join(CATEGORIES)}')
    cleaned['category'] = category

    payment_method = data.get('paymentMethod') or 'CASH'
    if payment_method not in PAYMENT_METHODS:
        _add(errors, 'paymentMethod',
             f'Invalid payment method, expected one of: {", ".join(PAYMENT_METHODS)}')
    cleaned['payment_method'] = payment_method

    is_recurring = data.get('isRecurring', False)
    if not isinstance(is_recurring, bool):
        _add(errors, 'isRecurring', 'isRecurring must be a boolean')
    cleaned['is_recurring'] = bool(is_recurring)

    description = data.get('description')
    if description is not None and not isinstance(description, str):
        _add(errors, 'description', 'Description must be a string')
        description = None
    if description:
        description = description.strip() or None
    cleaned['description'] = description or None

    if errors:
        logger.info(f'Expense validation errors: {errors}')
    return cleaned, errors


# Auth
def validate_register_data(data: Dict) -> Tuple[Dict, Errors]:
    errors: Errors = {}
    if not isinstance(data, dict):
        return {}, {'_body': ['Request body must be a JSON object']}

    username = data.get('username')
    username = username.strip() if isinstance(username, str) else ''
    if not username:
        _add(errors, 'username', 'Username is required')
    elif len(username) < 6:
        _add(errors, 'username', 'Username must be at least 6 characters long')
    elif len(username) > 20:
        _add(errors, 'username', 'Username must not exceed 20 characters')

    email = _check_email(data, errors)

    password = data.get('password')
    if not isinstance(password, str) or not password:
        _add(errors, 'password', 'Password is required')
        password = ''
    else:
        if len(password) < 8:
            _add(errors, 'password', 'Password must be at least 8 characters long')
        for pattern, message in PASSWORD_RULES:
            if not pattern.search(password):
                _add(errors, 'password', message)

    confirm = data.get('confirmPassword')
    if not confirm:
        _add(errors, 'confirmPassword', 'Password is required')
    elif confirm != password:
        _add(errors, 'confirmPassword', 'Passwords do not match')

    return {'username': username, 'email': email, 'password': password}, errors


def validate_login_data(data: Dict) -> Tuple[Dict, Errors]:
    errors: Errors = {}
    if not isinstance(data, dict):
        return {}, {'_body': ['Request body must be a JSON object']}

    email = _check_email(data, errors)
    password = data.get('password')
    if not isinstance(password, str) or not password:
        _add(errors, 'password', 'Password is required')

    return {'email': email, 'password': password}, errors
