from __future__ import annotations

import datetime as dt

from expense_tracker.validation import validate_expense_data, validate_login_data, validate_register_data


def test_valid_expense_is_cleaned() -> None:
    data, errors = validate_expense_data(
        {
            "amount": "12.349",
            "date": "2024-05-20",
            "category": "Food",
            "description": "  Lunch  ",
            "paymentMethod": "UPI",
            "isRecurring": True,
        }
    )
    assert errors == {}
    assert data == {
        "amount": 12.35,
        "date": dt.date(2024, 5, 20),
        "category": "Food",
        "description": "Lunch",
        "payment_method": "UPI",
        "is_recurring": True,
    }


def test_expense_defaults() -> None:
    data, errors = validate_expense_data({"amount": 5, "date": "2024-05-20", "category": "EMI", "description": "   "})
    assert errors == {}
    assert data["payment_method"] == "CASH"
    assert data["is_recurring"] is False
    assert data["description"] is None


def test_expense_errors_are_reported_per_field() -> None:
    _, errors = validate_expense_data(
        {"amount": -3, "date": "20-05-2024", "category": "Rent", "paymentMethod": "CHEQUE", "isRecurring": "yes"}
    )
    assert set(errors) == {"amount", "date", "category", "paymentMethod", "isRecurring"}

    _, errors = validate_expense_data({"amount": True, "category": "Food"})
    assert errors["amount"] == ["Amount must be a number"]
    assert errors["date"] == ["Date is required"]


def test_non_object_body() -> None:
    assert validate_expense_data(None)[1] == {"_body": ["Request body must be a JSON object"]}
    assert "_body" in validate_register_data([])[1]
    assert "_body" in validate_login_data("x")[1]


def test_register_rules() -> None:
    data, errors = validate_register_data(
        {"username": "alice_user", "email": "Alice@Example.com", "password": "Secret@123", "confirmPassword": "Secret@123"}
    )
    assert errors == {}
    assert data["email"] == "alice@example.com"

    _, errors = validate_register_data(
        {"username": "bob", "email": "not-an-email", "password": "password", "confirmPassword": "different"}
    )
    assert errors["username"] == ["Username must be at least 6 characters long"]
    assert errors["email"] == ["Invalid email format"]
    assert "Password must include at least one uppercase letter" in errors["password"]
    assert "Password must include at least one special character" in errors["password"]
    assert errors["confirmPassword"] == ["Passwords do not match"]

    _, errors = validate_register_data({"username": "x" * 21})
    assert errors["username"] == ["Username must not exceed 20 characters"]
    assert errors["password"] == ["Password is required"]


def test_login_requires_email_and_password() -> None:
    _, errors = validate_login_data({})
    assert errors == {"email": ["Email is required"], "password": ["Password is required"]}


def test_hash_is_not_an_accepted_special_character() -> None:
    _, errors = validate_register_data(
        {"username": "alice_user", "email": "alice@example.com", "password": "Secret#123", "confirmPassword": "Secret#123"}
    )
    assert errors == {"password": ["Password must include at least one special character"]}


def test_amount_that_rounds_to_zero_is_rejected() -> None:
    _, errors = validate_expense_data({"amount": 0.004, "date": "2024-05-20", "category": "Food"})
    assert errors == {"amount": ["Amount can't be empty or a negative number"]}

    data, errors = validate_expense_data({"amount": 0.006, "date": "2024-05-20", "category": "Food"})
    assert errors == {}
    assert data["amount"] == 0.01


def test_date_with_trailing_junk_is_rejected() -> None:
    _, errors = validate_expense_data({"amount": 1, "date": "2024-05-20garbage", "category": "Food"})
    assert errors == {"date": ["Invalid date format. Please use YYYY-MM-DD"]}
