import logging
import datetime as dt
from typing import Dict, Optional

import sqlalchemy as db
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from flask import Flask, current_app, request, jsonify
from flask_jwt_extended import (
    JWTManager, jwt_required, create_access_token, create_refresh_token, decode_token,
    get_jwt, get_jwt_identity, set_access_cookies, set_refresh_cookies, unset_jwt_cookies,
)
from werkzeug.security import generate_password_hash, check_password_hash

from . import envelope as send
from .config import Config
from .dates import GROUP_MODES, range_label
from .filters import ExpenseFilter, filter_expenses, group_expenses, summarize_by_category, total_amount
from .models import Base, User, Expense
from .receipt_parser import parse_receipt
from .validation import validate_expense_data, validate_login_data, validate_register_data

logger = logging.getLogger(__name__)


# Database helpers
def get_session() -> Session:
    return Session(bind=current_app.extensions['db_engine'])


def current_user_id() -> int:
    return int(get_jwt_identity())


def load_expense(session: Session, expense_id: int, user_id: int) -> Optional[Expense]:
    return session.query(Expense).filter_by(id=expense_id, user_id=user_id).first()


def user_expenses(session: Session, user_id: int):
    return (session.query(Expense)
            .filter(Expense.user_id == user_id)
            .order_by(Expense.date.desc(), Expense.id.desc())
            .all())


def issue_tokens(user: User) -> Dict[str, str]:
    """Create an access/refresh pair and remember the refresh jti on the user."""
    identity = str(user.id)
    access_token = create_access_token(identity=identity)
    refresh_token = create_refresh_token(identity=identity)
    user.refresh_jti = decode_token(refresh_token)['jti']
    return {'accessToken': access_token, 'refreshToken': refresh_token}


def with_token_cookies(response, tokens: Dict[str, str]):
    body, status = response
    set_access_cookies(body, tokens['accessToken'])
    set_refresh_cookies(body, tokens['refreshToken'])
    return body, status


def register_jwt_handlers(jwt: JWTManager):
    @jwt.unauthorized_loader
    def missing_token(reason):
        logger.warning(f'Missing token: {reason}')
        return send.unauthorized(message='Missing or invalid authorization')

    @jwt.invalid_token_loader
    def invalid_token(reason):
        logger.warning(f'Invalid token: {reason}')
        return send.unauthorized(message='Invalid token')

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return send.unauthorized(message='Token has expired')


def register_routes(app: Flask):
    @app.route('/api/health', methods=['GET'])
    def health():
        return jsonify({'status': 'ok', 'timestamp': dt.datetime.now(dt.timezone.utc).isoformat()}), 200

    # Auth
    @app.route('/api/auth/register', methods=['POST'])
    def register():
        data, errors = validate_register_data(request.get_json(silent=True))
        if errors:
            return send.validation_errors(errors)

        session = get_session()
        try:
            if session.query(User).filter_by(email=data['email']).first():
                return send.bad_request(message='Email is already in use.')
            if session.query(User).filter_by(username=data['username']).first():
                return send.bad_request(message='Username is already taken.')

            user = User(username=data['username'], email=data['email'],
                        password=generate_password_hash(data['password']))
            session.add(user)
            session.commit()
            logger.info(f'Registered user {user.id}')
            return send.success(user.serialize(), 'User successfully registered.', 201)
        except SQLAlchemyError as e:
            logger.error(f'Error registering user: {e}')
            session.rollback()
            return send.error(message='Registration Failed!')
        finally:
            session.close()

    @app.route('/api/auth/login', methods=['POST'])
    def login():
        data, errors = validate_login_data(request.get_json(silent=True))
        if errors:
            return send.validation_errors(errors)

        session = get_session()
        try:
            user = session.query(User).filter_by(email=data['email']).first()
            if not user:
                logger.warning('Login attempt for unknown email')
                return send.unauthorized(message='Invalid Credentials')
            if not check_password_hash(user.password, data['password']):
                logger.warning(f'Wrong password for user {user.id}')
                return send.unauthorized(message='Incorrect Password')

            tokens = issue_tokens(user)
            session.commit()
            payload = {'user': user.serialize(), **tokens}
            return with_token_cookies(send.success(payload, 'Login Successful'), tokens)
        except SQLAlchemyError as e:
            logger.error(f'Error logging in user: {e}')
            session.rollback()
            return send.error(message='Login Failed.')
        finally:
            session.close()

    @app.route('/api/auth/refresh-token', methods=['POST'])
    @jwt_required(refresh=True)
    def refresh_token():
        jti = get_jwt()['jti']
        session = get_session()
        try:
            user = session.get(User, current_user_id())
            if not user or not user.refresh_jti:
                return send.unauthorized(message='Refresh token not found')
            if user.refresh_jti != jti:
                logger.warning(f'Stale refresh token presented for user {user.id}')
                return send.unauthorized(message='Invalid refresh token')

            tokens = issue_tokens(user)
            session.commit()
            return with_token_cookies(send.success(tokens, 'Access token refreshed successfully'), tokens)
        except SQLAlchemyError as e:
            logger.error(f'Error refreshing token: {e}')
            session.rollback()
            return send.error(message='Failed to refresh token')
        finally:
            session.close()

    @app.route('/api/auth/logout', methods=['POST'])
    @jwt_required()
    def logout():
        session = get_session()
        try:
            user = session.get(User, current_user_id())
            if user:
                user.refresh_jti = None
                session.commit()
            body, status = send.success(message='Logged out Successfully!')
            unset_jwt_cookies(body)
            return body, status
        except SQLAlchemyError as e:
            logger.error(f'Error logging out user: {e}')
            session.rollback()
            return send.error(message='Logout Failed!')
        finally:
            session.close()

    @app.route('/api/user/info', methods=['GET'])
    @jwt_required()
    def user_info():
        session = get_session()
        try:
            user = session.get(User, current_user_id())
            if not user:
                return send.not_found(message='User not found')
            return send.success({'user': user.serialize()}, 'User found')
        except SQLAlchemyError as e:
            logger.error(f'Error fetching user info: {e}')
            return send.error()
        finally:
            session.close()

    # Expenses
    @app.route('/api/expenses', methods=['GET'])
    @jwt_required()
    def list_expenses():
        try:
            flt = ExpenseFilter.from_args(request.args)
        except ValueError as e:
            return send.bad_request(message=str(e))

        session = get_session()
        try:
            expenses = filter_expenses(user_expenses(session, current_user_id()), flt)
            return send.success([expense.serialize() for expense in expenses], 'Expenses found')
        except SQLAlchemyError as e:
            logger.error(f'Error retrieving expenses: {e}')
            return send.error()
        finally:
            session.close()

    @app.route('/api/expenses', methods=['POST'])
    @jwt_required()
    def create_expense():
        data, errors = validate_expense_data(request.get_json(silent=True))
        if errors:
            return send.validation_errors(errors)

        session = get_session()
        try:
            expense = Expense(user_id=current_user_id())
            expense.apply(data)
            session.add(expense)
            session.commit()
            return send.success(expense.serialize(), 'Expense created', 201)
        except SQLAlchemyError as e:
            logger.error(f'Failed to create expense: {e}')
            session.rollback()
            return send.error(message='Failed to create expense')
        finally:
            session.close()

    @app.route('/api/expenses/<int:expense_id>', methods=['GET'])
    @jwt_required()
    def get_expense(expense_id):
        session = get_session()
        try:
            expense = load_expense(session, expense_id, current_user_id())
            if not expense:
                return send.not_found(message='Expense not found')
            return send.success(expense.serialize(), 'Expense found')
        except SQLAlchemyError as e:
            logger.error(f'Error retrieving expense {expense_id}: {e}')
            return send.error()
        finally:
            session.close()

    @app.route('/api/expenses/<int:expense_id>', methods=['PUT'])
    @jwt_required()
    def update_expense(expense_id):
        data, errors = validate_expense_data(request.get_json(silent=True))
        if errors:
            return send.validation_errors(errors)

        session = get_session()
        try:
            expense = load_expense(session, expense_id, current_user_id())
            if not expense:
                return send.not_found(message='Expense not found')
            expense.apply(data)
            session.commit()
            return send.success(expense.serialize(), 'Expense updated')
        except SQLAlchemyError as e:
            logger.error(f'Failed to update expense {expense_id}: {e}')
            session.rollback()
            return send.error(message='Failed to update expense')
        finally:
            session.close()

    @app.route('/api/expenses/<int:expense_id>', methods=['DELETE'])
    @jwt_required()
    def delete_expense(expense_id):
        session = get_session()
        try:
            expense = load_expense(session, expense_id, current_user_id())
            if not expense:
                return send.not_found(message='Expense not found')
            session.delete(expense)
            session.commit()
            return send.success({'id': expense_id}, 'Expense deleted')
        except SQLAlchemyError as e:
            logger.error(f'Failed to delete expense {expense_id}: {e}')
            session.rollback()
            return send.error(message='Failed to delete expense')
        finally:
            session.close()

    @app.route('/api/expenses/grouped', methods=['GET'])
    @jwt_required()
    def grouped_expenses():
        mode = request.args.get('by', 'day')
        if mode not in GROUP_MODES:
            return send.bad_request(message=f'Invalid grouping, use one of: {", ".join(GROUP_MODES)}')
        try:
            flt = ExpenseFilter.from_args(request.args)
        except ValueError as e:
            return send.bad_request(message=str(e))

        session = get_session()
        try:
            expenses = filter_expenses(user_expenses(session, current_user_id()), flt)
            groups = [
                {
                    'key': key,
                    'total': total_amount(items),
                    'count': len(items),
                    'expenses': [expense.serialize() for expense in items],
                }
                for key, items in group_expenses(expenses, mode).items()
            ]
            return send.success(groups, 'Expenses grouped')
        except SQLAlchemyError as e:
            logger.error(f'Error grouping expenses: {e}')
            return send.error()
        finally:
            session.close()

    @app.route('/api/expenses/summary', methods=['GET'])
    @jwt_required()
    def expense_summary():
        try:
            flt = ExpenseFilter.from_args(request.args)
        except ValueError as e:
            return send.bad_request(message=str(e))

        session = get_session()
        try:
            expenses = filter_expenses(user_expenses(session, current_user_id()), flt)
            summary = {
                'total': total_amount(expenses),
                'count': len(expenses),
                'rangeLabel': range_label(flt.start, flt.end, flt.preset),
                **summarize_by_category(expenses),
            }
            return send.success(summary, 'Expense summary')
        except SQLAlchemyError as e:
            logger.error(f'Error summarizing expenses: {e}')
            return send.error()
        finally:
            session.close()

    # Receipts
    @app.route('/api/receipts/parse', methods=['POST'])
    @jwt_required()
    def parse_receipt_text():
        data = request.get_json(silent=True)
        text = data.get('text') if isinstance(data, dict) else None
        if not isinstance(text, str):
            return send.validation_errors({'text': ['Receipt text is required']})

        scan = parse_receipt(text)
        if scan.total is None:
            logger.info('No total found in receipt text')
        return send.success(scan.serialize(), 'Receipt parsed')


def create_app(overrides: Optional[Dict] = None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(level=app.config['LOG_LEVEL'], format='%(asctime)s - %(levelname)s - %(message)s')

    engine = db.create_engine(app.config['DATABASE_URL'])
    Base.metadata.create_all(engine)
    app.extensions['db_engine'] = engine

    jwt = JWTManager(app)
    register_jwt_handlers(jwt)
    register_routes(app)
    return app


if __name__ == '__main__':
    create_app().run(debug=True)
