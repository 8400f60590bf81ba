import datetime as dt
from typing import Dict

from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Date, Boolean
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()

CATEGORIES = (
    'Food',
    'Groceries',
    'Mobile_Bill',
    'Travel',
    'Shopping',
    'Games',
    'Subscription',
    'EMI',
)
PAYMENT_METHODS = ('CASH', 'CREDIT_CARD', 'DEBIT_CARD', 'UPI')


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    username = Column(String, nullable=False, unique=True)
    email = Column(String, nullable=False, unique=True)
    password = Column(String, nullable=False)
    # jti of the only refresh token currently accepted for this user
    refresh_jti = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    expenses = relationship('Expense', back_populates='user', cascade='all, delete-orphan')

    def serialize(self) -> Dict:
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }


class Expense(Base):
    __tablename__ = 'expenses'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    category = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    date = Column(Date, nullable=False)
    description = Column(String, nullable=True)
    is_recurring = Column(Boolean, nullable=False, default=False)
    payment_method = Column(String, nullable=False, default='CASH')
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    user = relationship('User', back_populates='expenses')

    def apply(self, data: Dict):
        """Copy validated fields onto the row."""
        self.category = data['category']
        self.amount = data['amount']
        self.date = data['date']
        self.description = data['description']
        self.is_recurring = data['is_recurring']
        self.payment_method = data['payment_method']

    def serialize(self) -> Dict:
        return {
            'id': self.id,
            'userId': self.user_id,
            'category': self.category,
            'amount': float(self.amount),
            'date': self.date.isoformat(),
            'description': self.description,
            'isRecurring': bool(self.is_recurring),
            'paymentMethod': self.payment_method,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }
