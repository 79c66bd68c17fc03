"""
Seed script - creates the tables and a membership level in the database.

Usage:
    python seed_levels.py

Reads DB connection details from .env (DB_HOST, DB_PORT, DB_USER, DB_PASSWORD, DB_NAME).
"""

import os
import sys
from decimal import Decimal, InvalidOperation

from dotenv import load_dotenv

load_dotenv()

# Ensure project root is on the path so `repositories` / `services` resolve.
sys.path.insert(0, os.path.dirname(__file__))

from repositories.db import create_schema, init_pool
from repositories.level_repository import LevelRepository
from services.models import BillingPeriod, CheckoutLevel


def _amount(prompt: str) -> Decimal:
    raw = input(prompt).strip() or '0'
    try:
        return Decimal(raw)
    except InvalidOperation:
        print(f'Not an amount: {raw}')
        sys.exit(1)


def main():
    init_pool()
    create_schema()

    repo = LevelRepository()

    name = input('Level name: ').strip()
    if not name:
        print('A level name is required.')
        sys.exit(1)

    initial = _amount('Initial payment: ')
    billing = _amount('Recurring amount (blank for one-time): ')
    period = None
    cycle_number = 0
    if billing > 0:
        period = input('Billing period (Day/Week/Month/Year): ').strip().title()
        if period not in {p.value for p in BillingPeriod}:
            print(f'Unsupported billing period: {period}')
            sys.exit(1)
        cycle_number = 1

    level = CheckoutLevel(
        id=0,
        name=name,
        initial_payment=initial,
        billing_amount=billing,
        cycle_number=cycle_number,
        cycle_period=period,
    )
    level.id = repo.create_level(level)
    print(f'Level created: id={level.id}, name={level.name}')

    code = input('Regional discount code (blank to skip): ').strip()
    if code:
        discounted = _amount('Discounted initial payment: ')
        level.initial_payment = discounted
        if level.billing_amount > 0:
            level.billing_amount = _amount('Discounted recurring amount: ')
        repo.add_discount_code(code, level)
        print(f'Discount code {code} attached to level {level.id}')


if __name__ == '__main__':
    main()
