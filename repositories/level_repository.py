"""
LevelRepository - data-access layer for membership levels and discount codes.

All SQL lives here; the service layer only sees CheckoutLevel objects.
Uses parameterised queries to prevent SQL injection.
"""

from __future__ import annotations

from typing import Optional, Protocol

from repositories.db import get_connection
from services.models import CheckoutLevel


_LEVEL_COLUMNS = 'id, name, initial_payment, billing_amount, cycle_number, cycle_period'


class LevelCatalog(Protocol):
    def get_level_at_checkout(
        self, level_id: int, discount_code: str | None = None
    ) -> Optional[CheckoutLevel]: ...

    def discount_code_exists(self, code: str, level_id: int) -> bool: ...


class LevelRepository:
    """Reads ``membership_levels`` and the discount-code price overrides."""

    # ------------------------------------------------------------------ #
    # Reads                                                                #
    # ------------------------------------------------------------------ #

    def get_level(self, level_id: int) -> Optional[CheckoutLevel]:
        """Return the level at its regular price, or None if not found."""
        sql = f'SELECT {_LEVEL_COLUMNS} FROM membership_levels WHERE id = %s LIMIT 1'
        with get_connection() as conn:
            cursor = conn.cursor(dictionary=True)
            cursor.execute(sql, (level_id,))
            row = cursor.fetchone()
            cursor.close()
        if row is None:
            return None
        return CheckoutLevel.from_dict(row)

    def get_level_at_checkout(
        self, level_id: int, discount_code: str | None = None
    ) -> Optional[CheckoutLevel]:
        """Return the level's price terms as they apply at checkout.

        When ``discount_code`` is valid for the level, the code's prices
        replace the level's and the code is recorded on the result.
        """
        level = self.get_level(level_id)
        if level is None or not discount_code:
            return level

        sql = (
            'SELECT dcl.initial_payment, dcl.billing_amount, dcl.cycle_number, dcl.cycle_period '
            'FROM discount_codes_levels dcl '
            'JOIN discount_codes dc ON dc.id = dcl.code_id '
            'WHERE dc.code = %s AND dcl.level_id = %s LIMIT 1'
        )
        with get_connection() as conn:
            cursor = conn.cursor(dictionary=True)
            cursor.execute(sql, (discount_code, level_id))
            row = cursor.fetchone()
            cursor.close()
        if row is None:
            return level

        return CheckoutLevel.from_dict({
            'id': level.id,
            'name': level.name,
            'discount_code': discount_code,
            **row,
        })

    # ------------------------------------------------------------------ #
    # Writes                                                               #
    # ------------------------------------------------------------------ #

    def create_level(self, level: CheckoutLevel) -> int:
        """Insert a membership level and return the generated ID."""
        sql = (
            'INSERT INTO membership_levels '
            '(name, initial_payment, billing_amount, cycle_number, cycle_period) '
            'VALUES (%s, %s, %s, %s, %s)'
        )
        with get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(sql, (
                level.name,
                level.initial_payment,
                level.billing_amount,
                level.cycle_number,
                level.cycle_period,
            ))
            conn.commit()
            level_id = cursor.lastrowid
            cursor.close()
        return level_id

    def add_discount_code(self, code: str, level: CheckoutLevel) -> None:
        """Attach ``code`` to ``level.id`` with ``level``'s amounts as the discounted price."""
        with get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                'INSERT INTO discount_codes (code) VALUES (%s) '
                'ON DUPLICATE KEY UPDATE id = LAST_INSERT_ID(id)',
                (code,),
            )
            code_id = cursor.lastrowid
            cursor.execute(
                'REPLACE INTO discount_codes_levels '
                '(code_id, level_id, initial_payment, billing_amount, cycle_number, cycle_period) '
                'VALUES (%s, %s, %s, %s, %s, %s)',
                (
                    code_id,
                    level.id,
                    level.initial_payment,
                    level.billing_amount,
                    level.cycle_number,
                    level.cycle_period,
                ),
            )
            conn.commit()
            cursor.close()

    # ------------------------------------------------------------------ #
    # Lookups used by the checkout host                                    #
    # ------------------------------------------------------------------ #

    def discount_code_exists(self, code: str, level_id: int) -> bool:
        """Return True if ``code`` is defined and applies to ``level_id``."""
        sql = (
            'SELECT 1 FROM discount_codes dc '
            'JOIN discount_codes_levels dcl ON dcl.code_id = dc.id '
            'WHERE dc.code = %s AND dcl.level_id = %s LIMIT 1'
        )
        with get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(sql, (code, level_id))
            found = cursor.fetchone() is not None
            cursor.close()
        return found
