from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, new_id
from .model import AllowanceMaster, DeductionMaster
from .repository import MasterRepository

_ALLOWANCE_COLUMNS = "allowance_id, name, color, include_in_overtime, display_order, is_active, updated_by"
_DEDUCTION_COLUMNS = "deduction_id, name, display_order, is_active, updated_by"


class MySQLMasterRepository(MasterRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_allowance(r: Dict[str, Any]) -> AllowanceMaster:
        return AllowanceMaster(
            allowance_id=r["allowance_id"],
            name=r["name"],
            color=r.get("color"),
            include_in_overtime=bool(r["include_in_overtime"]),
            display_order=int(r["display_order"]),
            is_active=bool(r["is_active"]),
            updated_by=r.get("updated_by"),
        )

    @staticmethod
    def _to_deduction(r: Dict[str, Any]) -> DeductionMaster:
        return DeductionMaster(
            deduction_id=r["deduction_id"],
            name=r["name"],
            display_order=int(r["display_order"]),
            is_active=bool(r["is_active"]),
            updated_by=r.get("updated_by"),
        )

    # -------- Allowances --------
    def list_allowances(self, *, active_only: bool = True) -> Sequence[AllowanceMaster]:
        where = "WHERE is_active=1" if active_only else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_ALLOWANCE_COLUMNS} FROM allowance_masters {where} ORDER BY display_order, name")
            return [self._to_allowance(r) for r in fetchall(cur)]

    def get_allowance(self, allowance_id: str) -> Optional[AllowanceMaster]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_ALLOWANCE_COLUMNS} FROM allowance_masters WHERE allowance_id=%s", (allowance_id,))
            r = fetchone(cur)
            return self._to_allowance(r) if r else None

    def find_allowance_by_name(self, name: str) -> Optional[AllowanceMaster]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_ALLOWANCE_COLUMNS} FROM allowance_masters WHERE name=%s AND is_active=1 LIMIT 1",
                (name,),
            )
            r = fetchone(cur)
            return self._to_allowance(r) if r else None

    def create_allowance(self, allowance: AllowanceMaster) -> AllowanceMaster:
        created = replace(allowance, allowance_id=new_id())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO allowance_masters(allowance_id, name, color, include_in_overtime, display_order, is_active, updated_by)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    created.allowance_id,
                    created.name,
                    created.color,
                    int(created.include_in_overtime),
                    created.display_order,
                    int(created.is_active),
                    created.updated_by,
                ),
            )
        return created

    def update_allowance(self, allowance: AllowanceMaster) -> AllowanceMaster:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE allowance_masters
                SET name=%s, color=%s, include_in_overtime=%s, display_order=%s, is_active=%s, updated_by=%s
                WHERE allowance_id=%s
                """,
                (
                    allowance.name,
                    allowance.color,
                    int(allowance.include_in_overtime),
                    allowance.display_order,
                    int(allowance.is_active),
                    allowance.updated_by,
                    allowance.allowance_id,
                ),
            )
        return allowance

    # -------- Deductions --------
    def list_deductions(self, *, active_only: bool = True) -> Sequence[DeductionMaster]:
        where = "WHERE is_active=1" if active_only else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_DEDUCTION_COLUMNS} FROM deduction_masters {where} ORDER BY display_order, name")
            return [self._to_deduction(r) for r in fetchall(cur)]

    def get_deduction(self, deduction_id: str) -> Optional[DeductionMaster]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_DEDUCTION_COLUMNS} FROM deduction_masters WHERE deduction_id=%s", (deduction_id,))
            r = fetchone(cur)
            return self._to_deduction(r) if r else None

    def find_deduction_by_name(self, name: str) -> Optional[DeductionMaster]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_DEDUCTION_COLUMNS} FROM deduction_masters WHERE name=%s AND is_active=1 LIMIT 1",
                (name,),
            )
            r = fetchone(cur)
            return self._to_deduction(r) if r else None

    def create_deduction(self, deduction: DeductionMaster) -> DeductionMaster:
        created = replace(deduction, deduction_id=new_id())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO deduction_masters(deduction_id, name, display_order, is_active, updated_by)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (created.deduction_id, created.name, created.display_order, int(created.is_active), created.updated_by),
            )
        return created

    def update_deduction(self, deduction: DeductionMaster) -> DeductionMaster:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE deduction_masters
                SET name=%s, display_order=%s, is_active=%s, updated_by=%s
                WHERE deduction_id=%s
                """,
                (
                    deduction.name,
                    deduction.display_order,
                    int(deduction.is_active),
                    deduction.updated_by,
                    deduction.deduction_id,
                ),
            )
        return deduction
