from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.factory import BreakStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .common.clock import Clock, SystemClock
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.service import EmployeeService
from .leave.mysql_leave_repository import MySQLLeaveRepository
from .leave.service import LeaveService
from .masters.mysql_master_repository import MySQLMasterRepository
from .masters.service import MasterService
from .payroll.calculator.factory import PayrollCalculatorFactory
from .payroll.mysql_payroll_repository import MySQLPayrollRepository
from .payroll.service import PayrollService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    clock: Clock

    employees_repo: MySQLEmployeeRepository
    masters_repo: MySQLMasterRepository
    attendance_repo: MySQLAttendanceRepository
    leave_repo: MySQLLeaveRepository
    payroll_repo: MySQLPayrollRepository

    employee_service: EmployeeService
    master_service: MasterService
    attendance_service: AttendanceService
    leave_service: LeaveService
    payroll_service: PayrollService


def build_container(*, db_config: dict, clock: Optional[Clock] = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    clock = clock or SystemClock()

    employees_repo = MySQLEmployeeRepository(conn)
    masters_repo = MySQLMasterRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    leave_repo = MySQLLeaveRepository(conn)
    payroll_repo = MySQLPayrollRepository(conn)

    employee_service = EmployeeService(employees_repo, masters_repo)
    master_service = MasterService(masters_repo, employees_repo)
    attendance_service = AttendanceService(
        attendance_repo,
        employees_repo,
        leave_repo,
        clock=clock,
        break_factory=BreakStrategyFactory(),
    )
    leave_service = LeaveService(leave_repo, employees_repo, clock=clock)
    payroll_service = PayrollService(
        payroll_repo,
        employees_repo,
        masters_repo,
        attendance_repo,
        leave_repo,
        clock=clock,
        factory=PayrollCalculatorFactory(),
    )

    return Container(
        conn=conn,
        clock=clock,
        employees_repo=employees_repo,
        masters_repo=masters_repo,
        attendance_repo=attendance_repo,
        leave_repo=leave_repo,
        payroll_repo=payroll_repo,
        employee_service=employee_service,
        master_service=master_service,
        attendance_service=attendance_service,
        leave_service=leave_service,
        payroll_service=payroll_service,
    )
