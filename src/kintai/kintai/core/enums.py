from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role resolved by the identity collaborator."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class EmploymentType(str, Enum):
    FULL_TIME = "FULL_TIME"
    PART_TIME = "PART_TIME"


class AttendanceStatus(str, Enum):
    """Punch lifecycle of a single working day."""

    NOT_STARTED = "not_started"
    WORKING = "working"
    ON_BREAK = "on_break"
    COMPLETED = "completed"


class LeaveType(str, Enum):
    PAID = "paid"
    SPECIAL = "special"
    SICK = "sick"
    ABSENCE = "absence"
    OTHER = "other"


class LeaveStatus(str, Enum):
    """Approval workflow of a leave request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    DELETED = "deleted"


class StatementType(str, Enum):
    SALARY = "salary"
    BONUS = "bonus"


class Operation(str, Enum):
    """Operations exposed to the transport layer.

    Controllers register one endpoint per member so dispatch never depends on
    parsing paths.
    """

    CLOCK_IN = "attendance.clock_in"
    CLOCK_OUT = "attendance.clock_out"
    BREAK_START = "attendance.break_start"
    BREAK_END = "attendance.break_end"
    MY_RECORDS = "attendance.my_records"
    LIST_ATTENDANCE = "attendance.list"
    UPDATE_ATTENDANCE = "attendance.update"
    UPDATE_ATTENDANCE_MEMO = "attendance.update_memo"

    LIST_LEAVE_REQUESTS = "leave.list"
    GET_LEAVE_REQUEST = "leave.get"
    CREATE_LEAVE_REQUEST = "leave.create"
    UPDATE_LEAVE_REQUEST = "leave.update"
    DELETE_LEAVE_REQUEST = "leave.delete"
    APPROVE_LEAVE_REQUEST = "leave.approve"
    REJECT_LEAVE_REQUEST = "leave.reject"
    PAID_LEAVE_BALANCE = "leave.balance"

    LIST_PAYROLL = "payroll.list"
    GET_PAYROLL = "payroll.get"
    CREATE_PAYROLL = "payroll.create"
    UPDATE_PAYROLL = "payroll.update"
    UPDATE_PAYROLL_MEMO = "payroll.update_memo"
    REGENERATE_PAYROLL = "payroll.regenerate"

    LIST_EMPLOYEES = "employees.list"
    REGISTER_EMPLOYEE = "employees.register"
    GET_EMPLOYEE = "employees.get"
    UPDATE_EMPLOYEE = "employees.update"

    LIST_ALLOWANCES = "allowances.list"
    GET_ALLOWANCE = "allowances.get"
    CREATE_ALLOWANCE = "allowances.create"
    UPDATE_ALLOWANCE = "allowances.update"
    DELETE_ALLOWANCE = "allowances.delete"

    LIST_DEDUCTIONS = "deductions.list"
    GET_DEDUCTION = "deductions.get"
    CREATE_DEDUCTION = "deductions.create"
    UPDATE_DEDUCTION = "deductions.update"
    DELETE_DEDUCTION = "deductions.delete"
