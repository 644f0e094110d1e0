from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import AllowanceMaster, DeductionMaster


class MasterRepository(Protocol):
    def list_allowances(self, *, active_only: bool = True) -> Sequence[AllowanceMaster]:
        raise NotImplementedError

    def get_allowance(self, allowance_id: str) -> Optional[AllowanceMaster]:
        raise NotImplementedError

    def find_allowance_by_name(self, name: str) -> Optional[AllowanceMaster]:
        """Active allowance with exactly this name."""

        raise NotImplementedError

    def create_allowance(self, allowance: AllowanceMaster) -> AllowanceMaster:
        raise NotImplementedError

    def update_allowance(self, allowance: AllowanceMaster) -> AllowanceMaster:
        raise NotImplementedError

    def list_deductions(self, *, active_only: bool = True) -> Sequence[DeductionMaster]:
        raise NotImplementedError

    def get_deduction(self, deduction_id: str) -> Optional[DeductionMaster]:
        raise NotImplementedError

    def find_deduction_by_name(self, name: str) -> Optional[DeductionMaster]:
        raise NotImplementedError

    def create_deduction(self, deduction: DeductionMaster) -> DeductionMaster:
        raise NotImplementedError

    def update_deduction(self, deduction: DeductionMaster) -> DeductionMaster:
        raise NotImplementedError
