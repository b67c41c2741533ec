"""Student Repository Interface

Read access to payers for invoice creation and cohort targeting.
"""

from abc import ABC, abstractmethod
from typing import Optional, List
from bursary.domain.student import Student


class StudentRepository(ABC):

    @abstractmethod
    async def get_active_by_id(self, student_id: str) -> Optional[Student]:
        """Retrieve a student that has not been soft-deleted"""
        pass

    @abstractmethod
    async def get_active_ids(self) -> List[str]:
        """IDs of all active students"""
        pass

    @abstractmethod
    async def get_active_ids_by_level(self, level_id: str) -> List[str]:
        """IDs of active students enrolled in an academic level"""
        pass
