"""Repository interfaces for data persistence."""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional, TypeVar

from evdock.domain.entities import InstallmentPlan, InstallmentStatus

T = TypeVar("T")


class InstallmentRepository(ABC):
    """
    Abstract repository for InstallmentPlan persistence.

    The whole collection is read and written as a unit; mutations go
    through transact() so that a read-modify-write cannot silently
    overwrite a concurrent one.
    """

    @abstractmethod
    async def list(
        self,
        status: InstallmentStatus | None = None,
    ) -> List[InstallmentPlan]:
        """
        Retrieve all plans, optionally restricted to one status.

        Returns:
            Plans in insertion order
        """
        ...

    @abstractmethod
    async def get_by_id(self, installment_id: str) -> Optional[InstallmentPlan]:
        """
        Retrieve a plan by ID.

        Returns:
            The plan if found, None otherwise
        """
        ...

    @abstractmethod
    async def get_by_quotation_id(self, quotation_id: str) -> Optional[InstallmentPlan]:
        """
        Retrieve the plan created for a quotation.

        Returns:
            The plan if found, None otherwise
        """
        ...

    @abstractmethod
    async def save(self, plan: InstallmentPlan) -> InstallmentPlan:
        """
        Insert a plan or replace the stored plan with the same ID.

        Returns:
            The saved plan
        """
        ...

    @abstractmethod
    async def transact(self, fn: Callable[[List[InstallmentPlan]], T]) -> T:
        """
        Run a read-modify-write cycle over the whole collection.

        Args:
            fn: Receives the current list of plans, mutates it in place and
                returns a result. It may be invoked more than once if the
                stored collection changes underneath it.

        Returns:
            Whatever fn returned on the attempt that was persisted

        Raises:
            ConcurrentModificationException: If every attempt conflicted
            StorageException: If the store fails
        """
        ...

    @abstractmethod
    async def clear(self) -> None:
        """Remove every stored plan."""
        ...
