"""Key-value store interface backing the installment collection."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class StoredItem:
    """A stored string blob and the version stamp it was read at."""

    value: str
    version: int


class KeyValueStore(ABC):
    """
    Abstract get-by-key / set-by-key store over string blobs.

    Every successful write bumps the item's version, which lets callers
    perform compare-and-swap updates of a whole document.
    """

    @abstractmethod
    async def get_item(self, key: str) -> Optional[StoredItem]:
        """
        Read the value stored under a key.

        Args:
            key: Storage key

        Returns:
            The stored item, or None if the key is absent

        Raises:
            StorageException: If the store cannot be read
        """
        ...

    @abstractmethod
    async def set_item(
        self,
        key: str,
        value: str,
        expected_version: int | None = None,
    ) -> int:
        """
        Write a value under a key.

        Args:
            key: Storage key
            value: Serialized document
            expected_version: Version the caller read (0 when the key was
                absent). None writes unconditionally.

        Returns:
            The new version of the item

        Raises:
            ConcurrentModificationException: If the stored version differs
                from expected_version
            StorageException: If the store cannot be written
        """
        ...

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        """
        Delete a key. Removing an absent key is not an error.

        Raises:
            StorageException: If the store cannot be written
        """
        ...
