from abc import ABC, abstractmethod


class DedupCachePort(ABC):
    @abstractmethod
    def claim(self, event_id: str) -> None:
        """
        Record event_id as processed.
        Raises DuplicateEvent if it was already recorded since the last reset.
        """
        raise NotImplementedError

    @abstractmethod
    def seen(self, event_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def reset_if_full(self) -> int:
        """Clear the whole set when it exceeds capacity. Returns the number of ids dropped."""
        raise NotImplementedError
