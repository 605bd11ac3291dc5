from abc import ABC, abstractmethod


class INotifier(ABC):
    @abstractmethod
    def notify(self, text: str) -> None:
        """Send ``text`` best-effort. Must not raise and must not block the caller for long."""
        pass
