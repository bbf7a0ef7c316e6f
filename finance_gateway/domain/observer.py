"""Observer hook for reporting engine events without coupling domain code to logging"""

from typing import Any, Optional, Protocol


class EngineObserver(Protocol):
    """Receives named events with structured data; return value is ignored"""

    def event(self, name: str, **data: Any) -> None: ...


class NullObserver:
    """Default observer: drops every event"""

    def event(self, name: str, **data: Any) -> None:
        return None


def resolve_observer(observer: Optional[EngineObserver]) -> EngineObserver:
    return observer if observer is not None else NullObserver()
