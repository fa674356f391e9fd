"""Process lifespan: shared resources opened when Robyn starts and released when it stops.

The gateway holds one long-lived resource, the pooled S3 client behind
``state.storage``. Handlers reach it through ``global_dependencies["state"]``.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Coroutine
from typing import Any, Generic, TypeVar

from robyn import Robyn

from app.core.logger import LogIcon, logger
from app.core.settings import settings as st

AsyncHandler = Callable[[], Coroutine[Any, Any, None]]


class State:
    """Process-wide resources keyed by event name, e.g. ``state.storage``."""

    __slots__ = ("_data",)

    def __init__(self) -> None:
        object.__setattr__(self, "_data", {})

    def __getattr__(self, name: str) -> Any:
        try:
            return self._data[name]
        except KeyError:
            raise AttributeError(f"State has no attribute '{name}'") from None

    def __setattr__(self, name: str, value: Any) -> None:
        self._data[name] = value

    def __delattr__(self, name: str) -> None:
        try:
            del self._data[name]
        except KeyError:
            raise AttributeError(f"State has no attribute '{name}'") from None

    def __contains__(self, name: str) -> bool:
        return name in self._data

    def __iter__(self):
        return iter(self._data.keys())

    # Names only: values are live clients
    def __repr__(self) -> str:
        return f"State({sorted(self._data)})"

    def get(self, name: str, default: Any = None) -> Any:
        return self._data.get(name, default)

    def clear(self) -> None:
        self._data.clear()


T = TypeVar("T")


class BaseEvent(ABC, Generic[T]):
    """One shared resource, such as the object storage client.

    ``startup`` builds it from settings; the result is published as
    ``state.<name>``. ``shutdown`` gets the same instance back.
    """

    name: str
    state: State

    @abstractmethod
    async def startup(self) -> T: ...

    async def shutdown(self, instance: T) -> None:  # noqa: B027
        """Release ``instance``. Events without connections to close skip this."""

    @classmethod
    def has_shutdown(cls) -> bool:
        return cls.shutdown is not BaseEvent.shutdown


class Lifespan:
    """Opens events in registration order and closes them in reverse.

    If one event fails to start, the events already opened are closed again
    before the error propagates.
    """

    def __init__(self, app: Robyn) -> None:
        self._app = app
        self._event_classes: list[type[BaseEvent[Any]]] = []
        self._events: list[BaseEvent[Any]] = []
        self._state: State | None = None

    def register(self, event_cls: type[BaseEvent[Any]]) -> "Lifespan":
        self._event_classes.append(event_cls)
        return self

    @property
    def state(self) -> State | None:
        return self._state

    @property
    def events(self) -> list[BaseEvent[Any]]:
        return self._events

    async def _close_opened(self) -> None:
        for event in reversed(self._events):
            if event.has_shutdown() and event.name in self._state:
                logger.info("Closing resource", icon=LogIcon.PROCESSING, resource=event.name)
                await event.shutdown(getattr(self._state, event.name))
                logger.info("Resource closed", icon=LogIcon.SUCCESS, resource=event.name)
        self._events.clear()
        self._state.clear()

    @property
    def startup(self) -> AsyncHandler:
        async def _startup() -> None:
            logger.info("Opening gateway resources", icon=LogIcon.START, version=st.API_VERSION)
            self._state = State()

            for event_cls in self._event_classes:
                event = event_cls()
                event.state = self._state

                logger.info("Opening resource", icon=LogIcon.PROCESSING, resource=event.name)
                try:
                    instance = await event.startup()
                except Exception:
                    logger.error("Resource failed to open", icon=LogIcon.ERROR, resource=event.name)
                    await self._close_opened()
                    raise
                setattr(self._state, event.name, instance)
                self._events.append(event)
                logger.info("Resource ready", icon=LogIcon.SUCCESS, resource=event.name)

            self._app.inject_global(state=self._state)
            logger.info("Gateway resources ready", icon=LogIcon.COMPLETE, resources=sorted(self._state))

        return _startup

    @property
    def shutdown(self) -> AsyncHandler:
        async def _shutdown() -> None:
            if not self._state:
                logger.info("No gateway resources to close", icon=LogIcon.WARNING)
                return

            await self._close_opened()
            logger.info("Gateway resources closed", icon=LogIcon.COMPLETE)

        return _shutdown


def create_lifespan(app: Robyn) -> Lifespan:
    return Lifespan(app)
