"""Request dispatch for the compass listener.

Turns named actions coming from a host bridge into listener calls and
wraps the answers in JSON-serializable results.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Sequence

from .core.types import ListenerState
from .listener import CompassError, CompassListener, SensorUnavailableError

logger = logging.getLogger(__name__)


class ResultStatus(Enum):
    """Outcome of a dispatched action."""
    OK = "OK"
    ERROR = "ERROR"
    IO_EXCEPTION = "IO_EXCEPTION"
    JSON_EXCEPTION = "JSON_EXCEPTION"


@dataclass(frozen=True)
class PluginResult:
    """Result sent back to the caller of an action."""
    status: ResultStatus
    message: Any = None

    @property
    def ok(self) -> bool:
        return self.status is ResultStatus.OK

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {"status": self.status.value, "message": self.message}

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


Responder = Callable[[PluginResult], None]


class CompassPlugin:
    """Dispatches compass actions to a CompassListener.

    Supported actions: ``start``, ``stop``, ``getStatus``, ``getHeading``,
    ``setTimeout`` and ``getTimeout``.
    """

    def __init__(self, listener: CompassListener):
        self._listener = listener
        self._actions = {
            "start": self._start,
            "stop": self._stop,
            "getStatus": self._get_status,
            "getHeading": self._get_heading,
            "setTimeout": self._set_timeout,
            "getTimeout": self._get_timeout,
        }

    @property
    def listener(self) -> CompassListener:
        return self._listener

    def execute(self, action: str, args: Optional[Sequence] = None,
                respond: Optional[Responder] = None) -> bool:
        """Execute an action.

        Args:
            action: Action name.
            args: Positional action arguments.
            respond: Receives the result(s) of the action. ``getHeading``
                may respond a second time, later, if the start times out.

        Returns:
            True if the action is supported.
        """
        handler = self._actions.get(action)
        if handler is None:
            logger.warning("Unsupported action: %s", action)
            return False

        if respond is None:
            respond = _discard
        logger.debug("Executing %s%s", action, list(args) if args else "")
        handler(list(args) if args else [], respond)
        return True

    def on_destroy(self) -> None:
        """Host is tearing the plugin down."""
        self._listener.close()

    def on_reset(self) -> None:
        """Host navigated away and its listeners are gone."""
        self._listener.stop()

    def _start(self, args: list, respond: Responder) -> None:
        self._listener.start()

    def _stop(self, args: list, respond: Responder) -> None:
        self._listener.stop()

    def _get_status(self, args: list, respond: Responder) -> None:
        respond(PluginResult(ResultStatus.OK, int(self._listener.get_status())))

    def _get_heading(self, args: list, respond: Responder) -> None:
        def on_error(error: CompassError) -> None:
            respond(PluginResult(ResultStatus.ERROR, str(error)))

        try:
            reading = self._listener.get_heading(on_error=on_error)
        except SensorUnavailableError:
            respond(PluginResult(ResultStatus.IO_EXCEPTION,
                                 int(ListenerState.ERROR_FAILED_TO_START)))
            return

        respond(PluginResult(ResultStatus.OK, reading.to_dict()))

    def _set_timeout(self, args: list, respond: Responder) -> None:
        try:
            timeout_ms = _int_arg(args, 0)
        except ValueError as e:
            logger.warning("Bad setTimeout arguments: %s", e)
            respond(PluginResult(ResultStatus.JSON_EXCEPTION, str(e)))
            return
        self._listener.set_timeout(timeout_ms)

    def _get_timeout(self, args: list, respond: Responder) -> None:
        respond(PluginResult(ResultStatus.OK, self._listener.get_timeout()))


def _int_arg(args: list, index: int) -> int:
    """Read an integer argument.

    Raises:
        ValueError: If the argument is missing or not an integer.
    """
    if index >= len(args):
        raise ValueError(f"Missing argument {index}")
    value = args[index]
    if isinstance(value, bool):
        raise ValueError(f"Argument {index} is not an integer: {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"Argument {index} is not an integer: {value!r}")
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Argument {index} is not an integer: {value!r}") from e


def _discard(result: PluginResult) -> None:
    pass
