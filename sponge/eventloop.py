"""Polls file descriptors and runs callbacks when they become ready."""

from __future__ import annotations

import enum
import errno
import select
from collections.abc import Callable
from dataclasses import dataclass

from sponge.file_descriptor import FileDescriptor
from sponge.util import UnixError, system_call

Callback = Callable[[], None]
Interest = Callable[[], bool]


class Direction(enum.IntEnum):
    """Whether a rule waits for its descriptor to be readable or writable."""

    IN = select.POLLIN
    OUT = select.POLLOUT


class EventResult(enum.Enum):
    """Outcome of one call to EventLoop.wait_next_event."""

    SUCCESS = enum.auto()
    TIMEOUT = enum.auto()
    EXIT = enum.auto()


@dataclass
class _Rule:
    fd: FileDescriptor
    direction: Direction
    callback: Callback
    interest: Interest | None = None
    cancel: Callback | None = None

    def service_count(self) -> int:
        if self.direction is Direction.IN:
            return self.fd.read_count
        return self.fd.write_count

    def interested(self) -> bool:
        return self.interest is None or bool(self.interest())

    def run_cancel(self) -> None:
        if self.cancel is not None:
            self.cancel()


class EventLoop:
    """Holds rules and, on each wait, polls their descriptors and runs callbacks.

    A rule is cancelled (its ``cancel`` callback runs and it is dropped) when
    its descriptor is closed, reaches EOF while reading, or hangs up.
    Every callback must read or write its descriptor, or its interest must
    turn false; otherwise a busy wait is reported as a RuntimeError.
    """

    def __init__(self) -> None:
        self._rules: list[_Rule] = []

    def add_rule(
        self,
        fd: FileDescriptor,
        direction: Direction,
        callback: Callback,
        interest: Interest | None = None,
        cancel: Callback | None = None,
    ) -> None:
        """Run ``callback`` whenever ``fd`` is ready in ``direction`` and ``interest()`` holds."""
        self._rules.append(
            _Rule(fd.duplicate(), Direction(direction), callback, interest, cancel)
        )

    def _drop(self, rule: _Rule) -> None:
        rule.run_cancel()
        self._rules = [r for r in self._rules if r is not rule]

    def wait_next_event(self, timeout_ms: int) -> EventResult:
        """Poll once, waiting up to ``timeout_ms`` (negative waits forever), and dispatch."""
        polled: list[tuple[_Rule, int]] = []
        for rule in list(self._rules):
            if (rule.direction is Direction.IN and rule.fd.eof) or rule.fd.closed:
                self._drop(rule)
                continue
            polled.append((rule, int(rule.direction) if rule.interested() else 0))

        if not any(events for _, events in polled):
            return EventResult.EXIT

        masks: dict[int, int] = {}
        for rule, events in polled:
            masks[rule.fd.fd_num] = masks.get(rule.fd.fd_num, 0) | events
        poller = select.poll()
        for fd_num, mask in masks.items():
            poller.register(fd_num, mask)

        try:
            ready = system_call("poll", poller.poll, timeout_ms)
        except UnixError as exc:
            if exc.errno == errno.EINTR:
                return EventResult.EXIT
            raise
        except InterruptedError:
            return EventResult.EXIT
        if not ready:
            return EventResult.TIMEOUT
        revents_by_fd = dict(ready)

        for rule, events in polled:
            revents = revents_by_fd.get(rule.fd.fd_num, 0)
            if revents & (select.POLLERR | select.POLLNVAL):
                raise RuntimeError("EventLoop: error on polled file descriptor")

            poll_ready = bool(revents & events)
            hangup = bool(revents & select.POLLHUP)
            if hangup and events and not poll_ready:
                self._drop(rule)
                continue

            if poll_ready:
                count_before = rule.service_count()
                rule.callback()
                if count_before == rule.service_count() and rule.interested():
                    raise RuntimeError(
                        "EventLoop: busy wait detected: callback did not read/write fd "
                        "and is still interested"
                    )

        return EventResult.SUCCESS