"""Action dispatch.

A configured command string is classified once into a small tagged variant:
``/echo <text>`` becomes an :class:`EchoAction` delivered to the notifier,
anything else a :class:`ShellAction` run as a subprocess. The schedulers only
see :meth:`ActionInvoker.invoke` and its success flag.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)

ECHO_PREFIX = "/echo"

Notifier = Callable[[str], None]


def log_notifier(message: str) -> None:
    """Default notifier: write the notice to the log."""
    logger.info("%s", message)


@dataclass(frozen=True, slots=True)
class EchoAction:
    message: str


@dataclass(frozen=True, slots=True)
class ShellAction:
    command: str


Action = EchoAction | ShellAction


def parse_action(command: str | None) -> Action | None:
    """Classify a command string. Empty commands yield None."""
    if command is None or not command.strip():
        return None
    command = command.strip()
    head = command[: len(ECHO_PREFIX)]
    rest = command[len(ECHO_PREFIX) :]
    if head.lower() == ECHO_PREFIX and (not rest or rest[0].isspace()):
        return EchoAction(message=rest.strip())
    return ShellAction(command=command)


class ActionInvoker(Protocol):
    """Executes a configured command; never raises into the caller."""

    async def invoke(self, command: str | None) -> bool:
        ...


class DefaultActionInvoker:
    """Echo to the notifier, run everything else through the shell."""

    def __init__(self, notifier: Notifier | None = None) -> None:
        self._notify = notifier or log_notifier

    async def _run_shell(self, action: ShellAction) -> bool:
        proc = await asyncio.create_subprocess_shell(
            action.command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        out, err = await proc.communicate()
        if proc.returncode != 0:
            logger.error(
                "Command failed (exit %s): %s\n%s",
                proc.returncode,
                action.command,
                err.decode("utf-8", errors="replace").strip(),
            )
            return False
        logger.info("Executed command: %s", action.command)
        if out:
            logger.debug("Command output: %s", out.decode("utf-8", errors="replace").strip())
        return True

    async def invoke(self, command: str | None) -> bool:
        action = parse_action(command)
        if action is None:
            logger.error("Cannot execute empty command")
            return False

        if isinstance(action, EchoAction):
            self._notify(action.message)
            logger.info("Printed message: %s", action.message)
            return True

        try:
            return await self._run_shell(action)
        except OSError as exc:
            logger.error("Failed to execute command %s: %s", action.command, exc)
            self._notify(f"Failed to execute command: {action.command}")
            return False
