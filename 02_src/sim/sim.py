"""SIM implementation - hardcoded workload for exercising the SDK."""

import asyncio
import random
from typing import Protocol

from faultline import EventHint, Hub, Scope, Severity, SyntheticException, get_current_hub
from faultline.logging_config import get_logger

logger = get_logger(__name__)


class ISim(Protocol):
    """Generate telemetry. Hardcoded scenario of virtual users."""

    async def start(self) -> None:
        """Start hardcoded scenario."""
        ...

    async def stop(self) -> None:
        """Stop scenario."""
        ...


class CheckoutError(Exception):
    """Failure raised by the simulated checkout flow."""


# Virtual users and their steps: (kind, payload)
VIRTUAL_USERS = [
    {"id": "user_001", "username": "alice", "ip_address": "10.0.0.1"},
    {"id": "user_002", "username": "bob", "ip_address": "10.0.0.2"},
    {"id": "user_003", "username": "charlie", "ip_address": "10.0.0.3"},
]

STEPS_PER_USER = [
    [("navigate", "/catalog"), ("message", "Catalog opened"), ("handled", "cart is empty")],
    [("navigate", "/cart"), ("handled", "coupon expired"), ("unhandled", "payment gateway timeout")],
    [("navigate", "/profile"), ("message", "Profile saved"), ("navigate", "/logout")],
]


class Sim:
    """SIM with hardcoded scenario.

    Each virtual user runs on its own hub, cloned from the main hub's
    scope, with its own session.
    """

    def __init__(
        self,
        hub: Hub | None = None,
        min_delay: float = 0.1,
        max_delay: float = 0.5,
    ):
        self._hub = hub
        self._min_delay = min_delay
        self._max_delay = max_delay
        self._running = False
        self._task: asyncio.Task | None = None
        self.event_ids: list[str] = []

    async def start(self) -> None:
        """Start hardcoded scenario in the background."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self.run_scenario())

    async def stop(self) -> None:
        """Stop scenario."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    async def wait(self) -> None:
        """Wait for the background scenario to finish."""
        if self._task:
            await self._task

    async def run_scenario(self) -> None:
        """Run every virtual user's steps, one user at a time."""
        self._running = True
        base_hub = self._hub or get_current_hub()

        try:
            for user, steps in zip(VIRTUAL_USERS, STEPS_PER_USER):
                if not self._running:
                    break

                hub = Hub(base_hub.get_client(), Scope.clone(base_hub.get_scope()))
                hub.set_user(user)
                hub.set_tag("sim.user", user["username"])
                hub.start_session()

                for kind, payload in steps:
                    if not self._running:
                        break
                    self._run_step(hub, kind, payload)
                    await asyncio.sleep(random.uniform(self._min_delay, self._max_delay))

                hub.end_session()
                logger.info("SIM: %s finished %s steps", user["username"], len(steps))

        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error("SIM scenario error: %s", e)
        finally:
            self._running = False

    def _run_step(self, hub: Hub, kind: str, payload: str) -> None:
        if kind == "navigate":
            hub.add_breadcrumb({"category": "navigation", "data": {"to": payload}})
        elif kind == "message":
            self.event_ids.append(hub.capture_message(payload, Severity.INFO))
        elif kind == "handled":
            try:
                raise CheckoutError(payload)
            except CheckoutError as e:
                self.event_ids.append(hub.capture_exception(e))
        elif kind == "unhandled":
            error = CheckoutError(payload)
            # What a global error hook reports for an uncaught error
            hint = EventHint(
                original_exception=error,
                synthetic_exception=SyntheticException(),
                mechanism={"type": "onerror", "handled": False},
            )
            self.event_ids.append(hub.capture_exception(error, hint))
        else:
            logger.warning("SIM: unknown step %s", kind)
            return

        logger.info("SIM: %s %s", kind, payload)
