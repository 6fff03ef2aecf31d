"""
Tiered listener execution for the EventBus.

Listeners are partitioned by priority:
- CRITICAL / HIGH: sequential, each wrapped in `asyncio.wait_for`.
- NORMAL: `asyncio.gather`.

Every listener runs with error isolation: an exception (or timeout) is
logged through `handle_listener_error` and the listener's result becomes
`None`. A failing listener never affects the publisher or other listeners.
"""

from __future__ import annotations

import asyncio
from logging import Logger
from typing import Any, Optional

from levelup.core.event.types import EventListener, EventPayload, ListenerPriority


def handle_listener_error(
    *,
    logger: Logger,
    event_name: str,
    listener: EventListener,
    exc: BaseException,
) -> None:
    """Log a listener failure with full context. Never raises."""
    logger.error(
        "EventBus listener error",
        extra={
            "event_name": event_name,
            "listener_id": listener.identifier,
            "priority": listener.priority.name,
            "error": str(exc),
            "error_type": type(exc).__name__,
        },
        exc_info=(type(exc), exc, exc.__traceback__),
    )


class EventScheduler:
    """Executes one publish's listeners with tiered concurrency."""

    async def execute(
        self,
        *,
        event_name: str,
        payload: EventPayload,
        listeners: list[EventListener],
        logger: Logger,
        critical_timeout: Optional[float],
        high_timeout: Optional[float],
    ) -> list[Any]:
        """
        Run `listeners` (already sorted) and return the CRITICAL, HIGH and
        NORMAL results in order.
        """
        tiers: dict[ListenerPriority, list[EventListener]] = {p: [] for p in ListenerPriority}
        for listener in listeners:
            tiers[listener.priority].append(listener)

        results: list[Any] = []

        for priority, timeout in (
            (ListenerPriority.CRITICAL, critical_timeout),
            (ListenerPriority.HIGH, high_timeout),
        ):
            for listener in tiers[priority]:
                results.append(
                    await self._run_with_timeout(
                        listener=listener,
                        event_name=event_name,
                        payload=payload,
                        logger=logger,
                        timeout=timeout,
                    )
                )

        if tiers[ListenerPriority.NORMAL]:
            results.extend(
                await asyncio.gather(
                    *[
                        self._run_listener(
                            listener=lst, event_name=event_name, payload=payload, logger=logger
                        )
                        for lst in tiers[ListenerPriority.NORMAL]
                    ]
                )
            )

        return results

    async def _run_with_timeout(
        self,
        *,
        listener: EventListener,
        event_name: str,
        payload: EventPayload,
        logger: Logger,
        timeout: Optional[float],
    ) -> Any:
        runner = self._run_listener(
            listener=listener, event_name=event_name, payload=payload, logger=logger
        )
        if timeout is None or timeout <= 0:
            return await runner

        try:
            return await asyncio.wait_for(runner, timeout=timeout)
        except asyncio.TimeoutError as exc:
            logger.error(
                "EventBus listener timeout",
                extra={
                    "event_name": event_name,
                    "listener_id": listener.identifier,
                    "priority": listener.priority.name,
                    "timeout_seconds": timeout,
                },
            )
            handle_listener_error(
                logger=logger, event_name=event_name, listener=listener, exc=exc
            )
            return None

    async def _run_listener(
        self,
        *,
        listener: EventListener,
        event_name: str,
        payload: EventPayload,
        logger: Logger,
    ) -> Any:
        """Await async callbacks; run sync callbacks in the default executor."""
        try:
            if asyncio.iscoroutinefunction(listener.callback):
                return await listener.callback(payload)

            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, listener.callback, payload)
        except Exception as exc:
            handle_listener_error(
                logger=logger, event_name=event_name, listener=listener, exc=exc
            )
            return None

