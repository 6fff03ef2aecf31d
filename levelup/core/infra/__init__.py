"""
Infrastructure orchestration.

`ApplicationContext` owns startup and shutdown order for logging, balance
configuration, storage, the event bus and the service container.
"""

from levelup.core.infra.application_context import ApplicationContext

__all__ = ["ApplicationContext"]
