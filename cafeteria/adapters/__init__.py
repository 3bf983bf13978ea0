"""Cafeteria storage adapters."""

from cafeteria.adapters.memory import (
    InMemoryMenuRepository,
    InMemoryOrderRepository,
    InMemoryUserRepository,
)

__all__ = [
    "InMemoryUserRepository",
    "InMemoryOrderRepository",
    "InMemoryMenuRepository",
]
