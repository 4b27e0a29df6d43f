"""
Authorization plugin registry.

Scope providers and rate stores register themselves by name, so the
backend in use is picked from configuration without touching factory code.

Usage:
    @AuthRegistry.rate_store("memcached")
    class MemcachedRateStore:
        ...

    # Later, get by name:
    store = AuthRegistry.get_rate_store(settings.rate_limit.backend)
"""

from typing import Any, Callable, Type

from faculty_authz.core.interfaces import RateStore

from .interfaces import ScopeProvider


class AuthRegistry:
    """
    Central registry for authorization components.

    Components register themselves using decorators.
    """

    _scope_providers: dict[str, Type[ScopeProvider]] = {}
    _rate_stores: dict[str, Type[RateStore]] = {}

    # ============================================================
    # REGISTRATION DECORATORS
    # ============================================================

    @classmethod
    def scope_provider(cls, name: str) -> Callable[[Type[ScopeProvider]], Type[ScopeProvider]]:
        """
        Decorator to register a scope provider.

        Usage:
            @AuthRegistry.scope_provider("faculty")
            class FacultyScopeProvider(ScopeProvider):
                ...
        """
        def decorator(provider_class: Type[ScopeProvider]) -> Type[ScopeProvider]:
            cls._scope_providers[name] = provider_class
            return provider_class
        return decorator

    @classmethod
    def rate_store(cls, name: str) -> Callable[[type], type]:
        """
        Decorator to register a rate store backend.

        Usage:
            @AuthRegistry.rate_store("redis")
            class RedisRateStore:
                ...
        """
        def decorator(store_class: type) -> type:
            cls._rate_stores[name] = store_class
            return store_class
        return decorator

    # ============================================================
    # GETTERS
    # ============================================================

    @classmethod
    def get_scope_provider(cls, name: str, **kwargs: Any) -> ScopeProvider:
        """
        Get a scope provider by name.

        Raises:
            ValueError: If provider not found
        """
        provider_class = cls._scope_providers.get(name)
        if not provider_class:
            available = list(cls._scope_providers.keys())
            raise ValueError(
                f"Unknown scope provider: '{name}'. "
                f"Available: {available}"
            )
        return provider_class(**kwargs)

    @classmethod
    def get_rate_store(cls, name: str, **kwargs: Any) -> RateStore:
        """
        Get a rate store by name.

        Raises:
            ValueError: If store not found
        """
        store_class = cls._rate_stores.get(name)
        if not store_class:
            available = list(cls._rate_stores.keys())
            raise ValueError(
                f"Unknown rate store: '{name}'. "
                f"Available: {available}"
            )
        return store_class(**kwargs)

    # ============================================================
    # INTROSPECTION
    # ============================================================

    @classmethod
    def list_scope_providers(cls) -> list[str]:
        """List all registered scope provider names."""
        return list(cls._scope_providers.keys())

    @classmethod
    def list_rate_stores(cls) -> list[str]:
        """List all registered rate store names."""
        return list(cls._rate_stores.keys())
