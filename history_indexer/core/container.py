# history_indexer/core/container.py

import inspect
import logging
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Type, TypeVar

from .logging import IndexerLogger, log_with_context

T = TypeVar('T')

Factory = Callable[['IndexerContainer'], Any]


class Registration(NamedTuple):
    implementation: Optional[Type]
    factory: Optional[Factory]
    is_singleton: bool = True


class IndexerContainer:
    """
    Service registry for the indexer process.

    Classes are built by matching constructor annotations against registered
    types; a parameter named `config` receives the IndexerConfig. Everything
    registered here lives for the lifetime of the container.
    """

    def __init__(self, config):
        self._config = config
        self._registrations: Dict[Type, Registration] = {}
        self._instances: Dict[Type, Any] = {}
        self._resolving: List[Type] = []

        self._logger = IndexerLogger.get_logger('core.container')

    @property
    def config(self):
        return self._config

    def register_singleton(self, interface: Type[T], implementation: Type[T]) -> 'IndexerContainer':
        return self._register(interface, Registration(implementation, None),
                              implementation=implementation.__name__)

    def register_factory(self, interface: Type[T], factory_func: Callable[['IndexerContainer'], T]) -> 'IndexerContainer':
        return self._register(interface, Registration(None, factory_func),
                              factory_func=factory_func.__name__)

    def register_instance(self, interface: Type[T], instance: T) -> 'IndexerContainer':
        self._instances[interface] = instance
        return self._register(interface, Registration(type(instance), None),
                              instance_type=type(instance).__name__)

    def _register(self, interface: Type, registration: Registration, **context) -> 'IndexerContainer':
        log_with_context(self._logger, logging.DEBUG, "Service registered",
                         interface=interface.__name__, **context)
        self._registrations[interface] = registration
        return self

    def get(self, service_type: Type[T]) -> T:
        name = service_type.__name__

        if service_type in self._resolving:
            chain = [t.__name__ for t in self._resolving] + [name]
            raise ValueError(f"Circular dependency detected: {' -> '.join(chain)}")

        registration = self._registrations.get(service_type)
        if registration is None:
            raise ValueError(f"Service {name} not registered")

        if registration.is_singleton and service_type in self._instances:
            return self._instances[service_type]

        self._resolving.append(service_type)
        try:
            if registration.factory is not None:
                instance = registration.factory(self)
            else:
                instance = self._build(registration.implementation)
        except Exception as e:
            log_with_context(self._logger, logging.ERROR, "Could not build service",
                             service_type=name, error=str(e), exception_type=type(e).__name__)
            raise
        finally:
            self._resolving.pop()

        if registration.is_singleton:
            self._instances[service_type] = instance

        log_with_context(self._logger, logging.DEBUG, "Service built",
                         service_type=name, instance_type=type(instance).__name__)
        return instance

    def _build(self, implementation: Type):
        kwargs = {}
        for name, param in inspect.signature(implementation.__init__).parameters.items():
            if name == 'self' or param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue

            if param.annotation in self._registrations:
                kwargs[name] = self.get(param.annotation)
            elif name == 'config':
                kwargs[name] = self._config
            # anything else falls back to its default

        return implementation(**kwargs)

    def has_service(self, service_type: Type) -> bool:
        return service_type in self._registrations

    def has_instance(self, service_type: Type) -> bool:
        return service_type in self._instances

    def get_service_info(self) -> dict:
        services = {
            service_type.__name__: {
                'implementation': reg.implementation.__name__ if reg.implementation else 'factory',
                'factory': reg.factory.__name__ if reg.factory else None,
                'is_singleton': reg.is_singleton,
                'is_cached': service_type in self._instances,
            }
            for service_type, reg in self._registrations.items()
        }
        return {
            'registered_services': len(self._registrations),
            'cached_instances': len(self._instances),
            'services': services,
        }
