"""Dependency injection container with constructor autowiring.

Bindings map an interface (any class) to an instance, a factory, or a
concrete class. Unbound concrete classes are autowired: their ``__init__``
parameters annotated with a class are resolved recursively, parameters
with defaults keep them, anything else is a resolution error. A class
that sets ``autowire = False`` must be bound to be resolvable.

An ``HTTPError`` raised by a constructor propagates as-is.

Interfaces may also be named by import string (``"myapp.services:Mailer"``
or ``"myapp.services.Mailer"``), which is how routes and middleware lists
refer to classes without importing them.
"""

import importlib
import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, cast, runtime_checkable

from perch._internal.signatures import bindable_parameters, class_annotation, split_arguments
from perch.errors import DependencyResolutionError, HTTPError

logger = logging.getLogger("perch.ioc")


@runtime_checkable
class DependencyResolver(Protocol):
    """Anything that can turn a class (or its import string) into an instance."""

    def resolve[T](self, interface: type[T] | str) -> T: ...


@dataclass(frozen=True, slots=True)
class _Binding:
    """How to produce an instance for one interface."""

    factory: Callable[..., Any]
    shared: bool


def import_class(name: str) -> type:
    """Import a class from ``"module:Class"`` or ``"module.Class"``.

    Raises ``DependencyResolutionError`` when the module or attribute is
    missing, or the attribute is not a class.
    """
    if ":" in name:
        module_path, _, attr_name = name.partition(":")
    else:
        module_path, _, attr_name = name.rpartition(".")
    if not module_path or not attr_name:
        msg = f"{name!r} is not an import string (expected 'module:Class')"
        raise DependencyResolutionError(msg)
    try:
        module = importlib.import_module(module_path)
        obj = getattr(module, attr_name)
    except (ImportError, AttributeError) as exc:
        msg = f"Class {name} does not exist"
        raise DependencyResolutionError(msg) from exc
    if not isinstance(obj, type):
        msg = f"{name!r} resolved to {type(obj).__name__}, not a class"
        raise DependencyResolutionError(msg)
    return obj


class Container:
    """The default ``DependencyResolver``.

    Usage::

        container = Container()
        container.bind_instance(Environment, env)
        container.bind_factory(Mailer, lambda: SmtpMailer("localhost"), shared=True)
        container.bind_class(UserRepository, InMemoryUserRepository, shared=True)

        service = container.resolve(SignupService)  # autowired

    Not thread-safe during binding. Bind at startup, resolve per request.
    """

    __slots__ = ("_bindings", "_instances", "_resolving")

    def __init__(self) -> None:
        self._bindings: dict[type, _Binding] = {}
        self._instances: dict[type, Any] = {}
        self._resolving: list[type] = []

    # -- Binding --

    def bind_instance(self, interface: type, instance: object) -> None:
        """Always resolve *interface* to *instance*."""
        self.unbind(interface)
        self._instances[interface] = instance

    def bind_factory(
        self,
        interface: type,
        factory: Callable[..., Any],
        *,
        shared: bool = False,
    ) -> None:
        """Resolve *interface* by calling *factory*.

        The factory's own class-typed parameters are resolved first. With
        ``shared=True`` the first result is kept and reused.
        """
        self.unbind(interface)
        self._bindings[interface] = _Binding(factory=factory, shared=shared)

    def bind_class(self, interface: type, concrete: type, *, shared: bool = False) -> None:
        """Resolve *interface* by autowiring *concrete*."""
        self.bind_factory(interface, lambda: self._build(concrete), shared=shared)

    def has_binding(self, interface: type) -> bool:
        """True if *interface* has an explicit binding."""
        return interface in self._instances or interface in self._bindings

    def unbind(self, interface: type) -> None:
        """Remove any binding (and shared instance) for *interface*."""
        self._instances.pop(interface, None)
        self._bindings.pop(interface, None)

    # -- Resolution --

    def resolve[T](self, interface: type[T] | str) -> T:
        """Return an instance of *interface*.

        Raises ``DependencyResolutionError`` if it cannot be built.
        """
        cls = import_class(interface) if isinstance(interface, str) else interface

        if cls in self._instances:
            return cast(T, self._instances[cls])

        if cls in self._resolving:
            chain = " -> ".join(c.__qualname__ for c in (*self._resolving, cls))
            msg = f"Circular dependency detected: {chain}"
            raise DependencyResolutionError(msg)

        self._resolving.append(cls)
        try:
            binding = self._bindings.get(cls)
            if binding is None:
                return cast(T, self._build(cls))
            instance = self.call(binding.factory)
            if binding.shared:
                self._instances[cls] = instance
            return cast(T, instance)
        finally:
            self._resolving.pop()

    def call(self, func: Callable[..., Any]) -> Any:
        """Call *func* with its class-typed parameters resolved."""
        try:
            params = bindable_parameters(func)
        except (NameError, TypeError, ValueError) as exc:
            name = getattr(func, "__qualname__", repr(func))
            msg = f"Cannot inspect the signature of {name}: {exc}"
            raise DependencyResolutionError(msg) from exc
        values = self._resolve_parameters(params, func)
        args, kwargs = split_arguments(params, values)
        return func(*args, **kwargs)

    def _build(self, cls: type) -> Any:
        """Autowire an unbound concrete class."""
        if inspect.isabstract(cls) or getattr(cls, "_is_protocol", False):
            msg = f"Cannot instantiate {cls.__qualname__}: it is abstract and has no binding"
            raise DependencyResolutionError(msg)
        if not getattr(cls, "autowire", True):
            msg = f"{cls.__qualname__} is never autowired; bind it explicitly"
            raise DependencyResolutionError(msg)

        if cls.__init__ is object.__init__:
            return cls()

        logger.debug("Autowiring %s", cls.__qualname__)
        try:
            params = bindable_parameters(cls.__init__)[1:]
        except ValueError:
            # C-level __init__ without a signature
            params = []
        except (NameError, TypeError) as exc:
            msg = f"Cannot inspect the constructor of {cls.__qualname__}: {exc}"
            raise DependencyResolutionError(msg) from exc
        values = self._resolve_parameters(params, cls)
        args, kwargs = split_arguments(params, values)
        try:
            return cls(*args, **kwargs)
        except (DependencyResolutionError, HTTPError):
            raise
        except Exception as exc:
            msg = f"Failed to construct {cls.__qualname__}: {exc}"
            raise DependencyResolutionError(msg) from exc

    def _resolve_parameters(
        self,
        params: list[inspect.Parameter],
        owner: object,
    ) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for param in params:
            annotation = class_annotation(param)
            if annotation is not None:
                try:
                    values[param.name] = self.resolve(annotation)
                    continue
                except DependencyResolutionError:
                    if param.default is inspect.Parameter.empty:
                        raise
            if param.default is inspect.Parameter.empty:
                name = getattr(owner, "__qualname__", repr(owner))
                msg = f"No default value available for {param.name} in {name}"
                raise DependencyResolutionError(msg)
        return values
