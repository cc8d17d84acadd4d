"""Inversion of control: the dependency resolver the dispatcher builds with.

    from perch.ioc import Container

    container = Container()
    container.bind_instance(UserRepository, InMemoryUserRepository())
    controller = container.resolve(UserController)
"""

from perch.ioc.container import Container, DependencyResolver

__all__ = ["Container", "DependencyResolver"]
