"""Tests for arbor.middleware.resolver: shared middleware instances."""

import pytest

from arbor.errors import InvalidMiddlewareType, UnregisteredDependency
from arbor.http.headers import Headers
from arbor.http.request import Request
from arbor.http.response import Response
from arbor.injector import DependencyInjector
from arbor.middleware import AsyncMiddleware, Middleware, MiddlewareResolver
from arbor.server.pipeline import Continuation


def _make_request(path: str = "/") -> Request:
    return Request(method="GET", path=path, headers=Headers(()), query={}, cookies={})


class TestResolve:
    def test_constructs_once_per_type(self) -> None:
        constructed: list[int] = []

        class Auth(Middleware):
            def __init__(self) -> None:
                constructed.append(1)

            def run(self, request, response, proceed) -> None:
                proceed()

        resolver = MiddlewareResolver(DependencyInjector())
        first = resolver.resolve(Auth)
        second = resolver.resolve(Auth)

        assert first is second
        assert len(constructed) == 1
        assert len(resolver.descriptors) == 1

    def test_sync_middleware_is_bound_run(self) -> None:
        class Tag(Middleware):
            def run(self, request, response, proceed) -> None:
                proceed()

        resolver = MiddlewareResolver(DependencyInjector())
        handler = resolver.resolve(Tag)
        descriptor = resolver.descriptors[0]
        assert handler == descriptor.instance.run
        assert descriptor.identity is Tag

    async def test_async_middleware_error_goes_to_proceed(self) -> None:
        class Explodes(AsyncMiddleware):
            async def run(self, request, response, proceed) -> None:
                raise ValueError("nope")

        resolver = MiddlewareResolver(DependencyInjector())
        handler = resolver.resolve(Explodes)

        proceed = Continuation()
        await handler(_make_request(), Response(), proceed)
        assert isinstance(proceed.error, ValueError)

    def test_injects_services(self) -> None:
        class Sessions:
            pass

        class Auth(Middleware):
            inject = ("sessions",)

            def run(self, request, response, proceed) -> None:
                proceed()

        injector = DependencyInjector()
        injector.register("sessions", Sessions)
        resolver = MiddlewareResolver(injector)
        resolver.resolve(Auth)

        assert resolver.descriptors[0].instance.sessions is injector.get("sessions")

    def test_missing_service_fails(self) -> None:
        class Auth(Middleware):
            inject = ("sessions",)

            def run(self, request, response, proceed) -> None:
                proceed()

        resolver = MiddlewareResolver(DependencyInjector())
        with pytest.raises(UnregisteredDependency):
            resolver.resolve(Auth)
        assert resolver.descriptors == ()

    def test_rejects_class_without_run(self) -> None:
        class NotMiddleware:
            pass

        resolver = MiddlewareResolver(DependencyInjector())
        with pytest.raises(InvalidMiddlewareType, match="run"):
            resolver.resolve(NotMiddleware)

    def test_rejects_instances(self) -> None:
        class Tag(Middleware):
            def run(self, request, response, proceed) -> None:
                proceed()

        resolver = MiddlewareResolver(DependencyInjector())
        with pytest.raises(InvalidMiddlewareType, match="class"):
            resolver.resolve(Tag())  # type: ignore[arg-type]


def _named_auth(marker: str) -> type:
    class Auth(Middleware):
        def run(self, request, response, proceed) -> None:
            request.state.marker = marker
            proceed()

    return Auth


class TestIdentityPolicy:
    def test_type_identity_keeps_same_named_classes_apart(self) -> None:
        first, second = _named_auth("first"), _named_auth("second")
        resolver = MiddlewareResolver(DependencyInjector(), identity="type")
        assert resolver.resolve(first) is not resolver.resolve(second)
        assert len(resolver.descriptors) == 2

    def test_name_identity_collapses_same_named_classes(self) -> None:
        first, second = _named_auth("first"), _named_auth("second")
        resolver = MiddlewareResolver(DependencyInjector(), identity="name")
        assert resolver.resolve(first) is resolver.resolve(second)
        assert resolver.descriptors[0].identity == "Auth"
        assert type(resolver.descriptors[0].instance) is first
