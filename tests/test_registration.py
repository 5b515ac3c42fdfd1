"""Tests for arbor.registration: flattening controller trees into routes."""

import pytest

from arbor.config import ServerConfig
from arbor.controller import (
    CompoundController,
    ControllerKind,
    MethodDispatcher,
    SimpleController,
    classify,
)
from arbor.errors import (
    ConfigurationError,
    InvalidControllerType,
    RouteCollision,
    UnregisteredDependency,
)
from arbor.injector import DependencyInjector
from arbor.middleware import Middleware, MiddlewareResolver
from arbor.registration import ControllerRegistrar, join_path, route_path
from arbor.server.application import HTTPApplication


def _registrar(config: ServerConfig | None = None) -> ControllerRegistrar:
    injector = DependencyInjector()
    return ControllerRegistrar(
        HTTPApplication(config),
        injector,
        MiddlewareResolver(injector),
    )


def _installed(registrar: ControllerRegistrar) -> list[tuple[str, str]]:
    return [(route.method, route.path) for route in registrar.installed]


def handler_a(request, response):
    response.send("a")


def h1(request, response):
    response.send("h1")


def h2(request, response):
    response.send("h2")


class TestJoinPath:
    def test_empty_segment_is_parent(self) -> None:
        assert join_path("/api", "") == "/api"

    def test_appends_segment(self) -> None:
        assert join_path("/api", "cart") == "/api/cart"

    def test_root(self) -> None:
        assert join_path("", "api") == "/api"
        assert route_path("") == "/"

    def test_strips_slashes(self) -> None:
        assert join_path("/api", "/cart/") == "/api/cart"


class TestSimpleController:
    def test_flattens_route_tree(self) -> None:
        class Foo(SimpleController):
            routes = {
                "": handler_a,
                "x": MethodDispatcher(get=h1, post=h2),
            }

        registrar = _registrar()
        registrar.register("foo", Foo)
        assert _installed(registrar) == [
            ("GET", "/foo"),
            ("GET", "/foo/x"),
            ("POST", "/foo/x"),
        ]

    def test_nested_mapping_recurses(self) -> None:
        class Shop(SimpleController):
            routes = {
                "items": {
                    "": h1,
                    "{id:int}": MethodDispatcher(get=h1, delete=h2),
                },
            }

        registrar = _registrar()
        registrar.register("", Shop)
        assert _installed(registrar) == [
            ("GET", "/items"),
            ("GET", "/items/{id:int}"),
            ("DELETE", "/items/{id:int}"),
        ]

    def test_root_mount(self) -> None:
        class Home(SimpleController):
            routes = {"": h1}

        registrar = _registrar()
        registrar.register("", Home)
        assert _installed(registrar) == [("GET", "/")]

    def test_every_route_shares_one_chain(self) -> None:
        class First(Middleware):
            def run(self, request, response, proceed) -> None:
                proceed()

        class Second(Middleware):
            def run(self, request, response, proceed) -> None:
                proceed()

        class Guarded(SimpleController):
            middleware = [First, Second]
            routes = {"a": h1, "b": MethodDispatcher(put=h2)}

        registrar = _registrar()
        registrar.register("", Guarded)
        chains = {route.middleware for route in registrar.installed}
        assert len(chains) == 1
        (chain,) = chains
        assert len(chain) == 2

    def test_all_verb_installs_wildcard(self) -> None:
        class Wildcard(SimpleController):
            routes = {"": MethodDispatcher(all=h1)}

        registrar = _registrar()
        registrar.register("any", Wildcard)
        assert _installed(registrar) == [("ALL", "/any")]

    def test_controller_is_injected(self) -> None:
        class Carts:
            pass

        class CartController(SimpleController):
            inject = ("carts",)
            routes = {"": h1}

        registrar = _registrar()
        registrar._injector.register("carts", Carts)
        registrar.register("cart", CartController)
        controller = registrar.controllers[0]
        assert controller.carts is registrar._injector.get("carts")

    def test_missing_dependency_fails(self) -> None:
        class CartController(SimpleController):
            inject = ("carts",)
            routes = {"": h1}

        registrar = _registrar()
        with pytest.raises(UnregisteredDependency):
            registrar.register("cart", CartController)
        assert registrar.installed == []

    def test_class_body_handlers_are_bound(self) -> None:
        class Greeter(SimpleController):
            greeting = "hi"

            def greet(self, request, response):
                response.send(self.greeting)

            routes = {"": greet}

        registrar = _registrar()
        registrar.register("", Greeter)
        route = registrar.installed[0]
        assert route.controller == Greeter.__qualname__
        assert route.handler.__name__ == "greet"

    def test_class_in_route_tree_is_rejected(self) -> None:
        class Inner(SimpleController):
            routes = {"": h1}

        class Outer(SimpleController):
            routes = {"inner": Inner}

        with pytest.raises(ConfigurationError, match="CompoundController"):
            _registrar().register("", Outer)

    def test_invalid_node_is_rejected(self) -> None:
        class Broken(SimpleController):
            routes = {"": 42}

        with pytest.raises(ConfigurationError, match="Invalid route config"):
            _registrar().register("", Broken)

    def test_non_string_segment_is_rejected(self) -> None:
        class Broken(SimpleController):
            routes = {1: h1}

        with pytest.raises(ConfigurationError, match="strings"):
            _registrar().register("", Broken)


class CartController(SimpleController):
    routes = {
        "": MethodDispatcher(get=h1, put=h2),
        "purchase": MethodDispatcher(post=h1),
    }


class AppController(SimpleController):
    routes = {
        "": h1,
        "about": h2,
    }


class TestCompoundController:
    def test_mapping_prefixes_segments(self) -> None:
        class Root(CompoundController):
            controllers = {"cart": CartController, "": AppController}

        registrar = _registrar()
        registrar.register("", Root)

        by_controller: dict[str, list[str]] = {}
        for route in registrar.installed:
            by_controller.setdefault(route.controller, []).append(route.path)

        assert all(
            path.startswith("/cart") for path in by_controller[CartController.__qualname__]
        )
        assert by_controller[AppController.__qualname__] == ["/", "/about"]

    def test_list_mounts_all_at_same_path(self) -> None:
        class CtrlA(SimpleController):
            routes = {"a": h1, "": h1}

        class CtrlB(SimpleController):
            routes = {"b": MethodDispatcher(post=h2)}

        class X(CompoundController):
            controllers = [CtrlA, CtrlB]

        registrar = _registrar()
        registrar.register("x", X)
        assert _installed(registrar) == [
            ("GET", "/x/a"),
            ("GET", "/x"),
            ("POST", "/x/b"),
        ]

    def test_nested_config_without_instantiation(self) -> None:
        class Api(CompoundController):
            controllers = {
                "v1": {"cart": CartController},
                "v2": [CartController, AppController],
            }

        registrar = _registrar()
        registrar.register("api", Api)
        paths = {path for _, path in _installed(registrar)}
        assert "/api/v1/cart" in paths
        assert "/api/v1/cart/purchase" in paths
        assert "/api/v2" in paths
        assert "/api/v2/about" in paths
        # Api, CartController, CartController, AppController
        assert len(registrar.controllers) == 4

    def test_compound_inside_compound(self) -> None:
        class Api(CompoundController):
            controllers = {"cart": CartController}

        class Root(CompoundController):
            controllers = {"api": Api, "": AppController}

        registrar = _registrar()
        registrar.register("", Root)
        assert ("POST", "/api/cart/purchase") in _installed(registrar)
        assert ("GET", "/") in _installed(registrar)

    def test_invalid_nested_value(self) -> None:
        class Root(CompoundController):
            controllers = {"cart": "CartController"}

        with pytest.raises(InvalidControllerType):
            _registrar().register("", Root)


class TestClassify:
    def test_simple(self) -> None:
        assert classify(CartController()) is ControllerKind.SIMPLE

    def test_compound(self) -> None:
        class Root(CompoundController):
            controllers = [CartController]

        assert classify(Root()) is ControllerKind.COMPOUND

    def test_duck_typed_simple(self) -> None:
        class Duck:
            routes = {"": h1}

        assert classify(Duck()) is ControllerKind.SIMPLE

    def test_neither(self) -> None:
        class Nothing:
            pass

        with pytest.raises(InvalidControllerType):
            classify(Nothing())

    def test_both(self) -> None:
        class Confused:
            routes = {"": h1}
            controllers = {"x": CartController}

        with pytest.raises(InvalidControllerType, match="both"):
            classify(Confused())

    def test_register_rejects_non_class(self) -> None:
        with pytest.raises(InvalidControllerType):
            _registrar().register("", CartController())


class TestSharedMiddleware:
    def test_auth_constructed_once_across_controllers(self) -> None:
        constructed: list[int] = []

        class Auth(Middleware):
            def __init__(self) -> None:
                constructed.append(1)

            def run(self, request, response, proceed) -> None:
                proceed()

        class Orders(SimpleController):
            middleware = [Auth]
            routes = {"": h1}

        class Profile(SimpleController):
            middleware = [Auth]
            routes = {"": h2}

        registrar = _registrar()
        registrar.register("orders", Orders)
        registrar.register("profile", Profile)

        assert len(constructed) == 1
        orders_route, profile_route = registrar.installed
        assert orders_route.middleware[0] is profile_route.middleware[0]


class TestRouteCollisions:
    def test_later_route_wins_by_default(self) -> None:
        class First(SimpleController):
            routes = {"": h1}

        class Second(SimpleController):
            routes = {"": h2}

        registrar = _registrar()
        registrar.register("x", First)
        registrar.register("x", Second)

        routes = registrar._app.routes
        assert len(routes) == 1
        assert routes[0].controller == Second.__qualname__

    def test_error_policy_raises(self) -> None:
        class First(SimpleController):
            routes = {"": h1}

        class Second(SimpleController):
            routes = {"": h2}

        registrar = _registrar(ServerConfig(route_collisions="error"))
        registrar.register("x", First)
        with pytest.raises(RouteCollision) as exc_info:
            registrar.register("x", Second)
        assert exc_info.value.method == "GET"
        assert exc_info.value.path == "/x"


class TestMethodDispatcher:
    def test_mapping_and_keywords(self) -> None:
        dispatcher = MethodDispatcher({"GET": h1}, post=h2)
        assert dispatcher.items() == [("GET", h1), ("POST", h2)]

    def test_rejects_unknown_verb(self) -> None:
        with pytest.raises(ConfigurationError, match="trace"):
            MethodDispatcher(trace=h1)

    def test_rejects_non_callable(self) -> None:
        with pytest.raises(ConfigurationError, match="not callable"):
            MethodDispatcher(get="h1")
