"""Server import resolution: ``"module:attribute"`` strings to Server instances."""

import importlib

from arbor.app import Server


def resolve_server(import_string: str) -> Server:
    """Resolve an import string to an arbor Server instance.

    Accepts ``"module:attribute"``. When the attribute is omitted it
    defaults to ``"server"`` (``"myapp"`` resolves to ``myapp.server``).

    The attribute may also be a Server subclass or a factory function;
    either is called with no arguments.

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist on the module.
        TypeError: If the resolved object is not a Server.
    """
    module_path, _, attr_name = import_string.partition(":")
    if not attr_name:
        attr_name = "server"

    module = importlib.import_module(module_path)
    obj = getattr(module, attr_name)

    if callable(obj) and not isinstance(obj, Server):
        try:
            obj = obj()
        except Exception as exc:
            msg = f"Factory {import_string!r} raised an error: {exc}"
            raise TypeError(msg) from exc

    if not isinstance(obj, Server):
        msg = f"{import_string!r} resolved to {type(obj).__name__}, not an arbor.Server instance"
        raise TypeError(msg)

    return obj
