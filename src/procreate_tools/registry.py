"""
Class tag registry.

Records in a keyed archive name their class through a ``$class`` reference.
Decodable classes register themselves under that name so the archive decoder
can dispatch a polymorphic record to the matching constructor::

    from procreate_tools.registry import new_registry

    CLASSES, register = new_registry(attribute="classname")

    @register("SilicaLayer")
    class Layer:
        ...

    CLASSES["SilicaLayer"]  # Layer
    Layer.classname  # 'SilicaLayer'
"""

from typing import Any, Callable, Tuple, TypeVar, Union

T = TypeVar("T")


def new_registry(attribute: Union[str, None] = None) -> Tuple[dict, Callable]:
    """
    Returns an empty dict and a @register decorator.

    :param attribute: Optional attribute name to set on registered objects.
                     The key will be stored as this attribute on the object.
    :return: Tuple of (registry_dict, register_decorator)
    """
    registry = {}

    def register(key: Any) -> Callable[[Callable[..., T]], Callable[..., T]]:
        def decorator(func: Callable[..., T]) -> Callable[..., T]:
            registry[key] = func
            if attribute:
                setattr(func, attribute, key)
            return func

        return decorator

    return registry, register


#: Registered archive classes, keyed by ``$classname``.
CLASSES, register = new_registry(attribute="classname")
