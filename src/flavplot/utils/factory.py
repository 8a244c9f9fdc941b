"""Builds objects from configuration blocks.

A configuration block is either the name of a class or a dictionary which
provides the name under `name` and the constructor arguments next to it:

.. code-block:: yaml

    backend:
      name: memory

Classes are looked up in a registry built from a module with
:func:`module_dict`.
"""

from copy import deepcopy

from .errors import ConfigurationError
from .logger import logger

__all__ = ["module_dict", "instantiate"]


def module_dict(module, pattern=None):
    """Registry of the public classes defined in a module.

    Each class is registered under its class name and, if it defines one,
    under its short `name` attribute.

    Parameters
    ----------
    module : module
        Module from which to fetch the classes
    pattern : str, optional
        Only register classes whose name contains this pattern

    Returns
    -------
    Dict[str, type]
        Registry which maps names onto classes
    """
    registry = {}
    for key in getattr(module, "__all__", dir(module)):
        obj = getattr(module, key)
        if key.startswith("_") or not isinstance(obj, type):
            continue
        if obj.__module__ != module.__name__:
            continue
        if pattern is not None and pattern not in obj.__name__:
            continue

        registry[obj.__name__] = obj
        if getattr(obj, "name", None):
            registry[obj.name] = obj

    return registry


def instantiate(registry, cfg, **kwargs):
    """Build an object from its configuration block.

    Parameters
    ----------
    registry : Dict[str, type]
        Registry which maps names onto classes (see :func:`module_dict`)
    cfg : Union[str, dict]
        Name of the class or configuration dictionary
    **kwargs : dict, optional
        Additional arguments passed to the constructor

    Returns
    -------
    object
        Instantiated object
    """
    config = {"name": cfg} if isinstance(cfg, str) else deepcopy(cfg)
    if "name" not in config:
        raise ConfigurationError(
            f"Configuration block {cfg} does not provide a class `name`."
        )

    name = config.pop("name")
    if name not in registry:
        raise ConfigurationError(
            f"Unknown class `{name}`. Must be one of {sorted(registry)}."
        )

    duplicates = set(config).intersection(kwargs)
    if duplicates:
        raise ConfigurationError(
            f"Arguments {sorted(duplicates)} are provided both in the "
            "configuration block and explicitly."
        )
    kwargs.update(config)

    cls = registry[name]
    try:
        return cls(**kwargs)

    except TypeError:
        logger.error("Failed to instantiate %s with %s.", cls.__name__, kwargs)
        raise
