"""Loads flavplot YAML configuration files.

On top of plain YAML, a configuration file may:
- pull in other files with a top-level `include` key (a file name or a list
  of file names, merged in order, the including file taking precedence);
- embed a file inside a block with the `!include` tag;
- override a nested parameter with a dotted key, e.g. `plot.b_tag_nn_cut: 0.8`.

Relative file names are resolved against the directory of the file which
references them.
"""

import os

import yaml

from .errors import ConfigurationError

__all__ = ["load_config", "ConfigLoader"]


class ConfigLoader(yaml.SafeLoader):
    """Safe YAML loader which understands the `!include` tag."""

    def __init__(self, stream):
        """Record the directory of the file being loaded.

        Parameters
        ----------
        stream : _io.TextIOWrapper
            Open configuration file
        """
        self._root = os.path.dirname(os.path.abspath(stream.name))
        super().__init__(stream)

    def include(self, node):
        """Load the file named by an `!include` node, in place."""
        return load_config(os.path.join(self._root, self.construct_scalar(node)))


ConfigLoader.add_constructor("!include", ConfigLoader.include)


def merge(base, override):
    """Recursively merge two configuration dictionaries.

    Parameters
    ----------
    base : dict
        Configuration to merge into (left untouched)
    override : dict
        Configuration which takes precedence

    Returns
    -------
    dict
        Merged configuration
    """
    result = dict(base)
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = merge(result[key], value)
        else:
            result[key] = value

    return result


def set_nested(config, key_path, value):
    """Set a value deep inside a configuration from its dotted key.

    Intermediate blocks are created when they do not exist.

    Parameters
    ----------
    config : dict
        Configuration to modify in place
    key_path : str
        Dotted key, e.g. `plot.p_jet_min`
    value : object
        Value to set
    """
    *parents, leaf = key_path.split(".")
    block = config
    for key in parents:
        block = block.setdefault(key, {})
        if not isinstance(block, dict):
            raise ConfigurationError(
                f"Cannot override `{key_path}`: `{key}` is not a block."
            )

    block[leaf] = value


def load_config(cfg_path):
    """Load a configuration file to a dictionary.

    Parameters
    ----------
    cfg_path : str
        Path to the configuration file

    Returns
    -------
    dict
        Configuration, with includes and overrides resolved
    """
    with open(cfg_path, "r", encoding="utf-8") as f:
        raw = yaml.load(f, Loader=ConfigLoader)
    if raw is None:
        return {}

    # Included files come first, in order
    includes = raw.pop("include", [])
    if isinstance(includes, str):
        includes = [includes]
    if not isinstance(includes, list):
        raise ConfigurationError(
            f"`include` must be a file name or a list of file names, got "
            f"{type(includes).__name__}."
        )

    config = {}
    root = os.path.dirname(os.path.abspath(cfg_path))
    for name in includes:
        path = os.path.join(root, name)
        if not os.path.isfile(path):
            raise FileNotFoundError(f"Included file not found: {path}")
        config = merge(config, load_config(path))

    # Then the content of the file itself, then the dotted overrides
    overrides = {k: raw.pop(k) for k in list(raw) if "." in k}
    config = merge(config, raw)
    for key_path, value in overrides.items():
        set_nested(config, key_path, value)

    return config
