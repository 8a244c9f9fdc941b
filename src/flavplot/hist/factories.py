"""Construct a histogram backend from its name."""

from flavplot.utils.factory import instantiate, module_dict

from . import memory

# Build a dictionary of available backends
BACKEND_DICT = {}
for module in [memory]:
    BACKEND_DICT.update(**module_dict(module, pattern="Backend"))


def backend_factory(cfg):
    """Instantiates a histogram backend from a configuration dictionary.

    Parameters
    ----------
    cfg : Union[str, dict]
        Backend configuration (or simply its name)

    Returns
    -------
    HistogramBackend
         Initialized backend object
    """
    return instantiate(BACKEND_DICT, cfg)
