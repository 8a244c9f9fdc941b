"""flavplot driver class.

Takes care of everything in one centralized place:
- Configuration loading and logging
- Histogram backend initialization
- Run header and event dispatch to the plot manager
- End-of-job finalization
"""

import yaml

from .ana import PlotManager
from .data import Event, RunHeader
from .hist import backend_factory
from .utils.config import load_config
from .utils.logger import logger
from .version import __version__

__all__ = ["Driver"]


class Driver:
    """Central flavplot driver.

    It takes a configuration dictionary (or the path to a YAML file) of the
    form:

    .. code-block:: yaml

        base:
          verbosity: info
        backend:
          name: memory
        plot:
          <Plot manager configuration>
    """

    def __init__(self, cfg):
        """Initializes the class attributes.

        Parameters
        ----------
        cfg : Union[dict, str]
            Global configuration dictionary or path to a configuration file
        """
        # Load the configuration file, if needed
        if isinstance(cfg, str):
            cfg = load_config(cfg)

        # Process the full configuration dictionary and store it
        base, backend, plot = self.process_config(**cfg)

        # Initialize the histogram backend and the plot manager
        self.backend = backend_factory(backend)
        self.manager = PlotManager(self.backend, **plot)

    def process_config(self, plot, base=None, backend=None):
        """Reads the configuration and dumps it to the logger.

        Parameters
        ----------
        plot : dict
            Plot manager configuration dictionary
        base : dict, optional
            Base driver configuration dictionary
        backend : Union[dict, str], optional
            Histogram backend configuration (defaults to `memory`)

        Returns
        -------
        Tuple[dict, Union[dict, str], dict]
            Base, backend and plot configurations
        """
        # If there is no base configuration, make it empty (will use defaults)
        if base is None:
            base = {}
        if backend is None:
            backend = {"name": "memory"}

        # Set the verbosity of the logger
        verbosity = base.get("verbosity", "info")
        logger.setLevel(verbosity.upper())

        # Rebuild global configuration dictionary
        self.cfg = {"base": base, "backend": backend, "plot": plot}

        # Log the version and the configuration
        logger.info("Release version: %s\n", __version__)
        logger.info(yaml.dump(self.cfg, default_flow_style=None, sort_keys=False))

        return base, backend, plot

    def run(self, stream):
        """Process a stream of run headers and events, in arrival order.

        Parameters
        ----------
        stream : Iterable[Union[RunHeader, Event]]
            Run headers and events

        Returns
        -------
        Dict[str, int]
            Scalar summary of the job
        """
        for record in stream:
            if isinstance(record, RunHeader):
                self.manager.process_run_header(record)
            elif isinstance(record, Event):
                self.manager.process_event(record)
            else:
                raise TypeError(
                    f"Cannot process an object of type {type(record).__name__}, "
                    "expected a `RunHeader` or an `Event`."
                )

        return self.manager.end()
