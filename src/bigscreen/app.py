"""Module providing BigScreen application class."""

import logging

from slidesource import DuplicationPlacer, SlideAggregator, SourceFactory

from .common import _check_config, _configure_logging, _load_config, _load_registry, _source_settings


class App:
    """BigScreen application.

    Wires the slide source registry, aggregator and placer together.
    """

    def __init__(self, config=None, config_path=None, log_filename="bigscreen.log"):
        """Initialize BigScreen application.

        :param config: Application configuration. Loaded from file if None.
        :type config: dict
        :param config_path: Path of the configuration file (default: None)
        :type config_path: str
        :param log_filename: Name of the rotating log file
        :type log_filename: str
        :raises: ConfigError
        """
        self._registry = None
        # Load and check configuration.
        if config is None:
            config = _load_config(config_path)
        _check_config(config)
        self._config = config
        # Configure logging.
        _configure_logging(self._config, log_filename)

        # Load/create registry and make sure all modules are known.
        self._registry = _load_registry(self._config)
        try:
            self._factory = SourceFactory()
            self._factory.register(self._registry)

            self._aggregator = SlideAggregator(self._registry, self._factory, _source_settings(self._config),
                workers=self._config['fetch_workers'], timeout=float(self._config['fetch_timeout']))
            self._placer = DuplicationPlacer()
        except Exception:
            self.close()
            raise

    def slides(self):
        """Collect slides and return them in display order.

        :return: rendered slide bodies
        :rtype: list of str
        :raises: PlacementInternalError
        """
        aggregated = self._aggregator.aggregate()
        plan = self._placer.place(aggregated.slides, aggregated.seed)
        logging.info(f"App: Built slide sequence of {len(plan)} slides from {len(aggregated)} aggregated slides.")
        return plan

    def close(self):
        """Prepare application for safe exit."""
        if self._registry is not None:
            logging.info("App: Closing slide source registry.")
            self._registry.close()
            self._registry = None

    @property
    def config(self):
        return self._config

    @property
    def factory(self):
        return self._factory

    @property
    def registry(self):
        return self._registry
