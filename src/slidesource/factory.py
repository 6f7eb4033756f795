"""Module providing slide source factory."""

import logging

from importlib import import_module

from .common import ConfigError, SourceFetchError


# Dictionary used to map module identifiers to slide source classes and
# human-readable module names.
SOURCE_MODULES = {
    'mondaymail': ("slidesource.mondaymail", "SlideSource", "Monday Mail"),
    'newsagent': ("slidesource.newsagent", "SlideSource", "Newsagent"),
    'newsletter': ("slidesource.newsletter", "SlideSource", "Newsletter"),
    'static': ("slidesource.static", "SlideSource", "Static slide"),
    'twitter': ("slidesource.twitter", "SlideSource", "Twitter")
}


class SourceFactory:
    """Slide source factory.

    Resolves module identifiers to slide source classes once on creation.
    Unknown or broken module definitions are reported as configuration error
    right away. Slide sources are then created by identifier for each
    aggregation run.
    """

    def __init__(self, modules=None):
        """Initialize slide source factory.

        :param modules: module definitions by identifier. Values are tuples
            (python module, class name, name) or (class, name). Default is
            SOURCE_MODULES.
        :type modules: dict
        :raises: ConfigError
        """
        if modules is None:
            modules = SOURCE_MODULES
        self._classes = dict()
        self._names = dict()

        for module, ref in modules.items():
            if isinstance(ref[0], type):
                source_class, name = ref[0], ref[1]
            else:
                try:
                    source_class = getattr(import_module(ref[0]), ref[1])
                except (ImportError, AttributeError) as e:
                    raise ConfigError(f"Unable to load slide source module '{module}' from '{ref[0]}.{ref[1]}'. {e}", ref)
                name = ref[2]
            self._classes[module] = source_class
            self._names[module] = name
            logging.debug(f"Factory: Resolved source module '{module}' to {source_class.__module__}.{source_class.__name__}.")

    def create(self, config, settings=None):
        """Create slide source for a configured source.

        :param config: slide source configuration
        :type config: slidesource.SourceConfig
        :param settings: application-wide settings passed to the source
        :type settings: dict
        :return: slide source
        :rtype: slidesource.SlideSource
        :raises: SourceFetchError
        """
        source_class = self._classes.get(config.module)
        if source_class is None:
            raise SourceFetchError(f"Unknown source module '{config.module}' for slide source {config.id}.", config.identity)
        try:
            return source_class(config.identity, config.arguments, settings)
        except ConfigError as e:
            raise SourceFetchError(f"Invalid arguments for slide source {config.id}. {e}", config.identity, e)

    def register(self, registry):
        """Register all known modules with the slide source registry.

        :param registry: slide source registry
        :type registry: slidesource.SourceRegistry
        """
        for module, name in self._names.items():
            registry.register_module(module, name, self._classes[module].__doc__.splitlines()[0] if self._classes[module].__doc__ else None)

    @property
    def modules(self):
        """Return identifiers of known modules.

        :rtype: set
        """
        return set(self._classes.keys())
