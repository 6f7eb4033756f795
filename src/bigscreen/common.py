"""Module providing common definitions."""

import copy
import logging
import os
import os.path
import yaml

from logging.handlers import TimedRotatingFileHandler
from slidesource import ConfigError, SourceRegistry, check_param, check_valid_required


APPLICATION_NAME = "BigScreen"
APPLICATION_DESCRIPTION = "Slideshow aggregation for networked signage displays"
VERSION = "0.x"
PROJECT_NAME = "BigScreen project"

# Default configuration
DEFAULT_CONFIG = {
    'database': os.path.expanduser("~/.local/share/bigscreen/sources.sqlite"),
    'enable_logging': False,
    'fetch_timeout': 30,
    'fetch_workers': 1,
    'gravatar_url': "%(base)s?s=%(size)s&r=g&d=mm",
    'log_dir': os.path.expanduser("~/.cache/bigscreen/log"),
    'log_level': "warning",
    'time_format': "%a, %d %b %Y %H:%M",
    'time_zone': "Europe/London",
    'user_agent': "BigScreen slide fetcher"
}

# Required and valid configuration parameters
CONF_REQ_KEYS = set(DEFAULT_CONFIG.keys())
CONF_VALID_KEYS = set() | CONF_REQ_KEYS

# Paths searched for the configuration file.
CONF_PATHS = [
    "./config.yaml",
    os.path.expanduser("~/.config/bigscreen/config.yaml"),
    "/etc/bigscreen/config.yaml"
]

# Mapping of name to numeric log level.
LOG_LEVELS = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warning': logging.WARNING,
    'error': logging.ERROR,
    'critical': logging.CRITICAL
}


class Formatter(logging.Formatter):
    """BigScreen log formatter.

    Aligns the component prefix of log messages ("Component: message") in
    rotating log files.
    """

    def format(self, record):
        """Split and format record."""
        if isinstance(record.msg, str):
            msg = record.msg.split(':', 1)
            if len(msg) == 2 and msg[0].isalnum():
                record.msg = '[%-10s]%s' % (msg[0], msg[1])
        return super().format(record)


def _check_config(config):
    """Check the application configuration.

    :param config: Application configuration
    :type config: dict
    :raises: ConfigError
    """
    check_valid_required(config, CONF_VALID_KEYS, CONF_REQ_KEYS)
    check_param('database', config, is_str=True)
    check_param('enable_logging', config, is_bool=True)
    check_param('fetch_timeout', config, is_float_str=True, gr=0)
    check_param('fetch_workers', config, is_int=True, ge=1)
    check_param('gravatar_url', config, is_str=True)
    check_param('log_dir', config, is_str=True)
    check_param('log_level', config, options=set(LOG_LEVELS.keys()))
    check_param('time_format', config, is_str=True)
    check_param('time_zone', config, is_str=True)
    check_param('user_agent', config, is_str=True)


def _configure_logging(config, filename):
    """Configure logging.

    Adjusts log levels based on the application configuration and adds a
    log handler for logging to rotating log files if enabled.

    :param config: Application configuration
    :type config: dict
    :param filename: Log filename
    :type filename: str
    :raises: ConfigError
    """
    # Set log level of the default python logger.
    numeric_level = LOG_LEVELS[config['log_level']]
    logging.getLogger().setLevel(numeric_level)

    # Reduce logging by SQLAlchemy and urllib3 to warnings or specified log
    # level, whatever is higher.
    logging.getLogger("sqlalchemy").setLevel(max(logging.WARN, numeric_level))
    logging.getLogger("urllib3").setLevel(max(logging.WARN, numeric_level))

    # Write all log messages to a rotating log file.
    if config['enable_logging'] == "on" or config['enable_logging'] is True:
        log_dir = config['log_dir']
        # Create log directory if it does not exist yet.
        try:
            os.makedirs(log_dir, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"An exception occurred while creating the log directory '{log_dir}': {e}", config)
        # Make sure the directory is writable.
        if not os.access(log_dir, os.W_OK):
            raise ConfigError(f"The log directory '{log_dir}' is not writeable.", config)

        fullpath = os.path.join(log_dir, filename)
        logHandler = TimedRotatingFileHandler(fullpath, when="h", interval=24, backupCount=5, encoding='utf-8', errors='ignore')
        formatter = Formatter("%(asctime)s [%(levelname)-8s] %(message)s", "%Y-%m-%d %H:%M:%S")
        logHandler.setFormatter(formatter)
        logging.info(f"Configuration: Enabling logging to file '{fullpath}'.")
        logging.getLogger().addHandler(logHandler)


def _load_config(path=None):
    """Load application configuration.

    Loads the application configuration from the specified file or the first
    existing default configuration file and applies default values where
    missing. Default values are used only if no configuration file exists.

    :param path: Path of the configuration file (default: None)
    :type path: str
    :returns: Application configuration
    :rtype: dict
    :raises: ConfigError
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    # Determine path of configuration file.
    if path is None:
        path = next((conf_path for conf_path in CONF_PATHS if os.path.isfile(conf_path)), None)
        if path is None:
            logging.info("Configuration: No configuration file found. Using default configuration.")
            return config

    # Load configuration from yaml file.
    try:
        with open(path, 'r', encoding='utf8') as config_file:
            config2 = yaml.safe_load(config_file)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Unable to load configuration file '{path}'. {e}")

    # Update default configuration. An empty file yields None.
    if config2 is not None:
        if not isinstance(config2, dict):
            raise ConfigError(f"The configuration file '{path}' does not contain a mapping.", config2)
        config.update(config2)

    logging.debug(f"Configuration: Configuration = {config}")
    return config


def _load_registry(config):
    """Open or create slide source registry.

    :param config: Application configuration
    :type config: dict
    :returns: Slide source registry
    :rtype: slidesource.SourceRegistry
    :raises: ConfigError
    """
    # Create database directory if it does not exist yet.
    db_path = os.path.expanduser(config['database'])
    db_dir = os.path.dirname(db_path)
    if db_dir:
        try:
            os.makedirs(db_dir, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"An exception occurred while creating the database directory '{db_dir}': {e}", config)

    # Load/create and return registry.
    return SourceRegistry(db_path)


def _source_settings(config):
    """Extract settings passed to slide sources from the configuration.

    :param config: Application configuration
    :type config: dict
    :rtype: dict
    """
    return {
        'timeout': float(config['fetch_timeout']),
        'time_zone': config['time_zone'],
        'time_format': config['time_format'],
        'gravatar_url': config['gravatar_url'],
        'user_agent': config['user_agent']
    }
