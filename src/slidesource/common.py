"""Module providing common definitions."""

import re


class ConfigError(Exception):
    """Slide source configuration error.

    Generic configuration error exception class, which can be used by any
    configurable slide source component.
    """

    def __init__(self, msg, config=None):
        """Initialize configuration error instance.

        :param config: invalid configuration (default: None)
        :type config: dict
        """
        super().__init__(msg)
        self.config = config


class SourceFetchError(Exception):
    """A single slide source failed to fetch or process its content."""

    def __init__(self, msg, source=None, cause=None):
        """Initialize source fetch error instance.

        :param source: identity of the failing source (default: None)
        :type source: str
        :param cause: underlying exception (default: None)
        :type cause: Exception
        """
        super().__init__(msg)
        self.source = source
        self.cause = cause


class PlacementInternalError(Exception):
    """Duplication placement produced an invalid placement plan."""

    def __init__(self, msg, plan=None):
        super().__init__(msg)
        self.plan = plan


# Pattern for a single key=value pair in an encoded argument string.
_ARGUMENT_PATTERN = re.compile(r"(\w+)\s*=\s*([^;]+)")


def parse_arguments(text):
    """Parse semicolon-delimited source arguments.

    Arguments are encoded as "key=value;key=value". Fragments which do not
    match the pattern are ignored. Values are stripped of leading and trailing
    whitespace.

    :param text: encoded arguments
    :type text: str
    :return: argument values by key
    :rtype: dict
    """
    if not text:
        return dict()
    return { key: value.strip() for key, value in _ARGUMENT_PATTERN.findall(text) }


def format_arguments(arguments):
    """Encode source arguments as semicolon-delimited string.

    :param arguments: argument values by key
    :type arguments: dict
    :return: encoded arguments
    :rtype: str
    :raises: ConfigError
    """
    parts = []
    for key, value in arguments.items():
        value = str(value)
        if not re.fullmatch(r"\w+", key) or ";" in value:
            raise ConfigError(f"Argument '{key}' cannot be encoded. Keys must be word characters and values must not contain ';'.", arguments)
        parts.append(f"{key}={value}")
    return ";".join(parts)


def check_valid_required(config, valid_keys, required_keys):
    """Check for valid and required configuration parameters.

    Checks whether only valid and all required parameters (keys) have been
    specified. Raises a configuration error exception otherwise.

    :param config: configuration to be checked
    :type config: dict
    :param valid_keys: valid configuration keys
    :type valid keys: set
    :param required_keys: required configuration keys
    :type required_keys: set
    :raises: ConfigError
    """
    # Make sure only valid parameters have been specified.
    keys = set(config.keys())
    if not keys.issubset(valid_keys):
        raise ConfigError(f"The configuration contains additional parameters. Only the parameters {valid_keys} are accepted, but the additional parameter(s) {keys.difference(valid_keys)} has/have been specified.", config)

    # Make sure all required parameters have been specified.
    if not required_keys.issubset(keys):
        raise ConfigError(f"As a minimum, the parameters {required_keys} are required, but the parameter(s) {required_keys.difference(keys)} has/have not been specified.", config)


def check_param(name, value, required=True, is_int=False, is_int_str=False, is_float_str=False, is_bool=False, is_str=False, gr=None, ge=None, lo=None, le=None, options=None):
    """Check validity of configuration parameter.

    Checks the validity of a configuration parameter based on specified
    tests. Raises a configuration error exception if acceptance criteria are
    not met.

    The parameter value may either be provided directly or indirectly
    in the form of a dictionary. If a dictionary is provided as value, the
    parameter value is looked up via the parameter name.

    Source arguments are always strings. Use is_int_str and is_float_str to
    check strings encoding numbers. Range checks are then applied to the
    converted value.

    :param name: parameter name
    :type name: str
    :param value: parameter value or dictionary
    :type value: type of parameter value or dict
    :param required: True if parameter must exist in dictionary
    :type required: bool
    :param is_int: True if value must be integer
    :type is_int: bool
    :param is_int_str: True if value must be a string encoding an integer
    :type is_int_str: bool
    :param is_float_str: True if value must be a string encoding a number
    :type is_float_str: bool
    :param is_bool: True if value must be boolean
    :type is_bool: bool
    :param is_str: True if value must be a non-empty string
    :type is_str: bool
    :param gr: parameter value must be > gr
    :type gr: numeric
    :param ge: parameter value must be >= ge
    :type ge: numeric
    :param lo: parameter value must be < lo
    :type lo: numeric
    :param le: parameter value must be <= le
    :type le: numeric
    :param options: valid parameter values
    :type options: set or list
    :raises: ConfigError
    """
    config = value
    # Obtain parameter value from dictionary if dictionary specified.
    if isinstance(value, dict):
        if name in config:
            value = config.get(name)
            if value is None:
                raise ConfigError(f"Parameter '{name}' does not have a value.", config)
        else:
            if required is True: raise ConfigError(f"No value for required parameter '{name}' specified.", config)
            else: return

    # Compile generic error message prefix.
    prefix = f"Invalid value '{value}' for parameter '{name}' specified."

    # Ensure that value is boolean.
    if is_bool:
        if not (isinstance(value, bool) or value == "on" or value == "off"):
            raise ConfigError(f"{prefix} Value must be boolean (true or false).", config)
        # Prevent all further tests.
        return

    # Ensure that value is a valid, non-empty string.
    if is_str:
        if not isinstance(value, str) or len(value) == 0:
            raise ConfigError(f"{prefix} Value must be a non-empty string.", config)
        # Prevent all further tests.
        return

    # Convert strings encoding numbers before applying range checks.
    if is_int_str:
        try:
            value = int(value)
        except (TypeError, ValueError):
            raise ConfigError(f"{prefix} Value must be an integer.", config)
    elif is_float_str:
        try:
            value = float(value)
        except (TypeError, ValueError):
            raise ConfigError(f"{prefix} Value must be numeric.", config)

    # Ensure that value is integer.
    if is_int and (not isinstance(value, int) or isinstance(value, bool)):
        raise ConfigError(f"{prefix} Value must be integer.", config)
    # Ensure that value is greater than a certain value.
    if gr is not None and not value > gr:
        raise ConfigError(f"{prefix} Value must be > {gr}.", config)
    # Ensure that value is greater than or equal to a certain value.
    if ge is not None  and not value >= ge:
        raise ConfigError(f"{prefix} Value must be >= {ge}.", config)
    # Ensure that value is lower than a certain value.
    if lo is not None  and not value < lo:
        raise ConfigError(f"{prefix} Value must be < {lo}.", config)
    # Ensure that value is lower than or equal to a certain value.
    if le is not None  and not value <= le:
        raise ConfigError(f"{prefix} Value must be <= {le}.", config)
    # Ensure that value is one of pre-defined options.
    if options is not None and value not in options:
        raise ConfigError(f"{prefix} Valid values are {options}.", config)
