"""Module providing slide source class"""

import hashlib
import logging
import re
import requests

from abc import ABC, abstractmethod
from bs4 import BeautifulSoup
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from lxml import etree
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .common import ConfigError, SourceFetchError, check_param
from .slide import CandidateSlide


# Default application-wide settings passed to slide sources.
DEFAULT_SETTINGS = {
    'timeout': 30,
    'time_zone': "Europe/London",
    'time_format': "%a, %d %b %Y %H:%M",
    'gravatar_url': "%(base)s?s=%(size)s&r=g&d=mm",
    'user_agent': "BigScreen slide fetcher"
}


class SlideSource(ABC):
    """Source of slides.

    Abstract base class providing basic functionality common to all slide
    source sub-classes. A slide source is created from the arguments of a
    configured source and produces a list of candidate slides on request.

    Sub-classes implement _check_config() and generate_slides(). Content
    older than the maximum age (argument 'maxage' in days) is expected to be
    dropped by generate_slides().
    """

    # Arguments accepted by all slide sources.
    COMMON_KEYS = {'duplicate', 'maxage'}

    # Required and valid configuration parameters. Need to be re-defined by
    # implementing sub-class.
    CONF_REQ_KEYS = set()
    CONF_VALID_KEYS = set()

    # Default maximum age of content in days. Zero disables the age check.
    DEFAULT_MAXAGE = 7

    def __init__(self, name, arguments, settings=None):
        """Initialize the slide source.

        :param name: identity of the source used in log and error messages
        :type name: str
        :param arguments: source arguments from the registry
        :type arguments: dict
        :param settings: application-wide settings (default: DEFAULT_SETTINGS)
        :type settings: dict
        :raises: ConfigError
        """
        # Basic initialization.
        self._name = name
        self._arguments = dict(arguments)
        self._settings = dict(DEFAULT_SETTINGS)
        if settings is not None:
            self._settings.update(settings)

        # Check the configuration for errors.
        check_param('duplicate', self._arguments, required=False, is_int_str=True)
        check_param('maxage', self._arguments, required=False, is_float_str=True, ge=0)
        self._check_config(self._arguments)

        self._duplicate = int(self._arguments.get('duplicate', 1))
        self._maxage = float(self._arguments.get('maxage', self.DEFAULT_MAXAGE))

        try:
            self._tz = ZoneInfo(self._settings['time_zone'])
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigError(f"Unknown time zone '{self._settings['time_zone']}'. {e}", self._settings)

    @abstractmethod
    def _check_config(self, arguments):
        """Check the source arguments. This method is abstract and needs to
        be implemented by child classes.

        :param arguments: source arguments
        :type arguments: dict
        :raises: ConfigError
        """
        pass

    @abstractmethod
    def generate_slides(self):
        """Generate candidate slides.

        :return: candidate slides which shall be shown now
        :rtype: list of slidesource.CandidateSlide
        :raises: SourceFetchError
        """
        pass

    def _slide(self, body):
        """Create candidate slide with the duplication weight of the source.

        :param body: rendered slide markup
        :type body: str
        :rtype: slidesource.CandidateSlide
        """
        return CandidateSlide(body, self._duplicate, self._name)

    def fetch(self, url, headers=None, params=None):
        """Request the content at the specified URL.

        :param url: URL of the content
        :type url: str
        :param headers: additional request headers
        :type headers: dict
        :param params: query parameters
        :type params: dict
        :return: response of successful request
        :rtype: requests.Response
        :raises: SourceFetchError
        """
        request_headers = {'User-Agent': self._settings['user_agent']}
        if headers is not None:
            request_headers.update(headers)
        logging.debug(f"Source: Fetching '{url}' for source '{self._name}'.")
        try:
            response = requests.get(url, headers=request_headers, params=params, timeout=self._settings['timeout'])
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            raise SourceFetchError(f"Request for '{url}' timed out after {self._settings['timeout']} seconds.", self._name, e)
        except requests.exceptions.RequestException as e:
            raise SourceFetchError(f"Retrieval of '{url}' failed. {e}", self._name, e)
        return response

    def fetch_xml(self, url):
        """Request the XML document at the specified URL and parse it.

        :param url: URL of the XML document
        :type url: str
        :return: root element of the document
        :rtype: lxml.etree._Element
        :raises: SourceFetchError
        """
        response = self.fetch(url)
        try:
            return etree.fromstring(response.content)
        except (etree.XMLSyntaxError, ValueError) as e:
            raise SourceFetchError(f"XML parsing of '{url}' failed. {e}", self._name, e)

    def fetch_json(self, url, headers=None, params=None):
        """Request the JSON document at the specified URL and decode it.

        :return: decoded document
        :rtype: list or dict
        :raises: SourceFetchError
        """
        response = self.fetch(url, headers, params)
        try:
            return response.json()
        except ValueError as e:
            raise SourceFetchError(f"JSON decoding of '{url}' failed. {e}", self._name, e)

    def in_age_limit(self, timestamp):
        """Check whether content with the specified timestamp is recent enough.

        :param timestamp: timezone aware timestamp of the content
        :type timestamp: datetime
        :return: True if the content is not older than the maximum age
        :rtype: bool
        """
        if self._maxage <= 0:
            return True
        return datetime.now(timezone.utc) - timestamp <= timedelta(days=self._maxage)

    def parse_date(self, datestr, fmt=None):
        """Parse content timestamp.

        Parses RFC 822 dates as used in RSS feeds if no format is specified.
        Dates without time zone information are assumed to be UTC. Logs an
        error and returns the current time if the date cannot be parsed.

        :param datestr: date string
        :type datestr: str
        :param fmt: strptime format (default: None)
        :type fmt: str
        :return: timezone aware timestamp
        :rtype: datetime
        """
        try:
            if fmt is None:
                timestamp = parsedate_to_datetime(datestr.strip())
            else:
                timestamp = datetime.strptime(datestr.strip(), fmt)
            if timestamp.tzinfo is None:
                timestamp = timestamp.replace(tzinfo=timezone.utc)
            return timestamp
        except (TypeError, ValueError, AttributeError) as e:
            logging.error(f"Source: Failed to parse datetime from '{datestr}' in source '{self._name}'. {e}")
            return datetime.now(timezone.utc)

    def format_date(self, timestamp):
        """Format timestamp for display in the configured time zone.

        :param timestamp: timezone aware timestamp
        :type timestamp: datetime
        :rtype: str
        """
        return timestamp.astimezone(self._tz).strftime(self._settings['time_format'])

    def gravatar(self, base, size=64):
        """Return avatar URL for the specified gravatar base URL.

        :rtype: str
        """
        return self._settings['gravatar_url'] % {'base': base, 'size': size}

    @staticmethod
    def determine_type(data):
        """Determine presentation type of a slide from its content.

        The type is derived from the last hex digit of the MD5 digest of the
        content, which spreads slides evenly over 16 styles.

        :param data: slide content
        :type data: str
        :return: type name in the form 'typeX'
        :rtype: str
        """
        digest = hashlib.md5(data.encode('utf-8')).hexdigest()
        return f"type{digest[-1].upper()}"

    @staticmethod
    def find_node(node, path):
        """Return first node matching a path of local element names.

        Namespace prefixes are ignored, i.e. 'newsagent:gravatar' and
        'gravatar' both match an element with local name 'gravatar'.
        Attribute filters can be appended to a step in XPath syntax, e.g.
        "images/image[@type='article']".

        :param node: context node
        :type node: lxml.etree._Element
        :param path: '/' separated element names
        :type path: str
        :return: first matching node or None
        :rtype: lxml.etree._Element
        """
        steps = []
        for step in path.split("/"):
            name, bracket, condition = step.partition("[")
            name = name.split(":")[-1]
            steps.append(f"*[local-name()='{name}']{bracket}{condition}")
        result = node.xpath("./" + "/".join(steps))
        return result[0] if result else None

    @classmethod
    def node_text(cls, node, path, default=""):
        """Return text content of the first node matching the path.

        :rtype: str
        """
        child = cls.find_node(node, path)
        if child is None:
            return default
        return "".join(child.itertext())

    @staticmethod
    def split_author(author):
        """Split author string of the form 'email (Name)'.

        :param author: author string
        :type author: str
        :return: email and name. The email is empty if the string does not
            match the expected form.
        :rtype: tuple
        """
        match = re.match(r"^(.*?)\s*\(([^)]+)\)$", author.strip())
        if match is None:
            return "", author.strip()
        return match.group(1), match.group(2)

    @staticmethod
    def strip_html(markup):
        """Return text content of HTML markup.

        :rtype: str
        """
        return BeautifulSoup(markup, "html.parser").get_text()

    @property
    def arguments(self):
        """Return a copy of the source arguments.

        :rtype: dict
        """
        return dict(self._arguments)

    @property
    def duplicate(self):
        """Return duplication weight applied to all slides of the source.

        :rtype: int
        """
        return self._duplicate

    @property
    def maxage(self):
        """Return maximum age of content in days.

        :rtype: float
        """
        return self._maxage

    @property
    def name(self):
        """Return identity of the source.

        :rtype: str
        """
        return self._name
