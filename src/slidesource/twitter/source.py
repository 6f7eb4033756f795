"""Module for social media timeline slide sources."""

import logging
import slidesource

from markupsafe import Markup, escape
from slidesource import SourceFetchError, check_param, check_valid_required, templates


# Default timeline endpoint.
TIMELINE_URL = "https://api.twitter.com/1.1/statuses/user_timeline.json"

# Format of status creation dates, e.g. 'Wed Oct 10 20:19:24 +0000 2018'.
DATE_FORMAT = "%a %b %d %H:%M:%S %z %Y"


class SlideSource(slidesource.SlideSource):
    """Slide source creating one slide per recent status of an account."""

    # Required and valid configuration parameters
    CONF_REQ_KEYS = {'account', 'bearer_token'}
    CONF_VALID_KEYS = {'count', 'title', 'url'} | slidesource.SlideSource.COMMON_KEYS | CONF_REQ_KEYS

    # Timelines move fast. Only show statuses from the last day by default.
    DEFAULT_MAXAGE = 1

    def _check_config(self, arguments):
        """Check the source arguments.

        :param arguments: source arguments
        :type arguments: dict
        :raises: slidesource.ConfigError
        """
        check_valid_required(arguments, self.CONF_VALID_KEYS, self.CONF_REQ_KEYS)
        check_param('account', arguments, is_str=True)
        check_param('bearer_token', arguments, is_str=True)
        check_param('count', arguments, required=False, is_int_str=True, gr=0, le=200)
        check_param('title', arguments, required=False, is_str=True)
        check_param('url', arguments, required=False, is_str=True)

    def _status_slide(self, status, timestamp):
        """Create slide markup for a single status.

        Retweets are shown with the text and author of the original status.

        :param status: decoded status
        :type status: dict
        :param timestamp: creation date of the status
        :type timestamp: datetime
        :rtype: str
        """
        original = status.get('retweeted_status') or status
        text = escape(original.get('full_text') or original.get('text') or "")

        # Expand URLs.
        for url in (original.get('entities') or {}).get('urls', []):
            short = url.get('url')
            if short:
                text = text.replace(escape(short), Markup("<strong>{0}</strong> ({1})").format(short, url.get('expanded_url', "")))
        text = Markup("<p>{0}</p>").format(text)

        user = original.get('user') or {}
        byline = templates.render('byline',
            avatar=user.get('profile_image_url_https'),
            author=user.get('name'),
            email=f"@{user.get('screen_name', '')}")

        media = (status.get('entities') or {}).get('media') or []
        image = media[0].get('media_url_https') if media else None
        if image:
            content = templates.render('content_image', content=text, url=image)
        else:
            content = templates.render('content_noimage', content=text)

        title = self._arguments.get('title', f"@{self._arguments['account']}")
        return templates.render('slide',
            type=self.determine_type(text),
            title=title,
            byline=byline,
            posted=self.format_date(timestamp),
            content=content)

    def generate_slides(self):
        """Generate one slide per recent status.

        :return: candidate slides
        :rtype: list of slidesource.CandidateSlide
        :raises: slidesource.SourceFetchError
        """
        url = self._arguments.get('url', TIMELINE_URL)
        params = {
            'screen_name': self._arguments['account'],
            'count': int(self._arguments.get('count', 10)),
            # Extended mode includes media in the results.
            'tweet_mode': "extended"
        }
        headers = {'Authorization': f"Bearer {self._arguments['bearer_token']}"}
        statuses = self.fetch_json(url, headers, params)
        if not isinstance(statuses, list):
            raise SourceFetchError(f"Unexpected timeline response from '{url}'. Expected a list of statuses.", self.name)

        slides = []
        for status in statuses:
            # Stop when we exceed the age limit.
            timestamp = self.parse_date(status.get('created_at', ""), DATE_FORMAT)
            if not self.in_age_limit(timestamp):
                break
            slides.append(self._slide(self._status_slide(status, timestamp)))

        logging.debug(f"Twitter: Source '{self.name}' produced {len(slides)} slides.")
        return slides
