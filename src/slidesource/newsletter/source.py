"""Module for table-based newsletter slide sources."""

import logging
import re
import slidesource

from bs4 import BeautifulSoup

from slidesource import check_param, check_valid_required, templates


class SlideSource(slidesource.SlideSource):
    """Slide source creating one slide per article cell of newsletters.

    Newsletters are read from an RSS feed, newest first. The description of
    each feed item contains the newsletter as HTML table with one cell of
    class 'na-testnews-articleitem' per article.
    """

    # Required and valid configuration parameters
    CONF_REQ_KEYS = {'url'}
    CONF_VALID_KEYS = slidesource.SlideSource.COMMON_KEYS | CONF_REQ_KEYS

    def _check_config(self, arguments):
        """Check the source arguments.

        :param arguments: source arguments
        :type arguments: dict
        :raises: slidesource.ConfigError
        """
        check_valid_required(arguments, self.CONF_VALID_KEYS, self.CONF_REQ_KEYS)
        check_param('url', arguments, is_str=True)

    def _article_slide(self, element, timestamp):
        """Create slide markup for a single article cell.

        :param element: article cell
        :type element: bs4.element.Tag
        :param timestamp: publication date of the newsletter
        :type timestamp: datetime
        :return: slide markup or None if the cell has no content
        :rtype: str
        """
        title = element.find("h3")
        # Article text is kept in the first div which is not the byline.
        content = next((div for div in element.find_all("div") if "na-testnews-author" not in (div.get("class") or [])), None)
        if content is None:
            logging.warning(f"Newsletter: Skipping article without content in source '{self.name}'.")
            return None

        # Avatar and author name are kept in the byline.
        name = ""
        avatar = None
        byline = element.find("div", class_="na-testnews-author")
        if byline is not None:
            name = byline.get_text(strip=True)
            img = byline.find("img")
            if img is not None and img.get("src"):
                avatar = img["src"].replace("s=16", "s=64")

        markup = content.decode_contents()
        return templates.render('slide',
            type=self.determine_type(markup),
            title=title.get_text(strip=True) if title is not None else None,
            byline=templates.render('byline', avatar=avatar, author=name),
            posted=self.format_date(timestamp),
            content=templates.render('content_noimage', content=markup))

    def generate_slides(self):
        """Generate one slide per article of recent newsletters.

        :return: candidate slides
        :rtype: list of slidesource.CandidateSlide
        :raises: slidesource.SourceFetchError
        """
        root = self.fetch_xml(self._arguments['url'])
        slides = []

        for item in root.xpath("/rss/channel/item"):
            # Do age checking.
            timestamp = self.parse_date(self.node_text(item, "pubDate"))
            if not self.in_age_limit(timestamp):
                break

            soup = BeautifulSoup(self.node_text(item, "description"), "html.parser")
            for element in soup.find_all("td", class_=re.compile("na-testnews-articleitem")):
                body = self._article_slide(element, timestamp)
                if body is not None:
                    slides.append(self._slide(body))

        logging.debug(f"Newsletter: Source '{self.name}' produced {len(slides)} slides.")
        return slides
