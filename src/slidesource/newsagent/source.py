"""Module for feed article slide sources."""

import logging
import re
import slidesource

from slidesource import check_param, check_valid_required, templates


class SlideSource(slidesource.SlideSource):
    """Slide source creating one slide per article in an RSS feed.

    Articles are expected to be ordered newest first. Reading stops at the
    first article exceeding the maximum age.
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
        # Make sure valid and required parameters have been specified.
        check_valid_required(arguments, self.CONF_VALID_KEYS, self.CONF_REQ_KEYS)
        # Check parameter values.
        check_param('url', arguments, is_str=True)

    def _strip_summary(self, body):
        """Remove auto-inserted summary from article text.

        Articles may start with a summary in a <h3> element. The summary is
        removed if it repeats the start of the remaining text.

        :param body: article markup
        :type body: str
        :return: article markup without redundant summary
        :rtype: str
        """
        match = re.match(r"^\s*<h3>(.*?)</h3>\s*(.*?)$", body, re.DOTALL)
        if match is not None and match.group(1):
            summary, remainder = match.group(1), match.group(2)
            if self.strip_html(remainder).lstrip().startswith(summary.strip()):
                return remainder
        return body

    def _image_only(self, body, item):
        """Return full-screen image markup for 'image only' articles.

        :param body: article markup
        :type body: str
        :param item: feed item
        :type item: lxml.etree._Element
        :return: image markup or None if the article is not image only
        :rtype: str
        """
        if re.search(r"^\s*image only$", self.strip_html(body), re.IGNORECASE | re.MULTILINE):
            image = self.find_node(item, "images/image[@type='tactus']")
            if image is not None:
                return templates.render('content_imageonly', url=image.get('src', ""))
        return None

    def generate_slides(self):
        """Generate one slide per recent feed article.

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

            # Pull out the bits of the item we are interested in.
            title = self.node_text(item, "title")
            desc = self.node_text(item, "description")
            email, name = self.split_author(self.node_text(item, "author"))
            avatar = self.node_text(item, "newsagent:gravatar")
            image = self.find_node(item, "newsagent:images/newsagent:image[@type='article']")

            # Check for image-only articles first.
            imgbody = self._image_only(desc, item)
            if imgbody is not None:
                content = templates.render('content_noimage', content=imgbody)
            elif image is not None:
                content = templates.render('content_image', content=self._strip_summary(desc), url=image.get('src', ""))
            else:
                content = templates.render('content_noimage', content=self._strip_summary(desc))

            byline = templates.render('byline', avatar=self.gravatar(avatar) if avatar else None, author=name, email=email)
            slides.append(self._slide(templates.render('slide',
                type=self.determine_type(content),
                title=title,
                byline=byline,
                posted=self.format_date(timestamp),
                content=content)))

        logging.debug(f"Newsagent: Source '{self.name}' produced {len(slides)} slides.")
        return slides
