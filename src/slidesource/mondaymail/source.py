"""Module for newsletter edition slide sources."""

import html
import logging
import re
import slidesource

from slidesource import check_param, check_valid_required, templates


# Marker inserted at the start of each newsletter section.
SECTION_MARKER = "<!--sep-->"

# Paragraph containing nothing but an image.
IMAGE_PARAGRAPH = re.compile(r'<p[^>]*><img.*?src="([^"]+)"[^>]*></p>', re.DOTALL)


def split_edition(body):
    """Split a newsletter edition into sections.

    Removes the preamble, the table of contents ("MMlinks") and the footer.
    Sections start with a paragraph beginning with "* ", optionally preceded
    by an image.

    :param body: markup of the newsletter edition
    :type body: str
    :return: markup of the sections. May contain empty strings.
    :rtype: list of str
    """
    # First remove the preamble and the table of contents.
    body = re.sub(r'^.*?<div id="MMlinks"', '<div id="MMlinks"', body, count=1, flags=re.DOTALL)
    body = re.sub(r'<div id="MMlinks".*?</div>\s*', "", body, count=1, flags=re.DOTALL)
    # And the footer.
    body = re.sub(r"\[ End of The Monday Mail.*?\]</div>", "", body, count=1, flags=re.DOTALL)
    # Mark the start of each section so we can split on it.
    body = re.sub(r"(<p>(?:<img .*?>)?)\* ", SECTION_MARKER + r"\1", body)
    return body.split(SECTION_MARKER)


class SlideSource(slidesource.SlideSource):
    """Slide source creating one slide per section of newsletter editions.

    Editions are read from an RSS feed, newest first. Each section of an
    edition becomes a slide of its own.
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

    def generate_slides(self):
        """Generate one slide per section of recent editions.

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

            title = self.node_text(item, "title")
            email, name = self.split_author(self.node_text(item, "author"))
            avatar = self.node_text(item, "newsagent:gravatar")
            byline = templates.render('byline', avatar=self.gravatar(avatar) if avatar else None, author=name, email=email)

            for part in split_edition(self.node_text(item, "description")):
                # The part before the first section is usually empty.
                if not part.strip():
                    continue

                # A paragraph containing just an image is assumed to be the
                # article image. Move it out of the text and show it as a
                # size-limited image next to the text.
                match = IMAGE_PARAGRAPH.search(part)
                if match is not None:
                    part = IMAGE_PARAGRAPH.sub("", part, count=1)
                    content = templates.render('content_image', content=part, url=html.unescape(match.group(1)))
                else:
                    content = templates.render('content_noimage', content=part)

                slides.append(self._slide(templates.render('slide',
                    type=self.determine_type(part),
                    title=title,
                    byline=byline,
                    posted=self.format_date(timestamp),
                    content=content)))

        logging.debug(f"MondayMail: Source '{self.name}' produced {len(slides)} slides.")
        return slides
