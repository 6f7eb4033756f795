"""Tests for the slide source implementations."""

from datetime import datetime, timedelta, timezone
from email.utils import format_datetime
from unittest.mock import MagicMock, patch

import pytest
import requests

from slidesource import ConfigError, SourceConfig, SourceFactory, SourceFetchError, templates
from slidesource.mondaymail import SlideSource as MondayMailSource
from slidesource.mondaymail.source import split_edition
from slidesource.newsagent import SlideSource as NewsagentSource
from slidesource.newsletter import SlideSource as NewsletterSource
from slidesource.static import SlideSource as StaticSource
from slidesource.twitter import SlideSource as TwitterSource


NOW = datetime.now(timezone.utc)
RECENT = format_datetime(NOW - timedelta(hours=1))
OLD = format_datetime(NOW - timedelta(days=30))

SETTINGS = {'time_zone': "UTC", 'timeout': 5}


def response(content=b"", json_data=None):
    """Create successful response mock."""
    resp = MagicMock()
    resp.content = content
    resp.json.return_value = json_data
    return resp


def feed(*items):
    """Create RSS document from item fragments."""
    return ("""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:newsagent="http://newsagent.example.com/ns">
<channel><title>Feed</title>%s</channel></rss>""" % "".join(items)).encode("utf-8")


def item(title, description, date, extra=""):
    return f"""<item><title>{title}</title>
<description><![CDATA[{description}]]></description>
<author>jo@example.com (Jo Bloggs)</author>
<pubDate>{date}</pubDate>{extra}</item>"""


# ----------------------------------------------------------------------------
# Base class
# ----------------------------------------------------------------------------

class TestBase:

    def test_determine_type(self):
        assert StaticSource.determine_type("") == "typeE"
        kind = StaticSource.determine_type("<p>anything</p>")
        assert kind.startswith("type") and kind[4:] in "0123456789ABCDEF"

    def test_split_author(self):
        assert StaticSource.split_author("jo@example.com (Jo Bloggs)") == ("jo@example.com", "Jo Bloggs")
        assert StaticSource.split_author("Jo Bloggs") == ("", "Jo Bloggs")

    def test_invalid_common_arguments(self):
        with pytest.raises(ConfigError):
            StaticSource("static#1", {'duplicate': "lots"})
        with pytest.raises(ConfigError):
            StaticSource("static#1", {'maxage': "-2"})

    def test_unknown_time_zone(self):
        with pytest.raises(ConfigError):
            StaticSource("static#1", {}, {'time_zone': "Mars/Olympus"})

    def test_age_limit(self):
        source = StaticSource("static#1", {'maxage': "2"}, SETTINGS)
        assert source.in_age_limit(NOW - timedelta(days=1))
        assert not source.in_age_limit(NOW - timedelta(days=3))

    def test_age_limit_disabled(self):
        source = StaticSource("static#1", {'maxage': "0"}, SETTINGS)
        assert source.in_age_limit(NOW - timedelta(days=3000))

    def test_unparsable_date_is_now(self):
        source = StaticSource("static#1", {}, SETTINGS)
        assert NOW - source.parse_date("not a date") <= timedelta(0)

    def test_fetch_errors(self):
        source = NewsagentSource("newsagent#1", {'url': "http://example.com/rss"}, SETTINGS)
        with patch("slidesource.source.requests.get", side_effect=requests.exceptions.Timeout("slow")):
            with pytest.raises(SourceFetchError):
                source.generate_slides()
        failed = response()
        failed.raise_for_status.side_effect = requests.exceptions.HTTPError("404")
        with patch("slidesource.source.requests.get", return_value=failed):
            with pytest.raises(SourceFetchError):
                source.generate_slides()

    def test_malformed_xml(self):
        source = NewsagentSource("newsagent#1", {'url': "http://example.com/rss"}, SETTINGS)
        with patch("slidesource.source.requests.get", return_value=response(b"<rss><channel>")):
            with pytest.raises(SourceFetchError):
                source.generate_slides()


# ----------------------------------------------------------------------------
# Factory
# ----------------------------------------------------------------------------

class TestFactory:

    def test_create(self):
        source = SourceFactory().create(SourceConfig(3, 'static', "title=Hi"), SETTINGS)
        assert isinstance(source, StaticSource)
        assert source.name == "static#3"

    def test_unknown_module(self):
        with pytest.raises(SourceFetchError):
            SourceFactory().create(SourceConfig(3, 'gopher', ""))

    def test_invalid_arguments(self):
        with pytest.raises(SourceFetchError):
            SourceFactory().create(SourceConfig(3, 'newsagent', "title=no url"))

    def test_broken_module_definition(self):
        with pytest.raises(ConfigError):
            SourceFactory({'broken': ("slidesource.nonexistent", "SlideSource", "Broken")})


# ----------------------------------------------------------------------------
# Implementations
# ----------------------------------------------------------------------------

class TestNewsagent:

    EXTRA = """<newsagent:gravatar>https://gravatar.example.com/avatar/abc</newsagent:gravatar>
<newsagent:images><newsagent:image type="article" src="http://example.com/a.jpg"/></newsagent:images>"""

    def generate(self, document, arguments=None):
        source = NewsagentSource("newsagent#1", arguments or {'url': "http://example.com/rss"}, SETTINGS)
        with patch("slidesource.source.requests.get", return_value=response(document)) as get:
            slides = source.generate_slides()
        return slides, get

    def test_recent_articles_only(self):
        slides, get = self.generate(feed(
            item("Fresh &amp; new", "<p>Text</p>", RECENT, self.EXTRA),
            item("Stale", "<p>Old</p>", OLD)))
        assert len(slides) == 1
        body = slides[0].body
        assert "Fresh &amp; new" in body
        assert "Jo Bloggs" in body
        assert "jo@example.com" in body
        assert 'src="http://example.com/a.jpg"' in body
        assert "https://gravatar.example.com/avatar/abc?s=64&amp;r=g&amp;d=mm" in body
        assert get.call_args.kwargs['timeout'] == 5

    def test_stops_at_first_old_article(self):
        slides, get = self.generate(feed(
            item("Stale", "<p>Old</p>", OLD),
            item("Fresh", "<p>New</p>", RECENT)))
        assert slides == []

    def test_age_check_disabled(self):
        slides, get = self.generate(feed(
            item("One", "<p>1</p>", RECENT),
            item("Two", "<p>2</p>", OLD)), {'url': "http://x", 'maxage': "0"})
        assert len(slides) == 2

    def test_duplicate_weight(self):
        slides, get = self.generate(feed(item("One", "<p>1</p>", RECENT)), {'url': "http://x", 'duplicate': "3"})
        assert slides[0].duplicate == 3
        assert slides[0].source == "newsagent#1"

    def test_summary_removed(self):
        slides, get = self.generate(feed(item("One", "<h3>Summary here</h3><p>Summary here and more.</p>", RECENT)))
        assert "<h3>" not in slides[0].body
        assert "Summary here and more." in slides[0].body

    def test_summary_kept_if_different(self):
        slides, get = self.generate(feed(item("One", "<h3>Summary</h3><p>Something else.</p>", RECENT)))
        assert "<h3>Summary</h3>" in slides[0].body

    def test_image_only(self):
        extra = '<newsagent:images><newsagent:image type="tactus" src="http://example.com/full.jpg"/></newsagent:images>'
        slides, get = self.generate(feed(item("Poster", "<p>image only</p>", RECENT, extra)))
        assert "image-only" in slides[0].body
        assert 'src="http://example.com/full.jpg"' in slides[0].body

    def test_title_escaped(self):
        slides, get = self.generate(feed(item("&lt;b&gt;Bold&lt;/b&gt;", "<p>Text</p>", RECENT)))
        assert "<b>Bold</b>" not in slides[0].body
        assert "&lt;b&gt;Bold&lt;/b&gt;" in slides[0].body


class TestMondayMail:

    EDITION = ('<p>Preamble</p><div id="MMlinks"><a href="#1">One</a></div>\n'
               '<p>* First section</p><p>text1</p>'
               '<p><img src="http://example.com/x.jpg">* Second</p><p>more</p>'
               '<div>[ End of The Monday Mail ]</div>')

    def test_split_edition(self):
        parts = split_edition(self.EDITION)
        assert parts[0] == ""
        assert parts[1] == "<p>First section</p><p>text1</p>"
        assert parts[2].startswith('<p><img src="http://example.com/x.jpg">Second</p>')
        assert "Preamble" not in "".join(parts)
        assert "MMlinks" not in "".join(parts)
        assert "End of The Monday Mail" not in "".join(parts)

    def test_split_edition_image_paragraph_starts_next_section(self):
        parts = split_edition('<p>* Alpha</p><p>a</p><p><img src="http://example.com/y.jpg" /></p><p>* Beta</p><p>b</p>')
        assert parts[1] == "<p>Alpha</p><p>a</p>"
        assert parts[2] == '<p><img src="http://example.com/y.jpg" /></p><p>Beta</p><p>b</p>'

    def test_slide_per_section(self):
        description = ('<p>* Alpha</p><p>alpha text</p><p><img src="http://example.com/y.jpg" /></p>'
                       '<p>* Beta</p><p>beta text</p>')
        source = MondayMailSource("mondaymail#2", {'url': "http://x"}, SETTINGS)
        with patch("slidesource.source.requests.get", return_value=response(feed(item("Monday Mail", description, RECENT)))):
            slides = source.generate_slides()
        assert len(slides) == 2
        assert "alpha text" in slides[0].body
        assert "with-image" not in slides[0].body
        assert "beta text" in slides[1].body
        assert "with-image" in slides[1].body
        assert 'src="http://example.com/y.jpg"' in slides[1].body

    def test_image_url_escaped(self):
        description = '<p>* Alpha</p><p>text</p><p><img src="http://example.com/a.jpg?x=1&amp;y=&quot;onerror=&quot;1" /></p>'
        source = MondayMailSource("mondaymail#2", {'url': "http://x"}, SETTINGS)
        with patch("slidesource.source.requests.get", return_value=response(feed(item("Monday Mail", description, RECENT)))):
            slides = source.generate_slides()
        assert len(slides) == 1
        assert 'onerror="' not in slides[0].body
        assert 'src="http://example.com/a.jpg?x=1&amp;y=&#34;onerror=&#34;1"' in slides[0].body


class TestNewsletter:

    TABLE = ('<table><tr>'
             '<td class="na-testnews-articleitem"><h3>Headline</h3>'
             '<div class="na-testnews-author"><img src="https://gravatar.example.com/x?s=16" />Jo Bloggs</div>'
             '<div><p>Article text</p></div></td>'
             '<td class="na-testnews-articleitem"><h3>Empty</h3></td>'
             '</tr></table>')

    def test_slide_per_article(self):
        source = NewsletterSource("newsletter#4", {'url': "http://x"}, SETTINGS)
        with patch("slidesource.source.requests.get", return_value=response(feed(item("Issue 1", self.TABLE, RECENT)))):
            slides = source.generate_slides()
        assert len(slides) == 1
        body = slides[0].body
        assert "Headline" in body
        assert "<p>Article text</p>" in body
        assert "Jo Bloggs" in body
        assert "s=64" in body


class TestTwitter:

    ARGUMENTS = {'account': "bbc", 'bearer_token': "secret", 'count': "5"}

    def status(self, age, text="Hello https://t.co/x", **extra):
        status = {
            'created_at': (NOW - age).strftime("%a %b %d %H:%M:%S +0000 %Y"),
            'full_text': text,
            'entities': {
                'urls': [ {'url': "https://t.co/x", 'expanded_url': "https://example.com/long"} ],
                'media': [ {'media_url_https': "https://pbs.example.com/img.jpg"} ]
            },
            'user': {'name': "BBC", 'screen_name': "bbc", 'profile_image_url_https': "https://pbs.example.com/avatar.jpg"}
        }
        status.update(extra)
        return status

    def generate(self, statuses, arguments=None):
        source = TwitterSource("twitter#5", arguments or self.ARGUMENTS, SETTINGS)
        with patch("slidesource.source.requests.get", return_value=response(json_data=statuses)) as get:
            slides = source.generate_slides()
        return slides, get

    def test_recent_statuses(self):
        slides, get = self.generate([ self.status(timedelta(hours=1)), self.status(timedelta(days=3)) ])
        assert len(slides) == 1
        body = slides[0].body
        assert "@bbc" in body
        assert "https://example.com/long" in body
        assert 'src="https://pbs.example.com/img.jpg"' in body
        assert get.call_args.kwargs['params']['screen_name'] == "bbc"
        assert get.call_args.kwargs['params']['count'] == 5
        assert get.call_args.kwargs['headers']['Authorization'] == "Bearer secret"

    def test_retweet_shows_original(self):
        original = self.status(timedelta(hours=2), text="Original words")
        slides, get = self.generate([ self.status(timedelta(hours=1), text="RT", retweeted_status=original) ])
        assert "Original words" in slides[0].body

    def test_text_escaped(self):
        slides, get = self.generate([ self.status(timedelta(hours=1), text="<script>x</script>") ])
        assert "<script>" not in slides[0].body

    def test_unexpected_response(self):
        with pytest.raises(SourceFetchError):
            self.generate({'errors': [ {'message': "Rate limit exceeded"} ]})

    def test_missing_token(self):
        with pytest.raises(ConfigError):
            TwitterSource("twitter#5", {'account': "bbc"}, SETTINGS)


class TestStatic:

    def test_single_slide(self):
        source = StaticSource("static#6", {'title': "Welcome", 'content': "<p>Hi</p>", 'image': "http://example.com/logo.png", 'duplicate': "5"}, SETTINGS)
        slides = source.generate_slides()
        assert len(slides) == 1
        assert slides[0].duplicate == 5
        assert "Welcome" in slides[0].body
        assert "<p>Hi</p>" in slides[0].body
        assert 'src="http://example.com/logo.png"' in slides[0].body

    def test_unknown_argument(self):
        with pytest.raises(ConfigError):
            StaticSource("static#6", {'colour': "red"}, SETTINGS)


# ----------------------------------------------------------------------------
# Templates
# ----------------------------------------------------------------------------

class TestTemplates:

    def test_text_escaped_markup_kept(self):
        body = templates.render('static', type="type1", title="A <b> & B", image=None, content="<p>Hi</p>")
        assert "A &lt;b&gt; &amp; B" in body
        assert "<p>Hi</p>" in body
        assert "<img" not in body

    def test_attribute_quoted(self):
        body = templates.render('content_imageonly', url='x" onerror="1')
        assert 'onerror="' not in body
        assert "&#34;" in body

    def test_missing_values_empty(self):
        body = templates.render('byline', author=None)
        assert "None" not in body
        assert "<img" not in body

    def test_unknown_template(self):
        with pytest.raises(ConfigError):
            templates.render('nonexistent')
