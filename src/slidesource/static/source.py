"""Module for static single-slide sources."""

import slidesource

from slidesource import check_param, check_valid_required, templates


class SlideSource(slidesource.SlideSource):
    """Slide source producing one fixed slide.

    Typically used for branding slides, which are given a high duplication
    weight to appear several times per rotation. The content argument is
    inserted as markup. Title and image are escaped by the template.
    """

    # Required and valid configuration parameters
    CONF_REQ_KEYS = set()
    CONF_VALID_KEYS = {'content', 'image', 'title'} | slidesource.SlideSource.COMMON_KEYS | CONF_REQ_KEYS

    def _check_config(self, arguments):
        """Check the source arguments.

        :param arguments: source arguments
        :type arguments: dict
        :raises: slidesource.ConfigError
        """
        check_valid_required(arguments, self.CONF_VALID_KEYS, self.CONF_REQ_KEYS)
        check_param('title', arguments, required=False, is_str=True)
        check_param('image', arguments, required=False, is_str=True)

    def generate_slides(self):
        """Generate the static slide.

        :return: list containing a single candidate slide
        :rtype: list of slidesource.CandidateSlide
        """
        image = self._arguments.get('image')
        content = self._arguments.get('content', "")
        body = templates.render('static',
            type=self.determine_type(content),
            title=self._arguments.get('title'),
            image=image,
            content=content)
        return [ self._slide(body) ]
