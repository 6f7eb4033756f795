"""Module providing candidate slide class."""


class CandidateSlide:
    """Slide produced by a slide source.

    A candidate slide couples rendered markup with a duplication weight. The
    weight controls how often the slide appears within one rotation of the
    slideshow. A slide with weight w appears roughly n/w times if n slides
    have been aggregated in total. A weight of 1 means the slide appears
    exactly once.

    Candidate slides are produced afresh by every aggregation run and are
    never modified after creation.

    Properties:
        body (str): Rendered markup of the slide. Opaque to the aggregator
            and placer.
        duplicate (int): Duplication weight. Always >= 1. Weights below 1 or
            invalid weights are treated as 1.
        source (str): Identity of the producing source. Used for logging only.
            Default is None.
    """

    __slots__ = ('_body', '_duplicate', '_source')

    def __init__(self, body, duplicate=1, source=None):
        """Initialize candidate slide instance.

        :param body: rendered markup of the slide
        :type body: str
        :param duplicate: duplication weight (default: 1)
        :type duplicate: int
        :param source: identity of the producing source (default: None)
        :type source: str
        """
        try:
            duplicate = int(duplicate)
        except (TypeError, ValueError):
            duplicate = 1
        object.__setattr__(self, '_body', body)
        object.__setattr__(self, '_duplicate', max(1, duplicate))
        object.__setattr__(self, '_source', source)

    def __setattr__(self, name, value):
        raise AttributeError(f"Candidate slides are immutable. Cannot set '{name}'.")

    def __repr__(self):
        return f"CandidateSlide(duplicate={self._duplicate}, source={self._source!r}, body={self._body[:40]!r})"

    def __eq__(self, other):
        if not isinstance(other, CandidateSlide):
            return NotImplemented
        return self._body == other._body and self._duplicate == other._duplicate

    def __hash__(self):
        return hash((self._body, self._duplicate))

    @property
    def body(self):
        """Return rendered markup of the slide.

        :return: rendered markup
        :rtype: str
        """
        return self._body

    @property
    def duplicate(self):
        """Return duplication weight of the slide.

        :return: duplication weight (>= 1)
        :rtype: int
        """
        return self._duplicate

    @property
    def source(self):
        """Return identity of the producing source.

        :return: source identity or None
        :rtype: str
        """
        return self._source
