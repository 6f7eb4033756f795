"""Collection of classes to aggregate slides from content sources.

Provides the interface definition for class :class:`slidesource.SlideSource`.
Actual implementations are provided by sub-packages.

The following implementations, i.e. sub-packages, are currently available:
    - newsagent: One slide per article of an RSS feed.
    - mondaymail: One slide per section of newsletter editions.
    - newsletter: One slide per article cell of table-based newsletters.
    - twitter: One slide per status of a social media timeline.
    - static: A single fixed slide, e.g. for branding.

The :class:`slidesource.SourceRegistry` class keeps track of configured
sources. The :class:`slidesource.SlideAggregator` class collects slides from
all enabled sources and :class:`slidesource.DuplicationPlacer` arranges them
into the final slide sequence.

License: GNU General Public License v3 (GPLv3)
"""

from .common import ConfigError, PlacementInternalError, SourceFetchError, check_param, check_valid_required, format_arguments, parse_arguments
from .slide import CandidateSlide
from .source import DEFAULT_SETTINGS, SlideSource
from .registry import SourceConfig, SourceRegistry
from .factory import SOURCE_MODULES, SourceFactory
from .aggregator import AggregatedSlideSet, SlideAggregator, compute_seed
from .placer import DuplicationPlacer, copies, total_length
