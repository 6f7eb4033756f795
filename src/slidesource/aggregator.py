"""Module providing slide aggregator class."""

import hashlib
import logging
import math
import struct
import time

from concurrent.futures import ThreadPoolExecutor, TimeoutError

from .common import SourceFetchError
from .slide import CandidateSlide


def compute_seed(slides):
    """Compute reproducible seed from slide content.

    The seed is derived from the MD5 digest of all rendered bodies in sorted
    order. It thus only depends on the content, not on the order in which
    slides have been collected.

    :param slides: candidate slides
    :type slides: list of slidesource.CandidateSlide
    :return: unsigned 32 bit seed
    :rtype: int
    """
    digest = hashlib.md5()
    for body in sorted(slide.body for slide in slides):
        digest.update(body.encode('utf-8'))
    return struct.unpack('<L', digest.digest()[:4])[0]


class AggregatedSlideSet:
    """Slides collected from all enabled sources in one aggregation run.

    Properties:
        slides (tuple): Candidate slides in source order.
        seed (int): Seed derived from the slide content.
        checked (tuple): Identifiers of sources fetched successfully.
        failed (tuple): Identifiers of sources which failed.
    """

    def __init__(self, slides, seed, checked=(), failed=()):
        self._slides = tuple(slides)
        self._seed = seed
        self._checked = tuple(checked)
        self._failed = tuple(failed)

    def __len__(self):
        return len(self._slides)

    def __iter__(self):
        return iter(self._slides)

    @property
    def slides(self):
        return self._slides

    @property
    def seed(self):
        return self._seed

    @property
    def checked(self):
        return self._checked

    @property
    def failed(self):
        return self._failed


class SlideAggregator:
    """Slide aggregator.

    Collects candidate slides from all enabled slide sources in the registry.
    A failing source is logged and skipped, so one misbehaving source does
    not blank the whole slideshow. Sources are fetched one after the other
    by default. Independent sources may be fetched concurrently by
    specifying more than one worker. Results are always combined in registry
    order. Each source must finish within the fetch timeout.
    """

    def __init__(self, registry, factory, settings=None, workers=1, timeout=30):
        """Initialize slide aggregator.

        :param registry: slide source registry
        :type registry: slidesource.SourceRegistry
        :param factory: slide source factory
        :type factory: slidesource.SourceFactory
        :param settings: application-wide settings passed to the sources
        :type settings: dict
        :param workers: number of sources fetched concurrently (default: 1)
        :type workers: int
        :param timeout: fetch timeout per source in seconds (default: 30)
        :type timeout: int or float
        """
        self._registry = registry
        self._factory = factory
        self._settings = dict(settings) if settings is not None else dict()
        self._settings['timeout'] = timeout
        self._workers = max(1, workers)
        self._timeout = timeout

    def _fetch(self, config):
        """Create slide source and generate its slides.

        Any exception raised by the source is reported as SourceFetchError.

        :param config: slide source configuration
        :type config: slidesource.SourceConfig
        :rtype: list of slidesource.CandidateSlide
        :raises: SourceFetchError
        """
        try:
            source = self._factory.create(config, self._settings)
            slides = source.generate_slides()
        except SourceFetchError:
            raise
        except Exception as e:
            raise SourceFetchError(f"Unexpected error while generating slides. {type(e).__name__}: {e}", config.identity, e)

        if slides is None:
            slides = []
        if not isinstance(slides, (list, tuple)) or not all(isinstance(slide, CandidateSlide) for slide in slides):
            raise SourceFetchError("Source did not return a list of candidate slides.", config.identity)
        return list(slides)

    def _result(self, config, future, timeout):
        """Wait for the slides of a submitted source.

        :param config: slide source configuration
        :type config: slidesource.SourceConfig
        :param future: pending fetch of the source
        :type future: concurrent.futures.Future
        :param timeout: seconds to wait at most
        :type timeout: int or float
        :return: slides or error of the source
        :rtype: list of slidesource.CandidateSlide or SourceFetchError
        """
        try:
            return future.result(timeout=max(0, timeout))
        except TimeoutError as e:
            future.cancel()
            return SourceFetchError(f"Source timed out after {self._timeout} seconds.", config.identity, e)
        except SourceFetchError as e:
            return e

    def _fetch_sequential(self, sources):
        """Fetch sources one after the other.

        Each source runs in a thread of its own and is given one timeout
        period. A source not done in time is reported as failed. Its thread is
        abandoned, so it does not hold up the following sources.

        :return: tuples of (configuration, slides or SourceFetchError)
        :rtype: list of tuple
        """
        results = []
        for config in sources:
            executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="fetch")
            try:
                future = executor.submit(self._fetch, config)
                results.append((config, self._result(config, future, self._timeout)))
            finally:
                executor.shutdown(wait=False)
        return results

    def _fetch_concurrent(self, sources):
        """Fetch sources using a pool of worker threads.

        Sources not done in time are reported as failed. Their threads are
        abandoned and results discarded.

        :return: tuples of (configuration, slides or SourceFetchError)
        :rtype: list of tuple
        """
        results = []
        executor = ThreadPoolExecutor(max_workers=self._workers, thread_name_prefix="fetch")
        try:
            futures = [ (config, executor.submit(self._fetch, config)) for config in sources ]
            # Allow one timeout period per round of workers.
            deadline = time.monotonic() + self._timeout * math.ceil(len(sources) / self._workers)
            for config, future in futures:
                results.append((config, self._result(config, future, deadline - time.monotonic())))
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        return results

    def aggregate(self):
        """Collect slides from all enabled sources.

        Sources which have been fetched successfully are marked as checked in
        the registry. Failed sources are not marked and thus retried with the
        next run.

        :return: aggregated slides and seed. Empty if no source is enabled or
            all sources failed.
        :rtype: slidesource.AggregatedSlideSet
        """
        sources = self._registry.list_enabled_sources()
        logging.info(f"Aggregator: Collecting slides from {len(sources)} enabled sources.")

        if self._workers > 1 and len(sources) > 1:
            results = self._fetch_concurrent(sources)
        else:
            results = self._fetch_sequential(sources)

        slides = []
        checked = []
        failed = []
        for config, result in results:
            if isinstance(result, SourceFetchError):
                logging.error(f"Aggregator: Skipping slide source {config.id} ({config.module}). {result}")
                failed.append(config.id)
                continue
            logging.debug(f"Aggregator: Slide source {config.id} ({config.module}) produced {len(result)} slides.")
            slides.extend(result)
            checked.append(config.id)

        seed = compute_seed(slides)

        # Failure to record the check must not fail the aggregation.
        for source_id in checked:
            try:
                self._registry.mark_checked(source_id)
            except Exception as e:
                logging.error(f"Aggregator: Unable to mark slide source {source_id} as checked. {e}")

        logging.info(f"Aggregator: Collected {len(slides)} slides from {len(checked)} sources. {len(failed)} sources failed.")
        return AggregatedSlideSet(slides, seed, checked, failed)
