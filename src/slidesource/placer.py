"""Module providing duplication placer class.

The placer turns the aggregated slides into the final slide sequence. Slides
with a duplication weight w > 1 appear n // w times among n aggregated
slides. Their copies are spread evenly by dividing the sequence into one
window per copy and placing one copy at a random free position within each
window. All remaining slides then fill the free positions from left to
right.

Randomness is seeded from the content so that the same content always
results in the same sequence.
"""

import heapq
import logging
import random

from .common import PlacementInternalError


def copies(duplicate, count):
    """Return number of instances of a slide in the output.

    :param duplicate: duplication weight of the slide
    :type duplicate: int
    :param count: number of aggregated slides
    :type count: int
    :return: number of instances (>= 1)
    :rtype: int
    """
    if duplicate <= 1:
        return 1
    return max(1, count // duplicate)


def total_length(slides):
    """Return length of the output including all duplicates.

    :param slides: aggregated slides
    :type slides: list of slidesource.CandidateSlide
    :rtype: int
    """
    count = len(slides)
    total = count
    for slide in slides:
        if slide.duplicate > 1:
            total += copies(slide.duplicate, count) - 1
    return total


class DuplicationPlacer:
    """Duplication placer.

    Places aggregated slides and their duplicates in the output sequence.
    Every copy of a duplicated slide lands in its own window. If random
    placement runs into a full window, the copies are assigned again window
    by window in order of their window end. A
    :class:`slidesource.PlacementInternalError` is raised if no assignment
    with one copy per window exists.
    """

    def place(self, slides, seed):
        """Place slides and their duplicates.

        :param slides: aggregated slides
        :type slides: list of slidesource.CandidateSlide
        :param seed: seed of the pseudo-random number generator
        :type seed: int
        :return: rendered slide bodies in display order
        :rtype: list of str
        :raises: PlacementInternalError
        """
        count = len(slides)
        total = total_length(slides)
        if count == 0:
            return []

        rng = random.Random(seed)
        # Start from a canonical order so the result only depends on the
        # slides themselves, not on the order in which they were collected.
        ordered = sorted(slides, key=lambda slide: (slide.body, slide.duplicate))
        rng.shuffle(ordered)

        # One instance (start, end, slide) per window of each duplicated
        # slide. Slides with the most copies have the narrowest windows and
        # go first.
        duplicated = [ (index, slide, copies(slide.duplicate, count)) for index, slide in enumerate(ordered) if slide.duplicate > 1 ]
        duplicated.sort(key=lambda item: -item[2])
        instances = []
        for index, slide, num in duplicated:
            for instance in range(num):
                start, end = self._window(total, num, instance)
                instances.append((start, end, slide.body))

        output = self._place_random(instances, total, rng)
        if output is None:
            logging.info(f"Placer: Random placement ran into a full window. Assigning {len(instances)} copies by window end.")
            output = self._place_by_window_end(instances, total)

        # Copy remaining slides into the free positions in shuffled order.
        placed = { index for index, slide, num in duplicated }
        pos = 0
        for index, slide in enumerate(ordered):
            if index in placed:
                continue
            while pos < total and output[pos] is not None:
                pos += 1
            if pos >= total:
                raise PlacementInternalError(f"No free position left for slide {index} of {count}.", output)
            output[pos] = slide.body
            pos += 1

        # Every position must have been filled.
        empty = [ pos for pos, body in enumerate(output) if body is None ]
        if empty:
            raise PlacementInternalError(f"{len(empty)} of {total} positions have not been filled: {empty}.", output)

        logging.debug(f"Placer: Placed {count} slides in {total} positions.")
        return output

    @staticmethod
    def _window(total, instances, instance):
        """Return bounds of the window for one instance of a slide.

        Windows partition [0, total) into equal parts. The end is exclusive.

        :rtype: tuple
        """
        start = instance * total // instances
        end = (instance + 1) * total // instances
        return min(start, total), min(end, total)

    @staticmethod
    def _place_random(instances, total, rng):
        """Place each instance at a random free position within its window.

        Makes a bounded number of random attempts per window and then picks
        among the remaining free positions.

        :param instances: tuples (start, end, body)
        :type instances: list of tuple
        :return: partially filled output or None if a window is full
        :rtype: list
        """
        output = [None] * total
        for start, end, body in instances:
            pos = None
            for attempt in range(end - start):
                candidate = rng.randrange(start, end)
                if output[candidate] is None:
                    pos = candidate
                    break
            if pos is None:
                free = [ candidate for candidate in range(start, end) if output[candidate] is None ]
                if not free:
                    return None
                pos = rng.choice(free)
            output[pos] = body
        return output

    @staticmethod
    def _place_by_window_end(instances, total):
        """Assign instances to positions within their windows.

        Scans positions left to right and gives each position to the open
        instance whose window ends first. This finds an assignment whenever
        one exists.

        :param instances: tuples (start, end, body)
        :type instances: list of tuple
        :return: partially filled output
        :rtype: list
        :raises: PlacementInternalError
        """
        output = [None] * total
        pending = sorted(range(len(instances)), key=lambda i: instances[i][0])
        heap = []
        next_pending = 0
        for pos in range(total):
            while next_pending < len(pending) and instances[pending[next_pending]][0] <= pos:
                i = pending[next_pending]
                heapq.heappush(heap, (instances[i][1], i))
                next_pending += 1
            if not heap:
                continue
            end, i = heapq.heappop(heap)
            if end <= pos:
                start = instances[i][0]
                raise PlacementInternalError(f"No free position left in window [{start}, {end}) of {total} positions.", output)
            output[pos] = instances[i][2]
        if heap:
            start, end = instances[heap[0][1]][0], heap[0][0]
            raise PlacementInternalError(f"No free position left in window [{start}, {end}) of {total} positions.", output)
        return output
