"""Average favicon color of a group.

Every favicon in the group is fetched and sampled independently. An
AggregationJob counts the samples in and releases the reduce step exactly
once, after the last source resolves, whatever mix of successes and failures
came before it.
"""

import asyncio

import structlog

from advanced_tab_groups.colors import (
    DEFAULT_ALPHA_THRESHOLD,
    DEFAULT_BRIGHTNESS_THRESHOLD,
    Rgb,
    average_colors,
    format_rgb,
    sample_image,
)
from advanced_tab_groups.host import GroupNode, HostTree
from advanced_tab_groups.models import Namespace
from advanced_tab_groups.store import PersistentStore

logger = structlog.get_logger()


class AggregationJob:
    """Wait-group over a fixed number of sources."""

    def __init__(self, total: int) -> None:
        if total < 1:
            raise ValueError("An aggregation job needs at least one source")
        self.total = total
        self.completed = 0
        self.samples: list[Rgb] = []
        self._done = asyncio.Event()

    @property
    def finished(self) -> bool:
        return self.completed == self.total

    def record(self, sample: Rgb | None) -> None:
        """Mark one source resolved; `None` means it produced no usable color."""
        if self.finished:
            raise RuntimeError("All sources of this job have already completed")
        self.completed += 1
        if sample is not None:
            self.samples.append(sample)
        if self.finished:
            self._done.set()

    async def wait(self) -> list[Rgb]:
        await self._done.wait()
        return list(self.samples)


class ColorAggregator:
    """Derives a group color from the favicons of its tabs."""

    def __init__(
        self,
        host: HostTree,
        store: PersistentStore,
        alpha_threshold: int = DEFAULT_ALPHA_THRESHOLD,
        brightness_threshold: int = DEFAULT_BRIGHTNESS_THRESHOLD,
    ) -> None:
        self.host = host
        self.store = store
        self.alpha_threshold = alpha_threshold
        self.brightness_threshold = brightness_threshold

    async def _sample(self, job: AggregationJob, index: int, source: str | None) -> None:
        sample = None
        try:
            if not source:
                logger.debug("Tab has no favicon", index=index)
            else:
                data = await self.host.load_image(source)
                sample = await asyncio.to_thread(sample_image, data, self.alpha_threshold, self.brightness_threshold)
                if sample is None:
                    logger.debug("No valid pixels found in favicon", index=index, source=source)
        except Exception as e:
            logger.warning("Failed to sample favicon", index=index, source=source, error=str(e))
        finally:
            job.record(sample)

    async def run(self, node: GroupNode) -> str | None:
        """Sample every favicon of `node` and apply their average color.

        Returns:
            The applied color, or None when there was nothing to sample or no source yielded a color
        """
        sources = node.image_sources()
        if not sources:
            logger.debug("No favicons in group", group_id=node.id)
            return None

        job = AggregationJob(len(sources))
        logger.debug("Sampling favicons", group_id=node.id, total=job.total)
        tasks = [asyncio.ensure_future(self._sample(job, i, src)) for i, src in enumerate(sources)]
        samples = await job.wait()
        await asyncio.gather(*tasks, return_exceptions=True)

        if not samples:
            logger.info("No valid colors extracted from any favicon", group_id=node.id)
            return None

        value = format_rgb(average_colors(samples))
        node.set_color(value)
        logger.info(
            "Applied average favicon color",
            group_id=node.id,
            color=value,
            samples=len(samples),
            failed=job.total - len(samples),
        )
        await self.store.put(Namespace.COLORS, node.id, value)
        return value
