"""
Job Registry.

Maps a job identity (owner, job name) to the engine that runs it. The
identity is the scheduling key stored with every ChainRun, so it must not
change while a run is in flight.
"""

import logging
from typing import Optional

from ..jobs.chained import ChainedJob, ChainedJobEngine
from .errors import JobNotRegisteredError


logger = logging.getLogger(__name__)


class JobRegistry:
    """In-process registry of chained job engines."""

    def __init__(self):
        self._engines: dict[tuple[str, str], ChainedJobEngine] = {}

    def register(self, job: ChainedJob) -> ChainedJobEngine:
        """Register a job, replacing any engine under the same identity."""
        engine = ChainedJobEngine(job)
        identity = (engine.owner, engine.name)

        if identity in self._engines:
            logger.warning(f"Replacing registered job {engine.key}")

        self._engines[identity] = engine
        logger.debug(f"Registered job {engine.key}")
        return engine

    def get(self, owner: str, job_name: str) -> ChainedJobEngine:
        """
        Raises:
            JobNotRegisteredError: If nothing is registered under the identity
        """
        engine = self._engines.get((owner, job_name))
        if engine is None:
            raise JobNotRegisteredError(owner, job_name)
        return engine

    def find(self, owner: str, job_name: str) -> Optional[ChainedJobEngine]:
        return self._engines.get((owner, job_name))

    def keys(self) -> list[str]:
        return [engine.key for engine in self._engines.values()]

    def __contains__(self, identity: tuple[str, str]) -> bool:
        return identity in self._engines

    def __len__(self) -> int:
        return len(self._engines)
