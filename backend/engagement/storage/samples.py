"""
Historical Sample Sources
=========================
Supply training samples built from historical content records.

A record pairs extracted features with observed outcomes:
    {"features": {"avgBrightness": 72, ...}, "engagement": 58.0,
     "views": 1400, "completion_rate": 0.37, "duration": 11, "tone": "funny"}

Records missing features or an engagement value are skipped.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List, Mapping, Union

from ..models import TrainingSample
from ..errors import EngagementError

logger = logging.getLogger(__name__)


class SampleSource(ABC):
    """Abstract source of historical (features, outcome) records."""

    @abstractmethod
    def fetch_records(self) -> List[Mapping]:
        """Return raw historical records."""
        pass

    def fetch_samples(self) -> List[TrainingSample]:
        """Usable training samples, built fresh on every call."""
        records = self.fetch_records()
        samples = []
        for record in records:
            sample = TrainingSample.from_record(record)
            if sample is not None:
                samples.append(sample)

        skipped = len(records) - len(samples)
        if skipped:
            logger.info(f"Skipped {skipped} of {len(records)} records without features or metrics")
        return samples


class InMemorySampleSource(SampleSource):
    """Records held in memory."""

    def __init__(self, records: Iterable[Mapping] = ()):
        self._records = list(records)

    def add(self, record: Mapping) -> None:
        self._records.append(record)

    def fetch_records(self) -> List[Mapping]:
        return list(self._records)


class JsonSampleSource(SampleSource):
    """
    Records read from a file.

    Accepts a JSON array of records, or JSON Lines (one record per line).
    A missing file yields no records.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def fetch_records(self) -> List[Mapping]:
        if not self.path.exists():
            logger.warning(f"Sample file not found: {self.path}")
            return []

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                text = f.read()
        except OSError as e:
            raise EngagementError(f"Cannot read samples from {self.path}: {e}", "sample_source_error") from e

        stripped = text.lstrip()
        if stripped.startswith('['):
            try:
                return [r for r in json.loads(stripped) if isinstance(r, dict)]
            except json.JSONDecodeError as e:
                raise EngagementError(f"Invalid sample file {self.path}: {e}", "sample_source_error") from e

        records = []
        for line_number, line in enumerate(text.splitlines(), start=1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError:
                logger.warning(f"Skipping malformed line {line_number} in {self.path}")
                continue
            if isinstance(record, dict):
                records.append(record)
        return records
