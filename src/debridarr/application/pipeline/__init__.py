"""Resolution pipeline stages: fan-out, enrichment, availability."""

from .availability import AvailabilityResolver
from .debrid_files import DebridFileFetcher
from .enrichment import TorrentInfoEnricher
from .fanout import FanoutResult, IndexerFanout
from .orchestrator import TorrentPipeline
from .prewarm import NextEpisodePrewarmer

__all__ = [
    "AvailabilityResolver",
    "DebridFileFetcher",
    "FanoutResult",
    "IndexerFanout",
    "NextEpisodePrewarmer",
    "TorrentInfoEnricher",
    "TorrentPipeline",
]
