# simulator.py
import json
import logging
import os

from cache import SetAssociativeCache, block_offset, decode_address
from workload import MAX_ADDRESS, AccessKind, AccessRecord

logger = logging.getLogger(__name__)


class SimulationDriver:
    """
    Feeds accesses through one SetAssociativeCache in trace order. Hit and
    miss tallies are read from the cache; malformed records are counted here.
    One driver per run; geometry is fixed at construction.
    """

    def __init__(self, geometry):
        self.geometry = geometry
        self.cache = SetAssociativeCache(geometry.num_sets, geometry.associativity)
        self.skipped = 0
        self.outcomes = []

    @property
    def hits(self):
        return self.cache.hits

    @property
    def misses(self):
        return self.cache.misses

    @property
    def total_accesses(self):
        return self.hits + self.misses

    @property
    def hit_rate(self):
        total = self.total_accesses
        return self.hits / total if total else 0.0

    def step(self, record):
        """Simulate one access. Return True/False for hit/miss, None if skipped."""
        if (not isinstance(record, AccessRecord) or not isinstance(record.kind, AccessKind)
                or not isinstance(record.address, int) or not 0 <= record.address <= MAX_ADDRESS):
            self.skipped += 1
            return None
        tag, index = decode_address(record.address, self.geometry)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("%s %#x -> tag=%#x index=%d offset=%d", record.kind.value, record.address,
                         tag, index, block_offset(record.address, self.geometry))
        hit = self.cache.access(index, tag)
        self.outcomes.append(hit)
        return hit

    def run(self, records):
        for record in records:
            self.step(record)
        if self.skipped:
            logger.warning("skipped %d malformed trace records", self.skipped)
        return self.summary()

    def summary(self):
        g = self.geometry
        return {
            "total_accesses": self.total_accesses,
            "hits": self.hits,
            "misses": self.misses,
            "skipped": self.skipped,
            "cold_misses": self.cache.cold_misses,
            "evictions": self.cache.evictions,
            "hit_rate": self.hit_rate,
            "num_sets": g.num_sets,
            "offset_bits": g.offset_bits,
            "index_bits": g.index_bits,
            "tag_bits": g.tag_bits,
        }

    def save_results(self, summary, out_cfg):
        results_dir = out_cfg.get("results_dir", "results")
        os.makedirs(results_dir, exist_ok=True)
        path = os.path.join(results_dir, out_cfg.get("results_file", "results.json"))
        with open(path, "w") as f:
            json.dump(summary, f, indent=2)
        return path
