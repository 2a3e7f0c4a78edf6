# workload.py
import collections
import enum
import logging
import re
import time

import numpy as np

logger = logging.getLogger(__name__)

MAX_ADDRESS = (1 << 64) - 1
WORD_SIZE = 4

SPATIAL_BASE = 0x10000
HOT_BASE = 0x1A000
HOT_SLOTS = 20
RANDOM_WORDS = 0xFFFF

_address_re = re.compile(r"0[xX][0-9a-fA-F]+")


class AccessKind(enum.Enum):
    READ = "R"
    WRITE = "W"


AccessRecord = collections.namedtuple("AccessRecord", ["kind", "address"])


class TraceGenerator:
    """
    Synthetic access stream mixing three locality patterns:
      50% sequential reads (array walk, one word apart)
      30% writes to one hot address picked per trace
      20% reads at random word addresses
    `rng` is anything with numpy's Generator.integers(low, high); by default
    a Generator seeded from the wall clock (kept in .seed for replay).
    """

    def __init__(self, rng=None, seed=None):
        if rng is None:
            if seed is None:
                seed = time.time_ns()
            rng = np.random.default_rng(seed)
        self.seed = seed
        self.rng = rng

    def _draw(self, high):
        return int(self.rng.integers(0, high))

    def generate(self, num_accesses=5000):
        if num_accesses < 0:
            raise ValueError("num_accesses must be non-negative")
        hot_address = HOT_BASE + self._draw(HOT_SLOTS) * WORD_SIZE
        records = []
        for i in range(num_accesses):
            access_type = self._draw(100)
            if access_type < 50:
                # spatial: walk an array
                records.append(AccessRecord(AccessKind.READ, SPATIAL_BASE + i * WORD_SIZE))
            elif access_type < 80:
                # temporal: reuse the hot word
                records.append(AccessRecord(AccessKind.WRITE, hot_address))
            else:
                records.append(AccessRecord(AccessKind.READ, self._draw(RANDOM_WORDS) * WORD_SIZE))
        logger.info("generated %d accesses (seed=%s, hot address %#x)",
                    num_accesses, self.seed, hot_address)
        return records


def parse_trace_line(line):
    """Parse `R 0x1a000`; return None when the line does not have that shape."""
    parts = line.split()
    if len(parts) < 2:
        return None
    op, address_hex = parts[0], parts[1]
    try:
        kind = AccessKind(op.upper())
    except ValueError:
        return None
    if not _address_re.fullmatch(address_hex):
        return None
    address = int(address_hex, 16)
    if address > MAX_ADDRESS:
        return None
    return AccessRecord(kind, address)


def format_trace_line(record):
    return f"{record.kind.value} {record.address:#x}"


def write_trace(path, records):
    with open(path, "w") as f:
        for record in records:
            f.write(format_trace_line(record) + "\n")
    logger.info("wrote %d accesses to %s", len(records), path)


def read_trace(path):
    """
    Yield one parse result per non-blank line, None for malformed ones so
    the driver can count what it skipped.
    """
    with open(path, "r") as f:
        for lineno, line in enumerate(f, start=1):
            if not line.strip():
                continue
            record = parse_trace_line(line)
            if record is None:
                logger.warning("skipping malformed trace line %d: %s", lineno, line.strip())
            yield record
