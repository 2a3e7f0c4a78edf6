# cache.py
import collections
import logging

logger = logging.getLogger(__name__)

ADDRESS_BITS = 64


class InvalidGeometry(ValueError):
    """Cache size, block size and associativity do not describe a usable cache."""


Geometry = collections.namedtuple(
    "Geometry",
    ["cache_size_bytes", "block_size_bytes", "associativity",
     "num_blocks", "num_sets", "offset_bits", "index_bits", "tag_bits"],
)


def is_power_of_two(value):
    return value > 0 and (value & (value - 1)) == 0


def compute_geometry(cache_size_bytes, block_size_bytes, associativity):
    """
    Derive number of sets and the offset/index/tag split of a 64-bit address.
    Raises InvalidGeometry instead of truncating a non power-of-two log2.
    """
    for name, value in (("cache size", cache_size_bytes),
                        ("block size", block_size_bytes),
                        ("associativity", associativity)):
        if not isinstance(value, int) or isinstance(value, bool):
            raise InvalidGeometry(f"{name} must be an integer, got {value!r}")
    if associativity <= 0:
        raise InvalidGeometry("associativity cannot be zero")
    if cache_size_bytes <= 0 or block_size_bytes <= 0:
        raise InvalidGeometry("cache size and block size must be positive")
    if not is_power_of_two(block_size_bytes):
        raise InvalidGeometry(f"block size {block_size_bytes} is not a power of two")

    num_blocks = cache_size_bytes // block_size_bytes
    num_sets = num_blocks // associativity
    if num_sets == 0:
        raise InvalidGeometry("number of sets is zero, check cache/block size")
    if not is_power_of_two(num_sets):
        raise InvalidGeometry(f"number of sets {num_sets} is not a power of two")

    offset_bits = block_size_bytes.bit_length() - 1
    index_bits = num_sets.bit_length() - 1
    tag_bits = ADDRESS_BITS - index_bits - offset_bits
    if tag_bits < 0:
        raise InvalidGeometry("offset and index fields do not fit in a 64-bit address")

    return Geometry(
        cache_size_bytes=cache_size_bytes,
        block_size_bytes=block_size_bytes,
        associativity=associativity,
        num_blocks=num_blocks,
        num_sets=num_sets,
        offset_bits=offset_bits,
        index_bits=index_bits,
        tag_bits=tag_bits,
    )


def decode_address(address, geometry):
    """Split `address` into (tag, index) for the given geometry."""
    address_no_offset = address >> geometry.offset_bits
    index = address_no_offset & ((1 << geometry.index_bits) - 1)
    tag = address_no_offset >> geometry.index_bits
    return tag, index


def block_offset(address, geometry):
    return address & ((1 << geometry.offset_bits) - 1)


class CacheLine:
    __slots__ = ("valid", "tag", "last_used")

    def __init__(self):
        self.valid = False
        self.tag = 0
        self.last_used = 0

    def fill(self, tag, now):
        self.valid = True
        self.tag = tag
        self.last_used = now

    def __repr__(self):
        return f"CacheLine(valid={self.valid}, tag={self.tag:#x}, last_used={self.last_used})"


class SetAssociativeCache:
    """
    Set-associative cache model with LRU replacement.
    Each set is a fixed-length list of CacheLine; recency lives in
    CacheLine.last_used, stamped from a logical clock owned by the cache.
    """

    def __init__(self, num_sets, associativity):
        self.initialize(num_sets, associativity)

    def initialize(self, num_sets, associativity):
        self.num_sets = num_sets
        self.associativity = associativity
        self.sets = [[CacheLine() for _ in range(associativity)] for _ in range(num_sets)]
        self.clock = 0
        self.hits = 0
        self.misses = 0
        self.cold_misses = 0
        self.evictions = 0

    def access(self, index, tag):
        """
        Access block `tag` in set `index`. Return True if hit, False if miss.
        Updates LRU state. Accesses must arrive in program order.
        """
        self.clock += 1
        lines = self.sets[index]

        for line in lines:
            if line.valid and line.tag == tag:
                line.last_used = self.clock
                self.hits += 1
                logger.debug("hit set=%d tag=%#x", index, tag)
                return True

        self.misses += 1
        for line in lines:
            if not line.valid:
                line.fill(tag, self.clock)
                self.cold_misses += 1
                logger.debug("cold miss set=%d tag=%#x", index, tag)
                return False

        # set full: evict smallest last_used, first way wins ties
        victim = min(range(len(lines)), key=lambda way: lines[way].last_used)
        logger.debug("miss set=%d tag=%#x evicts way %d (tag=%#x)",
                     index, tag, victim, lines[victim].tag)
        lines[victim].fill(tag, self.clock)
        self.evictions += 1
        return False

    def stats(self):
        used_lines = sum(1 for s in self.sets for line in s if line.valid)
        return {
            "num_sets": self.num_sets,
            "associativity": self.associativity,
            "used_lines": used_lines,
            "hits": self.hits,
            "misses": self.misses,
            "cold_misses": self.cold_misses,
            "evictions": self.evictions,
            "clock": self.clock,
        }
