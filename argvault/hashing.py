"""
Seeded hash index over argument names.

The index maps every registered short and long name to the slot (position)
of its argument in the registry. It never owns arguments: dropping the index
leaves the registry untouched, and an entry is just a [key, slot] pair.

Layout
- power-of-two bucket array (initial HASH_TABLE_SIZE buckets);
- each bucket is a collision chain (a list of [key, slot] entries, newest
  first);
- the table doubles once the load factor exceeds HASH_LOAD_FACTOR.

Hashing
- 32-bit FNV-1a over the UTF-8 bytes of the key, with the offset basis mixed
  with a per-table random seed, followed by the MurmurHash3 finalizer for
  better bucket distribution. The seed makes collision patterns differ from
  one table to the next.

The registry only builds an index once HASH_THRESHOLD arguments exist; below
that, a linear scan is cheaper than hashing.
"""
import logging
import os
import threading
import time

from .faults import InternalFault
from .utils import bounded_mul

logger = logging.getLogger(__name__)

HASH_THRESHOLD = 16
HASH_TABLE_SIZE = 256
HASH_LOAD_FACTOR = 0.75

FNV_PRIME = 16777619
FNV_OFFSET_BASIS = 2166136261

_MASK = 0xFFFFFFFF


def avalanche(value, /):
    """
    MurmurHash3 fmix32 finalizer (all arithmetic modulo 2**32).
    """
    value &= _MASK
    value ^= value >> 16
    value = (value * 0x85EBCA6B) & _MASK
    value ^= value >> 13
    value = (value * 0xC2B2AE35) & _MASK
    value ^= value >> 16
    return value


def fnv1a(key, seed=0, /):
    """
    seeded 32-bit FNV-1a of `key`, finished with avalanche().
    """
    hash = (FNV_OFFSET_BASIS ^ seed) & _MASK
    for byte in key.encode("utf-8", "surrogateescape"):
        hash ^= byte
        hash = (hash * FNV_PRIME) & _MASK
    return avalanche(hash)


def random_seed(owner=None, /):
    """
    return a non-zero 32-bit seed.

    OS entropy is preferred; when it is unavailable, a high-resolution timer,
    the owner's identity, the process id and the thread id are mixed through
    avalanche() instead.
    """
    try:
        seed = int.from_bytes(os.urandom(4), "little")
    except (OSError, NotImplementedError):
        timer = time.perf_counter_ns()
        seed = timer & _MASK
        seed ^= (timer >> 32) & _MASK
        seed ^= id(owner) & _MASK
        seed ^= (id(owner) >> 32) & _MASK
        seed ^= os.getpid() & _MASK
        seed ^= threading.get_ident() & _MASK
        seed = avalanche(seed)
    return seed or 0xDEADBEEF


class HashIndex:
    """
    name → registry slot lookup table with separate chaining.

    invariants
    - capacity is a power of two;
    - every key appears in exactly one entry, in bucket fnv1a(key) & (capacity - 1);
    - size counts entries, i.e. distinct keys.
    """

    def __init__(self, capacity=HASH_TABLE_SIZE, seed=None):
        if capacity < 1 or capacity & (capacity - 1):
            raise InternalFault("Hash index capacity must be a power of two")
        self._capacity = capacity
        self._buckets = [[] for _ in range(capacity)]
        self._size = 0
        self._seed = random_seed(self) if seed is None else seed & _MASK

    @property
    def capacity(self):
        return self._capacity

    @property
    def seed(self):
        return self._seed

    @property
    def load_factor(self):
        return self._size / self._capacity

    def _bucket(self, key):
        return self._buckets[fnv1a(key, self._seed) & (self._capacity - 1)]

    def insert(self, key, slot):
        """
        bind `key` to `slot`, re-binding when the key already exists.
        """
        if not isinstance(key, str) or not key:
            raise InternalFault("Invalid parameters to hash insertion", key or "(null)")

        if self.load_factor > HASH_LOAD_FACTOR:
            self.resize()

        bucket = self._bucket(key)
        for entry in bucket:
            if entry[0] == key:
                entry[1] = slot
                return
        bucket.insert(0, [key, slot])
        self._size += 1

    def lookup(self, key):
        """
        return the slot bound to `key`, or None.
        """
        for candidate, slot in self._bucket(key):
            if candidate == key:
                return slot
        return None

    def discard(self, key):
        """
        drop the entry for `key` if present.
        """
        bucket = self._bucket(key)
        for position, entry in enumerate(bucket):
            if entry[0] == key:
                del bucket[position]
                self._size -= 1
                return

    def resize(self):
        """
        double the bucket array and re-bucket every entry exactly once.
        """
        capacity = bounded_mul(self._capacity, 2)
        buckets = [[] for _ in range(capacity)]
        for bucket in self._buckets:
            for entry in bucket:
                buckets[fnv1a(entry[0], self._seed) & (capacity - 1)].insert(0, entry)

        logger.debug("hash index resized from %d to %d buckets (%d entries)", self._capacity, capacity, self._size)
        self._buckets = buckets
        self._capacity = capacity

    def __contains__(self, key):
        return self.lookup(key) is not None

    def __len__(self):
        return self._size

    def __iter__(self):
        for bucket in self._buckets:
            for key, slot in bucket:
                yield key, slot

    def __repr__(self):
        return "HashIndex(size=%d, capacity=%d)" % (self._size, self._capacity)


__all__ = (
    "HashIndex",
    "HASH_THRESHOLD",
    "HASH_TABLE_SIZE",
    "HASH_LOAD_FACTOR",
    "fnv1a",
    "random_seed",
)
