"""
Random Streams
===============

Reproducible U(0,1) streams backed by numpy's PCG64 bit generator.

A stream remembers the SeedSequence it was created from, so it can be
rewound to its start at any time. An antithetic stream replays the same
sequence reflected as 1 - u, which gives exactly negatively correlated
inputs for inverse-transform samplers.

Streams are handed out by an explicit StreamProvider instead of a global
registry.

Author: Jose Orlando Bobadilla Fuentes | CQF
"""

from typing import List, Optional, Union

import numpy as np

SeedLike = Union[None, int, np.random.SeedSequence]


class RandomStream:
    """
    Rewindable U(0,1) stream.

    Usage:
        >>> s = RandomStream(seed=42)
        >>> u = s.random()
        >>> s.reset_start_stream()
        >>> s.random() == u
        True
    """

    def __init__(self, seed: SeedLike = None, antithetic: bool = False,
                 name: Optional[str] = None):
        if isinstance(seed, np.random.SeedSequence):
            self._seed_seq = seed
        else:
            self._seed_seq = np.random.SeedSequence(seed)
        self.antithetic = antithetic
        self.name = name or "stream"
        self._rng = np.random.Generator(np.random.PCG64(self._seed_seq))

    @property
    def seed_sequence(self) -> np.random.SeedSequence:
        return self._seed_seq

    def random(self) -> float:
        """Next U(0,1) variate (1 - u when the stream is antithetic)."""
        u = self._rng.random()
        return 1.0 - u if self.antithetic else u

    def randoms(self, n: int) -> np.ndarray:
        """Vector of the next n variates, same sequence as n calls to random()."""
        u = self._rng.random(n)
        return 1.0 - u if self.antithetic else u

    def reset_start_stream(self) -> None:
        """Rewind to the position the stream had when it was created."""
        self._rng = np.random.Generator(np.random.PCG64(self._seed_seq))

    def new_antithetic_stream(self) -> "RandomStream":
        """Independent handle replaying this stream's sequence reflected."""
        return RandomStream(self._seed_seq, antithetic=not self.antithetic,
                            name=f"{self.name}-anti")

    def __repr__(self) -> str:
        return f"RandomStream(name={self.name!r}, antithetic={self.antithetic})"


class StreamProvider:
    """
    Factory of statistically independent streams spawned from one root seed.

    Usage:
        >>> provider = StreamProvider(seed=2024)
        >>> s1, s2 = provider.next_stream(), provider.next_stream()
    """

    def __init__(self, seed: SeedLike = None):
        self._root = (seed if isinstance(seed, np.random.SeedSequence)
                      else np.random.SeedSequence(seed))
        self._streams: List[RandomStream] = []

    def next_stream(self) -> RandomStream:
        child = self._root.spawn(1)[0]
        stream = RandomStream(child, name=f"stream-{len(self._streams) + 1}")
        self._streams.append(stream)
        return stream

    def stream(self, index: int) -> RandomStream:
        """Stream number `index` (1-based), spawning as many as needed."""
        if index < 1:
            raise IndexError(f"Stream numbers start at 1, got {index}")
        while len(self._streams) < index:
            self.next_stream()
        return self._streams[index - 1]

    def reset_all(self) -> None:
        for s in self._streams:
            s.reset_start_stream()

    def __len__(self) -> int:
        return len(self._streams)
