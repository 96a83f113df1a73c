from __future__ import annotations

import hashlib
import random
from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterable, List, Optional, Sequence


try:  # optional dependency
    import numpy as _np  # type: ignore
except Exception:  # pragma: no cover - optional
    _np = None


@dataclass
class RandomSource:
    engine: str

    def randint(self, a: int, b: int) -> int:
        raise NotImplementedError

    def random(self) -> float:
        raise NotImplementedError

    def choice(self, seq: Sequence[int]) -> int:
        raise NotImplementedError

    def shuffle(self, arr: List[int]) -> None:
        raise NotImplementedError

    def sample(self, seq: Sequence[int], k: int) -> List[int]:
        raise NotImplementedError


class PyRandomSource(RandomSource):
    def __init__(self, seed: Optional[int] = None):
        super().__init__(engine="py_random")
        self._rng = random.Random(seed)

    def randint(self, a: int, b: int) -> int:
        return self._rng.randint(a, b)

    def random(self) -> float:
        return self._rng.random()

    def choice(self, seq: Sequence[int]) -> int:
        return self._rng.choice(list(seq))

    def shuffle(self, arr: List[int]) -> None:
        self._rng.shuffle(arr)

    def sample(self, seq: Sequence[int], k: int) -> List[int]:
        return self._rng.sample(list(seq), k)


class NumpyPCG64Source(RandomSource):  # pragma: no cover - covered when numpy present
    def __init__(self, seed: Optional[int] = None):
        if _np is None:
            raise RuntimeError("numpy is not installed; install bingo-game[pcg]")
        super().__init__(engine="numpy_pcg64")
        self._rng = _np.random.Generator(_np.random.PCG64(seed))

    def randint(self, a: int, b: int) -> int:
        return int(self._rng.integers(low=a, high=b + 1))

    def random(self) -> float:
        return float(self._rng.random())

    def choice(self, seq: Sequence[int]) -> int:
        return int(self._rng.choice(seq))

    def shuffle(self, arr: List[int]) -> None:
        self._rng.shuffle(arr)

    def sample(self, seq: Sequence[int], k: int) -> List[int]:
        idxs = self._rng.choice(len(seq), size=k, replace=False)
        return [seq[int(i)] for i in idxs]


class ScriptedSource(RandomSource):
    """Replays fixed choices and floats, then defers to ``fallback``.

    ``choice`` returns the next scripted value, which must be one of the
    candidates offered. Without a fallback an exhausted script raises.
    """

    def __init__(
        self,
        *,
        choices: Iterable[int] = (),
        randoms: Iterable[float] = (),
        fallback: Optional[RandomSource] = None,
    ):
        super().__init__(engine="scripted")
        self._choices: Deque[int] = deque(choices)
        self._randoms: Deque[float] = deque(randoms)
        self._fallback = fallback

    def _require_fallback(self, what: str) -> RandomSource:
        if self._fallback is None:
            raise RuntimeError(f"Scripted {what} exhausted and no fallback source set")
        return self._fallback

    def randint(self, a: int, b: int) -> int:
        if self._choices:
            value = self._choices.popleft()
            if not a <= value <= b:
                raise ValueError(f"Scripted value {value} outside [{a}, {b}]")
            return value
        return self._require_fallback("choices").randint(a, b)

    def random(self) -> float:
        if self._randoms:
            return self._randoms.popleft()
        return self._require_fallback("randoms").random()

    def choice(self, seq: Sequence[int]) -> int:
        if self._choices:
            value = self._choices.popleft()
            if value not in seq:
                raise ValueError(f"Scripted value {value} is not among the candidates")
            return value
        return self._require_fallback("choices").choice(seq)

    def shuffle(self, arr: List[int]) -> None:
        self._require_fallback("shuffle").shuffle(arr)

    def sample(self, seq: Sequence[int], k: int) -> List[int]:
        return self._require_fallback("sample").sample(seq, k)


def create_rng(engine: str, seed: Optional[int] = None) -> RandomSource:
    engine = (engine or "py_random").strip().lower()
    if engine == "py_random":
        return PyRandomSource(seed)
    if engine == "numpy_pcg64":
        return NumpyPCG64Source(seed)
    raise ValueError(f"Unsupported RNG engine: {engine}")


def derive_parallel_seed(base_seed: int, index: int, purpose: str) -> int:
    """Derive a per-item seed from base seed, index, and purpose using sha256.

    Returns a 63-bit positive integer suitable for seeding common RNGs.
    """
    s = f"{base_seed}|{index}|{purpose}".encode("utf-8")
    digest = hashlib.sha256(s).digest()
    # first 8 bytes, masked to 63 bits
    return int.from_bytes(digest[:8], byteorder="big") & ((1 << 63) - 1)
