import logging

import numpy as np
import soundfile as sf

from ..engine.perf import BlockPacer
from .errors import InvalidConfiguration, LengthMismatch
from .fft_engine import is_power_of_two

logger = logging.getLogger(__name__)


class BlockReader:
    """
    File-backed block source for a SpectrumAnalyzer:
      - blocks() -> mono float32 blocks of block_size, advancing hop_size per block
      - spectra(analyzer, realtime=False) -> spectrum copy per block
      - seek_seconds(t), get position/duration, close()
    """
    def __init__(self, path: str, block_size: int, hop_size: int = None):
        if not is_power_of_two(block_size):
            raise InvalidConfiguration(f"Block size is not a power of two: {block_size!r}")
        hop = block_size if hop_size is None else int(hop_size)
        if not 1 <= hop <= block_size:
            raise InvalidConfiguration(f"Hop size must be in [1, {block_size}], got {hop_size!r}")

        self.path = path
        self.block_size = int(block_size)
        self.hop_size = hop
        self._sf = sf.SoundFile(path, mode="r")
        self._buffer = np.zeros(self.block_size, dtype=np.float32)
        logger.info("Opened %s: sr=%d ch=%d frames=%d block=%d hop=%d",
                    path, self._sf.samplerate, self._sf.channels, len(self._sf),
                    self.block_size, self.hop_size)

    # ---------- info ----------
    @property
    def sample_rate(self) -> int:
        return int(self._sf.samplerate)

    @property
    def channels(self) -> int:
        return int(self._sf.channels)

    @property
    def frames(self) -> int:
        return len(self._sf)

    @property
    def closed(self) -> bool:
        return self._sf.closed

    def duration_seconds(self) -> float:
        return float(self.frames) / float(self.sample_rate)

    def position_seconds(self) -> float:
        return float(self._sf.tell()) / float(self.sample_rate)

    # ---------- transport ----------
    def seek_seconds(self, seconds: float):
        frame = max(0, int(seconds * self.sample_rate))
        frame = min(frame, self.frames)
        self._sf.seek(frame)
        # start the next block from silence so it only holds audio from the new position
        self._buffer.fill(0.0)

    def _read_hop(self):
        raw = self._sf.read(self.hop_size, dtype="float32", always_2d=True)
        if raw.shape[1] > 1:
            return np.mean(raw, axis=1).astype(np.float32, copy=False)
        return raw[:, 0]

    # ---------- blocks ----------
    def blocks(self):
        hop = self.hop_size
        while True:
            mono = self._read_hop()
            n = mono.shape[0]
            if n == 0:
                return
            if n < hop:
                tmp = np.zeros(hop, dtype=np.float32)
                tmp[:n] = mono
                mono = tmp

            self._buffer[:-hop] = self._buffer[hop:]
            self._buffer[-hop:] = mono
            yield self._buffer.copy()

            if n < self.hop_size:
                return

    def spectra(self, analyzer, realtime: bool = False):
        """Feed every block to ``analyzer`` and yield a copy of its spectrum."""
        if analyzer.sample_count != self.block_size:
            raise LengthMismatch(analyzer.sample_count, self.block_size,
                                 f"Analyzer expects {analyzer.sample_count} samples, "
                                 f"reader produces {self.block_size}")
        pacer = BlockPacer(self.sample_rate / self.hop_size) if realtime else None
        return self._feed(analyzer, pacer)

    def _feed(self, analyzer, pacer):
        # generator bodies start on first next(), not when spectra() is called
        if pacer is not None:
            pacer.restart()
        for block in self.blocks():
            analyzer.analyze(block)
            yield np.array(analyzer.get_spectrum())
            if pacer is not None:
                pacer.wait()

    # ---------- lifecycle ----------
    def close(self):
        if not self._sf.closed:
            self._sf.close()
            logger.debug("Closed %s", self.path)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
