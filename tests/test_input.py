from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
import soundfile as sf

from spectra.audio.analysis import SpectrumAnalyzer
from spectra.audio.errors import InvalidConfiguration, LengthMismatch
from spectra.audio.input import BlockReader
from spectra.engine import perf

SR = 8000
BLOCK = 64


def _write(path: Path, data: np.ndarray, sr: int = SR) -> str:
    sf.write(str(path), data.astype(np.float32), sr, subtype="FLOAT")
    return str(path)


@pytest.fixture()
def ramp_file(tmp_path: Path) -> tuple[str, np.ndarray]:
    data = (np.arange(4 * BLOCK, dtype=np.float32) / 1024.0) - 0.1
    return _write(tmp_path / "ramp.wav", data), data


def test_blocks_without_overlap(ramp_file) -> None:
    path, data = ramp_file
    with BlockReader(path, BLOCK) as reader:
        assert reader.sample_rate == SR
        assert reader.channels == 1
        assert reader.frames == 4 * BLOCK
        assert reader.duration_seconds() == pytest.approx(4 * BLOCK / SR)
        blocks = list(reader.blocks())
    assert reader.closed
    assert len(blocks) == 4
    for i, block in enumerate(blocks):
        assert block.dtype == np.float32
        np.testing.assert_array_equal(block, data[i * BLOCK:(i + 1) * BLOCK])


def test_blocks_with_half_overlap(ramp_file) -> None:
    path, data = ramp_file
    hop = BLOCK // 2
    with BlockReader(path, BLOCK, hop_size=hop) as reader:
        blocks = list(reader.blocks())
    assert len(blocks) == 8
    np.testing.assert_array_equal(blocks[0][:hop], np.zeros(hop, dtype=np.float32))
    np.testing.assert_array_equal(blocks[0][hop:], data[:hop])
    np.testing.assert_array_equal(blocks[3], data[2 * hop:4 * hop])


def test_final_partial_block_is_zero_padded(tmp_path: Path) -> None:
    data = np.full(BLOCK + BLOCK // 4, 0.5, dtype=np.float32)
    with BlockReader(_write(tmp_path / "short.wav", data), BLOCK) as reader:
        blocks = list(reader.blocks())
    assert len(blocks) == 2
    assert np.all(blocks[1][:BLOCK // 4] == 0.5)
    assert np.all(blocks[1][BLOCK // 4:] == 0.0)


def test_stereo_is_mixed_to_mono(tmp_path: Path) -> None:
    left = np.linspace(-0.5, 0.5, BLOCK, dtype=np.float32)
    stereo = np.stack([left, 3.0 * left], axis=1)
    with BlockReader(_write(tmp_path / "stereo.wav", stereo), BLOCK) as reader:
        assert reader.channels == 2
        (block,) = list(reader.blocks())
    np.testing.assert_allclose(block, 2.0 * left, rtol=1e-6)


def test_seek_restarts_from_silence(ramp_file) -> None:
    path, data = ramp_file
    with BlockReader(path, BLOCK, hop_size=BLOCK // 2) as reader:
        next(reader.blocks())
        reader.seek_seconds(2 * BLOCK / SR)
        assert reader.position_seconds() == pytest.approx(2 * BLOCK / SR)
        block = next(reader.blocks())
    np.testing.assert_array_equal(block[:BLOCK // 2], 0.0)
    np.testing.assert_array_equal(block[BLOCK // 2:], data[2 * BLOCK:2 * BLOCK + BLOCK // 2])


def test_spectra_follow_a_tone(tmp_path: Path) -> None:
    n = np.arange(8 * BLOCK)
    tone = 0.5 * np.sin(2.0 * np.pi * 5 * n / BLOCK)
    with BlockReader(_write(tmp_path / "tone.wav", tone), BLOCK) as reader:
        analyzer = SpectrumAnalyzer(BLOCK, window="hanningDenormalized", smoothing=0.9)
        frames = list(reader.spectra(analyzer))
    assert len(frames) == 8
    for spec in frames:
        assert spec.shape == (BLOCK // 2,)
        assert int(np.argmax(spec)) == 5
    # copies, not views of the analyzer's buffer
    assert frames[0] is not frames[1]
    assert frames[0].flags.writeable


def test_spectra_rejects_mismatched_analyzer(ramp_file) -> None:
    path, _ = ramp_file
    with BlockReader(path, BLOCK) as reader:
        with pytest.raises(LengthMismatch):
            reader.spectra(SpectrumAnalyzer(2 * BLOCK))


def test_realtime_spectra_are_paced(ramp_file, monkeypatch) -> None:
    path, _ = ramp_file
    waits = []
    restarts = []
    monkeypatch.setattr(perf.BlockPacer, "wait", lambda self: waits.append(self.rate))
    monkeypatch.setattr(perf.BlockPacer, "restart", lambda self: restarts.append(len(waits)))
    with BlockReader(path, BLOCK) as reader:
        list(reader.spectra(SpectrumAnalyzer(BLOCK), realtime=True))
    assert waits == [SR / BLOCK] * 4
    assert restarts == [0]


@pytest.mark.parametrize("block, hop", [(48, None), (64, 0), (64, 65)])
def test_rejects_bad_block_setup(ramp_file, block, hop) -> None:
    path, _ = ramp_file
    with pytest.raises(InvalidConfiguration):
        BlockReader(path, block, hop_size=hop)
