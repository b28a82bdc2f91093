"""Unit tests for linear resampling."""

import numpy as np
import pytest

from secure_recorder.core.resampler import StreamResampler, resample


@pytest.mark.unit
class TestResample:
    """Test cases for resample()."""

    def test_identity_returns_input(self):
        data = np.linspace(-1, 1, 100, dtype=np.float32)
        assert resample(data, 16000, 16000) is data

    def test_upsample_interpolates_and_clamps(self):
        # positions 0, 0.5, 1.0, 1.5 -> last one clamps to the final sample
        out = resample([0.0, 1.0], 1, 2)
        np.testing.assert_allclose(out, [0.0, 0.5, 1.0, 1.0])

    def test_downsample_by_integer_ratio_picks_samples(self):
        ramp = np.arange(48, dtype=np.float32)
        out = resample(ramp, 48000, 16000)
        np.testing.assert_allclose(out, ramp[::3])

    def test_fractional_ratio(self):
        ramp = np.arange(441, dtype=np.float32)
        out = resample(ramp, 44100, 16000)
        assert len(out) == 160
        # Linear input stays linear
        np.testing.assert_allclose(out, np.arange(160) * (44100 / 16000), rtol=1e-5)

    @pytest.mark.parametrize(
        "from_rate,to_rate,length",
        [
            (48000, 16000, 1024),
            (44100, 16000, 1024),
            (44100, 16000, 4096),
            (22050, 16000, 999),
            (8000, 16000, 160),
            (96000, 16000, 1),
            (11025, 16000, 7),
        ],
    )
    def test_output_length_and_duration(self, from_rate, to_rate, length):
        out = resample(np.zeros(length, dtype=np.float32), from_rate, to_rate)

        expected = round(length * to_rate / from_rate)
        assert abs(len(out) - expected) <= 1

        in_duration = length / from_rate
        out_duration = len(out) / to_rate
        assert abs(out_duration - in_duration) <= 1 / to_rate

    def test_empty_input(self):
        out = resample(np.zeros(0, dtype=np.float32), 48000, 16000)
        assert out.shape == (0,)

    @pytest.mark.parametrize("from_rate,to_rate", [(0, 16000), (48000, 0), (-1, 16000)])
    def test_invalid_rates(self, from_rate, to_rate):
        with pytest.raises(ValueError):
            resample([0.0, 1.0], from_rate, to_rate)

    def test_output_is_float32(self):
        out = resample([0.0, 0.5, 1.0], 3, 2)
        assert out.dtype == np.float32


def _blocks(data, size):
    return [data[i:i + size] for i in range(0, len(data), size)]


@pytest.mark.unit
class TestStreamResampler:
    """Test cases for StreamResampler."""

    @pytest.mark.parametrize("from_rate", [48000, 44100, 22050, 8000])
    def test_output_follows_global_grid(self, from_rate):
        ramp = np.linspace(-1.0, 1.0, 9000, dtype=np.float32)
        resampler = StreamResampler(16000)

        out = np.concatenate([resampler.process(block, from_rate) for block in _blocks(ramp, 1024)])

        ratio = from_rate / 16000
        count = int((ramp.size - 1) // ratio) + 1
        expected = np.interp(np.arange(count) * ratio, np.arange(ramp.size), ramp)
        assert out.size == count
        np.testing.assert_allclose(out, expected, atol=1e-5)

    @pytest.mark.parametrize("block_size", [1, 7, 441, 1024, 4800])
    def test_block_size_does_not_change_output(self, block_size):
        wave = np.sin(np.linspace(0, 40, 5000)).astype(np.float32)
        whole = StreamResampler(16000).process(wave, 44100)

        resampler = StreamResampler(16000)
        pieces = [resampler.process(block, 44100) for block in _blocks(wave, block_size)]

        np.testing.assert_allclose(np.concatenate(pieces), whole, atol=1e-6)

    @pytest.mark.parametrize("from_rate", [48000, 44100])
    def test_two_seconds_in_default_blocks(self, from_rate):
        resampler = StreamResampler(16000)
        silence = np.zeros(2 * from_rate, dtype=np.float32)

        total = sum(resampler.process(block, from_rate).size for block in _blocks(silence, 1024))

        assert total == 32000

    def test_same_rate_passes_through(self):
        data = np.array([0.1, 0.2], dtype=np.float32)
        assert StreamResampler(16000).process(data, 16000) is data

    def test_reset_starts_new_stream(self):
        resampler = StreamResampler(16000)
        first = resampler.process(np.arange(10, dtype=np.float32), 48000)
        resampler.process(np.arange(5, dtype=np.float32), 48000)
        resampler.reset()

        again = resampler.process(np.arange(10, dtype=np.float32), 48000)
        np.testing.assert_array_equal(again, first)

    def test_rate_change_starts_new_stream(self):
        resampler = StreamResampler(16000)
        resampler.process(np.ones(10, dtype=np.float32), 48000)

        out = resampler.process(np.arange(4, dtype=np.float32), 32000)
        np.testing.assert_allclose(out, [0.0, 2.0])

    def test_empty_block(self):
        resampler = StreamResampler(16000)
        assert resampler.process(np.zeros(0, dtype=np.float32), 48000).size == 0
        assert resampler.process(np.zeros(3, dtype=np.float32), 48000).size == 1

    @pytest.mark.parametrize("rate", [0, -1])
    def test_rejects_bad_rates(self, rate):
        with pytest.raises(ValueError):
            StreamResampler(rate)
        with pytest.raises(ValueError):
            StreamResampler(16000).process([0.0], rate)
