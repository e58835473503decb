"""
Board Emulator Tests
====================

PWM decoding and the emulator's render / verdict path.
"""

import numpy as np
import pytest

from NDE.SMM.constants import CHANNEL_COUNT, FRAME_BYTES, PWM_MAX
from NDE.SGM.frame_builder import FrameBuilder
from NDE.SGM.pwm_encoder import encode_frame, pack_levels, quantize
from NDE.SVM.hardware_sim import main, render, run_sim
from NDE.SVM.pwm_decoder import decode_frame, region_values, unpack_channels


# =============================================================================
# Decoder
# =============================================================================

class TestDecoder:

    def test_decode_known_frame(self):
        assert decode_frame(bytes.fromhex("000fff000fff"), channel_count=4).tolist() == [0, 4095, 0, 4095]

    def test_decode_recovers_levels(self):
        values = np.random.default_rng(1).random(CHANNEL_COUNT)
        levels = quantize(values)
        np.testing.assert_array_equal(decode_frame(pack_levels(levels)), levels)

    def test_unpack_undoes_wire_order(self):
        logical = np.linspace(0.0, 1.0, CHANNEL_COUNT)
        data = encode_frame(FrameBuilder.to_wire_order(logical), gamma=None)
        np.testing.assert_allclose(unpack_channels(data), logical, atol=1.0 / PWM_MAX)

    def test_wrong_length(self):
        with pytest.raises(ValueError):
            decode_frame(bytes(FRAME_BYTES - 1))

    def test_region_values(self):
        b = FrameBuilder(2)
        logical = np.arange(CHANNEL_COUNT)
        regions = region_values(logical, b)
        assert regions["ss"].tolist() == list(range(62, 69))
        assert regions["relu_0b"].tolist() == [39]


# =============================================================================
# Emulator
# =============================================================================

class TestEmulator:

    def test_fill_frame(self, capsys):
        data, dist = render("fill", 0, value=1.0)
        assert data == b"\xff" * FRAME_BYTES
        assert dist is None
        assert run_sim(data, FrameBuilder(2), check_unused=False)
        assert "VERDICT: PASS" in capsys.readouterr().out

    def test_fill_frame_lights_unwired_channels(self, capsys):
        data, _ = render("fill", 0, value=1.0)
        assert not run_sim(data, FrameBuilder(2), check_unused=True)
        assert "VERDICT: FAIL" in capsys.readouterr().out

    @pytest.mark.parametrize("digit", [1, 8])
    def test_activation_frame(self, digit, capsys):
        data, dist = render("activations", digit, hidden_width=2, epochs=3, seed=0)
        assert len(data) == FRAME_BYTES
        assert dist.shape == (10,)
        assert dist.sum() == pytest.approx(1.0)
        assert run_sim(data, FrameBuilder(2), expect_digit=digit, distribution=dist)
        assert "Network" in capsys.readouterr().out

    def test_drift_frame_starts_on_digit(self):
        data, _ = render("drift", 3, time=0.0)
        assert run_sim(data, FrameBuilder(2), expect_digit=3)

    def test_wrong_digit_fails(self):
        data, _ = render("breathe", 3, time=2.0)
        assert not run_sim(data, FrameBuilder(2), check_unused=False, expect_digit=4)

    def test_short_frame_fails(self, capsys):
        assert not run_sim(bytes(10), FrameBuilder(2))
        assert "frame length 10" in capsys.readouterr().out

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            render("sparkle", 1)

    def test_cli_render_and_save(self, tmp_path, capsys):
        out = tmp_path / "frame.bin"
        with pytest.raises(SystemExit) as exc:
            main(["--mode", "step", "--time", "4", "--save", str(out)])
        assert exc.value.code == 0
        assert len(out.read_bytes()) == FRAME_BYTES

        with pytest.raises(SystemExit) as exc:
            main(["--frame", str(out)])
        # step frames light unwired channels
        assert exc.value.code == 1
        capsys.readouterr()

    def test_cli_missing_file(self, tmp_path):
        with pytest.raises(SystemExit) as exc:
            main(["--frame", str(tmp_path / "nope.bin")])
        assert exc.value.code == 1
