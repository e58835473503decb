# =============================================================================
# Neural Display Engine (NDE)
# Drives the LED board from the live state of a tiny digit classifier.
# =============================================================================
#
# ── WHAT THE BOARD SHOWS ─────────────────────────────────────────────────────
#
#   A seven-segment digit feeds a 7 → 2 → 10 fully-connected network.  Every
#   wire of that network is an LED.  Brightness of a wire = size of the
#   contribution flowing along it for the digit currently on display.
#
#   The board is three TLC5947 PWM controllers (24 channels each, 12 bits
#   per channel) daisy-chained on one SPI bus.  The chain is a shift
#   register wired tail-first, so the last channel is clocked out first.
#
# RESPONSIBLE for:
#   - Background training
#       One epoch at a time, re-armed after a short delay so the render
#       path is never starved.  Each finished epoch publishes an immutable
#       weight snapshot.
#   - Activation tracing
#       Every per-wire product, not just layer sums.
#   - Wire layout
#       Fixed pin offsets, per-group normalisation, layer-2/output
#       interleaving, tail-first channel order.
#   - PWM bitstream construction
#       Gamma 2.8, 12-bit big-endian fields, one packed frame per tick.
#
# NOT responsible for:
#   - The SPI driver itself (any device object with writebytes2/writebytes)
#   - Process supervision / boot wiring
#
# ── DATA FLOW ─────────────────────────────────────────────────────────────────
#   NNM.trainer     → SnapshotHolder (atomic swap, once per epoch)
#   NNM.activations → ActivationTrace for the digit on display
#   SGM.frame_builder → 72-channel brightness frame (reversed)
#   SGM.pwm_encoder → 108-byte PWM frame
#   SOM.transport   → SPI bus
#
# ── Module layout ─────────────────────────────────────────────────────────────
#   SMM/  - Signal Mapping Module: constants, pin map, errors
#   SGM/  - Signal Generation Module: codec, oscillator, PWM encoder, frames
#   NNM/  - Neural Network Module: model, activation trace, trainer
#   SOM/  - Signal Output Module: bus transport, display, render loop
#   SVM/  - Signal Verification Module: PWM decoder, board emulator
# =============================================================================

__version__ = "0.3.0"
