# =============================================================================
# NDE/SVM/__init__.py - Signal Verification Module
# =============================================================================
#
# Tools for checking a PWM frame before it reaches the board, or for
# inspecting what the board would show without the board attached.
#
# Sub-modules:
#   pwm_decoder.py   - unpacks a PWM frame back into channel levels
#   hardware_sim.py  - LED board emulator (CLI + importable)
# =============================================================================
