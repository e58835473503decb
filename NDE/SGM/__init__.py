# =============================================================================
# SGM - Signal Generation Module
# Subfolder of NDE (Neural Display Engine)
# =============================================================================
#
# Everything that turns numbers into what the board should show, without
# touching the bus.
#
# Modules:
#   pattern_codec.py - digit <-> seven-segment bit patterns, integer bits
#   oscillator.py    - time-indexed sine oscillator and drift animation
#   pwm_encoder.py   - brightness list → gamma → 12-bit packed PWM frame
#   frame_builder.py - activation trace → 72-channel frame (pin map, reversal)
#                      plus the breathe / step / fill / drift demo frames
#
# Constants live in NDE/SMM/constants.py
# Verification tools live in NDE/SVM/
# =============================================================================
