# =============================================================================
# constants.py - SMM Board Constants and Pin Map
# =============================================================================
#
# Values here describe the physical board.  Changing the pin map means
# re-soldering, not re-configuring: keep this file in step with the wiring.
#
# Board: 3 x TLC5947 (24-channel, 12-bit PWM), daisy-chained on SPI.

# -----------------------------------------------------------------------------
# PWM CONTROLLERS
# -----------------------------------------------------------------------------

PWM_CONTROLLER_COUNT    = 3
CHANNELS_PER_CONTROLLER = 24
CHANNEL_COUNT           = PWM_CONTROLLER_COUNT * CHANNELS_PER_CONTROLLER  # = 72

PWM_BITS  = 12                   # bits per channel field
PWM_MAX   = (1 << PWM_BITS) - 1  # = 4095
PWM_SCALE = 4095.9999999999      # 1.0 * PWM_SCALE truncates to 4095, never 4096
# NOTE: multiply then int() - never round(), which can reach 4096.

GAMMA = 2.8   # perceptual correction; brightness**GAMMA before quantising

FRAME_BITS  = CHANNEL_COUNT * PWM_BITS   # = 864
FRAME_BYTES = FRAME_BITS // 8            # = 108


# -----------------------------------------------------------------------------
# SEVEN-SEGMENT DIGITS
# Segment order: top, top-left, top-right, middle, bottom-left, bottom-right,
# bottom.  Index = digit.
# -----------------------------------------------------------------------------

SEGMENT_COUNT = 7
DIGIT_COUNT   = 10

DIGIT_BITLISTS = (
    (1, 1, 1, 0, 1, 1, 1),   # 0
    (0, 0, 1, 0, 0, 1, 0),   # 1
    (1, 0, 1, 1, 1, 0, 1),   # 2
    (1, 0, 1, 1, 0, 1, 1),   # 3
    (0, 1, 1, 1, 0, 1, 0),   # 4
    (1, 1, 0, 1, 0, 1, 1),   # 5
    (1, 1, 0, 1, 1, 1, 1),   # 6
    (1, 0, 1, 0, 0, 1, 0),   # 7
    (1, 1, 1, 1, 1, 1, 1),   # 8
    (1, 1, 1, 1, 0, 1, 1),   # 9
)

INTEGER_BITS = 7   # default width for the general integer encoder


# -----------------------------------------------------------------------------
# NETWORK SHAPE
# -----------------------------------------------------------------------------

DEFAULT_HIDDEN_WIDTH = 2     # the board has wires for exactly 2 hidden units
LEARNING_RATE        = 0.01


# -----------------------------------------------------------------------------
# PIN MAP
# Key   = region name
# Value = 0-based channel offset of the region's first channel in the
#         logical (un-reversed) frame.
#
#   ss                   : 7 input segments                 62 .. 68
#   dense_0              : 7 x 2 input → hidden wires       48 .. 61
#   relu_0a / relu_0b    : hidden unit outputs              15, 39
#   dense_1_and_output_a : hidden → output wires for digits 0-4,
#                          each pair followed by the digit's output LED
#                                                            0 .. 14
#   dense_1_and_output_b : same for digits 5-9              24 .. 38
#
# Channels 40-47 and 69-71 are not wired.  They are always written as 0.
# -----------------------------------------------------------------------------

PIN_MAP = {
    "ss":                   62,
    "dense_0":              48,
    # dense_1 is split across two connector blocks; weight-line and
    # output-line wires share each block
    "dense_1_and_output_a":  0,
    "dense_1_and_output_b": 24,
    "relu_0a":              15,
    "relu_0b":              39,
}

INTERLEAVE_CHUNK = 2    # dense_1 products per output LED group
INTERLEAVE_SPLIT = 15   # interleaved layer-2/output values that fit in block a


# -----------------------------------------------------------------------------
# ANIMATION
# -----------------------------------------------------------------------------

DRIFT_BASE_FREQUENCY   = 0.05      # Hz, segment 0
DRIFT_FREQUENCY_SPREAD = 0.01723   # Hz added per segment index

BREATHE_FREQUENCY = 0.1 * 0.5   # Hz per unit of (channel mod BREATHE_GROUPS)
BREATHE_GROUPS    = 19


# -----------------------------------------------------------------------------
# TIMING
# -----------------------------------------------------------------------------

INTER_EPOCH_DELAY = 0.100   # s - cooldown between training epochs
RENDER_RATE_HZ    = 30      # render ticks per second


# -----------------------------------------------------------------------------
# Convenience: reverse map  (pattern → digit)
# -----------------------------------------------------------------------------
BITLIST_TO_DIGIT = {bits: digit for digit, bits in enumerate(DIGIT_BITLISTS)}
