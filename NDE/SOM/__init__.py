# =============================================================================
# SOM - Signal Output Module
# Subfolder of NDE (Neural Display Engine)
# =============================================================================
#
# The only part of NDE that touches the bus.
#
# Modules:
#   transport.py - SpiTransport (wraps an SPI device object) and
#                  RecordingTransport (in-memory, for emulation and tests)
#   display.py   - Display: one frame → one bus transfer per call;
#                  RenderLoop: re-arming render tick on its own thread
# =============================================================================
