# =============================================================================
# NDE/SMM/__init__.py - Signal Mapping Module
# =============================================================================
#
# The SMM is the single source of truth for the LED board: controller and
# channel counts, PWM field width, the pin map, the digit segment table,
# and timing for the trainer and render loop.
#
# All other NDE sub-modules import exclusively from here.
# Never define hardware constants outside this module.
#
# Sub-modules:
#   constants.py  - all board constants and the pin map
#   errors.py     - NDE exception hierarchy
# =============================================================================
