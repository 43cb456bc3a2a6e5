"""Fixed auction parameters. There is no governance over these values."""

# Minimum raise over the current high bid, in percent (floor division)
MIN_INCREMENT_PERCENT = 5

# Settlement fee kept by the owner, in percent (floor division)
FEE_PERCENT = 2

# A bid landing this close to the deadline resets it to now + EXTENSION_WINDOW
EXTENSION_WINDOW = 10 * 60

SECONDS_PER_MINUTE = 60

DIRECT_PAYMENT_MESSAGE = "Direct payments not accepted; use place_bid"
