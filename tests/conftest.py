import os

from raffle import config

NETWORK = os.getenv("RAFFLE_NETWORK", config.DEFAULT_NETWORK)
