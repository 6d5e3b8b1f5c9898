#!/usr/bin/env python3
"""Console block capture on the first ps5000a unit found."""

import logging
import sys

from pypicoblock.config import BlockConfig
from pypicoblock.series5000a import Picoscope5000aBlock

logger = logging.getLogger(__name__)


def main():
    logging.basicConfig(level=logging.INFO)
    config = BlockConfig()
    logger.info(f"Block capture: {config.n_samples} samples, timebase {config.timebase}")
    pico = Picoscope5000aBlock(config)
    print(f"Enter '{config.start_char}' to start the capture:")
    return pico.run()


if __name__ == "__main__":
    sys.exit(main())
