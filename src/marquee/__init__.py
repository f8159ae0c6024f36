"""marquee: run a local web app as a single, addressable background instance."""

import logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
