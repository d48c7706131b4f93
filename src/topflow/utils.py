import logging

logger = logging.getLogger("topflow")
# Library code never configures output; applications attach their own handlers.
logger.addHandler(logging.NullHandler())
