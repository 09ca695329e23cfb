import logging

machodeps_logger = logging.getLogger("machodeps")
