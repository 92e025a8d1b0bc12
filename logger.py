import logging

logger = logging.getLogger("navtree_index")
logger.setLevel("INFO")

# Console handler, attached once even if the module is reloaded
if not logger.handlers:
    ch = logging.StreamHandler()
    ch.setLevel(logging.INFO)
    ch.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    logger.addHandler(ch)
