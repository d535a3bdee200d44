"""Switchable numba compilation of the per-site kernels."""

import logging
import os

logger = logging.getLogger(__name__)

# Set IBDHMM_ENABLE_NUMBA=0 to run the kernels as plain Python.
ENABLE_NUMBA = {"0": False, "false": False}.get(
    os.environ.get("IBDHMM_ENABLE_NUMBA", "1").lower(), True
)

if ENABLE_NUMBA:
    import numba

    logger.debug("Numba compilation is enabled.")
else:
    logger.info("Numba compilation is disabled; kernels run as plain Python.")


def numba_njit(func, **kwargs):
    """Compile a function in nopython mode, unless numba is disabled."""
    if ENABLE_NUMBA:
        return numba.jit(func, nopython=True, **kwargs)
    return func
