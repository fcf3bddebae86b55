"""Process-wide configuration needed by the transport bridge.

Writing to a peer that already closed its side raises `SIGPIPE`, which kills
the process by default. Ignoring it turns the failure into an ordinary
`BrokenPipeError` on the write. The disposition is process-global: it is set
once and never reverted.
"""

from __future__ import annotations

import logging
import signal
import threading

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_configured = False


def ignore_broken_pipe() -> bool:
    """Ignore `SIGPIPE` for the whole process, once.

    Returns True on the call that performed the configuration and False on
    every later call. Must run on the main thread when the disposition still
    needs changing; Python raises `ValueError` otherwise.
    """

    global _configured
    with _lock:
        if _configured:
            return False
        sigpipe = getattr(signal, "SIGPIPE", None)
        if sigpipe is not None and signal.getsignal(sigpipe) != signal.SIG_IGN:
            signal.signal(sigpipe, signal.SIG_IGN)
            logger.debug("SIGPIPE disposition set to SIG_IGN")
        _configured = True
        return True


def broken_pipe_ignored() -> bool:
    """Return whether `ignore_broken_pipe()` already ran in this process."""

    return _configured
