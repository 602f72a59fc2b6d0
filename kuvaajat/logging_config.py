"""Logging setup for the Kuvaajat backend.

Messages use a pipe-separated layout so they stay greppable in hosted logs:
``POST /api/bid | photographer=usr_1 | job=abc``.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(debug: bool = False) -> None:
    """Install a stream handler on the ``kuvaajat`` logger once per process."""
    global _configured
    if _configured:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root = logging.getLogger("kuvaajat")
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``kuvaajat`` namespace."""
    if not name.startswith("kuvaajat"):
        name = f"kuvaajat.{name}"
    return logging.getLogger(name)


_events = get_logger("kuvaajat.events")


def log_job_event(action: str, job_id: str, actor_id: str, success: bool = True, error: str | None = None) -> None:
    """Log a job lifecycle event (create, delete, accept)."""
    if success:
        _events.info(f"JOB {action.upper()} | job={job_id} | actor={actor_id}")
    else:
        _events.warning(f"JOB {action.upper()} FAILED | job={job_id} | actor={actor_id} | error={error}")


def log_bid_decision(
    bid_id: str,
    job_id: str,
    customer_id: str,
    status: str,
    cascaded: int = 0,
) -> None:
    """Log the outcome of a bid resolution, including cascade size."""
    _events.info(
        f"BID {status.upper()} | bid={bid_id} | job={job_id} | customer={customer_id} | cascaded={cascaded}"
    )
