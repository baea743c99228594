"""Small logging helpers for the chain driver.

Functions are kept separate so they can be imported and reused elsewhere
without pulling in the entire `chain` module.
"""

from __future__ import annotations

import logging


def _default_chain_logger() -> logging.Logger:
    return logging.getLogger("dendrogram_mcmc.sampling.chain")


def log_chain_start(
    n_steps: int, n_leaves: int, logger: logging.Logger | None = None
) -> None:
    """Log the start of a sampling run."""
    logger = logger or _default_chain_logger()
    logger.info("%s", "=" * 80)
    logger.info("DENDROGRAM MCMC")
    logger.info("%s", "=" * 80)
    logger.info("Sampling %d steps over %d leaves.", n_steps, n_leaves)


def log_chain_progress(
    step: int,
    total: int,
    likelihood: float,
    acceptance_rate: float,
    logger: logging.Logger | None = None,
) -> None:
    """Log the state of the chain at a progress checkpoint."""
    logger = logger or _default_chain_logger()
    logger.info(
        "Step %d/%d: likelihood=%.6g acceptance=%.3f",
        step,
        total,
        likelihood,
        acceptance_rate,
    )


def log_chain_completion(
    total_steps: int,
    best_likelihood: float,
    logger: logging.Logger | None = None,
) -> None:
    """Log the completion of a sampling run."""
    logger = logger or _default_chain_logger()
    logger.info(
        "Completed %d MCMC steps; best likelihood %.6g.", total_steps, best_likelihood
    )
