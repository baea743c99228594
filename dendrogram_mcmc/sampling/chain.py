"""Bounded MCMC driver around :meth:`Dendrogram.sample`.

The sampler itself has no stopping rule; :func:`run_chain` issues a fixed
number of steps and records a per-step trace.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import numpy as np
import pandas as pd

from dendrogram_mcmc import config
from dendrogram_mcmc.sampling.logging import (
    log_chain_completion,
    log_chain_progress,
    log_chain_start,
)

if TYPE_CHECKING:
    from dendrogram_mcmc.tree.dendrogram import Dendrogram


TRACE_COLUMNS = ["likelihood", "log_likelihood", "accepted"]


def run_chain(
    tree: "Dendrogram",
    n_steps: int,
    *,
    log_every: Optional[int] = None,
    logger: Optional[logging.Logger] = None,
) -> pd.DataFrame:
    """Run ``n_steps`` Metropolis-Hastings steps on ``tree``.

    Parameters
    ----------
    tree
        Sampling session to advance in place.
    n_steps
        Number of calls to :meth:`Dendrogram.sample`.
    log_every
        Progress-logging interval; defaults to ``config.LOG_EVERY``
        (``0`` disables progress lines).
    logger
        Logger for progress output; defaults to this module's logger.

    Returns
    -------
    pd.DataFrame
        Trace indexed by the session's step number with columns
        ``likelihood``, ``log_likelihood`` and ``accepted``.
        ``trace.attrs["best_likelihood"]`` holds the maximum likelihood seen,
        including the starting state.
    """
    if n_steps < 0:
        raise ValueError(f"n_steps must be non-negative, got {n_steps}")
    log_every = config.LOG_EVERY if log_every is None else int(log_every)
    logger = logger or logging.getLogger(__name__)

    log_chain_start(n_steps, tree.n_leaves, logger=logger)

    likelihood = np.empty(n_steps, dtype=np.float64)
    log_likelihood = np.empty(n_steps, dtype=np.float64)
    accepted = np.zeros(n_steps, dtype=bool)
    steps = np.empty(n_steps, dtype=np.int64)
    best = tree.likelihood

    for i in range(n_steps):
        current = tree.sample()
        steps[i] = tree.mcmc_steps
        likelihood[i] = current
        log_likelihood[i] = tree.log_likelihood
        accepted[i] = bool(tree.last_accepted)
        best = max(best, current)

        if log_every > 0 and (i + 1) % log_every == 0:
            log_chain_progress(
                i + 1, n_steps, current, tree.acceptance_rate, logger=logger
            )

    log_chain_completion(n_steps, best, logger=logger)

    trace = pd.DataFrame(
        {
            "likelihood": likelihood,
            "log_likelihood": log_likelihood,
            "accepted": accepted,
        },
        index=pd.Index(steps, name="step"),
        columns=TRACE_COLUMNS,
    )
    trace.attrs["best_likelihood"] = float(best)
    return trace


__all__ = ["run_chain", "TRACE_COLUMNS"]
