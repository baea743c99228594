"""
Central configuration for the dendrogram MCMC sampler.
"""

# --- Randomness ---

# Default seed for the sampling session RNG (None for OS entropy).
RANDOM_SEED: int | None = None

# A uniform draw strictly above this value makes a rotation act on the
# pivot's left edge; otherwise the right edge is used.
MUTATION_LEFT_THRESHOLD: float = 0.5

# --- Sampler Parameters ---

# Number of uniform draws from the node arena before the sampler falls back to
# choosing directly among the currently mutable nodes.
MAX_SELECTION_ATTEMPTS: int = 1000

# Smallest leaf count for which sampling is defined. With two leaves the single
# internal node has no internal child to rotate through.
MIN_SAMPLING_LEAVES: int = 3

# Smallest leaf count for which a dendrogram (and a root) exists.
MIN_TREE_LEAVES: int = 2

# --- Chain Driver ---

# Default progress-logging interval (in steps) for ``run_chain``.
# 0 disables progress logging.
LOG_EVERY: int = 1000

# --- Output Files ---

# Suffix of the Graphviz file written next to the tree file by ``save``.
DOT_SUFFIX: str = ".dot"
