"""Local dtype policy for Ratatosk array topologies."""

import jax.numpy as jnp
import numpy as np

# Keep node index contracts consistent across array-backed topologies.
INDEX_DTYPE = jnp.int64


def as_index(x):
    """Convert a scalar/array to the ratatosk index dtype."""
    return jnp.asarray(x, dtype=INDEX_DTYPE)


def to_host_index(x) -> np.ndarray:
    """Materialize an index array on the host for per-node lookups."""
    return np.asarray(as_index(x))


__all__ = ["INDEX_DTYPE", "as_index", "to_host_index"]
