"""
Chain collection: the sampler output the diagnostics engine reads.

C chains x T samples x named scalar parameters. Every chain carries the
same parameter names and the same length; sample order within a chain is
the MCMC iteration order. Collections are immutable: burn-in removal and
thinning return new collections.
"""

from typing import Dict, List, Mapping, Sequence

import numpy as np
import pandas as pd

from .exceptions import InvalidArgument, UnknownParameter


class ChainCollection:
    """Immutable set of per-chain parameter-sample sequences.

    Args:
        chains: Sequence of C mappings {parameter name: [T] samples}
    """

    def __init__(self, chains: Sequence[Mapping[str, Sequence[float]]]):
        chains = list(chains)
        if len(chains) == 0:
            raise InvalidArgument("A chain collection needs at least one chain")

        names = list(chains[0].keys())
        if len(names) == 0:
            raise InvalidArgument("Chains must monitor at least one parameter")

        data = {name: [] for name in names}
        n_samples = None

        for i, chain in enumerate(chains):
            if set(chain.keys()) != set(names):
                raise InvalidArgument(
                    f"Chain {i} monitors {sorted(chain.keys())}, "
                    f"expected {sorted(names)}")
            for name in names:
                values = np.asarray(chain[name], dtype=np.float64)
                if values.ndim != 1:
                    raise InvalidArgument(
                        f"Samples of '{name}' in chain {i} must be 1-D, got shape {values.shape}")
                if n_samples is None:
                    n_samples = len(values)
                elif len(values) != n_samples:
                    raise InvalidArgument(
                        f"Chain {i} has {len(values)} samples of '{name}', expected {n_samples}")
                data[name].append(values)

        self._names = names
        self._values = {}
        for name in names:
            stacked = np.stack(data[name], axis=0)
            stacked.setflags(write=False)
            self._values[name] = stacked

    # ─────────────────────────────────────────────────────────
    # Alternate constructors
    # ─────────────────────────────────────────────────────────

    @classmethod
    def from_arrays(cls, arrays: Mapping[str, np.ndarray]) -> 'ChainCollection':
        """Build from {name: [C, T] array}."""
        shapes = {name: np.shape(a) for name, a in arrays.items()}
        for name, shape in shapes.items():
            if len(shape) != 2:
                raise InvalidArgument(f"'{name}' must be a [chains, samples] array, got shape {shape}")
        if len(set(s[0] for s in shapes.values())) > 1:
            raise InvalidArgument(f"Parameters disagree on the number of chains: {shapes}")
        n_chains = next(iter(shapes.values()))[0] if shapes else 0
        return cls([{name: np.asarray(a)[c] for name, a in arrays.items()}
                    for c in range(n_chains)])

    @classmethod
    def from_samples(cls, chains: Sequence[Sequence[Mapping[str, float]]],
                     parameter_names: List[str] = None) -> 'ChainCollection':
        """Build from chains given as lists of {name: value} samples.

        ``parameter_names`` is only needed when every chain is empty.
        """
        chains = [list(chain) for chain in chains]
        if parameter_names is None:
            first = next((chain[0] for chain in chains if chain), None)
            if first is None:
                raise InvalidArgument("All chains are empty; pass parameter_names")
            parameter_names = list(first.keys())

        converted = []
        for i, chain in enumerate(chains):
            names = list(chain[0].keys()) if chain else list(parameter_names)
            try:
                converted.append({name: [sample[name] for sample in chain] for name in names})
            except KeyError as e:
                raise InvalidArgument(f"Chain {i} has a sample without parameter {e}") from e
        return cls(converted)

    @classmethod
    def from_inference_data(cls, idata, var_names: List[str] = None) -> 'ChainCollection':
        """Build from the posterior group of an ArviZ InferenceData.

        Vector-valued variables are split into ``name[j]`` scalars.
        """
        posterior = idata.posterior
        if var_names is None:
            var_names = list(posterior.data_vars)

        arrays = {}
        for var in var_names:
            values = np.asarray(posterior[var].values, dtype=np.float64)
            if values.ndim == 2:
                arrays[var] = values
            elif values.ndim == 3:
                for j in range(values.shape[2]):
                    arrays[f"{var}[{j}]"] = values[:, :, j]
            else:
                raise InvalidArgument(
                    f"Variable '{var}' has shape {values.shape[2:]} per draw; "
                    f"only scalar and vector variables are supported")
        return cls.from_arrays(arrays)

    # ─────────────────────────────────────────────────────────
    # Accessors
    # ─────────────────────────────────────────────────────────

    @property
    def n_chains(self) -> int:
        return self._values[self._names[0]].shape[0]

    @property
    def n_samples(self) -> int:
        return self._values[self._names[0]].shape[1]

    @property
    def parameter_names(self) -> List[str]:
        return list(self._names)

    def __contains__(self, name) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return self.n_chains

    def __repr__(self) -> str:
        return (f"ChainCollection(chains={self.n_chains}, samples={self.n_samples}, "
                f"parameters={self._names})")

    def values(self, name: str) -> np.ndarray:
        """[C, T] read-only array of samples for ``name``."""
        if name not in self._values:
            raise UnknownParameter(f"Parameter '{name}' is not monitored "
                                   f"(available: {self._names})")
        return self._values[name]

    def chain(self, index: int) -> Dict[str, np.ndarray]:
        """Samples of a single chain as {name: [T] array}."""
        return {name: self._values[name][index] for name in self._names}

    def pooled(self, name: str) -> np.ndarray:
        """All C*T samples of ``name`` flattened chain by chain."""
        return self.values(name).reshape(-1)

    # ─────────────────────────────────────────────────────────
    # Burn-in / thinning
    # ─────────────────────────────────────────────────────────

    def _sliced(self, index: slice) -> 'ChainCollection':
        return ChainCollection.from_arrays(
            {name: self._values[name][:, index] for name in self._names})

    def discard_burn_in(self, n_burn: int) -> 'ChainCollection':
        """New collection without the first ``n_burn`` samples of every chain."""
        if n_burn < 0:
            raise InvalidArgument(f"Burn-in must be >= 0, got {n_burn}")
        if n_burn >= self.n_samples and self.n_samples > 0:
            raise InvalidArgument(
                f"Burn-in of {n_burn} would discard all {self.n_samples} samples")
        return self._sliced(slice(n_burn, None))

    def thin(self, every: int) -> 'ChainCollection':
        """New collection keeping every ``every``-th sample (starting with the first)."""
        if every < 1:
            raise InvalidArgument(f"Thinning interval must be >= 1, got {every}")
        return self._sliced(slice(None, None, every))

    # ─────────────────────────────────────────────────────────
    # Export
    # ─────────────────────────────────────────────────────────

    def to_dataframe(self) -> pd.DataFrame:
        """Long format: one row per (chain, draw), one column per parameter."""
        frame = pd.DataFrame({
            'chain': np.repeat(np.arange(self.n_chains), self.n_samples),
            'draw': np.tile(np.arange(self.n_samples), self.n_chains),
        })
        for name in self._names:
            frame[name] = self.pooled(name)
        return frame

    def to_dict(self) -> List[Dict[str, List[float]]]:
        """Plain nested lists, one mapping per chain."""
        return [{name: self._values[name][c].tolist() for name in self._names}
                for c in range(self.n_chains)]
