"""
Error kinds raised by the data generator and the diagnostics engine.

Every error is raised synchronously at the offending call, before any
output record is built. Each kind also derives from the closest builtin
so callers can catch ``ValueError`` / ``KeyError`` generically.
"""


class BayesRegError(Exception):
    """Base class for all bayesreg errors."""


class InvalidArgument(BayesRegError, ValueError):
    """Bad generator or collection parameters (negative sizes, scales, ...)."""


class DivisionByZero(BayesRegError, ZeroDivisionError):
    """Standardization requested on an input with zero variance."""


class EmptyInput(BayesRegError, ValueError):
    """A chain with zero samples was passed to a summary."""


class InsufficientChains(BayesRegError, ValueError):
    """Gelman-Rubin needs at least two chains."""


class InsufficientSamples(BayesRegError, ValueError):
    """Gelman-Rubin needs at least two samples per chain."""


class UnknownParameter(BayesRegError, KeyError):
    """A requested parameter name is not monitored in the chain collection."""

    def __str__(self):
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0]) if self.args else ''
