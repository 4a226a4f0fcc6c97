"""
forney/distributions/base.py

Probability distributions carried as message and marginal payloads.

Key types:
- Delta / MvDelta: point masses (univariate / multivariate)
- Gaussian: (multivariate) normal with any of the (m,V), (m,W), (xi,W)
  parameterizations present; conversions are explicit
- Gamma, Beta: conjugate families for precisions and probabilities
- NormalGamma: joint (mean, precision) family for structured factorizations

Parameters are numpy arrays (Gaussian) or floats. Update rules treat
payloads as immutable values and build new instances.
"""

from __future__ import annotations

import numbers
from typing import Optional, Union

import numpy as np
from scipy import linalg
from scipy.special import digamma

from forney.core.errors import TypeMismatchError

TINY = 1e-12
HUGE = 1e12

ArrayLike = Union[float, np.ndarray]


class ProbabilityDistribution:
    """Base class for all payloads."""

    def mean(self):
        raise NotImplementedError

    def var(self):
        raise NotImplementedError

    @classmethod
    def vague(cls) -> "ProbabilityDistribution":
        """Widest member of the family; neutral for products where possible."""
        raise TypeMismatchError(f"There is no vague {cls.__name__}")

    def __ne__(self, other) -> bool:
        return not self == other

    __hash__ = object.__hash__


class Delta(ProbabilityDistribution):
    """Univariate point mass at ``m``."""

    def __init__(self, m=0.0):
        if isinstance(m, np.ndarray) and m.ndim > 0:
            raise TypeMismatchError(f"Delta expects a scalar, got array of shape {m.shape}")
        if not isinstance(m, (numbers.Number, np.generic)):
            raise TypeMismatchError(f"Delta expects a number, got {type(m).__name__}")
        self.m = m

    def mean(self):
        return self.m

    def var(self) -> float:
        return 0.0

    def log_mean(self) -> float:
        return float(np.log(self.m))

    def __eq__(self, other) -> bool:
        if not isinstance(other, Delta):
            return NotImplemented
        return bool(np.isclose(self.m, other.m))

    __hash__ = object.__hash__

    def __repr__(self) -> str:
        return f"Delta(m={self.m!r})"


class MvDelta(ProbabilityDistribution):
    """Multivariate point mass at vector ``m``."""

    def __init__(self, m=None):
        m = np.array([1.0]) if m is None else np.asarray(m, dtype=float)
        if m.ndim != 1:
            raise TypeMismatchError(f"MvDelta expects a vector, got array of shape {m.shape}")
        self.m = m

    @property
    def dims(self) -> int:
        return int(self.m.shape[0])

    def mean(self) -> np.ndarray:
        return self.m

    def var(self) -> np.ndarray:
        return np.zeros((self.dims, self.dims))

    def __eq__(self, other) -> bool:
        if not isinstance(other, MvDelta):
            return NotImplemented
        return self.m.shape == other.m.shape and bool(np.allclose(self.m, other.m))

    __hash__ = object.__hash__

    def __repr__(self) -> str:
        return f"MvDelta(m={self.m.tolist()!r})"


def _vec(x) -> Optional[np.ndarray]:
    return None if x is None else np.atleast_1d(np.asarray(x, dtype=float))


def _mat(x) -> Optional[np.ndarray]:
    return None if x is None else np.atleast_2d(np.asarray(x, dtype=float))


class Gaussian(ProbabilityDistribution):
    """
    Gaussian distribution.

    Any subset of the parameters may be present; ``None`` marks an absent one.
    A distribution is well defined when it holds one of the pairs (m,V),
    (m,W) or (xi,W), where W is the precision and xi = W m.

    Attributes:
        m: mean vector
        V: covariance matrix
        W: precision matrix
        xi: weighted mean vector
    """

    def __init__(self, m=None, V=None, W=None, xi=None):
        if m is None and V is None and W is None and xi is None:
            m, V = 0.0, 1.0
        self.m = _vec(m)
        self.V = _mat(V)
        self.W = _mat(W)
        self.xi = _vec(xi)
        if not (self.has_mv or self.has_mw or self.has_xiw):
            raise TypeMismatchError(
                "Gaussian requires one of the parameter pairs (m,V), (m,W) or (xi,W)"
            )

    @property
    def has_mv(self) -> bool:
        return self.m is not None and self.V is not None

    @property
    def has_mw(self) -> bool:
        return self.m is not None and self.W is not None

    @property
    def has_xiw(self) -> bool:
        return self.xi is not None and self.W is not None

    @property
    def dims(self) -> int:
        ref = self.m if self.m is not None else self.xi
        return int(ref.shape[0])

    def ensure_mv(self) -> "Gaussian":
        """Return an equivalent Gaussian holding (m,V)."""
        if self.has_mv:
            return self
        V = linalg.inv(self.W)
        m = self.m if self.m is not None else V @ self.xi
        return Gaussian(m=m, V=V, W=self.W, xi=self.xi)

    def ensure_mw(self) -> "Gaussian":
        """Return an equivalent Gaussian holding (m,W)."""
        if self.has_mw:
            return self
        if self.W is None:
            return Gaussian(m=self.m, V=self.V, W=linalg.inv(self.V))
        return Gaussian(m=linalg.solve(self.W, self.xi), W=self.W, xi=self.xi)

    def ensure_xiw(self) -> "Gaussian":
        """Return an equivalent Gaussian holding (xi,W)."""
        if self.has_xiw:
            return self
        W = self.W if self.W is not None else linalg.inv(self.V)
        return Gaussian(m=self.m, V=self.V, W=W, xi=W @ self.m)

    def mean(self):
        m = self.ensure_mv().m
        return float(m[0]) if self.dims == 1 else m

    def var(self):
        V = self.ensure_mv().V
        return float(V[0, 0]) if self.dims == 1 else V

    def precision(self):
        W = self.ensure_mw().W
        return float(W[0, 0]) if self.dims == 1 else W

    @classmethod
    def vague(cls, dims: int = 1) -> "Gaussian":
        return cls(m=np.zeros(dims), V=HUGE * np.eye(dims))

    def __eq__(self, other) -> bool:
        if not isinstance(other, Gaussian):
            return NotImplemented
        a, b = self.ensure_mv(), other.ensure_mv()
        if a.m.shape != b.m.shape:
            return False
        return bool(np.allclose(a.m, b.m) and np.allclose(a.V, b.V))

    __hash__ = object.__hash__

    def __repr__(self) -> str:
        parts = []
        for name in ("m", "V", "W", "xi"):
            val = getattr(self, name)
            if val is not None:
                parts.append(f"{name}={val.tolist()!r}")
        return f"Gaussian({', '.join(parts)})"


class Gamma(ProbabilityDistribution):
    """Gamma distribution with shape ``a`` and rate ``b``."""

    def __init__(self, a: float = 1.0, b: float = 1.0):
        self.a = float(a)
        self.b = float(b)

    def mean(self) -> float:
        return self.a / self.b

    def var(self) -> float:
        return self.a / self.b ** 2

    def log_mean(self) -> float:
        return float(digamma(self.a) - np.log(self.b))

    @classmethod
    def vague(cls) -> "Gamma":
        return cls(a=1.0, b=TINY)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Gamma):
            return NotImplemented
        return bool(np.isclose(self.a, other.a) and np.isclose(self.b, other.b))

    __hash__ = object.__hash__

    def __repr__(self) -> str:
        return f"Gamma(a={self.a!r}, b={self.b!r})"


class Beta(ProbabilityDistribution):
    """Beta distribution."""

    def __init__(self, a: float = 1.0, b: float = 1.0):
        self.a = float(a)
        self.b = float(b)

    def mean(self) -> float:
        return self.a / (self.a + self.b)

    def var(self) -> float:
        s = self.a + self.b
        return self.a * self.b / (s ** 2 * (s + 1.0))

    def log_mean(self) -> float:
        return float(digamma(self.a) - digamma(self.a + self.b))

    def mirrored_log_mean(self) -> float:
        """E[log(1 - x)]."""
        return float(digamma(self.b) - digamma(self.a + self.b))

    @classmethod
    def vague(cls) -> "Beta":
        return cls(a=1.0, b=1.0)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Beta):
            return NotImplemented
        return bool(np.isclose(self.a, other.a) and np.isclose(self.b, other.b))

    __hash__ = object.__hash__

    def __repr__(self) -> str:
        return f"Beta(a={self.a!r}, b={self.b!r})"


class NormalGamma(ProbabilityDistribution):
    """
    Joint distribution over (mean, precision):
    gamma ~ Gamma(a, b), mean | gamma ~ N(m, (beta * gamma)^-1).
    """

    def __init__(self, m: float = 0.0, beta: float = 1.0, a: float = 1.0, b: float = 1.0):
        self.m = float(m)
        self.beta = float(beta)
        self.a = float(a)
        self.b = float(b)

    def mean(self) -> np.ndarray:
        return np.array([self.m, self.a / self.b])

    def var(self) -> np.ndarray:
        var_mean = self.b / (self.beta * (self.a - 1.0)) if self.a > 1.0 else np.inf
        return np.array([var_mean, self.a / self.b ** 2])

    @classmethod
    def vague(cls) -> "NormalGamma":
        return cls(m=0.0, beta=TINY, a=1.0, b=TINY)

    def __eq__(self, other) -> bool:
        if not isinstance(other, NormalGamma):
            return NotImplemented
        return bool(np.allclose([self.m, self.beta, self.a, self.b], [other.m, other.beta, other.a, other.b]))

    __hash__ = object.__hash__

    def __repr__(self) -> str:
        return f"NormalGamma(m={self.m!r}, beta={self.beta!r}, a={self.a!r}, b={self.b!r})"


def to_distribution(value) -> ProbabilityDistribution:
    """
    Convert a raw value into a payload.

    Numbers become Delta, 1-d arrays MvDelta; distributions pass through.

    Raises:
        TypeMismatchError: for anything else
    """
    if isinstance(value, ProbabilityDistribution):
        return value
    if isinstance(value, (numbers.Number, np.generic)):
        return Delta(value)
    if isinstance(value, (list, tuple, np.ndarray)):
        return MvDelta(value)
    raise TypeMismatchError(f"Cannot convert value of type {type(value).__name__} to a distribution")


def mean_value(dist: ProbabilityDistribution) -> Delta:
    """Post-processing hook: collapse a univariate payload onto its mean."""
    return Delta(dist.mean())


def default_value(cls: type) -> ProbabilityDistribution:
    """Default member of a family: the unit point mass for Delta types, else the vague one."""
    if issubclass(cls, (Delta, MvDelta)):
        return cls()
    return cls.vague()
