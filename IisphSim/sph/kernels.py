# -- SPH Smoothing Kernels -- #

'''
Smoothing kernel functions for SPH interpolation.

Every kernel is parameterized by its support radius (the distance
beyond which it evaluates to zero) and exposes:
- distance-batched evaluation and gradient magnitude
- point-pair evaluation W(p_i, p_j, radius) and gradient
  grad_i W(p_i, p_j, radius), batched over rows

The IISPH solver takes one kernel for density estimation and
another (possibly different) kernel for gradients.

Key properties of a valid SPH kernel:
- Normalization: integral of W over the domain = 1
- Compact support: W = 0 for r >= support radius
- Positivity: W >= 0 within support

References:
-----------
Monaghan (1992) -- Smoothed Particle Hydrodynamics
Wendland (1995) -- Piecewise polynomial, positive definite and
    compactly supported radial functions
Mueller et al. (2003) -- Particle-Based Fluid Simulation for
    Interactive Applications
'''

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Protocol

import numpy as np


######################################################################
# -- Kernel Protocol -- #
######################################################################

class SphKernel(Protocol):
    '''Protocol for SPH smoothing kernel functions.'''

    @property
    def dimensions(self) -> int:
        '''Number of spatial dimensions (2 or 3).'''
        ...

    def evaluateBatch(self, distances: np.ndarray, radius: float) -> np.ndarray:
        '''Kernel values W(r) for an array of distances, shape (N,).'''
        ...

    def gradientMagnitudeBatch(self, distances: np.ndarray, radius: float) -> np.ndarray:
        '''dW/dr for an array of distances, shape (N,).'''
        ...

    def pointsWeight(self, pi: np.ndarray, pj: np.ndarray, radius: float) -> np.ndarray:
        '''
        Kernel weight between point pairs.

        Parameters:
        -----------
        pi : np.ndarray
            Source positions, shape (N, dim)
        pj : np.ndarray
            Target positions, shape (N, dim)
        radius : float
            Kernel support radius [m]

        Returns:
        --------
        np.ndarray : Weights, shape (N,)
        '''
        ...

    def pointsGradient(self, pi: np.ndarray, pj: np.ndarray, radius: float) -> np.ndarray:
        '''
        Kernel gradient with respect to pi between point pairs.

        The gradient is (dW/dr) * (pi - pj) / |pi - pj|, so it
        points from pi toward pj for a monotonically decreasing kernel.

        Returns:
        --------
        np.ndarray : Gradients, shape (N, dim)
        '''
        ...


######################################################################
# -- Shared Radial Kernel Machinery -- #
######################################################################

class RadialKernel(ABC):
    '''
    Base class for radially symmetric kernels.

    Subclasses provide evaluateBatch and gradientMagnitudeBatch;
    scalar forms and point-pair forms are derived here.

    Parameters:
    -----------
    dimensions : int
        Number of spatial dimensions (2 or 3)
    '''

    def __init__(self, dimensions: int = 2) -> None:
        if dimensions not in (2, 3):
            raise ValueError(f'Kernels support 2 or 3 dimensions, got {dimensions}')
        self._dimensions = dimensions

    @property
    def dimensions(self) -> int:
        '''Number of spatial dimensions.'''
        return self._dimensions

    @abstractmethod
    def evaluateBatch(self, distances: np.ndarray, radius: float) -> np.ndarray:
        ...

    @abstractmethod
    def gradientMagnitudeBatch(self, distances: np.ndarray, radius: float) -> np.ndarray:
        ...

    def evaluate(self, r: float, radius: float) -> float:
        '''Evaluate W(r) for a single distance.'''
        return float(self.evaluateBatch(np.array([r], dtype=float), radius)[0])

    def gradientMagnitude(self, r: float, radius: float) -> float:
        '''Evaluate dW/dr for a single distance.'''
        return float(self.gradientMagnitudeBatch(np.array([r], dtype=float), radius)[0])

    def gradientBatch(
        self, drVecs: np.ndarray, distances: np.ndarray, radius: float
    ) -> np.ndarray:
        '''
        Evaluate kernel gradient vectors for an array of particle pairs.

        grad_W_k = (dW/dr)_k * (dr_k / |dr_k|)

        Parameters:
        -----------
        drVecs : np.ndarray
            Displacement vectors r_i - r_j, shape (N, dim)
        distances : np.ndarray
            Distances |dr|, shape (N,)
        radius : float
            Kernel support radius [m]

        Returns:
        --------
        np.ndarray : Gradient vectors, shape (N, dim)
        '''
        dwdr = self.gradientMagnitudeBatch(distances, radius)

        # Avoid division by zero
        safeDistances = np.where(distances > 1e-12, distances, 1.0)
        gradients = (dwdr / safeDistances)[:, np.newaxis] * drVecs

        # Coincident particles exert no gradient
        gradients[distances < 1e-12] = 0.0

        return gradients

    def pointsWeight(self, pi: np.ndarray, pj: np.ndarray, radius: float) -> np.ndarray:
        '''Kernel weight W(p_i, p_j, radius) for point pairs, shape (N,).'''
        dr = np.atleast_2d(pi) - np.atleast_2d(pj)
        return self.evaluateBatch(np.linalg.norm(dr, axis=1), radius)

    def pointsGradient(self, pi: np.ndarray, pj: np.ndarray, radius: float) -> np.ndarray:
        '''Kernel gradient grad_i W(p_i, p_j, radius) for point pairs, shape (N, dim).'''
        dr = np.atleast_2d(pi) - np.atleast_2d(pj)
        return self.gradientBatch(dr, np.linalg.norm(dr, axis=1), radius)


######################################################################
# -- Cubic Spline Kernel (M4) -- #
######################################################################

class CubicSplineKernel(RadialKernel):
    '''
    Cubic spline (M4) smoothing kernel.

    Piecewise cubic polynomial with smoothing length h = radius / 2
    and q = r / h:

    W(q) = sigma * {
        1 - (3/2)*q^2 + (3/4)*q^3    for 0 <= q < 1
        (1/4)*(2 - q)^3               for 1 <= q < 2
        0                              for q >= 2
    }

    Normalization constants (sigma):
        2D: sigma = 10 / (7 * pi * h^2)
        3D: sigma = 1 / (pi * h^3)
    '''

    def _normalization(self, h: float) -> float:
        if self._dimensions == 2:
            return 10.0 / (7.0 * math.pi * h * h)
        return 1.0 / (math.pi * h * h * h)

    def evaluateBatch(self, distances: np.ndarray, radius: float) -> np.ndarray:
        '''
        Evaluate W(r) for an array of distances.

        Parameters:
        -----------
        distances : np.ndarray
            Array of distances [m], shape (N,)
        radius : float
            Kernel support radius [m]

        Returns:
        --------
        np.ndarray : Kernel values, shape (N,)
        '''
        h = 0.5 * radius
        q = np.asarray(distances, dtype=float) / h
        sigma = self._normalization(h)

        result = np.zeros_like(q)

        # Inner region: q < 1
        inner = q < 1.0
        qInner = q[inner]
        result[inner] = sigma * (1.0 - 1.5 * qInner ** 2 + 0.75 * qInner ** 3)

        # Outer region: 1 <= q < 2
        outer = (q >= 1.0) & (q < 2.0)
        twoMinusQ = 2.0 - q[outer]
        result[outer] = sigma * 0.25 * twoMinusQ ** 3

        return result

    def gradientMagnitudeBatch(self, distances: np.ndarray, radius: float) -> np.ndarray:
        '''
        Compute dW/dr for an array of distances.

        dW/dq = -3*q + (9/4)*q^2      for q < 1
              = -(3/4)*(2 - q)^2      for 1 <= q < 2
        dW/dr = sigma * dW/dq / h
        '''
        h = 0.5 * radius
        q = np.asarray(distances, dtype=float) / h
        sigma = self._normalization(h)

        result = np.zeros_like(q)

        inner = (q > 1e-12) & (q < 1.0)
        qInner = q[inner]
        result[inner] = sigma * (-3.0 * qInner + 2.25 * qInner ** 2) / h

        outer = (q >= 1.0) & (q < 2.0)
        twoMinusQ = 2.0 - q[outer]
        result[outer] = sigma * (-0.75 * twoMinusQ ** 2) / h

        return result


######################################################################
# -- Wendland C2 Kernel -- #
######################################################################

class WendlandC2Kernel(RadialKernel):
    '''
    Wendland C2 smoothing kernel.

    W(q) = sigma * (1 - q/2)^4 * (2*q + 1)  for 0 <= q < 2,
    with h = radius / 2 and q = r / h.

    No tensile instability thanks to its strictly positive
    Fourier transform; smoother pressure fields than the cubic spline.

    Normalization constants (sigma):
        2D: sigma = 7 / (4 * pi * h^2)
        3D: sigma = 21 / (16 * pi * h^3)
    '''

    def _normalization(self, h: float) -> float:
        if self._dimensions == 2:
            return 7.0 / (4.0 * math.pi * h * h)
        return 21.0 / (16.0 * math.pi * h * h * h)

    def evaluateBatch(self, distances: np.ndarray, radius: float) -> np.ndarray:
        h = 0.5 * radius
        q = np.asarray(distances, dtype=float) / h
        sigma = self._normalization(h)

        result = np.zeros_like(q)

        active = q < 2.0
        qActive = q[active]
        oneMinusHalfQ = 1.0 - 0.5 * qActive
        result[active] = sigma * (oneMinusHalfQ ** 4) * (2.0 * qActive + 1.0)

        return result

    def gradientMagnitudeBatch(self, distances: np.ndarray, radius: float) -> np.ndarray:
        '''
        Compute dW/dr for an array of distances.

        dW/dq = -5 * sigma * q * (1 - q/2)^3
        '''
        h = 0.5 * radius
        q = np.asarray(distances, dtype=float) / h
        sigma = self._normalization(h)

        result = np.zeros_like(q)

        active = (q > 1e-12) & (q < 2.0)
        qActive = q[active]
        oneMinusHalfQ = 1.0 - 0.5 * qActive
        result[active] = -5.0 * sigma * qActive * (oneMinusHalfQ ** 3) / h

        return result


######################################################################
# -- Poly6 Kernel -- #
######################################################################

class Poly6Kernel(RadialKernel):
    '''
    Poly6 kernel, written directly in terms of the support radius R.

    W(r) = sigma * (R^2 - r^2)^3   for r < R

        2D: sigma = 4 / (pi * R^8)
        3D: sigma = 315 / (64 * pi * R^9)

    Cheap and smooth for density estimation, but its gradient
    vanishes at r = 0, so it is usually paired with SpikyKernel.
    '''

    def _normalization(self, radius: float) -> float:
        if self._dimensions == 2:
            return 4.0 / (math.pi * radius ** 8)
        return 315.0 / (64.0 * math.pi * radius ** 9)

    def evaluateBatch(self, distances: np.ndarray, radius: float) -> np.ndarray:
        r = np.asarray(distances, dtype=float)
        result = np.zeros_like(r)

        active = r < radius
        diff = radius * radius - r[active] ** 2
        result[active] = self._normalization(radius) * diff ** 3

        return result

    def gradientMagnitudeBatch(self, distances: np.ndarray, radius: float) -> np.ndarray:
        # dW/dr = -6 * sigma * r * (R^2 - r^2)^2
        r = np.asarray(distances, dtype=float)
        result = np.zeros_like(r)

        active = (r > 1e-12) & (r < radius)
        rActive = r[active]
        diff = radius * radius - rActive ** 2
        result[active] = -6.0 * self._normalization(radius) * rActive * diff ** 2

        return result


######################################################################
# -- Spiky Kernel -- #
######################################################################

class SpikyKernel(RadialKernel):
    '''
    Spiky kernel, written directly in terms of the support radius R.

    W(r) = sigma * (R - r)^3   for r < R

        2D: sigma = 10 / (pi * R^5)
        3D: sigma = 15 / (pi * R^6)

    Its gradient does not vanish near r = 0, which keeps
    close particles from clustering under pressure.
    '''

    def _normalization(self, radius: float) -> float:
        if self._dimensions == 2:
            return 10.0 / (math.pi * radius ** 5)
        return 15.0 / (math.pi * radius ** 6)

    def evaluateBatch(self, distances: np.ndarray, radius: float) -> np.ndarray:
        r = np.asarray(distances, dtype=float)
        result = np.zeros_like(r)

        active = r < radius
        result[active] = self._normalization(radius) * (radius - r[active]) ** 3

        return result

    def gradientMagnitudeBatch(self, distances: np.ndarray, radius: float) -> np.ndarray:
        # dW/dr = -3 * sigma * (R - r)^2
        r = np.asarray(distances, dtype=float)
        result = np.zeros_like(r)

        active = (r > 1e-12) & (r < radius)
        result[active] = -3.0 * self._normalization(radius) * (radius - r[active]) ** 2

        return result


######################################################################
# -- Kernel Factory -- #
######################################################################

_kernelTypes: dict[str, type[RadialKernel]] = {
    'cubicSpline': CubicSplineKernel,
    'wendlandC2': WendlandC2Kernel,
    'poly6': Poly6Kernel,
    'spiky': SpikyKernel,
}


def createKernel(kernelType: str, dimensions: int = 2) -> SphKernel:
    '''
    Create a kernel instance by type name.

    Parameters:
    -----------
    kernelType : str
        Kernel type: 'cubicSpline', 'wendlandC2', 'poly6' or 'spiky'
    dimensions : int
        Number of spatial dimensions (2 or 3)

    Returns:
    --------
    SphKernel : Kernel instance

    Raises:
    -------
    ValueError : If kernel type is unknown
    '''
    kernelClass = _kernelTypes.get(kernelType)
    if kernelClass is None:
        raise ValueError(f'Unknown kernel type: {kernelType}')
    return kernelClass(dimensions)
