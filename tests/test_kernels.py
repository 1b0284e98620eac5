# -- SPH Kernel Tests -- #

'''
Normalization, compact support and gradient direction of the
smoothing kernels.
'''

from __future__ import annotations

import math

import numpy as np
import pytest

from IisphSim.sph.kernels import (
    CubicSplineKernel,
    Poly6Kernel,
    RadialKernel,
    SpikyKernel,
    WendlandC2Kernel,
    createKernel,
)


KERNEL_CLASSES = [CubicSplineKernel, WendlandC2Kernel, Poly6Kernel, SpikyKernel]


def _radialIntegral(kernel, radius: float, nSamples: int = 20000) -> float:
    '''Midpoint-rule integral of W over the support disc or ball.'''
    dr = radius / nSamples
    r = (np.arange(nSamples) + 0.5) * dr
    w = kernel.evaluateBatch(r, radius)
    if kernel.dimensions == 2:
        shell = 2.0 * math.pi * r
    else:
        shell = 4.0 * math.pi * r * r
    return float(np.sum(w * shell) * dr)


@pytest.mark.parametrize('kernelClass', KERNEL_CLASSES)
@pytest.mark.parametrize('dimensions', [2, 3])
def testKernelIsNormalized(kernelClass, dimensions):
    kernel = kernelClass(dimensions=dimensions)
    assert _radialIntegral(kernel, 0.1) == pytest.approx(1.0, rel=1e-3)


@pytest.mark.parametrize('kernelClass', KERNEL_CLASSES)
def testKernelHasCompactSupport(kernelClass):
    kernel = kernelClass(dimensions=2)
    radius = 0.04

    values = kernel.evaluateBatch(np.array([radius, 1.5 * radius, 10.0]), radius)
    gradients = kernel.gradientMagnitudeBatch(np.array([radius, 2.0 * radius]), radius)

    np.testing.assert_array_equal(values, 0.0)
    np.testing.assert_array_equal(gradients, 0.0)
    assert kernel.evaluate(0.5 * radius, radius) > 0.0


@pytest.mark.parametrize('kernelClass', KERNEL_CLASSES)
def testGradientPointsTowardNeighbor(kernelClass):
    kernel = kernelClass(dimensions=2)
    pi = np.array([[0.3, 0.0]])
    pj = np.array([[0.0, 0.0]])

    gradient = kernel.pointsGradient(pi, pj, 1.0)

    assert gradient.shape == (1, 2)
    assert gradient[0, 0] < 0.0
    assert gradient[0, 1] == pytest.approx(0.0)


def testGradientIsAntisymmetric():
    kernel = CubicSplineKernel(dimensions=3)
    pi = np.array([[0.1, 0.2, 0.05], [0.0, 0.0, 0.0]])
    pj = np.array([[0.15, 0.1, 0.0], [0.2, 0.1, 0.3]])

    np.testing.assert_allclose(
        kernel.pointsGradient(pi, pj, 0.5), -kernel.pointsGradient(pj, pi, 0.5)
    )


def testCoincidentPointsHaveZeroGradient():
    kernel = SpikyKernel(dimensions=2)
    gradient = kernel.pointsGradient(np.zeros((1, 2)), np.zeros((1, 2)), 1.0)
    np.testing.assert_array_equal(gradient, 0.0)


def testPointsWeightMatchesDistanceForm():
    kernel = WendlandC2Kernel(dimensions=2)
    pi = np.array([[0.0, 0.0], [0.1, 0.1]])
    pj = np.array([[0.3, 0.4], [0.1, 0.1]])

    np.testing.assert_allclose(
        kernel.pointsWeight(pi, pj, 1.0),
        [kernel.evaluate(0.5, 1.0), kernel.evaluate(0.0, 1.0)],
    )


def testGradientMatchesFiniteDifference():
    kernel = CubicSplineKernel(dimensions=2)
    radius = 1.0
    eps = 1e-6

    for r in [0.1, 0.4, 0.6, 0.9]:
        numerical = (kernel.evaluate(r + eps, radius) - kernel.evaluate(r - eps, radius)) / (2.0 * eps)
        assert kernel.gradientMagnitude(r, radius) == pytest.approx(numerical, rel=1e-5)


def testCreateKernelByName():
    assert isinstance(createKernel('cubicSpline', 2), CubicSplineKernel)
    assert isinstance(createKernel('wendlandC2', 3), WendlandC2Kernel)
    assert createKernel('spiky', 3).dimensions == 3


def testUnknownKernelRaises():
    with pytest.raises(ValueError, match='Unknown kernel type'):
        createKernel('gaussian')


def testUnsupportedDimensionsRaise():
    with pytest.raises(ValueError):
        CubicSplineKernel(dimensions=1)


def testRadialKernelBaseIsAbstract():
    with pytest.raises(TypeError):
        RadialKernel(dimensions=2)
