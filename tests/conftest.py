# -- Shared Test Fixtures -- #

'''
Small scenes shared by the IISPH tests.
'''

from __future__ import annotations

import numpy as np
import pytest

from IisphSim.sph.kernels import CubicSplineKernel
from IisphSim.sph.particles import Boundary, Fluid
from IisphSim.sph.protocols import WorldConfig


@pytest.fixture
def kernel() -> CubicSplineKernel:
    return CubicSplineKernel(dimensions=2)


@pytest.fixture
def ringScene(kernel):
    '''
    One fluid particle at the origin inside a ring of 8 boundary
    particles at distance 0.8 (support radius 1).

    The fluid volume is chosen so that the particle sits exactly at
    its rest density once boundary volumes are normalized.

    Returns:
    --------
    tuple[Fluid, Boundary, float] : fluid, boundary, kernel radius
    '''
    radius = 1.0
    density0 = 1000.0

    angles = np.arange(8) * (2.0 * np.pi / 8.0)
    ringPositions = 0.8 * np.column_stack([np.cos(angles), np.sin(angles)])

    # Akinci volumes of the ring: 1 / sum of weights to ring neighbors (incl. self)
    dr = ringPositions[:, np.newaxis, :] - ringPositions[np.newaxis, :, :]
    distances = np.linalg.norm(dr, axis=2)
    weights = kernel.evaluateBatch(distances.ravel(), radius).reshape(distances.shape)
    boundaryVolumes = 1.0 / np.sum(weights, axis=1)

    ringWeight = kernel.evaluate(0.8, radius)
    boundaryShare = float(np.sum(boundaryVolumes * ringWeight))
    fluidVolume = (1.0 - boundaryShare) / kernel.evaluate(0.0, radius)

    fluid = Fluid(
        positions=np.zeros((1, 2)),
        density0=density0,
        volumes=fluidVolume,
    )
    boundary = Boundary(positions=ringPositions)

    return fluid, boundary, radius


@pytest.fixture
def blockScene():
    '''
    A 10 x 10 block of water resting on the floor of an open box.

    Returns:
    --------
    tuple[WorldConfig, Fluid, Boundary]
    '''
    config = WorldConfig(particleRadius=0.01)
    fluid = Fluid.createBlock([0.0, 0.0], [0.2, 0.2], config.particleRadius, 1000.0)
    boundary = Boundary.createBox([0.0, 0.0], [0.2, 0.3], config.particleRadius)
    return config, fluid, boundary
