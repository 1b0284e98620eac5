# -- Particle Model Tests -- #

'''
Fluid and boundary containers, samplers and permutations.
'''

from __future__ import annotations

import numpy as np
import pytest

from IisphSim.sph.particles import Boundary, Fluid


class _RecordingForce:
    '''Non-pressure force that only records permutations.'''

    def __init__(self) -> None:
        self.permutations = []

    def solve(self, *args) -> None:
        pass

    def applyPermutation(self, permutation: np.ndarray) -> None:
        self.permutations.append(np.asarray(permutation).copy())


def testFluidDefaultsAndMass():
    fluid = Fluid(positions=[[0.0, 0.0], [1.0, 0.0]], density0=1000.0, volumes=0.5)

    assert fluid.nParticles == 2
    assert fluid.dimensions == 2
    np.testing.assert_array_equal(fluid.velocities, 0.0)
    np.testing.assert_array_equal(fluid.accelerations, 0.0)
    np.testing.assert_allclose(fluid.masses, [500.0, 500.0])
    assert fluid.particleMass(1) == pytest.approx(500.0)


def testFluidRejectsBadShapes():
    with pytest.raises(ValueError):
        Fluid(positions=[[0.0, 0.0]], density0=1000.0, volumes=1.0, velocities=[[0.0, 0.0, 0.0]])
    with pytest.raises(ValueError):
        Fluid(positions=[0.0, 0.0], density0=1000.0, volumes=1.0)
    with pytest.raises(ValueError):
        Fluid(positions=[[0.0, 0.0]], density0=0.0, volumes=1.0)


def testKineticEnergyAndMaxSpeed():
    fluid = Fluid(
        positions=[[0.0, 0.0], [1.0, 0.0]],
        density0=1000.0,
        volumes=0.001,
        velocities=[[3.0, 4.0], [0.0, 1.0]],
    )

    # 0.5 * 1 kg * (25 + 1)
    assert fluid.kineticEnergy() == pytest.approx(13.0)
    assert fluid.maxSpeed() == pytest.approx(5.0)


def testCreateBlockFillsLattice():
    fluid = Fluid.createBlock([0.0, 0.0], [0.2, 0.1], particleRadius=0.01, density0=1000.0)

    assert fluid.nParticles == 10 * 5
    np.testing.assert_allclose(fluid.volumes, 0.02 ** 2)
    assert fluid.positions[:, 0].min() == pytest.approx(0.01)
    assert fluid.positions[:, 1].max() == pytest.approx(0.09)


def testCreateBlock3D():
    fluid = Fluid.createBlock([0.0, 0.0, 0.0], [0.04, 0.04, 0.04], particleRadius=0.01, density0=1000.0)

    assert fluid.nParticles == 8
    assert fluid.dimensions == 3
    np.testing.assert_allclose(fluid.volumes, 0.02 ** 3)


def testCreateBoxLeavesInteriorEmpty():
    boundary = Boundary.createBox([0.0, 0.0], [0.2, 0.2], particleRadius=0.01, nLayers=2)

    inside = np.all((boundary.positions > 0.0) & (boundary.positions < 0.2), axis=1)
    assert not np.any(inside)
    # Open top: nothing above the container
    assert boundary.positions[:, 1].max() < 0.2
    # Two layers below the floor
    ys = boundary.positions[:, 1]
    np.testing.assert_allclose(np.unique(np.round(ys[ys < 0.0], 6)), [-0.03, -0.01])


def testCreateClosedBoxHasLid():
    boundary = Boundary.createBox([0.0, 0.0], [0.2, 0.2], particleRadius=0.01, openTop=False)

    assert boundary.positions[:, 1].max() > 0.2
    np.testing.assert_array_equal(boundary.velocities, 0.0)
    np.testing.assert_array_equal(boundary.volumes, 0.0)


def testAddAndDeleteParticles():
    fluid = Fluid(positions=[[0.0, 0.0]], density0=1000.0, volumes=0.5)

    fluid.addParticles([[1.0, 0.0], [2.0, 0.0]], velocities=[[0.0, 1.0], [0.0, 2.0]])
    assert fluid.nParticles == 3
    np.testing.assert_allclose(fluid.volumes, 0.5)
    np.testing.assert_allclose(fluid.velocities[2], [0.0, 2.0])

    fluid.deleteParticles(np.array([False, True, False]))
    np.testing.assert_allclose(fluid.positions, [[0.0, 0.0], [2.0, 0.0]])
    assert fluid.accelerations.shape == (2, 2)


def testAddToEmptyFluidNeedsVolumes():
    fluid = Fluid(positions=np.zeros((0, 2)), density0=1000.0, volumes=1.0)

    with pytest.raises(ValueError):
        fluid.addParticles([[0.0, 0.0]])

    fluid.addParticles([[0.0, 0.0]], volumes=0.1)
    assert fluid.nParticles == 1


def testApplyPermutationReordersAndNotifiesForces():
    force = _RecordingForce()
    fluid = Fluid(
        positions=[[0.0, 0.0], [1.0, 0.0], [2.0, 0.0]],
        density0=1000.0,
        volumes=[1.0, 2.0, 3.0],
        nonPressureForces=[force],
    )

    fluid.applyPermutation([2, 0, 1])

    np.testing.assert_allclose(fluid.positions[:, 0], [2.0, 0.0, 1.0])
    np.testing.assert_allclose(fluid.volumes, [3.0, 1.0, 2.0])
    assert len(force.permutations) == 1
    np.testing.assert_array_equal(force.permutations[0], [2, 0, 1])


def testApplyPermutationRejectsNonPermutation():
    fluid = Fluid(positions=[[0.0, 0.0], [1.0, 0.0]], density0=1000.0, volumes=1.0)

    with pytest.raises(ValueError):
        fluid.applyPermutation([0, 0])
