# -- Artificial Viscosity Tests -- #

'''
Artificial viscosity damps approaching pairs and leaves separating
pairs and other fluids alone.
'''

from __future__ import annotations

import numpy as np
import pytest

from IisphSim.sph.contacts import ContactManager
from IisphSim.sph.iisphSolver import IisphSolver
from IisphSim.sph.kernels import CubicSplineKernel
from IisphSim.sph.particles import Boundary, Fluid
from IisphSim.sph.viscosity import ArtificialViscosity


RADIUS = 1.0


def _refreshedContacts(fluids, boundaries) -> ContactManager:
    kernel = CubicSplineKernel(dimensions=2)
    manager = ContactManager()
    manager.updateContacts(RADIUS, fluids, boundaries)

    fluidPositions = [f.positions for f in fluids]
    boundaryPositions = [b.positions for b in boundaries]
    for contacts in manager.fluidFluidContacts:
        contacts.refresh(fluids[contacts.iModel].positions, fluidPositions, RADIUS, kernel, kernel)
    for contacts in manager.fluidBoundaryContacts:
        contacts.refresh(fluids[contacts.iModel].positions, boundaryPositions, RADIUS, kernel, kernel)
    return manager


def _pair(vLeft: float, vRight: float) -> Fluid:
    return Fluid(
        positions=[[0.0, 0.0], [0.5, 0.0]],
        density0=1000.0,
        volumes=0.25,
        velocities=[[vLeft, 0.0], [vRight, 0.0]],
    )


def _solve(viscosity, fluidId, fluids, boundaries, manager) -> np.ndarray:
    fluid = fluids[fluidId]
    velocityChanges = np.zeros_like(fluid.velocities)
    viscosity.solve(
        0.01,
        RADIUS,
        manager.fluidFluidContacts[fluidId],
        manager.fluidBoundaryContacts[fluidId],
        fluid,
        fluids,
        boundaries,
        np.full(fluid.nParticles, fluid.density0),
        velocityChanges,
    )
    return velocityChanges


def testApproachingPairIsDamped():
    fluid = _pair(1.0, -1.0)
    manager = _refreshedContacts([fluid], [])

    dv = _solve(ArtificialViscosity(1.0, 0.0), 0, [fluid], [], manager)

    # Left particle slows down, right particle slows down, momentum kept
    assert dv[0, 0] < 0.0
    assert dv[1, 0] > 0.0
    assert dv[0, 0] == pytest.approx(-dv[1, 0])
    np.testing.assert_allclose(dv[:, 1], 0.0, atol=1e-15)


def testSeparatingPairIsUntouched():
    fluid = _pair(-1.0, 1.0)
    manager = _refreshedContacts([fluid], [])

    dv = _solve(ArtificialViscosity(1.0, 1.0), 0, [fluid], [], manager)

    np.testing.assert_array_equal(dv, 0.0)


def testOtherFluidsAreIgnored():
    water = Fluid(positions=[[0.0, 0.0]], density0=1000.0, volumes=0.25, velocities=[[1.0, 0.0]])
    oil = Fluid(positions=[[0.5, 0.0]], density0=800.0, volumes=0.25, velocities=[[-1.0, 0.0]])
    manager = _refreshedContacts([water, oil], [])

    dv = _solve(ArtificialViscosity(1.0, 0.0), 0, [water, oil], [], manager)

    np.testing.assert_array_equal(dv, 0.0)


def testBoundaryDampsParticleMovingIntoWall():
    fluid = Fluid(positions=[[0.0, 0.5]], density0=1000.0, volumes=0.25, velocities=[[0.0, -1.0]])
    wall = Boundary(positions=[[0.0, 0.0]])
    wall.volumes = np.array([0.25])
    manager = _refreshedContacts([fluid], [wall])

    disabled = _solve(ArtificialViscosity(0.0, 0.0), 0, [fluid], [wall], manager)
    enabled = _solve(ArtificialViscosity(0.0, 1.0), 0, [fluid], [wall], manager)

    np.testing.assert_array_equal(disabled, 0.0)
    assert enabled[0, 1] > 0.0


def testViscosityRunsInsideSolverStep():
    viscosity = ArtificialViscosity(1.0, 0.0)
    fluid = _pair(1.0, -1.0)
    fluid.nonPressureForces.append(viscosity)
    plain = _pair(1.0, -1.0)

    for f in (fluid, plain):
        manager = ContactManager()
        manager.updateContacts(RADIUS, [f], [])
        IisphSolver(densityKernel=CubicSplineKernel(2)).step(0.01, manager, RADIUS, [f], [])

    # The viscous pair closes in more slowly
    assert fluid.velocities[0, 0] < plain.velocities[0, 0]


def testApplyPermutationIsHarmless():
    viscosity = ArtificialViscosity(1.0, 1.0)
    fluid = _pair(0.0, 0.0)
    fluid.nonPressureForces.append(viscosity)

    fluid.applyPermutation(np.array([1, 0]))

    np.testing.assert_allclose(fluid.positions, [[0.5, 0.0], [0.0, 0.0]])
