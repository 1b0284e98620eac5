# -- Particle Contact Tests -- #

'''
Neighbor discovery and cached weight/gradient refresh.
'''

from __future__ import annotations

import numpy as np
import pytest

from IisphSim.sph.contacts import (
    ContactManager,
    ParticleContacts,
    gatherModelField,
    modelOffsets,
)
from IisphSim.sph.kernels import CubicSplineKernel, SpikyKernel
from IisphSim.sph.particles import Boundary, Fluid


def _line(xs, density0=1000.0) -> Fluid:
    positions = np.column_stack([xs, np.zeros(len(xs))])
    return Fluid(positions=positions, density0=density0, volumes=1.0)


def _pairs(contacts: ParticleContacts) -> set:
    return set(zip(contacts.i.tolist(), contacts.jModel.tolist(), contacts.j.tolist()))


def testGatherModelFieldAcrossModels():
    fields = [np.array([1.0, 2.0]), np.array([10.0, 20.0, 30.0])]

    values = gatherModelField(fields, np.array([1, 0, 1]), np.array([2, 1, 0]))

    np.testing.assert_array_equal(values, [30.0, 2.0, 10.0])
    np.testing.assert_array_equal(modelOffsets(fields), [0, 2])


def testFluidContactsWithinRadius():
    fluid = _line([0.0, 0.5, 1.2])
    manager = ContactManager()

    manager.updateContacts(1.0, [fluid], [])

    # Self pairs plus the two pairs closer than the radius (0-1 and 1-2)
    assert _pairs(manager.fluidFluidContacts[0]) == {
        (0, 0, 0), (1, 0, 1), (2, 0, 2),
        (0, 0, 1), (1, 0, 0), (1, 0, 2), (2, 0, 1),
    }
    assert manager.fluidBoundaryContacts[0].nContacts == 0
    assert manager.boundaryBoundaryContacts == []


def testSelfContactsAreOptional():
    fluid = _line([0.0, 0.5])
    manager = ContactManager(includeSelfContacts=False)

    manager.updateContacts(1.0, [fluid], [])

    assert _pairs(manager.fluidFluidContacts[0]) == {(0, 0, 1), (1, 0, 0)}


def testPairsAtExactlyTheRadiusAreExcluded():
    fluid = _line([0.0, 1.0])
    manager = ContactManager(includeSelfContacts=False)

    manager.updateContacts(1.0, [fluid], [])

    assert manager.fluidFluidContacts[0].nContacts == 0


def testContactsSpanFluidsAndBoundaries():
    water = _line([0.0])
    oil = _line([0.3], density0=800.0)
    wall = Boundary(positions=[[0.0, -0.4], [5.0, 5.0]])
    manager = ContactManager()

    manager.updateContacts(1.0, [water, oil], [wall])

    assert _pairs(manager.fluidFluidContacts[0]) == {(0, 0, 0), (0, 1, 0)}
    assert _pairs(manager.fluidBoundaryContacts[1]) == {(0, 0, 0)}
    assert _pairs(manager.boundaryBoundaryContacts[0]) == {(0, 0, 0), (1, 0, 1)}
    assert manager.nContacts == 2 + 2 + 1 + 1 + 2


def testRefreshMatchesDirectKernelEvaluation():
    fluid = _line([0.0, 0.25, 0.7])
    manager = ContactManager()
    manager.updateContacts(1.0, [fluid], [])
    densityKernel = CubicSplineKernel(dimensions=2)
    gradientKernel = SpikyKernel(dimensions=2)

    contacts = manager.fluidFluidContacts[0]
    contacts.refresh(fluid.positions, [fluid.positions], 1.0, densityKernel, gradientKernel)

    for k in range(contacts.nContacts):
        pi = fluid.positions[contacts.i[k]]
        pj = fluid.positions[contacts.j[k]]
        assert contacts.weights[k] == pytest.approx(densityKernel.pointsWeight(pi, pj, 1.0)[0])
        np.testing.assert_allclose(
            contacts.gradients[k], gradientKernel.pointsGradient(pi, pj, 1.0)[0]
        )


def testParticleContactsAndSelect():
    contacts = ParticleContacts.fromPairs(0, [0, 0, 1], [0, 1, 0], [1, 0, 0], dimensions=2)

    np.testing.assert_array_equal(contacts.particleContacts(0), [0, 1])
    assert [model for model, _ in contacts.targetModels()] == [0, 1]

    subset = contacts.select(contacts.jModel == 0)
    assert subset.nContacts == 2
    assert subset.gradients.shape == (2, 2)


def testFromPairsRejectsMismatchedLengths():
    with pytest.raises(ValueError):
        ParticleContacts.fromPairs(0, [0, 1], 0, [0], dimensions=2)


def testEmptyModelsGiveEmptyContacts():
    empty = Fluid(positions=np.zeros((0, 2)), density0=1000.0, volumes=1.0)
    manager = ContactManager()

    manager.updateContacts(1.0, [empty], [])

    assert manager.fluidFluidContacts[0].nContacts == 0
