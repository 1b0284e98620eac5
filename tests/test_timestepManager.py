# -- Timestep Manager Tests -- #

'''
Fixed and adaptive substep selection.
'''

from __future__ import annotations

import numpy as np
import pytest

from IisphSim.sph.particles import Fluid
from IisphSim.sph.timestepManager import TimestepManager


def _movingFluid(speed: float) -> Fluid:
    return Fluid(
        positions=np.zeros((2, 2)),
        density0=1000.0,
        volumes=1.0,
        velocities=[[speed, 0.0], [0.0, 0.0]],
    )


def _substeps(manager: TimestepManager, fluids, frameLength: float) -> list[float]:
    manager.reset(frameLength)
    steps = []
    while not manager.isDone():
        manager.advance(fluids)
        steps.append(manager.dt)
    return steps


def testResetStartsFrame():
    manager = TimestepManager(particleRadius=0.01)
    manager.reset(0.02)

    assert manager.remainingTime == 0.02
    assert manager.dt == 0.0
    assert manager.invDt == 0.0
    assert not manager.isDone()


def testFixedModeTakesWholeFrame():
    manager = TimestepManager(particleRadius=0.01)

    steps = _substeps(manager, [_movingFluid(100.0)], 0.02)

    assert steps == [0.02]
    assert manager.invDt == pytest.approx(50.0)


def testAdaptiveModeClampsToMinimumSubstep():
    # cfl * 2r / v = 0.4 * 0.02 / 10 = 0.0008 < 0.02 / 10
    manager = TimestepManager(particleRadius=0.01, adaptive=True)

    steps = _substeps(manager, [_movingFluid(10.0)], 0.02)

    assert len(steps) == 10
    np.testing.assert_allclose(steps, 0.002)


def testAdaptiveModeAtRestTakesWholeFrame():
    manager = TimestepManager(particleRadius=0.01, adaptive=True)

    steps = _substeps(manager, [_movingFluid(0.0)], 0.02)

    assert steps == [0.02]


def testSubstepNeverExceedsRemainingTime():
    # cfl * 2r / v = 0.4 * 0.02 / (0.008 / 0.003) = 0.003
    manager = TimestepManager(particleRadius=0.01, adaptive=True)

    steps = _substeps(manager, [_movingFluid(0.008 / 0.003)], 0.01)

    np.testing.assert_allclose(steps, [0.003, 0.003, 0.003, 0.001])
    assert sum(steps) == pytest.approx(0.01)
    assert manager.remainingTime == pytest.approx(0.0, abs=1e-15)


def testAdaptiveEstimateIncludesAccelerations():
    manager = TimestepManager(particleRadius=0.01, adaptive=True)
    fluid = _movingFluid(0.0)
    fluid.accelerations[0] = [1000.0, 0.0]

    # |a| * remaining = 20 m/s -> cfl estimate 0.0004, clamped to 0.002
    manager.reset(0.02)
    manager.advance([fluid])

    assert manager.dt == pytest.approx(0.002)


def testInvalidSettingsRaise():
    with pytest.raises(ValueError):
        TimestepManager(particleRadius=0.0)
    with pytest.raises(ValueError):
        TimestepManager(particleRadius=0.01, minNumSubsteps=5, maxNumSubsteps=2)
    with pytest.raises(ValueError):
        TimestepManager(particleRadius=0.01).reset(-1.0)
