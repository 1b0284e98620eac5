# -- Substep Length Control -- #

'''
Splits a frame into substeps.

By default each frame is taken as a single substep. In adaptive mode
the substep follows a CFL-like estimate from the particle radius and
the fastest particle, clamped to a configured range of substeps per
frame. In both modes the last substep is shortened so the frame ends
exactly on its length.
'''

from __future__ import annotations

from typing import Sequence

import numpy as np

from IisphSim import constants as const
from IisphSim.sph.particles import Fluid


class TimestepManager:
    '''
    Substep scheduler for one frame at a time.

    Usage:
        manager.reset(frameLength)
        while not manager.isDone():
            manager.advance(fluids)
            solve(manager.dt)

    Parameters:
    -----------
    particleRadius : float
        Particle radius [m]
    cflCoefficient : float
        Fraction of a particle diameter a particle may travel per substep
    minNumSubsteps : int
        Lower bound on substeps per frame (adaptive mode)
    maxNumSubsteps : int
        Upper bound on substeps per frame (adaptive mode)
    adaptive : bool
        Use the CFL estimate instead of one substep per frame
    '''

    def __init__(
        self,
        particleRadius: float,
        cflCoefficient: float = const.cflCoefficient,
        minNumSubsteps: int = const.minNumSubsteps,
        maxNumSubsteps: int = const.maxNumSubsteps,
        adaptive: bool = False,
    ) -> None:
        if particleRadius <= 0.0:
            raise ValueError(f'particleRadius must be positive, got {particleRadius}')
        if not 1 <= minNumSubsteps <= maxNumSubsteps:
            raise ValueError('substep bounds must satisfy 1 <= minNumSubsteps <= maxNumSubsteps')

        self.particleRadius = particleRadius
        self.cflCoefficient = cflCoefficient
        self.minNumSubsteps = minNumSubsteps
        self.maxNumSubsteps = maxNumSubsteps
        self.adaptive = adaptive

        self._dt: float = 0.0
        self._totalStepSize: float = 0.0
        self._remainingTime: float = 0.0

    def reset(self, totalStepSize: float) -> None:
        '''Start a new frame of the given length [s].'''
        if totalStepSize < 0.0:
            raise ValueError(f'totalStepSize must be non-negative, got {totalStepSize}')
        self._totalStepSize = totalStepSize
        self._remainingTime = totalStepSize
        self._dt = 0.0

    def isDone(self) -> bool:
        return self._remainingTime <= np.finfo(float).eps

    def advance(self, fluids: Sequence[Fluid]) -> None:
        '''
        Choose the next substep and consume it from the frame.

        Parameters:
        -----------
        fluids : Sequence[Fluid]
            Fluids whose velocities drive the adaptive estimate
        '''
        substep = self._computeSubstep(fluids)
        self._dt = min(substep, self._remainingTime)
        self._remainingTime -= self._dt

    def _computeSubstep(self, fluids: Sequence[Fluid]) -> float:
        if not self.adaptive:
            return self._totalStepSize

        minSubstep = self._totalStepSize / self.maxNumSubsteps
        maxSubstep = self._totalStepSize / self.minNumSubsteps
        return float(np.clip(self._maxSubstep(fluids), minSubstep, maxSubstep))

    def _maxSubstep(self, fluids: Sequence[Fluid]) -> float:
        '''
        CFL estimate.

        dt = cfl * 2 * r / max|v + a * remaining|
        '''
        maxSpeed = 0.0
        for fluid in fluids:
            if fluid.nParticles == 0:
                continue
            predicted = fluid.velocities + fluid.accelerations * self._remainingTime
            maxSpeed = max(maxSpeed, float(np.max(np.linalg.norm(predicted, axis=1))))

        if maxSpeed == 0.0:
            return np.inf
        return self.cflCoefficient * 2.0 * self.particleRadius / maxSpeed

    @property
    def dt(self) -> float:
        '''Length of the current substep [s].'''
        return self._dt

    @property
    def invDt(self) -> float:
        return 0.0 if self._dt == 0.0 else 1.0 / self._dt

    @property
    def remainingTime(self) -> float:
        return self._remainingTime

    @property
    def totalStepSize(self) -> float:
        return self._totalStepSize
