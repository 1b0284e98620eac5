# -- Fluid World -- #

'''
Frame driver for IISPH simulations.

A FluidWorld owns the fluid and boundary models, the contact manager,
the timestep manager and the pressure solver, and advances all of
them by whole frames.

Per frame:
    1. Reset the timestep manager with the frame length
    2. While the frame is not done:
        a. Pick the substep length
        b. Re-provision solver buffers if particle counts changed
        c. Rebuild contacts from current positions
        d. Add gravity and external accelerations (predictAdvection)
        e. Run the pressure solver step
'''

from __future__ import annotations

import numpy as np

from IisphSim.sph.contacts import ContactManager
from IisphSim.sph.iisphSolver import IisphSolver
from IisphSim.sph.kernels import createKernel
from IisphSim.sph.particles import Boundary, Fluid
from IisphSim.sph.protocols import (
    PressureSolver,
    PressureSolveResult,
    SimulationState,
    WorldConfig,
)
from IisphSim.sph.timestepManager import TimestepManager


class FluidWorld:
    '''
    Container and driver of a multi-fluid scene.

    Parameters:
    -----------
    config : WorldConfig
        World configuration
    solver : PressureSolver | None
        Pressure solver (defaults to an IisphSolver built from config)
    contactManager : ContactManager | None
        Contact storage (defaults to ContactManager())
    '''

    def __init__(
        self,
        config: WorldConfig,
        solver: PressureSolver | None = None,
        contactManager: ContactManager | None = None,
    ) -> None:
        self._config = config

        if solver is None:
            solver = IisphSolver(
                config=config.solver,
                densityKernel=createKernel(config.densityKernelType, config.dimensions),
                gradientKernel=createKernel(config.gradientKernelType, config.dimensions),
            )
        self._solver = solver
        self._contactManager = contactManager or ContactManager()

        self._timestepManager = TimestepManager(
            particleRadius=config.particleRadius,
            cflCoefficient=config.cflCoefficient,
            minNumSubsteps=config.minNumSubsteps,
            maxNumSubsteps=config.maxNumSubsteps,
            adaptive=config.adaptiveTimestep,
        )

        self._fluids: list[Fluid] = []
        self._boundaries: list[Boundary] = []

        self._time: float = 0.0
        self._frame: int = 0
        self._nSubsteps: int = 0
        self._lastResult: PressureSolveResult | None = None
        self._provisionedCounts: tuple[list[int], list[int]] = ([], [])

    ######################################################################
    # -- Scene Setup -- #
    ######################################################################

    def addFluid(self, fluid: Fluid) -> int:
        '''Add a fluid model and return its id.'''
        self._checkDimensions(fluid.dimensions)
        self._fluids.append(fluid)
        return len(self._fluids) - 1

    def addBoundary(self, boundary: Boundary) -> int:
        '''Add a boundary model and return its id.'''
        self._checkDimensions(boundary.dimensions)
        self._boundaries.append(boundary)
        return len(self._boundaries) - 1

    def applyPermutation(self, fluidId: int, permutation: np.ndarray) -> None:
        '''
        Reorder the particles of one fluid together with the solver state.

        Pressures carried over for the warm start stay attached to
        the particles they belong to.

        Parameters:
        -----------
        fluidId : int
            Id returned by addFluid
        permutation : np.ndarray
            New index k holds old particle permutation[k]
        '''
        self._provisionSolver()
        self._fluids[fluidId].applyPermutation(permutation)
        self._solver.applyPermutation(fluidId, np.asarray(permutation))

    def _checkDimensions(self, dimensions: int) -> None:
        if dimensions != self._config.dimensions:
            raise ValueError(
                f'model is {dimensions}D but the world is {self._config.dimensions}D'
            )

    ######################################################################
    # -- Stepping -- #
    ######################################################################

    def step(self, frameLength: float) -> SimulationState:
        '''
        Advance the world by one frame.

        Parameters:
        -----------
        frameLength : float
            Frame duration [s]

        Returns:
        --------
        SimulationState : State after the frame
        '''
        kernelRadius = self._config.kernelRadius
        timestep = self._timestepManager
        timestep.reset(frameLength)
        self._nSubsteps = 0

        while not timestep.isDone():
            timestep.advance(self._fluids)
            dt = timestep.dt

            self._provisionSolver()
            self._contactManager.updateContacts(kernelRadius, self._fluids, self._boundaries)
            self._solver.predictAdvection(dt, self._config.gravity, self._fluids)
            self._lastResult = self._solver.step(
                dt, self._contactManager, kernelRadius, self._fluids, self._boundaries
            )

            self._time += dt
            self._nSubsteps += 1

        self._frame += 1
        return self.currentState

    def _provisionSolver(self) -> None:
        '''Resize solver buffers when particles were added or removed.'''
        fluidCounts = [f.nParticles for f in self._fluids]
        boundaryCounts = [b.nParticles for b in self._boundaries]

        if fluidCounts != self._provisionedCounts[0]:
            self._solver.initWithFluids(self._fluids)
        if boundaryCounts != self._provisionedCounts[1]:
            self._solver.initWithBoundaries(self._boundaries)

        self._provisionedCounts = (fluidCounts, boundaryCounts)

    ######################################################################
    # -- Properties -- #
    ######################################################################

    @property
    def currentState(self) -> SimulationState:
        '''Snapshot of the world after the last frame.'''
        kineticEnergy = sum(f.kineticEnergy() for f in self._fluids)
        maxVelocity = max((f.maxSpeed() for f in self._fluids), default=0.0)
        result = self._lastResult

        return SimulationState(
            time=self._time,
            frame=self._frame,
            dt=self._timestepManager.dt,
            nSubsteps=self._nSubsteps,
            kineticEnergy=kineticEnergy,
            maxVelocity=maxVelocity,
            averageDensityError=result.averageDensityError if result else 0.0,
            pressureIterations=result.iterations if result else 0,
        )

    @property
    def config(self) -> WorldConfig:
        return self._config

    @property
    def fluids(self) -> list[Fluid]:
        return self._fluids

    @property
    def boundaries(self) -> list[Boundary]:
        return self._boundaries

    @property
    def solver(self) -> PressureSolver:
        return self._solver

    @property
    def contactManager(self) -> ContactManager:
        return self._contactManager

    @property
    def timestepManager(self) -> TimestepManager:
        return self._timestepManager

    @property
    def time(self) -> float:
        return self._time

    @property
    def lastResult(self) -> PressureSolveResult | None:
        return self._lastResult

    def totalFluidMass(self) -> float:
        return float(sum(np.sum(f.masses) for f in self._fluids))
