# -- Implicit Incompressible SPH Solver -- #

'''
IISPH pressure solver for multi-fluid scenes with particle boundaries.

The pressure Poisson equation is never assembled. Instead the solver
precomputes, per particle, a displacement coefficient dii and a
diagonal coefficient aii, then relaxes the pressures with a bounded
Jacobi iteration until the average density error falls below the
configured bound.

Boundaries follow Akinci et al.: every boundary particle receives a
pseudo-volume 1 / sum_j W_ij from its boundary neighbors and
contributes volume * density0 of the fluid it touches as mass.

Algorithm per substep (each stage is a vectorized pass over
particles or contacts and completes before the next one starts):
    1. Refresh boundary-boundary contact weights/gradients
    2. Boundary volumes
    3. Refresh fluid-fluid and fluid-boundary contacts
    4. Densities
    5. Non-pressure forces (velocity-change accumulator)
    6. dii, pressure warm start, predicted densities, aii
    7. Pressure relaxation (dij_pjl, next pressures, buffer swap)
    8. Pressure velocity changes, Symplectic Euler integration
    9. Reset of the velocity-change accumulator

References:
-----------
Ihmsen et al. (2013) -- Implicit Incompressible SPH
Akinci et al. (2012) -- Versatile Rigid-Fluid Coupling for
    Incompressible SPH
'''

from __future__ import annotations

from typing import Sequence

import numpy as np

from IisphSim.sph.contacts import ContactManager, gatherModelField
from IisphSim.sph.kernels import SphKernel, CubicSplineKernel
from IisphSim.sph.particles import Boundary, Fluid
from IisphSim.sph.protocols import (
    DegenerateParticleError,
    IisphConfig,
    PressureSolveResult,
    RelaxationStatus,
)
from IisphSim.sph.timeIntegration import SymplecticEuler, TimeIntegrator


def _rowDot(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    '''Row-wise dot product of two (n, dim) arrays.'''
    return np.sum(a * b, axis=1)


def _resizeBuffers(
    buffers: list[np.ndarray], shapes: list[tuple[int, ...]]
) -> list[np.ndarray]:
    '''Resize per-model buffers, keeping the values of surviving indices.'''
    resized = []
    for k, shape in enumerate(shapes):
        buffer = np.zeros(shape)
        if k < len(buffers) and buffers[k].shape[1:] == shape[1:]:
            keep = min(shape[0], len(buffers[k]))
            buffer[:keep] = buffers[k][:keep]
        resized.append(buffer)
    return resized


class IisphSolver:
    '''
    Implicit Incompressible SPH pressure solver.

    The density kernel (weights) and the gradient kernel are
    independent; either may be any SphKernel.

    Parameters:
    -----------
    config : IisphConfig | None
        Relaxation tuning (defaults to IisphConfig())
    densityKernel : SphKernel | None
        Kernel for weights (defaults to CubicSplineKernel)
    gradientKernel : SphKernel | None
        Kernel for gradients (defaults to CubicSplineKernel)
    dimensions : int
        Spatial dimensions of the default kernels
    integrator : TimeIntegrator | None
        Kick/drift scheme (defaults to SymplecticEuler)
    '''

    def __init__(
        self,
        config: IisphConfig | None = None,
        densityKernel: SphKernel | None = None,
        gradientKernel: SphKernel | None = None,
        dimensions: int = 2,
        integrator: TimeIntegrator | None = None,
    ) -> None:
        self._config = config or IisphConfig()
        self._densityKernel = densityKernel or CubicSplineKernel(dimensions=dimensions)
        self._gradientKernel = gradientKernel or CubicSplineKernel(dimensions=dimensions)
        self._integrator: TimeIntegrator = integrator or SymplecticEuler()

        # Per-fluid fields
        self._densities: list[np.ndarray] = []
        self._predictedDensities: list[np.ndarray] = []
        self._aii: list[np.ndarray] = []
        self._dii: list[np.ndarray] = []
        self._dijPjl: list[np.ndarray] = []
        self._pressures: list[np.ndarray] = []
        self._nextPressures: list[np.ndarray] = []
        self._velocityChanges: list[np.ndarray] = []

        # Per-boundary fields
        self._boundaryVolumes: list[np.ndarray] = []

        # Neighbor masses per contact, (fluid-fluid, fluid-boundary) for each fluid
        self._contactMasses: list[tuple[np.ndarray, np.ndarray]] = []

        self._lastResult: PressureSolveResult | None = None

    ######################################################################
    # -- Buffer Provisioning -- #
    ######################################################################

    def initWithFluids(self, fluids: Sequence[Fluid]) -> None:
        '''
        Resize every per-fluid buffer to the current particle counts.

        Values of particles that survive the resize (same fluid, same
        index) are kept, so pressures still warm-start the next solve.
        '''
        scalarShapes = [(f.nParticles,) for f in fluids]
        vectorShapes = [(f.nParticles, f.dimensions) for f in fluids]

        self._densities = _resizeBuffers(self._densities, scalarShapes)
        self._predictedDensities = _resizeBuffers(self._predictedDensities, scalarShapes)
        self._aii = _resizeBuffers(self._aii, scalarShapes)
        self._dii = _resizeBuffers(self._dii, vectorShapes)
        self._dijPjl = _resizeBuffers(self._dijPjl, vectorShapes)
        self._pressures = _resizeBuffers(self._pressures, scalarShapes)
        self._nextPressures = _resizeBuffers(self._nextPressures, scalarShapes)
        self._velocityChanges = _resizeBuffers(self._velocityChanges, vectorShapes)

    def initWithBoundaries(self, boundaries: Sequence[Boundary]) -> None:
        '''Resize the per-boundary volume buffers.'''
        self._boundaryVolumes = _resizeBuffers(
            self._boundaryVolumes, [(b.nParticles,) for b in boundaries]
        )

    def _ensureBuffers(self, fluids: Sequence[Fluid], boundaries: Sequence[Boundary]) -> None:
        fluidCounts = [f.nParticles for f in fluids]
        if fluidCounts != [len(p) for p in self._pressures]:
            self.initWithFluids(fluids)

        boundaryCounts = [b.nParticles for b in boundaries]
        if boundaryCounts != [len(v) for v in self._boundaryVolumes]:
            self.initWithBoundaries(boundaries)

    def applyPermutation(self, fluidId: int, permutation: np.ndarray) -> None:
        '''
        Reorder the buffers of one fluid after Fluid.applyPermutation.

        Cached contacts refer to the old order and must be rebuilt.
        '''
        for buffers in (
            self._densities,
            self._predictedDensities,
            self._aii,
            self._dii,
            self._dijPjl,
            self._pressures,
            self._nextPressures,
            self._velocityChanges,
        ):
            buffers[fluidId] = buffers[fluidId][permutation]

    ######################################################################
    # -- Main Substep -- #
    ######################################################################

    def predictAdvection(self, dt: float, gravity: np.ndarray, fluids: Sequence[Fluid]) -> None:
        '''
        Add gravity and each fluid's external accelerations to the
        velocity-change accumulators.

        Parameters:
        -----------
        dt : float
            Substep length [s]
        gravity : np.ndarray
            Gravity vector [m/s^2]
        fluids : Sequence[Fluid]
            All fluid models
        '''
        if [f.nParticles for f in fluids] != [len(v) for v in self._velocityChanges]:
            self.initWithFluids(fluids)

        for fluid, velocityChanges in zip(fluids, self._velocityChanges):
            velocityChanges += (np.asarray(gravity) + fluid.accelerations) * dt

    def step(
        self,
        dt: float,
        contactManager: ContactManager,
        kernelRadius: float,
        fluids: Sequence[Fluid],
        boundaries: Sequence[Boundary],
    ) -> PressureSolveResult:
        '''
        Advance every fluid by one substep.

        Parameters:
        -----------
        dt : float
            Substep length [s]
        contactManager : ContactManager
            Contacts built for the current positions
        kernelRadius : float
            Kernel support radius [m]
        fluids : Sequence[Fluid]
            Fluid models (positions and velocities updated in place)
        boundaries : Sequence[Boundary]
            Boundary models (volumes are rewritten)

        Returns:
        --------
        PressureSolveResult : Outcome of the pressure relaxation

        Raises:
        -------
        DegenerateParticleError : If a fluid density or a boundary
            normalization sum is zero
        '''
        self._checkContactSets(contactManager, fluids, boundaries)
        self._ensureBuffers(fluids, boundaries)

        # Boundary data
        self.updateBoundaryContacts(kernelRadius, contactManager, boundaries)
        self.computeBoundaryVolumes(contactManager, boundaries)

        # Fluid data
        self.updateFluidContacts(kernelRadius, contactManager, fluids, boundaries)
        self.computeDensities(contactManager, fluids)

        self.applyNonPressureForces(dt, kernelRadius, contactManager, fluids, boundaries)

        self.computeDii(dt, contactManager, fluids)

        for pressures in self._pressures:
            pressures *= self._config.warmStartFactor

        self.computePredictedDensities(dt, contactManager, fluids, boundaries)
        self.computeAii(dt, contactManager, fluids)

        result = self.pressureSolve(dt, contactManager, fluids)

        self.computeVelocityChanges(dt, contactManager, fluids)
        self.updateVelocitiesAndPositions(dt, fluids)

        for velocityChanges in self._velocityChanges:
            velocityChanges.fill(0.0)

        self._lastResult = result
        return result

    def _checkContactSets(
        self,
        contactManager: ContactManager,
        fluids: Sequence[Fluid],
        boundaries: Sequence[Boundary],
    ) -> None:
        if (
            len(contactManager.fluidFluidContacts) != len(fluids)
            or len(contactManager.fluidBoundaryContacts) != len(fluids)
            or len(contactManager.boundaryBoundaryContacts) != len(boundaries)
        ):
            raise ValueError(
                'ContactManager holds contacts for a different number of models; '
                'call updateContacts() after adding or removing models'
            )

    ######################################################################
    # -- Contact Refresh -- #
    ######################################################################

    def updateBoundaryContacts(
        self,
        kernelRadius: float,
        contactManager: ContactManager,
        boundaries: Sequence[Boundary],
    ) -> None:
        '''Recompute weights and gradients of boundary-boundary contacts.'''
        boundaryPositions = [b.positions for b in boundaries]

        for contacts in contactManager.boundaryBoundaryContacts:
            contacts.refresh(
                boundaries[contacts.iModel].positions,
                boundaryPositions,
                kernelRadius,
                self._densityKernel,
                self._gradientKernel,
            )

    def updateFluidContacts(
        self,
        kernelRadius: float,
        contactManager: ContactManager,
        fluids: Sequence[Fluid],
        boundaries: Sequence[Boundary],
    ) -> None:
        '''Recompute weights and gradients of fluid-fluid and fluid-boundary contacts.'''
        fluidPositions = [f.positions for f in fluids]
        boundaryPositions = [b.positions for b in boundaries]

        for contacts in contactManager.fluidFluidContacts:
            contacts.refresh(
                fluids[contacts.iModel].positions,
                fluidPositions,
                kernelRadius,
                self._densityKernel,
                self._gradientKernel,
            )

        for contacts in contactManager.fluidBoundaryContacts:
            contacts.refresh(
                fluids[contacts.iModel].positions,
                boundaryPositions,
                kernelRadius,
                self._densityKernel,
                self._gradientKernel,
            )

    ######################################################################
    # -- Boundary Volumes and Densities -- #
    ######################################################################

    def computeBoundaryVolumes(
        self, contactManager: ContactManager, boundaries: Sequence[Boundary]
    ) -> None:
        '''
        Akinci boundary volumes.

        volume_i = 1 / sum_j W_ij  over boundary-boundary contacts of i

        The volumes are also written onto each Boundary model.
        '''
        for boundaryId, boundary in enumerate(boundaries):
            contacts = contactManager.boundaryBoundaryContacts[boundaryId]

            denominator = np.zeros(boundary.nParticles)
            np.add.at(denominator, contacts.i, contacts.weights)

            isolated = np.flatnonzero(denominator == 0.0)
            if len(isolated) > 0:
                raise DegenerateParticleError('boundary', boundaryId, isolated)

            volumes = 1.0 / denominator
            self._boundaryVolumes[boundaryId] = volumes
            boundary.volumes = volumes.copy()

    def computeDensities(self, contactManager: ContactManager, fluids: Sequence[Fluid]) -> None:
        '''
        SPH density summation.

        rho_i = sum_ff m_j * W_ij + sum_fb V_j * rho0_i * W_ij

        Fluid neighbors contribute their own mass (their own rest
        density); boundary neighbors contribute the mass they would
        have if filled with fluid i.
        '''
        masses = [f.masses for f in fluids]
        self._contactMasses = []

        for fluidId, fluid in enumerate(fluids):
            ff = contactManager.fluidFluidContacts[fluidId]
            fb = contactManager.fluidBoundaryContacts[fluidId]

            ffMasses = gatherModelField(masses, ff.jModel, ff.j) if ff.nContacts else np.zeros(0)
            fbMasses = (
                gatherModelField(self._boundaryVolumes, fb.jModel, fb.j) * fluid.density0
                if fb.nContacts else np.zeros(0)
            )
            self._contactMasses.append((ffMasses, fbMasses))

            density = np.zeros(fluid.nParticles)
            np.add.at(density, ff.i, ffMasses * ff.weights)
            np.add.at(density, fb.i, fbMasses * fb.weights)

            isolated = np.flatnonzero(density == 0.0)
            if len(isolated) > 0:
                raise DegenerateParticleError('fluid', fluidId, isolated)

            self._densities[fluidId] = density

    ######################################################################
    # -- Non-Pressure Forces -- #
    ######################################################################

    def applyNonPressureForces(
        self,
        dt: float,
        kernelRadius: float,
        contactManager: ContactManager,
        fluids: Sequence[Fluid],
        boundaries: Sequence[Boundary],
    ) -> None:
        '''Let every fluid's force modules add to its velocity-change accumulator.'''
        for fluidId, fluid in enumerate(fluids):
            for force in fluid.nonPressureForces:
                force.solve(
                    dt,
                    kernelRadius,
                    contactManager.fluidFluidContacts[fluidId],
                    contactManager.fluidBoundaryContacts[fluidId],
                    fluid,
                    fluids,
                    boundaries,
                    self._densities[fluidId],
                    self._velocityChanges[fluidId],
                )

    ######################################################################
    # -- IISPH Coefficients -- #
    ######################################################################

    def computeDii(self, dt: float, contactManager: ContactManager, fluids: Sequence[Fluid]) -> None:
        '''
        Displacement coefficients.

        dii_i = -dt^2 * sum_j (m_j / rho_i^2) * grad_ij
        '''
        for fluidId, fluid in enumerate(fluids):
            ff = contactManager.fluidFluidContacts[fluidId]
            fb = contactManager.fluidBoundaryContacts[fluidId]
            ffMasses, fbMasses = self._contactMasses[fluidId]

            rho = self._densities[fluidId]
            factor = -dt * dt / (rho * rho)

            dii = np.zeros((fluid.nParticles, fluid.dimensions))
            if ff.nContacts:
                np.add.at(dii, ff.i, ff.gradients * (ffMasses * factor[ff.i])[:, np.newaxis])
            if fb.nContacts:
                np.add.at(dii, fb.i, fb.gradients * (fbMasses * factor[fb.i])[:, np.newaxis])

            self._dii[fluidId] = dii

    def computePredictedDensities(
        self,
        dt: float,
        contactManager: ContactManager,
        fluids: Sequence[Fluid],
        boundaries: Sequence[Boundary],
    ) -> None:
        '''
        Density after advection with the tentative velocities.

        rho*_i = rho_i + dt * [ sum_ff m_j (v*_i - v*_j) . grad_ij
                               + sum_fb V_j rho0_i (v*_i - v_j) . grad_ij ]

        v* = v + dv includes gravity and every non-pressure force.
        '''
        tentative = [f.velocities + dv for f, dv in zip(fluids, self._velocityChanges)]
        boundaryVelocities = [b.velocities for b in boundaries]

        for fluidId, fluid in enumerate(fluids):
            ff = contactManager.fluidFluidContacts[fluidId]
            fb = contactManager.fluidBoundaryContacts[fluidId]
            ffMasses, fbMasses = self._contactMasses[fluidId]

            delta = np.zeros(fluid.nParticles)

            if ff.nContacts:
                vij = tentative[fluidId][ff.i] - gatherModelField(tentative, ff.jModel, ff.j)
                np.add.at(delta, ff.i, ffMasses * _rowDot(vij, ff.gradients))

            if fb.nContacts:
                vij = tentative[fluidId][fb.i] - gatherModelField(boundaryVelocities, fb.jModel, fb.j)
                np.add.at(delta, fb.i, fbMasses * _rowDot(vij, fb.gradients))

            self._predictedDensities[fluidId] = self._densities[fluidId] + delta * dt

    def computeAii(self, dt: float, contactManager: ContactManager, fluids: Sequence[Fluid]) -> None:
        '''
        Diagonal coefficients.

        dji  = grad_ij * dt^2 * m_i / rho_i^2
        aii_i = sum_j m_j * (dii_i - dji) . grad_ij

        dji reuses the cached gradient of the (i, j) contact rather
        than the reciprocal one.
        '''
        for fluidId, fluid in enumerate(fluids):
            ff = contactManager.fluidFluidContacts[fluidId]
            fb = contactManager.fluidBoundaryContacts[fluidId]
            ffMasses, fbMasses = self._contactMasses[fluidId]

            rho = self._densities[fluidId]
            dii = self._dii[fluidId]
            factor = dt * dt * fluid.masses / (rho * rho)

            aii = np.zeros(fluid.nParticles)
            for contacts, neighborMasses in ((ff, ffMasses), (fb, fbMasses)):
                if contacts.nContacts == 0:
                    continue
                dji = contacts.gradients * factor[contacts.i][:, np.newaxis]
                np.add.at(
                    aii,
                    contacts.i,
                    neighborMasses * _rowDot(dii[contacts.i] - dji, contacts.gradients),
                )

            self._aii[fluidId] = aii

    ######################################################################
    # -- Pressure Relaxation -- #
    ######################################################################

    def computeDijPjl(self, dt: float, contactManager: ContactManager, fluids: Sequence[Fluid]) -> None:
        '''
        Pressure displacement from the neighbors' current pressures.

        dij_pjl_i = dt^2 * sum_ff (-m_j * p_j / rho_j^2) * grad_ij
        '''
        for fluidId, fluid in enumerate(fluids):
            ff = contactManager.fluidFluidContacts[fluidId]
            ffMasses, _ = self._contactMasses[fluidId]

            dijPjl = np.zeros((fluid.nParticles, fluid.dimensions))
            if ff.nContacts:
                pj = gatherModelField(self._pressures, ff.jModel, ff.j)
                rhoj = gatherModelField(self._densities, ff.jModel, ff.j)
                coeff = -ffMasses * pj / (rhoj * rhoj)
                np.add.at(dijPjl, ff.i, ff.gradients * coeff[:, np.newaxis])

            self._dijPjl[fluidId] = dijPjl * (dt * dt)

    def computeNextPressures(
        self, dt: float, contactManager: ContactManager, fluids: Sequence[Fluid]
    ) -> float:
        '''
        One Jacobi update of every pressure.

        Reads only the current pressure buffer and writes only the
        next one, so no particle sees another particle's update from
        the same iteration.

        Returns:
        --------
        float : Largest per-fluid average density error
        '''
        omega = self._config.omega
        maxError = 0.0

        for fluidId, fluid in enumerate(fluids):
            ff = contactManager.fluidFluidContacts[fluidId]
            fb = contactManager.fluidBoundaryContacts[fluidId]
            ffMasses, fbMasses = self._contactMasses[fluidId]

            pressures = self._pressures[fluidId]
            rho = self._densities[fluidId]
            aii = self._aii[fluidId]
            dijPjl = self._dijPjl[fluidId]

            sumI = np.zeros(fluid.nParticles)

            if ff.nContacts:
                dpi = dt * dt * fluid.masses / (rho * rho)
                dji = ff.gradients * dpi[ff.i][:, np.newaxis]
                pj = gatherModelField(self._pressures, ff.jModel, ff.j)
                diiJ = gatherModelField(self._dii, ff.jModel, ff.j)
                dijPjlJ = gatherModelField(self._dijPjl, ff.jModel, ff.j)

                factor = (
                    dijPjl[ff.i]
                    - diiJ * pj[:, np.newaxis]
                    - (dijPjlJ - dji * pressures[ff.i][:, np.newaxis])
                )
                np.add.at(sumI, ff.i, ffMasses * _rowDot(factor, ff.gradients))

            if fb.nContacts:
                np.add.at(sumI, fb.i, fbMasses * _rowDot(dijPjl[fb.i], fb.gradients))

            # Particles with negligible aii cannot respond to pressure
            active = np.abs(aii) > self._config.aiiEpsilon
            safeAii = np.where(active, aii, 1.0)
            source = fluid.density0 - self._predictedDensities[fluidId]

            nextPressures = (1.0 - omega) * pressures + omega * (source - sumI) / safeAii
            # SPH pressures are repulsive only
            nextPressures = np.where(active, np.maximum(nextPressures, 0.0), 0.0)

            errors = np.where(active, (-sumI - aii * nextPressures) / fluid.density0, 0.0)
            self._nextPressures[fluidId] = nextPressures

            if fluid.nParticles > 0:
                maxError = max(maxError, float(np.sum(errors)) / fluid.nParticles)

        return maxError

    def pressureSolve(
        self, dt: float, contactManager: ContactManager, fluids: Sequence[Fluid]
    ) -> PressureSolveResult:
        '''
        Bounded Jacobi relaxation of the pressures.

        Stops as CONVERGED once the error is within maxDensityError
        after at least minPressureIter iterations, or as EXHAUSTED
        after maxPressureIter iterations.
        '''
        config = self._config
        status = RelaxationStatus.ITERATING
        iterations = 0
        averageError = 0.0

        while status is RelaxationStatus.ITERATING:
            self.computeDijPjl(dt, contactManager, fluids)
            averageError = self.computeNextPressures(dt, contactManager, fluids)

            # Jacobi: the finished iterate becomes the current one
            self._pressures, self._nextPressures = self._nextPressures, self._pressures
            iterations += 1

            if averageError <= config.maxDensityError and iterations >= config.minPressureIter:
                status = RelaxationStatus.CONVERGED
            elif iterations >= config.maxPressureIter:
                status = RelaxationStatus.EXHAUSTED

        if config.verbose:
            print(
                f'  IISPH - iterations: {iterations:4d}  '
                f'avg density err: {averageError:10.3e}  ({status.value})'
            )

        return PressureSolveResult(
            status=status,
            iterations=iterations,
            averageDensityError=averageError,
        )

    ######################################################################
    # -- Integration -- #
    ######################################################################

    def computeVelocityChanges(
        self, dt: float, contactManager: ContactManager, fluids: Sequence[Fluid]
    ) -> None:
        '''
        Pressure acceleration (symmetric form) times dt.

        dv_i -= sum_ff grad_ij * dt * m_j * (p_i/rho_i^2 + p_j/rho_j^2)
              + sum_fb grad_ij * dt * V_j rho0_i * p_i/rho_i^2
        '''
        for fluidId, fluid in enumerate(fluids):
            ff = contactManager.fluidFluidContacts[fluidId]
            fb = contactManager.fluidBoundaryContacts[fluidId]
            ffMasses, fbMasses = self._contactMasses[fluidId]

            rho = self._densities[fluidId]
            pressureTerm = self._pressures[fluidId] / (rho * rho)
            velocityChanges = self._velocityChanges[fluidId]

            if ff.nContacts:
                pj = gatherModelField(self._pressures, ff.jModel, ff.j)
                rhoj = gatherModelField(self._densities, ff.jModel, ff.j)
                coeff = dt * ffMasses * (pressureTerm[ff.i] + pj / (rhoj * rhoj))
                np.add.at(velocityChanges, ff.i, -ff.gradients * coeff[:, np.newaxis])

            if fb.nContacts:
                coeff = dt * fbMasses * pressureTerm[fb.i]
                np.add.at(velocityChanges, fb.i, -fb.gradients * coeff[:, np.newaxis])

    def updateVelocitiesAndPositions(self, dt: float, fluids: Sequence[Fluid]) -> None:
        '''Apply the accumulated velocity changes and drift the particles.'''
        for fluid, velocityChanges in zip(fluids, self._velocityChanges):
            self._integrator.integrate(fluid, velocityChanges, dt)

    ######################################################################
    # -- Properties -- #
    ######################################################################

    @property
    def config(self) -> IisphConfig:
        return self._config

    @property
    def densityKernel(self) -> SphKernel:
        return self._densityKernel

    @property
    def gradientKernel(self) -> SphKernel:
        return self._gradientKernel

    @property
    def densities(self) -> list[np.ndarray]:
        '''Per-fluid densities of the last step [kg/m^3].'''
        return self._densities

    @property
    def predictedDensities(self) -> list[np.ndarray]:
        return self._predictedDensities

    @property
    def pressures(self) -> list[np.ndarray]:
        '''Per-fluid pressures after the last relaxation [Pa].'''
        return self._pressures

    @property
    def aii(self) -> list[np.ndarray]:
        return self._aii

    @property
    def dii(self) -> list[np.ndarray]:
        return self._dii

    @property
    def dijPjl(self) -> list[np.ndarray]:
        return self._dijPjl

    @property
    def velocityChanges(self) -> list[np.ndarray]:
        '''Per-fluid velocity-change accumulators, shared with force modules.'''
        return self._velocityChanges

    @property
    def boundaryVolumes(self) -> list[np.ndarray]:
        return self._boundaryVolumes

    @property
    def lastResult(self) -> PressureSolveResult | None:
        '''Outcome of the most recent pressure relaxation.'''
        return self._lastResult
