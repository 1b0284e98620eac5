# -- Artificial Viscosity -- #

'''
Monaghan artificial viscosity as a non-pressure force.

Damps the relative motion of approaching particle pairs. Applies to
pairs within the same fluid and to fluid-boundary pairs; pairs from
different fluids are left alone.

References:
-----------
Monaghan (1992) -- Smoothed Particle Hydrodynamics
'''

from __future__ import annotations

from typing import Sequence

import numpy as np

from IisphSim import constants as const
from IisphSim.sph.contacts import ParticleContacts, gatherModelField
from IisphSim.sph.particles import Boundary, Fluid


class ArtificialViscosity:
    '''
    Artificial viscosity for one fluid.

    Per approaching pair (v_ij . r_ij < 0):

        mu_ij = h * (v_ij . r_ij) / (|r_ij|^2 + 0.01 * h^2)
        dv_i += dt * grad_ij * (c * alpha * mu_ij - beta * mu_ij^2)
                   * (m_j / rho_avg) * coefficient

    with h the kernel support radius. For boundary neighbors
    m_j = V_j * rho0_i and rho_avg = rho_i.

    Parameters:
    -----------
    fluidViscosityCoefficient : float
        Scale of the fluid-fluid contribution (0 disables it)
    boundaryViscosityCoefficient : float
        Scale of the fluid-boundary contribution (0 disables it)
    alpha : float
        Linear viscosity coefficient
    beta : float
        Quadratic viscosity coefficient
    speedOfSound : float
        Numerical speed of sound [m/s]
    '''

    def __init__(
        self,
        fluidViscosityCoefficient: float,
        boundaryViscosityCoefficient: float,
        alpha: float = const.alphaViscosity,
        beta: float = const.betaViscosity,
        speedOfSound: float = const.viscositySpeedOfSound,
    ) -> None:
        self.fluidViscosityCoefficient = fluidViscosityCoefficient
        self.boundaryViscosityCoefficient = boundaryViscosityCoefficient
        self.alpha = alpha
        self.beta = beta
        self.speedOfSound = speedOfSound

    def _pairCoefficients(self, dr: np.ndarray, dv: np.ndarray, kernelRadius: float) -> np.ndarray:
        '''Viscous coefficient per pair, zero for separating pairs.'''
        vDotR = np.sum(dv * dr, axis=1)
        etaSq = 0.01 * kernelRadius * kernelRadius
        mu = kernelRadius * vDotR / (np.sum(dr * dr, axis=1) + etaSq)

        return np.where(
            vDotR < 0.0,
            self.speedOfSound * self.alpha * mu - self.beta * mu * mu,
            0.0,
        )

    def solve(
        self,
        dt: float,
        kernelRadius: float,
        fluidFluidContacts: ParticleContacts,
        fluidBoundaryContacts: ParticleContacts,
        fluid: Fluid,
        fluids: Sequence[Fluid],
        boundaries: Sequence[Boundary],
        densities: np.ndarray,
        velocityChanges: np.ndarray,
    ) -> None:
        # --- Same-fluid pairs --- #
        if self.fluidViscosityCoefficient != 0.0 and fluidFluidContacts.nContacts:
            ff = fluidFluidContacts.select(fluidFluidContacts.jModel == fluidFluidContacts.iModel)
            iIdx, jIdx = ff.i, ff.j

            dr = fluid.positions[iIdx] - fluid.positions[jIdx]
            dv = fluid.velocities[iIdx] - fluid.velocities[jIdx]
            rhoAvg = 0.5 * (densities[iIdx] + densities[jIdx])

            coeff = (
                self._pairCoefficients(dr, dv, kernelRadius)
                * fluid.masses[jIdx] / rhoAvg
                * self.fluidViscosityCoefficient * dt
            )
            np.add.at(velocityChanges, iIdx, ff.gradients * coeff[:, np.newaxis])

        # --- Fluid-boundary pairs --- #
        if self.boundaryViscosityCoefficient != 0.0 and fluidBoundaryContacts.nContacts:
            fb = fluidBoundaryContacts
            iIdx = fb.i

            dr = fluid.positions[iIdx] - gatherModelField(
                [b.positions for b in boundaries], fb.jModel, fb.j
            )
            dv = fluid.velocities[iIdx] - gatherModelField(
                [b.velocities for b in boundaries], fb.jModel, fb.j
            )
            boundaryMasses = gatherModelField(
                [b.volumes for b in boundaries], fb.jModel, fb.j
            ) * fluid.density0

            coeff = (
                self._pairCoefficients(dr, dv, kernelRadius)
                * boundaryMasses / densities[iIdx]
                * self.boundaryViscosityCoefficient * dt
            )
            np.add.at(velocityChanges, iIdx, fb.gradients * coeff[:, np.newaxis])

    def applyPermutation(self, permutation: np.ndarray) -> None:
        # No per-particle state
        pass
