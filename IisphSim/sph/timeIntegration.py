# -- SPH Time Integration Schemes -- #

'''
Time integration methods for fluid particle models.

Implements the Symplectic Euler (semi-implicit Euler) integrator.
The solver accumulates every velocity increment of a substep
(gravity, non-pressure forces, pressure) into one velocity-change
buffer; the integrator applies it and then drifts the positions
with the updated velocities.

References:
-----------
Monaghan (2005) -- Smoothed Particle Hydrodynamics
Hairer et al. (2003) -- Geometric Numerical Integration
'''

from __future__ import annotations

from typing import Protocol

import numpy as np

from IisphSim.sph.particles import Fluid


######################################################################
# -- Time Integrator Protocol -- #
######################################################################

class TimeIntegrator(Protocol):
    '''Protocol for time integration schemes.'''

    def integrate(self, fluid: Fluid, velocityChanges: np.ndarray, dt: float) -> None:
        '''
        Advance one fluid by one substep.

        Parameters:
        -----------
        fluid : Fluid
            Fluid to advance (positions and velocities are updated in place)
        velocityChanges : np.ndarray
            Accumulated velocity change of the substep, shape (N, dim)
        dt : float
            Substep length [s]
        '''
        ...


######################################################################
# -- Symplectic Euler Integrator -- #
######################################################################

class SymplecticEuler:
    '''
    Symplectic (semi-implicit) Euler integrator.

    Update sequence:
        v(t+dt) = v(t) + dv             (kick)
        x(t+dt) = x(t) + v(t+dt) * dt   (drift)

    The drift uses the *updated* velocity, which is what makes
    this symplectic.
    '''

    def integrate(self, fluid: Fluid, velocityChanges: np.ndarray, dt: float) -> None:
        # Kick
        fluid.velocities += velocityChanges

        # Drift with the new velocities
        fluid.positions += fluid.velocities * dt
