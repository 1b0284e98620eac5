# -- SPH Engine Package -- #

'''
Core Implicit Incompressible SPH engine.

Provides kernel functions, fluid and boundary models, contact
storage, the IISPH pressure solver, artificial viscosity, time
integration and the frame driver.
'''

from IisphSim.sph.protocols import (
    DegenerateParticleError,
    IisphConfig,
    PressureSolveResult,
    RelaxationStatus,
    SimulationState,
    WorldConfig,
)
from IisphSim.sph.kernels import CubicSplineKernel, WendlandC2Kernel, Poly6Kernel, SpikyKernel, createKernel
from IisphSim.sph.particles import Boundary, Fluid
from IisphSim.sph.contacts import ContactManager, ParticleContacts
from IisphSim.sph.iisphSolver import IisphSolver
from IisphSim.sph.viscosity import ArtificialViscosity
from IisphSim.sph.timestepManager import TimestepManager
from IisphSim.sph.fluidWorld import FluidWorld
