# -- IISPH Simulation Protocols -- #

'''
Configuration dataclasses, result types and protocols for the
IISPH simulation.

Defines the solver tuning (IisphConfig), the world setup
(WorldConfig), per-step results (PressureSolveResult,
SimulationState), the fatal geometry error and the contracts that
pluggable non-pressure forces and pressure solvers must satisfy.
'''

from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field
from typing import Protocol, Sequence, TYPE_CHECKING

import numpy as np

from IisphSim import constants as const

if TYPE_CHECKING:
    from IisphSim.sph.contacts import ContactManager, ParticleContacts
    from IisphSim.sph.particles import Boundary, Fluid


######################################################################
# -- Errors -- #
######################################################################

class DegenerateParticleError(ValueError):
    '''
    A particle has no neighbors within the kernel support radius.

    Raised when a fluid density or a boundary normalization sum is
    exactly zero. This is a scene-construction error upstream of the
    solver; the step is aborted before NaN/Inf can spread.

    Parameters:
    -----------
    modelKind : str
        'fluid' or 'boundary'
    modelId : int
        Index of the offending model
    indices : np.ndarray
        Local indices of the offending particles
    '''

    def __init__(self, modelKind: str, modelId: int, indices: np.ndarray) -> None:
        self.modelKind = modelKind
        self.modelId = modelId
        self.indices = np.asarray(indices)
        quantity = 'density' if modelKind == 'fluid' else 'boundary normalization sum'
        super().__init__(
            f'Zero {quantity} for {len(self.indices)} particle(s) of {modelKind} '
            f'{modelId} (first indices: {self.indices[:5].tolist()}); '
            f'particles need neighbors within the kernel support radius'
        )


######################################################################
# -- Solver Configuration -- #
######################################################################

@dataclass
class IisphConfig:
    '''
    Tuning parameters of the IISPH pressure relaxation.

    Parameters:
    -----------
    minPressureIter : int
        Minimum number of relaxation iterations
        (iterations count from 1, so 1 allows a single pass)
    maxPressureIter : int
        Maximum number of relaxation iterations (loop stops regardless)
    maxDensityError : float
        Allowed average density error, fraction of rest density
    omega : float
        Relaxation factor of the Jacobi update, in (0, 1]
    warmStartFactor : float
        Scale applied to the previous step's pressures, in [0, 1]
    aiiEpsilon : float
        Particles with |aii| at or below this are locked to zero pressure
    verbose : bool
        Print the relaxation outcome after every solve
    '''

    minPressureIter: int = const.minPressureIter
    maxPressureIter: int = const.maxPressureIter
    maxDensityError: float = const.maxDensityError
    omega: float = const.omega
    warmStartFactor: float = const.warmStartFactor
    aiiEpsilon: float = const.aiiEpsilon
    verbose: bool = False

    def __post_init__(self) -> None:
        if self.maxPressureIter < 1:
            raise ValueError(f'maxPressureIter must be >= 1, got {self.maxPressureIter}')
        if not 0 <= self.minPressureIter <= self.maxPressureIter:
            raise ValueError(
                f'minPressureIter must lie in [0, maxPressureIter], got {self.minPressureIter}'
            )
        if self.maxDensityError <= 0.0:
            raise ValueError(f'maxDensityError must be positive, got {self.maxDensityError}')
        if not 0.0 < self.omega <= 1.0:
            raise ValueError(f'omega must lie in (0, 1], got {self.omega}')
        if not 0.0 <= self.warmStartFactor <= 1.0:
            raise ValueError(f'warmStartFactor must lie in [0, 1], got {self.warmStartFactor}')
        if self.aiiEpsilon < 0.0:
            raise ValueError(f'aiiEpsilon must be non-negative, got {self.aiiEpsilon}')

    @classmethod
    def fromDict(cls, data: dict) -> IisphConfig:
        '''Build from a plain dict, ignoring unknown keys.'''
        return cls(
            minPressureIter=data.get('minPressureIter', const.minPressureIter),
            maxPressureIter=data.get('maxPressureIter', const.maxPressureIter),
            maxDensityError=data.get('maxDensityError', const.maxDensityError),
            omega=data.get('omega', const.omega),
            warmStartFactor=data.get('warmStartFactor', const.warmStartFactor),
            aiiEpsilon=data.get('aiiEpsilon', const.aiiEpsilon),
            verbose=data.get('verbose', False),
        )


######################################################################
# -- World Configuration -- #
######################################################################

@dataclass
class WorldConfig:
    '''
    Configuration of a FluidWorld.

    Parameters:
    -----------
    particleRadius : float
        Particle radius [m]; particle spacing is twice this value
    kernelRadiusRatio : float
        Ratio kernel support radius / particle radius
    gravity : np.ndarray
        Gravity vector [m/s^2]
    dimensions : int
        Number of spatial dimensions (2 or 3)
    densityKernelType : str
        Kernel used for weights (density estimation)
    gradientKernelType : str
        Kernel used for gradients (forces and displacements)
    adaptiveTimestep : bool
        Use the CFL-based substep estimate instead of one substep per frame
    cflCoefficient : float
        CFL coefficient of the adaptive estimate
    minNumSubsteps : int
        Lower bound on substeps per frame (adaptive mode)
    maxNumSubsteps : int
        Upper bound on substeps per frame (adaptive mode)
    solver : IisphConfig
        Pressure solver tuning
    '''

    particleRadius: float = 0.01
    kernelRadiusRatio: float = const.defaultKernelRadiusRatio
    gravity: np.ndarray = field(default_factory=lambda: np.array([0.0, -const.gravity]))
    dimensions: int = 2
    densityKernelType: str = 'cubicSpline'
    gradientKernelType: str = 'cubicSpline'
    adaptiveTimestep: bool = False
    cflCoefficient: float = const.cflCoefficient
    minNumSubsteps: int = const.minNumSubsteps
    maxNumSubsteps: int = const.maxNumSubsteps
    solver: IisphConfig = field(default_factory=IisphConfig)

    def __post_init__(self) -> None:
        self.gravity = np.asarray(self.gravity, dtype=float)
        if self.dimensions not in (2, 3):
            raise ValueError(f'dimensions must be 2 or 3, got {self.dimensions}')
        if self.gravity.shape != (self.dimensions,):
            raise ValueError(
                f'gravity must have shape ({self.dimensions},), got {self.gravity.shape}'
            )
        if self.particleRadius <= 0.0 or self.kernelRadiusRatio <= 0.0:
            raise ValueError('particleRadius and kernelRadiusRatio must be positive')
        if not 1 <= self.minNumSubsteps <= self.maxNumSubsteps:
            raise ValueError('substep bounds must satisfy 1 <= minNumSubsteps <= maxNumSubsteps')

    @property
    def kernelRadius(self) -> float:
        '''Kernel support radius [m].'''
        return self.kernelRadiusRatio * self.particleRadius

    @property
    def particleSpacing(self) -> float:
        '''Rest spacing between particle centers [m].'''
        return 2.0 * self.particleRadius

    @classmethod
    def fromJson(cls, configPath: str) -> WorldConfig:
        '''
        Load configuration from a JSON file.

        Reads the 'world', 'timestep' and 'iisph' sections.

        Parameters:
        -----------
        configPath : str
            Path to the JSON configuration file

        Returns:
        --------
        WorldConfig : Loaded configuration
        '''
        with open(configPath, 'r') as f:
            data = json.load(f)

        worldSection = data.get('world', {})
        timestepSection = data.get('timestep', {})
        solverSection = data.get('iisph', {})

        dimensions = worldSection.get('dimensions', 2)

        # Gravity may be given as a magnitude or as a full vector
        gravity = worldSection.get('gravity', const.gravity)
        if np.isscalar(gravity):
            gravityVec = np.zeros(dimensions)
            gravityVec[dimensions - 1] = -float(gravity)
        else:
            gravityVec = np.array(gravity, dtype=float)

        return cls(
            particleRadius=worldSection.get('particleRadius', 0.01),
            kernelRadiusRatio=worldSection.get('kernelRadiusRatio', const.defaultKernelRadiusRatio),
            gravity=gravityVec,
            dimensions=dimensions,
            densityKernelType=worldSection.get('densityKernel', 'cubicSpline'),
            gradientKernelType=worldSection.get('gradientKernel', 'cubicSpline'),
            adaptiveTimestep=timestepSection.get('adaptive', False),
            cflCoefficient=timestepSection.get('cflCoefficient', const.cflCoefficient),
            minNumSubsteps=timestepSection.get('minNumSubsteps', const.minNumSubsteps),
            maxNumSubsteps=timestepSection.get('maxNumSubsteps', const.maxNumSubsteps),
            solver=IisphConfig.fromDict(solverSection),
        )


######################################################################
# -- Step Results -- #
######################################################################

class RelaxationStatus(enum.Enum):
    '''Outcome of the pressure relaxation loop.'''

    ITERATING = 'iterating'
    CONVERGED = 'converged'
    EXHAUSTED = 'exhausted'


@dataclass
class PressureSolveResult:
    '''
    Outcome of one pressure relaxation.

    Parameters:
    -----------
    status : RelaxationStatus
        CONVERGED if the error bound was met, EXHAUSTED otherwise
    iterations : int
        Number of relaxation iterations performed
    averageDensityError : float
        Largest per-fluid average density error of the last iteration
    '''

    status: RelaxationStatus
    iterations: int
    averageDensityError: float

    @property
    def converged(self) -> bool:
        return self.status is RelaxationStatus.CONVERGED


@dataclass
class SimulationState:
    '''
    Snapshot of a FluidWorld after a frame.

    Parameters:
    -----------
    time : float
        Current simulation time [s]
    frame : int
        Number of frames completed
    dt : float
        Length of the last substep [s]
    nSubsteps : int
        Substeps taken during the last frame
    kineticEnergy : float
        Total kinetic energy of all fluid particles [J]
    maxVelocity : float
        Maximum fluid particle speed [m/s]
    averageDensityError : float
        Density error reported by the last pressure solve
    pressureIterations : int
        Relaxation iterations of the last pressure solve
    '''

    time: float
    frame: int
    dt: float
    nSubsteps: int
    kineticEnergy: float
    maxVelocity: float
    averageDensityError: float
    pressureIterations: int


######################################################################
# -- Non-Pressure Force Protocol -- #
######################################################################

class NonPressureForce(Protocol):
    '''
    Protocol for forces applied before the pressure solve.

    Implementations read contacts and densities and add their
    contribution to the fluid's velocity-change accumulator. They
    never hold or resolve neighbor structures of their own.
    '''

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
        '''
        Add this force's velocity change for one fluid.

        Parameters:
        -----------
        dt : float
            Substep length [s]
        kernelRadius : float
            Kernel support radius [m]
        fluidFluidContacts : ParticleContacts
            Contacts whose source is this fluid and target any fluid
        fluidBoundaryContacts : ParticleContacts
            Contacts whose source is this fluid and target any boundary
        fluid : Fluid
            The fluid being updated
        fluids : Sequence[Fluid]
            All fluids (for targets of fluid-fluid contacts)
        boundaries : Sequence[Boundary]
            All boundaries (volumes already updated for this step)
        densities : np.ndarray
            Densities of this fluid, shape (N,)
        velocityChanges : np.ndarray
            Accumulator to add into, shape (N, dim)
        '''
        ...

    def applyPermutation(self, permutation: np.ndarray) -> None:
        '''Reorder any per-particle state after the fluid was permuted.'''
        ...


######################################################################
# -- Pressure Solver Protocol -- #
######################################################################

class PressureSolver(Protocol):
    '''Protocol for pressure solvers driven by a FluidWorld.'''

    @property
    def velocityChanges(self) -> list[np.ndarray]:
        '''Per-fluid velocity-change accumulators.'''
        ...

    def initWithFluids(self, fluids: Sequence[Fluid]) -> None:
        '''Resize per-fluid buffers.'''
        ...

    def initWithBoundaries(self, boundaries: Sequence[Boundary]) -> None:
        '''Resize per-boundary buffers.'''
        ...

    def applyPermutation(self, fluidId: int, permutation: np.ndarray) -> None:
        '''Reorder the per-particle buffers of one fluid.'''
        ...

    def predictAdvection(self, dt: float, gravity: np.ndarray, fluids: Sequence[Fluid]) -> None:
        '''Add body accelerations to the velocity-change accumulators.'''
        ...

    def step(
        self,
        dt: float,
        contactManager: ContactManager,
        kernelRadius: float,
        fluids: Sequence[Fluid],
        boundaries: Sequence[Boundary],
    ) -> PressureSolveResult:
        '''Advance fluids by one substep.'''
        ...
