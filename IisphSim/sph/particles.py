# -- SPH Particle Models -- #

'''
Fluid and boundary particle models.

Each model stores its particles as contiguous NumPy arrays for
vectorized operations. Models are addressed by their position in
the world's fluid or boundary list; contacts refer to particles by
(model id, local index), never by reference, so arrays may be
resized or reordered between steps.
'''

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from IisphSim.sph.protocols import NonPressureForce


def _checkShapes(positions: np.ndarray, **arrays: np.ndarray) -> None:
    '''Validate that per-particle arrays match the positions array.'''
    if positions.ndim != 2 or positions.shape[1] not in (2, 3):
        raise ValueError(f'positions must have shape (N, 2) or (N, 3), got {positions.shape}')

    n, dim = positions.shape
    for name, array in arrays.items():
        expected = (n,) if name == 'volumes' else (n, dim)
        if array.shape != expected:
            raise ValueError(f'{name} must have shape {expected}, got {array.shape}')


def _latticePositions(
    lowerCorner: np.ndarray, upperCorner: np.ndarray, spacing: float
) -> np.ndarray:
    '''Regular grid of points filling [lower, upper), offset by half a spacing.'''
    axes = [
        np.arange(lo + spacing / 2.0, hi, spacing)
        for lo, hi in zip(lowerCorner, upperCorner)
    ]
    grids = np.meshgrid(*axes, indexing='ij')
    return np.column_stack([g.ravel() for g in grids])


######################################################################
# -- Fluid -- #
######################################################################

@dataclass
class Fluid:
    '''
    A set of fluid particles sharing one rest density.

    All arrays have shape (nParticles, nDimensions) for vector
    quantities and (nParticles,) for scalar quantities.

    Parameters:
    -----------
    positions : np.ndarray
        Particle positions [m], shape (N, dim)
    density0 : float
        Rest density [kg/m^3]
    volumes : np.ndarray
        Rest volumes [m^dim], shape (N,)
    velocities : np.ndarray
        Particle velocities [m/s], shape (N, dim)
    accelerations : np.ndarray
        External body accelerations [m/s^2] added every substep,
        shape (N, dim)
    nonPressureForces : list[NonPressureForce]
        Forces applied before the pressure solve
    '''

    positions: np.ndarray
    density0: float
    volumes: np.ndarray
    velocities: np.ndarray = None
    accelerations: np.ndarray = None
    nonPressureForces: list[NonPressureForce] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.positions = np.array(self.positions, dtype=float)
        n = len(self.positions)
        dim = self.positions.shape[1] if self.positions.ndim == 2 else 0

        self.volumes = np.broadcast_to(
            np.asarray(self.volumes, dtype=float), (n,)
        ).copy()
        self.velocities = (
            np.zeros((n, dim)) if self.velocities is None
            else np.array(self.velocities, dtype=float)
        )
        self.accelerations = (
            np.zeros((n, dim)) if self.accelerations is None
            else np.array(self.accelerations, dtype=float)
        )

        if self.density0 <= 0.0:
            raise ValueError(f'density0 must be positive, got {self.density0}')

        _checkShapes(
            self.positions,
            volumes=self.volumes,
            velocities=self.velocities,
            accelerations=self.accelerations,
        )

    @property
    def nParticles(self) -> int:
        return self.positions.shape[0]

    @property
    def dimensions(self) -> int:
        return self.positions.shape[1]

    @property
    def masses(self) -> np.ndarray:
        '''Particle masses m = volume * density0 [kg], shape (N,).'''
        return self.volumes * self.density0

    def particleMass(self, i: int) -> float:
        return float(self.volumes[i] * self.density0)

    def kineticEnergy(self) -> float:
        '''
        Total kinetic energy.

        KE = (1/2) * sum_i m_i * |v_i|^2
        '''
        speedsSq = np.sum(self.velocities * self.velocities, axis=1)
        return float(0.5 * np.sum(self.masses * speedsSq))

    def maxSpeed(self) -> float:
        if self.nParticles == 0:
            return 0.0
        return float(np.max(np.linalg.norm(self.velocities, axis=1)))

    def addParticles(
        self,
        positions: np.ndarray,
        velocities: np.ndarray | None = None,
        volumes: np.ndarray | float | None = None,
    ) -> None:
        '''
        Append particles to the fluid.

        New particles default to zero velocity and to the volume of
        the first existing particle. Solver buffers must be
        re-provisioned afterwards (FluidWorld does so automatically).
        '''
        positions = np.atleast_2d(np.asarray(positions, dtype=float))
        n = len(positions)

        if velocities is None:
            velocities = np.zeros_like(positions)
        if volumes is None:
            if self.nParticles == 0:
                raise ValueError('volumes are required when adding to an empty fluid')
            volumes = self.volumes[0]

        volumes = np.broadcast_to(np.asarray(volumes, dtype=float), (n,))
        velocities = np.atleast_2d(np.asarray(velocities, dtype=float))
        _checkShapes(positions, volumes=volumes, velocities=velocities)

        self.positions = np.vstack([self.positions, positions])
        self.velocities = np.vstack([self.velocities, velocities])
        self.accelerations = np.vstack([self.accelerations, np.zeros_like(positions)])
        self.volumes = np.concatenate([self.volumes, volumes])

    def deleteParticles(self, mask: np.ndarray) -> None:
        '''Remove every particle where mask is True.'''
        keep = ~np.asarray(mask, dtype=bool)
        self.positions = self.positions[keep]
        self.velocities = self.velocities[keep]
        self.accelerations = self.accelerations[keep]
        self.volumes = self.volumes[keep]

    def applyPermutation(self, permutation: np.ndarray) -> None:
        '''
        Reorder particles so that new index k holds old particle permutation[k].

        Every non-pressure force is notified of the same permutation.
        '''
        permutation = np.asarray(permutation)
        if not np.array_equal(np.sort(permutation), np.arange(self.nParticles)):
            raise ValueError('permutation must be a rearrangement of range(nParticles)')

        self.positions = self.positions[permutation]
        self.velocities = self.velocities[permutation]
        self.accelerations = self.accelerations[permutation]
        self.volumes = self.volumes[permutation]

        for force in self.nonPressureForces:
            force.applyPermutation(permutation)

    @classmethod
    def createBlock(
        cls,
        lowerCorner: np.ndarray,
        upperCorner: np.ndarray,
        particleRadius: float,
        density0: float,
        nonPressureForces: list[NonPressureForce] | None = None,
    ) -> Fluid:
        '''
        Fill an axis-aligned box with fluid particles.

        Particles sit on a regular grid of spacing 2 * particleRadius;
        each carries the volume of one grid cell.

        Parameters:
        -----------
        lowerCorner : np.ndarray
            Lower corner of the block [m]
        upperCorner : np.ndarray
            Upper corner of the block [m]
        particleRadius : float
            Particle radius [m]
        density0 : float
            Rest density [kg/m^3]
        nonPressureForces : list[NonPressureForce] | None
            Forces attached to the fluid

        Returns:
        --------
        Fluid : Fluid at rest
        '''
        lowerCorner = np.asarray(lowerCorner, dtype=float)
        upperCorner = np.asarray(upperCorner, dtype=float)
        spacing = 2.0 * particleRadius

        positions = _latticePositions(lowerCorner, upperCorner, spacing)
        volume = spacing ** len(lowerCorner)

        return cls(
            positions=positions,
            density0=density0,
            volumes=np.full(len(positions), volume),
            nonPressureForces=list(nonPressureForces or []),
        )


######################################################################
# -- Boundary -- #
######################################################################

@dataclass
class Boundary:
    '''
    Static or kinematic boundary particles.

    Boundary volumes are not authored: the pressure solver derives
    them every step from boundary-boundary contacts and writes them
    back here so force modules can read them.

    Parameters:
    -----------
    positions : np.ndarray
        Particle positions [m], shape (M, dim)
    velocities : np.ndarray
        Particle velocities [m/s], shape (M, dim); zero for static walls
    '''

    positions: np.ndarray
    velocities: np.ndarray = None
    volumes: np.ndarray = field(init=False, default=None)

    def __post_init__(self) -> None:
        self.positions = np.array(self.positions, dtype=float)
        n = len(self.positions)
        dim = self.positions.shape[1] if self.positions.ndim == 2 else 0

        self.velocities = (
            np.zeros((n, dim)) if self.velocities is None
            else np.array(self.velocities, dtype=float)
        )
        self.volumes = np.zeros(n)

        _checkShapes(self.positions, velocities=self.velocities)

    @property
    def nParticles(self) -> int:
        return self.positions.shape[0]

    @property
    def dimensions(self) -> int:
        return self.positions.shape[1]

    @classmethod
    def createBox(
        cls,
        containerMin: np.ndarray,
        containerMax: np.ndarray,
        particleRadius: float,
        nLayers: int = 2,
        openTop: bool = True,
    ) -> Boundary:
        '''
        Generate layers of boundary particles around a box.

        Layers extend outward from the container walls; the last axis
        is vertical. With openTop the upper face is left open.

        Parameters:
        -----------
        containerMin : np.ndarray
            Lower corner of the container interior [m]
        containerMax : np.ndarray
            Upper corner of the container interior [m]
        particleRadius : float
            Particle radius [m] (spacing is twice this)
        nLayers : int
            Number of wall layers
        openTop : bool
            Leave the top face open

        Returns:
        --------
        Boundary : Static boundary
        '''
        containerMin = np.asarray(containerMin, dtype=float)
        containerMax = np.asarray(containerMax, dtype=float)
        spacing = 2.0 * particleRadius
        thickness = nLayers * spacing

        outerMin = containerMin - thickness
        outerMax = containerMax + thickness
        if openTop:
            outerMax[-1] = containerMax[-1]

        # Shell = lattice over the extended box minus the interior
        candidates = _latticePositions(outerMin, outerMax, spacing)
        inside = np.all(
            (candidates > containerMin) & (candidates < containerMax), axis=1
        )

        return cls(positions=candidates[~inside])
