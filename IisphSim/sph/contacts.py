# -- Particle Contacts -- #

'''
Cached neighbor pairs between particle models.

A contact links a source particle (iModel, i) to a target particle
(jModel, j) within the kernel support radius and caches the kernel
weight and gradient for the pair. Contacts are stored as one
struct-of-arrays per source model, grouped into three disjoint
relation sets:

- fluid-fluid:       source fluid, target any fluid
- fluid-boundary:    source fluid, target any boundary
- boundary-boundary: source boundary, target any boundary

Particles are referenced by index only, so a contact list stays
valid for concurrent reads while the underlying arrays are owned by
the models.

Neighbor discovery itself is delegated to scipy's cKDTree; the
solver only refreshes the cached weights and gradients.

References:
-----------
Ihmsen et al. (2011) -- Parallel Neighbor-Search for SPH
'''

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Sequence

import numpy as np
from scipy.spatial import cKDTree

from IisphSim.sph.kernels import SphKernel
from IisphSim.sph.particles import Boundary, Fluid


######################################################################
# -- Per-Model Field Gathering -- #
######################################################################

def modelOffsets(fields: Sequence[np.ndarray]) -> np.ndarray:
    '''Start offset of each model's block once the fields are concatenated.'''
    sizes = np.array([len(f) for f in fields], dtype=np.int64)
    return np.concatenate(([0], np.cumsum(sizes)[:-1])).astype(np.int64)


def gatherModelField(
    fields: Sequence[np.ndarray], models: np.ndarray, indices: np.ndarray
) -> np.ndarray:
    '''
    Look up a per-model field at (model, index) pairs.

    Parameters:
    -----------
    fields : Sequence[np.ndarray]
        One array per model, shape (N_m,) or (N_m, dim)
    models : np.ndarray
        Model id of every lookup, shape (n,)
    indices : np.ndarray
        Local particle index of every lookup, shape (n,)

    Returns:
    --------
    np.ndarray : Gathered values, shape (n,) or (n, dim)
    '''
    if len(fields) == 1:
        return fields[0][indices]

    flat = np.concatenate(fields) if len(fields) > 0 else np.zeros(0)
    offsets = modelOffsets(fields)
    return flat[offsets[models] + indices]


######################################################################
# -- Contacts of One Source Model -- #
######################################################################

@dataclass
class ParticleContacts:
    '''
    All contacts whose source particle belongs to one model.

    Parameters:
    -----------
    iModel : int
        Source model id
    i : np.ndarray
        Source particle local indices, shape (n,)
    jModel : np.ndarray
        Target model ids, shape (n,)
    j : np.ndarray
        Target particle local indices, shape (n,)
    weights : np.ndarray
        Cached kernel weights, shape (n,)
    gradients : np.ndarray
        Cached kernel gradients grad_i W_ij, shape (n, dim)
    '''

    iModel: int
    i: np.ndarray
    jModel: np.ndarray
    j: np.ndarray
    weights: np.ndarray
    gradients: np.ndarray

    @classmethod
    def empty(cls, iModel: int, dimensions: int) -> ParticleContacts:
        return cls.fromPairs(iModel, [], [], [], dimensions)

    @classmethod
    def fromPairs(
        cls,
        iModel: int,
        i: Sequence[int] | np.ndarray,
        jModel: Sequence[int] | np.ndarray,
        j: Sequence[int] | np.ndarray,
        dimensions: int,
    ) -> ParticleContacts:
        '''
        Build a contact list from index triples with zeroed caches.

        Weights and gradients are filled by refresh().
        '''
        i = np.asarray(i, dtype=np.int64)
        jModel = np.broadcast_to(np.asarray(jModel, dtype=np.int64), i.shape).copy()
        j = np.asarray(j, dtype=np.int64)
        if j.shape != i.shape:
            raise ValueError(f'i and j must have the same length, got {i.shape} and {j.shape}')

        return cls(
            iModel=iModel,
            i=i,
            jModel=jModel,
            j=j,
            weights=np.zeros(len(i)),
            gradients=np.zeros((len(i), dimensions)),
        )

    @property
    def nContacts(self) -> int:
        return len(self.i)

    def particleContacts(self, i: int) -> np.ndarray:
        '''Contact indices whose source particle is i.'''
        return np.flatnonzero(self.i == i)

    def targetModels(self) -> Iterator[tuple[int, np.ndarray]]:
        '''Yield (target model id, contact mask) for every target model present.'''
        for model in np.unique(self.jModel):
            yield int(model), self.jModel == model

    def refresh(
        self,
        sourcePositions: np.ndarray,
        targetPositions: Sequence[np.ndarray],
        radius: float,
        densityKernel: SphKernel,
        gradientKernel: SphKernel,
    ) -> None:
        '''
        Recompute the cached weight and gradient of every contact.

        Positions move every step, so the caches are stale after
        any integration. Pairs are independent: the whole list is
        evaluated in one vectorized pass.

        Parameters:
        -----------
        sourcePositions : np.ndarray
            Positions of the source model, shape (N, dim)
        targetPositions : Sequence[np.ndarray]
            Positions of every model the targets may belong to
        radius : float
            Kernel support radius [m]
        densityKernel : SphKernel
            Kernel for weights
        gradientKernel : SphKernel
            Kernel for gradients
        '''
        if self.nContacts == 0:
            return

        pi = sourcePositions[self.i]
        pj = gatherModelField(targetPositions, self.jModel, self.j)

        self.weights = densityKernel.pointsWeight(pi, pj, radius)
        self.gradients = gradientKernel.pointsGradient(pi, pj, radius)

    def select(self, mask: np.ndarray) -> ParticleContacts:
        '''Subset of the contacts where mask is True.'''
        return ParticleContacts(
            iModel=self.iModel,
            i=self.i[mask],
            jModel=self.jModel[mask],
            j=self.j[mask],
            weights=self.weights[mask],
            gradients=self.gradients[mask],
        )


######################################################################
# -- Contact Manager -- #
######################################################################

class ContactManager:
    '''
    Holds the three contact relation sets of a world.

    fluidFluidContacts[f] and fluidBoundaryContacts[f] hold the
    contacts whose source is fluid f; boundaryBoundaryContacts[b]
    those whose source is boundary b.

    Parameters:
    -----------
    includeSelfContacts : bool
        Include the (i, i) pair of every particle, so densities and
        boundary normalization sums carry the particle's own W(0)
    '''

    def __init__(self, includeSelfContacts: bool = True) -> None:
        self.includeSelfContacts = includeSelfContacts
        self.fluidFluidContacts: list[ParticleContacts] = []
        self.fluidBoundaryContacts: list[ParticleContacts] = []
        self.boundaryBoundaryContacts: list[ParticleContacts] = []

    @property
    def nContacts(self) -> int:
        '''Total number of cached contacts in all relation sets.'''
        return sum(
            c.nContacts
            for c in (
                *self.fluidFluidContacts,
                *self.fluidBoundaryContacts,
                *self.boundaryBoundaryContacts,
            )
        )

    def updateContacts(
        self,
        radius: float,
        fluids: Sequence[Fluid],
        boundaries: Sequence[Boundary],
    ) -> None:
        '''
        Rebuild every relation set from current positions.

        Pairs closer than the support radius are found with one
        cKDTree per target model. Cached weights and gradients are
        zeroed and must be refreshed by the solver.

        Parameters:
        -----------
        radius : float
            Kernel support radius [m]
        fluids : Sequence[Fluid]
            All fluid models
        boundaries : Sequence[Boundary]
            All boundary models
        '''
        fluidTrees = [self._buildTree(f.positions) for f in fluids]
        boundaryTrees = [self._buildTree(b.positions) for b in boundaries]

        self.fluidFluidContacts = [
            self._queryContacts(fluidId, fluid.positions, fluidTrees, radius)
            for fluidId, fluid in enumerate(fluids)
        ]
        self.fluidBoundaryContacts = [
            self._queryContacts(fluidId, fluid.positions, boundaryTrees, radius, sameSet=False)
            for fluidId, fluid in enumerate(fluids)
        ]
        self.boundaryBoundaryContacts = [
            self._queryContacts(boundaryId, boundary.positions, boundaryTrees, radius)
            for boundaryId, boundary in enumerate(boundaries)
        ]

    @staticmethod
    def _buildTree(positions: np.ndarray) -> cKDTree | None:
        if len(positions) == 0:
            return None
        return cKDTree(positions)

    def _queryContacts(
        self,
        sourceId: int,
        sourcePositions: np.ndarray,
        targetTrees: list[cKDTree | None],
        radius: float,
        sameSet: bool = True,
    ) -> ParticleContacts:
        '''Contacts from one source model to every model of a target set.'''
        dimensions = sourcePositions.shape[1]
        if len(sourcePositions) == 0:
            return ParticleContacts.empty(sourceId, dimensions)

        sourceTree = cKDTree(sourcePositions)
        iChunks: list[np.ndarray] = []
        jModelChunks: list[np.ndarray] = []
        jChunks: list[np.ndarray] = []

        for targetId, targetTree in enumerate(targetTrees):
            if targetTree is None:
                continue

            # Sparse distance matrix keeps only pairs with distance <= radius
            distances = sourceTree.sparse_distance_matrix(
                targetTree, radius, output_type='ndarray'
            )
            iIdx = distances['i'].astype(np.int64)
            jIdx = distances['j'].astype(np.int64)

            # Strictly inside the support radius
            inside = distances['v'] < radius
            iIdx = iIdx[inside]
            jIdx = jIdx[inside]

            # Self pairs come from an explicit, optional list
            isSelfModel = sameSet and targetId == sourceId
            if isSelfModel:
                notSelf = iIdx != jIdx
                iIdx = iIdx[notSelf]
                jIdx = jIdx[notSelf]
                if self.includeSelfContacts:
                    own = np.arange(len(sourcePositions), dtype=np.int64)
                    iIdx = np.concatenate([own, iIdx])
                    jIdx = np.concatenate([own, jIdx])

            iChunks.append(iIdx)
            jChunks.append(jIdx)
            jModelChunks.append(np.full(len(iIdx), targetId, dtype=np.int64))

        if not iChunks:
            return ParticleContacts.empty(sourceId, dimensions)

        return ParticleContacts.fromPairs(
            sourceId,
            np.concatenate(iChunks),
            np.concatenate(jModelChunks),
            np.concatenate(jChunks),
            dimensions,
        )
