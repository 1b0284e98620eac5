# -- Dam Break Scenario -- #

'''
Classic 2D dam break.

A rectangular water column rests against the left wall of an open-top
container. When the simulation starts the column collapses under
gravity and surges along the floor toward the right wall.

The scenario creates:
1. Fluid particles filling the column on a regular lattice
2. Boundary particles lining the left, bottom, and right walls
3. A FluidWorld with the IISPH solver ready to step
'''

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from IisphSim import constants as const
from IisphSim.sph.fluidWorld import FluidWorld
from IisphSim.sph.particles import Boundary, Fluid
from IisphSim.sph.protocols import IisphConfig, WorldConfig
from IisphSim.sph.viscosity import ArtificialViscosity


######################################################################
# -- Dam Break Configuration -- #
######################################################################

@dataclass
class DamBreakConfig:
    '''
    Configuration for a dam break scenario.

    Parameters:
    -----------
    containerWidth : float
        Container interior width [m]
    containerHeight : float
        Container interior height [m]
    columnWidth : float
        Initial water column width [m]
    columnHeight : float
        Initial water column height [m]
    particleRadius : float
        Particle radius [m]
    kernelRadiusRatio : float
        Ratio kernel support radius / particle radius
    density0 : float
        Rest density of the water [kg/m^3]
    fluidViscosity : float
        Artificial viscosity coefficient between water particles
    boundaryViscosity : float
        Artificial viscosity coefficient against the walls
    endTime : float
        Simulation end time [s]
    frameLength : float
        Duration of one frame [s]
    maxDensityError : float
        Allowed average density error of the pressure solve
    maxPressureIter : int
        Iteration cap of the pressure solve
    '''

    containerWidth: float = 1.6
    containerHeight: float = 0.8
    columnWidth: float = 0.4
    columnHeight: float = 0.6
    particleRadius: float = 0.01
    kernelRadiusRatio: float = const.defaultKernelRadiusRatio
    density0: float = const.referenceDensity
    fluidViscosity: float = 0.01
    boundaryViscosity: float = 0.0
    endTime: float = 2.0
    frameLength: float = 1.0 / 60.0
    maxDensityError: float = const.maxDensityError
    maxPressureIter: int = const.maxPressureIter

    @classmethod
    def small2D(cls) -> DamBreakConfig:
        '''
        Small 2D dam break for quick testing.

        ~150 fluid particles, runs in seconds.
        '''
        return cls(
            containerWidth=0.6,
            containerHeight=0.4,
            columnWidth=0.2,
            columnHeight=0.3,
            particleRadius=0.01,
            endTime=0.5,
        )

    @classmethod
    def standard2D(cls) -> DamBreakConfig:
        '''
        Standard 2D dam break.

        ~2400 fluid particles, good quality results.
        '''
        return cls(
            containerWidth=1.6,
            containerHeight=0.8,
            columnWidth=0.4,
            columnHeight=0.6,
            particleRadius=0.005,
            endTime=2.0,
        )

    def worldConfig(self) -> WorldConfig:
        '''World configuration matching this scenario.'''
        return WorldConfig(
            particleRadius=self.particleRadius,
            kernelRadiusRatio=self.kernelRadiusRatio,
            gravity=np.array([0.0, -const.gravity]),
            dimensions=2,
            adaptiveTimestep=True,
            solver=IisphConfig(
                maxDensityError=self.maxDensityError,
                maxPressureIter=self.maxPressureIter,
            ),
        )


######################################################################
# -- Scenario Creation -- #
######################################################################

def createDamBreak(damConfig: DamBreakConfig) -> FluidWorld:
    '''
    Create a dam break world from configuration.

    The water column occupies [0, columnWidth] x [0, columnHeight]
    inside a container [0, containerWidth] x [0, containerHeight]
    with an open top.

    Parameters:
    -----------
    damConfig : DamBreakConfig
        Scenario configuration

    Returns:
    --------
    FluidWorld : World holding one fluid and one boundary
    '''
    if damConfig.columnWidth > damConfig.containerWidth or (
        damConfig.columnHeight > damConfig.containerHeight
    ):
        raise ValueError('the water column must fit inside the container')

    containerMin = np.array([0.0, 0.0])
    containerMax = np.array([damConfig.containerWidth, damConfig.containerHeight])

    world = FluidWorld(damConfig.worldConfig())

    ######################################################################
    # Boundary particles (left, bottom and right walls)
    ######################################################################
    boundary = Boundary.createBox(
        containerMin,
        containerMax,
        damConfig.particleRadius,
        nLayers=const.defaultBoundaryLayers,
        openTop=True,
    )
    world.addBoundary(boundary)

    ######################################################################
    # Water column
    ######################################################################
    viscosity = ArtificialViscosity(
        fluidViscosityCoefficient=damConfig.fluidViscosity,
        boundaryViscosityCoefficient=damConfig.boundaryViscosity,
    )
    water = Fluid.createBlock(
        containerMin,
        np.array([damConfig.columnWidth, damConfig.columnHeight]),
        damConfig.particleRadius,
        damConfig.density0,
        nonPressureForces=[viscosity],
    )
    world.addFluid(water)

    return world
