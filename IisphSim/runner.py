# -- IISPH Simulation Runner -- #

'''
Runs IISPH scenarios with progress reporting.

Builds a scenario, steps the world frame by frame, prints a progress
table of the pressure solve and returns a summary of the run.

Usage:
    from IisphSim.runner import DamBreakRunner
    from IisphSim.scenarios.damBreak import DamBreakConfig

    DamBreakRunner().runDamBreak(DamBreakConfig.small2D())
'''

from __future__ import annotations

import json
import time as timeModule

from IisphSim.sph.protocols import SimulationState
from IisphSim.scenarios.damBreak import DamBreakConfig, createDamBreak


class DamBreakRunner:
    '''
    Runs a dam break simulation and stores per-frame states.

    Parameters:
    -----------
    printInterval : int
        Print a progress row every this many frames
    '''

    def __init__(self, printInterval: int = 10) -> None:
        self._frames: list[SimulationState] = []
        self._printInterval = max(1, printInterval)

    @property
    def frames(self) -> list[SimulationState]:
        '''States recorded after every frame of the last run.'''
        return self._frames

    def runFromConfig(self, configPath: str) -> dict:
        '''
        Run a dam break from the 'damBreak' section of a JSON file.

        Missing keys fall back to DamBreakConfig defaults.

        Parameters:
        -----------
        configPath : str
            Path to the JSON configuration file

        Returns:
        --------
        dict : Simulation results summary
        '''
        with open(configPath, 'r') as f:
            data = json.load(f)

        section = data.get('damBreak', {})
        defaults = DamBreakConfig()

        damConfig = DamBreakConfig(
            containerWidth=section.get('containerWidth', defaults.containerWidth),
            containerHeight=section.get('containerHeight', defaults.containerHeight),
            columnWidth=section.get('columnWidth', defaults.columnWidth),
            columnHeight=section.get('columnHeight', defaults.columnHeight),
            particleRadius=section.get('particleRadius', defaults.particleRadius),
            fluidViscosity=section.get('fluidViscosity', defaults.fluidViscosity),
            boundaryViscosity=section.get('boundaryViscosity', defaults.boundaryViscosity),
            endTime=section.get('endTime', defaults.endTime),
            frameLength=section.get('frameLength', defaults.frameLength),
            maxDensityError=section.get('maxDensityError', defaults.maxDensityError),
            maxPressureIter=section.get('maxPressureIter', defaults.maxPressureIter),
        )

        return self.runDamBreak(damConfig)

    def runDamBreak(self, damConfig: DamBreakConfig) -> dict:
        '''
        Run a dam break simulation.

        Parameters:
        -----------
        damConfig : DamBreakConfig
            Dam break configuration

        Returns:
        --------
        dict : Simulation results summary
        '''
        self._frames = []

        print()
        print('=' * 62)
        print('  IISPHSIM -- DAM BREAK SIMULATION')
        print('=' * 62)
        print()

        #--------------------------------------------------------------------#
        # Scenario Setup
        #--------------------------------------------------------------------#
        print('-' * 62)
        print('  SCENARIO SETUP')
        print('-' * 62)

        world = createDamBreak(damConfig)
        worldConfig = world.config
        nFluid = sum(f.nParticles for f in world.fluids)
        nBoundary = sum(b.nParticles for b in world.boundaries)

        print(f'  Container:         {damConfig.containerWidth:6.3f} x {damConfig.containerHeight:6.3f} m')
        print(f'  Water Column:      {damConfig.columnWidth:6.3f} x {damConfig.columnHeight:6.3f} m')
        print(f'  Particle Radius:   {damConfig.particleRadius:8.4f} m')
        print(f'  Kernel Radius:     {worldConfig.kernelRadius:8.4f} m')
        print(f'  Fluid Particles:   {nFluid:8d}')
        print(f'  Boundary Particles:{nBoundary:8d}')
        print(f'  Max Density Error: {worldConfig.solver.maxDensityError * 100:8.2f} %')
        print(f'  Frame Length:      {damConfig.frameLength:8.4f} s')
        print(f'  End Time:          {damConfig.endTime:8.2f} s')
        print()

        #--------------------------------------------------------------------#
        # Simulation Loop
        #--------------------------------------------------------------------#
        print('-' * 62)
        print('  RUNNING SIMULATION')
        print('-' * 62)
        print()
        print(f'  {"Time":>8}  {"Frame":>6}  {"Sub":>4}  {"Iter":>5}  {"DensErr":>8}  {"MaxVel":>8}  {"KE":>10}')
        print(f'  {"(s)":>8}  {"":>6}  {"":>4}  {"":>5}  {"(%)":>8}  {"(m/s)":>8}  {"(J)":>10}')
        print('  ' + '-' * 58)

        nExhausted = 0
        wallClockStart = timeModule.time()

        while world.time < damConfig.endTime - 1e-12:
            state = world.step(damConfig.frameLength)
            self._frames.append(state)

            if world.lastResult is not None and not world.lastResult.converged:
                nExhausted += 1

            if state.frame % self._printInterval == 0:
                print(
                    f'  {state.time:8.4f}  {state.frame:6d}  {state.nSubsteps:4d}  '
                    f'{state.pressureIterations:5d}  {state.averageDensityError * 100:8.3f}  '
                    f'{state.maxVelocity:8.4f}  {state.kineticEnergy:10.4f}'
                )

        wallClockSeconds = timeModule.time() - wallClockStart
        finalState = world.currentState

        print()
        print(f'  Simulation complete.')
        print(f'  Total frames:      {finalState.frame:8d}')
        print(f'  Wall-clock time:   {wallClockSeconds:8.1f} s')
        print()

        #--------------------------------------------------------------------#
        # Summary
        #--------------------------------------------------------------------#
        print('=' * 62)
        print('  SIMULATION SUMMARY')
        print('=' * 62)
        print(f'  Final KE:          {finalState.kineticEnergy:10.6f} J')
        print(f'  Max Velocity:      {finalState.maxVelocity:8.4f} m/s')
        print(f'  Last Density Err:  {finalState.averageDensityError * 100:8.3f} %')
        print(f'  Unconverged Frames:{nExhausted:8d}')
        print('=' * 62)
        print()

        return {
            'finalState': finalState,
            'world': world,
            'wallClockSeconds': wallClockSeconds,
            'nFrames': len(self._frames),
            'nUnconvergedFrames': nExhausted,
        }
