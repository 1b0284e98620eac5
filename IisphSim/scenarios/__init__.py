# -- Simulation Scenarios Package -- #

'''
Pre-configured scenarios for IISPH simulation.

Each scenario provides initial conditions (particle layout,
boundary geometry) and a ready-to-step FluidWorld.
'''

from IisphSim.scenarios.damBreak import DamBreakConfig, createDamBreak
