# -- IisphSim Package -- #

'''
Implicit Incompressible SPH (IISPH) fluid simulation.

Multi-fluid pressure solving against particle boundaries, with a
dam break scenario for quick experiments.
'''

__version__ = '0.1.0'

from IisphSim.runner import DamBreakRunner
from IisphSim.scenarios.damBreak import DamBreakConfig, createDamBreak
