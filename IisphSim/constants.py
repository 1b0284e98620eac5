# -- Physical and Numerical Constants for IISPH -- #

'''
Physical and numerical constants for the IISPH fluid solver.
All values in SI units unless otherwise noted.

References:
-----------
Ihmsen et al. (2013) -- Implicit Incompressible SPH
Akinci et al. (2012) -- Versatile Rigid-Fluid Coupling for
    Incompressible SPH
Monaghan (1992) -- Smoothed Particle Hydrodynamics
'''

#--------------------------------------------------------------------#
# -- Fluid Properties -- #
#--------------------------------------------------------------------#

# Reference fluid density (freshwater at 20C) [kg/m^3]
referenceDensity: float = 1000.0

# Gravitational acceleration [m/s^2]
gravity: float = 9.81

#--------------------------------------------------------------------#
# -- Pressure Relaxation Defaults -- #
#--------------------------------------------------------------------#

# Minimum number of relaxation iterations before convergence may stop the loop
minPressureIter: int = 1

# Hard cap on relaxation iterations per step
maxPressureIter: int = 50

# Allowed average density error, as a fraction of rest density
maxDensityError: float = 0.05

# Relaxation factor omega for the Jacobi update
omega: float = 0.5

# Pressures carried over from the previous step are scaled by this
# factor before the loop starts (warm start)
warmStartFactor: float = 0.5

# Particles with |aii| at or below this value are locked to zero pressure
aiiEpsilon: float = 1e-9

#--------------------------------------------------------------------#
# -- Timestep Defaults -- #
#--------------------------------------------------------------------#

# CFL coefficient for the adaptive substep estimate
cflCoefficient: float = 0.4

# Substep count bounds for the adaptive substep estimate
minNumSubsteps: int = 1
maxNumSubsteps: int = 10

#--------------------------------------------------------------------#
# -- Discretization Defaults -- #
#--------------------------------------------------------------------#

# Kernel support radius to particle radius ratio
# radius = kernelRadiusRatio * particleRadius (two particle spacings)
defaultKernelRadiusRatio: float = 4.0

# Number of boundary particle layers
defaultBoundaryLayers: int = 2

#--------------------------------------------------------------------#
# -- Artificial Viscosity Defaults -- #
#--------------------------------------------------------------------#

# Monaghan artificial viscosity coefficients
alphaViscosity: float = 1.0
betaViscosity: float = 0.0

# Numerical speed of sound used by the artificial viscosity [m/s]
viscositySpeedOfSound: float = 10.0
