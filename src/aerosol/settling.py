"""
Gravitational Settling of Spherical Particles
=============================================

Terminal settling velocity of a sphere in air, from the balance of gravity
and drag:

    v_t = sqrt(4 rho_p d g Cc / (3 Cd rho_g))

The drag coefficient ``Cd = 24 / Re (1 + 0.15 Re^0.687)`` depends on the
velocity through the Reynolds number, so ``v_t`` is found by fixed point
iteration from an empirical first guess. The Cunningham slip correction
``Cc`` raises the velocity of particles comparable in size to the mean free
path of the gas.

Defaults are room conditions: 298.15 K, 1e5 Pa, unit density spheres.

References:
-----------
Hinds, W. C. (1999). Aerosol Technology: Properties, Behavior, and
Measurement of Airborne Particles (2nd ed.). Wiley.
"""

import numpy as np

# ==============================================================================
# PHYSICAL CONSTANTS
# ==============================================================================
GRAVITY = 9.81              # [m s-2]
GAS_CONSTANT_DRY_AIR = 287.5  # [J kg-1 K-1]

DEFAULT_TEMPERATURE = 298.15  # [K]
DEFAULT_PRESSURE = 1e5        # [Pa]
DEFAULT_PARTICLE_DENSITY = 1000.0  # [kg m-3]

# (f(v) - v)^2 below this counts as converged
CONVERGENCE_TOLERANCE = 1e-30
RELATIVE_TOLERANCE = 1e-12


class ConvergenceError(RuntimeError):
    """The terminal velocity iteration did not settle within ``max_iter``."""

    def __init__(self, diameter, iterations, last_velocity):
        self.diameter = diameter
        self.iterations = iterations
        self.last_velocity = last_velocity
        super().__init__(
            f"Terminal velocity for d = {diameter:.3e} m did not converge "
            f"after {iterations} iterations (last v = {last_velocity:.6e} m/s)"
        )


# ==============================================================================
# GAS PROPERTIES
# ==============================================================================

def mean_free_path(T=DEFAULT_TEMPERATURE, p=DEFAULT_PRESSURE):
    """Mean free path of air molecules [m]."""
    return 6.6e-8 * (101315.0 / p) * (T / 293.15)


def air_viscosity(T=DEFAULT_TEMPERATURE):
    """Dynamic viscosity of air from Sutherland's law [Pa s]."""
    return 1.83245e-5 * np.exp(1.5 * np.log(T / 296.1)) * 406.55 / (T + 110.4)


def air_density(T=DEFAULT_TEMPERATURE, p=DEFAULT_PRESSURE):
    """Density of dry air from the ideal gas law [kg m-3]."""
    return p / (GAS_CONSTANT_DRY_AIR * T)


def slip_correction(d, T=DEFAULT_TEMPERATURE, p=DEFAULT_PRESSURE):
    """Cunningham slip correction factor for diameter ``d`` [m]."""
    lam = mean_free_path(T, p)
    return 1.0 + lam / d * (2.34 + 1.05 * np.exp(-0.39 * d / lam))


def reynolds_number(v, d, T=DEFAULT_TEMPERATURE, p=DEFAULT_PRESSURE):
    """Particle Reynolds number ``rho_g v d / eta``."""
    return air_density(T, p) * v * d / air_viscosity(T)


def drag_coefficient(Re):
    """Drag coefficient of a sphere, Stokes law with the Schiller-Naumann term."""
    return 24.0 / Re * (1.0 + 0.15 * Re**0.687)


# ==============================================================================
# SETTLING
# ==============================================================================

def initial_velocity_guess(d):
    """Empirical first guess of the terminal velocity [m/s] for diameter ``d`` [m]."""
    if d < 100e-6:
        return 3.7e7 * d**2
    if d <= 1000e-6:
        return 4.3e3 * d
    return 9.65 - 10.3 * np.exp(-600.0 * d)


def terminal_velocity(d,
                      T=DEFAULT_TEMPERATURE,
                      p=DEFAULT_PRESSURE,
                      rho_p=DEFAULT_PARTICLE_DENSITY,
                      max_iter=1000):
    """
    Terminal settling velocity of a sphere.

    Args:
        d: Particle diameter [m]
        T: Air temperature [K]
        p: Air pressure [Pa]
        rho_p: Particle density [kg m-3]
        max_iter: Iteration limit

    Returns:
        Terminal velocity [m/s]

    Raises:
        ValueError: For non-positive diameter, temperature, pressure or density
        ConvergenceError: If the iteration does not converge
    """
    if not (d > 0 and T > 0 and p > 0 and rho_p > 0):
        raise ValueError("d, T, p and rho_p must all be > 0")

    rho_g = air_density(T, p)
    numerator = 4.0 * rho_p * d * GRAVITY * slip_correction(d, T, p)

    def f(v):
        return np.sqrt(numerator / (3.0 * drag_coefficient(reynolds_number(v, d, T, p)) * rho_g))

    v = initial_velocity_guess(d)
    for _ in range(max_iter):
        v_new = f(v)
        delta = v_new - v
        if delta**2 < CONVERGENCE_TOLERANCE or abs(delta) <= RELATIVE_TOLERANCE * v_new:
            return float(v_new)
        v = v_new
    raise ConvergenceError(d, max_iter, float(v))


def terminal_velocities(diameters, T=DEFAULT_TEMPERATURE, p=DEFAULT_PRESSURE,
                        rho_p=DEFAULT_PARTICLE_DENSITY, max_iter=1000):
    """``terminal_velocity`` for each diameter in ``diameters``."""
    return np.array([terminal_velocity(d, T=T, p=p, rho_p=rho_p, max_iter=max_iter)
                     for d in np.atleast_1d(diameters)])


def relaxation_time(d, T=DEFAULT_TEMPERATURE, p=DEFAULT_PRESSURE,
                    rho_p=DEFAULT_PARTICLE_DENSITY):
    """Time constant ``rho_p d^2 Cc / (18 eta)`` for reaching terminal velocity [s]."""
    return rho_p * d**2 * slip_correction(d, T, p) / (18.0 * air_viscosity(T))


def velocity_after_release(t, d, T=DEFAULT_TEMPERATURE, p=DEFAULT_PRESSURE,
                           rho_p=DEFAULT_PARTICLE_DENSITY):
    """Velocity ``v_t (1 - exp(-t / tau))`` of a particle released from rest."""
    tau = relaxation_time(d, T, p, rho_p)
    vt = terminal_velocity(d, T, p, rho_p)
    return vt * (1.0 - np.exp(-np.asarray(t, dtype=float) / tau))
