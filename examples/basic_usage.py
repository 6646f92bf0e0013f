"""
Basic Usage Examples for the Laboratory Numerics Library

This script walks through the common use cases of each package:
temperature control of the thermoelectric stage, Fourier analysis of a
sampled series, regularised inversion and aerosol settling.
"""

import warnings

import numpy as np
import matplotlib.pyplot as plt

from process_control import (
    PIDGains,
    ThermalStageParams,
    compute_tracking_metrics,
    equilibrium_temperature,
    make_controller,
    run_closed_loop,
    solve_constant_voltage,
)
from signal_analysis import lowpass_filter, spectrum_table, superpose_cosines
from inverse_methods import (
    RankDeficiencyWarning,
    add_uniform_noise,
    baart_problem,
    condition_number,
    discrepancy_lambda,
    least_squares,
    linear_fit,
    r_squared,
    design_matrix,
    tikhonov,
)
from aerosol import terminal_velocity


def example_1_open_loop_stage():
    """Example 1: Stage temperature at constant voltage"""
    print("="*60)
    print("Example 1: Open Loop Stage Response")
    print("="*60)

    params = ThermalStageParams()

    print(f"\n{'Voltage [V]':<14} {'T(30 min) [K]':<16} {'Equilibrium [K]'}")
    print("-"*48)
    for V in (0.0, 0.5, 1.0):
        _, T = solve_constant_voltage(V, params.environment_temperature, duration=1800.0,
                                      params=params)
        print(f"{V:<14.2f} {T[-1]:<16.2f} {equilibrium_temperature(V, params):.2f}")


def example_2_compare_controllers():
    """Example 2: Compare the feedback controllers"""
    print("\n" + "="*60)
    print("Example 2: Comparing Controllers")
    print("="*60)

    params = ThermalStageParams()
    gains = PIDGains(Kp=2.0, Ki=0.05, Kd=0.0, span=20.0)
    setpoint = 285.0

    print(f"\n{'Controller':<12} {'Final error [K]':<18} {'RMS error [K]':<16} {'Switches'}")
    print("-"*60)
    for kind in ("onoff", "p", "pi", "pid"):
        controller = make_controller(kind, setpoint=setpoint, gains=gains,
                                     environment_temperature=params.environment_temperature)
        history = run_closed_loop(controller, params.environment_temperature, 1800, dt=1.0,
                                  params=params)
        m = compute_tracking_metrics(history)
        print(f"{kind.upper():<12} {m['final_error']:<18.3f} {m['rms_error']:<16.3f} "
              f"{m['switch_count']}")


def example_3_spectrum():
    """Example 3: Recover three waves from their sum"""
    print("\n" + "="*60)
    print("Example 3: Spectrum of Superposed Waves")
    print("="*60)

    t = np.arange(400.0)
    x = superpose_cosines(t, [1.0, 0.5, 0.2], [0.05, 0.125, 0.3], [0.0, 90.0, 30.0])
    table = spectrum_table(x, sample_rate=1.0)

    print(f"\n{'f':<10} {'Amplitude':<12} {'Phase [deg]'}")
    print("-"*36)
    for f, A, phi in table.peaks(3):
        print(f"{f:<10.4f} {A:<12.4f} {phi:.1f}")
    print(f"\nSelf check passed: {table.check_consistency()}")

    filtered, _ = lowpass_filter(x, cutoff=0.1, sample_rate=1.0)
    fig, ax = plt.subplots(figsize=(10, 4))
    ax.plot(t, x, color='gray', alpha=0.6, label='Sum of three waves')
    ax.plot(t, filtered, color='C0', linewidth=2, label='Low-pass at 0.1')
    ax.set_xlabel('Sample')
    ax.set_ylabel('x')
    ax.legend()
    ax.grid(True, alpha=0.3)
    plt.tight_layout()
    plt.savefig('example_spectrum.png', dpi=150, bbox_inches='tight')
    print("\nPlot saved as 'example_spectrum.png'")
    plt.close(fig)


def example_4_regression():
    """Example 4: Linear regression and the fuel consumption model"""
    print("\n" + "="*60)
    print("Example 4: Linear Regression")
    print("="*60)

    rng = np.random.default_rng(1)
    x = np.linspace(0.0, 10.0, 30)
    y = 1.5 + 0.8 * x + rng.normal(0.0, 0.2, x.size)
    b, m = linear_fit(x, y)
    print(f"\nStraight line: y = {b:.3f} + {m:.3f} x")

    w = rng.uniform(1.0, 3.0, 40)
    h = rng.uniform(50.0, 250.0, 40)
    fuel = 2.0 * w + 0.05 * h + 0.01 * w * h + 3.0 + rng.normal(0.0, 0.1, 40)
    A = design_matrix([w, h, w * h])
    beta = least_squares(A, fuel)
    print(f"Fuel model coefficients (c4, c1, c2, c3): {np.round(beta, 4)}")
    print(f"R^2 = {r_squared(fuel, A, beta):.4f}")


def example_5_regularised_inversion():
    """Example 5: Tikhonov inversion of the Baart problem"""
    print("\n" + "="*60)
    print("Example 5: Regularised Inversion")
    print("="*60)

    problem = baart_problem(32)
    rng = np.random.default_rng(0)
    y = add_uniform_noise(problem.y, 1e-3, rng=rng)
    delta = np.linalg.norm(y - problem.y)
    print(f"\nCondition number of A: {condition_number(problem.A):.2e}")

    with warnings.catch_warnings():
        warnings.simplefilter('ignore', RankDeficiencyWarning)
        u_ls = least_squares(problem.A, y)
    lam = discrepancy_lambda(problem.A, y, delta, np.logspace(-6, 0, 25))
    u_tik = tikhonov(problem.A, y, lam)

    err = lambda u: np.linalg.norm(u - problem.u) / np.linalg.norm(problem.u)
    print(f"Least squares relative error: {err(u_ls):.2e}")
    print(f"Tikhonov (lambda = {lam:.2e}) relative error: {err(u_tik):.2e}")


def example_6_settling():
    """Example 6: Terminal velocity of water droplets"""
    print("\n" + "="*60)
    print("Example 6: Aerosol Settling")
    print("="*60)

    print(f"\n{'Diameter [um]':<16} {'v_t [m/s]'}")
    print("-"*30)
    for d_um in (0.1, 1.0, 10.0, 100.0):
        print(f"{d_um:<16.1f} {terminal_velocity(d_um * 1e-6):.3e}")


if __name__ == "__main__":
    example_1_open_loop_stage()
    example_2_compare_controllers()
    example_3_spectrum()
    example_4_regression()
    example_5_regularised_inversion()
    example_6_settling()
