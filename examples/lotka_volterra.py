#!/usr/bin/env python3
"""
Predator-prey right-hand side with paramkit

This example shows how to:
1. Declare a parameter type from YAML
2. Write a right-hand side that reads fields by bare name
3. Sweep one parameter with reconstruct()
"""

from pathlib import Path

from paramkit import load_param_types, reconstruct, with_param

LotkaVolterra = load_param_types(Path(__file__).parent / "lotka_volterra.yaml")["LotkaVolterra"]


# =============================================================================
# RIGHT-HAND SIDE
# =============================================================================
# a, b, c, d are fields of LotkaVolterra; x and y are ordinary locals


@with_param("p", LotkaVolterra)
def rhs(u, p, t):
    x, y = u
    return [a * x - b * x * y, -c * y + d * x * y]


def euler(f, u, p, dt, steps):
    """Fixed-step forward Euler, enough for a demonstration."""
    t = 0.0
    for _ in range(steps):
        du = f(u, p, t)
        u = [ui + dt * dui for ui, dui in zip(u, du)]
        t += dt
    return u


# =============================================================================
# SWEEP PREDATOR DEATH RATE
# =============================================================================

base = LotkaVolterra()
print(base.describe())
print()
print(rhs.__rewritten_source__)
print()

for c in (2.0, 2.5, 3.0, 3.5):
    p = reconstruct(base, c=c)
    x, y = euler(rhs, base.u0, p, dt=0.001, steps=10_000)
    print(f"c = {c:.1f}: prey {x:8.4f}  predators {y:8.4f}")
