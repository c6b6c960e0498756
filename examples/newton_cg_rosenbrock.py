"""
Example: Newton-CG and trust-region runs on the Rosenbrock function

Runs the Newton-CG solver with a strong Wolfe line search and the
trust-region method with a Cauchy-point subproblem, logging every iteration,
and prints the result summaries.
"""

import logging
import sys

import numpy as np

from iterconduit import (
    CauchyPoint,
    Executor,
    LoggingObserver,
    NewtonCG,
    ObserverMode,
    Problem,
    TrustRegion,
    WolfeLineSearch,
    configure_logging,
)


class Rosenbrock:
    """Rosenbrock function with analytic derivatives."""

    def __init__(self, a: float = 1.0, b: float = 100.0) -> None:
        self.a = a
        self.b = b

    def cost(self, p: np.ndarray) -> float:
        return float((self.a - p[0]) ** 2 + self.b * (p[1] - p[0] ** 2) ** 2)

    def gradient(self, p: np.ndarray) -> np.ndarray:
        return np.array(
            [
                -2.0 * (self.a - p[0]) - 4.0 * self.b * p[0] * (p[1] - p[0] ** 2),
                2.0 * self.b * (p[1] - p[0] ** 2),
            ]
        )

    def hessian(self, p: np.ndarray) -> np.ndarray:
        return np.array(
            [
                [12.0 * self.b * p[0] ** 2 - 4.0 * self.b * p[1] + 2.0, -4.0 * self.b * p[0]],
                [-4.0 * self.b * p[0], 2.0 * self.b],
            ]
        )


def example_newton_cg():
    print("=" * 60)
    print("Example 1: Newton-CG with a strong Wolfe line search")
    print("=" * 60)

    res = (
        Executor(Rosenbrock(), NewtonCG(WolfeLineSearch()))
        .configure(param=np.array([-1.2, 1.0]), max_iters=100)
        .add_observer(LoggingObserver(), ObserverMode.ALWAYS)
        .run()
    )
    print(res)
    print()
    return res


def example_trust_region():
    print("=" * 60)
    print("Example 2: Trust region with Cauchy-point steps")
    print("=" * 60)

    problem = Problem(
        fun=lambda x: float((x[0] - 1.0) ** 2 + 4.0 * (x[1] + 0.5) ** 2),
        finite_diff=True,
        dim=2,
    )
    res = (
        Executor(problem, TrustRegion(CauchyPoint(), radius=1.0))
        .configure(param=np.array([3.0, 2.0]), max_iters=200)
        .add_observer(LoggingObserver(), ObserverMode.EVERY, every=10)
        .run()
    )
    print(res)
    print()
    return res


def main() -> int:
    configure_logging(level=logging.INFO)
    example_newton_cg()
    res = example_trust_region()
    print(f"Final best cost: {res.best_cost:.3e}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
