import logging
from io import StringIO

import numpy as np
import pytest

from iterconduit.core import (
    Capability,
    CapabilityError,
    Executor,
    ExecutorConfig,
    ExecutorStatus,
    HistoryObserver,
    IterationDelta,
    ObserverMode,
    Solver,
    TerminationReason,
)
from iterconduit.diagnostics import debug_context
from iterconduit.logging import configure_logging


class Sphere:
    def cost(self, x):
        return float(np.sum(x**2))


class FailsOnCall:
    """Cost that raises on the n-th call."""

    def __init__(self, n: int) -> None:
        self.n = n
        self.calls = 0
        self.error = RuntimeError("operator failed")

    def cost(self, x):
        self.calls += 1
        if self.calls == self.n:
            raise self.error
        return float(np.sum(x**2))


class HalvingSolver(Solver):
    """Halves the parameter each iteration and never terminates by itself."""

    name = "halving"

    def __init__(self) -> None:
        self.calls = 0

    def next_iter(self, op, state):
        self.calls += 1
        param = state.param * 0.5
        return IterationDelta(param=param, cost=op.cost(param))


class StopAfter(HalvingSolver):
    def __init__(self, n: int) -> None:
        super().__init__()
        self.n = n

    def terminate(self, state):
        if state.cur_iter >= self.n:
            return TerminationReason.CONVERGED
        return TerminationReason.NOT_TERMINATED


class NeedsGradient(HalvingSolver):
    requires = frozenset({Capability.COST, Capability.GRADIENT})


def run(solver, max_iters=10, operator=None, **config):
    executor = Executor(operator or Sphere(), solver).configure(
        param=np.array([1.0, -2.0]), max_iters=max_iters, **config
    )
    return executor.run()


def test_ceiling_stops_solver_that_never_terminates():
    solver = HalvingSolver()
    res = run(solver, max_iters=7)
    assert res.n_iter == 7
    assert solver.calls == 7
    assert res.termination_reason is TerminationReason.MAX_ITERS_REACHED


def test_zero_iterations():
    solver = HalvingSolver()
    res = run(solver, max_iters=0)
    assert res.n_iter == 0
    assert solver.calls == 0
    assert res.termination_reason is TerminationReason.MAX_ITERS_REACHED


def test_iteration_counter_advances_by_one():
    history = HistoryObserver()
    executor = Executor(Sphere(), HalvingSolver(), ExecutorConfig(param=np.ones(2), max_iters=5))
    executor.add_observer(history)
    executor.run()
    assert history.iterations() == [1, 2, 3, 4, 5]


def test_best_cost_is_monotone():
    history = HistoryObserver()
    Executor(Sphere(), HalvingSolver()).configure(param=np.ones(3), max_iters=6).add_observer(
        history
    ).run()
    best = history.best_costs()
    assert all(b1 >= b2 for b1, b2 in zip(best, best[1:]))
    assert all(b <= c for b, c in zip(best, history.costs()))


def test_no_iterations_after_solver_terminates():
    solver = StopAfter(3)
    res = run(solver, max_iters=100)
    assert solver.calls == 3
    assert res.n_iter == 3
    assert res.termination_reason is TerminationReason.CONVERGED


def test_forced_termination_from_delta():
    class Forced(HalvingSolver):
        def next_iter(self, op, state):
            delta = super().next_iter(op, state)
            delta.termination = TerminationReason.CONVERGED
            return delta

        def terminate(self, state):
            raise AssertionError("terminate must not be consulted")

    res = run(Forced())
    assert res.n_iter == 1
    assert res.termination_reason is TerminationReason.CONVERGED


def test_target_cost_reached():
    res = run(HalvingSolver(), max_iters=100, target_cost=1e-3)
    assert res.termination_reason is TerminationReason.TARGET_COST_REACHED
    assert res.best_cost <= 1e-3
    # 5 * 0.25**k <= 1e-3  ->  k = 7
    assert res.n_iter == 7


def test_cost_evaluations_counted():
    res = run(HalvingSolver(), max_iters=12)
    assert res.counts == {"cost": 12, "gradient": 0, "hessian": 0}


def test_failed_evaluations_are_counted():
    class Tolerant(HalvingSolver):
        def next_iter(self, op, state):
            param = state.param * 0.5
            try:
                return IterationDelta(param=param, cost=op.cost(param))
            except RuntimeError:
                return IterationDelta(param=param)

    operator = FailsOnCall(3)
    res = run(Tolerant(), max_iters=5, operator=operator)
    assert res.n_iter == 5
    assert res.operator.cost_count == 5


def test_operator_failure_aborts_and_propagates_original_error():
    operator = FailsOnCall(2)
    executor = Executor(operator, HalvingSolver()).configure(param=np.ones(2), max_iters=10)
    with pytest.raises(RuntimeError) as excinfo:
        executor.run()
    assert excinfo.value is operator.error
    assert executor.state.termination_reason is TerminationReason.ABORTED
    assert executor.state.cur_iter == 1
    assert executor.operator.cost_count == 2
    assert executor.status is ExecutorStatus.TERMINATED


def test_capability_mismatch_rejected_at_construction():
    with pytest.raises(CapabilityError, match="gradient"):
        Executor(Sphere(), NeedsGradient())


def test_missing_param_rejected():
    with pytest.raises(ValueError, match="initial parameter"):
        Executor(Sphere(), HalvingSolver()).run()


def test_run_only_once():
    executor = Executor(Sphere(), HalvingSolver()).configure(param=np.ones(2), max_iters=1)
    executor.run()
    with pytest.raises(RuntimeError):
        executor.run()
    with pytest.raises(RuntimeError):
        executor.configure(max_iters=3)


def test_init_delta_merged_before_first_iteration():
    class WithInit(HalvingSolver):
        def init(self, op, state):
            return IterationDelta(cost=op.cost(state.param))

    history = HistoryObserver()
    executor = Executor(Sphere(), WithInit()).configure(param=np.array([2.0]), max_iters=1)
    res = executor.add_observer(history).run()
    assert res.n_iter == 1
    assert history.states[0].prev_cost == 4.0
    assert res.counts["cost"] == 2


def test_termination_from_init_skips_iterations():
    class AlreadyDone(HalvingSolver):
        def init(self, op, state):
            return IterationDelta(
                cost=op.cost(state.param), termination=TerminationReason.CONVERGED
            )

    solver = AlreadyDone()
    history = HistoryObserver()
    res = (
        Executor(Sphere(), solver)
        .configure(param=np.array([2.0]), max_iters=10)
        .add_observer(history)
        .run()
    )
    assert res.termination_reason is TerminationReason.CONVERGED
    assert res.n_iter == 0
    assert res.best_cost == 4.0
    assert np.array_equal(res.best_param, [2.0])
    assert solver.calls == 0
    assert len(history) == 0


def test_observer_failure_does_not_abort():
    class Broken:
        def notify(self, state, iteration):
            raise RuntimeError("observer broke")

    stream = StringIO()
    configure_logging(level=logging.ERROR, stream=stream)
    history = HistoryObserver()
    res = (
        Executor(Sphere(), HalvingSolver())
        .configure(param=np.ones(2), max_iters=3)
        .add_observer(Broken())
        .add_observer(history)
        .run()
    )
    assert res.termination_reason is TerminationReason.MAX_ITERS_REACHED
    assert len(history) == 3
    assert "observer broke" in stream.getvalue()


def test_observers_notified_in_registration_order():
    calls = []

    class Recorder:
        def __init__(self, tag):
            self.tag = tag

        def notify(self, state, iteration):
            calls.append((self.tag, iteration))

    Executor(Sphere(), HalvingSolver()).configure(param=np.ones(2), max_iters=2).add_observer(
        Recorder("a")
    ).add_observer(Recorder("b")).run()
    assert calls == [("a", 1), ("b", 1), ("a", 2), ("b", 2)]


def test_observer_modes():
    class Bumpy(Solver):
        costs = [3.0, 4.0, 2.0, 5.0, 1.0, 6.0]

        def next_iter(self, op, state):
            return IterationDelta(cost=self.costs[state.cur_iter])

    always, never, every, best = (HistoryObserver() for _ in range(4))
    Executor(Sphere(), Bumpy()).configure(param=np.zeros(1), max_iters=6).add_observer(
        always, ObserverMode.ALWAYS
    ).add_observer(never, ObserverMode.NEVER).add_observer(
        every, ObserverMode.EVERY, every=2
    ).add_observer(best, ObserverMode.NEW_BEST).run()
    assert always.iterations() == [1, 2, 3, 4, 5, 6]
    assert never.iterations() == []
    assert every.iterations() == [2, 4, 6]
    assert best.iterations() == [1, 3, 5]


def test_debug_mode_detects_contract_violation():
    class Cheater(HalvingSolver):
        def next_iter(self, op, state):
            state.cur_iter += 1
            return super().next_iter(op, state)

    executor = Executor(Sphere(), Cheater()).configure(param=np.ones(2), max_iters=5)
    with debug_context(True):
        with pytest.raises(ValueError, match="Iteration counter"):
            executor.run()
    assert executor.state.termination_reason is TerminationReason.ABORTED


def test_result_summary():
    res = run(StopAfter(2))
    text = str(res)
    assert "halving" in text
    assert "Solver converged" in text
    assert "cost=2" in text
    assert res.state.time is not None and res.state.time >= 0.0
