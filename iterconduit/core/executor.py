"""The executor: runs a solver against an operator until it terminates."""

from __future__ import annotations

import dataclasses
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional

from ..diagnostics.core import assert_state_invariants, is_debug_enabled
from ..logging import get_logger
from .config import ExecutorConfig
from .errors import CapabilityError
from .observers import Observer, ObserverEntry, ObserverMode
from .operator import OperatorWrapper
from .solver import Solver
from .state import IterationDelta, IterState
from .termination import TerminationReason

logger = get_logger(__name__)


class ExecutorStatus(Enum):
    CONFIGURED = "configured"
    RUNNING = "running"
    TERMINATED = "terminated"


@dataclass
class OptimizationResult:
    """
    Final state of a run together with the operator wrapper.

    Attributes:
        state: Terminal :class:`IterState`.
        operator: :class:`OperatorWrapper` holding the evaluation counters.
        solver: Name of the solver that produced the result.
    """

    state: IterState
    operator: OperatorWrapper
    solver: str = ""

    @property
    def best_param(self) -> Any:
        return self.state.best_param

    @property
    def best_cost(self) -> float:
        return self.state.best_cost

    @property
    def param(self) -> Any:
        return self.state.param

    @property
    def cost(self) -> float:
        return self.state.cost

    @property
    def termination_reason(self) -> TerminationReason:
        return self.state.termination_reason

    @property
    def n_iter(self) -> int:
        return self.state.cur_iter

    @property
    def counts(self) -> dict[str, int]:
        return self.operator.counts()

    def __str__(self) -> str:
        counts = self.counts
        lines = [
            "OptimizationResult:",
            f"    solver:        {self.solver}",
            f"    param (best):  {self.state.best_param}",
            f"    cost (best):   {self.state.best_cost}",
            f"    iters (best):  {self.state.last_best_iter}",
            f"    iters (total): {self.state.cur_iter}",
            f"    termination:   {self.state.termination_reason}",
            f"    time:          {self.state.time}",
            f"    evaluations:   cost={counts['cost']} gradient={counts['gradient']} "
            f"hessian={counts['hessian']}",
        ]
        return "\n".join(lines)


class Executor:
    """
    Drives a :class:`Solver` against an operator.

    The operator's capabilities are checked against ``solver.requires`` here,
    before anything runs; a mismatch raises :class:`CapabilityError`.

    Args:
        operator: User operator implementing the capabilities the solver
            requires.
        solver: Algorithm to run.
        config: Initial parameter and stopping settings. Individual fields
            can also be set later with :meth:`configure`.

    Example:
        >>> res = (
        ...     Executor(problem, NewtonCG())
        ...     .configure(param=np.array([1.2, 1.2]), max_iters=100)
        ...     .add_observer(LoggingObserver(), ObserverMode.ALWAYS)
        ...     .run()
        ... )
    """

    def __init__(
        self,
        operator: Any,
        solver: Solver,
        config: Optional[ExecutorConfig] = None,
    ) -> None:
        if not solver.requires:
            raise ValueError(f"Solver {solver.name!r} declares no required capabilities.")
        self.operator = operator if isinstance(operator, OperatorWrapper) else OperatorWrapper(operator)
        missing = self.operator.missing(solver.requires)
        if missing:
            raise CapabilityError(solver.name, [cap.value for cap in missing])

        self.solver = solver
        self.config = config or ExecutorConfig()
        self.state = IterState()
        self.status = ExecutorStatus.CONFIGURED
        self._observers: List[ObserverEntry] = []

    def configure(self, **changes: Any) -> "Executor":
        """Override fields of the run configuration (``param``, ``max_iters``,
        ``target_cost``)."""
        if self.status is not ExecutorStatus.CONFIGURED:
            raise RuntimeError("Executor can only be configured before it runs.")
        self.config = dataclasses.replace(self.config, **changes)
        return self

    def add_observer(
        self,
        observer: Observer,
        mode: ObserverMode = ObserverMode.ALWAYS,
        every: int = 1,
    ) -> "Executor":
        if every < 1:
            raise ValueError("every must be at least 1.")
        self._observers.append(ObserverEntry(observer, mode, every))
        return self

    def run(self) -> OptimizationResult:
        """
        Run the solver until it terminates.

        Returns:
            OptimizationResult with the terminal state and the operator
            wrapper.

        Raises:
            Whatever the operator or solver raised. The state is marked
            ``ABORTED`` first and stays available as ``self.state``.
        """
        if self.status is not ExecutorStatus.CONFIGURED:
            raise RuntimeError("Executor.run() can only be called once.")
        self.config.validate()

        state = self.state
        state.param = self.config.param
        state.max_iters = self.config.max_iters
        state.target_cost = self.config.target_cost

        self.status = ExecutorStatus.RUNNING
        start = time.perf_counter()
        logger.info("Starting %s (max_iters=%d)", self.solver.name, state.max_iters)

        try:
            init_delta = self.solver.init(self.operator, state)
            if init_delta is not None:
                self._merge(init_delta)
                if init_delta.termination is not None:
                    state.terminate_with(init_delta.termination)
            while not state.terminated and state.cur_iter < state.max_iters:
                self._step(state)
        except Exception:
            state.terminate_with(TerminationReason.ABORTED)
            state.time = time.perf_counter() - start
            self.status = ExecutorStatus.TERMINATED
            logger.warning(
                "%s aborted at iteration %d", self.solver.name, state.cur_iter, exc_info=True
            )
            raise

        if not state.terminated:
            state.terminate_with(TerminationReason.MAX_ITERS_REACHED)
        state.time = time.perf_counter() - start
        self.status = ExecutorStatus.TERMINATED
        logger.info(
            "%s finished after %d iterations: %s (best cost %s)",
            self.solver.name,
            state.cur_iter,
            state.termination_reason,
            state.best_cost,
        )
        return OptimizationResult(state=state, operator=self.operator, solver=self.solver.name)

    def _step(self, state: IterState) -> None:
        prev_iter = state.cur_iter
        prev_best = state.best_cost

        delta = self.solver.next_iter(self.operator, state)
        new_best = self._merge(delta)
        state.increment_iter()

        if delta.termination is not None and delta.termination.terminated:
            reason = delta.termination
        else:
            reason = self.solver.terminate(state)
            if not reason.terminated and state.best_cost <= state.target_cost:
                reason = TerminationReason.TARGET_COST_REACHED
        state.terminate_with(reason)

        if is_debug_enabled():
            assert_state_invariants(state, prev_iter=prev_iter, prev_best_cost=prev_best)
        logger.debug(
            "iter %d: cost=%s best_cost=%s reason=%s",
            state.cur_iter,
            state.cost,
            state.best_cost,
            state.termination_reason.value,
        )
        self._notify(state, new_best)

    def _merge(self, delta: IterationDelta) -> bool:
        return self.state.merge(delta)

    def _notify(self, state: IterState, new_best: bool) -> None:
        wanted = [e for e in self._observers if e.wants(state.cur_iter, new_best)]
        if not wanted:
            return
        snapshot = state.snapshot()
        for entry in wanted:
            try:
                entry.observer.notify(snapshot, state.cur_iter)
            except Exception:
                logger.error(
                    "Observer %r failed at iteration %d",
                    entry.observer,
                    state.cur_iter,
                    exc_info=True,
                )


__all__ = ["Executor", "ExecutorStatus", "OptimizationResult"]
