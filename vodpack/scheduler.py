"""Bounded scheduler for tier encodes"""

import logging
from concurrent.futures import Future
from typing import Dict, List, Tuple

import psutil

log = logging.getLogger(__name__)

class TierScheduler:
    """
    Admission control for concurrent tier encodes.

    At most concurrency_limit encodes run at once. While at least one encode
    is running, another is only admitted if memory_reserve of total memory
    would stay available; with nothing running a task is always admitted so
    a job cannot stall.
    """

    def __init__(self, concurrency_limit: int, memory_reserve: float = 0.0):
        if concurrency_limit < 1:
            raise ValueError("concurrency_limit must be at least 1")
        self.concurrency_limit = concurrency_limit
        self.memory_reserve = memory_reserve
        self.running_tasks: Dict[int, Future] = {}

    def has_capacity(self) -> bool:
        return len(self.running_tasks) < self.concurrency_limit

    def memory_available(self) -> bool:
        if self.memory_reserve <= 0:
            return True
        mem = psutil.virtual_memory()
        return mem.available > mem.total * self.memory_reserve

    def can_submit(self) -> bool:
        """Determine if a new task can be submitted."""
        if not self.running_tasks:
            return True
        if not self.has_capacity():
            return False
        if not self.memory_available():
            log.info("Low memory (%d%% used); holding back next encode",
                     psutil.virtual_memory().percent)
            return False
        return True

    def add_task(self, task_id: int, future: Future) -> None:
        """Record a submitted task."""
        self.running_tasks[task_id] = future

    def futures(self) -> List[Future]:
        return list(self.running_tasks.values())

    def pop_completed(self) -> List[Tuple[int, Future]]:
        """Remove and return completed tasks, lowest task id first."""
        completed = sorted(
            ((tid, fut) for tid, fut in self.running_tasks.items() if fut.done()),
            key=lambda item: item[0]
        )
        for tid, _ in completed:
            self.running_tasks.pop(tid)
        return completed
