"""Per-run call budgets for rate-limited external APIs."""

import asyncio

from rich.console import Console

console = Console()


class RequestBudget:
    """Caps calls to one external API for a run and spaces them out.

    Shared by every URL in the run, so the cap holds across the batch.
    """

    def __init__(self, name: str, limit: int, delay: float = 0.0):
        self.name = name
        self.limit = limit
        self.delay = delay
        self.used = 0

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.used)

    @property
    def exhausted(self) -> bool:
        return self.used >= self.limit

    async def acquire(self) -> bool:
        """Take one call from the budget, waiting out the inter-call delay.

        Returns False (without waiting) once the budget is spent.
        """
        if self.exhausted:
            return False
        if self.used > 0 and self.delay > 0:
            console.print(f"[dim]Rate limiting: waiting {self.delay:g}s before next {self.name} request[/dim]")
            await asyncio.sleep(self.delay)
        self.used += 1
        return True

    def __repr__(self) -> str:
        return f"RequestBudget({self.name!r}, used={self.used}/{self.limit})"
