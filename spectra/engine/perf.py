import time

class BlockPacer:
    """Sleeps between blocks so a file plays back at its audio block rate.

    Deadlines advance by whole block periods from the previous deadline, so
    short sleeps and small overruns do not accumulate drift. When delivery
    falls more than one block behind, the schedule restarts from now instead
    of bursting to catch up.
    """
    def __init__(self, block_rate: float):
        self.set_rate(block_rate)
        self._deadline = time.monotonic()

    def set_rate(self, block_rate: float):
        self.rate = max(1e-6, float(block_rate))
        self._block_dt = 1.0 / self.rate

    def restart(self):
        self._deadline = time.monotonic()

    def wait(self):
        now = time.monotonic()
        deadline = self._deadline + self._block_dt
        if deadline > now:
            time.sleep(deadline - now)
            self._deadline = deadline
        elif now - deadline < self._block_dt:
            self._deadline = deadline
        else:
            self._deadline = now
