"""Shared test helpers for ModelTimer."""

from modeltimer.clock import Clock


class SignalCollector:
    """Utility to capture pyqtSignal emissions into a list."""

    def __init__(self):
        self.items: list = []

    def slot(self, *args):
        self.items.append(args if len(args) > 1 else args[0] if args else None)

    def __call__(self, *args):
        self.slot(*args)

    def __len__(self):
        return len(self.items)

    def __getitem__(self, idx):
        return self.items[idx]

    @property
    def last(self):
        return self.items[-1] if self.items else None

    def clear(self):
        self.items.clear()


class TimedCollector(SignalCollector):
    """SignalCollector that also records the clock time of each emission."""

    def __init__(self, clock: Clock):
        super().__init__()
        self.clock = clock
        self.times: list[float] = []

    def slot(self, *args):
        self.times.append(self.clock.now_ms())
        super().slot(*args)

    def clear(self):
        super().clear()
        self.times.clear()
