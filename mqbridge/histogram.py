"""Streaming approximate histogram with a bounded number of bins."""

from dataclasses import dataclass, field


@dataclass
class Bin:
    """A bin centre and the number of samples it represents."""

    value: float
    count: float


@dataclass
class Histogram:
    """Histogram keeping at most max_bins bins, merging the closest pair when full.

    Not thread safe.
    """

    max_bins: int
    bins: list[Bin] = field(default_factory=list)
    total: int = 0

    def scale(self, s: float) -> None:
        """Multiply every bin value by s."""
        for b in self.bins:
            b.value *= s

    def add(self, n: float) -> None:
        """Add a sample, creating a bin for it if none has its exact value."""
        self.total += 1
        try:
            for i, b in enumerate(self.bins):
                if b.value == n:
                    b.count += 1
                    return
                if b.value > n:
                    self.bins.insert(i, Bin(value=n, count=1))
                    return
            self.bins.append(Bin(value=n, count=1))
        finally:
            self._trim()

    def quantile(self, q: float) -> float:
        """Return the value of the bin holding quantile q, or -1 if out of range."""
        remaining = q * self.total
        for b in self.bins:
            remaining -= b.count
            if remaining <= 0:
                return b.value
        return -1

    def mean(self) -> float:
        """Return the sample mean, 0 when empty."""
        if self.total == 0:
            return 0.0
        return sum(b.value * b.count for b in self.bins) / self.total

    def count(self) -> float:
        """Return the number of samples added."""
        return float(self.total)

    def _trim(self) -> None:
        while len(self.bins) > self.max_bins:
            idx = min(
                range(1, len(self.bins)),
                key=lambda i: self.bins[i].value - self.bins[i - 1].value,
            )
            left, right = self.bins[idx - 1], self.bins[idx]
            total = left.count + right.count
            merged = Bin(
                value=(left.value * left.count + right.value * right.count) / total,
                count=total,
            )
            self.bins[idx - 1 : idx + 1] = [merged]