from tqdm import tqdm

OVERALL_LABEL = "Overall"


def percent_complete(done: int, total: int) -> float:
    if total <= 0:
        return 100.0
    return round(done / total * 100, 2)


class ProgressReporter:
    """Receives (label, percent) updates and a completion signal per label."""

    def update(self, label: str, percent: float) -> None:
        raise NotImplementedError

    def complete(self, label: str) -> None:
        raise NotImplementedError


class NullProgress(ProgressReporter):
    def update(self, label: str, percent: float) -> None:
        pass

    def complete(self, label: str) -> None:
        pass


class TqdmProgress(ProgressReporter):
    """One tqdm bar per label, each counting from 0 to 100."""

    def __init__(self, disable: bool = False):
        self.disable = disable
        self._bars: dict[str, tqdm] = {}

    def _bar(self, label: str) -> tqdm:
        bar = self._bars.get(label)
        if bar is None:
            bar = tqdm(
                total=100,
                desc=label,
                unit="%",
                leave=label == OVERALL_LABEL,
                disable=self.disable,
                bar_format="{desc}: {percentage:3.0f}%|{bar}|",
            )
            self._bars[label] = bar
        return bar

    def update(self, label: str, percent: float) -> None:
        bar = self._bar(label)
        bar.n = min(percent, 100)
        bar.refresh()

    def complete(self, label: str) -> None:
        bar = self._bars.pop(label, None)
        if bar is None:
            return
        bar.n = 100
        bar.refresh()
        bar.close()

    def close(self) -> None:
        for label in list(self._bars):
            self._bars.pop(label).close()
