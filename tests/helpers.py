from spancopy.progress import ProgressReporter


class RecordingProgress(ProgressReporter):
    def __init__(self):
        self.updates: list[tuple[str, float]] = []
        self.completed: list[str] = []

    def update(self, label, percent):
        self.updates.append((label, percent))

    def complete(self, label):
        self.completed.append(label)

    def percents(self, label):
        return [p for lbl, p in self.updates if lbl == label]
