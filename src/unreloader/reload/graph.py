"""Dependency graph between units."""

from collections.abc import Iterable
from pathlib import Path


class DependencyGraph:
    """Records which units a unit pulled in, and which files depend on which.

    Two kinds of edges are kept:

    - features: units required while another unit was executing. These are
      discovered at load time and drive unload order.
    - dependencies: declared with ``record_dependency``. These only decide
      which units become stale when a file changes, and only one hop deep.
    """

    def __init__(self) -> None:
        self._features: dict[Path, list[Path]] = {}
        self._dependents: dict[Path, list[Path]] = {}

    def record_feature(self, parent: Path, child: Path) -> None:
        features = self._features.setdefault(parent, [])
        if child not in features:
            features.append(child)

    def features_of(self, path: Path) -> list[Path]:
        return list(self._features.get(path, ()))

    def replace_features(self, path: Path, features: Iterable[Path]) -> None:
        self._features[path] = []
        for child in features:
            self.record_feature(path, child)

    def clear_features(self, path: Path) -> None:
        self._features.pop(path, None)

    def record_dependency(self, dependency: Path, files: Iterable[Path]) -> None:
        """Mark every file in ``files`` stale whenever ``dependency`` changes."""
        dependents = self._dependents.setdefault(dependency, [])
        for path in files:
            if path not in dependents:
                dependents.append(path)

    @property
    def dependencies(self) -> list[Path]:
        return list(self._dependents)

    def stale_set(self, changed: Iterable[Path]) -> list[Path]:
        """Return the changed paths followed by their declared dependents.

        Parents that merely required a changed unit are not included.
        """
        changed = list(changed)
        stale = list(dict.fromkeys(changed))
        for path in changed:
            for dependent in self._dependents.get(path, ()):
                if dependent not in stale:
                    stale.append(dependent)
        return stale

    def clear(self) -> None:
        self._features.clear()
        self._dependents.clear()
