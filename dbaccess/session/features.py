from __future__ import annotations
from logging import Logger, getLogger as logging_getLogger
from typing import List, Optional, Protocol, runtime_checkable

from ..exceptions import MissingCollaboratorError


@runtime_checkable
class Feature(Protocol):
    """A cross-cutting add-on owned by a session and released with it."""

    def dispose(self) -> None:
        ...


class FeatureHost:
    """
    Ownership list of features.

    ``dispose`` releases every feature in registration order; a feature
    whose disposal raises is logged and the teardown continues.
    """

    def __init__(self, logger: Optional[Logger] = None) -> None:
        self.logger = logger or logging_getLogger(__name__)
        self._features: List[Feature] = []

    def add_feature(self, feature: Feature) -> Feature:
        if feature is None:
            raise MissingCollaboratorError("feature")
        self._features.append(feature)
        return feature

    @property
    def features(self) -> tuple:
        return tuple(self._features)

    def __len__(self) -> int:
        return len(self._features)

    def dispose(self) -> None:
        features, self._features = self._features, []
        for feature in features:
            try:
                feature.dispose()
            except Exception as e:
                self.logger.error(f"Failed to dispose feature {feature!r}: {e}")
