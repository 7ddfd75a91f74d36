"""Reactive bridge and runtime sinks."""

from .state import FormStateBridge, Snapshot, SnapshotSink, Listener
from .sinks import (
    ObservableState,
    ObservableSink,
    ShallowRef,
    RefSink,
    ExternalStoreBinding,
)

__all__ = [
    "FormStateBridge",
    "Snapshot",
    "SnapshotSink",
    "Listener",
    "ObservableState",
    "ObservableSink",
    "ShallowRef",
    "RefSink",
    "ExternalStoreBinding",
]
