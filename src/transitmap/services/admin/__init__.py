"""Admin editing commands."""

from .editor import CommittedRoute, CommittedStop, RegistryEditor, SubmitRoute, SubmitStop

__all__ = ["RegistryEditor", "SubmitStop", "SubmitRoute", "CommittedStop", "CommittedRoute"]
