from .mediaflow import MediaFlowProxy, apply_mediaflow, mediaflow_enabled

__all__ = ["MediaFlowProxy", "apply_mediaflow", "mediaflow_enabled"]
