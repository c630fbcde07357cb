from .runner import NarrationConfig, NarrationPipeline, NarrationReport, RegionTask


__all__ = ["NarrationConfig", "NarrationPipeline", "NarrationReport", "RegionTask"]
