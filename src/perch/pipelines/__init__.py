"""Pipelines: send a payload through ordered stages to a terminal callback."""

from perch.pipelines.pipeline import Pipeline, Stage

__all__ = ["Pipeline", "Stage"]
