"""Threads and queues connecting the pipeline stages."""

from .stage_queue import StageQueue, StageThread

__all__ = ['StageQueue', 'StageThread']
